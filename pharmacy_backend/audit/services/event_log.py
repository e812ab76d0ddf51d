# audit/services/event_log.py

"""
EVENT LOG (BEST-EFFORT, APPEND-ONLY)

Every business operation leaves a trail here.

Two sinks:
1) AuditEvent rows (queryable, exposed at /api/audit/events/)
2) the "audit" logger (one structured record per event; settings may attach a file handler)

Rules:
- append() NEVER raises. A failed write is logged and returns None.
- The row is written inside its own savepoint, so a failed audit write
  cannot poison the caller's transaction.
- Payloads are stored JSON-safe (Decimal/UUID/datetime -> strings).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction

from audit.models import AuditEvent, EventType

logger = logging.getLogger("audit")

DEFAULT_SOURCE = "medstock"
DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 500


class _EventEncoder(DjangoJSONEncoder):
    def default(self, o):
        try:
            return super().default(o)
        except TypeError:
            return str(o)


def json_safe(payload: Any) -> Any:
    if payload is None:
        return {}
    return json.loads(json.dumps(payload, cls=_EventEncoder))


class EventLog:
    """
    Append-only audit trail.

    Construct one per request/operation; it holds no state besides its source label.
    """

    def __init__(self, *, source: str = DEFAULT_SOURCE):
        self.source = source

    # ---------------------------------------------------------
    # Core
    # ---------------------------------------------------------
    def append(
        self,
        event_type: str,
        payload: Any = None,
        description: str = "",
        source: Optional[str] = None,
    ):
        """
        Record one event. Returns the event id, or None when the write failed.
        """
        try:
            safe_payload = json_safe(payload)
            with transaction.atomic():
                event = AuditEvent.objects.create(
                    type=event_type,
                    payload=safe_payload,
                    description=description or "",
                    source=source or self.source,
                )
        except Exception:
            logger.exception(
                "Audit event write failed",
                extra={"event_type": event_type},
            )
            return None

        logger.info(
            "%s %s",
            event_type,
            description,
            extra={
                "event_id": str(event.id),
                "event_type": event_type,
                "payload": safe_payload,
            },
        )
        return event.id

    def query(
        self,
        event_type: Optional[str] = None,
        start=None,
        end=None,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> list[AuditEvent]:
        """Newest first. `start` inclusive, `end` exclusive."""
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            limit = DEFAULT_QUERY_LIMIT
        limit = max(1, min(limit, MAX_QUERY_LIMIT))

        qs = AuditEvent.objects.all()
        if event_type:
            qs = qs.filter(type=event_type)
        if start is not None:
            qs = qs.filter(timestamp__gte=start)
        if end is not None:
            qs = qs.filter(timestamp__lt=end)

        return list(qs.order_by("-timestamp")[:limit])

    # ---------------------------------------------------------
    # Billing / stock wrappers
    # ---------------------------------------------------------
    def bill_created(self, bill: dict):
        return self.append(
            EventType.BILL_CREATED,
            bill,
            f"Bill created: {bill.get('bill_no', 'Unknown')}",
        )

    def stock_sold(self, *, bill_id, bill_no, batch_id, product_name, quantity, price):
        return self.append(
            EventType.STOCK_SOLD,
            {
                "bill_id": bill_id,
                "bill_no": bill_no,
                "batch_id": batch_id,
                "product_name": product_name,
                "quantity_sold": quantity,
                "price": price,
                "total": price * quantity,
            },
            f"Stock sold: {product_name} x{quantity}",
        )

    def stock_low(self, *, batch_id, batch_no, product_name, quantity, threshold):
        return self.append(
            EventType.STOCK_LOW,
            {
                "batch_id": batch_id,
                "batch_no": batch_no,
                "product_name": product_name,
                "remaining_quantity": quantity,
                "threshold": threshold,
            },
            f"Low stock alert: {product_name} (Batch: {batch_no}) - {quantity} remaining",
        )

    def stock_restored(self, *, bill_id, bill_no, batch_id, product_name, quantity):
        return self.append(
            EventType.STOCK_RESTORED,
            {
                "bill_id": bill_id,
                "bill_no": bill_no,
                "batch_id": batch_id,
                "product_name": product_name,
                "quantity_restored": quantity,
            },
            f"Stock restored: {product_name} x{quantity}",
        )

    def bill_cancelled(self, *, bill_id, bill_no, total_amount, reason, cancelled_by):
        return self.append(
            EventType.BILL_CANCELLED,
            {
                "bill_id": bill_id,
                "bill_no": bill_no,
                "total_amount": total_amount,
                "reason": reason,
                "cancelled_by": cancelled_by,
            },
            f"Bill cancelled: {bill_no}",
        )

    def system_error(self, *, error: str, details=None, context: Optional[dict] = None):
        payload = {"error": error, "details": details}
        if context:
            payload.update(context)
        return self.append(EventType.SYSTEM_ERROR, payload, f"System error: {error}")
