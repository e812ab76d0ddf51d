# inventory/services/stock_ledger.py

"""
STOCK LEDGER

Single source of truth for batch quantity-on-hand.

Rules:
- deduct() is ONE conditional UPDATE evaluated by the database:
      UPDATE batch SET quantity = quantity - q WHERE id = ? AND quantity >= q
  Never read-then-write. Two concurrent sales cannot both deduct past zero.
- Zero rows updated -> nothing was mutated; we then classify the failure
  (missing batch vs insufficient stock).
- restore() adds quantity back (cancellations). No upper bound.
- The ledger emits no audit events; callers decide what to record.
- Callers own the transaction. Inside transaction.atomic() the row write lock
  taken by the UPDATE is held until commit.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, Optional

from django.db.models import F
from django.utils import timezone

from inventory.models import Batch

logger = logging.getLogger("inventory")


# ============================================================
# DOMAIN ERRORS
# ============================================================

class StockLedgerError(Exception):
    pass


class BatchNotFoundError(StockLedgerError):
    def __init__(self, batch_id):
        self.batch_id = batch_id
        super().__init__(f"Batch not found: {batch_id}")


class InsufficientStockError(StockLedgerError):
    def __init__(self, *, batch_id, available: int, requested: int):
        self.batch_id = batch_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for batch {batch_id}: available {available}, requested {requested}"
        )


# ============================================================
# Helpers
# ============================================================

def _as_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def _positive_qty(value) -> int:
    """
    HARD RULE: ledger quantities are positive whole units.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("quantity must be a whole integer unit")
    if value <= 0:
        raise ValueError("quantity must be greater than zero")
    return value


# ============================================================
# Ledger
# ============================================================

class StockLedger:
    def get_batch(self, batch_id) -> Batch:
        pk = _as_uuid(batch_id)
        if pk is None:
            raise BatchNotFoundError(batch_id)
        try:
            return Batch.objects.select_related("product").get(pk=pk)
        except Batch.DoesNotExist as exc:
            raise BatchNotFoundError(batch_id) from exc

    def get_batches(self, batch_ids: Iterable) -> dict[uuid.UUID, Batch]:
        """
        Bulk read. Ids that are malformed or missing are simply absent.
        """
        pks = {pk for pk in (_as_uuid(b) for b in batch_ids) if pk is not None}
        if not pks:
            return {}
        return {b.id: b for b in Batch.objects.select_related("product").filter(pk__in=pks)}

    def deduct(self, batch_id, quantity: int) -> Batch:
        quantity = _positive_qty(quantity)
        pk = _as_uuid(batch_id)
        if pk is None:
            raise BatchNotFoundError(batch_id)

        updated = Batch.objects.filter(pk=pk, quantity__gte=quantity).update(
            quantity=F("quantity") - quantity,
            updated_at=timezone.now(),
        )

        if updated == 0:
            available = Batch.objects.filter(pk=pk).values_list("quantity", flat=True).first()
            if available is None:
                raise BatchNotFoundError(batch_id)
            logger.warning(
                "Stock deduct rejected",
                extra={"batch_id": str(pk), "available": available, "requested": quantity},
            )
            raise InsufficientStockError(batch_id=pk, available=available, requested=quantity)

        batch = self.get_batch(pk)
        logger.info(
            "Stock deducted",
            extra={"batch_id": str(pk), "quantity": quantity, "remaining": batch.quantity},
        )
        return batch

    def restore(self, batch_id, quantity: int) -> Batch:
        quantity = _positive_qty(quantity)
        pk = _as_uuid(batch_id)
        if pk is None:
            raise BatchNotFoundError(batch_id)

        updated = Batch.objects.filter(pk=pk).update(
            quantity=F("quantity") + quantity,
            updated_at=timezone.now(),
        )
        if updated == 0:
            raise BatchNotFoundError(batch_id)

        batch = self.get_batch(pk)
        logger.info(
            "Stock restored",
            extra={"batch_id": str(pk), "quantity": quantity, "remaining": batch.quantity},
        )
        return batch

    @staticmethod
    def is_low(batch: Batch, threshold: int) -> bool:
        return batch.quantity <= threshold
