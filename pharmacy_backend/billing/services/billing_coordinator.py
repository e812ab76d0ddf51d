# billing/services/billing_coordinator.py

"""
BILLING TRANSACTION COORDINATOR (APPLICATION SERVICE)

create_bill():
    resolve batches -> validate -> [atomic: deduct every line -> persist bill + items]
    -> emit audit events -> return receipt data

cancel_bill():
    [atomic: lock bill -> ACTIVE->CANCELLED check -> restore every item -> mark cancelled]
    -> emit audit events

Hard rules:
- Quantities are whole units; prices and line totals are taken from the batch
  rows at time of sale (client prices are advisory and ignored).
- All deductions of one bill happen inside ONE transaction.atomic() block.
  Any failure (stock, missing batch, DatabaseError, deadline) rolls back every
  deduction made by this call.
- Audit events are emitted after the atomic block exits. SYSTEM_ERROR events
  for failures are written outside the rolled-back block, so they survive.
- The event log is best-effort and never fails the business operation.

Dependencies are injected (ledger, events, threshold, deadline).
BillingCoordinator.from_settings() builds the default wiring per call site.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from audit.services.event_log import EventLog
from billing.models import Bill, BillItem, BillStatus
from billing.services.bill_builder import (
    BillDraft,
    BillTotals,
    PricedLine,
    compute_totals,
    split_errors,
    validate_bill,
)
from billing.services.bill_lifecycle import validate_transition
from billing.services.exceptions import (
    BatchNotFoundError,
    BillingError,
    BillingTimeoutError,
    BillNotFoundError,
    BillValidationError,
    DoctorNotFoundError,
    InsufficientStockError,
    PersistenceError,
)
from billing.services.receipts import build_receipt, render_receipt_text
from doctors.models import Doctor
from inventory.services import stock_ledger
from inventory.services.stock_ledger import StockLedger

logger = logging.getLogger("billing")

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _to_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def _actor(user):
    return user if getattr(user, "is_authenticated", False) else None


def _actor_name(user) -> str:
    return getattr(_actor(user), "username", "") or "system"


# ============================================================
# Result types
# ============================================================

@dataclass(frozen=True)
class BillReceipt:
    bill_id: uuid.UUID
    bill_no: str
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    receipt: dict
    receipt_text: str

    def as_dict(self) -> dict:
        return {
            "bill_id": str(self.bill_id),
            "bill_no": self.bill_no,
            "subtotal": str(self.subtotal),
            "discount_amount": str(self.discount_amount),
            "total_amount": str(self.total),
            "receipt": self.receipt,
            "receipt_text": self.receipt_text,
        }


class _Deadline:
    """Upper bound for the transactional phase; checked between steps."""

    def __init__(self, seconds: Optional[float]):
        self.seconds = seconds
        self.started = time.monotonic()

    def check(self, stage: str):
        if not self.seconds:
            return
        elapsed = time.monotonic() - self.started
        if elapsed > self.seconds:
            raise BillingTimeoutError(
                details={
                    "stage": stage,
                    "elapsed_seconds": round(elapsed, 3),
                    "deadline_seconds": self.seconds,
                }
            )


# ============================================================
# Coordinator
# ============================================================

class BillingCoordinator:
    def __init__(
        self,
        *,
        ledger: StockLedger,
        events: EventLog,
        low_stock_threshold: int,
        deadline_seconds: Optional[float] = None,
    ):
        self.ledger = ledger
        self.events = events
        self.low_stock_threshold = low_stock_threshold
        self.deadline_seconds = deadline_seconds

    @classmethod
    def from_settings(cls) -> "BillingCoordinator":
        return cls(
            ledger=StockLedger(),
            events=EventLog(),
            low_stock_threshold=settings.STOCK_LOW_THRESHOLD,
            deadline_seconds=settings.BILLING_DEADLINE_SECONDS,
        )

    # ---------------------------------------------------------
    # CREATE
    # ---------------------------------------------------------
    def create_bill(self, draft: BillDraft, user) -> BillReceipt:
        logger.info(
            "Creating bill",
            extra={
                "customer_name": draft.customer_name,
                "item_count": len(draft.items),
                "user": _actor_name(user),
            },
        )

        try:
            bill, lines, touched = self._create(draft, user)
        except BillingError as exc:
            self._record_failure(
                "Bill creation failed",
                exc,
                {"customer_name": draft.customer_name, "user": _actor_name(user)},
            )
            raise
        except Exception as exc:
            logger.exception("Unexpected failure creating bill")
            self.events.system_error(
                error="Bill creation failed",
                details=str(exc),
                context={"customer_name": draft.customer_name, "user": _actor_name(user)},
            )
            raise

        receipt = build_receipt(bill)
        self._emit_created(bill, receipt, lines, touched)

        logger.info(
            "Bill created",
            extra={"bill_id": str(bill.id), "bill_no": bill.bill_no, "total": str(bill.total_amount)},
        )

        return BillReceipt(
            bill_id=bill.id,
            bill_no=bill.bill_no,
            subtotal=bill.subtotal,
            discount_amount=bill.discount_amount,
            total=bill.total_amount,
            receipt=receipt,
            receipt_text=render_receipt_text(receipt),
        )

    def _create(self, draft: BillDraft, user):
        # 1) resolve + validate (no side effects)
        batches = self.ledger.get_batches(
            item.batch_uuid for item in draft.items if item.batch_uuid is not None
        )
        available = {pk: b.quantity for pk, b in batches.items()}

        structural, stock = split_errors(validate_bill(draft, available))
        if structural:
            raise BillValidationError(structural + stock)
        if stock:
            first = stock[0].meta
            batch = batches[uuid.UUID(first["batch_id"])]
            raise InsufficientStockError(
                batch_id=batch.id,
                available=first["available"],
                requested=first["requested"],
                product_name=batch.product.name,
            )

        # 2) referenced entities
        for item in draft.items:
            if item.batch_uuid not in batches:
                raise BatchNotFoundError(item.batch_id)

        doctor = self._resolve_doctor(draft.doctor_id)

        lines = [
            PricedLine(
                batch_id=batches[item.batch_uuid].id,
                product_name=batches[item.batch_uuid].product.name,
                batch_no=batches[item.batch_uuid].batch_no,
                unit_price=batches[item.batch_uuid].unit_price,
                quantity=item.quantity_int,
            )
            for item in draft.items
        ]
        totals = compute_totals(lines, draft.discount_decimal).rounded()

        # 3) deduct + persist, all or nothing
        deadline = _Deadline(self.deadline_seconds)
        touched = {}
        try:
            with transaction.atomic():
                for line in lines:
                    deadline.check("deduct")
                    touched[line.batch_id] = self._deduct(line)

                deadline.check("persist")
                bill = self._persist_bill(
                    draft=draft,
                    doctor=doctor,
                    lines=lines,
                    totals=totals,
                    user=user,
                )
                deadline.check("commit")
        except DatabaseError as exc:
            logger.exception("Database failure while creating bill")
            raise PersistenceError(details={"reason": str(exc)}) from exc

        return bill, lines, touched

    def _resolve_doctor(self, doctor_id) -> Optional[Doctor]:
        if not doctor_id:
            return None
        pk = _to_uuid(doctor_id)
        doctor = Doctor.objects.filter(pk=pk).first() if pk else None
        if doctor is None:
            raise DoctorNotFoundError(doctor_id)
        return doctor

    def _deduct(self, line: PricedLine):
        try:
            return self.ledger.deduct(line.batch_id, line.quantity)
        except stock_ledger.InsufficientStockError as exc:
            raise InsufficientStockError(
                batch_id=exc.batch_id,
                available=exc.available,
                requested=exc.requested,
                product_name=line.product_name,
            ) from exc
        except stock_ledger.BatchNotFoundError as exc:
            raise BatchNotFoundError(line.batch_id) from exc

    def _persist_bill(self, *, draft: BillDraft, doctor, lines, totals: BillTotals, user) -> Bill:
        bill = Bill.objects.create(
            customer_name=draft.customer_name.strip(),
            customer_phone=draft.customer_phone,
            doctor=doctor,
            doctor_name=doctor.name if doctor else "",
            payment_method=draft.payment_method,
            discount_percent=_money(draft.discount_decimal),
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount,
            total_amount=totals.total,
            created_by=_actor(user),
        )

        for line_number, line in enumerate(lines, start=1):
            BillItem.objects.create(
                bill=bill,
                line_number=line_number,
                batch_id=line.batch_id,
                product_name=line.product_name,
                batch_no=line.batch_no,
                unit_price=line.unit_price,
                quantity=line.quantity,
            )

        return bill

    def _emit_created(self, bill: Bill, receipt: dict, lines, touched):
        payload = dict(receipt)
        payload["doctor_id"] = bill.doctor_id
        payload["created_by"] = getattr(bill.created_by, "username", None)
        self.events.bill_created(payload)

        for line in lines:
            self.events.stock_sold(
                bill_id=bill.id,
                bill_no=bill.bill_no,
                batch_id=line.batch_id,
                product_name=line.product_name,
                quantity=line.quantity,
                price=line.unit_price,
            )

        for batch in touched.values():
            if self.ledger.is_low(batch, self.low_stock_threshold):
                self.events.stock_low(
                    batch_id=batch.id,
                    batch_no=batch.batch_no,
                    product_name=batch.product.name,
                    quantity=batch.quantity,
                    threshold=self.low_stock_threshold,
                )

    # ---------------------------------------------------------
    # CANCEL
    # ---------------------------------------------------------
    def cancel_bill(self, bill_id, user, reason: str = "") -> Bill:
        logger.info("Cancelling bill", extra={"bill_id": str(bill_id), "user": _actor_name(user)})

        try:
            bill, items = self._cancel(bill_id, user, reason)
        except BillingError as exc:
            self._record_failure(
                "Bill cancellation failed",
                exc,
                {"bill_id": str(bill_id), "user": _actor_name(user)},
            )
            raise

        for item in items:
            self.events.stock_restored(
                bill_id=bill.id,
                bill_no=bill.bill_no,
                batch_id=item.batch_id,
                product_name=item.product_name,
                quantity=item.quantity,
            )
        self.events.bill_cancelled(
            bill_id=bill.id,
            bill_no=bill.bill_no,
            total_amount=bill.total_amount,
            reason=bill.cancel_reason,
            cancelled_by=_actor_name(user),
        )

        logger.info("Bill cancelled", extra={"bill_id": str(bill.id), "bill_no": bill.bill_no})
        return bill

    def _cancel(self, bill_id, user, reason: str):
        pk = _to_uuid(bill_id)
        if pk is None:
            raise BillNotFoundError(bill_id)

        deadline = _Deadline(self.deadline_seconds)
        try:
            with transaction.atomic():
                bill = Bill.objects.select_for_update().filter(pk=pk).first()
                if bill is None:
                    raise BillNotFoundError(bill_id)

                validate_transition(bill=bill, target_status=BillStatus.CANCELLED)

                items = list(bill.items.all().order_by("line_number"))
                for item in items:
                    deadline.check("restore")
                    try:
                        self.ledger.restore(item.batch_id, item.quantity)
                    except stock_ledger.BatchNotFoundError as exc:
                        raise BatchNotFoundError(item.batch_id) from exc

                bill.status = BillStatus.CANCELLED
                bill.cancelled_at = timezone.now()
                bill.cancelled_by = _actor(user)
                bill.cancel_reason = (reason or "").strip()
                bill.save(update_fields=["status", "cancelled_at", "cancelled_by", "cancel_reason"])
                deadline.check("commit")
        except DatabaseError as exc:
            logger.exception("Database failure while cancelling bill")
            raise PersistenceError(details={"reason": str(exc)}) from exc

        return bill, items

    # ---------------------------------------------------------
    # Failure trail
    # ---------------------------------------------------------
    def _record_failure(self, message: str, exc: BillingError, context: dict):
        logger.warning(message, extra={"code": exc.code, "reason": exc.message, **context})
        self.events.system_error(
            error=message,
            details=exc.message,
            context={"code": exc.code, "info": exc.details, **context},
        )
