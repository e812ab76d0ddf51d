# billing/models.py

"""
BILL + BILL ITEM (IMMUTABLE SNAPSHOTS)

Bill:
- created ACTIVE by the billing coordinator, with totals computed server-side
- the ONLY permitted mutation is ACTIVE -> CANCELLED plus its metadata
  (cancelled_at, cancelled_by, cancel_reason)
- never deleted; cancellation is the reversal path

BillItem:
- snapshot of one sold line (product name, batch no, unit price at time of sale)
- line_total is ALWAYS recomputed as unit_price * quantity
- append-only
"""

from __future__ import annotations

import secrets
import time
import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

User = settings.AUTH_USER_MODEL


def generate_bill_no() -> str:
    """BILL-<epoch-ms>-<4 hex>"""
    return f"BILL-{int(time.time() * 1000)}-{secrets.token_hex(2).upper()}"


class BillStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    CANCELLED = "cancelled", "Cancelled"


class PaymentMethod(models.TextChoices):
    CASH = "cash", "Cash"
    CARD = "card", "Card"
    UPI = "upi", "UPI"
    CREDIT = "credit", "Credit"


class Bill(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    bill_no = models.CharField(max_length=40, unique=True, editable=False)

    customer_name = models.CharField(max_length=255)
    customer_phone = models.CharField(max_length=32, blank=True, default="")

    doctor = models.ForeignKey(
        "doctors.Doctor",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bills",
    )
    doctor_name = models.CharField(max_length=255, blank=True, default="")

    payment_method = models.CharField(
        max_length=10,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
    )

    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(
        max_length=10,
        choices=BillStatus.choices,
        default=BillStatus.ACTIVE,
        db_index=True,
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name="bills_created",
    )

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bills_cancelled",
    )
    cancel_reason = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="bill_status_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(discount_percent__gte=0) & Q(discount_percent__lte=100),
                name="chk_bill_discount_percent_range",
            ),
            models.CheckConstraint(
                condition=Q(total_amount__gte=0),
                name="chk_bill_total_gte_zero",
            ),
        ]

    # ======================================================
    # IMMUTABILITY
    # ======================================================
    _CANCELLATION_FIELDS = ("status", "cancelled_at", "cancelled_by_id", "cancel_reason")

    _IMMUTABLE_FIELDS = (
        "bill_no",
        "customer_name",
        "customer_phone",
        "doctor_id",
        "doctor_name",
        "payment_method",
        "discount_percent",
        "subtotal",
        "discount_amount",
        "total_amount",
        "created_at",
        "created_by_id",
    )

    def _validate_immutable(self, previous: "Bill"):
        for field in self._IMMUTABLE_FIELDS:
            if getattr(self, field) != getattr(previous, field):
                raise ValueError(f"Bill is immutable. Field '{field}' cannot be changed.")

        changed = [f for f in self._CANCELLATION_FIELDS if getattr(self, f) != getattr(previous, f)]
        if not changed:
            return

        if previous.status != BillStatus.ACTIVE or self.status != BillStatus.CANCELLED:
            raise ValueError(
                f"Bill is immutable once {previous.status}. "
                f"Status change {previous.status} -> {self.status} is not allowed."
            )

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            previous = Bill.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._validate_immutable(previous)

        if not self.bill_no:
            self.bill_no = generate_bill_no()

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Bills cannot be deleted; cancel the bill instead.")

    @property
    def is_cancelled(self) -> bool:
        return self.status == BillStatus.CANCELLED

    def __str__(self):
        return f"{self.bill_no} | {self.total_amount}"


class BillItem(models.Model):
    """
    Immutable snapshot of one sold line.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name="items")
    line_number = models.PositiveIntegerField()

    batch = models.ForeignKey(
        "inventory.Batch",
        on_delete=models.PROTECT,
        related_name="bill_items",
    )
    product_name = models.CharField(max_length=255)
    batch_no = models.CharField(max_length=128)

    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField()
    line_total = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        ordering = ["line_number"]
        constraints = [
            models.UniqueConstraint(fields=["bill", "line_number"], name="unique_bill_line_number"),
            models.CheckConstraint(condition=Q(quantity__gt=0), name="chk_bill_item_quantity_gt_zero"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("BillItem records are immutable")

        # Always keep line_total consistent
        self.line_total = Decimal(self.unit_price) * Decimal(int(self.quantity or 0))
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("BillItem records cannot be deleted")

    def __str__(self):
        return f"{self.product_name} [{self.batch_no}] x {self.quantity}"
