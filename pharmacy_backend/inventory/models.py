# inventory/models.py

"""
PRODUCTS + BATCHES

Product = catalogue entry (name, unit, tax, optional vendor)
Batch   = one lot of a product with its own quantity-on-hand, cost and price

Quantity rules:
- Batch.quantity is never negative (model validation + DB check constraint)
- During a sale / cancellation it is mutated ONLY through the stock ledger
  (inventory/services/stock_ledger.py) using conditional UPDATEs
- Direct stock edits through the batch CRUD endpoint are allowed (validated >= 0)
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Product(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)
    unit = models.CharField(max_length=32, blank=True, default="")
    tax_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    vendor = models.ForeignKey(
        "vendors.Vendor",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(tax_percent__gte=0) & Q(tax_percent__lte=100),
                name="chk_product_tax_percent_range",
            ),
        ]

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "Product name is required"})

    def __str__(self):
        return self.name


class Batch(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="batches",
    )

    batch_no = models.CharField(max_length=128)

    quantity = models.PositiveIntegerField(
        default=0,
        help_text="Quantity on hand (ledger-managed during sales)",
    )

    unit_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Authoritative selling price captured on bill items",
    )

    expiry_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["expiry_date", "created_at"]
        indexes = [
            models.Index(fields=["product", "expiry_date"], name="inv_batch_product_expiry_idx"),
            models.Index(fields=["expiry_date"], name="inv_batch_expiry_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "batch_no"],
                name="unique_batch_no_per_product",
            ),
            models.CheckConstraint(
                condition=Q(quantity__gte=0),
                name="chk_batch_quantity_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(unit_price__gte=0),
                name="chk_batch_unit_price_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(unit_cost__gte=0),
                name="chk_batch_unit_cost_gte_zero",
            ),
        ]

    # -------------------------------------------------
    # VALIDATION
    # -------------------------------------------------
    def clean(self):
        self.batch_no = (self.batch_no or "").strip()
        if not self.batch_no:
            raise ValidationError({"batch_no": "batch_no is required"})

        if self.quantity is None or self.quantity < 0:
            raise ValidationError({"quantity": "quantity cannot be negative"})

        if self.unit_price is None or self.unit_price < Decimal("0.00"):
            raise ValidationError({"unit_price": "unit_price cannot be negative"})

        if self.unit_cost is not None and self.unit_cost < Decimal("0.00"):
            raise ValidationError({"unit_cost": "unit_cost cannot be negative"})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def product_name(self) -> str:
        return self.product.name

    def __str__(self):
        return f"{self.product.name} [{self.batch_no}] qty={self.quantity}"
