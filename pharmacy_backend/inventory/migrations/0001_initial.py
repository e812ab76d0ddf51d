import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("vendors", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("unit", models.CharField(blank=True, default="", max_length=32)),
                ("tax_percent", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "vendor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                        to="vendors.vendor",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("tax_percent__gte", 0), ("tax_percent__lte", 100)),
                        name="chk_product_tax_percent_range",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Batch",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("batch_no", models.CharField(max_length=128)),
                (
                    "quantity",
                    models.PositiveIntegerField(
                        default=0, help_text="Quantity on hand (ledger-managed during sales)"
                    ),
                ),
                ("unit_cost", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                (
                    "unit_price",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Authoritative selling price captured on bill items",
                        max_digits=12,
                    ),
                ),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="batches",
                        to="inventory.product",
                    ),
                ),
            ],
            options={
                "ordering": ["expiry_date", "created_at"],
                "indexes": [
                    models.Index(fields=["product", "expiry_date"], name="inv_batch_product_expiry_idx"),
                    models.Index(fields=["expiry_date"], name="inv_batch_expiry_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("product", "batch_no"), name="unique_batch_no_per_product"),
                    models.CheckConstraint(condition=models.Q(("quantity__gte", 0)), name="chk_batch_quantity_gte_zero"),
                    models.CheckConstraint(condition=models.Q(("unit_price__gte", 0)), name="chk_batch_unit_price_gte_zero"),
                    models.CheckConstraint(condition=models.Q(("unit_cost__gte", 0)), name="chk_batch_unit_cost_gte_zero"),
                ],
            },
        ),
    ]
