import uuid

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AuditEvent",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("PRODUCT_ADDED", "Product added"),
                            ("PRODUCT_UPDATED", "Product updated"),
                            ("PRODUCT_DELETED", "Product deleted"),
                            ("BATCH_ADDED", "Batch added"),
                            ("BATCH_UPDATED", "Batch updated"),
                            ("STOCK_LOW", "Stock low"),
                            ("STOCK_SOLD", "Stock sold"),
                            ("STOCK_RESTORED", "Stock restored"),
                            ("STOCK_EXPIRED", "Stock expired"),
                            ("BILL_CREATED", "Bill created"),
                            ("BILL_CANCELLED", "Bill cancelled"),
                            ("VENDOR_ADDED", "Vendor added"),
                            ("VENDOR_UPDATED", "Vendor updated"),
                            ("DOCTOR_ADDED", "Doctor added"),
                            ("DOCTOR_UPDATED", "Doctor updated"),
                            ("USER_LOGIN", "User login"),
                            ("SYSTEM_ERROR", "System error"),
                            ("REPORT_GENERATED", "Report generated"),
                        ],
                        db_index=True,
                        max_length=32,
                    ),
                ),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("description", models.TextField(blank=True, default="")),
                ("timestamp", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("source", models.CharField(default="medstock", max_length=64)),
            ],
            options={
                "ordering": ["-timestamp"],
                "indexes": [models.Index(fields=["type", "timestamp"], name="audit_event_type_ts_idx")],
            },
        ),
    ]
