# audit/models.py

"""
AUDIT EVENT (APPEND-ONLY)

One row per business event. Created once. Never updated. Never deleted.

References to bills / batches / users live inside `payload` only,
so the log survives deletion of the entities it mentions.
"""

import uuid

from django.db import models
from django.utils import timezone


class EventType(models.TextChoices):
    PRODUCT_ADDED = "PRODUCT_ADDED", "Product added"
    PRODUCT_UPDATED = "PRODUCT_UPDATED", "Product updated"
    PRODUCT_DELETED = "PRODUCT_DELETED", "Product deleted"
    BATCH_ADDED = "BATCH_ADDED", "Batch added"
    BATCH_UPDATED = "BATCH_UPDATED", "Batch updated"
    STOCK_LOW = "STOCK_LOW", "Stock low"
    STOCK_SOLD = "STOCK_SOLD", "Stock sold"
    STOCK_RESTORED = "STOCK_RESTORED", "Stock restored"
    STOCK_EXPIRED = "STOCK_EXPIRED", "Stock expired"
    BILL_CREATED = "BILL_CREATED", "Bill created"
    BILL_CANCELLED = "BILL_CANCELLED", "Bill cancelled"
    VENDOR_ADDED = "VENDOR_ADDED", "Vendor added"
    VENDOR_UPDATED = "VENDOR_UPDATED", "Vendor updated"
    DOCTOR_ADDED = "DOCTOR_ADDED", "Doctor added"
    DOCTOR_UPDATED = "DOCTOR_UPDATED", "Doctor updated"
    USER_LOGIN = "USER_LOGIN", "User login"
    SYSTEM_ERROR = "SYSTEM_ERROR", "System error"
    REPORT_GENERATED = "REPORT_GENERATED", "Report generated"


class AuditEvent(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    type = models.CharField(max_length=32, choices=EventType.choices, db_index=True)
    payload = models.JSONField(default=dict, blank=True)
    description = models.TextField(blank=True, default="")

    timestamp = models.DateTimeField(default=timezone.now, db_index=True)
    source = models.CharField(max_length=64, default="medstock")

    class Meta:
        ordering = ["-timestamp"]
        indexes = [
            models.Index(fields=["type", "timestamp"], name="audit_event_type_ts_idx"),
        ]

    # ======================================================
    # IMMUTABILITY
    # ======================================================
    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("AuditEvent records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("AuditEvent records cannot be deleted")

    def __str__(self):
        return f"{self.type} @ {self.timestamp.isoformat()}"
