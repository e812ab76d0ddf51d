# inventory/tests/test_commands.py

from datetime import timedelta
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone

from audit.models import AuditEvent, EventType
from doctors.models import Doctor
from inventory.models import Batch, Product
from vendors.models import Vendor


class SeedInventoryCommandTests(TestCase):
    def test_seed_is_idempotent(self):
        call_command("seed_inventory", stdout=StringIO())
        counts = (Vendor.objects.count(), Doctor.objects.count(), Product.objects.count(), Batch.objects.count())

        call_command("seed_inventory", stdout=StringIO())

        self.assertEqual(
            (Vendor.objects.count(), Doctor.objects.count(), Product.objects.count(), Batch.objects.count()),
            counts,
        )
        self.assertEqual(Batch.objects.count(), Product.objects.count() * 2)


class FlagExpiredStockCommandTests(TestCase):
    def setUp(self):
        product = Product.objects.create(name="Amoxicillin 500mg")
        today = timezone.localdate()

        self.expired = Batch.objects.create(
            product=product,
            batch_no="AMX-OLD",
            quantity=4,
            unit_price=Decimal("85.00"),
            expiry_date=today - timedelta(days=1),
        )
        # expired but sold out
        Batch.objects.create(
            product=product,
            batch_no="AMX-EMPTY",
            quantity=0,
            unit_price=Decimal("85.00"),
            expiry_date=today - timedelta(days=10),
        )
        Batch.objects.create(
            product=product,
            batch_no="AMX-NEW",
            quantity=20,
            unit_price=Decimal("85.00"),
            expiry_date=today + timedelta(days=60),
        )

    def test_flags_expired_batches_with_stock(self):
        out = StringIO()
        call_command("flag_expired_stock", stdout=out)

        events = AuditEvent.objects.filter(type=EventType.STOCK_EXPIRED)
        self.assertEqual(events.count(), 1)

        event = events.get()
        self.assertEqual(event.payload["batch_no"], "AMX-OLD")
        self.assertEqual(event.payload["batch_id"], str(self.expired.id))
        self.assertEqual(event.source, "medstock.cron")
        self.assertIn("1 batches flagged", out.getvalue())

    def test_dry_run_writes_nothing(self):
        out = StringIO()
        call_command("flag_expired_stock", "--dry-run", stdout=out)

        self.assertFalse(AuditEvent.objects.filter(type=EventType.STOCK_EXPIRED).exists())
        self.assertIn("AMX-OLD", out.getvalue())
