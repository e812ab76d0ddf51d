# inventory/tests/test_inventory_api.py

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from audit.models import AuditEvent, EventType
from billing.models import Bill, BillItem
from inventory.models import Batch, Product
from vendors.models import Vendor

User = get_user_model()


class InventoryApiTests(TestCase):
    """
    GUARANTEES:
    - total_quantity is derived from batches
    - batch filters (product, low stock, expiring) work
    - direct stock edits are validated >= 0 and audited
    - pharmacists edit stock but cannot create catalogue entries
    - products referenced by bills cannot be deleted
    """

    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(username="admin", password="pass123", role="admin")
        self.pharmacist = User.objects.create_user(username="pharma", password="pass123", role="pharmacist")

        self.vendor = Vendor.objects.create(name="Sun Distributors")
        self.product = Product.objects.create(name="Amoxicillin 500mg", unit="strip", vendor=self.vendor)

        today = timezone.localdate()
        self.fresh = Batch.objects.create(
            product=self.product,
            batch_no="AMX-1",
            quantity=50,
            unit_price=Decimal("85.00"),
            expiry_date=today + timedelta(days=300),
        )
        self.low = Batch.objects.create(
            product=self.product,
            batch_no="AMX-2",
            quantity=4,
            unit_price=Decimal("85.00"),
            expiry_date=today + timedelta(days=10),
        )

    def test_product_list_includes_total_quantity(self):
        self.client.force_authenticate(self.pharmacist)

        res = self.client.get("/api/inventory/products/")

        self.assertEqual(res.status_code, 200)
        row = res.data["results"][0]
        self.assertEqual(row["total_quantity"], 54)
        self.assertEqual(row["vendor_name"], "Sun Distributors")
        self.assertEqual(len(row["batches"]), 2)

    def test_admin_creates_product_and_batch(self):
        self.client.force_authenticate(self.admin)

        res = self.client.post(
            "/api/inventory/products/",
            {"name": "ORS Sachet", "unit": "sachet", "tax_percent": "5.00"},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        product_id = res.data["id"]

        res = self.client.post(
            "/api/inventory/batches/",
            {"product_id": product_id, "batch_no": "ORS-1", "quantity": 20, "unit_price": "22.00"},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["product_name"], "ORS Sachet")

        self.assertTrue(AuditEvent.objects.filter(type=EventType.PRODUCT_ADDED).exists())
        self.assertTrue(AuditEvent.objects.filter(type=EventType.BATCH_ADDED).exists())

    def test_duplicate_batch_no_rejected(self):
        self.client.force_authenticate(self.admin)

        res = self.client.post(
            "/api/inventory/batches/",
            {"product_id": str(self.product.id), "batch_no": "AMX-1", "quantity": 1, "unit_price": "1.00"},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertIn("batch_no", res.data)

    def test_batch_filters(self):
        self.client.force_authenticate(self.pharmacist)

        low = self.client.get("/api/inventory/batches/", {"low_stock": "true"})
        self.assertEqual([b["batch_no"] for b in low.data["results"]], ["AMX-2"])
        self.assertTrue(low.data["results"][0]["is_low_stock"])

        expiring = self.client.get("/api/inventory/batches/", {"expiring_within": "30"})
        self.assertEqual([b["batch_no"] for b in expiring.data["results"]], ["AMX-2"])

        by_product = self.client.get("/api/inventory/batches/", {"product": str(self.product.id)})
        self.assertEqual(by_product.data["count"], 2)

    def test_pharmacist_direct_stock_edit(self):
        self.client.force_authenticate(self.pharmacist)

        res = self.client.patch(f"/api/inventory/batches/{self.low.id}/", {"quantity": 40}, format="json")

        self.assertEqual(res.status_code, 200)
        self.low.refresh_from_db()
        self.assertEqual(self.low.quantity, 40)

        event = AuditEvent.objects.get(type=EventType.BATCH_UPDATED)
        self.assertEqual(event.payload["previous_quantity"], 4)
        self.assertEqual(event.payload["quantity"], 40)

    def test_negative_stock_edit_rejected(self):
        self.client.force_authenticate(self.pharmacist)

        res = self.client.patch(f"/api/inventory/batches/{self.low.id}/", {"quantity": -1}, format="json")

        self.assertEqual(res.status_code, 400)
        self.low.refresh_from_db()
        self.assertEqual(self.low.quantity, 4)

    def test_pharmacist_cannot_create_or_delete(self):
        self.client.force_authenticate(self.pharmacist)

        res = self.client.post("/api/inventory/products/", {"name": "X"}, format="json")
        self.assertEqual(res.status_code, 403)

        res = self.client.delete(f"/api/inventory/batches/{self.fresh.id}/")
        self.assertEqual(res.status_code, 403)

    def test_product_with_billed_batch_cannot_be_deleted(self):
        bill = Bill.objects.create(customer_name="Walk-in", subtotal=Decimal("85.00"), total_amount=Decimal("85.00"))
        BillItem.objects.create(
            bill=bill,
            line_number=1,
            batch=self.fresh,
            product_name=self.product.name,
            batch_no=self.fresh.batch_no,
            unit_price=Decimal("85.00"),
            quantity=1,
        )
        self.client.force_authenticate(self.admin)

        res = self.client.delete(f"/api/inventory/products/{self.product.id}/")

        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "PRODUCT_IN_USE")
        self.assertTrue(Product.objects.filter(pk=self.product.pk).exists())

    def test_admin_deletes_unused_product(self):
        other = Product.objects.create(name="Unused")
        self.client.force_authenticate(self.admin)

        res = self.client.delete(f"/api/inventory/products/{other.id}/")

        self.assertEqual(res.status_code, 204)
        self.assertTrue(AuditEvent.objects.filter(type=EventType.PRODUCT_DELETED).exists())
