# billing/tests/test_billing_api.py

import uuid
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from audit.models import AuditEvent, EventType
from billing.models import Bill, BillStatus
from inventory.models import Batch, Product

User = get_user_model()

BILLS_URL = "/api/billing/bills/"


class BillingApiTests(TestCase):
    """
    GUARANTEES:
    - bill creation returns receipt data (201)
    - domain failures use the canonical error envelope
    - pharmacists create/read, admins cancel, audit users only read
    """

    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(username="admin", password="pass123", role="admin")
        self.pharmacist = User.objects.create_user(username="pharma", password="pass123", role="pharmacist")
        self.auditor = User.objects.create_user(username="auditor", password="pass123", role="audit")

        product = Product.objects.create(name="Cetirizine 10mg")
        self.batch = Batch.objects.create(product=product, batch_no="CTZ-1", quantity=5, unit_price=Decimal("10.00"))

    def _payload(self, quantity=3, **extra):
        data = {
            "customer_name": "Meena",
            "payment_method": "cash",
            "items": [{"batch_id": str(self.batch.id), "quantity": quantity}],
        }
        data.update(extra)
        return data

    def _create(self, user=None, **kwargs):
        self.client.force_authenticate(user or self.pharmacist)
        return self.client.post(BILLS_URL, self._payload(**kwargs), format="json")

    # ------------------------------------------------------
    # Create
    # ------------------------------------------------------

    def test_pharmacist_creates_bill(self):
        res = self._create()

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["total_amount"], "30.00")
        self.assertTrue(res.data["bill_no"].startswith("BILL-"))
        self.assertIn("Grand Total", res.data["receipt_text"])
        self.assertEqual(len(res.data["receipt"]["items"]), 1)

        self.batch.refresh_from_db()
        self.assertEqual(self.batch.quantity, 2)

    def test_validation_error_envelope(self):
        res = self._create(customer_name="", payment_method="bitcoin")

        self.assertEqual(res.status_code, 400)
        error = res.data["error"]
        self.assertEqual(error["code"], "VALIDATION_ERROR")
        fields = {d["field"] for d in error["details"]}
        self.assertEqual(fields, {"customer_name", "payment_method"})

    def test_superscript_quantity_is_validation_error(self):
        res = self._create(quantity="²")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "VALIDATION_ERROR")
        self.assertEqual([d["field"] for d in res.data["error"]["details"]], ["items[0].quantity"])

    def test_non_object_body_is_validation_error(self):
        self.client.force_authenticate(self.pharmacist)

        res = self.client.post(BILLS_URL, [1, 2], format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "VALIDATION_ERROR")
        self.assertEqual(res.data["error"]["details"][0]["field"], "non_field_errors")
        self.batch.refresh_from_db()
        self.assertEqual(self.batch.quantity, 5)

    def test_overlong_customer_name_is_validation_error(self):
        res = self._create(customer_name="M" * 300)

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["details"][0]["field"], "customer_name")
        self.assertFalse(Bill.objects.exists())

    def test_insufficient_stock_envelope(self):
        res = self._create(quantity=6)

        self.assertEqual(res.status_code, 409)
        error = res.data["error"]
        self.assertEqual(error["code"], "INSUFFICIENT_STOCK")
        self.assertEqual(error["details"]["batch_id"], str(self.batch.id))
        self.assertEqual(error["details"]["available"], 5)
        self.assertEqual(error["details"]["requested"], 6)

    def test_unknown_doctor_envelope(self):
        res = self._create(doctor_id=str(uuid.uuid4()))

        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "NOT_FOUND")

    def test_audit_user_cannot_create(self):
        res = self._create(user=self.auditor)

        self.assertEqual(res.status_code, 403)
        self.batch.refresh_from_db()
        self.assertEqual(self.batch.quantity, 5)

    def test_anonymous_rejected(self):
        res = self.client.post(BILLS_URL, self._payload(), format="json")
        self.assertEqual(res.status_code, 401)

    # ------------------------------------------------------
    # Cancel
    # ------------------------------------------------------

    def test_admin_cancels_then_double_cancel_conflicts(self):
        bill_id = self._create().data["bill_id"]
        self.client.force_authenticate(self.admin)

        res = self.client.post(f"{BILLS_URL}{bill_id}/cancel/", {"reason": "duplicate"}, format="json")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], BillStatus.CANCELLED)
        self.assertEqual(res.data["cancelled_by"], "admin")
        self.batch.refresh_from_db()
        self.assertEqual(self.batch.quantity, 5)

        res = self.client.delete(f"{BILLS_URL}{bill_id}/")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "BILL_ALREADY_CANCELLED")

    def test_pharmacist_cannot_cancel(self):
        bill_id = self._create().data["bill_id"]

        res = self.client.post(f"{BILLS_URL}{bill_id}/cancel/", {}, format="json")

        self.assertEqual(res.status_code, 403)
        self.assertEqual(Bill.objects.get(pk=bill_id).status, BillStatus.ACTIVE)

    def test_cancel_unknown_bill(self):
        self.client.force_authenticate(self.admin)

        res = self.client.post(f"{BILLS_URL}{uuid.uuid4()}/cancel/", {}, format="json")

        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "NOT_FOUND")

    # ------------------------------------------------------
    # Reads
    # ------------------------------------------------------

    def test_list_and_retrieve(self):
        bill_id = self._create().data["bill_id"]
        self.client.force_authenticate(self.auditor)

        res = self.client.get(BILLS_URL)
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)

        res = self.client.get(f"{BILLS_URL}{bill_id}/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["items"][0]["quantity"], 3)
        self.assertEqual(res.data["created_by"], "pharma")

    def test_list_filters(self):
        self._create(quantity=1)
        self._create(quantity=1, customer_name="Zoya", payment_method="upi")
        self.client.force_authenticate(self.auditor)

        self.assertEqual(self.client.get(BILLS_URL, {"payment_method": "upi"}).data["count"], 1)
        self.assertEqual(self.client.get(BILLS_URL, {"search": "zoya"}).data["count"], 1)
        self.assertEqual(self.client.get(BILLS_URL, {"status": "cancelled"}).data["count"], 0)

        today = timezone.localdate()
        self.assertEqual(self.client.get(BILLS_URL, {"date_from": today.isoformat()}).data["count"], 2)
        tomorrow = (today + timedelta(days=1)).isoformat()
        self.assertEqual(self.client.get(BILLS_URL, {"date_from": tomorrow}).data["count"], 0)

        self.assertEqual(self.client.get(BILLS_URL, {"date_to": "31-12-2024"}).status_code, 400)

    def test_retrieve_unknown_bill_envelope(self):
        self.client.force_authenticate(self.auditor)

        res = self.client.get(f"{BILLS_URL}{uuid.uuid4()}/")

        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "NOT_FOUND")

    def test_receipt_is_plain_text(self):
        bill_id = self._create().data["bill_id"]

        res = self.client.get(f"{BILLS_URL}{bill_id}/receipt/")

        self.assertEqual(res.status_code, 200)
        self.assertTrue(res["Content-Type"].startswith("text/plain"))
        body = res.content.decode("utf-8")
        self.assertIn("Cetirizine 10mg", body)
        self.assertIn("Thank you for your business!", body)

    def test_daily_stats_counts_active_bills_only(self):
        self._create(quantity=2)
        cancelled_id = self._create(quantity=1).data["bill_id"]
        self.client.force_authenticate(self.admin)
        self.client.post(f"{BILLS_URL}{cancelled_id}/cancel/", {}, format="json")

        res = self.client.get(f"{BILLS_URL}daily-stats/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["transactions"], 1)
        self.assertEqual(res.data["revenue"], "20.00")
        self.assertEqual(res.data["items_sold"], 2)
        self.assertTrue(AuditEvent.objects.filter(type=EventType.REPORT_GENERATED).exists())

        res = self.client.get(f"{BILLS_URL}daily-stats/", {"date": "not-a-date"})
        self.assertEqual(res.status_code, 400)
