# reports/tests/test_reports.py

import uuid
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from audit.models import AuditEvent, EventType
from billing.models import Bill, BillItem, BillStatus
from doctors.models import Doctor
from inventory.models import Batch, Product
from reports.services import STOCK_IN, STOCK_LOW, STOCK_OUT, UNKNOWN_VENDOR, WALK_IN, stock_status
from vendors.models import Vendor

User = get_user_model()


@override_settings(STOCK_LOW_THRESHOLD=10)
class ReportApiTests(TestCase):
    """
    GUARANTEES:
    - sales figures include ACTIVE bills only
    - walk-in bills are grouped under one bucket
    - stock status follows the low-stock threshold
    - every report leaves a REPORT_GENERATED event
    """

    def setUp(self):
        self.client = APIClient()
        self.pharmacist = User.objects.create_user(username="pharma", password="pass123", role="pharmacist")
        self.client.force_authenticate(self.pharmacist)

        self.vendor = Vendor.objects.create(name="Sun Distributors")
        product = Product.objects.create(name="ORS Sachet", vendor=self.vendor)
        today = timezone.localdate()

        self.empty = Batch.objects.create(product=product, batch_no="ORS-0", quantity=0, unit_price=Decimal("22.00"))
        self.low = Batch.objects.create(
            product=product,
            batch_no="ORS-1",
            quantity=10,
            unit_price=Decimal("22.00"),
            expiry_date=today + timedelta(days=5),
        )
        self.plenty = Batch.objects.create(
            product=product,
            batch_no="ORS-2",
            quantity=11,
            unit_price=Decimal("22.00"),
            expiry_date=today + timedelta(days=90),
        )

        self.doctor = Doctor.objects.create(name="Anita Rao", specialization="GP")
        self._bill(Decimal("50.00"), doctor=self.doctor, qty=2)
        self._bill(Decimal("70.00"), doctor=self.doctor, qty=2)
        self._bill(Decimal("200.00"), qty=1)
        self._bill(Decimal("999.00"), qty=9, status=BillStatus.CANCELLED)

    def _bill(self, total, doctor=None, qty=1, status=BillStatus.ACTIVE):
        bill = Bill.objects.create(
            customer_name="Customer",
            doctor=doctor,
            doctor_name=doctor.name if doctor else "",
            subtotal=total,
            total_amount=total,
            status=status,
        )
        BillItem.objects.create(
            bill=bill,
            line_number=1,
            batch=self.plenty,
            product_name="ORS Sachet",
            batch_no="ORS-2",
            unit_price=total / qty,
            quantity=qty,
        )
        return bill

    def test_daily_sales(self):
        res = self.client.get("/api/reports/sales/daily/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["transactions"], 3)
        self.assertEqual(res.data["revenue"], "320.00")
        self.assertEqual(res.data["items_sold"], 5)

        event = AuditEvent.objects.get(type=EventType.REPORT_GENERATED)
        self.assertEqual(event.payload["type"], "daily_sales")

    def test_daily_sales_other_day_is_empty(self):
        res = self.client.get("/api/reports/sales/daily/", {"date": "2001-01-01"})

        self.assertEqual(res.data["transactions"], 0)
        self.assertEqual(res.data["revenue"], "0.00")

    def test_daily_sales_bad_date(self):
        res = self.client.get("/api/reports/sales/daily/", {"date": "01/01/2001"})

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "VALIDATION_ERROR")

    def test_doctor_wise_sorted_by_value_with_walk_in_bucket(self):
        res = self.client.get("/api/reports/doctor-wise/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(
            [(r["doctor_name"], r["prescriptions"], r["total_value"]) for r in res.data],
            [(WALK_IN, 1, "200.00"), ("Anita Rao", 2, "120.00")],
        )

    def test_stock_report_statuses(self):
        res = self.client.get("/api/reports/stock/")

        statuses = {r["batch_no"]: r["stock_status"] for r in res.data}
        self.assertEqual(statuses, {"ORS-0": STOCK_OUT, "ORS-1": STOCK_LOW, "ORS-2": STOCK_IN})
        self.assertEqual(res.data[0]["vendor_name"], "Sun Distributors")

    def test_stock_expiry_window(self):
        res = self.client.get("/api/reports/stock-expiry/", {"days": "30"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual([r["batch_no"] for r in res.data["results"]], ["ORS-1"])
        self.assertEqual(res.data["results"][0]["days_to_expiry"], 5)

        res = self.client.get("/api/reports/stock-expiry/", {"days": "-3"})
        self.assertEqual(res.status_code, 400)

    def test_weekly_and_monthly_sales(self):
        today = timezone.localdate()
        year, week, _ = today.isocalendar()

        res = self.client.get("/api/reports/sales/weekly/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data), 1)
        self.assertEqual(res.data[0]["period"], f"{year}-W{week:02d}")
        self.assertEqual(res.data[0]["transactions"], 3)
        self.assertEqual(res.data[0]["revenue"], "320.00")
        self.assertEqual(res.data[0]["items_sold"], 5)

        res = self.client.get("/api/reports/sales/monthly/")
        self.assertEqual([r["period"] for r in res.data], [today.strftime("%Y-%m")])
        self.assertEqual(res.data[0]["period_start"], today.replace(day=1).isoformat())
        self.assertEqual(res.data[0]["revenue"], "320.00")

        types = sorted(e.payload["type"] for e in AuditEvent.objects.filter(type=EventType.REPORT_GENERATED))
        self.assertEqual(types, ["monthly_sales", "weekly_sales"])

    def test_sales_for_one_doctor(self):
        res = self.client.get(f"/api/reports/doctor-wise/{self.doctor.id}/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(sorted(r["total_amount"] for r in res.data), ["50.00", "70.00"])
        self.assertEqual({r["status"] for r in res.data}, {BillStatus.ACTIVE})

    def test_sales_for_unknown_doctor_is_404(self):
        res = self.client.get(f"/api/reports/doctor-wise/{uuid.uuid4()}/")

        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "NOT_FOUND")

    def test_vendor_wise_stock_and_sales(self):
        loose = Product.objects.create(name="Cotton Roll")
        Batch.objects.create(product=loose, batch_no="CR-1", quantity=5, unit_price=Decimal("10.00"))

        res = self.client.get("/api/reports/vendor-wise/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(
            [(r["vendor_name"], r["total_stock"], r["stock_value"]) for r in res.data],
            [("Sun Distributors", 21, "462.00"), (UNKNOWN_VENDOR, 5, "50.00")],
        )
        self.assertEqual(res.data[0]["units_sold"], 5)
        self.assertEqual(res.data[0]["sales_value"], "320.00")
        self.assertIsNone(res.data[1]["vendor_id"])

    def test_batches_for_one_vendor(self):
        res = self.client.get(f"/api/reports/vendor-wise/{self.vendor.id}/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(
            [(r["batch_no"], r["amount"]) for r in res.data],
            [("ORS-0", "0.00"), ("ORS-1", "220.00"), ("ORS-2", "242.00")],
        )

        res = self.client.get(f"/api/reports/vendor-wise/{uuid.uuid4()}/")
        self.assertEqual(res.status_code, 404)

    def test_reports_require_authentication(self):
        self.client.force_authenticate(None)
        self.assertEqual(self.client.get("/api/reports/stock/").status_code, 401)


class StockStatusTests(TestCase):
    def test_thresholds(self):
        self.assertEqual(stock_status(0, 10), STOCK_OUT)
        self.assertEqual(stock_status(10, 10), STOCK_LOW)
        self.assertEqual(stock_status(11, 10), STOCK_IN)
