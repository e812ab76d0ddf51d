# billing/tests/test_receipts.py

from decimal import Decimal

from django.test import TestCase, override_settings

from billing.models import Bill, BillItem, BillStatus
from billing.services.receipts import build_receipt, render_receipt_text
from inventory.models import Batch, Product


@override_settings(PHARMACY_NAME="TEST PHARMACY")
class ReceiptTests(TestCase):
    def setUp(self):
        product = Product.objects.create(name="Paracetamol 500mg")
        batch = Batch.objects.create(product=product, batch_no="PCM-1", quantity=10, unit_price=Decimal("25.00"))

        self.bill = Bill.objects.create(
            customer_name="Ravi Kumar",
            customer_phone="9800000001",
            doctor_name="Anita Rao",
            payment_method="upi",
            discount_percent=Decimal("10.00"),
            subtotal=Decimal("100.00"),
            discount_amount=Decimal("10.00"),
            total_amount=Decimal("90.00"),
        )
        BillItem.objects.create(
            bill=self.bill,
            line_number=1,
            batch=batch,
            product_name=product.name,
            batch_no=batch.batch_no,
            unit_price=Decimal("25.00"),
            quantity=4,
        )

    def test_build_receipt_structure(self):
        receipt = build_receipt(self.bill)

        self.assertEqual(receipt["pharmacy_name"], "TEST PHARMACY")
        self.assertEqual(receipt["bill_no"], self.bill.bill_no)
        self.assertEqual(receipt["discount_percent"], "10")
        self.assertEqual(receipt["total_amount"], "90.00")
        self.assertEqual(receipt["items"][0]["line_total"], "100.00")
        self.assertEqual(receipt["items"][0]["quantity"], 4)

    def test_text_layout(self):
        text = render_receipt_text(build_receipt(self.bill))
        lines = text.splitlines()

        self.assertEqual(lines[0].strip(), "TEST PHARMACY")
        self.assertIn(f"Bill No: {self.bill.bill_no}", text)
        self.assertIn("Phone: 9800000001", text)
        self.assertIn("Doctor: Dr. Anita Rao", text)
        self.assertIn("Discount (10%): -₹10.00", text)
        self.assertIn("Grand Total: ₹90.00", text)
        self.assertIn("Payment: UPI", text)
        self.assertEqual(lines[-1].strip(), "Visit again!")

        header = next(line for line in lines if line.startswith("Item"))
        self.assertEqual(len(header), 50)

        grand_total = next(line for line in lines if "Grand Total" in line)
        self.assertEqual(len(grand_total), 50)

    def test_no_discount_line_when_zero(self):
        receipt = build_receipt(self.bill)
        receipt["discount_percent"] = "0"

        self.assertNotIn("Discount", render_receipt_text(receipt))

    def test_long_names_are_truncated_to_column(self):
        receipt = build_receipt(self.bill)
        receipt["items"][0]["product_name"] = "X" * 80

        row = next(line for line in render_receipt_text(receipt).splitlines() if line.startswith("XXX"))
        self.assertTrue(row.startswith("X" * 22 + " "))

    def test_cancelled_marker(self):
        receipt = build_receipt(self.bill)
        receipt["status"] = BillStatus.CANCELLED

        self.assertIn("*** CANCELLED ***", render_receipt_text(receipt, width=40))
