# inventory/management/commands/seed_inventory.py

from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from doctors.models import Doctor
from inventory.models import Batch, Product
from vendors.models import Vendor

VENDORS = [
    ("Sun Distributors", "Ravi Kumar", "9800000001"),
    ("Apollo Wholesale", "Meena Iyer", "9800000002"),
]

DOCTORS = [
    ("Anita Rao", "General Physician"),
    ("Vikram Shah", "Pediatrics"),
]

# (name, unit, tax %, vendor index, unit cost, unit price)
PRODUCTS = [
    ("Paracetamol 500mg", "strip", "12", 0, "18.00", "25.00"),
    ("Amoxicillin 500mg", "strip", "12", 0, "60.00", "85.00"),
    ("Cetirizine 10mg", "strip", "12", 1, "12.00", "20.00"),
    ("ORS Sachet", "sachet", "5", 1, "15.00", "22.00"),
    ("Vitamin C 500mg", "bottle", "18", 1, "90.00", "140.00"),
]


class Command(BaseCommand):
    help = "Seed vendors, doctors, products and two batches per product (idempotent)."

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding inventory..."))

        vendors = []
        for name, contact, phone in VENDORS:
            vendor, _ = Vendor.objects.get_or_create(
                name=name,
                defaults={"contact_person": contact, "phone": phone},
            )
            vendors.append(vendor)

        for name, specialization in DOCTORS:
            Doctor.objects.get_or_create(name=name, defaults={"specialization": specialization})

        today = timezone.localdate()
        batch_count = 0

        for name, unit, tax, vendor_idx, cost, price in PRODUCTS:
            product, _ = Product.objects.get_or_create(
                name=name,
                defaults={"unit": unit, "tax_percent": Decimal(tax), "vendor": vendors[vendor_idx]},
            )

            for i in range(2):
                _, created = Batch.objects.get_or_create(
                    product=product,
                    batch_no=f"B{i + 1:03d}",
                    defaults={
                        "quantity": 40 + i * 20,
                        "unit_cost": Decimal(cost),
                        "unit_price": Decimal(price),
                        "expiry_date": today + timedelta(days=180 + i * 180),
                    },
                )
                batch_count += int(created)

        self.stdout.write(
            self.style.SUCCESS(f"Inventory seeded. New batches: {batch_count}")
        )
