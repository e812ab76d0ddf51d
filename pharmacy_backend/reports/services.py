# reports/services.py

"""
REPORT QUERIES (READ-ONLY)

Shared by /api/reports/* and /api/billing/bills/daily-stats/.

- Sales figures count ACTIVE bills only; cancelled bills are reversals.
- Day bounds are [local midnight, next local midnight).
- Money leaves here as 2dp strings.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from decimal import Decimal

from django.conf import settings
from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum
from django.db.models.functions import TruncMonth, TruncWeek
from django.utils import timezone

from billing.models import Bill, BillItem, BillStatus
from inventory.models import Batch, Product

WALK_IN = "Walk-in Customer"
UNKNOWN_VENDOR = "Unknown Vendor"

WEEKS_SHOWN = 10
MONTHS_SHOWN = 12

STOCK_OUT = "Out of Stock"
STOCK_LOW = "Low Stock"
STOCK_IN = "In Stock"


def parse_report_date(date_str: str | None):
    """
    Accepts YYYY-MM-DD. Defaults to today (server timezone). Returns None when invalid.
    """
    if not date_str:
        return timezone.localdate()

    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        return None


def day_bounds(d):
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(d, time.min), tz)
    return start, start + timedelta(days=1)


def _money(x) -> str:
    if x is None:
        return "0.00"
    return f"{Decimal(str(x)):.2f}"


def daily_sales(d) -> dict:
    start, end = day_bounds(d)
    bills = Bill.objects.filter(
        status=BillStatus.ACTIVE,
        created_at__gte=start,
        created_at__lt=end,
    )

    agg = bills.aggregate(transactions=Count("id"), revenue=Sum("total_amount"))
    items_sold = BillItem.objects.filter(bill__in=bills).aggregate(q=Sum("quantity"))["q"]

    return {
        "date": d.isoformat(),
        "transactions": agg["transactions"] or 0,
        "revenue": _money(agg["revenue"]),
        "items_sold": items_sold or 0,
    }


def _week_label(start) -> str:
    year, week, _ = start.isocalendar()
    return f"{year}-W{week:02d}"


def _month_label(start) -> str:
    return start.strftime("%Y-%m")


def _period_sales(trunc, label, limit: int) -> list[dict]:
    """
    ACTIVE bills grouped by local week/month, newest period first.
    """
    tz = timezone.get_current_timezone()
    periods = list(
        Bill.objects.filter(status=BillStatus.ACTIVE)
        .annotate(period=trunc("created_at", tzinfo=tz))
        .values("period")
        .annotate(transactions=Count("id"), revenue=Sum("total_amount"))
        .order_by("-period")[:limit]
    )
    if not periods:
        return []

    sold = {}
    item_rows = (
        BillItem.objects.filter(
            bill__status=BillStatus.ACTIVE,
            bill__created_at__gte=periods[-1]["period"],
        )
        .annotate(period=trunc("bill__created_at", tzinfo=tz))
        .values("period")
        .annotate(quantity=Sum("quantity"))
        .order_by()
    )
    for r in item_rows:
        start = timezone.localtime(r["period"], tz).date()
        sold[start] = r["quantity"] or 0

    out = []
    for r in periods:
        start = timezone.localtime(r["period"], tz).date()
        out.append(
            {
                "period": label(start),
                "period_start": start.isoformat(),
                "transactions": r["transactions"],
                "revenue": _money(r["revenue"]),
                "items_sold": sold.get(start, 0),
            }
        )
    return out


def weekly_sales(limit: int = WEEKS_SHOWN) -> list[dict]:
    return _period_sales(TruncWeek, _week_label, limit)


def monthly_sales(limit: int = MONTHS_SHOWN) -> list[dict]:
    return _period_sales(TruncMonth, _month_label, limit)


def doctor_wise_sales() -> list[dict]:
    rows = (
        Bill.objects.filter(status=BillStatus.ACTIVE)
        .values("doctor_id", "doctor_name")
        .annotate(prescriptions=Count("id"), total_value=Sum("total_amount"))
        .order_by()
    )

    buckets: dict = {}
    for r in rows:
        key = r["doctor_id"]
        name = r["doctor_name"] if key else WALK_IN
        bucket = buckets.setdefault(
            key,
            {
                "doctor_id": str(key) if key else None,
                "doctor_name": name or WALK_IN,
                "prescriptions": 0,
                "total_value": Decimal("0"),
            },
        )
        bucket["prescriptions"] += r["prescriptions"]
        bucket["total_value"] += r["total_value"] or Decimal("0")

    out = sorted(buckets.values(), key=lambda b: b["total_value"], reverse=True)
    for b in out:
        b["total_value"] = _money(b["total_value"])
    return out


def doctor_bills(doctor) -> list[dict]:
    """Every bill written against one doctor, newest first, cancelled ones included."""
    bills = Bill.objects.filter(doctor=doctor).order_by("-created_at")
    return [
        {
            "bill_id": str(b.id),
            "bill_no": b.bill_no,
            "date": timezone.localtime(b.created_at).isoformat(),
            "status": b.status,
            "customer_name": b.customer_name,
            "discount_percent": _money(b.discount_percent),
            "total_amount": _money(b.total_amount),
        }
        for b in bills
    ]


def vendor_wise_sales() -> list[dict]:
    """
    Per vendor: products carried, stock on hand and its value at selling price,
    plus units and value sold on ACTIVE bills. Highest stock value first.
    """
    stock_value = ExpressionWrapper(
        F("batches__quantity") * F("batches__unit_price"),
        output_field=DecimalField(max_digits=14, decimal_places=2),
    )
    stock_rows = (
        Product.objects.values("vendor_id", "vendor__name")
        .annotate(
            total_products=Count("id", distinct=True),
            total_stock=Sum("batches__quantity"),
            stock_value=Sum(stock_value),
        )
        .order_by()
    )

    sales_rows = (
        BillItem.objects.filter(bill__status=BillStatus.ACTIVE)
        .values("batch__product__vendor_id")
        .annotate(units=Sum("quantity"), value=Sum("line_total"))
        .order_by()
    )
    sales = {r["batch__product__vendor_id"]: r for r in sales_rows}

    out = []
    for r in stock_rows:
        key = r["vendor_id"]
        sold = sales.get(key, {})
        out.append(
            {
                "vendor_id": str(key) if key else None,
                "vendor_name": r["vendor__name"] if key else UNKNOWN_VENDOR,
                "total_products": r["total_products"],
                "total_stock": r["total_stock"] or 0,
                "stock_value": Decimal(str(r["stock_value"] or "0")),
                "units_sold": sold.get("units") or 0,
                "sales_value": _money(sold.get("value")),
            }
        )

    out.sort(key=lambda row: row["stock_value"], reverse=True)
    for row in out:
        row["stock_value"] = _money(row["stock_value"])
    return out


def vendor_batches(vendor) -> list[dict]:
    batches = (
        Batch.objects.select_related("product", "product__vendor")
        .filter(product__vendor=vendor)
        .order_by("product__name", "batch_no")
    )
    rows = []
    for batch in batches:
        row = _batch_row(batch)
        row["amount"] = _money(batch.quantity * batch.unit_price)
        rows.append(row)
    return rows


def stock_status(quantity: int, threshold: int | None = None) -> str:
    if threshold is None:
        threshold = settings.STOCK_LOW_THRESHOLD
    if quantity == 0:
        return STOCK_OUT
    if quantity <= threshold:
        return STOCK_LOW
    return STOCK_IN


def _batch_row(batch: Batch) -> dict:
    product = batch.product
    return {
        "batch_id": str(batch.id),
        "product_id": str(product.id),
        "product_name": product.name,
        "vendor_name": product.vendor.name if product.vendor_id else "",
        "batch_no": batch.batch_no,
        "quantity": batch.quantity,
        "unit_price": _money(batch.unit_price),
        "expiry_date": batch.expiry_date.isoformat() if batch.expiry_date else None,
    }


def stock_report() -> list[dict]:
    threshold = settings.STOCK_LOW_THRESHOLD
    batches = Batch.objects.select_related("product", "product__vendor").order_by(
        "product__name", "expiry_date", "batch_no"
    )

    rows = []
    for batch in batches:
        row = _batch_row(batch)
        row["stock_status"] = stock_status(batch.quantity, threshold)
        rows.append(row)
    return rows


def expiring_stock(days: int, today=None) -> list[dict]:
    """Batches with stock left whose expiry falls in [today, today + days]."""
    today = today or timezone.localdate()
    batches = (
        Batch.objects.select_related("product", "product__vendor")
        .filter(
            quantity__gt=0,
            expiry_date__isnull=False,
            expiry_date__gte=today,
            expiry_date__lte=today + timedelta(days=days),
        )
        .order_by("expiry_date", "product__name")
    )

    rows = []
    for batch in batches:
        row = _batch_row(batch)
        row["days_to_expiry"] = (batch.expiry_date - today).days
        rows.append(row)
    return rows
