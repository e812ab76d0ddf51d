# billing/services/receipts.py

"""
RECEIPTS (PURE PRESENTATION)

build_receipt(bill)            -> structured dict (JSON-ready, money as 2dp strings)
render_receipt_text(receipt)   -> plain-text receipt

Text layout (width 50 by default):
- centered header block (pharmacy, bill no, date, customer, phone, doctor)
- item table: Item 45% | Qty 15% | Price 20% | Total 20%
- right-aligned totals; the discount line only when discount > 0
- thank-you footer
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.utils import timezone

from billing.models import Bill, BillStatus

TWOPLACES = Decimal("0.01")
DEFAULT_WIDTH = 50
CURRENCY = "₹"


def _money_str(v) -> str:
    return str(Decimal(str(v or "0")).quantize(TWOPLACES, rounding=ROUND_HALF_UP))


def _percent_str(v) -> str:
    s = f"{Decimal(str(v or '0')):f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s or "0"


def build_receipt(bill: Bill, *, pharmacy_name: str | None = None) -> dict:
    created = timezone.localtime(bill.created_at)
    items = [
        {
            "line_number": item.line_number,
            "product_name": item.product_name,
            "batch_no": item.batch_no,
            "quantity": item.quantity,
            "unit_price": _money_str(item.unit_price),
            "line_total": _money_str(item.line_total),
        }
        for item in bill.items.all().order_by("line_number")
    ]

    return {
        "pharmacy_name": pharmacy_name or settings.PHARMACY_NAME,
        "bill_id": str(bill.id),
        "bill_no": bill.bill_no,
        "date": created.isoformat(),
        "status": bill.status,
        "customer_name": bill.customer_name,
        "customer_phone": bill.customer_phone,
        "doctor_name": bill.doctor_name,
        "items": items,
        "subtotal": _money_str(bill.subtotal),
        "discount_percent": _percent_str(bill.discount_percent),
        "discount_amount": _money_str(bill.discount_amount),
        "total_amount": _money_str(bill.total_amount),
        "payment_method": bill.payment_method,
    }


# ------------------------------------------------------------
# Text helpers
# ------------------------------------------------------------
def _center(text: str, width: int) -> str:
    space = (width - len(text)) // 2
    return " " * max(space, 0) + text


def _right(text: str, width: int) -> str:
    return text.rjust(width)


def _row(item, qty, price, total, width: int) -> str:
    item_w = int(width * 0.45)
    qty_w = int(width * 0.15)
    price_w = int(width * 0.20)
    # last column takes the rounding remainder so rows span the full width
    total_w = width - item_w - qty_w - price_w

    return (
        str(item).ljust(item_w)[:item_w]
        + str(qty).rjust(qty_w)
        + str(price).rjust(price_w)
        + str(total).rjust(total_w)
    )


def _display_date(iso: str) -> str:
    try:
        return datetime.fromisoformat(iso).strftime("%d/%m/%Y %I:%M %p")
    except (TypeError, ValueError):
        return str(iso or "")


def render_receipt_text(receipt: dict, width: int = DEFAULT_WIDTH) -> str:
    lines: list[str] = []

    lines.append(_center(receipt.get("pharmacy_name") or settings.PHARMACY_NAME, width))
    lines.append(_center("=" * 32, width))
    lines.append(_center(f"Bill No: {receipt['bill_no']}", width))
    lines.append(_center(f"Date: {_display_date(receipt.get('date'))}", width))
    lines.append(_center(f"Customer: {receipt.get('customer_name', '')}", width))

    if receipt.get("customer_phone"):
        lines.append(_center(f"Phone: {receipt['customer_phone']}", width))

    if receipt.get("doctor_name"):
        lines.append(_center(f"Doctor: Dr. {receipt['doctor_name']}", width))

    if receipt.get("status") == BillStatus.CANCELLED:
        lines.append(_center("*** CANCELLED ***", width))

    lines.append("=" * width)
    lines.append(_row("Item", "Qty", "Price", "Total", width))
    lines.append("-" * width)

    for item in receipt.get("items", []):
        lines.append(
            _row(
                item.get("product_name") or "Unknown",
                item["quantity"],
                item["unit_price"],
                item["line_total"],
                width,
            )
        )

    lines.append("-" * width)
    lines.append(_right(f"Subtotal: {CURRENCY}{receipt['subtotal']}", width))

    if Decimal(str(receipt.get("discount_percent") or "0")) > 0:
        lines.append(
            _right(
                f"Discount ({receipt['discount_percent']}%): -{CURRENCY}{receipt['discount_amount']}",
                width,
            )
        )

    lines.append(_right(f"Grand Total: {CURRENCY}{receipt['total_amount']}", width))
    lines.append(_right(f"Payment: {(receipt.get('payment_method') or 'cash').upper()}", width))
    lines.append("")
    lines.append(_center("Thank you for your business!", width))
    lines.append(_center("Visit again!", width))

    return "\n".join(lines)
