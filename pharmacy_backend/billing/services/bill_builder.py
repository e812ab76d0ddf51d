# billing/services/bill_builder.py

"""
BILL BUILDER (PURE, NO I/O)

- BillDraft / DraftItem: the client's request, values kept raw until validated
- compute_totals(): subtotal / discount / total in Decimal, unrounded
- validate_bill(): every rule a draft must satisfy, returned as FieldErrors

Nothing here touches the database. The coordinator feeds in batch quantities
for the soft stock check; the stock ledger stays the final authority.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from dataclasses import dataclass, field as dc_field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional

from billing.models import PaymentMethod

TWOPLACES = Decimal("0.01")
HUNDRED = Decimal("100")

# FieldError codes
CODE_REQUIRED = "required"
CODE_INVALID = "invalid"
CODE_OUT_OF_RANGE = "out_of_range"
CODE_INVALID_CHOICE = "invalid_choice"
CODE_INSUFFICIENT_STOCK = "insufficient_stock"
CODE_TOO_LONG = "max_length"

# mirror the Bill column sizes
CUSTOMER_NAME_MAX = 255
CUSTOMER_PHONE_MAX = 32


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _to_decimal(value) -> Optional[Decimal]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() else None


def _to_int_qty(value) -> Optional[int]:
    """
    Whole units only. "3" and 3 are accepted; 2.5, True and "abc" are not.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        s = value.strip()
        # isdigit() also accepts superscripts and other digits int() refuses
        if s.isdecimal():
            return int(s)
    return None


def _to_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


# ============================================================
# Draft types
# ============================================================

@dataclass(frozen=True)
class DraftItem:
    batch_id: Any
    quantity: Any
    # advisory only; the authoritative price/name come from the batch row
    price: Any = None
    product_name: str = ""

    @property
    def batch_uuid(self) -> Optional[uuid.UUID]:
        return _to_uuid(self.batch_id)

    @property
    def quantity_int(self) -> Optional[int]:
        return _to_int_qty(self.quantity)


@dataclass(frozen=True)
class BillDraft:
    customer_name: str
    items: list[DraftItem]
    customer_phone: str = ""
    doctor_id: Any = None
    payment_method: str = PaymentMethod.CASH
    discount_percent: Any = 0

    @classmethod
    def from_payload(cls, data: Mapping) -> "BillDraft":
        """
        Build a draft from request JSON. Values are kept raw; validate_bill() judges them.
        Accepts "discount" as an alias of "discount_percent".
        """
        raw_items = data.get("items")
        items = []
        if isinstance(raw_items, (list, tuple)):
            for raw in raw_items:
                if not isinstance(raw, Mapping):
                    raw = {}
                items.append(
                    DraftItem(
                        batch_id=raw.get("batch_id"),
                        quantity=raw.get("quantity"),
                        price=raw.get("price"),
                        product_name=str(raw.get("product_name") or ""),
                    )
                )

        discount = data.get("discount_percent", data.get("discount", 0))

        return cls(
            customer_name=str(data.get("customer_name") or ""),
            customer_phone=str(data.get("customer_phone") or "").strip(),
            doctor_id=data.get("doctor_id") or None,
            payment_method=str(data.get("payment_method") or PaymentMethod.CASH).strip().lower(),
            discount_percent=0 if discount in (None, "") else discount,
            items=items,
        )

    @property
    def discount_decimal(self) -> Decimal:
        return _to_decimal(self.discount_percent) or Decimal("0")


@dataclass(frozen=True)
class PricedLine:
    """A draft line after the authoritative price has been captured."""

    batch_id: uuid.UUID
    product_name: str
    batch_no: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


# ============================================================
# Totals
# ============================================================

@dataclass(frozen=True)
class BillTotals:
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal

    def rounded(self) -> "BillTotals":
        return BillTotals(
            subtotal=_money(self.subtotal),
            discount_amount=_money(self.discount_amount),
            total=_money(self.total),
        )


def compute_totals(items: Iterable, discount_percent) -> BillTotals:
    """
    subtotal = sum(quantity * unit_price)
    discount = subtotal * discount_percent / 100
    total    = subtotal - discount

    Unrounded; call .rounded() at the point of persistence or display.
    """
    subtotal = sum(
        (Decimal(str(item.unit_price)) * int(item.quantity) for item in items),
        Decimal("0"),
    )
    discount = Decimal(str(discount_percent or 0))
    discount_amount = subtotal * discount / HUNDRED
    return BillTotals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        total=subtotal - discount_amount,
    )


# ============================================================
# Validation
# ============================================================

@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    code: str = CODE_INVALID
    meta: dict = dc_field(default_factory=dict, compare=False)

    def as_dict(self) -> dict:
        out = {"field": self.field, "message": self.message, "code": self.code}
        if self.meta:
            out.update(self.meta)
        return out


def validate_bill(
    draft: BillDraft,
    available: Optional[Mapping[uuid.UUID, int]] = None,
) -> list[FieldError]:
    """
    Returns every rule violation (empty list = valid).

    `available` maps batch id -> current quantity on hand. When given, the
    cumulative requested quantity per batch is checked against it (soft check,
    code "insufficient_stock"). Batches absent from the mapping are not judged here.
    """
    errors: list[FieldError] = []

    name = (draft.customer_name or "").strip()
    if not name:
        errors.append(FieldError("customer_name", "Customer name is required", CODE_REQUIRED))
    elif len(name) > CUSTOMER_NAME_MAX:
        errors.append(
            FieldError(
                "customer_name",
                f"Customer name must be at most {CUSTOMER_NAME_MAX} characters",
                CODE_TOO_LONG,
            )
        )

    if len(draft.customer_phone or "") > CUSTOMER_PHONE_MAX:
        errors.append(
            FieldError(
                "customer_phone",
                f"Customer phone must be at most {CUSTOMER_PHONE_MAX} characters",
                CODE_TOO_LONG,
            )
        )

    if not draft.items:
        errors.append(FieldError("items", "At least one item is required", CODE_REQUIRED))

    discount = _to_decimal(draft.discount_percent)
    if discount is None:
        errors.append(FieldError("discount_percent", "Discount must be a number", CODE_INVALID))
    elif discount < 0 or discount > HUNDRED:
        errors.append(
            FieldError("discount_percent", "Discount must be between 0 and 100", CODE_OUT_OF_RANGE)
        )
    elif discount != discount.quantize(TWOPLACES):
        # stored as 2dp; totals must be computed from the stored value
        errors.append(
            FieldError("discount_percent", "Discount allows at most 2 decimal places", CODE_INVALID)
        )

    if draft.payment_method not in PaymentMethod.values:
        errors.append(
            FieldError(
                "payment_method",
                f"Payment method must be one of: {', '.join(PaymentMethod.values)}",
                CODE_INVALID_CHOICE,
            )
        )

    requested: dict[uuid.UUID, int] = defaultdict(int)

    for idx, item in enumerate(draft.items):
        batch_id = item.batch_uuid
        if batch_id is None:
            errors.append(
                FieldError(f"items[{idx}].batch_id", "A valid batch id is required", CODE_REQUIRED)
            )

        qty = item.quantity_int
        if qty is None or qty <= 0:
            errors.append(
                FieldError(
                    f"items[{idx}].quantity",
                    "Quantity must be a whole number greater than zero",
                    CODE_INVALID,
                )
            )
            continue

        if batch_id is None or available is None or batch_id not in available:
            continue

        requested[batch_id] += qty
        on_hand = int(available[batch_id])
        if requested[batch_id] > on_hand:
            errors.append(
                FieldError(
                    f"items[{idx}].quantity",
                    f"Insufficient stock. Available: {on_hand}, Requested: {requested[batch_id]}",
                    CODE_INSUFFICIENT_STOCK,
                    meta={
                        "batch_id": str(batch_id),
                        "available": on_hand,
                        "requested": requested[batch_id],
                    },
                )
            )

    return errors


def split_errors(errors: Iterable[FieldError]) -> tuple[list[FieldError], list[FieldError]]:
    """(structural errors, soft stock errors)"""
    structural, stock = [], []
    for e in errors:
        (stock if e.code == CODE_INSUFFICIENT_STOCK else structural).append(e)
    return structural, stock
