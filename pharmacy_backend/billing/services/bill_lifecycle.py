"""
BILL LIFECYCLE DOMAIN RULES

Draft (client-side, never persisted) -> ACTIVE -> CANCELLED (terminal)

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- Single source of truth for allowed transitions
"""

from billing.models import Bill, BillStatus
from billing.services.exceptions import BillAlreadyCancelledError, BillingError

# ============================================================
# DOMAIN ERRORS
# ============================================================


class InvalidBillTransitionError(BillingError):
    code = "INVALID_TRANSITION"


# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    BillStatus.CANCELLED,
}

ALLOWED_TRANSITIONS = {
    BillStatus.ACTIVE: {
        BillStatus.CANCELLED,
    },
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, bill: Bill, target_status: str):
    if can_transition(from_status=bill.status, to_status=target_status):
        return

    if bill.status == BillStatus.CANCELLED and target_status == BillStatus.CANCELLED:
        raise BillAlreadyCancelledError(bill.bill_no)

    raise InvalidBillTransitionError(
        f"Bill {bill.bill_no} cannot transition from '{bill.status}' to '{target_status}'"
    )
