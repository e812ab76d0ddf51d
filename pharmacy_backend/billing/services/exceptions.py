# billing/services/exceptions.py

"""
BILLING DOMAIN ERRORS

Every error carries:
- code         stable machine code rendered in the API envelope
- http_status  status the API layer responds with
- message      human readable
- details      optional structured data (field errors, batch info)
"""

from __future__ import annotations

from rest_framework import status


class BillingError(Exception):
    code = "BILLING_ERROR"
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Billing operation failed"

    def __init__(self, message: str = "", *, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class BillValidationError(BillingError):
    code = "VALIDATION_ERROR"
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Bill validation failed"

    def __init__(self, errors, message: str = ""):
        self.errors = list(errors)
        super().__init__(
            message or "; ".join(e.message for e in self.errors) or self.default_message,
            details=[e.as_dict() for e in self.errors],
        )


class InsufficientStockError(BillingError):
    code = "INSUFFICIENT_STOCK"
    http_status = status.HTTP_409_CONFLICT

    def __init__(self, *, batch_id, available: int, requested: int, product_name: str = ""):
        self.batch_id = batch_id
        self.available = available
        self.requested = requested
        self.product_name = product_name
        label = f"{product_name} (batch {batch_id})" if product_name else f"batch {batch_id}"
        super().__init__(
            f"Insufficient stock for {label}. Available: {available}, Requested: {requested}",
            details={
                "batch_id": str(batch_id),
                "product_name": product_name,
                "available": available,
                "requested": requested,
            },
        )


class NotFoundError(BillingError):
    code = "NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND
    entity = "Entity"

    def __init__(self, entity_id):
        self.entity_id = entity_id
        super().__init__(
            f"{self.entity} not found: {entity_id}",
            details={"id": str(entity_id)},
        )


class BatchNotFoundError(NotFoundError):
    entity = "Batch"


class DoctorNotFoundError(NotFoundError):
    entity = "Doctor"


class BillNotFoundError(NotFoundError):
    entity = "Bill"


class BillAlreadyCancelledError(BillingError):
    code = "BILL_ALREADY_CANCELLED"
    http_status = status.HTTP_409_CONFLICT

    def __init__(self, bill_no: str):
        self.bill_no = bill_no
        super().__init__(f"Bill {bill_no} is already cancelled")


class PersistenceError(BillingError):
    code = "PERSISTENCE_ERROR"
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Could not persist the billing transaction; nothing was changed"


class BillingTimeoutError(PersistenceError):
    default_message = "Billing transaction exceeded its deadline and was rolled back"
