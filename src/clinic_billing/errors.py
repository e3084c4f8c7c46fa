"""Exceptions raised by the billing engine."""


class BillingError(Exception):
    """Base class for billing engine errors."""


class ValidationError(BillingError):
    """Input rejected before any state was changed."""


class InvalidPaymentError(ValidationError):
    """Payment amount is not positive or exceeds the balance due."""


class InvalidTransitionError(ValidationError):
    """Requested status change is not allowed from the current status."""


class InvoiceClosedError(BillingError):
    """Mutation attempted on a paid or cancelled invoice."""

    def __init__(self, invoice_id: str, status: str):
        self.invoice_id = invoice_id
        self.status = status
        super().__init__(f"Invoice {invoice_id} is {status} and cannot be changed")


class DuplicateInvoiceNumberError(BillingError):
    """Generated invoice number is already in use."""

    def __init__(self, invoice_number: str):
        self.invoice_number = invoice_number
        super().__init__(f"Invoice number {invoice_number} is already in use")


class InvoiceNotFoundError(BillingError):
    """No invoice with the given id exists."""

    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice {invoice_id} not found")


class ConcurrentModificationError(BillingError):
    """Invoice was changed by someone else since it was loaded."""

    def __init__(self, invoice_id: str, expected_version: int, actual_version: int):
        self.invoice_id = invoice_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Invoice {invoice_id} is at version {actual_version}, expected {expected_version}"
        )
