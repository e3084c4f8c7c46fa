"""Clinic billing and insurance reimbursement engine."""

from .billing_service import BillingService
from .config import BillingConfig, load_config
from .errors import (
    BillingError,
    ConcurrentModificationError,
    DuplicateInvoiceNumberError,
    InvalidPaymentError,
    InvalidTransitionError,
    InvoiceClosedError,
    InvoiceNotFoundError,
    ValidationError,
)

__all__ = [
    "BillingService",
    "BillingConfig",
    "load_config",
    "BillingError",
    "ValidationError",
    "InvalidPaymentError",
    "InvalidTransitionError",
    "InvoiceClosedError",
    "DuplicateInvoiceNumberError",
    "InvoiceNotFoundError",
    "ConcurrentModificationError",
]
