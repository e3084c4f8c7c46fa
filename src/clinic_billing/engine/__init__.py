"""Billing engine: allocation, invoice building, lifecycle and payments."""

from .invoice_builder import InvoiceBuilder
from .ledger import (
    InvoiceLedger,
    calculate_days_overdue,
    display_status,
    is_overdue,
    send_invoice,
    settle,
    transition,
)
from .numbering import InvoiceNumberGenerator
from .payments import PaymentProcessor
from .reimbursement import allocate

__all__ = [
    "allocate",
    "InvoiceNumberGenerator",
    "InvoiceBuilder",
    "InvoiceLedger",
    "transition",
    "settle",
    "is_overdue",
    "display_status",
    "send_invoice",
    "calculate_days_overdue",
    "PaymentProcessor",
]
