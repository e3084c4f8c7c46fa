"""Clinic billing schemas for invoices, payments and reports."""

from .allocation import Allocation
from .common import (
    TERMINAL_STATUSES,
    InsuranceProfile,
    InvoiceStatus,
    PatientInfo,
    PaymentMethod,
    ServiceCategory,
    ServiceCode,
)
from .invoice import BillingLineItem, Invoice, LineItemRequest
from .payment import Payment
from .reports import AgingBucket, BillingSummary, ServiceRevenue

__all__ = [
    # Common
    "InvoiceStatus",
    "TERMINAL_STATUSES",
    "PaymentMethod",
    "ServiceCategory",
    "ServiceCode",
    "InsuranceProfile",
    "PatientInfo",
    # Allocation
    "Allocation",
    # Invoice
    "LineItemRequest",
    "BillingLineItem",
    "Invoice",
    # Payment
    "Payment",
    # Reports
    "AgingBucket",
    "ServiceRevenue",
    "BillingSummary",
]
