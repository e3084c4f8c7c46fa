"""Read-only reports over invoice snapshots."""

from collections.abc import Iterable
from datetime import date

from ..config import AgingSettings
from ..engine.ledger import is_overdue
from ..money import ZERO
from ..schemas.common import InvoiceStatus
from ..schemas.invoice import Invoice
from ..schemas.reports import BillingSummary
from .aging import age_invoices
from .queries import count_by_status, filter_invoices_by_status, search_invoices, sort_invoices
from .revenue import RevenuePeriod, collection_rate, revenue_by_period, top_services

__all__ = [
    "build_billing_summary",
    "age_invoices",
    "collection_rate",
    "revenue_by_period",
    "top_services",
    "RevenuePeriod",
    "search_invoices",
    "filter_invoices_by_status",
    "sort_invoices",
    "count_by_status",
]


def build_billing_summary(
    invoices: Iterable[Invoice],
    as_of: date | None = None,
    aging_settings: AgingSettings | None = None,
    top_service_limit: int = 5,
) -> BillingSummary:
    """Aggregate billing figures for a dashboard.

    Cancelled invoices count towards billed totals and the collection rate
    but carry no outstanding balance.
    """
    invoices = list(invoices)
    as_of = as_of or date.today()

    total_billed = ZERO
    total_collected = ZERO
    total_outstanding = ZERO
    insurance_covered = ZERO
    patient_responsible = ZERO

    for invoice in invoices:
        total_billed += invoice.total_amount
        total_collected += invoice.amount_paid
        insurance_covered += invoice.insurance_covered
        patient_responsible += invoice.patient_responsible
        if invoice.status != InvoiceStatus.CANCELLED:
            total_outstanding += invoice.balance_due

    return BillingSummary(
        invoice_count=len(invoices),
        total_billed=total_billed,
        total_collected=total_collected,
        total_outstanding=total_outstanding,
        insurance_covered=insurance_covered,
        patient_responsible=patient_responsible,
        collection_rate=collection_rate(invoices),
        overdue_count=sum(1 for inv in invoices if is_overdue(inv, as_of)),
        status_counts=count_by_status(invoices, as_of),
        aging=age_invoices(invoices, as_of, aging_settings),
        top_services=top_services(invoices, top_service_limit),
    )
