"""Search, filter and sort helpers for invoice lists."""

from collections.abc import Iterable, Mapping
from datetime import date

from ..engine.ledger import is_overdue
from ..schemas.common import InvoiceStatus, PatientInfo
from ..schemas.invoice import Invoice

SORT_KEYS = {
    "date": lambda inv: inv.created_date,
    "amount": lambda inv: inv.total_amount,
    "balance": lambda inv: inv.balance_due,
    "patient": lambda inv: inv.patient_id,
}


def search_invoices(
    invoices: list[Invoice],
    patients: Mapping[str, PatientInfo],
    term: str,
) -> list[Invoice]:
    """Match invoice number, patient name, status, or any line's description or code."""
    term = term.strip().lower()
    if not term:
        return list(invoices)

    def matches(invoice: Invoice) -> bool:
        patient = patients.get(invoice.patient_id)
        patient_name = patient.full_name.lower() if patient else ""
        return (
            term in invoice.invoice_number.lower()
            or term in patient_name
            or term in invoice.status.value
            or any(
                term in item.description.lower() or term in item.service_code.lower()
                for item in invoice.items
            )
        )

    return [inv for inv in invoices if matches(inv)]


def filter_invoices_by_status(
    invoices: Iterable[Invoice],
    status: InvoiceStatus | str,
    today: date | None = None,
) -> list[Invoice]:
    """Keep invoices in ``status``; ``all`` keeps everything, ``overdue`` is derived."""
    if status == "all":
        return list(invoices)
    status = InvoiceStatus(status)
    if status == InvoiceStatus.OVERDUE:
        return [inv for inv in invoices if is_overdue(inv, today)]
    return [inv for inv in invoices if inv.status == status]


def sort_invoices(
    invoices: Iterable[Invoice],
    sort_by: str = "date",
    order: str = "desc",
) -> list[Invoice]:
    """Sort by date, amount, balance or patient; anything else sorts by invoice number."""
    key = SORT_KEYS.get(sort_by, lambda inv: inv.invoice_number)
    return sorted(invoices, key=key, reverse=order == "desc")


def count_by_status(
    invoices: Iterable[Invoice],
    today: date | None = None,
) -> dict[InvoiceStatus, int]:
    """Count invoices per stored status, plus the derived overdue count."""
    counts = {status: 0 for status in InvoiceStatus}
    for invoice in invoices:
        counts[invoice.status] += 1
        if is_overdue(invoice, today):
            counts[InvoiceStatus.OVERDUE] += 1
    return counts
