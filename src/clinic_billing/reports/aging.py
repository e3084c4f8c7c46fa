"""Aging report over outstanding invoice balances."""

from collections.abc import Iterable
from datetime import date

from ..config import AgingSettings
from ..engine.ledger import calculate_days_overdue
from ..money import ZERO
from ..schemas.common import TERMINAL_STATUSES
from ..schemas.invoice import Invoice
from ..schemas.reports import AgingBucket


def age_invoices(
    invoices: Iterable[Invoice],
    as_of: date | None = None,
    settings: AgingSettings | None = None,
) -> AgingBucket:
    """Bucket every open balance by days past its due date.

    Only invoices with a positive balance that are neither paid nor
    cancelled are counted. Drafts are included. With default settings:
    - current: 0-30 days past due (including not yet due)
    - days_31_to_60, days_61_to_90: the named ranges
    - days_90_plus: more than 90 days past due
    """
    as_of = as_of or date.today()
    settings = settings or AgingSettings()

    current = ZERO
    days_31_to_60 = ZERO
    days_61_to_90 = ZERO
    days_90_plus = ZERO

    for invoice in invoices:
        if invoice.status in TERMINAL_STATUSES or invoice.balance_due <= 0:
            continue

        days_overdue = calculate_days_overdue(invoice.due_date, as_of)
        amount = invoice.balance_due

        if days_overdue <= settings.current_max_days:
            current += amount
        elif days_overdue <= settings.days_31_to_60_max_days:
            days_31_to_60 += amount
        elif days_overdue <= settings.days_61_to_90_max_days:
            days_61_to_90 += amount
        else:
            days_90_plus += amount

    return AgingBucket(
        current=current,
        days_31_to_60=days_31_to_60,
        days_61_to_90=days_61_to_90,
        days_90_plus=days_90_plus,
        total=current + days_31_to_60 + days_61_to_90 + days_90_plus,
    )
