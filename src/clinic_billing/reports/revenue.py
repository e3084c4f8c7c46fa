"""Revenue analytics: collection rate, period revenue and top services."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum

from dateutil.relativedelta import relativedelta

from ..money import ZERO, money
from ..schemas.invoice import Invoice
from ..schemas.reports import ServiceRevenue


class RevenuePeriod(str, Enum):
    """Named look-back windows for revenue reporting."""

    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


PERIOD_DELTAS: dict[RevenuePeriod, relativedelta] = {
    RevenuePeriod.WEEK: relativedelta(weeks=1),
    RevenuePeriod.MONTH: relativedelta(months=1),
    RevenuePeriod.QUARTER: relativedelta(months=3),
    RevenuePeriod.YEAR: relativedelta(years=1),
}


def collection_rate(invoices: Iterable[Invoice]) -> Decimal:
    """Percentage of billed totals actually collected, 0 when nothing was billed."""
    total_billed = ZERO
    total_collected = ZERO
    for invoice in invoices:
        total_billed += invoice.total_amount
        total_collected += invoice.amount_paid

    if total_billed == 0:
        return ZERO
    return money(total_collected / total_billed * 100)


def period_start(window: RevenuePeriod | str | timedelta, now: date) -> date:
    """First day of the look-back window ending at ``now``."""
    if isinstance(window, timedelta):
        return now - window
    return now - PERIOD_DELTAS[RevenuePeriod(window)]


def revenue_by_period(
    invoices: Iterable[Invoice],
    window: RevenuePeriod | str | timedelta,
    now: date | None = None,
) -> Decimal:
    """Sum invoice totals created within ``[now - window, now]``."""
    now = now or date.today()
    start = period_start(window, now)
    return sum(
        (inv.total_amount for inv in invoices if start <= inv.created_date <= now),
        ZERO,
    )


def top_services(invoices: Iterable[Invoice], limit: int = 5) -> list[ServiceRevenue]:
    """Rank service codes by billed revenue across all line items."""
    counts: dict[str, int] = defaultdict(int)
    revenue: dict[str, Decimal] = defaultdict(lambda: ZERO)
    descriptions: dict[str, str] = {}

    for invoice in invoices:
        for item in invoice.items:
            counts[item.service_code] += item.quantity
            revenue[item.service_code] += item.total_price
            descriptions.setdefault(item.service_code, item.description)

    ranked = sorted(revenue, key=lambda code: revenue[code], reverse=True)
    return [
        ServiceRevenue(
            code=code,
            description=descriptions[code],
            count=counts[code],
            revenue=revenue[code],
        )
        for code in ranked[:limit]
    ]
