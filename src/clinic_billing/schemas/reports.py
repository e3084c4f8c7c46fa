"""Output schemas for billing reports."""

from decimal import Decimal

from pydantic import BaseModel

from .common import InvoiceStatus


class AgingBucket(BaseModel):
    """Outstanding balances grouped by days past due."""

    current: Decimal = Decimal("0.00")
    days_31_to_60: Decimal = Decimal("0.00")
    days_61_to_90: Decimal = Decimal("0.00")
    days_90_plus: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")


class ServiceRevenue(BaseModel):
    """Billed volume and revenue for one service code."""

    code: str
    description: str = ""
    count: int = 0
    revenue: Decimal = Decimal("0.00")


class BillingSummary(BaseModel):
    """Aggregated billing figures across a set of invoices."""

    invoice_count: int = 0
    total_billed: Decimal = Decimal("0.00")
    total_collected: Decimal = Decimal("0.00")
    total_outstanding: Decimal = Decimal("0.00")
    insurance_covered: Decimal = Decimal("0.00")
    patient_responsible: Decimal = Decimal("0.00")
    collection_rate: Decimal = Decimal("0.00")
    overdue_count: int = 0
    status_counts: dict[InvoiceStatus, int] = {}
    aging: AgingBucket = AgingBucket()
    top_services: list[ServiceRevenue] = []
