"""Invoice and line item schemas."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import InvoiceStatus
from .payment import Payment


class LineItemRequest(BaseModel):
    """A rendered service to be billed, before allocation."""

    service_code: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    # Defaults to the catalog base price
    unit_price: Decimal | None = Field(default=None, ge=0)
    provider_id: str | None = None
    notes: str | None = None


class BillingLineItem(BaseModel):
    """Allocated charge line on an invoice."""

    model_config = ConfigDict(frozen=True)

    id: str
    service_code: str
    description: str = ""
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0)
    total_price: Decimal = Field(ge=0)
    insurance_covered: Decimal = Field(ge=0)
    patient_responsible: Decimal = Field(ge=0)
    deductible_applied: Decimal = Field(default=Decimal("0.00"), ge=0)
    copay_applied: Decimal = Field(default=Decimal("0.00"), ge=0)
    provider_id: str | None = None
    notes: str | None = None


class Invoice(BaseModel):
    """Invoice snapshot.

    Snapshots are frozen. The ledger and payment processor produce a new
    snapshot with ``version`` incremented for every change.
    """

    model_config = ConfigDict(frozen=True)

    # Identifiers
    id: str
    invoice_number: str
    patient_id: str
    # Dates
    date_of_service: date
    created_date: date
    due_date: date
    # Lifecycle
    status: InvoiceStatus = InvoiceStatus.DRAFT
    version: int = 1
    # Charges
    items: tuple[BillingLineItem, ...]
    subtotal: Decimal
    tax_amount: Decimal = Decimal("0.00")
    discount_amount: Decimal = Decimal("0.00")
    total_amount: Decimal
    # Settlement
    amount_paid: Decimal = Decimal("0.00")
    balance_due: Decimal
    payments: tuple[Payment, ...] = ()
    notes: str | None = None

    @property
    def insurance_covered(self) -> Decimal:
        return sum((item.insurance_covered for item in self.items), Decimal("0.00"))

    @property
    def patient_responsible(self) -> Decimal:
        return sum((item.patient_responsible for item in self.items), Decimal("0.00"))

    @model_validator(mode="after")
    def _totals_consistent(self) -> "Invoice":
        if self.status == InvoiceStatus.OVERDUE:
            raise ValueError("overdue is derived and cannot be stored on an invoice")
        if self.total_amount != self.subtotal + self.tax_amount - self.discount_amount:
            raise ValueError("total_amount must equal subtotal + tax_amount - discount_amount")
        if self.amount_paid < 0 or self.balance_due < 0:
            raise ValueError("amount_paid and balance_due cannot be negative")
        if self.balance_due != self.total_amount - self.amount_paid:
            raise ValueError("balance_due must equal total_amount - amount_paid")
        if sum((p.amount for p in self.payments), Decimal("0.00")) != self.amount_paid:
            raise ValueError("payments must add up to amount_paid")
        return self
