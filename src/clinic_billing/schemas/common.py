"""Shared types for clinic billing schemas."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class InvoiceStatus(str, Enum):
    """Stored lifecycle states of an invoice.

    OVERDUE is never stored on an invoice; it is reported by
    ``is_overdue`` and accepted as a filter value.
    """

    DRAFT = "draft"
    SENT = "sent"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED})


class PaymentMethod(str, Enum):
    """How a payment was tendered."""

    CASH = "cash"
    CARD = "card"
    CHECK = "check"
    INSURANCE = "insurance"
    ONLINE = "online"


class ServiceCategory(str, Enum):
    """Catalog grouping for billable services."""

    CONSULTATION = "consultation"
    PROCEDURE = "procedure"
    DIAGNOSTIC = "diagnostic"
    THERAPY = "therapy"
    SURGERY = "surgery"
    EMERGENCY = "emergency"


class ServiceCode(BaseModel):
    """Catalog entry for a billable service."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(min_length=1)
    description: str
    category: ServiceCategory
    base_price: Decimal = Field(ge=0)
    insurance_coverage_percent: Decimal = Field(ge=0, le=100)
    duration_minutes: int = Field(default=0, ge=0)


class InsuranceProfile(BaseModel):
    """Insurance plan attached to a patient."""

    model_config = ConfigDict(frozen=True)

    provider: str
    policy_number: str
    group_number: str | None = None
    copay: Decimal = Field(default=Decimal("0"), ge=0)
    deductible: Decimal = Field(default=Decimal("0"), ge=0)
    deductible_met: Decimal = Field(default=Decimal("0"), ge=0)

    @model_validator(mode="after")
    def _deductible_met_within_deductible(self) -> "InsuranceProfile":
        if self.deductible_met > self.deductible:
            raise ValueError("deductible_met cannot exceed deductible")
        return self


class PatientInfo(BaseModel):
    """Patient identity and insurance coverage."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    first_name: str = ""
    last_name: str = ""
    insurance: InsuranceProfile | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
