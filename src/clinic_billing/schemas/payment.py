"""Payment record schema."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .common import PaymentMethod


class Payment(BaseModel):
    """A single payment posted against an invoice. Never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str
    invoice_id: str
    patient_id: str
    amount: Decimal = Field(gt=0)
    payment_date: date
    method: PaymentMethod
    transaction_id: str | None = None
    notes: str | None = None
