"""Insurer/patient split for a single billed service."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class Allocation(BaseModel):
    """Result of splitting a service price between insurer and patient.

    ``insurer_pays + patient_pays == service_price + copay`` to the cent.
    """

    model_config = ConfigDict(frozen=True)

    insurer_pays: Decimal
    patient_pays: Decimal
    deductible_applied: Decimal
    coinsurance: Decimal
    copay: Decimal
