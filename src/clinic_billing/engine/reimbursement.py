"""Insurance reimbursement allocation for a single billed service."""

import logging
from decimal import Decimal

from ..errors import ValidationError
from ..money import ZERO, money, to_decimal
from ..schemas.allocation import Allocation

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def allocate(
    service_price: Decimal | int | float | str,
    coverage_percent: Decimal | int | float | str,
    deductible: Decimal | int | float | str,
    deductible_met: Decimal | int | float | str,
    copay: Decimal | int | float | str,
) -> Allocation:
    """Split a service price between insurer and patient.

    Steps:
    - The unmet deductible is charged to the patient first, capped at the price
    - The insurer covers ``coverage_percent`` of what remains
    - The patient pays the deductible portion, the coinsurance and the copay

    Both shares are rounded half-up to the cent. Any rounding remainder is
    moved onto the patient share so that ``insurer_pays + patient_pays``
    equals ``service_price + copay`` exactly. A zero-priced service
    allocates nothing, copay included.
    """
    try:
        price = money(service_price)
        coverage = to_decimal(coverage_percent)
        deductible = money(deductible)
        deductible_met = money(deductible_met)
        copay = money(copay)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    if price < 0:
        raise ValidationError(f"Service price must not be negative, got {price}")
    if not ZERO <= coverage <= HUNDRED:
        raise ValidationError(f"Coverage percent must be between 0 and 100, got {coverage}")
    if deductible < 0 or deductible_met < 0:
        raise ValidationError("Deductible amounts must not be negative")
    if copay < 0:
        raise ValidationError(f"Copay must not be negative, got {copay}")

    if price == 0:
        return Allocation(
            insurer_pays=ZERO,
            patient_pays=ZERO,
            deductible_applied=ZERO,
            coinsurance=ZERO,
            copay=ZERO,
        )

    remaining_deductible = max(ZERO, deductible - deductible_met)
    deductible_applied = min(price, remaining_deductible)
    amount_after_deductible = price - deductible_applied

    insurer_share = amount_after_deductible * coverage / HUNDRED
    coinsurance = amount_after_deductible - insurer_share

    insurer_pays = money(insurer_share)
    patient_pays = money(deductible_applied + coinsurance + copay)

    expected = price + copay
    if insurer_pays + patient_pays != expected:
        logger.debug(
            "Reconciling %s rounding remainder onto patient share",
            expected - insurer_pays - patient_pays,
        )
        patient_pays = expected - insurer_pays

    return Allocation(
        insurer_pays=insurer_pays,
        patient_pays=patient_pays,
        deductible_applied=deductible_applied,
        coinsurance=patient_pays - deductible_applied - copay,
        copay=copay,
    )
