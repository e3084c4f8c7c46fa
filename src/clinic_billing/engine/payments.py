"""Payment validation and application against invoice balances."""

import logging
import uuid
from collections.abc import Callable
from datetime import date
from decimal import Decimal

from ..errors import InvalidPaymentError, ValidationError
from ..money import money, to_decimal
from ..schemas.common import PaymentMethod
from ..schemas.invoice import Invoice
from ..schemas.payment import Payment
from .ledger import ensure_open, settle

logger = logging.getLogger(__name__)


class PaymentProcessor:
    """Applies payments to invoice snapshots.

    A payment is all-or-nothing: either every precondition holds and a new
    snapshot carrying the payment is returned, or an error is raised and
    the input invoice is untouched.
    """

    def __init__(self, today: Callable[[], date] = date.today):
        self.today = today

    def apply_payment(
        self,
        invoice: Invoice,
        amount: Decimal | int | float | str,
        method: PaymentMethod | str,
        transaction_id: str | None = None,
        notes: str | None = None,
    ) -> Invoice:
        """Post a payment and return the settled invoice snapshot.

        Raises:
            InvoiceClosedError: invoice is paid or cancelled
            InvalidPaymentError: amount is not positive, has fractional
                cents, or exceeds the balance due
            ValidationError: unknown payment method
        """
        ensure_open(invoice)
        amount = self._validate_amount(invoice, amount)
        method = self._validate_method(method)

        payment = Payment(
            id=str(uuid.uuid4()),
            invoice_id=invoice.id,
            patient_id=invoice.patient_id,
            amount=amount,
            payment_date=self.today(),
            method=method,
            transaction_id=transaction_id,
            notes=notes,
        )

        settled = settle(invoice, invoice.amount_paid + amount)
        updated = settled.model_copy(update={"payments": invoice.payments + (payment,)})

        logger.info(
            "Applied %s %s payment to invoice %s: balance %s, status %s",
            amount,
            method.value,
            invoice.invoice_number,
            updated.balance_due,
            updated.status.value,
        )
        return updated

    def _validate_amount(self, invoice: Invoice, amount: Decimal | int | float | str) -> Decimal:
        try:
            value = to_decimal(amount)
        except ValueError as exc:
            raise InvalidPaymentError(str(exc)) from exc

        if value <= 0:
            logger.warning("Rejected non-positive payment %s on %s", value, invoice.invoice_number)
            raise InvalidPaymentError(f"Payment amount must be positive, got {value}")
        if money(value) != value:
            raise InvalidPaymentError(f"Payment amount {value} has fractional cents")
        if value > invoice.balance_due:
            logger.warning(
                "Rejected payment %s exceeding balance %s on %s",
                value,
                invoice.balance_due,
                invoice.invoice_number,
            )
            raise InvalidPaymentError(
                f"Payment of {value} exceeds balance due of {invoice.balance_due}"
            )
        return money(value)

    def _validate_method(self, method: PaymentMethod | str) -> PaymentMethod:
        try:
            return PaymentMethod(method)
        except ValueError as exc:
            raise ValidationError(f"Unknown payment method {method!r}") from exc
