"""Assembles allocated line items into a draft invoice."""

import logging
import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import date, timedelta
from decimal import Decimal

from ..config import BillingSettings, DeductibleMode
from ..errors import DuplicateInvoiceNumberError, ValidationError
from ..money import ZERO, money
from ..schemas.common import InsuranceProfile, InvoiceStatus, ServiceCode
from ..schemas.invoice import BillingLineItem, Invoice, LineItemRequest
from .numbering import InvoiceNumberGenerator
from .reimbursement import allocate

logger = logging.getLogger(__name__)


class InvoiceBuilder:
    """Builds draft invoices from rendered services.

    ``is_number_taken`` is asked about every generated invoice number so
    that numbers stay unique within the ledger the invoice is headed for.
    """

    def __init__(
        self,
        catalog: Mapping[str, ServiceCode],
        settings: BillingSettings | None = None,
        number_generator: InvoiceNumberGenerator | None = None,
        is_number_taken: Callable[[str], bool] | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.catalog = catalog
        self.settings = settings or BillingSettings()
        self.number_generator = number_generator or InvoiceNumberGenerator(
            prefix=self.settings.invoice_number_prefix,
            digits=self.settings.invoice_number_digits,
        )
        self.is_number_taken = is_number_taken or (lambda number: False)
        self.today = today

    def build(
        self,
        patient_id: str | None,
        date_of_service: date,
        items: Sequence[LineItemRequest],
        insurance: InsuranceProfile | None = None,
        notes: str | None = None,
    ) -> Invoice:
        """Allocate every item against the patient's coverage and total the invoice."""
        if not patient_id:
            raise ValidationError("A patient is required to build an invoice")
        if not items:
            raise ValidationError("An invoice needs at least one line item")

        invoice_id = str(uuid.uuid4())
        line_items = self._allocate_items(invoice_id, items, insurance)

        created_date = self.today()
        subtotal = sum((item.total_price for item in line_items), ZERO)
        tax_amount = ZERO
        discount_amount = ZERO
        total_amount = subtotal + tax_amount - discount_amount

        invoice = Invoice(
            id=invoice_id,
            invoice_number=self.next_invoice_number(created_date),
            patient_id=patient_id,
            date_of_service=date_of_service,
            created_date=created_date,
            due_date=created_date + timedelta(days=self.settings.payment_terms_days),
            status=InvoiceStatus.DRAFT,
            items=tuple(line_items),
            subtotal=subtotal,
            tax_amount=tax_amount,
            discount_amount=discount_amount,
            total_amount=total_amount,
            amount_paid=ZERO,
            balance_due=total_amount,
            notes=notes,
        )

        logger.info(
            "Built invoice %s for patient %s: %d items, total %s",
            invoice.invoice_number,
            patient_id,
            len(line_items),
            total_amount,
        )
        return invoice

    def _allocate_items(
        self,
        invoice_id: str,
        items: Sequence[LineItemRequest],
        insurance: InsuranceProfile | None,
    ) -> list[BillingLineItem]:
        """Allocate each requested service in order.

        In snapshot mode every line sees the same ``deductible_met``. In
        sequential mode each line's deductible portion counts as met for
        the lines after it.
        """
        deductible = insurance.deductible if insurance else ZERO
        deductible_met = insurance.deductible_met if insurance else ZERO
        copay = insurance.copay if insurance else ZERO
        copay_charged = False

        line_items: list[BillingLineItem] = []
        for index, request in enumerate(items, start=1):
            service = self.catalog.get(request.service_code)
            if service is None:
                raise ValidationError(f"Unknown service code {request.service_code}")

            unit_price = money(
                request.unit_price if request.unit_price is not None else service.base_price
            )
            total_price = unit_price * request.quantity
            coverage = service.insurance_coverage_percent if insurance else Decimal("0")

            line_copay = copay
            if not self.settings.copay_per_line_item and copay_charged:
                line_copay = ZERO

            allocation = allocate(total_price, coverage, deductible, deductible_met, line_copay)
            if allocation.copay > 0:
                copay_charged = True
            if self.settings.deductible_mode == DeductibleMode.SEQUENTIAL:
                deductible_met += allocation.deductible_applied

            line_items.append(
                BillingLineItem(
                    id=f"{invoice_id}-{index}",
                    service_code=service.code,
                    description=service.description,
                    quantity=request.quantity,
                    unit_price=unit_price,
                    total_price=total_price,
                    insurance_covered=allocation.insurer_pays,
                    patient_responsible=allocation.patient_pays,
                    deductible_applied=allocation.deductible_applied,
                    copay_applied=allocation.copay,
                    provider_id=request.provider_id,
                    notes=request.notes,
                )
            )
        return line_items

    def next_invoice_number(self, created_date: date) -> str:
        """Generate a number not yet in use, retrying on collision."""
        number = ""
        for attempt in range(1, self.settings.max_number_attempts + 1):
            number = self.number_generator.next_number(created_date)
            if not self.is_number_taken(number):
                return number
            logger.warning(
                "Invoice number %s already in use (attempt %d of %d)",
                number,
                attempt,
                self.settings.max_number_attempts,
            )
        raise DuplicateInvoiceNumberError(number)
