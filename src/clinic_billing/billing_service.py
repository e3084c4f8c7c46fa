"""Clinic billing service.

Entry point for UI and reporting callers. Wires the billing engine
together around one invoice ledger:

1. Builds invoices from rendered services using the patient's coverage
2. Sends and cancels invoices
3. Applies payments atomically per invoice
4. Produces aging, collection and revenue reports from ledger snapshots
"""

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any

import pydantic

from .config import DEFAULT_CONFIG_FILE, BillingConfig, load_config
from .engine import InvoiceBuilder, InvoiceLedger, PaymentProcessor, display_status
from .errors import DuplicateInvoiceNumberError, ValidationError
from .money import format_currency
from .reports import (
    RevenuePeriod,
    age_invoices,
    build_billing_summary,
    collection_rate,
    revenue_by_period,
    top_services,
)
from .schemas import (
    AgingBucket,
    BillingSummary,
    Invoice,
    InvoiceStatus,
    LineItemRequest,
    PatientInfo,
    PaymentMethod,
    ServiceCode,
    ServiceRevenue,
)

logger = logging.getLogger(__name__)


class BillingService:
    """Billing operations over a single invoice ledger."""

    def __init__(
        self,
        patients: Mapping[str, PatientInfo],
        catalog: Mapping[str, ServiceCode],
        ledger: InvoiceLedger | None = None,
        config: BillingConfig | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.patients = patients
        self.catalog = catalog
        self.ledger = ledger or InvoiceLedger()
        self.config = config or BillingConfig()
        self.today = today
        self.builder = InvoiceBuilder(
            catalog,
            settings=self.config.settings,
            is_number_taken=self.ledger.has_invoice_number,
            today=today,
        )
        self.payments = PaymentProcessor(today=today)

    @classmethod
    def from_config_file(
        cls,
        patients: Mapping[str, PatientInfo],
        catalog: Mapping[str, ServiceCode],
        config_file: str | Path = DEFAULT_CONFIG_FILE,
        ledger: InvoiceLedger | None = None,
    ) -> "BillingService":
        return cls(patients, catalog, ledger=ledger, config=load_config(config_file))

    # --- Invoice lifecycle ---

    def build_invoice(
        self,
        patient_id: str | None,
        date_of_service: date,
        items: Sequence[LineItemRequest | Mapping[str, Any]],
        notes: str | None = None,
    ) -> Invoice:
        """Build a draft invoice for a patient and record it in the ledger."""
        if not patient_id:
            raise ValidationError("A patient is required to build an invoice")
        patient = self.patients.get(patient_id)
        if patient is None:
            raise ValidationError(f"Unknown patient {patient_id}")

        try:
            requests = [
                item if isinstance(item, LineItemRequest) else LineItemRequest.model_validate(item)
                for item in items
            ]
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Invalid line item: {exc}") from exc
        invoice = self.builder.build(
            patient.id,
            date_of_service,
            requests,
            insurance=patient.insurance,
            notes=notes,
        )

        # The number was free when generated; another writer may have taken it since
        for _ in range(self.config.settings.max_number_attempts):
            try:
                return self.ledger.add(invoice)
            except DuplicateInvoiceNumberError as exc:
                logger.warning("%s, regenerating", exc)
                invoice = invoice.model_copy(
                    update={"invoice_number": self.builder.next_invoice_number(invoice.created_date)}
                )
        return self.ledger.add(invoice)

    def send_invoice(self, invoice_id: str) -> Invoice:
        return self.ledger.send(invoice_id)

    def cancel_invoice(self, invoice_id: str) -> Invoice:
        return self.ledger.cancel(invoice_id)

    def apply_payment(
        self,
        invoice_id: str,
        amount: Decimal | int | float | str,
        method: PaymentMethod | str,
        transaction_id: str | None = None,
        notes: str | None = None,
    ) -> Invoice:
        """Apply a payment as one atomic read-modify-write on the invoice."""
        return self.ledger.update(
            invoice_id,
            lambda invoice: self.payments.apply_payment(
                invoice, amount, method, transaction_id=transaction_id, notes=notes
            ),
        )

    def get_invoice(self, invoice_id: str) -> Invoice:
        return self.ledger.get(invoice_id)

    def get_display_status(self, invoice_id: str) -> InvoiceStatus:
        return display_status(self.ledger.get(invoice_id), self.today())

    # --- Reports ---

    def _snapshot(self, invoices: Iterable[Invoice] | None) -> list[Invoice]:
        return list(invoices) if invoices is not None else self.ledger.list_invoices()

    def get_aging_report(self, invoices: Iterable[Invoice] | None = None) -> AgingBucket:
        return age_invoices(self._snapshot(invoices), self.today(), self.config.aging)

    def get_collection_rate(self, invoices: Iterable[Invoice] | None = None) -> Decimal:
        return collection_rate(self._snapshot(invoices))

    def get_revenue(
        self,
        window: RevenuePeriod | str | timedelta = RevenuePeriod.MONTH,
        invoices: Iterable[Invoice] | None = None,
    ) -> Decimal:
        return revenue_by_period(self._snapshot(invoices), window, self.today())

    def get_top_services(
        self,
        limit: int = 5,
        invoices: Iterable[Invoice] | None = None,
    ) -> list[ServiceRevenue]:
        return top_services(self._snapshot(invoices), limit)

    def get_summary(self, invoices: Iterable[Invoice] | None = None) -> BillingSummary:
        summary = build_billing_summary(
            self._snapshot(invoices), self.today(), self.config.aging
        )
        logger.debug(
            "Summary: %d invoices, %s outstanding, %s%% collected",
            summary.invoice_count,
            format_currency(summary.total_outstanding, self.config.settings.currency),
            summary.collection_rate,
        )
        return summary

    def format_amount(self, amount: Decimal) -> str:
        return format_currency(amount, self.config.settings.currency)
