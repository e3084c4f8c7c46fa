"""Invoice storage interface and an in-memory implementation."""

from collections.abc import Callable
from typing import Protocol

from .schemas.invoice import Invoice

InvoiceFilter = Callable[[Invoice], bool]


class InvoiceStore(Protocol):
    """Persistence collaborator used by the ledger."""

    def load_invoice(self, invoice_id: str) -> Invoice | None: ...

    def save_invoice(self, invoice: Invoice) -> None: ...

    def list_invoices(self, filter: InvoiceFilter | None = None) -> list[Invoice]: ...

    def find_by_invoice_number(self, invoice_number: str) -> Invoice | None: ...


class InMemoryInvoiceStore:
    """Dict-backed store, newest invoice first when listed."""

    def __init__(self, invoices: list[Invoice] | None = None):
        self._invoices: dict[str, Invoice] = {}
        # invoice_number -> invoice id
        self._numbers: dict[str, str] = {}
        for invoice in invoices or []:
            self.save_invoice(invoice)

    def load_invoice(self, invoice_id: str) -> Invoice | None:
        return self._invoices.get(invoice_id)

    def save_invoice(self, invoice: Invoice) -> None:
        previous = self._invoices.get(invoice.id)
        if previous is not None and previous.invoice_number != invoice.invoice_number:
            del self._numbers[previous.invoice_number]
        self._invoices[invoice.id] = invoice
        self._numbers[invoice.invoice_number] = invoice.id

    def list_invoices(self, filter: InvoiceFilter | None = None) -> list[Invoice]:
        invoices = list(reversed(self._invoices.values()))
        if filter is None:
            return invoices
        return [inv for inv in invoices if filter(inv)]

    def find_by_invoice_number(self, invoice_number: str) -> Invoice | None:
        invoice_id = self._numbers.get(invoice_number)
        if invoice_id is None:
            return None
        return self._invoices[invoice_id]
