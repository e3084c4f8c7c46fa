"""Invoice lifecycle state machine and the ledger that owns invoice state.

Stored states move as follows:

    draft --send--> sent  (paid when the total is zero)
    draft/sent --cancel--> cancelled
    draft/sent/partial --payment--> partial | paid

``paid`` and ``cancelled`` are terminal. ``overdue`` is never stored; it is
derived from the status and due date by ``is_overdue``.
"""

import logging
import threading
import weakref
from collections.abc import Callable
from datetime import date
from decimal import Decimal

from ..errors import (
    ConcurrentModificationError,
    DuplicateInvoiceNumberError,
    InvalidTransitionError,
    InvoiceClosedError,
    InvoiceNotFoundError,
    ValidationError,
)
from ..money import ZERO
from ..schemas.common import TERMINAL_STATUSES, InvoiceStatus
from ..schemas.invoice import Invoice
from ..store import InMemoryInvoiceStore, InvoiceFilter, InvoiceStore

logger = logging.getLogger(__name__)

# Transitions a user may request directly. PARTIAL and PAID are reached
# only through settle().
ALLOWED_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.CANCELLED}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.CANCELLED}),
    InvoiceStatus.PARTIAL: frozenset(),
}

OVERDUE_ELIGIBLE = frozenset({InvoiceStatus.SENT, InvoiceStatus.PARTIAL})


def calculate_days_overdue(due_date: date, today: date) -> int:
    """Whole days past the due date, never negative."""
    return max(0, (today - due_date).days)


def is_overdue(invoice: Invoice, today: date | None = None) -> bool:
    """Sent or partially paid invoice whose due date has passed."""
    today = today or date.today()
    return invoice.status in OVERDUE_ELIGIBLE and today > invoice.due_date


def display_status(invoice: Invoice, today: date | None = None) -> InvoiceStatus:
    """Status to show a user, with OVERDUE substituted where it applies."""
    if is_overdue(invoice, today):
        return InvoiceStatus.OVERDUE
    return invoice.status


def ensure_open(invoice: Invoice) -> None:
    """Raise InvoiceClosedError for paid or cancelled invoices."""
    if invoice.status in TERMINAL_STATUSES:
        raise InvoiceClosedError(invoice.id, invoice.status.value)


def transition(invoice: Invoice, target: InvoiceStatus) -> Invoice:
    """Apply a user-requested status change and return the new snapshot."""
    ensure_open(invoice)
    if target not in ALLOWED_TRANSITIONS.get(invoice.status, frozenset()):
        raise InvalidTransitionError(
            f"Invoice {invoice.id} cannot move from {invoice.status.value} to {target.value}"
        )
    return invoice.model_copy(update={"status": target, "version": invoice.version + 1})


def send_invoice(invoice: Invoice) -> Invoice:
    """Send a draft. An invoice with nothing to collect is settled as paid."""
    sent = transition(invoice, InvoiceStatus.SENT)
    if sent.total_amount == 0:
        return sent.model_copy(update={"status": InvoiceStatus.PAID, "balance_due": ZERO})
    return sent


def settle(invoice: Invoice, amount_paid: Decimal) -> Invoice:
    """Return the snapshot reflecting a new cumulative ``amount_paid``.

    Status becomes PAID once the total is covered and PARTIAL while some
    but not all of it is. ``balance_due`` is clamped at zero.
    """
    ensure_open(invoice)
    if amount_paid < 0:
        raise ValidationError("Amount paid cannot be negative")

    balance_due = max(ZERO, invoice.total_amount - amount_paid)
    status = invoice.status
    if amount_paid >= invoice.total_amount:
        status = InvoiceStatus.PAID
    elif amount_paid > 0:
        status = InvoiceStatus.PARTIAL

    return invoice.model_copy(
        update={
            "amount_paid": amount_paid,
            "balance_due": balance_due,
            "status": status,
            "version": invoice.version + 1,
        }
    )


class InvoiceLedger:
    """Owns invoice snapshots and applies changes to them atomically.

    Every change is a read-modify-write under a per-invoice lock, and the
    write is rejected if the stored version is not the one the change was
    computed from.
    """

    def __init__(self, store: InvoiceStore | None = None):
        self.store = store if store is not None else InMemoryInvoiceStore()
        # Locks live only while some thread holds a reference to them
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    def _lock_for(self, invoice_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(invoice_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[invoice_id] = lock
            return lock

    # --- Reads ---

    def get(self, invoice_id: str) -> Invoice:
        invoice = self.store.load_invoice(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice

    def list_invoices(self, filter: InvoiceFilter | None = None) -> list[Invoice]:
        return self.store.list_invoices(filter)

    def has_invoice_number(self, invoice_number: str) -> bool:
        return self.store.find_by_invoice_number(invoice_number) is not None

    # --- Writes ---

    def add(self, invoice: Invoice) -> Invoice:
        """Record a newly built invoice."""
        with self._locks_guard:
            if self.store.load_invoice(invoice.id) is not None:
                raise ValidationError(f"Invoice {invoice.id} already exists")
            if self.has_invoice_number(invoice.invoice_number):
                raise DuplicateInvoiceNumberError(invoice.invoice_number)
            self.store.save_invoice(invoice)

        logger.info("Recorded invoice %s (%s)", invoice.invoice_number, invoice.id)
        return invoice

    def commit(self, updated: Invoice) -> Invoice:
        """Save a snapshot derived from the currently stored version."""
        with self._lock_for(updated.id):
            return self._commit_locked(updated)

    def update(self, invoice_id: str, change: Callable[[Invoice], Invoice]) -> Invoice:
        """Load, change and save one invoice as a single atomic step."""
        with self._lock_for(invoice_id):
            current = self.get(invoice_id)
            updated = change(current)
            if updated is current:
                return current
            return self._commit_locked(updated)

    def _commit_locked(self, updated: Invoice) -> Invoice:
        stored = self.get(updated.id)
        if stored.version != updated.version - 1:
            raise ConcurrentModificationError(updated.id, updated.version - 1, stored.version)
        self.store.save_invoice(updated)
        return updated

    def send(self, invoice_id: str) -> Invoice:
        invoice = self.update(invoice_id, send_invoice)
        logger.info("Sent invoice %s (%s)", invoice.invoice_number, invoice.status.value)
        return invoice

    def cancel(self, invoice_id: str) -> Invoice:
        invoice = self.update(invoice_id, lambda inv: transition(inv, InvoiceStatus.CANCELLED))
        logger.info(
            "Cancelled invoice %s with balance %s", invoice.invoice_number, invoice.balance_due
        )
        return invoice
