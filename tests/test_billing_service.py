"""End-to-end tests for the billing service, configuration and money helpers."""

import json
from datetime import date, timedelta
from decimal import Decimal

import pytest

from clinic_billing import (
    BillingConfig,
    BillingService,
    InvalidPaymentError,
    InvoiceClosedError,
    InvoiceNotFoundError,
    ValidationError,
    load_config,
)
from clinic_billing.config import DeductibleMode
from clinic_billing.money import format_currency, format_date, money, to_decimal
from clinic_billing.schemas import (
    InsuranceProfile,
    InvoiceStatus,
    LineItemRequest,
    PatientInfo,
    PaymentMethod,
    ServiceCategory,
    ServiceCode,
)

TODAY = date(2024, 6, 1)


def _make_catalog() -> dict[str, ServiceCode]:
    """Helper to create a small service catalog."""
    return {
        "99213": ServiceCode(
            code="99213",
            description="Office Visit - Established Patient (Level 3)",
            category=ServiceCategory.CONSULTATION,
            base_price=Decimal("150"),
            insurance_coverage_percent=Decimal("80"),
            duration_minutes=30,
        ),
        "80053": ServiceCode(
            code="80053",
            description="Comprehensive Metabolic Panel",
            category=ServiceCategory.DIAGNOSTIC,
            base_price=Decimal("120"),
            insurance_coverage_percent=Decimal("85"),
            duration_minutes=5,
        ),
    }


def _make_patients() -> dict[str, PatientInfo]:
    """Helper to create insured and uninsured patients."""
    return {
        "PAT001": PatientInfo(
            id="PAT001",
            first_name="John",
            last_name="Smith",
            insurance=InsuranceProfile(
                provider="Blue Cross Blue Shield",
                policy_number="BCBS123456789",
                copay=Decimal("25"),
                deductible=Decimal("1500"),
                deductible_met=Decimal("800"),
            ),
        ),
        "PAT002": PatientInfo(id="PAT002", first_name="Sarah", last_name="Johnson"),
    }


def _make_service(config: BillingConfig | None = None, today: date = TODAY) -> BillingService:
    """Helper to create a BillingService with a fixed clock."""
    return BillingService(
        _make_patients(), _make_catalog(), config=config, today=lambda: today
    )


# ============================================================================
# BILLING SERVICE TESTS
# ============================================================================


class TestBillingService:
    """Tests for the full invoice lifecycle through the service."""

    def test_build_send_and_pay(self):
        """An invoice is built, sent, partially paid and then settled."""
        service = _make_service()
        invoice = service.build_invoice(
            "PAT001",
            TODAY,
            [LineItemRequest(service_code="99213"), {"service_code": "80053"}],
        )
        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.total_amount == Decimal("270.00")
        assert service.get_invoice(invoice.id) == invoice

        service.send_invoice(invoice.id)
        partial = service.apply_payment(invoice.id, Decimal("160"), PaymentMethod.CARD)
        assert partial.status == InvoiceStatus.PARTIAL
        assert partial.balance_due == Decimal("110.00")

        paid = service.apply_payment(invoice.id, "110.00", "check", transaction_id="CHK-1001")
        assert paid.status == InvoiceStatus.PAID
        assert paid.balance_due == Decimal("0.00")
        assert service.get_invoice(invoice.id) == paid
        assert service.get_collection_rate() == Decimal("100.00")

    def test_rejected_payment_leaves_invoice_unchanged(self):
        """An overpayment is refused and the stored invoice stays as it was."""
        service = _make_service()
        invoice = service.build_invoice("PAT002", TODAY, [{"service_code": "99213"}])
        service.send_invoice(invoice.id)
        before = service.apply_payment(invoice.id, "40", PaymentMethod.CASH)

        with pytest.raises(InvalidPaymentError):
            service.apply_payment(invoice.id, "200", PaymentMethod.CASH)
        assert service.get_invoice(invoice.id) == before

    def test_uninsured_patient(self):
        """Uninsured patients carry the whole charge."""
        service = _make_service()
        invoice = service.build_invoice("PAT002", TODAY, [{"service_code": "80053"}])
        assert invoice.patient_responsible == Decimal("120.00")
        assert invoice.insurance_covered == Decimal("0.00")

    def test_unknown_or_missing_patient(self):
        service = _make_service()
        with pytest.raises(ValidationError):
            service.build_invoice("PAT404", TODAY, [{"service_code": "99213"}])
        with pytest.raises(ValidationError):
            service.build_invoice(None, TODAY, [{"service_code": "99213"}])

    @pytest.mark.parametrize(
        "item",
        [
            {"service_code": "99213", "quantity": 0},
            {"service_code": "99213", "unit_price": "-5"},
            {"quantity": 1},
        ],
    )
    def test_invalid_line_item_rejected(self, item):
        """Malformed line items surface as the billing ValidationError."""
        service = _make_service()
        with pytest.raises(ValidationError):
            service.build_invoice("PAT001", TODAY, [item])
        assert service.ledger.list_invoices() == []

    @pytest.mark.parametrize("amount", ["NaN", "sNaN", "Infinity"])
    def test_non_finite_payment_rejected(self, amount):
        """NaN and infinite payments are refused and the invoice is unchanged."""
        service = _make_service()
        invoice = service.build_invoice("PAT002", TODAY, [{"service_code": "99213"}])
        with pytest.raises(InvalidPaymentError):
            service.apply_payment(invoice.id, amount, PaymentMethod.CASH)
        assert service.get_invoice(invoice.id) == invoice

    def test_cancel_then_pay(self):
        """Cancelled invoices refuse payments."""
        service = _make_service()
        invoice = service.build_invoice("PAT001", TODAY, [{"service_code": "99213"}])
        service.cancel_invoice(invoice.id)
        with pytest.raises(InvoiceClosedError):
            service.apply_payment(invoice.id, "10", PaymentMethod.CASH)

    def test_unknown_invoice(self):
        with pytest.raises(InvoiceNotFoundError):
            _make_service().apply_payment("missing", "10", PaymentMethod.CASH)

    def test_invoice_numbers_unique(self):
        """Invoices built back to back never share a number."""
        service = _make_service()
        numbers = {
            service.build_invoice("PAT002", TODAY, [{"service_code": "99213"}]).invoice_number
            for _ in range(25)
        }
        assert len(numbers) == 25

    def test_overdue_reported_later(self):
        """A sent invoice shows as overdue once its due date passes."""
        service = _make_service()
        invoice = service.build_invoice("PAT002", TODAY, [{"service_code": "99213"}])
        service.send_invoice(invoice.id)
        assert service.get_display_status(invoice.id) == InvoiceStatus.SENT

        later = BillingService(
            _make_patients(),
            _make_catalog(),
            ledger=service.ledger,
            today=lambda: TODAY + timedelta(days=75),
        )
        assert later.get_display_status(invoice.id) == InvoiceStatus.OVERDUE
        assert later.get_invoice(invoice.id).status == InvoiceStatus.SENT
        aging = later.get_aging_report()
        assert aging.days_31_to_60 == Decimal("150.00")
        assert aging.total == Decimal("150.00")

    def test_reports_from_ledger(self):
        """Reports default to the ledger contents."""
        service = _make_service()
        first = service.build_invoice("PAT001", TODAY, [{"service_code": "99213"}])
        service.build_invoice("PAT002", TODAY, [{"service_code": "80053", "quantity": 2}])
        service.apply_payment(first.id, "50", PaymentMethod.ONLINE)

        assert service.get_revenue() == Decimal("390.00")
        assert service.get_top_services(limit=1)[0].code == "80053"

        summary = service.get_summary()
        assert summary.invoice_count == 2
        assert summary.total_collected == Decimal("50.00")
        assert summary.total_outstanding == Decimal("340.00")
        assert service.format_amount(summary.total_outstanding) == "$340.00"


# ============================================================================
# CONFIGURATION TESTS
# ============================================================================


class TestConfig:
    """Tests for loading billing configuration."""

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.json")
        assert config == BillingConfig()
        assert config.settings.payment_terms_days == 30
        assert config.settings.copay_per_line_item is True

    def test_missing_section_uses_defaults(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"other": {}}))
        assert load_config(config_file) == BillingConfig()

    def test_settings_loaded(self, tmp_path):
        """Settings from the file drive invoice building."""
        config_file = tmp_path / "config.json"
        config_file.write_text(
            json.dumps(
                {
                    "billing": {
                        "settings": {
                            "copay_per_line_item": False,
                            "deductible_mode": "sequential",
                            "payment_terms_days": 15,
                            "invoice_number_prefix": "CLN",
                        }
                    }
                }
            )
        )
        config = load_config(config_file)
        assert config.settings.deductible_mode == DeductibleMode.SEQUENTIAL

        service = BillingService.from_config_file(
            _make_patients(), _make_catalog(), config_file=config_file
        )
        invoice = service.build_invoice(
            "PAT001", TODAY, [{"service_code": "99213"}, {"service_code": "80053"}]
        )
        assert invoice.invoice_number.startswith("CLN-")
        assert invoice.due_date == invoice.created_date + timedelta(days=15)
        assert sum(item.copay_applied for item in invoice.items) == Decimal("25.00")

    def test_invalid_settings_rejected(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"billing": {"settings": {"invoice_number_digits": 4}}}))
        with pytest.raises(ValueError):
            load_config(config_file)


# ============================================================================
# MONEY HELPER TESTS
# ============================================================================


class TestMoney:
    """Tests for decimal conversion and display formatting."""

    def test_to_decimal(self):
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal(None) == Decimal("0")
        with pytest.raises(ValueError):
            to_decimal("twelve")

    def test_money_rounds_half_up(self):
        assert money("2.675") == Decimal("2.68")
        assert money("0.005") == Decimal("0.01")

    def test_format_currency(self):
        assert format_currency(Decimal("1234.5")) == "$1,234.50"
        assert format_currency(Decimal("-5")) == "-$5.00"
        assert format_currency(10, "EUR") == "€10.00"
        assert format_currency(10, "CHF") == "CHF 10.00"

    def test_format_date(self):
        assert format_date(date(2024, 1, 15)) == "Jan 15, 2024"
