"""
Unit tests for the payment schedule generator.
"""

import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest

from stairledger.schemas.quote import StageStatus
from stairledger.services.calculations import CalculationConfig
from stairledger.services.payment_schedule import (
    calculate_payment_schedule,
    correlate_stage_invoices,
    invoice_matches_stage,
    next_stage_invoices,
    quote_total,
)

from conftest import MockInvoice, MockQuote

TODAY = date(2025, 6, 1)


@pytest.fixture
def config():
    return CalculationConfig()


# ============================================================
# Schedule generation
# ============================================================


class TestCalculatePaymentSchedule:
    """Tests for mapping payment terms to stages."""

    def test_deposit_interim_final(self, config):
        schedule = calculate_payment_schedule(MockQuote(payment_terms="2"), config)
        assert [s.stage for s in schedule] == ["deposit", "interim", "final"]
        assert [s.amount for s in schedule] == [Decimal("500"), Decimal("250"), Decimal("250")]
        assert schedule[1].description == "Interim Payment - 25%"
        assert schedule[1].due_when == "On completion of joinery"

    def test_deposit_final(self, config):
        schedule = calculate_payment_schedule(MockQuote(payment_terms="1"), config)
        assert [(s.stage, s.amount) for s in schedule] == [
            ("deposit", Decimal("500")),
            ("final", Decimal("500")),
        ]

    def test_full_before_delivery(self, config):
        schedule = calculate_payment_schedule(MockQuote(payment_terms="4"), config)
        assert len(schedule) == 1
        assert schedule[0].stage == "full"
        assert schedule[0].due_when == "Before delivery"
        assert schedule[0].amount == Decimal("1000")

    @pytest.mark.parametrize("terms", ["3", "custom"])
    def test_custom_terms_single_stage(self, config, terms):
        schedule = calculate_payment_schedule(MockQuote(payment_terms=terms), config)
        assert [(s.stage, s.percentage) for s in schedule] == [("custom", Decimal("1"))]

    @pytest.mark.parametrize("terms", ["1", "2", "4"])
    def test_stages_sum_to_quote_total(self, config, terms):
        quote = MockQuote(payment_terms=terms, grand_total=Decimal("1234.57"))
        schedule = calculate_payment_schedule(quote, config)
        assert sum(s.amount for s in schedule) == Decimal("1234.57")

    @pytest.mark.parametrize("terms", [None, "", "5", "weekly"])
    def test_unknown_terms(self, config, terms):
        assert calculate_payment_schedule(MockQuote(payment_terms=terms), config) == []

    def test_no_quote(self, config):
        assert calculate_payment_schedule(None, config) == []

    def test_total_recomputed_when_not_cached(self, config):
        quote = MockQuote(
            grand_total=None,
            selected_items=[{"cost": 100, "quantity": 2}],
            global_markup=Decimal("20"),
        )
        assert quote_total(quote, config) == Decimal("240")


# ============================================================
# Invoice correlation
# ============================================================


class TestStageCorrelation:
    """Tests for matching invoices to stages."""

    def test_matches_on_stage_id(self):
        invoice = MockInvoice(payment_stage_id="final", description="Deposit - 50% - Quote Q-1")
        assert invoice_matches_stage(invoice, "final")
        assert not invoice_matches_stage(invoice, "deposit")

    def test_description_fallback(self):
        invoice = MockInvoice(payment_stage_id=None, description="DEPOSIT - 50% - Quote Q-1")
        assert invoice_matches_stage(invoice, "deposit")
        assert not invoice_matches_stage(invoice, "final")

    def test_statuses(self, config):
        schedule = calculate_payment_schedule(MockQuote(payment_terms="2"), config)
        paid = MockInvoice(payment_stage_id="deposit", status="paid")
        overdue = MockInvoice(payment_stage_id="interim", due_date=TODAY - timedelta(days=1))

        correlated = correlate_stage_invoices(schedule, [paid, overdue], TODAY)

        assert [s.status for s in correlated] == [
            StageStatus.PAID,
            StageStatus.OVERDUE,
            StageStatus.NOT_INVOICED,
        ]
        assert correlated[0].invoice_ids == [paid.id]
        assert correlated[2].invoice_ids == []

    def test_pending_when_not_due(self, config):
        schedule = calculate_payment_schedule(MockQuote(payment_terms="4"), config)
        invoice = MockInvoice(payment_stage_id="full", due_date=TODAY + timedelta(days=14))
        correlated = correlate_stage_invoices(schedule, [invoice], TODAY)
        assert correlated[0].status == StageStatus.PENDING

    def test_paid_wins_over_overdue(self, config):
        schedule = calculate_payment_schedule(MockQuote(payment_terms="4"), config)
        invoices = [
            MockInvoice(payment_stage_id="full", due_date=TODAY - timedelta(days=30)),
            MockInvoice(payment_stage_id="full", status="paid"),
        ]
        correlated = correlate_stage_invoices(schedule, invoices, TODAY)
        assert correlated[0].status == StageStatus.PAID
        assert len(correlated[0].invoice_ids) == 2

    def test_schedule_is_not_mutated(self, config):
        schedule = calculate_payment_schedule(MockQuote(payment_terms="1"), config)
        correlate_stage_invoices(schedule, [MockInvoice(payment_stage_id="deposit")], TODAY)
        assert schedule[0].status is None


class TestNextStageInvoices:
    """Tests for the stages still to invoice."""

    def test_after_deposit(self, config):
        schedule = calculate_payment_schedule(MockQuote(payment_terms="2"), config)
        assert [s.stage for s in next_stage_invoices(schedule, "deposit")] == ["interim", "final"]

    def test_after_last_stage(self, config):
        schedule = calculate_payment_schedule(MockQuote(payment_terms="2"), config)
        assert next_stage_invoices(schedule, "final") == []

    def test_unknown_stage(self, config):
        schedule = calculate_payment_schedule(MockQuote(payment_terms="1"), config)
        assert next_stage_invoices(schedule, str(uuid.uuid4())) == schedule
