"""
Unit tests for the quote and invoice calculators.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from stairledger.schemas.invoice import InvoiceFinancials
from stairledger.schemas.quote import DistributionMethod, QuoteItem
from stairledger.services.calculations import (
    CalculationConfig,
    calculate_invoice_totals,
    calculate_quote_data,
    calculate_vat,
    distribute_hidden_costs,
    quote_config,
    resolve_item_cost,
    vat_on,
)

TOLERANCE = Decimal("0.000001")


@pytest.fixture
def config():
    return CalculationConfig(global_markup=Decimal("20"), distribution_method="even")


# ============================================================
# Hidden-cost distribution
# ============================================================


class TestDistributeHiddenCosts:
    """Tests for spreading the shared cost pool."""

    def test_even_split(self):
        shares = distribute_hidden_costs([Decimal("100"), Decimal("300")], Decimal("100"), "even")
        assert shares == [Decimal("50"), Decimal("50")]

    def test_proportional_split(self):
        shares = distribute_hidden_costs(
            [Decimal("100"), Decimal("300")], Decimal("100"), DistributionMethod.PROPORTIONAL
        )
        assert shares == [Decimal("25"), Decimal("75")]

    def test_no_visible_items(self):
        assert distribute_hidden_costs([], Decimal("100"), "even") == []

    def test_proportional_zero_base_sum(self):
        shares = distribute_hidden_costs([Decimal("0"), Decimal("0")], Decimal("90"), "proportional")
        assert shares == [Decimal("0"), Decimal("0")]

    def test_unknown_method_gives_zero_shares(self):
        shares = distribute_hidden_costs([Decimal("10"), Decimal("20")], Decimal("90"), "by_weight")
        assert shares == [Decimal("0"), Decimal("0")]

    @pytest.mark.parametrize("method", ["even", "proportional"])
    def test_shares_add_up_to_pool(self, method):
        """Test distributed shares sum to the pool for an awkward split."""
        bases = [Decimal("10"), Decimal("33.33"), Decimal("7")]
        shares = distribute_hidden_costs(bases, Decimal("100"), method)
        assert abs(sum(shares) - Decimal("100")) < TOLERANCE


# ============================================================
# Item cost resolution
# ============================================================


class TestResolveItemCost:
    """Tests for pricing a single visible item."""

    def test_item_markup_overrides_global(self):
        item = QuoteItem(name="Newel post", cost="50", quantity="2", markup="10")
        total = resolve_item_cost(item, Decimal("0"), Decimal("30"))
        assert total.markup_percentage == Decimal("10")
        assert total.markup_amount == Decimal("10")
        assert total.final_total == Decimal("110")
        assert total.unit_price == Decimal("55")

    def test_global_markup_when_item_has_none(self):
        item = QuoteItem(name="Newel post", cost="50", quantity="2")
        total = resolve_item_cost(item, Decimal("0"), Decimal("30"))
        assert total.markup_percentage == Decimal("30")
        assert total.final_total == Decimal("130")

    def test_zero_quantity_unit_price(self):
        item = QuoteItem(name="Spindle", cost="5", quantity="0")
        total = resolve_item_cost(item, Decimal("10"), Decimal("20"))
        assert total.unit_price == Decimal("0")
        assert total.final_total == Decimal("12")

    def test_unnamed_item(self):
        total = resolve_item_cost(QuoteItem(cost="1"), Decimal("0"), Decimal("0"))
        assert total.name == "Unnamed Item"

    def test_blank_numbers_read_as_zero(self):
        item = QuoteItem.model_validate({"name": "Misc", "cost": "", "quantity": "abc"})
        assert item.cost == Decimal("0")
        assert item.quantity == Decimal("0")


# ============================================================
# Quote aggregation
# ============================================================


class TestCalculateQuoteData:
    """Tests for full quote pricing."""

    def test_single_item_no_hidden_costs(self, config):
        items = [{"cost": 100, "quantity": 2, "markup": 20, "hideInQuote": False}]
        result = calculate_quote_data(items, [], config)

        item = result.item_totals[0]
        assert item.base_cost == Decimal("200")
        assert item.hidden_cost_share == Decimal("0")
        assert item.markup_amount == Decimal("40")
        assert item.final_total == Decimal("240")
        assert result.grand_total == Decimal("240")

    def test_single_item_with_hidden_cost(self, config):
        items = [{"cost": 100, "quantity": 2, "markup": 20, "hideInQuote": False}]
        result = calculate_quote_data(items, [{"amount": 100}], config)

        item = result.item_totals[0]
        assert item.hidden_cost_share == Decimal("100")
        assert item.cost_with_hidden == Decimal("300")
        assert item.markup_amount == Decimal("60")
        assert item.final_total == Decimal("360")

    def test_hidden_items_join_the_pool(self, config):
        items = [
            {"name": "Tread", "cost": 100, "quantity": 1},
            {"name": "Riser", "cost": 100, "quantity": 1},
            {"name": "Glue and screws", "cost": 30, "quantity": 1, "hideInQuote": True},
        ]
        result = calculate_quote_data(items, [{"name": "Delivery", "amount": 20}], config)

        assert result.visible_items_count == 2
        assert len(result.hidden_items) == 1
        assert result.hidden_items_cost == Decimal("30")
        assert result.manual_hidden_costs == Decimal("20")
        assert result.total_hidden_cost == Decimal("50")
        assert [t.hidden_cost_share for t in result.item_totals] == [Decimal("25"), Decimal("25")]

    def test_totals_are_sums_of_items(self, config):
        items = [
            {"name": "Tread", "cost": "12.5", "quantity": 13, "markup": 15},
            {"name": "Handrail", "cost": "89.99", "quantity": 1},
            {"name": "Fitting", "cost": "320", "quantity": 1, "category": "labour"},
        ]
        result = calculate_quote_data(items, [{"amount": "45"}], config)

        assert result.total_markup == sum(t.markup_amount for t in result.item_totals)
        assert result.grand_total == sum(t.final_total for t in result.item_totals)
        assert abs(
            sum(t.hidden_cost_share for t in result.item_totals) - result.total_hidden_cost
        ) < TOLERANCE

    def test_empty_quote(self, config):
        result = calculate_quote_data([], [], config)
        assert result.visible_items_count == 0
        assert result.visible_total == Decimal("0")
        assert result.grand_total == Decimal("0")
        assert result.profit_percentage == Decimal("0")
        assert result.item_totals == []

    def test_only_hidden_costs(self, config):
        result = calculate_quote_data(None, [{"amount": 100}], config)
        assert result.total_hidden_cost == Decimal("100")
        assert result.visible_total == Decimal("0")
        assert result.total_markup == Decimal("0")
        assert result.profit_percentage == Decimal("0")

    def test_profit_percentage(self, config):
        result = calculate_quote_data([{"cost": 100, "quantity": 1}], [], config)
        assert result.profit_percentage == Decimal("20")

    def test_vat_added(self):
        config = CalculationConfig(global_markup=Decimal("20"), vat_enabled=True, vat_rate=Decimal("20"))
        result = calculate_quote_data([{"cost": 100, "quantity": 2}], [], config)
        assert result.visible_total == Decimal("240")
        assert result.vat_amount == Decimal("48")
        assert result.grand_total == Decimal("288")

    def test_vat_included(self):
        config = CalculationConfig(
            global_markup=Decimal("20"), vat_enabled=True, vat_rate=Decimal("20"), vat_included=True
        )
        result = calculate_quote_data([{"cost": 100, "quantity": 2}], [], config)
        assert result.vat_amount == Decimal("40")
        assert result.grand_total == Decimal("240")


# ============================================================
# Config
# ============================================================


class TestCalculationConfig:
    """Tests for building calculator configs."""

    def _settings(self):
        return SimpleNamespace(
            default_global_markup=Decimal("25"),
            default_distribution_method="proportional",
            vat_enabled=True,
            vat_rate=Decimal("20"),
            cis_default_rate=Decimal("0.30"),
        )

    def test_from_settings(self):
        config = CalculationConfig.from_settings(self._settings())
        assert config.global_markup == Decimal("25")
        assert config.distribution_method == DistributionMethod.PROPORTIONAL
        assert config.cis_rate == Decimal("0.30")

    def test_none_overrides_are_ignored(self):
        config = CalculationConfig.from_settings(
            self._settings(), global_markup=None, vat_enabled=False
        )
        assert config.global_markup == Decimal("25")
        assert config.vat_enabled is False

    def test_quote_config_overlay(self):
        base = CalculationConfig.from_settings(self._settings())
        quote = SimpleNamespace(
            global_markup=Decimal("10"), distribution_method=None, vat_enabled=False, vat_rate=None
        )
        config = quote_config(quote, base)
        assert config.global_markup == Decimal("10")
        assert config.distribution_method == DistributionMethod.PROPORTIONAL
        assert config.vat_enabled is False


# ============================================================
# VAT and invoice totals
# ============================================================


class TestVat:
    """Tests for VAT helpers."""

    def test_vat_on_net(self):
        assert vat_on(Decimal("100"), Decimal("20")) == Decimal("20")

    def test_vat_on_gross(self):
        assert vat_on(Decimal("120"), Decimal("20"), included=True) == Decimal("20")

    def test_calculate_vat_disabled(self):
        result = calculate_vat(Decimal("500"), CalculationConfig(vat_enabled=False))
        assert result.vat_amount == Decimal("0")
        assert result.total == Decimal("500")

    def test_calculate_vat_enabled(self):
        result = calculate_vat(Decimal("500"), CalculationConfig(vat_enabled=True, vat_rate=Decimal("5")))
        assert result.vat_amount == Decimal("25")
        assert result.total == Decimal("525")


class TestInvoiceTotals:
    """Tests for the VAT before CIS ordering on invoices."""

    def test_plain_invoice_with_vat(self):
        totals = calculate_invoice_totals(
            InvoiceFinancials(amount=Decimal("1000")),
            CalculationConfig(vat_enabled=True, vat_rate=Decimal("20")),
        )
        assert totals.vat_amount == Decimal("200")
        assert totals.grand_total == Decimal("1200")

    def test_vat_on_gross_then_cis_deducted(self):
        invoice = InvoiceFinancials(
            amount=Decimal("800"),
            cis_applied=True,
            cis_deduction=Decimal("200"),
            original_gross_amount=Decimal("1000"),
            original_line_items_before_cis=[],
        )
        totals = calculate_invoice_totals(
            invoice, CalculationConfig(vat_enabled=True, vat_rate=Decimal("20"))
        )
        assert totals.subtotal == Decimal("800")
        assert totals.base_for_vat == Decimal("1000")
        assert totals.vat_amount == Decimal("200")
        assert totals.cis_deduction == Decimal("200")
        assert totals.grand_total == Decimal("1000")

    def test_cis_without_vat(self):
        invoice = InvoiceFinancials(
            amount=Decimal("800"),
            cis_applied=True,
            cis_deduction=Decimal("200"),
            original_gross_amount=Decimal("1000"),
        )
        totals = calculate_invoice_totals(invoice, CalculationConfig(vat_enabled=False))
        assert totals.vat_rate == Decimal("0")
        assert totals.grand_total == Decimal("800")

    def test_vat_included_is_not_added_again(self):
        totals = calculate_invoice_totals(
            InvoiceFinancials(amount=Decimal("1200")),
            CalculationConfig(vat_enabled=True, vat_rate=Decimal("20"), vat_included=True),
        )
        assert totals.vat_amount == Decimal("200")
        assert totals.grand_total == Decimal("1200")
