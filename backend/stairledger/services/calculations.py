"""
Quote and invoice financial calculations
Project: Stair Ledger

Pure, synchronous functions: no database access, no settings lookups.
Every tunable arrives through a CalculationConfig resolved once at the
call boundary.

Amounts stay at full Decimal precision; rounding to pence happens only
when figures are exported or printed.
"""

from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from stairledger.schemas.invoice import InvoiceFinancials, InvoiceTotals, VatBreakdown
from stairledger.schemas.quote import (
    DistributionMethod,
    HiddenCost,
    ItemTotal,
    QuoteCalculation,
    QuoteItem,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class CalculationConfig(BaseModel):
    """
    Tunables for the calculators.

    `vat_rate` and `global_markup` are percentages, `cis_rate` is a
    fraction (0.20 = 20%).
    """

    model_config = ConfigDict(frozen=True)

    global_markup: Decimal = Field(Decimal("20"), ge=0)
    distribution_method: DistributionMethod = DistributionMethod.EVEN
    vat_enabled: bool = False
    vat_rate: Decimal = Field(Decimal("20"), ge=0, le=100)
    vat_included: bool = False
    cis_rate: Decimal = Field(Decimal("0.20"), ge=0, le=1)

    @classmethod
    def from_settings(cls, settings: Any, **overrides: Any) -> "CalculationConfig":
        """
        Builds a config from application settings.

        Overrides set to None are ignored, so callers can pass optional
        request fields straight through.
        """
        values = {
            "global_markup": settings.default_global_markup,
            "distribution_method": settings.default_distribution_method,
            "vat_enabled": settings.vat_enabled,
            "vat_rate": settings.vat_rate,
            "cis_rate": settings.cis_default_rate,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


ItemLike = Union[QuoteItem, Mapping[str, Any]]
HiddenCostLike = Union[HiddenCost, Mapping[str, Any]]


def _as_items(items: Optional[Iterable[ItemLike]]) -> list[QuoteItem]:
    return [
        item if isinstance(item, QuoteItem) else QuoteItem.model_validate(item)
        for item in (items or [])
    ]


def _as_hidden_costs(costs: Optional[Iterable[HiddenCostLike]]) -> list[HiddenCost]:
    return [
        cost if isinstance(cost, HiddenCost) else HiddenCost.model_validate(cost)
        for cost in (costs or [])
    ]


# ------------------------------------------------------------
# Hidden-cost distribution
# ------------------------------------------------------------

def distribute_hidden_costs(
    visible_base_costs: Sequence[Decimal],
    total_hidden_cost: Decimal,
    method: Union[DistributionMethod, str],
) -> list[Decimal]:
    """
    Splits the shared cost pool over visible items.

    - even: the same share for every visible item
    - proportional: shares weighted by each item's base cost

    No visible items, a zero base-cost sum or an unknown method all give
    zero shares rather than a division error.
    """
    count = len(visible_base_costs)
    if count == 0:
        return []

    try:
        method = DistributionMethod(method)
    except ValueError:
        return [ZERO] * count

    if method == DistributionMethod.EVEN:
        share = total_hidden_cost / Decimal(count)
        return [share] * count

    if method == DistributionMethod.PROPORTIONAL:
        base_sum = sum(visible_base_costs, ZERO)
        if base_sum == 0:
            return [ZERO] * count
        return [total_hidden_cost * (base / base_sum) for base in visible_base_costs]

    return [ZERO] * count


# ------------------------------------------------------------
# Item cost resolution
# ------------------------------------------------------------

def resolve_item_cost(
    item: QuoteItem,
    hidden_cost_share: Decimal,
    global_markup: Decimal,
) -> ItemTotal:
    """Prices one visible item: base cost, hidden share, markup, unit price."""
    quantity = item.quantity
    base_cost = item.cost * quantity
    markup_percentage = item.markup if item.markup is not None else global_markup

    cost_with_hidden = base_cost + hidden_cost_share
    markup_amount = cost_with_hidden * markup_percentage / HUNDRED
    final_total = cost_with_hidden + markup_amount
    unit_price = final_total / quantity if quantity > 0 else ZERO

    data = item.model_dump()
    data["name"] = item.name or "Unnamed Item"
    return ItemTotal(
        **data,
        base_cost=base_cost,
        hidden_cost_share=hidden_cost_share,
        cost_with_hidden=cost_with_hidden,
        markup_percentage=markup_percentage,
        markup_amount=markup_amount,
        final_total=final_total,
        unit_price=unit_price,
    )


# ------------------------------------------------------------
# VAT
# ------------------------------------------------------------

def vat_on(amount: Decimal, rate: Decimal, included: bool = False) -> Decimal:
    """
    VAT due on `amount` at `rate` percent.

    When the amount already includes VAT, returns the VAT contained in it.
    """
    if included:
        return amount * rate / (HUNDRED + rate)
    return amount * rate / HUNDRED


def calculate_vat(amount: Decimal, config: CalculationConfig) -> VatBreakdown:
    """VAT on a plain net amount (no CIS involved)."""
    if not config.vat_enabled:
        return VatBreakdown(subtotal=amount, vat_rate=ZERO, vat_amount=ZERO, total=amount)

    vat_amount = vat_on(amount, config.vat_rate)
    return VatBreakdown(
        subtotal=amount,
        vat_rate=config.vat_rate,
        vat_amount=vat_amount,
        total=amount + vat_amount,
    )


# ------------------------------------------------------------
# Quote aggregation
# ------------------------------------------------------------

def calculate_quote_data(
    selected_items: Optional[Iterable[ItemLike]],
    hidden_costs: Optional[Iterable[HiddenCostLike]],
    config: CalculationConfig,
) -> QuoteCalculation:
    """
    Computes the full pricing of a quote.

    Hidden items are not priced individually: their cost joins the manual
    hidden costs in the shared pool, which is then spread over the
    visible items with the configured distribution method.
    """
    items = _as_items(selected_items)
    costs = _as_hidden_costs(hidden_costs)

    visible_items = [item for item in items if not item.hide_in_quote]
    hidden_items = [item for item in items if item.hide_in_quote]

    visible_base_costs = [item.cost * item.quantity for item in visible_items]
    visible_base_cost = sum(visible_base_costs, ZERO)
    hidden_items_cost = sum((item.cost * item.quantity for item in hidden_items), ZERO)
    manual_hidden_costs = sum((cost.amount for cost in costs), ZERO)
    total_hidden_cost = manual_hidden_costs + hidden_items_cost

    shares = distribute_hidden_costs(
        visible_base_costs, total_hidden_cost, config.distribution_method
    )

    item_totals = [
        resolve_item_cost(item, share, config.global_markup)
        for item, share in zip(visible_items, shares)
    ]

    total_markup = sum((t.markup_amount for t in item_totals), ZERO)
    visible_total = sum((t.final_total for t in item_totals), ZERO)

    total_cost_before_markup = visible_base_cost + total_hidden_cost
    profit_percentage = (
        total_markup / total_cost_before_markup * HUNDRED
        if total_cost_before_markup != 0
        else ZERO
    )

    if config.vat_enabled:
        vat_amount = vat_on(visible_total, config.vat_rate, config.vat_included)
        grand_total = visible_total if config.vat_included else visible_total + vat_amount
    else:
        vat_amount = ZERO
        grand_total = visible_total

    return QuoteCalculation(
        visible_items=visible_items,
        hidden_items=hidden_items,
        visible_items_count=len(visible_items),
        visible_base_cost=visible_base_cost,
        hidden_items_cost=hidden_items_cost,
        manual_hidden_costs=manual_hidden_costs,
        total_hidden_cost=total_hidden_cost,
        total_markup=total_markup,
        visible_total=visible_total,
        vat_enabled=config.vat_enabled,
        vat_rate=config.vat_rate,
        vat_amount=vat_amount,
        grand_total=grand_total,
        profit_percentage=profit_percentage,
        item_totals=item_totals,
        distribution_method=config.distribution_method,
    )


def quote_config(quote: Any, config: CalculationConfig) -> CalculationConfig:
    """Overlays a stored quote's own pricing settings on a base config."""
    overrides = {
        "global_markup": getattr(quote, "global_markup", None),
        "distribution_method": getattr(quote, "distribution_method", None),
        "vat_enabled": getattr(quote, "vat_enabled", None),
        "vat_rate": getattr(quote, "vat_rate", None),
    }
    return config.model_copy(update={k: v for k, v in overrides.items() if v is not None})


# ------------------------------------------------------------
# Invoice totals
# ------------------------------------------------------------

def calculate_invoice_totals(
    invoice: InvoiceFinancials,
    config: CalculationConfig,
) -> InvoiceTotals:
    """
    Foot-of-invoice figures.

    VAT is always computed on the gross figure before CIS; the CIS
    deduction is subtracted after VAT has been added:

        grand_total = base_for_vat + vat_amount - cis_deduction
    """
    subtotal = invoice.amount
    base_for_vat = (
        invoice.original_gross_amount
        if invoice.cis_applied and invoice.original_gross_amount is not None
        else subtotal
    )
    cis_deduction = invoice.cis_deduction if invoice.cis_applied else ZERO

    if config.vat_enabled:
        vat_amount = vat_on(base_for_vat, config.vat_rate, config.vat_included)
        vat_added = ZERO if config.vat_included else vat_amount
    else:
        vat_amount = ZERO
        vat_added = ZERO

    grand_total = base_for_vat + vat_added - cis_deduction

    return InvoiceTotals(
        subtotal=subtotal,
        base_for_vat=base_for_vat,
        vat_enabled=config.vat_enabled,
        vat_included=config.vat_included,
        vat_rate=config.vat_rate if config.vat_enabled else ZERO,
        vat_amount=vat_amount,
        cis_deduction=cis_deduction,
        grand_total=grand_total,
    )
