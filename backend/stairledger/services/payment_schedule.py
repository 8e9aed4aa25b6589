"""
Payment schedule generator
Project: Stair Ledger

Maps a quote's payment terms code to its staged payments and correlates
the stages with the invoices raised against the quote.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from stairledger.schemas.invoice import InvoiceStatus
from stairledger.schemas.quote import PaymentStage, StageStatus
from stairledger.services.calculations import (
    CalculationConfig,
    calculate_quote_data,
    quote_config,
)

# (stage key, description, fraction of total, due when)
STAGE_TEMPLATES: dict[str, list[tuple[str, str, Decimal, str]]] = {
    "1": [
        ("deposit", "Deposit - 50%", Decimal("0.5"), "On order confirmation"),
        ("final", "Final Payment - 50%", Decimal("0.5"), "On completion of work"),
    ],
    "2": [
        ("deposit", "Deposit - 50%", Decimal("0.5"), "On order confirmation"),
        ("interim", "Interim Payment - 25%", Decimal("0.25"), "On completion of joinery"),
        ("final", "Final Payment - 25%", Decimal("0.25"), "On completion of work"),
    ],
    "3": [
        ("custom", "Payment - 100%", Decimal("1"), "As per custom terms"),
    ],
    "4": [
        ("full", "Full Payment - 100%", Decimal("1"), "Before delivery"),
    ],
}
STAGE_TEMPLATES["custom"] = STAGE_TEMPLATES["3"]


def quote_total(quote: Any, config: CalculationConfig) -> Decimal:
    """The quote's cached grand total, or a fresh calculation when missing."""
    cached = getattr(quote, "grand_total", None)
    if cached is not None:
        return Decimal(cached)
    calculation = calculate_quote_data(
        getattr(quote, "selected_items", None),
        getattr(quote, "hidden_costs", None),
        quote_config(quote, config),
    )
    return calculation.grand_total


def calculate_payment_schedule(quote: Any, config: CalculationConfig) -> list[PaymentStage]:
    """
    Staged payments for a quote.

    Unknown terms codes give an empty schedule.
    """
    if quote is None:
        return []

    terms = str(getattr(quote, "payment_terms", None) or "")
    template = STAGE_TEMPLATES.get(terms)
    if template is None:
        return []

    total = quote_total(quote, config)
    return [
        PaymentStage(
            stage=stage,
            description=description,
            percentage=fraction,
            amount=total * fraction,
            due_when=due_when,
        )
        for stage, description, fraction, due_when in template
    ]


def invoice_matches_stage(invoice: Any, stage: str) -> bool:
    """
    True when the invoice was raised for the given stage.

    Invoices carrying a payment_stage_id match on it exactly; older
    invoices without one fall back to finding the stage key in their
    description.
    """
    stage_id = getattr(invoice, "payment_stage_id", None)
    if stage_id:
        return stage_id == stage
    description = getattr(invoice, "description", None) or ""
    return stage.lower() in description.lower()


def stage_status(invoices: list[Any], today: date) -> StageStatus:
    if not invoices:
        return StageStatus.NOT_INVOICED
    if any(inv.status == InvoiceStatus.PAID for inv in invoices):
        return StageStatus.PAID
    if any(inv.due_date is not None and inv.due_date < today for inv in invoices):
        return StageStatus.OVERDUE
    return StageStatus.PENDING


def correlate_stage_invoices(
    schedule: list[PaymentStage],
    invoices: Iterable[Any],
    today: Optional[date] = None,
) -> list[PaymentStage]:
    """Attaches matching invoice ids and a derived status to each stage."""
    today = today or date.today()
    invoices = list(invoices)

    correlated = []
    for stage in schedule:
        matched = [inv for inv in invoices if invoice_matches_stage(inv, stage.stage)]
        correlated.append(
            stage.model_copy(
                update={
                    "status": stage_status(matched, today),
                    "invoice_ids": [inv.id for inv in matched],
                }
            )
        )
    return correlated


def next_stage_invoices(schedule: list[PaymentStage], current_stage: str) -> list[PaymentStage]:
    """
    Stages still to invoice once `current_stage` has been invoiced.

    An unknown stage leaves the whole schedule outstanding.
    """
    keys = [stage.stage for stage in schedule]
    if current_stage not in keys:
        return list(schedule)
    return schedule[keys.index(current_stage) + 1:]
