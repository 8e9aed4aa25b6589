"""
Construction Industry Scheme (CIS) deduction calculator
Project: Stair Ledger

Pure state transitions for applying and undoing CIS withholding on an
invoice. Persistence (the invoice row and the linked CIS record) is the
invoice service's job.

State machine per invoice:

    NOT APPLIED --apply--> APPLIED --undo--> NOT APPLIED

Both transitions are guarded: applying twice or undoing when nothing was
applied returns the input untouched with an info notice.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, Optional

from stairledger.schemas.common import ItemCategory, LineItemKind, to_decimal
from stairledger.schemas.invoice import (
    CISCalculation,
    CISOutcome,
    InvoiceFinancials,
    InvoiceLineItem,
    NoticeSeverity,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
# Amounts at or below a penny are treated as nothing
PENNY = Decimal("0.01")

DEFAULT_CIS_RATE = Decimal("0.20")

# Used only for legacy items that carry no explicit kind
LABOUR_KEYWORDS = ("labour", "labor", "install", "fitting")

# Outcome codes
CIS_APPLIED = "CIS_APPLIED"
CIS_UNDONE = "CIS_UNDONE"
CIS_ALREADY_APPLIED = "CIS_ALREADY_APPLIED"
CIS_NOT_APPLIED = "CIS_NOT_APPLIED"
CIS_NON_POSITIVE_GROSS = "CIS_NON_POSITIVE_GROSS"
CIS_NO_LABOUR = "CIS_NO_LABOUR"


# ------------------------------------------------------------
# Classification
# ------------------------------------------------------------

def classify_legacy_item(item: Any) -> LineItemKind:
    """
    Keyword classifier for records created before lines carried a kind.

    Labour when the category is labour, the isLabour flag is set, or the
    name/description mentions labour, labor, install or fitting.
    """
    if getattr(item, "type", None) == "cis":
        return LineItemKind.CIS
    if getattr(item, "category", None) == ItemCategory.LABOUR or getattr(item, "is_labour", False):
        return LineItemKind.LABOUR

    text = " ".join(
        str(getattr(item, field, None) or "") for field in ("description", "name")
    ).lower()
    if any(keyword in text for keyword in LABOUR_KEYWORDS):
        return LineItemKind.LABOUR
    return LineItemKind.MATERIALS


def item_kind(item: Any) -> LineItemKind:
    """The explicit kind when present, the legacy classification otherwise."""
    kind = getattr(item, "kind", None)
    if kind is not None:
        return LineItemKind(kind)
    return classify_legacy_item(item)


def _unit_value(item: Any) -> Decimal:
    # Quote items price by `cost`, invoice lines by `amount`
    value = getattr(item, "cost", None)
    if value is None:
        value = getattr(item, "amount", None)
    return to_decimal(value)


def _line_value(item: Any) -> Decimal:
    return _unit_value(item) * to_decimal(getattr(item, "quantity", None), Decimal("1"))


def labour_amount_from_quote_items(items: Optional[Iterable[Any]]) -> Decimal:
    """Labour total of the quote an invoice was raised from."""
    return sum(
        (_line_value(item) for item in (items or []) if item_kind(item) == LineItemKind.LABOUR),
        ZERO,
    )


def labour_amount_from_line_items(items: Optional[Iterable[Any]]) -> Decimal:
    """
    Labour total of an invoice's own lines.

    Deduction lines and lines worth less than zero, whether by a negative
    amount or a negative quantity, are never labour.
    """
    total = ZERO
    for item in items or []:
        if item_kind(item) != LineItemKind.LABOUR:
            continue
        value = _line_value(item)
        if value < 0:
            continue
        total += value
    return total


# ------------------------------------------------------------
# Deduction
# ------------------------------------------------------------

def format_rate(rate: Decimal) -> str:
    """0.20 -> '20'"""
    return format((rate * HUNDRED).normalize(), "f")


def calculate_cis_deduction(
    invoice_total: Decimal,
    labour_total: Decimal,
    rate: Decimal = DEFAULT_CIS_RATE,
) -> CISCalculation:
    """
    Withholding on the labour portion of an invoice.

    Labour is clamped to the invoice total: it can never exceed the gross.
    """
    labour = max(min(labour_total, invoice_total), ZERO)
    cis_deduction = labour * rate
    return CISCalculation(
        invoice_total=invoice_total,
        labour_total=labour,
        non_labour_amount=invoice_total - labour,
        cis_deduction=cis_deduction,
        cis_rate=rate,
        final_total=invoice_total - cis_deduction,
    )


def _unchanged(state: InvoiceFinancials, code: str, notice: str, severity: NoticeSeverity) -> CISOutcome:
    return CISOutcome(state=state, changed=False, code=code, notice=notice, severity=severity)


def apply_cis(
    state: InvoiceFinancials,
    quote_items: Optional[Iterable[Any]] = None,
    rate: Decimal = DEFAULT_CIS_RATE,
) -> CISOutcome:
    """
    Applies CIS withholding to an invoice.

    Steps:
    1. Guard: already applied → info, no change
    2. Guard: gross amount <= 0 → warning, no change
    3. Labour = labour on the originating quote + labour on the invoice's
       own lines; guard labour <= 0.01 → warning, no change
    4. Clamp labour to the gross amount
    5. Replace the lines with materials, labour and the deduction line,
       keeping a snapshot of the previous lines for undo
    """
    if state.cis_applied:
        return _unchanged(
            state, CIS_ALREADY_APPLIED,
            "CIS has already been applied to this invoice", NoticeSeverity.INFO,
        )

    gross = state.amount
    if gross <= 0:
        return _unchanged(
            state, CIS_NON_POSITIVE_GROSS,
            "Invoice amount must be greater than zero to apply CIS", NoticeSeverity.WARNING,
        )

    quote_labour = labour_amount_from_quote_items(quote_items)
    manual_labour = labour_amount_from_line_items(state.line_items)
    total_labour = quote_labour + manual_labour

    if total_labour <= PENNY:
        return _unchanged(
            state, CIS_NO_LABOUR,
            "No labour items found on this invoice or its quote: CIS applies to labour only",
            NoticeSeverity.WARNING,
        )

    if total_labour > gross:
        logger.debug("Labour %s exceeds gross %s, clamping", total_labour, gross)
        total_labour = gross

    calculation = calculate_cis_deduction(gross, total_labour, rate)

    lines = []
    if calculation.non_labour_amount > PENNY:
        lines.append(InvoiceLineItem(
            id="cis-materials",
            description="Materials and other costs",
            amount=calculation.non_labour_amount,
            quantity=Decimal("1"),
            kind=LineItemKind.MATERIALS,
        ))
    if total_labour > PENNY:
        lines.append(InvoiceLineItem(
            id="cis-labour",
            description="Labour",
            amount=total_labour,
            quantity=Decimal("1"),
            kind=LineItemKind.LABOUR,
        ))
    lines.append(InvoiceLineItem(
        id="cis-deduction",
        description=f"CIS Deduction ({format_rate(rate)}%)",
        amount=-calculation.cis_deduction,
        quantity=Decimal("1"),
        kind=LineItemKind.CIS,
    ))

    new_state = state.model_copy(
        update={
            "amount": calculation.final_total,
            "line_items": lines,
            "cis_applied": True,
            "cis_deduction": calculation.cis_deduction,
            "labor_total": total_labour,
            "original_gross_amount": gross,
            "original_line_items_before_cis": [
                item.model_copy(deep=True) for item in state.line_items
            ],
        },
        deep=True,
    )

    return CISOutcome(
        state=new_state,
        changed=True,
        code=CIS_APPLIED,
        notice=(
            f"CIS deduction of £{calculation.cis_deduction.quantize(PENNY)} applied "
            f"to labour of £{total_labour.quantize(PENNY)}"
        ),
        severity=NoticeSeverity.SUCCESS,
        calculation=calculation,
    )


def undo_cis(state: InvoiceFinancials) -> CISOutcome:
    """
    Reverts a CIS application.

    Lines and amount come back from the snapshot; when a legacy record has
    no snapshot the current values are kept.
    """
    if not state.cis_applied:
        return _unchanged(
            state, CIS_NOT_APPLIED,
            "CIS has not been applied to this invoice", NoticeSeverity.INFO,
        )

    if state.original_line_items_before_cis is None:
        logger.warning("CIS undo without a line item snapshot: keeping current lines")
        lines = [item.model_copy(deep=True) for item in state.line_items]
    else:
        lines = [item.model_copy(deep=True) for item in state.original_line_items_before_cis]

    amount = state.original_gross_amount if state.original_gross_amount is not None else state.amount

    new_state = state.model_copy(
        update={
            "amount": amount,
            "line_items": lines,
            "cis_applied": False,
            "cis_deduction": ZERO,
            "labor_total": None,
            "original_gross_amount": None,
            "original_line_items_before_cis": None,
            "cis_record_id": None,
        },
        deep=True,
    )

    return CISOutcome(
        state=new_state,
        changed=True,
        code=CIS_UNDONE,
        notice="CIS deduction removed",
        severity=NoticeSeverity.SUCCESS,
    )


def cis_invariant_violations(state: InvoiceFinancials) -> list[str]:
    """Lists the ways a stored invoice breaks the CIS bookkeeping rules."""
    problems = []
    if state.cis_applied:
        if state.original_gross_amount is None:
            problems.append("original gross amount missing")
        elif abs(state.original_gross_amount - state.cis_deduction - state.amount) >= PENNY:
            problems.append("gross minus deduction does not match the net amount")
        if state.original_line_items_before_cis is None:
            problems.append("line item snapshot missing")
    else:
        if state.cis_deduction != 0:
            problems.append("deduction recorded while CIS is not applied")
        if state.original_line_items_before_cis is not None:
            problems.append("snapshot kept while CIS is not applied")
    return problems
