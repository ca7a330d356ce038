"""Tax resolution for the two tax modes.

``invoice_level_tax`` applies one rate to every line and honours the rounding
mode. ``per_line_tax`` applies each line's own percents and is always rounded
per line.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Sequence, Tuple

from .discount import DiscountAllocation
from .dto import (
    LineBreakdown,
    LineTax,
    LineTaxAmount,
    RoundingMode,
    TaxSummaryRow,
)
from .money import ONE, ZERO, DecimalLike, percent_to_rate, round2, safe_divide, to_decimal


@dataclass(slots=True)
class TaxResult:
    tax_amount: Decimal
    total: Decimal
    lines: List[LineBreakdown] = field(default_factory=list)
    summary: List[TaxSummaryRow] = field(default_factory=list)


def clamp_percent(percent: DecimalLike | None) -> Decimal:
    return max(to_decimal(percent), ZERO)


def _after_discount(gross: Decimal, share: Decimal) -> Decimal:
    return max(ZERO, gross - share)


def _extract_or_add(amount: Decimal, rate: Decimal, prices_include_tax: bool) -> Tuple[Decimal, Decimal]:
    """Return ``(net, tax)`` for ``amount`` at ``rate``, both unrounded."""

    if prices_include_tax:
        net = safe_divide(amount, ONE + rate) if rate > ZERO else amount
        return net, amount - net
    return amount, amount * rate


def invoice_level_tax(
    grosses: Sequence[Decimal],
    allocation: DiscountAllocation,
    tax_rate: DecimalLike | None,
    prices_include_tax: bool,
    rounding_mode: RoundingMode,
) -> TaxResult:
    percent = clamp_percent(tax_rate)
    rate = percent_to_rate(percent)
    lines: List[LineBreakdown] = []

    if rounding_mode is RoundingMode.PER_LINE and allocation.subtotal > ZERO:
        sum_tax = ZERO
        sum_total = ZERO
        for gross, share in zip(grosses, allocation.shares):
            after = _after_discount(gross, share)
            net, tax = _extract_or_add(after, rate, prices_include_tax)
            line_tax = round2(tax)
            sum_tax += line_tax
            if prices_include_tax:
                sum_total += round2(after)
            else:
                sum_total += round2(after + line_tax)
            lines.append(
                LineBreakdown(
                    gross=gross,
                    discount=share,
                    taxable=round2(net),
                    taxes=[LineTaxAmount(percent=percent, amount=line_tax)],
                )
            )
        return TaxResult(tax_amount=round2(sum_tax), total=round2(sum_total), lines=lines)

    # one extraction/add-on over the discounted subtotal, rounded once
    after = allocation.subtotal - allocation.discount_amount
    net, tax = _extract_or_add(after, rate, prices_include_tax)
    tax_amount = round2(tax)
    if prices_include_tax:
        total = round2(after)
    else:
        total = round2(after + tax_amount)
    for gross, share in zip(grosses, allocation.shares):
        line_net, _ = _extract_or_add(_after_discount(gross, share), rate, prices_include_tax)
        lines.append(LineBreakdown(gross=gross, discount=share, taxable=round2(line_net)))
    return TaxResult(tax_amount=tax_amount, total=total, lines=lines)


def per_line_tax(
    grosses: Sequence[Decimal],
    allocation: DiscountAllocation,
    line_taxes: Sequence[Sequence[LineTax]],
    prices_include_tax: bool,
) -> TaxResult:
    """Apply each line's own tax percents and build the per-rate summary.

    Accumulators are rounded to cents at every step, both in the summary map
    and in the invoice total.
    """

    summary: Dict[Decimal, Tuple[Decimal, Decimal]] = {}
    lines: List[LineBreakdown] = []
    tax_amount = ZERO
    total = ZERO

    for gross, share, taxes in zip(grosses, allocation.shares, line_taxes):
        after = _after_discount(gross, share)
        percents = [clamp_percent(tax.percent) for tax in taxes]
        rate_sum = sum((percent_to_rate(p) for p in percents), ZERO)
        net = after
        if prices_include_tax and rate_sum > ZERO:
            net = safe_divide(after, ONE + rate_sum)

        amounts: List[LineTaxAmount] = []
        for tax, percent in zip(taxes, percents):
            amount = round2(net * percent_to_rate(percent))
            key = round2(percent)
            taxable_acc, amount_acc = summary.get(key, (ZERO, ZERO))
            summary[key] = (round2(taxable_acc + net), round2(amount_acc + amount))
            amounts.append(LineTaxAmount(percent=percent, amount=amount, note=tax.note, code=tax.code))

        item_tax = round2(sum((entry.amount for entry in amounts), ZERO))
        tax_amount = round2(tax_amount + item_tax)
        if prices_include_tax:
            total = round2(total + after)
        else:
            total = round2(total + net + item_tax)
        lines.append(LineBreakdown(gross=gross, discount=share, taxable=round2(net), taxes=amounts))

    rows = [
        TaxSummaryRow(percent=percent, taxable_amount=taxable, tax_amount=amount)
        for percent, (taxable, amount) in sorted(summary.items())
    ]
    return TaxResult(tax_amount=tax_amount, total=total, lines=lines, summary=rows)
