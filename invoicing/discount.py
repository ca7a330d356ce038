"""Invoice-level discount resolution and proportional allocation to lines."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Sequence

from .money import HUNDRED, ZERO, DecimalLike, round2, to_decimal


@dataclass(frozen=True, slots=True)
class DiscountAllocation:
    subtotal: Decimal
    discount_amount: Decimal
    shares: List[Decimal]


def resolve_discount(
    subtotal: Decimal,
    discount_percentage: DecimalLike | None,
    discount_amount: DecimalLike | None,
) -> Decimal:
    """A positive percentage wins over the flat amount; result is clamped to [0, subtotal]."""

    percentage = to_decimal(discount_percentage)
    amount = to_decimal(discount_amount)
    if percentage > ZERO:
        amount = subtotal * (percentage / HUNDRED)
    return min(max(amount, ZERO), subtotal)


def allocate_discount(
    grosses: Sequence[Decimal],
    discount_percentage: DecimalLike | None = None,
    discount_amount: DecimalLike | None = None,
) -> DiscountAllocation:
    """Split the invoice discount across lines in proportion to their gross.

    Every share is rounded to cents and the last line with a non-zero gross
    takes the remainder, so the shares sum to ``round2(discount)`` exactly.
    Lines after it (zero gross) get no discount. When no gross is negative,
    rounding up early shares never pushes the running total past
    ``round2(discount)``, so no share turns negative.
    """

    subtotal = sum(grosses, ZERO)
    final_discount = resolve_discount(subtotal, discount_percentage, discount_amount)

    shares: List[Decimal] = []
    if subtotal == ZERO:
        shares = [ZERO for _ in grosses]
        return DiscountAllocation(subtotal, final_discount, shares)

    target = round2(final_discount)
    capped = all(gross >= ZERO for gross in grosses)
    remainder_index = max(index for index, gross in enumerate(grosses) if gross != ZERO)
    distributed = ZERO
    for index, gross in enumerate(grosses):
        if index > remainder_index:
            shares.append(ZERO)
            continue
        if index == remainder_index:
            share = target - distributed
        else:
            share = round2(final_discount * (gross / subtotal))
            if capped:
                share = min(share, target - distributed)
        distributed += share
        shares.append(share)
    return DiscountAllocation(subtotal, final_discount, shares)
