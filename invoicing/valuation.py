"""Line item valuation: time-based formula or legacy quantity x unit price."""

from __future__ import annotations

from decimal import Decimal
from typing import Callable, Mapping, Optional

from .dto import LineItemInput, LineValuation, Quantity, TimeBased
from .money import ZERO, DecimalLike, round2, to_decimal

DEFAULT_MULTIPLIER = Decimal("1.0")
DEFAULT_MILEAGE_RATE = Decimal("0.70")

ModifierResolver = Callable[[str], Optional[DecimalLike]]


def resolver_from_mapping(multipliers: Mapping[str, DecimalLike]) -> ModifierResolver:
    """Wrap an ``id -> multiplier`` snapshot as a resolver."""

    return multipliers.get


def resolve_multiplier(
    rate_modifier_id: Optional[str],
    resolve_modifier: Optional[ModifierResolver],
) -> Decimal:
    """Look up a multiplier; anything unresolvable counts as 1.0.

    Issued invoices may reference modifiers that were deleted since, so an
    unknown id is never an error. A stored multiplier of zero is treated as
    unset as well.
    """

    if not rate_modifier_id or resolve_modifier is None:
        return DEFAULT_MULTIPLIER
    multiplier = resolve_modifier(rate_modifier_id)
    if multiplier is None:
        return DEFAULT_MULTIPLIER
    multiplier = to_decimal(multiplier)
    if multiplier == ZERO:
        return DEFAULT_MULTIPLIER
    return multiplier


def value_line(
    valuation: LineValuation,
    resolve_modifier: Optional[ModifierResolver] = None,
    mileage_rate: Optional[DecimalLike] = None,
) -> Decimal:
    if isinstance(valuation, TimeBased):
        multiplier = resolve_multiplier(valuation.rate_modifier_id, resolve_modifier)
        mileage = to_decimal(mileage_rate, DEFAULT_MILEAGE_RATE)
        base_pay = valuation.rate * valuation.hours * multiplier
        return round2(base_pay + valuation.distance * mileage)
    if isinstance(valuation, Quantity):
        # rounding is deferred to the aggregation step
        return valuation.quantity * valuation.unit_price
    raise TypeError(f"Unsupported line valuation: {type(valuation)!r}")


def compute_line_gross(
    item: LineItemInput,
    resolve_modifier: Optional[ModifierResolver] = None,
    mileage_rate: Optional[DecimalLike] = None,
) -> Decimal:
    """Return the pre-discount, pre-tax amount of one line."""

    return value_line(item.valuation(), resolve_modifier, mileage_rate)
