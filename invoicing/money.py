"""Money primitives for the calculation engine.

Amounts are ``Decimal`` values quantised to cents, with halves rounded
towards positive infinity (``2.675 -> 2.68``, ``-1.005 -> -1.00``).
Rounding is applied at defined checkpoints only; intermediate products and
quotients keep full precision.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_DOWN, ROUND_HALF_UP

DecimalLike = Decimal | str | int | float

ZERO = Decimal("0")
CENT = Decimal("0.01")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value: DecimalLike | None, default: Decimal = ZERO) -> Decimal:
    """Convert input deterministically into ``Decimal``.

    Floats are converted through ``str`` first so that ``0.1`` becomes
    ``Decimal("0.1")`` and not its binary approximation. ``None`` maps to
    ``default``.
    """

    if value is None:
        return default
    if isinstance(value, bool):
        raise TypeError(f"Unsupported decimal input: {type(value)!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, str, float)):
        return Decimal(str(value))
    raise TypeError(f"Unsupported decimal input: {type(value)!r}")


def round2(amount: DecimalLike) -> Decimal:
    """Round to cents, halves towards positive infinity."""

    value = to_decimal(amount)
    rounding = ROUND_HALF_UP if value >= ZERO else ROUND_HALF_DOWN
    result = value.quantize(CENT, rounding=rounding)
    # no negative zero
    return abs(result) if result == ZERO else result


def safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, returning the numerator unchanged for a zero denominator."""

    if denominator == ZERO:
        return numerator
    return numerator / denominator


def percent_to_rate(percent: DecimalLike) -> Decimal:
    return to_decimal(percent) / HUNDRED


def format_money(amount: DecimalLike) -> str:
    return f"{round2(amount):.2f}"
