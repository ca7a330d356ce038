"""Tests for line valuation (time-based and legacy quantity lines)."""

from decimal import Decimal

import pytest

from invoicing.dto import LineItemInput, Quantity, TimeBased
from invoicing.valuation import (
    compute_line_gross,
    resolve_multiplier,
    resolver_from_mapping,
    value_line,
)

MODIFIERS = resolver_from_mapping({"holiday": Decimal("1.5"), "broken": Decimal("0")})


def test_time_based_line_with_modifier_and_mileage() -> None:
    item = LineItemInput(
        description="Holiday shift",
        hours=2.5,
        rate=50,
        rate_modifier_id="holiday",
        distance=30,
    )

    gross = compute_line_gross(item, MODIFIERS, Decimal("0.70"))

    assert gross == Decimal("208.50")


def test_time_based_gross_is_rounded_to_cents() -> None:
    item = LineItemInput(description="Odd rate", hours="1.333", rate="10")

    assert compute_line_gross(item) == Decimal("13.33")


@pytest.mark.parametrize("modifier_id", [None, "", "deleted-modifier", "broken"])
def test_unresolvable_multiplier_counts_as_one(modifier_id) -> None:
    assert resolve_multiplier(modifier_id, MODIFIERS) == Decimal("1.0")

    item = LineItemInput(description="Work", hours=2, rate=50, rate_modifier_id=modifier_id)
    assert compute_line_gross(item, MODIFIERS) == Decimal("100.00")


def test_missing_resolver_counts_as_one() -> None:
    assert resolve_multiplier("holiday", None) == Decimal("1.0")


def test_mileage_rate_defaults_only_when_absent() -> None:
    item = LineItemInput(description="Drive", hours=1, rate=0, distance=10)

    assert compute_line_gross(item) == Decimal("7.00")
    assert compute_line_gross(item, mileage_rate=Decimal("0")) == Decimal("0.00")
    assert compute_line_gross(item, mileage_rate="0.30") == Decimal("3.00")


def test_legacy_line_is_not_rounded() -> None:
    item = LineItemInput(description="Widgets", quantity=3, unit_price="0.3333")

    assert compute_line_gross(item) == Decimal("0.9999")


def test_zero_hours_fall_back_to_quantity_pricing() -> None:
    item = LineItemInput(description="Flat fee", hours=0, rate=99, quantity=2, unit_price=25)

    assert not item.is_time_based
    assert item.valuation() == Quantity(quantity=Decimal("2"), unit_price=Decimal("25"))
    assert compute_line_gross(item) == Decimal("50")


def test_empty_line_values_to_zero() -> None:
    assert compute_line_gross(LineItemInput(description="Nothing")) == Decimal("0")


def test_value_line_rejects_unknown_valuation() -> None:
    with pytest.raises(TypeError):
        value_line(object())


def test_time_based_valuation_carries_modifier() -> None:
    item = LineItemInput(description="Night", hours=3, rate=40, rate_modifier_id="holiday")

    valuation = item.valuation()

    assert isinstance(valuation, TimeBased)
    assert valuation.rate_modifier_id == "holiday"
    assert valuation.distance == Decimal("0")
