"""Tests for discount resolution and proportional allocation."""

from decimal import Decimal

import pytest

from invoicing.discount import allocate_discount, resolve_discount
from invoicing.money import round2

D = Decimal


def test_flat_discount_is_split_proportionally() -> None:
    allocation = allocate_discount([D("100"), D("300")], discount_amount=D("40"))

    assert allocation.subtotal == D("400")
    assert allocation.discount_amount == D("40")
    assert allocation.shares == [D("10.00"), D("30.00")]


def test_percentage_wins_over_flat_amount() -> None:
    assert resolve_discount(D("200"), D("10"), D("50")) == D("20.0")


def test_zero_percentage_uses_flat_amount() -> None:
    assert resolve_discount(D("200"), D("0"), D("50")) == D("50")


def test_discount_is_clamped_to_subtotal_and_zero() -> None:
    assert resolve_discount(D("100"), None, D("500")) == D("100")
    assert resolve_discount(D("100"), None, D("-5")) == D("0")


def test_last_line_absorbs_rounding_remainder() -> None:
    allocation = allocate_discount([D("1"), D("1"), D("1")], discount_amount=D("1"))

    assert allocation.shares == [D("0.33"), D("0.33"), D("0.34")]
    assert sum(allocation.shares) == D("1.00")


def test_zero_subtotal_gives_zero_shares() -> None:
    allocation = allocate_discount([D("0"), D("0")], discount_amount=D("10"))

    assert allocation.discount_amount == D("0")
    assert allocation.shares == [D("0"), D("0")]


def test_empty_invoice_has_no_shares() -> None:
    allocation = allocate_discount([], discount_percentage=D("10"))

    assert allocation.subtotal == D("0")
    assert allocation.shares == []


def test_trailing_zero_line_gets_no_share() -> None:
    allocation = allocate_discount([D("380.97"), D("0")], discount_percentage=D("50"))

    assert allocation.discount_amount == D("190.485")
    assert allocation.shares == [D("190.49"), D("0")]
    assert sum(allocation.shares) == D("190.49")


def test_rounded_up_shares_never_overshoot_the_discount() -> None:
    grosses = [D("0.01")] * 5 + [D("0")]

    allocation = allocate_discount(grosses, discount_percentage=D("50"))

    assert allocation.shares == [D("0.01"), D("0.01"), D("0.01"), D("0"), D("0"), D("0")]
    assert sum(allocation.shares) == D("0.03")


def test_negative_lines_keep_proportional_shares() -> None:
    allocation = allocate_discount([D("100"), D("50"), D("-50")], discount_percentage=D("10"))

    assert allocation.shares == [D("10.00"), D("5.00"), D("-5.00")]


@pytest.mark.parametrize(
    "grosses, percentage, amount",
    [
        (["380.97", "0"], "50", None),
        (["0", "12.345", "0", "7.005", "0"], "33.3", None),
        (["0.01", "0.01", "0.01", "0.01", "0.01", "0"], "50", None),
        (["1.005", "2.0049", "3.3333"], None, "3.33"),
        (["99.999", "0.001"], "12.5", None),
        (["0.3333", "0.3333", "0.3334"], None, "1"),
        (["1000", "0.004", "0.004"], "50", None),
        (["19.99", "0"], None, "100"),
        (["0.005", "0.005", "0.005", "0"], "100", None),
    ],
)
def test_shares_sum_to_rounded_discount_and_stay_non_negative(grosses, percentage, amount) -> None:
    values = [D(gross) for gross in grosses]

    allocation = allocate_discount(values, discount_percentage=percentage, discount_amount=amount)

    assert sum(allocation.shares) == round2(allocation.discount_amount)
    assert all(share >= 0 for share in allocation.shares)
    assert all(share == 0 for gross, share in zip(values, allocation.shares) if gross == 0)
