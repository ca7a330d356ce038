"""Tests for the invoice-level and per-line tax paths."""

from decimal import Decimal

from invoicing.discount import allocate_discount
from invoicing.dto import LineTax, RoundingMode
from invoicing.tax import clamp_percent, invoice_level_tax, per_line_tax

D = Decimal


def test_invoice_tax_added_on_top() -> None:
    grosses = [D("200")]
    allocation = allocate_discount(grosses, discount_amount=D("10"))

    result = invoice_level_tax(grosses, allocation, D("8.5"), False, RoundingMode.PER_LINE)

    assert result.tax_amount == D("16.15")
    assert result.total == D("206.15")
    assert result.lines[0].taxable == D("190.00")
    assert result.lines[0].taxes[0].amount == D("16.15")


def test_invoice_tax_extracted_from_inclusive_prices() -> None:
    grosses = [D("206.15")]
    allocation = allocate_discount(grosses)

    result = invoice_level_tax(grosses, allocation, D("8.5"), True, RoundingMode.PER_LINE)

    assert result.lines[0].taxable == D("190.00")
    assert result.tax_amount == D("16.15")
    assert result.total == D("206.15")


def test_rounding_mode_changes_the_cents() -> None:
    grosses = [D("0.05"), D("0.05"), D("0.05")]
    allocation = allocate_discount(grosses)

    per_line = invoice_level_tax(grosses, allocation, D("10"), False, RoundingMode.PER_LINE)
    once = invoice_level_tax(grosses, allocation, D("10"), False, RoundingMode.TOTAL)

    assert (per_line.tax_amount, per_line.total) == (D("0.03"), D("0.18"))
    assert (once.tax_amount, once.total) == (D("0.02"), D("0.17"))
    assert all(not line.taxes for line in once.lines)


def test_zero_tax_rate_with_inclusive_prices_keeps_amount() -> None:
    grosses = [D("50")]
    allocation = allocate_discount(grosses)

    result = invoice_level_tax(grosses, allocation, D("0"), True, RoundingMode.TOTAL)

    assert result.tax_amount == D("0.00")
    assert result.total == D("50.00")


def test_per_line_tax_builds_summary_per_percent() -> None:
    grosses = [D("100")]
    allocation = allocate_discount(grosses)

    result = per_line_tax(grosses, allocation, [(LineTax(D("20")), LineTax(D("5")))], False)

    assert [tax.amount for tax in result.lines[0].taxes] == [D("20.00"), D("5.00")]
    assert result.tax_amount == D("25.00")
    assert result.total == D("125.00")
    assert [(row.percent, row.taxable_amount, row.tax_amount) for row in result.summary] == [
        (D("5.00"), D("100.00"), D("5.00")),
        (D("20.00"), D("100.00"), D("20.00")),
    ]


def test_per_line_tax_extracts_combined_rate_when_inclusive() -> None:
    grosses = [D("119")]
    allocation = allocate_discount(grosses)

    result = per_line_tax(grosses, allocation, [(LineTax(D("19")),)], True)

    assert result.lines[0].taxable == D("100.00")
    assert result.tax_amount == D("19.00")
    assert result.total == D("119.00")


def test_per_line_tax_applies_discount_share_first() -> None:
    grosses = [D("100"), D("300")]
    allocation = allocate_discount(grosses, discount_amount=D("40"))
    taxes = [(LineTax(D("10")),), (LineTax(D("10")),)]

    result = per_line_tax(grosses, allocation, taxes, False)

    assert [line.taxable for line in result.lines] == [D("90.00"), D("270.00")]
    assert result.tax_amount == D("36.00")
    assert result.total == D("396.00")
    assert len(result.summary) == 1
    assert result.summary[0].taxable_amount == D("360.00")


def test_line_without_taxes_contributes_net_only() -> None:
    grosses = [D("100"), D("50")]
    allocation = allocate_discount(grosses)

    result = per_line_tax(grosses, allocation, [(LineTax(D("7")),), ()], False)

    assert result.tax_amount == D("7.00")
    assert result.total == D("157.00")
    assert [row.percent for row in result.summary] == [D("7.00")]


def test_negative_percent_is_clamped() -> None:
    assert clamp_percent(D("-5")) == D("0")

    grosses = [D("100")]
    result = per_line_tax(grosses, allocate_discount(grosses), [(LineTax(D("-5")),)], False)

    assert result.tax_amount == D("0.00")
    assert result.total == D("100.00")
