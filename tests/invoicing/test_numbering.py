"""Tests for invoice number allocation."""

from __future__ import annotations

from datetime import date

import pytest

from invoicing.numbering import (
    InvoiceNumberService,
    NumberingError,
    NumberingOptions,
    is_draft_number,
    next_invoice_number,
)


def _fixed_clock() -> date:
    return date(2026, 10, 19)


def _service() -> InvoiceNumberService:
    return InvoiceNumberService(clock=_fixed_clock, choice=lambda alphabet: alphabet[0])


def test_legacy_numbers_continue_the_yearly_sequence() -> None:
    existing = ["INV-2026-001", "INV-2026-007", "INV-2025-010", "DRAFT-ABCDEF"]

    assert _service().next_number(existing, NumberingOptions()) == "INV-2026-008"


def test_legacy_numbers_without_year_and_custom_padding() -> None:
    options = NumberingOptions(prefix="RE", include_year=False, padding=5)

    assert _service().next_number(["RE-00041", "RE-2026-099"], options) == "RE-00042"


def test_first_number_of_a_new_year() -> None:
    assert next_invoice_number(["INV-2025-123"], NumberingOptions(), today=date(2026, 1, 2)) == "INV-2026-001"


def test_pattern_sequence_uses_static_prefix() -> None:
    options = NumberingOptions(pattern="INV-{YYYY}{MM}-{SEQ}")

    number = _service().next_number(["INV-202610-004", "INV-202609-017"], options)

    assert number == "INV-202610-005"


def test_pattern_date_and_random_tokens() -> None:
    options = NumberingOptions(pattern="{YY}{DD}-{DATE}-{RAND4}")

    assert _service().next_number([], options) == "2619-20261019-AAAA"


def test_disabled_pattern_falls_back_to_legacy() -> None:
    options = NumberingOptions(pattern="X-{SEQ}", enabled=False)

    assert not options.uses_pattern
    assert _service().next_number([], options) == "INV-2026-001"


def test_options_from_settings() -> None:
    options = NumberingOptions.from_settings(
        {
            "invoicePrefix": " ACME ",
            "invoiceIncludeYear": "false",
            "invoiceNumberPadding": "12",
            "invoiceNumberPattern": "ACME-{SEQ}",
        }
    )

    assert options.prefix == "ACME"
    assert options.include_year is False
    assert options.padding == 3
    assert options.allocates_sequence_on_create


def test_options_without_seq_do_not_allocate_on_create() -> None:
    assert not NumberingOptions.from_settings({"invoiceNumberPattern": "{DATE}-{RAND4}"}).allocates_sequence_on_create
    assert not NumberingOptions.from_settings({}).allocates_sequence_on_create


def test_invalid_padding_is_rejected() -> None:
    with pytest.raises(NumberingError):
        _service().next_number([], NumberingOptions(padding=1))


def test_draft_numbers() -> None:
    number = _service().draft_number()

    assert number == "DRAFT-AAAAAA"
    assert is_draft_number(number)
    assert not is_draft_number("INV-2026-001")
    assert not is_draft_number(None)
