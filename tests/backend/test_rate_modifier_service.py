"""Tests for rate modifier management and the single-default rule."""

from decimal import Decimal

import pytest

from backend.apps.invoices.rate_modifiers import (
    DefaultRateModifierError,
    RateModifierError,
    RateModifierInUseError,
    RateModifierNotFoundError,
    RateModifierService,
    load_modifier_resolver,
)
from backend.apps.invoices.repository import STANDARD_MODIFIER_ID
from backend.apps.invoices.schemas import InvoiceCreate


def test_standard_modifier_is_seeded_as_default(engine) -> None:
    service = RateModifierService(engine)

    default = service.get_default()

    assert default.id == STANDARD_MODIFIER_ID
    assert default.multiplier == Decimal("1.0")
    assert [m.id for m in service.list()] == [STANDARD_MODIFIER_ID]


def test_setting_a_new_default_clears_the_old_one(engine) -> None:
    service = RateModifierService(engine)

    night = service.create(name="Night", multiplier="1.25", is_default=True)

    assert service.get_default().id == night.id
    assert service.get(STANDARD_MODIFIER_ID).is_default is False
    assert sum(1 for m in service.list() if m.is_default) == 1


def test_default_cannot_be_unset_or_deleted(engine) -> None:
    service = RateModifierService(engine)

    with pytest.raises(DefaultRateModifierError):
        service.update(STANDARD_MODIFIER_ID, is_default=False)
    with pytest.raises(DefaultRateModifierError):
        service.delete(STANDARD_MODIFIER_ID)


def test_update_changes_multiplier(engine, holiday) -> None:
    service = RateModifierService(engine)

    updated = service.update(holiday.id, multiplier="2", description="Public holidays")

    assert updated.multiplier == Decimal("2")
    assert updated.name == "Holiday"
    assert updated.description == "Public holidays"


@pytest.mark.parametrize("name, multiplier", [("", "1.5"), ("Zero", "0"), ("Negative", "-1")])
def test_invalid_modifiers_are_rejected(engine, name, multiplier) -> None:
    with pytest.raises(RateModifierError):
        RateModifierService(engine).create(name=name, multiplier=multiplier)


def test_modifier_in_use_cannot_be_deleted(engine, holiday, customer, invoice_service) -> None:
    invoice_service.create_invoice(
        InvoiceCreate(
            customer_id=customer.id,
            items=[{"description": "Holiday shift", "hours": 2, "rate": 40, "rate_modifier_id": holiday.id}],
        )
    )

    with pytest.raises(RateModifierInUseError):
        RateModifierService(engine).delete(holiday.id)


def test_unused_modifier_is_deleted(engine, holiday) -> None:
    service = RateModifierService(engine)

    service.delete(holiday.id)

    with pytest.raises(RateModifierNotFoundError):
        service.get(holiday.id)


def test_resolver_snapshot(engine, holiday) -> None:
    with engine.begin() as conn:
        resolve = load_modifier_resolver(conn)

    assert resolve(holiday.id) == Decimal("1.5")
    assert resolve("missing") is None
