from decimal import Decimal

import pytest

from backend.apps.invoices.customers import CustomerService
from backend.apps.invoices.rate_modifiers import RateModifierService
from backend.apps.invoices.service import InvoiceService


@pytest.fixture
def tokens():
    issued = iter(f"share-token-{i}" for i in range(1, 1000))
    return lambda: next(issued)


@pytest.fixture
def invoice_service(engine, clock, tokens):
    return InvoiceService(engine, clock=clock, token_factory=tokens, base_url="https://billing.example/")


@pytest.fixture
def customer(engine):
    return CustomerService(engine).create(
        name="Kunde GmbH",
        email="billing@kunde.example",
        address="Hauptstr. 1",
        city="Berlin",
        postal_code="10115",
        country_code="de",
    )


@pytest.fixture
def holiday(engine):
    return RateModifierService(engine).create(name="Holiday", multiplier=Decimal("1.5"))
