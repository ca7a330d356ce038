from datetime import date
from decimal import Decimal

import pytest

from invoicing.document import DocumentLine, InvoiceDocument, Party
from invoicing.dto import LineItemInput, LineTax, TaxMode, make_config
from invoicing.totals import compute_invoice_totals

D = Decimal


def build_document(*, tax_mode=TaxMode.INVOICE, number="INV-2026-001") -> InvoiceDocument:
    line_taxes = (LineTax(D("19")),) if tax_mode is TaxMode.LINE else ()
    items = [
        LineItemInput(description="Consulting & review", hours=4, rate=95, taxes=line_taxes),
        LineItemInput(description="Travel <km>", quantity=1, unit_price="42.10"),
    ]
    totals = compute_invoice_totals(
        items, make_config(discount_amount=D("10"), tax_rate=D("19"), tax_mode=tax_mode)
    )
    return InvoiceDocument(
        invoice_number=number,
        issue_date=date(2026, 3, 1),
        due_date=date(2026, 3, 31),
        currency="EUR",
        supplier=Party(name="Studio Nord", city="Hamburg", country_code="DE", tax_id="DE123456789"),
        customer=Party(name="Kunde GmbH", street="Hauptstr. 1", postal_code="10115", city="Berlin"),
        totals=totals,
        tax_rate=D("19") if tax_mode is TaxMode.INVOICE else D("0"),
        payment_terms="Due in 30 days",
        lines=[
            DocumentLine(
                description=items[0].description,
                quantity=D("4"),
                unit_price=D("95"),
                line_total=totals.lines[0].gross,
                unit_code="HUR",
                taxes=line_taxes,
            ),
            DocumentLine(
                description=items[1].description,
                quantity=D("1"),
                unit_price=D("42.10"),
                line_total=totals.lines[1].gross,
            ),
        ],
    )


@pytest.fixture
def make_document():
    """Factory for a two-line invoice document (hours line plus a flat expense)."""
    return build_document
