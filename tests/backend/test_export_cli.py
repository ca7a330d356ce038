"""Tests for the invoice export CLI against a file-backed SQLite database."""

from decimal import Decimal

import pikepdf
import pytest

from backend.apps.invoices.customers import CustomerService
from backend.apps.invoices.schemas import InvoiceCreate
from backend.apps.invoices.service import InvoiceNotFoundError, InvoiceService
from backend.core.database import create_db_engine, init_db
from tools.invoicing.export import export_invoice, main


@pytest.fixture
def stored_invoice(database_file, clock):
    engine = create_db_engine(database_file)
    init_db(engine)
    customer = CustomerService(engine).create(name="Kunde GmbH")
    service = InvoiceService(engine, clock=clock)
    invoice = service.create_invoice(
        InvoiceCreate(
            customer_id=customer.id,
            tax_rate=Decimal("19"),
            items=[{"description": "Consulting", "hours": 3, "rate": 80}],
        )
    )
    service.publish_invoice(invoice.id)
    engine.dispose()
    return invoice.id


def test_export_ubl(tmp_path, database_file, stored_invoice) -> None:
    target = export_invoice(
        invoice_id=stored_invoice,
        dest_dir=tmp_path / "out",
        format_name="ubl",
        database_url=database_file,
    )

    assert target.suffix == ".xml"
    assert b"<cbc:TaxAmount currencyID=\"USD\">45.60</cbc:TaxAmount>" in target.read_bytes()


def test_export_pdf_via_main(tmp_path, database_file, stored_invoice, capsys) -> None:
    main(["--invoice-id", stored_invoice, "--dest", str(tmp_path / "out"), "--database-url", database_file])

    assert "Exported invoice to" in capsys.readouterr().out
    (pdf_path,) = (tmp_path / "out").glob("*.pdf")
    with pikepdf.open(pdf_path) as pdf:
        assert "invoice.xml" in pdf.attachments


def test_export_unknown_invoice(tmp_path, database_file) -> None:
    with pytest.raises(InvoiceNotFoundError):
        export_invoice(invoice_id="missing", dest_dir=tmp_path, database_url=database_file)
