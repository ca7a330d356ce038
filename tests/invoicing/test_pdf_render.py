"""Tests for the invoice PDF renderer and the embedded UBL attachment."""

import io

import pikepdf

from invoicing.pdf import ATTACHMENT_NAME, render_invoice_pdf
from invoicing.ubl import build_ubl_xml


def test_pdf_without_attachment(make_document) -> None:
    pdf_bytes = render_invoice_pdf(make_document())

    assert pdf_bytes.startswith(b"%PDF")
    with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
        assert len(pdf.pages) == 1
        assert ATTACHMENT_NAME not in pdf.attachments


def test_pdf_embeds_ubl_xml(make_document) -> None:
    document = make_document()
    xml_bytes = build_ubl_xml(document)

    pdf_bytes = render_invoice_pdf(document, xml_bytes)

    with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
        assert ATTACHMENT_NAME in pdf.attachments
        assert pdf.attachments[ATTACHMENT_NAME].get_file().read_bytes() == xml_bytes


def test_page_rendering_is_deterministic(make_document) -> None:
    document = make_document()

    assert render_invoice_pdf(document) == render_invoice_pdf(document)
