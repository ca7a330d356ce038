"""One-page invoice PDF (ReportLab) with optional embedded UBL (pikepdf)."""

from __future__ import annotations

import io
from typing import List, Optional

import pikepdf
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from .document import InvoiceDocument, Party
from .money import format_money

PDF_PRODUCER = "time-invoicing PDF renderer"
ATTACHMENT_NAME = "invoice.xml"

_LEFT = 50
_RIGHT = 545
_LINE_HEIGHT = 14
_BOTTOM_MARGIN = 60


def _party_lines(party: Party) -> List[str]:
    lines = [party.name]
    if party.street:
        lines.append(party.street)
    city = " ".join(part for part in (party.postal_code, party.city) if part)
    if city:
        lines.append(city)
    if party.country_code:
        lines.append(party.country_code)
    if party.tax_id:
        lines.append(f"Tax ID: {party.tax_id}")
    return lines


def _draw_block(pdf: canvas.Canvas, x: int, y: float, lines: List[str]) -> float:
    for text in lines:
        pdf.drawString(x, y, text)
        y -= _LINE_HEIGHT
    return y


def _draw_amount_row(pdf: canvas.Canvas, y: float, label: str, amount: str) -> float:
    pdf.drawString(360, y, label)
    pdf.drawRightString(_RIGHT, y, amount)
    return y - _LINE_HEIGHT


def _render_pages(document: InvoiceDocument) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4, invariant=1)
    pdf.setTitle(f"Invoice {document.invoice_number}")
    pdf.setCreator(PDF_PRODUCER)
    pdf.setProducer(PDF_PRODUCER)
    pdf.setAuthor(document.supplier.name)

    _, height = A4
    y = height - 60
    pdf.setFont("Helvetica-Bold", 16)
    pdf.drawString(_LEFT, y, f"Invoice {document.invoice_number}")
    pdf.setFont("Helvetica", 10)
    y -= 2 * _LINE_HEIGHT

    header = [f"Issue date: {document.issue_date.isoformat()}"]
    if document.due_date:
        header.append(f"Due date: {document.due_date.isoformat()}")
    header.append(f"Currency: {document.currency}")
    _draw_block(pdf, 360, y, header)
    y = _draw_block(pdf, _LEFT, y, _party_lines(document.supplier))
    y -= _LINE_HEIGHT
    pdf.drawString(_LEFT, y, "Bill to:")
    y = _draw_block(pdf, _LEFT, y - _LINE_HEIGHT, _party_lines(document.customer))
    y -= _LINE_HEIGHT

    pdf.setFont("Helvetica-Bold", 10)
    pdf.drawString(_LEFT, y, "Description")
    pdf.drawRightString(380, y, "Qty")
    pdf.drawRightString(460, y, "Price")
    pdf.drawRightString(_RIGHT, y, "Amount")
    pdf.setFont("Helvetica", 10)
    y -= _LINE_HEIGHT

    for line in document.lines:
        if y < _BOTTOM_MARGIN + 6 * _LINE_HEIGHT:
            pdf.showPage()
            pdf.setFont("Helvetica", 10)
            y = height - 60
        pdf.drawString(_LEFT, y, line.description[:60])
        pdf.drawRightString(380, y, format(line.quantity.normalize(), "f"))
        pdf.drawRightString(460, y, format_money(line.unit_price))
        pdf.drawRightString(_RIGHT, y, format_money(line.line_total))
        y -= _LINE_HEIGHT

    y -= _LINE_HEIGHT
    totals = document.totals
    y = _draw_amount_row(pdf, y, "Subtotal", format_money(totals.subtotal))
    if totals.discount_amount:
        y = _draw_amount_row(pdf, y, "Discount", f"-{format_money(totals.discount_amount)}")
    for percent, _, tax in document.tax_subtotals():
        y = _draw_amount_row(pdf, y, f"Tax {format_money(percent)}%", format_money(tax))
    pdf.setFont("Helvetica-Bold", 10)
    y = _draw_amount_row(pdf, y, "Total", f"{format_money(totals.total)} {document.currency}")
    pdf.setFont("Helvetica", 10)

    if document.payment_terms:
        y -= _LINE_HEIGHT
        pdf.drawString(_LEFT, y, document.payment_terms)
    if document.notes:
        pdf.drawString(_LEFT, y - _LINE_HEIGHT, document.notes[:90])

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def attach_xml(pdf_bytes: bytes, xml_bytes: bytes, *, name: str = ATTACHMENT_NAME) -> bytes:
    """Embed ``xml_bytes`` as a file attachment and return the new PDF."""

    with pikepdf.Pdf.open(io.BytesIO(pdf_bytes)) as pdf:
        pdf.attachments[name] = pikepdf.AttachedFileSpec(
            pdf,
            xml_bytes,
            filename=name,
            mime_type="application/xml",
            description="UBL invoice",
        )
        out = io.BytesIO()
        pdf.save(out, deterministic_id=True)
    return out.getvalue()


def render_invoice_pdf(document: InvoiceDocument, xml_bytes: Optional[bytes] = None) -> bytes:
    pdf_bytes = _render_pages(document)
    if xml_bytes is None:
        return pdf_bytes
    return attach_xml(pdf_bytes, xml_bytes)
