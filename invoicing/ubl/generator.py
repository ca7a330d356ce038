"""UBL 2.1 invoice rendering for stored invoices."""

from __future__ import annotations

import textwrap
from decimal import Decimal
from html import escape
from typing import Optional

from invoicing.document import DocumentLine, InvoiceDocument, Party
from invoicing.dto import TaxMode
from invoicing.money import format_money

UBL_CUSTOMIZATION_ID = "urn:cen.eu:en16931:2017"
UBL_PROFILE_ID = "urn:fdc:peppol.eu:2017:poacc:billing:01:1.0"
GENERATOR_VERSION = "invoicing-ubl-1"


def version() -> str:
    return GENERATOR_VERSION


def _format_quantity(value: Decimal) -> str:
    normalized = value.normalize()
    return format(normalized, "f")


def _text(value: Optional[str]) -> str:
    return escape(value or "")


def _render_party(party: Party) -> str:
    return textwrap.dedent(
        f"""
        <cac:Party>
          <cac:PartyName>
            <cbc:Name>{_text(party.name)}</cbc:Name>
          </cac:PartyName>
          <cac:PostalAddress>
            <cbc:StreetName>{_text(party.street)}</cbc:StreetName>
            <cbc:CityName>{_text(party.city)}</cbc:CityName>
            <cbc:PostalZone>{_text(party.postal_code)}</cbc:PostalZone>
            <cac:Country>
              <cbc:IdentificationCode>{_text(party.country_code)}</cbc:IdentificationCode>
            </cac:Country>
          </cac:PostalAddress>
          <cac:PartyTaxScheme>
            <cbc:CompanyID>{_text(party.tax_id)}</cbc:CompanyID>
          </cac:PartyTaxScheme>
          <cac:PartyLegalEntity>
            <cbc:RegistrationName>{_text(party.name)}</cbc:RegistrationName>
          </cac:PartyLegalEntity>
        </cac:Party>
        """
    ).strip()


def _line_tax(document: InvoiceDocument, line: DocumentLine) -> tuple[str, Decimal]:
    if document.totals.tax_mode is TaxMode.LINE:
        if line.taxes:
            tax = line.taxes[0]
            return tax.code or "S", tax.percent
        return "Z", Decimal("0")
    return "S", document.tax_rate


def _render_invoice_line(index: int, document: InvoiceDocument, line: DocumentLine) -> str:
    currency = escape(document.currency)
    category, percent = _line_tax(document, line)
    return textwrap.dedent(
        f"""
        <cac:InvoiceLine>
          <cbc:ID>{index}</cbc:ID>
          <cbc:InvoicedQuantity unitCode="{escape(line.unit_code)}">{_format_quantity(line.quantity)}</cbc:InvoicedQuantity>
          <cbc:LineExtensionAmount currencyID="{currency}">{format_money(line.line_total)}</cbc:LineExtensionAmount>
          <cac:Item>
            <cbc:Description>{escape(line.description)}</cbc:Description>
            <cac:ClassifiedTaxCategory>
              <cbc:ID>{escape(category)}</cbc:ID>
              <cbc:Percent>{format_money(percent)}</cbc:Percent>
            </cac:ClassifiedTaxCategory>
          </cac:Item>
          <cac:Price>
            <cbc:PriceAmount currencyID="{currency}">{format_money(line.unit_price)}</cbc:PriceAmount>
          </cac:Price>
        </cac:InvoiceLine>
        """
    ).strip()


def _render_tax_subtotal(currency: str, percent: Decimal, taxable: Decimal, tax: Decimal) -> str:
    return textwrap.dedent(
        f"""
        <cac:TaxSubtotal>
          <cbc:TaxableAmount currencyID="{currency}">{format_money(taxable)}</cbc:TaxableAmount>
          <cbc:TaxAmount currencyID="{currency}">{format_money(tax)}</cbc:TaxAmount>
          <cac:TaxCategory>
            <cbc:ID>S</cbc:ID>
            <cbc:Percent>{format_money(percent)}</cbc:Percent>
          </cac:TaxCategory>
        </cac:TaxSubtotal>
        """
    ).strip()


def build_ubl_xml(document: InvoiceDocument) -> bytes:
    """Render ``document`` as UTF-8 encoded UBL.

    Output depends on the document only, so the same invoice always yields
    the same bytes.
    """

    if not document.invoice_number:
        raise ValueError("Invoice number must be set before generating UBL")

    totals = document.totals
    currency = escape(document.currency)
    due_date = (
        f"\n  <cbc:DueDate>{document.due_date.isoformat()}</cbc:DueDate>" if document.due_date else ""
    )
    note = f"\n  <cbc:Note>{escape(document.notes)}</cbc:Note>" if document.notes else ""

    lines_xml = "\n".join(
        _render_invoice_line(idx + 1, document, line) for idx, line in enumerate(document.lines)
    )
    subtotals_xml = "\n".join(
        _render_tax_subtotal(currency, percent, taxable, tax)
        for percent, taxable, tax in document.tax_subtotals()
    )

    xml_content = f"""<?xml version=\"1.0\" encoding=\"UTF-8\"?>
<Invoice xmlns=\"urn:oasis:names:specification:ubl:schema:xsd:Invoice-2\"
         xmlns:cac=\"urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2\"
         xmlns:cbc=\"urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2\">
  <cbc:CustomizationID>{UBL_CUSTOMIZATION_ID}</cbc:CustomizationID>
  <cbc:ProfileID>{UBL_PROFILE_ID}</cbc:ProfileID>
  <cbc:ID>{escape(document.invoice_number)}</cbc:ID>
  <cbc:IssueDate>{document.issue_date.isoformat()}</cbc:IssueDate>{due_date}
  <cbc:InvoiceTypeCode>380</cbc:InvoiceTypeCode>{note}
  <cbc:DocumentCurrencyCode>{currency}</cbc:DocumentCurrencyCode>
  <cac:AccountingSupplierParty>
{textwrap.indent(_render_party(document.supplier), '    ')}
  </cac:AccountingSupplierParty>
  <cac:AccountingCustomerParty>
{textwrap.indent(_render_party(document.customer), '    ')}
  </cac:AccountingCustomerParty>
  <cac:PaymentTerms>
    <cbc:Note>{_text(document.payment_terms)}</cbc:Note>
  </cac:PaymentTerms>
  <cac:TaxTotal>
    <cbc:TaxAmount currencyID="{currency}">{format_money(totals.tax_amount)}</cbc:TaxAmount>
{textwrap.indent(subtotals_xml, '    ')}
  </cac:TaxTotal>
  <cac:LegalMonetaryTotal>
    <cbc:LineExtensionAmount currencyID="{currency}">{format_money(totals.subtotal)}</cbc:LineExtensionAmount>
    <cbc:TaxExclusiveAmount currencyID="{currency}">{format_money(document.tax_exclusive_amount)}</cbc:TaxExclusiveAmount>
    <cbc:TaxInclusiveAmount currencyID="{currency}">{format_money(totals.total)}</cbc:TaxInclusiveAmount>
    <cbc:AllowanceTotalAmount currencyID="{currency}">{format_money(totals.discount_amount)}</cbc:AllowanceTotalAmount>
    <cbc:PayableAmount currencyID="{currency}">{format_money(totals.total)}</cbc:PayableAmount>
  </cac:LegalMonetaryTotal>
{textwrap.indent(lines_xml, '  ')}
</Invoice>
"""

    return xml_content.encode("utf-8")
