"""Structural and arithmetic self-check for generated UBL invoices."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, List
from xml.etree import ElementTree as ET

from invoicing.money import ZERO, round2

from .generator import GENERATOR_VERSION, UBL_CUSTOMIZATION_ID

NAMESPACES = {
    "cbc": "urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2",
    "cac": "urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2",
}


@dataclass(frozen=True)
class UBLValidationResult:
    ok: bool
    messages: List[str]

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def _strip_ns(tag: str) -> str:
    return tag.split("}", 1)[1] if "}" in tag else tag


def _amount(element: ET.Element, path: str) -> Decimal:
    return round2(Decimal(element.findtext(path, namespaces=NAMESPACES) or "0"))


def validate_ubl(xml_bytes: bytes) -> UBLValidationResult:
    messages: List[str] = []

    try:
        root = ET.fromstring(xml_bytes)
    except ET.ParseError as err:
        messages.append(f"XML parse error: {err}")
        return UBLValidationResult(False, messages)

    if _strip_ns(root.tag) != "Invoice":
        messages.append("Root element must be 'Invoice'")
        return UBLValidationResult(False, messages)

    if root.findtext("cbc:CustomizationID", namespaces=NAMESPACES) != UBL_CUSTOMIZATION_ID:
        messages.append("CustomizationID mismatch")
        return UBLValidationResult(False, messages)
    messages.append("CustomizationID OK")

    if not (root.findtext("cbc:ID", namespaces=NAMESPACES) or "").strip():
        messages.append("Invoice ID missing")
        return UBLValidationResult(False, messages)

    legal_total = root.find("cac:LegalMonetaryTotal", namespaces=NAMESPACES)
    tax_total = root.find("cac:TaxTotal", namespaces=NAMESPACES)
    if legal_total is None or tax_total is None:
        messages.append("LegalMonetaryTotal or TaxTotal missing")
        return UBLValidationResult(False, messages)

    try:
        tax_exclusive = _amount(legal_total, "cbc:TaxExclusiveAmount")
        tax_inclusive = _amount(legal_total, "cbc:TaxInclusiveAmount")
        payable = _amount(legal_total, "cbc:PayableAmount")
        tax_amount = _amount(tax_total, "cbc:TaxAmount")
        subtotal_sum = sum(
            (
                _amount(subtotal, "cbc:TaxAmount")
                for subtotal in tax_total.findall("cac:TaxSubtotal", namespaces=NAMESPACES)
            ),
            ZERO,
        )
    except InvalidOperation as err:
        messages.append(f"Invalid monetary amount: {err!r}")
        return UBLValidationResult(False, messages)

    if tax_exclusive + tax_amount != tax_inclusive:
        messages.append("TaxExclusive + TaxAmount does not equal TaxInclusive")
        return UBLValidationResult(False, messages)

    if payable != tax_inclusive:
        messages.append("Payable amount mismatch")
        return UBLValidationResult(False, messages)

    if subtotal_sum != tax_amount:
        messages.append("Tax subtotals do not add up to the tax total")
        return UBLValidationResult(False, messages)

    messages.append(f"UBL validated ({GENERATOR_VERSION})")
    return UBLValidationResult(True, messages)
