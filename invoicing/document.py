"""Render-ready view of a stored invoice, consumed by the UBL and PDF exports."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from .dto import InvoiceTotals, LineTax, TaxMode
from .money import ZERO


@dataclass(frozen=True, slots=True)
class Party:
    name: str
    street: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country_code: Optional[str] = None
    email: Optional[str] = None
    tax_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DocumentLine:
    description: str
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal
    unit_code: str = "C62"  # UN/ECE rec. 20: C62 = piece, HUR = hour
    taxes: Tuple[LineTax, ...] = ()
    distance: Decimal = ZERO


@dataclass(slots=True)
class InvoiceDocument:
    invoice_number: str
    issue_date: date
    currency: str
    supplier: Party
    customer: Party
    totals: InvoiceTotals
    tax_rate: Decimal = ZERO
    due_date: Optional[date] = None
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    prices_include_tax: bool = False
    lines: List[DocumentLine] = field(default_factory=list)

    @property
    def tax_exclusive_amount(self) -> Decimal:
        return self.totals.total - self.totals.tax_amount

    def tax_subtotals(self) -> List[Tuple[Decimal, Decimal, Decimal]]:
        """``(percent, taxable, tax)`` rows, ascending by percent."""

        if self.totals.tax_mode is TaxMode.LINE:
            return [
                (row.percent, row.taxable_amount, row.tax_amount)
                for row in self.totals.tax_summary
            ]
        return [(self.tax_rate, self.tax_exclusive_amount, self.totals.tax_amount)]
