"""Data transfer objects for the invoice calculation engine.

Inputs are transient: built from a request, handed to
:func:`invoicing.totals.compute_invoice_totals` and discarded. The outputs
(:class:`InvoiceTotals` with its per-line and per-rate breakdowns) are what the
storage layer persists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from .money import ZERO, DecimalLike, format_money, to_decimal


class TaxMode(str, Enum):
    """Whether one invoice-wide rate applies or each line carries its own."""

    INVOICE = "invoice"
    LINE = "line"


class RoundingMode(str, Enum):
    """Whether cents are rounded per line before summing or once at the end."""

    PER_LINE = "line"
    TOTAL = "total"


@dataclass(frozen=True, slots=True)
class TimeBased:
    hours: Decimal
    rate: Decimal
    rate_modifier_id: Optional[str] = None
    distance: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class Quantity:
    quantity: Decimal
    unit_price: Decimal


LineValuation = Union[TimeBased, Quantity]


@dataclass(frozen=True, slots=True)
class LineTax:
    percent: Decimal
    note: Optional[str] = None
    code: str = "S"  # UBL tax category (S = standard rate)

    def __post_init__(self) -> None:
        object.__setattr__(self, "percent", to_decimal(self.percent))


@dataclass(slots=True)
class LineItemInput:
    """One billable line as received from the caller.

    Time-based fields and legacy quantity/price fields are all optional; the
    line is valued as time-based iff ``hours`` is present and positive.
    """

    description: str
    hours: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    rate_modifier_id: Optional[str] = None
    distance: Optional[Decimal] = None
    quantity: Optional[Decimal] = None
    unit_price: Optional[Decimal] = None
    taxes: Tuple[LineTax, ...] = ()
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        for name in ("hours", "rate", "distance", "quantity", "unit_price"):
            value = getattr(self, name)
            if value is not None:
                setattr(self, name, to_decimal(value))
        self.taxes = tuple(
            tax if isinstance(tax, LineTax) else LineTax(**tax) for tax in self.taxes
        )

    @property
    def is_time_based(self) -> bool:
        return self.hours is not None and self.hours > ZERO

    def valuation(self) -> LineValuation:
        if self.is_time_based:
            return TimeBased(
                hours=self.hours,
                rate=to_decimal(self.rate),
                rate_modifier_id=self.rate_modifier_id,
                distance=to_decimal(self.distance),
            )
        return Quantity(
            quantity=to_decimal(self.quantity),
            unit_price=to_decimal(self.unit_price),
        )


@dataclass(frozen=True, slots=True)
class InvoiceConfig:
    discount_percentage: Decimal = ZERO
    discount_amount: Decimal = ZERO
    tax_rate: Decimal = ZERO
    prices_include_tax: bool = False
    rounding_mode: RoundingMode = RoundingMode.PER_LINE
    tax_mode: TaxMode = TaxMode.INVOICE

    def __post_init__(self) -> None:
        object.__setattr__(self, "discount_percentage", to_decimal(self.discount_percentage))
        object.__setattr__(self, "discount_amount", to_decimal(self.discount_amount))
        object.__setattr__(self, "tax_rate", to_decimal(self.tax_rate))
        object.__setattr__(self, "rounding_mode", RoundingMode(self.rounding_mode))
        object.__setattr__(self, "tax_mode", TaxMode(self.tax_mode))


@dataclass(frozen=True, slots=True)
class PersistedLine:
    """A stored line as read back from ``invoice_items``/``invoice_item_taxes``."""

    line_total: Decimal
    taxes: Tuple[LineTax, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "line_total", to_decimal(self.line_total))


@dataclass(frozen=True, slots=True)
class LineTaxAmount:
    percent: Decimal
    amount: Decimal
    note: Optional[str] = None
    code: str = "S"


@dataclass(slots=True)
class LineBreakdown:
    gross: Decimal
    discount: Decimal
    taxable: Decimal
    taxes: List[LineTaxAmount] = field(default_factory=list)

    @property
    def tax_total(self) -> Decimal:
        return sum((tax.amount for tax in self.taxes), ZERO)

    def to_dict(self) -> Dict[str, object]:
        return {
            "gross": format_money(self.gross),
            "discount": format_money(self.discount),
            "taxable": format_money(self.taxable),
            "taxes": [
                {
                    "percent": format_money(tax.percent),
                    "amount": format_money(tax.amount),
                    "note": tax.note,
                    "code": tax.code,
                }
                for tax in self.taxes
            ],
        }


@dataclass(frozen=True, slots=True)
class TaxSummaryRow:
    percent: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal

    def to_dict(self) -> Dict[str, str]:
        return {
            "percent": format_money(self.percent),
            "taxable_amount": format_money(self.taxable_amount),
            "tax_amount": format_money(self.tax_amount),
        }


@dataclass(slots=True)
class InvoiceTotals:
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal
    tax_mode: TaxMode = TaxMode.INVOICE
    lines: List[LineBreakdown] = field(default_factory=list)
    tax_summary: List[TaxSummaryRow] = field(default_factory=list)

    def figures(self) -> Tuple[Decimal, Decimal, Decimal, Decimal]:
        """The four persisted header figures, for equality checks."""

        return (self.subtotal, self.discount_amount, self.tax_amount, self.total)

    def to_dict(self) -> Dict[str, object]:
        return {
            "subtotal": format_money(self.subtotal),
            "discount_amount": format_money(self.discount_amount),
            "tax_amount": format_money(self.tax_amount),
            "total": format_money(self.total),
            "tax_mode": self.tax_mode.value,
            "lines": [line.to_dict() for line in self.lines],
            "tax_summary": [row.to_dict() for row in self.tax_summary],
        }


def make_config(
    *,
    discount_percentage: DecimalLike | None = None,
    discount_amount: DecimalLike | None = None,
    tax_rate: DecimalLike | None = None,
    prices_include_tax: bool = False,
    rounding_mode: RoundingMode | str = RoundingMode.PER_LINE,
    tax_mode: TaxMode | str = TaxMode.INVOICE,
) -> InvoiceConfig:
    """Build an :class:`InvoiceConfig` treating ``None`` as zero."""

    return InvoiceConfig(
        discount_percentage=to_decimal(discount_percentage),
        discount_amount=to_decimal(discount_amount),
        tax_rate=to_decimal(tax_rate),
        prices_include_tax=bool(prices_include_tax),
        rounding_mode=RoundingMode(rounding_mode),
        tax_mode=TaxMode(tax_mode),
    )
