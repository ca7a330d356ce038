"""Time-based invoicing: calculation core and document exports."""

from .discount import DiscountAllocation, allocate_discount
from .dto import (
    InvoiceConfig,
    InvoiceTotals,
    LineBreakdown,
    LineItemInput,
    LineTax,
    LineTaxAmount,
    PersistedLine,
    Quantity,
    RoundingMode,
    TaxMode,
    TaxSummaryRow,
    TimeBased,
    make_config,
)
from .money import format_money, round2, safe_divide, to_decimal
from .tax import invoice_level_tax, per_line_tax
from .totals import compute_invoice_totals, rederive_invoice_totals, resolve_tax_mode
from .valuation import compute_line_gross, resolve_multiplier

__all__ = [
    "DiscountAllocation",
    "InvoiceConfig",
    "InvoiceTotals",
    "LineBreakdown",
    "LineItemInput",
    "LineTax",
    "LineTaxAmount",
    "PersistedLine",
    "Quantity",
    "RoundingMode",
    "TaxMode",
    "TaxSummaryRow",
    "TimeBased",
    "allocate_discount",
    "compute_invoice_totals",
    "compute_line_gross",
    "format_money",
    "invoice_level_tax",
    "make_config",
    "per_line_tax",
    "rederive_invoice_totals",
    "resolve_multiplier",
    "resolve_tax_mode",
    "round2",
    "safe_divide",
    "to_decimal",
]
