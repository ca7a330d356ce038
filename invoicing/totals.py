"""Invoice totals aggregation.

Values every line, allocates the discount once over the gross amounts, runs
the tax path selected by the tax mode and folds the result into
:class:`~invoicing.dto.InvoiceTotals`. The same aggregation can be replayed
from persisted line totals (:func:`rederive_invoice_totals`), which must give
identical header figures.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from .discount import allocate_discount
from .dto import InvoiceConfig, InvoiceTotals, LineItemInput, LineTax, PersistedLine, TaxMode
from .money import DecimalLike, round2
from .tax import invoice_level_tax, per_line_tax
from .valuation import ModifierResolver, compute_line_gross

logger = logging.getLogger("invoicing.totals")


def resolve_tax_mode(
    items: Iterable[LineItemInput | PersistedLine],
    requested: TaxMode | str | None = None,
) -> TaxMode:
    """Pick the tax mode when the caller leaves it open.

    Without an explicit request the per-line mode is chosen iff any line
    declares taxes.
    """

    if requested is not None:
        return TaxMode(requested)
    if any(item.taxes for item in items):
        return TaxMode.LINE
    return TaxMode.INVOICE


def _aggregate(
    grosses: List[Decimal],
    line_taxes: List[Sequence[LineTax]],
    config: InvoiceConfig,
) -> InvoiceTotals:
    allocation = allocate_discount(grosses, config.discount_percentage, config.discount_amount)

    use_line_taxes = config.tax_mode is TaxMode.LINE and any(line_taxes)
    if use_line_taxes:
        result = per_line_tax(grosses, allocation, line_taxes, config.prices_include_tax)
        tax_mode = TaxMode.LINE
    else:
        result = invoice_level_tax(
            grosses,
            allocation,
            config.tax_rate,
            config.prices_include_tax,
            config.rounding_mode,
        )
        tax_mode = TaxMode.INVOICE

    totals = InvoiceTotals(
        subtotal=round2(allocation.subtotal),
        discount_amount=round2(allocation.discount_amount),
        tax_amount=result.tax_amount,
        total=result.total,
        tax_mode=tax_mode,
        lines=result.lines,
        tax_summary=result.summary,
    )
    logger.debug(
        "invoice_totals_computed",
        extra={
            "line_count": len(grosses),
            "tax_mode": tax_mode.value,
            "rounding_mode": config.rounding_mode.value,
            "total": str(totals.total),
        },
    )
    return totals


def compute_invoice_totals(
    items: Sequence[LineItemInput],
    config: InvoiceConfig,
    *,
    resolve_modifier: Optional[ModifierResolver] = None,
    mileage_rate: Optional[DecimalLike] = None,
) -> InvoiceTotals:
    grosses = [compute_line_gross(item, resolve_modifier, mileage_rate) for item in items]
    return _aggregate(grosses, [item.taxes for item in items], config)


def rederive_invoice_totals(
    persisted_lines: Sequence[PersistedLine],
    config: InvoiceConfig,
) -> InvoiceTotals:
    """Recompute totals from stored ``line_total`` values only.

    Hours, rates and modifiers are ignored; a stored line total is the gross
    amount by construction.
    """

    grosses = [line.line_total for line in persisted_lines]
    return _aggregate(grosses, [line.taxes for line in persisted_lines], config)
