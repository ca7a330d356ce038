"""CLI to compute invoice totals from a JSON payload without touching the database.

The payload carries ``items`` plus the optional config fields
(``discount_percentage``, ``discount_amount``, ``tax_rate``,
``prices_include_tax``, ``rounding_mode``, ``tax_mode``), a ``rate_modifiers``
map of id to multiplier and a ``mileage_rate``.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

from invoicing.dto import InvoiceTotals, LineItemInput, make_config
from invoicing.totals import compute_invoice_totals, resolve_tax_mode
from invoicing.valuation import resolver_from_mapping

CONFIG_KEYS = ("discount_percentage", "discount_amount", "tax_rate", "prices_include_tax", "rounding_mode")


def compute_from_payload(payload: Dict[str, Any]) -> InvoiceTotals:
    items = [LineItemInput(**item) for item in payload.get("items") or []]
    options = {key: payload[key] for key in CONFIG_KEYS if payload.get(key) is not None}
    config = make_config(tax_mode=resolve_tax_mode(items, payload.get("tax_mode")), **options)
    modifiers = payload.get("rate_modifiers") or {}
    return compute_invoice_totals(
        items,
        config,
        resolve_modifier=resolver_from_mapping(modifiers),
        mileage_rate=payload.get("mileage_rate"),
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute invoice totals from a JSON file")
    parser.add_argument("payload", type=Path, help="JSON file with items and config ('-' for stdin)")
    parser.add_argument("--indent", type=int, default=2, help="JSON indent of the output")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if str(args.payload) == "-":
        payload = json.load(sys.stdin)
    else:
        payload = json.loads(args.payload.read_text(encoding="utf-8"))
    totals = compute_from_payload(payload)
    print(json.dumps(totals.to_dict(), indent=args.indent))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
