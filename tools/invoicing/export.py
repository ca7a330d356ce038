"""CLI to export a stored invoice as UBL XML or PDF."""

from __future__ import annotations

import argparse
from pathlib import Path

from backend.apps.invoices.service import InvoiceService
from backend.core.database import create_db_engine, init_db
from invoicing.ubl import validate_ubl


def export_invoice(
    *,
    invoice_id: str,
    dest_dir: Path,
    format_name: str = "pdf",
    database_url: str | None = None,
    embed_xml: bool = True,
) -> Path:
    engine = create_db_engine(database_url)
    try:
        init_db(engine)
        service = InvoiceService(engine)
        record = service.get_invoice(invoice_id)
        if format_name == "ubl":
            content = service.export_ubl(invoice_id)
            result = validate_ubl(content)
            if not result.ok:
                raise RuntimeError("UBL self-check failed: " + "; ".join(result.messages))
            suffix = "xml"
        else:
            content = service.export_pdf(invoice_id, embed_xml=embed_xml)
            suffix = "pdf"
    finally:
        engine.dispose()

    dest_dir.mkdir(parents=True, exist_ok=True)
    target = dest_dir / f"{record.invoice_number}.{suffix}"
    target.write_bytes(content)
    return target


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export a stored invoice to a destination directory")
    parser.add_argument("--invoice-id", required=True, help="Invoice ID")
    parser.add_argument("--dest", required=True, type=Path, help="Export destination directory")
    parser.add_argument("--format", choices=["pdf", "ubl"], default="pdf")
    parser.add_argument("--database-url", help="Database URL (default: DATABASE_URL setting)")
    parser.add_argument("--no-embed-xml", action="store_true", help="Do not attach the UBL XML to the PDF")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    path = export_invoice(
        invoice_id=args.invoice_id,
        dest_dir=args.dest,
        format_name=args.format,
        database_url=args.database_url,
        embed_xml=not args.no_embed_xml,
    )
    print(f"Exported invoice to {path}")


if __name__ == "__main__":  # pragma: no cover
    main()
