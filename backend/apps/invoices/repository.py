"""Storage helpers: business settings, record mapping and invoice row loading.

All functions take an open SQLAlchemy ``Connection`` so the services decide
the transaction boundaries (``engine.begin()``).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Connection

from backend.core.config import settings as app_settings
from invoicing.dto import LineTax, PersistedLine

from .customers import Customer
from .tables import (
    invoice_item_taxes,
    invoice_items,
    invoice_taxes,
    invoices,
    rate_modifiers,
    settings_table,
)

STANDARD_MODIFIER_ID = "standard"


def settings_defaults() -> Dict[str, str]:
    return {
        "companyName": "",
        "companyAddress": "",
        "companyCity": "",
        "companyPostalCode": "",
        "companyEmail": "",
        "companyPhone": "",
        "companyTaxId": "",
        "companyCountryCode": "",
        "currency": app_settings.DEFAULT_CURRENCY,
        "paymentTerms": app_settings.DEFAULT_PAYMENT_TERMS,
        "mileageRate": str(app_settings.DEFAULT_MILEAGE_RATE),
        "defaultTaxRate": "0",
        "defaultPricesIncludeTax": "false",
        "defaultRoundingMode": "line",
        "invoicePrefix": "INV",
        "invoiceIncludeYear": "true",
        "invoiceNumberPadding": "3",
        "invoiceNumberPattern": "",
        "invoiceNumberingEnabled": "true",
    }


def seed_defaults(conn: Connection, *, seed_rate_modifier: bool = True) -> None:
    """Insert missing settings keys and the standard rate modifier."""
    existing = set(conn.execute(select(settings_table.c.key)).scalars())
    missing = [
        {"key": key, "value": value}
        for key, value in settings_defaults().items()
        if key not in existing
    ]
    if missing:
        conn.execute(insert(settings_table), missing)

    if not seed_rate_modifier:
        return
    has_modifier = conn.execute(select(rate_modifiers.c.id).limit(1)).first()
    if has_modifier is None:
        conn.execute(
            insert(rate_modifiers).values(
                id=STANDARD_MODIFIER_ID,
                name="Standard",
                multiplier=Decimal("1.0"),
                description="Regular working hours",
                is_default=True,
            )
        )


def read_settings(conn: Connection) -> Dict[str, str]:
    values = settings_defaults()
    for row in conn.execute(select(settings_table.c.key, settings_table.c.value)):
        values[row.key] = row.value
    return values


def write_settings(conn: Connection, values: Dict[str, str]) -> None:
    existing = set(conn.execute(select(settings_table.c.key)).scalars())
    for key, value in values.items():
        if key in existing:
            conn.execute(update(settings_table).where(settings_table.c.key == key).values(value=value))
        else:
            conn.execute(insert(settings_table).values(key=key, value=value))


def setting_decimal(values: Dict[str, str], key: str, default: Decimal) -> Decimal:
    """Parse a numeric setting; empty or unparsable values fall back to ``default``."""
    raw = (values.get(key) or "").strip()
    if not raw:
        return default
    try:
        return Decimal(raw)
    except InvalidOperation:
        return default


def setting_bool(values: Dict[str, str], key: str, default: bool = False) -> bool:
    raw = (values.get(key) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


@dataclass
class ItemTaxRecord:
    percent: Decimal
    amount: Decimal
    code: str = "S"
    note: Optional[str] = None


@dataclass
class InvoiceItemRecord:
    id: str
    position: int
    description: str
    hours: Optional[Decimal]
    rate: Optional[Decimal]
    rate_modifier_id: Optional[str]
    distance: Optional[Decimal]
    quantity: Optional[Decimal]
    unit_price: Optional[Decimal]
    line_total: Decimal
    notes: Optional[str]
    taxes: List[ItemTaxRecord] = field(default_factory=list)

    def persisted_line(self) -> PersistedLine:
        return PersistedLine(
            line_total=self.line_total,
            taxes=tuple(LineTax(percent=t.percent, note=t.note, code=t.code) for t in self.taxes),
        )


@dataclass
class InvoiceTaxRecord:
    percent: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal


@dataclass
class InvoiceRecord:
    id: str
    invoice_number: str
    customer_id: str
    status: str
    issue_date: date
    due_date: Optional[date]
    currency: str
    subtotal: Decimal
    discount_amount: Decimal
    discount_percentage: Decimal
    flat_discount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    prices_include_tax: bool
    rounding_mode: str
    tax_mode: str
    payment_terms: Optional[str]
    notes: Optional[str]
    share_token: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    customer: Optional[Customer] = None
    items: List[InvoiceItemRecord] = field(default_factory=list)
    taxes: List[InvoiceTaxRecord] = field(default_factory=list)


_INVOICE_FIELDS = [
    name for name in InvoiceRecord.__dataclass_fields__ if name not in ("customer", "items", "taxes")
]


def _load_items(conn: Connection, invoice_id: str) -> List[InvoiceItemRecord]:
    rows = conn.execute(
        select(invoice_items)
        .where(invoice_items.c.invoice_id == invoice_id)
        .order_by(invoice_items.c.position)
    ).fetchall()
    items = [
        InvoiceItemRecord(
            id=row.id,
            position=row.position,
            description=row.description,
            hours=row.hours,
            rate=row.rate,
            rate_modifier_id=row.rate_modifier_id,
            distance=row.distance,
            quantity=row.quantity,
            unit_price=row.unit_price,
            line_total=row.line_total,
            notes=row.notes,
        )
        for row in rows
    ]
    if not items:
        return items
    by_id = {item.id: item for item in items}
    tax_rows = conn.execute(
        select(invoice_item_taxes)
        .where(invoice_item_taxes.c.invoice_item_id.in_(list(by_id)))
        .order_by(invoice_item_taxes.c.invoice_item_id, invoice_item_taxes.c.position)
    ).fetchall()
    for row in tax_rows:
        by_id[row.invoice_item_id].taxes.append(
            ItemTaxRecord(percent=row.percent, amount=row.amount, code=row.code, note=row.note)
        )
    return items


def load_invoice(conn: Connection, invoice_id: str) -> Optional[InvoiceRecord]:
    row = conn.execute(select(invoices).where(invoices.c.id == invoice_id)).fetchone()
    if row is None:
        return None
    return _to_record(conn, row)


def load_invoice_by_share_token(conn: Connection, share_token: str) -> Optional[InvoiceRecord]:
    row = conn.execute(select(invoices).where(invoices.c.share_token == share_token)).fetchone()
    if row is None:
        return None
    return _to_record(conn, row)


def list_invoice_rows(conn: Connection) -> List[InvoiceRecord]:
    rows = conn.execute(select(invoices).order_by(invoices.c.issue_date.desc(), invoices.c.invoice_number)).fetchall()
    return [InvoiceRecord(**{name: getattr(row, name) for name in _INVOICE_FIELDS}) for row in rows]


def _to_record(conn: Connection, row) -> InvoiceRecord:
    record = InvoiceRecord(**{name: getattr(row, name) for name in _INVOICE_FIELDS})
    record.items = _load_items(conn, record.id)
    # percents are stored as text, so order numerically here
    record.taxes = sorted(
        (
            InvoiceTaxRecord(percent=t.percent, taxable_amount=t.taxable_amount, tax_amount=t.tax_amount)
            for t in conn.execute(select(invoice_taxes).where(invoice_taxes.c.invoice_id == record.id))
        ),
        key=lambda tax: tax.percent,
    )
    return record


def existing_invoice_numbers(conn: Connection) -> List[str]:
    return list(conn.execute(select(invoices.c.invoice_number)).scalars())


def invoice_number_taken(conn: Connection, invoice_number: str, *, exclude_id: Optional[str] = None) -> bool:
    query = select(invoices.c.id).where(invoices.c.invoice_number == invoice_number)
    if exclude_id is not None:
        query = query.where(invoices.c.id != exclude_id)
    return conn.execute(query.limit(1)).first() is not None


def delete_invoice_children(conn: Connection, invoice_id: str) -> None:
    """Remove item, item-tax and summary-tax rows of one invoice."""
    item_ids = list(
        conn.execute(select(invoice_items.c.id).where(invoice_items.c.invoice_id == invoice_id)).scalars()
    )
    if item_ids:
        conn.execute(delete(invoice_item_taxes).where(invoice_item_taxes.c.invoice_item_id.in_(item_ids)))
    conn.execute(delete(invoice_items).where(invoice_items.c.invoice_id == invoice_id))
    conn.execute(delete(invoice_taxes).where(invoice_taxes.c.invoice_id == invoice_id))
