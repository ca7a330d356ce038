"""SQLAlchemy Core schema for the invoicing store."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.types import TypeDecorator

from invoicing.money import to_decimal

METADATA = MetaData()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DecimalString(TypeDecorator):
    """Stores ``Decimal`` as text so values round-trip exactly on SQLite."""

    impl = String(40)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(to_decimal(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


settings_table = Table(
    "settings",
    METADATA,
    Column("key", String(64), primary_key=True),
    Column("value", Text, nullable=False, default=""),
)

rate_modifiers = Table(
    "rate_modifiers",
    METADATA,
    Column("id", String(64), primary_key=True),
    Column("name", String(120), nullable=False),
    Column("multiplier", DecimalString, nullable=False),
    Column("description", Text),
    Column("is_default", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), default=utcnow),
    Column("updated_at", DateTime(timezone=True), default=utcnow, onupdate=utcnow),
)

customers = Table(
    "customers",
    METADATA,
    Column("id", String(64), primary_key=True),
    Column("name", String(200), nullable=False),
    Column("contact_name", String(200)),
    Column("email", String(200)),
    Column("phone", String(64)),
    Column("address", Text),
    Column("city", String(120)),
    Column("postal_code", String(32)),
    Column("country_code", String(2)),
    Column("tax_id", String(64)),
    Column("default_hourly_rate", DecimalString, nullable=False, default=Decimal("0")),
    Column("created_at", DateTime(timezone=True), default=utcnow),
    Column("updated_at", DateTime(timezone=True), default=utcnow, onupdate=utcnow),
)

invoices = Table(
    "invoices",
    METADATA,
    Column("id", String(64), primary_key=True),
    Column("invoice_number", String(64), nullable=False, unique=True),
    Column("customer_id", String(64), ForeignKey("customers.id"), nullable=False),
    Column("status", String(16), nullable=False, default="draft"),
    Column("issue_date", Date, nullable=False),
    Column("due_date", Date),
    Column("currency", String(3), nullable=False),
    Column("subtotal", DecimalString, nullable=False),
    Column("discount_amount", DecimalString, nullable=False),
    Column("discount_percentage", DecimalString, nullable=False),
    # flat discount as entered; discount_amount holds the applied figure
    Column("flat_discount", DecimalString, nullable=False, default=Decimal("0")),
    Column("tax_rate", DecimalString, nullable=False),
    Column("tax_amount", DecimalString, nullable=False),
    Column("total", DecimalString, nullable=False),
    Column("prices_include_tax", Boolean, nullable=False, default=False),
    Column("rounding_mode", String(8), nullable=False, default="line"),
    Column("tax_mode", String(8), nullable=False, default="invoice"),
    Column("payment_terms", Text),
    Column("notes", Text),
    Column("share_token", String(64), nullable=False, unique=True),
    Column("created_at", DateTime(timezone=True), default=utcnow),
    Column("updated_at", DateTime(timezone=True), default=utcnow, onupdate=utcnow),
)

invoice_items = Table(
    "invoice_items",
    METADATA,
    Column("id", String(64), primary_key=True),
    Column("invoice_id", String(64), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
    Column("position", Integer, nullable=False),
    Column("description", Text, nullable=False),
    Column("hours", DecimalString),
    Column("rate", DecimalString),
    Column("rate_modifier_id", String(64)),
    Column("distance", DecimalString),
    Column("quantity", DecimalString),
    Column("unit_price", DecimalString),
    Column("line_total", DecimalString, nullable=False),
    Column("notes", Text),
)

invoice_item_taxes = Table(
    "invoice_item_taxes",
    METADATA,
    Column("id", String(64), primary_key=True),
    Column("invoice_item_id", String(64), ForeignKey("invoice_items.id", ondelete="CASCADE"), nullable=False),
    Column("position", Integer, nullable=False),
    Column("percent", DecimalString, nullable=False),
    Column("amount", DecimalString, nullable=False),
    Column("code", String(8), nullable=False, default="S"),
    Column("note", Text),
)

invoice_taxes = Table(
    "invoice_taxes",
    METADATA,
    Column("id", String(64), primary_key=True),
    Column("invoice_id", String(64), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
    Column("percent", DecimalString, nullable=False),
    Column("taxable_amount", DecimalString, nullable=False),
    Column("tax_amount", DecimalString, nullable=False),
    UniqueConstraint("invoice_id", "percent", name="uq_invoice_taxes_invoice_percent"),
)
