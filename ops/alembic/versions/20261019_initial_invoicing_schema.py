"""Create invoicing schema

Revision ID: 20261019_initial_invoicing
Revises:
Create Date: 2026-10-19 09:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_initial_invoicing"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# decimals are stored as text to keep exact values on every backend
MONEY = sa.String(length=40)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "settings",
        sa.Column("key", sa.String(length=64), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False, server_default=sa.text("''")),
    )

    op.create_table(
        "rate_modifiers",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("multiplier", MONEY, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    op.create_table(
        "customers",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("contact_name", sa.String(length=200), nullable=True),
        sa.Column("email", sa.String(length=200), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("postal_code", sa.String(length=32), nullable=True),
        sa.Column("country_code", sa.String(length=2), nullable=True),
        sa.Column("tax_id", sa.String(length=64), nullable=True),
        sa.Column("default_hourly_rate", MONEY, nullable=False, server_default=sa.text("'0'")),
        *_timestamps(),
    )

    op.create_table(
        "invoices",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("invoice_number", sa.String(length=64), nullable=False),
        sa.Column("customer_id", sa.String(length=64), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("subtotal", MONEY, nullable=False),
        sa.Column("discount_amount", MONEY, nullable=False),
        sa.Column("discount_percentage", MONEY, nullable=False),
        sa.Column("flat_discount", MONEY, nullable=False, server_default=sa.text("'0'")),
        sa.Column("tax_rate", MONEY, nullable=False),
        sa.Column("tax_amount", MONEY, nullable=False),
        sa.Column("total", MONEY, nullable=False),
        sa.Column("prices_include_tax", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("rounding_mode", sa.String(length=8), nullable=False, server_default=sa.text("'line'")),
        sa.Column("tax_mode", sa.String(length=8), nullable=False, server_default=sa.text("'invoice'")),
        sa.Column("payment_terms", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("share_token", sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
        sa.UniqueConstraint("share_token", name="uq_invoices_share_token"),
    )
    op.create_index("ix_invoices_customer_id", "invoices", ["customer_id"])
    op.create_index("ix_invoices_status_issue_date", "invoices", ["status", "issue_date"])

    op.create_table(
        "invoice_items",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "invoice_id",
            sa.String(length=64),
            sa.ForeignKey("invoices.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("hours", MONEY, nullable=True),
        sa.Column("rate", MONEY, nullable=True),
        sa.Column("rate_modifier_id", sa.String(length=64), nullable=True),
        sa.Column("distance", MONEY, nullable=True),
        sa.Column("quantity", MONEY, nullable=True),
        sa.Column("unit_price", MONEY, nullable=True),
        sa.Column("line_total", MONEY, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_invoice_items_invoice_id", "invoice_items", ["invoice_id", "position"])

    op.create_table(
        "invoice_item_taxes",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "invoice_item_id",
            sa.String(length=64),
            sa.ForeignKey("invoice_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("percent", MONEY, nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("code", sa.String(length=8), nullable=False, server_default=sa.text("'S'")),
        sa.Column("note", sa.Text(), nullable=True),
    )

    op.create_table(
        "invoice_taxes",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "invoice_id",
            sa.String(length=64),
            sa.ForeignKey("invoices.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("percent", MONEY, nullable=False),
        sa.Column("taxable_amount", MONEY, nullable=False),
        sa.Column("tax_amount", MONEY, nullable=False),
        sa.UniqueConstraint("invoice_id", "percent", name="uq_invoice_taxes_invoice_percent"),
    )


def downgrade() -> None:
    op.drop_table("invoice_taxes")
    op.drop_table("invoice_item_taxes")
    op.drop_index("ix_invoice_items_invoice_id", table_name="invoice_items")
    op.drop_table("invoice_items")
    op.drop_index("ix_invoices_status_issue_date", table_name="invoices")
    op.drop_index("ix_invoices_customer_id", table_name="invoices")
    op.drop_table("invoices")
    op.drop_table("customers")
    op.drop_table("rate_modifiers")
    op.drop_table("settings")
