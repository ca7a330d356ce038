"""Customer records (bill-to parties)."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Connection, Engine

from backend.core.logging import get_logger
from invoicing.money import ZERO, to_decimal

from .tables import customers, invoices

logger = get_logger(__name__)

_TEXT_FIELDS = (
    "contact_name",
    "email",
    "phone",
    "address",
    "city",
    "postal_code",
    "country_code",
    "tax_id",
)


class CustomerError(RuntimeError):
    pass


class CustomerNotFoundError(CustomerError):
    pass


class CustomerInUseError(CustomerError):
    pass


@dataclass
class Customer:
    id: str
    name: str
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country_code: Optional[str] = None
    tax_id: Optional[str] = None
    default_hourly_rate: Decimal = ZERO
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def _to_customer(row) -> Customer:
    return Customer(**{name: getattr(row, name) for name in Customer.__dataclass_fields__})


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _normalize(fields: Dict[str, Any]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    if "name" in fields:
        name = (fields["name"] or "").strip()
        if not name:
            raise CustomerError("name is required")
        values["name"] = name
    for key in _TEXT_FIELDS:
        if key in fields:
            values[key] = _blank_to_none(fields[key])
    if values.get("country_code"):
        values["country_code"] = values["country_code"].upper()
    if "default_hourly_rate" in fields:
        rate = to_decimal(fields["default_hourly_rate"])
        if rate < ZERO:
            raise CustomerError("default_hourly_rate must not be negative")
        values["default_hourly_rate"] = rate
    return values


def fetch_customer(conn: Connection, customer_id: str) -> Optional[Customer]:
    row = conn.execute(select(customers).where(customers.c.id == customer_id)).fetchone()
    return _to_customer(row) if row else None


class CustomerService:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def list(self) -> List[Customer]:
        with self._engine.begin() as conn:
            rows = conn.execute(select(customers).order_by(customers.c.name)).fetchall()
        return [_to_customer(row) for row in rows]

    def get(self, customer_id: str) -> Customer:
        with self._engine.begin() as conn:
            customer = fetch_customer(conn, customer_id)
        if customer is None:
            raise CustomerNotFoundError(f"Customer {customer_id} not found")
        return customer

    def create(self, **fields: Any) -> Customer:
        fields.setdefault("name", "")
        values = _normalize(fields)
        values.setdefault("default_hourly_rate", ZERO)
        customer_id = str(uuid.uuid4())
        with self._engine.begin() as conn:
            conn.execute(insert(customers).values(id=customer_id, **values))
            created = fetch_customer(conn, customer_id)
        logger.info("customer_created", extra={"customer_id": customer_id})
        return created

    def update(self, customer_id: str, **fields: Any) -> Customer:
        values = _normalize(fields)
        with self._engine.begin() as conn:
            if fetch_customer(conn, customer_id) is None:
                raise CustomerNotFoundError(f"Customer {customer_id} not found")
            if values:
                conn.execute(update(customers).where(customers.c.id == customer_id).values(**values))
            updated = fetch_customer(conn, customer_id)
        logger.info("customer_updated", extra={"customer_id": customer_id, "fields": sorted(values)})
        return updated

    def delete(self, customer_id: str) -> None:
        with self._engine.begin() as conn:
            if fetch_customer(conn, customer_id) is None:
                raise CustomerNotFoundError(f"Customer {customer_id} not found")
            count = conn.execute(
                select(func.count()).select_from(invoices).where(invoices.c.customer_id == customer_id)
            ).scalar_one()
            if count > 0:
                raise CustomerInUseError(
                    f"Cannot delete customer with existing invoices ({count}). Delete the invoices first."
                )
            conn.execute(delete(customers).where(customers.c.id == customer_id))
        logger.info("customer_deleted", extra={"customer_id": customer_id})
