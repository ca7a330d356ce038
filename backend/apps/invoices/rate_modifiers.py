"""Rate modifiers: named hourly-rate multipliers with exactly one default."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Connection, Engine

from backend.core.logging import get_logger
from invoicing.money import ZERO, to_decimal
from invoicing.valuation import ModifierResolver, resolver_from_mapping

from .tables import invoice_items, rate_modifiers

logger = get_logger(__name__)


class RateModifierError(RuntimeError):
    pass


class RateModifierNotFoundError(RateModifierError):
    pass


class DefaultRateModifierError(RateModifierError):
    pass


class RateModifierInUseError(RateModifierError):
    pass


@dataclass
class RateModifier:
    id: str
    name: str
    multiplier: Decimal
    description: Optional[str]
    is_default: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def _to_modifier(row) -> RateModifier:
    return RateModifier(
        id=row.id,
        name=row.name,
        multiplier=row.multiplier,
        description=row.description,
        is_default=bool(row.is_default),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _validate(name: Optional[str], multiplier: Optional[Decimal]) -> None:
    if name is not None and not name.strip():
        raise RateModifierError("name must not be empty")
    if multiplier is not None and multiplier <= ZERO:
        raise RateModifierError("multiplier must be greater than zero")


def load_modifier_resolver(conn: Connection) -> ModifierResolver:
    """Snapshot all multipliers into a lookup for the calculation core."""
    snapshot: Dict[str, Decimal] = {
        row.id: row.multiplier
        for row in conn.execute(select(rate_modifiers.c.id, rate_modifiers.c.multiplier))
    }
    return resolver_from_mapping(snapshot)


class RateModifierService:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def list(self) -> List[RateModifier]:
        with self._engine.begin() as conn:
            rows = conn.execute(
                select(rate_modifiers).order_by(rate_modifiers.c.is_default.desc(), rate_modifiers.c.name)
            ).fetchall()
        return [_to_modifier(row) for row in rows]

    def get(self, modifier_id: str) -> RateModifier:
        with self._engine.begin() as conn:
            return self._get(conn, modifier_id)

    def get_default(self) -> Optional[RateModifier]:
        with self._engine.begin() as conn:
            row = conn.execute(select(rate_modifiers).where(rate_modifiers.c.is_default.is_(True)).limit(1)).fetchone()
        return _to_modifier(row) if row else None

    def create(
        self,
        *,
        name: str,
        multiplier,
        description: Optional[str] = None,
        is_default: bool = False,
    ) -> RateModifier:
        multiplier = to_decimal(multiplier)
        _validate(name, multiplier)
        modifier_id = str(uuid.uuid4())
        with self._engine.begin() as conn:
            has_default = conn.execute(
                select(rate_modifiers.c.id).where(rate_modifiers.c.is_default.is_(True)).limit(1)
            ).first() is not None
            # the first modifier becomes the default so there is always exactly one
            is_default = bool(is_default) or not has_default
            if is_default:
                conn.execute(update(rate_modifiers).values(is_default=False))
            conn.execute(
                insert(rate_modifiers).values(
                    id=modifier_id,
                    name=name.strip(),
                    multiplier=multiplier,
                    description=description,
                    is_default=is_default,
                )
            )
            created = self._get(conn, modifier_id)
        logger.info("rate_modifier_created", extra={"rate_modifier_id": modifier_id, "is_default": is_default})
        if is_default:
            logger.info("rate_modifier_default_changed", extra={"rate_modifier_id": modifier_id})
        return created

    def update(
        self,
        modifier_id: str,
        *,
        name: Optional[str] = None,
        multiplier=None,
        description: Optional[str] = None,
        is_default: Optional[bool] = None,
    ) -> RateModifier:
        multiplier = to_decimal(multiplier) if multiplier is not None else None
        _validate(name, multiplier)
        with self._engine.begin() as conn:
            existing = self._get(conn, modifier_id)
            if is_default is False and existing.is_default:
                raise DefaultRateModifierError(
                    "Cannot unset the default rate modifier. Set another modifier as default first."
                )
            becomes_default = bool(is_default) and not existing.is_default
            if becomes_default:
                conn.execute(update(rate_modifiers).values(is_default=False))
            values = {
                "name": name.strip() if name is not None else existing.name,
                "multiplier": multiplier if multiplier is not None else existing.multiplier,
                "description": description if description is not None else existing.description,
                "is_default": existing.is_default or becomes_default,
            }
            conn.execute(update(rate_modifiers).where(rate_modifiers.c.id == modifier_id).values(**values))
            updated = self._get(conn, modifier_id)
        if becomes_default:
            logger.info("rate_modifier_default_changed", extra={"rate_modifier_id": modifier_id})
        return updated

    def delete(self, modifier_id: str) -> None:
        with self._engine.begin() as conn:
            modifier = self._get(conn, modifier_id)
            if modifier.is_default:
                raise DefaultRateModifierError(
                    "Cannot delete the default rate modifier. Set another modifier as default first."
                )
            count = conn.execute(
                select(func.count()).select_from(invoice_items).where(invoice_items.c.rate_modifier_id == modifier_id)
            ).scalar_one()
            if count > 0:
                raise RateModifierInUseError(
                    f"Cannot delete rate modifier: {count} invoice item(s) are using it."
                )
            conn.execute(delete(rate_modifiers).where(rate_modifiers.c.id == modifier_id))
        logger.info("rate_modifier_deleted", extra={"rate_modifier_id": modifier_id})

    @staticmethod
    def _get(conn: Connection, modifier_id: str) -> RateModifier:
        row = conn.execute(select(rate_modifiers).where(rate_modifiers.c.id == modifier_id)).fetchone()
        if row is None:
            raise RateModifierNotFoundError(f"Rate modifier {modifier_id} not found")
        return _to_modifier(row)
