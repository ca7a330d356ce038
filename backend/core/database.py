"""Engine construction and schema bootstrap."""

from functools import lru_cache
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine

from backend.core.config import settings
from backend.core.logging import get_logger

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: Optional[str] = None, **kwargs) -> Engine:
    url = url or settings.database_url
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(url, future=True, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Process-wide engine for ``settings.database_url``."""
    return create_db_engine()


def init_db(engine: Engine) -> None:
    """Create missing tables and seed business defaults."""
    from backend.apps.invoices.repository import seed_defaults
    from backend.apps.invoices.tables import METADATA

    METADATA.create_all(engine)
    with engine.begin() as conn:
        seed_defaults(conn, seed_rate_modifier=settings.SEED_DEFAULT_RATE_MODIFIER)
    logger.info("database_initialized", extra={"dialect": engine.dialect.name})


def check_database(engine: Engine) -> str:
    """Light connectivity probe used by the readiness endpoint."""
    try:
        with engine.connect() as conn:
            value = conn.execute(text("SELECT 1")).scalar()
    except Exception:  # noqa: BLE001 - readiness reports FAIL instead of raising
        logger.warning("database_check_failed", exc_info=True)
        return "FAIL"
    return "OK" if value == 1 else "FAIL"
