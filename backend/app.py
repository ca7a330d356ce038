from datetime import date
from typing import Callable, Optional

from fastapi import FastAPI
from sqlalchemy.engine import Engine

from backend.apps.invoices import invoices_router
from backend.core.database import get_engine, init_db
from backend.core.observability import init_observability
from backend.core.observability.health import router as health_router


def create_app(
    engine: Optional[Engine] = None,
    *,
    clock: Optional[Callable[[], date]] = None,
    configure_logging: bool = True,
) -> FastAPI:
    if configure_logging:
        init_observability()

    engine = engine or get_engine()
    init_db(engine)

    app = FastAPI(title="Time Invoicing")
    app.state.engine = engine
    app.state.clock = clock or date.today

    # Routers
    app.include_router(health_router)
    app.include_router(invoices_router)

    return app
