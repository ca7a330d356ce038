"""Health and readiness endpoints."""

from importlib import metadata
from typing import Any

from fastapi import APIRouter, Request

from backend.core.database import check_database

router = APIRouter()


def get_version() -> str:
    """Installed distribution version, or ``dev`` when running from a checkout."""
    try:
        return metadata.version("time-invoicing")
    except metadata.PackageNotFoundError:
        return "dev"


@router.get("/health/ready")
def readiness_check(request: Request) -> dict[str, Any]:
    """Readiness endpoint for load balancers."""
    db_status = check_database(request.app.state.engine)
    return {
        "status": "OK" if db_status == "OK" else "DEGRADED",
        "version": get_version(),
        "db": db_status,
    }


@router.get("/health/live")
def liveness_check() -> dict[str, str]:
    """Liveness endpoint - always OK if service is running."""
    return {"status": "OK"}
