"""Invoicing app module.

Provides the FastAPI router plus the customer, rate modifier and invoice services.
"""

from .api import router as invoices_router

__all__ = ["invoices_router"]
