"""Routes for the aihub server."""

from .catalog import router as catalog_router
from .currency import router as currency_router

__all__ = [
    "catalog_router",
    "currency_router",
]
