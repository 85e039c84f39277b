"""aihub - model catalog reconciliation, tier quotas and display pricing."""

__version__ = "0.1.0"

from aihub.catalog import (
    CatalogSnapshot,
    CurrencyConverter,
    Money,
    QuotaResolver,
    Reconciler,
    reconcile_companies,
    reconcile_models,
)
from aihub.exceptions import (
    AIHubError,
    ExternalFetchError,
    MalformedExternalEntryError,
    ModelUnavailableError,
    NotFoundError,
)

__all__ = [
    # Version
    "__version__",
    # Catalog
    "CatalogSnapshot",
    "CurrencyConverter",
    "Money",
    "QuotaResolver",
    "Reconciler",
    "reconcile_companies",
    "reconcile_models",
    # Exceptions
    "AIHubError",
    "ExternalFetchError",
    "MalformedExternalEntryError",
    "ModelUnavailableError",
    "NotFoundError",
]
