"""Catalog module for aihub.

Reconciles the routing service's model snapshot with locally owned
configuration, and resolves per-tier limits, prices and display currency.
"""

from .currency import ConvertedPrice, CurrencyConverter, ExchangeRateProvider
from .models import (
    CatalogSnapshot,
    Company,
    Currency,
    ExchangeRate,
    Limit,
    Model,
    ModelConfig,
    ModelMode,
    RateLimit,
    RateLimitView,
    Tier,
)
from .money import CANONICAL_CURRENCY, Money
from .quota import PriceView, QuotaResolution, QuotaResolver, tier_for_spending
from .reconciler import (
    CompanyReconciliation,
    ModelReconciliation,
    Reconciler,
    reconcile_companies,
    reconcile_models,
)
from .snapshot import ExternalCompany, ExternalModel, companies_from_models

__all__ = [
    "CANONICAL_CURRENCY",
    "Money",
    "CatalogSnapshot",
    "Company",
    "Currency",
    "ExchangeRate",
    "Limit",
    "Model",
    "ModelConfig",
    "ModelMode",
    "RateLimit",
    "RateLimitView",
    "Tier",
    "ExternalCompany",
    "ExternalModel",
    "companies_from_models",
    "Reconciler",
    "CompanyReconciliation",
    "ModelReconciliation",
    "reconcile_companies",
    "reconcile_models",
    "QuotaResolver",
    "QuotaResolution",
    "PriceView",
    "tier_for_spending",
    "CurrencyConverter",
    "ConvertedPrice",
    "ExchangeRateProvider",
]
