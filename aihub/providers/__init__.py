"""External data sources: the routing-service catalog and exchange rates."""

from .base import BaseHTTPSource
from .exchange_rates import ExchangeRateAPIClient
from .litellm import LiteLLMCatalogClient

__all__ = [
    "BaseHTTPSource",
    "ExchangeRateAPIClient",
    "LiteLLMCatalogClient",
]
