"""Exchange rates from exchangerate-api.com."""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from aihub.catalog.currency import ExchangeRateProvider
from aihub.catalog.models import ExchangeRate
from aihub.exceptions import ExternalFetchError

from .base import BaseHTTPSource

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://v6.exchangerate-api.com/v6"


class ExchangeRateAPIClient(BaseHTTPSource, ExchangeRateProvider):
    """Fetches ``base -> target`` rates and derives the inverse pairs."""

    source_name = "exchangerate-api"

    def __init__(
        self,
        api_key: Optional[str],
        base_currency: str = "USD",
        target_currencies: Iterable[str] = ("RUB",),
        api_base: str = DEFAULT_API_BASE,
        timeout: float = 30.0,
    ):
        super().__init__(api_base, api_key=api_key, timeout=timeout)
        self.base_currency = base_currency.upper()
        self.target_currencies = [c.upper() for c in target_currencies]

    async def fetch_rates(self) -> list[ExchangeRate]:
        if not self.api_key:
            raise ExternalFetchError("exchangerate-api key is not configured")

        data = await self._get_json(f"/{self.api_key}/latest/{self.base_currency}")
        if not isinstance(data, dict) or data.get("result") != "success":
            result = data.get("result") if isinstance(data, dict) else None
            raise ExternalFetchError(f"exchangerate-api returned error result: {result}")

        conversion_rates = data.get("conversion_rates") or {}
        updated_at = datetime.now(timezone.utc)

        rates: list[ExchangeRate] = []
        for target in self.target_currencies:
            raw = conversion_rates.get(target)
            if raw is None:
                logger.warning(f"exchangerate-api has no rate for {self.base_currency}->{target}")
                continue
            try:
                value = Decimal(str(raw))
            except InvalidOperation:
                logger.warning(f"Ignoring non-numeric rate {raw!r} for {self.base_currency}->{target}")
                continue
            if value <= 0:
                logger.warning(f"Ignoring non-positive rate {value} for {self.base_currency}->{target}")
                continue
            rates.append(ExchangeRate(self.base_currency, target, value, updated_at))
            rates.append(ExchangeRate(target, self.base_currency, Decimal(1) / value, updated_at))

        logger.info(f"Fetched {len(rates)} exchange rates from exchangerate-api")
        return rates
