"""Display-currency conversion.

Prices are stored in USD. Conversion here is for presentation only and is
never a billing source of truth. Conversion fails soft: with no known rate
the original amount is returned and the caller is told it is unconverted.
Rates are not expired by age; they change only when ``refresh_rates`` runs.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from aihub.exceptions import ExternalFetchError

from .models import Currency, ExchangeRate
from .money import Money, Number, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_CURRENCIES = (
    Currency(id="USD", name="US Dollar", symbol="$"),
    Currency(id="RUB", name="Russian Ruble", symbol="₽"),
)


class ExchangeRateProvider(ABC):
    """Source of fresh exchange rates."""

    @abstractmethod
    async def fetch_rates(self) -> list[ExchangeRate]:
        """Fetch the current rates.

        Raises:
            ExternalFetchError: On network or provider failure
        """


@dataclass(frozen=True)
class ConvertedPrice:
    """A converted amount and whether conversion actually happened."""

    money: Money
    converted: bool

    def to_dict(self) -> dict:
        return {**self.money.to_dict(), "converted": self.converted}


class CurrencyConverter:
    """Converts canonical prices for display using the latest known rates."""

    def __init__(
        self,
        rates: Iterable[ExchangeRate] = (),
        provider: Optional[ExchangeRateProvider] = None,
        currencies: Iterable[Currency] = DEFAULT_CURRENCIES,
    ):
        self._rates: dict[tuple[str, str], ExchangeRate] = {}
        self._provider = provider
        self._currencies: dict[str, Currency] = {c.id: c for c in currencies}
        self._merge(rates)

    def _merge(self, rates: Iterable[ExchangeRate]) -> int:
        """Keep the most recent rate per pair. Returns how many pairs changed."""
        changed = 0
        for rate in rates:
            current = self._rates.get(rate.pair)
            if current is None or rate.updated_at >= current.updated_at:
                self._rates[rate.pair] = rate
                changed += 1
        return changed

    def add_rates(self, rates: Iterable[ExchangeRate]) -> int:
        """Merge rates obtained elsewhere, e.g. those persisted by an earlier refresh."""
        return self._merge(rates)

    @property
    def rates(self) -> list[ExchangeRate]:
        """The authoritative (most recent) rate for every known pair."""
        return list(self._rates.values())

    def get_rate(self, from_currency: str, to_currency: str) -> Optional[ExchangeRate]:
        return self._rates.get((from_currency.upper(), to_currency.upper()))

    def last_updated(self, from_currency: str, to_currency: str) -> Optional[datetime]:
        rate = self.get_rate(from_currency, to_currency)
        return rate.updated_at if rate else None

    def convert(self, amount: Number, from_currency: str, to_currency: str) -> Number:
        """Convert an amount between currencies.

        Returns ``amount`` itself when the currencies match or when no rate
        is known for the pair. Never raises for a missing rate. A converted
        amount is always a ``Decimal``.
        """
        if from_currency.upper() == to_currency.upper():
            return amount

        rate = self.get_rate(from_currency, to_currency)
        if rate is None:
            logger.debug(f"No exchange rate for {from_currency}->{to_currency}, returning amount unconverted")
            return amount
        return to_decimal(amount) * rate.rate

    def convert_money(self, money: Money, to_currency: str) -> ConvertedPrice:
        """Convert Money, reporting whether a rate was applied."""
        to_currency = to_currency.upper()
        if money.currency == to_currency:
            return ConvertedPrice(money=money, converted=True)

        if self.get_rate(money.currency, to_currency) is None:
            return ConvertedPrice(money=money, converted=False)
        amount = self.convert(money.amount, money.currency, to_currency)
        return ConvertedPrice(money=Money(amount, to_currency), converted=True)

    async def refresh_rates(self) -> bool:
        """Fetch fresh rates from the provider.

        On failure the current rates stay in place; stale rates beat no rates.

        Returns:
            True if new rates were fetched and merged
        """
        if self._provider is None:
            logger.warning("No exchange rate provider configured, cannot refresh rates")
            return False

        try:
            fresh = await self._provider.fetch_rates()
        except ExternalFetchError as e:
            logger.error(f"Exchange rate refresh failed, keeping existing rates: {e}")
            return False

        changed = self._merge(fresh)
        logger.info(f"Exchange rates refreshed: {changed} pair(s) updated, {len(self._rates)} known")
        return True

    def format_price(self, amount: Number, currency: str) -> str:
        """Format an amount for display.

        Roubles are shown with two decimals after the number, everything
        else with four decimals after the symbol.
        """
        currency = currency.upper()
        value = to_decimal(amount)
        known = self._currencies.get(currency)
        symbol = known.symbol if known else currency
        if currency == "RUB":
            return f"{value:.2f} {symbol}"
        return f"{symbol}{value:.4f}"
