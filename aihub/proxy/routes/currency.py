"""Currency API routes."""

import logging
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from aihub.catalog.currency import CurrencyConverter
from aihub.catalog.money import CANONICAL_CURRENCY, Money
from aihub.catalog.repository import CatalogRepository
from aihub.catalog.sync import RateRefreshService
from aihub.exceptions import BadRequestError
from aihub.proxy.dependencies import get_catalog_repository, get_currency_converter, require_admin
from aihub.proxy.schemas_catalog import (
    ConvertResponse,
    ExchangeRateListResponse,
    ExchangeRateResponse,
    RefreshResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/currency", tags=["Currency"])


def _currency_code(value: str, param: str) -> str:
    if not value.isalpha():
        raise BadRequestError(f"Invalid currency code '{value}'", param=param)
    return value.upper()


@router.get("/convert", response_model=ConvertResponse)
async def convert_amount(
    converter: Annotated[CurrencyConverter, Depends(get_currency_converter)],
    amount: Decimal = Query(..., ge=0, description="Amount to convert"),
    from_currency: str = Query(default=CANONICAL_CURRENCY, min_length=3, max_length=3),
    to_currency: str = Query(..., min_length=3, max_length=3),
) -> ConvertResponse:
    """Convert an amount for display.

    With no known rate the amount comes back unchanged and ``converted``
    is false.
    """
    from_currency = _currency_code(from_currency, "from_currency")
    to_currency = _currency_code(to_currency, "to_currency")
    result = converter.convert_money(Money(amount, from_currency), to_currency)
    return ConvertResponse(
        amount=result.money.amount,
        currency=result.money.currency,
        converted=result.converted,
        formatted=converter.format_price(result.money.amount, result.money.currency),
    )


@router.get("/rates", response_model=ExchangeRateListResponse)
async def list_rates(
    converter: Annotated[CurrencyConverter, Depends(get_currency_converter)],
) -> ExchangeRateListResponse:
    """Latest known rate per currency pair."""
    rates = sorted(converter.rates, key=lambda r: r.pair)
    return ExchangeRateListResponse(
        rates=[
            ExchangeRateResponse(
                from_currency=rate.from_currency,
                to_currency=rate.to_currency,
                rate=rate.rate,
                updated_at=rate.updated_at,
            )
            for rate in rates
        ]
    )


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_rates(
    _admin: Annotated[str, Depends(require_admin)],
    converter: Annotated[CurrencyConverter, Depends(get_currency_converter)],
    repository: Annotated[CatalogRepository, Depends(get_catalog_repository)],
) -> RefreshResponse:
    """Fetch fresh rates now. A failed fetch keeps the previous rates."""
    success = await RateRefreshService(converter, repository).refresh()
    return RefreshResponse(success=success, rates=len(converter.rates))
