"""Catalog API routes.

Sync with the routing service, per-tier quota resolution and rate-limit
administration.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from aihub.catalog.currency import CurrencyConverter
from aihub.catalog.models import RateLimit
from aihub.catalog.quota import PriceView, QuotaResolver
from aihub.catalog.repository import CatalogRepository
from aihub.catalog.sync import CatalogSyncService
from aihub.providers.litellm import LiteLLMCatalogClient
from aihub.proxy.dependencies import (
    get_catalog_client,
    get_catalog_repository,
    get_currency_converter,
    require_admin,
)
from aihub.proxy.schemas_catalog import (
    PriceResponse,
    QuotaResponse,
    RateLimitListResponse,
    RateLimitRequest,
    RateLimitResponse,
    SyncResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/catalog", tags=["Catalog"])


def rate_limit_to_response(limit: RateLimit) -> RateLimitResponse:
    return RateLimitResponse(
        id=limit.id,
        model_id=limit.model_id,
        tier_id=limit.tier_id,
        requests_per_minute=limit.requests_per_minute,
        requests_per_day=limit.requests_per_day,
        tokens_per_minute=limit.tokens_per_minute,
        tokens_per_day=limit.tokens_per_day,
    )


def price_to_response(price: PriceView) -> PriceResponse:
    return PriceResponse(**price.to_dict())


@router.post("/sync", response_model=SyncResponse)
async def sync_catalog(
    _admin: Annotated[str, Depends(require_admin)],
    client: Annotated[LiteLLMCatalogClient, Depends(get_catalog_client)],
    repository: Annotated[CatalogRepository, Depends(get_catalog_repository)],
) -> SyncResponse:
    """Pull model groups from the routing service and reconcile them.

    A fetch failure returns 502 and writes nothing.
    """
    report = await CatalogSyncService(client, repository).sync()
    return SyncResponse(**report.to_dict())


@router.get("/models/{model_id}/quota", response_model=QuotaResponse)
async def get_model_quota(
    model_id: str,
    repository: Annotated[CatalogRepository, Depends(get_catalog_repository)],
    converter: Annotated[CurrencyConverter, Depends(get_currency_converter)],
    tier_id: str = Query(..., description="Tier to resolve limits for"),
    currency: Optional[str] = Query(default=None, description="Also show the price in this currency"),
) -> QuotaResponse:
    """Resolve limits and price of a model on a tier."""
    resolver = QuotaResolver(await repository.load_snapshot())
    resolution = resolver.resolve(model_id, tier_id)

    response = QuotaResponse(
        model_id=resolution.model_id,
        tier_id=resolution.tier_id,
        limits=resolution.limits.to_dict(),
        price=price_to_response(resolution.price),
        explicit=resolution.explicit,
    )

    if currency:
        display_input = converter.convert_money(resolution.price.input, currency)
        display_output = converter.convert_money(resolution.price.output, currency)
        response.display_currency = display_input.money.currency
        response.display_converted = display_input.converted and display_output.converted
        response.display_price = PriceResponse(
            input=str(display_input.money.amount),
            output=str(display_output.money.amount),
            currency=display_input.money.currency,
            is_free=resolution.price.is_free,
        )

    return response


@router.get("/models/{model_id}/rate-limits", response_model=RateLimitListResponse)
async def list_model_rate_limits(
    model_id: str,
    repository: Annotated[CatalogRepository, Depends(get_catalog_repository)],
) -> RateLimitListResponse:
    """One row per tier; tiers without a stored row show all zeros."""
    resolver = QuotaResolver(await repository.load_snapshot())
    return RateLimitListResponse(
        model_id=model_id,
        items=[rate_limit_to_response(limit) for limit in resolver.materialize_tier_limits(model_id)],
    )


@router.put("/rate-limits", response_model=RateLimitResponse)
async def put_rate_limit(
    request: RateLimitRequest,
    _admin: Annotated[str, Depends(require_admin)],
    repository: Annotated[CatalogRepository, Depends(get_catalog_repository)],
) -> RateLimitResponse:
    """Create or update the rate limit of a (model, tier) pair."""
    stored, created = await repository.save_rate_limit(
        RateLimit(
            model_id=request.model_id,
            tier_id=request.tier_id,
            requests_per_minute=request.requests_per_minute,
            requests_per_day=request.requests_per_day,
            tokens_per_minute=request.tokens_per_minute,
            tokens_per_day=request.tokens_per_day,
        )
    )
    logger.info(
        f"{'Created' if created else 'Updated'} rate limit model={stored.model_id} tier={stored.tier_id}"
    )
    return rate_limit_to_response(stored)


@router.delete("/rate-limits/{model_id}/{tier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rate_limit(
    model_id: str,
    tier_id: str,
    _admin: Annotated[str, Depends(require_admin)],
    repository: Annotated[CatalogRepository, Depends(get_catalog_repository)],
) -> None:
    """Delete a rate limit; the pair falls back to "no limit"."""
    await repository.delete_rate_limit(model_id, tier_id)
