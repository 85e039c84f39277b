"""Pydantic schemas for the catalog and currency APIs."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ========== Catalog Sync ==========

class ReconciliationSummary(BaseModel):
    """Counts for one reconciliation pass."""

    created: int = 0
    updated: int = 0
    unchanged: int = 0
    orphaned: int = 0
    skipped: int = 0
    unlinked: Optional[int] = Field(default=None, description="Models whose company could not be resolved")


class SkippedEntry(BaseModel):
    """A provider entry that failed validation."""

    external_id: Optional[str] = None
    reason: str


class SyncResponse(BaseModel):
    """Result of a catalog sync."""

    companies: ReconciliationSummary
    models: ReconciliationSummary
    skipped: int = Field(..., description="Malformed entries skipped across the batch")
    skipped_entries: list[SkippedEntry] = Field(default_factory=list)
    unlinked_external_ids: list[str] = Field(default_factory=list)


# ========== Quota ==========

class RateLimitValues(BaseModel):
    """Rate-limit counters. 0 means no limit."""

    requests_per_minute: int = Field(default=0, ge=0, description="Requests per minute (0 = unlimited)")
    requests_per_day: int = Field(default=0, ge=0, description="Requests per day (0 = unlimited)")
    tokens_per_minute: int = Field(default=0, ge=0, description="Tokens per minute (0 = unlimited)")
    tokens_per_day: int = Field(default=0, ge=0, description="Tokens per day (0 = unlimited)")


class PriceResponse(BaseModel):
    """Per-token price in the canonical currency."""

    input: str = Field(..., description="Price per input token")
    output: str = Field(..., description="Price per output token")
    currency: str = "USD"
    is_free: bool = False


class QuotaResponse(BaseModel):
    """Effective limits and price for a model on a tier."""

    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    tier_id: str
    limits: RateLimitValues
    price: PriceResponse
    explicit: bool = Field(..., description="True when an admin-set rate limit backs the limits")
    display_currency: Optional[str] = None
    display_price: Optional[PriceResponse] = Field(
        default=None,
        description="Price converted for display; unconverted when no rate is known",
    )
    display_converted: Optional[bool] = None


class RateLimitRequest(RateLimitValues):
    """Create or update the rate limit of a (model, tier) pair."""

    model_config = ConfigDict(protected_namespaces=())

    model_id: str = Field(..., min_length=1)
    tier_id: str = Field(..., min_length=1)


class RateLimitResponse(RateLimitValues):
    """Stored (or implicit) rate limit of a (model, tier) pair."""

    model_config = ConfigDict(protected_namespaces=())

    id: Optional[str] = Field(default=None, description="None when no row is stored for the pair")
    model_id: str
    tier_id: str


class RateLimitListResponse(BaseModel):
    """One rate limit per tier for a model."""

    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    items: list[RateLimitResponse]


# ========== Currency ==========

class ConvertResponse(BaseModel):
    """Result of a display conversion."""

    amount: Decimal
    currency: str
    converted: bool = Field(..., description="False when no rate was known and the amount is unconverted")
    formatted: str


class ExchangeRateResponse(BaseModel):
    """Latest known rate for a pair."""

    from_currency: str
    to_currency: str
    rate: Decimal
    updated_at: datetime


class ExchangeRateListResponse(BaseModel):
    rates: list[ExchangeRateResponse]


class RefreshResponse(BaseModel):
    success: bool
    rates: int = Field(..., description="Number of known currency pairs after the refresh")
