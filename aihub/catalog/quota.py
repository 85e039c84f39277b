"""Tier quota resolution.

Given a model and a tier, work out the limits and per-token price shown to
admins and users. The result is advisory: request-time enforcement and
billing live outside this module.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from aihub.exceptions import ModelUnavailableError, NotFoundError

from .models import CatalogSnapshot, Model, ModelConfig, RateLimit, RateLimitView, Tier
from .money import Money, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceView:
    """Per-token price for a model."""

    input: Money
    output: Money
    is_free: bool = False

    @classmethod
    def from_config(cls, config: ModelConfig) -> "PriceView":
        return cls(
            input=config.effective_input_cost,
            output=config.effective_output_cost,
            is_free=config.is_free,
        )

    def cost_for(self, input_tokens: int = 0, output_tokens: int = 0) -> Money:
        """Estimate the cost of a request with the given token counts."""
        if input_tokens < 0 or output_tokens < 0:
            raise ValueError("Token counts must be >= 0")
        return self.input * input_tokens + self.output * output_tokens

    def to_dict(self) -> dict:
        return {
            "input": str(self.input.amount),
            "output": str(self.output.amount),
            "currency": self.input.currency,
            "is_free": self.is_free,
        }


@dataclass(frozen=True)
class QuotaResolution:
    """Effective limits and price for a (model, tier) pair.

    ``explicit`` is True when an admin-created rate-limit row backs the
    limits; False means the implicit "no limit" default applied.
    """

    model_id: str
    tier_id: str
    limits: RateLimitView
    price: PriceView
    explicit: bool = False

    def to_dict(self) -> dict:
        return {
            "model_id": self.model_id,
            "tier_id": self.tier_id,
            "limits": self.limits.to_dict(),
            "price": self.price.to_dict(),
            "explicit": self.explicit,
        }


class QuotaResolver:
    """Resolves limits and prices over an explicit catalog snapshot.

    Usage:
        resolver = QuotaResolver(snapshot)
        resolution = resolver.resolve("m1", "free")
    """

    def __init__(self, snapshot: CatalogSnapshot):
        self._models: dict[str, Model] = {m.id: m for m in snapshot.models}
        self._configs: dict[str, ModelConfig] = {c.model_id: c for c in snapshot.configs}
        self._tiers: dict[str, Tier] = {t.id: t for t in snapshot.tiers}
        self._tier_order: list[Tier] = list(snapshot.tiers)
        self._limits: dict[tuple[str, str], RateLimit] = {}
        for limit in snapshot.rate_limits:
            if limit.key in self._limits:
                logger.warning(f"Duplicate rate limit for model={limit.model_id} tier={limit.tier_id}, keeping first")
                continue
            self._limits[limit.key] = limit

    def _get_model(self, model_id: str) -> Model:
        model = self._models.get(model_id)
        if model is None:
            raise NotFoundError(f"Model '{model_id}' not found", param="model_id")
        return model

    def _get_tier(self, tier_id: str) -> Tier:
        tier = self._tiers.get(tier_id)
        if tier is None:
            raise NotFoundError(f"Tier '{tier_id}' not found", param="tier_id")
        return tier

    def _get_offered_config(self, model_id: str) -> ModelConfig:
        config = self._configs.get(model_id)
        if config is None:
            raise ModelUnavailableError(model_id, "not configured")
        if not config.is_enabled:
            raise ModelUnavailableError(model_id, "disabled")
        return config

    def get_rate_limit(self, model_id: str, tier_id: str) -> Optional[RateLimit]:
        """Return the explicit rate-limit row for a pair, if any."""
        return self._limits.get((model_id, tier_id))

    def resolve(self, model_id: str, tier_id: str) -> QuotaResolution:
        """Resolve effective limits and price for a model on a tier.

        Args:
            model_id: Local model id
            tier_id: Tier id

        Returns:
            QuotaResolution

        Raises:
            NotFoundError: If the model or tier does not exist
            ModelUnavailableError: If the model has no config or is disabled
        """
        self._get_model(model_id)
        self._get_tier(tier_id)
        config = self._get_offered_config(model_id)

        row = self._limits.get((model_id, tier_id))
        limits = row.view() if row is not None else RateLimitView.unlimited()

        return QuotaResolution(
            model_id=model_id,
            tier_id=tier_id,
            limits=limits,
            price=PriceView.from_config(config),
            explicit=row is not None,
        )

    def resolve_all_tiers(self, model_id: str) -> list[QuotaResolution]:
        """Resolve a model against every known tier."""
        return [self.resolve(model_id, tier.id) for tier in self._tier_order]

    def materialize_tier_limits(self, model_id: str) -> list[RateLimit]:
        """One rate-limit row per tier, zero-valued where none exists.

        This is what the admin editor works on, so that "no limit" and
        "not yet set" always look the same.
        """
        self._get_model(model_id)
        return [
            self._limits.get((model_id, tier.id)) or RateLimit(model_id=model_id, tier_id=tier.id)
            for tier in self._tier_order
        ]


def tier_for_spending(tiers: Iterable[Tier], total_spent) -> Optional[Tier]:
    """Pick the highest tier whose price the customer's spending has reached.

    Tiers are walked in ascending price order; the walk stops at the first
    tier that has not been reached yet.
    """
    spent = to_decimal(total_spent)
    chosen: Optional[Tier] = None
    for tier in sorted(tiers, key=lambda t: t.price):
        if spent >= tier.price:
            chosen = tier
        else:
            break
    return chosen

