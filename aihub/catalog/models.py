"""Catalog data models for aihub.

These are the reconciled records the rest of the catalog works with:
companies and models merged from the provider snapshot, the locally owned
model configuration, tiers, per-tier rate limits and exchange rates.

Field ownership on ``Model`` matters for reconciliation:

- provider-sourced fields are overwritten from every provider snapshot
- admin-owned fields are only ever changed by an admin edit
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from .money import CANONICAL_CURRENCY, Money, to_decimal


class ModelMode(str, Enum):
    """What kind of endpoint a model serves."""

    CHAT = "chat"
    COMPLETION = "completion"
    EMBEDDING = "embedding"
    IMAGE_GENERATION = "image_generation"


PROVIDER_FIELDS = (
    "supports_vision",
    "supports_function_calling",
    "supports_parallel_function_calling",
    "supports_web_search",
    "supports_reasoning",
    "max_input_tokens",
    "max_output_tokens",
    "mode",
    "providers",
    "supported_openai_params",
)

ADMIN_FIELDS = ("name", "description", "features")


@dataclass(frozen=True)
class Company:
    """A model vendor. ``external_id`` links it to the provider snapshot."""

    id: str
    name: str
    logo_url: Optional[str] = None
    description: Optional[str] = None
    external_id: Optional[str] = None


@dataclass(frozen=True)
class Model:
    """A model as served through the routing service."""

    id: str
    company_id: str
    name: str
    description: Optional[str] = None
    features: Optional[str] = None
    external_id: Optional[str] = None

    # Provider-sourced
    supports_vision: bool = False
    supports_function_calling: bool = False
    supports_parallel_function_calling: bool = False
    supports_web_search: bool = False
    supports_reasoning: bool = False
    max_input_tokens: Optional[int] = None
    max_output_tokens: Optional[int] = None
    mode: ModelMode = ModelMode.CHAT
    providers: tuple[str, ...] = ()
    supported_openai_params: tuple[str, ...] = ()

    def __post_init__(self):
        for name in ("max_input_tokens", "max_output_tokens"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")
        object.__setattr__(self, "mode", ModelMode(self.mode))
        object.__setattr__(self, "providers", tuple(self.providers))
        object.__setattr__(self, "supported_openai_params", tuple(self.supported_openai_params))

    def provider_fields(self) -> dict:
        """Return the provider-sourced fields as a dict."""
        return {name: getattr(self, name) for name in PROVIDER_FIELDS}


@dataclass(frozen=True)
class ModelConfig:
    """Local pricing and availability for a model.

    A model without a config is "external only": it is known from the
    provider but not monetised or exposed.
    """

    model_id: str
    is_free: bool = False
    is_enabled: bool = True
    input_token_cost: Money = field(default_factory=Money.zero)
    output_token_cost: Money = field(default_factory=Money.zero)

    def __post_init__(self):
        for name in ("input_token_cost", "output_token_cost"):
            value = getattr(self, name)
            if not isinstance(value, Money):
                value = Money(to_decimal(value), CANONICAL_CURRENCY)
                object.__setattr__(self, name, value)
            if value.currency != CANONICAL_CURRENCY:
                raise ValueError(f"{name} must be stored in {CANONICAL_CURRENCY}")
            if value.amount < 0:
                raise ValueError(f"{name} must be >= 0")

    @property
    def effective_input_cost(self) -> Money:
        return Money.zero() if self.is_free else self.input_token_cost

    @property
    def effective_output_cost(self) -> Money:
        return Money.zero() if self.is_free else self.output_token_cost


@dataclass(frozen=True)
class Tier:
    """A customer plan. Gates volume, not per-token price."""

    id: str
    name: str
    is_free: bool = False
    price: Decimal = Decimal("0")
    description: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "price", to_decimal(self.price))
        if self.price < 0:
            raise ValueError("Tier price must be >= 0")


@dataclass(frozen=True)
class Limit:
    """A single rate-limit axis: either unlimited or capped at ``value``.

    The wire format uses ``0`` for "no limit"; inside aihub that sentinel
    is always turned into ``Limit.unlimited()`` so it never ends up in a
    comparison or a sum.
    """

    value: Optional[int] = None

    def __post_init__(self):
        if self.value is not None and self.value <= 0:
            raise ValueError("A limited axis needs a positive cap; use Limit.unlimited()")

    @classmethod
    def unlimited(cls) -> "Limit":
        return cls(None)

    @classmethod
    def limited(cls, value: int) -> "Limit":
        return cls(value)

    @classmethod
    def from_wire(cls, value: int) -> "Limit":
        if value < 0:
            raise ValueError(f"Rate limit counters must be >= 0, got {value}")
        return cls.unlimited() if value == 0 else cls.limited(value)

    @property
    def is_unlimited(self) -> bool:
        return self.value is None

    def to_wire(self) -> int:
        return 0 if self.value is None else self.value

    def allows(self, amount: int) -> bool:
        """Check whether ``amount`` fits under this limit."""
        return self.value is None or amount <= self.value

    def __str__(self) -> str:
        return "unlimited" if self.value is None else str(self.value)


@dataclass(frozen=True)
class RateLimitView:
    """Effective limits for a (model, tier) pair."""

    requests_per_minute: Limit = field(default_factory=Limit.unlimited)
    requests_per_day: Limit = field(default_factory=Limit.unlimited)
    tokens_per_minute: Limit = field(default_factory=Limit.unlimited)
    tokens_per_day: Limit = field(default_factory=Limit.unlimited)

    @classmethod
    def unlimited(cls) -> "RateLimitView":
        return cls()

    @property
    def is_unlimited(self) -> bool:
        return all(
            limit.is_unlimited
            for limit in (
                self.requests_per_minute,
                self.requests_per_day,
                self.tokens_per_minute,
                self.tokens_per_day,
            )
        )

    def to_dict(self) -> dict:
        """Convert to the wire format (0 = no limit)."""
        return {
            "requests_per_minute": self.requests_per_minute.to_wire(),
            "requests_per_day": self.requests_per_day.to_wire(),
            "tokens_per_minute": self.tokens_per_minute.to_wire(),
            "tokens_per_day": self.tokens_per_day.to_wire(),
        }


@dataclass(frozen=True)
class RateLimit:
    """An admin-configured limit row for one (model, tier) pair."""

    model_id: str
    tier_id: str
    requests_per_minute: int = 0
    requests_per_day: int = 0
    tokens_per_minute: int = 0
    tokens_per_day: int = 0
    id: Optional[str] = None

    def __post_init__(self):
        for name in ("requests_per_minute", "requests_per_day", "tokens_per_minute", "tokens_per_day"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")

    @property
    def key(self) -> tuple[str, str]:
        return (self.model_id, self.tier_id)

    @property
    def is_unlimited(self) -> bool:
        return self.view().is_unlimited

    def view(self) -> RateLimitView:
        return RateLimitView(
            requests_per_minute=Limit.from_wire(self.requests_per_minute),
            requests_per_day=Limit.from_wire(self.requests_per_day),
            tokens_per_minute=Limit.from_wire(self.tokens_per_minute),
            tokens_per_day=Limit.from_wire(self.tokens_per_day),
        )


@dataclass(frozen=True)
class Currency:
    """A display currency."""

    id: str
    name: str
    symbol: str


@dataclass(frozen=True)
class ExchangeRate:
    """Conversion rate for a currency pair at a point in time."""

    from_currency: str
    to_currency: str
    rate: Decimal
    updated_at: datetime

    def __post_init__(self):
        object.__setattr__(self, "from_currency", self.from_currency.upper())
        object.__setattr__(self, "to_currency", self.to_currency.upper())
        object.__setattr__(self, "rate", to_decimal(self.rate))
        if self.rate <= 0:
            raise ValueError("Exchange rate must be positive")
        if self.updated_at.tzinfo is None:
            # Naive timestamps (SQLite drops the offset) are UTC
            object.__setattr__(self, "updated_at", self.updated_at.replace(tzinfo=timezone.utc))

    @property
    def pair(self) -> tuple[str, str]:
        return (self.from_currency, self.to_currency)


@dataclass(frozen=True)
class CatalogSnapshot:
    """Everything the resolver needs, passed in explicitly."""

    companies: tuple[Company, ...] = ()
    models: tuple[Model, ...] = ()
    configs: tuple[ModelConfig, ...] = ()
    tiers: tuple[Tier, ...] = ()
    rate_limits: tuple[RateLimit, ...] = ()

    def __post_init__(self):
        for name in ("companies", "models", "configs", "tiers", "rate_limits"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
