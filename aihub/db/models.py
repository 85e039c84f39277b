"""Database models for aihub.

This module defines the SQLAlchemy tables backing the model catalog:
- Companies: Model vendors, linked to the routing service by external_id
- Models: Models synced from the routing service plus admin-owned text
- Model configs: Local pricing and availability, one per model
- Tiers: Customer plans
- Rate limits: Per (model, tier) limits, 0 meaning "no limit"
- Currencies and exchange rates: Display-currency conversion
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aihub.db.base import Base, TimestampMixin, UUIDMixin, utc_now


class Company(Base, UUIDMixin, TimestampMixin):
    """Company model - the vendor behind a set of models."""

    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Company display name",
    )
    logo_url: Mapped[Optional[str]] = mapped_column(
        String(1024),
        nullable=True,
        comment="Logo URL (admin-owned)",
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Company description (admin-owned)",
    )
    external_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
        index=True,
        comment="Provider key in the routing service",
    )

    models: Mapped[List["Model"]] = relationship(
        "Model",
        back_populates="company",
    )

    def __repr__(self) -> str:
        return f"<Company(id={self.id}, name={self.name}, external_id={self.external_id})>"


class Model(Base, UUIDMixin, TimestampMixin):
    """Model served through the routing service.

    Capability columns are owned by the routing service and overwritten on
    every sync. name, description and features are owned by admins.
    """

    __tablename__ = "models"
    __table_args__ = (
        UniqueConstraint("company_id", "external_id", name="uq_model_company_external"),
    )

    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("companies.id"),
        nullable=False,
        index=True,
        comment="Owning company ID",
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name (admin-owned)",
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Model description (admin-owned)",
    )
    features: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Marketing feature text (admin-owned)",
    )
    external_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Model group name in the routing service",
    )
    supports_vision: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    supports_function_calling: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    supports_parallel_function_calling: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    supports_web_search: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    supports_reasoning: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    max_input_tokens: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Context window reported by the routing service",
    )
    max_output_tokens: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Maximum completion length reported by the routing service",
    )
    mode: Mapped[str] = mapped_column(
        String(32),
        default="chat",
        nullable=False,
        comment="Endpoint kind (chat, completion, embedding, image_generation)",
    )
    providers: Mapped[list] = mapped_column(
        JSON,
        default=list,
        nullable=False,
        comment="Provider keys, first one owns the model",
    )
    supported_openai_params: Mapped[list] = mapped_column(
        JSON,
        default=list,
        nullable=False,
        comment="OpenAI request parameters the model accepts",
    )

    company: Mapped["Company"] = relationship("Company", back_populates="models")
    config: Mapped[Optional["ModelConfig"]] = relationship(
        "ModelConfig",
        back_populates="model",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Model(id={self.id}, name={self.name}, external_id={self.external_id})>"


class ModelConfig(Base, TimestampMixin):
    """Local pricing and availability for a model. Costs are USD per token."""

    __tablename__ = "model_configs"

    model_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("models.id", ondelete="CASCADE"),
        primary_key=True,
        comment="Configured model ID",
    )
    is_free: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Free models are priced at zero regardless of stored costs",
    )
    is_enabled: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Disabled models are not offered",
    )
    input_token_cost: Mapped[Decimal] = mapped_column(
        Numeric(20, 12),
        default=Decimal("0"),
        nullable=False,
        comment="USD per input token",
    )
    output_token_cost: Mapped[Decimal] = mapped_column(
        Numeric(20, 12),
        default=Decimal("0"),
        nullable=False,
        comment="USD per output token",
    )

    model: Mapped["Model"] = relationship("Model", back_populates="config")

    def __repr__(self) -> str:
        return f"<ModelConfig(model_id={self.model_id}, is_free={self.is_free}, is_enabled={self.is_enabled})>"


class Tier(Base, UUIDMixin, TimestampMixin):
    """Tier model - a customer plan gating request volume."""

    __tablename__ = "tiers"

    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        comment="Tier name",
    )
    is_free: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(15, 4),
        default=Decimal("0"),
        nullable=False,
        comment="Cumulative spend (USD) needed to reach this tier",
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Tier(id={self.id}, name={self.name}, price={self.price})>"


class RateLimit(Base, UUIDMixin, TimestampMixin):
    """Rate limit for a (model, tier) pair. 0 on any counter means no limit."""

    __tablename__ = "rate_limits"
    __table_args__ = (
        UniqueConstraint("model_id", "tier_id", name="uq_rate_limit_model_tier"),
    )

    model_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("models.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tier_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tiers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    requests_per_minute: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    requests_per_day: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tokens_per_minute: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tokens_per_day: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<RateLimit(model_id={self.model_id}, tier_id={self.tier_id})>"


class Currency(Base):
    """Display currency, keyed by ISO code."""

    __tablename__ = "currencies"

    id: Mapped[str] = mapped_column(
        String(3),
        primary_key=True,
        comment="ISO 4217 code",
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    symbol: Mapped[str] = mapped_column(String(8), nullable=False)

    def __repr__(self) -> str:
        return f"<Currency(id={self.id}, symbol={self.symbol})>"


class ExchangeRate(Base, UUIDMixin):
    """Latest known conversion rate for a currency pair."""

    __tablename__ = "exchange_rates"
    __table_args__ = (
        UniqueConstraint("from_currency", "to_currency", name="uq_exchange_rate_pair"),
    )

    from_currency: Mapped[str] = mapped_column(
        String(3),
        ForeignKey("currencies.id"),
        nullable=False,
    )
    to_currency: Mapped[str] = mapped_column(
        String(3),
        ForeignKey("currencies.id"),
        nullable=False,
    )
    rate: Mapped[Decimal] = mapped_column(
        Numeric(24, 12),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        comment="When the rate was fetched",
    )

    def __repr__(self) -> str:
        return f"<ExchangeRate({self.from_currency}->{self.to_currency}={self.rate})>"
