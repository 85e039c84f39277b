"""Catalog persistence.

Maps catalog records to the database tables and writes reconciliation
results back column by column: only fields the provider owns are touched
on update, so concurrent admin edits to names or descriptions survive a
sync.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from aihub.db import models as orm
from aihub.exceptions import ConflictError, NotFoundError

from .models import (
    CatalogSnapshot,
    Company,
    Currency,
    ExchangeRate,
    Model,
    ModelConfig,
    RateLimit,
    Tier,
)
from .money import Money
from .reconciler import CompanyReconciliation, ModelReconciliation

logger = logging.getLogger(__name__)

RATE_LIMIT_COUNTERS = ("requests_per_minute", "requests_per_day", "tokens_per_minute", "tokens_per_day")


def _company_from_row(row: orm.Company) -> Company:
    return Company(
        id=row.id,
        name=row.name,
        logo_url=row.logo_url,
        description=row.description,
        external_id=row.external_id,
    )


def _model_from_row(row: orm.Model) -> Model:
    return Model(
        id=row.id,
        company_id=row.company_id,
        name=row.name,
        description=row.description,
        features=row.features,
        external_id=row.external_id,
        supports_vision=row.supports_vision,
        supports_function_calling=row.supports_function_calling,
        supports_parallel_function_calling=row.supports_parallel_function_calling,
        supports_web_search=row.supports_web_search,
        supports_reasoning=row.supports_reasoning,
        max_input_tokens=row.max_input_tokens,
        max_output_tokens=row.max_output_tokens,
        mode=row.mode,
        providers=tuple(row.providers or ()),
        supported_openai_params=tuple(row.supported_openai_params or ()),
    )


def _model_column_value(model: Model, name: str):
    """Convert a Model attribute to what its column stores."""
    value = getattr(model, name)
    if name == "mode":
        return value.value
    if name in ("providers", "supported_openai_params"):
        return list(value)
    return value


def _model_to_row(model: Model) -> orm.Model:
    return orm.Model(
        id=model.id,
        company_id=model.company_id,
        name=model.name,
        description=model.description,
        features=model.features,
        external_id=model.external_id,
        supports_vision=model.supports_vision,
        supports_function_calling=model.supports_function_calling,
        supports_parallel_function_calling=model.supports_parallel_function_calling,
        supports_web_search=model.supports_web_search,
        supports_reasoning=model.supports_reasoning,
        max_input_tokens=model.max_input_tokens,
        max_output_tokens=model.max_output_tokens,
        mode=model.mode.value,
        providers=list(model.providers),
        supported_openai_params=list(model.supported_openai_params),
    )


def _config_from_row(row: orm.ModelConfig) -> ModelConfig:
    return ModelConfig(
        model_id=row.model_id,
        is_free=row.is_free,
        is_enabled=row.is_enabled,
        input_token_cost=Money(row.input_token_cost),
        output_token_cost=Money(row.output_token_cost),
    )


def _tier_from_row(row: orm.Tier) -> Tier:
    return Tier(
        id=row.id,
        name=row.name,
        is_free=row.is_free,
        price=row.price,
        description=row.description,
    )


def _rate_limit_from_row(row: orm.RateLimit) -> RateLimit:
    return RateLimit(
        id=row.id,
        model_id=row.model_id,
        tier_id=row.tier_id,
        requests_per_minute=row.requests_per_minute,
        requests_per_day=row.requests_per_day,
        tokens_per_minute=row.tokens_per_minute,
        tokens_per_day=row.tokens_per_day,
    )


class CatalogRepository:
    """Reads and writes catalog records.

    Usage:
        async with get_session() as session:
            repo = CatalogRepository(session)
            snapshot = await repo.load_snapshot()
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def load_companies(self) -> list[Company]:
        result = await self.db.execute(select(orm.Company).order_by(orm.Company.name))
        return [_company_from_row(row) for row in result.scalars().all()]

    async def load_models(self) -> list[Model]:
        result = await self.db.execute(select(orm.Model).order_by(orm.Model.name))
        return [_model_from_row(row) for row in result.scalars().all()]

    async def load_snapshot(self) -> CatalogSnapshot:
        """Load every catalog table into an immutable snapshot.

        Tiers come back in ascending price order.
        """
        companies = await self.load_companies()
        models = await self.load_models()
        configs = (await self.db.execute(select(orm.ModelConfig))).scalars().all()
        tiers = (await self.db.execute(select(orm.Tier).order_by(orm.Tier.price, orm.Tier.name))).scalars().all()
        limits = (await self.db.execute(select(orm.RateLimit))).scalars().all()

        return CatalogSnapshot(
            companies=companies,
            models=models,
            configs=[_config_from_row(row) for row in configs],
            tiers=[_tier_from_row(row) for row in tiers],
            rate_limits=[_rate_limit_from_row(row) for row in limits],
        )

    async def load_rates(self) -> list[ExchangeRate]:
        result = await self.db.execute(select(orm.ExchangeRate))
        return [
            ExchangeRate(
                from_currency=row.from_currency,
                to_currency=row.to_currency,
                rate=row.rate,
                updated_at=row.updated_at,
            )
            for row in result.scalars().all()
        ]

    async def load_currencies(self) -> list[Currency]:
        result = await self.db.execute(select(orm.Currency).order_by(orm.Currency.id))
        return [Currency(id=row.id, name=row.name, symbol=row.symbol) for row in result.scalars().all()]

    # ------------------------------------------------------------------
    # Reconciliation writes
    # ------------------------------------------------------------------

    async def apply_company_reconciliation(self, result: CompanyReconciliation) -> None:
        """Persist created companies and provider-owned changes.

        Updates write only ``name`` and ``external_id``; logo and
        description belong to admins.
        """
        for company in result.created:
            self.db.add(
                orm.Company(
                    id=company.id,
                    name=company.name,
                    logo_url=company.logo_url,
                    description=company.description,
                    external_id=company.external_id,
                )
            )

        for company in result.updated:
            await self.db.execute(
                update(orm.Company)
                .where(orm.Company.id == company.id)
                .values(name=company.name, external_id=company.external_id)
            )

        await self.db.flush()
        logger.info(
            f"Persisted companies: {len(result.created)} created, {len(result.updated)} updated"
        )

    async def apply_model_reconciliation(self, result: ModelReconciliation) -> None:
        """Persist created models and the changed provider-sourced columns."""
        for model in result.created:
            self.db.add(_model_to_row(model))

        for model in result.updated:
            changed = result.changes.get(model.id, ())
            if not changed:
                continue
            values = {name: _model_column_value(model, name) for name in changed}
            await self.db.execute(
                update(orm.Model).where(orm.Model.id == model.id).values(**values)
            )

        await self.db.flush()
        logger.info(
            f"Persisted models: {len(result.created)} created, {len(result.updated)} updated"
        )

    # ------------------------------------------------------------------
    # Rate limits
    # ------------------------------------------------------------------

    async def _get_rate_limit_row(self, model_id: str, tier_id: str) -> Optional[orm.RateLimit]:
        result = await self.db.execute(
            select(orm.RateLimit).where(
                orm.RateLimit.model_id == model_id,
                orm.RateLimit.tier_id == tier_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_rate_limit(self, model_id: str, tier_id: str) -> Optional[RateLimit]:
        row = await self._get_rate_limit_row(model_id, tier_id)
        return _rate_limit_from_row(row) if row else None

    async def create_rate_limit(self, limit: RateLimit) -> RateLimit:
        """Create a rate limit row.

        Raises:
            NotFoundError: If the model or tier does not exist
            ConflictError: If the pair already has a row
        """
        if await self.db.get(orm.Model, limit.model_id) is None:
            raise NotFoundError(f"Model '{limit.model_id}' not found", param="model_id")
        if await self.db.get(orm.Tier, limit.tier_id) is None:
            raise NotFoundError(f"Tier '{limit.tier_id}' not found", param="tier_id")
        if await self._get_rate_limit_row(limit.model_id, limit.tier_id) is not None:
            raise ConflictError(
                f"Rate limit for model '{limit.model_id}' and tier '{limit.tier_id}' already exists"
            )

        row = orm.RateLimit(
            model_id=limit.model_id,
            tier_id=limit.tier_id,
            **{name: getattr(limit, name) for name in RATE_LIMIT_COUNTERS},
        )
        self.db.add(row)
        await self.db.flush()
        logger.info(f"Created rate limit for model={limit.model_id} tier={limit.tier_id}")
        return _rate_limit_from_row(row)

    async def update_rate_limit(self, limit: RateLimit) -> RateLimit:
        """Overwrite the counters of an existing row.

        Raises:
            NotFoundError: If the pair has no row
        """
        row = await self._get_rate_limit_row(limit.model_id, limit.tier_id)
        if row is None:
            raise NotFoundError(
                f"Rate limit for model '{limit.model_id}' and tier '{limit.tier_id}' not found"
            )
        for name in RATE_LIMIT_COUNTERS:
            setattr(row, name, getattr(limit, name))
        await self.db.flush()
        logger.info(f"Updated rate limit for model={limit.model_id} tier={limit.tier_id}")
        return _rate_limit_from_row(row)

    async def save_rate_limit(self, limit: RateLimit) -> tuple[RateLimit, bool]:
        """Create or update. Returns the stored row and whether it was created."""
        if await self._get_rate_limit_row(limit.model_id, limit.tier_id) is None:
            return await self.create_rate_limit(limit), True
        return await self.update_rate_limit(limit), False

    async def delete_rate_limit(self, model_id: str, tier_id: str) -> None:
        row = await self._get_rate_limit_row(model_id, tier_id)
        if row is None:
            raise NotFoundError(f"Rate limit for model '{model_id}' and tier '{tier_id}' not found")
        await self.db.delete(row)
        await self.db.flush()
        logger.info(f"Deleted rate limit for model={model_id} tier={tier_id}")

    # ------------------------------------------------------------------
    # Admin-owned records
    # ------------------------------------------------------------------

    async def upsert_model_config(self, config: ModelConfig) -> ModelConfig:
        """Create or replace the config of a model.

        Raises:
            NotFoundError: If the model does not exist
        """
        if await self.db.get(orm.Model, config.model_id) is None:
            raise NotFoundError(f"Model '{config.model_id}' not found", param="model_id")

        row = await self.db.get(orm.ModelConfig, config.model_id)
        if row is None:
            row = orm.ModelConfig(model_id=config.model_id)
            self.db.add(row)
        row.is_free = config.is_free
        row.is_enabled = config.is_enabled
        row.input_token_cost = config.input_token_cost.amount
        row.output_token_cost = config.output_token_cost.amount
        await self.db.flush()
        return _config_from_row(row)

    async def delete_company(self, company_id: str) -> None:
        """Delete a company that owns no models.

        Raises:
            NotFoundError: If the company does not exist
            ConflictError: If models still reference it
        """
        row = await self.db.get(orm.Company, company_id)
        if row is None:
            raise NotFoundError(f"Company '{company_id}' not found", param="company_id")

        count = await self.db.scalar(
            select(func.count()).select_from(orm.Model).where(orm.Model.company_id == company_id)
        )
        if count:
            raise ConflictError(f"Company '{company_id}' still has {count} model(s)")

        await self.db.delete(row)
        await self.db.flush()
        logger.info(f"Deleted company {company_id}")

    # ------------------------------------------------------------------
    # Currencies
    # ------------------------------------------------------------------

    async def ensure_currencies(self, currencies: Iterable[Currency]) -> None:
        """Insert currencies that are not stored yet."""
        for currency in currencies:
            if await self.db.get(orm.Currency, currency.id) is None:
                self.db.add(orm.Currency(id=currency.id, name=currency.name, symbol=currency.symbol))
        await self.db.flush()

    async def save_rates(self, rates: Iterable[ExchangeRate]) -> int:
        """Upsert one row per currency pair. Returns how many rows were written."""
        rates = list(rates)
        known = {c.id for c in await self.load_currencies()}
        for code in sorted({code for rate in rates for code in rate.pair} - known):
            self.db.add(orm.Currency(id=code, name=code, symbol=code))

        written = 0
        for rate in rates:
            result = await self.db.execute(
                select(orm.ExchangeRate).where(
                    orm.ExchangeRate.from_currency == rate.from_currency,
                    orm.ExchangeRate.to_currency == rate.to_currency,
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = orm.ExchangeRate(from_currency=rate.from_currency, to_currency=rate.to_currency)
                self.db.add(row)
            row.rate = Decimal(rate.rate)
            row.updated_at = rate.updated_at
            written += 1
        await self.db.flush()
        logger.info(f"Saved {written} exchange rate(s)")
        return written
