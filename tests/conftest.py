"""Shared fixtures for aihub tests."""

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from aihub.catalog.currency import ExchangeRateProvider
from aihub.catalog.models import (
    CatalogSnapshot,
    Company,
    ExchangeRate,
    Model,
    ModelConfig,
    RateLimit,
    Tier,
)
from aihub.db.base import Base
from aihub.exceptions import ExternalFetchError, NotFoundError


class InMemoryCatalogRepository:
    """Stand-in for CatalogRepository backed by plain lists."""

    def __init__(self, snapshot: CatalogSnapshot, rates=()):
        self.companies = list(snapshot.companies)
        self.models = list(snapshot.models)
        self.configs = list(snapshot.configs)
        self.tiers = list(snapshot.tiers)
        self.rate_limits = {limit.key: limit for limit in snapshot.rate_limits}
        self.rates = list(rates)
        self.company_results = []
        self.model_results = []

    async def load_snapshot(self) -> CatalogSnapshot:
        return CatalogSnapshot(
            companies=self.companies,
            models=self.models,
            configs=self.configs,
            tiers=self.tiers,
            rate_limits=list(self.rate_limits.values()),
        )

    async def load_companies(self):
        return list(self.companies)

    async def load_models(self):
        return list(self.models)

    async def load_rates(self):
        return list(self.rates)

    async def apply_company_reconciliation(self, result):
        self.company_results.append(result)
        self.companies = result.companies

    async def apply_model_reconciliation(self, result):
        self.model_results.append(result)
        self.models = result.models

    async def save_rate_limit(self, limit: RateLimit):
        if limit.model_id not in {m.id for m in self.models}:
            raise NotFoundError(f"Model '{limit.model_id}' not found")
        if limit.tier_id not in {t.id for t in self.tiers}:
            raise NotFoundError(f"Tier '{limit.tier_id}' not found")
        existing = self.rate_limits.get(limit.key)
        stored = replace(limit, id=existing.id if existing else f"rl-{len(self.rate_limits) + 1}")
        self.rate_limits[limit.key] = stored
        return stored, existing is None

    async def delete_rate_limit(self, model_id: str, tier_id: str):
        if (model_id, tier_id) not in self.rate_limits:
            raise NotFoundError("Rate limit not found")
        del self.rate_limits[(model_id, tier_id)]

    async def save_rates(self, rates):
        self.rates = list(rates)
        return len(self.rates)


class FakeCatalogClient:
    """Returns a canned model-group payload, or raises."""

    def __init__(self, payload: Any = None, error: Optional[Exception] = None):
        self.payload = payload if payload is not None else []
        self.error = error
        self.calls = 0

    async def fetch_model_groups(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.payload


class FakeRateProvider(ExchangeRateProvider):
    """Rate provider that returns canned rates or fails."""

    def __init__(self, rates=(), fail: bool = False):
        self.rates = list(rates)
        self.fail = fail
        self.calls = 0

    async def fetch_rates(self):
        self.calls += 1
        if self.fail:
            raise ExternalFetchError("exchange rate service unreachable")
        return list(self.rates)


@pytest.fixture
def model_groups() -> list[dict]:
    """A model_group/info payload as LiteLLM returns it."""
    return [
        {
            "model_group": "gpt-4o",
            "providers": ["openai"],
            "max_input_tokens": 128000,
            "max_output_tokens": 16384,
            "input_cost_per_token": 2.5e-06,
            "output_cost_per_token": 1e-05,
            "mode": "chat",
            "supports_vision": True,
            "supports_function_calling": True,
            "supports_parallel_function_calling": True,
            "supports_web_search": False,
            "supports_reasoning": False,
            "supported_openai_params": ["temperature", "tools"],
        },
        {
            "model_group": "claude-3-5-sonnet",
            "providers": ["anthropic"],
            "max_input_tokens": 200000,
            "max_output_tokens": 8192,
            "mode": "chat",
            "supports_vision": True,
            "supports_function_calling": True,
            "supports_reasoning": None,
            "supported_openai_params": None,
        },
        {
            "model_group": "text-embedding-3-small",
            "providers": ["openai"],
            "max_input_tokens": 8191,
            "mode": "embedding",
        },
    ]


@pytest.fixture
def tiers() -> list[Tier]:
    return [
        Tier(id="free", name="Free", is_free=True, price=Decimal("0")),
        Tier(id="pro", name="Pro", price=Decimal("100")),
        Tier(id="enterprise", name="Enterprise", price=Decimal("1000")),
    ]


@pytest.fixture
def catalog_snapshot(tiers) -> CatalogSnapshot:
    """m1 priced, m2 free, m3 disabled, m4 unconfigured. Only (m1, pro) has limits."""
    return CatalogSnapshot(
        companies=[Company(id="c-openai", name="openai", external_id="openai")],
        models=[
            Model(id="m1", company_id="c-openai", name="GPT-4o", external_id="gpt-4o", providers=("openai",)),
            Model(id="m2", company_id="c-openai", name="GPT-4o mini", external_id="gpt-4o-mini", providers=("openai",)),
            Model(id="m3", company_id="c-openai", name="GPT-3.5", external_id="gpt-3.5-turbo", providers=("openai",)),
            Model(id="m4", company_id="c-openai", name="o1", external_id="o1", providers=("openai",)),
        ],
        configs=[
            ModelConfig(model_id="m1", input_token_cost=Decimal("0.00003"), output_token_cost=Decimal("0.00006")),
            ModelConfig(model_id="m2", is_free=True, input_token_cost=Decimal("0.00001"), output_token_cost=Decimal("0.00002")),
            ModelConfig(model_id="m3", is_enabled=False, input_token_cost=Decimal("0.000001")),
        ],
        tiers=tiers,
        rate_limits=[
            RateLimit(
                id="rl-1",
                model_id="m1",
                tier_id="pro",
                requests_per_minute=60,
                requests_per_day=0,
                tokens_per_minute=100000,
                tokens_per_day=0,
            ),
        ],
    )


@pytest.fixture
def usd_rub_rates() -> list[ExchangeRate]:
    updated_at = datetime(2024, 5, 1, tzinfo=timezone.utc)
    return [
        ExchangeRate("USD", "RUB", Decimal("95.0"), updated_at),
        ExchangeRate("RUB", "USD", Decimal(1) / Decimal("95.0"), updated_at),
    ]


@pytest.fixture
def memory_repository(catalog_snapshot) -> InMemoryCatalogRepository:
    return InMemoryCatalogRepository(catalog_snapshot)


@pytest.fixture
def fake_catalog_client(model_groups) -> FakeCatalogClient:
    return FakeCatalogClient({"data": model_groups})


@pytest.fixture
def failing_catalog_client() -> FakeCatalogClient:
    return FakeCatalogClient(error=ExternalFetchError("LiteLLM returned HTTP 503", status_code=503))


@pytest.fixture
def rate_provider(usd_rub_rates) -> FakeRateProvider:
    return FakeRateProvider(usd_rub_rates)


@pytest.fixture
def failing_rate_provider() -> FakeRateProvider:
    return FakeRateProvider(fail=True)


@pytest_asyncio.fixture
async def db_session(tmp_path):
    """A session on a fresh SQLite database with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'aihub.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()
