"""Shared fixtures for proxy API tests."""

import pytest
from fastapi.testclient import TestClient

from aihub.catalog.currency import CurrencyConverter
from aihub.proxy.app import create_app
from aihub.proxy.config import AppConfig, GeneralConfig
from aihub.proxy.dependencies import get_catalog_repository

MASTER_KEY = "sk-master-test"


@pytest.fixture
def app(memory_repository, fake_catalog_client, usd_rub_rates, rate_provider):
    """Create a test FastAPI application backed by in-memory collaborators."""
    app = create_app(AppConfig(general=GeneralConfig(master_key=MASTER_KEY)))
    app.state.catalog_client = fake_catalog_client
    app.state.currency_converter = CurrencyConverter(usd_rub_rates, provider=rate_provider)
    app.dependency_overrides[get_catalog_repository] = lambda: memory_repository
    return app


@pytest.fixture
def client(app) -> TestClient:
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def admin_headers() -> dict:
    """Authorization header carrying the master key."""
    return {"Authorization": f"Bearer {MASTER_KEY}"}
