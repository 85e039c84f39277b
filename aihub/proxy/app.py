"""FastAPI application for the aihub catalog service."""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout
)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aihub.catalog.currency import DEFAULT_CURRENCIES, CurrencyConverter
from aihub.catalog.repository import CatalogRepository
from aihub.catalog.scheduler import RateRefreshScheduler
from aihub.catalog.sync import RateRefreshService
from aihub.exceptions import AIHubError
from aihub.providers.exchange_rates import ExchangeRateAPIClient
from aihub.providers.litellm import LiteLLMCatalogClient

from .config import AppConfig, load_config
from .routes import catalog_router, currency_router

logger = logging.getLogger(__name__)


def create_app(config: Optional[AppConfig] = None, config_path: Optional[str] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        config: Ready configuration; loaded from ``config_path`` when omitted
        config_path: Path to configuration file

    Returns:
        FastAPI application
    """
    if config is None:
        config = load_config(config_path)

    logging.getLogger().setLevel(config.general.log_level.upper())

    catalog_client = LiteLLMCatalogClient(
        config.litellm.base_url,
        api_key=config.litellm.api_key,
        timeout=config.litellm.timeout,
    )
    rate_provider = ExchangeRateAPIClient(
        config.currency.api_key,
        base_currency=config.currency.base_currency,
        target_currencies=config.currency.display_currencies,
        api_base=config.currency.api_base,
    )
    currency_converter = CurrencyConverter(provider=rate_provider, currencies=DEFAULT_CURRENCIES)

    async def refresh_and_persist() -> bool:
        from aihub.db.session import get_session

        async with get_session() as db:
            return await RateRefreshService(currency_converter, CatalogRepository(db)).refresh()

    scheduler = RateRefreshScheduler(
        refresh_and_persist,
        interval_hours=config.currency.refresh_interval_hours,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        from aihub.db.session import close_db, create_tables, get_session, init_db

        init_db(config.general.database_url)

        # Create tables if they don't exist
        await create_tables()

        async with get_session() as db:
            repository = CatalogRepository(db)
            await repository.ensure_currencies(DEFAULT_CURRENCIES)
            await RateRefreshService(currency_converter, repository).load()

        await scheduler.start()

        yield

        await scheduler.stop()
        await close_db()

    app = FastAPI(
        title="aihub",
        description="Model catalog reconciliation, tier quotas and display pricing",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.catalog_client = catalog_client
    app.state.currency_converter = currency_converter
    app.state.rate_scheduler = scheduler

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AIHubError)
    async def aihub_exception_handler(request: Request, exc: AIHubError):
        """Handle aihub exceptions."""
        status_code = 500
        if exc.code and exc.code.isdigit():
            status_code = int(exc.code)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")

        return JSONResponse(status_code=status_code, content=exc.to_dict())

    app.include_router(catalog_router, prefix="")
    app.include_router(currency_router, prefix="")

    return app


def cli():
    """Command line interface for the aihub server."""
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="aihub catalog server")
    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
        default=None,
    )
    parser.add_argument(
        "--host", "-H",
        help="Host to bind to",
        default="0.0.0.0",
    )
    parser.add_argument(
        "--port", "-p",
        help="Port to bind to",
        type=int,
        default=8000,
    )

    args = parser.parse_args()

    app = create_app(config_path=args.config)

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
    )


if __name__ == "__main__":
    cli()
