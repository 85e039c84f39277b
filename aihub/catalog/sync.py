"""Catalog and exchange-rate synchronisation.

Glue between the external clients, the pure reconciler and the repository.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from aihub.exceptions import MalformedExternalEntryError
from aihub.providers.litellm import LiteLLMCatalogClient

from .currency import CurrencyConverter
from .reconciler import CompanyReconciliation, ModelReconciliation, Reconciler
from .repository import CatalogRepository
from .snapshot import companies_from_models, parse_external_models

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """What one catalog sync did."""

    companies: CompanyReconciliation
    models: ModelReconciliation
    skipped: list[MalformedExternalEntryError] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def unlinked_external_ids(self) -> list[str]:
        return [entry.external_id for entry in self.models.unlinked_external_models]

    def to_dict(self) -> dict:
        return {
            "companies": self.companies.summary(),
            "models": self.models.summary(),
            "skipped": self.skipped_count,
            "skipped_entries": [
                {"external_id": error.external_id, "reason": error.reason} for error in self.skipped
            ],
            "unlinked_external_ids": self.unlinked_external_ids,
        }


class CatalogSyncService:
    """Pulls the routing service's model groups and reconciles them.

    Companies are derived from the providers named by the model groups, so
    they are reconciled first and then used to resolve model ownership.
    """

    def __init__(
        self,
        client: LiteLLMCatalogClient,
        repository: CatalogRepository,
        reconciler: Optional[Reconciler] = None,
    ):
        self.client = client
        self.repository = repository
        self.reconciler = reconciler or Reconciler()

    async def sync(self) -> SyncReport:
        """Run one sync.

        Raises:
            ExternalFetchError: If the catalog could not be fetched. Nothing
                is written in that case.
        """
        raw = await self.client.fetch_model_groups()
        parsed = parse_external_models(raw)

        local_companies = await self.repository.load_companies()
        company_result = self.reconciler.reconcile_companies(
            companies_from_models(parsed.entries),
            local_companies,
        )

        local_models = await self.repository.load_models()
        model_result = self.reconciler.reconcile_models(
            parsed.entries,
            local_models,
            company_result.companies,
        )

        await self.repository.apply_company_reconciliation(company_result)
        await self.repository.apply_model_reconciliation(model_result)

        report = SyncReport(
            companies=company_result,
            models=model_result,
            skipped=parsed.skipped + company_result.skipped + model_result.skipped,
        )
        logger.info(
            f"Catalog sync finished: companies={company_result.summary()} "
            f"models={model_result.summary()} skipped={report.skipped_count}"
        )
        return report


class RateRefreshService:
    """Refreshes the converter's rates and persists them when that worked."""

    def __init__(self, converter: CurrencyConverter, repository: Optional[CatalogRepository] = None):
        self.converter = converter
        self.repository = repository

    async def load(self) -> int:
        """Seed the converter with persisted rates. Returns how many pairs changed."""
        if self.repository is None:
            return 0
        rates = await self.repository.load_rates()
        changed = self.converter.add_rates(rates)
        logger.info(f"Loaded {len(rates)} stored exchange rate(s)")
        return changed

    async def refresh(self) -> bool:
        """Refresh rates; on failure the previous rates stay in effect.

        Returns:
            True if fresh rates were fetched
        """
        if not await self.converter.refresh_rates():
            return False
        if self.repository is not None:
            await self.repository.save_rates(self.converter.rates)
        return True
