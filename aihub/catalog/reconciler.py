"""Reconciliation of the provider snapshot with local catalog records.

The reconciler never mutates its inputs and never talks to storage. It
returns a result describing what to create and what changed, field by field,
so the caller can persist only the columns it owns.

Ownership rules:

- Company ``name`` follows the provider; ``description`` and ``logo_url``
  are admin-only.
- Model capability flags, token limits, mode, provider list and supported
  params follow the provider; ``name``, ``description`` and ``features`` are
  admin-only.
- Local records missing from the snapshot are reported as orphaned and left
  untouched. Deleting them is an explicit admin action.
- A model config is never created here. New models start unconfigured.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Optional, Union

from aihub.exceptions import MalformedExternalEntryError

from .models import PROVIDER_FIELDS, Company, Model
from .snapshot import (
    ExternalCompany,
    ExternalModel,
    parse_external_companies,
    parse_external_models,
)

logger = logging.getLogger(__name__)


def generate_id() -> str:
    return str(uuid.uuid4())


@dataclass
class CompanyReconciliation:
    """Outcome of ``reconcile_companies``."""

    created: list[Company] = field(default_factory=list)
    updated: list[Company] = field(default_factory=list)
    unchanged: list[Company] = field(default_factory=list)
    orphaned: list[Company] = field(default_factory=list)
    skipped: list[MalformedExternalEntryError] = field(default_factory=list)

    @property
    def companies(self) -> list[Company]:
        """The full company set after reconciliation."""
        return self.created + self.updated + self.unchanged + self.orphaned

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def summary(self) -> dict[str, int]:
        return {
            "created": len(self.created),
            "updated": len(self.updated),
            "unchanged": len(self.unchanged),
            "orphaned": len(self.orphaned),
            "skipped": self.skipped_count,
        }


@dataclass
class ModelReconciliation:
    """Outcome of ``reconcile_models``.

    ``changes`` maps the id of every updated model to the names of the
    provider-sourced fields that differ from the stored record.
    """

    created: list[Model] = field(default_factory=list)
    updated: list[Model] = field(default_factory=list)
    unchanged: list[Model] = field(default_factory=list)
    orphaned: list[Model] = field(default_factory=list)
    unlinked_external_models: list[ExternalModel] = field(default_factory=list)
    skipped: list[MalformedExternalEntryError] = field(default_factory=list)
    changes: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @property
    def models(self) -> list[Model]:
        """The full model set after reconciliation."""
        return self.created + self.updated + self.unchanged + self.orphaned

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def summary(self) -> dict[str, int]:
        return {
            "created": len(self.created),
            "updated": len(self.updated),
            "unchanged": len(self.unchanged),
            "orphaned": len(self.orphaned),
            "unlinked": len(self.unlinked_external_models),
            "skipped": self.skipped_count,
        }


ExternalInput = Union[dict, Iterable[Any], None]


def _index_by_external_id(records: Iterable[Any], key: Callable[[Any], Optional[Any]]) -> dict:
    index: dict = {}
    for record in records:
        k = key(record)
        if k is None:
            continue
        if k in index:
            logger.warning(f"Duplicate local record for external id {k!r}, keeping {index[k].id}")
            continue
        index[k] = record
    return index


def _provider_values(entry: ExternalModel) -> dict[str, Any]:
    return {
        "supports_vision": entry.supports_vision,
        "supports_function_calling": entry.supports_function_calling,
        "supports_parallel_function_calling": entry.supports_parallel_function_calling,
        "supports_web_search": entry.supports_web_search,
        "supports_reasoning": entry.supports_reasoning,
        "max_input_tokens": entry.max_input_tokens,
        "max_output_tokens": entry.max_output_tokens,
        "mode": entry.mode,
        "providers": tuple(entry.providers),
        "supported_openai_params": tuple(entry.supported_openai_params),
    }


class Reconciler:
    """Merges provider snapshots into local Company and Model records."""

    def __init__(self, id_factory: Callable[[], str] = generate_id):
        self._new_id = id_factory

    def reconcile_companies(
        self,
        external_companies: ExternalInput,
        local_companies: Iterable[Company],
    ) -> CompanyReconciliation:
        """Align local companies with the provider's company list.

        Args:
            external_companies: Provider entries (raw dicts or ``ExternalCompany``)
            local_companies: Current local companies

        Returns:
            CompanyReconciliation
        """
        parsed = parse_external_companies(external_companies)
        result = CompanyReconciliation(skipped=list(parsed.skipped))

        local = list(local_companies)
        by_external_id = _index_by_external_id(local, lambda c: c.external_id)
        matched: set[str] = set()
        seen: set[str] = set()

        for entry in parsed.entries:
            if entry.external_id in seen:
                error = MalformedExternalEntryError("duplicate external id in snapshot", external_id=entry.external_id)
                logger.warning(error.message)
                result.skipped.append(error)
                continue
            seen.add(entry.external_id)

            existing = by_external_id.get(entry.external_id)
            if existing is None:
                company = Company(
                    id=self._new_id(),
                    name=entry.display_name,
                    external_id=entry.external_id,
                )
                result.created.append(company)
                logger.debug(f"New company {company.name!r} ({entry.external_id})")
                continue

            matched.add(existing.id)
            if existing.name != entry.display_name:
                logger.debug(f"Company {existing.id} renamed {existing.name!r} -> {entry.display_name!r}")
                result.updated.append(replace(existing, name=entry.display_name))
            else:
                result.unchanged.append(existing)

        result.orphaned = [c for c in local if c.id not in matched]

        logger.info(f"Company reconciliation: {result.summary()}")
        return result

    def reconcile_models(
        self,
        external_models: ExternalInput,
        local_models: Iterable[Model],
        companies: Iterable[Company],
    ) -> ModelReconciliation:
        """Align local models with the provider's model snapshot.

        Args:
            external_models: Provider entries (raw dicts or ``ExternalModel``)
            local_models: Current local models
            companies: Companies used to resolve each entry's owner

        Returns:
            ModelReconciliation
        """
        parsed = parse_external_models(external_models)
        result = ModelReconciliation(skipped=list(parsed.skipped))

        company_by_external_id = _index_by_external_id(companies, lambda c: c.external_id)
        local = list(local_models)
        by_scope = _index_by_external_id(
            local,
            lambda m: (m.company_id, m.external_id) if m.external_id else None,
        )
        matched: set[str] = set()
        seen: set[tuple[str, str]] = set()

        for entry in parsed.entries:
            company = company_by_external_id.get(entry.company_external_id) if entry.company_external_id else None
            if company is None:
                logger.warning(
                    f"Model {entry.external_id!r} references unknown company "
                    f"{entry.company_external_id!r}, not creating it"
                )
                result.unlinked_external_models.append(entry)
                continue

            scope = (company.id, entry.external_id)
            if scope in seen:
                error = MalformedExternalEntryError("duplicate external id in snapshot", external_id=entry.external_id)
                logger.warning(error.message)
                result.skipped.append(error)
                continue
            seen.add(scope)

            values = _provider_values(entry)
            existing = by_scope.get(scope)
            if existing is None:
                model = Model(
                    id=self._new_id(),
                    company_id=company.id,
                    name=entry.external_id,
                    external_id=entry.external_id,
                    **values,
                )
                result.created.append(model)
                logger.debug(f"New model {entry.external_id!r} for company {company.id}")
                continue

            matched.add(existing.id)
            changed = tuple(name for name in PROVIDER_FIELDS if getattr(existing, name) != values[name])
            if not changed:
                result.unchanged.append(existing)
                continue

            updated = replace(existing, **{name: values[name] for name in changed})
            logger.debug(f"Model {existing.id} changed fields: {', '.join(changed)}")
            result.updated.append(updated)
            result.changes[existing.id] = changed

        result.orphaned = [m for m in local if m.id not in matched]

        logger.info(f"Model reconciliation: {result.summary()}")
        return result


_default_reconciler = Reconciler()


def reconcile_companies(
    external_companies: ExternalInput,
    local_companies: Iterable[Company],
) -> CompanyReconciliation:
    """Module-level shortcut for ``Reconciler().reconcile_companies``."""
    return _default_reconciler.reconcile_companies(external_companies, local_companies)


def reconcile_models(
    external_models: ExternalInput,
    local_models: Iterable[Model],
    companies: Iterable[Company],
) -> ModelReconciliation:
    """Module-level shortcut for ``Reconciler().reconcile_models``."""
    return _default_reconciler.reconcile_models(external_models, local_models, companies)
