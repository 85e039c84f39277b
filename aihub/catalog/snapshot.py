"""Validation of provider snapshot payloads.

The routing service returns loosely typed JSON. Every entry is validated on
its own; a bad entry is skipped and counted, the rest of the batch goes on.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Generic, Iterable, Optional, TypeVar, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool, StrictInt, field_validator
from pydantic import ValidationError as PydanticValidationError

from aihub.exceptions import MalformedExternalEntryError, ValidationError

from .models import ModelMode

logger = logging.getLogger(__name__)


class ExternalCompany(BaseModel):
    """A company (provider) as seen by the routing service."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    external_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("external_id", "id", "provider"),
    )
    name: Optional[str] = None

    @field_validator("external_id", mode="before")
    @classmethod
    def _strip_id(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @property
    def display_name(self) -> str:
        return self.name or self.external_id


class ExternalModel(BaseModel):
    """One entry of the routing service's model-group info."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    external_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("external_id", "model_group", "model_name"),
    )
    providers: list[str] = Field(default_factory=list)
    max_input_tokens: Optional[StrictInt] = Field(default=None, ge=0)
    max_output_tokens: Optional[StrictInt] = Field(default=None, ge=0)
    input_cost_per_token: Optional[Decimal] = Field(default=None, ge=0)
    output_cost_per_token: Optional[Decimal] = Field(default=None, ge=0)
    mode: ModelMode = ModelMode.CHAT
    supports_vision: StrictBool = False
    supports_function_calling: StrictBool = False
    supports_parallel_function_calling: StrictBool = False
    supports_web_search: StrictBool = False
    supports_reasoning: StrictBool = False
    supported_openai_params: list[str] = Field(default_factory=list)

    @field_validator("external_id", mode="before")
    @classmethod
    def _strip_id(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator(
        "supports_vision",
        "supports_function_calling",
        "supports_parallel_function_calling",
        "supports_web_search",
        "supports_reasoning",
        mode="before",
    )
    @classmethod
    def _absent_flag_is_false(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("max_input_tokens", "max_output_tokens", mode="before")
    @classmethod
    def _integral_float_is_int(cls, value: Any) -> Any:
        # The routing service serializes some limits as 128000.0
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value

    @field_validator("providers", "supported_openai_params", mode="before")
    @classmethod
    def _absent_list_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("mode", mode="before")
    @classmethod
    def _absent_mode_is_chat(cls, value: Any) -> Any:
        return ModelMode.CHAT if value is None else value

    @property
    def company_external_id(self) -> Optional[str]:
        """The owning company is the first provider serving the model."""
        return self.providers[0] if self.providers else None


EntryT = TypeVar("EntryT", bound=BaseModel)


@dataclass
class ParsedSnapshot(Generic[EntryT]):
    """Validated entries plus the ones that were skipped."""

    entries: list[EntryT] = field(default_factory=list)
    skipped: list[MalformedExternalEntryError] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def _unwrap(raw: Union[dict, Iterable[Any], None]) -> list[Any]:
    """Accept either a bare list or the ``{"data": [...]}`` envelope."""
    if raw is None:
        return []
    if isinstance(raw, dict):
        if "data" not in raw:
            raise ValidationError("Provider payload has no 'data' section")
        raw = raw["data"] or []
    if isinstance(raw, (str, bytes)):
        raise ValidationError("Provider payload must be a list of entries")
    return list(raw)


def _describe(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "entry"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def _guess_id(item: Any, keys: tuple[str, ...]) -> Optional[str]:
    if isinstance(item, dict):
        for key in keys:
            value = item.get(key)
            if isinstance(value, str) and value:
                return value
    return None


def _parse(
    raw: Union[dict, Iterable[Any], None],
    schema: type[EntryT],
    id_keys: tuple[str, ...],
) -> ParsedSnapshot[EntryT]:
    parsed: ParsedSnapshot[EntryT] = ParsedSnapshot()
    for index, item in enumerate(_unwrap(raw)):
        if isinstance(item, schema):
            parsed.entries.append(item)
            continue
        try:
            if not isinstance(item, dict):
                raise MalformedExternalEntryError(
                    f"entry #{index} is {type(item).__name__}, expected an object"
                )
            parsed.entries.append(schema.model_validate(item))
        except PydanticValidationError as e:
            error = MalformedExternalEntryError(_describe(e), external_id=_guess_id(item, id_keys))
            logger.warning(f"Skipping provider entry #{index}: {error.message}")
            parsed.skipped.append(error)
        except MalformedExternalEntryError as e:
            logger.warning(f"Skipping provider entry #{index}: {e.message}")
            parsed.skipped.append(e)
    return parsed


def parse_external_models(raw: Union[dict, Iterable[Any], None]) -> ParsedSnapshot[ExternalModel]:
    """Validate a model-group payload entry by entry."""
    return _parse(raw, ExternalModel, ("model_group", "model_name", "external_id"))


def parse_external_companies(raw: Union[dict, Iterable[Any], None]) -> ParsedSnapshot[ExternalCompany]:
    """Validate a provider (company) payload entry by entry."""
    return _parse(raw, ExternalCompany, ("external_id", "id", "provider"))


def companies_from_models(models: Iterable[ExternalModel]) -> list[ExternalCompany]:
    """Derive the unique provider list from a model snapshot, in first-seen order."""
    seen: dict[str, ExternalCompany] = {}
    for model in models:
        for provider in model.providers:
            provider = provider.strip() if isinstance(provider, str) else provider
            if provider and provider not in seen:
                seen[provider] = ExternalCompany(external_id=provider, name=provider)
    return list(seen.values())
