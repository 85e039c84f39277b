"""Tests for provider snapshot validation."""

from decimal import Decimal

import pytest

from aihub.catalog.models import ModelMode
from aihub.catalog.snapshot import (
    ExternalCompany,
    ExternalModel,
    companies_from_models,
    parse_external_companies,
    parse_external_models,
)
from aihub.exceptions import MalformedExternalEntryError, ValidationError


class TestExternalModel:
    """Test per-entry validation."""

    def test_litellm_entry(self, model_groups):
        """Test a real model_group/info entry validates."""
        entry = ExternalModel.model_validate(model_groups[0])
        assert entry.external_id == "gpt-4o"
        assert entry.providers == ["openai"]
        assert entry.company_external_id == "openai"
        assert entry.mode is ModelMode.CHAT
        assert entry.supports_vision is True
        assert entry.max_input_tokens == 128000

    def test_absent_values_get_defaults(self):
        """Test null flags, lists and mode fall back to defaults."""
        entry = ExternalModel.model_validate(
            {"model_group": "x", "supports_reasoning": None, "supported_openai_params": None, "mode": None}
        )
        assert entry.supports_reasoning is False
        assert entry.supported_openai_params == []
        assert entry.mode is ModelMode.CHAT
        assert entry.max_output_tokens is None

    def test_integral_float_limits_become_int(self):
        """Test token limits serialized as 128000.0 are accepted as ints."""
        entry = ExternalModel.model_validate({"model_group": "x", "max_input_tokens": 128000.0})
        assert entry.max_input_tokens == 128000
        assert isinstance(entry.max_input_tokens, int)

    def test_id_is_stripped(self):
        """Test surrounding whitespace is removed from the external id."""
        assert ExternalModel.model_validate({"model_group": "  gpt-4o "}).external_id == "gpt-4o"

    def test_no_providers_means_no_company(self):
        """Test an entry without providers has no owning company."""
        assert ExternalModel.model_validate({"model_group": "x"}).company_external_id is None

    def test_costs_are_decimal(self):
        """Test per-token costs are held as Decimal."""
        entry = ExternalModel.model_validate({"model_group": "x", "input_cost_per_token": "0.00003"})
        assert entry.input_cost_per_token == Decimal("0.00003")


class TestParseExternalModels:
    """Test batch parsing with skipped entries."""

    def test_envelope_and_bare_list(self, model_groups):
        """Test both the data envelope and a bare list are accepted."""
        assert len(parse_external_models({"data": model_groups}).entries) == 3
        assert len(parse_external_models(model_groups).entries) == 3

    def test_none_is_empty(self):
        """Test a missing payload parses to nothing."""
        parsed = parse_external_models(None)
        assert parsed.entries == []
        assert parsed.skipped_count == 0

    def test_malformed_entries_are_skipped_not_fatal(self, model_groups):
        """Test bad entries are counted while good ones survive."""
        payload = model_groups + [
            {"providers": ["openai"]},
            {"model_group": "bad-limits", "max_input_tokens": -5},
            {"model_group": "bad-mode", "mode": "telepathy"},
            "not-an-object",
        ]
        parsed = parse_external_models(payload)

        assert [e.external_id for e in parsed.entries] == [
            "gpt-4o",
            "claude-3-5-sonnet",
            "text-embedding-3-small",
        ]
        assert parsed.skipped_count == 4
        assert all(isinstance(e, MalformedExternalEntryError) for e in parsed.skipped)

    @pytest.mark.parametrize(
        "entry",
        [
            {"model_group": "x", "providers": ["openai"], "supports_vision": "yes"},
            {"model_group": "x", "providers": ["openai"], "supports_reasoning": 1},
            {"model_group": "x", "providers": ["openai"], "max_input_tokens": "128000"},
            {"model_group": "x", "providers": ["openai"], "max_output_tokens": 4096.5},
            {"model_group": "x", "providers": ["openai"], "max_output_tokens": True},
        ],
    )
    def test_wrong_typed_fields_are_skipped(self, entry):
        """Test string flags and non-integer limits are not coerced."""
        parsed = parse_external_models([entry])
        assert parsed.entries == []
        assert parsed.skipped_count == 1
        assert parsed.skipped[0].external_id == "x"

    def test_skipped_entry_keeps_external_id(self):
        """Test a skipped entry reports its id and the failing field."""
        parsed = parse_external_models([{"model_group": "bad-limits", "max_output_tokens": -1}])
        assert parsed.skipped[0].external_id == "bad-limits"
        assert "max_output_tokens" in parsed.skipped[0].reason

    def test_envelope_without_data_rejected(self):
        """Test an envelope with no data section is an error."""
        with pytest.raises(ValidationError):
            parse_external_models({"models": []})

    def test_already_parsed_entries_pass_through(self):
        """Test validated entries are kept as they are."""
        entry = ExternalModel(external_id="x")
        assert parse_external_models([entry]).entries == [entry]


class TestCompanies:
    """Test provider (company) handling."""

    def test_parse_companies(self):
        """Test companies parse and entries without an id are skipped."""
        parsed = parse_external_companies([{"id": "openai", "name": "OpenAI"}, {"name": "no id"}])
        assert parsed.entries == [ExternalCompany(external_id="openai", name="OpenAI")]
        assert parsed.skipped_count == 1

    def test_display_name_falls_back_to_id(self):
        """Test a nameless company displays its external id."""
        assert ExternalCompany(external_id="mistral").display_name == "mistral"

    def test_companies_from_models_unique_first_seen(self, model_groups):
        """Test companies are derived once each, in first-seen order."""
        entries = parse_external_models(model_groups).entries
        companies = companies_from_models(entries)
        assert [c.external_id for c in companies] == ["openai", "anthropic"]
