"""Configuration management for the aihub server."""

import os
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml


@dataclass
class LiteLLMConfig:
    """Routing service (LiteLLM proxy) connection."""
    base_url: str = "http://localhost:4000"
    api_key: Optional[str] = None
    timeout: float = 30.0


@dataclass
class CurrencyConfig:
    """Exchange rate configuration."""
    api_key: Optional[str] = None
    base_currency: str = "USD"
    display_currencies: list[str] = field(default_factory=lambda: ["RUB"])
    refresh_interval_hours: float = 24
    api_base: str = "https://v6.exchangerate-api.com/v6"


@dataclass
class GeneralConfig:
    """General server configuration."""
    master_key: Optional[str] = None
    database_url: Optional[str] = None
    log_level: str = "INFO"


@dataclass
class AppConfig:
    """Full aihub configuration."""
    litellm: LiteLLMConfig = field(default_factory=LiteLLMConfig)
    currency: CurrencyConfig = field(default_factory=CurrencyConfig)
    general: GeneralConfig = field(default_factory=GeneralConfig)


def _resolve_env_vars(value: Any) -> Any:
    """Resolve environment variables in configuration values.

    Supports format: os.environ/VAR_NAME or ${VAR_NAME}

    Args:
        value: Configuration value

    Returns:
        Resolved value
    """
    if isinstance(value, str):
        if value.startswith("os.environ/"):
            env_var = value[11:]
            return os.environ.get(env_var)
        elif value.startswith("${") and value.endswith("}"):
            env_var = value[2:-1]
            return os.environ.get(env_var)
    elif isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env_vars(v) for v in value]
    return value


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load configuration from file.

    Args:
        config_path: Path to configuration file. If None, uses default locations.

    Returns:
        Application configuration
    """
    # Default config locations
    if config_path is None:
        search_paths = [
            "config.yaml",
            "config/config.yaml",
            "/etc/aihub/config.yaml",
        ]
        for path in search_paths:
            if os.path.exists(path):
                config_path = path
                break

    config = AppConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r") as f:
            data = _resolve_env_vars(yaml.safe_load(f))

        if data:
            if "litellm_settings" in data:
                litellm = data["litellm_settings"] or {}
                config.litellm = LiteLLMConfig(
                    base_url=litellm.get("base_url", "http://localhost:4000"),
                    api_key=litellm.get("api_key"),
                    timeout=float(litellm.get("timeout", 30.0)),
                )

            if "currency_settings" in data:
                currency = data["currency_settings"] or {}
                config.currency = CurrencyConfig(
                    api_key=currency.get("api_key"),
                    base_currency=currency.get("base_currency", "USD").upper(),
                    display_currencies=[c.upper() for c in currency.get("display_currencies", ["RUB"])],
                    refresh_interval_hours=currency.get("refresh_interval_hours", 24),
                    api_base=currency.get("api_base", "https://v6.exchangerate-api.com/v6"),
                )

            if "general_settings" in data:
                general = data["general_settings"] or {}
                config.general = GeneralConfig(
                    master_key=general.get("master_key"),
                    database_url=general.get("database_url"),
                    log_level=general.get("log_level", "INFO"),
                )

    return config
