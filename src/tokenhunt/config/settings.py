# src/tokenhunt/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/tokenhunt/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `TOKENHUNT_CONFIG_PATH`
- environment variables (e.g., `TOKENHUNT_STORAGE_BACKEND`, `TOKENHUNT_PAYMENTS_API_KEY`)

Design rule:
- Tuning knobs (spawn cap, pickup distance, TTLs) live in YAML, not hard-coded in business logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from tokenhunt.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `tokenhunt.config`."""
    text = resources.files("tokenhunt.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "TokenHunt"
    log_level: str = "INFO"


class StorageSettings(BaseModel):
    backend: Literal["memory", "json", "sqlite"] = "json"
    path: str = "data/tokenhunt.json"


class HuntSettings(BaseModel):
    default_radius_meters: int = Field(50, gt=0)
    default_reward_token: str = "WLD"


class RewardSettings(BaseModel):
    max_claims_cap: int = Field(50, gt=0)
    claimable_distance_m: float = Field(10, ge=0)
    rounding: Literal["drift", "last_unit"] = "drift"


class PaymentSettings(BaseModel):
    base_url: str = "https://developer.worldcoin.org/api/v2/minikit/transaction"
    app_id: str | None = None
    api_key: str | None = None
    http_timeout_seconds: float = 15
    reference_ttl_seconds: int = Field(600, gt=0)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    hunts: HuntSettings = Field(default_factory=HuntSettings)
    rewards: RewardSettings = Field(default_factory=RewardSettings)
    payments: PaymentSettings = Field(default_factory=PaymentSettings)


_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "TOKENHUNT_LOG_LEVEL": ("app", "log_level"),
    "TOKENHUNT_STORAGE_BACKEND": ("storage", "backend"),
    "TOKENHUNT_STORAGE_PATH": ("storage", "path"),
    "TOKENHUNT_PAYMENTS_APP_ID": ("payments", "app_id"),
    "TOKENHUNT_PAYMENTS_API_KEY": ("payments", "api_key"),
}


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small to avoid exposing unsafe overrides.
    """
    load_dotenv_if_present()
    data = dict(data)
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            section_data = dict(data.get(section) or {})
            section_data[key] = value
            data[section] = section_data
    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("TOKENHUNT_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
