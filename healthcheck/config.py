"""Configuration loading for the endpoint monitor."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError


CONFIG_ENV = "HEALTHCHECK_CONFIG"
DEFAULT_CONFIG_PATH = "healthcheck.yaml"


class ConfigError(ValueError):
    """Raised when the configuration is missing or invalid."""


class HealthcheckConfig(BaseModel):
    """Validated monitor configuration, read-only once loaded."""

    model_config = ConfigDict(frozen=True)

    # Telegram
    telegram_token: str = Field(min_length=1, description="Telegram bot token")
    telegram_chat_id: int = Field(description="Chat receiving the alerts")

    # Poll cadence
    success_interval_ms: int = Field(gt=0, description="Delay after a quiet successful check")
    fail_interval_ms: int = Field(gt=0, description="Delay after a check that produced a message")

    # Alert throttling
    notify_after_failures: int = Field(ge=1, description="Consecutive failures before the first alert")
    rereport_every: int = Field(ge=1, description="Re-alert on every N-th consecutive failure")
    notify_on_recovery: bool = Field(default=True, description="Deliver 'Recovered' messages")

    # Probing
    addresses: list[str] = Field(min_length=1, description="Endpoint URLs to monitor")
    ok_status_codes: list[int] = Field(default_factory=lambda: [200], min_length=1)
    probe_timeout_seconds: float = Field(default=10.0, gt=0)
    check_concurrency: int = Field(default=25, ge=1, description="Max probes in flight")


def resolve_config_path(override: str | os.PathLike[str] | None = None) -> Path:
    """
    Pick the config file: explicit override, then $HEALTHCHECK_CONFIG, then the default name.
    """
    if override is not None and str(override).strip():
        return Path(override)
    env_path = os.getenv(CONFIG_ENV)
    if env_path and env_path.strip():
        return Path(env_path.strip())
    return Path(DEFAULT_CONFIG_PATH)


def _env_overrides() -> dict[str, Any]:
    overrides = {
        "telegram_token": os.getenv("TELEGRAM_BOT_TOKEN"),
        "telegram_chat_id": os.getenv("TELEGRAM_CHAT_ID"),
    }
    return {k: v.strip() for k, v in overrides.items() if v and v.strip()}


def load_config(path: Path) -> HealthcheckConfig:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Config YAML must be a mapping")

    data.update(_env_overrides())
    try:
        return HealthcheckConfig(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config {path}: {exc}") from exc
