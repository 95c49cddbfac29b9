from __future__ import annotations

from typing import Any, Callable

import pytest

from healthcheck.config import HealthcheckConfig


@pytest.fixture
def make_config() -> Callable[..., HealthcheckConfig]:
    def _make(**overrides: Any) -> HealthcheckConfig:
        values: dict[str, Any] = {
            "telegram_token": "123:abc",
            "telegram_chat_id": 42,
            "success_interval_ms": 1000,
            "fail_interval_ms": 250,
            "notify_after_failures": 3,
            "rereport_every": 5,
            "addresses": ["https://example.com/health"],
        }
        values.update(overrides)
        return HealthcheckConfig(**values)

    return _make
