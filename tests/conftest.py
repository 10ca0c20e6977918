"""Pytest configuration for the service-selector test suite."""

from __future__ import annotations

import pytest

from serviceselector import config as selector_config
from serviceselector.selection import Criteria


@pytest.fixture
def criteria() -> Criteria:
    """Fully populated request context."""
    return (
        Criteria()
        .with_application("deck")
        .with_authenticated_user("alice@example.com")
        .with_execution_type("pipeline")
        .with_execution_id("01HX0000")
        .with_origin("api")
        .with_location("us-west-2")
        .with_parameters([{"name": "env", "values": ["prod"]}])
    )


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Clear selector environment variables and skip .env loading."""
    monkeypatch.delenv(selector_config.ENV_CONFIG_FILE, raising=False)
    monkeypatch.delenv(selector_config.ENV_LOG_LEVEL, raising=False)
    monkeypatch.setattr(selector_config, "_ENV_LOADED", True)
    return monkeypatch
