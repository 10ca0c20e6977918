"""Unit tests for selector configuration loading.

Tests cover: definition validation, selector kind registry, service
lookup, file loading (YAML/JSON), environment-driven settings.

Run with: uv run pytest tests/unit/test_selector_config.py -v
"""

__test__ = True

import json
import logging
from pathlib import Path

import pytest

from serviceselector import config as selector_config
from serviceselector.config import (
    SELECTOR_TYPES,
    SelectorConfigError,
    SelectorDefinition,
    SelectorSettings,
    build_selectable_service,
    build_selector,
    configure_logging,
    load_selectable_service,
    load_selector_settings,
    register_selector_type,
)
from serviceselector.selection import (
    BaseServiceSelector,
    ByApplicationServiceSelector,
    Criteria,
    DefaultServiceSelector,
    SelectableService,
)


CONFIG = {
    "selectors": [
        {"type": "default", "service": "clouddriver"},
        {
            "type": "By-Application",
            "service": "clouddriver-deck",
            "priority": 5,
            "config": {"applicationPattern": "deck.*"},
        },
    ]
}


# =============================================================================
# Definitions
# =============================================================================


class TestSelectorDefinition:

    def test_type_normalized(self):
        definition = SelectorDefinition(type=" BY-APPLICATION ", service="svc")
        assert definition.type == "by_application"

    def test_defaults(self):
        definition = SelectorDefinition(service="svc")
        assert definition.type == "default"
        assert definition.priority == 0
        assert definition.config == {}

    def test_builtin_kinds_registered(self):
        assert {
            "default", "by_application", "by_authenticated_user",
            "by_execution_type", "by_origin", "by_location", "by_parameter",
        } <= set(SELECTOR_TYPES)


class TestBuildSelector:

    def test_service_name_is_handle(self):
        selector = build_selector(SelectorDefinition(service="svc", priority=3))
        assert isinstance(selector, DefaultServiceSelector)
        assert selector.service == "svc"
        assert selector.priority == 3

    def test_service_lookup(self):
        handle = object()
        selector = build_selector(
            SelectorDefinition(service="svc"), services={"svc": handle}
        )
        assert selector.service is handle

    def test_unknown_service(self):
        with pytest.raises(SelectorConfigError, match="unknown service 'svc'"):
            build_selector(SelectorDefinition(service="svc"), services={})

    def test_unknown_type(self):
        with pytest.raises(SelectorConfigError, match="Unknown selector type"):
            build_selector(SelectorDefinition(type="by_moon_phase", service="svc"))

    def test_invalid_options_wrapped(self):
        with pytest.raises(SelectorConfigError, match="applicationPattern"):
            build_selector(SelectorDefinition(type="by_application", service="svc"))


class TestRegisterSelectorType:

    def test_custom_kind(self, monkeypatch):
        monkeypatch.setattr(selector_config, "SELECTOR_TYPES", dict(SELECTOR_TYPES))

        @register_selector_type("Canary")
        class CanarySelector(BaseServiceSelector):
            def supports(self, criteria):
                return criteria.execution_id == self.config.get("executionId")

        selector = build_selector(SelectorDefinition(
            type="canary", service="svc", config={"executionId": "42"},
        ))
        assert isinstance(selector, CanarySelector)
        assert selector.supports(Criteria().with_execution_id("42"))

    def test_duplicate_kind_rejected(self):
        with pytest.raises(ValueError, match="already registered"):
            register_selector_type("default")(DefaultServiceSelector)


# =============================================================================
# Registry building
# =============================================================================


class TestBuildSelectableService:

    def test_builds_in_order(self):
        registry = build_selectable_service(CONFIG)
        assert isinstance(registry, SelectableService)
        assert isinstance(registry.selectors[0], DefaultServiceSelector)
        assert isinstance(registry.selectors[1], ByApplicationServiceSelector)

    def test_selection_from_config(self):
        registry = build_selectable_service(CONFIG)
        assert registry.select(Criteria().with_application("deck")) == "clouddriver-deck"
        assert registry.select(Criteria().with_application("orca")) == "clouddriver"

    def test_empty_selectors_rejected(self):
        with pytest.raises(SelectorConfigError):
            build_selectable_service({"selectors": []})

    def test_missing_service_rejected(self):
        with pytest.raises(SelectorConfigError):
            build_selectable_service({"selectors": [{"type": "default"}]})

    def test_non_integer_priority_rejected(self):
        with pytest.raises(SelectorConfigError):
            build_selectable_service(
                {"selectors": [{"service": "svc", "priority": "high"}]}
            )


# =============================================================================
# File loading
# =============================================================================


class TestLoadSelectableService:

    def test_load_json(self, tmp_path: Path, isolated_env):
        path = tmp_path / "selectors.json"
        path.write_text(json.dumps(CONFIG), encoding="utf-8")
        registry = load_selectable_service(path)
        assert len(registry) == 2

    def test_load_yaml(self, tmp_path: Path, isolated_env):
        path = tmp_path / "selectors.yaml"
        path.write_text(
            "selectors:\n"
            "  - type: default\n"
            "    service: clouddriver\n"
            "  - type: by_parameter\n"
            "    service: clouddriver-prod\n"
            "    priority: 3\n"
            "    config:\n"
            "      parameters:\n"
            "        - name: env\n"
            "          values: ['regex:prod.*']\n",
            encoding="utf-8",
        )
        registry = load_selectable_service(path)
        criteria = Criteria().with_parameters([{"name": "env", "values": ["production"]}])
        assert registry.select(criteria) == "clouddriver-prod"

    def test_path_from_environment(self, tmp_path: Path, isolated_env):
        path = tmp_path / "selectors.json"
        path.write_text(json.dumps(CONFIG), encoding="utf-8")
        isolated_env.setenv(selector_config.ENV_CONFIG_FILE, str(path))
        assert len(load_selectable_service()) == 2

    def test_explicit_path_skips_environment(self, tmp_path: Path, monkeypatch):
        path = tmp_path / "selectors.json"
        path.write_text(json.dumps(CONFIG), encoding="utf-8")

        def fail():
            raise AssertionError("settings must not be resolved")

        monkeypatch.setattr(selector_config, "load_selector_settings", fail)
        assert len(load_selectable_service(path)) == 2

    def test_no_path_configured(self, isolated_env):
        with pytest.raises(SelectorConfigError, match="No selector configuration"):
            load_selectable_service()

    def test_missing_file(self, tmp_path: Path, isolated_env):
        with pytest.raises(SelectorConfigError, match="not found"):
            load_selectable_service(tmp_path / "absent.json")

    def test_unparsable_file(self, tmp_path: Path, isolated_env):
        path = tmp_path / "selectors.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SelectorConfigError, match="Cannot parse"):
            load_selectable_service(path)

    def test_non_mapping_document(self, tmp_path: Path, isolated_env):
        path = tmp_path / "selectors.yml"
        path.write_text("- default\n", encoding="utf-8")
        with pytest.raises(SelectorConfigError, match="must be a mapping"):
            load_selectable_service(path)


# =============================================================================
# Settings
# =============================================================================


class TestSelectorSettings:

    def test_defaults(self, isolated_env):
        settings = load_selector_settings()
        assert settings.config_file is None
        assert settings.log_level == "WARNING"

    def test_environment(self, isolated_env):
        isolated_env.setenv(selector_config.ENV_CONFIG_FILE, "/etc/selectors.yaml")
        isolated_env.setenv(selector_config.ENV_LOG_LEVEL, "debug")
        settings = load_selector_settings()
        assert settings.config_file == Path("/etc/selectors.yaml")
        assert settings.log_level == "DEBUG"

    def test_overrides_win(self, isolated_env):
        isolated_env.setenv(selector_config.ENV_LOG_LEVEL, "debug")
        settings = load_selector_settings(log_level="info", config_file=Path("a.json"))
        assert settings.log_level == "INFO"
        assert settings.config_file == Path("a.json")

    def test_with_overrides_returns_copy(self):
        base = SelectorSettings()
        updated = base.with_overrides(log_level="error")
        assert updated.log_level == "ERROR"
        assert base.log_level == "WARNING"

    def test_configure_logging(self):
        logger = logging.getLogger("serviceselector")
        previous = logger.level
        try:
            configure_logging(SelectorSettings(log_level="DEBUG"))
            assert logger.level == logging.DEBUG
        finally:
            logger.setLevel(previous)
