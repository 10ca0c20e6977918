"""Configuration helpers for building selector registries.

Selectors are declared as an ordered list of definitions, typically in a
YAML or JSON file:

    selectors:
      - type: default
        service: clouddriver
      - type: by_application
        service: clouddriver-deck
        priority: 5
        config:
          applicationPattern: "deck.*"

The first definition is the fallback used when no selector matches.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Annotated, Any, Callable, Dict, List, Optional, Type

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, BeforeValidator, Field, ValidationError

from serviceselector.selection import (
    BaseServiceSelector,
    ByApplicationServiceSelector,
    ByAuthenticatedUserServiceSelector,
    ByExecutionTypeServiceSelector,
    ByLocationServiceSelector,
    ByOriginServiceSelector,
    ByParameterServiceSelector,
    DefaultServiceSelector,
    EventPublisher,
    SelectableService,
)

logger = logging.getLogger(__name__)

ENV_CONFIG_FILE = "SERVICE_SELECTOR_CONFIG_FILE"
ENV_LOG_LEVEL = "SERVICE_SELECTOR_LOG_LEVEL"

_DEFAULT_LOG_LEVEL = "WARNING"
_ENV_LOADED = False


class SelectorConfigError(ValueError):
    """Raised when selector definitions cannot be turned into selectors."""
    pass


# =============================================================================
# Selector kinds
# =============================================================================

SelectorFactory = Type[BaseServiceSelector]

SELECTOR_TYPES: Dict[str, SelectorFactory] = {
    cls.kind: cls
    for cls in (
        DefaultServiceSelector,
        ByApplicationServiceSelector,
        ByAuthenticatedUserServiceSelector,
        ByExecutionTypeServiceSelector,
        ByOriginServiceSelector,
        ByLocationServiceSelector,
        ByParameterServiceSelector,
    )
}


def register_selector_type(kind: str) -> Callable[[SelectorFactory], SelectorFactory]:
    """Class decorator adding a custom selector kind.

    The decorated class is constructed as ``cls(service, priority, config)``.

    Raises:
        ValueError: If the kind is already registered
    """
    key = _normalize_kind(kind)

    def deco(cls: SelectorFactory) -> SelectorFactory:
        if key in SELECTOR_TYPES:
            raise ValueError(f"Selector type '{key}' is already registered")
        SELECTOR_TYPES[key] = cls
        return cls

    return deco


def _normalize_kind(v: Any) -> Any:
    """Normalize kind input: strip whitespace, lowercase, dashes to underscores."""
    return v.strip().lower().replace("-", "_") if isinstance(v, str) else v


SelectorKind = Annotated[str, BeforeValidator(_normalize_kind)]


# =============================================================================
# Definition models
# =============================================================================


class SelectorDefinition(BaseModel):
    """One selector entry of a configuration file."""

    type: SelectorKind = "default"
    service: str = Field(min_length=1)
    priority: int = 0
    config: Dict[str, Any] = Field(default_factory=dict)


class SelectorConfigFile(BaseModel):
    """Top-level configuration document."""

    selectors: List[SelectorDefinition] = Field(min_length=1)


def build_selector(
    definition: SelectorDefinition,
    services: Optional[Mapping[str, Any]] = None,
) -> BaseServiceSelector:
    """Instantiate the selector described by ``definition``.

    When ``services`` is given, the definition's service name is looked up
    there; otherwise the name itself is used as the handle.

    Raises:
        SelectorConfigError: Unknown kind, unknown service name, or
            options rejected by the selector
    """
    factory = SELECTOR_TYPES.get(definition.type)
    if factory is None:
        known = ", ".join(sorted(SELECTOR_TYPES))
        raise SelectorConfigError(
            f"Unknown selector type '{definition.type}'. Known types: {known}"
        )

    if services is None:
        service = definition.service
    elif definition.service in services:
        service = services[definition.service]
    else:
        raise SelectorConfigError(
            f"Selector refers to unknown service '{definition.service}'"
        )

    try:
        return factory(service, definition.priority, definition.config)
    except ValueError as e:
        raise SelectorConfigError(
            f"Invalid '{definition.type}' selector for service "
            f"'{definition.service}': {e}"
        ) from e


def build_selectable_service(
    data: Mapping[str, Any],
    services: Optional[Mapping[str, Any]] = None,
    event_publisher: Optional[EventPublisher] = None,
) -> SelectableService:
    """Build a SelectableService from a deserialized configuration mapping.

    Definition order is preserved; the first definition is the fallback.

    Raises:
        SelectorConfigError: If the document or any definition is invalid
    """
    try:
        document = SelectorConfigFile.model_validate(data)
    except ValidationError as e:
        raise SelectorConfigError(f"Invalid selector configuration: {e}") from e

    selectors = [build_selector(d, services) for d in document.selectors]
    logger.info(
        "Built selector registry with %d selectors (fallback: %s)",
        len(selectors), document.selectors[0].service,
    )
    return SelectableService(selectors, event_publisher=event_publisher)


# =============================================================================
# Runtime settings
# =============================================================================


@dataclass(frozen=True)
class SelectorSettings:
    """Holds runtime settings for loading selector registries."""

    config_file: Optional[Path] = None
    log_level: str = _DEFAULT_LOG_LEVEL

    def with_overrides(
        self,
        *,
        config_file: Optional[Path] = None,
        log_level: Optional[str] = None,
    ) -> "SelectorSettings":
        """Return a copy with the provided overrides applied."""

        cfg = self
        if config_file is not None:
            cfg = replace(cfg, config_file=Path(config_file))
        if log_level:
            cfg = replace(cfg, log_level=log_level.upper())
        return cfg


def load_selector_settings(
    *,
    config_file: Optional[Path] = None,
    log_level: Optional[str] = None,
) -> SelectorSettings:
    """Load settings from environment variables and overrides."""

    _ensure_env_loaded()
    env_file = os.getenv(ENV_CONFIG_FILE, "").strip()
    env_level = os.getenv(ENV_LOG_LEVEL, "").strip()

    settings = SelectorSettings(
        config_file=Path(env_file) if env_file else None,
        log_level=env_level.upper() or _DEFAULT_LOG_LEVEL,
    )
    return settings.with_overrides(config_file=config_file, log_level=log_level)


def configure_logging(settings: SelectorSettings) -> None:
    """Apply the configured level to this package's loggers."""
    logging.getLogger("serviceselector").setLevel(settings.log_level)


def load_selectable_service(
    path: Optional[Path] = None,
    services: Optional[Mapping[str, Any]] = None,
    settings: Optional[SelectorSettings] = None,
    event_publisher: Optional[EventPublisher] = None,
) -> SelectableService:
    """Read a YAML or JSON configuration file and build the registry.

    Raises:
        SelectorConfigError: No file configured, file missing or unparsable,
            or invalid definitions
    """
    if path is not None:
        resolved: Optional[Path] = Path(path)
    else:
        settings = settings or load_selector_settings()
        resolved = settings.config_file
    if resolved is None:
        raise SelectorConfigError(
            f"No selector configuration file given (set {ENV_CONFIG_FILE})"
        )
    if not resolved.is_file():
        raise SelectorConfigError(f"Selector configuration not found: {resolved}")

    text = resolved.read_text(encoding="utf-8")
    try:
        if resolved.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise SelectorConfigError(f"Cannot parse {resolved}: {e}") from e

    if not isinstance(data, Mapping):
        raise SelectorConfigError(
            f"Selector configuration in {resolved} must be a mapping"
        )

    logger.info("Loading selectors from %s", resolved)
    return build_selectable_service(data, services, event_publisher)


def _ensure_env_loaded() -> None:
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    _ENV_LOADED = True
    dotenv_path = Path.cwd() / ".env"
    if dotenv_path.exists():
        load_dotenv(dotenv_path=dotenv_path)
    else:
        load_dotenv()
