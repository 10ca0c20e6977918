"""Selection Domain Entities.

A ServiceSelector decides whether it can serve a request context and,
when chosen, hands out the backend service it wraps. The registry only
depends on the ServiceSelector protocol; the variants below cover the
routing rules most deployments need and can be built from configuration.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, ClassVar, FrozenSet, List, Optional, Protocol, Tuple, runtime_checkable

from .matching import full_match
from .value_objects import Criteria, Parameter, to_parameters


@runtime_checkable
class ServiceSelector(Protocol):
    """Protocol for selectors consulted by SelectableService.

    ``supports`` must be safe to call repeatedly; ``priority`` must stay
    stable for the duration of a selection call.
    """

    @property
    def priority(self) -> int:
        """Higher wins among matching selectors."""
        ...

    @property
    def service(self) -> Any:
        """Opaque backend handle returned when this selector is chosen."""
        ...

    def supports(self, criteria: Criteria) -> bool:
        """Whether this selector can serve the given request context."""
        ...


class BaseServiceSelector:
    """Common state for the built-in selector variants.

    Attributes:
        service: Backend handle returned when selected
        priority: Ranking among matching selectors
        config: Read-only variant options (camelCase keys)
    """

    kind: ClassVar[str] = ""

    def __init__(
        self,
        service: Any,
        priority: int = 0,
        config: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._service = service
        self._priority = int(priority)
        self._config = MappingProxyType(dict(config or {}))

    @property
    def service(self) -> Any:
        return self._service

    @property
    def priority(self) -> int:
        return self._priority

    @property
    def config(self) -> Mapping[str, Any]:
        return self._config

    def supports(self, criteria: Criteria) -> bool:
        raise NotImplementedError

    def _require(self, key: str) -> Any:
        value = self._config.get(key)
        if value is None:
            raise ValueError(
                f"{type(self).__name__} requires config key '{key}'"
            )
        return value

    def _require_list(self, key: str) -> Tuple[Any, ...]:
        value = self._require(key)
        if isinstance(value, str):
            return (value,)
        return tuple(value)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(service={self._service!r}, "
            f"priority={self._priority})"
        )


class DefaultServiceSelector(BaseServiceSelector):
    """Matches every request."""

    kind = "default"

    def supports(self, criteria: Criteria) -> bool:
        return True


class ByApplicationServiceSelector(BaseServiceSelector):
    """Matches applications against ``applicationPattern`` (case-insensitive)."""

    kind = "by_application"

    def __init__(self, service, priority=0, config=None):
        super().__init__(service, priority, config)
        self._pattern = re.compile(
            str(self._require("applicationPattern")), re.IGNORECASE
        )

    def supports(self, criteria: Criteria) -> bool:
        return full_match(self._pattern, criteria.application)


class ByAuthenticatedUserServiceSelector(BaseServiceSelector):
    """Matches the authenticated user against any pattern in ``users``."""

    kind = "by_authenticated_user"

    def __init__(self, service, priority=0, config=None):
        super().__init__(service, priority, config)
        self._patterns = [re.compile(str(p)) for p in self._require_list("users")]

    def supports(self, criteria: Criteria) -> bool:
        user = criteria.authenticated_user
        return any(full_match(pattern, user) for pattern in self._patterns)


class ByExecutionTypeServiceSelector(BaseServiceSelector):
    """Matches execution types listed in ``executionTypes``."""

    kind = "by_execution_type"

    def __init__(self, service, priority=0, config=None):
        super().__init__(service, priority, config)
        self._execution_types: FrozenSet[str] = frozenset(
            str(t) for t in self._require_list("executionTypes")
        )

    def supports(self, criteria: Criteria) -> bool:
        return criteria.execution_type in self._execution_types


class ByOriginServiceSelector(BaseServiceSelector):
    """Matches requests from ``origin``, optionally narrowed by ``executionTypes``."""

    kind = "by_origin"

    def __init__(self, service, priority=0, config=None):
        super().__init__(service, priority, config)
        self._origin = str(self._require("origin"))
        types = self._config.get("executionTypes")
        if types is None:
            self._execution_types: Optional[FrozenSet[str]] = None
        else:
            self._execution_types = frozenset(
                [types] if isinstance(types, str) else (str(t) for t in types)
            )

    def supports(self, criteria: Criteria) -> bool:
        if criteria.origin != self._origin:
            return False
        if self._execution_types is None:
            return True
        return criteria.execution_type in self._execution_types


class ByLocationServiceSelector(BaseServiceSelector):
    """Matches locations listed in ``locations``."""

    kind = "by_location"

    def __init__(self, service, priority=0, config=None):
        super().__init__(service, priority, config)
        self._locations: FrozenSet[str] = frozenset(
            str(loc) for loc in self._require_list("locations")
        )

    def supports(self, criteria: Criteria) -> bool:
        return criteria.location in self._locations


class ByParameterServiceSelector(BaseServiceSelector):
    """Matches when any configured parameter matches a request parameter.

    Configured parameters sit on the left of the comparison, so their
    ``regex:`` values act as patterns against request values.
    """

    kind = "by_parameter"

    def __init__(self, service, priority=0, config=None):
        super().__init__(service, priority, config)
        self._parameters: List[Parameter] = to_parameters(
            self._require("parameters")
        )

    @property
    def parameters(self) -> Tuple[Parameter, ...]:
        return tuple(self._parameters)

    def supports(self, criteria: Criteria) -> bool:
        if not criteria.parameters:
            return False
        return any(
            configured.matches(requested)
            for configured in self._parameters
            for requested in criteria.parameters
        )
