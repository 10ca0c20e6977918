"""Selection Domain Value Objects.

Immutable types describing the request context that selectors are
evaluated against. Criteria is a persistent value: every ``with_*``
call returns a new instance and leaves the receiver untouched.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, List, Optional, Tuple, Union

from .matching import any_value_matches


class MalformedParameterError(ValueError):
    """Raised when a generic mapping cannot be converted into a Parameter.

    Attributes:
        index: Position of the offending element when raised from
            ``to_parameters``, None for a single conversion.
    """

    def __init__(self, message: str, index: Optional[int] = None) -> None:
        super().__init__(message)
        self.index = index


@dataclass(frozen=True, eq=False)
class Parameter:
    """A named, multi-valued attribute of a Criteria.

    Two parameters match when their names are equal and at least one
    value on the left matches at least one value on the right. Left-hand
    values prefixed with ``regex:`` are treated as patterns; right-hand
    values are always literals, so the relation is directional:

        >>> Parameter("env", ["regex:pro.*"]) == Parameter("env", ["production"])
        True
        >>> Parameter("env", ["production"]) == Parameter("env", ["regex:pro.*"])
        False

    Attributes:
        name: Parameter name (must be non-empty)
        values: Ordered values, typically strings (may be empty)
    """
    name: str
    values: Tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("Parameter name must be a non-empty string")
        if not isinstance(self.values, tuple):
            if isinstance(self.values, (str, bytes, Mapping)):
                raise ValueError(
                    f"Parameter '{self.name}' values must be a list, "
                    f"got {type(self.values).__name__}"
                )
            object.__setattr__(self, "values", tuple(self.values))

    @classmethod
    def from_mapping(cls, source: Mapping[str, Any]) -> Parameter:
        """Parse a generic ``{"name": ..., "values": [...]}`` mapping.

        Raises:
            MalformedParameterError: If the mapping has no usable name or
                its values are not a sequence
        """
        if not isinstance(source, Mapping):
            raise MalformedParameterError(
                f"Parameter source must be a mapping, got {type(source).__name__}"
            )
        name = source.get("name")
        if name is None:
            raise MalformedParameterError(
                f"Parameter mapping is missing 'name': {dict(source)!r}"
            )
        name = str(name)
        if not name:
            raise MalformedParameterError("Parameter mapping has an empty 'name'")

        values = source.get("values")
        if values is None:
            values = ()
        elif isinstance(values, (str, bytes, Mapping)) or not isinstance(values, Sequence):
            raise MalformedParameterError(
                f"Parameter '{name}' values must be a list, "
                f"got {type(values).__name__}"
            )
        return cls(name=name, values=tuple(values))

    def with_name(self, name: str) -> Parameter:
        return replace(self, name=name)

    def with_values(self, values: Iterable[Any]) -> Parameter:
        return replace(self, values=values)

    def matches(self, other: object) -> bool:
        """Directional match of this parameter against ``other``."""
        if not isinstance(other, Parameter):
            return False
        if self.name != other.name:
            return False
        return any_value_matches(self.values, other.values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Parameter):
            return NotImplemented
        return self.matches(other)

    def __hash__(self) -> int:
        return hash(self.name)


ParameterLike = Union[Parameter, Mapping[str, Any]]


def to_parameters(source: Iterable[ParameterLike]) -> List[Parameter]:
    """Convert generic mappings into Parameters, preserving order.

    Items that already are Parameters are kept as they are. The first
    malformed element aborts the whole conversion.

    Raises:
        MalformedParameterError: With ``index`` set to the failing element
    """
    parameters = []
    for index, item in enumerate(source):
        if isinstance(item, Parameter):
            parameters.append(item)
            continue
        try:
            parameters.append(Parameter.from_mapping(item))
        except MalformedParameterError as e:
            raise MalformedParameterError(
                f"Malformed parameter at index {index}: {e}", index=index
            ) from e
    return parameters


@dataclass(frozen=True)
class Criteria:
    """Request context used to evaluate service selectors.

    Every field is optional and defaults to None. Build instances by
    chaining the ``with_*`` methods:

        >>> criteria = (
        ...     Criteria()
        ...     .with_application("deck")
        ...     .with_execution_type("pipeline")
        ...     .with_parameters([{"name": "env", "values": ["prod"]}])
        ... )
    """
    application: Optional[str] = None
    authenticated_user: Optional[str] = None
    execution_type: Optional[str] = None
    execution_id: Optional[str] = None
    origin: Optional[str] = None
    location: Optional[str] = None
    parameters: Optional[Tuple[Parameter, ...]] = None

    def __post_init__(self) -> None:
        if self.parameters is not None:
            object.__setattr__(
                self, "parameters", tuple(to_parameters(self.parameters))
            )

    def with_application(self, application: Optional[str]) -> Criteria:
        return replace(self, application=application)

    def with_authenticated_user(self, user: Optional[str]) -> Criteria:
        return replace(self, authenticated_user=user)

    def with_execution_type(self, execution_type: Optional[str]) -> Criteria:
        return replace(self, execution_type=execution_type)

    def with_execution_id(self, execution_id: Optional[str]) -> Criteria:
        return replace(self, execution_id=execution_id)

    def with_origin(self, origin: Optional[str]) -> Criteria:
        return replace(self, origin=origin)

    def with_location(self, location: Optional[str]) -> Criteria:
        return replace(self, location=location)

    def with_parameters(
        self, parameters: Optional[Iterable[ParameterLike]]
    ) -> Criteria:
        """Return a copy with the given parameters.

        Items may be Parameter values or generic mappings; mappings go
        through ``Parameter.from_mapping`` and fail fast on bad input.
        """
        if parameters is None:
            return replace(self, parameters=None)
        return replace(self, parameters=tuple(to_parameters(parameters)))
