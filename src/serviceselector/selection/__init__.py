"""Service Selection Bounded Context.

Routes a request to one of several backend services by evaluating
selectors against the request's context (application, user, execution,
origin, location and free-form parameters).
"""
from .value_objects import (
    Criteria, Parameter, MalformedParameterError, to_parameters,
)
from .entities import (
    ServiceSelector, BaseServiceSelector,
    DefaultServiceSelector, ByApplicationServiceSelector,
    ByAuthenticatedUserServiceSelector, ByExecutionTypeServiceSelector,
    ByOriginServiceSelector, ByLocationServiceSelector,
    ByParameterServiceSelector,
)
from .aggregates import SelectableService, InvalidCriteriaError, EventPublisher
from .events import ServiceSelected

__all__ = [
    "Criteria", "Parameter", "MalformedParameterError", "to_parameters",
    "ServiceSelector", "BaseServiceSelector",
    "DefaultServiceSelector", "ByApplicationServiceSelector",
    "ByAuthenticatedUserServiceSelector", "ByExecutionTypeServiceSelector",
    "ByOriginServiceSelector", "ByLocationServiceSelector",
    "ByParameterServiceSelector",
    "SelectableService", "InvalidCriteriaError", "EventPublisher",
    "ServiceSelected",
]
