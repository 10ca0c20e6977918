"""Service Selector - pick a backend service that matches a request context."""

from serviceselector.selection import (  # noqa: F401
    Criteria,
    Parameter,
    SelectableService,
    ServiceSelector,
)

__all__ = ["Criteria", "Parameter", "SelectableService", "ServiceSelector"]

__version__ = "0.1.0"
