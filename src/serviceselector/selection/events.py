"""Selection Domain Events.

Events emitted by SelectableService for observability.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class ServiceSelected:
    """Emitted after every successful selection.

    Consumers:
    - Routing diagnostics (which backend served which context)
    - Analytics (fallback frequency)

    Attributes:
        service: The handle that was returned
        priority: Priority of the chosen selector
        selector_type: Class name of the chosen selector
        fallback: True when no selector matched and index 0 was used
        candidates: Number of selectors whose predicate matched
    """
    service: Any
    priority: int
    selector_type: str
    fallback: bool
    candidates: int
    timestamp: datetime = field(default_factory=datetime.now)
