"""Selection Domain Aggregate Root.

SelectableService owns an ordered list of selectors and picks the
backend service that best matches a request context.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional, Protocol, Sequence

from .entities import ServiceSelector
from .events import ServiceSelected
from .value_objects import Criteria

logger = logging.getLogger(__name__)


class InvalidCriteriaError(ValueError):
    """Raised when select() is called without criteria."""
    pass


class EventPublisher(Protocol):
    """Protocol for publishing domain events."""
    def publish(self, event: object) -> None: ...


class SelectableService:
    """Chooses a backend service among registered selectors.

    Selection algorithm:
        1. Keep the selectors whose ``supports(criteria)`` is true
        2. Pick the highest priority; ties go to the earliest registered
        3. If nothing matched, use the selector at index 0
        4. Return the chosen selector's ``service``

    Invariants:
        - The selector list is non-empty and fixed at construction
        - Nothing is cached between calls; predicates may consult
          external state that changes over time

    Concurrency:
        ``select`` keeps no state of its own and may be called from
        several threads, provided the selectors' predicates are safe
        for concurrent reads.

    Example:

        registry = SelectableService([
            DefaultServiceSelector("clouddriver", priority=1),
            ByApplicationServiceSelector(
                "clouddriver-deck", priority=5,
                config={"applicationPattern": "deck.*"},
            ),
        ])
        registry.select(Criteria().with_application("deckard"))
        # -> "clouddriver-deck"
    """

    def __init__(
        self,
        selectors: Sequence[ServiceSelector],
        event_publisher: Optional[EventPublisher] = None,
    ) -> None:
        """
        Raises:
            ValueError: If no selectors are given; the fallback at
                index 0 must always exist
        """
        self._selectors = tuple(selectors)
        if not self._selectors:
            raise ValueError("SelectableService requires at least one selector")
        self._event_publisher = event_publisher

    @property
    def selectors(self) -> Sequence[ServiceSelector]:
        return self._selectors

    @property
    def fallback(self) -> ServiceSelector:
        """Selector used when no predicate matches."""
        return self._selectors[0]

    def select(self, criteria: Criteria) -> Any:
        """Return the service handle that best matches ``criteria``.

        Raises:
            InvalidCriteriaError: If criteria is None. No selector is
                consulted in that case.

        Errors raised by selector predicates propagate unchanged.
        """
        if criteria is None:
            raise InvalidCriteriaError("criteria must not be None")

        matching = self._matching(criteria)
        chosen = self._highest_priority(matching)
        fallback = chosen is None
        if fallback:
            chosen = self._selectors[0]

        logger.debug(
            "Selected %s (priority=%d, fallback=%s, candidates=%d)",
            type(chosen).__name__, chosen.priority, fallback, len(matching),
        )

        service = chosen.service
        self._publish(ServiceSelected(
            service=service,
            priority=chosen.priority,
            selector_type=type(chosen).__name__,
            fallback=fallback,
            candidates=len(matching),
        ))
        return service

    # Lookup-style alias.
    get_service = select

    def candidates(self, criteria: Criteria) -> List[ServiceSelector]:
        """Matching selectors by descending priority, ties in registration order."""
        if criteria is None:
            raise InvalidCriteriaError("criteria must not be None")
        # sorted() is stable, so equal priorities keep registration order
        return sorted(
            self._matching(criteria), key=lambda s: s.priority, reverse=True
        )

    def _matching(self, criteria: Criteria) -> List[ServiceSelector]:
        return [s for s in self._selectors if s.supports(criteria)]

    @staticmethod
    def _highest_priority(
        selectors: Sequence[ServiceSelector],
    ) -> Optional[ServiceSelector]:
        best = None
        for selector in selectors:
            if best is None or selector.priority > best.priority:
                best = selector
        return best

    def _publish(self, event: object) -> None:
        if self._event_publisher is not None:
            self._event_publisher.publish(event)

    def __len__(self) -> int:
        return len(self._selectors)

    def __repr__(self) -> str:
        return f"SelectableService(selectors={list(self._selectors)!r})"
