"""Registry of content sources.

The registry is an ordinary object built during startup wiring and handed
to the selector and orchestrator; there is no module-level instance.
Registration order is preserved because notification matching is
first-match-wins.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Optional

from .exceptions import DuplicateSourceError
from .models import ContentPriority, SourceRegistration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredSource:
    """A source object together with the metadata it was registered with.

    Attributes:
        registration: Identity, priority class, kind and format options
        source: Object implementing the content source protocol
    """

    registration: SourceRegistration
    source: Any

    @property
    def id(self) -> str:
        return self.registration.id


class GeneratorRegistry:
    """Ordered collection of content sources keyed by id."""

    def __init__(self) -> None:
        self._sources: dict[str, RegisteredSource] = {}

    def register(self, registration: SourceRegistration, source: Any) -> RegisteredSource:
        """Add a source.

        Args:
            registration: Source metadata; ``registration.id`` must be unique
            source: Content source implementation

        Returns:
            The stored RegisteredSource

        Raises:
            DuplicateSourceError: A source with the same id is already registered
        """
        if registration.id in self._sources:
            raise DuplicateSourceError(f"Source already registered: {registration.id}")
        entry = RegisteredSource(registration=registration, source=source)
        self._sources[registration.id] = entry
        logger.debug(
            "Registered source %s (priority=%s, kind=%s)",
            registration.id,
            registration.priority.name,
            registration.kind.value,
        )
        return entry

    def unregister(self, source_id: str) -> bool:
        """Remove a source; returns False if it was not registered."""
        removed = self._sources.pop(source_id, None)
        if removed is not None:
            logger.debug("Unregistered source %s", source_id)
        return removed is not None

    def get(self, source_id: str) -> Optional[RegisteredSource]:
        return self._sources.get(source_id)

    def all(self) -> list[RegisteredSource]:
        return list(self._sources.values())

    def by_priority(self, priority: ContentPriority) -> list[RegisteredSource]:
        """Sources of one priority class, in registration order."""
        return [
            entry for entry in self._sources.values() if entry.registration.priority == priority
        ]

    def by_event_pattern(self, event_identifier: Optional[str]) -> list[RegisteredSource]:
        """Sources whose trigger pattern matches the event, in registration order."""
        if not event_identifier:
            return []
        return [
            entry
            for entry in self._sources.values()
            if entry.registration.matches_event(event_identifier)
        ]

    def clear(self) -> None:
        self._sources.clear()

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._sources

    def __iter__(self) -> Iterator[RegisteredSource]:
        return iter(list(self._sources.values()))
