"""Picks the one content source a cycle will use."""

from __future__ import annotations

import logging
import random
from typing import Optional

from ..core.protocols import RandomSource
from .exceptions import NoSourceAvailableError, UnknownSourceError
from .models import ContentPriority, GenerationContext
from .registry import GeneratorRegistry, RegisteredSource

logger = logging.getLogger(__name__)


class ContentSelector:
    """Selects a source per cycle.

    A notification source whose trigger pattern matches the context's event
    always wins, first match in registration order. Otherwise one of the
    normal sources is chosen through ``rng``, fresh on every call.
    """

    def __init__(self, registry: GeneratorRegistry, rng: Optional[RandomSource] = None) -> None:
        self.registry = registry
        self.rng: RandomSource = rng if rng is not None else random.Random()

    def select(self, context: GenerationContext) -> RegisteredSource:
        """Return the source for this cycle.

        Raises:
            NoSourceAvailableError: Nothing is eligible; a wiring problem
        """
        event_identifier = context.event_identifier
        if event_identifier:
            for entry in self.registry.by_event_pattern(event_identifier):
                if entry.registration.priority == ContentPriority.NOTIFICATION:
                    logger.info(
                        "Event %s matched notification source %s", event_identifier, entry.id
                    )
                    return entry

        candidates = self.registry.by_priority(ContentPriority.NORMAL)
        if not candidates:
            raise NoSourceAvailableError(
                f"No eligible content source among {len(self.registry)} registered"
            )

        chosen = self.rng.choice(candidates)
        logger.debug("Selected %s from %d normal sources", chosen.id, len(candidates))
        return chosen

    def select_by_id(self, source_id: str) -> RegisteredSource:
        """Return an explicitly requested source.

        Raises:
            UnknownSourceError: No source with that id
        """
        entry = self.registry.get(source_id)
        if entry is None:
            raise UnknownSourceError(f"Unknown content source: {source_id}")
        return entry
