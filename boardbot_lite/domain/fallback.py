"""Last-resort static content.

The fallback source does no I/O and cannot fail: its messages are fixed at
construction time, checked once, and picked with an injectable random
source. The orchestrator trusts its output without further validation.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from typing import Optional

from ..core.protocols import RandomSource
from ..display.validators import validate_text_content
from .models import ContentPriority, GeneratedContent, GenerationContext, SourceRegistration
from .sources import SourceCheck

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_MESSAGES: tuple[str, ...] = (
    "STAY CURIOUS",
    "MAKE TODAY COUNT",
    "ONE STEP AT A TIME",
    "GOOD THINGS TAKE TIME",
    "KEEP IT SIMPLE",
)

FALLBACK_REGISTRATION = SourceRegistration(
    id="static-fallback",
    name="Static fallback",
    priority=ContentPriority.FALLBACK,
)


class StaticFallbackSource:
    """Picks one of a fixed list of short, display-safe messages."""

    def __init__(
        self, messages: Optional[Sequence[str]] = None, rng: Optional[RandomSource] = None
    ) -> None:
        accepted = []
        for message in messages or ():
            if validate_text_content(message).valid:
                accepted.append(message.upper())
            else:
                logger.warning("Ignoring fallback message that does not fit the board: %r", message)
        self.messages: tuple[str, ...] = tuple(accepted) or DEFAULT_FALLBACK_MESSAGES
        self.rng: RandomSource = rng if rng is not None else random.Random()

    def pick(self) -> GeneratedContent:
        """Synchronous, I/O-free selection."""
        text = self.rng.choice(self.messages)
        return GeneratedContent(
            text=text, metadata={"fallback": True, "source": FALLBACK_REGISTRATION.id}
        )

    async def generate(self, context: GenerationContext) -> GeneratedContent:
        return self.pick()

    def validate(self) -> SourceCheck:
        return SourceCheck()
