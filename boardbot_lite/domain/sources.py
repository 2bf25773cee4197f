"""Content source capability and the built-in sources.

Every source implements two methods, ``generate`` and ``validate``.
Generative sources also provide ``build_prompts`` so the tool-validation
loop can negotiate with a model on their behalf. Shared behaviour is
plain functions in this module (prompt dimension substitution, single-shot
model calls) that sources call instead of inheriting from a base class.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

from ..core.protocols import GenerativeModel, ModelRequest
from ..display.charset import FRAMED_COLS, FRAMED_ROWS, is_valid_layout
from .exceptions import SourceConfigurationError
from .models import GeneratedContent, GenerationContext, OutputMode

logger = logging.getLogger(__name__)


@dataclass
class SourceCheck:
    """Result of a source's self-check at wiring time."""

    valid: bool = True
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PromptPair:
    system_prompt: str
    user_prompt: str


@runtime_checkable
class ContentSource(Protocol):
    """Anything that can produce content for a cycle."""

    async def generate(self, context: GenerationContext) -> GeneratedContent:
        """Produce content for one cycle."""
        ...

    def validate(self) -> SourceCheck:
        """Check the source's own configuration."""
        ...


@runtime_checkable
class PromptedSource(ContentSource, Protocol):
    """A source whose content comes from a generative model."""

    def build_prompts(self, context: GenerationContext) -> PromptPair:
        """Return the system and user prompts for this cycle."""
        ...


def substitute_dimensions(
    template: str, max_chars: int = FRAMED_COLS, max_lines: int = FRAMED_ROWS
) -> str:
    """Fill ``{{maxChars}}`` and ``{{maxLines}}`` placeholders.

    Other ``{{...}}`` placeholders are left alone.
    """
    return template.replace("{{maxChars}}", str(max_chars)).replace(
        "{{maxLines}}", str(max_lines)
    )


async def generate_once(model: GenerativeModel, prompts: PromptPair) -> GeneratedContent:
    """Single model call without tool negotiation."""
    response = await model.generate(
        ModelRequest(system_prompt=prompts.system_prompt, user_prompt=prompts.user_prompt)
    )
    return GeneratedContent(
        text=response.text.strip(),
        output_mode=OutputMode.TEXT,
        metadata={
            "model": response.model,
            "provider": model.name,
            "tokens_used": response.tokens_used,
            "system_prompt": prompts.system_prompt,
            "user_prompt": prompts.user_prompt,
        },
    )


class PromptSource:
    """Generative source defined by a pair of prompt templates.

    The prompts may use ``{{maxChars}}`` / ``{{maxLines}}`` to pick up the
    content-area dimensions. ``generate`` makes a single model call and is
    only used when the source runs outside the tool-validation loop.
    """

    def __init__(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[GenerativeModel] = None,
        max_chars: int = FRAMED_COLS,
        max_lines: int = FRAMED_ROWS,
    ) -> None:
        self.system_prompt = system_prompt
        self.user_prompt = user_prompt
        self.model = model
        self.max_chars = max_chars
        self.max_lines = max_lines

    def build_prompts(self, context: GenerationContext) -> PromptPair:
        user_prompt = substitute_dimensions(self.user_prompt, self.max_chars, self.max_lines)
        if context.event_data:
            user_prompt = f"{user_prompt}\n\nEvent: {context.event_data}"
        return PromptPair(
            system_prompt=substitute_dimensions(self.system_prompt, self.max_chars, self.max_lines),
            user_prompt=user_prompt,
        )

    async def generate(self, context: GenerationContext) -> GeneratedContent:
        if self.model is None:
            raise SourceConfigurationError("PromptSource requires a model to generate directly")
        return await generate_once(self.model, self.build_prompts(context))

    def validate(self) -> SourceCheck:
        errors = []
        if not self.system_prompt.strip():
            errors.append("system prompt is empty")
        if not self.user_prompt.strip():
            errors.append("user prompt is empty")
        return SourceCheck(valid=not errors, errors=errors)


def greeting_for_hour(hour: int) -> str:
    if 5 <= hour < 12:
        return "Good morning!"
    if 12 <= hour < 17:
        return "Good afternoon!"
    if 17 <= hour < 21:
        return "Good evening!"
    return "Good night!"


class GreetingSource:
    """Time-of-day greeting."""

    async def generate(self, context: GenerationContext) -> GeneratedContent:
        return GeneratedContent(text=greeting_for_hour(context.timestamp.hour))

    def validate(self) -> SourceCheck:
        return SourceCheck()


class NotificationSource:
    """Formats the triggering event into a notification message.

    Args:
        formatter: Turns ``context.event_data`` into display text
    """

    def __init__(self, formatter: Callable[[dict[str, Any]], str]) -> None:
        self.formatter = formatter

    async def generate(self, context: GenerationContext) -> GeneratedContent:
        if not context.event_data:
            raise SourceConfigurationError("NotificationSource requires event data in context")
        text = self.formatter(context.event_data)
        return GeneratedContent(text=text, metadata={"event": context.event_identifier})

    def validate(self) -> SourceCheck:
        if not callable(self.formatter):
            return SourceCheck(valid=False, errors=["formatter must be callable"])
        return SourceCheck()


def default_notification_formatter(event_data: dict[str, Any]) -> str:
    """Render an event as ``ENTITY`` / ``STATE`` lines."""
    title = event_data.get("title") or event_data.get("entity_id") or event_data.get("event_type")
    message = event_data.get("message") or event_data.get("state") or ""
    return "\n".join(part for part in (str(title or "NOTICE"), str(message)) if part)


class StaticLayoutSource:
    """Programmatic source that emits a fixed, already gridded layout."""

    def __init__(self, layout: list[list[int]], text: str = "") -> None:
        self.layout = layout
        self.text = text

    async def generate(self, context: GenerationContext) -> GeneratedContent:
        return GeneratedContent(
            text=self.text,
            output_mode=OutputMode.LAYOUT,
            layout=[list(row) for row in self.layout],
        )

    def validate(self) -> SourceCheck:
        if not is_valid_layout(self.layout):
            return SourceCheck(valid=False, errors=["layout must be 6x22 codes in 0-70"])
        return SourceCheck()
