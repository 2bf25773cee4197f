"""Protocol definitions for the collaborators the pipeline talks to.

None of these are implemented by the pipeline itself: model clients, the
circuit store, persistence, the physical display and auxiliary data feeds
are all injected. ``boardbot_lite.core.local`` ships in-memory versions for
the CLI and tests.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Optional, Protocol, TypeVar

from pydantic import BaseModel, Field

from ..domain.models import ContentRecord, WeatherData

T = TypeVar("T")


class ToolDefinition(BaseModel):
    """A tool the model may call, described with a JSON schema."""

    name: str
    description: str
    parameters: dict[str, Any] = Field(default_factory=dict)


class ToolCall(BaseModel):
    """A tool invocation proposed by the model."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    """Result of a tool call, sent back to the model on the next turn."""

    tool_call_id: str
    content: str
    is_error: bool = False


class ModelRequest(BaseModel):
    system_prompt: str
    user_prompt: str
    tools: list[ToolDefinition] = Field(default_factory=list)
    tool_results: list[ToolResult] = Field(default_factory=list)


class ModelResponse(BaseModel):
    text: str = ""
    model: str = ""
    tokens_used: Optional[int] = None
    tool_calls: list[ToolCall] = Field(default_factory=list)


class GenerativeModel(Protocol):
    """Client for one upstream generative-model provider."""

    name: str

    async def generate(self, request: ModelRequest) -> ModelResponse:
        """Run one completion.

        Raises:
            ProviderError: Subclass describing the failure kind
        """
        ...


class CircuitState(Protocol):
    """Read-only view of the externally owned circuit store."""

    async def is_circuit_open(self, name: str) -> bool:
        """Return True when the named circuit blocks traffic."""
        ...

    async def is_provider_available(self, circuit_id: str) -> bool:
        """Return True when calls to the provider behind ``circuit_id`` are allowed."""
        ...


class PersistenceSink(Protocol):
    async def save_record(self, record: ContentRecord) -> None:
        """Store one generation record."""
        ...


class DisplayClient(Protocol):
    async def send_layout(self, layout: list[list[int]]) -> None:
        """Push a 6x22 grid of character codes to the board."""
        ...


class WeatherProvider(Protocol):
    async def get_weather(self) -> Optional[WeatherData]:
        """Return current conditions, or None when unknown."""
        ...


class ColorPaletteProvider(Protocol):
    async def get_colors(self) -> list[int]:
        """Return six color codes for the color column."""
        ...


class RandomSource(Protocol):
    """Subset of ``random.Random`` the selector and fallback rely on."""

    def choice(self, seq: Sequence[T]) -> T:
        ...
