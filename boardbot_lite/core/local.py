"""In-memory collaborators for the CLI, demos and tests.

Nothing here talks to a network: the circuit store is a set, the display
prints to a stream, persistence goes to the log, and the model echoes
canned replies through the ``submit_content`` tool.
"""

from __future__ import annotations

import itertools
import logging
import sys
from collections.abc import Iterable, Sequence
from typing import Optional, TextIO

from ..display.charset import code_to_char
from ..domain.models import ContentRecord
from .protocols import ModelRequest, ModelResponse, ToolCall

logger = logging.getLogger(__name__)


class StaticCircuits:
    """Circuit store backed by two sets of names."""

    def __init__(
        self,
        open_circuits: Iterable[str] = (),
        unavailable_providers: Iterable[str] = (),
    ) -> None:
        self.open_circuits = set(open_circuits)
        self.unavailable_providers = set(unavailable_providers)

    def set_circuit(self, name: str, is_open: bool) -> None:
        if is_open:
            self.open_circuits.add(name)
        else:
            self.open_circuits.discard(name)

    async def is_circuit_open(self, name: str) -> bool:
        return name in self.open_circuits

    async def is_provider_available(self, circuit_id: str) -> bool:
        return circuit_id not in self.unavailable_providers


class ConsoleDisplay:
    """Prints each grid as rows of characters between rulers."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream or sys.stdout
        self.sent: list[list[list[int]]] = []

    async def send_layout(self, layout: list[list[int]]) -> None:
        self.sent.append([list(row) for row in layout])
        width = len(layout[0]) if layout else 0
        ruler = "+" + "-" * width + "+"
        print(ruler, file=self.stream)
        for row in layout:
            print("|" + "".join(code_to_char(code) for code in row) + "|", file=self.stream)
        print(ruler, file=self.stream)


class LoggingSink:
    """Persistence sink that logs records and keeps them in memory."""

    def __init__(self) -> None:
        self.records: list[ContentRecord] = []

    async def save_record(self, record: ContentRecord) -> None:
        self.records.append(record)
        logger.info(
            "Recorded %s content from %s%s",
            record.status.value,
            record.source_id,
            f" ({record.error_message})" if record.error_message else "",
        )


class EchoModel:
    """Model that submits canned replies through ``submit_content``.

    Replies are used in order; the last one repeats once the list is spent.
    """

    def __init__(self, name: str = "echo", replies: Optional[Sequence[str]] = None) -> None:
        self.name = name
        self.replies = list(replies or ["HELLO FROM BOARDBOT"])
        self.requests: list[ModelRequest] = []
        self._ids = itertools.count(1)

    async def generate(self, request: ModelRequest) -> ModelResponse:
        self.requests.append(request)
        index = min(len(self.requests), len(self.replies)) - 1
        call_id = f"call_{next(self._ids)}"
        return ModelResponse(
            model=f"{self.name}-local",
            tokens_used=0,
            tool_calls=[
                ToolCall(
                    id=call_id,
                    name="submit_content",
                    arguments={"content": self.replies[index]},
                )
            ],
        )
