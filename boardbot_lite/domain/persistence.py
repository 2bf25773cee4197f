"""Fire-and-forget persistence of cycle outcomes."""

from __future__ import annotations

import inspect
import logging
from typing import Optional

from ..core.async_utils import BackgroundTaskSet
from ..core.protocols import PersistenceSink
from .models import ContentRecord

logger = logging.getLogger(__name__)


class BackgroundRecorder:
    """Hands records to a sink without delaying delivery.

    A sink failure, whether raised on the call itself or from the awaited
    save, is logged and counted and never reaches the cycle.
    """

    def __init__(self, sink: PersistenceSink) -> None:
        self.sink = sink
        self._tasks = BackgroundTaskSet(name="persistence")
        self._call_failures = 0

    def record(self, entry: ContentRecord) -> None:
        logger.debug("Persisting %s record for %s", entry.status.value, entry.source_id)
        try:
            pending = self.sink.save_record(entry)
            if inspect.isawaitable(pending):
                self._tasks.spawn(pending)
        except Exception:
            self._call_failures += 1
            logger.warning(
                "Failed to persist %s record for %s",
                entry.status.value,
                entry.source_id,
                exc_info=True,
            )

    @property
    def pending(self) -> int:
        return self._tasks.pending

    @property
    def failures(self) -> int:
        return self._tasks.failures + self._call_failures

    async def drain(self, timeout: Optional[float] = None) -> None:
        await self._tasks.drain(timeout)
