"""Cycle bookkeeping for status reporting."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional


@dataclass
class CycleHealth:
    """Snapshot of pipeline health."""

    status: str  # "ok" or "degraded"
    uptime_seconds: int
    cycles_started: int
    cycles_delivered: int
    fallbacks_used: int
    cycles_blocked: int
    cycles_failed: int
    last_success_age_seconds: Optional[int]
    last_error: Optional[str]


class CycleTracker:
    """Counts cycle outcomes.

    The pipeline is degraded when the most recent cycle failed, or when the
    most recent delivery came from the static fallback.
    """

    def __init__(self) -> None:
        self._start_time: float = time.time()
        self.cycles_started = 0
        self.cycles_delivered = 0
        self.fallbacks_used = 0
        self.cycles_blocked = 0
        self.cycles_failed = 0
        self._last_success: Optional[float] = None
        self._last_error: Optional[str] = None
        self._last_was_fallback = False
        self._last_failed = False

    def record_start(self) -> None:
        self.cycles_started += 1

    def record_success(self, used_fallback: bool = False) -> None:
        """Record a delivered cycle.

        Args:
            used_fallback: Whether the delivered content came from the fallback
        """
        self.cycles_delivered += 1
        self._last_success = time.time()
        self._last_was_fallback = used_fallback
        self._last_failed = False
        if used_fallback:
            self.fallbacks_used += 1

    def record_blocked(self) -> None:
        self.cycles_blocked += 1

    def record_failure(self, error: BaseException) -> None:
        self.cycles_failed += 1
        self._last_failed = True
        self._last_error = f"{type(error).__name__}: {error}"

    def get_last_success_age_seconds(self) -> Optional[int]:
        if self._last_success is None:
            return None
        return int(time.time() - self._last_success)

    def get_status(self) -> CycleHealth:
        degraded = self._last_failed or self._last_was_fallback
        return CycleHealth(
            status="degraded" if degraded else "ok",
            uptime_seconds=int(time.time() - self._start_time),
            cycles_started=self.cycles_started,
            cycles_delivered=self.cycles_delivered,
            fallbacks_used=self.fallbacks_used,
            cycles_blocked=self.cycles_blocked,
            cycles_failed=self.cycles_failed,
            last_success_age_seconds=self.get_last_success_age_seconds(),
            last_error=self._last_error,
        )
