"""Content orchestrator: one major or minor cycle from circuits to display.

A major cycle:

1. checks the master and sleep circuits (blocked cycles touch nothing),
2. prefetches weather and palette data,
3. selects a source,
4. generates through the failover coordinator,
5. validates the output,
6. lays it out (framed, plain, or pass-through),
7. caches it and delivers it to the display.

Generation and validation failures end in the static fallback. Wiring
problems and delivery failures propagate to the caller. Persistence runs in
the background and never affects the outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from ..core.cycle_tracker import CycleTracker
from ..core.protocols import CircuitState, DisplayClient
from ..display.charset import COLS, FRAMED_COLS, FRAMED_ROWS, ROWS, Layout
from ..display.frame import FrameRenderer, layout_from_text
from ..display.validators import validate_generator_output
from ..lite_logging import new_cycle_id
from .data_provider import ContentDataProvider
from .exceptions import ConfigurationError, DeliveryError, MissingLayoutError
from .failover import FailoverCoordinator
from .fallback import FALLBACK_REGISTRATION, StaticFallbackSource
from .models import (
    ContentRecord,
    CycleOutcome,
    CycleStatus,
    GeneratedContent,
    GenerationContext,
    OutputMode,
    RecordStatus,
    SourceRegistration,
    UpdateType,
)
from .persistence import BackgroundRecorder
from .selector import ContentSelector

logger = logging.getLogger(__name__)

MASTER_CIRCUIT = "MASTER"
SLEEP_CIRCUIT = "SLEEP_MODE"

BLOCKING_CIRCUITS: tuple[tuple[str, str], ...] = (
    (MASTER_CIRCUIT, "master circuit off"),
    (SLEEP_CIRCUIT, "sleep mode active"),
)


@dataclass
class CachedContent:
    """Last delivered content with what is needed to re-render it."""

    content: GeneratedContent
    registration: SourceRegistration
    layout: Layout


class ContentOrchestrator:
    """Runs delivery cycles.

    Args:
        selector: Picks the source for a cycle
        coordinator: Generates content with provider failover
        fallback: Static last-resort source
        display: Receives the final grid
        renderer: Frames text content
        circuits: Optional circuit store; without it nothing is ever blocked
        recorder: Optional background persistence
        data_provider: Optional weather/palette prefetch
        tracker: Optional cycle bookkeeping
    """

    def __init__(
        self,
        selector: ContentSelector,
        coordinator: FailoverCoordinator,
        fallback: StaticFallbackSource,
        display: DisplayClient,
        renderer: Optional[FrameRenderer] = None,
        circuits: Optional[CircuitState] = None,
        recorder: Optional[BackgroundRecorder] = None,
        data_provider: Optional[ContentDataProvider] = None,
        tracker: Optional[CycleTracker] = None,
    ) -> None:
        self.selector = selector
        self.coordinator = coordinator
        self.fallback = fallback
        self.display = display
        self.renderer = renderer or FrameRenderer()
        self.circuits = circuits
        self.recorder = recorder
        self.data_provider = data_provider
        self.tracker = tracker or CycleTracker()
        self._cache: Optional[CachedContent] = None

    async def run_cycle(self, context: GenerationContext) -> CycleOutcome:
        """Run one major cycle.

        Returns:
            Outcome with status ``delivered`` or ``blocked``

        Raises:
            ConfigurationError: Nothing selectable, or layout-mode content without a grid
            DeliveryError: The display rejected the grid
        """
        cycle_id = new_cycle_id()
        logger.debug("Starting %s cycle %s", context.update_type.value, cycle_id)
        self.tracker.record_start()

        reason = await self._blocked_reason()
        if reason is not None:
            logger.info("Cycle blocked: %s", reason)
            self.tracker.record_blocked()
            return CycleOutcome(status=CycleStatus.BLOCKED, reason=reason)

        warnings: list[str] = []
        if context.update_type == UpdateType.MAJOR and self.data_provider is not None:
            aux = await self.data_provider.fetch()
            warnings.extend(aux.warnings)
            context = context.with_auxiliary(
                aux.weather or context.weather, aux.color_bar or context.color_bar
            )

        try:
            entry = self.selector.select(context)
        except ConfigurationError as exc:
            logger.error("Source selection failed: %s", exc)
            self.tracker.record_failure(exc)
            raise

        registration = entry.registration
        used_fallback = False
        try:
            content = await self.coordinator.generate(entry, context)
            max_lines, max_cols = self._limits(registration)
            word_wrap = (
                registration.format_options.word_wrap if registration.format_options else True
            )
            validate_generator_output(
                content, max_lines=max_lines, max_cols=max_cols, word_wrap=word_wrap
            )
        except ConfigurationError as exc:
            logger.error("Source %s is misconfigured: %s", registration.id, exc)
            self.tracker.record_failure(exc)
            raise
        except Exception as exc:
            logger.warning(
                "Generation failed for %s (%s: %s); using fallback",
                registration.id,
                type(exc).__name__,
                exc,
            )
            self._persist(
                ContentRecord(
                    status=RecordStatus.FAILED,
                    source_id=registration.id,
                    error_message=str(exc),
                    metadata={"error_type": type(exc).__name__},
                )
            )
            content = self.fallback.pick()
            registration = FALLBACK_REGISTRATION
            used_fallback = True

        layout, frame_warnings = await self._layout(content, registration, context)
        warnings.extend(frame_warnings)

        self._cache = CachedContent(content=content, registration=registration, layout=layout)
        await self._deliver(layout)

        self._persist(
            ContentRecord(
                status=RecordStatus.SUCCESS,
                source_id=registration.id,
                text=content.text,
                output_mode=content.output_mode,
                metadata=content.metadata,
            )
        )
        self.tracker.record_success(used_fallback=used_fallback)
        logger.info(
            "Delivered content from %s%s", registration.id, " (fallback)" if used_fallback else ""
        )
        return CycleOutcome(
            status=CycleStatus.DELIVERED,
            source_id=registration.id,
            content=content,
            layout=layout,
            used_fallback=used_fallback,
            warnings=warnings,
        )

    async def run_minor_cycle(self, now: Optional[datetime] = None) -> CycleOutcome:
        """Refresh the info row and color column of the cached content.

        Nothing is generated. Unframed and layout-mode content has no info
        row, so the cycle is skipped.
        """
        cached = self._cache
        if cached is None:
            return CycleOutcome(status=CycleStatus.SKIPPED, reason="no cached content")

        reason = await self._blocked_reason()
        if reason is not None:
            logger.info("Minor cycle blocked: %s", reason)
            self.tracker.record_blocked()
            return CycleOutcome(status=CycleStatus.BLOCKED, reason=reason)

        if cached.content.output_mode == OutputMode.LAYOUT or not cached.registration.apply_frame:
            return CycleOutcome(
                status=CycleStatus.SKIPPED,
                reason="cached content has no info row",
                source_id=cached.registration.id,
            )

        self.tracker.record_start()
        warnings: list[str] = []
        weather = None
        color_bar = None
        if self.data_provider is not None:
            aux = await self.data_provider.fetch()
            warnings.extend(aux.warnings)
            weather, color_bar = aux.weather, aux.color_bar

        result = await self.renderer.render(
            cached.content.text,
            timestamp=now or datetime.now(),
            weather=weather,
            color_bar=color_bar,
            format_options=cached.registration.format_options,
        )
        warnings.extend(result.warnings)

        self._cache = replace(cached, layout=result.layout)
        await self._deliver(result.layout)
        self.tracker.record_success(
            used_fallback=cached.registration.id == FALLBACK_REGISTRATION.id
        )
        return CycleOutcome(
            status=CycleStatus.DELIVERED,
            source_id=cached.registration.id,
            content=cached.content,
            layout=result.layout,
            used_fallback=cached.registration.id == FALLBACK_REGISTRATION.id,
            warnings=warnings,
        )

    def get_cached_content(self) -> Optional[GeneratedContent]:
        return self._cache.content if self._cache is not None else None

    def get_cached_layout(self) -> Optional[Layout]:
        return self._cache.layout if self._cache is not None else None

    def clear_cache(self) -> None:
        self._cache = None

    async def _blocked_reason(self) -> Optional[str]:
        if self.circuits is None:
            return None
        for name, reason in BLOCKING_CIRCUITS:
            try:
                is_open = await self.circuits.is_circuit_open(name)
            except Exception:
                logger.warning("Circuit %s unreadable; treating as closed", name, exc_info=True)
                continue
            if is_open:
                return reason
        return None

    @staticmethod
    def _limits(registration: SourceRegistration) -> tuple[int, int]:
        options = registration.format_options
        if options is not None:
            return options.max_lines, options.max_chars_per_line
        if registration.apply_frame:
            return FRAMED_ROWS, FRAMED_COLS
        return ROWS, COLS

    async def _layout(
        self,
        content: GeneratedContent,
        registration: SourceRegistration,
        context: GenerationContext,
    ) -> tuple[Layout, list[str]]:
        if content.output_mode == OutputMode.LAYOUT:
            if not content.layout:
                raise MissingLayoutError("layout mode requires layout data")
            return self.renderer.pass_through(content.layout).layout, []

        if registration.apply_frame:
            result = await self.renderer.render(
                content.text,
                timestamp=context.timestamp,
                weather=context.weather,
                color_bar=context.color_bar,
                format_options=registration.format_options,
            )
            return result.layout, list(result.warnings)

        return layout_from_text(content.text), []

    async def _deliver(self, layout: Layout) -> None:
        try:
            await self.display.send_layout(layout)
        except Exception as exc:
            logger.error("Display delivery failed: %s", exc)
            self.tracker.record_failure(exc)
            raise DeliveryError(f"Failed to deliver layout: {exc}") from exc

    def _persist(self, record: ContentRecord) -> None:
        if self.recorder is not None:
            self.recorder.record(record)
