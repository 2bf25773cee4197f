"""Dependency injection container for the delivery pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..config_loader import PipelineConfig
from ..display.charset import text_to_layout
from ..display.frame import FrameRenderer
from ..domain.data_provider import ContentDataProvider
from ..domain.exceptions import ConfigurationError
from ..domain.failover import FailoverCoordinator
from ..domain.fallback import StaticFallbackSource
from ..domain.models import (
    ContentPriority,
    FormatOptions,
    ModelTier,
    SourceKind,
    SourceRegistration,
)
from ..domain.orchestrator import ContentOrchestrator
from ..domain.persistence import BackgroundRecorder
from ..domain.providers import ModelFactory, ModelSelection, ModelTierSelector
from ..domain.registry import GeneratorRegistry
from ..domain.selector import ContentSelector
from ..domain.sources import (
    GreetingSource,
    NotificationSource,
    PromptSource,
    StaticLayoutSource,
    default_notification_formatter,
)
from ..domain.tool_loop import ExhaustionPolicy, ToolValidationLoop
from .cycle_tracker import CycleTracker
from .local import ConsoleDisplay, EchoModel, LoggingSink, StaticCircuits
from .protocols import (
    CircuitState,
    ColorPaletteProvider,
    DisplayClient,
    GenerativeModel,
    PersistenceSink,
    RandomSource,
    WeatherProvider,
)

logger = logging.getLogger(__name__)

SOURCE_TYPES = ("prompt", "greeting", "notification", "static")

DEFAULT_SOURCES: list[dict[str, Any]] = [
    {"id": "greeting", "name": "Greeting", "type": "greeting"},
    {
        "id": "daily-thought",
        "name": "Daily thought",
        "type": "prompt",
        "model_tier": "light",
        "system_prompt": (
            "You write short messages for a split-flap board. "
            "Use at most {{maxLines}} lines of {{maxChars}} characters."
        ),
        "user_prompt": "Write an uplifting thought for today.",
    },
]


def build_source(spec: dict[str, Any]) -> tuple[SourceRegistration, Any]:
    """Build a registration and source object from a declarative entry.

    Raises:
        ConfigurationError: Unknown type or invalid fields
    """
    source_type = str(spec.get("type", "prompt")).lower()
    if source_type not in SOURCE_TYPES:
        raise ConfigurationError(f"Unknown source type {source_type!r} for {spec.get('id')}")

    try:
        format_options = (
            FormatOptions(**spec["format_options"]) if spec.get("format_options") else None
        )
        registration = SourceRegistration(
            id=str(spec.get("id") or source_type),
            name=str(spec.get("name") or spec.get("id") or source_type),
            priority=ContentPriority[str(spec.get("priority", "normal")).upper()],
            model_tier=ModelTier(str(spec.get("model_tier", "light")).lower()),
            kind=SourceKind.GENERATIVE if source_type == "prompt" else SourceKind.PROGRAMMATIC,
            apply_frame=bool(spec.get("apply_frame", source_type != "static")),
            event_trigger_pattern=spec.get("event_trigger_pattern"),
            format_options=format_options,
            tags=[str(tag) for tag in spec.get("tags", [])],
        )
    except (KeyError, ValueError, TypeError) as exc:
        raise ConfigurationError(f"Invalid source entry {spec.get('id')!r}: {exc}") from exc

    options = registration.format_options or FormatOptions()
    source: Any
    if source_type == "prompt":
        source = PromptSource(
            system_prompt=str(spec.get("system_prompt", "")),
            user_prompt=str(spec.get("user_prompt", "")),
            max_chars=options.max_chars_per_line,
            max_lines=options.max_lines,
        )
    elif source_type == "greeting":
        source = GreetingSource()
    elif source_type == "notification":
        source = NotificationSource(default_notification_formatter)
    else:
        text = str(spec.get("text", ""))
        source = StaticLayoutSource(text_to_layout(text), text=text)

    check = source.validate()
    if not check.valid:
        raise ConfigurationError(
            f"Source {registration.id} failed validation: {', '.join(check.errors)}"
        )
    return registration, source


def build_registry(specs: list[dict[str, Any]]) -> GeneratorRegistry:
    registry = GeneratorRegistry()
    for spec in specs:
        registration, source = build_source(spec)
        registry.register(registration, source)
    return registry


def echo_model_factory(replies: Optional[list[str]] = None) -> ModelFactory:
    """Factory handing out one EchoModel per provider name."""
    models: dict[str, GenerativeModel] = {}

    def factory(selection: ModelSelection) -> GenerativeModel:
        if selection.provider not in models:
            models[selection.provider] = EchoModel(name=selection.provider, replies=replies)
        return models[selection.provider]

    return factory


@dataclass
class AppDependencies:
    """Container for the wired pipeline and its collaborators."""

    config: PipelineConfig
    registry: GeneratorRegistry
    selector: ContentSelector
    coordinator: FailoverCoordinator
    fallback: StaticFallbackSource
    orchestrator: ContentOrchestrator
    display: DisplayClient
    circuits: CircuitState
    sink: PersistenceSink
    recorder: BackgroundRecorder
    tracker: CycleTracker


class DependencyContainer:
    """Factory for building application dependencies."""

    @staticmethod
    def build_dependencies(
        config: PipelineConfig,
        *,
        display: Optional[DisplayClient] = None,
        circuits: Optional[CircuitState] = None,
        sink: Optional[PersistenceSink] = None,
        model_factory: Optional[ModelFactory] = None,
        weather: Optional[WeatherProvider] = None,
        palette: Optional[ColorPaletteProvider] = None,
        rng: Optional[RandomSource] = None,
    ) -> AppDependencies:
        """Build the pipeline from configuration.

        Collaborators not passed in are replaced by the in-memory versions
        from ``core.local``: echo models, static circuits, a console display
        and a logging sink.

        Raises:
            ConfigurationError: A declarative source entry is invalid
        """
        registry = build_registry(config.sources or DEFAULT_SOURCES)
        selector = ContentSelector(registry, rng=rng)

        circuits = circuits if circuits is not None else StaticCircuits()
        tool_loop = ToolValidationLoop(
            max_attempts=config.max_attempts,
            exhaustion_policy=ExhaustionPolicy(config.exhaustion_policy),
            call_timeout=config.provider_timeout,
        )
        coordinator = FailoverCoordinator(
            tier_selector=ModelTierSelector(
                preferred=config.preferred_provider,
                available=config.available_providers,
                tier_models=config.tier_models,
            ),
            model_factory=model_factory or echo_model_factory(),
            tool_loop=tool_loop,
            circuits=circuits,
        )

        fallback = StaticFallbackSource(config.fallback_messages, rng=rng)
        display = display if display is not None else ConsoleDisplay()
        sink = sink if sink is not None else LoggingSink()
        recorder = BackgroundRecorder(sink)
        tracker = CycleTracker()

        data_provider = None
        if weather is not None or palette is not None:
            data_provider = ContentDataProvider(weather=weather, palette=palette)

        orchestrator = ContentOrchestrator(
            selector=selector,
            coordinator=coordinator,
            fallback=fallback,
            display=display,
            renderer=FrameRenderer(),
            circuits=circuits,
            recorder=recorder,
            data_provider=data_provider,
            tracker=tracker,
        )
        logger.debug(
            "Pipeline wired with %d sources, providers=%s",
            len(registry),
            config.available_providers,
        )

        return AppDependencies(
            config=config,
            registry=registry,
            selector=selector,
            coordinator=coordinator,
            fallback=fallback,
            orchestrator=orchestrator,
            display=display,
            circuits=circuits,
            sink=sink,
            recorder=recorder,
            tracker=tracker,
        )
