"""Unit tests for declarative source building and pipeline wiring."""

from typing import Any

import pytest

from boardbot_lite.config_loader import PipelineConfig
from boardbot_lite.core.dependencies import (
    DEFAULT_SOURCES,
    AppDependencies,
    DependencyContainer,
    build_registry,
    build_source,
    echo_model_factory,
)
from boardbot_lite.core.local import ConsoleDisplay, LoggingSink, StaticCircuits
from boardbot_lite.domain.exceptions import ConfigurationError, DuplicateSourceError
from boardbot_lite.domain.models import (
    ContentPriority,
    CycleStatus,
    GenerationContext,
    ModelTier,
    SourceKind,
)
from boardbot_lite.domain.providers import ModelSelection
from boardbot_lite.domain.sources import NotificationSource, PromptSource, StaticLayoutSource
from boardbot_lite.domain.tool_loop import ExhaustionPolicy
from tests.lite.fakes import FirstChoice, RecordingDisplay, RecordingSink, ScriptedModel

pytestmark = [pytest.mark.unit, pytest.mark.fast]


class TestBuildSource:
    def test_build_source_when_prompt_then_generative_with_tier(self) -> None:
        registration, source = build_source(
            {
                "id": "haiku",
                "type": "prompt",
                "model_tier": "HEAVY",
                "system_prompt": "Write {{maxLines}} lines",
                "user_prompt": "A haiku",
                "tags": ["poetry"],
            }
        )
        assert registration.kind == SourceKind.GENERATIVE
        assert registration.model_tier == ModelTier.HEAVY
        assert registration.name == "haiku"
        assert registration.tags == ["poetry"]
        assert isinstance(source, PromptSource)

    def test_build_source_when_notification_then_priority_and_pattern(self) -> None:
        registration, source = build_source(
            {
                "id": "door",
                "type": "notification",
                "priority": "notification",
                "event_trigger_pattern": "^door\\.",
            }
        )
        assert registration.priority == ContentPriority.NOTIFICATION
        assert registration.matches_event("door.front")
        assert isinstance(source, NotificationSource)

    def test_build_source_when_static_then_unframed_layout(self) -> None:
        registration, source = build_source({"id": "sign", "type": "static", "text": "OPEN"})
        assert registration.apply_frame is False
        assert isinstance(source, StaticLayoutSource)
        assert len(source.layout) == 6

    def test_build_source_when_format_options_then_prompt_limits_follow(self) -> None:
        registration, source = build_source(
            {
                "id": "short",
                "system_prompt": "Max {{maxLines}}x{{maxChars}}",
                "user_prompt": "go",
                "format_options": {"max_lines": 3, "max_chars_per_line": 15},
            }
        )
        assert registration.format_options.max_lines == 3
        prompts = source.build_prompts(GenerationContext())
        assert prompts.system_prompt == "Max 3x15"

    @pytest.mark.parametrize(
        "spec",
        [
            {"id": "x", "type": "podcast"},
            {"id": "x", "type": "greeting", "priority": "urgent"},
            {"id": "x", "type": "prompt", "model_tier": "huge", "system_prompt": "s"},
            {"id": "x", "type": "prompt", "system_prompt": "", "user_prompt": ""},
            {"id": "x", "type": "greeting", "event_trigger_pattern": "("},
        ],
    )
    def test_build_source_when_invalid_then_configuration_error(
        self, spec: dict[str, Any]
    ) -> None:
        with pytest.raises(ConfigurationError):
            build_source(spec)

    def test_build_registry_when_defaults_then_two_normal_sources(self) -> None:
        registry = build_registry(DEFAULT_SOURCES)
        assert [entry.id for entry in registry] == ["greeting", "daily-thought"]

    def test_build_registry_when_duplicate_ids_then_rejected(self) -> None:
        with pytest.raises(DuplicateSourceError):
            build_registry([{"id": "a", "type": "greeting"}, {"id": "a", "type": "greeting"}])


class TestEchoModelFactory:
    def test_factory_when_same_provider_then_same_model(self) -> None:
        factory = echo_model_factory(["HI"])
        first = factory(ModelSelection("openai", ModelTier.LIGHT))
        assert factory(ModelSelection("openai", ModelTier.HEAVY)) is first
        assert factory(ModelSelection("anthropic", ModelTier.LIGHT)) is not first
        assert first.name == "openai"


class TestDependencyContainer:
    def test_build_dependencies_when_defaults_then_local_collaborators(self) -> None:
        deps = DependencyContainer.build_dependencies(PipelineConfig())
        assert isinstance(deps, AppDependencies)
        assert isinstance(deps.display, ConsoleDisplay)
        assert isinstance(deps.circuits, StaticCircuits)
        assert isinstance(deps.sink, LoggingSink)
        assert len(deps.registry) == len(DEFAULT_SOURCES)
        assert deps.orchestrator.data_provider is None

    def test_build_dependencies_when_configured_then_tool_loop_follows_config(self) -> None:
        config = PipelineConfig(
            max_attempts=5, exhaustion_policy="use-last", provider_timeout=4.0
        )
        loop = DependencyContainer.build_dependencies(config).coordinator.tool_loop
        assert loop.max_attempts == 5
        assert loop.exhaustion_policy == ExhaustionPolicy.USE_LAST
        assert loop.call_timeout == 4.0

    @pytest.mark.asyncio
    async def test_build_dependencies_when_cycle_run_then_delivered_through_overrides(
        self,
    ) -> None:
        config = PipelineConfig(
            available_providers=["openai"],
            preferred_provider="openai",
            sources=[
                {
                    "id": "thought",
                    "type": "prompt",
                    "system_prompt": "Be brief",
                    "user_prompt": "Say hi",
                }
            ],
        )
        model = ScriptedModel("openai", ["HI THERE"])
        display = RecordingDisplay()
        sink = RecordingSink()
        deps = DependencyContainer.build_dependencies(
            config,
            display=display,
            sink=sink,
            model_factory=lambda selection: model,
            rng=FirstChoice(),
        )

        outcome = await deps.orchestrator.run_cycle(GenerationContext())
        await deps.recorder.drain()

        assert outcome.status == CycleStatus.DELIVERED
        assert outcome.content.text == "HI THERE"
        assert len(display.layouts) == 1
        assert sink.records[0].source_id == "thought"
        assert deps.tracker.cycles_delivered == 1
