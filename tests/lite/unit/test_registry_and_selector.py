"""Unit tests for GeneratorRegistry and ContentSelector."""

from typing import Any

import pytest

from boardbot_lite.domain.exceptions import (
    DuplicateSourceError,
    NoSourceAvailableError,
    UnknownSourceError,
)
from boardbot_lite.domain.models import ContentPriority, GenerationContext, SourceRegistration
from boardbot_lite.domain.registry import GeneratorRegistry
from boardbot_lite.domain.selector import ContentSelector
from boardbot_lite.domain.sources import GreetingSource
from tests.lite.fakes import FirstChoice

pytestmark = [pytest.mark.unit, pytest.mark.fast]


def _reg(source_id: str, priority: ContentPriority = ContentPriority.NORMAL, **kw: Any):
    return SourceRegistration(id=source_id, name=source_id.title(), priority=priority, **kw)


@pytest.fixture
def registry() -> GeneratorRegistry:
    reg = GeneratorRegistry()
    reg.register(_reg("quote"), GreetingSource())
    reg.register(_reg("weather"), GreetingSource())
    reg.register(
        _reg("door", ContentPriority.NOTIFICATION, event_trigger_pattern=r"^door\."),
        GreetingSource(),
    )
    reg.register(
        _reg("any-door", ContentPriority.NOTIFICATION, event_trigger_pattern="door"),
        GreetingSource(),
    )
    return reg


class TestRegistry:
    def test_register_when_duplicate_id_then_rejected(self, registry: GeneratorRegistry) -> None:
        with pytest.raises(DuplicateSourceError):
            registry.register(_reg("quote"), GreetingSource())
        assert len(registry) == 4

    def test_by_priority_when_queried_then_registration_order(
        self, registry: GeneratorRegistry
    ) -> None:
        assert [e.id for e in registry.by_priority(ContentPriority.NORMAL)] == ["quote", "weather"]

    def test_by_event_pattern_when_matching_then_all_matches_in_order(
        self, registry: GeneratorRegistry
    ) -> None:
        assert [e.id for e in registry.by_event_pattern("door.front")] == ["door", "any-door"]
        assert registry.by_event_pattern(None) == []

    def test_unregister_when_present_then_true_once(self, registry: GeneratorRegistry) -> None:
        assert registry.unregister("weather") is True
        assert registry.unregister("weather") is False
        assert "weather" not in registry

    def test_registration_when_pattern_invalid_then_validation_error(self) -> None:
        with pytest.raises(ValueError):
            _reg("broken", event_trigger_pattern="(")


class TestSelector:
    def test_select_when_event_matches_notification_then_first_match_wins(
        self, registry: GeneratorRegistry
    ) -> None:
        selector = ContentSelector(registry, rng=FirstChoice())
        context = GenerationContext(event_data={"event_type": "door.front"})
        assert selector.select(context).id == "door"

    def test_select_when_entity_id_only_then_used_for_matching(
        self, registry: GeneratorRegistry
    ) -> None:
        selector = ContentSelector(registry, rng=FirstChoice())
        context = GenerationContext(event_data={"entity_id": "sensor.backdoor"})
        assert selector.select(context).id == "any-door"

    def test_select_when_no_event_then_random_normal_source(
        self, registry: GeneratorRegistry
    ) -> None:
        assert ContentSelector(registry, rng=FirstChoice(1)).select(GenerationContext()).id == (
            "weather"
        )
        assert ContentSelector(registry, rng=FirstChoice(0)).select(GenerationContext()).id == (
            "quote"
        )

    def test_select_when_event_matches_nothing_then_falls_back_to_normal(
        self, registry: GeneratorRegistry
    ) -> None:
        selector = ContentSelector(registry, rng=FirstChoice())
        context = GenerationContext(event_data={"event_type": "garage.open"})
        assert selector.select(context).id == "quote"

    def test_select_when_only_notifications_and_no_event_then_no_source(self) -> None:
        reg = GeneratorRegistry()
        reg.register(
            _reg("door", ContentPriority.NOTIFICATION, event_trigger_pattern="door"),
            GreetingSource(),
        )
        with pytest.raises(NoSourceAvailableError):
            ContentSelector(reg).select(GenerationContext())

    def test_select_by_id_when_unknown_then_error(self, registry: GeneratorRegistry) -> None:
        selector = ContentSelector(registry)
        assert selector.select_by_id("weather").id == "weather"
        with pytest.raises(UnknownSourceError):
            selector.select_by_id("nope")
