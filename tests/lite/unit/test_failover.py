"""Unit tests for provider selection and FailoverCoordinator."""

from typing import Optional

import pytest

from boardbot_lite.core.local import StaticCircuits
from boardbot_lite.domain.exceptions import (
    FailoverExhaustedError,
    OverloadedError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitError,
    SourceConfigurationError,
    ToolAttemptsExhaustedError,
)
from boardbot_lite.domain.failover import FailoverCoordinator, provider_circuit_id
from boardbot_lite.domain.models import (
    GenerationContext,
    ModelTier,
    SourceKind,
    SourceRegistration,
)
from boardbot_lite.domain.providers import ModelSelection, ModelTierSelector
from boardbot_lite.domain.registry import RegisteredSource
from boardbot_lite.domain.sources import GreetingSource, PromptSource
from boardbot_lite.domain.tool_loop import ToolValidationLoop
from tests.lite.fakes import ExplodingCircuits, ScriptedModel

pytestmark = [pytest.mark.unit, pytest.mark.fast]


def _generative_entry(source: Optional[object] = None) -> RegisteredSource:
    registration = SourceRegistration(
        id="thought", name="Thought", kind=SourceKind.GENERATIVE, model_tier=ModelTier.MEDIUM
    )
    return RegisteredSource(registration, source or PromptSource("system", "user"))


def _coordinator(
    models: dict[str, ScriptedModel],
    providers: Optional[list[str]] = None,
    circuits: Optional[object] = None,
) -> FailoverCoordinator:
    selector = ModelTierSelector("openai", providers or ["openai", "anthropic"])
    return FailoverCoordinator(
        selector,
        lambda selection: models[selection.provider],
        tool_loop=ToolValidationLoop(max_attempts=2),
        circuits=circuits,
    )


class TestModelTierSelector:
    def test_select_when_preferred_available_then_preferred(self) -> None:
        selector = ModelTierSelector(
            "anthropic", ["openai", "anthropic"], {"anthropic": {"heavy": "big-model"}}
        )
        selection = selector.select(ModelTier.HEAVY)
        assert selection == ModelSelection("anthropic", ModelTier.HEAVY, "big-model")

    def test_select_when_preferred_missing_then_first_available(self) -> None:
        assert ModelTierSelector("gemini", ["openai"]).select(ModelTier.LIGHT).provider == "openai"

    def test_alternate_when_two_providers_then_other_same_tier(self) -> None:
        selector = ModelTierSelector("openai", ["openai", "anthropic"])
        alternate = selector.alternate(selector.select(ModelTier.MEDIUM))
        assert alternate is not None
        assert (alternate.provider, alternate.tier) == ("anthropic", ModelTier.MEDIUM)

    def test_alternate_when_single_provider_then_none(self) -> None:
        selector = ModelTierSelector("openai", ["openai"])
        assert selector.alternate(selector.select(ModelTier.LIGHT)) is None

    def test_init_when_no_providers_then_value_error(self) -> None:
        with pytest.raises(ValueError):
            ModelTierSelector("openai", [])

    def test_provider_circuit_id_when_named_then_prefixed_upper(self) -> None:
        assert provider_circuit_id("openai") == "PROVIDER_OPENAI"


class TestFailoverCoordinator:
    @pytest.mark.asyncio
    async def test_generate_when_preferred_succeeds_then_no_failover(self) -> None:
        models = {
            "openai": ScriptedModel("openai", ["HELLO"]),
            "anthropic": ScriptedModel("anthropic", ["X"]),
        }
        content = await _coordinator(models).generate(_generative_entry(), GenerationContext())
        assert content.text == "HELLO"
        assert content.metadata["failover"]["failed_over"] is False
        assert content.metadata["failover"]["total_attempts"] == 1
        assert content.metadata["tier"] == "medium"
        assert models["anthropic"].calls == 0

    @pytest.mark.asyncio
    async def test_generate_when_rate_limited_then_alternate_used_once(self) -> None:
        models = {
            "openai": ScriptedModel("openai", [RateLimitError("429", provider="openai")]),
            "anthropic": ScriptedModel("anthropic", ["FROM ALTERNATE"]),
        }
        content = await _coordinator(models).generate(_generative_entry(), GenerationContext())

        assert content.text == "FROM ALTERNATE"
        failover = content.metadata["failover"]
        assert failover["failed_over"] is True
        assert failover["primary_provider"] == "openai"
        assert failover["final_provider"] == "anthropic"
        assert failover["total_attempts"] == 2
        assert failover["errors"] == [{"provider": "openai", "error": "429"}]
        assert models["openai"].calls == 1
        assert models["anthropic"].calls == 1

    @pytest.mark.asyncio
    async def test_generate_when_client_times_out_then_alternate_used_once(self) -> None:
        models = {
            "openai": ScriptedModel("openai", [TimeoutError("read timed out")]),
            "anthropic": ScriptedModel("anthropic", ["FROM B"]),
        }
        content = await _coordinator(models).generate(_generative_entry(), GenerationContext())

        assert content.text == "FROM B"
        assert content.metadata["failover"]["failed_over"] is True
        assert models["anthropic"].calls == 1

    @pytest.mark.asyncio
    async def test_generate_when_both_fail_then_exhausted_without_third_attempt(self) -> None:
        models = {
            "openai": ScriptedModel("openai", [OverloadedError("busy", provider="openai")]),
            "anthropic": ScriptedModel("anthropic", [RateLimitError("429", provider="anthropic")]),
        }
        with pytest.raises(FailoverExhaustedError) as excinfo:
            await _coordinator(models).generate(_generative_entry(), GenerationContext())
        assert [e["provider"] for e in excinfo.value.errors] == ["openai", "anthropic"]
        assert isinstance(excinfo.value.__cause__, RateLimitError)
        assert models["openai"].calls == 1
        assert models["anthropic"].calls == 1

    @pytest.mark.asyncio
    async def test_generate_when_unclassified_provider_error_then_no_failover(self) -> None:
        models = {
            "openai": ScriptedModel("openai", [ProviderError("weird", provider="openai")]),
            "anthropic": ScriptedModel("anthropic", ["UNUSED"]),
        }
        with pytest.raises(ProviderError):
            await _coordinator(models).generate(_generative_entry(), GenerationContext())
        assert models["anthropic"].calls == 0

    @pytest.mark.asyncio
    async def test_generate_when_tool_attempts_exhausted_then_propagates(self) -> None:
        models = {
            "openai": ScriptedModel("openai", ["A\nB\nC\nD\nE\nF"]),
            "anthropic": ScriptedModel("anthropic", ["UNUSED"]),
        }
        with pytest.raises(ToolAttemptsExhaustedError):
            await _coordinator(models).generate(_generative_entry(), GenerationContext())
        assert models["openai"].calls == 2
        assert models["anthropic"].calls == 0

    @pytest.mark.asyncio
    async def test_generate_when_preferred_circuit_open_then_unavailable_without_call(
        self,
    ) -> None:
        models = {
            "openai": ScriptedModel("openai", ["X"]),
            "anthropic": ScriptedModel("anthropic", ["Y"]),
        }
        circuits = StaticCircuits(unavailable_providers=["PROVIDER_OPENAI"])
        with pytest.raises(ProviderUnavailableError):
            await _coordinator(models, circuits=circuits).generate(
                _generative_entry(), GenerationContext()
            )
        assert models["openai"].calls == 0
        assert models["anthropic"].calls == 0

    @pytest.mark.asyncio
    async def test_generate_when_alternate_circuit_open_then_exhausted(self) -> None:
        models = {
            "openai": ScriptedModel("openai", [RateLimitError("429", provider="openai")]),
            "anthropic": ScriptedModel("anthropic", ["Y"]),
        }
        circuits = StaticCircuits(unavailable_providers=["PROVIDER_ANTHROPIC"])
        with pytest.raises(FailoverExhaustedError):
            await _coordinator(models, circuits=circuits).generate(
                _generative_entry(), GenerationContext()
            )
        assert models["anthropic"].calls == 0

    @pytest.mark.asyncio
    async def test_generate_when_single_provider_fails_then_exhausted(self) -> None:
        models = {"openai": ScriptedModel("openai", [RateLimitError("429", provider="openai")])}
        with pytest.raises(FailoverExhaustedError):
            await _coordinator(models, providers=["openai"]).generate(
                _generative_entry(), GenerationContext()
            )

    @pytest.mark.asyncio
    async def test_generate_when_circuit_store_fails_then_attempt_allowed(self) -> None:
        models = {
            "openai": ScriptedModel("openai", ["OK"]),
            "anthropic": ScriptedModel("anthropic", ["Y"]),
        }
        content = await _coordinator(models, circuits=ExplodingCircuits()).generate(
            _generative_entry(), GenerationContext()
        )
        assert content.text == "OK"

    @pytest.mark.asyncio
    async def test_generate_when_programmatic_then_no_model_involved(self) -> None:
        def factory(selection: ModelSelection) -> ScriptedModel:
            raise AssertionError("model factory must not be called")

        coordinator = FailoverCoordinator(ModelTierSelector("openai", ["openai"]), factory)
        entry = RegisteredSource(SourceRegistration(id="greet", name="Greet"), GreetingSource())
        content = await coordinator.generate(entry, GenerationContext())
        assert content.text.startswith("Good")

    @pytest.mark.asyncio
    async def test_generate_when_generative_without_prompts_then_configuration_error(
        self,
    ) -> None:
        models = {"openai": ScriptedModel("openai", ["X"])}
        with pytest.raises(SourceConfigurationError):
            await _coordinator(models).generate(
                _generative_entry(GreetingSource()), GenerationContext()
            )
