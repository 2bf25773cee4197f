"""Two-provider failover for content generation.

A generative source gets one attempt on the preferred provider and, after a
classified provider failure, exactly one attempt on a distinct alternate
provider. There is no backoff and no third attempt; whatever survives both
attempts is the orchestrator's cue to use the static fallback.

Provider circuits are consulted before each attempt. A preferred provider
whose circuit is open is never called.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from ..core.protocols import CircuitState
from .exceptions import (
    FAILOVER_ERRORS,
    FailoverExhaustedError,
    ProviderUnavailableError,
    SourceConfigurationError,
)
from .models import GeneratedContent, GenerationContext, SourceKind
from .providers import ModelFactory, ModelSelection, ModelTierSelector
from .registry import RegisteredSource
from .sources import PromptedSource
from .tool_loop import ToolValidationLoop

logger = logging.getLogger(__name__)


def provider_circuit_id(provider: str) -> str:
    """Circuit id for a provider, e.g. ``PROVIDER_OPENAI``."""
    return f"PROVIDER_{provider.upper()}"


class FailoverCoordinator:
    """Runs one source's generation with provider failover.

    Args:
        tier_selector: Chooses preferred/alternate providers per model tier
        model_factory: Builds a model client for a selection
        tool_loop: Negotiation loop wrapped around every generative attempt
        circuits: Optional circuit store; without it every provider is available
    """

    def __init__(
        self,
        tier_selector: ModelTierSelector,
        model_factory: ModelFactory,
        tool_loop: Optional[ToolValidationLoop] = None,
        circuits: Optional[CircuitState] = None,
    ) -> None:
        self.tier_selector = tier_selector
        self.model_factory = model_factory
        self.tool_loop = tool_loop or ToolValidationLoop()
        self.circuits = circuits

    async def generate(
        self, entry: RegisteredSource, context: GenerationContext
    ) -> GeneratedContent:
        """Produce content for the selected source.

        Programmatic sources are called once with no provider involved.

        Raises:
            ProviderUnavailableError: Preferred provider circuit is open
            FailoverExhaustedError: Preferred and alternate both failed
            GenerationError: Unclassified failure (e.g. tool attempts exhausted)
        """
        registration = entry.registration
        if registration.kind == SourceKind.PROGRAMMATIC:
            return await entry.source.generate(context)

        if not isinstance(entry.source, PromptedSource):
            raise SourceConfigurationError(
                f"Generative source {registration.id} does not provide build_prompts()"
            )

        preferred = self.tier_selector.select(registration.model_tier)
        alternate = self.tier_selector.alternate(preferred)

        if not await self._is_available(preferred.provider):
            logger.warning(
                "Provider %s circuit open; skipping generation for %s",
                preferred.provider,
                registration.id,
            )
            raise ProviderUnavailableError(
                f"Provider {preferred.provider} is unavailable (circuit open)",
                provider=preferred.provider,
            )

        started = time.monotonic()
        errors: list[dict[str, str]] = []
        try:
            content = await self._attempt(entry, context, preferred)
        except FAILOVER_ERRORS as exc:
            errors.append({"provider": preferred.provider, "error": str(exc)})
            logger.warning(
                "Provider %s failed for %s (%s): %s",
                preferred.provider,
                registration.id,
                type(exc).__name__,
                exc,
            )
            primary_error: BaseException = exc
        else:
            return content.with_metadata(
                failover=self._metadata(preferred, preferred, errors, 1, None, started)
            )

        if alternate is None:
            raise FailoverExhaustedError(
                f"Provider {preferred.provider} failed and no alternate is configured", errors
            ) from primary_error

        if not await self._is_available(alternate.provider):
            raise FailoverExhaustedError(
                f"Provider {preferred.provider} failed and alternate "
                f"{alternate.provider} is unavailable",
                errors,
            ) from primary_error

        logger.info("Failing over from %s to %s", preferred.provider, alternate.provider)
        try:
            content = await self._attempt(entry, context, alternate)
        except Exception as exc:
            errors.append({"provider": alternate.provider, "error": str(exc)})
            raise FailoverExhaustedError(
                f"Both providers failed ({preferred.provider}, {alternate.provider})", errors
            ) from exc

        return content.with_metadata(
            failover=self._metadata(
                preferred, alternate, errors, 2, str(primary_error), started
            )
        )

    async def _attempt(
        self, entry: RegisteredSource, context: GenerationContext, selection: ModelSelection
    ) -> GeneratedContent:
        model = self.model_factory(selection)
        content = await self.tool_loop.run(
            entry.source, context, model, entry.registration.format_options
        )
        return content.with_metadata(
            provider=selection.provider, tier=selection.tier.value, selected_model=selection.model
        )

    async def _is_available(self, provider: str) -> bool:
        if self.circuits is None:
            return True
        circuit_id = provider_circuit_id(provider)
        try:
            return await self.circuits.is_provider_available(circuit_id)
        except Exception:
            logger.warning(
                "Circuit check failed for %s; allowing attempt", circuit_id, exc_info=True
            )
            return True

    @staticmethod
    def _metadata(
        preferred: ModelSelection,
        final: ModelSelection,
        errors: list[dict[str, str]],
        attempts: int,
        primary_error: Optional[str],
        started: float,
    ) -> dict[str, Any]:
        return {
            "failed_over": final.provider != preferred.provider,
            "primary_provider": preferred.provider,
            "final_provider": final.provider,
            "total_attempts": attempts,
            "errors": errors,
            "primary_error": primary_error,
            "duration_ms": int((time.monotonic() - started) * 1000),
        }
