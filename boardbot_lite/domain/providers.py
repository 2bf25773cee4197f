"""Preferred/alternate provider choice per model tier."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Callable, Optional

from ..core.protocols import GenerativeModel
from .models import ModelTier


@dataclass(frozen=True)
class ModelSelection:
    """Provider and concrete model picked for one attempt."""

    provider: str
    tier: ModelTier
    model: Optional[str] = None


ModelFactory = Callable[[ModelSelection], GenerativeModel]


class ModelTierSelector:
    """Maps a source's model tier to a preferred and an alternate provider.

    Args:
        preferred: Provider to use when it is configured
        available: Configured providers, in fallback order
        tier_models: Optional ``{provider: {tier: model_name}}`` table
    """

    def __init__(
        self,
        preferred: str,
        available: Sequence[str],
        tier_models: Optional[Mapping[str, Mapping[str, str]]] = None,
    ) -> None:
        if not available:
            raise ValueError("At least one provider must be available")
        self.preferred = preferred
        self.available = list(dict.fromkeys(available))
        self.tier_models = {name: dict(models) for name, models in (tier_models or {}).items()}

    def _model_for(self, provider: str, tier: ModelTier) -> Optional[str]:
        return self.tier_models.get(provider, {}).get(tier.value)

    def select(self, tier: ModelTier) -> ModelSelection:
        """Preferred provider if available, else the first configured one."""
        provider = self.preferred if self.preferred in self.available else self.available[0]
        return ModelSelection(provider=provider, tier=tier, model=self._model_for(provider, tier))

    def alternate(self, current: ModelSelection) -> Optional[ModelSelection]:
        """Same tier on the first other provider, or None with a single provider."""
        others = [name for name in self.available if name != current.provider]
        if not others:
            return None
        provider = others[0]
        return ModelSelection(
            provider=provider, tier=current.tier, model=self._model_for(provider, current.tier)
        )
