"""boardbot_lite.config_loader

Config loader for boardbot_lite.

- Reads YAML (PyYAML ``safe_load``) or, for ``.json`` files, JSON.
- Exposes a typed dataclass `PipelineConfig` and a `load_config()` helper that
  accepts an optional path override and layers ``BOARDBOT_*`` env values on top.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .core.config_manager import ConfigManager
from .domain.fallback import DEFAULT_FALLBACK_MESSAGES

logger = logging.getLogger(__name__)

EXHAUSTION_POLICIES = ("raise", "use-last")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class PipelineConfig:
    """Typed configuration for the delivery pipeline.

    Fields:
        max_attempts: submission attempts per generative call (1..10)
        exhaustion_policy: ``raise`` or ``use-last`` when attempts run out
        provider_timeout: seconds per upstream model call
        preferred_provider: provider tried first
        available_providers: configured providers, in failover order
        tier_models: ``{provider: {tier: model}}``
        log_level: logging level name
        debug: enable debug logging for pipeline modules
        fallback_messages: static fallback pool
        sources: declarative source registrations
    """

    max_attempts: int = 3
    exhaustion_policy: str = "raise"
    provider_timeout: float = 30.0
    preferred_provider: str = "echo"
    available_providers: list[str] = field(default_factory=lambda: ["echo"])
    tier_models: dict[str, dict[str, str]] = field(default_factory=dict)
    log_level: str = "INFO"
    debug: bool = False
    fallback_messages: list[str] = field(
        default_factory=lambda: list(DEFAULT_FALLBACK_MESSAGES)
    )
    sources: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> PipelineConfig:
        """Create a config from a plain mapping, applying defaults and validation.

        Numeric values are coerced, out-of-range values are clamped or
        replaced by defaults, and every coercion is logged as a warning.
        """
        if data is None:
            data = {}

        def _coerce_int(key: str, default: int) -> int:
            raw = data.get(key, default)
            try:
                return int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default

        def _coerce_float(key: str, default: float) -> float:
            raw = data.get(key, default)
            try:
                return float(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not a number; using default %s", key, raw, default)
                return default

        max_attempts = _coerce_int("max_attempts", 3)
        if max_attempts < 1:
            logger.warning("max_attempts %d below minimum; coercing to 1", max_attempts)
            max_attempts = 1
        elif max_attempts > 10:
            logger.warning("max_attempts %d above maximum; coercing to 10", max_attempts)
            max_attempts = 10

        policy = str(data.get("exhaustion_policy", "raise")).lower()
        if policy not in EXHAUSTION_POLICIES:
            logger.warning("Unknown exhaustion_policy %r; using 'raise'", policy)
            policy = "raise"

        timeout = _coerce_float("provider_timeout", 30.0)
        if timeout <= 0:
            logger.warning("provider_timeout %s must be positive; using 30.0", timeout)
            timeout = 30.0

        providers_raw = data.get("available_providers") or ["echo"]
        if not isinstance(providers_raw, (list, tuple)):
            logger.warning("Config `available_providers` is not a list; coercing")
            providers_raw = [providers_raw]
        providers = [str(p) for p in providers_raw]

        preferred = str(data.get("preferred_provider") or providers[0])
        if preferred not in providers:
            logger.warning(
                "preferred_provider %r is not in available_providers; using %r",
                preferred,
                providers[0],
            )
            preferred = providers[0]

        tier_models_raw = data.get("tier_models") or {}
        tier_models: dict[str, dict[str, str]] = {}
        if isinstance(tier_models_raw, dict):
            for provider, models in tier_models_raw.items():
                if isinstance(models, dict):
                    tier_models[str(provider)] = {str(k): str(v) for k, v in models.items()}
        else:
            logger.warning("Config `tier_models` is not a mapping; ignoring")

        log_level = str(data.get("log_level") or "INFO").upper()
        if log_level not in LOG_LEVELS:
            logger.warning("Unknown log_level %r; using INFO", log_level)
            log_level = "INFO"

        fallback_raw = data.get("fallback_messages")
        if fallback_raw is None:
            fallback_messages = list(DEFAULT_FALLBACK_MESSAGES)
        elif isinstance(fallback_raw, (list, tuple)):
            fallback_messages = [str(m) for m in fallback_raw]
        else:
            logger.warning("Config `fallback_messages` is not a list; coercing")
            fallback_messages = [str(fallback_raw)]

        sources_raw = data.get("sources") or []
        sources = [dict(s) for s in sources_raw if isinstance(s, dict)]
        if len(sources) != len(sources_raw):
            logger.warning(
                "Ignoring %d non-mapping entries in `sources`", len(sources_raw) - len(sources)
            )

        return cls(
            max_attempts=max_attempts,
            exhaustion_policy=policy,
            provider_timeout=timeout,
            preferred_provider=preferred,
            available_providers=providers,
            tier_models=tier_models,
            log_level=log_level,
            debug=bool(data.get("debug", False)),
            fallback_messages=fallback_messages,
            sources=sources,
        )


def _load_yaml_or_json(path: Path) -> Any:
    """Load a mapping from a YAML or JSON file; empty files give an empty dict."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text) if text.strip() else {}
    loaded = yaml.safe_load(text)
    return {} if loaded is None else loaded


def load_config(path: str | None = None, apply_env: bool = True) -> PipelineConfig:
    """Load configuration from a YAML/JSON file and return a PipelineConfig.

    Args:
        path: Optional path to the config file. Defaults to ./boardbot.yaml.
        apply_env: Layer ``BOARDBOT_*`` environment values over the file

    Behavior:
    - If file is missing: defaults (plus env overrides).
    - If file exists but top-level is not a mapping: raises ValueError.
    """
    p = Path(path) if path else Path.cwd() / "boardbot.yaml"
    logger.debug("Attempting to load config from %s", p)

    raw: Any = {}
    if p.exists():
        raw = _load_yaml_or_json(p)
        if not isinstance(raw, dict):
            logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
            raise ValueError("Config file must contain a mapping at top level")
        logger.info("Loaded configuration from %s", p)
    else:
        logger.info("Config file %s not found; using defaults", p)

    if apply_env:
        overrides = ConfigManager(env_file_path=p.parent / ".env").load_full_config()
        if overrides:
            logger.debug("Environment overrides: %s", sorted(overrides))
        raw = {**raw, **overrides}

    cfg = PipelineConfig.from_dict(raw)
    logger.debug("Configuration values: %s", cfg)
    return cfg
