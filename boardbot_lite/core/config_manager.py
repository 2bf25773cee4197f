"""Configuration management from environment variables and .env files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

ENV_PREFIX = "BOARDBOT_"


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file and return key-value pairs.

    Args:
        path: Path to .env file

    Returns:
        Dictionary of key-value pairs from the .env file.
        Empty dict if file doesn't exist or cannot be read.

    Note:
        - Skips empty lines and comments (lines starting with #)
        - Strips quotes (both single and double) from values
        - Handles KEY=VALUE format with optional whitespace
    """
    if not path.exists():
        return {}

    result: dict[str, str] = {}

    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Failed to read .env file (continuing): %s", str(path), exc_info=True)
        return {}

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, val = line.split("=", 1)
        key = key.strip()
        val = val.strip().strip('"').strip("'")
        if key:
            result[key] = val

    return result


def _split_list(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


class ConfigManager:
    """Layers ``BOARDBOT_*`` environment variables over .env defaults."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file into the environment without overriding existing keys.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []
        for key, val in parse_env_file(self.env_file_path).items():
            if key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration overrides from environment variables.

        Recognizes:
        - BOARDBOT_PREFERRED_PROVIDER -> 'preferred_provider'
        - BOARDBOT_PROVIDERS -> 'available_providers' (comma separated)
        - BOARDBOT_MAX_ATTEMPTS -> 'max_attempts' (int)
        - BOARDBOT_EXHAUSTION_POLICY -> 'exhaustion_policy'
        - BOARDBOT_PROVIDER_TIMEOUT -> 'provider_timeout' (float)
        - BOARDBOT_LOG_LEVEL -> 'log_level'
        - BOARDBOT_DEBUG -> 'debug' (bool)

        Returns:
            Mapping suitable for ``PipelineConfig.from_dict`` overlays
        """
        cfg: dict[str, Any] = {}

        preferred = os.environ.get(f"{ENV_PREFIX}PREFERRED_PROVIDER")
        if preferred:
            cfg["preferred_provider"] = preferred

        providers = os.environ.get(f"{ENV_PREFIX}PROVIDERS")
        if providers:
            cfg["available_providers"] = _split_list(providers)

        attempts = os.environ.get(f"{ENV_PREFIX}MAX_ATTEMPTS")
        if attempts:
            try:
                cfg["max_attempts"] = int(attempts)
            except ValueError:
                logger.warning("Invalid %sMAX_ATTEMPTS=%r; ignoring", ENV_PREFIX, attempts)

        policy = os.environ.get(f"{ENV_PREFIX}EXHAUSTION_POLICY")
        if policy:
            cfg["exhaustion_policy"] = policy

        timeout = os.environ.get(f"{ENV_PREFIX}PROVIDER_TIMEOUT")
        if timeout:
            try:
                cfg["provider_timeout"] = float(timeout)
            except ValueError:
                logger.warning("Invalid %sPROVIDER_TIMEOUT=%r; ignoring", ENV_PREFIX, timeout)

        log_level = os.environ.get(f"{ENV_PREFIX}LOG_LEVEL")
        if log_level:
            cfg["log_level"] = log_level

        debug = os.environ.get(f"{ENV_PREFIX}DEBUG")
        if debug:
            cfg["debug"] = debug.lower() in ("1", "true", "yes")

        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """Load .env file and build configuration from environment."""
        self.load_env_file()
        return self.build_config_from_env()
