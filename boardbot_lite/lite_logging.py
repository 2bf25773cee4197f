"""
Central logging configuration for boardbot_lite.

Keeps pipeline modules at INFO (or DEBUG when troubleshooting) while
suppressing chatty third-party loggers, and tags every record with the id
of the cycle that produced it.
"""

import logging
import os
import uuid
from contextvars import ContextVar
from typing import Optional

_cycle_id: ContextVar[str] = ContextVar("boardbot_cycle_id", default="no-cycle")

NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "urllib3.connectionpool", "charset_normalizer")

LITE_MODULES: tuple[str, ...] = (
    "boardbot_lite",
    "boardbot_lite.domain",
    "boardbot_lite.display",
    "boardbot_lite.core",
)


def new_cycle_id() -> str:
    """Start a new cycle scope and return its short id."""
    cycle_id = uuid.uuid4().hex[:8]
    _cycle_id.set(cycle_id)
    return cycle_id


def get_cycle_id() -> str:
    return _cycle_id.get()


class CycleIdFilter(logging.Filter):
    """Add the current cycle id to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.cycle_id = _cycle_id.get()
        return True


def configure_lite_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    log_level: Optional[str] = None,
) -> None:
    """
    Configure logging levels for boardbot_lite.

    Args:
        debug_mode: Whether to enable debug logging for boardbot_lite modules
        force_debug: Override debug mode setting (None to use env var detection)
        log_level: Explicit root level name; the environment still wins

    Environment Variables:
        BOARDBOT_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        BOARDBOT_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("BOARDBOT_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("BOARDBOT_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    for candidate in (log_level.upper() if log_level else "", env_log_level):
        if candidate in ("DEBUG", "INFO", "WARNING", "ERROR"):
            root_level = getattr(logging, candidate)

    # Don't use force=True so the colorlog handler from __init__ survives
    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    cycle_filter = CycleIdFilter()
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] [%(cycle_id)s] %(levelname)s - %(name)s - %(message)s"
            )
        )
        handler.addFilter(cycle_filter)
        root_logger.addHandler(handler)
    else:
        for existing_handler in root_logger.handlers:
            if not any(isinstance(f, CycleIdFilter) for f in existing_handler.filters):
                existing_handler.addFilter(cycle_filter)

    logger_config: dict[str, int] = {name: logging.WARNING for name in NOISY_LOGGERS}

    lite_level = logging.DEBUG if final_debug else logging.INFO
    for module in LITE_MODULES:
        logger_config[module] = lite_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        root_logger.info("Debug logging enabled for boardbot_lite modules.")
    else:
        root_logger.info("Production logging configuration applied.")



def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ("boardbot_lite", "asyncio"):
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
