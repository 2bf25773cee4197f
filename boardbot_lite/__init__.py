"""boardbot_lite - content delivery pipeline for a 6x22 split-flap board.

Imports are kept light here; the pipeline modules are loaded by the helpers
below or by the CLI in ``__main__``.
"""

__version__ = "0.1.0"

from typing import Any, Optional


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Honors the BOARDBOT_DEBUG environment variable (truthy values: "1",
    "true", "yes", "on"), which forces DEBUG verbosity.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    from .lite_logging import CycleIdFilter

    debug_env = os.environ.get("BOARDBOT_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   [cycle] logger.name: message, only the level colorized
        fmt = (
            "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s "
            "[%(cycle_id)s] %(name)s: %(message)s"
        )
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        handler.addFilter(CycleIdFilter())
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )


def run_once(
    config_path: Optional[str] = None,
    event_data: Optional[dict[str, Any]] = None,
    **collaborators: Any,
) -> Any:
    """Run a single major cycle with the configured pipeline.

    Args:
        config_path: Optional YAML/JSON config file
        event_data: Optional triggering event for notification sources
        **collaborators: Overrides passed to ``DependencyContainer.build_dependencies``

    Returns:
        The cycle's ``CycleOutcome``
    """
    import asyncio

    from .config_loader import load_config
    from .core.dependencies import DependencyContainer
    from .domain.models import GenerationContext

    config = load_config(config_path)
    deps = DependencyContainer.build_dependencies(config, **collaborators)

    async def _cycle() -> Any:
        outcome = await deps.orchestrator.run_cycle(GenerationContext(event_data=event_data))
        await deps.recorder.drain(timeout=5.0)
        return outcome

    return asyncio.run(_cycle())
