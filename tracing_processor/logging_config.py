"""Logging setup for the command line entry point."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(log_level: str = "WARNING", console: Console | None = None) -> None:
    """
    Route library log records through rich.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        console: Console to write to; defaults to stderr
    """
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("tracing_processor")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False
