"""Logging setup for the console app and the tool server."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def parse_log_level(name: str, default: int = logging.WARNING) -> int:
    return _LEVELS.get(name.strip().upper(), default)


def configure_logging(
    verbose: bool = False,
    debug: bool = False,
    level: int | None = None,
    default_level: str = "WARNING",
) -> None:
    """Configure root logging.

    Priority (highest to lowest):
        1. Explicit `level`
        2. `debug` flag
        3. `verbose` flag
        4. `default_level` (Settings.log_level, i.e. APISURFACE_LOG_LEVEL)

    Logs go to stderr: stdout carries command output and the stdio tool protocol.
    """
    if level is None:
        if debug:
            level = logging.DEBUG
        elif verbose:
            level = logging.INFO
        else:
            level = parse_log_level(default_level)

    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler], force=True)
