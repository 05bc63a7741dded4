"""Logging setup for the importfix CLI.

Library modules only create loggers (``logging.getLogger(__name__)``);
handlers are installed here, by the CLI, and nowhere else.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "importfix"


def setup_logging(level: int = logging.WARNING, console: Console | None = None) -> logging.Logger:
    """Configure the ``importfix`` logger to write through rich.

    Existing handlers on the logger are removed first, so calling this
    repeatedly does not duplicate output.

    Args:
        level: Log level for the package logger.
        console: Console to log to. Defaults to a stderr console.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        show_time=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
