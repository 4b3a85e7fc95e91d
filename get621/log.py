"""Logging setup — stdlib loggers rendered on stderr by rich."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

err_console = Console(stderr=True)


def configure_logging(debug: bool = False) -> logging.Logger:
    """Route the ``get621`` logger tree through a :class:`RichHandler`.

    Only warnings are shown unless *debug* is set.
    """
    handler = RichHandler(console=err_console, show_path=debug, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logger = logging.getLogger("get621")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    return logger
