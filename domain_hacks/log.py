"""Logging setup: stdlib loggers rendered through rich."""

import logging

from rich.console import Console
from rich.logging import RichHandler

NOISY_LOGGERS = ("httpx", "httpcore", "dns")


def configure_logging(level: str | int = logging.WARNING, console: Console | None = None) -> None:
    """Install a RichHandler on the root logger.

    Calling this again only updates the level, so the CLI and the HTTP app
    can both call it without stacking handlers.
    """
    root = logging.getLogger()
    root.setLevel(level)

    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
