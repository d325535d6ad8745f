"""Logging for the offline agent: one Rich handler on the root logger."""

from __future__ import annotations

import logging
import os
from typing import Final

from rich.console import Console
from rich.logging import RichHandler

__all__ = ["configure_logging"]

_LOG_LEVEL_ENV: Final[str] = "OFFLINE_AGENT_LOG_LEVEL"
_DEFAULT_LEVEL_NAME: Final[str] = "INFO"
_MANAGED_FLAG: Final[str] = "_offline_agent_managed"

# Libraries that log every request at INFO or DEBUG.
_CHATTY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore")

# stdout belongs to command output.
_console = Console(stderr=True)


def _resolve_level(level_name: str | None = None) -> int:
    name = (level_name or os.getenv(_LOG_LEVEL_ENV, _DEFAULT_LEVEL_NAME)).upper()
    return getattr(logging, name, logging.INFO)


def _managed_handler(root_logger: logging.Logger) -> RichHandler | None:
    for handler in root_logger.handlers:
        if isinstance(handler, RichHandler) and getattr(handler, _MANAGED_FLAG, False):
            return handler
    return None


def configure_logging(level_name: str | None = None) -> None:
    """Install the agent's Rich handler once and apply the requested level.

    The level comes from *level_name*, then ``OFFLINE_AGENT_LOG_LEVEL``, then
    ``INFO``. Calling this again only changes the level.
    """
    root_logger = logging.getLogger()
    level = _resolve_level(level_name)

    if _managed_handler(root_logger) is None:
        root_logger.handlers.clear()
        handler = RichHandler(console=_console, rich_tracebacks=True, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        setattr(handler, _MANAGED_FLAG, True)
        root_logger.addHandler(handler)

    root_logger.setLevel(level)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    logging.captureWarnings(True)
