"""Process-wide logging setup for the server."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_VAR = "LOG_LEVEL"
DEFAULT_LEVEL = "ERROR"
LOG_FORMAT = "%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s"


class InstrumentsError(Exception):
    """Logging could not be installed."""


class _InstrumentsHandler(logging.StreamHandler):
    """The handler installed by ``install_logging``."""


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.environ.get(LOG_LEVEL_VAR) or DEFAULT_LEVEL
    if isinstance(level, int) and not isinstance(level, bool):
        return level
    if isinstance(level, str):
        text = level.strip()
        if text.isdigit():
            return int(text)
        value = logging.getLevelName(text.upper())
        if isinstance(value, int):
            return value
    raise ValueError(f"invalid log level: {level!r}")


def install_logging(level: int | str | None = None) -> logging.Handler:
    """Install the process-wide log handler and return it.

    The level defaults to the ``LOG_LEVEL`` environment variable, then to
    ERROR. Installing twice raises ``InstrumentsError``.
    """
    root = logging.getLogger()
    if any(isinstance(handler, _InstrumentsHandler) for handler in root.handlers):
        raise InstrumentsError("cannot set global default subscriber")
    resolved = _resolve_level(level)
    handler = _InstrumentsHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(resolved)
    return handler