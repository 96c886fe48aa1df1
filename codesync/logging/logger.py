# codesync/logging/logger.py
"""
Central logger factory.

All modules get their logger through get_logger(__name__) so that one call to
configure_logging() controls the whole package.
"""

from __future__ import annotations

import logging
import sys

_ROOT_NAME = "codesync"
_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_configured = False


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever sys.stderr is at emit time (it may be swapped by a test runner)."""

    def __init__(self) -> None:
        logging.Handler.__init__(self)

    @property
    def stream(self):
        return sys.stderr


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the codesync namespace."""
    if name != _ROOT_NAME and not name.startswith(f"{_ROOT_NAME}."):
        name = f"{_ROOT_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(level: str | int = "INFO", *, force: bool = False) -> None:
    """
    Attach a stderr handler to the package root logger.

    Safe to call more than once; only the level is updated unless force=True.
    """
    global _configured

    root = logging.getLogger(_ROOT_NAME)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)

    if _configured and not force:
        return

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = _StderrHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    root.propagate = False
    _configured = True


__all__ = ["get_logger", "configure_logging"]
