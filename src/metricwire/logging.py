"""Logger collaborator for metricwire backends.

Backends only call ``warn(message)`` and ``error(message)`` (see
:class:`MetricLogger`). Any object with those two methods can be injected;
by default they log through the standard library under ``metricwire.*``.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

ROOT_LOGGER = "metricwire"


@runtime_checkable
class MetricLogger(Protocol):
    """Logger collaborator used by backends."""

    def warn(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class BackendLogger:
    """Exposes a stdlib logger through the ``warn``/``error`` contract."""

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger

    def info(self, message: str) -> None:
        self.logger.info(message)

    def warn(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)


def get_logger(name: str = ROOT_LOGGER) -> BackendLogger:
    """Wrap ``logging.getLogger(name)`` for use by a backend."""
    return BackendLogger(logging.getLogger(name))


def configure_logging(level: str | int = "warning") -> None:
    """Set the level of the ``metricwire`` loggers and log to stderr.

    Calling it again only changes the level.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        root.addHandler(handler)
