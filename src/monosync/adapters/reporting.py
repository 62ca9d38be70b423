"""Sync reporter backed by the standard library logger."""

from __future__ import annotations

import logging

log = logging.getLogger("monosync.sync")


class LoggingReporter:
    """Forward reporter calls to ``logging`` and keep every warning."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or log
        self._warnings: list[str] = []

    def phase(self, name: str) -> None:
        self._log.debug("Phase: %s", name)

    def info(self, message: str) -> None:
        self._log.info(message)

    def warn(self, message: str) -> None:
        self._warnings.append(message)
        self._log.warning(message)

    def error(self, message: str) -> None:
        self._log.error(message)

    def debug(self, message: str) -> None:
        self._log.debug(message)

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(self._warnings)
