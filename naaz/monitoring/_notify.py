"""
User notifications. Rendering belongs to the client; here they are events.
"""

from __future__ import annotations

from typing import Protocol

import structlog


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LogNotifier:
    """Emits notifications as structured log events."""

    def __init__(self) -> None:
        self._log = structlog.get_logger("naaz.notify")

    def success(self, message: str) -> None:
        self._log.info("notify.success", text=message)

    def warning(self, message: str) -> None:
        self._log.warning("notify.warning", text=message)

    def error(self, message: str) -> None:
        self._log.error("notify.error", text=message)


__all__ = ("Notifier", "LogNotifier")
