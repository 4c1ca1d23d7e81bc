"""
Logger — records every call as a LogEntry and hands it to the ErrorHandler.

In development the entries are also kept newest-first in local storage
under `app_logs`, bounded to MonitoringConfig.max_local_entries.
"""

from __future__ import annotations

import json
import time
from collections import Counter
from dataclasses import dataclass
from datetime import UTC, datetime

from naaz.cache import Storage
from naaz.monitoring._handler import ErrorHandler, StopTimer
from naaz.monitoring._types import (
    Breadcrumb,
    LogContext,
    LogEntry,
    LogLevel,
    MonitoringConfig,
)

LOG_STORAGE_KEY = "app_logs"


@dataclass(frozen=True, slots=True)
class LogStats:
    total: int
    by_level: dict[str, int]
    by_component: dict[str, int]
    recent: list[LogEntry]


# ═══════════════════════════════════════════════════════════════════════════════
# Logger
# ═══════════════════════════════════════════════════════════════════════════════


class Logger:
    """
    Example:
        log = Logger(handler, storage)
        log.info("Order placed", LogContext(component="checkout", user_id=uid))
        stop = log.start_timer("load products", "catalog")
        ...
        stop()
    """

    def __init__(self, handler: ErrorHandler, storage: Storage | None = None) -> None:
        self.handler = handler
        self._storage = storage

    @property
    def config(self) -> MonitoringConfig:
        return self.handler.config

    # ─── Storage ───

    def _store(self, entry: LogEntry) -> None:
        if not self.config.local_storage or self._storage is None:
            return
        try:
            raw = [entry.to_dict(), *self._read_raw()][: self.config.max_local_entries]
            self._storage.set_item(LOG_STORAGE_KEY, json.dumps(raw, default=str))
        except Exception:
            pass

    def _read_raw(self) -> list[dict]:
        if self._storage is None:
            return []
        try:
            raw = json.loads(self._storage.get_item(LOG_STORAGE_KEY) or "[]")
        except ValueError:
            return []
        return raw if isinstance(raw, list) else []

    def stored_logs(self) -> list[LogEntry]:
        """Stored entries, newest first."""
        if not self.config.local_storage:
            return []
        entries: list[LogEntry] = []
        for raw in self._read_raw():
            try:
                entries.append(LogEntry.from_dict(raw))
            except (KeyError, ValueError, TypeError):
                continue
        return entries

    def clear_stored_logs(self) -> None:
        if self._storage is None:
            return
        try:
            self._storage.remove_item(LOG_STORAGE_KEY)
        except Exception:
            pass

    def export_logs(self) -> str:
        return json.dumps([e.to_dict() for e in self.stored_logs()], indent=2, default=str)

    def log_stats(self) -> LogStats:
        logs = self.stored_logs()
        return LogStats(
            total=len(logs),
            by_level=dict(Counter(e.level.label for e in logs)),
            by_component=dict(Counter(e.context.component or "unknown" for e in logs)),
            recent=logs[:10],
        )

    # ─── Levels ───

    def _log(
        self,
        level: LogLevel,
        message: str,
        context: LogContext | None,
        error: BaseException | None = None,
    ) -> LogEntry:
        entry = LogEntry(
            level=level,
            message=message,
            timestamp=datetime.now(UTC).isoformat(),
            context=context or LogContext(),
            error=f"{type(error).__name__}: {error}" if error is not None else None,
        )
        self._store(entry)
        return entry

    def debug(self, message: str, context: LogContext | None = None) -> LogEntry:
        entry = self._log(LogLevel.DEBUG, message, context)
        self.handler.debug(message, context)
        return entry

    def info(self, message: str, context: LogContext | None = None) -> LogEntry:
        entry = self._log(LogLevel.INFO, message, context)
        self.handler.info(message, context)
        return entry

    def warn(self, message: str, context: LogContext | None = None) -> LogEntry:
        entry = self._log(LogLevel.WARN, message, context)
        self.handler.warn(message, context)
        return entry

    def error(
        self,
        error: BaseException | str,
        context: LogContext | None = None,
    ) -> LogEntry:
        if isinstance(error, BaseException):
            message = str(error) or type(error).__name__
            entry = self._log(LogLevel.ERROR, message, context, error)
            self.handler.error(message, error, context)
        else:
            entry = self._log(LogLevel.ERROR, error, context)
            self.handler.error(error, None, context)
        return entry

    # ─── Structured helpers ───

    def api_call(
        self,
        operation: str,
        method: str,
        endpoint: str,
        duration_ms: float | None = None,
        success: bool = True,
        context: LogContext | None = None,
    ) -> LogEntry:
        timing = f" in {duration_ms:.2f}ms" if duration_ms else ""
        message = f"API {method} {endpoint} {'succeeded' if success else 'failed'}{timing}"
        ctx = LogContext(
            component="api",
            action=operation,
            additional_data={
                "method": method,
                "endpoint": endpoint,
                "duration_ms": duration_ms,
                "success": success,
            },
        ).merged(context)
        return self.info(message, ctx) if success else self.error(message, ctx)

    def user_action(
        self,
        action: str,
        component: str,
        details: dict | None = None,
        context: LogContext | None = None,
    ) -> LogEntry:
        message = f"User action: {action} in {component}"
        ctx = LogContext(
            component=component,
            action=action,
            additional_data={"user_action": action, "details": details},
        ).merged(context)
        entry = self.info(message, ctx)
        if self.config.remote_logging:
            try:
                self.handler.tracker.add_breadcrumb(
                    Breadcrumb(message, component, LogLevel.INFO, _now_ms(), details or {})
                )
            except Exception:
                pass
        return entry

    def performance(
        self,
        operation: str,
        duration_ms: float,
        component: str | None = None,
        context: LogContext | None = None,
    ) -> LogEntry | None:
        # Production only records slow operations
        if self.config.is_production and duration_ms < self.config.slow_operation_ms:
            return None
        ctx = LogContext(
            component=component or "performance",
            action=operation,
            additional_data={"operation": operation, "duration_ms": duration_ms},
        ).merged(context)
        return self.info(f"Performance: {operation} took {duration_ms:.2f}ms", ctx)

    def start_timer(self, operation: str, component: str | None = None) -> StopTimer:
        started = time.perf_counter()

        def stop() -> float:
            duration = (time.perf_counter() - started) * 1000
            self.performance(operation, duration, component)
            return duration

        return stop

    def component_lifecycle(
        self,
        component: str,
        event: str,
        context: LogContext | None = None,
    ) -> LogEntry | None:
        if not self.config.is_development:
            return None
        ctx = LogContext(component=component, action=f"lifecycle_{event}").merged(context)
        return self.debug(f"Component {component} {event}", ctx)

    def navigation(self, from_path: str, to_path: str, context: LogContext | None = None) -> LogEntry:
        ctx = LogContext(
            component="router",
            action="navigation",
            page=to_path,
            additional_data={"from": from_path, "to": to_path},
        ).merged(context)
        return self.info(f"Navigation: {from_path} -> {to_path}", ctx)


def _now_ms() -> int:
    return int(datetime.now(UTC).timestamp() * 1000)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("LOG_STORAGE_KEY", "LogStats", "Logger")
