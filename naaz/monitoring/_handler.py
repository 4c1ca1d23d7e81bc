"""
ErrorHandler — leveled output to console, remote tracker and the user.

No method raises: a failure inside the pipeline is discarded so the
calling code path carries on.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from typing import Any

import structlog

from naaz._types import Clock
from naaz.cache import system_clock
from naaz.errors import AppError, ErrorKind, GENERIC_MESSAGE, sanitize, user_message
from naaz.monitoring._console import stdlib_level
from naaz.monitoring._notify import Notifier, LogNotifier
from naaz.monitoring._tracker import ErrorTracker, NullTracker
from naaz.monitoring._types import Breadcrumb, LogContext, LogLevel, MonitoringConfig

type StopTimer = Callable[[], float]

# ═══════════════════════════════════════════════════════════════════════════════
# Error Handler
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorHandler:
    """
    Example:
        handler = ErrorHandler(MonitoringConfig.from_settings(settings), tracker=tracker)
        handler.api_error("/rest/v1/orders", exc)
    """

    def __init__(
        self,
        config: MonitoringConfig | None = None,
        *,
        tracker: ErrorTracker | None = None,
        notifier: Notifier | None = None,
        clock: Clock = system_clock,
    ) -> None:
        self.config = config or MonitoringConfig()
        self.tracker: ErrorTracker = tracker or NullTracker()
        self.notifier: Notifier = notifier or LogNotifier()
        self._clock = clock
        self._console = structlog.get_logger("naaz")

    def should_log(self, level: LogLevel) -> bool:
        return level >= self.config.log_level

    # ─── Levels ───

    def debug(self, message: str, context: LogContext | None = None) -> None:
        if not self.config.is_development:
            return
        self._emit(LogLevel.DEBUG, message, context)

    def info(self, message: str, context: LogContext | None = None) -> None:
        self._emit(LogLevel.INFO, message, context)

    def warn(self, message: str, context: LogContext | None = None) -> None:
        self._emit(LogLevel.WARN, message, context)
        if self.config.is_production:
            self._notify(self.notifier.warning, message)

    def error(
        self,
        message: str,
        error: BaseException | None = None,
        context: LogContext | None = None,
    ) -> None:
        self._emit(LogLevel.ERROR, message, context, error)
        if error is not None:
            text = user_message(error)
        else:
            text = sanitize(message) or GENERIC_MESSAGE
        self._notify(self.notifier.error, text)

    # ─── Categorised helpers ───

    def api_error(
        self,
        endpoint: str,
        error: BaseException,
        context: LogContext | None = None,
    ) -> None:
        base = LogContext(action="api_call", additional_data={"endpoint": endpoint})
        self.error(f"API Error: {endpoint}", error, base.merged(context))

    def auth_error(self, action: str, error: BaseException) -> None:
        self.error(
            f"Authentication Error: {action}",
            error,
            LogContext(component="auth", action=action),
        )

    def database_error(
        self,
        operation: str,
        error: BaseException,
        table: str | None = None,
    ) -> None:
        data = {"table": table} if table else {}
        self.error(
            f"Database Error: {operation}",
            error,
            LogContext(component="database", action=operation, additional_data=data),
        )

    def network_error(self, error: BaseException, url: str | None = None) -> None:
        data = {"url": url} if url else {}
        self.error(
            "Network Error",
            error,
            LogContext(component="network", additional_data=data),
        )

    def validation_error(
        self,
        errors: Mapping[str, list[str]],
        context: LogContext | None = None,
    ) -> None:
        joined = ", ".join(m for messages in errors.values() for m in messages)
        base = LogContext(action="validation", additional_data={"fields": dict(errors)})
        self.warn(f"Validation Error: {joined}", base.merged(context))

    def performance(
        self,
        operation: str,
        duration_ms: float,
        context: LogContext | None = None,
    ) -> None:
        base = LogContext(action="performance", additional_data={"duration_ms": round(duration_ms, 2)})
        message = f"Performance: {operation} took {duration_ms:.2f}ms"
        if duration_ms > self.config.slow_operation_ms:
            self.warn(message, base.merged(context))
        else:
            self.debug(message, base.merged(context))

    def timer(self, operation: str, context: LogContext | None = None) -> StopTimer:
        """Start timing; calling the result logs and returns the duration in ms."""
        started = time.perf_counter()

        def stop() -> float:
            duration = (time.perf_counter() - started) * 1000
            self.performance(operation, duration, context)
            return duration

        return stop

    # ─── Output ───

    def _emit(
        self,
        level: LogLevel,
        message: str,
        context: LogContext | None,
        error: BaseException | None = None,
    ) -> None:
        ctx = context or LogContext()
        try:
            if self.config.console_output and self.should_log(level):
                fields: dict[str, Any] = ctx.to_dict()
                if error is not None:
                    fields["exc_info"] = error
                self._console.log(stdlib_level(level), message, **fields)
        except Exception:
            pass
        try:
            if self.config.remote_logging:
                if level is LogLevel.ERROR:
                    self.tracker.capture_error(
                        error if error is not None else AppError(message, kind=ErrorKind.UNEXPECTED),
                        {"message": message, **ctx.to_dict()},
                    )
                else:
                    self.tracker.add_breadcrumb(
                        Breadcrumb(message, "log", level, self._clock(), ctx.to_dict())
                    )
        except Exception:
            pass

    def _notify(self, send: Callable[[str], None], text: str) -> None:
        try:
            send(text)
        except Exception:
            pass


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("StopTimer", "ErrorHandler")
