"""
ErrorMonitoring — breadcrumbs, session counters and global error capture.

State machine: uninitialized → initialized. `initialize()` installs the
process-wide hooks (sys.excepthook and the running loop's exception
handler) once; `dispose()` restores them.
"""

from __future__ import annotations

import asyncio
import os
import platform
import sys
import traceback
from collections import deque
from collections.abc import Callable
from types import TracebackType
from typing import Any

from naaz._types import Clock
from naaz.cache import system_clock
from naaz.monitoring._logger import Logger
from naaz.monitoring._tracker import ErrorTracker
from naaz.monitoring._types import (
    Breadcrumb,
    LogContext,
    LogLevel,
    PerformanceMetrics,
    SessionContext,
    UserContext,
    new_session_id,
)

type ExceptHook = Callable[..., Any]

# ═══════════════════════════════════════════════════════════════════════════════
# Error Monitoring
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorMonitoring:
    """
    Example:
        monitoring = ErrorMonitoring(logger)
        monitoring.initialize()
        monitoring.track_page_view("/checkout")
        monitoring.capture_error(exc, LogContext(component="checkout"))
    """

    def __init__(self, logger: Logger, *, clock: Clock = system_clock) -> None:
        self.logger = logger
        self._clock = clock
        config = logger.config
        self._capacity = config.breadcrumb_capacity
        self._per_report = config.breadcrumbs_per_report
        self._slow_page_load = config.slow_page_load_ms
        self._breadcrumbs: deque[Breadcrumb] = deque(maxlen=self._capacity)
        now = clock()
        self.session = SessionContext(session_id=new_session_id(now), start_time=now)
        self.user: UserContext | None = None
        self.metrics = PerformanceMetrics()
        self.current_page: str | None = None
        self._initialized = False
        self._previous_excepthook: ExceptHook | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._previous_loop_handler: ExceptHook | None = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def breadcrumbs(self) -> list[Breadcrumb]:
        """Oldest first."""
        return list(self._breadcrumbs)

    @property
    def tracker(self) -> ErrorTracker:
        return self.logger.handler.tracker

    # ─── Lifecycle ───

    def initialize(self) -> None:
        if self._initialized:
            return
        try:
            self._install_listeners()
            self._initialized = True
            self.add_breadcrumb("Error monitoring initialized", "system", LogLevel.INFO)
        except Exception as e:
            self.logger.error(e, LogContext(component="ErrorMonitoring", action="initialize"))

    def dispose(self) -> None:
        if not self._initialized:
            return
        if self._previous_excepthook is not None and sys.excepthook == self._on_uncaught:
            sys.excepthook = self._previous_excepthook
        if self._loop is not None and not self._loop.is_closed():
            self._loop.set_exception_handler(self._previous_loop_handler)
        self._previous_excepthook = None
        self._loop = None
        self._previous_loop_handler = None
        self._initialized = False

    def _install_listeners(self) -> None:
        self._previous_excepthook = sys.excepthook
        sys.excepthook = self._on_uncaught
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._loop = loop
        self._previous_loop_handler = loop.get_exception_handler()
        loop.set_exception_handler(self._on_loop_exception)

    def _on_uncaught(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        self.capture_error(exc, LogContext(component="global", action="uncaught_exception"))
        if self._previous_excepthook is not None:
            self._previous_excepthook(exc_type, exc, tb)

    def _on_loop_exception(
        self,
        loop: asyncio.AbstractEventLoop,
        context: dict[str, Any],
    ) -> None:
        message = str(context.get("message") or "Unhandled exception in event loop")
        error = context.get("exception") or RuntimeError(message)
        self.capture_error(
            error,
            LogContext(
                component="global",
                action="unhandled_rejection",
                additional_data={"message": message},
            ),
        )
        if self._previous_loop_handler is not None:
            self._previous_loop_handler(loop, context)

    # ─── Breadcrumbs ───

    def add_breadcrumb(
        self,
        message: str,
        category: str = "system",
        level: LogLevel = LogLevel.INFO,
        data: dict[str, Any] | None = None,
    ) -> None:
        try:
            crumb = Breadcrumb(message, category, level, self._clock(), dict(data or {}))
            self._breadcrumbs.append(crumb)
            self.tracker.add_breadcrumb(crumb)
        except Exception:
            pass

    # ─── Capture ───

    def _diagnostics(self) -> dict[str, Any]:
        return {
            "session": self.session.to_dict(),
            "user": self.user.to_dict() if self.user else None,
            "performance": self.metrics.to_dict(),
            "breadcrumbs": [b.to_dict() for b in list(self._breadcrumbs)[-self._per_report:]],
            "page": self.current_page,
            "platform": {
                "system": platform.platform(),
                "python": platform.python_version(),
                "pid": os.getpid(),
            },
            "memory": {"allocated_blocks": sys.getallocatedblocks()},
        }

    def capture_error(self, error: BaseException, context: LogContext | None = None) -> None:
        try:
            self.session.errors += 1
            base = LogContext(
                user_id=self.user.id if self.user else None,
                user_email=self.user.email if self.user else None,
                page=self.current_page,
            )
            enriched = base.merged(context).with_data(**self._diagnostics())
            self.logger.error(error, enriched)
            stack = traceback.format_exception(error)
            self.add_breadcrumb(
                f"Error occurred: {error}",
                "error",
                LogLevel.ERROR,
                {"name": type(error).__name__, "stack": "".join(stack[-3:])},
            )
        except Exception:
            pass

    def capture_message(
        self,
        message: str,
        level: LogLevel = LogLevel.INFO,
        context: LogContext | None = None,
    ) -> None:
        try:
            enriched = (context or LogContext()).with_data(session=self.session.to_dict())
            match level:
                case LogLevel.ERROR:
                    self.logger.error(message, enriched)
                case LogLevel.WARN:
                    self.logger.warn(message, enriched)
                case LogLevel.DEBUG:
                    self.logger.debug(message, enriched)
                case _:
                    self.logger.info(message, enriched)
        except Exception:
            pass

    # ─── Tracking ───

    def track_interaction(
        self,
        action: str,
        component: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.session.interactions += 1
        self.add_breadcrumb(
            f"User interaction: {action}",
            "user",
            LogLevel.INFO,
            {"component": component, **(details or {})},
        )
        try:
            self.logger.user_action(action, component, details)
        except Exception:
            pass

    def track_page_view(self, path: str) -> None:
        previous = self.current_page
        self.session.page_views += 1
        self.current_page = path
        self.add_breadcrumb(f"Page view: {path}", "navigation", LogLevel.INFO, {"from": previous})
        try:
            self.logger.navigation(previous or "", path)
        except Exception:
            pass

    def track_performance(self, metrics: PerformanceMetrics) -> None:
        self.metrics = self.metrics.merged(metrics)
        self.add_breadcrumb(
            "Performance metrics updated",
            "performance",
            LogLevel.INFO,
            metrics.to_dict(),
        )
        load = metrics.page_load_time
        if load is not None and load > self._slow_page_load:
            try:
                self.logger.warn(
                    "Slow page load detected",
                    LogContext(
                        component="performance",
                        page=self.current_page,
                        additional_data={"page_load_time": load},
                    ),
                )
            except Exception:
                pass

    # ─── User ───

    def set_user_context(self, user: UserContext) -> None:
        self.user = user
        try:
            self.tracker.set_user(user)
        except Exception:
            pass
        self.add_breadcrumb("User context set", "user", LogLevel.INFO, {"user_id": user.id})

    def clear_user_context(self) -> None:
        self.user = None
        try:
            self.tracker.set_user(None)
        except Exception:
            pass
        self.add_breadcrumb("User context cleared", "user", LogLevel.INFO)

    def session_summary(self) -> dict[str, Any]:
        return {
            **self.session.to_dict(),
            "duration_ms": self._clock() - self.session.start_time,
            "breadcrumbs": len(self._breadcrumbs),
            "user": self.user.to_dict() if self.user else None,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("ErrorMonitoring",)
