"""
Monitoring — leveled logging, breadcrumbs, session telemetry, error forwarding.

    from naaz import monitoring as M

    handler = M.ErrorHandler(M.MonitoringConfig.from_settings(settings), tracker=tracker)
    logger = M.Logger(handler, storage)
    monitoring = M.ErrorMonitoring(logger)
    monitoring.initialize()
"""

from __future__ import annotations

from naaz.monitoring._types import (
    LogLevel,
    BreadcrumbCategory,
    LogContext,
    LogEntry,
    Breadcrumb,
    new_session_id,
    SessionContext,
    UserContext,
    PerformanceMetrics,
    MonitoringConfig,
)
from naaz.monitoring._console import configure_logging, stdlib_level
from naaz.monitoring._notify import Notifier, LogNotifier
from naaz.monitoring._tracker import (
    OFFLINE_KEY,
    OFFLINE_LIMIT,
    ErrorTracker,
    NullTracker,
    describe_error,
    BackendErrorTracker,
)
from naaz.monitoring._handler import StopTimer, ErrorHandler
from naaz.monitoring._logger import LOG_STORAGE_KEY, LogStats, Logger
from naaz.monitoring._monitor import ErrorMonitoring

__all__ = (
    "LogLevel",
    "BreadcrumbCategory",
    "LogContext",
    "LogEntry",
    "Breadcrumb",
    "new_session_id",
    "SessionContext",
    "UserContext",
    "PerformanceMetrics",
    "MonitoringConfig",
    "configure_logging",
    "stdlib_level",
    "Notifier",
    "LogNotifier",
    "OFFLINE_KEY",
    "OFFLINE_LIMIT",
    "ErrorTracker",
    "NullTracker",
    "describe_error",
    "BackendErrorTracker",
    "StopTimer",
    "ErrorHandler",
    "LOG_STORAGE_KEY",
    "LogStats",
    "Logger",
    "ErrorMonitoring",
)
