"""
Monitoring types — levels, contexts, log entries, breadcrumbs.
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass, field, fields, replace
from enum import IntEnum
from typing import Any, Literal

from naaz._types import Millis
from naaz.config import Settings

# ═══════════════════════════════════════════════════════════════════════════════
# Levels
# ═══════════════════════════════════════════════════════════════════════════════


class LogLevel(IntEnum):
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: str) -> LogLevel:
        return cls[value.upper()]


type BreadcrumbCategory = Literal[
    "system", "user", "navigation", "performance", "api", "log", "error"
]

# ═══════════════════════════════════════════════════════════════════════════════
# Log Context — Fixed Keys
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class LogContext:
    """
    Structured attributes attached to a log call.

    component: emitting component or service
    action: operation being performed
    user_id, user_email: acting user
    page: current route or endpoint
    additional_data: anything else, kept verbatim
    """

    component: str | None = None
    action: str | None = None
    user_id: str | None = None
    user_email: str | None = None
    page: str | None = None
    additional_data: dict[str, Any] = field(default_factory=dict)

    def with_data(self, **data: Any) -> LogContext:
        return replace(self, additional_data={**self.additional_data, **data})

    def merged(self, other: LogContext | None) -> LogContext:
        """Fields set on `other` win; additional data is combined."""
        if other is None:
            return self
        changes = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if f.name != "additional_data" and getattr(other, f.name) is not None
        }
        return replace(
            self,
            **changes,
            additional_data={**self.additional_data, **other.additional_data},
        )

    def to_dict(self) -> dict[str, Any]:
        out = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "additional_data" and getattr(self, f.name) is not None
        }
        if self.additional_data:
            out["additional_data"] = dict(self.additional_data)
        return out

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> LogContext:
        return cls(
            component=raw.get("component"),
            action=raw.get("action"),
            user_id=raw.get("user_id"),
            user_email=raw.get("user_email"),
            page=raw.get("page"),
            additional_data=dict(raw.get("additional_data") or {}),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Entries
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class LogEntry:
    level: LogLevel
    message: str
    timestamp: str
    context: LogContext = field(default_factory=LogContext)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "level": self.level.label,
            "message": self.message,
            "timestamp": self.timestamp,
            "context": self.context.to_dict(),
        }
        if self.error is not None:
            out["error"] = self.error
        return out

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> LogEntry:
        return cls(
            level=LogLevel.parse(raw["level"]),
            message=str(raw["message"]),
            timestamp=str(raw["timestamp"]),
            context=LogContext.from_dict(raw.get("context") or {}),
            error=raw.get("error"),
        )


@dataclass(frozen=True, slots=True)
class Breadcrumb:
    """Timestamped, categorised note attached to later error reports."""

    message: str
    category: str
    level: LogLevel
    timestamp: Millis
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "category": self.category,
            "level": self.level.label,
            "timestamp": self.timestamp,
            "data": dict(self.data),
        }


# ═══════════════════════════════════════════════════════════════════════════════
# Session, User, Performance
# ═══════════════════════════════════════════════════════════════════════════════

_ALPHABET = string.ascii_lowercase + string.digits


def new_session_id(now: Millis) -> str:
    return f"session_{now}_{''.join(secrets.choice(_ALPHABET) for _ in range(9))}"


@dataclass(slots=True)
class SessionContext:
    """Per-process counters, never persisted."""

    session_id: str
    start_time: Millis
    page_views: int = 0
    interactions: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "start_time": self.start_time,
            "page_views": self.page_views,
            "interactions": self.interactions,
            "errors": self.errors,
        }


@dataclass(frozen=True, slots=True)
class UserContext:
    id: str
    email: str | None = None
    name: str | None = None
    role: str | None = None

    def to_dict(self) -> dict[str, Any]:
        pairs = {"id": self.id, "email": self.email, "name": self.name, "role": self.role}
        return {k: v for k, v in pairs.items() if v is not None}


@dataclass(frozen=True, slots=True)
class PerformanceMetrics:
    """Milliseconds, except cumulative_layout_shift (unitless)."""

    page_load_time: float | None = None
    first_contentful_paint: float | None = None
    largest_contentful_paint: float | None = None
    first_input_delay: float | None = None
    cumulative_layout_shift: float | None = None
    time_to_interactive: float | None = None

    def merged(self, other: PerformanceMetrics) -> PerformanceMetrics:
        changes = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if getattr(other, f.name) is not None
        }
        return replace(self, **changes)

    def to_dict(self) -> dict[str, float]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


# ═══════════════════════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class MonitoringConfig:
    """
    Switches for the pipeline.

    Development: console + local storage, DEBUG threshold.
    Production: remote forwarding, WARN threshold, user notifications for warnings.
    """

    environment: str = "development"
    log_level: LogLevel = LogLevel.DEBUG
    console_output: bool = True
    remote_logging: bool = False
    local_storage: bool = True
    max_local_entries: int = 1000
    breadcrumb_capacity: int = 100
    breadcrumbs_per_report: int = 10
    slow_page_load_ms: float = 3000
    slow_operation_ms: float = 1000

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_settings(cls, settings: Settings) -> MonitoringConfig:
        production = settings.is_production
        development = settings.is_development
        return cls(
            environment=settings.node_env,
            log_level=LogLevel.WARN if production else LogLevel.DEBUG,
            console_output=development,
            remote_logging=production,
            local_storage=development,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

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
)
