"""
Remote error tracking — captured errors become `activity_logs` rows.

Sends are dispatched in the background so logging never waits on the
network. A send that fails is kept in local storage under `offline_errors`
(last 20) and replayed by `sync_offline()`.
"""

from __future__ import annotations

import asyncio
import json
import traceback
from collections import deque
from datetime import UTC, datetime
from typing import Any, Protocol

import structlog

from naaz.backend import Backend
from naaz.cache import Storage
from naaz.monitoring._types import Breadcrumb, LogLevel, UserContext

logger = structlog.get_logger(__name__)

OFFLINE_KEY = "offline_errors"
OFFLINE_LIMIT = 20

# ═══════════════════════════════════════════════════════════════════════════════
# Tracker Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorTracker(Protocol):
    def set_user(self, user: UserContext | None) -> None: ...

    def add_breadcrumb(self, crumb: Breadcrumb) -> None: ...

    def capture_error(self, error: BaseException, context: dict[str, Any] | None = None) -> None: ...

    def capture_message(
        self, message: str, level: LogLevel, context: dict[str, Any] | None = None
    ) -> None: ...

    async def flush(self) -> None: ...


class NullTracker:
    """Tracker that drops everything."""

    def set_user(self, user: UserContext | None) -> None:
        return None

    def add_breadcrumb(self, crumb: Breadcrumb) -> None:
        return None

    def capture_error(self, error: BaseException, context: dict[str, Any] | None = None) -> None:
        return None

    def capture_message(
        self, message: str, level: LogLevel, context: dict[str, Any] | None = None
    ) -> None:
        return None

    async def flush(self) -> None:
        return None


def describe_error(error: BaseException) -> dict[str, Any]:
    return {
        "name": type(error).__name__,
        "message": str(error),
        "stack": "".join(traceback.format_exception(error)),
    }


# ═══════════════════════════════════════════════════════════════════════════════
# Backend Tracker
# ═══════════════════════════════════════════════════════════════════════════════


class BackendErrorTracker:
    """
    Forwards captured errors to the `activity_logs` table.

    Example:
        tracker = BackendErrorTracker(backend, storage=local, release="1.0.0")
        tracker.capture_error(exc, {"component": "checkout"})
        await tracker.flush()
    """

    def __init__(
        self,
        backend: Backend,
        *,
        storage: Storage | None = None,
        release: str = "1.0.0",
        environment: str = "production",
        breadcrumb_capacity: int = 100,
    ) -> None:
        self._backend = backend
        self._storage = storage
        self._release = release
        self._environment = environment
        self._breadcrumbs: deque[Breadcrumb] = deque(maxlen=breadcrumb_capacity)
        self._user: UserContext | None = None
        self._pending: set[asyncio.Task[None]] = set()

    def set_user(self, user: UserContext | None) -> None:
        self._user = user

    def add_breadcrumb(self, crumb: Breadcrumb) -> None:
        self._breadcrumbs.append(crumb)

    def capture_error(self, error: BaseException, context: dict[str, Any] | None = None) -> None:
        self._dispatch("error", {**describe_error(error), "context": context or {}})

    def capture_message(
        self, message: str, level: LogLevel, context: dict[str, Any] | None = None
    ) -> None:
        action = "error" if level >= LogLevel.ERROR else "log_message"
        self._dispatch(action, {"message": message, "level": level.label, "context": context or {}})

    async def flush(self) -> None:
        """Wait for every background send started so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ─── Delivery ───

    def _payload(self, details: dict[str, Any]) -> dict[str, Any]:
        return {
            **details,
            "breadcrumbs": [b.to_dict() for b in self._breadcrumbs],
            "user": self._user.to_dict() if self._user else None,
            "release": self._release,
            "environment": self._environment,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    def _dispatch(self, action_type: str, details: dict[str, Any]) -> None:
        try:
            payload = self._payload(details)
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._store_offline(self._payload(details))
            return
        except Exception:
            logger.debug("tracker.payload_failed", exc_info=True)
            return
        task = loop.create_task(self._send(action_type, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, action_type: str, payload: dict[str, Any]) -> None:
        try:
            await self._backend.insert(
                "activity_logs",
                {
                    "action_type": action_type,
                    "details": payload,
                    "user_id": self._user.id if self._user else None,
                },
            )
        except Exception:
            logger.debug("tracker.send_failed", exc_info=True)
            self._store_offline(payload)

    def _read_offline(self) -> list[dict[str, Any]]:
        if self._storage is None:
            return []
        try:
            raw = json.loads(self._storage.get_item(OFFLINE_KEY) or "[]")
        except ValueError:
            return []
        return raw if isinstance(raw, list) else []

    def _write_offline(self, payloads: list[dict[str, Any]]) -> None:
        if self._storage is None:
            return
        try:
            self._storage.set_item(OFFLINE_KEY, json.dumps(payloads[-OFFLINE_LIMIT:], default=str))
        except Exception:
            logger.debug("tracker.offline_store_failed", exc_info=True)

    def _store_offline(self, payload: dict[str, Any]) -> None:
        self._write_offline([*self._read_offline(), payload])

    def offline_errors(self) -> list[dict[str, Any]]:
        return self._read_offline()

    async def sync_offline(self, batch_size: int = 10) -> int:
        """Replay stored errors in batches; stops at the first failed batch."""
        pending = self._read_offline()
        synced = 0
        while pending:
            batch = pending[:batch_size]
            try:
                await self._backend.insert(
                    "activity_logs",
                    [
                        {
                            "action_type": "error",
                            "details": {**p, "synced_from_offline": True},
                            "user_id": self._user.id if self._user else None,
                        }
                        for p in batch
                    ],
                )
            except Exception:
                logger.debug("tracker.sync_failed", exc_info=True)
                break
            pending = pending[len(batch):]
            synced += len(batch)
            self._write_offline(pending)
        return synced


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "OFFLINE_KEY",
    "OFFLINE_LIMIT",
    "ErrorTracker",
    "NullTracker",
    "describe_error",
    "BackendErrorTracker",
)
