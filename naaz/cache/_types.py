"""
Cache types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum, IntEnum
from typing import Any, Protocol

from naaz._types import Millis

# ═══════════════════════════════════════════════════════════════════════════════
# Constants
# ═══════════════════════════════════════════════════════════════════════════════

KEY_PREFIX = "naaz-cache-"
COMPRESSION_THRESHOLD = 1024
CLEANUP_INTERVAL: Millis = 5 * 60 * 1000
DEFAULT_QUOTA = 5 * 1024 * 1024

_MINUTE = 60 * 1000


class CacheTime(IntEnum):
    """TTL presets in milliseconds."""

    VERY_SHORT = 1 * _MINUTE
    SHORT = 5 * _MINUTE
    MEDIUM = 15 * _MINUTE
    LONG = 30 * _MINUTE
    VERY_LONG = 60 * _MINUTE
    PERSISTENT = 24 * 60 * _MINUTE


class Tier(Enum):
    """Where an entry lives."""

    MEMORY = "memory"
    LOCAL = "local"
    SESSION = "session"
    INDEXED = "indexed"


# ═══════════════════════════════════════════════════════════════════════════════
# Options & Entry
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CacheOptions:
    """
    Per-write options.

    ttl: lifetime in ms; None uses the service default
    tier: target tier
    compress: gzip the payload when it is larger than COMPRESSION_THRESHOLD
    encrypt: base64-encode the (possibly compressed) payload
    """

    ttl: Millis | None = None
    tier: Tier = Tier.MEMORY
    compress: bool = False
    encrypt: bool = False


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Stored envelope; `data` is the serialised, possibly transformed payload."""

    data: str
    timestamp: Millis
    ttl: Millis
    version: str
    compressed: bool = False
    encrypted: bool = False

    def is_expired(self, now: Millis) -> bool:
        return now - self.timestamp > self.ttl

    def remaining(self, now: Millis) -> Millis:
        return max(0, self.ttl - (now - self.timestamp))

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.data,
            "timestamp": self.timestamp,
            "ttl": self.ttl,
            "version": self.version,
            "compressed": self.compressed,
            "encrypted": self.encrypted,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CacheEntry:
        return cls(
            data=str(raw["data"]),
            timestamp=int(raw["timestamp"]),
            ttl=int(raw["ttl"]),
            version=str(raw["version"]),
            compressed=bool(raw.get("compressed", False)),
            encrypted=bool(raw.get("encrypted", False)),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Tier Store Protocol — Users Implement This
# ═══════════════════════════════════════════════════════════════════════════════


class TierStore(Protocol):
    """
    Storage behind one Tier.

    `get` raises on an unreadable entry; the service treats that as corrupt
    and deletes it. `set` raises QuotaExceeded when the store is full.
    """

    @property
    def tier(self) -> Tier:
        ...

    async def get(self, key: str) -> CacheEntry | None:
        ...

    async def set(self, key: str, entry: CacheEntry) -> None:
        ...

    async def delete(self, key: str) -> bool:
        """Delete key. Returns True if existed."""
        ...

    async def keys(self) -> list[str]:
        ...

    async def clear(self) -> None:
        ...

    async def size(self) -> int:
        """Approximate bytes held."""
        ...

    async def close(self) -> None:
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Results & Errors
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CacheResult[T]:
    """Read-through result with metadata."""
    value: T
    hit: bool
    tier: Tier | None
    ttl_remaining: timedelta | None


@dataclass(frozen=True, slots=True)
class CachedValue:
    value: Any
    ttl_remaining: Millis


@dataclass(frozen=True, slots=True)
class TierStats:
    entries: int
    size: int


class QuotaExceeded(Exception):
    """Persistent store is out of space."""


class CorruptEntry(Exception):
    """Stored entry could not be parsed or decoded."""


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "KEY_PREFIX",
    "COMPRESSION_THRESHOLD",
    "CLEANUP_INTERVAL",
    "DEFAULT_QUOTA",
    "CacheTime",
    "Tier",
    "CacheOptions",
    "CacheEntry",
    "TierStore",
    "CacheResult",
    "CachedValue",
    "TierStats",
    "QuotaExceeded",
    "CorruptEntry",
)
