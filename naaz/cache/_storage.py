"""
String key/value storage with a byte quota.

MemoryStorage lives as long as the process (session storage);
FileStorage persists to a JSON file (local storage).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from naaz.cache._types import DEFAULT_QUOTA, QuotaExceeded

# ═══════════════════════════════════════════════════════════════════════════════
# Storage Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class Storage(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None:
        """Store value. Raises QuotaExceeded when the quota would be exceeded."""
        ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...

    def used_bytes(self) -> int: ...


def _item_bytes(key: str, value: str) -> int:
    return len(key.encode()) + len(value.encode())


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Storage
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryStorage:
    """
    Dict-backed storage.

    Example:
        storage = MemoryStorage(quota=1024)
        storage.set_item("k", "v")
    """

    def __init__(self, quota: int = DEFAULT_QUOTA) -> None:
        self._quota = quota
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        current = self._items.get(key)
        used = self.used_bytes() - (_item_bytes(key, current) if current is not None else 0)
        if used + _item_bytes(key, value) > self._quota:
            raise QuotaExceeded(f"storage quota of {self._quota} bytes exceeded")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def used_bytes(self) -> int:
        return sum(_item_bytes(k, v) for k, v in self._items.items())


# ═══════════════════════════════════════════════════════════════════════════════
# File Storage
# ═══════════════════════════════════════════════════════════════════════════════


class FileStorage(MemoryStorage):
    """MemoryStorage mirrored to a JSON file after every write."""

    def __init__(self, path: Path, quota: int = DEFAULT_QUOTA) -> None:
        super().__init__(quota)
        self._path = path
        self._items = self._load()

    def _load(self) -> dict[str, str]:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
        if not isinstance(raw, dict):
            return {}
        return {str(k): str(v) for k, v in raw.items()}

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._items), encoding="utf-8")
        tmp.replace(self._path)

    def set_item(self, key: str, value: str) -> None:
        super().set_item(key, value)
        self._flush()

    def remove_item(self, key: str) -> None:
        if key in self._items:
            super().remove_item(key)
            self._flush()


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("Storage", "MemoryStorage", "FileStorage")
