"""
Tier stores — memory LRU, prefixed key/value storage, SQLite database.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

from sqlalchemy import BigInteger, String, Text, delete, func, select
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from naaz.cache._storage import Storage
from naaz.cache._types import KEY_PREFIX, CacheEntry, CorruptEntry, Tier

# ═══════════════════════════════════════════════════════════════════════════════
# Memory Tier — In-Process LRU
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryTier:
    """
    In-memory LRU tier. Process-wide; the event loop serialises access.

    Example:
        tier = MemoryTier(max_size=1000)
    """

    def __init__(self, max_size: int = 1000) -> None:
        self._max_size = max_size
        self._cache: dict[str, CacheEntry] = {}
        self._order: list[str] = []

    @property
    def tier(self) -> Tier:
        return Tier.MEMORY

    async def get(self, key: str) -> CacheEntry | None:
        if key in self._cache:
            # Move to end (most recent)
            self._order.remove(key)
            self._order.append(key)
            return self._cache[key]
        return None

    async def set(self, key: str, entry: CacheEntry) -> None:
        if key in self._cache:
            self._order.remove(key)
        elif len(self._cache) >= self._max_size:
            # Evict oldest
            oldest = self._order.pop(0)
            del self._cache[oldest]

        self._cache[key] = entry
        self._order.append(key)

    async def delete(self, key: str) -> bool:
        if key in self._cache:
            del self._cache[key]
            self._order.remove(key)
            return True
        return False

    async def keys(self) -> list[str]:
        return list(self._order)

    async def clear(self) -> None:
        self._cache.clear()
        self._order.clear()

    async def size(self) -> int:
        return sum(len(k) + len(e.data) for k, e in self._cache.items())

    async def close(self) -> None:
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# Key/Value Tier — Local & Session Storage
# ═══════════════════════════════════════════════════════════════════════════════


class KeyValueTier:
    """
    Entries serialised as JSON strings under `naaz-cache-<key>`.

    Other code may share the storage; only prefixed keys belong to the cache.
    """

    def __init__(self, storage: Storage, tier: Tier) -> None:
        self._storage = storage
        self._tier = tier

    @property
    def tier(self) -> Tier:
        return self._tier

    async def get(self, key: str) -> CacheEntry | None:
        raw = self._storage.get_item(KEY_PREFIX + key)
        if raw is None:
            return None
        try:
            return CacheEntry.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            raise CorruptEntry(f"{self._tier.value}:{key}") from e

    async def set(self, key: str, entry: CacheEntry) -> None:
        self._storage.set_item(KEY_PREFIX + key, json.dumps(entry.to_dict()))

    async def delete(self, key: str) -> bool:
        existed = self._storage.get_item(KEY_PREFIX + key) is not None
        self._storage.remove_item(KEY_PREFIX + key)
        return existed

    async def keys(self) -> list[str]:
        return [k[len(KEY_PREFIX):] for k in self._storage.keys() if k.startswith(KEY_PREFIX)]

    async def clear(self) -> None:
        for key in self._storage.keys():
            if key.startswith(KEY_PREFIX):
                self._storage.remove_item(key)

    async def size(self) -> int:
        total = 0
        for key in self._storage.keys():
            if key.startswith(KEY_PREFIX):
                total += len(key) + len(self._storage.get_item(key) or "")
        return total

    async def close(self) -> None:
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# Indexed Tier — SQLite Database `naaz-cache`, Table `cache`
# ═══════════════════════════════════════════════════════════════════════════════


class _Base(DeclarativeBase):
    pass


class CacheRow(_Base):
    __tablename__ = "cache"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    entry: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)


class IndexedTier:
    """
    SQLAlchemy async tier. The schema is created on first use.

    Example:
        tier = IndexedTier("sqlite+aiosqlite:///.naaz-cache/naaz-cache.db")
    """

    def __init__(self, url: str = "sqlite+aiosqlite:///:memory:") -> None:
        self._url = url
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None
        self._lock = asyncio.Lock()

    @property
    def tier(self) -> Tier:
        return Tier.INDEXED

    async def _ready(self) -> async_sessionmaker[AsyncSession]:
        async with self._lock:
            if self._sessions is None:
                url = make_url(self._url)
                database = url.database
                if not database or database == ":memory:":
                    engine = create_async_engine(self._url, poolclass=StaticPool)
                else:
                    Path(database).parent.mkdir(parents=True, exist_ok=True)
                    engine = create_async_engine(self._url)
                async with engine.begin() as conn:
                    await conn.run_sync(_Base.metadata.create_all)
                self._engine = engine
                self._sessions = async_sessionmaker(engine, expire_on_commit=False)
            return self._sessions

    async def get(self, key: str) -> CacheEntry | None:
        sessions = await self._ready()
        async with sessions() as session:
            row = await session.get(CacheRow, key)
            if row is None:
                return None
            raw = row.entry
        try:
            return CacheEntry.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            raise CorruptEntry(f"indexed:{key}") from e

    async def set(self, key: str, entry: CacheEntry) -> None:
        sessions = await self._ready()
        async with sessions() as session:
            await session.merge(
                CacheRow(key=key, entry=json.dumps(entry.to_dict()), timestamp=entry.timestamp)
            )
            await session.commit()

    async def delete(self, key: str) -> bool:
        sessions = await self._ready()
        async with sessions() as session:
            result = await session.execute(delete(CacheRow).where(CacheRow.key == key))
            await session.commit()
            return bool(result.rowcount)

    async def keys(self) -> list[str]:
        sessions = await self._ready()
        async with sessions() as session:
            return list((await session.scalars(select(CacheRow.key))).all())

    async def clear(self) -> None:
        sessions = await self._ready()
        async with sessions() as session:
            await session.execute(delete(CacheRow))
            await session.commit()

    async def size(self) -> int:
        sessions = await self._ready()
        async with sessions() as session:
            total = await session.scalar(
                select(func.coalesce(func.sum(func.length(CacheRow.key) + func.length(CacheRow.entry)), 0))
            )
            return int(total or 0)

    async def close(self) -> None:
        async with self._lock:
            if self._engine is not None:
                await self._engine.dispose()
            self._engine = None
            self._sessions = None


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("MemoryTier", "KeyValueTier", "CacheRow", "IndexedTier")
