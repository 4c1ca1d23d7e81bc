"""Shared fixtures for naaz tests."""

from __future__ import annotations

from datetime import datetime

import pytest

from naaz.backend import MemoryBackend
from naaz.cache import CacheService
from naaz.config import Settings
from tests.fakes.fake_backend import NOW, seeded_backend
from tests.fakes.fake_clock import FakeClock


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Test settings, ignoring any .env file on disk."""
    return Settings(_env_file=None, node_env="test")


@pytest.fixture
def backend() -> MemoryBackend:
    """Backend signed in as the customer, seeded with two books and a cart."""
    return seeded_backend()


@pytest.fixture
def admin_backend(backend: MemoryBackend) -> MemoryBackend:
    return backend.bind("admin-token")


@pytest.fixture
async def cache_service(clock: FakeClock):
    service = CacheService.in_memory(version="1.0.0", clock=clock)
    yield service
    await service.dispose()
