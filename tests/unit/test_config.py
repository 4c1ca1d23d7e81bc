"""Tests for settings loading and derived config views."""

from __future__ import annotations

import pytest

from naaz.config import FEATURE_FLAGS, Settings, load_settings
from naaz.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("VITE_NODE_ENV", "VITE_SUPABASE_URL", "VITE_SUPABASE_ANON_KEY", "VITE_API_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:
    def test_reads_prefixed_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VITE_SUPABASE_URL", "https://shop.example.co")
        monkeypatch.setenv("VITE_API_TIMEOUT", "5000")
        settings = load_settings(_env_file=None)
        assert settings.supabase_url == "https://shop.example.co"
        assert settings.api_timeout == 5000

    def test_invalid_value_falls_back_outside_production(self) -> None:
        settings = load_settings(_env_file=None, api_timeout=-1)
        assert settings.api_timeout == 30000

    def test_invalid_value_fails_in_production(self) -> None:
        with pytest.raises(ConfigError, match="api_timeout"):
            load_settings(
                _env_file=None,
                node_env="production",
                supabase_anon_key="anon",
                api_timeout=-1,
            )

    def test_missing_required_fails_in_production(self) -> None:
        with pytest.raises(ConfigError, match="VITE_SUPABASE_ANON_KEY"):
            load_settings(_env_file=None, node_env="production")

    def test_missing_required_is_tolerated_in_development(self) -> None:
        settings = load_settings(_env_file=None)
        assert settings.missing_required() == ["VITE_SUPABASE_ANON_KEY"]
        assert settings.is_development


class TestDerived:
    def test_feature_flags(self, settings: Settings) -> None:
        assert settings.is_feature_enabled("comments")
        assert not settings.is_feature_enabled("analytics")
        assert not settings.is_feature_enabled("teleportation")
        assert len(FEATURE_FLAGS) == 10

    def test_tracker_only_in_production(self) -> None:
        dev = Settings(_env_file=None, enable_error_reporting=True)
        prod = Settings(
            _env_file=None,
            node_env="production",
            enable_error_reporting=True,
            app_version="2.1.0",
        )
        assert not dev.tracker_config().enabled
        assert prod.tracker_config().enabled
        assert prod.tracker_config().release == "2.1.0"

    def test_file_upload_config(self, settings: Settings) -> None:
        uploads = settings.file_upload_config()
        assert uploads.accepts("image/png", 1024)
        assert not uploads.accepts("application/pdf", 1024)
        assert not uploads.accepts("image/png", settings.max_file_size + 1)

    def test_indexed_cache_url(self, settings: Settings) -> None:
        assert settings.indexed_cache_url.startswith("sqlite+aiosqlite:///")
        custom = Settings(_env_file=None, cache_db_url="sqlite+aiosqlite:///:memory:")
        assert custom.indexed_cache_url == "sqlite+aiosqlite:///:memory:"
