"""
Configuration — VITE_* environment surface validated with pydantic-settings.

    export VITE_NODE_ENV=production
    export VITE_SUPABASE_URL=https://project.supabase.co
    export VITE_SUPABASE_ANON_KEY=...

    settings = load_settings()

Validation failures are warnings in development (the failing fields fall
back to their defaults) and ConfigError in production.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

import structlog
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from naaz.errors import ConfigError

logger = structlog.get_logger(__name__)

type Environment = Literal["development", "production", "test"]

FEATURE_FLAGS = (
    "analytics",
    "error_reporting",
    "performance_monitoring",
    "pwa",
    "comments",
    "search_suggestions",
    "service_worker",
    "csrf_protection",
    "rate_limiting",
    "input_sanitization",
)

# ═══════════════════════════════════════════════════════════════════════════════
# Settings
# ═══════════════════════════════════════════════════════════════════════════════


class Settings(BaseSettings):
    """All recognised VITE_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="VITE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    node_env: Environment = "development"
    app_version: str = "1.0.0"

    # Supabase
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = ""
    supabase_service_role_key: str | None = None

    # API
    api_base_url: str | None = None
    api_timeout: int = Field(default=30000, gt=0)

    # Error tracking
    sentry_dsn: str | None = None
    sentry_environment: str = "development"
    sentry_release: str | None = None

    # Payments
    paypal_client_id: str | None = None
    paypal_client_secret: str | None = None
    paypal_environment: Literal["sandbox", "live"] = "sandbox"
    paypal_base_url: str | None = None
    payu_merchant_key: str | None = None
    payu_merchant_salt: str | None = None
    payu_environment: Literal["test", "production"] = "test"
    payu_base_url: str | None = None
    payu_upi_vpa: str | None = None

    # File uploads
    image_cdn_url: str | None = None
    max_file_size: int = Field(default=5 * 1024 * 1024, gt=0)
    allowed_file_types: str = "image/jpeg,image/png,image/webp,image/gif"

    # Rate limiting
    rate_limit_max_attempts: int = Field(default=5, gt=0)
    rate_limit_window: int = Field(default=60000, gt=0)
    rate_limit_block_duration: int = Field(default=300000, gt=0)

    # Feature flags
    enable_analytics: bool = False
    enable_error_reporting: bool = False
    enable_performance_monitoring: bool = False
    enable_pwa: bool = False
    enable_comments: bool = True
    enable_search_suggestions: bool = True
    enable_service_worker: bool = False
    enable_csrf_protection: bool = True
    enable_rate_limiting: bool = True
    enable_input_sanitization: bool = True

    # Email
    from_email: str = "noreply@naaz.local"

    # Content
    blog_posts_per_page: int = Field(default=10, gt=0)
    search_results_per_page: int = Field(default=20, gt=0)

    # Cache
    cache_ttl: int = Field(default=300000, gt=0)
    cache_dir: Path = Path(".naaz-cache")
    cache_db_url: str | None = None
    cache_storage_quota: int = Field(default=5 * 1024 * 1024, gt=0)

    # ─── Derived ───

    @property
    def is_production(self) -> bool:
        return self.node_env == "production"

    @property
    def is_development(self) -> bool:
        return self.node_env == "development"

    @property
    def indexed_cache_url(self) -> str:
        if self.cache_db_url:
            return self.cache_db_url
        return f"sqlite+aiosqlite:///{self.cache_dir / 'naaz-cache.db'}"

    def is_feature_enabled(self, feature: str) -> bool:
        if feature not in FEATURE_FLAGS:
            return False
        return bool(getattr(self, f"enable_{feature}"))

    def missing_required(self) -> list[str]:
        """Variables production cannot run without."""
        required = {
            "VITE_SUPABASE_URL": self.supabase_url,
            "VITE_SUPABASE_ANON_KEY": self.supabase_anon_key,
        }
        return [name for name, value in required.items() if not value]

    def payment_config(self) -> PaymentConfig:
        return PaymentConfig(
            paypal_client_id=self.paypal_client_id,
            paypal_environment=self.paypal_environment,
            paypal_base_url=self.paypal_base_url,
            payu_merchant_key=self.payu_merchant_key,
            payu_environment=self.payu_environment,
            payu_base_url=self.payu_base_url,
            payu_upi_vpa=self.payu_upi_vpa,
        )

    def file_upload_config(self) -> FileUploadConfig:
        return FileUploadConfig(
            max_file_size=self.max_file_size,
            allowed_types=tuple(
                t.strip() for t in self.allowed_file_types.split(",") if t.strip()
            ),
            cdn_url=self.image_cdn_url,
        )

    def rate_limit_config(self) -> RateLimitConfig:
        return RateLimitConfig(
            enabled=self.enable_rate_limiting,
            max_attempts=self.rate_limit_max_attempts,
            window_ms=self.rate_limit_window,
            block_duration_ms=self.rate_limit_block_duration,
        )

    def tracker_config(self) -> TrackerConfig:
        return TrackerConfig(
            enabled=self.is_production
            and (self.enable_error_reporting or self.sentry_dsn is not None),
            dsn=self.sentry_dsn,
            environment=self.sentry_environment,
            release=self.sentry_release or self.app_version,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Config Views
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PaymentConfig:
    paypal_client_id: str | None
    paypal_environment: str
    paypal_base_url: str | None
    payu_merchant_key: str | None
    payu_environment: str
    payu_base_url: str | None
    payu_upi_vpa: str | None


@dataclass(frozen=True, slots=True)
class FileUploadConfig:
    max_file_size: int
    allowed_types: tuple[str, ...]
    cdn_url: str | None

    def accepts(self, content_type: str, size: int) -> bool:
        return content_type in self.allowed_types and size <= self.max_file_size


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    enabled: bool
    max_attempts: int
    window_ms: int
    block_duration_ms: int


@dataclass(frozen=True, slots=True)
class TrackerConfig:
    """Remote error tracking switches."""
    enabled: bool
    dsn: str | None
    environment: str
    release: str


# ═══════════════════════════════════════════════════════════════════════════════
# Loading
# ═══════════════════════════════════════════════════════════════════════════════


def _target_environment(overrides: dict[str, Any]) -> str:
    return str(overrides.get("node_env") or os.environ.get("VITE_NODE_ENV", "development"))


def load_settings(**overrides: Any) -> Settings:
    """
    Build Settings from the environment.

    In production any invalid or missing required variable raises ConfigError.
    Elsewhere the problem is logged and the affected fields use defaults.
    """
    production = _target_environment(overrides) == "production"

    try:
        settings = Settings(**overrides)
    except ValidationError as e:
        failed = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        if production:
            raise ConfigError(f"Invalid environment configuration: {', '.join(failed)}") from e
        for err in e.errors():
            logger.warning(
                "config.invalid_variable",
                variable=f"VITE_{'.'.join(str(p) for p in err['loc']).upper()}",
                problem=err["msg"],
            )
        defaults = {name: Settings.model_fields[name].get_default() for name in failed}
        settings = Settings(**{**overrides, **defaults})

    missing = settings.missing_required()
    if missing:
        if settings.is_production:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")
        logger.warning("config.missing_variables", variables=missing)

    return settings


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "FEATURE_FLAGS",
    "Environment",
    "Settings",
    "PaymentConfig",
    "FileUploadConfig",
    "RateLimitConfig",
    "TrackerConfig",
    "load_settings",
)
