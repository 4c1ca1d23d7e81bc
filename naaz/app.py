"""
Services — explicit composition root.

Everything the API and the CLI need is built here from Settings and owned
by one object with an `initialize()` / `dispose()` lifecycle.

    services = Services.from_settings(load_settings())
    await services.initialize()
    scope = services.scoped(services.backend.bind(token))
    receipt = await scope.checkout.place_order(data)
    await services.dispose()
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import structlog

from naaz import cache as C
from naaz import monitoring as M
from naaz.backend import Backend, MemoryBackend, RestBackend
from naaz.catalog import BlogService, CatalogService
from naaz.checkout import CheckoutService, CouponService
from naaz.config import Settings
from naaz.notifications import EmailService
from naaz.orders import OrderService

log = structlog.get_logger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Per-request Scope
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Scope:
    """Services acting on behalf of one caller."""

    backend: Backend
    checkout: CheckoutService
    coupons: CouponService
    orders: OrderService
    catalog: CatalogService
    blog: BlogService
    email: EmailService


# ═══════════════════════════════════════════════════════════════════════════════
# Services
# ═══════════════════════════════════════════════════════════════════════════════


class Services:
    def __init__(
        self,
        settings: Settings,
        backend: Backend,
        cache: C.CacheService,
        *,
        tracker: M.ErrorTracker | None = None,
        notifier: M.Notifier | None = None,
        log_storage: C.Storage | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings
        self.now = now
        self.backend = backend
        self.cache = cache
        self.monitoring_config = M.MonitoringConfig.from_settings(settings)
        self.tracker: M.ErrorTracker = tracker or M.NullTracker()
        self.handler = M.ErrorHandler(
            self.monitoring_config, tracker=self.tracker, notifier=notifier
        )
        self.logger = M.Logger(self.handler, log_storage)
        self.monitoring = M.ErrorMonitoring(self.logger)
        self._root = self.scoped(backend)
        self._initialized = False

    @classmethod
    def from_settings(cls, settings: Settings) -> Services:
        """Hosted backend, on-disk cache tiers, remote error tracking when enabled."""
        backend = RestBackend(
            settings.supabase_url,
            settings.supabase_anon_key,
            timeout=settings.api_timeout / 1000,
        )
        tracker_config = settings.tracker_config()
        tracker: M.ErrorTracker = (
            M.BackendErrorTracker(
                backend,
                storage=C.FileStorage(settings.cache_dir / "offline-errors.json"),
                release=tracker_config.release,
                environment=tracker_config.environment,
            )
            if tracker_config.enabled
            else M.NullTracker()
        )
        return cls(
            settings,
            backend,
            C.CacheService.from_settings(settings),
            tracker=tracker,
            log_storage=C.FileStorage(settings.cache_dir / "app-logs.json"),
        )

    @classmethod
    def local(
        cls,
        settings: Settings,
        backend: MemoryBackend | None = None,
        *,
        now: Callable[[], datetime] | None = None,
    ) -> Services:
        """In-process backend and cache: for tests and the demo server."""
        return cls(
            settings,
            backend or MemoryBackend(),
            C.CacheService.in_memory(version=settings.app_version),
            log_storage=C.MemoryStorage(),
            now=now,
        )

    # ─── Lifecycle ───

    async def initialize(self) -> None:
        if self._initialized:
            return
        M.configure_logging(self.monitoring_config)
        await self.cache.initialize()
        self.monitoring.initialize()
        self._initialized = True
        log.info(
            "services.initialized",
            environment=self.settings.node_env,
            version=self.settings.app_version,
        )

    async def dispose(self) -> None:
        if not self._initialized:
            return
        self.monitoring.dispose()
        await self.tracker.flush()
        await self.cache.dispose()
        if isinstance(self.backend, RestBackend):
            await self.backend.aclose()
        self._initialized = False

    # ─── Scopes ───

    def scoped(self, backend: Backend) -> Scope:
        coupons = CouponService(backend, now=self.now)
        return Scope(
            backend=backend,
            checkout=CheckoutService(backend, coupons=coupons, now=self.now),
            coupons=coupons,
            orders=OrderService(backend, now=self.now),
            catalog=CatalogService(backend, self.cache),
            blog=BlogService(backend, page_size=self.settings.blog_posts_per_page),
            email=EmailService(backend, now=self.now),
        )

    def for_token(self, access_token: str | None) -> Scope:
        return self.scoped(self.backend.bind(access_token))

    @property
    def catalog(self) -> CatalogService:
        return self._root.catalog

    @property
    def blog(self) -> BlogService:
        return self._root.blog

    @property
    def email(self) -> EmailService:
        return self._root.email


__all__ = ("Scope", "Services")
