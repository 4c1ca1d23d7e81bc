"""Seeded in-memory backend: two books, a cart and two coupons."""

from __future__ import annotations

from datetime import UTC, datetime

from naaz.backend import MemoryBackend, User

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)

CUSTOMER = User(id="user-1", email="reader@example.com")
ADMIN = User(id="admin-1", email="admin@example.com")


def seeded_backend() -> MemoryBackend:
    """Signed in as CUSTOMER; `customer-token` and `admin-token` sessions exist."""
    db = MemoryBackend(user=CUSTOMER, admins={ADMIN.id}, now=lambda: NOW)
    db.sessions = {"customer-token": CUSTOMER, "admin-token": ADMIN}
    db.seed("products", [
        {
            "id": "p1",
            "name": "Tafsir Ibn Kathir",
            "price": 300,
            "sale_price": None,
            "quantity_in_stock": 10,
            "is_active": True,
            "category_id": "tafsir",
        },
        {
            "id": "p2",
            "name": "Riyad us Saliheen",
            "price": 500,
            "sale_price": 400,
            "quantity_in_stock": 3,
            "is_active": True,
            "category_id": "hadith",
        },
    ])
    db.seed("cart_items", [
        {"id": "c1", "user_id": CUSTOMER.id, "product_id": "p1", "quantity": 2},
        {"id": "c2", "user_id": CUSTOMER.id, "product_id": "p2", "quantity": 1},
    ])
    db.seed("coupons", [
        {
            "id": "k1",
            "code": "WELCOME10",
            "discount_type": "percentage",
            "discount_value": 10,
            "min_purchase": 500,
            "usage_limit": 100,
            "used_count": 4,
            "start_date": "2026-01-01T00:00:00+00:00",
            "end_date": "2026-12-31T00:00:00+00:00",
            "is_active": True,
        },
        {
            "id": "k2",
            "code": "OLD50",
            "discount_type": "fixed",
            "discount_value": 50,
            "min_purchase": 0,
            "used_count": 0,
            "start_date": "2024-01-01T00:00:00+00:00",
            "end_date": "2025-01-01T00:00:00+00:00",
            "is_active": True,
        },
    ])
    return db
