"""
Catalog — cached product reads, ratings, stock changes and the blog.
"""

from __future__ import annotations

from naaz.catalog._catalog import (
    STOCK_ADJUSTMENT,
    ProductQuery,
    ProductRating,
    CatalogService,
)
from naaz.catalog._blog import PostPage, BlogService

__all__ = (
    "STOCK_ADJUSTMENT",
    "ProductQuery",
    "ProductRating",
    "CatalogService",
    "PostPage",
    "BlogService",
)
