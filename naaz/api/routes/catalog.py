"""Product, category and blog reads."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from naaz.api._deps import current_scope, get_services
from naaz.app import Scope, Services
from naaz.catalog import ProductQuery

router = APIRouter(tags=["catalog"])


@router.get("/products")
async def list_products(
    category: str | None = None,
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=100),
    services: Services = Depends(get_services),
) -> list[dict[str, Any]]:
    return await services.catalog.products(
        ProductQuery(category=category, search=search, page=page, limit=limit)
    )


@router.get("/products/{product_id}")
async def get_product(
    product_id: str,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    product = await services.catalog.product(product_id)
    rating = await services.catalog.rating(product_id)
    return {**product, "rating": {"average": rating.average, "count": rating.count}}


@router.get("/categories")
async def list_categories(services: Services = Depends(get_services)) -> list[dict[str, Any]]:
    return await services.catalog.categories()


@router.get("/blog")
async def list_posts(
    category_id: str | None = None,
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    scope: Scope = Depends(current_scope),
) -> dict[str, Any]:
    result = await scope.blog.posts(
        status="published", category_id=category_id, search=search, page=page
    )
    return {
        "posts": result.posts,
        "total": result.total,
        "page": result.page,
        "pages": result.pages,
    }


@router.get("/blog/{slug}")
async def get_post(slug: str, scope: Scope = Depends(current_scope)) -> dict[str, Any]:
    return await scope.blog.post(slug)
