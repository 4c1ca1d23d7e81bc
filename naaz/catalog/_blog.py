"""
Blog posts and categories.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import structlog

from naaz._types import Row
from naaz.backend import Backend, Order, eq, ilike, or_
from naaz.errors import AppError, NotFound

log = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PostPage:
    posts: list[Row]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class BlogService:
    def __init__(self, backend: Backend, *, page_size: int = 10) -> None:
        self.backend = backend
        self.page_size = page_size

    async def posts(
        self,
        *,
        status: str | None = None,
        category_id: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> PostPage:
        limit = limit or self.page_size
        filters = []
        if status:
            filters.append(eq("status", status))
        if category_id:
            filters.append(eq("category_id", category_id))
        if search:
            filters.append(or_(ilike("title", f"%{search}%"), ilike("content", f"%{search}%")))

        total = len(await self.backend.select("blog_posts", *filters, columns="id"))
        rows = await self.backend.select(
            "blog_posts",
            *filters,
            order=Order("created_at", ascending=False),
            limit=limit,
            offset=(max(page, 1) - 1) * limit,
        )
        return PostPage(posts=rows, total=total, page=page, limit=limit)

    async def post(self, slug: str) -> Row:
        """Post by slug; counts the view."""
        rows = await self.backend.select("blog_posts", eq("slug", slug), limit=1)
        if not rows:
            raise NotFound(f"Post {slug} not found")
        post = rows[0]
        try:
            await self.backend.rpc("increment_blog_view_count", {"post_id": post["id"]})
        except AppError as e:
            log.warning("blog.view_count_failed", post_id=post["id"], error=str(e))
        return post

    async def save(self, post: Row) -> Row:
        """Update when `post` has an id, insert otherwise."""
        if post.get("id"):
            values = {k: v for k, v in post.items() if k != "id"}
            rows = await self.backend.update("blog_posts", values, eq("id", post["id"]))
            if not rows:
                raise NotFound(f"Post {post['id']} not found")
            return rows[0]
        return (await self.backend.insert("blog_posts", post))[0]

    async def delete(self, post_id: str) -> None:
        await self.backend.delete("blog_posts", eq("id", post_id))

    async def categories(self) -> list[Row]:
        return await self.backend.select("blog_categories", order=Order("name"))


__all__ = ("PostPage", "BlogService")
