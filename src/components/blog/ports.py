"""
Blog component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.domain.entities import BlogPost


class BlogRepoPort(Protocol):
    """Repository interface for blog posts."""

    def get_by_id(self, post_id: UUID) -> BlogPost | None: ...

    def get_by_slug(self, slug: str) -> BlogPost | None: ...

    def list_published_page(
        self, now: datetime, offset: int, limit: int
    ) -> tuple[list[BlogPost], int]:
        """Posts with published_at <= now, newest first (published_at desc, id desc)."""
        ...

    def list_all_page(self, offset: int, limit: int) -> tuple[list[BlogPost], int]:
        """Every post, drafts included, newest first (created_at desc, id desc)."""
        ...

    def save(self, post: BlogPost) -> BlogPost:
        """Insert or update by id. Raises IntegrityViolationError on a taken slug."""
        ...

    def delete(self, post_id: UUID) -> bool: ...
