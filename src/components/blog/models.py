"""
Blog component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from src.domain.entities import BlogPost


@dataclass(frozen=True)
class BlogValidationError:
    """Blog validation error."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class CreatePostInput:
    """
    Input for creating a post.

    `published_at` None keeps the post a draft; a future time schedules it.
    """

    title: str
    content: str
    slug: str | None = None
    excerpt: str | None = None
    published_at: datetime | None = None


@dataclass(frozen=True)
class UpdatePostInput:
    post_id: UUID
    updates: dict[str, Any]


@dataclass(frozen=True)
class ListPostsInput:
    page: Any = 1
    page_size: Any = 10
    published_only: bool = True


@dataclass(frozen=True)
class PostOperationOutput:
    post: BlogPost | None = None
    errors: list[BlogValidationError] = field(default_factory=list)
    success: bool = True
