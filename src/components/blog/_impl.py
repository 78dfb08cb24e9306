"""
BlogService - posts with draft, scheduled and published states.

A post is a draft while published_at is None, scheduled while published_at
is in the future, and public once published_at <= now.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import UUID, uuid4

from src.core.ports.db import IntegrityViolationError
from src.core.services.pagination import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    Page,
    PageRequest,
    build_page,
    clamp_page_request,
)
from src.core.services.query_cache import TAG_BLOG, CachePort
from src.domain.entities import BlogPost
from src.domain.fields import (
    FieldProblem,
    apply_updates,
    check_required_text,
    check_slug_unchanged,
    check_title,
    resolve_slug,
)
from src.rules.models import ContentRules

from .models import BlogValidationError
from .ports import BlogRepoPort

POST_FIELDS = {"title", "slug", "excerpt", "content", "published_at"}
CONTENT_MAX = 200_000


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...


def as_utc(value: datetime | None) -> datetime | None:
    """Naive datetimes are taken to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_published(post: BlogPost, now: datetime) -> bool:
    published_at = as_utc(post.published_at)
    return published_at is not None and published_at <= as_utc(now)


def _check_content(content: str | None) -> list[BlogValidationError]:
    problem = check_required_text(content, field="content", label="Content", max_len=CONTENT_MAX)
    if problem:
        return [BlogValidationError(problem[0], problem[1], "content")]
    return []


def _not_found(post_id: UUID) -> BlogValidationError:
    return BlogValidationError(code="post_not_found", message=f"Post {post_id} not found")


def _field_errors(problems: dict[str, FieldProblem]) -> list[BlogValidationError]:
    return [
        BlogValidationError(code, message, field) for field, (code, message) in problems.items()
    ]


def _slug_taken(slug: str) -> BlogValidationError:
    return BlogValidationError(
        code="slug_exists", message=f"A post with slug '{slug}' already exists", field="slug"
    )


class BlogService:
    def __init__(
        self,
        repo: BlogRepoPort,
        cache: CachePort | None = None,
        time_port: TimePort | None = None,
        content_rules: ContentRules | None = None,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        self._repo = repo
        self._cache = cache
        self._time_port = time_port
        self._rules = content_rules
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    def _now(self) -> datetime:
        if self._time_port:
            return self._time_port.now_utc()
        return datetime.now(UTC)

    def _invalidate(self) -> None:
        if self._cache is not None:
            self._cache.invalidate(TAG_BLOG)

    def _request(self, page: Any, page_size: Any) -> PageRequest:
        return clamp_page_request(
            page,
            page_size if page_size is not None else self._default_page_size,
            default_page_size=self._default_page_size,
            max_page_size=self._max_page_size,
        )

    # --- Reads ---

    def list_published_page(
        self, page: Any = 1, page_size: Any = None, now: datetime | None = None
    ) -> Page[BlogPost]:
        request = self._request(page, page_size)
        rows, total = self._repo.list_published_page(
            as_utc(now) or self._now(), request.offset, request.limit
        )
        return build_page(rows, total, request)

    def list_all_page(self, page: Any = 1, page_size: Any = None) -> Page[BlogPost]:
        request = self._request(page, page_size)
        rows, total = self._repo.list_all_page(request.offset, request.limit)
        return build_page(rows, total, request)

    def get(self, post_id: UUID) -> BlogPost | None:
        return self._repo.get_by_id(post_id)

    def get_published_by_slug(self, slug: str, now: datetime | None = None) -> BlogPost | None:
        post = self._repo.get_by_slug(slug)
        if post is None or not is_published(post, now or self._now()):
            return None
        return post

    # --- Writes ---

    def create(
        self,
        title: str,
        content: str,
        slug: str | None = None,
        excerpt: str | None = None,
        published_at: datetime | None = None,
    ) -> tuple[BlogPost | None, list[BlogValidationError]]:
        errors: list[BlogValidationError] = []
        problem = check_title(title, field="title", label="Title", rules=self._rules)
        if problem:
            errors.append(BlogValidationError(problem[0], problem[1], "title"))
        resolved_slug, problem = resolve_slug(slug, title, self._rules)
        if problem:
            errors.append(BlogValidationError(problem[0], problem[1], "slug"))
        errors.extend(_check_content(content))
        if errors:
            return None, errors

        if self._repo.get_by_slug(resolved_slug) is not None:
            return None, [_slug_taken(resolved_slug)]

        now = self._now()
        post = BlogPost(
            id=uuid4(),
            title=title.strip(),
            slug=resolved_slug,
            excerpt=(excerpt or "").strip() or None,
            content=content,
            published_at=as_utc(published_at),
            created_at=now,
            updated_at=now,
        )
        try:
            saved = self._repo.save(post)
        except IntegrityViolationError:
            return None, [_slug_taken(resolved_slug)]

        self._invalidate()
        return saved, []

    def update(
        self, post_id: UUID, updates: dict[str, Any]
    ) -> tuple[BlogPost | None, list[BlogValidationError]]:
        post = self._repo.get_by_id(post_id)
        if post is None:
            return None, [_not_found(post_id)]

        errors = [
            BlogValidationError(
                code="field_not_editable", message=f"Field '{k}' cannot be updated", field=k
            )
            for k in sorted(set(updates) - POST_FIELDS)
        ]
        problem = check_slug_unchanged(post.slug, updates)
        if problem:
            errors.append(BlogValidationError(problem[0], problem[1], "slug"))
        if "title" in updates:
            problem = check_title(updates["title"], field="title", label="Title", rules=self._rules)
            if problem:
                errors.append(BlogValidationError(problem[0], problem[1], "title"))
        if "content" in updates:
            errors.extend(_check_content(updates["content"]))
        if errors:
            return None, errors

        values = {k: v for k, v in updates.items() if k in POST_FIELDS and k != "slug"}
        if "title" in values:
            values["title"] = values["title"].strip()
        if "excerpt" in values:
            values["excerpt"] = (values["excerpt"] or "").strip() or None
        if "published_at" in values:
            values["published_at"] = as_utc(values["published_at"])

        updated, problems = apply_updates(post, {**values, "updated_at": self._now()})
        if updated is None:
            return None, _field_errors(problems)
        saved = self._repo.save(updated)
        self._invalidate()
        return saved, []

    def publish(self, post_id: UUID) -> tuple[BlogPost | None, list[BlogValidationError]]:
        """Publish now."""
        return self.update(post_id, {"published_at": self._now()})

    def unpublish(self, post_id: UUID) -> tuple[BlogPost | None, list[BlogValidationError]]:
        """Back to draft."""
        return self.update(post_id, {"published_at": None})

    def delete(self, post_id: UUID) -> list[BlogValidationError]:
        if not self._repo.delete(post_id):
            return [_not_found(post_id)]
        self._invalidate()
        return []
