"""
PortfolioService - art and writing pieces for the gallery pages.

Key behaviors:
- Slugs derive from the title, are unique per kind and never change
- Tags are trimmed, de-duplicated (first spelling wins) and empty ones dropped
- Writing content has raw HTML escaped on the way in; word_count follows the
  content unless given explicitly
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import UUID, uuid4

from src.core.ports.db import IntegrityViolationError
from src.core.ports.storage import ObjectStoragePort, StorageError
from src.core.services.query_cache import TAG_PORTFOLIO, CachePort
from src.domain.entities import ArtPiece, WritingPiece
from src.domain.fields import (
    FieldProblem,
    apply_updates,
    check_required_text,
    check_slug_unchanged,
    check_title,
    normalize_tags,
    resolve_slug,
)
from src.domain.sanitize import count_words, escape_raw_html
from src.rules.models import ContentRules

from .models import PieceKind, PortfolioValidationError
from .ports import ArtRepoPort, WritingRepoPort

logger = logging.getLogger(__name__)

ART_FIELDS = {
    "title",
    "slug",
    "description",
    "image_url",
    "thumbnail_url",
    "year",
    "tags",
    "is_featured",
    "display_order",
    "artist_name",
    "artist_url",
}
WRITING_FIELDS = {
    "title",
    "slug",
    "excerpt",
    "content",
    "cover_image",
    "year",
    "tags",
    "is_featured",
    "display_order",
    "word_count",
}
MAX_TAGS = 30
CONTENT_MAX = 500_000


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...


def validate_piece_values(values: dict[str, Any]) -> list[PortfolioValidationError]:
    """Checks shared by both piece kinds (year, display order, tags)."""
    errors: list[PortfolioValidationError] = []
    year = values.get("year")
    if year is not None and (
        not isinstance(year, int) or isinstance(year, bool) or not 0 < year <= 9999
    ):
        errors.append(
            PortfolioValidationError(
                code="year_invalid", message="Year must be between 1 and 9999", field="year"
            )
        )
    order = values.get("display_order")
    if order is not None and (not isinstance(order, int) or isinstance(order, bool)):
        errors.append(
            PortfolioValidationError(
                code="display_order_invalid",
                message="Display order must be a whole number",
                field="display_order",
            )
        )
    if "tags" in values and len(normalize_tags(values["tags"])) > MAX_TAGS:
        errors.append(
            PortfolioValidationError(
                code="tags_too_many", message=f"At most {MAX_TAGS} tags", field="tags"
            )
        )
    return errors


def _not_found(kind: PieceKind, piece_id: UUID) -> PortfolioValidationError:
    label = "Art piece" if kind == "art" else "Writing piece"
    return PortfolioValidationError(code=f"{kind}_not_found", message=f"{label} {piece_id} not found")


def _slug_taken(slug: str) -> PortfolioValidationError:
    return PortfolioValidationError(
        code="slug_exists", message=f"A piece with slug '{slug}' already exists", field="slug"
    )


def _field_errors(problems: dict[str, FieldProblem]) -> list[PortfolioValidationError]:
    return [
        PortfolioValidationError(code, message, field)
        for field, (code, message) in problems.items()
    ]


def _not_editable(keys: Iterable[str]) -> list[PortfolioValidationError]:
    return [
        PortfolioValidationError(
            code="field_not_editable", message=f"Field '{k}' cannot be updated", field=k
        )
        for k in sorted(keys)
    ]


class PortfolioService:
    def __init__(
        self,
        art_repo: ArtRepoPort,
        writing_repo: WritingRepoPort,
        storage: ObjectStoragePort | None = None,
        cache: CachePort | None = None,
        time_port: TimePort | None = None,
        content_rules: ContentRules | None = None,
    ) -> None:
        self._art = art_repo
        self._writing = writing_repo
        self._storage = storage
        self._cache = cache
        self._time_port = time_port
        self._rules = content_rules

    def _now(self) -> datetime:
        if self._time_port:
            return self._time_port.now_utc()
        return datetime.now(UTC)

    def _invalidate(self) -> None:
        if self._cache is not None:
            self._cache.invalidate(TAG_PORTFOLIO)

    def _remove_images(self, urls: Iterable[str | None]) -> None:
        """Best-effort removal of stored images; external URLs are left alone."""
        paths = [u for u in urls if u and not u.startswith(("http://", "https://"))]
        if not paths or self._storage is None:
            return
        try:
            self._storage.delete(paths)
        except StorageError:
            logger.exception("Failed to delete portfolio images %s", paths)

    def _check_title_and_slug(
        self, title: str | None, slug: str | None
    ) -> tuple[str, list[PortfolioValidationError]]:
        errors: list[PortfolioValidationError] = []
        problem = check_title(title, field="title", label="Title", rules=self._rules)
        if problem:
            errors.append(PortfolioValidationError(problem[0], problem[1], "title"))
        resolved, problem = resolve_slug(slug, title, self._rules)
        if problem:
            errors.append(PortfolioValidationError(problem[0], problem[1], "slug"))
        return resolved, errors

    # --- Art ---

    def list_art(self, featured_only: bool = False) -> list[ArtPiece]:
        return self._art.list_all(featured_only=featured_only)

    def list_featured_art(self) -> list[ArtPiece]:
        return self._art.list_all(featured_only=True)

    def get_art(self, piece_id: UUID) -> ArtPiece | None:
        return self._art.get_by_id(piece_id)

    def get_art_by_slug(self, slug: str) -> ArtPiece | None:
        return self._art.get_by_slug(slug)

    def create_art(
        self,
        title: str,
        image_url: str,
        slug: str | None = None,
        description: str | None = None,
        thumbnail_url: str | None = None,
        year: int | None = None,
        tags: Iterable[str] = (),
        is_featured: bool = False,
        display_order: int = 0,
        artist_name: str | None = None,
        artist_url: str | None = None,
    ) -> tuple[ArtPiece | None, list[PortfolioValidationError]]:
        resolved_slug, errors = self._check_title_and_slug(title, slug)
        problem = check_required_text(image_url, field="image_url", label="Image", max_len=2048)
        if problem:
            errors.append(PortfolioValidationError(problem[0], problem[1], "image_url"))
        errors.extend(
            validate_piece_values({"year": year, "display_order": display_order, "tags": tags})
        )
        if errors:
            return None, errors

        if self._art.get_by_slug(resolved_slug) is not None:
            return None, [_slug_taken(resolved_slug)]

        now = self._now()
        piece = ArtPiece(
            id=uuid4(),
            title=title.strip(),
            slug=resolved_slug,
            description=description,
            image_url=image_url.strip(),
            thumbnail_url=thumbnail_url,
            year=year,
            tags=normalize_tags(tags),
            is_featured=is_featured,
            display_order=display_order,
            artist_name=artist_name,
            artist_url=artist_url,
            created_at=now,
            updated_at=now,
        )
        try:
            saved = self._art.save(piece)
        except IntegrityViolationError:
            return None, [_slug_taken(resolved_slug)]
        self._invalidate()
        return saved, []

    def update_art(
        self, piece_id: UUID, updates: dict[str, Any]
    ) -> tuple[ArtPiece | None, list[PortfolioValidationError]]:
        piece = self._art.get_by_id(piece_id)
        if piece is None:
            return None, [_not_found("art", piece_id)]

        errors = _not_editable(set(updates) - ART_FIELDS)
        problem = check_slug_unchanged(piece.slug, updates)
        if problem:
            errors.append(PortfolioValidationError(problem[0], problem[1], "slug"))
        if "title" in updates:
            problem = check_title(updates["title"], field="title", label="Title", rules=self._rules)
            if problem:
                errors.append(PortfolioValidationError(problem[0], problem[1], "title"))
        if "image_url" in updates:
            problem = check_required_text(
                updates["image_url"], field="image_url", label="Image", max_len=2048
            )
            if problem:
                errors.append(PortfolioValidationError(problem[0], problem[1], "image_url"))
        errors.extend(validate_piece_values(updates))
        if errors:
            return None, errors

        values = {k: v for k, v in updates.items() if k in ART_FIELDS and k != "slug"}
        if "title" in values:
            values["title"] = values["title"].strip()
        if "tags" in values:
            values["tags"] = normalize_tags(values["tags"])
        replaced = [
            getattr(piece, k)
            for k in ("image_url", "thumbnail_url")
            if k in values and values[k] != getattr(piece, k)
        ]

        updated, problems = apply_updates(piece, {**values, "updated_at": self._now()})
        if updated is None:
            return None, _field_errors(problems)
        saved = self._art.save(updated)
        self._remove_images(replaced)
        self._invalidate()
        return saved, []

    def delete_art(self, piece_id: UUID) -> list[PortfolioValidationError]:
        piece = self._art.get_by_id(piece_id)
        if piece is None or not self._art.delete(piece_id):
            return [_not_found("art", piece_id)]
        self._remove_images([piece.image_url, piece.thumbnail_url])
        self._invalidate()
        return []

    # --- Writing ---

    def list_writing(self, featured_only: bool = False) -> list[WritingPiece]:
        return self._writing.list_all(featured_only=featured_only)

    def list_featured_writing(self) -> list[WritingPiece]:
        return self._writing.list_all(featured_only=True)

    def get_writing(self, piece_id: UUID) -> WritingPiece | None:
        return self._writing.get_by_id(piece_id)

    def get_writing_by_slug(self, slug: str) -> WritingPiece | None:
        return self._writing.get_by_slug(slug)

    def create_writing(
        self,
        title: str,
        content: str,
        slug: str | None = None,
        excerpt: str | None = None,
        cover_image: str | None = None,
        year: int | None = None,
        tags: Iterable[str] = (),
        is_featured: bool = False,
        display_order: int = 0,
        word_count: int | None = None,
    ) -> tuple[WritingPiece | None, list[PortfolioValidationError]]:
        resolved_slug, errors = self._check_title_and_slug(title, slug)
        problem = check_required_text(content, field="content", label="Content", max_len=CONTENT_MAX)
        if problem:
            errors.append(PortfolioValidationError(problem[0], problem[1], "content"))
        errors.extend(
            validate_piece_values({"year": year, "display_order": display_order, "tags": tags})
        )
        if word_count is not None and word_count < 0:
            errors.append(
                PortfolioValidationError(
                    code="word_count_negative",
                    message="Word count cannot be negative",
                    field="word_count",
                )
            )
        if errors:
            return None, errors

        if self._writing.get_by_slug(resolved_slug) is not None:
            return None, [_slug_taken(resolved_slug)]

        now = self._now()
        piece = WritingPiece(
            id=uuid4(),
            title=title.strip(),
            slug=resolved_slug,
            excerpt=(excerpt or "").strip() or None,
            content=escape_raw_html(content),
            cover_image=cover_image,
            year=year,
            tags=normalize_tags(tags),
            is_featured=is_featured,
            display_order=display_order,
            word_count=word_count if word_count is not None else count_words(content),
            created_at=now,
            updated_at=now,
        )
        try:
            saved = self._writing.save(piece)
        except IntegrityViolationError:
            return None, [_slug_taken(resolved_slug)]
        self._invalidate()
        return saved, []

    def update_writing(
        self, piece_id: UUID, updates: dict[str, Any]
    ) -> tuple[WritingPiece | None, list[PortfolioValidationError]]:
        piece = self._writing.get_by_id(piece_id)
        if piece is None:
            return None, [_not_found("writing", piece_id)]

        errors = _not_editable(set(updates) - WRITING_FIELDS)
        problem = check_slug_unchanged(piece.slug, updates)
        if problem:
            errors.append(PortfolioValidationError(problem[0], problem[1], "slug"))
        if "title" in updates:
            problem = check_title(updates["title"], field="title", label="Title", rules=self._rules)
            if problem:
                errors.append(PortfolioValidationError(problem[0], problem[1], "title"))
        if "content" in updates:
            problem = check_required_text(
                updates["content"], field="content", label="Content", max_len=CONTENT_MAX
            )
            if problem:
                errors.append(PortfolioValidationError(problem[0], problem[1], "content"))
        errors.extend(validate_piece_values(updates))
        if errors:
            return None, errors

        values = {k: v for k, v in updates.items() if k in WRITING_FIELDS and k != "slug"}
        if "title" in values:
            values["title"] = values["title"].strip()
        if "tags" in values:
            values["tags"] = normalize_tags(values["tags"])
        if "content" in values:
            raw = values["content"]
            values["content"] = escape_raw_html(raw)
            if values.get("word_count") is None:
                values["word_count"] = count_words(raw)
        elif "word_count" in values and values["word_count"] is None:
            values.pop("word_count")

        replaced = []
        if "cover_image" in values and values["cover_image"] != piece.cover_image:
            replaced.append(piece.cover_image)

        updated, problems = apply_updates(piece, {**values, "updated_at": self._now()})
        if updated is None:
            return None, _field_errors(problems)
        saved = self._writing.save(updated)
        self._remove_images(replaced)
        self._invalidate()
        return saved, []

    def delete_writing(self, piece_id: UUID) -> list[PortfolioValidationError]:
        piece = self._writing.get_by_id(piece_id)
        if piece is None or not self._writing.delete(piece_id):
            return [_not_found("writing", piece_id)]
        self._remove_images([piece.cover_image])
        self._invalidate()
        return []
