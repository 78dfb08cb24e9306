"""
Portfolio component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal
from uuid import UUID

from src.domain.entities import ArtPiece, WritingPiece

PieceKind = Literal["art", "writing"]


@dataclass(frozen=True)
class PortfolioValidationError:
    """Portfolio validation error."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class CreateArtInput:
    title: str
    image_url: str
    slug: str | None = None
    description: str | None = None
    thumbnail_url: str | None = None
    year: int | None = None
    tags: tuple[str, ...] = ()
    is_featured: bool = False
    display_order: int = 0
    artist_name: str | None = None
    artist_url: str | None = None


@dataclass(frozen=True)
class CreateWritingInput:
    """`word_count` is derived from the content when omitted."""

    title: str
    content: str
    slug: str | None = None
    excerpt: str | None = None
    cover_image: str | None = None
    year: int | None = None
    tags: tuple[str, ...] = ()
    is_featured: bool = False
    display_order: int = 0
    word_count: int | None = None


@dataclass(frozen=True)
class UpdatePieceInput:
    kind: PieceKind
    piece_id: UUID
    updates: dict[str, Any]


@dataclass(frozen=True)
class ArtOperationOutput:
    piece: ArtPiece | None = None
    errors: list[PortfolioValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class WritingOperationOutput:
    piece: WritingPiece | None = None
    errors: list[PortfolioValidationError] = field(default_factory=list)
    success: bool = True
