"""
Portfolio component port definitions.

Both piece kinds list in gallery order: display_order asc, then newest first.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.domain.entities import ArtPiece, WritingPiece


class ArtRepoPort(Protocol):
    def get_by_id(self, piece_id: UUID) -> ArtPiece | None: ...

    def get_by_slug(self, slug: str) -> ArtPiece | None: ...

    def list_all(self, featured_only: bool = False) -> list[ArtPiece]: ...

    def save(self, piece: ArtPiece) -> ArtPiece:
        """Insert or update by id. Raises IntegrityViolationError on a taken slug."""
        ...

    def delete(self, piece_id: UUID) -> bool: ...


class WritingRepoPort(Protocol):
    def get_by_id(self, piece_id: UUID) -> WritingPiece | None: ...

    def get_by_slug(self, slug: str) -> WritingPiece | None: ...

    def list_all(self, featured_only: bool = False) -> list[WritingPiece]: ...

    def save(self, piece: WritingPiece) -> WritingPiece: ...

    def delete(self, piece_id: UUID) -> bool: ...
