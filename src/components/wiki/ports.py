"""
Wiki component port definitions.

All five wiki entity kinds share one repository shape; a story has no
parent, a world's parent is its story, everything else hangs off a world.
Gallery items and outfits hang off a character; outfit types are global.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, TypeVar
from uuid import UUID

from src.domain.entities import FactionMembership, GalleryItem, Outfit, OutfitType

T = TypeVar("T")


class WikiEntityRepoPort(Protocol[T]):
    def get_by_id(self, entity_id: UUID, include_deleted: bool = False) -> T | None: ...

    def get_by_slug(self, parent_id: UUID | None, slug: str) -> T | None:
        """Live (not soft-deleted) entity with this slug under the parent."""
        ...

    def list_for_parent(self, parent_id: UUID | None) -> list[T]:
        """Live entities under the parent (all stories when parent_id is None)."""
        ...

    def save(self, entity: T) -> T: ...

    def soft_delete(self, entity_id: UUID, deleted_at: datetime) -> bool:
        """Stamp deleted_at. Returns False if missing or already deleted."""
        ...


class MembershipRepoPort(Protocol):
    def get_by_id(self, membership_id: UUID) -> FactionMembership | None: ...

    def get_for_pair(self, character_id: UUID, faction_id: UUID) -> FactionMembership | None: ...

    def list_for_character(self, character_id: UUID) -> list[FactionMembership]: ...

    def list_for_faction(self, faction_id: UUID) -> list[FactionMembership]: ...

    def save(self, membership: FactionMembership) -> FactionMembership:
        """Insert or update; IntegrityViolationError on a second (character, faction) row."""
        ...

    def delete(self, membership_id: UUID) -> bool: ...


class GalleryRepoPort(Protocol):
    def get_by_id(self, item_id: UUID, include_deleted: bool = False) -> GalleryItem | None: ...

    def list_for_character(self, character_id: UUID) -> list[GalleryItem]:
        """Live items by display_order, then oldest first."""
        ...

    def save(self, item: GalleryItem) -> GalleryItem: ...

    def soft_delete(self, item_id: UUID, deleted_at: datetime) -> bool: ...

    def set_order(self, ordered_ids: list[UUID], updated_at: datetime) -> None:
        """display_order = position in `ordered_ids`, in one transaction."""
        ...


class OutfitRepoPort(Protocol):
    def get_by_id(self, outfit_id: UUID, include_deleted: bool = False) -> Outfit | None: ...

    def list_for_character(self, character_id: UUID) -> list[Outfit]:
        """Live outfits by display_order, then name."""
        ...

    def save(self, outfit: Outfit) -> Outfit:
        """
        Insert or update. Saving a default outfit clears the flag on the
        character's other outfits in the same transaction.
        """
        ...

    def soft_delete(self, outfit_id: UUID, deleted_at: datetime) -> bool: ...


class OutfitTypeRepoPort(Protocol):
    def get_by_id(self, type_id: UUID) -> OutfitType | None: ...

    def get_by_slug(self, slug: str) -> OutfitType | None: ...

    def list_all(self) -> list[OutfitType]: ...

    def save(self, outfit_type: OutfitType) -> OutfitType:
        """IntegrityViolationError on a duplicate slug."""
        ...

    def delete(self, type_id: UUID) -> bool:
        """Outfits of this type keep existing with no type."""
        ...
