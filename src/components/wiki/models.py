"""
Wiki component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal
from uuid import UUID

from src.domain.entities import (
    Character,
    Faction,
    FactionMembership,
    GalleryItem,
    Location,
    Outfit,
    OutfitType,
    Story,
    World,
)

WikiKind = Literal["story", "world", "character", "faction", "location"]

WikiEntity = Story | World | Character | Faction | Location


@dataclass(frozen=True)
class WikiValidationError:
    """Wiki validation error."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class CreateWikiEntityInput:
    """
    Input for creating any wiki entity.

    `parent_id` is the story for a world and the world for characters,
    factions and locations; stories have none.
    """

    kind: WikiKind
    values: dict[str, Any]
    parent_id: UUID | None = None


@dataclass(frozen=True)
class UpdateWikiEntityInput:
    kind: WikiKind
    entity_id: UUID
    updates: dict[str, Any]


@dataclass(frozen=True)
class DeleteWikiEntityInput:
    kind: WikiKind
    entity_id: UUID


@dataclass(frozen=True)
class AddMembershipInput:
    character_id: UUID
    faction_id: UUID
    role: str | None = None
    rank: str | None = None
    join_date: str | None = None
    leave_date: str | None = None
    is_current: bool = True
    notes: str | None = None


@dataclass(frozen=True)
class WikiOperationOutput:
    entity: WikiEntity | None = None
    errors: list[WikiValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class MembershipOperationOutput:
    membership: FactionMembership | None = None
    errors: list[WikiValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class AddGalleryItemInput:
    character_id: UUID
    values: dict[str, Any]


@dataclass(frozen=True)
class ReorderGalleryInput:
    """The full list of the character's live gallery item ids, in display order."""

    character_id: UUID
    item_ids: list[UUID]


@dataclass(frozen=True)
class CreateOutfitInput:
    character_id: UUID
    values: dict[str, Any]


@dataclass(frozen=True)
class CreateOutfitTypeInput:
    values: dict[str, Any]


@dataclass(frozen=True)
class GalleryOperationOutput:
    item: GalleryItem | None = None
    items: list[GalleryItem] = field(default_factory=list)
    errors: list[WikiValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class OutfitOperationOutput:
    outfit: Outfit | None = None
    errors: list[WikiValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class OutfitTypeOperationOutput:
    outfit_type: OutfitType | None = None
    errors: list[WikiValidationError] = field(default_factory=list)
    success: bool = True
