"""
Relationships component port definitions.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.domain.entities import Character, CharacterRelationship, RelationshipType


class RelationshipTypeRepoPort(Protocol):
    def get_by_id(self, type_id: UUID) -> RelationshipType | None: ...

    def get_by_slug(self, slug: str) -> RelationshipType | None: ...

    def list_all(self) -> list[RelationshipType]: ...

    def save(self, relationship_type: RelationshipType) -> RelationshipType: ...

    def delete(self, type_id: UUID) -> bool:
        """Delete a type and, by cascade, its relationships."""
        ...


class RelationshipRepoPort(Protocol):
    def get_by_id(self, relationship_id: UUID) -> CharacterRelationship | None: ...

    def list_for_character(self, character_id: UUID) -> list[CharacterRelationship]:
        """Relationships where the character is on either side."""
        ...

    def list_between(self, a: UUID, b: UUID) -> list[CharacterRelationship]:
        """Relationships joining a and b, in either slot order."""
        ...

    def save(self, relationship: CharacterRelationship) -> CharacterRelationship:
        """
        Insert or update by id.

        Raises IntegrityViolationError when ({a, b}, type) already exists.
        """
        ...

    def delete(self, relationship_id: UUID) -> bool: ...


class CharacterLookupPort(Protocol):
    def get_character(self, character_id: UUID) -> Character | None: ...
