"""
Relationships component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from src.domain.entities import CharacterRelationship, RelationshipType


@dataclass(frozen=True)
class RelationshipValidationError:
    """Relationship validation error."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class CreateRelationshipTypeInput:
    name: str
    slug: str | None = None
    reverse_name: str | None = None
    is_mutual: bool = True
    category: str | None = None
    color: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class CreateRelationshipInput:
    character_a_id: UUID
    character_b_id: UUID
    relationship_type_id: UUID
    description: str | None = None
    is_mutual: bool = True


@dataclass(frozen=True)
class UpdateRelationshipInput:
    relationship_id: UUID
    updates: dict[str, Any]


@dataclass(frozen=True)
class RelationshipTypeOutput:
    relationship_type: RelationshipType | None = None
    errors: list[RelationshipValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class RelationshipOperationOutput:
    relationship: CharacterRelationship | None = None
    errors: list[RelationshipValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class RelationshipView:
    """A relationship as seen from one character's page."""

    relationship: CharacterRelationship
    other_character_id: UUID
    label: str
