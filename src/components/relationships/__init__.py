"""
Relationships component - typed links between characters.

Invariants:
- ({a, b}, type) is unique regardless of which character sits in slot a
- A character has no relationship with itself
"""

from ._impl import (
    RelationshipService,
    is_duplicate_relationship,
    pair_key,
    relationship_label,
    validate_color,
)
from .component import run_create, run_create_type, run_update
from .models import (
    CreateRelationshipInput,
    CreateRelationshipTypeInput,
    RelationshipOperationOutput,
    RelationshipTypeOutput,
    RelationshipValidationError,
    RelationshipView,
    UpdateRelationshipInput,
)
from .ports import CharacterLookupPort, RelationshipRepoPort, RelationshipTypeRepoPort

__all__ = [
    "run_create",
    "run_create_type",
    "run_update",
    "RelationshipService",
    "is_duplicate_relationship",
    "pair_key",
    "relationship_label",
    "validate_color",
    "CreateRelationshipInput",
    "CreateRelationshipTypeInput",
    "RelationshipOperationOutput",
    "RelationshipTypeOutput",
    "RelationshipValidationError",
    "RelationshipView",
    "UpdateRelationshipInput",
    "CharacterLookupPort",
    "RelationshipRepoPort",
    "RelationshipTypeRepoPort",
]
