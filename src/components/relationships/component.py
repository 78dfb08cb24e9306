"""
Relationships component - entry points.

Shell Layer - runs the service and wraps results in outputs.
"""

from __future__ import annotations

from ._impl import RelationshipService
from .models import (
    CreateRelationshipInput,
    CreateRelationshipTypeInput,
    RelationshipOperationOutput,
    RelationshipTypeOutput,
    UpdateRelationshipInput,
)


def run_create_type(
    inp: CreateRelationshipTypeInput, service: RelationshipService
) -> RelationshipTypeOutput:
    created, errors = service.create_type(
        name=inp.name,
        slug=inp.slug,
        reverse_name=inp.reverse_name,
        is_mutual=inp.is_mutual,
        category=inp.category,
        color=inp.color,
        description=inp.description,
    )
    return RelationshipTypeOutput(relationship_type=created, errors=errors, success=not errors)


def run_create(
    inp: CreateRelationshipInput, service: RelationshipService
) -> RelationshipOperationOutput:
    """Create a relationship, rejecting ({a, b}, type) duplicates in either order."""
    created, errors = service.create(
        inp.character_a_id,
        inp.character_b_id,
        inp.relationship_type_id,
        description=inp.description,
        is_mutual=inp.is_mutual,
    )
    return RelationshipOperationOutput(relationship=created, errors=errors, success=not errors)


def run_update(
    inp: UpdateRelationshipInput, service: RelationshipService
) -> RelationshipOperationOutput:
    updated, errors = service.update(inp.relationship_id, inp.updates)
    return RelationshipOperationOutput(relationship=updated, errors=errors, success=not errors)
