"""
Wiki component - entry points.

Shell Layer - runs the service and wraps results in outputs.
"""

from __future__ import annotations

from ._impl import WikiService
from .models import (
    AddGalleryItemInput,
    AddMembershipInput,
    CreateOutfitInput,
    CreateOutfitTypeInput,
    CreateWikiEntityInput,
    DeleteWikiEntityInput,
    GalleryOperationOutput,
    MembershipOperationOutput,
    OutfitOperationOutput,
    OutfitTypeOperationOutput,
    ReorderGalleryInput,
    UpdateWikiEntityInput,
    WikiOperationOutput,
)


def run_create(inp: CreateWikiEntityInput, service: WikiService) -> WikiOperationOutput:
    entity, errors = service.create(inp.kind, inp.parent_id, inp.values)
    return WikiOperationOutput(entity=entity, errors=errors, success=not errors)


def run_update(inp: UpdateWikiEntityInput, service: WikiService) -> WikiOperationOutput:
    entity, errors = service.update(inp.kind, inp.entity_id, inp.updates)
    return WikiOperationOutput(entity=entity, errors=errors, success=not errors)


def run_delete(inp: DeleteWikiEntityInput, service: WikiService) -> WikiOperationOutput:
    """Soft-delete an entity."""
    errors = service.delete(inp.kind, inp.entity_id)
    return WikiOperationOutput(entity=None, errors=errors, success=not errors)


def run_add_membership(inp: AddMembershipInput, service: WikiService) -> MembershipOperationOutput:
    membership, errors = service.add_membership(
        inp.character_id,
        inp.faction_id,
        role=inp.role,
        rank=inp.rank,
        join_date=inp.join_date,
        leave_date=inp.leave_date,
        is_current=inp.is_current,
        notes=inp.notes,
    )
    return MembershipOperationOutput(membership=membership, errors=errors, success=not errors)


def run_add_gallery_item(inp: AddGalleryItemInput, service: WikiService) -> GalleryOperationOutput:
    item, errors = service.add_gallery_item(inp.character_id, inp.values)
    return GalleryOperationOutput(item=item, errors=errors, success=not errors)


def run_reorder_gallery(inp: ReorderGalleryInput, service: WikiService) -> GalleryOperationOutput:
    items, errors = service.reorder_gallery(inp.character_id, inp.item_ids)
    return GalleryOperationOutput(items=items, errors=errors, success=not errors)


def run_create_outfit(inp: CreateOutfitInput, service: WikiService) -> OutfitOperationOutput:
    outfit, errors = service.create_outfit(inp.character_id, inp.values)
    return OutfitOperationOutput(outfit=outfit, errors=errors, success=not errors)


def run_create_outfit_type(
    inp: CreateOutfitTypeInput, service: WikiService
) -> OutfitTypeOperationOutput:
    outfit_type, errors = service.create_outfit_type(inp.values)
    return OutfitTypeOperationOutput(outfit_type=outfit_type, errors=errors, success=not errors)
