"""
Wiki component - stories, worlds and the characters, factions and locations
that live in them, plus each character's gallery and outfits.

Invariants:
- Slugs are unique among the live entities of one parent and never change
- Deleting is soft; public reads only reach published, public stories
- A character has at most one default outfit
"""

from ._impl import KINDS, WikiRepos, WikiService, is_publicly_visible, validate_choices
from .component import (
    run_add_gallery_item,
    run_add_membership,
    run_create,
    run_create_outfit,
    run_create_outfit_type,
    run_delete,
    run_reorder_gallery,
    run_update,
)
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
    WikiEntity,
    WikiKind,
    WikiOperationOutput,
    WikiValidationError,
)
from .ports import (
    GalleryRepoPort,
    MembershipRepoPort,
    OutfitRepoPort,
    OutfitTypeRepoPort,
    WikiEntityRepoPort,
)

__all__ = [
    "run_add_gallery_item",
    "run_add_membership",
    "run_create",
    "run_create_outfit",
    "run_create_outfit_type",
    "run_delete",
    "run_reorder_gallery",
    "run_update",
    "KINDS",
    "WikiRepos",
    "WikiService",
    "is_publicly_visible",
    "validate_choices",
    "AddGalleryItemInput",
    "AddMembershipInput",
    "CreateOutfitInput",
    "CreateOutfitTypeInput",
    "CreateWikiEntityInput",
    "DeleteWikiEntityInput",
    "GalleryOperationOutput",
    "MembershipOperationOutput",
    "OutfitOperationOutput",
    "OutfitTypeOperationOutput",
    "ReorderGalleryInput",
    "UpdateWikiEntityInput",
    "WikiEntity",
    "WikiKind",
    "WikiOperationOutput",
    "WikiValidationError",
    "GalleryRepoPort",
    "MembershipRepoPort",
    "OutfitRepoPort",
    "OutfitTypeRepoPort",
    "WikiEntityRepoPort",
]
