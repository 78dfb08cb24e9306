"""
Admin routes for the story wiki.

Entity routes are generic over the five kinds; the collection segment in
the URL picks the kind:

    /stories                          list/create stories
    /stories/{id}/worlds              list/create worlds in a story
    /worlds/{id}/characters|factions|locations
    /{collection}/{id}                get/update/soft-delete one entity

Character galleries, outfits and the outfit type list have their own routes,
declared ahead of the generic ones:

    /characters/{id}/gallery          list/add gallery items; PUT .../order reorders
    /gallery/{id}                     update/soft-delete one gallery item
    /characters/{id}/outfits          list/create outfits
    /outfits/{id}                     update/soft-delete one outfit
    /outfit-types                     list/create outfit types; /outfit-types/{id} edits
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from src.api.deps import get_current_admin, get_wiki_service
from src.api.schemas import not_found, raise_for_errors
from src.components.wiki import (
    KINDS,
    AddGalleryItemInput,
    AddMembershipInput,
    CreateOutfitInput,
    CreateOutfitTypeInput,
    CreateWikiEntityInput,
    DeleteWikiEntityInput,
    ReorderGalleryInput,
    UpdateWikiEntityInput,
    WikiService,
    run_add_gallery_item,
    run_add_membership,
    run_create,
    run_create_outfit,
    run_create_outfit_type,
    run_delete,
    run_reorder_gallery,
    run_update,
)
from src.components.wiki.models import WikiKind
from src.domain.entities import AdminUser, FactionMembership, GalleryItem, Outfit, OutfitType

router = APIRouter()

COLLECTIONS: dict[str, WikiKind] = {
    "stories": "story",
    "worlds": "world",
    "characters": "character",
    "factions": "faction",
    "locations": "location",
}

# parent collection -> child collections it may hold
CHILDREN: dict[str, set[str]] = {
    "stories": {"worlds"},
    "worlds": {"characters", "factions", "locations"},
}


def _kind(collection: str) -> WikiKind:
    kind = COLLECTIONS.get(collection)
    if kind is None:
        raise HTTPException(status_code=404, detail=f"Unknown collection '{collection}'")
    return kind


class MembershipCreateRequest(BaseModel):
    character_id: UUID
    faction_id: UUID
    role: str | None = None
    rank: str | None = None
    join_date: str | None = None
    leave_date: str | None = None
    is_current: bool = True
    notes: str | None = None


class MembershipUpdateRequest(BaseModel):
    role: str | None = None
    rank: str | None = None
    join_date: str | None = None
    leave_date: str | None = None
    is_current: bool | None = None
    notes: str | None = None


# --- Faction memberships ---


@router.post("/memberships", response_model=FactionMembership, status_code=201)
def add_membership(
    data: MembershipCreateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> FactionMembership:
    result = run_add_membership(AddMembershipInput(**data.model_dump()), service)
    raise_for_errors(result.errors)
    assert result.membership is not None
    return result.membership


@router.patch("/memberships/{membership_id}", response_model=FactionMembership)
def update_membership(
    membership_id: UUID,
    data: MembershipUpdateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> FactionMembership:
    membership, errors = service.update_membership(
        membership_id, data.model_dump(exclude_unset=True)
    )
    raise_for_errors(errors)
    assert membership is not None
    return membership


@router.delete("/memberships/{membership_id}", status_code=204)
def remove_membership(
    membership_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> None:
    raise_for_errors(service.remove_membership(membership_id))


@router.get("/characters/{character_id}/memberships", response_model=list[FactionMembership])
def list_character_memberships(
    character_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> list[FactionMembership]:
    if service.get("character", character_id) is None:
        raise not_found("Character")
    return service.list_memberships_for_character(character_id)


@router.get("/factions/{faction_id}/memberships", response_model=list[FactionMembership])
def list_faction_memberships(
    faction_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> list[FactionMembership]:
    if service.get("faction", faction_id) is None:
        raise not_found("Faction")
    return service.list_memberships_for_faction(faction_id)


# --- Character gallery ---


class GalleryItemRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    image_url: str | None = None
    thumbnail_url: str | None = None
    artist_name: str | None = None
    artist_url: str | None = None
    commission_date: str | None = None
    tags: list[str] | None = None
    is_featured: bool | None = None
    display_order: int | None = None


class GalleryOrderRequest(BaseModel):
    item_ids: list[UUID]


@router.get("/characters/{character_id}/gallery", response_model=list[GalleryItem])
def list_gallery(
    character_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> list[GalleryItem]:
    if service.get("character", character_id) is None:
        raise not_found("Character")
    return service.list_gallery(character_id)


@router.post("/characters/{character_id}/gallery", response_model=GalleryItem, status_code=201)
def add_gallery_item(
    character_id: UUID,
    data: GalleryItemRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> GalleryItem:
    result = run_add_gallery_item(
        AddGalleryItemInput(character_id=character_id, values=data.model_dump(exclude_unset=True)),
        service,
    )
    raise_for_errors(result.errors)
    assert result.item is not None
    return result.item


@router.put("/characters/{character_id}/gallery/order", response_model=list[GalleryItem])
def reorder_gallery(
    character_id: UUID,
    data: GalleryOrderRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> list[GalleryItem]:
    result = run_reorder_gallery(
        ReorderGalleryInput(character_id=character_id, item_ids=data.item_ids), service
    )
    raise_for_errors(result.errors)
    return result.items


@router.patch("/gallery/{item_id}", response_model=GalleryItem)
def update_gallery_item(
    item_id: UUID,
    data: GalleryItemRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> GalleryItem:
    item, errors = service.update_gallery_item(item_id, data.model_dump(exclude_unset=True))
    raise_for_errors(errors)
    assert item is not None
    return item


@router.delete("/gallery/{item_id}", status_code=204)
def delete_gallery_item(
    item_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> None:
    raise_for_errors(service.delete_gallery_item(item_id))


# --- Outfits and outfit types ---


class OutfitTypeRequest(BaseModel):
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    icon: str | None = None
    color: str | None = None
    is_default: bool | None = None


class OutfitRequest(BaseModel):
    outfit_type_id: UUID | None = None
    name: str | None = None
    description: str | None = None
    image_url: str | None = None
    reference_images: list[str] | None = None
    color_palette: str | None = None
    notes: str | None = None
    is_default: bool | None = None
    display_order: int | None = None


@router.get("/outfit-types", response_model=list[OutfitType])
def list_outfit_types(
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> list[OutfitType]:
    return service.list_outfit_types()


@router.post("/outfit-types", response_model=OutfitType, status_code=201)
def create_outfit_type(
    data: OutfitTypeRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> OutfitType:
    result = run_create_outfit_type(
        CreateOutfitTypeInput(values=data.model_dump(exclude_unset=True)), service
    )
    raise_for_errors(result.errors)
    assert result.outfit_type is not None
    return result.outfit_type


@router.patch("/outfit-types/{type_id}", response_model=OutfitType)
def update_outfit_type(
    type_id: UUID,
    data: OutfitTypeRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> OutfitType:
    outfit_type, errors = service.update_outfit_type(type_id, data.model_dump(exclude_unset=True))
    raise_for_errors(errors)
    assert outfit_type is not None
    return outfit_type


@router.delete("/outfit-types/{type_id}", status_code=204)
def delete_outfit_type(
    type_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> None:
    raise_for_errors(service.delete_outfit_type(type_id))


@router.get("/characters/{character_id}/outfits", response_model=list[Outfit])
def list_outfits(
    character_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> list[Outfit]:
    if service.get("character", character_id) is None:
        raise not_found("Character")
    return service.list_outfits(character_id)


@router.post("/characters/{character_id}/outfits", response_model=Outfit, status_code=201)
def create_outfit(
    character_id: UUID,
    data: OutfitRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> Outfit:
    result = run_create_outfit(
        CreateOutfitInput(character_id=character_id, values=data.model_dump(exclude_unset=True)),
        service,
    )
    raise_for_errors(result.errors)
    assert result.outfit is not None
    return result.outfit


@router.patch("/outfits/{outfit_id}", response_model=Outfit)
def update_outfit(
    outfit_id: UUID,
    data: OutfitRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> Outfit:
    outfit, errors = service.update_outfit(outfit_id, data.model_dump(exclude_unset=True))
    raise_for_errors(errors)
    assert outfit is not None
    return outfit


@router.delete("/outfits/{outfit_id}", status_code=204)
def delete_outfit(
    outfit_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> None:
    raise_for_errors(service.delete_outfit(outfit_id))


# --- Stories ---


@router.get("/stories")
def list_stories(
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> list[dict[str, Any]]:
    """All live stories, including unpublished and private ones."""
    return [s.model_dump(mode="json") for s in service.list("story")]


@router.post("/stories", status_code=201)
def create_story(
    data: dict[str, Any],
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> dict[str, Any]:
    result = run_create(CreateWikiEntityInput(kind="story", values=data), service)
    raise_for_errors(result.errors)
    assert result.entity is not None
    return result.entity.model_dump(mode="json")


# --- Children of a parent ---


@router.get("/{parent_collection}/{parent_id}/{collection}")
def list_children(
    parent_collection: str,
    parent_id: UUID,
    collection: str,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> list[dict[str, Any]]:
    if collection not in CHILDREN.get(parent_collection, set()):
        raise HTTPException(status_code=404, detail="Unknown collection")
    if service.get(_kind(parent_collection), parent_id) is None:
        raise not_found(KINDS[_kind(parent_collection)].label)
    return [e.model_dump(mode="json") for e in service.list(_kind(collection), parent_id)]


@router.post("/{parent_collection}/{parent_id}/{collection}", status_code=201)
def create_child(
    parent_collection: str,
    parent_id: UUID,
    collection: str,
    data: dict[str, Any],
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> dict[str, Any]:
    if collection not in CHILDREN.get(parent_collection, set()):
        raise HTTPException(status_code=404, detail="Unknown collection")
    result = run_create(
        CreateWikiEntityInput(kind=_kind(collection), values=data, parent_id=parent_id),
        service,
    )
    raise_for_errors(result.errors)
    assert result.entity is not None
    return result.entity.model_dump(mode="json")


# --- Single entity ---


@router.get("/{collection}/{entity_id}")
def get_entity(
    collection: str,
    entity_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> dict[str, Any]:
    kind = _kind(collection)
    entity = service.get(kind, entity_id)
    if entity is None:
        raise not_found(KINDS[kind].label)
    return entity.model_dump(mode="json")


@router.patch("/{collection}/{entity_id}")
def update_entity(
    collection: str,
    entity_id: UUID,
    data: dict[str, Any],
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> dict[str, Any]:
    """Partial update. Slugs and parents cannot be changed."""
    result = run_update(
        UpdateWikiEntityInput(kind=_kind(collection), entity_id=entity_id, updates=data),
        service,
    )
    raise_for_errors(result.errors)
    assert result.entity is not None
    return result.entity.model_dump(mode="json")


@router.delete("/{collection}/{entity_id}", status_code=204)
def delete_entity(
    collection: str,
    entity_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: WikiService = Depends(get_wiki_service),
) -> None:
    result = run_delete(DeleteWikiEntityInput(kind=_kind(collection), entity_id=entity_id), service)
    raise_for_errors(result.errors)
