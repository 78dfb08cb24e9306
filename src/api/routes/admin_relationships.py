"""Admin routes for relationship types and character relationships."""

from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.deps import get_current_admin, get_relationship_service
from src.api.schemas import not_found, raise_for_errors
from src.components.relationships import (
    CreateRelationshipInput,
    CreateRelationshipTypeInput,
    RelationshipService,
    UpdateRelationshipInput,
    run_create,
    run_create_type,
    run_update,
)
from src.domain.entities import AdminUser, CharacterRelationship, RelationshipType

router = APIRouter()


# --- Request/Response Models ---


class RelationshipTypeCreateRequest(BaseModel):
    name: str
    slug: str | None = None
    reverse_name: str | None = None
    is_mutual: bool = True
    category: str | None = None
    color: str | None = None
    description: str | None = None


class RelationshipTypeUpdateRequest(BaseModel):
    name: str | None = None
    reverse_name: str | None = None
    is_mutual: bool | None = None
    category: str | None = None
    color: str | None = None
    description: str | None = None


class RelationshipCreateRequest(BaseModel):
    character_a_id: UUID
    character_b_id: UUID
    relationship_type_id: UUID
    description: str | None = None
    is_mutual: bool = True


class RelationshipUpdateRequest(BaseModel):
    relationship_type_id: UUID | None = None
    description: str | None = None
    is_mutual: bool | None = None


class RelationshipViewResponse(BaseModel):
    relationship: CharacterRelationship
    other_character_id: UUID
    label: str


# --- Relationship types ---


@router.get("/types", response_model=list[RelationshipType])
def list_relationship_types(
    current_admin: AdminUser = Depends(get_current_admin),
    service: RelationshipService = Depends(get_relationship_service),
) -> list[RelationshipType]:
    return service.list_types()


@router.post("/types", response_model=RelationshipType, status_code=201)
def create_relationship_type(
    data: RelationshipTypeCreateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: RelationshipService = Depends(get_relationship_service),
) -> RelationshipType:
    result = run_create_type(CreateRelationshipTypeInput(**data.model_dump()), service)
    raise_for_errors(result.errors)
    assert result.relationship_type is not None
    return result.relationship_type


@router.get("/types/{type_id}", response_model=RelationshipType)
def get_relationship_type(
    type_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: RelationshipService = Depends(get_relationship_service),
) -> RelationshipType:
    rel_type = service.get_type(type_id)
    if rel_type is None:
        raise not_found("Relationship type")
    return rel_type


@router.patch("/types/{type_id}", response_model=RelationshipType)
def update_relationship_type(
    type_id: UUID,
    data: RelationshipTypeUpdateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: RelationshipService = Depends(get_relationship_service),
) -> RelationshipType:
    rel_type, errors = service.update_type(type_id, data.model_dump(exclude_unset=True))
    raise_for_errors(errors)
    assert rel_type is not None
    return rel_type


@router.delete("/types/{type_id}", status_code=204)
def delete_relationship_type(
    type_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: RelationshipService = Depends(get_relationship_service),
) -> None:
    """Relationships of this type are deleted with it."""
    raise_for_errors(service.delete_type(type_id))


# --- Character relationships ---


@router.get("/characters/{character_id}", response_model=list[RelationshipViewResponse])
def list_character_relationships(
    character_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: RelationshipService = Depends(get_relationship_service),
) -> list[RelationshipViewResponse]:
    return [
        RelationshipViewResponse(
            relationship=v.relationship,
            other_character_id=v.other_character_id,
            label=v.label,
        )
        for v in service.list_for_character(character_id)
    ]


@router.post("", response_model=CharacterRelationship, status_code=201)
def create_relationship(
    data: RelationshipCreateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: RelationshipService = Depends(get_relationship_service),
) -> CharacterRelationship:
    result = run_create(CreateRelationshipInput(**data.model_dump()), service)
    raise_for_errors(result.errors)
    assert result.relationship is not None
    return result.relationship


@router.get("/{relationship_id}", response_model=CharacterRelationship)
def get_relationship(
    relationship_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: RelationshipService = Depends(get_relationship_service),
) -> CharacterRelationship:
    relationship = service.get(relationship_id)
    if relationship is None:
        raise not_found("Relationship")
    return relationship


@router.patch("/{relationship_id}", response_model=CharacterRelationship)
def update_relationship(
    relationship_id: UUID,
    data: RelationshipUpdateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: RelationshipService = Depends(get_relationship_service),
) -> CharacterRelationship:
    result = run_update(
        UpdateRelationshipInput(
            relationship_id=relationship_id, updates=data.model_dump(exclude_unset=True)
        ),
        service,
    )
    raise_for_errors(result.errors)
    assert result.relationship is not None
    return result.relationship


@router.delete("/{relationship_id}", status_code=204)
def delete_relationship(
    relationship_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: RelationshipService = Depends(get_relationship_service),
) -> None:
    raise_for_errors(service.delete(relationship_id))
