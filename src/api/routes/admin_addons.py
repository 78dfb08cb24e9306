"""Admin routes for commission add-ons and their service links."""

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.deps import get_commission_service, get_current_admin
from src.api.schemas import not_found, raise_for_errors
from src.components.commissions import (
    CommissionService,
    CreateAddonInput,
    SetAddonServicesInput,
    UpdateAddonInput,
    run_create_addon,
    run_set_addon_services,
    run_update_addon,
)
from src.domain.entities import Addon, AddonFilter, AdminUser, Service

router = APIRouter()


# --- Request/Response Models ---


class AddonCreateRequest(BaseModel):
    name: str
    description: str | None = None
    price_impact: Decimal = Decimal("0")
    percentage: bool = False
    is_exclusive: bool = False
    service_ids: list[UUID] = []


class AddonUpdateRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    price_impact: Decimal | None = None
    percentage: bool | None = None
    is_exclusive: bool | None = None


class ServiceIdsRequest(BaseModel):
    service_ids: list[UUID]


class ServiceIdsResponse(BaseModel):
    service_ids: list[UUID]


# --- Routes ---


@router.get("", response_model=list[Addon])
def list_addons(
    filter: AddonFilter = "all",
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> list[Addon]:
    """List add-ons: all, only exclusive, or only shared."""
    return service.list_addons(filter)


@router.post("", response_model=Addon, status_code=201)
def create_addon(
    data: AddonCreateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> Addon:
    result = run_create_addon(
        CreateAddonInput(
            name=data.name,
            description=data.description,
            price_impact=data.price_impact,
            percentage=data.percentage,
            is_exclusive=data.is_exclusive,
            service_ids=tuple(data.service_ids),
        ),
        service,
    )
    raise_for_errors(result.errors)
    assert result.addon is not None
    return result.addon


@router.get("/exclusive-services")
def get_exclusive_addon_services(
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> dict[str, str]:
    """Exclusive add-on id -> the one service holding it."""
    return {str(a): str(s) for a, s in service.get_exclusive_addon_services().items()}


@router.get("/linked-services")
def get_linked_services_map(
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> dict[str, list[str]]:
    return {
        str(a): [str(s) for s in services]
        for a, services in service.get_linked_services_map().items()
    }


@router.get("/{addon_id}", response_model=Addon)
def get_addon(
    addon_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> Addon:
    addon = service.get_addon(addon_id)
    if addon is None:
        raise not_found("Add-on")
    return addon


@router.patch("/{addon_id}", response_model=Addon)
def update_addon(
    addon_id: UUID,
    data: AddonUpdateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> Addon:
    """Update an add-on. Marking it exclusive while it serves several services is refused."""
    result = run_update_addon(
        UpdateAddonInput(addon_id=addon_id, updates=data.model_dump(exclude_unset=True)),
        service,
    )
    raise_for_errors(result.errors)
    assert result.addon is not None
    return result.addon


@router.delete("/{addon_id}", status_code=204)
def delete_addon(
    addon_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> None:
    raise_for_errors(service.delete_addon(addon_id))


@router.get("/{addon_id}/services", response_model=list[Service])
def list_addon_services(
    addon_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> list[Service]:
    if service.get_addon(addon_id) is None:
        raise not_found("Add-on")
    return service.get_services_for_addon(addon_id)


@router.put("/{addon_id}/services", response_model=ServiceIdsResponse)
def set_addon_services(
    addon_id: UUID,
    data: ServiceIdsRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> ServiceIdsResponse:
    """Replace the add-on's service set in one transaction."""
    result = run_set_addon_services(
        SetAddonServicesInput(addon_id=addon_id, service_ids=tuple(data.service_ids)),
        service,
    )
    raise_for_errors(result.errors)
    return ServiceIdsResponse(service_ids=list(result.ids))
