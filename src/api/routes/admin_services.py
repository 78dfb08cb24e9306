"""Admin routes for commission services, their styles, pictures and add-on links."""

from decimal import Decimal
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel

from src.api.deps import get_commission_service, get_current_admin
from src.api.schemas import error_detail, not_found, raise_for_errors
from src.components.commissions import (
    CommissionService,
    CreateServiceInput,
    CreateStyleInput,
    LinkAddonInput,
    SetServiceAddonsInput,
    UpdateServiceInput,
    UploadedImage,
    run_create_service,
    run_create_style_with_images,
    run_link_addon,
    run_set_service_addons,
    run_update_service,
)
from src.domain.entities import Addon, AdminUser, Picture, Service, ServiceDetails, Style

router = APIRouter()


# --- Request/Response Models ---


class ServiceCreateRequest(BaseModel):
    name: str
    slug: str | None = None
    description: str | None = None
    base_price: Decimal = Decimal("0")
    is_active: bool = True
    comm_link: str | None = None
    addon_ids: list[UUID] = []


class ServiceUpdateRequest(BaseModel):
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    base_price: Decimal | None = None
    is_active: bool | None = None
    comm_link: str | None = None


class AddonIdsRequest(BaseModel):
    addon_ids: list[UUID]


class AddonIdsResponse(BaseModel):
    addon_ids: list[UUID]


class StyleCreateRequest(BaseModel):
    name: str
    slug: str | None = None
    description: str | None = None


class StyleUpdateRequest(BaseModel):
    name: str | None = None
    slug: str | None = None
    description: str | None = None


class StyleWithPicturesResponse(BaseModel):
    style: Style
    pictures: list[Picture]
    errors: list[dict[str, Any]] = []


class PictureCreateRequest(BaseModel):
    image_url: str
    style_id: UUID | None = None
    caption: str | None = None
    is_primary_example: bool = False


class PictureUpdateRequest(BaseModel):
    image_url: str | None = None
    style_id: UUID | None = None
    caption: str | None = None
    is_primary_example: bool | None = None


class PrimaryPictureRequest(BaseModel):
    picture_id: UUID


async def _read_images(files: list[UploadFile]) -> list[UploadedImage]:
    return [
        UploadedImage(
            filename=f.filename or "upload",
            data=await f.read(),
            content_type=f.content_type or "application/octet-stream",
        )
        for f in files
    ]


# --- Styles & pictures by id (declared before /{service_id} routes) ---


@router.patch("/styles/{style_id}", response_model=Style)
def update_style(
    style_id: UUID,
    data: StyleUpdateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> Style:
    style, errors = service.update_style(style_id, data.model_dump(exclude_unset=True))
    raise_for_errors(errors)
    assert style is not None
    return style


@router.delete("/styles/{style_id}", status_code=204)
def delete_style(
    style_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> None:
    raise_for_errors(service.delete_style(style_id))


@router.post("/styles/{style_id}/primary-picture", response_model=Picture)
def set_primary_picture(
    style_id: UUID,
    data: PrimaryPictureRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> Picture:
    """Make a picture the style's primary example (the previous one is cleared)."""
    picture, errors = service.set_primary_picture(style_id, data.picture_id)
    raise_for_errors(errors)
    assert picture is not None
    return picture


@router.get("/styles/{style_id}/pictures", response_model=list[Picture])
def list_style_pictures(
    style_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> list[Picture]:
    if service.get_style(style_id) is None:
        raise not_found("Style")
    return service.list_pictures_for_style(style_id)


@router.patch("/pictures/{picture_id}", response_model=Picture)
def update_picture(
    picture_id: UUID,
    data: PictureUpdateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> Picture:
    picture, errors = service.update_picture(picture_id, data.model_dump(exclude_unset=True))
    raise_for_errors(errors)
    assert picture is not None
    return picture


@router.delete("/pictures/{picture_id}", status_code=204)
def delete_picture(
    picture_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> None:
    raise_for_errors(service.delete_picture(picture_id))


# --- Services ---


@router.get("", response_model=list[Service])
def list_services(
    active_only: bool = False,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> list[Service]:
    return service.list_services(active_only=active_only)


@router.post("", response_model=Service, status_code=201)
def create_service(
    data: ServiceCreateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> Service:
    """Create a service, optionally linking add-ons in the same step."""
    result = run_create_service(
        CreateServiceInput(
            name=data.name,
            slug=data.slug,
            description=data.description,
            base_price=data.base_price,
            is_active=data.is_active,
            comm_link=data.comm_link,
            addon_ids=tuple(data.addon_ids),
        ),
        service,
    )
    raise_for_errors(result.errors)
    assert result.service is not None
    return result.service


@router.get("/{service_id}", response_model=ServiceDetails)
def get_service(
    service_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> ServiceDetails:
    details = service.get_service_details(service_id)
    if details is None:
        raise not_found("Service")
    return details


@router.patch("/{service_id}", response_model=Service)
def update_service(
    service_id: UUID,
    data: ServiceUpdateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> Service:
    result = run_update_service(
        UpdateServiceInput(service_id=service_id, updates=data.model_dump(exclude_unset=True)),
        service,
    )
    raise_for_errors(result.errors)
    assert result.service is not None
    return result.service


@router.delete("/{service_id}", status_code=204)
def delete_service(
    service_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> None:
    """Delete a service with its styles, pictures and links."""
    raise_for_errors(service.delete_service(service_id))


# --- Service <-> add-on links ---


@router.get("/{service_id}/addons", response_model=list[Addon])
def list_service_addons(
    service_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> list[Addon]:
    if service.get_service(service_id) is None:
        raise not_found("Service")
    return service.get_addons_for_service(service_id)


@router.put("/{service_id}/addons", response_model=AddonIdsResponse)
def set_service_addons(
    service_id: UUID,
    data: AddonIdsRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> AddonIdsResponse:
    """Replace the service's add-on set in one transaction."""
    result = run_set_service_addons(
        SetServiceAddonsInput(service_id=service_id, addon_ids=tuple(data.addon_ids)),
        service,
    )
    raise_for_errors(result.errors)
    return AddonIdsResponse(addon_ids=list(result.ids))


@router.get("/{service_id}/eligible-addons", response_model=list[Addon])
def list_eligible_addons(
    service_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> list[Addon]:
    """Add-ons this service may link: shared ones and exclusives nobody else holds."""
    if service.get_service(service_id) is None:
        raise not_found("Service")
    return service.get_eligible_addons(service_id)


@router.post("/{service_id}/addons/{addon_id}", status_code=201)
def link_addon(
    service_id: UUID,
    addon_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> dict[str, Any]:
    result = run_link_addon(LinkAddonInput(service_id=service_id, addon_id=addon_id), service)
    raise_for_errors(result.errors)
    assert result.link is not None
    return result.link.model_dump(mode="json")


@router.delete("/{service_id}/addons/{addon_id}", status_code=204)
def unlink_addon(
    service_id: UUID,
    addon_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> None:
    raise_for_errors(service.unlink_addon(service_id, addon_id))


# --- Styles ---


@router.get("/{service_id}/styles", response_model=list[Style])
def list_styles(
    service_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> list[Style]:
    if service.get_service(service_id) is None:
        raise not_found("Service")
    return service.list_styles(service_id)


@router.post("/{service_id}/styles", response_model=Style, status_code=201)
def create_style(
    service_id: UUID,
    data: StyleCreateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> Style:
    style, errors = service.create_style(
        service_id, data.name, slug=data.slug, description=data.description
    )
    raise_for_errors(errors)
    assert style is not None
    return style


@router.post(
    "/{service_id}/styles/with-images",
    response_model=StyleWithPicturesResponse,
    status_code=201,
)
async def create_style_with_images(
    service_id: UUID,
    name: str = Form(...),
    slug: str | None = Form(None),
    description: str | None = Form(None),
    files: list[UploadFile] = File(default=[]),
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> StyleWithPicturesResponse:
    """
    Create a style and upload its example images.

    The style is kept when some uploads fail; the response then lists the
    `image_upload_failed` error next to the pictures that did upload.
    """
    images = await _read_images(files)
    result = run_create_style_with_images(
        CreateStyleInput(
            service_id=service_id,
            name=name,
            slug=slug,
            description=description,
            images=tuple(images),
        ),
        service,
    )
    if result.style is None:
        raise_for_errors(result.errors)
        raise HTTPException(status_code=500, detail="Style creation failed")
    return StyleWithPicturesResponse(
        style=result.style,
        pictures=list(result.pictures),
        errors=error_detail(result.errors)["errors"],
    )


# --- Pictures ---


@router.get("/{service_id}/pictures", response_model=list[Picture])
def list_pictures(
    service_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> list[Picture]:
    if service.get_service(service_id) is None:
        raise not_found("Service")
    return service.list_pictures_for_service(service_id)


@router.post("/{service_id}/pictures", response_model=Picture, status_code=201)
def create_picture(
    service_id: UUID,
    data: PictureCreateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> Picture:
    """Register a picture whose file is already in storage (or an external URL)."""
    picture, errors = service.create_picture(
        service_id,
        data.image_url,
        style_id=data.style_id,
        caption=data.caption,
        is_primary_example=data.is_primary_example,
    )
    raise_for_errors(errors)
    assert picture is not None
    return picture


@router.post("/{service_id}/pictures/upload", response_model=list[Picture], status_code=201)
async def upload_pictures(
    service_id: UUID,
    style_id: UUID | None = Form(None),
    files: list[UploadFile] = File(...),
    current_admin: AdminUser = Depends(get_current_admin),
    service: CommissionService = Depends(get_commission_service),
) -> list[Picture]:
    images = await _read_images(files)
    pictures, errors = service.upload_pictures(service_id, images, style_id=style_id)
    if errors and not pictures:
        raise_for_errors(errors)
    if errors:
        raise HTTPException(
            status_code=502,
            detail={
                **error_detail(errors),
                "pictures": [p.model_dump(mode="json") for p in pictures],
            },
        )
    return pictures
