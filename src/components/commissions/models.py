"""
Commissions component input/output models.

Services, styles, pictures, add-ons and the service<->add-on links.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from uuid import UUID

from src.domain.entities import Addon, Picture, Service, ServiceAddonLink, Style

# --- Validation Error ---


@dataclass(frozen=True)
class CommissionValidationError:
    """Commission catalog validation error."""

    code: str
    message: str
    field: str | None = None


# --- Upload payload ---


@dataclass(frozen=True)
class UploadedImage:
    """An image received from the admin form, already compressed client-side."""

    filename: str
    data: bytes
    content_type: str = "application/octet-stream"


# --- Input Models ---


@dataclass(frozen=True)
class CreateServiceInput:
    """Input for creating a service, optionally with its initial add-ons."""

    name: str
    slug: str | None = None
    description: str | None = None
    base_price: Decimal | str | int = Decimal("0")
    is_active: bool = True
    comm_link: str | None = None
    addon_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class UpdateServiceInput:
    service_id: UUID
    updates: dict[str, Any]


@dataclass(frozen=True)
class CreateAddonInput:
    """Input for creating an add-on, optionally linked to services."""

    name: str
    description: str | None = None
    price_impact: Decimal | str | int = Decimal("0")
    percentage: bool = False
    is_exclusive: bool = False
    service_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class UpdateAddonInput:
    addon_id: UUID
    updates: dict[str, Any]


@dataclass(frozen=True)
class LinkAddonInput:
    service_id: UUID
    addon_id: UUID


@dataclass(frozen=True)
class SetServiceAddonsInput:
    """Replace the full add-on set of a service."""

    service_id: UUID
    addon_ids: tuple[UUID, ...]


@dataclass(frozen=True)
class SetAddonServicesInput:
    """Replace the full service set of an add-on."""

    addon_id: UUID
    service_ids: tuple[UUID, ...]


@dataclass(frozen=True)
class CreateStyleInput:
    """Input for creating a style together with its pictures."""

    service_id: UUID
    name: str
    slug: str | None = None
    description: str | None = None
    images: tuple[UploadedImage, ...] = ()


@dataclass(frozen=True)
class EligibleAddonsInput:
    service_id: UUID


# --- Output Models ---


@dataclass(frozen=True)
class ServiceOperationOutput:
    service: Service | None = None
    errors: list[CommissionValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class AddonOperationOutput:
    addon: Addon | None = None
    errors: list[CommissionValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class LinkOperationOutput:
    link: ServiceAddonLink | None = None
    errors: list[CommissionValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class AddonSetOutput:
    """Result of a bulk replacement; `addon_ids`/`service_ids` is the new set."""

    ids: tuple[UUID, ...] = ()
    errors: list[CommissionValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class EligibleAddonsOutput:
    addons: tuple[Addon, ...]
    exclusive_map: dict[UUID, UUID]


@dataclass(frozen=True)
class StyleOperationOutput:
    style: Style | None = None
    pictures: tuple[Picture, ...] = ()
    errors: list[CommissionValidationError] = field(default_factory=list)
    success: bool = True
