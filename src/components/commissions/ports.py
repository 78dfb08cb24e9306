"""
Commissions component port definitions.

Link mutations (link, replace_*) must run inside one database transaction and
raise IntegrityViolationError (nothing committed) when the store rejects them.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.domain.entities import Addon, Picture, Service, ServiceAddonLink, Style


class ServiceRepoPort(Protocol):
    """Repository interface for services."""

    def get_by_id(self, service_id: UUID) -> Service | None: ...

    def get_by_slug(self, slug: str) -> Service | None: ...

    def list_all(self, active_only: bool = False) -> list[Service]:
        """Services ordered by name."""
        ...

    def save(self, service: Service) -> Service:
        """Insert or update by service_id."""
        ...

    def delete(self, service_id: UUID) -> None:
        """Delete the service; styles, pictures and links cascade."""
        ...


class StyleRepoPort(Protocol):
    def get_by_id(self, style_id: UUID) -> Style | None: ...

    def get_by_slug(self, service_id: UUID, slug: str) -> Style | None: ...

    def list_for_service(self, service_id: UUID) -> list[Style]: ...

    def save(self, style: Style) -> Style: ...

    def delete(self, style_id: UUID) -> None:
        """Delete the style; its pictures cascade."""
        ...


class PictureRepoPort(Protocol):
    def get_by_id(self, picture_id: UUID) -> Picture | None: ...

    def list_for_service(self, service_id: UUID) -> list[Picture]:
        """All pictures of a service, style pictures included, newest first."""
        ...

    def list_for_style(self, style_id: UUID) -> list[Picture]: ...

    def save(self, picture: Picture) -> Picture: ...

    def delete(self, picture_id: UUID) -> None: ...

    def set_primary(self, style_id: UUID, picture_id: UUID) -> Picture:
        """Atomically clear the style's current primary and set the new one."""
        ...


class AddonRepoPort(Protocol):
    def get_by_id(self, addon_id: UUID) -> Addon | None: ...

    def list_all(self) -> list[Addon]:
        """Add-ons ordered by name."""
        ...

    def save(self, addon: Addon) -> Addon:
        """
        Insert or update by addon_id.

        Raises IntegrityViolationError when marking exclusive an add-on that is
        linked to more than one service.
        """
        ...

    def delete(self, addon_id: UUID) -> None: ...


class ServiceAddonRepoPort(Protocol):
    """The service<->add-on link table."""

    def list_links(self) -> list[ServiceAddonLink]: ...

    def list_addon_ids(self, service_id: UUID) -> list[UUID]: ...

    def list_service_ids(self, addon_id: UUID) -> list[UUID]: ...

    def link(self, service_id: UUID, addon_id: UUID) -> ServiceAddonLink: ...

    def unlink(self, service_id: UUID, addon_id: UUID) -> bool:
        """Remove a link. Returns False when it didn't exist."""
        ...

    def replace_service_addons(self, service_id: UUID, addon_ids: list[UUID]) -> None:
        """Make `addon_ids` the exact add-on set of the service, all or nothing."""
        ...

    def replace_addon_services(self, addon_id: UUID, service_ids: list[UUID]) -> None:
        """Make `service_ids` the exact service set of the add-on, all or nothing."""
        ...
