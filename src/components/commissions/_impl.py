"""
CommissionService - commission catalog management and the add-on
exclusivity policy.

Key behaviors:
- An exclusive add-on is linked to at most one service at any time
- A non-exclusive add-on may be linked to any number of services
- An add-on linked to two or more services cannot be marked exclusive
- Bulk link replacements are all-or-nothing
- Slugs are derived from the name when omitted and never change afterwards
- Deleting a service/style/picture removes its stored images best-effort

The policy functions are pure; CommissionService checks them before every
link mutation and the database triggers re-check inside the write
transaction, so a request racing past the first check is still rejected.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, Protocol
from uuid import UUID, uuid4

from src.core.ports.db import IntegrityViolationError
from src.core.ports.storage import ObjectStoragePort, StorageError
from src.core.services.query_cache import (
    TAG_ADDONS,
    TAG_EXCLUSIVE_ADDON_SERVICES,
    TAG_SERVICES,
    CachePort,
    addon_services_tag,
    service_addons_tag,
)
from src.domain.entities import (
    Addon,
    AddonFilter,
    Picture,
    Service,
    ServiceAddonLink,
    ServiceDetails,
    Style,
)
from src.domain.fields import (
    FieldProblem,
    apply_updates,
    check_slug_unchanged,
    check_title,
    parse_decimal,
    resolve_slug,
)
from src.rules.models import ContentRules

from .models import CommissionValidationError, UploadedImage
from .ports import (
    AddonRepoPort,
    PictureRepoPort,
    ServiceAddonRepoPort,
    ServiceRepoPort,
    StyleRepoPort,
)

logger = logging.getLogger(__name__)

IMAGE_UPLOAD_FAILED = "Failed to upload images. Please try again."

SERVICE_FIELDS = {"name", "slug", "description", "base_price", "is_active", "comm_link"}
ADDON_FIELDS = {"name", "description", "price_impact", "percentage", "is_exclusive"}
STYLE_FIELDS = {"name", "slug", "description"}
PICTURE_FIELDS = {"image_url", "caption", "is_primary_example"}


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...


def _error(problem: FieldProblem, field: str | None) -> CommissionValidationError:
    code, message = problem
    return CommissionValidationError(code=code, message=message, field=field)


def _field_errors(problems: dict[str, FieldProblem]) -> list[CommissionValidationError]:
    return [_error(problem, field) for field, problem in problems.items()]


def _unknown_fields(updates: dict[str, Any], allowed: set[str]) -> list[CommissionValidationError]:
    return [
        CommissionValidationError(
            code="field_not_editable",
            message=f"Field '{name}' cannot be updated",
            field=name,
        )
        for name in sorted(set(updates) - allowed)
    ]


def _integrity_error(exc: IntegrityViolationError) -> CommissionValidationError:
    messages = {
        "exclusive_addon_linked_elsewhere": (
            "This exclusive add-on is already linked to another service"
        ),
        "addon_linked_to_multiple_services": (
            "An add-on linked to more than one service cannot be made exclusive"
        ),
    }
    return CommissionValidationError(
        code=exc.code,
        message=messages.get(exc.code, exc.message),
    )


def is_storage_path(value: str | None) -> bool:
    """Stored images are referenced by path; external images by full URL."""
    return bool(value) and not str(value).startswith("http")


# --- Exclusivity policy ---


def build_exclusive_map(
    addons: Iterable[Addon], links: Iterable[ServiceAddonLink]
) -> dict[UUID, UUID]:
    """
    Map each linked exclusive add-on to the service holding it.

    Unlinked exclusive add-ons and non-exclusive add-ons are absent.
    """
    exclusive_ids = {a.addon_id for a in addons if a.is_exclusive}
    exclusive_map: dict[UUID, UUID] = {}
    for link in links:
        if link.addon_id in exclusive_ids:
            exclusive_map.setdefault(link.addon_id, link.service_id)
    return exclusive_map


def is_addon_eligible(addon: Addon, service_id: UUID, exclusive_map: dict[UUID, UUID]) -> bool:
    """
    Can `addon` be offered for linking to `service_id`?

    Exclusive add-ons already held by the service being edited stay eligible.
    """
    if not addon.is_exclusive:
        return True
    holder = exclusive_map.get(addon.addon_id)
    return holder is None or holder == service_id


def eligible_addons(
    addons: Iterable[Addon], service_id: UUID, exclusive_map: dict[UUID, UUID]
) -> list[Addon]:
    return [a for a in addons if is_addon_eligible(a, service_id, exclusive_map)]


def check_link(
    addon: Addon, service_id: UUID, linked_service_ids: Iterable[UUID]
) -> list[CommissionValidationError]:
    """Validate linking `addon` to `service_id` given its current links."""
    if not addon.is_exclusive:
        return []
    others = [sid for sid in linked_service_ids if sid != service_id]
    if others:
        return [
            CommissionValidationError(
                code="exclusive_addon_linked_elsewhere",
                message=f"Exclusive add-on '{addon.name}' is already linked to another service",
                field="addon_id",
            )
        ]
    return []


def check_mark_exclusive(linked_service_ids: Iterable[UUID]) -> list[CommissionValidationError]:
    """An add-on may only become exclusive while it has at most one link."""
    if len(set(linked_service_ids)) > 1:
        return [
            CommissionValidationError(
                code="addon_linked_to_multiple_services",
                message="An add-on linked to more than one service cannot be made exclusive",
                field="is_exclusive",
            )
        ]
    return []


def check_service_addon_set(
    service_id: UUID,
    addons: Iterable[Addon],
    linked_services: dict[UUID, list[UUID]],
) -> list[CommissionValidationError]:
    """Validate making `addons` the full add-on set of `service_id`."""
    errors: list[CommissionValidationError] = []
    for addon in addons:
        errors.extend(check_link(addon, service_id, linked_services.get(addon.addon_id, [])))
    return errors


def check_addon_service_set(
    addon: Addon, service_ids: Iterable[UUID]
) -> list[CommissionValidationError]:
    """Validate making `service_ids` the full service set of `addon`."""
    if addon.is_exclusive and len(set(service_ids)) > 1:
        return [
            CommissionValidationError(
                code="exclusive_addon_multiple_services",
                message=f"Exclusive add-on '{addon.name}' can be linked to one service only",
                field="service_ids",
            )
        ]
    return []


# --- Commission Service ---


@dataclass
class CommissionRepos:
    services: ServiceRepoPort
    styles: StyleRepoPort
    pictures: PictureRepoPort
    addons: AddonRepoPort
    links: ServiceAddonRepoPort


class CommissionService:
    """
    Commission catalog service.

    Every mutation declares the cache tags it dirties; reads go straight to
    the repositories (the public API caches on top of this).
    """

    def __init__(
        self,
        repos: CommissionRepos,
        storage: ObjectStoragePort | None = None,
        cache: CachePort | None = None,
        time_port: TimePort | None = None,
        content_rules: ContentRules | None = None,
    ) -> None:
        self._repos = repos
        self._storage = storage
        self._cache = cache
        self._time_port = time_port
        self._rules = content_rules

    def _now(self) -> datetime:
        if self._time_port:
            return self._time_port.now_utc()
        return datetime.now(UTC)

    def _invalidate(self, *tags: str) -> None:
        if self._cache is not None:
            self._cache.invalidate(*tags)

    def _invalidate_links(
        self, service_ids: Iterable[UUID] = (), addon_ids: Iterable[UUID] = ()
    ) -> None:
        tags = [TAG_SERVICES, TAG_ADDONS, TAG_EXCLUSIVE_ADDON_SERVICES]
        tags.extend(service_addons_tag(sid) for sid in service_ids)
        tags.extend(addon_services_tag(aid) for aid in addon_ids)
        self._invalidate(*tags)

    def _cleanup_images(self, paths: Iterable[str | None]) -> None:
        """Delete stored images after their rows are gone. Failures are logged only."""
        targets = [p for p in paths if p and is_storage_path(p)]
        if not targets or self._storage is None:
            return
        try:
            self._storage.delete(targets)
        except StorageError:
            logger.exception("Failed to delete %d stored images", len(targets))

    def _linked_services_for(self, addon_ids: Iterable[UUID]) -> dict[UUID, list[UUID]]:
        return {aid: self._repos.links.list_service_ids(aid) for aid in addon_ids}

    def _load_addons(
        self, addon_ids: Iterable[UUID]
    ) -> tuple[list[Addon], list[CommissionValidationError]]:
        addons: list[Addon] = []
        errors: list[CommissionValidationError] = []
        for addon_id in dict.fromkeys(addon_ids):
            addon = self._repos.addons.get_by_id(addon_id)
            if addon is None:
                errors.append(
                    CommissionValidationError(
                        code="addon_not_found",
                        message=f"Add-on {addon_id} not found",
                        field="addon_ids",
                    )
                )
            else:
                addons.append(addon)
        return addons, errors

    # --- Services: reads ---

    def list_services(self, active_only: bool = False) -> list[Service]:
        return self._repos.services.list_all(active_only=active_only)

    def get_service(self, service_id: UUID) -> Service | None:
        return self._repos.services.get_by_id(service_id)

    def _details(self, service: Service) -> ServiceDetails:
        addon_ids = self._repos.links.list_addon_ids(service.service_id)
        addons = [a for a in (self._repos.addons.get_by_id(aid) for aid in addon_ids) if a]
        addons.sort(key=lambda a: a.name.lower())
        return ServiceDetails(
            service=service,
            addons=addons,
            styles=self._repos.styles.list_for_service(service.service_id),
            pictures=self._repos.pictures.list_for_service(service.service_id),
        )

    def get_service_details(self, service_id: UUID) -> ServiceDetails | None:
        service = self._repos.services.get_by_id(service_id)
        return self._details(service) if service else None

    def get_service_by_slug(self, slug: str, active_only: bool = False) -> ServiceDetails | None:
        service = self._repos.services.get_by_slug(slug)
        if service is None or (active_only and not service.is_active):
            return None
        return self._details(service)

    def list_services_with_details(self, active_only: bool = False) -> list[ServiceDetails]:
        return [self._details(s) for s in self.list_services(active_only=active_only)]

    # --- Services: writes ---

    def _validate_service_fields(
        self, values: dict[str, Any]
    ) -> tuple[dict[str, Any], list[CommissionValidationError]]:
        errors: list[CommissionValidationError] = []
        clean = dict(values)

        if "name" in values:
            problem = check_title(values["name"], field="name", label="Name", rules=self._rules)
            if problem:
                errors.append(_error(problem, "name"))
            else:
                clean["name"] = values["name"].strip()

        if "base_price" in values:
            amount, problem = parse_decimal(
                values["base_price"], field="base_price", label="Base price", allow_negative=False
            )
            if problem:
                errors.append(_error(problem, "base_price"))
            else:
                clean["base_price"] = amount

        return clean, errors

    def create_service(
        self,
        name: str,
        slug: str | None = None,
        description: str | None = None,
        base_price: Decimal | str | int = Decimal("0"),
        is_active: bool = True,
        comm_link: str | None = None,
        addon_ids: Iterable[UUID] = (),
    ) -> tuple[Service | None, list[CommissionValidationError]]:
        """
        Create a service and link its initial add-ons.

        The initial add-on set obeys the exclusivity policy; if the links are
        rejected the service is removed again so nothing is left half-created.
        """
        values, errors = self._validate_service_fields({"name": name, "base_price": base_price})
        resolved_slug, problem = resolve_slug(slug, name, self._rules)
        if problem:
            errors.append(_error(problem, "slug"))

        addons, addon_errors = self._load_addons(addon_ids)
        errors.extend(addon_errors)
        if errors:
            return None, errors

        if self._repos.services.get_by_slug(resolved_slug) is not None:
            return None, [
                CommissionValidationError(
                    code="slug_exists",
                    message=f"A service with slug '{resolved_slug}' already exists",
                    field="slug",
                )
            ]

        service = Service(
            service_id=uuid4(),
            name=values["name"],
            slug=resolved_slug,
            description=description,
            base_price=values["base_price"],
            is_active=is_active,
            comm_link=comm_link,
            created_at=self._now(),
            updated_at=self._now(),
        )

        # A new service holds nothing yet, so any add-on linked elsewhere counts
        linked = self._linked_services_for(a.addon_id for a in addons)
        errors = check_service_addon_set(service.service_id, addons, linked)
        if errors:
            return None, errors

        saved = self._repos.services.save(service)
        if addons:
            try:
                self._repos.links.replace_service_addons(
                    saved.service_id, [a.addon_id for a in addons]
                )
            except IntegrityViolationError as exc:
                logger.warning("Initial add-on links rejected for %s: %s", saved.slug, exc.code)
                self._repos.services.delete(saved.service_id)
                return None, [_integrity_error(exc)]

        self._invalidate_links([saved.service_id], [a.addon_id for a in addons])
        return saved, []

    def update_service(
        self, service_id: UUID, updates: dict[str, Any]
    ) -> tuple[Service | None, list[CommissionValidationError]]:
        service = self._repos.services.get_by_id(service_id)
        if service is None:
            return None, [
                CommissionValidationError(
                    code="service_not_found", message=f"Service {service_id} not found"
                )
            ]

        errors = _unknown_fields(updates, SERVICE_FIELDS)
        problem = check_slug_unchanged(service.slug, updates)
        if problem:
            errors.append(_error(problem, "slug"))
        values, field_errors = self._validate_service_fields(updates)
        errors.extend(field_errors)
        if errors:
            return None, errors

        values.pop("slug", None)
        updated, problems = apply_updates(service, {**values, "updated_at": self._now()})
        if updated is None:
            return None, _field_errors(problems)
        saved = self._repos.services.save(updated)
        self._invalidate(TAG_SERVICES, service_addons_tag(service_id))
        return saved, []

    def delete_service(self, service_id: UUID) -> list[CommissionValidationError]:
        """Delete a service with its styles, pictures and links."""
        service = self._repos.services.get_by_id(service_id)
        if service is None:
            return [
                CommissionValidationError(
                    code="service_not_found", message=f"Service {service_id} not found"
                )
            ]

        image_paths = [p.image_url for p in self._repos.pictures.list_for_service(service_id)]
        addon_ids = self._repos.links.list_addon_ids(service_id)

        self._repos.services.delete(service_id)
        self._invalidate_links([service_id], addon_ids)
        self._cleanup_images(image_paths)
        return []

    # --- Add-ons ---

    def list_addons(self, addon_filter: AddonFilter = "all") -> list[Addon]:
        addons = self._repos.addons.list_all()
        if addon_filter == "exclusive":
            return [a for a in addons if a.is_exclusive]
        if addon_filter == "shared":
            return [a for a in addons if not a.is_exclusive]
        return addons

    def get_addon(self, addon_id: UUID) -> Addon | None:
        return self._repos.addons.get_by_id(addon_id)

    def _validate_addon_fields(
        self, values: dict[str, Any]
    ) -> tuple[dict[str, Any], list[CommissionValidationError]]:
        errors: list[CommissionValidationError] = []
        clean = dict(values)

        if "name" in values:
            problem = check_title(values["name"], field="name", label="Name", rules=self._rules)
            if problem:
                errors.append(_error(problem, "name"))
            else:
                clean["name"] = values["name"].strip()

        if "price_impact" in values:
            amount, problem = parse_decimal(
                values["price_impact"], field="price_impact", label="Price impact"
            )
            if problem:
                errors.append(_error(problem, "price_impact"))
            else:
                clean["price_impact"] = amount

        return clean, errors

    def create_addon(
        self,
        name: str,
        description: str | None = None,
        price_impact: Decimal | str | int = Decimal("0"),
        percentage: bool = False,
        is_exclusive: bool = False,
        service_ids: Iterable[UUID] = (),
    ) -> tuple[Addon | None, list[CommissionValidationError]]:
        values, errors = self._validate_addon_fields(
            {"name": name, "price_impact": price_impact}
        )
        wanted = list(dict.fromkeys(service_ids))
        for sid in wanted:
            if self._repos.services.get_by_id(sid) is None:
                errors.append(
                    CommissionValidationError(
                        code="service_not_found",
                        message=f"Service {sid} not found",
                        field="service_ids",
                    )
                )
        if errors:
            return None, errors

        addon = Addon(
            addon_id=uuid4(),
            name=values["name"],
            description=description,
            price_impact=values["price_impact"],
            percentage=percentage,
            is_exclusive=is_exclusive,
        )
        errors = check_addon_service_set(addon, wanted)
        if errors:
            return None, errors

        saved = self._repos.addons.save(addon)
        if wanted:
            try:
                self._repos.links.replace_addon_services(saved.addon_id, wanted)
            except IntegrityViolationError as exc:
                self._repos.addons.delete(saved.addon_id)
                return None, [_integrity_error(exc)]

        self._invalidate_links(wanted, [saved.addon_id])
        return saved, []

    def update_addon(
        self, addon_id: UUID, updates: dict[str, Any]
    ) -> tuple[Addon | None, list[CommissionValidationError]]:
        """
        Update an add-on.

        Turning `is_exclusive` on is rejected while the add-on has two or more
        links; the caller has to unlink first.
        """
        addon = self._repos.addons.get_by_id(addon_id)
        if addon is None:
            return None, [
                CommissionValidationError(code="addon_not_found", message=f"Add-on {addon_id} not found")
            ]

        errors = _unknown_fields(updates, ADDON_FIELDS)
        values, field_errors = self._validate_addon_fields(updates)
        errors.extend(field_errors)
        if errors:
            return None, errors

        updated, problems = apply_updates(addon, values)
        if updated is None:
            return None, _field_errors(problems)

        linked = self._repos.links.list_service_ids(addon_id)
        if updated.is_exclusive and not addon.is_exclusive:
            errors = check_mark_exclusive(linked)
            if errors:
                return None, errors

        try:
            saved = self._repos.addons.save(updated)
        except IntegrityViolationError as exc:
            return None, [_integrity_error(exc)]

        self._invalidate_links(linked, [addon_id])
        return saved, []

    def delete_addon(self, addon_id: UUID) -> list[CommissionValidationError]:
        if self._repos.addons.get_by_id(addon_id) is None:
            return [
                CommissionValidationError(code="addon_not_found", message=f"Add-on {addon_id} not found")
            ]
        linked = self._repos.links.list_service_ids(addon_id)
        self._repos.addons.delete(addon_id)
        self._invalidate_links(linked, [addon_id])
        return []

    # --- Links: reads ---

    def get_exclusive_addon_services(self) -> dict[UUID, UUID]:
        return build_exclusive_map(self._repos.addons.list_all(), self._repos.links.list_links())

    def get_linked_services_map(self) -> dict[UUID, list[UUID]]:
        linked: dict[UUID, list[UUID]] = {}
        for link in self._repos.links.list_links():
            services = linked.setdefault(link.addon_id, [])
            if link.service_id not in services:
                services.append(link.service_id)
        return linked

    def get_eligible_addons(self, service_id: UUID) -> list[Addon]:
        addons = self._repos.addons.list_all()
        exclusive_map = build_exclusive_map(addons, self._repos.links.list_links())
        return eligible_addons(addons, service_id, exclusive_map)

    def get_addons_for_service(self, service_id: UUID) -> list[Addon]:
        addon_ids = self._repos.links.list_addon_ids(service_id)
        addons = [a for a in (self._repos.addons.get_by_id(aid) for aid in addon_ids) if a]
        return sorted(addons, key=lambda a: a.name.lower())

    def get_services_for_addon(self, addon_id: UUID) -> list[Service]:
        service_ids = self._repos.links.list_service_ids(addon_id)
        services = [s for s in (self._repos.services.get_by_id(sid) for sid in service_ids) if s]
        return sorted(services, key=lambda s: s.name.lower())

    # --- Links: writes ---

    def _require_pair(
        self, service_id: UUID, addon_id: UUID
    ) -> tuple[Addon | None, list[CommissionValidationError]]:
        errors: list[CommissionValidationError] = []
        if self._repos.services.get_by_id(service_id) is None:
            errors.append(
                CommissionValidationError(
                    code="service_not_found", message=f"Service {service_id} not found"
                )
            )
        addon = self._repos.addons.get_by_id(addon_id)
        if addon is None:
            errors.append(
                CommissionValidationError(code="addon_not_found", message=f"Add-on {addon_id} not found")
            )
        return addon, errors

    def link_addon(
        self, service_id: UUID, addon_id: UUID
    ) -> tuple[ServiceAddonLink | None, list[CommissionValidationError]]:
        """Link an add-on to a service. Linking an existing pair is a no-op."""
        addon, errors = self._require_pair(service_id, addon_id)
        if errors or addon is None:
            return None, errors

        linked = self._repos.links.list_service_ids(addon_id)
        if service_id in linked:
            return (
                ServiceAddonLink(
                    service_id=service_id, addon_id=addon_id, addon_is_exclusive=addon.is_exclusive
                ),
                [],
            )

        errors = check_link(addon, service_id, linked)
        if errors:
            return None, errors

        try:
            link = self._repos.links.link(service_id, addon_id)
        except IntegrityViolationError as exc:
            logger.info("Link %s -> %s rejected by store: %s", addon_id, service_id, exc.code)
            return None, [_integrity_error(exc)]

        self._invalidate_links([service_id], [addon_id])
        return link, []

    def unlink_addon(self, service_id: UUID, addon_id: UUID) -> list[CommissionValidationError]:
        """Remove a link. Unlinking a pair that isn't linked is a no-op."""
        if self._repos.links.unlink(service_id, addon_id):
            self._invalidate_links([service_id], [addon_id])
        return []

    def set_service_addons(
        self, service_id: UUID, addon_ids: Iterable[UUID]
    ) -> tuple[list[UUID], list[CommissionValidationError]]:
        """Replace the add-on set of a service in one transaction."""
        if self._repos.services.get_by_id(service_id) is None:
            return [], [
                CommissionValidationError(
                    code="service_not_found", message=f"Service {service_id} not found"
                )
            ]

        addons, errors = self._load_addons(addon_ids)
        if errors:
            return [], errors

        linked = self._linked_services_for(a.addon_id for a in addons)
        errors = check_service_addon_set(service_id, addons, linked)
        if errors:
            return [], errors

        previous = self._repos.links.list_addon_ids(service_id)
        wanted = [a.addon_id for a in addons]
        try:
            self._repos.links.replace_service_addons(service_id, wanted)
        except IntegrityViolationError as exc:
            return [], [_integrity_error(exc)]

        self._invalidate_links([service_id], set(previous) | set(wanted))
        return wanted, []

    def set_addon_services(
        self, addon_id: UUID, service_ids: Iterable[UUID]
    ) -> tuple[list[UUID], list[CommissionValidationError]]:
        """Replace the service set of an add-on in one transaction."""
        addon = self._repos.addons.get_by_id(addon_id)
        if addon is None:
            return [], [
                CommissionValidationError(code="addon_not_found", message=f"Add-on {addon_id} not found")
            ]

        wanted = list(dict.fromkeys(service_ids))
        errors: list[CommissionValidationError] = []
        for sid in wanted:
            if self._repos.services.get_by_id(sid) is None:
                errors.append(
                    CommissionValidationError(
                        code="service_not_found",
                        message=f"Service {sid} not found",
                        field="service_ids",
                    )
                )
        errors.extend(check_addon_service_set(addon, wanted))
        if errors:
            return [], errors

        previous = self._repos.links.list_service_ids(addon_id)
        try:
            self._repos.links.replace_addon_services(addon_id, wanted)
        except IntegrityViolationError as exc:
            return [], [_integrity_error(exc)]

        self._invalidate_links(set(previous) | set(wanted), [addon_id])
        return wanted, []

    # --- Styles ---

    def list_styles(self, service_id: UUID) -> list[Style]:
        return self._repos.styles.list_for_service(service_id)

    def get_style(self, style_id: UUID) -> Style | None:
        return self._repos.styles.get_by_id(style_id)

    def create_style(
        self,
        service_id: UUID,
        name: str,
        slug: str | None = None,
        description: str | None = None,
    ) -> tuple[Style | None, list[CommissionValidationError]]:
        if self._repos.services.get_by_id(service_id) is None:
            return None, [
                CommissionValidationError(
                    code="service_not_found", message=f"Service {service_id} not found"
                )
            ]

        errors: list[CommissionValidationError] = []
        problem = check_title(name, field="name", label="Name", rules=self._rules)
        if problem:
            errors.append(_error(problem, "name"))
        resolved_slug, problem = resolve_slug(slug, name, self._rules)
        if problem:
            errors.append(_error(problem, "slug"))
        if errors:
            return None, errors

        if self._repos.styles.get_by_slug(service_id, resolved_slug) is not None:
            return None, [
                CommissionValidationError(
                    code="slug_exists",
                    message=f"This service already has a style with slug '{resolved_slug}'",
                    field="slug",
                )
            ]

        style = Style(
            style_id=uuid4(),
            service_id=service_id,
            name=name.strip(),
            slug=resolved_slug,
            description=description,
            created_at=self._now(),
        )
        saved = self._repos.styles.save(style)
        self._invalidate(TAG_SERVICES)
        return saved, []

    def create_style_with_images(
        self,
        service_id: UUID,
        name: str,
        images: Iterable[UploadedImage],
        slug: str | None = None,
        description: str | None = None,
    ) -> tuple[Style | None, list[Picture], list[CommissionValidationError]]:
        """
        Create a style, then upload its pictures.

        When the style is created but an upload fails, the style is kept and
        an `image_upload_failed` error is returned alongside it.
        """
        style, errors = self.create_style(service_id, name, slug=slug, description=description)
        if style is None:
            return None, [], errors
        pictures, upload_errors = self.upload_pictures(service_id, list(images), style.style_id)
        return style, pictures, upload_errors

    def update_style(
        self, style_id: UUID, updates: dict[str, Any]
    ) -> tuple[Style | None, list[CommissionValidationError]]:
        style = self._repos.styles.get_by_id(style_id)
        if style is None:
            return None, [
                CommissionValidationError(code="style_not_found", message=f"Style {style_id} not found")
            ]

        errors = _unknown_fields(updates, STYLE_FIELDS)
        problem = check_slug_unchanged(style.slug, updates)
        if problem:
            errors.append(_error(problem, "slug"))
        values = {k: v for k, v in updates.items() if k in STYLE_FIELDS and k != "slug"}
        if "name" in values:
            problem = check_title(values["name"], field="name", label="Name", rules=self._rules)
            if problem:
                errors.append(_error(problem, "name"))
            else:
                values["name"] = values["name"].strip()
        if errors:
            return None, errors

        updated, problems = apply_updates(style, values)
        if updated is None:
            return None, _field_errors(problems)
        saved = self._repos.styles.save(updated)
        self._invalidate(TAG_SERVICES)
        return saved, []

    def delete_style(self, style_id: UUID) -> list[CommissionValidationError]:
        style = self._repos.styles.get_by_id(style_id)
        if style is None:
            return [
                CommissionValidationError(code="style_not_found", message=f"Style {style_id} not found")
            ]
        image_paths = [p.image_url for p in self._repos.pictures.list_for_style(style_id)]
        self._repos.styles.delete(style_id)
        self._invalidate(TAG_SERVICES)
        self._cleanup_images(image_paths)
        return []

    # --- Pictures ---

    def list_pictures_for_service(self, service_id: UUID) -> list[Picture]:
        return self._repos.pictures.list_for_service(service_id)

    def list_pictures_for_style(self, style_id: UUID) -> list[Picture]:
        return self._repos.pictures.list_for_style(style_id)

    def get_picture(self, picture_id: UUID) -> Picture | None:
        return self._repos.pictures.get_by_id(picture_id)

    def _check_picture_parent(
        self, service_id: UUID, style_id: UUID | None
    ) -> list[CommissionValidationError]:
        if self._repos.services.get_by_id(service_id) is None:
            return [
                CommissionValidationError(
                    code="service_not_found", message=f"Service {service_id} not found"
                )
            ]
        if style_id is not None:
            style = self._repos.styles.get_by_id(style_id)
            if style is None:
                return [
                    CommissionValidationError(
                        code="style_not_found", message=f"Style {style_id} not found"
                    )
                ]
            if style.service_id != service_id:
                return [
                    CommissionValidationError(
                        code="style_service_mismatch",
                        message="Style belongs to a different service",
                        field="style_id",
                    )
                ]
        return []

    def create_picture(
        self,
        service_id: UUID,
        image_url: str,
        style_id: UUID | None = None,
        caption: str | None = None,
        is_primary_example: bool = False,
    ) -> tuple[Picture | None, list[CommissionValidationError]]:
        errors = self._check_picture_parent(service_id, style_id)
        if not image_url or not image_url.strip():
            errors.append(
                CommissionValidationError(
                    code="image_url_required", message="Image is required", field="image_url"
                )
            )
        if errors:
            return None, errors

        picture = Picture(
            picture_id=uuid4(),
            service_id=service_id,
            style_id=style_id,
            image_url=image_url.strip(),
            caption=caption,
            is_primary_example=False,
            uploaded_at=self._now(),
        )
        saved = self._repos.pictures.save(picture)
        if is_primary_example and style_id is not None:
            saved = self._repos.pictures.set_primary(style_id, saved.picture_id)
        self._invalidate(TAG_SERVICES)
        return saved, []

    def upload_pictures(
        self,
        service_id: UUID,
        images: list[UploadedImage],
        style_id: UUID | None = None,
    ) -> tuple[list[Picture], list[CommissionValidationError]]:
        """
        Upload images and create a picture row for each.

        Uploads that succeed are kept even when others fail; any failure is
        reported once as `image_upload_failed`.
        """
        errors = self._check_picture_parent(service_id, style_id)
        if errors:
            return [], errors
        if not images:
            return [], []
        if self._storage is None:
            return [], [
                CommissionValidationError(code="image_upload_failed", message=IMAGE_UPLOAD_FAILED)
            ]

        folder = f"services/{service_id}" + (f"/styles/{style_id}" if style_id else "")
        pictures: list[Picture] = []
        failed = 0
        for image in images:
            try:
                stored = self._storage.upload(
                    image.data,
                    path=folder,
                    filename=image.filename,
                    content_type=image.content_type,
                    upsert=True,
                )
            except StorageError:
                logger.exception("Upload of %s to %s failed", image.filename, folder)
                failed += 1
                continue
            picture, _ = self.create_picture(service_id, stored.path, style_id=style_id)
            if picture is not None:
                pictures.append(picture)

        if failed:
            return pictures, [
                CommissionValidationError(code="image_upload_failed", message=IMAGE_UPLOAD_FAILED)
            ]
        return pictures, []

    def update_picture(
        self, picture_id: UUID, updates: dict[str, Any]
    ) -> tuple[Picture | None, list[CommissionValidationError]]:
        """Update a picture; a replaced stored image is deleted afterwards."""
        picture = self._repos.pictures.get_by_id(picture_id)
        if picture is None:
            return None, [
                CommissionValidationError(
                    code="picture_not_found", message=f"Picture {picture_id} not found"
                )
            ]

        errors = _unknown_fields(updates, PICTURE_FIELDS)
        if "image_url" in updates and not (updates["image_url"] or "").strip():
            errors.append(
                CommissionValidationError(
                    code="image_url_required", message="Image is required", field="image_url"
                )
            )
        if errors:
            return None, errors

        values = {k: v for k, v in updates.items() if k in PICTURE_FIELDS}
        make_primary = bool(values.pop("is_primary_example", False))
        if "is_primary_example" in updates and not updates["is_primary_example"]:
            values["is_primary_example"] = False

        updated, problems = apply_updates(picture, values)
        if updated is None:
            return None, _field_errors(problems)

        old_image = picture.image_url
        saved = self._repos.pictures.save(updated)
        if make_primary and saved.style_id is not None:
            saved = self._repos.pictures.set_primary(saved.style_id, saved.picture_id)

        self._invalidate(TAG_SERVICES)
        if "image_url" in values and values["image_url"] != old_image:
            self._cleanup_images([old_image])
        return saved, []

    def delete_picture(self, picture_id: UUID) -> list[CommissionValidationError]:
        picture = self._repos.pictures.get_by_id(picture_id)
        if picture is None:
            return [
                CommissionValidationError(
                    code="picture_not_found", message=f"Picture {picture_id} not found"
                )
            ]
        self._repos.pictures.delete(picture_id)
        self._invalidate(TAG_SERVICES)
        self._cleanup_images([picture.image_url])
        return []

    def set_primary_picture(
        self, style_id: UUID, picture_id: UUID
    ) -> tuple[Picture | None, list[CommissionValidationError]]:
        """Make `picture_id` the primary example of its style, clearing the previous one."""
        if self._repos.styles.get_by_id(style_id) is None:
            return None, [
                CommissionValidationError(code="style_not_found", message=f"Style {style_id} not found")
            ]
        picture = self._repos.pictures.get_by_id(picture_id)
        if picture is None:
            return None, [
                CommissionValidationError(
                    code="picture_not_found", message=f"Picture {picture_id} not found"
                )
            ]
        if picture.style_id != style_id:
            return None, [
                CommissionValidationError(
                    code="picture_style_mismatch",
                    message="Picture does not belong to this style",
                    field="picture_id",
                )
            ]
        saved = self._repos.pictures.set_primary(style_id, picture_id)
        self._invalidate(TAG_SERVICES)
        return saved, []
