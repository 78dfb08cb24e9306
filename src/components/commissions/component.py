"""
Commissions component - entry points for the exclusivity-governed operations.

Shell Layer - runs the service and wraps results in outputs.
"""

from __future__ import annotations

from ._impl import CommissionService, eligible_addons
from .models import (
    AddonOperationOutput,
    AddonSetOutput,
    CreateAddonInput,
    CreateServiceInput,
    CreateStyleInput,
    EligibleAddonsInput,
    EligibleAddonsOutput,
    LinkAddonInput,
    LinkOperationOutput,
    ServiceOperationOutput,
    SetAddonServicesInput,
    SetServiceAddonsInput,
    StyleOperationOutput,
    UpdateAddonInput,
    UpdateServiceInput,
)


def run_create_service(
    inp: CreateServiceInput, service: CommissionService
) -> ServiceOperationOutput:
    """Create a service together with its initial add-on links."""
    created, errors = service.create_service(
        name=inp.name,
        slug=inp.slug,
        description=inp.description,
        base_price=inp.base_price,
        is_active=inp.is_active,
        comm_link=inp.comm_link,
        addon_ids=inp.addon_ids,
    )
    return ServiceOperationOutput(service=created, errors=errors, success=not errors)


def run_update_service(
    inp: UpdateServiceInput, service: CommissionService
) -> ServiceOperationOutput:
    updated, errors = service.update_service(inp.service_id, inp.updates)
    return ServiceOperationOutput(service=updated, errors=errors, success=not errors)


def run_create_addon(inp: CreateAddonInput, service: CommissionService) -> AddonOperationOutput:
    addon, errors = service.create_addon(
        name=inp.name,
        description=inp.description,
        price_impact=inp.price_impact,
        percentage=inp.percentage,
        is_exclusive=inp.is_exclusive,
        service_ids=inp.service_ids,
    )
    return AddonOperationOutput(addon=addon, errors=errors, success=not errors)


def run_update_addon(inp: UpdateAddonInput, service: CommissionService) -> AddonOperationOutput:
    """Update an add-on; marking it exclusive while multiply linked fails."""
    addon, errors = service.update_addon(inp.addon_id, inp.updates)
    return AddonOperationOutput(addon=addon, errors=errors, success=not errors)


def run_link_addon(inp: LinkAddonInput, service: CommissionService) -> LinkOperationOutput:
    link, errors = service.link_addon(inp.service_id, inp.addon_id)
    return LinkOperationOutput(link=link, errors=errors, success=not errors)


def run_unlink_addon(inp: LinkAddonInput, service: CommissionService) -> LinkOperationOutput:
    errors = service.unlink_addon(inp.service_id, inp.addon_id)
    return LinkOperationOutput(link=None, errors=errors, success=not errors)


def run_set_service_addons(
    inp: SetServiceAddonsInput, service: CommissionService
) -> AddonSetOutput:
    ids, errors = service.set_service_addons(inp.service_id, inp.addon_ids)
    return AddonSetOutput(ids=tuple(ids), errors=errors, success=not errors)


def run_set_addon_services(
    inp: SetAddonServicesInput, service: CommissionService
) -> AddonSetOutput:
    ids, errors = service.set_addon_services(inp.addon_id, inp.service_ids)
    return AddonSetOutput(ids=tuple(ids), errors=errors, success=not errors)


def run_eligible_addons(
    inp: EligibleAddonsInput, service: CommissionService
) -> EligibleAddonsOutput:
    """Add-ons that may be offered for linking to the service being edited."""
    addons = service.list_addons()
    exclusive_map = service.get_exclusive_addon_services()
    return EligibleAddonsOutput(
        addons=tuple(eligible_addons(addons, inp.service_id, exclusive_map)),
        exclusive_map=exclusive_map,
    )


def run_create_style_with_images(
    inp: CreateStyleInput, service: CommissionService
) -> StyleOperationOutput:
    """
    Create a style and upload its images.

    `success` is False when any upload failed, but `style` is still set: the
    style itself is kept.
    """
    style, pictures, errors = service.create_style_with_images(
        inp.service_id,
        inp.name,
        inp.images,
        slug=inp.slug,
        description=inp.description,
    )
    return StyleOperationOutput(
        style=style, pictures=tuple(pictures), errors=errors, success=not errors
    )

