"""
Commissions component - services, styles, pictures, add-ons and the
add-on exclusivity policy.

Invariants:
- An exclusive add-on is linked to at most one service
- A rejected link mutation leaves the existing links untouched
- Service and style slugs never change after creation
"""

from ._impl import (
    IMAGE_UPLOAD_FAILED,
    CommissionRepos,
    CommissionService,
    build_exclusive_map,
    check_addon_service_set,
    check_link,
    check_mark_exclusive,
    check_service_addon_set,
    eligible_addons,
    is_addon_eligible,
    is_storage_path,
)
from .component import (
    run_create_addon,
    run_create_service,
    run_create_style_with_images,
    run_eligible_addons,
    run_link_addon,
    run_set_addon_services,
    run_set_service_addons,
    run_unlink_addon,
    run_update_addon,
    run_update_service,
)
from .models import (
    AddonOperationOutput,
    AddonSetOutput,
    CommissionValidationError,
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
    UploadedImage,
)
from .ports import (
    AddonRepoPort,
    PictureRepoPort,
    ServiceAddonRepoPort,
    ServiceRepoPort,
    StyleRepoPort,
)

__all__ = [
    # Entry points
    "run_create_service",
    "run_update_service",
    "run_create_style_with_images",
    "run_create_addon",
    "run_update_addon",
    "run_link_addon",
    "run_unlink_addon",
    "run_set_service_addons",
    "run_set_addon_services",
    "run_eligible_addons",
    # Policy
    "build_exclusive_map",
    "is_addon_eligible",
    "eligible_addons",
    "check_link",
    "check_mark_exclusive",
    "check_service_addon_set",
    "check_addon_service_set",
    "is_storage_path",
    # Service
    "CommissionRepos",
    "CommissionService",
    "IMAGE_UPLOAD_FAILED",
    # Models
    "CommissionValidationError",
    "CreateServiceInput",
    "UpdateServiceInput",
    "CreateStyleInput",
    "CreateAddonInput",
    "UpdateAddonInput",
    "LinkAddonInput",
    "SetServiceAddonsInput",
    "SetAddonServicesInput",
    "EligibleAddonsInput",
    "EligibleAddonsOutput",
    "ServiceOperationOutput",
    "AddonOperationOutput",
    "LinkOperationOutput",
    "AddonSetOutput",
    "StyleOperationOutput",
    "UploadedImage",
    # Ports
    "ServiceRepoPort",
    "StyleRepoPort",
    "PictureRepoPort",
    "AddonRepoPort",
    "ServiceAddonRepoPort",
]
