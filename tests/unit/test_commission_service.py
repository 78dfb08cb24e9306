"""
Unit tests for CommissionService catalog CRUD.

Services, styles, pictures and add-ons against in-memory repositories.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from src.components.commissions import (
    IMAGE_UPLOAD_FAILED,
    CommissionService,
    CreateServiceInput,
    CreateStyleInput,
    EligibleAddonsInput,
    UpdateServiceInput,
    UploadedImage,
    run_create_service,
    run_create_style_with_images,
    run_eligible_addons,
    run_update_service,
)
from src.core.services.query_cache import QueryCache
from tests.fakes import MockObjectStorage, make_commission_repos


@pytest.fixture
def repos():
    return make_commission_repos()


@pytest.fixture
def storage():
    return MockObjectStorage(fail_on={"broken.png"})


@pytest.fixture
def cache():
    return QueryCache(ttl_seconds=60)


@pytest.fixture
def service(repos, storage, cache, clock, content_rules):
    return CommissionService(
        repos, storage=storage, cache=cache, time_port=clock, content_rules=content_rules
    )


@pytest.fixture
def headshot(service: CommissionService):
    created, errors = service.create_service(name="Headshot", base_price="25.50")
    assert errors == []
    return created


# --- Services ---


def test_create_service_derives_slug(service: CommissionService):
    created, errors = service.create_service(name="  Fullbody Illustration  ", base_price=80)

    assert errors == []
    assert created.name == "Fullbody Illustration"
    assert created.slug == "fullbody-illustration"
    assert created.base_price == Decimal("80")


def test_create_service_requires_name(service: CommissionService):
    created, errors = service.create_service(name="   ")

    assert created is None
    assert "name_required" in [e.code for e in errors]


def test_create_service_rejects_negative_price(service: CommissionService):
    created, errors = service.create_service(name="Sketch", base_price="-1")

    assert created is None
    assert errors[0].code == "base_price_negative"


def test_create_service_rejects_garbage_price(service: CommissionService):
    _, errors = service.create_service(name="Sketch", base_price="ten")
    assert errors[0].code == "base_price_invalid"


def test_create_service_rejects_duplicate_slug(service: CommissionService, headshot):
    created, errors = service.create_service(name="Headshot")

    assert created is None
    assert errors[0].code == "slug_exists"


def test_create_service_rejects_invalid_slug(service: CommissionService):
    _, errors = service.create_service(name="Sketch", slug="Not A Slug")
    assert errors[0].code == "slug_invalid"


def test_create_service_with_unknown_addon(service: CommissionService):
    _, errors = service.create_service(name="Sketch", addon_ids=[uuid4()])
    assert errors[0].code == "addon_not_found"


def test_update_service_keeps_slug(service: CommissionService, headshot):
    updated, errors = service.update_service(
        headshot.service_id, {"name": "Headshot Deluxe", "base_price": "40"}
    )

    assert errors == []
    assert updated.name == "Headshot Deluxe"
    assert updated.slug == "headshot"
    assert updated.base_price == Decimal("40")


def test_update_service_rejects_slug_change(service: CommissionService, headshot):
    updated, errors = service.update_service(headshot.service_id, {"slug": "new-slug"})

    assert updated is None
    assert errors[0].code == "slug_immutable"


def test_update_service_accepts_unchanged_slug(service: CommissionService, headshot):
    updated, errors = service.update_service(
        headshot.service_id, {"slug": "headshot", "is_active": False}
    )

    assert errors == []
    assert updated.is_active is False


def test_update_service_rejects_unknown_field(service: CommissionService, headshot):
    _, errors = service.update_service(headshot.service_id, {"service_id": str(uuid4())})
    assert errors[0].code == "field_not_editable"


def test_update_missing_service(service: CommissionService):
    _, errors = service.update_service(uuid4(), {"name": "X"})
    assert errors[0].code == "service_not_found"


def test_list_services_active_only(service: CommissionService, headshot):
    hidden, _ = service.create_service(name="Retired", is_active=False)

    assert {s.slug for s in service.list_services()} == {"headshot", "retired"}
    assert [s.slug for s in service.list_services(active_only=True)] == ["headshot"]
    assert service.get_service_by_slug("retired", active_only=True) is None
    assert service.get_service_by_slug("retired").service == hidden


def test_delete_service_cascades_and_cleans_images(
    service: CommissionService, repos, storage, headshot
):
    style, _ = service.create_style(headshot.service_id, "Flat Colour")
    picture, _ = service.create_picture(
        headshot.service_id, "services/x/flat.png", style_id=style.style_id
    )
    addon, _ = service.create_addon(name="Background", service_ids=[headshot.service_id])

    assert service.delete_service(headshot.service_id) == []

    assert repos.services.get_by_id(headshot.service_id) is None
    assert repos.styles.get_by_id(style.style_id) is None
    assert repos.pictures.get_by_id(picture.picture_id) is None
    assert repos.links.list_service_ids(addon.addon_id) == []
    assert storage.deleted == ["services/x/flat.png"]


def test_delete_service_survives_storage_failure(service: CommissionService, storage, headshot):
    service.create_picture(headshot.service_id, "services/x/a.png")
    storage.fail_delete = True

    assert service.delete_service(headshot.service_id) == []


def test_delete_missing_service(service: CommissionService):
    assert service.delete_service(uuid4())[0].code == "service_not_found"


def test_service_details(service: CommissionService, headshot):
    service.create_style(headshot.service_id, "Lineart")
    service.create_addon(name="Zebra Pattern", service_ids=[headshot.service_id])
    service.create_addon(name="Alpha Glow", service_ids=[headshot.service_id])

    details = service.get_service_details(headshot.service_id)

    assert details.service == headshot
    assert [a.name for a in details.addons] == ["Alpha Glow", "Zebra Pattern"]
    assert [s.slug for s in details.styles] == ["lineart"]


# --- Cache invalidation ---


def test_link_mutation_invalidates_tags(service: CommissionService, cache, headshot):
    addon, _ = service.create_addon(name="Background")
    for key, tag in [
        ("services", "services"),
        ("addons", "addons"),
        ("exclusive", "exclusive-addon-services"),
        ("service-addons", f"service-addons:{headshot.service_id}"),
        ("addon-services", f"addon-services:{addon.addon_id}"),
        ("unrelated", "blog"),
    ]:
        cache.set(key, True, tags=[tag])

    service.link_addon(headshot.service_id, addon.addon_id)

    assert len(cache) == 1
    assert cache.get("unrelated") is True


def test_failed_link_leaves_cache_alone(service: CommissionService, cache, headshot):
    cache.set("services", True, tags=["services"])
    service.link_addon(headshot.service_id, uuid4())
    assert cache.get("services") is True


# --- Add-ons ---


def test_create_addon_with_services(service: CommissionService, headshot):
    addon, errors = service.create_addon(
        name="Extra Character",
        price_impact="15",
        is_exclusive=True,
        service_ids=[headshot.service_id],
    )

    assert errors == []
    assert addon.price_impact == Decimal("15")
    assert service.get_services_for_addon(addon.addon_id) == [headshot]


def test_create_addon_with_unknown_service(service: CommissionService):
    addon, errors = service.create_addon(name="Background", service_ids=[uuid4()])

    assert addon is None
    assert errors[0].code == "service_not_found"


def test_list_addons_filters(service: CommissionService):
    service.create_addon(name="Extra Character", is_exclusive=True)
    service.create_addon(name="Background")

    assert [a.name for a in service.list_addons("all")] == ["Background", "Extra Character"]
    assert [a.name for a in service.list_addons("exclusive")] == ["Extra Character"]
    assert [a.name for a in service.list_addons("shared")] == ["Background"]


def test_percentage_addon_allows_negative_impact(service: CommissionService):
    addon, errors = service.create_addon(name="Discount", price_impact="-10", percentage=True)

    assert errors == []
    assert addon.price_impact == Decimal("-10")
    assert addon.percentage


def test_linked_services_map(service: CommissionService, headshot):
    sketch, _ = service.create_service(name="Sketch")
    addon, _ = service.create_addon(
        name="Background", service_ids=[headshot.service_id, sketch.service_id]
    )

    linked = service.get_linked_services_map()

    assert set(linked[addon.addon_id]) == {headshot.service_id, sketch.service_id}


def test_run_eligible_addons_returns_map(service: CommissionService, headshot):
    sketch, _ = service.create_service(name="Sketch")
    extra, _ = service.create_addon(
        name="Extra Character", is_exclusive=True, service_ids=[headshot.service_id]
    )

    result = run_eligible_addons(EligibleAddonsInput(service_id=sketch.service_id), service)

    assert extra.addon_id not in {a.addon_id for a in result.addons}
    assert result.exclusive_map == {extra.addon_id: headshot.service_id}


# --- Styles & pictures ---


def test_style_slug_unique_per_service(service: CommissionService, headshot):
    sketch, _ = service.create_service(name="Sketch")
    service.create_style(headshot.service_id, "Flat Colour")

    _, errors = service.create_style(headshot.service_id, "Flat Colour")
    other, other_errors = service.create_style(sketch.service_id, "Flat Colour")

    assert errors[0].code == "slug_exists"
    assert other_errors == []
    assert other.slug == "flat-colour"


def test_style_for_missing_service(service: CommissionService):
    _, errors = service.create_style(uuid4(), "Flat Colour")
    assert errors[0].code == "service_not_found"


def test_update_style_rejects_slug_change(service: CommissionService, headshot):
    style, _ = service.create_style(headshot.service_id, "Flat Colour")
    _, errors = service.update_style(style.style_id, {"slug": "painted"})
    assert errors[0].code == "slug_immutable"


def test_set_primary_picture_is_exclusive_per_style(service: CommissionService, repos, headshot):
    style, _ = service.create_style(headshot.service_id, "Flat Colour")
    first, _ = service.create_picture(
        headshot.service_id, "a.png", style_id=style.style_id, is_primary_example=True
    )
    second, _ = service.create_picture(headshot.service_id, "b.png", style_id=style.style_id)

    saved, errors = service.set_primary_picture(style.style_id, second.picture_id)

    assert errors == []
    assert saved.is_primary_example
    assert repos.pictures.get_by_id(first.picture_id).is_primary_example is False


def test_set_primary_picture_rejects_other_style(service: CommissionService, headshot):
    a, _ = service.create_style(headshot.service_id, "Flat Colour")
    b, _ = service.create_style(headshot.service_id, "Painted")
    picture, _ = service.create_picture(headshot.service_id, "a.png", style_id=a.style_id)

    _, errors = service.set_primary_picture(b.style_id, picture.picture_id)

    assert errors[0].code == "picture_style_mismatch"


def test_picture_style_must_belong_to_service(service: CommissionService, headshot):
    sketch, _ = service.create_service(name="Sketch")
    style, _ = service.create_style(sketch.service_id, "Lineart")

    _, errors = service.create_picture(headshot.service_id, "a.png", style_id=style.style_id)

    assert errors[0].code == "style_service_mismatch"


def test_update_picture_removes_replaced_image(service: CommissionService, storage, headshot):
    picture, _ = service.create_picture(headshot.service_id, "services/old.png")

    updated, errors = service.update_picture(
        picture.picture_id, {"image_url": "services/new.png", "caption": "New"}
    )

    assert errors == []
    assert updated.image_url == "services/new.png"
    assert storage.deleted == ["services/old.png"]


def test_update_picture_keeps_external_urls(service: CommissionService, storage, headshot):
    picture, _ = service.create_picture(headshot.service_id, "https://example.com/a.png")
    service.update_picture(picture.picture_id, {"image_url": "services/new.png"})
    assert storage.deleted == []


def test_upload_pictures_partial_failure(service: CommissionService, repos, headshot):
    pictures, errors = service.upload_pictures(
        headshot.service_id,
        [
            UploadedImage(filename="good.png", data=b"png", content_type="image/png"),
            UploadedImage(filename="broken.png", data=b"png", content_type="image/png"),
        ],
    )

    assert [p.image_url for p in pictures] == [f"services/{headshot.service_id}/good.png"]
    assert errors[0].code == "image_upload_failed"
    assert errors[0].message == IMAGE_UPLOAD_FAILED
    assert len(repos.pictures.list_for_service(headshot.service_id)) == 1


def test_create_style_with_images_keeps_style_on_failure(
    service: CommissionService, repos, headshot
):
    result = run_create_style_with_images(
        CreateStyleInput(
            service_id=headshot.service_id,
            name="Painted",
            images=(UploadedImage(filename="broken.png", data=b"x"),),
        ),
        service,
    )

    assert result.style is not None
    assert result.pictures == ()
    assert result.errors[0].code == "image_upload_failed"
    assert repos.styles.get_by_slug(headshot.service_id, "painted") is not None


def test_upload_without_storage_fails(repos, content_rules):
    service = CommissionService(repos, content_rules=content_rules)
    created, _ = service.create_service(name="Sketch")

    pictures, errors = service.upload_pictures(
        created.service_id, [UploadedImage(filename="a.png", data=b"x")]
    )

    assert pictures == []
    assert errors[0].code == "image_upload_failed"


# --- Entry points ---


def test_run_create_service_output(service: CommissionService):
    result = run_create_service(CreateServiceInput(name="Chibi", base_price="12"), service)

    assert result.success
    assert result.service.slug == "chibi"


def test_run_update_service_output(service: CommissionService, headshot):
    result = run_update_service(
        UpdateServiceInput(service_id=headshot.service_id, updates={"slug": "other"}), service
    )

    assert not result.success
    assert result.service is None
