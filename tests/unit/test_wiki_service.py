"""
Unit tests for WikiService.

Stories own worlds; worlds own characters, factions and locations. Slugs are
scoped to the parent, deletes are soft, and public reads only reach stories
that are published and public. Characters carry a gallery and outfits whose
stored images are cleaned up when replaced or deleted.
"""

from uuid import uuid4

import pytest

from src.components.wiki import (
    AddGalleryItemInput,
    AddMembershipInput,
    CreateOutfitInput,
    CreateOutfitTypeInput,
    CreateWikiEntityInput,
    DeleteWikiEntityInput,
    ReorderGalleryInput,
    UpdateWikiEntityInput,
    WikiService,
    is_publicly_visible,
    run_add_gallery_item,
    run_add_membership,
    run_create,
    run_create_outfit,
    run_create_outfit_type,
    run_delete,
    run_reorder_gallery,
    run_update,
    validate_choices,
)
from src.core.services.query_cache import TAG_WIKI, QueryCache
from tests.fakes import MockObjectStorage, make_wiki_repos


@pytest.fixture
def repos():
    return make_wiki_repos()


@pytest.fixture
def cache():
    return QueryCache(ttl_seconds=60)


@pytest.fixture
def storage():
    return MockObjectStorage()


@pytest.fixture
def service(repos, storage, cache, clock, content_rules):
    return WikiService(
        repos, storage=storage, cache=cache, time_port=clock, content_rules=content_rules
    )


@pytest.fixture
def story(service):
    created, errors = service.create(
        "story", None, {"title": "The Long Night", "is_published": True}
    )
    assert errors == []
    return created


@pytest.fixture
def world(service, story):
    created, errors = service.create("world", story.id, {"name": "Ashfall"})
    assert errors == []
    return created


@pytest.fixture
def character(service, world):
    created, errors = service.create("character", world.id, {"name": "Vess", "status": "alive"})
    assert errors == []
    return created


@pytest.fixture
def faction(service, world):
    created, errors = service.create("faction", world.id, {"name": "The Ember Court"})
    assert errors == []
    return created


class TestValidateChoices:
    def test_unknown_visibility(self):
        assert validate_choices({"visibility": "secret"})[0].code == "visibility_invalid"

    def test_unknown_status(self):
        assert validate_choices({"status": "asleep"})[0].code == "status_invalid"

    def test_known_values_pass(self):
        assert validate_choices({"visibility": "unlisted", "status": "missing"}) == []


class TestCreate:
    def test_slug_derived_from_title(self, story, clock):
        assert story.slug == "the-long-night"
        assert story.created_at == clock.now_utc()

    def test_slug_unique_within_parent(self, service, story, world):
        _, errors = service.create("world", story.id, {"name": "Ashfall"})
        assert errors[0].code == "slug_exists"

    def test_same_slug_under_other_parent(self, service, story, world):
        other, _ = service.create("story", None, {"title": "Second Story"})
        created, errors = service.create("world", other.id, {"name": "Ashfall"})
        assert errors == []
        assert created.slug == world.slug

    def test_missing_parent(self, service):
        _, errors = service.create("character", uuid4(), {"name": "Nobody"})
        assert errors[0].code == "world_not_found"
        assert errors[0].field == "world_id"

    def test_deleted_parent_is_missing(self, service, story, world):
        service.delete("world", world.id)
        _, errors = service.create("faction", world.id, {"name": "Late Arrivals"})
        assert errors[0].code == "world_not_found"

    def test_title_required(self, service, world):
        _, errors = service.create("character", world.id, {"name": "  "})
        assert "name_required" in [e.code for e in errors]

    def test_unknown_field(self, service, world):
        _, errors = service.create("faction", world.id, {"name": "Guild", "motto": "Hi"})
        assert errors[0].code == "field_not_editable"
        assert errors[0].field == "motto"

    def test_invalid_status(self, service, world):
        _, errors = service.create("character", world.id, {"name": "Ren", "status": "asleep"})
        assert errors[0].code == "status_invalid"

    def test_create_invalidates_cache(self, service, cache, story):
        cache.set("public:stories", [], tags=[TAG_WIKI])
        service.create("world", story.id, {"name": "Cinder"})
        assert cache.get("public:stories") is None


class TestLocations:
    def test_nested_location(self, service, world):
        city, _ = service.create("location", world.id, {"name": "City"})
        district, errors = service.create(
            "location", world.id, {"name": "Docks", "parent_location_id": str(city.id)}
        )
        assert errors == []
        assert district.parent_location_id == city.id

    def test_parent_from_other_world(self, service, story, world):
        other_world, _ = service.create("world", story.id, {"name": "Elsewhere"})
        far, _ = service.create("location", other_world.id, {"name": "Far"})
        _, errors = service.create(
            "location", world.id, {"name": "Near", "parent_location_id": far.id}
        )
        assert errors[0].code == "parent_location_invalid"

    def test_cycle_rejected(self, service, world):
        top, _ = service.create("location", world.id, {"name": "Top"})
        middle, _ = service.create(
            "location", world.id, {"name": "Middle", "parent_location_id": top.id}
        )
        bottom, _ = service.create(
            "location", world.id, {"name": "Bottom", "parent_location_id": middle.id}
        )
        _, errors = service.update("location", top.id, {"parent_location_id": bottom.id})
        assert errors[0].code == "parent_location_invalid"

    def test_own_parent_rejected(self, service, world):
        spot, _ = service.create("location", world.id, {"name": "Spot"})
        _, errors = service.update("location", spot.id, {"parent_location_id": spot.id})
        assert errors[0].code == "parent_location_invalid"

    def test_garbage_parent_id(self, service, world):
        _, errors = service.create(
            "location", world.id, {"name": "Spot", "parent_location_id": "not-a-uuid"}
        )
        assert errors[0].code == "parent_location_invalid"

    def test_clearing_parent(self, service, world):
        top, _ = service.create("location", world.id, {"name": "Top"})
        child, _ = service.create(
            "location", world.id, {"name": "Child", "parent_location_id": top.id}
        )
        updated, errors = service.update("location", child.id, {"parent_location_id": None})
        assert errors == []
        assert updated.parent_location_id is None


class TestUpdateAndDelete:
    def test_update_fields(self, service, character, clock):
        clock.advance(30)
        updated, errors = service.update(
            "character", character.id, {"nickname": "V", "name": " Vess "}
        )
        assert errors == []
        assert updated.nickname == "V"
        assert updated.name == "Vess"
        assert updated.updated_at > character.updated_at
        assert updated.created_at == character.created_at

    def test_slug_is_immutable(self, service, character):
        _, errors = service.update("character", character.id, {"slug": "other"})
        assert errors[0].code == "slug_immutable"

    def test_same_slug_is_accepted(self, service, character):
        _, errors = service.update("character", character.id, {"slug": character.slug})
        assert errors == []

    def test_update_missing(self, service):
        _, errors = service.update("faction", uuid4(), {"name": "x"})
        assert errors[0].code == "faction_not_found"

    def test_soft_delete_hides_entity(self, service, repos, character):
        assert service.delete("character", character.id) == []
        assert service.get("character", character.id) is None
        assert service.get("character", character.id, include_deleted=True) is not None
        assert repos.characters.items[character.id].deleted_at is not None

    def test_delete_twice(self, service, character):
        service.delete("character", character.id)
        assert service.delete("character", character.id)[0].code == "character_not_found"

    def test_slug_reusable_after_delete(self, service, world, character):
        service.delete("character", character.id)
        _, errors = service.create("character", world.id, {"name": "Vess"})
        assert errors == []


class TestPublicReads:
    def test_draft_story_is_hidden(self, service):
        draft, _ = service.create("story", None, {"title": "Draft"})
        assert not is_publicly_visible(draft)
        assert service.get_public_story("draft") is None

    def test_private_story_is_hidden(self, service, story):
        service.update("story", story.id, {"visibility": "private"})
        assert service.list_public_stories() == []

    def test_published_public_story(self, service, story, world):
        found = service.get_public_story(story.slug)
        assert found is not None
        public_story, worlds = found
        assert public_story.id == story.id
        assert [w.id for w in worlds] == [world.id]

    def test_world_contents_skip_deleted(self, service, story, world, character, faction):
        service.delete("faction", faction.id)
        contents = service.get_public_world_contents(story.slug, world.slug)
        assert [c.id for c in contents["characters"]] == [character.id]
        assert contents["factions"] == []
        assert contents["locations"] == []

    def test_deleted_story_hides_children(self, service, story, world, character):
        service.delete("story", story.id)
        assert service.get_public_world(story.slug, world.slug) is None
        assert service.get_public_character(story.slug, world.slug, character.slug) is None

    def test_public_character_with_memberships(self, service, story, world, character, faction):
        service.add_membership(character.id, faction.id, role="Spy")
        found = service.get_public_character(story.slug, world.slug, character.slug)
        assert found is not None
        _, memberships = found
        assert [m.role for m in memberships] == ["Spy"]


class TestMemberships:
    def test_add_membership(self, service, character, faction):
        membership, errors = service.add_membership(character.id, faction.id, rank="Captain")
        assert errors == []
        assert membership.is_current is True
        assert service.list_memberships_for_faction(faction.id) == [membership]

    def test_member_at_most_once(self, service, character, faction):
        service.add_membership(character.id, faction.id)
        _, errors = service.add_membership(character.id, faction.id, role="Again")
        assert errors[0].code == "membership_exists"

    def test_unknown_character_and_faction(self, service):
        _, errors = service.add_membership(uuid4(), uuid4())
        assert [e.code for e in errors] == ["character_not_found", "faction_not_found"]

    def test_update_membership(self, service, character, faction):
        membership, _ = service.add_membership(character.id, faction.id)
        updated, errors = service.update_membership(
            membership.id, {"is_current": False, "leave_date": "Year 9"}
        )
        assert errors == []
        assert updated.is_current is False
        assert updated.leave_date == "Year 9"

    def test_membership_pair_not_editable(self, service, character, faction):
        membership, _ = service.add_membership(character.id, faction.id)
        _, errors = service.update_membership(membership.id, {"faction_id": uuid4()})
        assert errors[0].code == "field_not_editable"

    def test_remove_membership(self, service, character, faction):
        membership, _ = service.add_membership(character.id, faction.id)
        assert service.remove_membership(membership.id) == []
        assert service.remove_membership(membership.id)[0].code == "membership_not_found"


class TestShell:
    def test_run_create_update_delete(self, service, story):
        created = run_create(
            CreateWikiEntityInput(kind="world", values={"name": "Brine"}, parent_id=story.id),
            service,
        )
        assert created.success
        updated = run_update(
            UpdateWikiEntityInput(
                kind="world", entity_id=created.entity.id, updates={"summary": "Salt"}
            ),
            service,
        )
        assert updated.entity.summary == "Salt"
        deleted = run_delete(
            DeleteWikiEntityInput(kind="world", entity_id=created.entity.id), service
        )
        assert deleted.success

    def test_run_add_membership(self, service, character, faction):
        out = run_add_membership(
            AddMembershipInput(character_id=character.id, faction_id=faction.id, role="Scout"),
            service,
        )
        assert out.success
        assert out.membership.role == "Scout"

    def test_run_gallery_shells(self, service, character):
        first = run_add_gallery_item(
            AddGalleryItemInput(
                character_id=character.id, values={"title": "Ref", "image_url": "g/ref.png"}
            ),
            service,
        )
        second = run_add_gallery_item(
            AddGalleryItemInput(
                character_id=character.id, values={"title": "Alt", "image_url": "g/alt.png"}
            ),
            service,
        )
        assert first.success and second.success
        out = run_reorder_gallery(
            ReorderGalleryInput(
                character_id=character.id, item_ids=[second.item.id, first.item.id]
            ),
            service,
        )
        assert [i.title for i in out.items] == ["Alt", "Ref"]

    def test_run_outfit_shells(self, service, character):
        casual = run_create_outfit_type(CreateOutfitTypeInput(values={"name": "Casual"}), service)
        assert casual.outfit_type.slug == "casual"
        out = run_create_outfit(
            CreateOutfitInput(
                character_id=character.id,
                values={"name": "Road Leathers", "outfit_type_id": casual.outfit_type.id},
            ),
            service,
        )
        assert out.success
        assert out.outfit.outfit_type_id == casual.outfit_type.id


@pytest.fixture
def gallery_item(service, character):
    item, errors = service.add_gallery_item(
        character.id,
        {
            "title": "Commission by Rook",
            "image_url": "characters/vess/gallery/rook.png",
            "thumbnail_url": "characters/vess/gallery/rook-thumb.png",
            "tags": ["Ink", " ink ", "portrait"],
        },
    )
    assert errors == []
    return item


class TestGallery:
    def test_add_item(self, service, character, gallery_item):
        assert gallery_item.character_id == character.id
        assert gallery_item.tags == ["Ink", "portrait"]
        assert gallery_item.display_order == 0
        assert service.list_gallery(character.id) == [gallery_item]

    def test_new_items_go_last(self, service, character, gallery_item):
        item, _ = service.add_gallery_item(character.id, {"title": "B", "image_url": "g/b.png"})
        assert item.display_order == 1

    def test_title_and_image_required(self, service, character):
        _, errors = service.add_gallery_item(character.id, {})
        assert {e.code for e in errors} == {"title_required", "image_url_required"}

    def test_unknown_field(self, service, character):
        _, errors = service.add_gallery_item(
            character.id, {"title": "A", "image_url": "g/a.png", "character_id": uuid4()}
        )
        assert errors[0].code == "field_not_editable"

    def test_unknown_character(self, service):
        _, errors = service.add_gallery_item(uuid4(), {"title": "A", "image_url": "g/a.png"})
        assert errors[0].code == "character_not_found"

    def test_deleted_character_has_no_gallery_writes(self, service, character):
        service.delete("character", character.id)
        _, errors = service.add_gallery_item(character.id, {"title": "A", "image_url": "g/a.png"})
        assert errors[0].code == "character_not_found"

    def test_update(self, service, gallery_item):
        updated, errors = service.update_gallery_item(
            gallery_item.id, {"artist_name": "Rook", "is_featured": True}
        )
        assert errors == []
        assert updated.artist_name == "Rook"
        assert updated.is_featured is True

    @pytest.mark.parametrize(
        "updates, code",
        [
            ({"image_url": None}, "image_url_required"),
            ({"title": None}, "title_required"),
            ({"is_featured": None}, "is_featured_invalid"),
            ({"display_order": None}, "display_order_invalid"),
            ({"display_order": "first"}, "display_order_invalid"),
            ({"tags": "ink"}, "tags_invalid"),
        ],
    )
    def test_update_rejects_bad_values(self, service, gallery_item, updates, code):
        updated, errors = service.update_gallery_item(gallery_item.id, updates)
        assert updated is None
        assert errors[0].code == code

    def test_replacing_image_deletes_old_file(self, service, storage, gallery_item):
        service.update_gallery_item(gallery_item.id, {"image_url": "characters/vess/new.png"})
        assert storage.deleted == ["characters/vess/gallery/rook.png"]

    def test_delete_is_soft_and_removes_files(self, service, repos, storage, gallery_item):
        assert service.delete_gallery_item(gallery_item.id) == []
        assert service.get_gallery_item(gallery_item.id) is None
        assert repos.gallery.get_by_id(gallery_item.id, include_deleted=True) is not None
        assert sorted(storage.deleted) == [
            "characters/vess/gallery/rook-thumb.png",
            "characters/vess/gallery/rook.png",
        ]
        assert service.delete_gallery_item(gallery_item.id)[0].code == "gallery_item_not_found"

    def test_delete_survives_storage_failure(self, service, storage, gallery_item):
        storage.fail_delete = True
        assert service.delete_gallery_item(gallery_item.id) == []

    def test_external_images_are_kept(self, service, storage, character):
        item, _ = service.add_gallery_item(
            character.id, {"title": "Linked", "image_url": "https://art.example/vess.png"}
        )
        service.delete_gallery_item(item.id)
        assert storage.deleted == []

    def test_reorder(self, service, character, gallery_item):
        second, _ = service.add_gallery_item(character.id, {"title": "B", "image_url": "g/b.png"})
        items, errors = service.reorder_gallery(character.id, [second.id, gallery_item.id])
        assert errors == []
        assert [i.id for i in items] == [second.id, gallery_item.id]
        assert [i.display_order for i in items] == [0, 1]

    @pytest.mark.parametrize("shape", ["missing", "duplicate", "stranger"])
    def test_reorder_needs_every_item_once(self, service, character, gallery_item, shape):
        second, _ = service.add_gallery_item(character.id, {"title": "B", "image_url": "g/b.png"})
        item_ids = {
            "missing": [second.id],
            "duplicate": [second.id, second.id, gallery_item.id],
            "stranger": [second.id, gallery_item.id, uuid4()],
        }[shape]
        _, errors = service.reorder_gallery(character.id, item_ids)
        assert errors[0].code == "gallery_order_invalid"

    def test_writes_invalidate_cache(self, service, cache, character, gallery_item):
        cache.set("public:stories", [], tags=[TAG_WIKI])
        service.update_gallery_item(gallery_item.id, {"description": "Sketch"})
        assert cache.get("public:stories") is None


@pytest.fixture
def outfit_type(service):
    created, errors = service.create_outfit_type({"name": "Formal", "icon": "crown"})
    assert errors == []
    return created


class TestOutfitTypes:
    def test_create_derives_slug(self, outfit_type):
        assert outfit_type.slug == "formal"

    def test_slug_unique(self, service, outfit_type):
        _, errors = service.create_outfit_type({"name": "Formal"})
        assert errors[0].code == "slug_exists"

    def test_name_required(self, service):
        _, errors = service.create_outfit_type({"icon": "x"})
        assert errors[0].code == "name_required"

    def test_update_keeps_slug(self, service, outfit_type):
        updated, errors = service.update_outfit_type(outfit_type.id, {"name": "Court Dress"})
        assert errors == []
        assert (updated.name, updated.slug) == ("Court Dress", "formal")
        _, errors = service.update_outfit_type(outfit_type.id, {"slug": "court"})
        assert errors[0].code == "slug_immutable"

    def test_null_flag_rejected(self, service, outfit_type):
        _, errors = service.update_outfit_type(outfit_type.id, {"is_default": None})
        assert errors[0].code == "is_default_invalid"

    def test_delete_leaves_outfits_untyped(self, service, character, outfit_type):
        outfit, _ = service.create_outfit(
            character.id, {"name": "Gala", "outfit_type_id": outfit_type.id}
        )
        assert service.delete_outfit_type(outfit_type.id) == []
        assert service.get_outfit(outfit.id).outfit_type_id is None
        assert service.delete_outfit_type(outfit_type.id)[0].code == "outfit_type_not_found"


class TestOutfits:
    def test_create(self, service, character, outfit_type):
        outfit, errors = service.create_outfit(
            character.id,
            {
                "name": " Gala ",
                "outfit_type_id": outfit_type.id,
                "reference_images": ["refs/a.png", " ", "refs/b.png"],
                "color_palette": "#112233, gold",
            },
        )
        assert errors == []
        assert outfit.name == "Gala"
        assert outfit.reference_images == ["refs/a.png", "refs/b.png"]
        assert service.list_outfits(character.id) == [outfit]

    def test_unknown_type(self, service, character):
        _, errors = service.create_outfit(character.id, {"name": "Gala", "outfit_type_id": uuid4()})
        assert errors[0].code == "outfit_type_not_found"

    def test_garbage_type_id(self, service, character):
        _, errors = service.create_outfit(
            character.id, {"name": "Gala", "outfit_type_id": "not-a-uuid"}
        )
        assert errors[0].code == "outfit_type_id_invalid"

    def test_one_default_per_character(self, service, character):
        first, _ = service.create_outfit(character.id, {"name": "Everyday", "is_default": True})
        second, _ = service.create_outfit(character.id, {"name": "Armour", "is_default": True})
        defaults = [o.id for o in service.list_outfits(character.id) if o.is_default]
        assert defaults == [second.id]
        service.update_outfit(first.id, {"is_default": True})
        defaults = [o.id for o in service.list_outfits(character.id) if o.is_default]
        assert defaults == [first.id]

    def test_update_with_null_name(self, service, character):
        outfit, _ = service.create_outfit(character.id, {"name": "Everyday"})
        _, errors = service.update_outfit(outfit.id, {"name": None})
        assert errors[0].code == "name_required"

    def test_dropped_reference_images_are_deleted(self, service, storage, character):
        outfit, _ = service.create_outfit(
            character.id,
            {"name": "Gala", "image_url": "o/gala.png", "reference_images": ["o/1.png", "o/2.png"]},
        )
        service.update_outfit(outfit.id, {"reference_images": ["o/2.png"]})
        assert storage.deleted == ["o/1.png"]

    def test_delete_is_soft_and_removes_files(self, service, repos, storage, character):
        outfit, _ = service.create_outfit(
            character.id,
            {"name": "Gala", "image_url": "o/gala.png", "reference_images": ["o/1.png"]},
        )
        assert service.delete_outfit(outfit.id) == []
        assert service.list_outfits(character.id) == []
        assert repos.outfits.get_by_id(outfit.id, include_deleted=True) is not None
        assert sorted(storage.deleted) == ["o/1.png", "o/gala.png"]
        assert service.delete_outfit(outfit.id)[0].code == "outfit_not_found"
