"""
WikiService - stories, worlds, characters, factions, locations and faction
memberships, plus each character's gallery and outfits.

Key behaviors:
- Slugs are derived from the title/name when omitted, unique among the live
  entities of the same parent, and never change after creation
- Deletes are soft: `deleted_at` is stamped and the row disappears from reads
- Public reads only see stories that are published and public, and only the
  live children of such stories
- A character belongs to a faction at most once
- A location's parent is another live location of the same world, without
  cycles
- Gallery items and outfits are soft-deleted; their stored images are removed
  on delete or replacement, best effort
- A character has at most one default outfit
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol, get_args
from uuid import UUID, uuid4

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.core.ports.db import IntegrityViolationError
from src.core.ports.storage import ObjectStoragePort, StorageError
from src.core.services.query_cache import TAG_WIKI, CachePort
from src.domain.entities import (
    Character,
    CharacterStatus,
    Faction,
    FactionMembership,
    GalleryItem,
    Location,
    Outfit,
    OutfitType,
    Story,
    Visibility,
    World,
)
from src.domain.fields import (
    FieldProblem,
    apply_updates,
    build_model,
    check_required_text,
    check_slug_unchanged,
    check_title,
    normalize_tags,
    resolve_slug,
)
from src.rules.models import ContentRules

from .models import WikiEntity, WikiKind, WikiValidationError
from .ports import (
    GalleryRepoPort,
    MembershipRepoPort,
    OutfitRepoPort,
    OutfitTypeRepoPort,
    WikiEntityRepoPort,
)

logger = logging.getLogger(__name__)

MEMBERSHIP_FIELDS = {"role", "rank", "join_date", "leave_date", "is_current", "notes"}
GALLERY_FIELDS = {
    "title",
    "description",
    "image_url",
    "thumbnail_url",
    "artist_name",
    "artist_url",
    "commission_date",
    "tags",
    "is_featured",
    "display_order",
}
OUTFIT_FIELDS = {
    "outfit_type_id",
    "name",
    "description",
    "image_url",
    "reference_images",
    "color_palette",
    "notes",
    "is_default",
    "display_order",
}
OUTFIT_TYPE_FIELDS = {"name", "slug", "description", "icon", "color", "is_default"}
MAX_TAGS = 30
MAX_REFERENCE_IMAGES = 20
IMAGE_URL_MAX = 2048


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...


@dataclass(frozen=True)
class KindSpec:
    model: type[BaseModel]
    title_field: str
    label: str
    parent_field: str | None
    parent_kind: WikiKind | None
    fields: frozenset[str]


KINDS: dict[WikiKind, KindSpec] = {
    "story": KindSpec(
        model=Story,
        title_field="title",
        label="Story",
        parent_field=None,
        parent_kind=None,
        fields=frozenset(
            {"title", "slug", "description", "summary", "content", "is_published", "visibility"}
        ),
    ),
    "world": KindSpec(
        model=World,
        title_field="name",
        label="World",
        parent_field="story_id",
        parent_kind="story",
        fields=frozenset({"name", "slug", "description", "summary", "content"}),
    ),
    "character": KindSpec(
        model=Character,
        title_field="name",
        label="Character",
        parent_field="world_id",
        parent_kind="world",
        fields=frozenset(
            {
                "name",
                "slug",
                "nickname",
                "title",
                "pronouns",
                "species",
                "occupation",
                "status",
                "personality_summary",
                "backstory",
                "profile_image",
                "banner_image",
            }
        ),
    ),
    "faction": KindSpec(
        model=Faction,
        title_field="name",
        label="Faction",
        parent_field="world_id",
        parent_kind="world",
        fields=frozenset(
            {"name", "slug", "description", "summary", "faction_type", "logo_url"}
        ),
    ),
    "location": KindSpec(
        model=Location,
        title_field="name",
        label="Location",
        parent_field="world_id",
        parent_kind="world",
        fields=frozenset(
            {
                "name",
                "slug",
                "location_type",
                "description",
                "summary",
                "image_url",
                "parent_location_id",
            }
        ),
    ),
}


def _not_found(kind: WikiKind, entity_id: UUID) -> WikiValidationError:
    return WikiValidationError(
        code=f"{kind}_not_found",
        message=f"{KINDS[kind].label} {entity_id} not found",
    )


def _field_errors(problems: dict[str, FieldProblem]) -> list[WikiValidationError]:
    return [
        WikiValidationError(code, message, field) for field, (code, message) in problems.items()
    ]


def _not_editable(keys: Iterable[str]) -> list[WikiValidationError]:
    return [
        WikiValidationError(
            code="field_not_editable", message=f"Field '{k}' is not allowed", field=k
        )
        for k in sorted(keys)
    ]


def _missing(code: str, label: str, entity_id: UUID) -> WikiValidationError:
    return WikiValidationError(code=code, message=f"{label} {entity_id} not found")


def _check_display_order(values: dict[str, Any]) -> list[WikiValidationError]:
    order = values.get("display_order")
    if order is not None and (not isinstance(order, int) or isinstance(order, bool)):
        return [
            WikiValidationError(
                code="display_order_invalid",
                message="Display order must be a whole number",
                field="display_order",
            )
        ]
    return []


def _check_string_list(
    values: dict[str, Any], field: str, label: str, max_items: int
) -> list[WikiValidationError]:
    if field not in values or values[field] is None:
        return []
    items = values[field]
    if not isinstance(items, list) or not all(isinstance(i, str) for i in items):
        return [
            WikiValidationError(
                code=f"{field}_invalid", message=f"{label} must be a list of text", field=field
            )
        ]
    if len(items) > max_items:
        return [
            WikiValidationError(
                code=f"{field}_too_many",
                message=f"At most {max_items} {label.lower()}",
                field=field,
            )
        ]
    return []


def _clean_paths(paths: list[str] | None) -> list[str]:
    return [p.strip() for p in paths or () if p and p.strip()]


def _outfit_type_slug_taken(slug: str) -> WikiValidationError:
    return WikiValidationError(
        code="slug_exists", message=f"Outfit type with slug '{slug}' already exists", field="slug"
    )


def _check_image(
    values: dict[str, Any], field: str, label: str, required: bool = False
) -> list[WikiValidationError]:
    value = values.get(field)
    if field not in values or (value is None and not required):
        return []
    if value is not None and not isinstance(value, str):
        return [WikiValidationError(f"{field}_invalid", f"{label} must be text", field)]
    problem = check_required_text(value, field=field, label=label, max_len=IMAGE_URL_MAX)
    return [WikiValidationError(problem[0], problem[1], field)] if problem else []


def validate_choices(values: dict[str, Any]) -> list[WikiValidationError]:
    """Check the enumerated fields (story visibility, character status)."""
    errors: list[WikiValidationError] = []
    visibility = values.get("visibility")
    if visibility is not None and visibility not in get_args(Visibility):
        errors.append(
            WikiValidationError(
                code="visibility_invalid",
                message=f"Visibility must be one of {', '.join(get_args(Visibility))}",
                field="visibility",
            )
        )
    status = values.get("status")
    if status is not None and status not in get_args(CharacterStatus):
        errors.append(
            WikiValidationError(
                code="status_invalid",
                message=f"Status must be one of {', '.join(get_args(CharacterStatus))}",
                field="status",
            )
        )
    return errors


def is_publicly_visible(story: Story) -> bool:
    return story.deleted_at is None and story.is_published and story.visibility == "public"


@dataclass
class WikiRepos:
    stories: WikiEntityRepoPort[Story]
    worlds: WikiEntityRepoPort[World]
    characters: WikiEntityRepoPort[Character]
    factions: WikiEntityRepoPort[Faction]
    locations: WikiEntityRepoPort[Location]
    memberships: MembershipRepoPort
    gallery: GalleryRepoPort
    outfits: OutfitRepoPort
    outfit_types: OutfitTypeRepoPort

    def for_kind(self, kind: WikiKind) -> WikiEntityRepoPort[Any]:
        return {
            "story": self.stories,
            "world": self.worlds,
            "character": self.characters,
            "faction": self.factions,
            "location": self.locations,
        }[kind]


class WikiService:
    def __init__(
        self,
        repos: WikiRepos,
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

    def _invalidate(self) -> None:
        if self._cache is not None:
            self._cache.invalidate(TAG_WIKI)

    def _remove_images(self, urls: Iterable[str | None]) -> None:
        """Best-effort removal of stored images; external URLs are left alone."""
        paths = [u for u in urls if u and not u.startswith(("http://", "https://"))]
        if not paths or self._storage is None:
            return
        try:
            self._storage.delete(paths)
        except StorageError:
            logger.exception("Failed to delete character images %s", paths)

    # --- Generic reads ---

    def get(self, kind: WikiKind, entity_id: UUID, include_deleted: bool = False) -> Any:
        return self._repos.for_kind(kind).get_by_id(entity_id, include_deleted=include_deleted)

    def list(self, kind: WikiKind, parent_id: UUID | None = None) -> list[Any]:
        return self._repos.for_kind(kind).list_for_parent(parent_id)

    def get_by_slug(self, kind: WikiKind, parent_id: UUID | None, slug: str) -> Any:
        return self._repos.for_kind(kind).get_by_slug(parent_id, slug)

    # --- Generic writes ---

    def _check_location_parent(
        self,
        world_id: UUID,
        parent_location_id: UUID | None,
        location_id: UUID | None = None,
    ) -> list[WikiValidationError]:
        if parent_location_id is None:
            return []
        invalid = WikiValidationError(
            code="parent_location_invalid",
            message="Parent location must be another location of the same world",
            field="parent_location_id",
        )
        try:
            current: UUID | None = UUID(str(parent_location_id))
        except ValueError:
            return [invalid]
        seen: set[UUID] = set()
        while current is not None:
            if current == location_id or current in seen:
                return [invalid]
            seen.add(current)
            location = self._repos.locations.get_by_id(current)
            if location is None or location.world_id != world_id:
                return [invalid]
            current = location.parent_location_id
        return []

    def create(
        self, kind: WikiKind, parent_id: UUID | None, values: dict[str, Any]
    ) -> tuple[WikiEntity | None, list[WikiValidationError]]:
        meta = KINDS[kind]
        repo = self._repos.for_kind(kind)

        if meta.parent_kind is not None:
            if parent_id is None or self.get(meta.parent_kind, parent_id) is None:
                return None, [
                    WikiValidationError(
                        code=f"{meta.parent_kind}_not_found",
                        message=f"{KINDS[meta.parent_kind].label} {parent_id} not found",
                        field=meta.parent_field,
                    )
                ]

        errors = [
            WikiValidationError(
                code="field_not_editable", message=f"Field '{k}' is not allowed", field=k
            )
            for k in sorted(set(values) - meta.fields)
        ]
        title = values.get(meta.title_field)
        label = meta.title_field.capitalize()
        problem = check_title(title, field=meta.title_field, label=label, rules=self._rules)
        if problem:
            errors.append(WikiValidationError(problem[0], problem[1], meta.title_field))
        slug, problem = resolve_slug(values.get("slug"), title, self._rules)
        if problem:
            errors.append(WikiValidationError(problem[0], problem[1], "slug"))
        errors.extend(validate_choices(values))
        if kind == "location" and parent_id is not None:
            errors.extend(self._check_location_parent(parent_id, values.get("parent_location_id")))
        if errors:
            return None, errors

        if repo.get_by_slug(parent_id, slug) is not None:
            return None, [
                WikiValidationError(
                    code="slug_exists",
                    message=f"{meta.label} with slug '{slug}' already exists here",
                    field="slug",
                )
            ]

        now = self._now()
        data = {k: v for k, v in values.items() if k in meta.fields}
        data.update({meta.title_field: title.strip(), "slug": slug})
        data.update({"id": uuid4(), "created_at": now, "updated_at": now})
        if meta.parent_field is not None:
            data[meta.parent_field] = parent_id

        try:
            entity = meta.model.model_validate(data)
        except PydanticValidationError as exc:
            return None, [
                WikiValidationError(
                    code="value_invalid",
                    message=err["msg"],
                    field=str(err["loc"][0]) if err["loc"] else None,
                )
                for err in exc.errors()
            ]

        try:
            saved = repo.save(entity)
        except IntegrityViolationError:
            return None, [
                WikiValidationError(
                    code="slug_exists",
                    message=f"{meta.label} with slug '{slug}' already exists here",
                    field="slug",
                )
            ]
        self._invalidate()
        return saved, []

    def update(
        self, kind: WikiKind, entity_id: UUID, updates: dict[str, Any]
    ) -> tuple[WikiEntity | None, list[WikiValidationError]]:
        meta = KINDS[kind]
        repo = self._repos.for_kind(kind)
        current = repo.get_by_id(entity_id)
        if current is None:
            return None, [_not_found(kind, entity_id)]

        errors = [
            WikiValidationError(
                code="field_not_editable", message=f"Field '{k}' cannot be updated", field=k
            )
            for k in sorted(set(updates) - meta.fields)
        ]
        problem = check_slug_unchanged(current.slug, updates)
        if problem:
            errors.append(WikiValidationError(problem[0], problem[1], "slug"))
        if meta.title_field in updates:
            label = meta.title_field.capitalize()
            problem = check_title(
                updates[meta.title_field], field=meta.title_field, label=label, rules=self._rules
            )
            if problem:
                errors.append(WikiValidationError(problem[0], problem[1], meta.title_field))
        errors.extend(validate_choices(updates))
        if kind == "location" and "parent_location_id" in updates:
            errors.extend(
                self._check_location_parent(
                    current.world_id, updates["parent_location_id"], location_id=entity_id
                )
            )
        if errors:
            return None, errors

        values = {k: v for k, v in updates.items() if k in meta.fields and k != "slug"}
        if meta.title_field in values:
            values[meta.title_field] = values[meta.title_field].strip()
        updated, problems = apply_updates(current, {**values, "updated_at": self._now()})
        if updated is None:
            return None, _field_errors(problems)

        saved = repo.save(updated)
        self._invalidate()
        return saved, []

    def delete(self, kind: WikiKind, entity_id: UUID) -> list[WikiValidationError]:
        """Soft-delete. Children stay in place but are hidden from public reads."""
        if not self._repos.for_kind(kind).soft_delete(entity_id, self._now()):
            return [_not_found(kind, entity_id)]
        self._invalidate()
        return []

    # --- Public reads ---

    def list_public_stories(self) -> list[Story]:
        return [s for s in self._repos.stories.list_for_parent(None) if is_publicly_visible(s)]

    def get_public_story(self, slug: str) -> tuple[Story, list[World]] | None:
        story = self._repos.stories.get_by_slug(None, slug)
        if story is None or not is_publicly_visible(story):
            return None
        return story, self._repos.worlds.list_for_parent(story.id)

    def get_public_world(self, story_slug: str, world_slug: str) -> World | None:
        found = self.get_public_story(story_slug)
        if found is None:
            return None
        story, _ = found
        return self._repos.worlds.get_by_slug(story.id, world_slug)

    def get_public_world_contents(
        self, story_slug: str, world_slug: str
    ) -> dict[str, Any] | None:
        world = self.get_public_world(story_slug, world_slug)
        if world is None:
            return None
        return {
            "world": world,
            "characters": self._repos.characters.list_for_parent(world.id),
            "factions": self._repos.factions.list_for_parent(world.id),
            "locations": self._repos.locations.list_for_parent(world.id),
        }

    def get_public_character(
        self, story_slug: str, world_slug: str, character_slug: str
    ) -> tuple[Character, list[FactionMembership]] | None:
        world = self.get_public_world(story_slug, world_slug)
        if world is None:
            return None
        character = self._repos.characters.get_by_slug(world.id, character_slug)
        if character is None:
            return None
        return character, self._repos.memberships.list_for_character(character.id)

    # --- Faction memberships ---

    def list_memberships_for_character(self, character_id: UUID) -> list[FactionMembership]:
        return self._repos.memberships.list_for_character(character_id)

    def list_memberships_for_faction(self, faction_id: UUID) -> list[FactionMembership]:
        return self._repos.memberships.list_for_faction(faction_id)

    def add_membership(
        self,
        character_id: UUID,
        faction_id: UUID,
        role: str | None = None,
        rank: str | None = None,
        join_date: str | None = None,
        leave_date: str | None = None,
        is_current: bool = True,
        notes: str | None = None,
    ) -> tuple[FactionMembership | None, list[WikiValidationError]]:
        errors: list[WikiValidationError] = []
        if self._repos.characters.get_by_id(character_id) is None:
            errors.append(_not_found("character", character_id))
        if self._repos.factions.get_by_id(faction_id) is None:
            errors.append(_not_found("faction", faction_id))
        if errors:
            return None, errors

        duplicate = WikiValidationError(
            code="membership_exists",
            message="This character is already a member of this faction",
            field="faction_id",
        )
        if self._repos.memberships.get_for_pair(character_id, faction_id) is not None:
            return None, [duplicate]

        now = self._now()
        membership = FactionMembership(
            id=uuid4(),
            character_id=character_id,
            faction_id=faction_id,
            role=role,
            rank=rank,
            join_date=join_date,
            leave_date=leave_date,
            is_current=is_current,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        try:
            saved = self._repos.memberships.save(membership)
        except IntegrityViolationError:
            return None, [duplicate]
        self._invalidate()
        return saved, []

    def update_membership(
        self, membership_id: UUID, updates: dict[str, Any]
    ) -> tuple[FactionMembership | None, list[WikiValidationError]]:
        membership = self._repos.memberships.get_by_id(membership_id)
        if membership is None:
            return None, [
                WikiValidationError(
                    code="membership_not_found",
                    message=f"Membership {membership_id} not found",
                )
            ]
        errors = [
            WikiValidationError(
                code="field_not_editable", message=f"Field '{k}' cannot be updated", field=k
            )
            for k in sorted(set(updates) - MEMBERSHIP_FIELDS)
        ]
        if errors:
            return None, errors

        updated, problems = apply_updates(membership, {**updates, "updated_at": self._now()})
        if updated is None:
            return None, _field_errors(problems)
        saved = self._repos.memberships.save(updated)
        self._invalidate()
        return saved, []

    def remove_membership(self, membership_id: UUID) -> list[WikiValidationError]:
        if not self._repos.memberships.delete(membership_id):
            return [
                WikiValidationError(
                    code="membership_not_found",
                    message=f"Membership {membership_id} not found",
                )
            ]
        self._invalidate()
        return []

    # --- Character gallery ---

    def list_gallery(self, character_id: UUID) -> list[GalleryItem]:
        return self._repos.gallery.list_for_character(character_id)

    def get_gallery_item(self, item_id: UUID) -> GalleryItem | None:
        return self._repos.gallery.get_by_id(item_id)

    def _next_display_order(self, items: Iterable[GalleryItem | Outfit]) -> int:
        return max((i.display_order for i in items), default=-1) + 1

    def _check_gallery_values(self, values: dict[str, Any]) -> list[WikiValidationError]:
        errors = _not_editable(set(values) - GALLERY_FIELDS)
        if "title" in values:
            problem = check_title(values["title"], field="title", label="Title", rules=self._rules)
            if problem:
                errors.append(WikiValidationError(problem[0], problem[1], "title"))
        errors.extend(_check_image(values, "image_url", "Image", required=True))
        errors.extend(_check_image(values, "thumbnail_url", "Thumbnail"))
        errors.extend(_check_string_list(values, "tags", "Tags", MAX_TAGS))
        errors.extend(_check_display_order(values))
        return errors

    def add_gallery_item(
        self, character_id: UUID, values: dict[str, Any]
    ) -> tuple[GalleryItem | None, list[WikiValidationError]]:
        """Append an image to a character's gallery (last, unless display_order is given)."""
        if self._repos.characters.get_by_id(character_id) is None:
            return None, [_not_found("character", character_id)]
        errors = self._check_gallery_values({"title": None, "image_url": None, **values})
        if errors:
            return None, errors

        data = dict(values)
        data["title"] = data["title"].strip()
        data["image_url"] = data["image_url"].strip()
        data["tags"] = normalize_tags(data.get("tags"))
        if data.get("display_order") is None:
            data["display_order"] = self._next_display_order(
                self._repos.gallery.list_for_character(character_id)
            )
        now = self._now()
        item, problems = build_model(
            GalleryItem,
            {
                **data,
                "id": uuid4(),
                "character_id": character_id,
                "created_at": now,
                "updated_at": now,
            },
        )
        if item is None:
            return None, _field_errors(problems)
        saved = self._repos.gallery.save(item)
        self._invalidate()
        return saved, []

    def update_gallery_item(
        self, item_id: UUID, updates: dict[str, Any]
    ) -> tuple[GalleryItem | None, list[WikiValidationError]]:
        item = self._repos.gallery.get_by_id(item_id)
        if item is None:
            return None, [_missing("gallery_item_not_found", "Gallery item", item_id)]
        errors = self._check_gallery_values(updates)
        if errors:
            return None, errors

        values = dict(updates)
        for key in ("title", "image_url"):
            if key in values:
                values[key] = values[key].strip()
        if "tags" in values:
            values["tags"] = normalize_tags(values["tags"])
        replaced = [
            getattr(item, k)
            for k in ("image_url", "thumbnail_url")
            if k in values and values[k] != getattr(item, k)
        ]

        updated, problems = apply_updates(item, {**values, "updated_at": self._now()})
        if updated is None:
            return None, _field_errors(problems)
        saved = self._repos.gallery.save(updated)
        self._remove_images(replaced)
        self._invalidate()
        return saved, []

    def delete_gallery_item(self, item_id: UUID) -> list[WikiValidationError]:
        """Soft-delete the item and drop its stored image and thumbnail."""
        item = self._repos.gallery.get_by_id(item_id)
        if item is None or not self._repos.gallery.soft_delete(item_id, self._now()):
            return [_missing("gallery_item_not_found", "Gallery item", item_id)]
        self._remove_images([item.image_url, item.thumbnail_url])
        self._invalidate()
        return []

    def reorder_gallery(
        self, character_id: UUID, item_ids: list[UUID]
    ) -> tuple[list[GalleryItem], list[WikiValidationError]]:
        """`item_ids` must name every live item of the character exactly once."""
        if self._repos.characters.get_by_id(character_id) is None:
            return [], [_not_found("character", character_id)]
        current = {i.id for i in self._repos.gallery.list_for_character(character_id)}
        if len(item_ids) != len(set(item_ids)) or set(item_ids) != current:
            return [], [
                WikiValidationError(
                    code="gallery_order_invalid",
                    message="List each of the character's gallery items exactly once",
                    field="item_ids",
                )
            ]
        self._repos.gallery.set_order(item_ids, self._now())
        self._invalidate()
        return self._repos.gallery.list_for_character(character_id), []

    # --- Outfit types ---

    def list_outfit_types(self) -> list[OutfitType]:
        return self._repos.outfit_types.list_all()

    def get_outfit_type(self, type_id: UUID) -> OutfitType | None:
        return self._repos.outfit_types.get_by_id(type_id)

    def create_outfit_type(
        self, values: dict[str, Any]
    ) -> tuple[OutfitType | None, list[WikiValidationError]]:
        errors = _not_editable(set(values) - OUTFIT_TYPE_FIELDS)
        name = values.get("name")
        problem = check_title(name, field="name", label="Name", rules=self._rules)
        if problem:
            errors.append(WikiValidationError(problem[0], problem[1], "name"))
        slug, problem = resolve_slug(values.get("slug"), name, self._rules)
        if problem:
            errors.append(WikiValidationError(problem[0], problem[1], "slug"))
        if errors:
            return None, errors

        if self._repos.outfit_types.get_by_slug(slug) is not None:
            return None, [_outfit_type_slug_taken(slug)]

        now = self._now()
        outfit_type, problems = build_model(
            OutfitType,
            {
                **values,
                "name": name.strip(),
                "slug": slug,
                "id": uuid4(),
                "created_at": now,
                "updated_at": now,
            },
        )
        if outfit_type is None:
            return None, _field_errors(problems)
        try:
            saved = self._repos.outfit_types.save(outfit_type)
        except IntegrityViolationError:
            return None, [_outfit_type_slug_taken(slug)]
        self._invalidate()
        return saved, []

    def update_outfit_type(
        self, type_id: UUID, updates: dict[str, Any]
    ) -> tuple[OutfitType | None, list[WikiValidationError]]:
        outfit_type = self._repos.outfit_types.get_by_id(type_id)
        if outfit_type is None:
            return None, [_missing("outfit_type_not_found", "Outfit type", type_id)]

        errors = _not_editable(set(updates) - OUTFIT_TYPE_FIELDS)
        problem = check_slug_unchanged(outfit_type.slug, updates)
        if problem:
            errors.append(WikiValidationError(problem[0], problem[1], "slug"))
        if "name" in updates:
            problem = check_title(updates["name"], field="name", label="Name", rules=self._rules)
            if problem:
                errors.append(WikiValidationError(problem[0], problem[1], "name"))
        if errors:
            return None, errors

        values = {k: v for k, v in updates.items() if k != "slug"}
        if "name" in values:
            values["name"] = values["name"].strip()
        updated, problems = apply_updates(outfit_type, {**values, "updated_at": self._now()})
        if updated is None:
            return None, _field_errors(problems)
        saved = self._repos.outfit_types.save(updated)
        self._invalidate()
        return saved, []

    def delete_outfit_type(self, type_id: UUID) -> list[WikiValidationError]:
        """Outfits of the deleted type are kept, untyped."""
        if not self._repos.outfit_types.delete(type_id):
            return [_missing("outfit_type_not_found", "Outfit type", type_id)]
        self._invalidate()
        return []

    # --- Outfits ---

    def list_outfits(self, character_id: UUID) -> list[Outfit]:
        return self._repos.outfits.list_for_character(character_id)

    def get_outfit(self, outfit_id: UUID) -> Outfit | None:
        return self._repos.outfits.get_by_id(outfit_id)

    def _check_outfit_values(self, values: dict[str, Any]) -> list[WikiValidationError]:
        errors = _not_editable(set(values) - OUTFIT_FIELDS)
        if "name" in values:
            problem = check_title(values["name"], field="name", label="Name", rules=self._rules)
            if problem:
                errors.append(WikiValidationError(problem[0], problem[1], "name"))
        errors.extend(_check_image(values, "image_url", "Image"))
        errors.extend(
            _check_string_list(
                values, "reference_images", "Reference images", MAX_REFERENCE_IMAGES
            )
        )
        errors.extend(_check_display_order(values))
        return errors

    def _check_outfit_type(self, outfit: Outfit) -> list[WikiValidationError]:
        type_id = outfit.outfit_type_id
        if type_id is None or self._repos.outfit_types.get_by_id(type_id) is not None:
            return []
        return [
            WikiValidationError(
                code="outfit_type_not_found",
                message=f"Outfit type {type_id} not found",
                field="outfit_type_id",
            )
        ]

    def create_outfit(
        self, character_id: UUID, values: dict[str, Any]
    ) -> tuple[Outfit | None, list[WikiValidationError]]:
        """Add an outfit; making it the default clears the flag on the others."""
        if self._repos.characters.get_by_id(character_id) is None:
            return None, [_not_found("character", character_id)]
        errors = self._check_outfit_values({"name": None, **values})
        if errors:
            return None, errors

        data = dict(values)
        data["name"] = data["name"].strip()
        data["reference_images"] = _clean_paths(data.get("reference_images"))
        if data.get("display_order") is None:
            data["display_order"] = self._next_display_order(
                self._repos.outfits.list_for_character(character_id)
            )
        now = self._now()
        outfit, problems = build_model(
            Outfit,
            {
                **data,
                "id": uuid4(),
                "character_id": character_id,
                "created_at": now,
                "updated_at": now,
            },
        )
        if outfit is None:
            return None, _field_errors(problems)
        errors = self._check_outfit_type(outfit)
        if errors:
            return None, errors
        saved = self._repos.outfits.save(outfit)
        self._invalidate()
        return saved, []

    def update_outfit(
        self, outfit_id: UUID, updates: dict[str, Any]
    ) -> tuple[Outfit | None, list[WikiValidationError]]:
        outfit = self._repos.outfits.get_by_id(outfit_id)
        if outfit is None:
            return None, [_missing("outfit_not_found", "Outfit", outfit_id)]
        errors = self._check_outfit_values(updates)
        if errors:
            return None, errors

        values = dict(updates)
        if "name" in values:
            values["name"] = values["name"].strip()
        replaced: list[str | None] = []
        if "image_url" in values and values["image_url"] != outfit.image_url:
            replaced.append(outfit.image_url)
        if "reference_images" in values:
            values["reference_images"] = _clean_paths(values["reference_images"])
            kept = set(values["reference_images"])
            replaced.extend(p for p in outfit.reference_images if p not in kept)

        updated, problems = apply_updates(outfit, {**values, "updated_at": self._now()})
        if updated is None:
            return None, _field_errors(problems)
        errors = self._check_outfit_type(updated)
        if errors:
            return None, errors
        saved = self._repos.outfits.save(updated)
        self._remove_images(replaced)
        self._invalidate()
        return saved, []

    def delete_outfit(self, outfit_id: UUID) -> list[WikiValidationError]:
        """Soft-delete the outfit and drop its stored images."""
        outfit = self._repos.outfits.get_by_id(outfit_id)
        if outfit is None or not self._repos.outfits.soft_delete(outfit_id, self._now()):
            return [_missing("outfit_not_found", "Outfit", outfit_id)]
        self._remove_images([outfit.image_url, *outfit.reference_images])
        self._invalidate()
        return []

    # --- Character lookup for other components ---

    def get_character(self, character_id: UUID) -> Character | None:
        return self._repos.characters.get_by_id(character_id)
