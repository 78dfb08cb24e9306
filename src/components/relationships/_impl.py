"""
RelationshipService - relationship types and character relationships.

Key behaviors:
- (A, B, T) and (B, A, T) are the same relationship: creating one while the
  other exists is rejected
- Editing a relationship never collides with itself, so a description-only
  edit always passes
- Changing the type on edit still checks the other relationships of the pair
- A mutual type has no reverse name
- Labels are direction-aware: A sees the type name, B sees the reverse name
  (falling back to the name)
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import UUID, uuid4

from src.core.ports.db import IntegrityViolationError
from src.core.services.query_cache import TAG_RELATIONSHIPS, CachePort
from src.domain.entities import CharacterRelationship, RelationshipType
from src.domain.fields import (
    FieldProblem,
    apply_updates,
    check_required_text,
    check_slug_unchanged,
    check_title,
    resolve_slug,
)
from src.rules.models import ContentRules

from .models import RelationshipValidationError, RelationshipView
from .ports import CharacterLookupPort, RelationshipRepoPort, RelationshipTypeRepoPort

TYPE_FIELDS = {"name", "slug", "reverse_name", "is_mutual", "category", "color", "description"}
RELATIONSHIP_FIELDS = {"relationship_type_id", "description", "is_mutual"}


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...


# --- Pure functions ---


def pair_key(a: UUID, b: UUID, type_id: UUID) -> tuple[frozenset[UUID], UUID]:
    """Order-independent identity of a relationship."""
    return frozenset((a, b)), type_id


def is_duplicate_relationship(
    existing: Iterable[CharacterRelationship],
    a: UUID,
    b: UUID,
    type_id: UUID,
    exclude_id: UUID | None = None,
) -> bool:
    """
    True when `existing` already holds ({a, b}, type_id).

    `exclude_id` is the relationship being edited; it never counts against
    itself.
    """
    wanted = pair_key(a, b, type_id)
    for rel in existing:
        if exclude_id is not None and rel.id == exclude_id:
            continue
        if pair_key(rel.character_a_id, rel.character_b_id, rel.relationship_type_id) == wanted:
            return True
    return False


def relationship_label(
    relationship: CharacterRelationship,
    relationship_type: RelationshipType,
    viewer_id: UUID,
) -> str:
    """How the relationship reads on `viewer_id`'s page."""
    if viewer_id == relationship.character_a_id:
        return relationship_type.name
    return relationship_type.reverse_name or relationship_type.name


def validate_color(color: str | None) -> list[RelationshipValidationError]:
    """Colors are free text (hex or CSS names) but bounded."""
    if color is None:
        return []
    problem = check_required_text(color, field="color", label="Color", max_len=32)
    if problem:
        return [RelationshipValidationError(problem[0], problem[1], "color")]
    return []


def _duplicate() -> RelationshipValidationError:
    return RelationshipValidationError(
        code="duplicate_relationship",
        message="These characters already have a relationship of this type",
        field="relationship_type_id",
    )


def _field_errors(problems: dict[str, FieldProblem]) -> list[RelationshipValidationError]:
    return [
        RelationshipValidationError(code, message, field)
        for field, (code, message) in problems.items()
    ]


# --- Relationship Service ---


class RelationshipService:
    def __init__(
        self,
        type_repo: RelationshipTypeRepoPort,
        repo: RelationshipRepoPort,
        characters: CharacterLookupPort,
        cache: CachePort | None = None,
        time_port: TimePort | None = None,
        content_rules: ContentRules | None = None,
    ) -> None:
        self._types = type_repo
        self._repo = repo
        self._characters = characters
        self._cache = cache
        self._time_port = time_port
        self._rules = content_rules

    def _now(self) -> datetime:
        if self._time_port:
            return self._time_port.now_utc()
        return datetime.now(UTC)

    def _invalidate(self) -> None:
        if self._cache is not None:
            self._cache.invalidate(TAG_RELATIONSHIPS)

    # --- Types ---

    def list_types(self) -> list[RelationshipType]:
        return self._types.list_all()

    def get_type(self, type_id: UUID) -> RelationshipType | None:
        return self._types.get_by_id(type_id)

    def create_type(
        self,
        name: str,
        slug: str | None = None,
        reverse_name: str | None = None,
        is_mutual: bool = True,
        category: str | None = None,
        color: str | None = None,
        description: str | None = None,
    ) -> tuple[RelationshipType | None, list[RelationshipValidationError]]:
        errors: list[RelationshipValidationError] = []
        problem = check_title(name, field="name", label="Name", rules=self._rules)
        if problem:
            errors.append(RelationshipValidationError(problem[0], problem[1], "name"))
        resolved_slug, problem = resolve_slug(slug, name, self._rules)
        if problem:
            errors.append(RelationshipValidationError(problem[0], problem[1], "slug"))
        errors.extend(validate_color(color))
        if errors:
            return None, errors

        if self._types.get_by_slug(resolved_slug) is not None:
            return None, [
                RelationshipValidationError(
                    code="slug_exists",
                    message=f"A relationship type with slug '{resolved_slug}' already exists",
                    field="slug",
                )
            ]

        relationship_type = RelationshipType(
            id=uuid4(),
            name=name.strip(),
            slug=resolved_slug,
            reverse_name=None if is_mutual else ((reverse_name or "").strip() or None),
            is_mutual=is_mutual,
            category=category,
            color=color,
            description=description,
            created_at=self._now(),
        )
        saved = self._types.save(relationship_type)
        self._invalidate()
        return saved, []

    def update_type(
        self, type_id: UUID, updates: dict[str, Any]
    ) -> tuple[RelationshipType | None, list[RelationshipValidationError]]:
        current = self._types.get_by_id(type_id)
        if current is None:
            return None, [
                RelationshipValidationError(
                    code="relationship_type_not_found",
                    message=f"Relationship type {type_id} not found",
                )
            ]

        errors = [
            RelationshipValidationError(
                code="field_not_editable", message=f"Field '{k}' cannot be updated", field=k
            )
            for k in sorted(set(updates) - TYPE_FIELDS)
        ]
        problem = check_slug_unchanged(current.slug, updates)
        if problem:
            errors.append(RelationshipValidationError(problem[0], problem[1], "slug"))
        if "name" in updates:
            problem = check_title(updates["name"], field="name", label="Name", rules=self._rules)
            if problem:
                errors.append(RelationshipValidationError(problem[0], problem[1], "name"))
        if "color" in updates:
            errors.extend(validate_color(updates["color"]))
        if errors:
            return None, errors

        values = {k: v for k, v in updates.items() if k in TYPE_FIELDS and k != "slug"}
        if "name" in values:
            values["name"] = values["name"].strip()
        updated, problems = apply_updates(current, values)
        if updated is None:
            return None, _field_errors(problems)
        if updated.is_mutual:
            updated = updated.model_copy(update={"reverse_name": None})

        saved = self._types.save(updated)
        self._invalidate()
        return saved, []

    def delete_type(self, type_id: UUID) -> list[RelationshipValidationError]:
        if not self._types.delete(type_id):
            return [
                RelationshipValidationError(
                    code="relationship_type_not_found",
                    message=f"Relationship type {type_id} not found",
                )
            ]
        self._invalidate()
        return []

    # --- Relationships ---

    def get(self, relationship_id: UUID) -> CharacterRelationship | None:
        return self._repo.get_by_id(relationship_id)

    def list_for_character(self, character_id: UUID) -> list[RelationshipView]:
        """Relationships of a character with the label to show on its page."""
        types = {t.id: t for t in self._types.list_all()}
        views: list[RelationshipView] = []
        for rel in self._repo.list_for_character(character_id):
            rel_type = types.get(rel.relationship_type_id)
            if rel_type is None:
                continue
            other = rel.character_b_id if rel.character_a_id == character_id else rel.character_a_id
            views.append(
                RelationshipView(
                    relationship=rel,
                    other_character_id=other,
                    label=relationship_label(rel, rel_type, character_id),
                )
            )
        return views

    def create(
        self,
        character_a_id: UUID,
        character_b_id: UUID,
        relationship_type_id: UUID,
        description: str | None = None,
        is_mutual: bool = True,
    ) -> tuple[CharacterRelationship | None, list[RelationshipValidationError]]:
        """Create a relationship; always re-validated, whatever the caller checked."""
        errors: list[RelationshipValidationError] = []
        if character_a_id == character_b_id:
            errors.append(
                RelationshipValidationError(
                    code="self_relationship",
                    message="A character cannot have a relationship with itself",
                    field="character_b_id",
                )
            )
        for field_name, character_id in (
            ("character_a_id", character_a_id),
            ("character_b_id", character_b_id),
        ):
            if self._characters.get_character(character_id) is None:
                errors.append(
                    RelationshipValidationError(
                        code="character_not_found",
                        message=f"Character {character_id} not found",
                        field=field_name,
                    )
                )
        if self._types.get_by_id(relationship_type_id) is None:
            errors.append(
                RelationshipValidationError(
                    code="relationship_type_not_found",
                    message=f"Relationship type {relationship_type_id} not found",
                    field="relationship_type_id",
                )
            )
        if errors:
            return None, errors

        existing = self._repo.list_between(character_a_id, character_b_id)
        if is_duplicate_relationship(existing, character_a_id, character_b_id, relationship_type_id):
            return None, [_duplicate()]

        now = self._now()
        relationship = CharacterRelationship(
            id=uuid4(),
            character_a_id=character_a_id,
            character_b_id=character_b_id,
            relationship_type_id=relationship_type_id,
            description=(description or "").strip() or None,
            is_mutual=is_mutual,
            created_at=now,
            updated_at=now,
        )
        try:
            saved = self._repo.save(relationship)
        except IntegrityViolationError:
            return None, [_duplicate()]

        self._invalidate()
        return saved, []

    def update(
        self, relationship_id: UUID, updates: dict[str, Any]
    ) -> tuple[CharacterRelationship | None, list[RelationshipValidationError]]:
        """
        Edit type, description or mutual flag.

        The characters of a relationship are fixed; to move it, delete and
        recreate.
        """
        current = self._repo.get_by_id(relationship_id)
        if current is None:
            return None, [
                RelationshipValidationError(
                    code="relationship_not_found",
                    message=f"Relationship {relationship_id} not found",
                )
            ]

        errors = [
            RelationshipValidationError(
                code="field_not_editable", message=f"Field '{k}' cannot be updated", field=k
            )
            for k in sorted(set(updates) - RELATIONSHIP_FIELDS)
        ]
        if errors:
            return None, errors

        values = dict(updates)
        if "description" in values:
            values["description"] = (values["description"] or "").strip() or None
        updated, problems = apply_updates(current, {**values, "updated_at": self._now()})
        if updated is None:
            return None, _field_errors(problems)
        if "relationship_type_id" in values:
            if self._types.get_by_id(updated.relationship_type_id) is None:
                return None, [
                    RelationshipValidationError(
                        code="relationship_type_not_found",
                        message=f"Relationship type {updated.relationship_type_id} not found",
                        field="relationship_type_id",
                    )
                ]

        existing = self._repo.list_between(current.character_a_id, current.character_b_id)
        if is_duplicate_relationship(
            existing,
            updated.character_a_id,
            updated.character_b_id,
            updated.relationship_type_id,
            exclude_id=relationship_id,
        ):
            return None, [_duplicate()]

        try:
            saved = self._repo.save(updated)
        except IntegrityViolationError:
            return None, [_duplicate()]

        self._invalidate()
        return saved, []

    def delete(self, relationship_id: UUID) -> list[RelationshipValidationError]:
        if not self._repo.delete(relationship_id):
            return [
                RelationshipValidationError(
                    code="relationship_not_found",
                    message=f"Relationship {relationship_id} not found",
                )
            ]
        self._invalidate()
        return []

