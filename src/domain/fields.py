"""
Field checks shared by the admin forms.

Each returns None when the value is fine, otherwise a (code, message) pair the
calling component wraps in its own validation error type.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from src.domain.slugs import slugify, validate_slug
from src.rules.models import ContentRules

FieldProblem = tuple[str, str]
M = TypeVar("M", bound=BaseModel)

DEFAULT_TITLE_MAX = 200


def check_required_text(
    value: str | None,
    *,
    field: str,
    label: str,
    max_len: int = DEFAULT_TITLE_MAX,
) -> FieldProblem | None:
    if value is None or not value.strip():
        return f"{field}_required", f"{label} is required"
    if len(value.strip()) > max_len:
        return f"{field}_too_long", f"{label} must be {max_len} characters or less"
    return None


def check_title(
    value: str | None, *, field: str, label: str, rules: ContentRules | None
) -> FieldProblem | None:
    max_len = rules.title.max if rules else DEFAULT_TITLE_MAX
    return check_required_text(value, field=field, label=label, max_len=max_len)


def resolve_slug(
    slug: str | None, source: str | None, rules: ContentRules | None
) -> tuple[str, FieldProblem | None]:
    """Use the given slug, or derive one from `source` when omitted."""
    candidate = (slug or "").strip() or slugify(source or "")
    message = validate_slug(candidate, rules)
    if message:
        return candidate, ("slug_invalid", message)
    return candidate, None


def check_slug_unchanged(current: str, updates: dict[str, Any]) -> FieldProblem | None:
    """Slugs are fixed at creation; an update may repeat the slug but not change it."""
    if "slug" in updates and updates["slug"] is not None and updates["slug"] != current:
        return "slug_immutable", "Slug cannot be changed after creation"
    return None


def parse_decimal(
    value: Any, *, field: str, label: str, allow_negative: bool = True
) -> tuple[Decimal | None, FieldProblem | None]:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None, (f"{field}_invalid", f"{label} must be a number")
    if not amount.is_finite():
        return None, (f"{field}_invalid", f"{label} must be a number")
    if not allow_negative and amount < 0:
        return None, (f"{field}_negative", f"{label} cannot be negative")
    return amount, None


def apply_updates(model: M, values: dict[str, Any]) -> tuple[M | None, dict[str, FieldProblem]]:
    """
    Return a copy of `model` with `values` applied and re-validated.

    `model_copy(update=...)` does not validate, so an explicit null for a
    required field would otherwise only fail in the repository. Problems are
    keyed by field name, with a `<field>_invalid` code.
    """
    return build_model(type(model), {**model.model_dump(), **values})


def build_model(
    model_cls: type[M], values: dict[str, Any]
) -> tuple[M | None, dict[str, FieldProblem]]:
    """Validate `values` into a new `model_cls`, with problems keyed as in apply_updates."""
    try:
        return model_cls.model_validate(values), {}
    except ValidationError as exc:
        problems: dict[str, FieldProblem] = {}
        for err in exc.errors():
            field = str(err["loc"][0]) if err["loc"] else "value"
            problems.setdefault(field, (f"{field}_invalid", f"{field}: {err['msg']}"))
        return None, problems


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """Trim, drop empties and de-duplicate case-insensitively; first spelling wins."""
    seen: set[str] = set()
    result: list[str] = []
    for tag in tags or ():
        clean = str(tag).strip()
        if clean and clean.lower() not in seen:
            seen.add(clean.lower())
            result.append(clean)
    return result
