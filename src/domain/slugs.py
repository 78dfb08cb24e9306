"""Slug helpers shared by every admin form that derives a URL from a title."""

import re
import unicodedata

from src.rules.models import ContentRules

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """
    Derive a URL-safe slug from a title or name.

    "Fullbody Illustration!" -> "fullbody-illustration"
    "Café Noir" -> "cafe-noir"
    """
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("-", folded.lower()).strip("-")


def validate_slug(slug: str, rules: ContentRules | None = None) -> str | None:
    """Return an error message for an invalid slug, or None when it's fine."""
    if not slug:
        return "Slug is required"

    pattern = rules.slug.pattern if rules else r"^[a-z0-9]+(?:-[a-z0-9]+)*$"
    max_len = rules.slug.max if rules else 120

    if len(slug) > max_len:
        return f"Slug must be {max_len} characters or less"
    if not re.match(pattern, slug):
        return "Slug may only contain lowercase letters, digits and single hyphens"
    return None
