"""
Public read API.

Everything here is unauthenticated and served through the process-wide
QueryCache. Keys are namespaced "public:..." and tagged with the tags the
admin services invalidate on mutation. Stored image paths are swapped for
signed read URLs; an image that cannot be signed comes back as null.
"""

from collections.abc import Callable, Iterable
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from src.api.deps import (
    get_blacklist_service,
    get_blog_service,
    get_commission_service,
    get_portfolio_service,
    get_query_cache,
    get_relationship_service,
    get_rules,
    get_signed_url_service,
    get_wiki_service,
)
from src.components.blacklist import BlacklistService
from src.components.blog import BlogService
from src.components.commissions import CommissionService
from src.components.portfolio import PortfolioService
from src.components.relationships import RelationshipService
from src.components.wiki import WikiService
from src.core.services.query_cache import (
    TAG_ADDONS,
    TAG_BLACKLIST,
    TAG_BLOG,
    TAG_PORTFOLIO,
    TAG_RELATIONSHIPS,
    TAG_SERVICES,
    TAG_WIKI,
    QueryCache,
)
from src.core.services.signed_urls import SignedUrlService
from src.rules.models import Rules

router = APIRouter()

# Scheduled posts must appear close to their publish time.
BLOG_CACHE_SECONDS = 60


def image_cache_seconds(rules: Rules) -> int:
    """TTL for payloads holding signed URLs: never outlive the signatures."""
    margin = rules.storage.default_signed_url_expiration - rules.storage.revalidate_seconds
    return max(1, min(rules.cache.ttl_seconds, margin)) if margin > 0 else 1


def with_signed_urls(
    items: Iterable[BaseModel], fields: tuple[str, ...], signer: SignedUrlService
) -> list[dict[str, Any]]:
    """
    Dump models to JSON dicts with the image `fields` replaced by signed URLs.

    A list-valued field has each path signed; entries that cannot be signed
    are dropped from the list.
    """
    dumped = [item.model_dump(mode="json") for item in items]
    paths: list[str] = []
    for d in dumped:
        for f in fields:
            value = d.get(f)
            if isinstance(value, list):
                paths.extend(p for p in value if p)
            elif value:
                paths.append(value)
    urls = signer.batch_get_cached_signed_urls(paths) if paths else {}
    for d in dumped:
        for f in fields:
            value = d.get(f)
            if isinstance(value, list):
                d[f] = [urls[p] for p in value if p in urls]
            elif value:
                d[f] = urls.get(value)
    return dumped


def _cached(
    cache: QueryCache,
    key: str,
    loader: Callable[[], Any],
    tags: tuple[str, ...],
    ttl_seconds: int | None = None,
) -> Any:
    value = cache.get_or_load(key, loader, tags=tags, ttl_seconds=ttl_seconds)
    if value is None:
        raise HTTPException(status_code=404, detail="Not found")
    return value


# --- Commissions ---


def _service_payload(details: Any, signer: SignedUrlService) -> dict[str, Any]:
    payload = details.model_dump(mode="json", exclude={"pictures"})
    payload["pictures"] = with_signed_urls(details.pictures, ("image_url",), signer)
    return payload


@router.get("/services")
def list_services(
    service: CommissionService = Depends(get_commission_service),
    signer: SignedUrlService = Depends(get_signed_url_service),
    cache: QueryCache = Depends(get_query_cache),
    rules: Rules = Depends(get_rules),
) -> list[dict[str, Any]]:
    """Active services with their add-ons, styles and pictures."""

    def load() -> list[dict[str, Any]]:
        return [
            _service_payload(d, signer)
            for d in service.list_services_with_details(active_only=True)
        ]

    return _cached(
        cache, "public:services", load, (TAG_SERVICES, TAG_ADDONS), image_cache_seconds(rules)
    )


@router.get("/services/{slug}")
def get_service(
    slug: str,
    service: CommissionService = Depends(get_commission_service),
    signer: SignedUrlService = Depends(get_signed_url_service),
    cache: QueryCache = Depends(get_query_cache),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    def load() -> dict[str, Any] | None:
        details = service.get_service_by_slug(slug, active_only=True)
        return _service_payload(details, signer) if details else None

    return _cached(
        cache,
        f"public:services:{slug}",
        load,
        (TAG_SERVICES, TAG_ADDONS),
        image_cache_seconds(rules),
    )


@router.get("/blacklist")
def list_blacklist(
    page: str | None = Query(None),
    page_size: str | None = Query(None, alias="pageSize"),
    service: BlacklistService = Depends(get_blacklist_service),
    cache: QueryCache = Depends(get_query_cache),
) -> dict[str, Any]:
    return cache.get_or_load(
        f"public:blacklist:{page}:{page_size}",
        lambda: service.list_page(page, page_size).model_dump(mode="json", by_alias=True),
        tags=(TAG_BLACKLIST,),
    )


# --- Wiki ---


@router.get("/stories")
def list_stories(
    service: WikiService = Depends(get_wiki_service),
    cache: QueryCache = Depends(get_query_cache),
) -> list[dict[str, Any]]:
    return cache.get_or_load(
        "public:stories",
        lambda: [s.model_dump(mode="json") for s in service.list_public_stories()],
        tags=(TAG_WIKI,),
    )


@router.get("/stories/{story_slug}")
def get_story(
    story_slug: str,
    service: WikiService = Depends(get_wiki_service),
    cache: QueryCache = Depends(get_query_cache),
) -> dict[str, Any]:
    def load() -> dict[str, Any] | None:
        found = service.get_public_story(story_slug)
        if found is None:
            return None
        story, worlds = found
        return {
            "story": story.model_dump(mode="json"),
            "worlds": [w.model_dump(mode="json") for w in worlds],
        }

    return _cached(cache, f"public:stories:{story_slug}", load, (TAG_WIKI,))


@router.get("/stories/{story_slug}/worlds/{world_slug}")
def get_world(
    story_slug: str,
    world_slug: str,
    service: WikiService = Depends(get_wiki_service),
    signer: SignedUrlService = Depends(get_signed_url_service),
    cache: QueryCache = Depends(get_query_cache),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    """A world with its characters, factions and locations."""

    def load() -> dict[str, Any] | None:
        contents = service.get_public_world_contents(story_slug, world_slug)
        if contents is None:
            return None
        return {
            "world": contents["world"].model_dump(mode="json"),
            "characters": with_signed_urls(
                contents["characters"], ("profile_image", "banner_image"), signer
            ),
            "factions": with_signed_urls(contents["factions"], ("logo_url",), signer),
            "locations": with_signed_urls(contents["locations"], ("image_url",), signer),
        }

    return _cached(
        cache,
        f"public:stories:{story_slug}:worlds:{world_slug}",
        load,
        (TAG_WIKI,),
        image_cache_seconds(rules),
    )


def _outfits_payload(
    service: WikiService, character_id: UUID, signer: SignedUrlService
) -> list[dict[str, Any]]:
    """Outfits with signed images and their type (name, slug, icon, color) inlined."""
    types = {t.id: t for t in service.list_outfit_types()}
    outfits = service.list_outfits(character_id)
    payload = with_signed_urls(outfits, ("image_url", "reference_images"), signer)
    for outfit, data in zip(outfits, payload, strict=True):
        outfit_type = types.get(outfit.outfit_type_id) if outfit.outfit_type_id else None
        data["outfit_type"] = (
            outfit_type.model_dump(mode="json", include={"id", "name", "slug", "icon", "color"})
            if outfit_type
            else None
        )
    return payload


@router.get("/stories/{story_slug}/worlds/{world_slug}/characters/{character_slug}")
def get_character(
    story_slug: str,
    world_slug: str,
    character_slug: str,
    service: WikiService = Depends(get_wiki_service),
    relationships: RelationshipService = Depends(get_relationship_service),
    signer: SignedUrlService = Depends(get_signed_url_service),
    cache: QueryCache = Depends(get_query_cache),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    """A character with memberships, labelled relationships, gallery and outfits."""

    def load() -> dict[str, Any] | None:
        found = service.get_public_character(story_slug, world_slug, character_slug)
        if found is None:
            return None
        character, memberships = found
        related = []
        for view in relationships.list_for_character(character.id):
            other = service.get_character(view.other_character_id)
            if other is None or other.deleted_at is not None:
                continue
            related.append(
                {
                    "id": str(view.relationship.id),
                    "label": view.label,
                    "description": view.relationship.description,
                    "character": {"id": str(other.id), "name": other.name, "slug": other.slug},
                }
            )
        return {
            "character": with_signed_urls(
                [character], ("profile_image", "banner_image"), signer
            )[0],
            "memberships": [m.model_dump(mode="json") for m in memberships],
            "relationships": related,
            "gallery": with_signed_urls(
                service.list_gallery(character.id), ("image_url", "thumbnail_url"), signer
            ),
            "outfits": _outfits_payload(service, character.id, signer),
        }

    return _cached(
        cache,
        f"public:stories:{story_slug}:worlds:{world_slug}:characters:{character_slug}",
        load,
        (TAG_WIKI, TAG_RELATIONSHIPS),
        image_cache_seconds(rules),
    )


# --- Blog ---


@router.get("/blog")
def list_blog_posts(
    page: str | None = Query(None),
    page_size: str | None = Query(None, alias="pageSize"),
    service: BlogService = Depends(get_blog_service),
    cache: QueryCache = Depends(get_query_cache),
) -> dict[str, Any]:
    """Published posts, newest first."""
    return cache.get_or_load(
        f"public:blog:{page}:{page_size}",
        lambda: service.list_published_page(page, page_size).model_dump(
            mode="json", by_alias=True
        ),
        tags=(TAG_BLOG,),
        ttl_seconds=BLOG_CACHE_SECONDS,
    )


@router.get("/blog/{slug}")
def get_blog_post(
    slug: str,
    service: BlogService = Depends(get_blog_service),
    cache: QueryCache = Depends(get_query_cache),
) -> dict[str, Any]:
    def load() -> dict[str, Any] | None:
        post = service.get_published_by_slug(slug)
        return post.model_dump(mode="json") if post else None

    return _cached(cache, f"public:blog:{slug}", load, (TAG_BLOG,), BLOG_CACHE_SECONDS)


# --- Portfolio ---


@router.get("/portfolio/art")
def list_art(
    featured: bool = False,
    service: PortfolioService = Depends(get_portfolio_service),
    signer: SignedUrlService = Depends(get_signed_url_service),
    cache: QueryCache = Depends(get_query_cache),
    rules: Rules = Depends(get_rules),
) -> list[dict[str, Any]]:
    return cache.get_or_load(
        f"public:portfolio:art:{featured}",
        lambda: with_signed_urls(
            service.list_art(featured_only=featured), ("image_url", "thumbnail_url"), signer
        ),
        tags=(TAG_PORTFOLIO,),
        ttl_seconds=image_cache_seconds(rules),
    )


@router.get("/portfolio/art/{slug}")
def get_art(
    slug: str,
    service: PortfolioService = Depends(get_portfolio_service),
    signer: SignedUrlService = Depends(get_signed_url_service),
    cache: QueryCache = Depends(get_query_cache),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    def load() -> dict[str, Any] | None:
        piece = service.get_art_by_slug(slug)
        if piece is None:
            return None
        return with_signed_urls([piece], ("image_url", "thumbnail_url"), signer)[0]

    return _cached(
        cache, f"public:portfolio:art:{slug}", load, (TAG_PORTFOLIO,), image_cache_seconds(rules)
    )


@router.get("/portfolio/writing")
def list_writing(
    featured: bool = False,
    service: PortfolioService = Depends(get_portfolio_service),
    signer: SignedUrlService = Depends(get_signed_url_service),
    cache: QueryCache = Depends(get_query_cache),
    rules: Rules = Depends(get_rules),
) -> list[dict[str, Any]]:
    return cache.get_or_load(
        f"public:portfolio:writing:{featured}",
        lambda: with_signed_urls(
            service.list_writing(featured_only=featured), ("cover_image",), signer
        ),
        tags=(TAG_PORTFOLIO,),
        ttl_seconds=image_cache_seconds(rules),
    )


@router.get("/portfolio/writing/{slug}")
def get_writing(
    slug: str,
    service: PortfolioService = Depends(get_portfolio_service),
    signer: SignedUrlService = Depends(get_signed_url_service),
    cache: QueryCache = Depends(get_query_cache),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    def load() -> dict[str, Any] | None:
        piece = service.get_writing_by_slug(slug)
        if piece is None:
            return None
        return with_signed_urls([piece], ("cover_image",), signer)[0]

    return _cached(
        cache,
        f"public:portfolio:writing:{slug}",
        load,
        (TAG_PORTFOLIO,),
        image_cache_seconds(rules),
    )
