"""
Blog component - entry points.

Shell Layer - runs the service and wraps results in outputs.
"""

from __future__ import annotations

from src.core.services.pagination import Page
from src.domain.entities import BlogPost

from ._impl import BlogService
from .models import CreatePostInput, ListPostsInput, PostOperationOutput, UpdatePostInput


def run_create(inp: CreatePostInput, service: BlogService) -> PostOperationOutput:
    post, errors = service.create(
        title=inp.title,
        content=inp.content,
        slug=inp.slug,
        excerpt=inp.excerpt,
        published_at=inp.published_at,
    )
    return PostOperationOutput(post=post, errors=errors, success=not errors)


def run_update(inp: UpdatePostInput, service: BlogService) -> PostOperationOutput:
    post, errors = service.update(inp.post_id, inp.updates)
    return PostOperationOutput(post=post, errors=errors, success=not errors)


def run_list(inp: ListPostsInput, service: BlogService) -> Page[BlogPost]:
    if inp.published_only:
        return service.list_published_page(inp.page, inp.page_size)
    return service.list_all_page(inp.page, inp.page_size)
