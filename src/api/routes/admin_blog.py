"""Admin routes for blog posts."""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from src.api.deps import get_blog_service, get_current_admin
from src.api.schemas import not_found, raise_for_errors
from src.components.blog import (
    BlogService,
    CreatePostInput,
    ListPostsInput,
    UpdatePostInput,
    run_create,
    run_list,
    run_update,
)
from src.domain.entities import AdminUser, BlogPost

router = APIRouter()


class PostCreateRequest(BaseModel):
    title: str
    content: str
    slug: str | None = None
    excerpt: str | None = None
    published_at: datetime | None = None


class PostUpdateRequest(BaseModel):
    title: str | None = None
    content: str | None = None
    excerpt: str | None = None
    published_at: datetime | None = None


@router.get("")
def list_posts(
    page: str | None = Query(None),
    page_size: str | None = Query(None, alias="pageSize"),
    current_admin: AdminUser = Depends(get_current_admin),
    service: BlogService = Depends(get_blog_service),
) -> dict[str, Any]:
    """Every post, drafts and scheduled included, newest first."""
    result = run_list(
        ListPostsInput(page=page, page_size=page_size, published_only=False), service
    )
    return result.model_dump(mode="json", by_alias=True)


@router.post("", response_model=BlogPost, status_code=201)
def create_post(
    data: PostCreateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: BlogService = Depends(get_blog_service),
) -> BlogPost:
    result = run_create(CreatePostInput(**data.model_dump()), service)
    raise_for_errors(result.errors)
    assert result.post is not None
    return result.post


@router.get("/{post_id}", response_model=BlogPost)
def get_post(
    post_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: BlogService = Depends(get_blog_service),
) -> BlogPost:
    post = service.get(post_id)
    if post is None:
        raise not_found("Post")
    return post


@router.patch("/{post_id}", response_model=BlogPost)
def update_post(
    post_id: UUID,
    data: PostUpdateRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    service: BlogService = Depends(get_blog_service),
) -> BlogPost:
    result = run_update(
        UpdatePostInput(post_id=post_id, updates=data.model_dump(exclude_unset=True)), service
    )
    raise_for_errors(result.errors)
    assert result.post is not None
    return result.post


@router.post("/{post_id}/publish", response_model=BlogPost)
def publish_post(
    post_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: BlogService = Depends(get_blog_service),
) -> BlogPost:
    """Publish now."""
    post, errors = service.publish(post_id)
    raise_for_errors(errors)
    assert post is not None
    return post


@router.post("/{post_id}/unpublish", response_model=BlogPost)
def unpublish_post(
    post_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: BlogService = Depends(get_blog_service),
) -> BlogPost:
    post, errors = service.unpublish(post_id)
    raise_for_errors(errors)
    assert post is not None
    return post


@router.delete("/{post_id}", status_code=204)
def delete_post(
    post_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    service: BlogService = Depends(get_blog_service),
) -> None:
    raise_for_errors(service.delete(post_id))
