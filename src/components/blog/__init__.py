"""
Blog component - draft, scheduled and published posts.
"""

from ._impl import BlogService, as_utc, is_published
from .component import run_create, run_list, run_update
from .models import (
    BlogValidationError,
    CreatePostInput,
    ListPostsInput,
    PostOperationOutput,
    UpdatePostInput,
)
from .ports import BlogRepoPort

__all__ = [
    "run_create",
    "run_list",
    "run_update",
    "BlogService",
    "as_utc",
    "is_published",
    "BlogValidationError",
    "CreatePostInput",
    "ListPostsInput",
    "PostOperationOutput",
    "UpdatePostInput",
    "BlogRepoPort",
]
