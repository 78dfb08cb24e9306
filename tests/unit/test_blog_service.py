"""
Unit tests for BlogService.

A post is a draft while published_at is None, scheduled while it is in the
future, and public from published_at onwards.
"""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from src.components.blog import (
    BlogService,
    CreatePostInput,
    ListPostsInput,
    UpdatePostInput,
    as_utc,
    is_published,
    run_create,
    run_list,
    run_update,
)
from src.core.services.query_cache import TAG_BLOG, QueryCache
from src.domain.entities import BlogPost
from tests.fakes import MockBlogRepo


@pytest.fixture
def repo():
    return MockBlogRepo()


@pytest.fixture
def cache():
    return QueryCache(ttl_seconds=60)


@pytest.fixture
def service(repo, cache, clock, content_rules):
    return BlogService(repo, cache=cache, time_port=clock, content_rules=content_rules)


def _post(service: BlogService, title: str, published_at=None) -> BlogPost:
    post, errors = service.create(title=title, content="Body text", published_at=published_at)
    assert errors == []
    return post


class TestPublishedState:
    def test_naive_datetime_is_utc(self):
        assert as_utc(datetime(2025, 1, 1, 9, 0)) == datetime(2025, 1, 1, 9, 0, tzinfo=UTC)
        assert as_utc(None) is None

    def test_draft_is_not_published(self, clock):
        post = BlogPost(title="Draft", slug="draft", content="x")
        assert not is_published(post, clock.now_utc())

    def test_scheduled_becomes_published(self, clock):
        post = BlogPost(
            title="Soon",
            slug="soon",
            content="x",
            published_at=clock.now_utc() + timedelta(minutes=5),
        )
        assert not is_published(post, clock.now_utc())
        clock.advance(300)
        assert is_published(post, clock.now_utc())


class TestCreate:
    def test_create_draft(self, service, clock):
        post = _post(service, "First Post")
        assert post.slug == "first-post"
        assert post.published_at is None
        assert post.created_at == clock.now_utc()

    def test_title_and_content_required(self, service):
        _, errors = service.create(title=" ", content="")
        codes = [e.code for e in errors]
        assert "title_required" in codes
        assert "content_required" in codes

    def test_duplicate_slug(self, service):
        _post(service, "Same")
        _, errors = service.create(title="Other", content="x", slug="same")
        assert errors[0].code == "slug_exists"

    def test_invalid_slug(self, service):
        _, errors = service.create(title="Fine", content="x", slug="Not A Slug")
        assert errors[0].code == "slug_invalid"

    def test_create_invalidates_cache(self, service, cache):
        cache.set("public:blog:1:10", [], tags=[TAG_BLOG])
        _post(service, "Fresh")
        assert cache.get("public:blog:1:10") is None


class TestUpdate:
    def test_publish_and_unpublish(self, service, clock):
        post = _post(service, "Toggle")
        published, errors = service.publish(post.id)
        assert errors == []
        assert published.published_at == clock.now_utc()
        draft, _ = service.unpublish(post.id)
        assert draft.published_at is None

    def test_slug_is_immutable(self, service):
        post = _post(service, "Fixed")
        _, errors = service.update(post.id, {"slug": "moved"})
        assert errors[0].code == "slug_immutable"

    def test_blank_excerpt_is_none(self, service):
        post = _post(service, "Excerpt")
        updated, _ = service.update(post.id, {"excerpt": "  "})
        assert updated.excerpt is None

    def test_unknown_field(self, service):
        post = _post(service, "Fields")
        _, errors = service.update(post.id, {"author": "me"})
        assert errors[0].code == "field_not_editable"

    def test_missing_post(self, service):
        _, errors = service.publish(uuid4())
        assert errors[0].code == "post_not_found"
        assert service.delete(uuid4())[0].code == "post_not_found"


class TestListing:
    def test_public_listing_hides_drafts_and_scheduled(self, service, clock):
        now = clock.now_utc()
        live = _post(service, "Live", published_at=now - timedelta(days=1))
        _post(service, "Draft")
        _post(service, "Later", published_at=now + timedelta(days=1))
        page = service.list_published_page(1, 10)
        assert [p.id for p in page.data] == [live.id]
        assert page.total == 1

    def test_scheduled_post_appears_when_due(self, service, clock):
        scheduled = _post(service, "Later", published_at=clock.now_utc() + timedelta(hours=1))
        assert service.get_published_by_slug(scheduled.slug) is None
        clock.advance(3600)
        assert service.get_published_by_slug(scheduled.slug).id == scheduled.id

    def test_newest_published_first(self, service, clock):
        now = clock.now_utc()
        older = _post(service, "Older", published_at=now - timedelta(days=2))
        newer = _post(service, "Newer", published_at=now - timedelta(days=1))
        page = service.list_published_page(1, 10)
        assert [p.id for p in page.data] == [newer.id, older.id]

    def test_admin_listing_includes_everything(self, service):
        _post(service, "Draft")
        _post(service, "Live", published_at=datetime(2020, 1, 1, tzinfo=UTC))
        page = service.list_all_page(1, 10)
        assert page.total == 2

    def test_pagination(self, service, clock):
        base = clock.now_utc() - timedelta(days=30)
        for i in range(7):
            _post(service, f"Post {i}", published_at=base + timedelta(days=i))
        assert len(service.list_published_page(1, 3).data) == 3
        last = service.list_published_page(3, 3)
        assert len(last.data) == 1
        assert service.list_published_page(4, 3).data == []

    def test_page_inputs_clamped(self, service):
        page = service.list_published_page("0", "500")
        assert page.page == 1
        assert page.page_size == 100


class TestShell:
    def test_run_create_update_list(self, service, clock):
        created = run_create(
            CreatePostInput(title="Shell", content="Body", published_at=clock.now_utc()),
            service,
        )
        assert created.success
        updated = run_update(
            UpdatePostInput(post_id=created.post.id, updates={"title": "Shell Renamed"}),
            service,
        )
        assert updated.post.title == "Shell Renamed"
        assert updated.post.slug == "shell"
        assert run_list(ListPostsInput(), service).total == 1
        assert run_list(ListPostsInput(published_only=False), service).total == 1
