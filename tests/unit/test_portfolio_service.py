"""
Unit tests for PortfolioService and its content helpers.
"""

from uuid import uuid4

import pytest

from src.components.portfolio import (
    CreateArtInput,
    CreateWritingInput,
    PortfolioService,
    UpdatePieceInput,
    normalize_tags,
    run_create_art,
    run_create_writing,
    run_update,
    validate_piece_values,
)
from src.core.services.query_cache import TAG_PORTFOLIO, QueryCache
from src.domain.sanitize import count_words, escape_raw_html
from tests.fakes import MockObjectStorage, MockPieceRepo


@pytest.fixture
def storage():
    return MockObjectStorage()


@pytest.fixture
def cache():
    return QueryCache(ttl_seconds=60)


@pytest.fixture
def service(storage, cache, clock, content_rules):
    return PortfolioService(
        MockPieceRepo(),
        MockPieceRepo(),
        storage=storage,
        cache=cache,
        time_port=clock,
        content_rules=content_rules,
    )


@pytest.fixture
def painting(service):
    piece, errors = service.create_art(
        title="Night Market",
        image_url="portfolio/night-market.png",
        thumbnail_url="portfolio/night-market-thumb.png",
        tags=["Digital", "city"],
    )
    assert errors == []
    return piece


@pytest.fixture
def story_piece(service):
    piece, errors = service.create_writing(
        title="Salt Roads", content="The caravan left at dawn.", cover_image="covers/salt.png"
    )
    assert errors == []
    return piece


class TestHelpers:
    def test_tags_trimmed_and_deduplicated(self):
        assert normalize_tags([" Ink ", "ink", "", "Color", "  "]) == ["Ink", "Color"]

    def test_no_tags(self):
        assert normalize_tags(None) == []

    def test_escape_keeps_blockquotes(self):
        assert escape_raw_html("> quote <b>bold</b> & more") == (
            "> quote &lt;b>bold&lt;/b> &amp; more"
        )

    def test_count_words(self):
        assert count_words("Hello, world! It's a test-case.") == 5
        assert count_words("") == 0

    @pytest.mark.parametrize(
        "values,code",
        [
            ({"year": 0}, "year_invalid"),
            ({"year": "2020"}, "year_invalid"),
            ({"year": True}, "year_invalid"),
            ({"display_order": 1.5}, "display_order_invalid"),
            ({"tags": [f"t{i}" for i in range(31)]}, "tags_too_many"),
        ],
    )
    def test_invalid_values(self, values, code):
        assert validate_piece_values(values)[0].code == code

    def test_valid_values(self):
        assert validate_piece_values({"year": 2024, "display_order": -1, "tags": ["a"]}) == []


class TestArt:
    def test_create(self, painting, clock):
        assert painting.slug == "night-market"
        assert painting.tags == ["Digital", "city"]
        assert painting.created_at == clock.now_utc()

    def test_image_required(self, service):
        _, errors = service.create_art(title="Blank", image_url=" ")
        assert errors[0].code == "image_url_required"

    def test_duplicate_slug(self, service, painting):
        _, errors = service.create_art(title="Night Market", image_url="x.png")
        assert errors[0].code == "slug_exists"

    def test_featured_listing_ordered(self, service, painting):
        featured, _ = service.create_art(
            title="Cover", image_url="cover.png", is_featured=True, display_order=2
        )
        first, _ = service.create_art(
            title="Lead", image_url="lead.png", is_featured=True, display_order=1
        )
        assert [p.id for p in service.list_featured_art()] == [first.id, featured.id]
        assert len(service.list_art()) == 3

    def test_replacing_image_deletes_old_file(self, service, storage, painting):
        updated, errors = service.update_art(painting.id, {"image_url": "portfolio/new.png"})
        assert errors == []
        assert updated.image_url == "portfolio/new.png"
        assert storage.deleted == ["portfolio/night-market.png"]

    def test_same_image_is_kept(self, service, storage, painting):
        service.update_art(painting.id, {"image_url": painting.image_url, "year": 2023})
        assert storage.deleted == []

    def test_external_image_is_not_deleted(self, service, storage):
        piece, _ = service.create_art(title="Linked", image_url="https://example.com/a.png")
        assert service.delete_art(piece.id) == []
        assert storage.deleted == []

    def test_delete_removes_files(self, service, storage, painting):
        assert service.delete_art(painting.id) == []
        assert sorted(storage.deleted) == [
            "portfolio/night-market-thumb.png",
            "portfolio/night-market.png",
        ]

    def test_delete_survives_storage_failure(self, service, storage, painting):
        storage.fail_delete = True
        assert service.delete_art(painting.id) == []
        assert service.get_art(painting.id) is None

    def test_slug_immutable(self, service, painting):
        _, errors = service.update_art(painting.id, {"slug": "day-market"})
        assert errors[0].code == "slug_immutable"

    def test_update_missing(self, service):
        _, errors = service.update_art(uuid4(), {"title": "x"})
        assert errors[0].code == "art_not_found"
        assert service.delete_art(uuid4())[0].code == "art_not_found"

    def test_write_invalidates_cache(self, service, cache, painting):
        cache.set("public:portfolio:art", [], tags=[TAG_PORTFOLIO])
        service.update_art(painting.id, {"is_featured": True})
        assert cache.get("public:portfolio:art") is None


class TestWriting:
    def test_word_count_derived(self, story_piece):
        assert story_piece.word_count == 5

    def test_explicit_word_count(self, service):
        piece, _ = service.create_writing(title="Counted", content="one two", word_count=1200)
        assert piece.word_count == 1200

    def test_negative_word_count(self, service):
        _, errors = service.create_writing(title="Bad", content="x", word_count=-1)
        assert errors[0].code == "word_count_negative"

    def test_raw_html_escaped(self, service):
        piece, _ = service.create_writing(title="Script", content="<script>alert(1)</script>")
        assert "<script>" not in piece.content
        assert piece.content.startswith("&lt;script>")

    def test_content_update_recounts_words(self, service, story_piece):
        updated, errors = service.update_writing(story_piece.id, {"content": "Short now"})
        assert errors == []
        assert updated.word_count == 2

    def test_null_word_count_keeps_current(self, service, story_piece):
        updated, _ = service.update_writing(story_piece.id, {"word_count": None})
        assert updated.word_count == story_piece.word_count

    def test_cover_replacement_deletes_old(self, service, storage, story_piece):
        service.update_writing(story_piece.id, {"cover_image": "covers/new.png"})
        assert storage.deleted == ["covers/salt.png"]

    def test_delete(self, service, storage, story_piece):
        assert service.delete_writing(story_piece.id) == []
        assert storage.deleted == ["covers/salt.png"]
        assert service.delete_writing(story_piece.id)[0].code == "writing_not_found"

    def test_lookup_by_slug(self, service, story_piece):
        assert service.get_writing_by_slug("salt-roads").id == story_piece.id


class TestShell:
    def test_run_create_and_update(self, service):
        art = run_create_art(
            CreateArtInput(title="Sketch", image_url="s.png", tags=("ink",)), service
        )
        assert art.success
        writing = run_create_writing(
            CreateWritingInput(title="Poem", content="Roses are red"), service
        )
        assert writing.piece.word_count == 3
        out = run_update(
            UpdatePieceInput(kind="writing", piece_id=writing.piece.id, updates={"year": 2024}),
            service,
        )
        assert out.success
        assert out.piece.year == 2024
        failed = run_update(UpdatePieceInput(kind="art", piece_id=uuid4(), updates={}), service)
        assert not failed.success
