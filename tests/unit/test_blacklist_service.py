"""
Unit tests for BlacklistService.

Covers username validation, case-insensitive uniqueness, newest-first
pagination with clamped inputs, and cache invalidation.
"""

from uuid import uuid4

import pytest

from src.components.blacklist import (
    AddBlacklistInput,
    BlacklistService,
    ListBlacklistInput,
    RemoveBlacklistInput,
    UpdateBlacklistInput,
    run_add,
    run_list,
    run_remove,
    run_update,
    validate_username,
)
from src.core.services.query_cache import TAG_BLACKLIST, QueryCache
from tests.fakes import MockBlacklistRepo


@pytest.fixture
def repo():
    return MockBlacklistRepo()


@pytest.fixture
def cache():
    return QueryCache(ttl_seconds=60)


@pytest.fixture
def service(repo, cache, clock):
    return BlacklistService(repo, cache=cache, time_port=clock, username_max=20)


def _add_many(service: BlacklistService, clock, count: int) -> list:
    entries = []
    for i in range(count):
        entry, errors = service.add(f"user{i:02d}")
        assert errors == []
        entries.append(entry)
        clock.advance(1)
    return entries


class TestValidateUsername:
    def test_blank_is_required(self):
        errors = validate_username("   ")
        assert [e.code for e in errors] == ["username_required"]
        assert errors[0].field == "username"

    def test_none_is_required(self):
        assert validate_username(None)[0].code == "username_required"

    def test_too_long(self):
        assert validate_username("x" * 11, max_len=10)[0].code == "username_too_long"

    def test_length_counts_trimmed_value(self):
        assert validate_username("  " + "x" * 10 + "  ", max_len=10) == []


class TestAdd:
    def test_add_trims_and_stamps(self, service, clock):
        entry, errors = service.add("  spammer  ", "  never paid  ")
        assert errors == []
        assert entry.username == "spammer"
        assert entry.reasoning == "never paid"
        assert entry.timestamp == clock.now_utc()

    def test_blank_reasoning_is_none(self, service):
        entry, _ = service.add("someone", "   ")
        assert entry.reasoning is None

    def test_duplicate_is_case_insensitive(self, service):
        service.add("Spammer")
        entry, errors = service.add("SPAMMER")
        assert entry is None
        assert errors[0].code == "username_exists"
        assert errors[0].field == "username"

    def test_username_over_configured_max(self, service):
        _, errors = service.add("x" * 21)
        assert errors[0].code == "username_too_long"

    def test_add_invalidates_cache(self, service, cache):
        cache.set("public:blacklist:1:10", ["stale"], tags=[TAG_BLACKLIST])
        service.add("fresh")
        assert cache.get("public:blacklist:1:10") is None


class TestUpdate:
    def test_rename(self, service):
        entry, _ = service.add("old")
        updated, errors = service.update(entry.id, username=" new ")
        assert errors == []
        assert updated.username == "new"
        assert updated.timestamp == entry.timestamp

    def test_rename_to_own_name_in_other_case(self, service):
        entry, _ = service.add("Someone")
        updated, errors = service.update(entry.id, username="someone")
        assert errors == []
        assert updated.username == "someone"

    def test_rename_onto_existing_entry(self, service):
        service.add("taken")
        entry, _ = service.add("other")
        _, errors = service.update(entry.id, username="TAKEN")
        assert errors[0].code == "username_exists"

    def test_clear_reasoning(self, service):
        entry, _ = service.add("someone", "reason")
        updated, _ = service.update(entry.id, reasoning="")
        assert updated.reasoning is None
        assert updated.username == "someone"

    def test_missing_entry(self, service):
        _, errors = service.update(uuid4(), username="x")
        assert errors[0].code == "entry_not_found"

    def test_blank_username_rejected(self, service):
        entry, _ = service.add("someone")
        _, errors = service.update(entry.id, username=" ")
        assert errors[0].code == "username_required"


class TestRemove:
    def test_remove(self, service, repo):
        entry, _ = service.add("someone")
        assert service.remove(entry.id) == []
        assert repo.items == {}

    def test_remove_missing(self, service):
        assert service.remove(uuid4())[0].code == "entry_not_found"


class TestListPage:
    def test_newest_first(self, service, clock):
        entries = _add_many(service, clock, 3)
        page = service.list_page(1, 10)
        assert [e.id for e in page.data] == [e.id for e in reversed(entries)]
        assert page.total == 3

    def test_last_page_is_partial(self, service, clock):
        _add_many(service, clock, 12)
        page = service.list_page(2, 5)
        assert len(page.data) == 5
        last = service.list_page(3, 5)
        assert len(last.data) == 2
        assert last.total == 12

    def test_page_past_the_end_is_empty(self, service, clock):
        _add_many(service, clock, 3)
        page = service.list_page(9, 5)
        assert page.data == []
        assert page.page == 9
        assert page.total == 3

    @pytest.mark.parametrize(
        "raw_page,raw_size,expected",
        [
            ("0", "5", (1, 5)),
            ("-3", "5", (1, 5)),
            ("abc", "xyz", (1, 10)),
            ("2", "1000", (2, 100)),
            ("1", "-4", (1, 1)),
        ],
    )
    def test_inputs_are_clamped(self, repo, raw_page, raw_size, expected):
        service = BlacklistService(repo)
        page = service.list_page(raw_page, raw_size)
        assert (page.page, page.page_size) == expected

    def test_page_size_defaults_when_omitted(self, repo):
        service = BlacklistService(repo, default_page_size=7)
        assert service.list_page(1).page_size == 7

    def test_dump_uses_page_size_alias(self, service, clock):
        _add_many(service, clock, 1)
        dumped = service.list_page(1, 10).model_dump(mode="json", by_alias=True)
        assert set(dumped) == {"data", "total", "page", "pageSize"}


class TestShell:
    def test_run_add_and_list(self, service):
        out = run_add(AddBlacklistInput(username="someone", reasoning="ghosted"), service)
        assert out.success
        listed = run_list(ListBlacklistInput(page="1", page_size="10"), service)
        assert listed.page.total == 1

    def test_run_update_failure(self, service):
        out = run_update(UpdateBlacklistInput(entry_id=uuid4(), username="x"), service)
        assert not out.success
        assert out.entry is None

    def test_run_remove(self, service):
        entry, _ = service.add("someone")
        assert run_remove(RemoveBlacklistInput(entry_id=entry.id), service).success
