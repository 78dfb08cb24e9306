"""Fixtures for the HTTP tests: a migrated temp database and an admin token."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.auth_utils import get_password_hash, issue_admin_token
from src.api.deps import Settings, get_query_cache, get_rules, get_settings
from src.api.main import app
from src.core.services.query_cache import QueryCache
from src.rules.loader import load_rules

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct-horse-battery"


@pytest.fixture
def settings(tmp_path) -> Settings:
    s = Settings()
    s.data_dir = tmp_path / "data"
    s.db_path = str(s.data_dir / "exocorpse.db")
    s.storage_dir = s.data_dir / "storage"
    s.base_url = "http://testserver"
    s.admin_email = ADMIN_EMAIL
    s.admin_password_hash = get_password_hash(ADMIN_PASSWORD)
    s.rules_path = Path("rules.yaml").resolve()
    SQLiteMigrator(s.db_path).run_migrations()
    return s


@pytest.fixture
def query_cache() -> QueryCache:
    return QueryCache(ttl_seconds=60)


@pytest.fixture
def client(settings, query_cache):
    rules = load_rules(settings.rules_path)
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_rules] = lambda: rules
    app.dependency_overrides[get_query_cache] = lambda: query_cache
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_credentials() -> tuple[str, str]:
    return ADMIN_EMAIL, ADMIN_PASSWORD


@pytest.fixture
def auth_headers(settings) -> dict[str, str]:
    token = issue_admin_token(ADMIN_EMAIL, settings.secret_key)
    return {"Authorization": f"Bearer {token}"}
