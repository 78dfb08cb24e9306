from datetime import UTC, datetime
from pathlib import Path

import pytest

from src.adapters.clock import FixedClock
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.rules.loader import load_rules
from src.rules.models import ContentRules, Rules

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def rules() -> Rules:
    """The real rules file from the project root."""
    rules_path = Path("rules.yaml").resolve()
    if not rules_path.exists():
        raise FileNotFoundError(f"Rules not found at {rules_path}")
    return load_rules(rules_path)


@pytest.fixture
def content_rules(rules: Rules) -> ContentRules:
    return rules.content


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(FIXED_NOW)


@pytest.fixture
def db_path(tmp_path) -> str:
    """A temporary SQLite database with every migration applied."""
    path = str(tmp_path / "exocorpse.db")
    SQLiteMigrator(path, "migrations").run_migrations()
    return path
