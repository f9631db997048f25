"""
Shared pytest fixtures and configuration for dbspine tests.

This module provides:
- In-memory and file-based SQLite connections
- A ``users`` table fixture matching the examples in the docs
- A recording fake backend for dispatch tests that need no database

Usage:
    Fixtures are auto-discovered by pytest::

        def test_something(db, users):
            users.insert({"name": "Ada"})
"""

import sqlite3
import sys
from pathlib import Path
from typing import Generator

import pytest

# Ensure dbspine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dbspine import Connection, Table
from tests._support.fake_backend import RecordingBackend


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Connection Fixtures
# =============================================================================

USERS_DDL = "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, status TEXT)"


@pytest.fixture
def db() -> Generator[Connection, None, None]:
    """In-memory SQLite connection, closed after the test."""
    with Connection("sqlite") as conn:
        yield conn


@pytest.fixture
def users(db: Connection) -> Table:
    """Empty ``users(id, name, status)`` table on the in-memory connection."""
    db.query(USERS_DDL)
    return Table(db, "users")


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path for a file-based SQLite database inside the test's tmp dir."""
    return tmp_path / "app.db"


@pytest.fixture
def native_handle() -> Generator[sqlite3.Connection, None, None]:
    """Raw sqlite3 connection with a seeded ``users`` table."""
    handle = sqlite3.connect(":memory:")
    handle.execute(USERS_DDL)
    handle.executemany(
        "INSERT INTO users (name, status) VALUES (?, ?)",
        [("Ada", "active"), ("Grace", "active"), ("Linus", "away")],
    )
    handle.commit()
    yield handle
    handle.close()


@pytest.fixture
def fake_backend() -> RecordingBackend:
    """Recording ``SqlBackend`` test double."""
    return RecordingBackend()


@pytest.fixture
def fake_db(fake_backend: RecordingBackend) -> Connection:
    """Connection facade over the recording backend."""
    return Connection.from_backend(fake_backend, driver="sqlite")
