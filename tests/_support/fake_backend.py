"""
Recording ``SqlBackend`` for tests that exercise the facades without a database.

Every call is appended to ``calls`` as ``(method, args)``; return values come
from ``responses`` keyed by method name.

Usage in test code::

    from tests._support.fake_backend import RecordingBackend

    backend = RecordingBackend(responses={"fetch_all": [{"id": 1}]})
    db = Connection.from_backend(backend)
    db.query("SELECT * FROM t")
    assert backend.calls == [("fetch_all", ("SELECT * FROM t", None))]
"""

from __future__ import annotations

from typing import Any

_DEFAULTS: dict[str, Any] = {
    "fetch_all": [],
    "fetch_one": None,
    "execute": 0,
    "execute_insert": 0,
    "insert": 1,
    "update": 0,
    "delete": 0,
    "list_databases": ["main"],
    "list_views": [],
    "list_table_columns": [],
    "list_table_details": {},
    "list_table_indexes": [],
    "list_table_foreign_keys": [],
}


class RecordingBackend:
    """In-memory ``SqlBackend`` double that records every call."""

    def __init__(self, responses: dict[str, Any] | None = None, name: str = "fake") -> None:
        self.responses = {**_DEFAULTS, **(responses or {})}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._name = name
        self._closed = False

    def _record(self, method: str, *args: Any) -> Any:
        self.calls.append((method, args))
        return self.responses[method]

    @property
    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]

    # --- SqlBackend ---

    @property
    def name(self) -> str:
        return self._name

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def engine(self) -> Any:
        return None

    @property
    def connection(self) -> Any:
        return self

    @property
    def native(self) -> Any:
        return None

    def fetch_all(self, statement, parameters=None):
        return self._record("fetch_all", statement, parameters)

    def fetch_one(self, statement, parameters=None):
        return self._record("fetch_one", statement, parameters)

    def execute(self, statement, parameters=None):
        return self._record("execute", statement, parameters)

    def execute_insert(self, statement, parameters=None):
        return self._record("execute_insert", statement, parameters)

    def insert(self, table, data):
        return self._record("insert", table, dict(data))

    def update(self, table, values, criteria):
        return self._record("update", table, dict(values), dict(criteria))

    def delete(self, table, criteria):
        return self._record("delete", table, dict(criteria))

    def list_databases(self):
        return self._record("list_databases")

    def list_views(self):
        return self._record("list_views")

    def list_table_columns(self, table):
        return self._record("list_table_columns", table)

    def list_table_details(self, table):
        return self._record("list_table_details", table)

    def list_table_indexes(self, table):
        return self._record("list_table_indexes", table)

    def list_table_foreign_keys(self, table):
        return self._record("list_table_foreign_keys", table)

    def close(self) -> None:
        self.calls.append(("close", ()))
        self._closed = True
