"""
Protocol definitions for dbspine.

Manifesto:
    The facades never talk to a database driver directly. They talk to a
    ``SqlBackend``: a small capability set that any engine can satisfy.
    The default implementation sits on SQLAlchemy Core
    (:mod:`dbspine.adapters.sqlalchemy_backend`); tests use a recording fake.

Architecture:
    ::

        SqlBackend
        ┌────────────────────────────────────────────────────────────┐
        │ fetch_all(sql, params)        → list[dict]                 │
        │ fetch_one(sql, params)        → dict | None                │
        │ execute(sql, params)          → affected rows              │
        │ execute_insert(sql, params)   → generated id (0 if none)   │
        │ insert(table, data)           → generated id | rows        │
        │ update(table, values, where)  → affected rows              │
        │ delete(table, where)          → affected rows              │
        │ list_databases() / list_views()                            │
        │ list_table_columns / details / indexes / foreign_keys      │
        │ close(), engine / connection / native accessors            │
        └────────────────────────────────────────────────────────────┘

        NativeHandle — a DB-API 2.0 connection (sqlite3, mysql.connector, …)

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts — implementations go in adapters
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from dbspine.statement import Parameters


@runtime_checkable
class NativeHandle(Protocol):
    """Minimal DB-API 2.0 connection: what a facade can adopt."""

    def cursor(self) -> Any: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class SqlBackend(Protocol):
    """Engine capability set the facades are built on."""

    @property
    def name(self) -> str:
        """Backend name: ``"sqlite"``, ``"mysql"``, ``"postgresql"``."""
        ...

    @property
    def closed(self) -> bool: ...

    @property
    def engine(self) -> Any: ...

    @property
    def connection(self) -> Any:
        """Structured connection handle."""
        ...

    @property
    def native(self) -> Any:
        """Raw DB-API connection."""
        ...

    # --- raw statements ---

    def fetch_all(self, statement: str, parameters: Parameters = None) -> list[dict[str, Any]]: ...

    def fetch_one(self, statement: str, parameters: Parameters = None) -> dict[str, Any] | None: ...

    def execute(self, statement: str, parameters: Parameters = None) -> int: ...

    def execute_insert(self, statement: str, parameters: Parameters = None) -> int: ...

    # --- structured primitives ---

    def insert(self, table: str, data: Mapping[str, Any]) -> int: ...

    def update(
        self,
        table: str,
        values: Mapping[str, Any],
        criteria: Mapping[str, Any],
    ) -> int: ...

    def delete(self, table: str, criteria: Mapping[str, Any]) -> int: ...

    # --- schema metadata ---

    def list_databases(self) -> list[str]: ...

    def list_views(self) -> list[str]: ...

    def list_table_columns(self, table: str) -> list[dict[str, Any]]: ...

    def list_table_details(self, table: str) -> dict[str, Any]: ...

    def list_table_indexes(self, table: str) -> list[dict[str, Any]]: ...

    def list_table_foreign_keys(self, table: str) -> list[dict[str, Any]]: ...

    # --- lifecycle ---

    def close(self) -> None: ...


__all__ = [
    "NativeHandle",
    "SqlBackend",
]
