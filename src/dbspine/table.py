"""Table facade -- CRUD shorthands and introspection for one table."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from dbspine.connection import Connection
from dbspine.errors import ConfigError
from dbspine.statement import Parameters


class Table:
    """
    View over a single table of a :class:`~dbspine.connection.Connection`.

    The connection is referenced, not owned: it must stay open for as long
    as the table is used. Use :meth:`from_native` to start from a raw
    DB-API connection instead.

    Example:
        users = Table(db, "users")
        new_id = users.insert({"name": "Ada"})
        users.select("WHERE id = ?", parameters=[new_id])
        users.update({"name": "Ada L."}, {"id": new_id})
        users.delete({"id": new_id})
    """

    def __init__(self, connection: Connection, table: str):
        if not isinstance(connection, Connection):
            raise ConfigError(
                "No valid connection instance was passed: expected a Connection, "
                f"got {type(connection).__name__} (use Table.from_native for DB-API connections)"
            )
        if not table:
            raise ConfigError("A table name is required")

        self._connection = connection
        self._table = table
        self._owns_connection = False

    @classmethod
    def from_native(cls, native: Any, table: str) -> Table:
        """Create a table view over a pre-existing DB-API connection.

        The wrapping :class:`Connection` belongs to the table and is closed
        with it; the DB-API connection itself stays open.
        """
        instance = cls(Connection.from_native(native), table)
        instance._owns_connection = True
        return instance

    @property
    def name(self) -> str:
        return self._table

    @property
    def connection(self) -> Connection:
        return self._connection

    def select(
        self,
        what: str = "",
        columns: Sequence[str] | None = ("*",),
        parameters: Parameters = None,
    ) -> list[dict[str, Any]]:
        """Run ``SELECT {columns} FROM {table} {what}`` and return the rows.

        Args:
            what: Raw SQL appended after the table name, usually ``"WHERE ..."``;
                it is not validated.
            columns: Columns to select; empty or ``None`` selects ``*``.
            parameters: Values bound to placeholders in *what*.
        """
        fields = ", ".join(columns) if columns else "*"
        statement = f"SELECT {fields} FROM {self._table} {what}".rstrip()
        return self._connection.query(statement, parameters)

    def insert(self, data: Mapping[str, Any]) -> int:
        """Insert one record and return its generated id."""
        return self._connection.insert(self._table, data)

    def update(self, what: Mapping[str, Any], where: Mapping[str, Any]) -> int:
        """Update matching records and return the number of affected rows.

        Args:
            what: Columns to set and their new values.
            where: ``column == value`` criteria, combined with AND.
        """
        return self._connection.update(self._table, what, where)

    def delete(self, where: Mapping[str, Any]) -> int:
        """Delete matching records and return the number of affected rows."""
        return self._connection.delete(self._table, where)

    def get_columns(self) -> list[dict[str, Any]]:
        """Get a list of the table's columns."""
        return self._connection.backend.list_table_columns(self._table)

    def get_properties(self) -> dict[str, Any]:
        """Get the table's details, indexes and foreign keys."""
        backend = self._connection.backend
        return {
            "details": backend.list_table_details(self._table),
            "indexes": backend.list_table_indexes(self._table),
            "foreign_keys": backend.list_table_foreign_keys(self._table),
        }

    def close(self) -> None:
        """Close the connection if this table created it."""
        if self._owns_connection:
            self._connection.close()

    def __enter__(self) -> Table:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Table({self._table!r})"


__all__ = [
    "Table",
]
