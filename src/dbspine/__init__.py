"""
dbspine - a thin relational database access layer.

Two facades over SQLAlchemy Core:

- :class:`Connection` selects a driver, executes raw statements with bound
  parameters (result shape chosen from the statement), runs structured
  insert/update/delete and lists databases and views.
- :class:`Table` binds a connection to one table name and offers select,
  insert, update, delete and column/index/foreign-key introspection.

Quick start::

    from dbspine import Connection, Table

    with Connection("sqlite", "app.db") as db:
        db.query("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
        users = Table(db, "users")
        user_id = users.insert({"name": "Ada"})
        users.select("WHERE id = ?", parameters=[user_id])
"""

from dbspine.adapters import DatabaseConfig, DriverKind, SQLAlchemyBackend
from dbspine.connection import Connection
from dbspine.errors import (
    ConfigError,
    DatabaseConnectionError,
    DatabaseError,
    DbSpineError,
    IntegrityError,
    InvalidConfigError,
    MissingConfigError,
    QueryError,
    ValidationError,
)
from dbspine.protocols import NativeHandle, SqlBackend
from dbspine.settings import DatabaseSettings
from dbspine.statement import StatementIntent, classify_statement
from dbspine.table import Table

__version__ = "1.0.0"

__all__ = [
    # Facades
    "Connection",
    "Table",
    # Configuration
    "DriverKind",
    "DatabaseConfig",
    "DatabaseSettings",
    # Protocols / backends
    "SqlBackend",
    "NativeHandle",
    "SQLAlchemyBackend",
    # Statements
    "StatementIntent",
    "classify_statement",
    # Errors
    "DbSpineError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "DatabaseError",
    "DatabaseConnectionError",
    "QueryError",
    "IntegrityError",
    "ValidationError",
]
