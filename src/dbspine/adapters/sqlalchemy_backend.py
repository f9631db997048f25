"""SQLAlchemy Core implementation of the ``SqlBackend`` protocol.

Manifesto:
    The facades need a handful of engine capabilities: run a statement,
    fetch rows, build a safe insert/update/delete from a mapping, and read
    schema metadata. SQLAlchemy Core provides all of them for every engine
    we support, so ``SQLAlchemyBackend`` is a thin bridge and nothing more.

Features:
    - One engine per backend with a single-connection ``StaticPool``
    - One checked-out ``Connection``, opened eagerly so bad parameters fail fast
    - Every call runs in its own ``begin()`` block (commit or rollback)
    - Engine exceptions become :class:`~dbspine.errors.DatabaseError`
      subclasses carrying the engine's message and code
    - Adoption of an existing DB-API connection without closing it on release

Usage::

    from dbspine.adapters import DatabaseConfig, DriverKind, create_backend

    backend = create_backend(DatabaseConfig(DriverKind.SQLITE, database="app.db"))
    backend.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
    backend.insert("t", {"name": "Ada"})
    backend.fetch_all("SELECT * FROM t")
    backend.close()

Tags:
    dbspine, sqlalchemy, backend, bridge, connection
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy import and_, column, create_engine, event, inspect, text
from sqlalchemy import delete as sa_delete
from sqlalchemy import insert as sa_insert
from sqlalchemy import table as sa_table
from sqlalchemy import update as sa_update
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import Connection as SAConnection
from sqlalchemy.engine import Engine, URL
from sqlalchemy.engine.reflection import Inspector
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql.expression import TableClause

from dbspine.errors import (
    ConfigError,
    DatabaseConnectionError,
    DatabaseError,
    IntegrityError,
    QueryError,
    ValidationError,
)
from dbspine.logging import get_logger
from dbspine.protocols import NativeHandle
from dbspine.statement import Parameters, bind_parameters

from .types import DatabaseConfig, DriverKind

logger = get_logger(__name__)


# ── Error translation ────────────────────────────────────────────────────


def _engine_error(exc: BaseException) -> BaseException:
    """The driver exception behind a SQLAlchemy wrapper, if any."""
    return getattr(exc, "orig", None) or exc


def engine_code(exc: BaseException) -> int | str | None:
    """Extract the engine's native error code."""
    orig = _engine_error(exc)
    for attr in ("sqlite_errorcode", "errno", "pgcode"):
        code = getattr(orig, attr, None)
        if code is not None:
            return code
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


def engine_message(exc: BaseException) -> str:
    """The engine's diagnostic message, unmodified."""
    return str(_engine_error(exc))


def translate_error(
    exc: sa_exc.SQLAlchemyError,
    *,
    driver: str | None = None,
    statement: str | None = None,
    table: str | None = None,
) -> DatabaseError:
    """Map a SQLAlchemy exception onto the dbspine hierarchy."""
    error_cls = IntegrityError if isinstance(exc, sa_exc.IntegrityError) else QueryError
    error = error_cls(engine_message(exc), code=engine_code(exc), cause=exc)
    return error.with_context(driver=driver, statement=statement, table=table)


# ── Native handle detection ──────────────────────────────────────────────

# Module prefix of a DB-API connection class -> SQLAlchemy dialect+driver
_NATIVE_DRIVERS = (
    ("sqlite3", "sqlite", "sqlite+pysqlite"),
    ("mysql.connector", "mysql", "mysql+mysqlconnector"),
    ("pymysql", "mysql", "mysql+pymysql"),
    ("mysqldb", "mysql", "mysql+mysqldb"),
    ("psycopg2", "postgresql", "postgresql+psycopg2"),
    ("psycopg", "postgresql", "postgresql+psycopg"),
)


def detect_native_driver(handle: Any) -> tuple[str, str]:
    """Return ``(backend_name, sqlalchemy_driver)`` for a DB-API connection.

    Detection uses only the handle's type; nothing is read from the
    connection itself.

    Raises:
        ConfigError: If *handle* is not a DB-API connection of a known driver.
    """
    if not isinstance(handle, NativeHandle):
        raise ConfigError(
            f"No valid connection instance was passed: {type(handle).__name__} "
            "is not a DB-API connection"
        )

    module = type(handle).__module__.lower()
    for prefix, backend, driver in _NATIVE_DRIVERS:
        if module == prefix or module.startswith(prefix + "."):
            return backend, driver

    raise ConfigError(f"Unsupported native connection type: {type(handle).__module__}.{type(handle).__qualname__}")


# ── Engine factories ─────────────────────────────────────────────────────


def _create_engine(url: URL | str, **kwargs: Any) -> Engine:
    try:
        return create_engine(url, **kwargs)
    except ImportError as e:
        raise ConfigError(
            f"Database driver for {url!s} is not installed: {e}",
            cause=e,
        ) from e
    except sa_exc.ArgumentError as e:
        raise ConfigError(f"Invalid database configuration: {e}", cause=e) from e


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_backend(config: DatabaseConfig) -> SQLAlchemyBackend:
    """Open a backend for an engine-backed driver kind.

    Raises:
        ConfigError: Driver kind has no URL or its module is missing.
        DatabaseConnectionError: The engine rejected the parameters.
    """
    url = config.to_url()

    kwargs: dict[str, Any] = {"poolclass": StaticPool, "echo": config.echo}
    if config.driver is DriverKind.SQLITE:
        kwargs["connect_args"] = {"check_same_thread": False}

    engine = _create_engine(url, **kwargs)
    if config.driver is DriverKind.SQLITE:
        _enable_sqlite_foreign_keys(engine)

    return SQLAlchemyBackend(engine, name=config.driver.value)


def adopt_native(handle: Any, *, echo: bool = False) -> SQLAlchemyBackend:
    """Wrap an existing DB-API connection.

    The handle is used as-is: no credentials are read from it and
    :meth:`SQLAlchemyBackend.close` leaves it open for its owner, without
    rolling it back. The handle's transaction is shared: every facade call
    commits, so work the caller left pending on the handle is committed with it.
    Adoption itself rolls back once (the engine's first-connect handshake), so
    commit pending work before adopting.
    """
    backend, driver = detect_native_driver(handle)
    engine = _create_engine(
        f"{driver}://",
        creator=lambda: handle,
        poolclass=StaticPool,
        pool_reset_on_return=None,
        echo=echo,
    )
    return SQLAlchemyBackend(engine, name=backend, owns_native=False)


def _table_clause(name: str, columns: Iterator[str] | list[str]) -> TableClause:
    schema, _, table_name = name.rpartition(".")
    return sa_table(table_name, *(column(c) for c in columns), schema=schema or None)


# ── Backend ──────────────────────────────────────────────────────────────


class SQLAlchemyBackend:
    """``SqlBackend`` over one SQLAlchemy ``Connection``.

    Implements: ``fetch_all``, ``fetch_one``, ``execute``,
    ``execute_insert``, ``insert``, ``update``, ``delete``, the
    ``list_*`` metadata calls and ``close``.
    """

    def __init__(self, engine: Engine, *, name: str, owns_native: bool = True) -> None:
        self._engine = engine
        self._name = name
        self._owns_native = owns_native
        self._closed = False

        try:
            self._connection: SAConnection = engine.connect()
        except sa_exc.SQLAlchemyError as e:
            engine.dispose(close=owns_native)
            raise DatabaseConnectionError(
                engine_message(e),
                code=engine_code(e),
                cause=e,
            ) from e

    # --- properties ---

    @property
    def name(self) -> str:
        return self._name

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def connection(self) -> SAConnection:
        """The structured SQLAlchemy connection."""
        self._ensure_open()
        return self._connection

    @property
    def native(self) -> Any:
        """The DB-API connection underneath."""
        self._ensure_open()
        return self._connection.connection.dbapi_connection

    # --- scopes ---

    def _ensure_open(self) -> None:
        if self._closed:
            raise DatabaseError("Connection is closed")

    @contextmanager
    def _transaction(
        self,
        *,
        statement: str | None = None,
        table: str | None = None,
    ) -> Iterator[SAConnection]:
        self._ensure_open()
        conn = self._connection
        try:
            with conn.begin():
                yield conn
        except sa_exc.SQLAlchemyError as e:
            logger.warning(
                "statement_failed",
                backend=self._name,
                table=table,
                code=engine_code(e),
                error=engine_message(e),
            )
            raise translate_error(e, driver=self._name, statement=statement, table=table) from e

    @contextmanager
    def _inspector(self, *, table: str | None = None) -> Iterator[Inspector]:
        self._ensure_open()
        conn = self._connection
        try:
            with conn.begin():
                yield inspect(conn)
        except sa_exc.SQLAlchemyError as e:
            raise translate_error(e, driver=self._name, table=table) from e

    # --- raw statements ---

    def fetch_all(self, statement: str, parameters: Parameters = None) -> list[dict[str, Any]]:
        sql, binds = bind_parameters(statement, parameters)
        with self._transaction(statement=statement) as conn:
            result = conn.execute(text(sql), binds)
            if not result.returns_rows:
                return []
            return [dict(row) for row in result.mappings()]

    def fetch_one(self, statement: str, parameters: Parameters = None) -> dict[str, Any] | None:
        sql, binds = bind_parameters(statement, parameters)
        with self._transaction(statement=statement) as conn:
            result = conn.execute(text(sql), binds)
            if not result.returns_rows:
                return None
            row = result.mappings().first()
            return dict(row) if row is not None else None

    def execute(self, statement: str, parameters: Parameters = None) -> int:
        sql, binds = bind_parameters(statement, parameters)
        with self._transaction(statement=statement) as conn:
            result = conn.execute(text(sql), binds)
            return max(result.rowcount, 0)

    def execute_insert(self, statement: str, parameters: Parameters = None) -> int:
        sql, binds = bind_parameters(statement, parameters)
        with self._transaction(statement=statement) as conn:
            result = conn.execute(text(sql), binds)
            return int(result.lastrowid or 0)

    # --- structured primitives ---

    def insert(self, table: str, data: Mapping[str, Any]) -> int:
        if not data:
            raise ValidationError("Insert data must not be empty", field="data").with_context(table=table)

        tbl = _table_clause(table, list(data))
        with self._transaction(table=table) as conn:
            result = conn.execute(sa_insert(tbl).values(dict(data)))
            return int(result.lastrowid or max(result.rowcount, 0))

    def update(
        self,
        table: str,
        values: Mapping[str, Any],
        criteria: Mapping[str, Any],
    ) -> int:
        if not values:
            raise ValidationError("Update values must not be empty", field="values").with_context(table=table)

        tbl = _table_clause(table, list(dict.fromkeys([*values, *criteria])))
        stmt = sa_update(tbl).values(dict(values))
        if criteria:
            stmt = stmt.where(and_(*(tbl.c[k] == v for k, v in criteria.items())))

        with self._transaction(table=table) as conn:
            return max(conn.execute(stmt).rowcount, 0)

    def delete(self, table: str, criteria: Mapping[str, Any]) -> int:
        if not criteria:
            raise ValidationError(
                "Delete criteria must not be empty",
                field="criteria",
            ).with_context(table=table)

        tbl = _table_clause(table, list(criteria))
        stmt = sa_delete(tbl).where(and_(*(tbl.c[k] == v for k, v in criteria.items())))

        with self._transaction(table=table) as conn:
            return max(conn.execute(stmt).rowcount, 0)

    # --- schema metadata ---

    def list_databases(self) -> list[str]:
        with self._inspector() as insp:
            return insp.get_schema_names()

    def list_views(self) -> list[str]:
        with self._inspector() as insp:
            return insp.get_view_names()

    def list_table_columns(self, table: str) -> list[dict[str, Any]]:
        schema, _, name = table.rpartition(".")
        with self._inspector(table=table) as insp:
            return [dict(col) for col in insp.get_columns(name, schema=schema or None)]

    def list_table_details(self, table: str) -> dict[str, Any]:
        schema, _, name = table.rpartition(".")
        schema = schema or None
        with self._inspector(table=table) as insp:
            return {
                "name": name,
                "schema": schema,
                "columns": [dict(col) for col in insp.get_columns(name, schema=schema)],
                "primary_key": dict(insp.get_pk_constraint(name, schema=schema)),
                "unique_constraints": [
                    dict(uc) for uc in insp.get_unique_constraints(name, schema=schema)
                ],
                "options": dict(insp.get_table_options(name, schema=schema)),
            }

    def list_table_indexes(self, table: str) -> list[dict[str, Any]]:
        schema, _, name = table.rpartition(".")
        with self._inspector(table=table) as insp:
            return [dict(ix) for ix in insp.get_indexes(name, schema=schema or None)]

    def list_table_foreign_keys(self, table: str) -> list[dict[str, Any]]:
        schema, _, name = table.rpartition(".")
        with self._inspector(table=table) as insp:
            return [dict(fk) for fk in insp.get_foreign_keys(name, schema=schema or None)]

    # --- lifecycle ---

    def close(self) -> None:
        """Release the connection and engine; idempotent.

        An adopted native handle is left open for its owner.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._connection.close()
        finally:
            self._engine.dispose(close=self._owns_native)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"SQLAlchemyBackend(name={self._name!r}, {state})"


__all__ = [
    "SQLAlchemyBackend",
    "adopt_native",
    "create_backend",
    "detect_native_driver",
    "engine_code",
    "engine_message",
    "translate_error",
]
