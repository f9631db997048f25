"""Connection facade -- driver selection, statement execution, schema listing.

``Connection`` is the single entry point for talking to a database in
dbspine. It owns exactly one :class:`~dbspine.protocols.SqlBackend`
(by default a :class:`~dbspine.adapters.SQLAlchemyBackend`) and never
shares or pools it.

Supported drivers
-----------------
==============  ==========================================  ==================
Driver          Example                                     Engine
==============  ==========================================  ==================
``native``      ``Connection.from_native(sqlite3_conn)``    adopted handle
``sqlite``      ``Connection("sqlite", "app.db")``          SQLite file
``mysql``       ``Connection("mysql", "app", "u", "pw")``   MySQL / MariaDB
``postgresql``  ``Connection("postgresql", "app", ...)``    PostgreSQL
==============  ==========================================  ==================

Usage
-----
::

    from dbspine import Connection

    with Connection("sqlite", "app.db") as db:
        db.query("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
        new_id = db.query("INSERT INTO users (name) VALUES (?)", ["Ada"])
        rows = db.query("SELECT * FROM users WHERE id = ?", [new_id])
        changed = db.query("UPDATE users SET name = :name", {"name": "Ada L."})

``query`` picks the result shape from the statement text (see
:mod:`dbspine.statement`); ``fetch_all``, ``fetch_one``, ``execute`` and
``execute_insert`` are the explicit equivalents.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dbspine.adapters import DatabaseConfig, DriverKind, adopt_native, create_backend
from dbspine.errors import ConfigError, DatabaseConnectionError, MissingConfigError
from dbspine.logging import get_logger
from dbspine.protocols import SqlBackend
from dbspine.settings import DEFAULT_CHARSET, DatabaseSettings
from dbspine.statement import Parameters, StatementIntent, classify_statement

logger = get_logger(__name__)


class Connection:
    """
    Database connection facade.

    Args:
        driver: ``native``, ``sqlite``, ``mysql`` or ``postgresql``
        database: Name, or path if sqlite, of the database
        username: Connection username
        password: Connection password
        port: Connection port (driver default if ``None``)
        charset: Connection charset for network engines
        native: Pre-existing DB-API connection, required for ``native``
        host: Network engine host
        echo: Log every statement through SQLAlchemy

    Raises:
        ConfigError: Unsupported driver or missing native handle; raised
            before any engine is touched.
        DatabaseConnectionError: The engine rejected the parameters.
    """

    def __init__(
        self,
        driver: DriverKind | str,
        database: str | None = None,
        username: str | None = None,
        password: str | None = None,
        port: int | None = None,
        charset: str = DEFAULT_CHARSET,
        native: Any = None,
        *,
        host: str = "localhost",
        echo: bool = False,
    ):
        kind = DriverKind.parse(driver)

        if kind is DriverKind.NATIVE:
            if native is None:
                raise MissingConfigError(
                    "native",
                    "A pre-existing native connection is required for the 'native' driver",
                )
            backend = adopt_native(native, echo=echo)
            logger.info("native_handle_adopted", backend=backend.name)
        else:
            config = DatabaseConfig(
                driver=kind,
                database=database,
                host=host,
                port=port,
                username=username,
                password=password,
                charset=charset,
                echo=echo,
            )
            try:
                backend = create_backend(config)
            except DatabaseConnectionError as e:
                logger.warning("connection_failed", error=e.message, code=e.code, **config.describe())
                raise
            logger.info("connection_opened", **config.describe())

        self._driver = kind
        self._backend: SqlBackend = backend

    # --- alternate constructors ---

    @classmethod
    def from_native(cls, native: Any, *, echo: bool = False) -> Connection:
        """Create a connection around a pre-existing DB-API connection."""
        return cls(DriverKind.NATIVE, native=native, echo=echo)

    @classmethod
    def from_settings(cls, settings: DatabaseSettings | None = None) -> Connection:
        """Create a connection from ``DBSPINE_*`` environment settings."""
        settings = settings or DatabaseSettings()
        password = settings.password.get_secret_value() if settings.password else None
        return cls(
            settings.driver,
            settings.database,
            settings.username,
            password,
            settings.port,
            settings.charset,
            host=settings.host,
            echo=settings.echo,
        )

    @classmethod
    def from_backend(
        cls,
        backend: SqlBackend,
        *,
        driver: DriverKind | str = DriverKind.NATIVE,
    ) -> Connection:
        """Build a facade over an already-open backend (e.g. a test double)."""
        if not isinstance(backend, SqlBackend):
            raise ConfigError(f"{type(backend).__name__} does not implement SqlBackend")
        facade = cls.__new__(cls)
        facade._driver = DriverKind.parse(driver)
        facade._backend = backend
        return facade

    # --- statements ---

    def query(self, statement: str, parameters: Parameters = None) -> Any:
        """Execute *statement* and return a result shaped by its intent.

        Returns:
            - SELECT: a list of row dicts
            - INSERT INTO: the generated id of the new row (0 if none)
            - UPDATE, DELETE, others: the number of affected rows
        """
        intent = classify_statement(statement)
        match intent:
            case StatementIntent.ROWS:
                result: Any = self._backend.fetch_all(statement, parameters)
            case StatementIntent.INSERT:
                result = self._backend.execute_insert(statement, parameters)
            case _:
                result = self._backend.execute(statement, parameters)

        logger.debug("statement_executed", intent=intent.value, driver=self._driver.value)
        return result

    def fetch_all(self, statement: str, parameters: Parameters = None) -> list[dict[str, Any]]:
        """Execute a query and return every row."""
        return self._backend.fetch_all(statement, parameters)

    def fetch_one(self, statement: str, parameters: Parameters = None) -> dict[str, Any] | None:
        """Execute a query and return its first row, or ``None``."""
        return self._backend.fetch_one(statement, parameters)

    def execute(self, statement: str, parameters: Parameters = None) -> int:
        """Execute a statement and return the affected row count."""
        return self._backend.execute(statement, parameters)

    def execute_insert(self, statement: str, parameters: Parameters = None) -> int:
        """Execute an insert and return the generated id (0 if none)."""
        return self._backend.execute_insert(statement, parameters)

    # --- structured primitives ---

    def insert(self, table: str, data: Mapping[str, Any]) -> int:
        """Insert one row built from *data*; returns the new id or row count."""
        result = self._backend.insert(table, data)
        logger.debug("row_inserted", table=table, result=result)
        return result

    def update(self, table: str, values: Mapping[str, Any], criteria: Mapping[str, Any]) -> int:
        """Set *values* on rows matching every ``column == value`` in *criteria*."""
        count = self._backend.update(table, values, criteria)
        logger.debug("rows_updated", table=table, count=count)
        return count

    def delete(self, table: str, criteria: Mapping[str, Any]) -> int:
        """Delete rows matching every ``column == value`` in *criteria*."""
        count = self._backend.delete(table, criteria)
        logger.debug("rows_deleted", table=table, count=count)
        return count

    # --- schema ---

    def get_databases(self) -> list[str]:
        """Get a list of accessible databases (schemas)."""
        return self._backend.list_databases()

    def get_views(self) -> list[str]:
        """Get a list of existing views."""
        return self._backend.list_views()

    # --- accessors ---

    @property
    def driver(self) -> DriverKind:
        return self._driver

    @property
    def backend(self) -> SqlBackend:
        return self._backend

    @property
    def connection(self) -> Any:
        """The structured connection (a SQLAlchemy ``Connection``)."""
        return self._backend.connection

    @property
    def native(self) -> Any:
        """The raw DB-API connection, for engine-specific features."""
        return self._backend.native

    @property
    def engine(self) -> Any:
        return self._backend.engine

    @property
    def closed(self) -> bool:
        return self._backend.closed

    # --- lifecycle ---

    def close(self) -> None:
        """Release the underlying connection. Safe to call twice."""
        if self._backend.closed:
            return
        self._backend.close()
        logger.info("connection_closed", driver=self._driver.value)

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"Connection(driver={self._driver.value!r}, backend={self._backend.name!r}, {state})"


__all__ = [
    "Connection",
]
