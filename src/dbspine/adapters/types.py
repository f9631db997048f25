"""Driver kinds and connection configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from sqlalchemy.engine import URL

from dbspine.errors import InvalidConfigError
from dbspine.settings import DEFAULT_CHARSET


class DriverKind(str, Enum):
    """Supported driver identifiers."""

    NATIVE = "native"           # adopt an existing DB-API connection
    SQLITE = "sqlite"           # file-based engine
    MYSQL = "mysql"             # network engine
    POSTGRESQL = "postgresql"   # network engine

    @property
    def is_network(self) -> bool:
        return self in (DriverKind.MYSQL, DriverKind.POSTGRESQL)

    @classmethod
    def parse(cls, value: DriverKind | str) -> DriverKind:
        """Resolve a driver identifier, case-insensitively.

        Raises:
            InvalidConfigError: If *value* names no supported driver.
        """
        if isinstance(value, DriverKind):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            supported = ", ".join(kind.value for kind in cls)
            raise InvalidConfigError(
                "driver",
                value,
                f"No proper driver was specified: {value!r} (supported: {supported})",
            ) from None


# SQLAlchemy dialect+driver for each engine-backed kind
_URL_DRIVERS = {
    DriverKind.SQLITE: "sqlite+pysqlite",
    DriverKind.MYSQL: "mysql+mysqlconnector",
    DriverKind.POSTGRESQL: "postgresql+psycopg2",
}


def _postgres_encoding(charset: str) -> str:
    normalized = charset.lower().replace("-", "").replace("_", "")
    return "utf8" if normalized.startswith("utf8") else charset


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Connection parameters for one facade.

    Different fields are used by different driver kinds: ``database`` is a
    filesystem path for SQLite and a database name for network engines.
    SQLite keeps ``username``/``password`` but never puts them in the URL.
    """

    driver: DriverKind = DriverKind.SQLITE
    database: str | None = None

    host: str = "localhost"
    port: int | None = None
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    charset: str = DEFAULT_CHARSET

    echo: bool = False

    def to_url(self) -> URL:
        """Build the SQLAlchemy URL for this configuration."""
        match self.driver:
            case DriverKind.SQLITE:
                path = None if self.database in (None, "", ":memory:") else self.database
                return URL.create(_URL_DRIVERS[self.driver], database=path)
            case DriverKind.MYSQL:
                return URL.create(
                    _URL_DRIVERS[self.driver],
                    username=self.username,
                    password=self.password,
                    host=self.host,
                    port=self.port,
                    database=self.database,
                    query={"charset": self.charset},
                )
            case DriverKind.POSTGRESQL:
                return URL.create(
                    _URL_DRIVERS[self.driver],
                    username=self.username,
                    password=self.password,
                    host=self.host,
                    port=self.port,
                    database=self.database,
                    query={"client_encoding": _postgres_encoding(self.charset)},
                )
            case _:
                raise InvalidConfigError(
                    "driver",
                    self.driver.value,
                    "A native connection has no URL; adopt the handle instead",
                )

    def describe(self) -> dict[str, object]:
        """Loggable summary of the configuration (no credentials)."""
        summary: dict[str, object] = {"driver": self.driver.value, "database": self.database}
        if self.driver.is_network:
            summary.update(host=self.host, port=self.port, charset=self.charset)
        return summary


__all__ = [
    "DriverKind",
    "DatabaseConfig",
]
