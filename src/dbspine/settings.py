"""Environment-driven connection settings.

``DatabaseSettings`` reads the connection parameters of a
:class:`~dbspine.connection.Connection` from ``DBSPINE_*`` environment
variables or a ``.env`` file, so applications do not have to thread
credentials through their own configuration code.

Examples:
    >>> import os
    >>> os.environ["DBSPINE_DRIVER"] = "sqlite"
    >>> os.environ["DBSPINE_DATABASE"] = "/tmp/app.db"
    >>> from dbspine.settings import DatabaseSettings
    >>> DatabaseSettings().driver
    'sqlite'

Tags:
    settings, configuration, pydantic, environment, dbspine
"""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CHARSET = "utf8mb4"


class DatabaseSettings(BaseSettings):
    """Connection settings for a single facade.

    Fields
    ──────
    driver     : sqlite | mysql | postgresql
    database   : File path (sqlite) or database name (network engines)
    host, port : Network engines only; ``port=None`` means driver default
    username   : Forwarded to the engine
    password   : Forwarded to the engine, never logged
    charset    : Connection charset for network engines
    echo       : Log every statement through SQLAlchemy
    log_level  : structlog level used by :func:`dbspine.logging.configure_logging`
    """

    model_config = SettingsConfigDict(
        env_prefix="DBSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    driver: str = "sqlite"
    database: str | None = None

    host: str = "localhost"
    port: int | None = None
    username: str | None = None
    password: SecretStr | None = None
    charset: str = Field(default=DEFAULT_CHARSET)

    echo: bool = False
    log_level: str = "INFO"

    def configure_logging(self, json_format: bool | None = None) -> None:
        """Apply ``log_level`` through :func:`dbspine.logging.configure_logging`."""
        from dbspine.logging import configure_logging

        configure_logging(level=self.log_level, json_format=json_format)
