"""Engine adapters -- the ``SqlBackend`` implementations behind the facades.

Architecture::

    SqlBackend (dbspine.protocols)   Capability set the facades call
        |-- SQLAlchemyBackend        SQLAlchemy Core over one connection

    DriverKind (types.py)            native | sqlite | mysql | postgresql
    DatabaseConfig (types.py)        Connection parameters + URL building
    create_backend()                 DatabaseConfig -> connected backend
    adopt_native()                   DB-API connection -> connected backend

Each engine driver is only required when a connection of that kind is
opened; install the matching extra::

    pip install dbspine[mysql]        # mysql-connector-python
    pip install dbspine[postgresql]   # psycopg2-binary

Guardrails:
    ❌ ``db.query("SELECT * FROM t WHERE id=" + user_input)``
    ✅ ``db.query("SELECT * FROM t WHERE id=?", [user_input])``
"""

from .sqlalchemy_backend import (
    SQLAlchemyBackend,
    adopt_native,
    create_backend,
    detect_native_driver,
)
from .types import DatabaseConfig, DriverKind

__all__ = [
    "DriverKind",
    "DatabaseConfig",
    "SQLAlchemyBackend",
    "create_backend",
    "adopt_native",
    "detect_native_driver",
]
