"""Engine selection from a live database connection.

The choice is made once, when a store is opened:

* optimisation disabled → :class:`GenericEngine`
* MySQL / MariaDB → :class:`MySQLEngine`
* PostgreSQL with an ``hstore`` namespace → :class:`PostgresHStoreEngine`
* PostgreSQL 9.5+ → :class:`PostgresEngine` (older servers lack ``ON CONFLICT``)
* SQLite → :class:`SQLiteEngine`
* anything else → :class:`GenericEngine`
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from sqlkv.engines import (
    Engine,
    GenericEngine,
    MySQLEngine,
    PostgresEngine,
    PostgresHStoreEngine,
    SQLiteEngine,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from sqlkv.config import TableSpec

log = logging.getLogger(__name__)

EngineFactory = Callable[["AsyncEngine", "TableSpec"], Awaitable[Engine]]

MIN_POSTGRES_VERSION = (9, 5)

_VERSION_RE = re.compile(r"PostgreSQL (\d+)\.(\d+)")


class Dialect(StrEnum):
    MYSQL = "mysql"
    POSTGRES = "postgres"
    SQLITE = "sqlite"
    UNKNOWN = "unknown"


_DIALECT_NAMES: dict[str, Dialect] = {
    "mysql": Dialect.MYSQL,
    "mariadb": Dialect.MYSQL,
    "postgresql": Dialect.POSTGRES,
    "sqlite": Dialect.SQLITE,
}


def detect_dialect(db: AsyncEngine) -> Dialect:
    """Map SQLAlchemy's dialect name onto a :class:`Dialect`."""
    return _DIALECT_NAMES.get(db.dialect.name, Dialect.UNKNOWN)


def parse_postgres_version(version: str) -> tuple[int, int] | None:
    """Extract ``(major, minor)`` from a ``SELECT version()`` string."""
    match = _VERSION_RE.search(version or "")
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def supports_upsert(version: tuple[int, int] | None) -> bool:
    return version is not None and version >= MIN_POSTGRES_VERSION


async def server_version(db: AsyncEngine) -> str:
    async with db.connect() as conn:
        return str(await conn.scalar(select(func.version())))


# ── constructors per dialect ─────────────────────────────────


async def _generic(db: AsyncEngine, spec: TableSpec) -> Engine:
    return GenericEngine(db, spec)


async def _mysql(db: AsyncEngine, spec: TableSpec) -> Engine:
    return MySQLEngine(db, spec)


async def _postgres(db: AsyncEngine, spec: TableSpec) -> Engine:
    if spec.hstore:
        return PostgresHStoreEngine(db, spec)
    version = parse_postgres_version(await server_version(db))
    if supports_upsert(version):
        return PostgresEngine(db, spec)
    log.debug("PostgreSQL %s predates ON CONFLICT, using the generic engine", version)
    return GenericEngine(db, spec)


async def _sqlite(db: AsyncEngine, spec: TableSpec) -> Engine:
    return SQLiteEngine(db, spec)


_REGISTRY: dict[Dialect, EngineFactory] = {
    Dialect.MYSQL: _mysql,
    Dialect.POSTGRES: _postgres,
    Dialect.SQLITE: _sqlite,
    Dialect.UNKNOWN: _generic,
}


async def select_engine(db: AsyncEngine, spec: TableSpec, *, optimize: bool = True) -> Engine:
    """Return the most capable engine for *db*.

    Parameters:
        db:       A live async engine; PostgreSQL servers are queried for
                  their version.
        spec:     Table layout handed to the engine.
        optimize: ``False`` forces the generic engine.
    """
    if not optimize:
        engine = await _generic(db, spec)
    else:
        engine = await _REGISTRY[detect_dialect(db)](db, spec)
    log.debug("Selected %s for dialect %r", engine.name, db.dialect.name)
    return engine
