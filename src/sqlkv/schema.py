"""Table layouts and idempotent table creation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import Column, Index, LargeBinary, MetaData, String, Table, text
from sqlalchemy.dialects.postgresql import HSTORE

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from sqlkv.config import TableSpec

log = logging.getLogger(__name__)

KEY_LENGTH = 255


def build_table(spec: TableSpec, *, packed: bool = False) -> Table:
    """Describe the key/value table for *spec*.

    The regular layout is ``key VARCHAR(255) PRIMARY KEY, value BLOB``.
    The packed layout stores an ``hstore`` mapping in the value column and
    adds a GIN index so that key-containment lookups stay fast.
    """
    metadata = MetaData()
    if not packed:
        return Table(
            spec.table,
            metadata,
            Column(spec.key_column, String(KEY_LENGTH), primary_key=True, nullable=False),
            Column(spec.value_column, LargeBinary),
        )

    table = Table(
        spec.table,
        metadata,
        Column(spec.key_column, String(KEY_LENGTH), primary_key=True, nullable=False),
        Column(spec.value_column, HSTORE),
    )
    Index(
        f"{spec.table}_{spec.value_column}_idx",
        table.c[spec.value_column],
        postgresql_using="gin",
    )
    return table


async def ensure_table(db: AsyncEngine, table: Table, *, packed: bool = False) -> None:
    """Create *table* (and its indexes) unless it already exists."""
    async with db.begin() as conn:
        if packed:
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS hstore"))
        await conn.run_sync(table.metadata.create_all, tables=[table], checkfirst=True)
    log.debug("Ensured table %r exists", table.name)
