"""PostgresHStoreEngine — a whole keyspace packed into one hstore row.

Instead of one row per key, every key of the namespace lives in the
``hstore`` value of a single row whose key column equals the namespace.
The row is created lazily (``INSERT ... ON CONFLICT DO NOTHING``) before
the first mutation and is never removed by per-key operations; ``clear``
empties the mapping but keeps the row.

hstore holds text, so values must be valid UTF-8.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import BigInteger, Text, cast, func, not_, select, update
from sqlalchemy.dialects.postgresql import Insert, hstore, insert
from sqlalchemy.exc import DBAPIError

from sqlkv._internal.retry import is_data_exception
from sqlkv._internal.values import EMPTY, parse_integer, to_bytes, to_text
from sqlkv.engines.base import Engine
from sqlkv.exceptions import ConfigurationError, ValueFormatError

if TYPE_CHECKING:
    from sqlalchemy import Column, Update
    from sqlalchemy.ext.asyncio import AsyncEngine
    from sqlalchemy.sql.elements import ColumnElement

    from sqlkv.config import TableSpec


class PostgresHStoreEngine(Engine):
    """Row-packing engine for PostgreSQL."""

    name: ClassVar[str] = "postgres_hstore"
    packed: ClassVar[bool] = True

    def __init__(self, db: AsyncEngine, spec: TableSpec) -> None:
        if not spec.hstore:
            raise ConfigurationError("PostgresHStoreEngine requires an 'hstore' namespace")
        super().__init__(db, spec)
        self.row = spec.hstore

    @property
    def mapping(self) -> Column[Any]:
        return self.table.c[self.spec.value_column]

    @property
    def _in_row(self) -> ColumnElement[bool]:
        return self.table.c[self.spec.key_column] == self.row

    def _merge(self, key: str, value: Any) -> Any:
        return self.mapping.concat(hstore(key, value))

    def _create_row(self) -> Insert:
        return (
            insert(self.table)
            .values({self.spec.key_column: self.row, self.spec.value_column: EMPTY})
            .on_conflict_do_nothing()
        )

    def _put(self, key: str, value: bytes, *, only_if_absent: bool = False) -> Update:
        stmt = update(self.table).where(self._in_row)
        if only_if_absent:
            stmt = stmt.where(not_(self.mapping.has_key(key)))
        return stmt.values({self.spec.value_column: self._merge(key, to_text(value))})

    def _add(self, key: str, amount: int) -> Update:
        current = func.coalesce(cast(self.mapping[key], BigInteger), 0)
        return (
            update(self.table)
            .where(self._in_row)
            .values({self.spec.value_column: self._merge(key, cast(current + amount, Text))})
            .returning(self.mapping[key])
        )

    def _remove(self, key: str) -> Update:
        return (
            update(self.table)
            .where(self._in_row)
            .values({self.spec.value_column: self.mapping.delete(key)})
        )

    def _reset(self) -> Update:
        return update(self.table).where(self._in_row).values({self.spec.value_column: EMPTY})

    # ── Engine protocol ──────────────────────────────────────

    async def exists(self, key: str) -> bool:
        async with self.db.connect() as conn:
            return bool(await conn.scalar(select(self.mapping.has_key(key)).where(self._in_row)))

    async def load(self, key: str) -> bytes | None:
        async with self.db.connect() as conn:
            return to_bytes(await conn.scalar(select(self.mapping[key]).where(self._in_row)))

    async def store(self, key: str, value: bytes) -> bytes:
        async with self.db.begin() as conn:
            await conn.execute(self._create_row())
            await conn.execute(self._put(key, value))
        return value

    async def create(self, key: str, value: bytes) -> bool:
        async with self.db.begin() as conn:
            await conn.execute(self._create_row())
            result = await conn.execute(self._put(key, value, only_if_absent=True))
        return result.rowcount == 1

    async def increment(self, key: str, amount: int = 1) -> int:
        try:
            async with self.db.begin() as conn:
                await conn.execute(self._create_row())
                value = await conn.scalar(self._add(key, amount))
        except DBAPIError as exc:
            if is_data_exception(exc):
                raise ValueFormatError(key) from exc
            raise
        return parse_integer(key, value)

    async def delete(self, key: str) -> bytes | None:
        value = await self.load(key)
        async with self.db.begin() as conn:
            await conn.execute(self._remove(key))
        return value

    async def clear(self) -> None:
        async with self.db.begin() as conn:
            await conn.execute(self._reset())
