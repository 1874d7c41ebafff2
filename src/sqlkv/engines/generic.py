"""GenericEngine — portable statements and explicit transactions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError

from sqlkv._internal.retry import retry
from sqlkv._internal.values import blob, encode_integer, parse_integer, to_bytes
from sqlkv.engines.base import Engine
from sqlkv.exceptions import StoreError

if TYPE_CHECKING:
    from sqlalchemy import Column, Insert
    from sqlalchemy.ext.asyncio import AsyncConnection


class GenericEngine(Engine):
    """Works on any database SQLAlchemy can talk to.

    ``store`` is an UPDATE followed, when no row matched, by an INSERT.  A
    concurrent writer may insert the same key in between, so any backend
    error during the pair restarts it, up to ``STORE_ATTEMPTS`` times.  The
    retry does not distinguish that race from unrelated failures.

    ``increment`` locks the row with ``SELECT ... FOR UPDATE`` inside one
    transaction so concurrent incrementers never lose updates.  SQLite has
    no row locks and its driver defers ``BEGIN`` until the first write, so
    there the transaction is opened with ``BEGIN IMMEDIATE`` instead, which
    takes the database write lock before the read.
    """

    name: ClassVar[str] = "generic"

    STORE_ATTEMPTS: ClassVar[int] = 10
    INCREMENT_ATTEMPTS: ClassVar[int] = 10

    @property
    def key_column(self) -> Column[Any]:
        return self.table.c[self.spec.key_column]

    @property
    def value_column(self) -> Column[Any]:
        return self.table.c[self.spec.value_column]

    def _insert(self, key: str, value: bytes) -> Insert:
        return insert(self.table).values({self.key_column: key, self.value_column: blob(value)})

    async def _lock(self, conn: AsyncConnection) -> None:
        if self.db.dialect.name == "sqlite":
            await conn.exec_driver_sql("BEGIN IMMEDIATE")

    # ── Engine protocol ──────────────────────────────────────

    async def exists(self, key: str) -> bool:
        stmt = select(self.key_column).where(self.key_column == key).limit(1)
        async with self.db.connect() as conn:
            result = await conn.execute(stmt)
            return result.first() is not None

    async def load(self, key: str) -> bytes | None:
        stmt = select(self.value_column).where(self.key_column == key)
        async with self.db.connect() as conn:
            return to_bytes(await conn.scalar(stmt))

    async def store(self, key: str, value: bytes) -> bytes:
        async def attempt() -> None:
            async with self.db.begin() as conn:
                result = await conn.execute(
                    update(self.table)
                    .where(self.key_column == key)
                    .values({self.value_column: blob(value)})
                )
                if result.rowcount != 1:
                    await conn.execute(self._insert(key, value))

        await retry(attempt, attempts=self.STORE_ATTEMPTS, name=f"store({key!r})")
        return value

    async def create(self, key: str, value: bytes) -> bool:
        try:
            async with self.db.begin() as conn:
                await conn.execute(self._insert(key, value))
        except IntegrityError:
            return False
        return True

    async def increment(self, key: str, amount: int = 1) -> int:
        async def attempt() -> int:
            async with self.db.begin() as conn:
                await self._lock(conn)
                existing = await conn.scalar(
                    select(self.value_column).where(self.key_column == key).with_for_update()
                )
                if existing is None:
                    await conn.execute(self._insert(key, encode_integer(amount)))
                    return amount

                total = parse_integer(key, existing) + amount
                result = await conn.execute(
                    update(self.table)
                    .where(self.key_column == key)
                    .values({self.value_column: encode_integer(total)})
                )
                if result.rowcount != 1:
                    raise StoreError("increment", f"no row updated for key '{key}'")
                return total

        return await retry(attempt, attempts=self.INCREMENT_ATTEMPTS, name=f"increment({key!r})")

    async def delete(self, key: str) -> bytes | None:
        value = await self.load(key)
        async with self.db.begin() as conn:
            await conn.execute(delete(self.table).where(self.key_column == key))
        return value

    async def clear(self) -> None:
        async with self.db.begin() as conn:
            await conn.execute(delete(self.table))
