"""MySQLEngine — ``INSERT ... ON DUPLICATE KEY UPDATE`` based upserts."""

from __future__ import annotations

from typing import ClassVar

from sqlalchemy import BigInteger, select, type_coerce
from sqlalchemy.dialects.mysql import Insert, insert

from sqlkv._internal.retry import is_serialization_failure, retry
from sqlkv._internal.values import blob, encode_integer, parse_integer
from sqlkv.engines.generic import GenericEngine


class MySQLEngine(GenericEngine):
    """Single-statement ``store`` and server-side arithmetic for ``increment``."""

    name: ClassVar[str] = "mysql"

    # Retries after the first attempt when InnoDB reports a deadlock.
    DEADLOCK_RETRIES: ClassVar[int] = 3

    def _upsert(self, key: str, value: bytes) -> Insert:
        stmt = insert(self.table).values({self.key_column: key, self.value_column: blob(value)})
        return stmt.on_duplicate_key_update(
            {self.spec.value_column: stmt.inserted[self.spec.value_column]}
        )

    def _add(self, key: str, amount: int) -> Insert:
        stmt = insert(self.table).values(
            {self.key_column: key, self.value_column: encode_integer(amount)}
        )
        current = type_coerce(self.value_column, BigInteger)
        incoming = type_coerce(stmt.inserted[self.spec.value_column], BigInteger)
        return stmt.on_duplicate_key_update({self.spec.value_column: current + incoming})

    async def store(self, key: str, value: bytes) -> bytes:
        async with self.db.begin() as conn:
            await conn.execute(self._upsert(key, value))
        return value

    async def increment(self, key: str, amount: int = 1) -> int:
        read = select(self.value_column).where(self.key_column == key)

        async def attempt() -> int:
            async with self.db.begin() as conn:
                existing = await conn.scalar(read)
                if existing is not None:
                    parse_integer(key, existing)
                await conn.execute(self._add(key, amount))
                return parse_integer(key, await conn.scalar(read))

        return await retry(
            attempt,
            attempts=self.DEADLOCK_RETRIES + 1,
            when=is_serialization_failure,
            name=f"increment({key!r})",
        )
