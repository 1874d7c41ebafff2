"""PostgresEngine — ``ON CONFLICT`` upserts and ``RETURNING`` (PostgreSQL 9.5+)."""

from __future__ import annotations

from typing import ClassVar

from sqlalchemy import BigInteger, String, cast, delete, func, literal_column
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.exc import DBAPIError

from sqlkv._internal.retry import is_data_exception
from sqlkv._internal.values import blob, encode_integer, parse_integer, to_bytes
from sqlkv.engines.generic import GenericEngine
from sqlkv.exceptions import ValueFormatError

_UTF8 = literal_column("'UTF8'")


class PostgresEngine(GenericEngine):
    """Every mutation is a single atomic statement; nothing is retried."""

    name: ClassVar[str] = "postgres"

    def _upsert(self, key: str, value: bytes) -> Insert:
        stmt = insert(self.table).values({self.key_column: key, self.value_column: blob(value)})
        return stmt.on_conflict_do_update(
            index_elements=[self.key_column],
            set_={self.spec.value_column: stmt.excluded[self.spec.value_column]},
        )

    def _add(self, key: str, amount: int) -> Insert:
        # bytea -> text -> bigint, add, and back again
        current = cast(func.convert_from(self.value_column, _UTF8), BigInteger)
        total = func.convert_to(cast(current + amount, String), _UTF8)
        stmt = insert(self.table).values(
            {self.key_column: key, self.value_column: encode_integer(amount)}
        )
        return stmt.on_conflict_do_update(
            index_elements=[self.key_column],
            set_={self.spec.value_column: total},
        ).returning(self.value_column)

    async def store(self, key: str, value: bytes) -> bytes:
        async with self.db.begin() as conn:
            await conn.execute(self._upsert(key, value))
        return value

    async def increment(self, key: str, amount: int = 1) -> int:
        try:
            async with self.db.begin() as conn:
                value = await conn.scalar(self._add(key, amount))
        except DBAPIError as exc:
            if is_data_exception(exc):
                raise ValueFormatError(key) from exc
            raise
        return parse_integer(key, value)

    async def delete(self, key: str) -> bytes | None:
        stmt = delete(self.table).where(self.key_column == key).returning(self.value_column)
        async with self.db.begin() as conn:
            return to_bytes(await conn.scalar(stmt))
