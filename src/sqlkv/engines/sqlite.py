"""SQLiteEngine — ``INSERT OR REPLACE`` for ``store``.

``increment`` is inherited from :class:`GenericEngine`, which opens its
transaction with ``BEGIN IMMEDIATE`` on SQLite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from sqlkv.engines.generic import GenericEngine

if TYPE_CHECKING:
    from sqlalchemy import Insert


class SQLiteEngine(GenericEngine):
    name: ClassVar[str] = "sqlite"

    def _replace(self, key: str, value: bytes) -> Insert:
        return self._insert(key, value).prefix_with("OR REPLACE")

    async def store(self, key: str, value: bytes) -> bytes:
        async with self.db.begin() as conn:
            await conn.execute(self._replace(key, value))
        return value
