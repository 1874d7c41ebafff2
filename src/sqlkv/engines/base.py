"""Engine ABC — the operations every SQL strategy implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from sqlkv.schema import build_table

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.ext.asyncio import AsyncEngine

    from sqlkv.config import TableSpec


class Engine(ABC):
    """Base class for every key/value strategy.

    An engine is built once for a live :class:`AsyncEngine` and an immutable
    :class:`~sqlkv.config.TableSpec`; it holds no other state.  Keys are
    strings used verbatim as primary-key values, values are opaque bytes.

    Class Variables:
        name:   Short identifier used in logs and ``repr``.
        packed: ``True`` when the engine uses the packed (hstore) layout.
    """

    name: ClassVar[str] = "base"
    packed: ClassVar[bool] = False

    def __init__(self, db: AsyncEngine, spec: TableSpec) -> None:
        self.db = db
        self.spec = spec
        self.table: Table = build_table(spec, packed=self.packed)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} table={self.spec.table!r}>"

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present."""
        ...

    @abstractmethod
    async def load(self, key: str) -> bytes | None:
        """Return the stored value, or ``None`` if not found."""
        ...

    @abstractmethod
    async def store(self, key: str, value: bytes) -> bytes:
        """Create or overwrite a value and return it."""
        ...

    @abstractmethod
    async def create(self, key: str, value: bytes) -> bool:
        """Store *value* only if *key* is absent.  Return whether it was stored."""
        ...

    @abstractmethod
    async def increment(self, key: str, amount: int = 1) -> int:
        """Atomically add *amount* to the integer at *key* (0 when absent)."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bytes | None:
        """Remove *key* and return its former value, if any."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Remove every key."""
        ...

    async def close(self) -> None:
        """Dispose of the connection pool.  The engine is unusable afterwards."""
        await self.db.dispose()
