"""SQLStore — the key/value store handle."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from sqlkv._internal.values import to_bytes
from sqlkv.config import StoreConfig
from sqlkv.schema import ensure_table
from sqlkv.selector import select_engine

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy import Table

    from sqlkv.engines.base import Engine

log = logging.getLogger(__name__)

CreateTable = Callable[[AsyncEngine], Awaitable[None]]


class SQLStore:
    """Key/value store over one SQL table.

    Use :meth:`open` to build one; it connects, picks the engine best suited
    to the database, and makes sure the table exists.  Keys are strings,
    values are bytes (``str`` values are UTF-8 encoded on the way in).

    Example:
        async with await SQLStore.open(url="sqlite+aiosqlite:///kv.db") as kv:
            await kv.store("a", b"1")
            await kv.increment("a", 5)   # -> 6

    Parameters:
        db:     The async engine the store owns; disposed by :meth:`close`.
        engine: The strategy chosen for *db*.
    """

    features: ClassVar[frozenset[str]] = frozenset({"create", "increment"})

    def __init__(self, db: AsyncEngine, engine: Engine) -> None:
        self._db = db
        self._engine = engine

    @classmethod
    async def open(
        cls,
        config: StoreConfig | None = None,
        *,
        db: AsyncEngine | None = None,
        create_table: CreateTable | bool | None = None,
        **options: Any,
    ) -> SQLStore:
        """Connect and return a ready-to-use store.

        Parameters:
            config:       Construction options; keyword *options* override
                          individual fields (``url``, ``table``, ``hstore``, ...).
            db:           Use an existing async engine instead of ``config.url``.
            create_table: ``None`` creates the table if missing, ``False``
                          skips creation, an async callable is awaited with
                          the engine instead (whether or not the table exists).
        """
        if options:
            base = config.model_dump() if config is not None else {}
            config = StoreConfig(**{**base, **options})
        elif config is None:
            config = StoreConfig()

        owned = db is None
        if db is None:
            db = create_async_engine(config.resolve_url(), **config.engine_kwargs())

        try:
            engine = await select_engine(db, config.table_spec(), optimize=config.optimize)
            if create_table is None or create_table is True:
                await ensure_table(db, engine.table, packed=engine.packed)
            elif create_table:
                await create_table(db)
        except BaseException:
            if owned:
                await db.dispose()
            raise

        log.debug("Opened %r on %s", engine, db.url.render_as_string(hide_password=True))
        return cls(db, engine)

    # ── operations ───────────────────────────────────────────

    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present."""
        return await self._engine.exists(key)

    async def load(self, key: str) -> bytes | None:
        """Return the stored value, or ``None`` if not found."""
        return await self._engine.load(key)

    async def store(self, key: str, value: bytes | str) -> bytes:
        """Create or overwrite *key* and return the stored bytes."""
        return await self._engine.store(key, to_bytes(value))  # type: ignore[arg-type]

    async def create(self, key: str, value: bytes | str) -> bool:
        """Store *value* only if *key* is absent.  ``False`` if it already existed."""
        return await self._engine.create(key, to_bytes(value))  # type: ignore[arg-type]

    async def increment(self, key: str, amount: int = 1) -> int:
        """Atomically add *amount* to the integer stored at *key*.

        Missing keys count as ``0``.  The result is stored as decimal text.

        Raises:
            ValueFormatError: The stored value is not integer text.
        """
        return await self._engine.increment(key, amount)

    async def decrement(self, key: str, amount: int = 1) -> int:
        """Atomically subtract *amount*; the inverse of :meth:`increment`."""
        return await self.increment(key, -amount)

    async def delete(self, key: str) -> bytes | None:
        """Remove *key* and return its former value (``None`` if absent)."""
        return await self._engine.delete(key)

    async def clear(self) -> None:
        """Remove every key."""
        await self._engine.clear()

    async def close(self) -> None:
        """Dispose of the connection pool.  The store is unusable afterwards."""
        await self._engine.close()

    # ── convenience ──────────────────────────────────────────

    async def fetch(self, key: str, default: bytes | None = None) -> bytes | None:
        """Like :meth:`load`, returning *default* for a missing key."""
        value = await self.load(key)
        return default if value is None else value

    async def values_at(self, *keys: str) -> list[bytes | None]:
        """Load several keys, in order, with ``None`` for each missing one."""
        return [await self.load(key) for key in keys]

    def supports(self, feature: str) -> bool:
        """Return ``True`` if *feature* is in :attr:`features`."""
        return feature in self.features

    async def __aenter__(self) -> SQLStore:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ── introspection ────────────────────────────────────────

    @property
    def db(self) -> AsyncEngine:
        return self._db

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def table(self) -> Table:
        return self._engine.table

    @property
    def key_column(self) -> str:
        return self._engine.spec.key_column

    @property
    def value_column(self) -> str:
        return self._engine.spec.value_column
