"""Configuration objects for :class:`~sqlkv.store.SQLStore`.

``StoreConfig`` is the user-facing, validated set of construction options.
``TableSpec`` is the immutable subset every engine receives.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sqlkv.exceptions import ConfigurationError

DEFAULT_TABLE = "sqlkv"
URL_ENV_VAR = "SQLKV_URL"


@dataclass(frozen=True)
class TableSpec:
    """Where and how key/value rows live.

    Attributes:
        table:        Table name.
        key_column:   Name of the primary-key column.
        value_column: Name of the value column.
        hstore:       Row-packing namespace.  When set (PostgreSQL only), the
                      whole keyspace lives in the single row whose key equals
                      this value.
    """

    table: str = DEFAULT_TABLE
    key_column: str = "k"
    value_column: str = "v"
    hstore: str | None = None


class StoreConfig(BaseModel):
    """Construction options for a store.

    Attributes:
        url: SQLAlchemy async database URL (``sqlite+aiosqlite:///kv.db``,
            ``postgresql+asyncpg://...``, ``mysql+aiomysql://...``).
            Falls back to the ``SQLKV_URL`` environment variable.
        table: Table name.
        key_column: Key column name.
        value_column: Value column name.
        hstore: Row-packing namespace (PostgreSQL only).
        optimize: Set to ``False`` to always use the generic engine.
        extensions: SQLAlchemy engine plugin names to load.
        connection_validation_timeout: Seconds after which pooled
            connections are recycled; also turns on pre-ping validation.
        engine_options: Extra keyword arguments for ``create_async_engine``.
    """

    model_config = ConfigDict(frozen=True)

    url: str | None = None
    table: str = DEFAULT_TABLE
    key_column: str = "k"
    value_column: str = "v"
    hstore: str | None = None
    optimize: bool = True
    extensions: list[str] = Field(default_factory=list)
    connection_validation_timeout: float | None = None
    engine_options: dict[str, Any] = Field(default_factory=dict)

    def resolve_url(self) -> str:
        """Return the configured URL, or raise if there is none."""
        url = self.url or os.getenv(URL_ENV_VAR, "")
        if not url:
            raise ConfigurationError(
                f"Option 'url' is required (or set {URL_ENV_VAR}) "
                "unless a pre-built engine is supplied"
            )
        return url

    def engine_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``create_async_engine``."""
        kwargs: dict[str, Any] = dict(self.engine_options)
        if self.extensions:
            kwargs["plugins"] = list(self.extensions)
        if self.connection_validation_timeout is not None:
            kwargs.setdefault("pool_pre_ping", True)
            kwargs.setdefault("pool_recycle", self.connection_validation_timeout)
        return kwargs

    def table_spec(self) -> TableSpec:
        return TableSpec(
            table=self.table,
            key_column=self.key_column,
            value_column=self.value_column,
            hstore=self.hstore,
        )
