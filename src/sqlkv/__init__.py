"""sqlkv — an async key/value store over SQL databases.

One table, two columns.  The store probes the database it is given and
picks the engine with the strongest atomic idioms available: upserts on
MySQL, PostgreSQL and SQLite, a packed hstore row on PostgreSQL when
asked, and portable transactions everywhere else.
"""

from sqlkv.config import StoreConfig, TableSpec
from sqlkv.exceptions import (
    ConfigurationError,
    SQLKVError,
    StoreError,
    ValueFormatError,
)
from sqlkv.store import SQLStore

__all__ = [
    "ConfigurationError",
    "SQLKVError",
    "SQLStore",
    "StoreConfig",
    "StoreError",
    "TableSpec",
    "ValueFormatError",
]
