"""Engine strategies: one per SQL dialect plus the portable fallback."""

from sqlkv.engines.base import Engine
from sqlkv.engines.generic import GenericEngine
from sqlkv.engines.hstore import PostgresHStoreEngine
from sqlkv.engines.mysql import MySQLEngine
from sqlkv.engines.postgres import PostgresEngine
from sqlkv.engines.sqlite import SQLiteEngine

__all__ = [
    "Engine",
    "GenericEngine",
    "MySQLEngine",
    "PostgresEngine",
    "PostgresHStoreEngine",
    "SQLiteEngine",
]
