"""Shared test fixtures."""

import os

import pytest

from sqlkv import SQLStore

POSTGRES_URL = os.getenv("SQLKV_POSTGRES_URL", "")
MYSQL_URL = os.getenv("SQLKV_MYSQL_URL", "")

requires_postgres = pytest.mark.skipif(not POSTGRES_URL, reason="SQLKV_POSTGRES_URL not set")
requires_mysql = pytest.mark.skipif(not MYSQL_URL, reason="SQLKV_MYSQL_URL not set")


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'kv.db'}"


def _options(name, sqlite_url):
    if name == "sqlite":
        return {"url": sqlite_url}
    if name == "sqlite_generic":
        return {"url": sqlite_url, "optimize": False}
    if name == "postgres":
        return {"url": POSTGRES_URL, "table": "sqlkv_test"}
    if name == "postgres_generic":
        return {"url": POSTGRES_URL, "table": "sqlkv_test", "optimize": False}
    if name == "postgres_hstore":
        return {"url": POSTGRES_URL, "table": "sqlkv_test_hstore", "hstore": "test"}
    if name == "mysql":
        return {"url": MYSQL_URL, "table": "sqlkv_test"}
    if name == "mysql_generic":
        return {"url": MYSQL_URL, "table": "sqlkv_test", "optimize": False}
    raise ValueError(name)


@pytest.fixture(
    params=[
        "sqlite",
        "sqlite_generic",
        pytest.param("postgres", marks=requires_postgres),
        pytest.param("postgres_generic", marks=requires_postgres),
        pytest.param("postgres_hstore", marks=requires_postgres),
        pytest.param("mysql", marks=requires_mysql),
        pytest.param("mysql_generic", marks=requires_mysql),
    ]
)
async def kv(request, sqlite_url):
    """An empty store for every engine the environment can reach."""
    store = await SQLStore.open(**_options(request.param, sqlite_url))
    await store.clear()
    yield store
    await store.clear()
    await store.close()
