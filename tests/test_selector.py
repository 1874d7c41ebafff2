"""Tests for engine selection."""

from types import SimpleNamespace

import pytest

from sqlkv import selector
from sqlkv.config import TableSpec
from sqlkv.engines import (
    GenericEngine,
    MySQLEngine,
    PostgresEngine,
    PostgresHStoreEngine,
    SQLiteEngine,
)
from sqlkv.selector import Dialect, detect_dialect, parse_postgres_version, select_engine


def fake_db(dialect_name):
    return SimpleNamespace(dialect=SimpleNamespace(name=dialect_name))


@pytest.fixture
def postgres_version(monkeypatch):
    """Pretend the PostgreSQL server reports the given version string."""

    def set_version(version):
        async def server_version(db):
            return version

        monkeypatch.setattr(selector, "server_version", server_version)

    return set_version


class TestParsePostgresVersion:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("PostgreSQL 9.5.25 on x86_64-pc-linux-gnu, compiled by gcc", (9, 5)),
            ("PostgreSQL 16.2 (Debian 16.2-1.pgdg120+2) on aarch64", (16, 2)),
            ("PostgreSQL 9.4.26 on x86_64-pc-linux-gnu", (9, 4)),
        ],
    )
    def test_parses_major_minor(self, text, expected):
        assert parse_postgres_version(text) == expected

    def test_unrecognised(self):
        assert parse_postgres_version("CockroachDB CCL v23.1") is None
        assert parse_postgres_version("") is None


class TestDetectDialect:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("mysql", Dialect.MYSQL),
            ("mariadb", Dialect.MYSQL),
            ("postgresql", Dialect.POSTGRES),
            ("sqlite", Dialect.SQLITE),
            ("oracle", Dialect.UNKNOWN),
            ("mssql", Dialect.UNKNOWN),
        ],
    )
    def test_dialects(self, name, expected):
        assert detect_dialect(fake_db(name)) is expected


class TestSelectEngine:
    async def test_optimize_disabled(self):
        engine = await select_engine(fake_db("mysql"), TableSpec(), optimize=False)
        assert type(engine) is GenericEngine

    async def test_mysql(self):
        engine = await select_engine(fake_db("mysql"), TableSpec())
        assert type(engine) is MySQLEngine

    async def test_sqlite(self):
        engine = await select_engine(fake_db("sqlite"), TableSpec())
        assert type(engine) is SQLiteEngine

    async def test_unknown_dialect(self):
        engine = await select_engine(fake_db("oracle"), TableSpec())
        assert type(engine) is GenericEngine

    @pytest.mark.parametrize("version", ["PostgreSQL 9.5.0", "PostgreSQL 10.4", "PostgreSQL 16.2"])
    async def test_recent_postgres(self, postgres_version, version):
        postgres_version(version)
        engine = await select_engine(fake_db("postgresql"), TableSpec())
        assert type(engine) is PostgresEngine

    @pytest.mark.parametrize("version", ["PostgreSQL 9.4.26", "PostgreSQL 8.4", "Greenplum"])
    async def test_old_or_unparseable_postgres(self, postgres_version, version):
        postgres_version(version)
        engine = await select_engine(fake_db("postgresql"), TableSpec())
        assert type(engine) is GenericEngine

    async def test_hstore_skips_version_check(self, monkeypatch):
        async def server_version(db):
            raise AssertionError("version must not be queried")

        monkeypatch.setattr(selector, "server_version", server_version)
        engine = await select_engine(fake_db("postgresql"), TableSpec(hstore="ns"))
        assert type(engine) is PostgresHStoreEngine
        assert engine.row == "ns"

    async def test_engine_receives_spec(self):
        spec = TableSpec(table="t", key_column="key", value_column="val")
        engine = await select_engine(fake_db("sqlite"), spec)
        assert engine.spec is spec
        assert engine.table.name == "t"
        assert [c.name for c in engine.table.columns] == ["key", "val"]
