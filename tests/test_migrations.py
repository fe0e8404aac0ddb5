import asyncio
from contextlib import asynccontextmanager

import pytest

from core import db, migrations
from core.config import Settings

SONGS_SQL = """-- migrate:up
CREATE TABLE songs (id bigserial PRIMARY KEY);

-- migrate:down
DROP TABLE songs;
"""


class FakeConnection:
    def __init__(self, applied=()):
        self.versions = set(applied)
        self.statements: list[str] = []

    async def execute(self, sql, *args):
        if sql.startswith("INSERT INTO schema_migrations"):
            self.versions.add(args[0])
        else:
            self.statements.append(sql.strip())

    async def fetch(self, sql, *args):
        return [{"version": v} for v in sorted(self.versions)]

    @asynccontextmanager
    async def transaction(self):
        yield


class FakePool:
    def __init__(self, conn):
        self.conn = conn

    @asynccontextmanager
    async def acquire(self):
        yield self.conn


@pytest.fixture
def migrations_dir(tmp_path):
    (tmp_path / "20240101000000_create_songs.sql").write_text(SONGS_SQL, encoding="utf-8")
    (tmp_path / "20240201000000_seed.sql").write_text("INSERT INTO songs DEFAULT VALUES;", encoding="utf-8")
    (tmp_path / "README.md").write_text("not a migration", encoding="utf-8")
    return tmp_path


def use_connection(monkeypatch, conn):
    monkeypatch.setattr(db, "pool", lambda: FakePool(conn))


def test_up_sql_extracts_up_section():
    assert migrations.up_sql(SONGS_SQL) == "CREATE TABLE songs (id bigserial PRIMARY KEY);"


def test_up_sql_without_markers_uses_whole_file():
    assert migrations.up_sql("  SELECT 1;\n") == "SELECT 1;"


def test_discover_orders_by_version_and_skips_other_files(migrations_dir):
    found = migrations.discover(migrations_dir)
    assert [m.version for m in found] == ["20240101000000", "20240201000000"]


def test_discover_missing_dir_is_store_error(tmp_path):
    with pytest.raises(db.StoreError):
        migrations.discover(tmp_path / "nope")


def test_apply_runs_pending_in_order(monkeypatch, migrations_dir):
    conn = FakeConnection()
    use_connection(monkeypatch, conn)

    applied = asyncio.run(migrations.apply_migrations(migrations_dir))

    assert applied == ["20240101000000", "20240201000000"]
    assert conn.statements[1:] == [
        "CREATE TABLE songs (id bigserial PRIMARY KEY);",
        "INSERT INTO songs DEFAULT VALUES;",
    ]


def test_apply_is_noop_when_up_to_date(monkeypatch, migrations_dir):
    conn = FakeConnection(applied={"20240101000000", "20240201000000"})
    use_connection(monkeypatch, conn)

    assert asyncio.run(migrations.apply_migrations(migrations_dir)) == []
    # Only the schema_migrations bootstrap statement ran.
    assert len(conn.statements) == 1


def test_bundled_migrations_create_songs_table():
    found = migrations.discover(Settings().migrations_dir)
    assert found
    assert "CREATE TABLE IF NOT EXISTS songs" in migrations.up_sql(found[0].path.read_text(encoding="utf-8"))
