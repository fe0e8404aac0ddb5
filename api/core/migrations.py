"""
Startup schema migrations.

Migration files follow the dbmate layout: `db/migrations/<version>_<name>.sql`
with `-- migrate:up` and `-- migrate:down` sections. Only the up section is
applied here. Applied versions are recorded in `schema_migrations`, so running
this on an up-to-date database does nothing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import asyncpg

from . import db

logger = logging.getLogger(__name__)

_FILENAME_RE = re.compile(r"^(?P<version>\d+)_(?P<name>[\w-]+)\.sql$")
_UP_MARKER = "-- migrate:up"
_DOWN_MARKER = "-- migrate:down"


@dataclass(frozen=True)
class Migration:
    version: str
    name: str
    path: Path


def discover(migrations_dir: Path) -> list[Migration]:
    """
    Return migration files sorted by numeric version.
    """
    if not migrations_dir.is_dir():
        raise db.StoreError(f"Migrations directory not found: {migrations_dir}")

    found: list[Migration] = []
    for path in migrations_dir.iterdir():
        match = _FILENAME_RE.match(path.name)
        if match is None:
            continue
        found.append(Migration(version=match["version"], name=match["name"], path=path))
    return sorted(found, key=lambda m: int(m.version))


def up_sql(source: str) -> str:
    """
    Extract the `-- migrate:up` section. Files without markers are used whole.
    """
    start = source.find(_UP_MARKER)
    if start == -1:
        return source.strip()
    body = source[start + len(_UP_MARKER):]
    end = body.find(_DOWN_MARKER)
    if end != -1:
        body = body[:end]
    return body.strip()


async def apply_migrations(migrations_dir: Path) -> list[str]:
    """
    Apply pending migrations in order. Returns the versions applied this run.
    """
    migrations = discover(migrations_dir)
    applied_now: list[str] = []

    try:
        async with db.pool().acquire() as conn:  # type: asyncpg.Connection
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version text PRIMARY KEY
                )
                """
            )
            rows = await conn.fetch("SELECT version FROM schema_migrations")
            already = {str(r["version"]) for r in rows}

            for migration in migrations:
                if migration.version in already:
                    continue
                sql = up_sql(migration.path.read_text(encoding="utf-8"))
                logger.info("migration_apply version=%s name=%s", migration.version, migration.name)
                async with conn.transaction():
                    if sql:
                        await conn.execute(sql)
                    await conn.execute(
                        "INSERT INTO schema_migrations (version) VALUES ($1)",
                        migration.version,
                    )
                applied_now.append(migration.version)
    except (asyncpg.PostgresError, OSError) as exc:
        raise db.StoreError(f"Migration failed: {exc}") from exc

    if applied_now:
        logger.info("migrations_applied count=%s", len(applied_now))
    else:
        logger.info("migrations_up_to_date total=%s", len(migrations))
    return applied_now
