"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

Driver failures are re-raised as `StoreError` so callers only need to know
about one exception type for the data store.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from .config import Settings

_pool: asyncpg.Pool | None = None


class StoreError(RuntimeError):
    pass


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def connect_kwargs(settings: Settings) -> dict[str, Any]:
    """
    Build `asyncpg.create_pool` connection arguments.

    A DATABASE_URL wins; otherwise the discrete DB_* settings are used.
    """
    if settings.database_url:
        return {"dsn": _sanitize_database_url(settings.database_url)}

    kwargs: dict[str, Any] = {
        "host": settings.db_host,
        "port": settings.db_port,
        "user": settings.db_user,
        "database": settings.db_name,
    }
    if settings.db_password:
        kwargs["password"] = settings.db_password
    # asyncpg understands libpq sslmode names directly.
    kwargs["ssl"] = settings.db_sslmode or "disable"
    return kwargs


async def init_pool(settings: Settings) -> None:
    global _pool
    if _pool is not None:
        return None
    try:
        _pool = await asyncpg.create_pool(
            **connect_kwargs(settings),
            min_size=1,
            max_size=settings.db_pool_max_size,
            command_timeout=30,
        )
    except (asyncpg.PostgresError, OSError) as exc:
        raise StoreError(f"Could not connect to the database: {exc}") from exc


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_one(sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    try:
        row = await pool().fetchrow(sql, *args)
    except (asyncpg.PostgresError, OSError) as exc:
        raise StoreError(str(exc)) from exc
    return _record_to_dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    try:
        rows = await pool().fetch(sql, *args)
    except (asyncpg.PostgresError, OSError) as exc:
        raise StoreError(str(exc)) from exc
    return [_record_to_dict(r) for r in rows]


async def execute(sql: str, *args: Any) -> None:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL). No result returned.
    """
    try:
        await pool().execute(sql, *args)
    except (asyncpg.PostgresError, OSError) as exc:
        raise StoreError(str(exc)) from exc
