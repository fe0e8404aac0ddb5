"""
Songs persistence (raw SQL) and Metadata Provider lookups.

Store failures surface as `core.db.StoreError`, provider failures as
`core.metadata.ProviderError`. Nothing here retries.
"""

from __future__ import annotations

import logging
from typing import Any

from core import db, metadata

logger = logging.getLogger(__name__)

SONG_COLUMNS = "id, group_name, song_name, release_date, song_text, link"


class SongNotFoundError(LookupError):
    pass


def _like_substring(value: str) -> str:
    """
    Escape LIKE metacharacters so the filter matches as a literal substring.
    """
    return (value or "").replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_songs(
    *,
    group: str = "",
    song: str = "",
    limit: int = 10,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """
    Case-insensitive substring filters on group and song name (ANDed).
    An empty filter matches every row.
    """
    logger.debug(
        "songs_list group=%r song=%r limit=%s offset=%s", group, song, limit, offset
    )
    rows = await db.fetch_all(
        f"""
        SELECT {SONG_COLUMNS}
        FROM songs
        WHERE group_name ILIKE ('%' || $1 || '%')
          AND song_name ILIKE ('%' || $2 || '%')
        ORDER BY id ASC
        LIMIT $3
        OFFSET $4
        """,
        _like_substring(group),
        _like_substring(song),
        limit,
        offset,
    )
    return rows


async def get_song(song_id: int) -> dict[str, Any] | None:
    """
    Return the song row, or None when it does not exist.
    """
    logger.debug("songs_get id=%s", song_id)
    return await db.fetch_one(
        f"""
        SELECT {SONG_COLUMNS}
        FROM songs
        WHERE id = $1
        """,
        song_id,
    )


async def get_song_text(song_id: int) -> str:
    logger.debug("songs_get_text id=%s", song_id)
    row = await db.fetch_one(
        """
        SELECT song_text
        FROM songs
        WHERE id = $1
        """,
        song_id,
    )
    if row is None:
        raise SongNotFoundError(f"Song {song_id} not found.")
    return str(row["song_text"] or "")


async def insert_song(
    *,
    group_name: str,
    song_name: str,
    release_date: str,
    song_text: str,
    link: str,
) -> int:
    """
    Insert a song and return its id.
    """
    logger.debug("songs_insert group=%r song=%r", group_name, song_name)
    row = await db.fetch_one(
        """
        INSERT INTO songs (group_name, song_name, release_date, song_text, link)
        VALUES ($1, $2, $3, $4, $5)
        RETURNING id
        """,
        group_name,
        song_name,
        release_date,
        song_text,
        link,
    )
    if row is None or "id" not in row:
        raise db.StoreError("Failed to insert song.")
    return int(row["id"])


async def update_song(
    song_id: int,
    *,
    group_name: str,
    song_name: str,
    release_date: str,
    song_text: str,
    link: str,
) -> None:
    """
    Overwrite every field of the song. Merging is the caller's job.
    """
    logger.debug("songs_update id=%s", song_id)
    await db.execute(
        """
        UPDATE songs
        SET group_name = $1,
            song_name = $2,
            release_date = $3,
            song_text = $4,
            link = $5
        WHERE id = $6
        """,
        group_name,
        song_name,
        release_date,
        song_text,
        link,
        song_id,
    )


async def delete_song(song_id: int) -> None:
    logger.debug("songs_delete id=%s", song_id)
    await db.execute(
        """
        DELETE FROM songs
        WHERE id = $1
        """,
        song_id,
    )


async def fetch_external_details(
    *,
    base_url: str,
    group: str,
    song: str,
    timeout_s: float = 5.0,
) -> metadata.SongDetails:
    logger.debug("provider_lookup group=%r song=%r", group, song)
    return await metadata.fetch_song_details(
        base_url=base_url,
        group=group,
        song=song,
        timeout_s=timeout_s,
    )
