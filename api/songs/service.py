"""
Songs business logic.

Scope:
- query parameter coercion (page/limit/id never reject the request)
- verse pagination of lyrics
- provider enrichment on create
- merge (partial) update
- mapping store/provider failures to HTTP errors
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, status

from core import db, metadata
from core.config import Settings

from . import repository, schemas, verses

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIST_LIMIT = 10
DEFAULT_VERSE_LIMIT = 1

MERGE_FIELDS = ("group_name", "song_name", "release_date", "song_text", "link")


PAGING_CAP = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def int_param_or_default(raw: str | None, default: int, *, minimum: int) -> int:
    """
    Parse an integer query value. Non-numeric values and values below
    `minimum` fall back to `default`; large values are capped at PAGING_CAP
    so `(page - 1) * limit` stays inside the int64 OFFSET range.
    """
    try:
        value = int((raw or "").strip())
    except ValueError:
        return default
    if value < minimum:
        return default
    return min(value, PAGING_CAP)


def page_or_default(raw: str | None) -> int:
    return int_param_or_default(raw, DEFAULT_PAGE, minimum=1)


def limit_or_default(raw: str | None, default: int) -> int:
    # An explicit limit=0 is honoured and yields an empty page.
    return int_param_or_default(raw, default, minimum=0)


def parse_song_id(raw: str) -> int:
    """
    Non-numeric or out-of-int64-range ids coerce to 0, which matches no row.
    """
    try:
        value = int((raw or "").strip())
    except ValueError:
        return 0
    if value < INT64_MIN or value > INT64_MAX:
        return 0
    return value


def _server_error(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Song not found.")


def _to_song_response(row: dict[str, Any]) -> dict[str, Any]:
    song = schemas.SongResponse(
        id=int(row["id"]),
        group_name=str(row["group_name"] or ""),
        song_name=str(row["song_name"] or ""),
        release_date=str(row["release_date"] or ""),
        song_text=str(row["song_text"] or ""),
        link=str(row["link"] or ""),
    )
    return song.model_dump(by_alias=True)


def merge_song(current: dict[str, Any], incoming: schemas.SongUpdateRequest) -> dict[str, str]:
    """
    Non-empty incoming fields replace stored ones; empty fields keep them.
    """
    merged: dict[str, str] = {}
    for field in MERGE_FIELDS:
        value = getattr(incoming, field)
        merged[field] = value if value != "" else str(current.get(field) or "")
    return merged


async def list_songs(*, group: str, song: str, page: int, limit: int) -> list[dict[str, Any]]:
    offset = (page - 1) * limit
    try:
        rows = await repository.list_songs(group=group, song=song, limit=limit, offset=offset)
    except db.StoreError as exc:
        logger.exception("songs_list_failed group=%r song=%r", group, song)
        raise _server_error("Failed to list songs.") from exc

    logger.info("songs_listed count=%s page=%s limit=%s", len(rows), page, limit)
    return [_to_song_response(row) for row in rows]


async def song_verses(song_id: int, *, page: int, limit: int) -> dict[str, Any]:
    try:
        text = await repository.get_song_text(song_id)
    except repository.SongNotFoundError as exc:
        logger.warning("song_text_not_found id=%s", song_id)
        raise _not_found() from exc
    except db.StoreError as exc:
        logger.exception("song_text_failed id=%s", song_id)
        raise _server_error("Failed to load song text.") from exc

    page_verses = verses.paginate(verses.split_verses(text), page=page, limit=limit)
    logger.info("song_verses id=%s page=%s limit=%s returned=%s", song_id, page, limit, len(page_verses))
    return {"verses": page_verses, "page": page, "limit": limit}


async def create_song(payload: schemas.SongCreateRequest, *, settings: Settings) -> dict[str, Any]:
    try:
        details = await repository.fetch_external_details(
            base_url=settings.api_url,
            group=payload.group,
            song=payload.song,
            timeout_s=settings.api_timeout_s,
        )
    except metadata.ProviderError as exc:
        logger.error("provider_lookup_failed group=%r song=%r error=%s", payload.group, payload.song, exc)
        raise _server_error("Failed to fetch song details from the external API.") from exc

    try:
        song_id = await repository.insert_song(
            group_name=payload.group,
            song_name=payload.song,
            release_date=details.release_date,
            song_text=details.text,
            link=details.link,
        )
    except db.StoreError as exc:
        logger.exception("song_create_failed group=%r song=%r", payload.group, payload.song)
        raise _server_error("Failed to add song.") from exc

    logger.info("song_created id=%s group=%r song=%r", song_id, payload.group, payload.song)
    return {"message": "Song added.", "id": song_id}


async def update_song(song_id: int, payload: schemas.SongUpdateRequest) -> dict[str, Any]:
    try:
        current = await repository.get_song(song_id)
    except db.StoreError as exc:
        logger.exception("song_load_failed id=%s", song_id)
        raise _server_error("Failed to load song.") from exc

    if current is None:
        logger.warning("song_update_not_found id=%s", song_id)
        raise _not_found()

    merged = merge_song(current, payload)
    try:
        await repository.update_song(song_id, **merged)
    except db.StoreError as exc:
        logger.exception("song_update_failed id=%s", song_id)
        raise _server_error("Failed to update song.") from exc

    logger.info("song_updated id=%s", song_id)
    return {"message": "Song updated."}


async def delete_song(song_id: int) -> dict[str, Any]:
    try:
        await repository.delete_song(song_id)
    except db.StoreError as exc:
        logger.exception("song_delete_failed id=%s", song_id)
        raise _server_error("Failed to delete song.") from exc

    logger.info("song_deleted id=%s", song_id)
    return {"message": "Song deleted."}
