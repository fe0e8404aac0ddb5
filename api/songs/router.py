"""
Songs API endpoints.

Numeric query/path values are taken as raw strings and coerced in the service
layer, so malformed `page`, `limit` or `id` never produce a 4xx.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from core.config import Settings, get_settings

from . import schemas, service

router = APIRouter()


@router.get("/songs")
async def list_songs(
    group: str = "",
    song: str = "",
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
) -> list[dict]:
    return await service.list_songs(
        group=group,
        song=song,
        page=service.page_or_default(page),
        limit=service.limit_or_default(limit, service.DEFAULT_LIST_LIMIT),
    )


@router.get("/songs/{song_id}/text")
async def get_song_text(
    song_id: str,
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
) -> dict:
    """
    One page of verses from the song's lyrics.
    """
    return await service.song_verses(
        service.parse_song_id(song_id),
        page=service.page_or_default(page),
        limit=service.limit_or_default(limit, service.DEFAULT_VERSE_LIMIT),
    )


@router.post("/songs")
async def create_song(
    request: schemas.SongCreateRequest,
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Add a song; release date, lyrics and link come from the Metadata Provider.
    """
    return await service.create_song(request, settings=settings)


@router.put("/songs/{song_id}")
async def update_song(song_id: str, request: schemas.SongUpdateRequest) -> dict:
    """
    Partial update: only non-empty fields overwrite stored values.
    """
    return await service.update_song(service.parse_song_id(song_id), request)


@router.delete("/songs/{song_id}")
async def delete_song(song_id: str) -> dict:
    return await service.delete_song(service.parse_song_id(song_id))
