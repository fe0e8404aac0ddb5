from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from core.config import Settings, get_settings
from core.metadata import ProviderError, SongDetails
from main import app
from songs import repository


class FakeSongStore:
    """
    In-memory stand-in for the songs table and the Metadata Provider.
    """

    def __init__(self) -> None:
        self.rows: dict[int, dict[str, Any]] = {}
        self.next_id = 1
        self.details: dict[tuple[str, str], SongDetails] = {}
        self.provider_calls: list[dict[str, Any]] = []
        self.deleted_ids: list[int] = []

    def add(self, **fields: str) -> int:
        song_id = self.next_id
        self.next_id += 1
        row = {
            "id": song_id,
            "group_name": "",
            "song_name": "",
            "release_date": "",
            "song_text": "",
            "link": "",
        }
        row.update(fields)
        self.rows[song_id] = row
        return song_id

    async def list_songs(self, *, group: str = "", song: str = "", limit: int = 10, offset: int = 0):
        matched = [
            dict(row)
            for _, row in sorted(self.rows.items())
            if group.lower() in row["group_name"].lower() and song.lower() in row["song_name"].lower()
        ]
        return matched[offset : offset + limit]

    async def get_song(self, song_id: int):
        row = self.rows.get(song_id)
        return dict(row) if row is not None else None

    async def get_song_text(self, song_id: int) -> str:
        row = self.rows.get(song_id)
        if row is None:
            raise repository.SongNotFoundError(f"Song {song_id} not found.")
        return row["song_text"]

    async def insert_song(self, **fields: str) -> int:
        return self.add(**fields)

    async def update_song(self, song_id: int, **fields: str) -> None:
        if song_id in self.rows:
            self.rows[song_id].update(fields)

    async def delete_song(self, song_id: int) -> None:
        self.deleted_ids.append(song_id)
        self.rows.pop(song_id, None)

    async def fetch_external_details(self, *, base_url: str, group: str, song: str, timeout_s: float = 5.0):
        self.provider_calls.append({"base_url": base_url, "group": group, "song": song})
        details = self.details.get((group, song))
        if details is None:
            raise ProviderError("Provider request failed: 404")
        return details


@pytest.fixture
def settings() -> Settings:
    return Settings(api_url="http://provider.test")


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> FakeSongStore:
    fake = FakeSongStore()
    for name in (
        "list_songs",
        "get_song",
        "get_song_text",
        "insert_song",
        "update_song",
        "delete_song",
        "fetch_external_details",
    ):
        monkeypatch.setattr(repository, name, getattr(fake, name))
    return fake


@pytest.fixture
def client(store: FakeSongStore, settings: Settings):
    app.dependency_overrides[get_settings] = lambda: settings
    # Not entered as a context manager: the lifespan (DB pool, migrations) stays off.
    yield TestClient(app)
    app.dependency_overrides.clear()
