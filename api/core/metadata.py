"""
Metadata Provider HTTP client.

Used endpoint:
- GET /info?group=...&song=...  -> {"releaseDate": "...", "text": "...", "link": "..."}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx


# Provider failures are explicit and separable from store errors.
class ProviderError(RuntimeError):
    pass


@dataclass(frozen=True)
class SongDetails:
    release_date: str
    text: str
    link: str


def _normalize_base_url(base_url: str) -> str:
    base_url = (base_url or "").strip()
    if not base_url:
        raise ProviderError("API_URL is empty.")
    return base_url.rstrip("/")


def _str_field(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ProviderError(f"Provider field '{key}' is not a string.")
    return value


async def fetch_song_details(
    *,
    base_url: str,
    group: str,
    song: str,
    timeout_s: float = 5.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SongDetails:
    """
    Look up release date, lyrics and link for a (group, song) pair.
    """
    base_url = _normalize_base_url(base_url)

    try:
        async with httpx.AsyncClient(base_url=base_url, timeout=timeout_s, transport=transport) as client:
            resp = await client.get("/info", params={"group": group, "song": song})
    except httpx.HTTPError as exc:
        raise ProviderError(f"Provider request failed: {exc}") from exc

    if resp.status_code != 200:
        # Avoid dumping huge bodies; include a small snippet.
        body = resp.text[:500]
        raise ProviderError(f"Provider request failed: {resp.status_code} {body}")

    try:
        data = resp.json()
    except ValueError as exc:
        raise ProviderError("Provider returned a non-JSON body.") from exc

    if not isinstance(data, dict):
        raise ProviderError("Provider returned a non-object body.")

    return SongDetails(
        release_date=_str_field(data, "releaseDate"),
        text=_str_field(data, "text"),
        link=_str_field(data, "link"),
    )
