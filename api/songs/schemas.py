"""
Songs API schemas (request/response models).

JSON field names follow the public API (`group`, `song`, `releaseDate`,
`songText`, `link`); Python attributes follow the table columns.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SongCreateRequest(BaseModel):
    group: str = ""
    song: str = ""


class SongUpdateRequest(BaseModel):
    """
    Partial update: empty strings mean "keep the stored value".
    """

    model_config = ConfigDict(populate_by_name=True)

    group_name: str = Field(default="", alias="group")
    song_name: str = Field(default="", alias="song")
    release_date: str = Field(default="", alias="releaseDate")
    song_text: str = Field(default="", alias="songText")
    link: str = ""


class SongResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    group_name: str = Field(alias="group")
    song_name: str = Field(alias="song")
    release_date: str = Field(alias="releaseDate")
    song_text: str = Field(alias="songText")
    link: str
