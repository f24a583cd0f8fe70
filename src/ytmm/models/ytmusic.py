"""Models for parsing ytmusicapi responses.

These are internal models used to parse and validate responses from
the YouTube Music API. They may change if the API changes.
"""

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "Artist",
    "Playlist",
    "PlaylistTrack",
    "Thumbnail",
]


class YTMusicModel(BaseModel):
    """Base model for ytmusicapi responses."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class Thumbnail(YTMusicModel):
    """Video/playlist thumbnail."""

    url: str
    width: int
    height: int


class Artist(YTMusicModel):
    """Artist reference."""

    name: str
    id: str | None = None


class PlaylistTrack(YTMusicModel):
    """Track in a playlist."""

    video_id: str = Field(alias="videoId")
    title: str
    artists: list[Artist] = Field(default_factory=list)
    thumbnails: list[Thumbnail] = Field(default_factory=list)
    duration_seconds: int = 0


class Playlist(YTMusicModel):
    """Playlist response from get_playlist()."""

    id: str | None = None
    title: str | None = None
    description: str | None = None
    thumbnails: list[Thumbnail] = Field(default_factory=list)
    track_count: int | None = Field(default=None, alias="trackCount")
    tracks: list[PlaylistTrack]
