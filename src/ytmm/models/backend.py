"""Models for parsing companion backend responses.

These are internal models used to parse and validate responses from the
backend. They may change if the backend changes.
"""

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "BackendPlaylist",
    "BackendVideo",
    "BackendVideoList",
    "DownloadInfo",
]


class BackendModel(BaseModel):
    """Base model for backend responses."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class BackendPlaylist(BackendModel):
    """Response from /api/youtube/playlist."""

    id: str
    title: str
    description: str | None = None
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")
    item_count: int = Field(default=0, alias="itemCount")


class BackendVideo(BackendModel):
    """Video entry from /api/youtube/playlist/videos."""

    id: str
    title: str
    artist: str | None = None
    duration: int | None = None
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")


class BackendVideoList(BackendModel):
    """Response from /api/youtube/playlist/videos."""

    videos: list[BackendVideo]


class DownloadInfo(BackendModel):
    """Response from /api/download-info."""

    download_url: str = Field(alias="downloadUrl")
