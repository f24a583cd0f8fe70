"""Track and playlist models."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ytmm.models.enums import DownloadStatus, SyncStatus

PLAYLIST_URL = "https://www.youtube.com/playlist?list={playlist_id}"


def make_track_id(playlist_id: str, remote_id: str) -> str:
    """Build the stable local key for a remote video within a playlist.

    The same (playlist, video) pair always yields the same key, so a re-sync
    recognizes tracks that are already stored.
    """
    return f"{playlist_id}-{remote_id}"


class _Record(BaseModel):
    """Immutable record; changes produce a validated copy."""

    model_config = ConfigDict(frozen=True)

    def _replace(self, **changes: Any) -> Self:
        return type(self).model_validate(self.model_dump() | changes)


class PlaylistInfo(BaseModel):
    """Normalized playlist metadata returned by a metadata gateway.

    Attributes:
        playlist_id: Remote playlist identifier.
        title: Playlist title.
        description: Playlist description (empty when absent).
        thumbnail_url: Cover image URL (empty when absent).
        item_count: Number of items the remote reports.
    """

    model_config = ConfigDict(frozen=True)

    playlist_id: str
    title: str
    description: str = ""
    thumbnail_url: str = ""
    item_count: int = Field(default=0, ge=0)


class VideoInfo(BaseModel):
    """Normalized entry of a remote playlist's ordered video list."""

    model_config = ConfigDict(frozen=True)

    remote_id: str
    title: str
    artist: str
    duration_seconds: int = Field(default=0, ge=0)
    thumbnail_url: str = ""

    @field_validator("remote_id")
    @classmethod
    def non_empty_id(cls, v: str) -> str:
        """Validate that the video ID is non-empty."""
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v


class Track(_Record):
    """A remote video mapped to a local audio file.

    Records are never mutated in place; every state change returns a new
    validated copy that the caller writes back to the store.
    """

    id: str
    playlist_id: str
    remote_id: str
    title: str
    artist: str
    duration_seconds: int = Field(default=0, ge=0)
    thumbnail_url: str = ""
    position: int = Field(ge=0)
    download_status: DownloadStatus = DownloadStatus.PENDING
    download_progress: float = Field(default=0.0, ge=0.0, le=1.0)
    file_size: int = Field(default=0, ge=0)
    local_path: Path | None = None

    @model_validator(mode="after")
    def completed_has_file(self) -> Self:
        """A completed track always points at a non-empty local file."""
        if self.download_status is DownloadStatus.COMPLETED:
            if self.local_path is None:
                raise ValueError("completed track must have a local_path")
            if self.file_size <= 0:
                raise ValueError("completed track must have a positive file_size")
        return self

    @classmethod
    def from_video(cls, playlist_id: str, video: VideoInfo, position: int) -> Track:
        """Create a pending track for a remote video."""
        return cls(
            id=make_track_id(playlist_id, video.remote_id),
            playlist_id=playlist_id,
            remote_id=video.remote_id,
            title=video.title,
            artist=video.artist,
            duration_seconds=video.duration_seconds,
            thumbnail_url=video.thumbnail_url,
            position=position,
        )

    @property
    def display_name(self) -> str:
        """Label used in manifests and logs."""
        return f"{self.artist} - {self.title}"

    @property
    def is_completed(self) -> bool:
        return self.download_status is DownloadStatus.COMPLETED

    def started(self) -> Track:
        return self._replace(
            download_status=DownloadStatus.DOWNLOADING, download_progress=0.0
        )

    def progressed(self, written: int, expected: int) -> Track:
        """Apply a transport progress tick.

        When the server did not report a size, the bytes written so far
        stand in for the file size and progress stays at 0.
        """
        progress = min(written / expected, 1.0) if expected > 0 else 0.0
        return self._replace(
            download_progress=progress,
            file_size=expected if expected > 0 else written,
        )

    def completed(self, local_path: Path, file_size: int) -> Track:
        return self._replace(
            download_status=DownloadStatus.COMPLETED,
            download_progress=1.0,
            local_path=local_path,
            file_size=file_size,
        )

    def failed(self) -> Track:
        return self._replace(download_status=DownloadStatus.ERROR, local_path=None)

    def reset(self) -> Track:
        """Return to pending with no file reference (cancel or retry)."""
        return self._replace(
            download_status=DownloadStatus.PENDING,
            download_progress=0.0,
            file_size=0,
            local_path=None,
        )


class Playlist(_Record):
    """A remote playlist tracked in the local library.

    Attributes:
        id: Remote playlist identifier, also the local primary key.
        name: Title snapshot from the last fetch.
        track_count: Remote item count as of last_synced_at.
        total_size: Sum of completed track sizes (derived).
        sync_status: Current lifecycle status.
    """

    id: str
    name: str
    url: str = ""
    description: str = ""
    thumbnail_url: str = ""
    track_count: int = Field(default=0, ge=0)
    total_size: int = Field(default=0, ge=0)
    last_synced_at: datetime | None = None
    date_added: datetime = Field(default_factory=lambda: datetime.now(UTC))
    sync_status: SyncStatus = SyncStatus.IDLE

    @classmethod
    def from_info(cls, info: PlaylistInfo, track_count: int) -> Playlist:
        """Create an idle playlist from fetched metadata."""
        return cls(
            id=info.playlist_id,
            name=info.title,
            url=PLAYLIST_URL.format(playlist_id=info.playlist_id),
            description=info.description,
            thumbnail_url=info.thumbnail_url,
            track_count=track_count,
        )

    def with_status(self, status: SyncStatus) -> Playlist:
        return self._replace(sync_status=status)

    def with_changes(self, **changes: Any) -> Playlist:
        return self._replace(**changes)


def completed_size(tracks: Iterable[Track]) -> int:
    """Sum of file sizes of the completed tracks."""
    return sum(t.file_size for t in tracks if t.is_completed)
