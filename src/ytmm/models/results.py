"""Result models for sync and download operations."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ytmm.models.track import Track


class SyncPreview(BaseModel):
    """Difference between a remote playlist and its local tracks.

    Returned by a dry-run reconciliation (nothing is written) and by a
    committed one (describing what was applied).

    Attributes:
        tracks_to_add: New pending tracks, in remote order.
        tracks_to_remove: Local tracks no longer present remotely.
        total_download_size: Bytes to download; unknown before download, so 0.
    """

    model_config = ConfigDict(frozen=True)

    tracks_to_add: list[Track] = Field(default_factory=list)
    tracks_to_remove: list[Track] = Field(default_factory=list)
    total_download_size: int = 0

    @property
    def has_changes(self) -> bool:
        return bool(self.tracks_to_add or self.tracks_to_remove)


class PlaylistDownloadResult(BaseModel):
    """Outcome of downloading every pending track of a playlist.

    Attributes:
        playlist_id: Playlist that was downloaded.
        completed: Track IDs downloaded successfully in this run.
        failed: Track IDs that ended in error.
        cancelled: Track IDs cancelled while in flight.
        manifest_path: Written manifest, or None if writing failed.
        total_size: Sum of completed track sizes after the run.
    """

    model_config = ConfigDict(frozen=True)

    playlist_id: str
    completed: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    cancelled: list[str] = Field(default_factory=list)
    manifest_path: Path | None = None
    total_size: int = 0

    @property
    def success_count(self) -> int:
        return len(self.completed)

    @property
    def failed_count(self) -> int:
        return len(self.failed)
