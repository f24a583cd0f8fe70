"""Progress events emitted during downloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from ytmm.models.enums import DownloadStatus
from ytmm.models.track import Track


class DownloadProgress(BaseModel):
    """Snapshot of a single track's transfer.

    Published on every transport tick and on every status change.

    Attributes:
        track_id: Track being downloaded.
        playlist_id: Owning playlist.
        status: Download status after this event.
        bytes_written: Bytes written so far.
        bytes_expected: Total bytes expected (0 when unknown).
        progress: Fraction complete in [0, 1].
    """

    model_config = ConfigDict(frozen=True)

    track_id: str
    playlist_id: str
    status: DownloadStatus
    bytes_written: int = 0
    bytes_expected: int = 0
    progress: float = 0.0

    @classmethod
    def for_track(
        cls, track: Track, bytes_written: int = 0, bytes_expected: int = 0
    ) -> DownloadProgress:
        return cls(
            track_id=track.id,
            playlist_id=track.playlist_id,
            status=track.download_status,
            bytes_written=bytes_written,
            bytes_expected=bytes_expected,
            progress=track.download_progress,
        )
