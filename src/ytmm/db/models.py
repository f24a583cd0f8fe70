"""Database models."""

from datetime import UTC, datetime

from sqlmodel import Field, SQLModel

from ytmm.models.enums import DownloadStatus, SyncStatus


class PlaylistRecord(SQLModel, table=True):
    """A playlist row."""

    __tablename__ = "playlists"

    id: str = Field(primary_key=True)
    name: str
    url: str = ""
    description: str = ""
    thumbnail_url: str = ""
    track_count: int = 0
    total_size: int = 0
    last_synced_at: datetime | None = None
    date_added: datetime = Field(default_factory=lambda: datetime.now(UTC))
    sync_status: SyncStatus = Field(default=SyncStatus.IDLE)


class TrackRecord(SQLModel, table=True):
    """A track row, owned by one playlist."""

    __tablename__ = "tracks"

    id: str = Field(primary_key=True)
    playlist_id: str = Field(foreign_key="playlists.id", index=True)
    remote_id: str
    title: str
    artist: str
    duration_seconds: int = 0
    thumbnail_url: str = ""
    position: int = Field(index=True)
    download_status: DownloadStatus = Field(default=DownloadStatus.PENDING)
    download_progress: float = 0.0
    file_size: int = 0
    local_path: str | None = None
