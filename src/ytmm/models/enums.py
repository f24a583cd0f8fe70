"""Enumerations for ytmm domain models."""

from enum import StrEnum


class DownloadStatus(StrEnum):
    """Download state of a single track.

    Transitions: pending -> downloading -> completed | error,
    error -> pending (retry), downloading -> pending (cancel).
    """

    PENDING = "pending"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    ERROR = "error"


class SyncStatus(StrEnum):
    """Lifecycle status of a playlist."""

    IDLE = "idle"
    SYNCING = "syncing"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    ERROR = "error"
