"""Data models for ytmm.

Public API:
    Track, Playlist - Locally stored entities
    PlaylistInfo, VideoInfo - Normalized remote metadata
    SyncPreview, PlaylistDownloadResult - Operation results
    DownloadProgress - Per-track progress event

Internal (not exported):
    backend.py - Models for parsing companion backend responses
    ytmusic.py - Models for parsing ytmusicapi responses
"""

from ytmm.models.enums import DownloadStatus, SyncStatus
from ytmm.models.progress import DownloadProgress
from ytmm.models.results import PlaylistDownloadResult, SyncPreview
from ytmm.models.track import (
    Playlist,
    PlaylistInfo,
    Track,
    VideoInfo,
    completed_size,
    make_track_id,
)

__all__ = [
    "DownloadProgress",
    "DownloadStatus",
    "Playlist",
    "PlaylistDownloadResult",
    "PlaylistInfo",
    "SyncPreview",
    "SyncStatus",
    "Track",
    "VideoInfo",
    "completed_size",
    "make_track_id",
]
