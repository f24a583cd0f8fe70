"""Configuration for ytmm."""

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path


class AudioQuality(IntEnum):
    """Supported audio bitrates in kbps."""

    LOW = 128
    STANDARD = 192
    HIGH = 256
    MAX = 320


@dataclass(frozen=True)
class APIConfig:
    """Companion backend configuration.

    Attributes:
        backend_url: Base URL of the backend that serves playlist metadata
            and resolves video IDs to downloadable audio URLs.
        access_token: Optional OAuth bearer token for private playlists.
        timeout: Request timeout in seconds.
    """

    backend_url: str = "https://yt-music-manager-backend.onrender.com"
    access_token: str | None = None
    timeout: float = 30.0


@dataclass(frozen=True)
class DownloadConfig:
    """Download orchestration configuration.

    Attributes:
        base_path: Base directory for downloaded files.
        quality: Requested audio bitrate.
        max_concurrent_downloads: Upper bound on simultaneous transfers.
        chunk_size: Bytes read per streamed chunk.
        extension: File extension for downloaded audio.
        ascii_filenames: Transliterate unicode to ASCII in filenames.
    """

    base_path: Path
    quality: AudioQuality = AudioQuality.STANDARD
    max_concurrent_downloads: int = 3
    chunk_size: int = 64 * 1024
    extension: str = "mp3"
    ascii_filenames: bool = False

    def __post_init__(self) -> None:
        if self.max_concurrent_downloads < 1:
            raise ValueError("max_concurrent_downloads must be at least 1")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be positive")
