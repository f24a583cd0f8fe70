"""Application settings using pydantic-settings."""

from functools import cache
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BeforeValidator, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ytmm.config import APIConfig, AudioQuality, DownloadConfig
from ytmm.db.engine import DB_FILE
from ytmm.services.scheduler import SYNC_INTERVAL_HOURS

LogLevel = Annotated[
    Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    BeforeValidator(lambda v: v.upper() if isinstance(v, str) else v),
]

MetadataSource = Literal["backend", "ytmusic"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="YTMM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Project root (required, set via YTMM_ROOT)
    root: Path = Field(description="Project root directory")

    # Path settings (default to root-relative paths)
    data: Path = Field(description="Music library")
    db_path: Path = Field(description="SQLite database file")

    # Metadata and backend settings
    metadata_source: MetadataSource = Field(
        default="backend", description="Where playlist metadata is fetched from"
    )
    backend_url: str = Field(
        default=APIConfig.backend_url, description="Companion backend base URL"
    )
    access_token: str | None = Field(
        default=None, description="Bearer token for private playlists"
    )
    cookies_file: Path | None = Field(
        default=None, description="cookies.txt for ytmusicapi authentication"
    )
    http_timeout: float = Field(
        default=30.0, gt=0, description="HTTP request timeout in seconds"
    )

    # Download settings
    audio_quality: AudioQuality = Field(
        default=AudioQuality.STANDARD, description="Audio bitrate in kbps"
    )
    max_concurrent_downloads: int = Field(
        default=3, ge=1, le=10, description="Simultaneous track downloads"
    )
    ascii_filenames: bool = Field(
        default=False, description="Transliterate unicode to ASCII in filenames"
    )

    # Auto-sync settings
    auto_sync_enabled: bool = Field(
        default=False, description="Enable periodic background sync"
    )
    auto_sync_interval_hours: int = Field(
        default=24, description="Hours between background syncs"
    )

    log_level: LogLevel = Field(default="INFO", description="Log level")

    @field_validator("auto_sync_interval_hours")
    @classmethod
    def valid_interval(cls, v: int) -> int:
        if v not in SYNC_INTERVAL_HOURS:
            raise ValueError(f"must be one of {SYNC_INTERVAL_HOURS}")
        return v

    @model_validator(mode="before")
    @classmethod
    def set_path_defaults(cls, data: Any) -> Any:
        """Set path defaults based on root before validation."""
        if not isinstance(data, dict):
            return data
        root = data.get("root")
        if not root:
            raise ValueError("YTMM_ROOT environment variable is required")
        root = Path(root) if isinstance(root, str) else root
        if not data.get("data"):
            data["data"] = root / "data"
        if not data.get("db_path"):
            data["db_path"] = root / DB_FILE
        return data

    def api_config(self) -> APIConfig:
        return APIConfig(
            backend_url=self.backend_url,
            access_token=self.access_token,
            timeout=self.http_timeout,
        )

    def download_config(self) -> DownloadConfig:
        return DownloadConfig(
            base_path=self.data,
            quality=self.audio_quality,
            max_concurrent_downloads=self.max_concurrent_downloads,
            ascii_filenames=self.ascii_filenames,
        )


@cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]
