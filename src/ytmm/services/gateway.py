"""Remote playlist metadata gateways.

Two implementations of the same contract:

- BackendMetadataGateway talks to the companion backend over HTTP and
  supports a bearer token for private playlists.
- YTMusicMetadataGateway reads YouTube Music directly through ytmusicapi and
  supports browser cookies for private playlists.

Raw response shapes never leave this module; callers only see PlaylistInfo
and VideoInfo.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError
from ytmusicapi import YTMusic
from ytmusicapi.exceptions import YTMusicError

from ytmm.config import APIConfig
from ytmm.exceptions import MetadataFetchError, ValidationError
from ytmm.models.backend import BackendPlaylist, BackendVideo, BackendVideoList
from ytmm.models.track import PlaylistInfo, VideoInfo
from ytmm.models.ytmusic import Playlist as YTMusicPlaylist
from ytmm.models.ytmusic import PlaylistTrack, Thumbnail
from ytmm.utils.cookies import cookies_to_ytmusic_auth

logger = logging.getLogger(__name__)

UNKNOWN_ARTIST = "Unknown Artist"


class MetadataGateway(Protocol):
    """Protocol for remote playlist metadata sources.

    This protocol enables dependency injection and testing.
    Implementations raise MetadataFetchError for any transport, parse or
    not-found failure, and have no side effects beyond the network call.
    """

    async def fetch_playlist_info(self, playlist_id: str) -> PlaylistInfo:
        """Fetch playlist-level metadata."""
        ...

    async def fetch_playlist_videos(self, playlist_id: str) -> list[VideoInfo]:
        """Fetch the playlist's videos in remote order."""
        ...


def _require_id(playlist_id: str) -> str:
    if not playlist_id or not playlist_id.strip():
        raise ValidationError("playlist_id cannot be empty")
    return playlist_id.strip()


# ============================================================================
# BACKEND GATEWAY
# ============================================================================


def playlist_info_from_backend(data: Any, playlist_id: str) -> PlaylistInfo:
    """Translate a raw backend playlist payload into a PlaylistInfo.

    Raises:
        MetadataFetchError: If the payload is empty or malformed.
    """
    if not data:
        raise MetadataFetchError(f"Playlist not found: {playlist_id}")
    try:
        raw = BackendPlaylist.model_validate(data)
    except PydanticValidationError as e:
        raise MetadataFetchError(f"Malformed playlist response: {e}") from e

    return PlaylistInfo(
        playlist_id=raw.id or playlist_id,
        title=raw.title,
        description=raw.description or "",
        thumbnail_url=raw.thumbnail_url or "",
        item_count=max(raw.item_count, 0),
    )


def videos_from_backend(data: Any) -> list[VideoInfo]:
    """Translate a raw backend video list payload into VideoInfo records.

    Raises:
        MetadataFetchError: If the payload is malformed.
    """
    try:
        raw = BackendVideoList.model_validate(data)
    except PydanticValidationError as e:
        raise MetadataFetchError(f"Malformed video list response: {e}") from e
    return [_video_from_backend(v) for v in raw.videos if v.id]


def _video_from_backend(video: BackendVideo) -> VideoInfo:
    return VideoInfo(
        remote_id=video.id,
        title=video.title,
        artist=video.artist or UNKNOWN_ARTIST,
        duration_seconds=max(video.duration or 0, 0),
        thumbnail_url=video.thumbnail_url or "",
    )


class BackendMetadataGateway:
    """Metadata gateway backed by the companion HTTP backend.

    Example:
        >>> async with BackendMetadataGateway(APIConfig(access_token=token)) as gw:
        ...     videos = await gw.fetch_playlist_videos("PL1234567890")
    """

    PLAYLIST_ENDPOINT = "/api/youtube/playlist"
    VIDEOS_ENDPOINT = "/api/youtube/playlist/videos"

    def __init__(
        self,
        config: APIConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            config: Backend configuration. Uses defaults if not provided.
            client: Optional preconfigured HTTP client (for testing).
                    Created lazily from config if not provided.
        """
        self._config = config or APIConfig()
        self._client = client
        self._owns_client = client is None

        if self._config.access_token:
            logger.info("Using bearer token for metadata requests")
        else:
            logger.info("No access token configured; public playlists only")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.backend_url,
                timeout=self._config.timeout,
            )
            self._owns_client = True
        return self._client

    def set_access_token(self, token: str | None) -> None:
        """Replace the bearer token used for subsequent requests."""
        self._config = APIConfig(
            backend_url=self._config.backend_url,
            access_token=token,
            timeout=self._config.timeout,
        )

    async def close(self) -> None:
        """Close the HTTP client if this gateway created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> BackendMetadataGateway:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def _get_json(self, endpoint: str, params: dict[str, str]) -> Any:
        headers: dict[str, str] = {}
        if self._config.access_token:
            headers["Authorization"] = f"Bearer {self._config.access_token}"

        try:
            response = await self._get_client().get(
                endpoint, params=params, headers=headers
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Backend returned %d for %s", e.response.status_code, endpoint
            )
            raise MetadataFetchError(
                f"Backend request failed with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.warning("Backend request to %s failed: %s", endpoint, e)
            raise MetadataFetchError(f"Backend request failed: {e}") from e
        except ValueError as e:
            raise MetadataFetchError(f"Backend returned invalid JSON: {e}") from e

    async def fetch_playlist_info(self, playlist_id: str) -> PlaylistInfo:
        """Fetch playlist metadata.

        Raises:
            ValidationError: If playlist_id is empty.
            MetadataFetchError: If the request fails or the playlist is missing.
        """
        playlist_id = _require_id(playlist_id)
        logger.debug("Fetching playlist info: %s", playlist_id)
        data = await self._get_json(self.PLAYLIST_ENDPOINT, {"id": playlist_id})
        return playlist_info_from_backend(data, playlist_id)

    async def fetch_playlist_videos(self, playlist_id: str) -> list[VideoInfo]:
        """Fetch the ordered video list of a playlist.

        Raises:
            ValidationError: If playlist_id is empty.
            MetadataFetchError: If the request fails or the response is malformed.
        """
        playlist_id = _require_id(playlist_id)
        logger.debug("Fetching playlist videos: %s", playlist_id)
        data = await self._get_json(
            self.VIDEOS_ENDPOINT, {"playlistId": playlist_id}
        )
        videos = videos_from_backend(data)
        logger.debug("Fetched %d videos for %s", len(videos), playlist_id)
        return videos


# ============================================================================
# YTMUSICAPI GATEWAY
# ============================================================================


def _best_thumbnail(thumbnails: list[Thumbnail]) -> str:
    if not thumbnails:
        return ""
    return max(thumbnails, key=lambda t: t.width * t.height).url


def _video_from_ytmusic(track: PlaylistTrack) -> VideoInfo:
    artists = [a.name for a in track.artists if a.name]
    return VideoInfo(
        remote_id=track.video_id,
        title=track.title,
        artist=", ".join(artists) if artists else UNKNOWN_ARTIST,
        duration_seconds=max(track.duration_seconds, 0),
        thumbnail_url=_best_thumbnail(track.thumbnails),
    )


class YTMusicMetadataGateway:
    """Metadata gateway backed by ytmusicapi.

    ytmusicapi is synchronous, so each call runs in a worker thread. A full
    playlist fetch serves both info and videos. The response of an info
    fetch is kept for exactly one following videos call on the same
    playlist, so add costs one request. Any other videos call fetches fresh.
    """

    def __init__(
        self,
        ytmusic: YTMusic | None = None,
        cookies_path: Path | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            ytmusic: Optional YTMusic instance. Creates one if not provided.
            cookies_path: Optional path to cookies.txt for authentication.
                         Enables access to private playlists when valid.
        """
        self._ytm = ytmusic or self._create_ytmusic(cookies_path)
        self._last: tuple[str, YTMusicPlaylist] | None = None

    def _create_ytmusic(self, cookies_path: Path | None) -> YTMusic:
        if cookies_path:
            auth = cookies_to_ytmusic_auth(cookies_path)
            if auth:
                logger.info("Using cookies for ytmusicapi requests")
                return YTMusic(auth=auth)
            logger.info("No valid cookies for ytmusicapi requests (missing SAPISID)")
            return YTMusic()

        logger.info("No cookies configured for ytmusicapi requests")
        return YTMusic()

    def _get_playlist_sync(self, playlist_id: str) -> YTMusicPlaylist:
        try:
            data = self._ytm.get_playlist(playlist_id, limit=None)
        except YTMusicError as e:
            logger.warning("YTMusic error for playlist %s: %s", playlist_id, e)
            raise MetadataFetchError(f"Failed to fetch playlist: {e}") from e
        except KeyError as e:
            # ytmusicapi raises KeyError when YouTube returns an unexpected page
            logger.warning("Missing data in playlist response %s: %s", playlist_id, e)
            raise MetadataFetchError(
                f"Playlist not found or malformed: {playlist_id}"
            ) from e

        if not data:
            raise MetadataFetchError(f"Playlist not found: {playlist_id}")

        raw_tracks = data.get("tracks") or []
        available = [
            t
            for t in raw_tracks
            if t and t.get("videoId") and t.get("isAvailable", True)
        ]
        dropped = len(raw_tracks) - len(available)
        if dropped:
            logger.info("Skipping %d unavailable tracks in %s", dropped, playlist_id)

        for track in available:
            # ytmusicapi may return null for artists on some tracks
            if track.get("artists") is None:
                track["artists"] = []

        try:
            return YTMusicPlaylist.model_validate({**data, "tracks": available})
        except PydanticValidationError as e:
            raise MetadataFetchError(f"Malformed playlist response: {e}") from e

    async def _get_playlist(self, playlist_id: str) -> YTMusicPlaylist:
        logger.debug("Fetching playlist: %s", playlist_id)
        return await asyncio.to_thread(self._get_playlist_sync, playlist_id)

    async def fetch_playlist_info(self, playlist_id: str) -> PlaylistInfo:
        playlist_id = _require_id(playlist_id)
        playlist = await self._get_playlist(playlist_id)
        # Kept for the videos call that usually follows
        self._last = (playlist_id, playlist)
        return PlaylistInfo(
            playlist_id=playlist.id or playlist_id,
            title=playlist.title or playlist_id,
            description=playlist.description or "",
            thumbnail_url=_best_thumbnail(playlist.thumbnails),
            item_count=playlist.track_count or len(playlist.tracks),
        )

    async def fetch_playlist_videos(self, playlist_id: str) -> list[VideoInfo]:
        playlist_id = _require_id(playlist_id)
        last, self._last = self._last, None
        if last is not None and last[0] == playlist_id:
            playlist = last[1]
        else:
            playlist = await self._get_playlist(playlist_id)
        return [_video_from_ytmusic(t) for t in playlist.tracks]
