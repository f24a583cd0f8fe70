"""Test fixtures and configuration for ytmm tests.

This module provides shared fixtures organized into:
- Fakes: In-process implementations of the gateway, resolver and transport
- Database fixtures: In-memory SQLite for SQLStore tests
- Factory fixtures: Builders for test data
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from ytmm.config import AudioQuality, DownloadConfig
from ytmm.db import init_db
from ytmm.exceptions import (
    DownloadCancelledError,
    FilesystemError,
    MetadataFetchError,
    TransportError,
)
from ytmm.models import Playlist, PlaylistInfo, Track, VideoInfo
from ytmm.services import (
    DownloadOrchestrator,
    PlaylistLibrary,
    ProgressCallback,
    ProgressEventBus,
    SyncReconciler,
)
from ytmm.store import MemoryStore

PLAYLIST_ID = "PLtest1234567890"


# =============================================================================
# Fakes
# =============================================================================


class FakeGateway:
    """MetadataGateway serving canned playlists."""

    def __init__(self) -> None:
        self.playlists: dict[str, tuple[PlaylistInfo, list[VideoInfo]]] = {}
        self.fail = False
        self.calls: list[tuple[str, str]] = []

    def set_playlist(
        self, playlist_id: str, videos: list[VideoInfo], title: str = "Road Trip"
    ) -> None:
        info = PlaylistInfo(
            playlist_id=playlist_id, title=title, item_count=len(videos)
        )
        self.playlists[playlist_id] = (info, list(videos))

    def _lookup(self, playlist_id: str) -> tuple[PlaylistInfo, list[VideoInfo]]:
        if self.fail:
            raise MetadataFetchError("Backend request failed: boom")
        if playlist_id not in self.playlists:
            raise MetadataFetchError(f"Playlist not found: {playlist_id}")
        return self.playlists[playlist_id]

    async def fetch_playlist_info(self, playlist_id: str) -> PlaylistInfo:
        self.calls.append(("info", playlist_id))
        await asyncio.sleep(0)
        return self._lookup(playlist_id)[0]

    async def fetch_playlist_videos(self, playlist_id: str) -> list[VideoInfo]:
        self.calls.append(("videos", playlist_id))
        await asyncio.sleep(0)
        return list(self._lookup(playlist_id)[1])


class FakeResolver:
    """UrlResolver returning predictable URLs."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, AudioQuality]] = []

    async def resolve(self, remote_id: str, quality: AudioQuality) -> str:
        self.calls.append((remote_id, quality))
        return f"https://cdn.test/{remote_id}.mp3"


class FakeTransport:
    """Transport that writes files locally without any network.

    Attributes:
        sizes: Bytes to write per transfer ID (default_size otherwise).
        fail_ids: Transfer IDs that raise TransportError.
        gates: Transfer IDs that wait on the given event before writing.
        max_active: Highest number of simultaneously active downloads seen.
    """

    def __init__(self, default_size: int = 1024) -> None:
        self.default_size = default_size
        self.sizes: dict[str, int] = {}
        self.fail_ids: set[str] = set()
        self.fail_delete: set[Path] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[str] = []
        self.cancelled: set[str] = set()
        self.paused: list[str] = []
        self.resumed: list[str] = []
        self.deleted: list[Path] = []
        self.progress: dict[str, list[tuple[int, int]]] = {}
        self.active = 0
        self.max_active = 0

    async def download(
        self,
        transfer_id: str,
        url: str,
        destination: Path,
        on_progress: ProgressCallback | None = None,
    ) -> Path:
        self.calls.append(transfer_id)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if gate := self.gates.get(transfer_id):
                await gate.wait()
            await asyncio.sleep(0)
            if transfer_id in self.cancelled:
                raise DownloadCancelledError("Download cancelled")
            if transfer_id in self.fail_ids:
                raise TransportError(f"Download failed: {url}")

            size = self.sizes.get(transfer_id, self.default_size)
            half = size // 2
            for written in (half, size):
                self.progress.setdefault(transfer_id, []).append((written, size))
                if on_progress:
                    await on_progress(written, size)
                await asyncio.sleep(0)

            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(b"\0" * size)
            return destination
        finally:
            self.active -= 1

    def pause(self, transfer_id: str) -> None:
        self.paused.append(transfer_id)

    def resume(self, transfer_id: str) -> None:
        self.resumed.append(transfer_id)

    def cancel(self, transfer_id: str) -> None:
        self.cancelled.add(transfer_id)
        if gate := self.gates.get(transfer_id):
            gate.set()

    async def delete_file(self, path: Path) -> None:
        if path in self.fail_delete:
            raise FilesystemError(f"Failed to delete {path}")
        self.deleted.append(path)
        path.unlink(missing_ok=True)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def config(tmp_path: Path) -> DownloadConfig:
    """Download config writing under a temp directory."""
    return DownloadConfig(base_path=tmp_path / "music")


@pytest.fixture
def events() -> ProgressEventBus:
    return ProgressEventBus()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def orchestrator(
    store: MemoryStore,
    transport: FakeTransport,
    resolver: FakeResolver,
    config: DownloadConfig,
    events: ProgressEventBus,
) -> DownloadOrchestrator:
    return DownloadOrchestrator(store, transport, resolver, config, events)


@pytest.fixture
def reconciler(
    store: MemoryStore, gateway: FakeGateway, transport: FakeTransport
) -> SyncReconciler:
    return SyncReconciler(store, gateway, transport)


@pytest.fixture
def library(
    store: MemoryStore, gateway: FakeGateway, transport: FakeTransport
) -> PlaylistLibrary:
    return PlaylistLibrary(store, gateway, transport)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Create in-memory SQLite engine shared across worker threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


# =============================================================================
# Factory Fixtures
# =============================================================================


@pytest.fixture
def make_video() -> Callable[..., VideoInfo]:
    """Factory for remote videos."""

    def _make_video(
        remote_id: str,
        title: str | None = None,
        artist: str = "Test Artist",
        duration_seconds: int = 200,
    ) -> VideoInfo:
        return VideoInfo(
            remote_id=remote_id,
            title=title or f"Song {remote_id}",
            artist=artist,
            duration_seconds=duration_seconds,
        )

    return _make_video


@pytest.fixture
def make_playlist() -> Callable[..., Playlist]:
    """Factory for stored playlists."""

    def _make_playlist(
        playlist_id: str = PLAYLIST_ID, name: str = "Road Trip", **changes: object
    ) -> Playlist:
        return Playlist(id=playlist_id, name=name, **changes)  # type: ignore[arg-type]

    return _make_playlist


@pytest.fixture
def make_track(make_video: Callable[..., VideoInfo]) -> Callable[..., Track]:
    """Factory for stored tracks (pending unless changed)."""

    def _make_track(
        remote_id: str,
        position: int,
        playlist_id: str = PLAYLIST_ID,
        **changes: object,
    ) -> Track:
        track = Track.from_video(playlist_id, make_video(remote_id), position)
        return track.model_copy(update=changes) if changes else track

    return _make_track
