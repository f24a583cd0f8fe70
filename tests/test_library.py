"""Tests for playlist library management."""

from collections.abc import Callable
from pathlib import Path

import pytest
from conftest import PLAYLIST_ID, FakeGateway, FakeTransport

from ytmm.exceptions import (
    MetadataFetchError,
    PlaylistExistsError,
    PlaylistNotFoundError,
    ValidationError,
)
from ytmm.models import DownloadStatus, Playlist, SyncStatus, Track, VideoInfo
from ytmm.services import PlaylistLibrary
from ytmm.store import MemoryStore

PLAYLIST_URL = f"https://www.youtube.com/playlist?list={PLAYLIST_ID}"


class TestAddPlaylist:
    """Tests for add_playlist."""

    @pytest.mark.asyncio
    async def test_adds_playlist_and_tracks(
        self,
        library: PlaylistLibrary,
        gateway: FakeGateway,
        store: MemoryStore,
        make_video: Callable[..., VideoInfo],
    ) -> None:
        gateway.set_playlist(PLAYLIST_ID, [make_video(r) for r in "ABC"])

        playlist = await library.add_playlist(PLAYLIST_URL)

        assert playlist.id == PLAYLIST_ID
        assert playlist.name == "Road Trip"
        assert playlist.track_count == 3
        assert playlist.sync_status == SyncStatus.IDLE
        tracks = await store.list_tracks(PLAYLIST_ID)
        assert [(t.remote_id, t.position) for t in tracks] == [
            ("A", 0),
            ("B", 1),
            ("C", 2),
        ]
        assert all(t.download_status == DownloadStatus.PENDING for t in tracks)

    @pytest.mark.asyncio
    async def test_accepts_bare_id(
        self,
        library: PlaylistLibrary,
        gateway: FakeGateway,
        make_video: Callable[..., VideoInfo],
    ) -> None:
        gateway.set_playlist(PLAYLIST_ID, [make_video("A")])
        playlist = await library.add_playlist(PLAYLIST_ID)
        assert playlist.id == PLAYLIST_ID

    @pytest.mark.asyncio
    async def test_rejects_malformed_input(
        self, library: PlaylistLibrary, gateway: FakeGateway
    ) -> None:
        with pytest.raises(ValidationError):
            await library.add_playlist("https://example.com/nothing")
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_rejects_duplicate(
        self,
        library: PlaylistLibrary,
        gateway: FakeGateway,
        make_video: Callable[..., VideoInfo],
    ) -> None:
        gateway.set_playlist(PLAYLIST_ID, [make_video("A")])
        await library.add_playlist(PLAYLIST_ID)

        with pytest.raises(PlaylistExistsError) as exc_info:
            await library.add_playlist(PLAYLIST_URL)
        assert isinstance(exc_info.value, ValidationError)

    @pytest.mark.asyncio
    async def test_fetch_failure_stores_nothing(
        self, library: PlaylistLibrary, gateway: FakeGateway, store: MemoryStore
    ) -> None:
        gateway.fail = True

        with pytest.raises(MetadataFetchError):
            await library.add_playlist(PLAYLIST_ID)

        assert await store.list_playlists() == []

    @pytest.mark.asyncio
    async def test_duplicate_videos_collapse(
        self,
        library: PlaylistLibrary,
        gateway: FakeGateway,
        store: MemoryStore,
        make_video: Callable[..., VideoInfo],
    ) -> None:
        gateway.set_playlist(PLAYLIST_ID, [make_video(r) for r in "ABA"])

        playlist = await library.add_playlist(PLAYLIST_ID)

        assert playlist.track_count == 2
        tracks = await store.list_tracks(PLAYLIST_ID)
        assert [(t.remote_id, t.position) for t in tracks] == [("A", 0), ("B", 1)]


class TestRemovePlaylist:
    """Tests for remove_playlist."""

    @pytest.fixture
    def stored(
        self,
        store: MemoryStore,
        make_playlist: Callable[..., Playlist],
        make_track: Callable[..., Track],
        tmp_path: Path,
    ) -> Path:
        """A playlist with one downloaded and one pending track."""
        audio = tmp_path / "A.mp3"
        audio.write_bytes(b"audio")
        store._playlists[PLAYLIST_ID] = make_playlist()
        done = make_track("A", 0).started().completed(audio, 5)
        pending = make_track("B", 1)
        store._tracks[done.id] = done
        store._tracks[pending.id] = pending
        return audio

    @pytest.mark.asyncio
    async def test_keeps_files_by_default(
        self,
        library: PlaylistLibrary,
        store: MemoryStore,
        transport: FakeTransport,
        stored: Path,
    ) -> None:
        await library.remove_playlist(PLAYLIST_ID)

        assert await store.get_playlist(PLAYLIST_ID) is None
        assert await store.list_tracks(PLAYLIST_ID) == []
        assert stored.exists()
        assert transport.deleted == []

    @pytest.mark.asyncio
    async def test_deletes_files(
        self,
        library: PlaylistLibrary,
        transport: FakeTransport,
        stored: Path,
    ) -> None:
        await library.remove_playlist(PLAYLIST_ID, delete_files=True)

        assert transport.deleted == [stored]
        assert not stored.exists()

    @pytest.mark.asyncio
    async def test_unknown_playlist(self, library: PlaylistLibrary) -> None:
        with pytest.raises(PlaylistNotFoundError):
            await library.remove_playlist("PLunknown0000")


class TestPlaylistSize:
    """Tests for playlist_size."""

    @pytest.mark.asyncio
    async def test_recomputes_total(
        self,
        library: PlaylistLibrary,
        store: MemoryStore,
        make_playlist: Callable[..., Playlist],
        make_track: Callable[..., Track],
        tmp_path: Path,
    ) -> None:
        store._playlists[PLAYLIST_ID] = make_playlist(total_size=999)
        for i, (remote_id, size) in enumerate((("A", 1_048_576), ("B", 2_097_152))):
            track = make_track(remote_id, i).started().completed(
                tmp_path / f"{remote_id}.mp3", size
            )
            store._tracks[track.id] = track
        pending = make_track("C", 2)
        store._tracks[pending.id] = pending

        assert await library.playlist_size(PLAYLIST_ID) == 3_145_728
        playlist = await store.get_playlist(PLAYLIST_ID)
        assert playlist is not None
        assert playlist.total_size == 3_145_728

    @pytest.mark.asyncio
    async def test_list_tracks_unknown_playlist(self, library: PlaylistLibrary) -> None:
        with pytest.raises(PlaylistNotFoundError):
            await library.list_tracks("PLunknown0000")
