"""Local state store contract and in-memory implementation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Protocol

from ytmm.exceptions import PlaylistNotFoundError
from ytmm.models.track import Playlist, Track

logger = logging.getLogger(__name__)


class StateStore(Protocol):
    """Durable persistence of playlists and tracks.

    Each write call is atomic at the level of one record (or one batch for
    remove_tracks). Implementations are only called from the event loop
    thread. Reads return snapshots; callers write changed copies back.
    """

    async def get_playlist(self, playlist_id: str) -> Playlist | None: ...

    async def list_playlists(self) -> list[Playlist]: ...

    async def get_track(self, track_id: str) -> Track | None: ...

    async def list_tracks(self, playlist_id: str) -> list[Track]:
        """Tracks of a playlist ordered by position."""
        ...

    async def upsert_playlist(self, playlist: Playlist) -> None: ...

    async def upsert_track(self, track: Track) -> None:
        """Insert or replace a track.

        Raises:
            PlaylistNotFoundError: If the owning playlist does not exist.
        """
        ...

    async def remove_tracks(self, track_ids: Iterable[str]) -> int:
        """Remove tracks by ID. Returns the number removed."""
        ...

    async def remove_playlist(self, playlist_id: str) -> bool:
        """Remove a playlist and all of its tracks.

        Returns:
            True if the playlist existed.
        """
        ...


class MemoryStore:
    """In-process StateStore backed by dicts.

    Writes yield to the event loop once, like a real persistence call would.
    """

    def __init__(
        self,
        playlists: Iterable[Playlist] = (),
        tracks: Iterable[Track] = (),
    ) -> None:
        self._playlists: dict[str, Playlist] = {p.id: p for p in playlists}
        self._tracks: dict[str, Track] = {t.id: t for t in tracks}

    async def get_playlist(self, playlist_id: str) -> Playlist | None:
        return self._playlists.get(playlist_id)

    async def list_playlists(self) -> list[Playlist]:
        return sorted(self._playlists.values(), key=lambda p: p.date_added)

    async def get_track(self, track_id: str) -> Track | None:
        return self._tracks.get(track_id)

    async def list_tracks(self, playlist_id: str) -> list[Track]:
        return sorted(
            (t for t in self._tracks.values() if t.playlist_id == playlist_id),
            key=lambda t: t.position,
        )

    async def upsert_playlist(self, playlist: Playlist) -> None:
        await asyncio.sleep(0)
        self._playlists[playlist.id] = playlist

    async def upsert_track(self, track: Track) -> None:
        await asyncio.sleep(0)
        if track.playlist_id not in self._playlists:
            raise PlaylistNotFoundError(f"Playlist not found: {track.playlist_id}")
        self._tracks[track.id] = track

    async def remove_tracks(self, track_ids: Iterable[str]) -> int:
        await asyncio.sleep(0)
        removed = 0
        for track_id in track_ids:
            if self._tracks.pop(track_id, None) is not None:
                removed += 1
        return removed

    async def remove_playlist(self, playlist_id: str) -> bool:
        await asyncio.sleep(0)
        if self._playlists.pop(playlist_id, None) is None:
            return False
        owned = [t.id for t in self._tracks.values() if t.playlist_id == playlist_id]
        for track_id in owned:
            del self._tracks[track_id]
        logger.debug("Removed playlist %s with %d tracks", playlist_id, len(owned))
        return True
