"""Playlist library management: adding, removing and sizing playlists."""

from __future__ import annotations

import logging

from ytmm.exceptions import PlaylistExistsError, PlaylistNotFoundError
from ytmm.models.track import Playlist, Track, completed_size
from ytmm.services.gateway import MetadataGateway
from ytmm.services.transport import Transport
from ytmm.store import StateStore
from ytmm.utils.url import parse_playlist_id

logger = logging.getLogger(__name__)


class PlaylistLibrary:
    """The set of playlists tracked locally."""

    def __init__(
        self,
        store: StateStore,
        gateway: MetadataGateway,
        transport: Transport,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._transport = transport

    async def add_playlist(self, url_or_id: str) -> Playlist:
        """Start tracking a remote playlist.

        Fetches the playlist's metadata and videos and stores the playlist
        (idle) with one pending track per video, in remote order.

        Args:
            url_or_id: Playlist URL or bare playlist ID.

        Returns:
            The stored playlist.

        Raises:
            ValidationError: If url_or_id is not a playlist reference.
            PlaylistExistsError: If the playlist is already tracked.
            MetadataFetchError: If the remote lookup fails. Nothing is stored.
        """
        playlist_id = parse_playlist_id(url_or_id)
        if await self._store.get_playlist(playlist_id) is not None:
            raise PlaylistExistsError(f"Playlist already added: {playlist_id}")

        info = await self._gateway.fetch_playlist_info(playlist_id)
        videos = await self._gateway.fetch_playlist_videos(playlist_id)
        # A video listed twice maps to a single track
        unique = list({v.remote_id: v for v in videos}.values())

        playlist = Playlist.from_info(info, track_count=len(unique))
        await self._store.upsert_playlist(playlist)
        for position, video in enumerate(unique):
            await self._store.upsert_track(
                Track.from_video(playlist.id, video, position=position)
            )

        logger.info(
            "Added playlist %s (%d tracks)",
            playlist.name,
            len(unique),
            extra={"event_type": "playlist_added", "playlist_id": playlist.id},
        )
        return playlist

    async def get_playlist(self, playlist_id: str) -> Playlist:
        playlist = await self._store.get_playlist(playlist_id)
        if playlist is None:
            raise PlaylistNotFoundError(f"Playlist not found: {playlist_id}")
        return playlist

    async def list_playlists(self) -> list[Playlist]:
        return await self._store.list_playlists()

    async def list_tracks(self, playlist_id: str) -> list[Track]:
        await self.get_playlist(playlist_id)
        return await self._store.list_tracks(playlist_id)

    async def remove_playlist(
        self, playlist_id: str, *, delete_files: bool = False
    ) -> None:
        """Stop tracking a playlist and drop its tracks.

        Args:
            playlist_id: Playlist to remove.
            delete_files: Also delete the downloaded audio files.

        Raises:
            PlaylistNotFoundError: If the playlist is not tracked.
            FilesystemError: If a file cannot be deleted. The playlist is
                kept in that case.
        """
        playlist = await self.get_playlist(playlist_id)

        if delete_files:
            for track in await self._store.list_tracks(playlist_id):
                if track.local_path is not None:
                    await self._transport.delete_file(track.local_path)

        await self._store.remove_playlist(playlist_id)
        logger.info(
            "Removed playlist %s",
            playlist.name,
            extra={"event_type": "playlist_removed", "playlist_id": playlist_id},
        )

    async def playlist_size(self, playlist_id: str) -> int:
        """Recompute and store the total size of a playlist's completed tracks."""
        playlist = await self.get_playlist(playlist_id)
        size = completed_size(await self._store.list_tracks(playlist_id))
        if size != playlist.total_size:
            await self._store.upsert_playlist(playlist.with_changes(total_size=size))
        return size
