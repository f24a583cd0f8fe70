"""Sync reconciliation between a remote playlist and its local tracks."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime

from ytmm.exceptions import PlaylistNotFoundError
from ytmm.models.enums import SyncStatus
from ytmm.models.results import SyncPreview
from ytmm.models.track import Track, VideoInfo, completed_size
from ytmm.services.gateway import MetadataGateway
from ytmm.services.transport import Transport
from ytmm.store import StateStore

logger = logging.getLogger(__name__)


def compute_diff(
    playlist_id: str,
    remote: Sequence[VideoInfo],
    local: Sequence[Track],
) -> SyncPreview:
    """Diff a remote video list against stored tracks, keyed by remote ID.

    New videos are appended after the existing tracks in remote order;
    existing positions are never renumbered. Tracks present on both sides
    are left exactly as stored.

    Args:
        playlist_id: Playlist both sides belong to.
        remote: Remote videos in playlist order.
        local: Tracks currently stored for the playlist.

    Returns:
        Preview with pending tracks to add and stored tracks to remove.
    """
    local_ids = {t.remote_id for t in local}
    remote_ids = {v.remote_id for v in remote}

    to_add: list[Track] = []
    seen: set[str] = set()
    for video in remote:
        if video.remote_id in local_ids or video.remote_id in seen:
            continue
        seen.add(video.remote_id)
        to_add.append(Track.from_video(playlist_id, video, len(local) + len(to_add)))

    to_remove = [t for t in local if t.remote_id not in remote_ids]

    return SyncPreview(tracks_to_add=to_add, tracks_to_remove=to_remove)


class SyncReconciler:
    """Keeps a stored playlist's track list in step with the remote one.

    Remote metadata is always fetched before anything is written, so a
    failed fetch leaves the store and the playlist's sync_status untouched.
    """

    def __init__(
        self,
        store: StateStore,
        gateway: MetadataGateway,
        transport: Transport,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._transport = transport

    async def preview(self, playlist_id: str) -> SyncPreview:
        """Compute the diff without writing anything."""
        return await self.sync(playlist_id, dry_run=True)

    async def commit(self, playlist_id: str) -> SyncPreview:
        """Compute and apply the diff."""
        return await self.sync(playlist_id, dry_run=False)

    async def sync(self, playlist_id: str, *, dry_run: bool = False) -> SyncPreview:
        """Reconcile one playlist.

        Args:
            playlist_id: Playlist to reconcile.
            dry_run: If True, return the diff and leave the store unchanged.

        Returns:
            The diff that was (or would be) applied.

        Raises:
            PlaylistNotFoundError: If the playlist is not stored locally.
            MetadataFetchError: If the remote lookup fails. Nothing is written.
            FilesystemError: If deleting a removed track's file fails. Removals
                already applied are kept and the rest are not attempted.
        """
        playlist = await self._store.get_playlist(playlist_id)
        if playlist is None:
            raise PlaylistNotFoundError(f"Playlist not found: {playlist_id}")

        remote = await self._gateway.fetch_playlist_videos(playlist_id)
        local = await self._store.list_tracks(playlist_id)
        diff = compute_diff(playlist_id, remote, local)

        logger.info(
            "Sync %s for %s: %d to add, %d to remove",
            "preview" if dry_run else "commit",
            playlist_id,
            len(diff.tracks_to_add),
            len(diff.tracks_to_remove),
            extra={"event_type": "sync", "playlist_id": playlist_id},
        )
        if dry_run:
            return diff

        await self._store.upsert_playlist(playlist.with_status(SyncStatus.SYNCING))

        for track in diff.tracks_to_remove:
            if track.local_path is not None:
                await self._transport.delete_file(track.local_path)
            await self._store.remove_tracks([track.id])

        for track in diff.tracks_to_add:
            await self._store.upsert_track(track)

        tracks = await self._store.list_tracks(playlist_id)
        current = await self._store.get_playlist(playlist_id) or playlist
        await self._store.upsert_playlist(
            current.with_changes(
                track_count=len(remote),
                total_size=completed_size(tracks),
                last_synced_at=datetime.now(UTC),
                sync_status=SyncStatus.COMPLETED,
            )
        )
        return diff
