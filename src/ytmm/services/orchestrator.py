"""Download orchestration for single tracks and whole playlists.

Track state machine:

    pending -> downloading -> completed | error
    error -> downloading            (retry by calling download_track again)
    downloading -> pending          (cancel_download)

All state lives in the StateStore. Each transition writes one track record
and publishes a DownloadProgress event.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from ytmm.config import DownloadConfig
from ytmm.exceptions import (
    DownloadCancelledError,
    ManifestWriteError,
    PlaylistNotFoundError,
    TransportError,
    ValidationError,
)
from ytmm.models.enums import SyncStatus
from ytmm.models.progress import DownloadProgress
from ytmm.models.results import PlaylistDownloadResult
from ytmm.models.track import Playlist, Track, completed_size
from ytmm.services.events import ProgressEventBus
from ytmm.services.transport import Transport, UrlResolver
from ytmm.store import StateStore
from ytmm.utils.filename import build_track_path
from ytmm.utils.manifest import write_manifest

logger = logging.getLogger(__name__)

ProgressObserver = Callable[[DownloadProgress], None]


class _ActiveDownload:
    """Registry entry for one in-flight track download."""

    __slots__ = ("cancelled", "committed")

    def __init__(self) -> None:
        self.cancelled = False
        # Set once the transfer has finished and its outcome is being recorded
        self.committed = False


class DownloadOrchestrator:
    """Drives track downloads through a transport and records their state.

    At most one download per track ID is in flight at a time. The registry
    check and insert in download_track happen with no await in between, so
    two concurrent calls for the same track cannot both start a transfer.
    """

    def __init__(
        self,
        store: StateStore,
        transport: Transport,
        resolver: UrlResolver,
        config: DownloadConfig,
        events: ProgressEventBus | None = None,
    ) -> None:
        self._store = store
        self._transport = transport
        self._resolver = resolver
        self._config = config
        self._events = events or ProgressEventBus()
        self._active: dict[str, _ActiveDownload] = {}

    @property
    def events(self) -> ProgressEventBus:
        return self._events

    @property
    def active_downloads(self) -> frozenset[str]:
        """IDs of tracks with a transfer in flight."""
        return frozenset(self._active)

    def is_downloading(self, track_id: str) -> bool:
        return track_id in self._active

    # -- single track --------------------------------------------------------

    async def download_track(
        self, track: Track, on_progress: ProgressObserver | None = None
    ) -> Path | None:
        """Download one track and record the outcome.

        Args:
            track: Track to download. Its current status is ignored, so a
                track in error is retried.
            on_progress: Optional observer called with every progress event
                of this download, in addition to the event bus.

        Returns:
            Local path of the downloaded file, or None if a download of this
            track was already in flight (the call does nothing).

        Raises:
            DownloadCancelledError: If cancel_download aborted the transfer.
                The track is left pending.
            TransportError: On network or disk failure. The track is left in
                error.
            ValidationError: If the transfer produced an empty file. The
                track is left in error.
        """
        if track.id in self._active:
            logger.debug("Download already in flight for %s", track.id)
            return None
        handle = _ActiveDownload()
        self._active[track.id] = handle

        try:
            return await self._download(track, handle, on_progress)
        finally:
            if self._active.get(track.id) is handle:
                del self._active[track.id]

    async def _download(
        self,
        track: Track,
        handle: _ActiveDownload,
        on_progress: ProgressObserver | None,
    ) -> Path:
        playlist = await self._get_playlist(track.playlist_id)
        destination = build_track_path(
            self._config.base_path,
            playlist.name,
            track.artist,
            track.title,
            self._config.extension,
            remote_id=track.remote_id,
            ascii_filenames=self._config.ascii_filenames,
        )

        current = track.started()
        await self._save(current, on_progress)
        logger.info(
            "Downloading %s",
            track.display_name,
            extra={"event_type": "download_started", "track_id": track.id},
        )

        async def relay(written: int, expected: int) -> None:
            nonlocal current
            if handle.cancelled:
                return
            current = current.progressed(written, expected)
            await self._save(current, on_progress, written, expected)

        try:
            url = await self._resolver.resolve(track.remote_id, self._config.quality)
            if handle.cancelled:
                raise DownloadCancelledError("Download cancelled")
            path = await self._transport.download(track.id, url, destination, relay)
            if handle.cancelled:
                # Cancelled after the last chunk; discard the finished file
                await self._transport.delete_file(path)
                raise DownloadCancelledError("Download cancelled")
            # No await since the check above, so a cancel cannot slip in between
            handle.committed = True
            size = _file_size(path)
            if size <= 0:
                await self._transport.delete_file(path)
                raise ValidationError(f"Download produced an empty file: {path}")
        except DownloadCancelledError:
            await self._save(track.reset(), on_progress)
            logger.info(
                "Download cancelled: %s",
                track.display_name,
                extra={"event_type": "download_cancelled", "track_id": track.id},
            )
            raise
        except Exception as e:
            await self._save(current.failed(), on_progress)
            logger.warning(
                "Download failed for %s: %s",
                track.display_name,
                e,
                extra={"event_type": "download_failed", "track_id": track.id},
            )
            raise

        await self._save(current.completed(path, size), on_progress, size, size)
        logger.info(
            "Downloaded %s (%d bytes)",
            track.display_name,
            size,
            extra={"event_type": "download_completed", "track_id": track.id},
        )
        return path

    async def cancel_download(self, track_id: str) -> bool:
        """Abort an in-flight download and reset the track to pending.

        Returns:
            True if a download was in flight, False if there was nothing to
            cancel or the transfer had already finished and is being
            recorded.
        """
        handle = self._active.get(track_id)
        if handle is None or handle.cancelled or handle.committed:
            return False
        handle.cancelled = True
        self._transport.cancel(track_id)

        track = await self._store.get_track(track_id)
        if track is not None:
            await self._save(track.reset())
        logger.info("Cancelled download %s", track_id)
        return True

    def pause_download(self, track_id: str) -> bool:
        """Pause an in-flight transfer between chunks. Returns False if idle."""
        if track_id not in self._active:
            return False
        self._transport.pause(track_id)
        return True

    def resume_download(self, track_id: str) -> bool:
        """Resume a paused transfer. Returns False if idle."""
        if track_id not in self._active:
            return False
        self._transport.resume(track_id)
        return True

    # -- playlist ------------------------------------------------------------

    async def download_playlist(
        self, playlist_id: str, on_progress: ProgressObserver | None = None
    ) -> PlaylistDownloadResult:
        """Download every track of a playlist that is not yet completed.

        Tracks are drained from a shared queue by a bounded pool of workers.
        A failing track is recorded and skipped; it never stops the other
        workers. Once the queue is drained the manifest is rewritten from
        the completed tracks and the playlist is marked completed.

        Raises:
            PlaylistNotFoundError: If the playlist is not stored locally.
            ManifestWriteError: If the manifest cannot be written. The
                playlist status and size are updated before this is raised.
        """
        playlist = await self._get_playlist(playlist_id)
        await self._store.upsert_playlist(playlist.with_status(SyncStatus.DOWNLOADING))

        tracks = await self._store.list_tracks(playlist_id)
        queue: asyncio.Queue[Track] = asyncio.Queue()
        for track in tracks:
            if not track.is_completed:
                queue.put_nowait(track)

        completed: list[str] = []
        failed: list[str] = []
        cancelled: list[str] = []

        async def worker() -> None:
            while True:
                try:
                    track = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    path = await self.download_track(track, on_progress)
                except DownloadCancelledError:
                    cancelled.append(track.id)
                except Exception:
                    failed.append(track.id)
                else:
                    if path is not None:
                        completed.append(track.id)

        worker_count = min(self._config.max_concurrent_downloads, queue.qsize())
        logger.info(
            "Downloading %d tracks of %s with %d workers",
            queue.qsize(),
            playlist.name,
            worker_count,
            extra={"event_type": "playlist_download", "playlist_id": playlist_id},
        )
        await asyncio.gather(*(worker() for _ in range(worker_count)))

        tracks = await self._store.list_tracks(playlist_id)
        total_size = completed_size(tracks)
        manifest_path: Path | None = None
        manifest_error: ManifestWriteError | None = None
        try:
            manifest_path = write_manifest(
                self._config.base_path,
                playlist,
                tracks,
                ascii_filenames=self._config.ascii_filenames,
            )
        except ManifestWriteError as e:
            logger.error(
                "Failed to write manifest for %s: %s",
                playlist.name,
                e,
                extra={"event_type": "manifest_failed", "playlist_id": playlist_id},
            )
            manifest_error = e

        current = await self._store.get_playlist(playlist_id) or playlist
        await self._store.upsert_playlist(
            current.with_changes(
                total_size=total_size, sync_status=SyncStatus.COMPLETED
            )
        )

        if manifest_error is not None:
            raise manifest_error

        logger.info(
            "Playlist %s done: %d completed, %d failed, %d cancelled",
            playlist.name,
            len(completed),
            len(failed),
            len(cancelled),
            extra={"event_type": "playlist_done", "playlist_id": playlist_id},
        )
        return PlaylistDownloadResult(
            playlist_id=playlist_id,
            completed=completed,
            failed=failed,
            cancelled=cancelled,
            manifest_path=manifest_path,
            total_size=total_size,
        )

    # -- helpers -------------------------------------------------------------

    async def _get_playlist(self, playlist_id: str) -> Playlist:
        playlist = await self._store.get_playlist(playlist_id)
        if playlist is None:
            raise PlaylistNotFoundError(f"Playlist not found: {playlist_id}")
        return playlist

    async def _save(
        self,
        track: Track,
        on_progress: ProgressObserver | None = None,
        bytes_written: int = 0,
        bytes_expected: int = 0,
    ) -> None:
        await self._store.upsert_track(track)
        event = DownloadProgress.for_track(track, bytes_written, bytes_expected)
        self._events.publish(event)
        if on_progress:
            on_progress(event)


def _file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError as e:
        raise TransportError(f"Downloaded file is missing: {path}") from e
