"""Background scheduler for periodic playlist syncing."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta

from ytmm.services.orchestrator import DownloadOrchestrator
from ytmm.services.reconciler import SyncReconciler
from ytmm.store import StateStore

logger = logging.getLogger(__name__)

SYNC_INTERVAL_HOURS = (1, 3, 6, 12, 24)


class AutoSyncScheduler:
    """Background task that syncs and downloads every playlist periodically.

    Each cycle commits a sync for each stored playlist and then downloads
    its pending tracks. A failing playlist is logged and the cycle moves on
    to the next one.
    """

    def __init__(
        self,
        store: StateStore,
        reconciler: SyncReconciler,
        orchestrator: DownloadOrchestrator,
        interval_hours: int = 24,
    ) -> None:
        """Initialize scheduler.

        Raises:
            ValueError: If interval_hours is not one of SYNC_INTERVAL_HOURS.
        """
        if interval_hours not in SYNC_INTERVAL_HOURS:
            raise ValueError(
                f"interval_hours must be one of {SYNC_INTERVAL_HOURS}, "
                f"got {interval_hours}"
            )
        self._store = store
        self._reconciler = reconciler
        self._orchestrator = orchestrator
        self._interval = timedelta(hours=interval_hours)
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._next_run_at: datetime | None = None

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._task is not None and not self._task.done()

    @property
    def next_run_at(self) -> datetime | None:
        """Get next scheduled run time."""
        return self._next_run_at

    def start(self) -> None:
        """Start the scheduler background task."""
        if self._task is not None:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Auto-sync started (every %s)", self._interval)

    async def stop(self) -> None:
        """Stop the scheduler background task."""
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self._next_run_at = None
        logger.info("Auto-sync stopped")

    async def _run_loop(self) -> None:
        """Main scheduler loop."""
        while not self._stop_event.is_set():
            self._next_run_at = datetime.now(UTC) + self._interval

            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self._interval.total_seconds(),
                )
                break  # Stop event was set
            except TimeoutError:
                pass  # Timeout expired, time to sync

            await self.run_once()

    async def run_once(self) -> list[str]:
        """Sync and download every stored playlist once.

        Returns:
            IDs of the playlists that were processed without error.
        """
        succeeded: list[str] = []
        for playlist in await self._store.list_playlists():
            try:
                await self._reconciler.commit(playlist.id)
                await self._orchestrator.download_playlist(playlist.id)
            except Exception:
                logger.exception(
                    "Auto-sync failed for playlist %s",
                    playlist.name,
                    extra={"event_type": "auto_sync", "playlist_id": playlist.id},
                )
                continue
            succeeded.append(playlist.id)
        logger.info("Auto-sync cycle done: %d playlists", len(succeeded))
        return succeeded
