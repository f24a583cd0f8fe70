"""Event bus for download progress."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from ytmm.models.progress import DownloadProgress


class ProgressEventBus:
    """Fan-out of download progress events to async subscribers.

    publish() is only called from the event loop thread, so no locking is
    needed around the subscriber list.

    Backpressure is handled by drop-oldest: if a subscriber's queue is full,
    the oldest event is dropped to make room for the new one.

    Example:
        >>> async with bus.subscribe() as events:
        ...     event = await events.get()
    """

    SUBSCRIBER_QUEUE_SIZE = 256

    def __init__(self) -> None:
        self._subscribers: list[asyncio.Queue[DownloadProgress]] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[asyncio.Queue[DownloadProgress]]:
        """Subscribe to progress events via context manager."""
        queue: asyncio.Queue[DownloadProgress] = asyncio.Queue(
            maxsize=self.SUBSCRIBER_QUEUE_SIZE
        )
        self._subscribers.append(queue)
        try:
            yield queue
        finally:
            self._subscribers.remove(queue)

    def publish(self, event: DownloadProgress) -> None:
        """Deliver an event to every current subscriber."""
        for queue in list(self._subscribers):
            self._safe_put(queue, event)

    def _safe_put(
        self, queue: asyncio.Queue[DownloadProgress], event: DownloadProgress
    ) -> None:
        """Put event with drop-oldest backpressure."""
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            queue.get_nowait()  # Drop oldest
            queue.put_nowait(event)
