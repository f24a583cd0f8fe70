"""Tests for the progress event bus."""

import pytest

from ytmm.models import DownloadProgress, DownloadStatus
from ytmm.services import ProgressEventBus


def event(n: int) -> DownloadProgress:
    return DownloadProgress(
        track_id=f"PL1-v{n}",
        playlist_id="PL1",
        status=DownloadStatus.DOWNLOADING,
        bytes_written=n,
    )


class TestProgressEventBus:
    """Tests for subscribe/publish."""

    @pytest.mark.asyncio
    async def test_fans_out_to_all_subscribers(self) -> None:
        bus = ProgressEventBus()

        async with bus.subscribe() as first, bus.subscribe() as second:
            assert bus.subscriber_count == 2
            bus.publish(event(1))

            assert (await first.get()).bytes_written == 1
            assert (await second.get()).bytes_written == 1

        assert bus.subscriber_count == 0

    def test_publish_without_subscribers(self) -> None:
        ProgressEventBus().publish(event(1))

    @pytest.mark.asyncio
    async def test_late_subscriber_misses_earlier_events(self) -> None:
        bus = ProgressEventBus()
        bus.publish(event(1))

        async with bus.subscribe() as queue:
            assert queue.empty()

    @pytest.mark.asyncio
    async def test_full_queue_drops_oldest(self) -> None:
        bus = ProgressEventBus()

        async with bus.subscribe() as queue:
            for n in range(bus.SUBSCRIBER_QUEUE_SIZE + 2):
                bus.publish(event(n))

            assert queue.qsize() == bus.SUBSCRIBER_QUEUE_SIZE
            assert queue.get_nowait().bytes_written == 2

    @pytest.mark.asyncio
    async def test_unsubscribes_on_error(self) -> None:
        bus = ProgressEventBus()

        with pytest.raises(RuntimeError):
            async with bus.subscribe():
                raise RuntimeError("consumer failed")

        assert bus.subscriber_count == 0
