"""Tests for the HTTP transport and URL resolver."""

import asyncio
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from ytmm.config import APIConfig, AudioQuality
from ytmm.exceptions import DownloadCancelledError, FilesystemError, TransportError
from ytmm.services.transport import BackendUrlResolver, HttpTransport

AUDIO_URL = "https://cdn.test/audio.mp3"
BODY = b"abcdefghij"

Handler = Callable[[httpx.Request], httpx.Response]


def make_transport(handler: Handler, chunk_size: int = 4) -> HttpTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpTransport(client=client, chunk_size=chunk_size)


def serve(body: bytes = BODY, status: int = 200) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, content=body)

    return handler


def serve_stream(chunks: list[bytes]) -> Handler:
    """Serve chunks one at a time without a content-length header."""

    async def body() -> AsyncIterator[bytes]:
        for chunk in chunks:
            await asyncio.sleep(0)
            yield chunk

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body())

    return handler


class TestDownload:
    """Tests for HttpTransport.download."""

    @pytest.mark.asyncio
    async def test_writes_file_and_reports_progress(self, tmp_path: Path) -> None:
        transport = make_transport(serve())
        destination = tmp_path / "music" / "track.mp3"
        progress: list[tuple[int, int]] = []

        async def on_progress(written: int, expected: int) -> None:
            progress.append((written, expected))

        result = await transport.download("t1", AUDIO_URL, destination, on_progress)

        assert result == destination
        assert destination.read_bytes() == BODY
        assert progress == [(4, 10), (8, 10), (10, 10)]
        assert list(destination.parent.iterdir()) == [destination]
        assert not transport.is_active("t1")

    @pytest.mark.asyncio
    async def test_unknown_length(self, tmp_path: Path) -> None:
        transport = make_transport(serve_stream([b"abc", b"def"]), chunk_size=3)
        progress: list[tuple[int, int]] = []

        async def on_progress(written: int, expected: int) -> None:
            progress.append((written, expected))

        await transport.download("t1", AUDIO_URL, tmp_path / "a.mp3", on_progress)

        assert progress == [(3, 0), (6, 0)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [403, 404, 500])
    async def test_http_error(self, tmp_path: Path, status: int) -> None:
        transport = make_transport(serve(status=status))
        destination = tmp_path / "track.mp3"

        with pytest.raises(TransportError):
            await transport.download("t1", AUDIO_URL, destination)

        assert list(tmp_path.iterdir()) == []
        assert not transport.is_active("t1")

    @pytest.mark.asyncio
    async def test_network_error(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        transport = make_transport(handler)

        with pytest.raises(TransportError):
            await transport.download("t1", AUDIO_URL, tmp_path / "track.mp3")

    @pytest.mark.asyncio
    async def test_cancel_discards_partial_file(self, tmp_path: Path) -> None:
        transport = make_transport(serve())
        destination = tmp_path / "track.mp3"

        async def on_progress(written: int, expected: int) -> None:
            transport.cancel("t1")

        with pytest.raises(DownloadCancelledError):
            await transport.download("t1", AUDIO_URL, destination, on_progress)

        assert list(tmp_path.iterdir()) == []
        assert not transport.is_active("t1")

    @pytest.mark.asyncio
    async def test_pause_and_resume(self, tmp_path: Path) -> None:
        transport = make_transport(serve())
        destination = tmp_path / "track.mp3"
        first_chunk = asyncio.Event()

        async def on_progress(written: int, expected: int) -> None:
            if written == 4:
                transport.pause("t1")
                first_chunk.set()

        task = asyncio.create_task(
            transport.download("t1", AUDIO_URL, destination, on_progress)
        )
        await first_chunk.wait()
        for _ in range(5):
            await asyncio.sleep(0)

        assert not task.done()
        assert not destination.exists()

        transport.resume("t1")
        assert await task == destination
        assert destination.read_bytes() == BODY

    @pytest.mark.asyncio
    async def test_cancel_while_paused(self, tmp_path: Path) -> None:
        transport = make_transport(serve())
        paused = asyncio.Event()

        async def on_progress(written: int, expected: int) -> None:
            transport.pause("t1")
            paused.set()

        task = asyncio.create_task(
            transport.download("t1", AUDIO_URL, tmp_path / "a.mp3", on_progress)
        )
        await paused.wait()
        transport.cancel("t1")

        with pytest.raises(DownloadCancelledError):
            await task
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_duplicate_transfer_id(self, tmp_path: Path) -> None:
        transport = make_transport(serve())
        paused = asyncio.Event()

        async def on_progress(written: int, expected: int) -> None:
            if not paused.is_set():
                transport.pause("t1")
                paused.set()

        task = asyncio.create_task(
            transport.download("t1", AUDIO_URL, tmp_path / "a.mp3", on_progress)
        )
        await paused.wait()

        with pytest.raises(TransportError, match="already active"):
            await transport.download("t1", AUDIO_URL, tmp_path / "b.mp3")

        transport.resume("t1")
        await task
        assert (tmp_path / "a.mp3").exists()

    @pytest.mark.asyncio
    async def test_file_io_runs_in_worker_threads(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        offloaded: list[str] = []
        to_thread = asyncio.to_thread

        async def recording_to_thread(
            func: Callable[..., Any], /, *args: Any, **kwargs: Any
        ) -> Any:
            offloaded.append(func.__name__)
            return await to_thread(func, *args, **kwargs)

        monkeypatch.setattr(asyncio, "to_thread", recording_to_thread)
        transport = make_transport(serve())

        await transport.download("t1", AUDIO_URL, tmp_path / "track.mp3")

        assert offloaded.count("write") == 3
        assert {"mkdir", "open", "close", "replace"} <= set(offloaded)

    def test_controls_ignore_unknown_transfer(self) -> None:
        transport = make_transport(serve())

        transport.pause("missing")
        transport.resume("missing")
        transport.cancel("missing")

        assert not transport.is_active("missing")


class TestDeleteFile:
    """Tests for HttpTransport.delete_file."""

    @pytest.mark.asyncio
    async def test_deletes_file(self, tmp_path: Path) -> None:
        path = tmp_path / "track.mp3"
        path.write_bytes(b"audio")

        await make_transport(serve()).delete_file(path)

        assert not path.exists()

    @pytest.mark.asyncio
    async def test_missing_file_is_ignored(self, tmp_path: Path) -> None:
        await make_transport(serve()).delete_file(tmp_path / "missing.mp3")

    @pytest.mark.asyncio
    async def test_undeletable_path(self, tmp_path: Path) -> None:
        directory = tmp_path / "not-a-file"
        directory.mkdir()

        with pytest.raises(FilesystemError):
            await make_transport(serve()).delete_file(directory)


class TestBackendUrlResolver:
    """Tests for BackendUrlResolver."""

    @staticmethod
    def make_resolver(
        handler: Handler, token: str | None = None
    ) -> BackendUrlResolver:
        client = httpx.AsyncClient(
            base_url="https://backend.test", transport=httpx.MockTransport(handler)
        )
        config = APIConfig(backend_url="https://backend.test", access_token=token)
        return BackendUrlResolver(config, client)

    @pytest.mark.asyncio
    async def test_resolves_url(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"downloadUrl": AUDIO_URL})

        resolver = self.make_resolver(handler, token="secret")
        url = await resolver.resolve("v1", AudioQuality.HIGH)

        assert url == AUDIO_URL
        assert requests[0].url.path == "/api/download-info"
        assert requests[0].url.params["videoId"] == "v1"
        assert requests[0].url.params["quality"] == "256"
        assert requests[0].headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500),
            httpx.Response(200, json={"error": "unavailable"}),
            httpx.Response(200, json={"downloadUrl": ""}),
            httpx.Response(200, content=b"not json"),
        ],
    )
    async def test_failures(self, response: httpx.Response) -> None:
        resolver = self.make_resolver(lambda request: response)

        with pytest.raises(TransportError):
            await resolver.resolve("v1", AudioQuality.STANDARD)
