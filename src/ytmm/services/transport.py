"""Byte transport from resolved audio URLs to local files."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from ytmm.config import APIConfig, AudioQuality
from ytmm.exceptions import DownloadCancelledError, FilesystemError, TransportError
from ytmm.models.backend import DownloadInfo

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], Awaitable[None]]
"""Awaited with (bytes_written, bytes_expected); bytes_expected is 0 if unknown."""

PART_SUFFIX = ".part"


class UrlResolver(Protocol):
    """Protocol for resolving a remote video to a downloadable audio URL."""

    async def resolve(self, remote_id: str, quality: AudioQuality) -> str: ...


class Transport(Protocol):
    """Protocol for moving bytes from a URL to a local file.

    Transfers are addressed by the caller-chosen transfer_id. pause, resume
    and cancel are idempotent and do nothing when no transfer is active.
    """

    async def download(
        self,
        transfer_id: str,
        url: str,
        destination: Path,
        on_progress: ProgressCallback | None = None,
    ) -> Path:
        """Download url to destination and return the final file path.

        Raises:
            DownloadCancelledError: If the transfer was cancelled.
            TransportError: On network or disk failure.
        """
        ...

    def pause(self, transfer_id: str) -> None: ...

    def resume(self, transfer_id: str) -> None: ...

    def cancel(self, transfer_id: str) -> None: ...

    async def delete_file(self, path: Path) -> None:
        """Delete a local file. Missing files are ignored.

        Raises:
            FilesystemError: If the file exists but cannot be removed.
        """
        ...


class BackendUrlResolver:
    """Resolve audio URLs through the companion backend's download-info endpoint."""

    ENDPOINT = "/api/download-info"

    def __init__(
        self,
        config: APIConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or APIConfig()
        self._client = client or httpx.AsyncClient(
            base_url=self._config.backend_url,
            timeout=self._config.timeout,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def resolve(self, remote_id: str, quality: AudioQuality) -> str:
        """Return a direct audio URL for remote_id.

        Raises:
            TransportError: If the backend cannot resolve the video.
        """
        headers: dict[str, str] = {}
        if self._config.access_token:
            headers["Authorization"] = f"Bearer {self._config.access_token}"

        try:
            response = await self._client.get(
                self.ENDPOINT,
                params={"videoId": remote_id, "quality": str(int(quality))},
                headers=headers,
            )
            response.raise_for_status()
            info = DownloadInfo.model_validate(response.json())
        except httpx.HTTPError as e:
            raise TransportError(
                f"Failed to resolve audio URL for {remote_id}: {e}"
            ) from e
        except (ValueError, PydanticValidationError) as e:
            raise TransportError(
                f"Malformed download info for {remote_id}: {e}"
            ) from e

        if not info.download_url:
            raise TransportError(f"No audio URL available for {remote_id}")
        return info.download_url


class _Transfer:
    """Control state of one in-flight transfer."""

    __slots__ = ("cancelled", "running")

    def __init__(self) -> None:
        self.cancelled = False
        self.running = asyncio.Event()
        self.running.set()


class HttpTransport:
    """Streaming HTTP transport.

    Bytes are written to ``<destination>.part`` and renamed into place once
    the stream ends, so a final path only ever holds a complete file. Pause
    and cancel are cooperative: they take effect between chunks.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        chunk_size: int = 64 * 1024,
        timeout: float = 30.0,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            timeout=timeout, follow_redirects=True
        )
        self._chunk_size = chunk_size
        self._transfers: dict[str, _Transfer] = {}

    async def close(self) -> None:
        await self._client.aclose()

    def is_active(self, transfer_id: str) -> bool:
        return transfer_id in self._transfers

    def pause(self, transfer_id: str) -> None:
        if transfer := self._transfers.get(transfer_id):
            transfer.running.clear()
            logger.debug("Paused transfer %s", transfer_id)

    def resume(self, transfer_id: str) -> None:
        if transfer := self._transfers.get(transfer_id):
            transfer.running.set()
            logger.debug("Resumed transfer %s", transfer_id)

    def cancel(self, transfer_id: str) -> None:
        if transfer := self._transfers.get(transfer_id):
            transfer.cancelled = True
            # Wake a paused stream loop so it can observe the cancellation
            transfer.running.set()
            logger.debug("Cancelled transfer %s", transfer_id)

    async def download(
        self,
        transfer_id: str,
        url: str,
        destination: Path,
        on_progress: ProgressCallback | None = None,
    ) -> Path:
        if transfer_id in self._transfers:
            raise TransportError(f"Transfer already active: {transfer_id}")

        transfer = _Transfer()
        self._transfers[transfer_id] = transfer
        part = destination.with_name(destination.name + PART_SUFFIX)

        try:
            await self._stream(transfer, url, part, on_progress)
            await asyncio.to_thread(part.replace, destination)
        except DownloadCancelledError:
            await asyncio.to_thread(_discard, part)
            raise
        except httpx.HTTPError as e:
            await asyncio.to_thread(_discard, part)
            raise TransportError(f"Download failed: {e}") from e
        except OSError as e:
            await asyncio.to_thread(_discard, part)
            raise TransportError(f"Failed to write {destination}: {e}") from e
        finally:
            self._transfers.pop(transfer_id, None)

        logger.debug("Downloaded %s to %s", transfer_id, destination)
        return destination

    async def _stream(
        self,
        transfer: _Transfer,
        url: str,
        part: Path,
        on_progress: ProgressCallback | None,
    ) -> None:
        await asyncio.to_thread(part.parent.mkdir, parents=True, exist_ok=True)

        async with self._client.stream("GET", url) as response:
            response.raise_for_status()
            expected = int(response.headers.get("content-length") or 0)
            written = 0

            # File I/O stays off the event loop
            f = await asyncio.to_thread(part.open, "wb")
            try:
                async for chunk in response.aiter_bytes(self._chunk_size):
                    await transfer.running.wait()
                    if transfer.cancelled:
                        raise DownloadCancelledError("Download cancelled")
                    await asyncio.to_thread(f.write, chunk)
                    written += len(chunk)
                    if on_progress:
                        await on_progress(written, expected)
            finally:
                await asyncio.to_thread(f.close)

            if transfer.cancelled:
                raise DownloadCancelledError("Download cancelled")

    async def delete_file(self, path: Path) -> None:
        await asyncio.to_thread(_delete, path)


def _discard(part: Path) -> None:
    with contextlib.suppress(OSError):
        part.unlink(missing_ok=True)


def _delete(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        raise FilesystemError(f"Failed to delete {path}: {e}") from e
    logger.debug("Deleted %s", path)
