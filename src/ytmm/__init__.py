"""ytmm - Keep YouTube playlists synced to local audio files.

This library reconciles remote playlists against a local state store,
downloads pending tracks with a bounded pool of concurrent transfers and
writes an M3U manifest of every completed track.

Examples:
    Add a playlist and download it:
    ```python
    from pathlib import Path
    from ytmm import DownloadConfig, create_manager

    manager = create_manager(DownloadConfig(base_path=Path("./music")))
    playlist = await manager.library.add_playlist("PLxxxxxxxxxxxx")
    result = await manager.orchestrator.download_playlist(playlist.id)
    ```

    Preview what a sync would change:
    ```python
    preview = await manager.reconciler.preview(playlist.id)
    print(len(preview.tracks_to_add), len(preview.tracks_to_remove))
    ```
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from ytmm.config import APIConfig, AudioQuality, DownloadConfig
from ytmm.exceptions import (
    DownloadCancelledError,
    FilesystemError,
    ManifestWriteError,
    MetadataFetchError,
    PlaylistExistsError,
    PlaylistNotFoundError,
    TransportError,
    ValidationError,
    YTMMError,
)
from ytmm.models import (
    DownloadProgress,
    DownloadStatus,
    Playlist,
    PlaylistDownloadResult,
    PlaylistInfo,
    SyncPreview,
    SyncStatus,
    Track,
    VideoInfo,
)
from ytmm.services import (
    AutoSyncScheduler,
    BackendMetadataGateway,
    BackendUrlResolver,
    DownloadOrchestrator,
    HttpTransport,
    MetadataGateway,
    PlaylistLibrary,
    ProgressEventBus,
    SyncReconciler,
    Transport,
    UrlResolver,
    YTMusicMetadataGateway,
)
from ytmm.store import MemoryStore, StateStore


@dataclass
class Manager:
    """Wired set of services sharing one store, gateway and transport."""

    store: StateStore
    gateway: MetadataGateway
    transport: Transport
    resolver: UrlResolver
    events: ProgressEventBus
    library: PlaylistLibrary
    reconciler: SyncReconciler
    orchestrator: DownloadOrchestrator

    def create_scheduler(self, interval_hours: int = 24) -> AutoSyncScheduler:
        """Create a background auto-sync scheduler over this manager's services."""
        return AutoSyncScheduler(
            self.store, self.reconciler, self.orchestrator, interval_hours
        )

    async def close(self) -> None:
        """Close HTTP clients owned by the wired collaborators."""
        for resource in (self.gateway, self.transport, self.resolver):
            close = getattr(resource, "close", None)
            if close is not None:
                await close()


def create_manager(
    config: DownloadConfig,
    api_config: APIConfig | None = None,
    store: StateStore | None = None,
    *,
    metadata_source: Literal["backend", "ytmusic"] = "backend",
    cookies_path: Path | None = None,
    gateway: MetadataGateway | None = None,
    transport: Transport | None = None,
    resolver: UrlResolver | None = None,
) -> Manager:
    """Create a fully wired manager.

    This is the recommended way to use ytmm as a library. Collaborators
    that are not passed in are created from the configuration.

    Args:
        config: Download configuration.
        api_config: Companion backend configuration. Uses defaults if not
            provided.
        store: State store. Uses an in-memory store if not provided.
        metadata_source: "backend" for the companion backend, "ytmusic" to
            read YouTube Music directly.
        cookies_path: Optional cookies.txt for the ytmusic source.
        gateway: Optional metadata gateway (overrides metadata_source).
        transport: Optional transport.
        resolver: Optional audio URL resolver.

    Returns:
        A Manager whose services share one store, gateway and transport.
    """
    api_config = api_config or APIConfig()
    store = store if store is not None else MemoryStore()

    if gateway is None:
        if metadata_source == "ytmusic":
            gateway = YTMusicMetadataGateway(cookies_path=cookies_path)
        else:
            gateway = BackendMetadataGateway(api_config)
    transport = transport or HttpTransport(
        chunk_size=config.chunk_size, timeout=api_config.timeout
    )
    resolver = resolver or BackendUrlResolver(api_config)
    events = ProgressEventBus()

    return Manager(
        store=store,
        gateway=gateway,
        transport=transport,
        resolver=resolver,
        events=events,
        library=PlaylistLibrary(store, gateway, transport),
        reconciler=SyncReconciler(store, gateway, transport),
        orchestrator=DownloadOrchestrator(store, transport, resolver, config, events),
    )


__all__ = [
    "APIConfig",
    "AudioQuality",
    "AutoSyncScheduler",
    "DownloadCancelledError",
    "DownloadConfig",
    "DownloadOrchestrator",
    "DownloadProgress",
    "DownloadStatus",
    "FilesystemError",
    "Manager",
    "ManifestWriteError",
    "MemoryStore",
    "MetadataFetchError",
    "MetadataGateway",
    "Playlist",
    "PlaylistDownloadResult",
    "PlaylistExistsError",
    "PlaylistInfo",
    "PlaylistLibrary",
    "PlaylistNotFoundError",
    "ProgressEventBus",
    "StateStore",
    "SyncPreview",
    "SyncReconciler",
    "SyncStatus",
    "Track",
    "Transport",
    "TransportError",
    "ValidationError",
    "VideoInfo",
    "YTMMError",
    "create_manager",
]
