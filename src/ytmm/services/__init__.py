"""Services for ytmm."""

from ytmm.services.events import ProgressEventBus
from ytmm.services.gateway import (
    BackendMetadataGateway,
    MetadataGateway,
    YTMusicMetadataGateway,
)
from ytmm.services.library import PlaylistLibrary
from ytmm.services.orchestrator import DownloadOrchestrator, ProgressObserver
from ytmm.services.reconciler import SyncReconciler, compute_diff
from ytmm.services.scheduler import SYNC_INTERVAL_HOURS, AutoSyncScheduler
from ytmm.services.transport import (
    BackendUrlResolver,
    HttpTransport,
    ProgressCallback,
    Transport,
    UrlResolver,
)

__all__ = [
    "SYNC_INTERVAL_HOURS",
    "AutoSyncScheduler",
    "BackendMetadataGateway",
    "BackendUrlResolver",
    "DownloadOrchestrator",
    "HttpTransport",
    "MetadataGateway",
    "PlaylistLibrary",
    "ProgressCallback",
    "ProgressEventBus",
    "ProgressObserver",
    "SyncReconciler",
    "Transport",
    "UrlResolver",
    "YTMusicMetadataGateway",
    "compute_diff",
]
