"""Custom exceptions for ytmm.

All exceptions include an HTTP status_code attribute for easy
integration with web frameworks.
"""


class YTMMError(Exception):
    """Base exception for ytmm.

    Attributes:
        status_code: HTTP status code for API error responses.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(YTMMError):
    """Input rejected before any work was done.

    Raised for malformed playlist identifiers, duplicate playlists and
    downloads that report success without producing any bytes.
    """

    status_code: int = 400  # Bad Request


class PlaylistExistsError(ValidationError):
    """Playlist is already in the local library."""

    status_code: int = 409  # Conflict


class PlaylistNotFoundError(YTMMError):
    """Playlist is not in the local library."""

    status_code: int = 404  # Not Found


class MetadataFetchError(YTMMError):
    """Remote playlist lookup failed.

    Covers network errors, malformed responses and empty or missing
    playlists. Not retried by the caller for the current operation.
    """

    status_code: int = 502  # Bad Gateway (upstream failure)


class TransportError(YTMMError):
    """Failed to move bytes from the remote URL to local storage."""

    status_code: int = 502  # Bad Gateway (upstream failure)


class DownloadCancelledError(TransportError):
    """Transfer was aborted via cancel()."""

    status_code: int = 499  # Client Closed Request (nginx convention)


class FilesystemError(YTMMError):
    """Local file delete or write failed."""

    status_code: int = 500  # Internal Server Error


class ManifestWriteError(FilesystemError):
    """Playlist manifest could not be written."""
