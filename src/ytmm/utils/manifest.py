"""M3U manifest generation for downloaded playlists.

Manifests are written with UTF-8 encoding, which is the modern standard
supported by most media players.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from ytmm.exceptions import ManifestWriteError
from ytmm.models.track import Playlist, Track
from ytmm.utils.filename import clean_filename, playlist_dir

logger = logging.getLogger(__name__)


def playable_tracks(tracks: Iterable[Track]) -> list[Track]:
    """Completed tracks with a local file, ordered by position."""
    return sorted(
        (t for t in tracks if t.is_completed and t.local_path is not None),
        key=lambda t: t.position,
    )


def generate_manifest(tracks: Iterable[Track]) -> str:
    """Generate extended M3U content for the playable tracks.

    Tracks that are not completed are omitted entirely. Output depends only
    on the input tracks, so regenerating it from the same state is
    byte-for-byte identical.

    Args:
        tracks: Tracks of one playlist, in any order.

    Returns:
        M3U file content as a string.

    Example:
        >>> print(generate_manifest([track]))
        #EXTM3U
        #EXTINF:245,Radiohead - Airbag
        /music/OK Computer/Radiohead - Airbag.mp3
    """
    lines = ["#EXTM3U"]

    for track in playable_tracks(tracks):
        lines.append(f"#EXTINF:{track.duration_seconds},{track.display_name}")
        lines.append(str(track.local_path))

    return "\n".join(lines) + "\n"


def manifest_path(
    base_path: Path, playlist: Playlist, *, ascii_filenames: bool = False
) -> Path:
    """Location of a playlist's manifest: base/Name/Name.m3u."""
    name = clean_filename(playlist.name, ascii_filenames=ascii_filenames)
    return playlist_dir(base_path, playlist.name, ascii_filenames=ascii_filenames) / (
        f"{name}.m3u"
    )


def write_manifest(
    base_path: Path,
    playlist: Playlist,
    tracks: Iterable[Track],
    *,
    ascii_filenames: bool = False,
) -> Path:
    """Write the manifest file next to the playlist's audio files.

    Creates the playlist directory if it doesn't exist.

    Args:
        base_path: Base directory for downloads.
        playlist: Playlist the manifest belongs to.
        tracks: Tracks of the playlist.
        ascii_filenames: If True, transliterate unicode in the filename.

    Returns:
        Path to the written manifest.

    Raises:
        ManifestWriteError: If the directory or file cannot be written.
    """
    path = manifest_path(base_path, playlist, ascii_filenames=ascii_filenames)
    content = generate_manifest(tracks)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ManifestWriteError(f"Failed to write manifest {path}: {e}") from e

    logger.debug("Wrote manifest: %s", path)
    return path
