"""Filename sanitization utilities for safe filesystem paths."""

from pathlib import Path

from pathvalidate import sanitize_filename
from unidecode import unidecode

UNTITLED = "Untitled"


def clean_filename(s: str, *, ascii_filenames: bool = False) -> str:
    """Sanitize a string for use as a single path component.

    Args:
        s: String to sanitize.
        ascii_filenames: If True, transliterate unicode to ASCII first.

    Returns:
        Sanitized string, or "Untitled" if nothing usable remains.

    Example:
        >>> clean_filename("AC/DC")
        'ACDC'
        >>> clean_filename("Björk", ascii_filenames=True)
        'Bjork'
    """
    if ascii_filenames:
        s = unidecode(s)
    cleaned = sanitize_filename(s).strip()
    return cleaned or UNTITLED


def playlist_dir(
    base: Path, playlist_name: str, *, ascii_filenames: bool = False
) -> Path:
    """Directory holding a playlist's audio files and manifest."""
    return base / clean_filename(playlist_name, ascii_filenames=ascii_filenames)


def build_track_path(
    base: Path,
    playlist_name: str,
    artist: str,
    title: str,
    extension: str = "mp3",
    *,
    remote_id: str | None = None,
    ascii_filenames: bool = False,
) -> Path:
    """Build the destination path for a track.

    Path structure: base/Playlist Name/Artist - Title [remote_id].ext

    The remote ID keeps two videos with the same artist and title in one
    playlist from sharing a file.

    Args:
        base: Base directory for downloads.
        playlist_name: Owning playlist name.
        artist: Track artist.
        title: Track title.
        extension: File extension without the dot.
        remote_id: Video ID appended to the stem when given.
        ascii_filenames: If True, transliterate unicode to ASCII.

    Returns:
        Full path including extension.
    """
    label = f"{artist} - {title}"
    if remote_id:
        label = f"{label} [{remote_id}]"
    stem = clean_filename(label, ascii_filenames=ascii_filenames)
    return playlist_dir(base, playlist_name, ascii_filenames=ascii_filenames) / (
        f"{stem}.{extension}"
    )
