"""Utility functions for ytmm.

Available via `from ytmm.utils import ...` for power users.
Not re-exported at the top-level `ytmm` package.
"""

from ytmm.utils.cookies import cookies_to_ytmusic_auth
from ytmm.utils.filename import build_track_path, clean_filename, playlist_dir
from ytmm.utils.formatters import format_duration, format_file_size
from ytmm.utils.manifest import generate_manifest, write_manifest
from ytmm.utils.url import is_playlist_reference, parse_playlist_id

__all__ = [
    "build_track_path",
    "clean_filename",
    "cookies_to_ytmusic_auth",
    "format_duration",
    "format_file_size",
    "generate_manifest",
    "is_playlist_reference",
    "parse_playlist_id",
    "playlist_dir",
    "write_manifest",
]
