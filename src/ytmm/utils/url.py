"""Playlist URL and identifier parsing."""

import re

from ytmm.exceptions import ValidationError

# list= parameter in any YouTube or YouTube Music URL
_LIST_PARAM_PATTERN = re.compile(r"[?&]list=([A-Za-z0-9_-]{10,})")

# Bare playlist IDs: user playlists, radio/curated mixes, album playlists
_BARE_ID_PATTERN = re.compile(
    r"^(PL[A-Za-z0-9_-]{10,}|RDCLAK[A-Za-z0-9_-]+|OLAK[A-Za-z0-9_-]+)$"
)

# Maximum input length to prevent potential abuse (standard browser limit)
MAX_URL_LENGTH = 2048


def parse_playlist_id(url_or_id: str) -> str:
    """Extract a playlist ID from a URL or accept a bare playlist ID.

    Args:
        url_or_id: Playlist URL (``...playlist?list=PL...``, ``watch?v=..&list=``)
            or a bare ID such as ``PLxxxxxxxxxx``.

    Returns:
        The playlist ID.

    Raises:
        ValidationError: If no playlist ID can be found.

    Example:
        >>> parse_playlist_id("https://www.youtube.com/playlist?list=PL1234567890")
        'PL1234567890'
    """
    candidate = (url_or_id or "").strip()
    if not candidate or len(candidate) > MAX_URL_LENGTH:
        raise ValidationError(f"Invalid playlist URL or ID: {url_or_id!r}")

    if match := _LIST_PARAM_PATTERN.search(candidate):
        return match.group(1)
    if match := _BARE_ID_PATTERN.match(candidate):
        return match.group(1)

    raise ValidationError(f"Invalid playlist URL or ID: {url_or_id!r}")


def is_playlist_reference(url_or_id: str) -> bool:
    """Check whether input can be resolved to a playlist ID."""
    try:
        parse_playlist_id(url_or_id)
    except ValidationError:
        return False
    return True
