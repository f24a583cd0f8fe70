"""Cookie conversion for authenticated ytmusicapi requests.

Converts a Netscape cookies.txt export into the browser headers that
ytmusicapi accepts, so private playlists can be read.
"""

import hashlib
import logging
import time
from pathlib import Path

logger = logging.getLogger(__name__)

YTM_ORIGIN = "https://music.youtube.com"

# Newer cookie name first
_SAPISID_NAMES = ("__Secure-3PAPISID", "SAPISID")


def read_cookies(cookies_path: Path) -> dict[str, str]:
    """Read name/value pairs from a Netscape format cookies file.

    Comment and malformed lines are ignored. Returns an empty dict if
    the file cannot be read.
    """
    try:
        content = cookies_path.read_text()
    except OSError as e:
        logger.warning("Failed to read cookies file: %s", e)
        return {}

    cookies: dict[str, str] = {}
    for raw in content.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        # domain, flag, path, secure, expiry, name, value
        fields = line.split("\t")
        if len(fields) >= 7:
            cookies[fields[5]] = fields[6]
    return cookies


def sapisid_hash(sapisid: str, origin: str = YTM_ORIGIN, now: int | None = None) -> str:
    """Compute the SAPISIDHASH Authorization value for a request origin."""
    timestamp = str(int(time.time()) if now is None else now)
    digest = hashlib.sha1(f"{timestamp} {sapisid} {origin}".encode()).hexdigest()
    return f"SAPISIDHASH {timestamp}_{digest}"


def cookies_to_ytmusic_auth(cookies_path: Path) -> dict[str, str] | None:
    """Build ytmusicapi browser-auth headers from a cookies file.

    Args:
        cookies_path: Path to a Netscape format cookies.txt file.

    Returns:
        Header dict to pass as ``YTMusic(auth=...)``, or None when the file
        is missing or lacks a SAPISID cookie.
    """
    if not cookies_path.exists():
        logger.debug("Cookies file not found: %s", cookies_path)
        return None

    cookies = read_cookies(cookies_path)
    sapisid = next((cookies[n] for n in _SAPISID_NAMES if n in cookies), None)
    if not sapisid:
        logger.warning("No SAPISID cookie found - authentication not possible")
        return None

    return {
        "Accept": "*/*",
        "Authorization": sapisid_hash(sapisid),
        "Content-Type": "application/json",
        "X-Goog-AuthUser": "0",
        "x-origin": YTM_ORIGIN,
        "Cookie": "; ".join(f"{k}={v}" for k, v in cookies.items()),
    }
