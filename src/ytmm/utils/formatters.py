"""Human-readable formatting for sizes and durations."""

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_file_size(num_bytes: int) -> str:
    """Format a byte count with binary units.

    Example:
        >>> format_file_size(0)
        '0 Bytes'
        >>> format_file_size(3_145_728)
        '3 MB'
        >>> format_file_size(1536)
        '1.5 KB'
    """
    if num_bytes <= 0:
        return "0 Bytes"
    exponent = 0
    while num_bytes >= 1024 ** (exponent + 1) and exponent < len(_SIZE_UNITS) - 1:
        exponent += 1
    value = round(num_bytes / 1024**exponent, 2)
    # Drop trailing zeros: 3.0 -> 3, 1.50 -> 1.5
    return f"{value:g} {_SIZE_UNITS[exponent]}"


def format_duration(seconds: int) -> str:
    """Format seconds as m:ss, or h:mm:ss when an hour or longer.

    Example:
        >>> format_duration(245)
        '4:05'
        >>> format_duration(3725)
        '1:02:05'
    """
    seconds = max(int(seconds), 0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
