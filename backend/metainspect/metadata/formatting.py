"""
Human-readable formatting for raw metadata values.

Every function here is total: invalid or missing input yields the
UNKNOWN sentinel (or None for the optional helpers) instead of raising.
"""

import math
from datetime import datetime
from typing import Optional, Union

UNKNOWN = "Unknown"

Number = Union[int, float]

# (unit, decimal places) for the file count style, 1000-based
_SIZE_UNITS = (
    ("KB", 0),
    ("MB", 1),
    ("GB", 2),
    ("TB", 2),
)


def _trimmed(value: float, precision: int) -> str:
    text = f"{value:.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def file_size(num_bytes: Optional[int]) -> str:
    """
    Format a byte count using the file count style.

    Args:
        num_bytes: Size in bytes, may be None

    Returns:
        e.g. "0 bytes", "512 bytes", "2 KB", "1.5 MB", "2.35 GB",
        or UNKNOWN for None/negative input
    """
    if num_bytes is None or num_bytes < 0:
        return UNKNOWN

    if num_bytes == 1:
        return "1 byte"
    if num_bytes < 1000:
        return f"{int(num_bytes)} bytes"

    value = float(num_bytes)
    for unit, precision in _SIZE_UNITS:
        value /= 1000.0
        if round(value, precision) < 1000 or unit == "TB":
            return f"{_trimmed(value, precision)} {unit}"

    return UNKNOWN  # pragma: no cover


def bitrate(bits_per_second: Optional[Number]) -> str:
    """
    Format a bitrate on decimal thresholds.

    Returns:
        "640.00 Kbps", "12.50 Mbps", "800 bps", or UNKNOWN for None/<=0
    """
    if bits_per_second is None or not math.isfinite(bits_per_second) or bits_per_second <= 0:
        return UNKNOWN

    if bits_per_second >= 1_000_000_000:
        return f"{bits_per_second / 1_000_000_000:.2f} Gbps"
    if bits_per_second >= 1_000_000:
        return f"{bits_per_second / 1_000_000:.2f} Mbps"
    if bits_per_second >= 1_000:
        return f"{bits_per_second / 1_000:.2f} Kbps"
    return f"{bits_per_second:.0f} bps"


def duration(seconds: Optional[Number]) -> str:
    """
    Format a duration as an abbreviated h/m/s breakdown.

    Leading zero units are dropped: 75 -> "1m 15s", 48 -> "48s",
    3605 -> "1h 0m 5s".
    """
    if seconds is None or not math.isfinite(seconds) or seconds <= 0:
        return UNKNOWN

    total = int(round(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def coordinate(latitude: float, longitude: float) -> str:
    """Fixed six-decimal "lat, lon" representation."""
    return f"{latitude:.6f}, {longitude:.6f}"


def timestamp(value: Optional[datetime]) -> Optional[str]:
    """Medium date/time string, e.g. "Oct 19, 2026 14:03:51"."""
    if value is None:
        return None
    return value.strftime("%b %d, %Y %H:%M:%S")


def yes_no(value: Optional[bool]) -> Optional[str]:
    if value is None:
        return None
    return "Yes" if value else "No"


def dimensions(width: Optional[int], height: Optional[int]) -> Optional[str]:
    if width is None or height is None:
        return None
    return f"{width} x {height}"
