"""Display formatting for timestamps and durations."""

import math
from datetime import datetime

MISSING = "-"


def format_timestamp(timestamp: datetime | None, include_time: bool = True) -> str:
    """Format a timestamp the way the dashboard shows it.

    Examples: ``"Oct 19, 2026"`` or ``"Oct 19, 2026, 3:04 PM"``.
    A missing timestamp renders as ``"-"``.
    """
    if timestamp is None:
        return MISSING
    text = f"{timestamp:%b} {timestamp.day}, {timestamp.year}"
    if include_time:
        hour = timestamp.hour % 12 or 12
        suffix = "AM" if timestamp.hour < 12 else "PM"
        text += f", {hour}:{timestamp.minute:02d} {suffix}"
    return text


def format_duration(seconds: float | None) -> str | None:
    """Render a duration in seconds as whole minutes, halves rounding up."""
    if not seconds:
        return None
    return f"{math.floor(seconds / 60 + 0.5)} min"


def format_countdown(seconds: int) -> str:
    """Render remaining seconds as MM:SS."""
    seconds = max(0, seconds)
    return f"{seconds // 60:02d}:{seconds % 60:02d}"
