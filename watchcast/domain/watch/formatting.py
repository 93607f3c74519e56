"""Display text helpers."""

from datetime import datetime

from watchcast.shared.clock import ensure_utc


def format_duration(seconds: float | None) -> str | None:
    """`m:ss` below an hour, `h:mm:ss` above; None when unknown."""
    if seconds is None or seconds <= 0:
        return None
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_scheduled(when: datetime | None) -> str | None:
    if when is None:
        return None
    return ensure_utc(when).strftime("%A, %B %d, %Y at %I:%M %p UTC")
