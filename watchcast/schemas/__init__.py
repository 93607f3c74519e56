"""Snapshot and playback schemas."""

from .event_snapshot import EventSnapshot, Recording
from .event_state import EventStatus, StreamState
from .playback_mode import PlaybackMode

__all__ = [
    "EventSnapshot",
    "EventStatus",
    "PlaybackMode",
    "Recording",
    "StreamState",
]
