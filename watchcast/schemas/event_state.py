"""Enums describing the upstream event record."""

from enum import Enum


class EventStatus(str, Enum):
    """Event lifecycle status as stored by the events API.

    - SCHEDULED: Booked, broadcast not started.
    - READY: Post-broadcast window before finalization (stream stopped, session may resume).
    - LIVE: Broadcast in progress.
    - ENDED: Event finalized; recordings are the replay.
    - CANCELLED: Booking cancelled.
    """

    SCHEDULED = "scheduled"
    READY = "ready"
    LIVE = "live"
    ENDED = "ended"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


class StreamState(str, Enum):
    """Ingest state reported by the live-video platform."""

    INACTIVE = "inactive"
    ACTIVE = "active"
    PAUSED = "paused"
    DISCONNECTED = "disconnected"
    FINALIZED = "finalized"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def interrupted_states(cls) -> set["StreamState"]:
        """States meaning the ingest dropped but may come back."""
        return {StreamState.PAUSED, StreamState.DISCONNECTED}


__all__ = ["EventStatus", "StreamState"]
