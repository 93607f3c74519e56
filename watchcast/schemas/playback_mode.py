"""Watch-page playback modes."""

from enum import Enum


class PlaybackMode(str, Enum):
    """Mutually exclusive states of the watch page.

    Derived from an event snapshot on every refresh, never persisted.

    - COUNTDOWN: Scheduled start is in the future; ticking countdown.
    - WAITING: Nothing to play yet (start time passed, or recordings not ready).
    - LIVE: Live ingest embedded in the player.
    - PROCESSING: Stream just stopped; recording is being finalized.
    - LAST_RECORDING: Broadcaster stepped away; latest recording plays until the stream resumes.
    - SEQUENTIAL: Replay of every ready recording in order, auto-advancing.
    - ENDED: Event over with nothing to replay.
    - LIMIT_EXCEEDED: Viewer-hour cap reached; playback blocked.
    """

    COUNTDOWN = "countdown"
    WAITING = "waiting"
    LIVE = "live"
    PROCESSING = "processing"
    LAST_RECORDING = "last_recording"
    SEQUENTIAL = "sequential"
    ENDED = "ended"
    LIMIT_EXCEEDED = "limit_exceeded"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def player_modes(cls) -> set["PlaybackMode"]:
        """Modes that render the embedded player."""
        return {PlaybackMode.LIVE, PlaybackMode.LAST_RECORDING, PlaybackMode.SEQUENTIAL}


__all__ = ["PlaybackMode"]
