"""End-of-segment detection for sequential replay.

The player reports progress only through lossy position messages, so no single
signal is trusted. Each check looks at, in order:

1. Known duration and the last position within `advance_near_end` of it.
2. No position update for `advance_stall` seconds while the last known position
   was already within `advance_stall_remaining` of the end (the final update was
   probably dropped).
3. Unknown duration and `advance_fallback_timeout` seconds of wall clock since the
   segment started.
4. Known duration, telemetry never arrived for this segment, and the whole
   duration plus `advance_fallback_timeout` has elapsed.

An explicit `ended` message advances immediately. The `has_advanced` latch makes
every path fire at most once per segment, whichever gets there first.

Messages that are not tagged with the loaded asset id and arrive within one
check interval of a segment load are dropped: they come from the player that
was just replaced.
"""

import asyncio
from collections.abc import Callable
from enum import Enum

from loguru import logger

from watchcast.shared.clock import monotonic_now

from .playback_policy import WatchPolicy


class AdvanceReason(str, Enum):
    ENDED_SIGNAL = "ended_signal"
    NEAR_END = "near_end"
    STALLED_NEAR_END = "stalled_near_end"
    FALLBACK_TIMEOUT = "fallback_timeout"
    NO_TELEMETRY = "no_telemetry"


class SequentialAdvancer:
    """Tracks playback of the current segment and fires `on_advance` once when it ends."""

    def __init__(
        self,
        policy: WatchPolicy,
        on_advance: Callable[[AdvanceReason], None],
        clock: Callable[[], float] = monotonic_now,
    ) -> None:
        self._policy = policy
        self._on_advance = on_advance
        self._clock = clock
        self._task: asyncio.Task | None = None

        self.segment_id: str | None = None
        self.duration: float | None = None
        self.started_at: float = 0.0
        self.last_known_position: float = 0.0
        self.last_update_at: float = 0.0
        self.received_updates = 0
        self.has_advanced = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def begin_segment(self, segment_id: str, duration: float | None) -> None:
        """Reset tracking for a newly loaded segment."""
        now = self._clock()
        self.segment_id = segment_id
        self.duration = duration if duration and duration > 0 else None
        self.started_at = now
        self.last_known_position = 0.0
        self.last_update_at = now
        self.received_updates = 0
        self.has_advanced = False

    def _settling(self, now: float) -> bool:
        # Untagged messages this close to a load still belong to the previous player.
        return now - self.started_at < self._policy.advance_check_interval

    def on_position(self, position: float, tagged: bool = False) -> None:
        """Record a position update.

        Args:
            position: Reported playback position in seconds
            tagged: True when the message was matched to this segment's asset id
        """
        if self.has_advanced or self.segment_id is None:
            return
        now = self._clock()
        if not tagged and self._settling(now):
            return
        self.last_known_position = position
        self.last_update_at = now
        self.received_updates += 1

    def on_ended(self, tagged: bool = False) -> bool:
        """Handle an explicit ended signal. Returns True if it caused the advance."""
        if not tagged and self.segment_id is not None and self._settling(self._clock()):
            logger.debug(f"Dropping ended signal received while loading {self.segment_id}")
            return False
        return self._fire(AdvanceReason.ENDED_SIGNAL)

    def evaluate(self, now: float) -> AdvanceReason | None:
        """Decide whether the current segment is finished, without side effects."""
        if self.has_advanced or self.segment_id is None:
            return None

        policy = self._policy
        elapsed = now - self.started_at

        if self.duration is not None:
            remaining = self.duration - self.last_known_position
            if remaining <= policy.advance_near_end:
                return AdvanceReason.NEAR_END
            silent_for = now - self.last_update_at
            if silent_for > policy.advance_stall and remaining < policy.advance_stall_remaining:
                return AdvanceReason.STALLED_NEAR_END
            if (
                self.received_updates == 0
                and elapsed > self.duration + policy.advance_fallback_timeout
            ):
                return AdvanceReason.NO_TELEMETRY
            return None

        if elapsed > policy.advance_fallback_timeout:
            return AdvanceReason.FALLBACK_TIMEOUT
        return None

    def check(self, now: float | None = None) -> bool:
        """Run one detection pass. Returns True if it caused the advance."""
        reason = self.evaluate(self._clock() if now is None else now)
        if reason is None:
            return False
        return self._fire(reason)

    def _fire(self, reason: AdvanceReason) -> bool:
        if self.has_advanced or self.segment_id is None:
            return False
        self.has_advanced = True
        logger.info(
            f"Segment {self.segment_id} finished ({reason.value}) "
            f"at {self.last_known_position:.1f}s of {self.duration or 'unknown'}"
        )
        self._on_advance(reason)
        return True

    def start(self) -> None:
        """Start the periodic check loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=f"advance-check:{self.segment_id}")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._policy.advance_check_interval)
            try:
                self.check()
            except Exception as exc:
                logger.exception(f"Advance check failed for segment {self.segment_id}: {exc}")

    def stop(self) -> None:
        """Cancel the check loop and stop accepting signals. Safe to call repeatedly."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.segment_id = None
