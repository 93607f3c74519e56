"""One-second countdown to the scheduled start."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger

from watchcast.shared.clock import ensure_utc, utc_now

from .playback_policy import WatchPolicy
from .watch_view import WatchView

STARTING_SOON_TEXT = "Event starting soon..."


@dataclass(frozen=True)
class CountdownParts:
    days: int
    hours: int
    minutes: int
    seconds: int

    def as_display(self) -> dict[str, str]:
        return {
            "days": f"{self.days:02d}",
            "hours": f"{self.hours:02d}",
            "minutes": f"{self.minutes:02d}",
            "seconds": f"{self.seconds:02d}",
        }


def countdown_parts(remaining: timedelta) -> CountdownParts:
    total = max(0, int(remaining.total_seconds()))
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return CountdownParts(days=days, hours=hours, minutes=minutes, seconds=seconds)


class CountdownTimer:
    """Ticks the countdown display and bridges expiry to the next poll.

    When the target passes, the display freezes on "starting soon" and exactly one
    follow-up refresh is scheduled `countdown_followup` seconds later, so the page
    does not wait a full poll interval for the server to leave `scheduled`.
    """

    def __init__(
        self,
        view: WatchView,
        policy: WatchPolicy,
        on_expired: Callable[[], Awaitable[None]],
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._view = view
        self._policy = policy
        self._on_expired = on_expired
        self._clock = clock
        self._target: datetime | None = None
        self._ticker: asyncio.Task | None = None
        self._followup: asyncio.Task | None = None
        self.expired = False

    @property
    def running(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    @property
    def followup_pending(self) -> bool:
        return self._followup is not None and not self._followup.done()

    @property
    def target(self) -> datetime | None:
        return self._target

    def start(self, target: datetime) -> None:
        """(Re)start against `target`. Restarting on the same target is a no-op."""
        target = ensure_utc(target)
        if self._target == target and (self.running or self.expired):
            return
        self.stop()
        self._target = target
        self.expired = False
        self.tick()
        if not self.expired:
            self._ticker = asyncio.create_task(self._run(), name="countdown")

    async def _run(self) -> None:
        while not self.expired:
            await asyncio.sleep(1.0)
            self.tick()

    def tick(self, now: datetime | None = None) -> CountdownParts | None:
        """Update the display once. Returns the parts shown, or None once expired."""
        if self._target is None or self.expired:
            return None
        now = ensure_utc(now or self._clock())
        remaining = self._target - now
        if remaining.total_seconds() <= 0:
            self._expire()
            return None
        parts = countdown_parts(remaining)
        self._view.set_countdown(parts.as_display())
        return parts

    def _expire(self) -> None:
        self.expired = True
        self._view.set_countdown(None)
        self._view.set_banner(STARTING_SOON_TEXT)
        logger.info(f"Countdown reached {self._target}, re-checking in {self._policy.countdown_followup}s")
        if self._followup is None:
            self._followup = asyncio.create_task(self._followup_refresh(), name="countdown-followup")

    async def _followup_refresh(self) -> None:
        await asyncio.sleep(self._policy.countdown_followup)
        # Detach first: the refresh may leave COUNTDOWN and call stop() on us.
        self._followup = None
        try:
            await self._on_expired()
        except Exception as exc:
            logger.warning(f"Countdown follow-up refresh failed: {exc}")

    def stop(self) -> None:
        """Cancel the ticker and any pending follow-up. Safe to call repeatedly."""
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        if self._followup is not None:
            self._followup.cancel()
            self._followup = None
        self._target = None
        self.expired = False
