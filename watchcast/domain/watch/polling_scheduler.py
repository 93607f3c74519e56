"""Mode-dependent polling loop for the event snapshot."""

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger

from watchcast.schemas import PlaybackMode

from .playback_policy import PlaybackModeRules, PollCadence, WatchPolicy
from .playback_session import PlaybackSession


class PollingScheduler:
    """Re-fetches the snapshot on one timer, re-armed only after each tick finishes.

    The delay is chosen from the mode shown after the previous tick. A mode change
    that happens while the loop sleeps (a countdown follow-up, a refresh after the
    playlist completed) cancels the sleep and re-arms at the new cadence, so there
    is never more than one pending tick.
    """

    def __init__(
        self,
        session: PlaybackSession,
        refresh: Callable[[], Awaitable[bool]],
        policy: WatchPolicy,
    ) -> None:
        self._session = session
        self._refresh = refresh
        self._policy = policy
        self._task: asyncio.Task | None = None
        self._sleeping = False
        self.armed_cadence: PollCadence | None = None
        self.next_tick_delay: float | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def delay_for(self, mode: PlaybackMode | None) -> float:
        return PlaybackModeRules.poll_interval(mode, self._policy)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=f"poll:{self._session.slug}")

    def _arm(self) -> float:
        mode = self._session.mode
        self.armed_cadence = PlaybackModeRules.cadence(mode)
        self.next_tick_delay = self.delay_for(mode)
        return self.next_tick_delay

    async def _run(self) -> None:
        while True:
            delay = self._arm()
            self._sleeping = True
            await asyncio.sleep(delay)
            self._sleeping = False
            await self.tick()

    async def tick(self) -> bool:
        """Fetch and apply once. Failures are logged and the previous view stays up."""
        self.ticks += 1
        try:
            ok = await self._refresh()
        except Exception as exc:
            logger.exception(f"Poll tick for {self._session.slug} failed: {exc}")
            return False
        if not ok:
            logger.info(f"Poll tick for {self._session.slug} skipped, keeping {self._session.mode}")
        return bool(ok)

    def on_mode_change(self, previous: PlaybackMode | None, mode: PlaybackMode) -> None:
        """Re-arm a sleeping loop so the next tick uses the new mode's cadence."""
        if not self.running or not self._sleeping:
            # Mid-tick: the loop picks up the new cadence when it re-arms.
            return
        logger.debug(
            f"Poll for {self._session.slug}: {previous} -> {mode}, re-arming at {self.delay_for(mode)}s"
        )
        self._restart()

    def _restart(self) -> None:
        if self._task is not None:
            self._task.cancel()
        self._sleeping = False
        self._task = asyncio.create_task(self._run(), name=f"poll:{self._session.slug}")

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._sleeping = False
