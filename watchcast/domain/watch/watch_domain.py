"""Watch-page service: wires fetcher, controller, scheduler for one viewer."""

import asyncio
from collections.abc import Callable
from datetime import datetime
from uuid import uuid4

from loguru import logger

from watchcast.app_config import get_app_environ_config
from watchcast.schemas import PlaybackMode
from watchcast.services.events_api import EventsApiClient, get_events_api_client
from watchcast.services.player import PlayerEmbed, get_player_embed
from watchcast.shared.clock import monotonic_now, utc_now
from watchcast.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .playback_controller import PlaybackController
from .playback_policy import WatchPolicy
from .playback_session import PlaybackSession
from .polling_scheduler import PollingScheduler
from .watch_view import ViewState, WatchView

EVENT_NOT_FOUND_MESSAGE = "Event not found. Please check the URL and try again."


class WatchPageService:
    """One viewer's watch page for one event.

    The first fetch is the only fatal one: if it fails the page shows an error and
    never starts polling. Later fetch failures skip a tick and keep the last view.
    """

    def __init__(
        self,
        slug: str,
        client: EventsApiClient | None = None,
        embed: PlayerEmbed | None = None,
        policy: WatchPolicy | None = None,
        view: WatchView | None = None,
        clock: Callable[[], datetime] = utc_now,
        monotonic: Callable[[], float] = monotonic_now,
    ) -> None:
        self.slug = slug
        self.client = client or get_events_api_client()
        self.policy = policy or WatchPolicy.from_config()
        self.view = view or WatchView()
        self.session = PlaybackSession(slug=slug)
        self.controller = PlaybackController(
            self.session,
            self.view,
            embed or get_player_embed(),
            self.policy,
            request_refresh=self.refresh,
            clock=clock,
            monotonic=monotonic,
        )
        self.scheduler = PollingScheduler(self.session, self.refresh, self.policy)
        self.controller.add_mode_listener(self.scheduler.on_mode_change)
        self.started = False

    @property
    def mode(self) -> PlaybackMode | None:
        return self.session.mode

    async def start(self) -> bool:
        """Initial load. Returns False (and shows the error view) if the event can't be fetched."""
        try:
            snapshot = await self.client.fetch_event(self.slug)
        except AppError as exc:
            logger.warning(f"Initial load of {self.slug} failed: {exc.errcode} {exc.errmesg}")
            self.session.error = exc.errmesg
            self.view.show_error(EVENT_NOT_FOUND_MESSAGE)
            return False

        self.controller.apply_snapshot(snapshot)
        self.scheduler.start()
        self.started = True
        return True

    async def refresh(self) -> bool:
        """Fetch and apply the latest snapshot; False if the fetch failed."""
        try:
            snapshot = await self.client.fetch_event(self.slug)
        except AppError as exc:
            self.session.failed_refreshes += 1
            logger.warning(
                f"Refresh of {self.slug} failed ({self.session.failed_refreshes}): "
                f"{exc.errcode} {exc.errmesg}"
            )
            return False
        self.controller.apply_snapshot(snapshot)
        return True

    def handle_player_message(self, origin: str | None, data: object, asset_id: str | None = None) -> bool:
        return self.controller.handle_player_message(origin, data, asset_id=asset_id)

    def select_segment(self, index: int) -> bool:
        return self.controller.select_segment(index)

    def replay_from_start(self) -> bool:
        return self.controller.replay_from_start()

    def view_state(self) -> ViewState:
        return self.view.state

    def stop(self) -> None:
        self.scheduler.stop()
        self.controller.teardown()
        self.started = False
        logger.info(f"Watch {self.slug} stopped")


class WatchSessionRegistry:
    """Open watch sessions keyed by an opaque id, for the HTTP surface.

    Every `get` marks a session as seen. A viewer who leaves without closing the
    session stops reading it, so sessions unseen for `idle_ttl` seconds are
    stopped and dropped, on the next `open`/`get` or by the sweep task.
    """

    def __init__(
        self,
        factory: Callable[[str], WatchPageService] = WatchPageService,
        idle_ttl: float | None = None,
        sweep_interval: float | None = None,
        monotonic: Callable[[], float] = monotonic_now,
    ) -> None:
        cfg = get_app_environ_config()
        self._factory = factory
        self._idle_ttl = cfg.WATCH_SESSION_IDLE_TTL_SECONDS if idle_ttl is None else idle_ttl
        self._sweep_interval = (
            cfg.WATCH_SESSION_SWEEP_INTERVAL_SECONDS if sweep_interval is None else sweep_interval
        )
        self._clock = monotonic
        self._sessions: dict[str, WatchPageService] = {}
        self._last_seen_at: dict[str, float] = {}
        self._sweeper: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def sweeping(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    async def open(self, slug: str) -> tuple[str, WatchPageService]:
        self.evict_idle()
        service = self._factory(slug)
        if not await service.start():
            raise AppError(
                errcode=AppErrorCode.E_EVENT_NOT_FOUND,
                errmesg=service.session.error or EVENT_NOT_FOUND_MESSAGE,
                status_code=HttpStatusCode.NOT_FOUND,
            )
        watch_session_id = f"ws_{uuid4().hex[:16]}"
        self._sessions[watch_session_id] = service
        self._last_seen_at[watch_session_id] = self._clock()
        logger.info(f"Opened watch session {watch_session_id} for {slug}")
        return watch_session_id, service

    def get(self, watch_session_id: str) -> WatchPageService:
        self.evict_idle()
        service = self._sessions.get(watch_session_id)
        if service is None:
            raise AppError(
                errcode=AppErrorCode.E_WATCH_SESSION_NOT_FOUND,
                errmesg=f"Watch session not found: {watch_session_id}",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        self._last_seen_at[watch_session_id] = self._clock()
        return service

    def close(self, watch_session_id: str) -> None:
        self.get(watch_session_id)
        self._drop(watch_session_id)

    def _drop(self, watch_session_id: str) -> None:
        self._last_seen_at.pop(watch_session_id, None)
        self._sessions.pop(watch_session_id).stop()

    def evict_idle(self, now: float | None = None) -> list[str]:
        """Stop and drop sessions unseen for longer than the idle TTL. Returns their ids."""
        now = self._clock() if now is None else now
        idle = [
            watch_session_id
            for watch_session_id, seen_at in self._last_seen_at.items()
            if now - seen_at > self._idle_ttl
        ]
        for watch_session_id in idle:
            logger.info(f"Evicting idle watch session {watch_session_id}")
            self._drop(watch_session_id)
        return idle

    def start_sweep(self) -> None:
        """Evict idle sessions periodically, even when no request arrives."""
        if self.sweeping:
            return
        self._sweeper = asyncio.create_task(self._sweep(), name="watch-session-sweep")

    async def _sweep(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                self.evict_idle()
            except Exception as exc:
                logger.exception(f"Watch session sweep failed: {exc}")

    def close_all(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            self._sweeper = None
        for service in self._sessions.values():
            service.stop()
        self._sessions.clear()
        self._last_seen_at.clear()
