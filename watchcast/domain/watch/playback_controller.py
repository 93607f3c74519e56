"""Renders the resolved playback mode and drives sequential replay."""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime

from loguru import logger

from watchcast.schemas import EventSnapshot, EventStatus, PlaybackMode, Recording, StreamState
from watchcast.services.player import PlayerEmbed
from watchcast.shared.clock import ensure_utc, monotonic_now, utc_now

from .countdown import STARTING_SOON_TEXT, CountdownTimer
from .formatting import format_duration, format_scheduled
from .mode_resolver import latest_ready_recording, resolve, sequential_playlist
from .playback_policy import ModeTimer, PlaybackModeRules, WatchPolicy
from .playback_session import PlaybackSession
from .player_telemetry import PlayerSignalKind, parse_player_message
from .sequential_advance import AdvanceReason, SequentialAdvancer
from .watch_view import PlaylistItem, WatchView

LIVE_BANNER = "LIVE"
LIVE_LOADING_TEXT = "Loading live stream..."
RECONNECTING_OVERLAY = "Stream paused. Checking for resume..."
PROCESSING_TEXT = "Stream has paused. Replay will be available in approximately 60 seconds."
LAST_RECORDING_BANNER = "The stream is paused and will resume shortly. Showing the latest recording."
ALL_COMPLETE_BANNER = "All videos complete. Replay from the start?"
ENDED_TEXT = "This event has ended."
CANCELLED_TEXT = "This event has been cancelled."
REPLAY_PENDING_TEXT = "The replay is being prepared. Please check back soon."
LIMIT_EXCEEDED_TEXT = "This event has reached its viewing limit."
MERGED_TITLE = "Full event"

ModeChangeListener = Callable[[PlaybackMode | None, PlaybackMode], None]


class PlaybackController:
    """Owns the view, the countdown and the sequential advancer for one session.

    `apply_snapshot` is the only entry point for new event data. A snapshot that
    resolves to the mode already shown refreshes content in place; a different
    mode tears down what the old mode owned before the new one is rendered.
    """

    def __init__(
        self,
        session: PlaybackSession,
        view: WatchView,
        embed: PlayerEmbed,
        policy: WatchPolicy,
        request_refresh: Callable[[], Awaitable[object]] | None = None,
        clock: Callable[[], datetime] = utc_now,
        monotonic: Callable[[], float] = monotonic_now,
    ) -> None:
        self.session = session
        self.view = view
        self.embed = embed
        self.policy = policy
        self._clock = clock
        self._request_refresh = request_refresh
        self._refresh_task: asyncio.Task | None = None
        self._listeners: list[ModeChangeListener] = []

        self.countdown = CountdownTimer(view, policy, on_expired=self._refresh, clock=clock)
        self.advancer = SequentialAdvancer(policy, on_advance=self._on_segment_finished, clock=monotonic)

    def add_mode_listener(self, listener: ModeChangeListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------ snapshots

    def apply_snapshot(self, snapshot: EventSnapshot, now: datetime | None = None) -> PlaybackMode:
        """Resolve and render `snapshot`. Returns the mode now shown."""
        now = ensure_utc(now or self._clock())
        session = self.session
        previous = session.mode

        mode = resolve(snapshot, now, self.policy, previous=previous)
        mode = self._guard_empty(mode, snapshot, now)

        session.snapshot = snapshot
        session.last_refresh_at = now
        session.error = None

        self.view.set_title(snapshot.title)
        self.view.set_subtitle(format_scheduled(snapshot.scheduled_at))

        if mode == previous:
            self._refresh_mode(mode, snapshot)
            return mode

        logger.info(f"Watch {session.slug}: {previous or 'initial'} -> {mode}")
        self._exit(previous, mode)
        session.mode = mode
        self._enter(mode, snapshot)

        for listener in self._listeners:
            try:
                listener(previous, mode)
            except Exception as exc:
                logger.exception(f"Mode listener failed: {exc}")
        return mode

    def _guard_empty(self, mode: PlaybackMode, snapshot: EventSnapshot, now: datetime) -> PlaybackMode:
        """Never render an empty player: fall back to PROCESSING/WAITING."""
        nothing_to_play = (
            mode == PlaybackMode.SEQUENTIAL and not self._build_playlist(snapshot)
        ) or (mode == PlaybackMode.LAST_RECORDING and latest_ready_recording(snapshot) is None)
        if not nothing_to_play:
            return mode

        activity = snapshot.last_stream_activity_at
        if activity is not None and now - activity <= self.policy.processing_window:
            fallback = PlaybackMode.PROCESSING
        else:
            fallback = PlaybackMode.WAITING
        logger.warning(f"Watch {self.session.slug}: {mode} has nothing to play, showing {fallback}")
        return fallback

    def _build_playlist(self, snapshot: EventSnapshot) -> list[Recording]:
        playlist = sequential_playlist(snapshot)
        if snapshot.status == EventStatus.ENDED and snapshot.merged_video_id:
            durations = [r.duration_seconds for r in playlist]
            total = sum(durations) if durations and all(durations) else None
            return [
                Recording(
                    id=snapshot.merged_video_id,
                    duration_seconds=total,
                    ready_to_stream=True,
                    title=MERGED_TITLE,
                )
            ]
        return playlist

    # ------------------------------------------------------------------ transitions

    def _exit(self, previous: PlaybackMode | None, next_mode: PlaybackMode) -> None:
        owned = PlaybackModeRules.owned_timers(next_mode)
        if ModeTimer.ADVANCE not in owned:
            self.advancer.stop()
        if ModeTimer.COUNTDOWN not in owned:
            self.countdown.stop()

        self.view.set_overlay(None)
        self.view.set_banner(None)
        self.view.set_countdown(None)
        self.view.set_playlist([])
        if not PlaybackModeRules.uses_player(next_mode):
            self.view.set_player_src(None)
            self.session.loaded_asset_id = None

        self.session.complete = False
        if previous == PlaybackMode.SEQUENTIAL:
            self.session.playlist = []

    def _enter(self, mode: PlaybackMode, snapshot: EventSnapshot) -> None:
        self.view.set_section(mode)

        if mode == PlaybackMode.LIVE:
            self._render_live(snapshot)
        elif mode == PlaybackMode.LAST_RECORDING:
            self._render_last_recording(snapshot)
        elif mode == PlaybackMode.SEQUENTIAL:
            # Entered from another mode: always start from the first segment.
            self.session.cursor = 0
            self.session.playlist = self._build_playlist(snapshot)
            self._load_segment(0)
        elif mode == PlaybackMode.COUNTDOWN:
            self._render_countdown(snapshot)
        else:
            self._render_static(mode, snapshot)

    def _refresh_mode(self, mode: PlaybackMode, snapshot: EventSnapshot) -> None:
        if mode == PlaybackMode.LIVE:
            self._render_live(snapshot)
        elif mode == PlaybackMode.LAST_RECORDING:
            self._render_last_recording(snapshot)
        elif mode == PlaybackMode.SEQUENTIAL:
            self._refresh_playlist(snapshot)
        elif mode == PlaybackMode.COUNTDOWN:
            self._render_countdown(snapshot)
        else:
            self._render_static(mode, snapshot)

    # ------------------------------------------------------------------ per-mode rendering

    def _render_live(self, snapshot: EventSnapshot) -> None:
        if snapshot.live_input_id:
            self._load_asset(snapshot.live_input_id, self.embed.live_url(snapshot.live_input_id))
            self.view.set_banner(LIVE_BANNER)
        else:
            logger.error(f"Watch {self.session.slug}: live event without live_input_id")
            self.view.set_player_src(None)
            self.session.loaded_asset_id = None
            self.view.set_banner(LIVE_LOADING_TEXT)

        if snapshot.stream_state in StreamState.interrupted_states():
            self.view.set_overlay(RECONNECTING_OVERLAY)
        else:
            self.view.set_overlay(None)

    def _render_last_recording(self, snapshot: EventSnapshot) -> None:
        recording = latest_ready_recording(snapshot)
        if recording is None:
            return
        self._load_asset(recording.id, self.embed.recording_url(recording.id))
        self.view.set_banner(LAST_RECORDING_BANNER)

    def _render_countdown(self, snapshot: EventSnapshot) -> None:
        self.view.set_player_src(None)
        if snapshot.scheduled_at is not None:
            self.countdown.start(snapshot.scheduled_at)

    def _render_static(self, mode: PlaybackMode, snapshot: EventSnapshot) -> None:
        if mode == PlaybackMode.PROCESSING:
            text = PROCESSING_TEXT
        elif mode == PlaybackMode.ENDED:
            text = ENDED_TEXT
        elif mode == PlaybackMode.LIMIT_EXCEEDED:
            text = LIMIT_EXCEEDED_TEXT
        elif snapshot.status == EventStatus.CANCELLED:
            text = CANCELLED_TEXT
        elif snapshot.status == EventStatus.READY:
            text = REPLAY_PENDING_TEXT
        else:
            text = STARTING_SOON_TEXT
        self.view.set_banner(text)

    def _load_asset(self, asset_id: str, src: str) -> None:
        self.view.set_player_src(src)
        self.session.loaded_asset_id = asset_id

    # ------------------------------------------------------------------ sequential replay

    def _refresh_playlist(self, snapshot: EventSnapshot) -> None:
        session = self.session
        playlist = self._build_playlist(snapshot)
        session.playlist = playlist

        # Recordings finalized late sort in front of the loaded one; follow it by id.
        loaded_index = next(
            (i for i, recording in enumerate(playlist) if recording.id == session.loaded_asset_id),
            None,
        )
        if loaded_index is not None:
            session.cursor = loaded_index

        if session.complete:
            if len(playlist) > session.cursor + 1:
                logger.info(f"Watch {session.slug}: new recordings after completion, continuing")
                self._load_segment(session.cursor + 1)
            else:
                self._render_playlist()
            return

        if loaded_index is not None:
            self._render_progress()
        elif session.cursor >= len(playlist):
            logger.info(f"Watch {session.slug}: playlist shrank under cursor {session.cursor}, restarting")
            self._load_segment(0)
        else:
            self._load_segment(session.cursor)

    def _load_segment(self, index: int) -> None:
        session = self.session
        recording = session.playlist[index]
        session.cursor = index
        session.complete = False
        self._load_asset(recording.id, self.embed.recording_url(recording.id))
        self.advancer.begin_segment(recording.id, recording.duration_seconds)
        self.advancer.start()
        self._render_progress()

    def _render_progress(self) -> None:
        total = len(self.session.playlist)
        self.view.set_banner(f"Video {self.session.cursor + 1} of {total}")
        self._render_playlist()

    def _render_playlist(self) -> None:
        session = self.session
        items = [
            PlaylistItem(
                index=i,
                recording_id=recording.id,
                title=recording.title or f"Recording {i + 1}",
                duration_text=format_duration(recording.duration_seconds),
                active=(i == session.cursor and not session.complete),
            )
            for i, recording in enumerate(session.playlist)
        ]
        self.view.set_playlist(items)

    def _on_segment_finished(self, reason: AdvanceReason) -> None:
        session = self.session
        if session.mode != PlaybackMode.SEQUENTIAL or session.complete:
            return

        next_index = session.cursor + 1
        if next_index < len(session.playlist):
            self._load_segment(next_index)
            return

        session.complete = True
        self.advancer.stop()
        self.view.set_banner(ALL_COMPLETE_BANNER)
        self._render_playlist()
        logger.info(f"Watch {session.slug}: all {len(session.playlist)} videos complete")
        # Re-check the event: more recordings may have finished meanwhile.
        self._schedule_refresh()

    def handle_player_message(self, origin: str | None, data: object, asset_id: str | None = None) -> bool:
        """Feed one player telemetry message. Returns True if it was accepted."""
        session = self.session
        if session.mode != PlaybackMode.SEQUENTIAL or session.complete:
            return False
        if not self.embed.accepts_origin(origin):
            return False
        signal = parse_player_message(data)
        if signal is None:
            return False

        tagged = False
        if asset_id is not None:
            if asset_id != session.loaded_asset_id:
                return False
            tagged = True

        if signal.kind is PlayerSignalKind.ENDED:
            self.advancer.on_ended(tagged=tagged)
        elif signal.position is not None:
            self.advancer.on_position(signal.position, tagged=tagged)
        return True

    def select_segment(self, index: int) -> bool:
        """Jump to playlist entry `index`."""
        session = self.session
        if session.mode != PlaybackMode.SEQUENTIAL:
            return False
        if not 0 <= index < len(session.playlist):
            return False
        self._load_segment(index)
        return True

    def replay_from_start(self) -> bool:
        session = self.session
        if session.mode != PlaybackMode.SEQUENTIAL or not session.playlist:
            return False
        self._load_segment(0)
        return True

    # ------------------------------------------------------------------ refresh & teardown

    async def _refresh(self) -> None:
        if self._request_refresh is None:
            return
        try:
            await self._request_refresh()
        except Exception as exc:
            logger.exception(f"Watch {self.session.slug}: requested refresh failed: {exc}")

    def _schedule_refresh(self) -> None:
        if self._request_refresh is None:
            return
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        self._refresh_task = asyncio.create_task(self._refresh(), name=f"refresh:{self.session.slug}")

    def teardown(self) -> None:
        """Cancel every timer this controller owns."""
        self.advancer.stop()
        self.countdown.stop()
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            self._refresh_task = None
