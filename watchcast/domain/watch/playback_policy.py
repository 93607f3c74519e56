"""Policy constants and per-mode rules for the watch page."""

from datetime import timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict

from watchcast.app_config import AppEnvironConfig, get_app_environ_config
from watchcast.schemas import PlaybackMode


class WatchPolicy(BaseModel):
    """Tunable thresholds.

    processing_window: after the stream stops, how long an empty recording list is
        shown as "processing" rather than "waiting" (platform finalization latency).
    inactivity_threshold: how long a stopped stream counts as "stepped away" before
        the session is treated as over and everything is replayed in order.
    """

    processing_window: timedelta = timedelta(minutes=10)
    inactivity_threshold: timedelta = timedelta(hours=2)

    poll_interval_live: float = 120.0
    poll_interval_last_recording: float = 30.0
    poll_interval_default: float = 60.0
    countdown_followup: float = 5.0

    advance_check_interval: float = 1.0
    advance_near_end: float = 1.0
    advance_stall: float = 10.0
    advance_stall_remaining: float = 5.0
    advance_fallback_timeout: float = 120.0

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_config(cls, cfg: AppEnvironConfig | None = None) -> "WatchPolicy":
        cfg = cfg or get_app_environ_config()
        return cls(
            processing_window=timedelta(seconds=cfg.PROCESSING_WINDOW_SECONDS),
            inactivity_threshold=timedelta(seconds=cfg.INACTIVITY_THRESHOLD_SECONDS),
            poll_interval_live=cfg.POLL_INTERVAL_LIVE_SECONDS,
            poll_interval_last_recording=cfg.POLL_INTERVAL_LAST_RECORDING_SECONDS,
            poll_interval_default=cfg.POLL_INTERVAL_DEFAULT_SECONDS,
            countdown_followup=cfg.COUNTDOWN_FOLLOWUP_SECONDS,
            advance_check_interval=cfg.ADVANCE_CHECK_INTERVAL_SECONDS,
            advance_near_end=cfg.ADVANCE_NEAR_END_SECONDS,
            advance_stall=cfg.ADVANCE_STALL_SECONDS,
            advance_stall_remaining=cfg.ADVANCE_STALL_REMAINING_SECONDS,
            advance_fallback_timeout=cfg.ADVANCE_FALLBACK_TIMEOUT_SECONDS,
        )


class PollCadence(str, Enum):
    LIVE = "live"
    LAST_RECORDING = "last_recording"
    DEFAULT = "default"


class ModeTimer(str, Enum):
    COUNTDOWN = "countdown"
    ADVANCE = "advance"


class PlaybackModeRules:
    """Static per-mode facts: polling cadence and which timers a mode owns.

    - LIVE polls every 2 minutes; the stream going away is not urgent for a viewer
      who is already watching.
    - LAST_RECORDING polls every 30 seconds; the stream resuming must be picked up fast.
    - Everything else polls every minute.
    - COUNTDOWN owns the countdown ticker; SEQUENTIAL owns the advance checker.
      Every other timer is cancelled when a mode is entered.
    """

    CADENCE: dict[PlaybackMode, PollCadence] = {
        PlaybackMode.LIVE: PollCadence.LIVE,
        PlaybackMode.LAST_RECORDING: PollCadence.LAST_RECORDING,
    }

    OWNED_TIMERS: dict[PlaybackMode, set[ModeTimer]] = {
        PlaybackMode.COUNTDOWN: {ModeTimer.COUNTDOWN},
        PlaybackMode.SEQUENTIAL: {ModeTimer.ADVANCE},
    }

    @classmethod
    def cadence(cls, mode: PlaybackMode | None) -> PollCadence:
        if mode is None:
            return PollCadence.DEFAULT
        return cls.CADENCE.get(mode, PollCadence.DEFAULT)

    @classmethod
    def poll_interval(cls, mode: PlaybackMode | None, policy: WatchPolicy) -> float:
        cadence = cls.cadence(mode)
        if cadence is PollCadence.LIVE:
            return policy.poll_interval_live
        if cadence is PollCadence.LAST_RECORDING:
            return policy.poll_interval_last_recording
        return policy.poll_interval_default

    @classmethod
    def owned_timers(cls, mode: PlaybackMode | None) -> set[ModeTimer]:
        if mode is None:
            return set()
        return cls.OWNED_TIMERS.get(mode, set())

    @classmethod
    def uses_player(cls, mode: PlaybackMode | None) -> bool:
        return mode in PlaybackMode.player_modes()
