"""Watch-page playback state machine."""

from .mode_resolver import latest_ready_recording, ready_recordings, resolve, sequential_playlist
from .playback_controller import PlaybackController
from .playback_policy import PlaybackModeRules, WatchPolicy
from .playback_session import PlaybackSession
from .polling_scheduler import PollingScheduler
from .watch_domain import WatchPageService, WatchSessionRegistry
from .watch_view import ViewState, WatchView

__all__ = [
    "PlaybackController",
    "PlaybackModeRules",
    "PlaybackSession",
    "PollingScheduler",
    "ViewState",
    "WatchPageService",
    "WatchPolicy",
    "WatchSessionRegistry",
    "WatchView",
    "latest_ready_recording",
    "ready_recordings",
    "resolve",
    "sequential_playlist",
]
