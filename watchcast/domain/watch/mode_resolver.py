"""Pure mapping from an event snapshot to the playback mode to render."""

from datetime import datetime, timedelta, timezone

from watchcast.schemas import EventSnapshot, EventStatus, PlaybackMode, Recording, StreamState
from watchcast.shared.clock import ensure_utc

from .playback_policy import WatchPolicy

_DEFAULT_POLICY = WatchPolicy()
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def ready_recordings(snapshot: EventSnapshot) -> list[Recording]:
    """Playable recordings in received order."""
    return [r for r in snapshot.recordings if r.ready_to_stream]


def _created_key(recording: Recording) -> datetime:
    return recording.created_at or _EPOCH


def sequential_playlist(snapshot: EventSnapshot) -> list[Recording]:
    """Ready recordings oldest first. Ties keep received order."""
    return sorted(ready_recordings(snapshot), key=_created_key)


def latest_ready_recording(snapshot: EventSnapshot) -> Recording | None:
    ready = ready_recordings(snapshot)
    if not ready:
        return None
    # max() keeps the first of equal keys; the last received wins a tie instead.
    return max(reversed(ready), key=_created_key)


def _activity_age(snapshot: EventSnapshot, now: datetime) -> timedelta | None:
    if snapshot.last_stream_activity_at is None:
        return None
    return ensure_utc(now) - snapshot.last_stream_activity_at


def _is_live(snapshot: EventSnapshot, previous: PlaybackMode | None) -> bool:
    if snapshot.status != EventStatus.LIVE:
        return False
    if snapshot.stream_state == StreamState.ACTIVE:
        return True
    # A momentary ingest drop keeps the live player up; the controller overlays it.
    return previous == PlaybackMode.LIVE and snapshot.stream_state in StreamState.interrupted_states()


def _resolve_post_broadcast(
    snapshot: EventSnapshot,
    ready_count: int,
    now: datetime,
    policy: WatchPolicy,
) -> PlaybackMode:
    age = _activity_age(snapshot, now)

    if ready_count == 0:
        if age is not None and age <= policy.processing_window:
            return PlaybackMode.PROCESSING
        return PlaybackMode.WAITING

    recent = age is not None and age < policy.inactivity_threshold
    if recent and ready_count == 1:
        return PlaybackMode.LAST_RECORDING
    return PlaybackMode.SEQUENTIAL


def resolve(
    snapshot: EventSnapshot,
    now: datetime,
    policy: WatchPolicy = _DEFAULT_POLICY,
    previous: PlaybackMode | None = None,
) -> PlaybackMode:
    """Pick the watch-page mode for `snapshot` at `now`.

    Rules are evaluated in order, first match wins:

    1. Viewer-hour limit reached while there is something to play -> LIMIT_EXCEEDED.
    2. Live and ingest active -> LIVE.
    3. Ended -> SEQUENTIAL with ready recordings, else ENDED.
    4. Ready (stream stopped, not finalized):
       no recordings -> PROCESSING inside the processing window, else WAITING;
       recent activity and one recording -> LAST_RECORDING;
       otherwise -> SEQUENTIAL.
    5. Before the scheduled start -> COUNTDOWN.
    6. Otherwise -> WAITING.

    Args:
        snapshot: Latest event snapshot
        now: Current wall-clock time (timezone aware or UTC)
        policy: Thresholds to apply
        previous: Mode currently rendered, only used to keep LIVE through a
            momentary ingest drop

    Returns:
        The mode to render
    """
    now = ensure_utc(now)
    ready_count = len(ready_recordings(snapshot))
    live = _is_live(snapshot, previous)

    if snapshot.limit_exceeded and (live or ready_count > 0):
        return PlaybackMode.LIMIT_EXCEEDED

    if live:
        return PlaybackMode.LIVE

    if snapshot.status == EventStatus.ENDED:
        return PlaybackMode.SEQUENTIAL if ready_count else PlaybackMode.ENDED

    if snapshot.status == EventStatus.READY:
        return _resolve_post_broadcast(snapshot, ready_count, now, policy)

    if snapshot.scheduled_at is not None and now < snapshot.scheduled_at:
        return PlaybackMode.COUNTDOWN

    return PlaybackMode.WAITING
