"""Tests for the pure playback mode resolver."""

from datetime import timedelta

import pytest

from tests.helpers import NOW, make_recording, make_snapshot
from watchcast.domain.watch import WatchPolicy, resolve, sequential_playlist
from watchcast.domain.watch.mode_resolver import latest_ready_recording, ready_recordings
from watchcast.schemas import PlaybackMode


def _ago(**kwargs) -> str:
    return (NOW - timedelta(**kwargs)).isoformat()


class TestLive:
    """status=live with an active stream is LIVE whatever else the snapshot says."""

    @pytest.mark.parametrize(
        "extra",
        [
            {},
            {"scheduledAt": (NOW + timedelta(hours=3)).isoformat()},
            {"recordings": [make_recording("a", NOW - timedelta(hours=1))]},
            {"lastStreamActivityAt": _ago(hours=5)},
            {"mergedVideoId": "merged_1"},
        ],
    )
    def test_live_active_is_live(self, extra):
        snapshot = make_snapshot(status="live", streamState="active", **extra)
        assert resolve(snapshot, NOW) == PlaybackMode.LIVE

    def test_live_paused_without_history_is_not_live(self):
        snapshot = make_snapshot(status="live", streamState="paused")
        assert resolve(snapshot, NOW) == PlaybackMode.WAITING

    def test_live_paused_keeps_live_when_already_live(self):
        snapshot = make_snapshot(status="live", streamState="disconnected")
        assert resolve(snapshot, NOW, previous=PlaybackMode.LIVE) == PlaybackMode.LIVE

    def test_limit_exceeded_preempts_live(self):
        snapshot = make_snapshot(status="live", streamState="active", limitExceeded=True)
        assert resolve(snapshot, NOW) == PlaybackMode.LIMIT_EXCEEDED


class TestEnded:
    def test_ended_with_ready_recording_is_sequential(self):
        snapshot = make_snapshot(
            status="ended",
            recordings=[make_recording("a", NOW - timedelta(hours=1))],
        )
        assert resolve(snapshot, NOW) == PlaybackMode.SEQUENTIAL

    def test_ended_without_recordings_is_ended(self):
        assert resolve(make_snapshot(status="ended"), NOW) == PlaybackMode.ENDED

    def test_ended_with_only_unready_recordings_is_ended(self):
        snapshot = make_snapshot(
            status="ended",
            recordings=[make_recording("a", NOW - timedelta(hours=1), ready=False)],
        )
        assert resolve(snapshot, NOW) == PlaybackMode.ENDED

    def test_limit_exceeded_with_recordings(self):
        snapshot = make_snapshot(
            status="ended",
            limitExceeded=True,
            recordings=[make_recording("a", NOW - timedelta(hours=1))],
        )
        assert resolve(snapshot, NOW) == PlaybackMode.LIMIT_EXCEEDED

    def test_limit_exceeded_without_anything_to_play_is_not_blocking(self):
        snapshot = make_snapshot(status="ended", limitExceeded=True)
        assert resolve(snapshot, NOW) == PlaybackMode.ENDED


class TestPostBroadcast:
    """status=ready: the stream stopped and the event is not finalized."""

    def test_recent_activity_no_recordings_is_processing(self):
        snapshot = make_snapshot(status="ready", lastStreamActivityAt=_ago(minutes=5))
        assert resolve(snapshot, NOW) == PlaybackMode.PROCESSING

    def test_old_activity_no_recordings_is_waiting(self):
        snapshot = make_snapshot(status="ready", lastStreamActivityAt=_ago(minutes=11))
        assert resolve(snapshot, NOW) == PlaybackMode.WAITING

    def test_no_activity_no_recordings_is_waiting(self):
        assert resolve(make_snapshot(status="ready"), NOW) == PlaybackMode.WAITING

    def test_recent_activity_single_recording_is_last_recording(self):
        snapshot = make_snapshot(
            status="ready",
            lastStreamActivityAt=_ago(minutes=5),
            recordings=[make_recording("A", NOW - timedelta(minutes=20))],
        )
        assert resolve(snapshot, NOW) == PlaybackMode.LAST_RECORDING
        assert latest_ready_recording(snapshot).id == "A"

    def test_recent_activity_many_recordings_is_sequential(self):
        snapshot = make_snapshot(
            status="ready",
            lastStreamActivityAt=_ago(minutes=30),
            recordings=[
                make_recording("B", NOW - timedelta(minutes=40)),
                make_recording("A", NOW - timedelta(minutes=90)),
            ],
        )
        assert resolve(snapshot, NOW) == PlaybackMode.SEQUENTIAL
        assert [r.id for r in sequential_playlist(snapshot)] == ["A", "B"]

    def test_stale_activity_single_recording_is_sequential(self):
        snapshot = make_snapshot(
            status="ready",
            lastStreamActivityAt=_ago(hours=2),
            recordings=[make_recording("A", NOW - timedelta(hours=3))],
        )
        assert resolve(snapshot, NOW) == PlaybackMode.SEQUENTIAL

    def test_unready_recording_does_not_count(self):
        snapshot = make_snapshot(
            status="ready",
            lastStreamActivityAt=_ago(minutes=5),
            recordings=[
                make_recording("A", NOW - timedelta(minutes=20)),
                make_recording("B", NOW - timedelta(minutes=6), ready=False),
            ],
        )
        assert resolve(snapshot, NOW) == PlaybackMode.LAST_RECORDING

    def test_thresholds_come_from_policy(self):
        policy = WatchPolicy(processing_window=timedelta(minutes=30))
        snapshot = make_snapshot(status="ready", lastStreamActivityAt=_ago(minutes=20))
        assert resolve(snapshot, NOW, policy) == PlaybackMode.PROCESSING
        assert resolve(snapshot, NOW) == PlaybackMode.WAITING


class TestScheduled:
    def test_before_start_is_countdown(self):
        snapshot = make_snapshot(scheduledAt=(NOW + timedelta(seconds=3600)).isoformat())
        assert resolve(snapshot, NOW) == PlaybackMode.COUNTDOWN

    def test_exactly_at_start_is_waiting(self):
        start = NOW + timedelta(seconds=3600)
        snapshot = make_snapshot(scheduledAt=start.isoformat())
        assert resolve(snapshot, start) == PlaybackMode.WAITING

    def test_missing_scheduled_at_is_waiting(self):
        snapshot = make_snapshot(scheduledAt=None)
        assert resolve(snapshot, NOW) == PlaybackMode.WAITING

    def test_naive_now_is_treated_as_utc(self):
        snapshot = make_snapshot(scheduledAt=(NOW + timedelta(minutes=1)).isoformat())
        assert resolve(snapshot, NOW.replace(tzinfo=None)) == PlaybackMode.COUNTDOWN


def test_resolve_is_idempotent():
    snapshot = make_snapshot(
        status="ready",
        lastStreamActivityAt=_ago(minutes=30),
        recordings=[
            make_recording("A", NOW - timedelta(minutes=90)),
            make_recording("B", NOW - timedelta(minutes=40)),
        ],
    )
    assert resolve(snapshot, NOW) == resolve(snapshot, NOW)


def test_ready_recordings_keep_received_order():
    snapshot = make_snapshot(
        recordings=[
            make_recording("late", NOW - timedelta(minutes=1)),
            make_recording("skip", NOW - timedelta(minutes=2), ready=False),
            make_recording("early", NOW - timedelta(minutes=3)),
        ],
    )
    assert [r.id for r in ready_recordings(snapshot)] == ["late", "early"]
    assert [r.id for r in sequential_playlist(snapshot)] == ["early", "late"]
