"""Tests for end-of-segment detection."""

import asyncio

import pytest

from tests.helpers import FakeMonotonic
from watchcast.domain.watch import WatchPolicy
from watchcast.domain.watch.sequential_advance import AdvanceReason, SequentialAdvancer


@pytest.fixture
def fired() -> list[AdvanceReason]:
    return []


@pytest.fixture
def advancer(policy: WatchPolicy, monotonic: FakeMonotonic, fired: list[AdvanceReason]) -> SequentialAdvancer:
    return SequentialAdvancer(policy, on_advance=fired.append, clock=monotonic)


def _play_to(advancer: SequentialAdvancer, monotonic: FakeMonotonic, position: float, step: float = 2.0) -> None:
    monotonic.advance(step)
    advancer.on_position(position)


class TestNearEnd:
    def test_advances_within_a_second_of_the_end(self, advancer, monotonic, fired):
        advancer.begin_segment("a", 60.0)
        _play_to(advancer, monotonic, 58.5)
        assert advancer.check() is False

        _play_to(advancer, monotonic, 59.2)
        assert advancer.check() is True
        assert fired == [AdvanceReason.NEAR_END]

    def test_fires_at_most_once(self, advancer, monotonic, fired):
        advancer.begin_segment("a", 60.0)
        _play_to(advancer, monotonic, 59.5)

        assert advancer.check() is True
        assert advancer.on_ended() is False
        assert advancer.check() is False
        assert fired == [AdvanceReason.NEAR_END]

    def test_ended_then_check_fires_once(self, advancer, monotonic, fired):
        advancer.begin_segment("a", 60.0)
        _play_to(advancer, monotonic, 59.5)

        assert advancer.on_ended() is True
        assert advancer.check() is False
        assert fired == [AdvanceReason.ENDED_SIGNAL]


class TestStall:
    def test_stalled_close_to_the_end(self, advancer, monotonic, fired):
        advancer.begin_segment("a", 60.0)
        _play_to(advancer, monotonic, 56.0)

        monotonic.advance(10.0)
        assert advancer.check() is False

        monotonic.advance(0.5)
        assert advancer.check() is True
        assert fired == [AdvanceReason.STALLED_NEAR_END]

    def test_stalled_far_from_the_end_keeps_waiting(self, advancer, monotonic, fired):
        advancer.begin_segment("a", 60.0)
        _play_to(advancer, monotonic, 30.0)

        monotonic.advance(60.0)
        assert advancer.check() is False
        assert fired == []


class TestFallbacks:
    def test_unknown_duration_times_out(self, advancer, monotonic, fired):
        advancer.begin_segment("a", None)
        _play_to(advancer, monotonic, 500.0)

        monotonic.advance(118.0)
        assert advancer.check() is False

        monotonic.advance(1.0)
        assert advancer.check() is True
        assert fired == [AdvanceReason.FALLBACK_TIMEOUT]

    def test_zero_duration_counts_as_unknown(self, advancer):
        advancer.begin_segment("a", 0)
        assert advancer.duration is None

    def test_no_telemetry_at_all(self, advancer, monotonic, fired):
        advancer.begin_segment("a", 60.0)

        monotonic.advance(180.0)
        assert advancer.check() is False

        monotonic.advance(1.0)
        assert advancer.check() is True
        assert fired == [AdvanceReason.NO_TELEMETRY]


class TestSettling:
    def test_untagged_messages_right_after_load_are_dropped(self, advancer, monotonic, fired):
        advancer.begin_segment("b", 60.0)

        advancer.on_position(59.8)
        assert advancer.on_ended() is False
        assert advancer.received_updates == 0
        assert advancer.check() is False
        assert fired == []

    def test_tagged_messages_are_trusted_immediately(self, advancer, fired):
        advancer.begin_segment("b", 60.0)

        advancer.on_position(59.8, tagged=True)
        assert advancer.received_updates == 1
        assert advancer.check() is True
        assert fired == [AdvanceReason.NEAR_END]

    def test_new_segment_resets_the_latch(self, advancer, monotonic, fired):
        advancer.begin_segment("a", 60.0)
        assert advancer.on_ended(tagged=True) is True

        advancer.begin_segment("b", 30.0)
        assert advancer.has_advanced is False
        assert advancer.last_known_position == 0.0
        assert advancer.on_ended(tagged=True) is True
        assert fired == [AdvanceReason.ENDED_SIGNAL, AdvanceReason.ENDED_SIGNAL]


class TestStopped:
    def test_stopped_advancer_ignores_signals(self, advancer, fired):
        advancer.begin_segment("a", 60.0)
        advancer.stop()

        advancer.on_position(59.9, tagged=True)
        assert advancer.on_ended(tagged=True) is False
        assert advancer.check() is False
        assert fired == []

    @pytest.mark.asyncio
    async def test_loop_checks_periodically(self, monotonic, fired):
        policy = WatchPolicy(advance_check_interval=0.01)
        advancer = SequentialAdvancer(policy, on_advance=fired.append, clock=monotonic)
        advancer.begin_segment("a", 60.0)
        advancer.start()
        assert advancer.running

        advancer.on_position(59.9, tagged=True)
        for _ in range(50):
            if fired:
                break
            await asyncio.sleep(0.01)

        assert fired == [AdvanceReason.NEAR_END]
        advancer.stop()
        await asyncio.sleep(0)
        assert not advancer.running
