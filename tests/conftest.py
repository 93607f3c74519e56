import pytest

from tests.helpers import PLAYER_ORIGIN, FakeClock, FakeMonotonic
from watchcast.domain.watch import WatchPolicy
from watchcast.services.player import PlayerEmbed


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def policy() -> WatchPolicy:
    return WatchPolicy()


@pytest.fixture
def embed() -> PlayerEmbed:
    return PlayerEmbed(
        live_template="https://player.test/live/{asset_id}",
        recording_template="https://player.test/vod/{asset_id}",
        origin=PLAYER_ORIGIN,
    )
