from datetime import datetime, timedelta, timezone
from typing import Any

from watchcast.schemas import EventSnapshot

PLAYER_ORIGIN = "https://player.test"
NOW = datetime(2026, 10, 17, 18, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Wall clock the test moves by hand."""

    def __init__(self, start: datetime = NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeMonotonic:
    def __init__(self, start: float = 1000.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


def make_recording(
    rec_id: str,
    created_at: datetime,
    duration: float | None = 60.0,
    ready: bool = True,
    **extra: Any,
) -> dict[str, Any]:
    return {
        "id": rec_id,
        "createdAt": created_at.isoformat(),
        "durationSeconds": duration,
        "readyToStream": ready,
        **extra,
    }


def make_snapshot(**fields: Any) -> EventSnapshot:
    data: dict[str, Any] = {
        "title": "Sofia's Quince",
        "status": "scheduled",
        "streamState": "inactive",
        "scheduledAt": (NOW - timedelta(hours=1)).isoformat(),
        "liveInputId": "live_input_1",
        "recordings": [],
    }
    data.update(fields)
    return EventSnapshot.model_validate(data)


class FakeEventsClient:
    """Stands in for EventsApiClient. Serves queued results, repeating the last one."""

    def __init__(self, *results: EventSnapshot | Exception) -> None:
        self.results = list(results)
        self.calls: list[str] = []

    def push(self, result: EventSnapshot | Exception) -> None:
        self.results.append(result)

    async def fetch_event(self, slug: str) -> EventSnapshot:
        self.calls.append(slug)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result
