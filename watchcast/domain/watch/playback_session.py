"""Per-viewer playback state, owned by one PlaybackController."""

from dataclasses import dataclass, field
from datetime import datetime

from watchcast.schemas import EventSnapshot, PlaybackMode, Recording


@dataclass
class PlaybackSession:
    """Everything the watch page remembers between refreshes.

    `cursor` indexes `playlist` and is only meaningful in SEQUENTIAL mode. While a
    segment is playing it stays within `0..len(playlist) - 1`; `complete` marks the
    terminal "all videos played" state, with the cursor left on the last entry.
    """

    slug: str
    snapshot: EventSnapshot | None = None
    mode: PlaybackMode | None = None
    playlist: list[Recording] = field(default_factory=list)
    cursor: int = 0
    complete: bool = False
    loaded_asset_id: str | None = None
    last_refresh_at: datetime | None = None
    failed_refreshes: int = 0
    error: str | None = None

    @property
    def current_recording(self) -> Recording | None:
        if self.mode != PlaybackMode.SEQUENTIAL or not self.playlist:
            return None
        if 0 <= self.cursor < len(self.playlist):
            return self.playlist[self.cursor]
        return None
