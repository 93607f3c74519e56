"""UI hooks exposed to the page shell.

Every setter is an idempotent set: assigning the value already shown does nothing,
so re-rendering the same mode never reloads the player or flickers text. The
page shell subclasses `WatchView` and overrides `_render` to push changes out.
"""

from typing import Any

from loguru import logger
from pydantic import BaseModel, Field

from watchcast.schemas import PlaybackMode

ERROR_SECTION = "error"


class PlaylistItem(BaseModel):
    index: int
    recording_id: str
    title: str
    duration_text: str | None = None
    active: bool = False


class ViewState(BaseModel):
    """Serializable copy of what the page currently shows."""

    section: str | None = None
    title: str = ""
    subtitle: str | None = None
    banner: str | None = None
    overlay: str | None = None
    player_src: str | None = None
    countdown: dict[str, str] | None = None
    playlist: list[PlaylistItem] = Field(default_factory=list)
    error: str | None = None


class WatchView:
    """In-memory view model with change tracking."""

    def __init__(self) -> None:
        self._state = ViewState()
        self.player_src_assignments = 0

    def _set(self, field: str, value: Any) -> bool:
        if getattr(self._state, field) == value:
            return False
        setattr(self._state, field, value)
        self._render(field, value)
        return True

    def _render(self, field: str, value: Any) -> None:
        logger.debug(f"view {field} -> {value!r}")

    def set_section(self, mode: PlaybackMode | str | None) -> bool:
        return self._set("section", str(mode) if mode is not None else None)

    def set_title(self, title: str) -> bool:
        return self._set("title", title)

    def set_subtitle(self, subtitle: str | None) -> bool:
        return self._set("subtitle", subtitle)

    def set_banner(self, text: str | None) -> bool:
        return self._set("banner", text)

    def set_overlay(self, text: str | None) -> bool:
        return self._set("overlay", text)

    def set_player_src(self, src: str | None) -> bool:
        """Point the player at `src`; None removes the player."""
        changed = self._set("player_src", src)
        if changed and src is not None:
            self.player_src_assignments += 1
        return changed

    def set_countdown(self, parts: dict[str, str] | None) -> bool:
        return self._set("countdown", parts)

    def set_playlist(self, items: list[PlaylistItem]) -> bool:
        return self._set("playlist", items)

    def show_error(self, message: str) -> None:
        self.set_player_src(None)
        self.set_banner(None)
        self.set_overlay(None)
        self.set_countdown(None)
        self._set("error", message)
        self.set_section(ERROR_SECTION)

    @property
    def state(self) -> ViewState:
        return self._state.model_copy(deep=True)

    @property
    def player_src(self) -> str | None:
        return self._state.player_src

    @property
    def banner(self) -> str | None:
        return self._state.banner

    @property
    def overlay(self) -> str | None:
        return self._state.overlay

    @property
    def section(self) -> str | None:
        return self._state.section
