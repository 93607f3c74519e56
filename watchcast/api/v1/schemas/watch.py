from typing import Any

from pydantic import BaseModel, Field

from watchcast.domain.watch import ViewState
from watchcast.schemas import PlaybackMode


class WatchSessionOut(BaseModel):
    """Current state of a watch session."""

    watch_session_id: str
    slug: str
    mode: PlaybackMode | None = None
    cursor: int | None = Field(None, description="Playlist index, set only in sequential replay")
    current_recording_id: str | None = Field(None, description="Recording at the cursor, set only in sequential replay")
    complete: bool = False
    view: ViewState


class PlayerMessageIn(BaseModel):
    """One message relayed from the embedded player by the page shell."""

    origin: str | None = Field(None, description="Origin of the posting frame")
    data: Any = Field(None, description="Raw message payload, object or JSON string")
    asset_id: str | None = Field(None, description="Asset the message refers to, when the shell knows it")


class PlayerMessageOut(BaseModel):
    accepted: bool


class SelectSegmentIn(BaseModel):
    index: int = Field(..., ge=0, description="Playlist index to jump to")
