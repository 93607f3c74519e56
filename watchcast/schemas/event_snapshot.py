"""Event snapshot models returned by `GET {api_base}/events/{slug}`.

The events API has shipped both camelCase and snake_case field names, so every
field accepts either spelling. Parsing is permissive: absent collections become
empty, unknown enum values fall back to the most conservative member.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from watchcast.shared.clock import ensure_utc

from .event_state import EventStatus, StreamState


class Recording(BaseModel):
    """A finalized video segment produced from an ingest session."""

    id: str = Field(
        ...,
        validation_alias=AliasChoices("id", "uid"),
        description="Opaque playback identifier",
    )
    created_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "created_at", "created"),
    )
    duration_seconds: float | None = Field(
        default=None,
        validation_alias=AliasChoices("durationSeconds", "duration_seconds", "duration"),
        description="Segment length; absent or zero when the platform has no metadata yet",
    )
    ready_to_stream: bool = Field(
        default=False,
        validation_alias=AliasChoices("readyToStream", "ready_to_stream"),
    )
    title: str | None = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("created_at", mode="after")
    @classmethod
    def normalize_created_at(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None

    @field_validator("duration_seconds", mode="before")
    @classmethod
    def normalize_duration(cls, v: Any) -> float | None:
        """Zero, negative or unparsable durations mean "unknown"."""
        if v is None or isinstance(v, bool):
            return None
        try:
            value = float(v)
        except (TypeError, ValueError):
            return None
        return value if value > 0 else None

    @property
    def has_duration(self) -> bool:
        return self.duration_seconds is not None


class EventSnapshot(BaseModel):
    """Immutable view of the event record at one fetch."""

    title: str = ""
    status: EventStatus = EventStatus.SCHEDULED
    stream_state: StreamState = Field(
        default=StreamState.INACTIVE,
        validation_alias=AliasChoices("streamState", "stream_state"),
    )
    scheduled_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "scheduledAt", "scheduled_at", "scheduledDate", "scheduled_date"
        ),
    )
    live_input_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("liveInputId", "live_input_id", "liveinputid"),
    )
    last_stream_activity_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("lastStreamActivityAt", "last_stream_activity_at"),
    )
    recordings: tuple[Recording, ...] = Field(default_factory=tuple)
    merged_video_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("mergedVideoId", "merged_video_id"),
    )
    limit_exceeded: bool = Field(
        default=False,
        validation_alias=AliasChoices("limitExceeded", "limit_exceeded"),
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def derive_limit_exceeded(cls, data: Any) -> Any:
        """Derive the viewer-hour flag from usage counters when it is not sent directly."""
        if not isinstance(data, dict):
            return data
        if any(key in data for key in ("limitExceeded", "limit_exceeded")):
            return data

        derived = False
        if data.get("limitWarning") == "limit-exceeded":
            derived = True
        used = data.get("viewer_hours_used", data.get("viewerHoursUsed"))
        limit = data.get("viewer_hour_limit", data.get("viewerHourLimit"))
        try:
            if used is not None and limit and float(used) >= float(limit) > 0:
                derived = True
        except (TypeError, ValueError):
            pass

        if derived:
            data = {**data, "limit_exceeded": True}
        return data

    @field_validator("status", mode="before")
    @classmethod
    def permissive_status(cls, v: Any) -> Any:
        if v is None:
            return EventStatus.SCHEDULED
        try:
            return EventStatus(str(v).strip().lower())
        except ValueError:
            logger.warning(f"Unknown event status {v!r}, treating as scheduled")
            return EventStatus.SCHEDULED

    @field_validator("stream_state", mode="before")
    @classmethod
    def permissive_stream_state(cls, v: Any) -> Any:
        if v is None:
            return StreamState.INACTIVE
        try:
            return StreamState(str(v).strip().lower())
        except ValueError:
            logger.warning(f"Unknown stream state {v!r}, treating as inactive")
            return StreamState.INACTIVE

    @field_validator("recordings", mode="before")
    @classmethod
    def permissive_recordings(cls, v: Any) -> Any:
        """Missing recordings are empty; entries without an identifier are dropped."""
        if not v:
            return ()
        if not isinstance(v, (list, tuple)):
            logger.warning(f"Ignoring non-list recordings payload: {type(v).__name__}")
            return ()
        kept = []
        for item in v:
            if isinstance(item, Recording):
                kept.append(item)
            elif isinstance(item, dict) and (item.get("id") or item.get("uid")):
                kept.append(item)
            else:
                logger.warning(f"Dropping recording without an id: {item!r}")
        return tuple(kept)

    @field_validator("live_input_id", "merged_video_id", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("scheduled_at", "last_stream_activity_at", mode="after")
    @classmethod
    def normalize_timestamps(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None

    @field_validator("limit_exceeded", mode="before")
    @classmethod
    def null_limit_is_false(cls, v: Any) -> Any:
        return False if v is None else v


__all__ = ["EventSnapshot", "Recording"]
