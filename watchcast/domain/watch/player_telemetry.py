"""Parsing of the embedded player's cross-context property-change messages.

The player posts messages shaped like::

    {"__privateUnstableMessageType": "propertyChange", "property": "currentTime", "value": 12.5}
    {"__privateUnstableMessageType": "propertyChange", "property": "ended", "value": true}

Delivery is asynchronous, unordered and lossy. Anything that is not from the
player origin or does not match the shape is dropped here, so the advance loop
only ever sees well-formed signals.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

import orjson
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError


class PlayerSignalKind(str, Enum):
    POSITION = "position"
    ENDED = "ended"


@dataclass(frozen=True)
class PlayerSignal:
    kind: PlayerSignalKind
    position: float | None = None


class PropertyChangeMessage(BaseModel):
    """Wire shape of a player property-change message."""

    message_type: Literal["propertyChange"] = Field(..., alias="__privateUnstableMessageType")
    prop: Literal["currentTime", "ended"] = Field(..., alias="property")
    value: Any = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _decode(data: Any) -> Any:
    if isinstance(data, (str, bytes, bytearray)):
        try:
            return orjson.loads(data)
        except orjson.JSONDecodeError:
            return None
    return data


def parse_player_message(data: Any) -> PlayerSignal | None:
    """Turn a raw message payload into a signal, or None when it should be ignored."""
    payload = _decode(data)
    if not isinstance(payload, dict):
        return None

    try:
        message = PropertyChangeMessage.model_validate(payload)
    except ValidationError:
        return None

    if message.prop == "ended":
        if message.value is False:
            return None
        return PlayerSignal(PlayerSignalKind.ENDED)

    value = message.value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        logger.debug(f"Ignoring currentTime with non-numeric value: {value!r}")
        return None
    position = float(value)
    if not math.isfinite(position) or position < 0:
        return None
    return PlayerSignal(PlayerSignalKind.POSITION, position=position)
