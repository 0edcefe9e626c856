"""Closed set of messages crossing the UI <-> background boundary.

UI -> background: :class:`DurationChanged`, :class:`VolumeChanged`,
:class:`ServiceCommand`. Background -> UI: :class:`Snapshot`.

The wire form is a flat dict (one key per setting update, three keys per
snapshot). Decoding is field-by-field: unknown keys, wrong types and
out-of-range values are dropped, never raised.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

MIN_DURATION_SECONDS = 1
MAX_DURATION_SECONDS = 24 * 60 * 60

# --- Wire keys ---

DURATION_KEY = "durationSeconds"
LEGACY_DURATION_KEY = "timerDuration"
VOLUME_KEY = "volume"
COMMAND_KEY = "command"

REMAINING_KEY = "remainingTime"
RUNNING_KEY = "isTimerRunning"
NEAR_KEY = "isNear"

SETTING_KEYS = frozenset({DURATION_KEY, VOLUME_KEY})


class _Message(BaseModel):
    model_config = {"frozen": True, "strict": True}


class DurationChanged(_Message):
    """New countdown length chosen in the UI."""

    kind: Literal["duration_changed"] = "duration_changed"
    duration_seconds: int = Field(ge=MIN_DURATION_SECONDS, le=MAX_DURATION_SECONDS)


class VolumeChanged(_Message):
    """New alarm volume chosen in the UI."""

    kind: Literal["volume_changed"] = "volume_changed"
    volume: float = Field(ge=0.0, le=1.0)


class ServiceCommand(_Message):
    """Lifecycle command: ``start`` arms the countdown, ``stop`` ends the service."""

    kind: Literal["service_command"] = "service_command"
    command: Literal["start", "stop"]


class Snapshot(_Message):
    """Full, self-consistent timer state sent to the UI. Never partial."""

    kind: Literal["snapshot"] = "snapshot"
    remaining_seconds: int = Field(ge=0)
    is_running: bool
    is_near: bool


InboundMessage = DurationChanged | VolumeChanged | ServiceCommand
Message = InboundMessage | Snapshot


# ----------------------------------------------------------------------
# Encoding
# ----------------------------------------------------------------------


def encode(message: Message) -> dict[str, Any]:
    """Return the wire dict for *message*."""
    match message:
        case DurationChanged(duration_seconds=seconds):
            return {DURATION_KEY: seconds}
        case VolumeChanged(volume=volume):
            return {VOLUME_KEY: volume}
        case ServiceCommand(command=command):
            return {COMMAND_KEY: command}
        case Snapshot():
            return {
                REMAINING_KEY: message.remaining_seconds,
                RUNNING_KEY: message.is_running,
                NEAR_KEY: message.is_near,
            }
    msg = f"Unsupported message type: {type(message).__name__}"
    raise TypeError(msg)


def setting_update(key: str, value: Any) -> DurationChanged | VolumeChanged:
    """Build a validated setting update from a UI ``(key, value)`` pair.

    Raises:
        ValueError: Unknown key, or a value of the wrong type or range.
    """
    message = _decode_field(key, value)
    if not isinstance(message, (DurationChanged, VolumeChanged)):
        msg = f"Invalid value for setting {key!r}: {value!r}"
        raise ValueError(msg)
    return message


# ----------------------------------------------------------------------
# Decoding
# ----------------------------------------------------------------------


def decode_inbound(payload: object) -> list[InboundMessage]:
    """Decode a UI -> background payload, keeping only valid fields."""
    if not isinstance(payload, Mapping):
        logger.debug("Ignoring non-mapping inbound payload: %r", type(payload).__name__)
        return []
    messages: list[InboundMessage] = []
    for key, value in payload.items():
        message = _decode_field(key, value)
        if message is None:
            logger.debug("Ignoring inbound field %r=%r", key, value)
            continue
        messages.append(message)
    return messages


def _decode_field(key: object, value: object) -> InboundMessage | None:
    try:
        if key in (DURATION_KEY, LEGACY_DURATION_KEY):
            return DurationChanged.model_validate({"duration_seconds": value})
        if key == VOLUME_KEY:
            return VolumeChanged.model_validate({"volume": value})
        if key == COMMAND_KEY:
            return ServiceCommand.model_validate({"command": value})
    except ValidationError:
        return None
    return None


def decode_snapshot(payload: object, previous: Snapshot) -> Snapshot | None:
    """Overlay the known fields of *payload* on *previous*.

    Missing or mistyped fields keep the previous value. Returns None when
    the payload carries nothing usable.
    """
    if not isinstance(payload, Mapping):
        return None
    fields: dict[str, Any] = {}
    remaining = payload.get(REMAINING_KEY)
    if isinstance(remaining, int) and not isinstance(remaining, bool) and remaining >= 0:
        fields["remaining_seconds"] = remaining
    for wire_key, field_name in ((RUNNING_KEY, "is_running"), (NEAR_KEY, "is_near")):
        value = payload.get(wire_key)
        if isinstance(value, bool):
            fields[field_name] = value
    if not fields:
        return None
    return previous.model_copy(update=fields)
