"""Timer configuration value type and its defaults."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from wavetimer.domain.messages import (
    DURATION_KEY,
    LEGACY_DURATION_KEY,
    MAX_DURATION_SECONDS,
    MIN_DURATION_SECONDS,
    VOLUME_KEY,
    DurationChanged,
    InboundMessage,
    VolumeChanged,
    decode_inbound,
)

DEFAULT_DURATION_SECONDS = 60
DEFAULT_VOLUME = 0.8


class TimerConfig(BaseModel):
    """``(duration_seconds, volume)`` used by the background process.

    Frozen: a change produces a new instance via :meth:`apply`.
    """

    model_config = {"frozen": True}

    duration_seconds: int = Field(
        default=DEFAULT_DURATION_SECONDS,
        ge=MIN_DURATION_SECONDS,
        le=MAX_DURATION_SECONDS,
    )
    volume: float = Field(default=DEFAULT_VOLUME, ge=0.0, le=1.0)

    def apply(self, message: InboundMessage) -> TimerConfig:
        """Return the config with a setting update applied (last value wins)."""
        if isinstance(message, DurationChanged):
            return self.model_copy(update={"duration_seconds": message.duration_seconds})
        if isinstance(message, VolumeChanged):
            return self.model_copy(update={"volume": message.volume})
        return self

    @classmethod
    def from_document(
        cls, document: dict[str, Any], base: TimerConfig | None = None
    ) -> TimerConfig:
        """Build from a stored settings document, ignoring bad or absent fields.

        Fields the document does not validly set keep their value from *base*.
        """
        config = base or cls()
        relevant = {
            k: v for k, v in document.items() if k in (DURATION_KEY, LEGACY_DURATION_KEY, VOLUME_KEY)
        }
        for message in decode_inbound(relevant):
            config = config.apply(message)
        return config

    def to_document(self) -> dict[str, Any]:
        return {DURATION_KEY: self.duration_seconds, VOLUME_KEY: self.volume}
