"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults live here, ``wavetimer.toml`` only holds
overrides. Timer duration and volume set here are the fallbacks used when
the settings store has no value for the user.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from wavetimer.domain.countdown import DEFAULT_COOLDOWN_SECONDS, DEFAULT_TICK_SECONDS
from wavetimer.domain.messages import MAX_DURATION_SECONDS, MIN_DURATION_SECONDS
from wavetimer.domain.types import DEFAULT_DURATION_SECONDS, DEFAULT_VOLUME


def _default_store_path() -> Path:
    return Path.home() / ".wavetimer" / "settings.db"


class TimerSection(BaseModel):
    """[timer] section."""

    model_config = {"frozen": True}

    duration_seconds: int = Field(
        default=DEFAULT_DURATION_SECONDS,
        ge=MIN_DURATION_SECONDS,
        le=MAX_DURATION_SECONDS,
    )
    volume: float = Field(default=DEFAULT_VOLUME, ge=0.0, le=1.0)
    cooldown_seconds: float = Field(default=DEFAULT_COOLDOWN_SECONDS, ge=0.0)
    tick_seconds: float = Field(default=DEFAULT_TICK_SECONDS, gt=0.0)


class AudioSection(BaseModel):
    """[audio] section."""

    model_config = {"frozen": True}

    # Sound file played through pygame.mixer; None = silent alarm
    asset: str | None = None


class SensorSection(BaseModel):
    """[sensor] section."""

    model_config = {"frozen": True}

    path: Path | None = None


class StoreSection(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    path: Path = Field(default_factory=_default_store_path)
    user_key: str = "default"
