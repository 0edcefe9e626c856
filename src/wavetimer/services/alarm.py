"""Alarm trigger: volume, rewind, play. Never raises."""

from __future__ import annotations

import logging

from wavetimer.infrastructure.audio import AudioOutput

logger = logging.getLogger(__name__)


def trigger_alarm(audio: AudioOutput, volume: float) -> bool:
    """Play the alarm at *volume*. Returns False if playback failed.

    A missing or broken alarm sound is logged and swallowed so the
    countdown can still cool down and rearm.
    """
    try:
        audio.set_volume(volume)
        audio.seek_to_start()
        audio.play()
    except Exception:
        logger.warning("Alarm playback failed", exc_info=True)
        return False
    return True
