"""Audio outputs for the alarm.

:class:`MixerAudioOutput` streams the alarm file through ``pygame.mixer.music``,
:class:`NullAudioOutput` only logs. Both satisfy :class:`AudioOutput`.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame  # noqa: E402

logger = logging.getLogger(__name__)


class AudioError(Exception):
    """The alarm sound could not be loaded or played."""


class AudioOutput(Protocol):
    def load_asset(self, asset_id: str) -> None: ...

    def set_volume(self, volume: float) -> None: ...

    def seek_to_start(self) -> None: ...

    def play(self) -> None: ...

    def dispose(self) -> None: ...


class NullAudioOutput:
    """Silent output that records what it was asked to do."""

    def __init__(self) -> None:
        self.volume = 1.0
        self.plays = 0
        self.disposed = False

    def load_asset(self, asset_id: str) -> None:
        logger.debug("No audio device; ignoring asset %s", asset_id)

    def set_volume(self, volume: float) -> None:
        self.volume = volume

    def seek_to_start(self) -> None:
        pass

    def play(self) -> None:
        self.plays += 1
        logger.info("Alarm (silent) at volume %.2f", self.volume)

    def dispose(self) -> None:
        self.disposed = True


class MixerAudioOutput:
    """One alarm file on the pygame music channel.

    The mixer is initialised lazily by :meth:`load_asset` and shut down by
    :meth:`dispose`, so building the output never touches the sound device.
    """

    def __init__(self) -> None:
        self._volume = 1.0
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load_asset(self, asset_id: str) -> None:
        path = Path(asset_id).expanduser()
        if not path.is_file():
            msg = f"Alarm asset not found: {path}"
            raise AudioError(msg)
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init()
            pygame.mixer.music.load(str(path))
        except pygame.error as exc:
            msg = f"Cannot load alarm asset {path}: {exc}"
            raise AudioError(msg) from exc
        self._loaded = True

    def set_volume(self, volume: float) -> None:
        self._volume = min(1.0, max(0.0, volume))
        if self._loaded:
            pygame.mixer.music.set_volume(self._volume)

    def seek_to_start(self) -> None:
        if self._loaded:
            pygame.mixer.music.stop()
            pygame.mixer.music.rewind()

    def play(self) -> None:
        if not self._loaded:
            msg = "No alarm asset loaded"
            raise AudioError(msg)
        try:
            pygame.mixer.music.set_volume(self._volume)
            pygame.mixer.music.play()
        except pygame.error as exc:
            msg = f"Alarm playback failed: {exc}"
            raise AudioError(msg) from exc

    def dispose(self) -> None:
        if not self._loaded:
            return
        self._loaded = False
        pygame.mixer.music.stop()
        pygame.mixer.music.unload()
        pygame.mixer.quit()
