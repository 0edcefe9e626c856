"""Wave detection from a raw near/far proximity stream.

A wave is the near -> far edge only. Far -> near and repeated values are
absorbed so a hand lingering over the sensor never double-triggers.
"""

from __future__ import annotations


class ProximityDebouncer:
    """One bit of memory: the last ``is_near`` value seen.

    A fresh debouncer has no prior reading, so the very first event can
    never produce a wave.
    """

    def __init__(self) -> None:
        self._previous: bool | None = None

    @property
    def is_near(self) -> bool:
        """Latest reading, ``False`` before any event arrives."""
        return bool(self._previous)

    def observe(self, is_near: bool) -> bool:
        """Record a reading. Returns True exactly on a near -> far edge."""
        was_near = self._previous
        self._previous = is_near
        return was_near is True and not is_near

    def reset(self) -> None:
        """Forget the prior reading (a new sensor subscription started)."""
        self._previous = None
