"""Countdown engine: remaining-time state and its single tick source.

State machine::

    IDLE --start/wave--> RUNNING --tick(remaining hits 0)--> COMPLETING
      ^                   |  ^                                   |
      |                   wave (reset remaining)                 v
      +------ cooldown elapsed ------------------------------ COOLING_DOWN
                                                                 |
    any state --stop--> STOPPED (terminal)        wave: cancel cooldown, restart

All transitions are expected to run on one serialized event loop; the
engine holds no locks.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

DEFAULT_TICK_SECONDS = 1.0
DEFAULT_COOLDOWN_SECONDS = 3.0


class EngineState(StrEnum):
    """Lifecycle states of a :class:`CountdownEngine`."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETING = "completing"
    COOLING_DOWN = "cooling_down"
    STOPPED = "stopped"


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class TimerSource(Protocol):
    """The two timed suspensions the engine needs from its event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...

    def call_every(self, interval: float, callback: Callable[[], None]) -> Cancellable: ...


@dataclass(frozen=True)
class CountdownState:
    """Read-only view of the engine: ``(remaining_seconds, is_running)``."""

    remaining_seconds: int
    is_running: bool


class CountdownEngine:
    """Owns ``remaining_seconds`` and the periodic tick.

    Parameters:
        timers: Event-loop timer source (real or simulated).
        duration_seconds: Full countdown length, at least 1.
        on_change: Called after every state-affecting transition.
        on_complete: Called once per countdown, while ``COMPLETING``.
        cooldown_seconds: Hold time after the alarm before returning to ``IDLE``.
        tick_seconds: Period of the tick source.
    """

    def __init__(
        self,
        timers: TimerSource,
        *,
        duration_seconds: int,
        on_change: Callable[[], None] | None = None,
        on_complete: Callable[[], None] | None = None,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        tick_seconds: float = DEFAULT_TICK_SECONDS,
    ) -> None:
        if duration_seconds < 1:
            msg = f"duration_seconds must be >= 1, got {duration_seconds}"
            raise ValueError(msg)
        self._timers = timers
        self._duration = duration_seconds
        self._remaining = duration_seconds
        self._state = EngineState.IDLE
        self._on_change = on_change or (lambda: None)
        self._on_complete = on_complete or (lambda: None)
        self._cooldown_seconds = cooldown_seconds
        self._tick_seconds = tick_seconds
        self._tick_handle: Cancellable | None = None
        self._cooldown_handle: Cancellable | None = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def duration_seconds(self) -> int:
        return self._duration

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def is_running(self) -> bool:
        return self._state is EngineState.RUNNING

    @property
    def has_active_sources(self) -> bool:
        """True while a tick or cooldown timer is pending."""
        return self._tick_handle is not None or self._cooldown_handle is not None

    def snapshot(self) -> CountdownState:
        return CountdownState(remaining_seconds=self._remaining, is_running=self.is_running)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Arm the countdown from ``IDLE``. Returns False (no-op) in any other state."""
        if self._state is not EngineState.IDLE:
            return False
        self._remaining = self._duration
        self._state = EngineState.RUNNING
        self._tick_handle = self._timers.call_every(self._tick_seconds, self._tick)
        self._on_change()
        return True

    def wave(self) -> bool:
        """Handle a wave gesture. Returns True if the engine reacted.

        ``IDLE``: starts. ``RUNNING``: restarts from the full duration and
        keeps the existing tick source. ``COOLING_DOWN``: abandons the
        cooldown and starts immediately.
        """
        if self._state is EngineState.IDLE:
            return self.start()
        if self._state is EngineState.RUNNING:
            self._remaining = self._duration
            self._on_change()
            return True
        if self._state is EngineState.COOLING_DOWN:
            self._cancel_cooldown()
            self._state = EngineState.IDLE
            return self.start()
        return False

    def set_duration(self, duration_seconds: int) -> None:
        """Change the countdown length.

        In ``IDLE`` the remaining time follows immediately. While running
        the active countdown keeps its remaining time (clamped so it never
        exceeds the new duration) and the new value applies from the next
        reset.
        """
        if duration_seconds < 1:
            msg = f"duration_seconds must be >= 1, got {duration_seconds}"
            raise ValueError(msg)
        self._duration = duration_seconds
        if self._state is EngineState.IDLE:
            self._remaining = duration_seconds
            self._on_change()
        elif self._state is EngineState.RUNNING and self._remaining > duration_seconds:
            self._remaining = duration_seconds
            self._on_change()

    def stop(self) -> None:
        """Cancel every timer and enter the terminal ``STOPPED`` state. Idempotent."""
        self._cancel_tick()
        self._cancel_cooldown()
        self._state = EngineState.STOPPED

    # ------------------------------------------------------------------
    # Timer callbacks
    # ------------------------------------------------------------------

    def _tick(self) -> None:
        # A tick may already be queued when the source is cancelled.
        if self._state is not EngineState.RUNNING:
            return
        if self._remaining > 0:
            self._remaining -= 1
            self._on_change()
        if self._remaining == 0:
            self._complete()

    def _complete(self) -> None:
        self._state = EngineState.COMPLETING
        self._cancel_tick()
        try:
            self._on_complete()
        finally:
            if self._state is EngineState.COMPLETING:
                self._state = EngineState.COOLING_DOWN
                self._cooldown_handle = self._timers.call_later(
                    self._cooldown_seconds, self._finish_cooldown
                )
        if self._state is EngineState.COOLING_DOWN:
            self._on_change()

    def _finish_cooldown(self) -> None:
        if self._state is not EngineState.COOLING_DOWN:
            return
        self._cooldown_handle = None
        self._state = EngineState.IDLE
        self._remaining = self._duration
        self._on_change()

    def _cancel_tick(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

    def _cancel_cooldown(self) -> None:
        if self._cooldown_handle is not None:
            self._cooldown_handle.cancel()
            self._cooldown_handle = None
