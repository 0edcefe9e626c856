"""Pluggy hook specifications for the background service surface.

Hooks run synchronously on the background event loop, so implementations
must return quickly.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("wavetimer")


class WavetimerHookSpec:
    """Hook specifications for the wavetimer plugin system."""

    @hookspec
    def timer_status(
        self,
        text: str,
        hint: str,
        remaining_seconds: int,
        is_running: bool,
        is_near: bool,
    ) -> None:
        """Called after every snapshot with the status line and a gesture hint."""

    @hookspec
    def timer_alarm(self, volume: float) -> None:
        """Called when a countdown completes, after the alarm was triggered."""

    @hookspec
    def timer_service_cleared(self) -> None:
        """Called once during teardown; drop any externally visible state."""
