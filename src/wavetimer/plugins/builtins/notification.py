"""Built-in notification plugin: keeps and logs the service status line.

Stands in for the OS notification of a foreground service. Only changes
are logged, so a countdown logs once per second and an idle timer is quiet.
"""

from __future__ import annotations

import logging

import pluggy

hookimpl = pluggy.HookimplMarker("wavetimer")

logger = logging.getLogger(__name__)


class NotificationPlugin:
    """Latest notification text and hint, cleared on teardown."""

    def __init__(self) -> None:
        self.text: str | None = None
        self.hint: str | None = None
        self.alarms = 0

    @hookimpl
    def timer_status(
        self,
        text: str,
        hint: str,
        remaining_seconds: int,
        is_running: bool,
        is_near: bool,
    ) -> None:
        if (text, hint) == (self.text, self.hint):
            return
        self.text, self.hint = text, hint
        logger.info("%s (%s)", text, hint)

    @hookimpl
    def timer_alarm(self, volume: float) -> None:
        self.alarms += 1
        logger.info("Countdown finished; alarm at volume %.2f", volume)

    @hookimpl
    def timer_service_cleared(self) -> None:
        self.text = None
        self.hint = None
