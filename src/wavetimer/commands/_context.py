"""AppContext: shared Click context for all commands.

Created once by the root CLI group and passed down with
``@click.pass_obj``. Opens the settings store lazily so ``--help`` and
``--version`` never touch the database.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from wavetimer.config.logging import configure_logging
from wavetimer.domain.types import TimerConfig
from wavetimer.infrastructure.settings_store import SettingsStore, SettingsStoreError
from wavetimer.output.formatters import format_result
from wavetimer.services.background import BackgroundOptions, BackgroundService
from wavetimer.services.ui import UiSession

if TYPE_CHECKING:
    from wavetimer.config.settings import WavetimerSettings
    from wavetimer.services.result import ServiceResult


class AppContext:
    """Settings plus lazily created collaborators for one invocation."""

    def __init__(self, settings: WavetimerSettings) -> None:
        self.settings = settings
        self._store: SettingsStore | None = None
        self.store_error: str | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def store(self) -> SettingsStore | None:
        """The settings store, or None if it cannot be opened (see ``store_error``)."""
        if self._store is None and self.store_error is None:
            try:
                self._store = SettingsStore.open(self.settings.store.path)
            except SettingsStoreError as exc:
                self.store_error = str(exc)
        return self._store

    def default_config(self) -> TimerConfig:
        timer = self.settings.timer
        return TimerConfig(duration_seconds=timer.duration_seconds, volume=timer.volume)

    def background_options(
        self,
        *,
        sensor_path: Path | None = None,
        asset: str | None = None,
    ) -> BackgroundOptions:
        s = self.settings
        return BackgroundOptions(
            config=self.default_config(),
            cooldown_seconds=s.timer.cooldown_seconds,
            tick_seconds=s.timer.tick_seconds,
            asset=asset or s.audio.asset,
            sensor_path=sensor_path or s.sensor.path,
            verbose=s.verbose,
            log_json=s.log_json,
        )

    def session(self, service: BackgroundService | None = None) -> UiSession:
        """A UI session bound to *service* (an unstarted one by default)."""
        return UiSession(
            service or BackgroundService(self.background_options()),
            self.store,
            user_key=self.settings.store.user_key,
            defaults=self.default_config(),
        )

    def emit(self, result: ServiceResult) -> None:
        """Print a ServiceResult; exit 1 on failure.

        Success goes to stdout, failures to stderr.
        """
        output = format_result(result, json_output=self.settings.json_output)
        if result.ok:
            click.echo(output)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
            self._store = None
