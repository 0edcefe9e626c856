"""Shared pytest fixtures and test helpers for wavetimer tests."""

from __future__ import annotations

import logging
import time
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from wavetimer.domain.messages import Snapshot, decode_snapshot
from wavetimer.domain.types import TimerConfig
from wavetimer.infrastructure.audio import NullAudioOutput
from wavetimer.infrastructure.scheduler import ManualScheduler
from wavetimer.infrastructure.settings_store import SettingsStore
from wavetimer.plugins.builtins.notification import NotificationPlugin
from wavetimer.plugins.manager import PluginManager
from wavetimer.services.controller import BackgroundTaskController, ControllerState


class SentLog:
    """Collects payloads a controller sends towards the UI."""

    def __init__(self, accept: bool = True) -> None:
        self.payloads: list[dict[str, Any]] = []
        self.accept = accept

    def __call__(self, payload: dict[str, Any]) -> bool:
        self.payloads.append(payload)
        return self.accept

    @property
    def snapshots(self) -> list[Snapshot]:
        blank = Snapshot(remaining_seconds=0, is_running=False, is_near=False)
        decoded = (decode_snapshot(p, blank) for p in self.payloads)
        return [s for s in decoded if s is not None]

    @property
    def last(self) -> Snapshot:
        return self.snapshots[-1]

    def clear(self) -> None:
        self.payloads.clear()


class FailingAudio(NullAudioOutput):
    """Audio device whose playback always fails."""

    def play(self) -> None:
        msg = "asset missing"
        raise RuntimeError(msg)


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def sent() -> SentLog:
    return SentLog()


@pytest.fixture
def audio() -> NullAudioOutput:
    return NullAudioOutput()


@pytest.fixture
def notifications() -> NotificationPlugin:
    return NotificationPlugin()


@pytest.fixture
def plugins(notifications: NotificationPlugin) -> PluginManager:
    pm = PluginManager()
    pm.register_plugin(notifications, name="notification")
    return pm


def make_controller(
    scheduler: ManualScheduler,
    sent: SentLog,
    audio: NullAudioOutput,
    plugins: PluginManager,
    *,
    duration: int = 5,
    volume: float = 0.8,
    cooldown: float = 3.0,
) -> BackgroundTaskController:
    state = ControllerState(config=TimerConfig(duration_seconds=duration, volume=volume))
    return BackgroundTaskController(
        state,
        scheduler=scheduler,
        send=sent,
        audio=audio,
        plugins=plugins,
        cooldown_seconds=cooldown,
        tick_seconds=1.0,
    )


@pytest.fixture
def controller(
    scheduler: ManualScheduler,
    sent: SentLog,
    audio: NullAudioOutput,
    plugins: PluginManager,
) -> BackgroundTaskController:
    """Controller with duration=5s, cooldown=3s, not yet started."""
    return make_controller(scheduler, sent, audio, plugins)


@pytest.fixture
def store(tmp_path: Path) -> Generator[SettingsStore]:
    s = SettingsStore.open(tmp_path / "settings.db")
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point the CLI at a temp store and keep real config files out of reach."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("WAVETIMER_CONFIG", raising=False)
    monkeypatch.setenv("WAVETIMER_STORE__PATH", str(tmp_path / "store" / "settings.db"))


def wait_until(predicate: Any, scheduler: ManualScheduler, timeout: float = 2.0) -> None:
    """Drain posted callbacks until *predicate()* holds (for reader threads)."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        scheduler.run_pending()
        if predicate():
            return
        time.sleep(0.01)
    raise AssertionError("condition not reached in time")


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Undo configure_logging() calls made by commands under test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    app = logging.getLogger("wavetimer")
    app_level = app.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    app.setLevel(app_level)


class FakeService:
    """In-memory stand-in for BackgroundService."""

    instances: list[FakeService] = []

    def __init__(self, options: Any = None) -> None:
        self.options = options
        self.running = False
        self.sent: list[dict[str, Any]] = []
        self.inbox: list[dict[str, Any]] = []
        self.started_with: TimerConfig | None = None
        FakeService.instances.append(self)

    @property
    def is_running(self) -> bool:
        return self.running

    def start(self, config: TimerConfig | None = None) -> bool:
        if self.running:
            return False
        self.running = True
        self.started_with = config
        return True

    def stop(self) -> bool:
        was_running, self.running = self.running, False
        return was_running

    def send(self, payload: dict[str, Any]) -> bool:
        if not self.running:
            return False
        self.sent.append(payload)
        return True

    def receive(self, timeout: float | None = None) -> dict[str, Any] | None:
        if self.inbox:
            return self.inbox.pop(0)
        time.sleep(min(timeout or 0.0, 0.01))
        return None
