"""Tests for the background process entry point and its UI-side handle."""

from __future__ import annotations

import queue
import threading
import time
from pathlib import Path

import pytest

from wavetimer.domain.types import TimerConfig
from wavetimer.infrastructure.audio import MixerAudioOutput, NullAudioOutput
from wavetimer.infrastructure.channel import ChannelEnd, create_channel
from wavetimer.infrastructure.sensor import FileSensorSource, NullSensorSource
from wavetimer.services.background import (
    BackgroundOptions,
    BackgroundService,
    build_audio,
    build_plugins,
    build_sensor,
    run_background,
)


def collect(end: ChannelEnd, count: int, timeout: float = 5.0) -> list[dict]:
    received: list[dict] = []
    deadline = time.monotonic() + timeout
    while len(received) < count and time.monotonic() < deadline:
        payload = end.receive(timeout=0.1)
        if payload is not None:
            received.append(payload)
    return received


def run_in_thread(options: BackgroundOptions, end: ChannelEnd) -> threading.Thread:
    runner = threading.Thread(target=run_background, args=(options, end), daemon=True)
    runner.start()
    return runner


class TestBuilders:
    def test_audio_without_asset_is_silent(self) -> None:
        assert isinstance(build_audio(BackgroundOptions()), NullAudioOutput)

    def test_audio_with_asset(self) -> None:
        assert isinstance(build_audio(BackgroundOptions(asset="a.wav")), MixerAudioOutput)

    def test_sensor_defaults_to_null(self) -> None:
        assert isinstance(build_sensor(BackgroundOptions()), NullSensorSource)

    def test_sensor_from_path(self, tmp_path: Path) -> None:
        sensor = build_sensor(BackgroundOptions(sensor_path=tmp_path / "fifo"))
        assert isinstance(sensor, FileSensorSource)

    def test_notification_plugin_always_registered(self) -> None:
        plugins = build_plugins(BackgroundOptions(load_plugins=False))
        assert plugins.list_plugin_names() == ["notification"]


class TestRunBackground:
    def test_publishes_initial_state_and_stops_on_command(self) -> None:
        ui, bg = create_channel(queue.Queue)
        runner = run_in_thread(
            BackgroundOptions(config=TimerConfig(duration_seconds=5), load_plugins=False), bg
        )
        first = collect(ui, 1)
        assert first == [{"remainingTime": 5, "isTimerRunning": False, "isNear": False}]
        ui.send({"command": "stop"})
        runner.join(5.0)
        assert not runner.is_alive()
        assert bg.closed

    def test_applies_settings_from_ui(self) -> None:
        ui, bg = create_channel(queue.Queue)
        runner = run_in_thread(BackgroundOptions(load_plugins=False), bg)
        collect(ui, 1)
        ui.send({"durationSeconds": 9})
        assert collect(ui, 1) == [{"remainingTime": 9, "isTimerRunning": False, "isNear": False}]
        ui.send({"command": "stop"})
        runner.join(5.0)
        assert not runner.is_alive()

    def test_sensor_file_drives_countdown(self, tmp_path: Path) -> None:
        sensor = tmp_path / "sensor.txt"
        sensor.write_text("near\nfar\n", encoding="utf-8")
        ui, bg = create_channel(queue.Queue)
        options = BackgroundOptions(
            config=TimerConfig(duration_seconds=2),
            sensor_path=sensor,
            tick_seconds=0.05,
            cooldown_seconds=0.05,
            load_plugins=False,
        )
        runner = run_in_thread(options, bg)
        seen = collect(ui, 20, timeout=3.0)
        ui.send({"command": "stop"})
        runner.join(5.0)
        assert {"remainingTime": 2, "isTimerRunning": True, "isNear": False} in seen
        assert {"remainingTime": 0, "isTimerRunning": False, "isNear": False} in seen


class TestBackgroundService:
    def test_idle_handle(self) -> None:
        service = BackgroundService(BackgroundOptions(load_plugins=False))
        assert not service.is_running
        assert service.stop() is False
        assert service.send({"volume": 0.5}) is False
        assert service.receive(timeout=0.01) is None

    def test_spawned_process_round_trip(self) -> None:
        service = BackgroundService(
            BackgroundOptions(config=TimerConfig(duration_seconds=7), load_plugins=False)
        )
        assert service.start() is True
        try:
            assert service.start() is False
            snapshot = None
            deadline = time.monotonic() + 30
            while snapshot is None and time.monotonic() < deadline:
                snapshot = service.receive(timeout=0.5)
            assert snapshot == {"remainingTime": 7, "isTimerRunning": False, "isNear": False}
        finally:
            assert service.stop() is True
        assert not service.is_running
