"""Background timer process: entry point and the UI-side handle.

:func:`run_background` is the child-process entry point. It builds the
controller around a fresh :class:`ControllerState`, runs the serial
scheduler on the main thread, and always tears down on the way out.

:class:`BackgroundService` lives in the UI process and brackets the
child's lifetime (start-service / stop-service).
"""

from __future__ import annotations

import logging
import multiprocessing
import threading
from functools import partial
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from wavetimer.config.logging import configure_logging
from wavetimer.domain.messages import ServiceCommand, encode
from wavetimer.domain.types import TimerConfig
from wavetimer.infrastructure.audio import AudioOutput, MixerAudioOutput, NullAudioOutput
from wavetimer.infrastructure.channel import ChannelEnd, create_channel
from wavetimer.infrastructure.scheduler import SerialScheduler
from wavetimer.infrastructure.sensor import FileSensorSource, NullSensorSource, SensorSource
from wavetimer.plugins.builtins.notification import NotificationPlugin
from wavetimer.plugins.manager import PluginManager
from wavetimer.services.controller import BackgroundTaskController, ControllerState

logger = logging.getLogger(__name__)

RECEIVE_POLL_SECONDS = 0.25


class BackgroundOptions(BaseModel):
    """Everything the child process needs, picklable across a spawn."""

    model_config = {"frozen": True}

    config: TimerConfig = TimerConfig()
    cooldown_seconds: float = 3.0
    tick_seconds: float = 1.0
    asset: str | None = None
    sensor_path: Path | None = None
    verbose: bool = False
    log_json: bool = False
    load_plugins: bool = True


def build_audio(options: BackgroundOptions) -> AudioOutput:
    if options.asset:
        return MixerAudioOutput()
    return NullAudioOutput()


def build_sensor(options: BackgroundOptions) -> SensorSource:
    if options.sensor_path is not None:
        return FileSensorSource(options.sensor_path.expanduser())
    return NullSensorSource()


def build_plugins(options: BackgroundOptions) -> PluginManager:
    plugins = PluginManager()
    plugins.register_plugin(NotificationPlugin(), name="notification")
    if options.load_plugins:
        try:
            plugins.discover_and_load()
        except Exception:
            logger.warning("Plugin discovery failed", exc_info=True)
    return plugins


def run_background(options: BackgroundOptions, channel: ChannelEnd) -> None:
    """Child-process entry point. Returns after a stop command or a fatal error."""
    configure_logging(
        verbose=options.verbose,
        log_json=options.log_json,
        process_name="background",
    )
    scheduler = SerialScheduler()
    state = ControllerState(config=options.config)
    controller = BackgroundTaskController(
        state,
        scheduler=scheduler,
        send=channel.send,
        audio=build_audio(options),
        plugins=build_plugins(options),
        asset=options.asset,
        cooldown_seconds=options.cooldown_seconds,
        tick_seconds=options.tick_seconds,
        on_stop_requested=scheduler.stop,
    )

    def on_fatal(exc: Exception) -> None:
        logger.error("Fatal error in background loop: %s", exc)
        scheduler.stop()

    scheduler.on_error = on_fatal
    reader = threading.Thread(
        target=_forward_inbound,
        args=(channel, scheduler, controller),
        name="wavetimer-inbound",
        daemon=True,
    )
    logger.info("Background timer starting (duration %ss)", options.config.duration_seconds)
    try:
        controller.start(build_sensor(options))
        reader.start()
        scheduler.run_forever()
    finally:
        scheduler.stop()
        controller.teardown()
        channel.close()
        logger.info("Background timer stopped")


def _forward_inbound(
    channel: ChannelEnd,
    scheduler: SerialScheduler,
    controller: BackgroundTaskController,
) -> None:
    """Move UI payloads onto the loop thread until the loop stops."""
    while not scheduler.stopped:
        payload = channel.receive(timeout=RECEIVE_POLL_SECONDS)
        if payload is None:
            if channel.closed:
                return
            continue
        scheduler.post(partial(controller.handle_payload, payload))


class BackgroundService:
    """UI-side handle on the background process.

    ``start()`` and ``stop()`` are both idempotent. While no process is
    running, ``send()`` drops messages and ``receive()`` returns None.
    """

    def __init__(
        self,
        options: BackgroundOptions,
        *,
        start_method: str = "spawn",
        join_timeout: float = 5.0,
    ) -> None:
        self._options = options
        self._ctx = multiprocessing.get_context(start_method)
        self._join_timeout = join_timeout
        self._process: multiprocessing.process.BaseProcess | None = None
        self._channel: ChannelEnd | None = None

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.is_alive()

    def start(self, config: TimerConfig | None = None) -> bool:
        """Launch the background process. Returns False if one is already running.

        *config* replaces the configured timer settings for this run, so the
        process starts from the values the UI currently shows.
        """
        if self.is_running:
            return False
        if config is not None:
            self._options = self._options.model_copy(update={"config": config})
        ui_end, background_end = create_channel(self._ctx.Queue)
        process = self._ctx.Process(
            target=run_background,
            args=(self._options, background_end),
            name="wavetimer-background",
            daemon=True,
        )
        process.start()
        self._process = process
        self._channel = ui_end
        logger.debug("Background process started (pid %s)", process.pid)
        return True

    def stop(self) -> bool:
        """Ask the process to stop, escalating to terminate. Returns False if none ran."""
        process, channel = self._process, self._channel
        if process is None or channel is None:
            return False
        channel.send(encode(ServiceCommand(command="stop")))
        process.join(self._join_timeout)
        if process.is_alive():
            logger.warning("Background process did not stop in time; terminating")
            process.terminate()
            process.join(self._join_timeout)
        channel.close()
        self._process = None
        self._channel = None
        return True

    def send(self, payload: dict[str, Any]) -> bool:
        if self._channel is None:
            return False
        return self._channel.send(payload)

    def receive(self, timeout: float | None = None) -> dict[str, Any] | None:
        channel = self._channel
        if channel is None:
            return None
        return channel.receive(timeout)
