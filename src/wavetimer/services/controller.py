"""Background task controller: wires sensor, countdown, alarm and channel.

Every method except :meth:`BackgroundTaskController.start` must run on the
scheduler's loop thread. The sensor reader thread only posts readings onto
the loop, so a tick can never interleave with a wave-triggered reset.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial
from typing import Any

from wavetimer.domain.countdown import CountdownEngine, EngineState
from wavetimer.domain.messages import (
    DurationChanged,
    InboundMessage,
    ServiceCommand,
    Snapshot,
    VolumeChanged,
    decode_inbound,
    encode,
)
from wavetimer.domain.proximity import ProximityDebouncer
from wavetimer.domain.timefmt import status_hint, status_text
from wavetimer.domain.types import TimerConfig
from wavetimer.infrastructure.audio import AudioError, AudioOutput
from wavetimer.infrastructure.scheduler import TimerLoop
from wavetimer.infrastructure.sensor import SensorSource
from wavetimer.plugins.manager import PluginManager
from wavetimer.services.alarm import trigger_alarm

logger = logging.getLogger(__name__)

SendFn = Callable[[dict[str, Any]], bool]
SENSOR_JOIN_SECONDS = 1.0


@dataclass
class ControllerState:
    """Everything the background process owns, in one place.

    Created when the background process starts and dropped when it ends;
    nothing here is persisted.
    """

    config: TimerConfig
    debouncer: ProximityDebouncer = field(default_factory=ProximityDebouncer)
    engine: CountdownEngine | None = None
    sensor_active: bool = False
    torn_down: bool = False


class BackgroundTaskController:
    """Orchestrates one background timer session.

    Parameters:
        state: Owned controller state; ``state.engine`` is created here.
        scheduler: Serialized event loop providing ticks and cooldowns.
        send: Delivers a wire payload to the UI; may drop it.
        audio: Alarm output device.
        plugins: Service-surface hooks (notification text, alarm, cleanup).
        asset: Alarm sound to load on start, or None for no sound.
        cooldown_seconds: Post-alarm hold before the timer rearms.
        tick_seconds: Countdown tick period.
        on_stop_requested: Called when the UI sends the ``stop`` command.
    """

    def __init__(
        self,
        state: ControllerState,
        *,
        scheduler: TimerLoop,
        send: SendFn,
        audio: AudioOutput,
        plugins: PluginManager,
        asset: str | None = None,
        cooldown_seconds: float = 3.0,
        tick_seconds: float = 1.0,
        on_stop_requested: Callable[[], None] | None = None,
    ) -> None:
        self.state = state
        self._scheduler = scheduler
        self._send = send
        self._audio = audio
        self._plugins = plugins
        self._asset = asset
        self._on_stop_requested = on_stop_requested
        self._sensor_cancelled = threading.Event()
        self._sensor_source: SensorSource | None = None
        self._sensor_thread: threading.Thread | None = None
        state.engine = CountdownEngine(
            scheduler,
            duration_seconds=state.config.duration_seconds,
            on_change=self.emit_snapshot,
            on_complete=self._on_complete,
            cooldown_seconds=cooldown_seconds,
            tick_seconds=tick_seconds,
        )

    @property
    def engine(self) -> CountdownEngine:
        assert self.state.engine is not None
        return self.state.engine

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, sensor: SensorSource) -> None:
        """Load the alarm, subscribe to the sensor, publish the initial state."""
        if self._asset:
            try:
                self._audio.load_asset(self._asset)
            except AudioError as exc:
                logger.warning("Alarm sound unavailable: %s", exc)
        self._sensor_source = sensor
        self.state.debouncer.reset()
        self.state.sensor_active = True
        self._sensor_thread = threading.Thread(
            target=self._read_sensor,
            args=(sensor,),
            name="wavetimer-sensor",
            daemon=True,
        )
        self._sensor_thread.start()
        self._scheduler.post(self.emit_snapshot)

    def teardown(self) -> None:
        """Release everything. Safe to call from any state, more than once."""
        if self.state.torn_down:
            return
        self.state.torn_down = True
        self._sensor_cancelled.set()
        close = getattr(self._sensor_source, "close", None)
        if callable(close):
            close()
        reader = self._sensor_thread
        if reader is not None and reader is not threading.current_thread():
            reader.join(SENSOR_JOIN_SECONDS)
        self.state.sensor_active = False
        self.engine.stop()
        try:
            self._audio.dispose()
        except Exception:
            logger.warning("Audio dispose failed", exc_info=True)
        self._plugins.notify("timer_service_cleared")
        logger.debug("Background controller torn down")

    # ------------------------------------------------------------------
    # Inputs (loop thread)
    # ------------------------------------------------------------------

    def on_proximity(self, is_near: bool) -> None:
        if self.state.torn_down:
            return
        waved = self.state.debouncer.observe(is_near)
        if waved:
            logger.debug("Wave detected in state %s", self.engine.state)
            if self.engine.wave():
                return  # the engine already published the new state
        self.emit_snapshot()

    def handle_payload(self, payload: object) -> None:
        """Apply a raw UI -> background payload, ignoring anything malformed."""
        for message in decode_inbound(payload):
            self.handle_message(message)

    def handle_message(self, message: InboundMessage) -> None:
        if self.state.torn_down:
            return
        match message:
            case DurationChanged(duration_seconds=seconds):
                self.state.config = self.state.config.apply(message)
                self.engine.set_duration(seconds)
                logger.debug("Duration set to %ss", seconds)
            case VolumeChanged(volume=volume):
                self.state.config = self.state.config.apply(message)
                logger.debug("Volume set to %.2f", volume)
            case ServiceCommand(command="start"):
                if not self.engine.start():
                    logger.debug("Start ignored in state %s", self.engine.state)
            case ServiceCommand(command="stop"):
                logger.debug("Stop requested by UI")
                if self._on_stop_requested is not None:
                    self._on_stop_requested()
                else:
                    self.teardown()

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        return Snapshot(
            remaining_seconds=self.engine.remaining_seconds,
            is_running=self.engine.is_running,
            is_near=self.state.debouncer.is_near,
        )

    def emit_snapshot(self) -> None:
        """Publish the full state to the UI and the notification surface."""
        if self.state.torn_down:
            return
        snapshot = self.snapshot()
        self._send(encode(snapshot))
        self._plugins.notify(
            "timer_status",
            text=status_text(snapshot),
            hint=status_hint(snapshot),
            remaining_seconds=snapshot.remaining_seconds,
            is_running=snapshot.is_running,
            is_near=snapshot.is_near,
        )

    def _on_complete(self) -> None:
        assert self.engine.state is EngineState.COMPLETING
        volume = self.state.config.volume
        logger.info("Countdown complete")
        trigger_alarm(self._audio, volume)
        self._plugins.notify("timer_alarm", volume=volume)

    # ------------------------------------------------------------------
    # Sensor reader (own thread)
    # ------------------------------------------------------------------

    def _read_sensor(self, sensor: SensorSource) -> None:
        try:
            for is_near in sensor.events():
                if self._sensor_cancelled.is_set():
                    return
                self._scheduler.post(partial(self.on_proximity, is_near))
        except Exception:
            logger.warning("Proximity sensor failed", exc_info=True)
        if not self._sensor_cancelled.is_set():
            self._scheduler.post(self._on_sensor_ended)

    def _on_sensor_ended(self) -> None:
        if self.state.torn_down:
            return
        self.state.sensor_active = False
        logger.warning("Proximity sensor stream ended; waves disabled until restart")
