"""UI-side session: settings, service lifecycle, and the snapshot listener.

The UI is a passive observer. It renders whatever the latest snapshot
says (apply-latest-wins), persists setting changes to the store, and
forwards them to the background process. It never computes timer state.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, Protocol

from wavetimer.domain.messages import (
    DurationChanged,
    ServiceCommand,
    Snapshot,
    decode_snapshot,
    encode,
    setting_update,
)
from wavetimer.domain.types import TimerConfig
from wavetimer.infrastructure.settings_store import (
    SettingsStore,
    SettingsStoreError,
    load_timer_config,
)
from wavetimer.services.result import ServiceResult

logger = logging.getLogger(__name__)

LISTEN_POLL_SECONDS = 0.25


class ServiceHandle(Protocol):
    @property
    def is_running(self) -> bool: ...

    def start(self, config: TimerConfig | None = None) -> bool: ...

    def stop(self) -> bool: ...

    def send(self, payload: dict[str, Any]) -> bool: ...

    def receive(self, timeout: float | None = None) -> dict[str, Any] | None: ...


class UiSession:
    """State and actions behind the timer screen.

    Parameters:
        service: Handle on the background process.
        store: Settings store, or None when persistence is unavailable.
        user_key: Document key in the store.
        defaults: Config used when the store has no (valid) value.
    """

    def __init__(
        self,
        service: ServiceHandle,
        store: SettingsStore | None,
        *,
        user_key: str = "default",
        defaults: TimerConfig | None = None,
    ) -> None:
        self._service = service
        self._store = store
        self._user_key = user_key
        self.config = defaults or TimerConfig()
        self.message = ""
        self.snapshot = Snapshot(
            remaining_seconds=self.config.duration_seconds,
            is_running=False,
            is_near=False,
        )
        self._closed = threading.Event()
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def load_settings(self) -> ServiceResult:
        """Read the user's settings; keep the defaults if the store fails."""
        if self._store is None:
            return ServiceResult(ok=True, op="load_settings", data=self.config.to_document())
        try:
            config = load_timer_config(self._store, self._user_key, defaults=self.config)
        except SettingsStoreError as exc:
            self.message = f"Error: {exc}"
            logger.warning("Using default settings: %s", exc)
            return ServiceResult(
                ok=True,
                op="load_settings",
                data=self.config.to_document(),
                warnings=[self.message],
            )
        self.config = config
        with self._lock:
            if not self.snapshot.is_running:
                self.snapshot = self.snapshot.model_copy(
                    update={"remaining_seconds": self.config.duration_seconds}
                )
        self.message = ""
        return ServiceResult(ok=True, op="load_settings", data=self.config.to_document())

    def update_setting(self, key: str, value: Any) -> ServiceResult:
        """Commit one setting: validate, persist (merge), then notify the service.

        A store failure does not block the update; the running timer still
        follows the new value and the failure is reported as a warning.
        """
        op = "update_setting"
        try:
            message = setting_update(key, value)
        except ValueError as exc:
            return ServiceResult.failure(op, "INVALID_SETTING", str(exc), key=key)

        self.config = self.config.apply(message)
        wire = encode(message)
        warnings: list[str] = []
        if self._store is not None:
            try:
                self._store.merge_set(self._user_key, wire)
            except SettingsStoreError as exc:
                self.message = f"Failed to save setting: {exc}"
                warnings.append(self.message)
        delivered = self._service.send(wire)
        if isinstance(message, DurationChanged) and not self._service.is_running:
            with self._lock:
                self.snapshot = self.snapshot.model_copy(
                    update={"remaining_seconds": self.config.duration_seconds}
                )
        return ServiceResult(
            ok=True,
            op=op,
            data={**wire, "delivered": delivered},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Service lifecycle
    # ------------------------------------------------------------------

    def start_service(self) -> ServiceResult:
        started = self._service.start(self.config)
        if started:
            self.message = "Wave to start"
        return ServiceResult(ok=True, op="start_service", data={"started": started})

    def start_timer(self) -> ServiceResult:
        if not self._service.is_running:
            return ServiceResult.failure(
                "start_timer", "SERVICE_NOT_RUNNING", "Start the service first."
            )
        delivered = self._service.send(encode(ServiceCommand(command="start")))
        return ServiceResult(ok=True, op="start_timer", data={"delivered": delivered})

    def stop_service(self) -> ServiceResult:
        stopped = self._service.stop()
        return ServiceResult(ok=True, op="stop_service", data={"stopped": stopped})

    # ------------------------------------------------------------------
    # Snapshot listener
    # ------------------------------------------------------------------

    def apply_payload(self, payload: object) -> Snapshot | None:
        """Replace the current view with *payload*. Ignored once closed."""
        if self.closed:
            logger.debug("Snapshot after close ignored")
            return None
        with self._lock:
            snapshot = decode_snapshot(payload, self.snapshot)
            if snapshot is None:
                logger.debug("Ignoring unrecognised payload from background")
                return None
            self.snapshot = snapshot
        return snapshot

    def listen(self, on_snapshot: Callable[[Snapshot], None] | None = None) -> None:
        """Apply incoming snapshots until :meth:`close`. Blocks; run on a thread."""
        while not self.closed:
            payload = self._service.receive(timeout=LISTEN_POLL_SECONDS)
            if payload is None:
                if not self._service.is_running:
                    self._closed.wait(LISTEN_POLL_SECONDS)
                continue
            snapshot = self.apply_payload(payload)
            if snapshot is not None and on_snapshot is not None:
                on_snapshot(snapshot)

    def close(self) -> None:
        self._closed.set()
