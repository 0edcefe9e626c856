"""Proximity sensor sources.

A source yields ``is_near`` booleans lazily. The stream may be infinite
or may end (device revoked, file closed); consumers treat an ending as
a gap, not an error.
"""

from __future__ import annotations

import logging
import os
import select
import threading
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

POLL_SECONDS = 0.2
_READ_SIZE = 4096

_NEAR_TOKENS = frozenset({"near", "1", "true", "on"})
_FAR_TOKENS = frozenset({"far", "0", "false", "off"})


class SensorSource(Protocol):
    def events(self) -> Iterator[bool]: ...


def parse_reading(line: str) -> bool | None:
    """Map a text line to ``is_near``; None for anything unrecognised."""
    token = line.strip().lower()
    if token in _NEAR_TOKENS:
        return True
    if token in _FAR_TOKENS:
        return False
    return None


class FileSensorSource:
    """Reads one reading per line from a file or FIFO.

    The descriptor is opened non-blocking and polled, so :meth:`close` from
    another thread ends a reader parked on a quiet FIFO. Undecodable bytes
    become replacement characters and are skipped like any other noise.
    """

    def __init__(self, path: Path, poll_seconds: float = POLL_SECONDS) -> None:
        self.path = path
        self.poll_seconds = poll_seconds
        self._closed = threading.Event()

    def events(self) -> Iterator[bool]:
        fd = os.open(self.path, os.O_RDONLY | os.O_NONBLOCK)
        try:
            pending = b""
            while not self._closed.is_set():
                ready, _, _ = select.select([fd], [], [], self.poll_seconds)
                if not ready:
                    continue
                try:
                    chunk = os.read(fd, _READ_SIZE)
                except BlockingIOError:
                    continue
                if not chunk:
                    break
                *lines, pending = (pending + chunk).split(b"\n")
                for raw in lines:
                    reading = _decode_reading(raw)
                    if reading is not None:
                        yield reading
            if pending and not self._closed.is_set():
                reading = _decode_reading(pending)
                if reading is not None:
                    yield reading
        finally:
            os.close(fd)

    def close(self) -> None:
        self._closed.set()


def _decode_reading(raw: bytes) -> bool | None:
    line = raw.decode("utf-8", errors="replace")
    reading = parse_reading(line)
    if reading is None and line.strip():
        logger.debug("Skipping unrecognised sensor line: %r", line.strip())
    return reading


class IterableSensorSource:
    """Replays a fixed sequence of readings."""

    def __init__(self, readings: Iterable[bool]) -> None:
        self._readings = readings

    def events(self) -> Iterator[bool]:
        yield from self._readings


class NullSensorSource:
    """Never emits; blocks until ``close()``."""

    def __init__(self) -> None:
        self._closed = threading.Event()

    def events(self) -> Iterator[bool]:
        self._closed.wait()
        return
        yield  # pragma: no cover

    def close(self) -> None:
        self._closed.set()
