"""Best-effort duplex message pipe between the UI and background processes.

One bounded queue per direction. Sends never block. When the peer falls
behind, a full queue gives up its oldest message so the newest one always
gets through; a closed queue or a closed end drops the message. Delivery
is in order per direction with no acknowledgement. The background state
is authoritative, so a dropped snapshot is corrected by a later one.
"""

from __future__ import annotations

import logging
import multiprocessing
import queue
from collections.abc import Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DEFAULT_MAXSIZE = 64


class _Queue(Protocol):
    def put_nowait(self, item: Any) -> None: ...

    def get_nowait(self) -> Any: ...

    def get(self, block: bool = ..., timeout: float | None = ...) -> Any: ...


QueueFactory = Callable[[int], _Queue]


class ChannelEnd:
    """One side of the channel: sends on *outbox*, receives from *inbox*."""

    def __init__(self, name: str, inbox: _Queue, outbox: _Queue) -> None:
        self.name = name
        self._inbox = inbox
        self._outbox = outbox
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, payload: dict[str, Any]) -> bool:
        """Queue *payload* for the peer. Returns False if it was dropped."""
        if self._closed:
            logger.debug("%s: send on closed end dropped", self.name)
            return False
        try:
            try:
                self._outbox.put_nowait(payload)
            except queue.Full:
                # Peer is behind: the oldest payload is the stale one.
                self._discard_oldest()
                self._outbox.put_nowait(payload)
        except queue.Full:
            logger.debug("%s: peer not draining, message dropped", self.name)
            return False
        except (ValueError, OSError, EOFError, BrokenPipeError):
            logger.debug("%s: channel torn down, message dropped", self.name)
            return False
        return True

    def _discard_oldest(self) -> None:
        try:
            self._outbox.get_nowait()
        except queue.Empty:
            return
        logger.debug("%s: peer not draining, oldest message dropped", self.name)

    def receive(self, timeout: float | None = None) -> dict[str, Any] | None:
        """Next payload from the peer, or None on timeout or after ``close()``."""
        if self._closed:
            return None
        try:
            payload = self._inbox.get(True, timeout)
        except queue.Empty:
            return None
        except (ValueError, OSError, EOFError):
            return None
        if self._closed:
            # Arrived while we were shutting down.
            logger.debug("%s: late message ignored", self.name)
            return None
        return payload

    def close(self) -> None:
        self._closed = True


def create_channel(
    queue_factory: QueueFactory | None = None,
    *,
    maxsize: int = DEFAULT_MAXSIZE,
) -> tuple[ChannelEnd, ChannelEnd]:
    """Return ``(ui_end, background_end)``.

    *queue_factory* defaults to :class:`multiprocessing.Queue`; pass
    ``queue.Queue`` for an in-process channel.
    """
    factory: QueueFactory = queue_factory or multiprocessing.Queue
    to_background = factory(maxsize)
    to_ui = factory(maxsize)
    ui_end = ChannelEnd("ui", inbox=to_ui, outbox=to_background)
    background_end = ChannelEnd("background", inbox=to_background, outbox=to_ui)
    return ui_end, background_end
