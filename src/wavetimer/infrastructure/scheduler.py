"""Single-threaded serialized event loop with cancellable timers.

Every state change in the background process runs as a callback on one
loop thread. Reader threads (sensor, channel) only ever ``post()``.

Two drivers share the timer heap:

- :class:`SerialScheduler` blocks on a queue in real time.
- :class:`ManualScheduler` advances a simulated clock (tests).

INVARIANT: no callback runs after ``stop()`` returns on the loop thread.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import queue
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class TimerHandle:
    """A pending one-shot or periodic timer. ``cancel()`` is idempotent."""

    __slots__ = ("callback", "cancelled", "deadline", "interval")

    def __init__(self, deadline: float, callback: Callback, interval: float | None) -> None:
        self.deadline = deadline
        self.callback = callback
        self.interval = interval
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class TimerLoop(ABC):
    """Timer heap, posted-callback queue, and error routing shared by both drivers."""

    def __init__(self) -> None:
        self._posted: queue.SimpleQueue[Callback] = queue.SimpleQueue()
        self._heap: list[tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self.on_error: Callable[[Exception], None] | None = None

    @abstractmethod
    def now(self) -> float:
        """Current loop time in seconds."""

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    @property
    def pending_timers(self) -> int:
        """Number of live (uncancelled) timers."""
        with self._lock:
            return sum(1 for _, _, handle in self._heap if not handle.cancelled)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def post(self, callback: Callback) -> None:
        """Queue *callback* to run on the loop thread. Safe from any thread."""
        if self.stopped:
            return
        self._posted.put(callback)

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        return self._schedule(self.now() + max(0.0, delay), callback, None)

    def call_every(self, interval: float, callback: Callback) -> TimerHandle:
        """Run *callback* every *interval* seconds, first run one interval from now."""
        if interval <= 0:
            msg = f"interval must be positive, got {interval}"
            raise ValueError(msg)
        return self._schedule(self.now() + interval, callback, interval)

    def stop(self) -> None:
        """Cancel all timers and refuse further work. Idempotent."""
        self._stopped.set()
        with self._lock:
            for _, _, handle in self._heap:
                handle.cancel()
            self._heap.clear()
        self._posted.put(lambda: None)  # wake a blocked run_forever()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _schedule(self, deadline: float, callback: Callback, interval: float | None) -> TimerHandle:
        handle = TimerHandle(deadline, callback, interval)
        if self.stopped:
            handle.cancel()
            return handle
        with self._lock:
            heapq.heappush(self._heap, (deadline, next(self._seq), handle))
        return handle

    def _next_deadline(self) -> float | None:
        with self._lock:
            while self._heap and self._heap[0][2].cancelled:
                heapq.heappop(self._heap)
            return self._heap[0][0] if self._heap else None

    def _pop_due(self, now: float) -> tuple[float, TimerHandle] | None:
        with self._lock:
            while self._heap:
                deadline, _, handle = self._heap[0]
                if handle.cancelled:
                    heapq.heappop(self._heap)
                    continue
                if deadline > now:
                    return None
                heapq.heappop(self._heap)
                if handle.interval is not None:
                    handle.deadline = deadline + handle.interval
                    heapq.heappush(self._heap, (handle.deadline, next(self._seq), handle))
                return deadline, handle
            return None

    def _fire(self, handle: TimerHandle) -> None:
        if handle.cancelled or self.stopped:
            return
        self._invoke(handle.callback)

    def _drain_posted(self) -> None:
        while not self.stopped:
            try:
                callback = self._posted.get_nowait()
            except queue.Empty:
                return
            self._invoke(callback)

    def _invoke(self, callback: Callback) -> None:
        try:
            callback()
        except Exception as exc:
            logger.exception("Scheduled callback failed")
            if self.on_error is not None:
                self.on_error(exc)


class SerialScheduler(TimerLoop):
    """Real-time driver: ``run_forever()`` blocks the calling thread."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__()
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    def run_forever(self) -> None:
        """Process posted callbacks and due timers until ``stop()``."""
        while not self.stopped:
            deadline = self._next_deadline()
            timeout = None if deadline is None else max(0.0, deadline - self.now())
            try:
                callback = self._posted.get(timeout=timeout)
            except queue.Empty:
                pass
            else:
                if not self.stopped:
                    self._invoke(callback)
            while not self.stopped:
                due = self._pop_due(self.now())
                if due is None:
                    break
                self._fire(due[1])


class ManualScheduler(TimerLoop):
    """Simulated-clock driver. Nothing runs until ``advance()`` or ``run_pending()``."""

    def __init__(self, start: float = 0.0) -> None:
        super().__init__()
        self._now = start

    def now(self) -> float:
        return self._now

    def run_pending(self) -> None:
        """Run posted callbacks without moving the clock."""
        self._drain_posted()

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in deadline order."""
        target = self._now + seconds
        self._drain_posted()
        while not self.stopped:
            due = self._pop_due(target)
            if due is None:
                break
            deadline, handle = due
            self._now = max(self._now, deadline)
            self._fire(handle)
            self._drain_posted()
        self._now = target
