"""Single-threaded, cooperative timer loop.

Playback is driven entirely by timer callbacks: between callbacks nothing
happens. A ``TimerLoop`` keeps pending callbacks in a heap ordered by
deadline and runs the due ones when asked. With a ``MonotonicClock`` the
loop can drive real time via :meth:`TimerLoop.run_until_idle`; with a
``ManualClock`` tests step time forward explicitly with
:meth:`TimerLoop.advance`.

All times are float milliseconds. Fractional delays are kept as-is.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from abc import ABCMeta, abstractmethod
from threading import Event
from typing import Callable, List, Optional, Tuple

from solfret.base import Closeable

Callback = Callable[[], None]

_DEFAULT_POLL_MS = 50.0
"""Longest single wait while running in real time, so halts are noticed."""


class Clock(metaclass=ABCMeta):
    """Source of the current time in milliseconds."""

    @abstractmethod
    def now_ms(self) -> float:
        raise NotImplementedError()


class MonotonicClock(Clock):
    """Wall-clock time from ``time.monotonic``."""

    def now_ms(self) -> float:
        return time.monotonic() * 1000.0


class ManualClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = start_ms

    def now_ms(self) -> float:
        return self._now

    def set_ms(self, now_ms: float) -> None:
        if now_ms < self._now:
            raise ValueError(f"Clock cannot go backwards: {now_ms} < {self._now}")
        self._now = now_ms


class TimerHandle:
    """A scheduled callback that can be cancelled until it runs."""

    def __init__(self, deadline_ms: float, callback: Callback) -> None:
        self._deadline_ms = deadline_ms
        self._callback = callback
        self._cancelled = False
        self._fired = False

    @property
    def deadline_ms(self) -> float:
        return self._deadline_ms

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def active(self) -> bool:
        """Still waiting to run."""
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        self._cancelled = True

    def _fire(self) -> None:
        self._fired = True
        self._callback()


class TimerLoop(Closeable):
    """Heap of pending callbacks, run in deadline order on one thread.

    Callbacks with equal deadlines run in scheduling order. A callback may
    schedule or cancel others; anything it schedules that is already due
    runs in the same pass.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock if clock is not None else MonotonicClock()
        self._heap: List[Tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()
        self._closed = False

    @property
    def clock(self) -> Clock:
        return self._clock

    def now_ms(self) -> float:
        return self._clock.now_ms()

    def call_later(self, delay_ms: float, callback: Callback) -> TimerHandle:
        """Schedule a callback after a delay.

        Args:
            delay_ms: Delay in milliseconds; negative delays count as zero.
            callback: Called with no arguments once the delay elapses.

        Returns:
            A handle that can cancel the callback.
        """
        if self._closed:
            raise RuntimeError("Timer loop is closed")
        deadline = self.now_ms() + max(0.0, delay_ms)
        handle = TimerHandle(deadline, callback)
        heapq.heappush(self._heap, (deadline, next(self._counter), handle))
        logging.debug("timer scheduled at %.3f ms", deadline)
        return handle

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        """Cancel a handle. Cancelling None or a spent handle is a no-op."""
        if handle is not None:
            handle.cancel()

    def _discard_inactive(self) -> None:
        while self._heap and not self._heap[0][2].active:
            heapq.heappop(self._heap)

    def pending(self) -> int:
        """Number of callbacks still waiting to run."""
        return sum(1 for _, _, h in self._heap if h.active)

    def next_deadline(self) -> Optional[float]:
        self._discard_inactive()
        return self._heap[0][0] if self._heap else None

    def run_due(self) -> int:
        """Run every callback whose deadline has passed.

        Returns:
            How many callbacks ran.
        """
        ran = 0
        while True:
            self._discard_inactive()
            if not self._heap or self._heap[0][0] > self.now_ms():
                return ran
            _, _, handle = heapq.heappop(self._heap)
            handle._fire()
            ran += 1

    def advance(self, delta_ms: float) -> int:
        """Move a manual clock forward, running callbacks as their times come.

        Each callback observes the clock at its own deadline.

        Raises:
            TypeError: If the loop is not driven by a ``ManualClock``.
        """
        if not isinstance(self._clock, ManualClock):
            raise TypeError("advance requires a ManualClock")
        target = self._clock.now_ms() + delta_ms
        ran = 0
        while True:
            deadline = self.next_deadline()
            if deadline is None or deadline > target:
                break
            self._clock.set_ms(max(deadline, self._clock.now_ms()))
            ran += self.run_due()
        self._clock.set_ms(target)
        return ran

    def run_until_idle(
        self, halt: Optional[Event] = None, poll_ms: float = _DEFAULT_POLL_MS
    ) -> None:
        """Run callbacks in real time until none are pending or halted."""
        if isinstance(self._clock, ManualClock):
            raise TypeError("run_until_idle requires a real clock")
        halt = halt if halt is not None else Event()
        while not halt.is_set():
            self.run_due()
            deadline = self.next_deadline()
            if deadline is None:
                break
            wait_ms = min(poll_ms, max(0.0, deadline - self.now_ms()))
            if halt.wait(timeout=wait_ms / 1000.0):
                break

    def close(self) -> None:
        """Cancel everything pending and refuse new callbacks."""
        for _, _, handle in self._heap:
            handle.cancel()
        self._heap.clear()
        self._closed = True
