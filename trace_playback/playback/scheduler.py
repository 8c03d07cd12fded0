"""Delayed-callback schedulers for the playback controller.

The controller only needs ``schedule(delay_ms, callback) -> handle`` and
``handle.cancel()``.  :class:`ThreadingScheduler` uses wall-clock timers;
:class:`ManualScheduler` keeps a virtual clock that the owner advances
explicitly, which makes playback deterministic in tests and lets a UI
event loop (such as a Dash interval) drive it.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from typing import Callable, Protocol


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> Handle: ...


class ThreadingScheduler:
    """Runs each callback on a daemon :class:`threading.Timer`."""

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay_ms / 1000.0, callback)
        timer.daemon = True
        timer.start()
        return timer


@dataclass(order=True)
class _Pending:
    due: int
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual clock in milliseconds.

    Nothing fires until :meth:`advance` moves the clock past a callback's
    due time.  Callbacks run in due order (ties in scheduling order) and
    may schedule further callbacks, which fire within the same
    :meth:`advance` call if they fall due in time.
    """

    def __init__(self) -> None:
        self.now = 0
        self._queue: list[_Pending] = []
        self._seq = itertools.count()

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> _Pending:
        pending = _Pending(self.now + delay_ms, next(self._seq), callback)
        self._queue.append(pending)
        return pending

    @property
    def pending(self) -> int:
        """Number of callbacks scheduled and not yet fired or cancelled."""
        return sum(1 for p in self._queue if not p.cancelled)

    def _pop_due(self, until: int) -> _Pending | None:
        live = [p for p in self._queue if not p.cancelled and p.due <= until]
        if not live:
            return None
        nxt = min(live)
        self._queue.remove(nxt)
        return nxt

    def advance(self, ms: int) -> int:
        """Move the clock forward by *ms*; return how many callbacks fired."""
        target = self.now + ms
        fired = 0
        while (nxt := self._pop_due(target)) is not None:
            self.now = nxt.due
            nxt.callback()
            fired += 1
        self.now = target
        self._queue = [p for p in self._queue if not p.cancelled]
        return fired

    def run_all(self, max_callbacks: int = 100_000) -> int:
        """Fire callbacks until nothing is pending."""
        fired = 0
        while fired < max_callbacks:
            live = [p for p in self._queue if not p.cancelled]
            if not live:
                break
            fired += self.advance(min(live).due - self.now)
        return fired
