"""Playback state machine for recorded traces.

:class:`PlaybackController` owns a loaded trace, a cursor into it and at
most one pending auto-advance.  States are ``idle``, ``playing`` and
``paused``; every transition out of ``playing`` cancels the pending
advance.  All public methods are serialized by one re-entrant lock, so the
controller may be driven from a UI thread while a timer thread fires
advances.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Sequence

from ..core.step import Step, Trace
from .scheduler import Handle, Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)


class PlaybackState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


class Speed(str, Enum):
    SLOW = "slow"
    MEDIUM = "medium"
    FAST = "fast"


# Delay between auto-advances, in milliseconds.
SPEED_DELAYS = {
    Speed.SLOW: 1500,
    Speed.MEDIUM: 800,
    Speed.FAST: 300,
}

Listener = Callable[["PlaybackController"], None]


class PlaybackController:
    """Cursor, run state and auto-advance timer for one trace.

    Cursor moves never raise: they clamp to ``[0, len(trace) - 1]``.  An
    empty trace is tolerated (cursor stays at 0, nothing plays).
    """

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        speed: Speed | str = Speed.MEDIUM,
    ) -> None:
        self._scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self._lock = threading.RLock()
        self._trace: Trace = ()
        self._cursor = 0
        self._state = PlaybackState.IDLE
        self._speed = Speed(speed)
        self._result: Any = None
        self._pending: Handle | None = None
        # Bumped on every schedule/cancel; a fired callback with an older
        # token is stale and does nothing.
        self._token = 0
        self._listeners: list[Listener] = []

    # ── Read accessors ──────────────────────────────────────────────

    @property
    def trace(self) -> Trace:
        return self._trace

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def speed(self) -> Speed:
        return self._speed

    @property
    def result(self) -> Any:
        return self._result

    @property
    def delay_ms(self) -> int:
        return SPEED_DELAYS[self._speed]

    def current_step(self) -> Step | None:
        with self._lock:
            if not self._trace:
                return None
            return self._trace[self._cursor]

    def progress(self) -> float:
        with self._lock:
            if not self._trace:
                return 0.0
            return (self._cursor + 1) / len(self._trace)

    def is_playing(self) -> bool:
        return self._state is PlaybackState.PLAYING

    def is_paused(self) -> bool:
        return self._state is PlaybackState.PAUSED

    def is_at_end(self) -> bool:
        with self._lock:
            return self._cursor >= len(self._trace) - 1

    def has_pending_advance(self) -> bool:
        return self._pending is not None

    # ── Transport ───────────────────────────────────────────────────

    def load(self, trace: Sequence[Step]) -> None:
        """Replace the trace; cursor to 0, result cleared, state idle."""
        with self._lock:
            self._cancel_pending()
            self._trace = tuple(trace)
            self._cursor = 0
            self._result = None
            self._state = PlaybackState.IDLE
            logger.debug("loaded trace of %d steps", len(self._trace))
            self._notify()

    def play(self) -> None:
        with self._lock:
            if self._state is PlaybackState.PLAYING:
                return
            if self.is_at_end():
                self._set_state(PlaybackState.IDLE)
                return
            self._set_state(PlaybackState.PLAYING)
            self._schedule_next()

    def pause(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._set_state(PlaybackState.PAUSED)

    def step(self, direction: int = 1) -> None:
        """Move the cursor one step forward (``+1``) or back (``-1``)."""
        if direction not in (1, -1):
            raise ValueError(f"direction must be +1 or -1, got {direction!r}")
        with self._lock:
            self._move_to(self._cursor + direction)

    def go_to(self, index: int) -> None:
        """Jump to *index*, clamped to the trace bounds."""
        with self._lock:
            self._move_to(index)

    def reset(self) -> None:
        """Cursor to 0, result cleared, state idle."""
        with self._lock:
            self._cancel_pending()
            self._cursor = 0
            self._result = None
            self._state = PlaybackState.IDLE
            logger.debug("playback reset")
            self._notify()

    def set_speed(self, speed: Speed | str) -> None:
        """Change the delay used for the next scheduled advance.

        An advance that is already pending keeps its original delay.
        """
        with self._lock:
            self._speed = Speed(speed)
            self._notify()

    def set_result(self, result: Any) -> None:
        with self._lock:
            self._result = result
            self._notify()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* after every change; returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Cancel any pending advance and stop playing."""
        with self._lock:
            self._cancel_pending()
            if self._state is PlaybackState.PLAYING:
                self._set_state(PlaybackState.IDLE)

    # ── Internals ───────────────────────────────────────────────────

    def _clamp(self, index: int) -> int:
        if not self._trace:
            return 0
        return max(0, min(index, len(self._trace) - 1))

    def _move_to(self, index: int) -> None:
        self._cursor = self._clamp(index)
        if self._state is PlaybackState.PLAYING:
            self._cancel_pending()
            if self.is_at_end():
                self._set_state(PlaybackState.IDLE)
                return
            self._schedule_next()
        self._notify()

    def _schedule_next(self) -> None:
        self._cancel_pending()
        self._token += 1
        token = self._token
        self._pending = self._scheduler.schedule(
            self.delay_ms, lambda: self._on_timer(token)
        )

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
            self._token += 1

    def _on_timer(self, token: int) -> None:
        with self._lock:
            if token != self._token or self._state is not PlaybackState.PLAYING:
                return
            self._pending = None
            self._cursor = self._clamp(self._cursor + 1)
            if self.is_at_end():
                self._set_state(PlaybackState.IDLE)
                return
            self._schedule_next()
            self._notify()

    def _set_state(self, state: PlaybackState) -> None:
        if state is not self._state:
            logger.debug("playback %s -> %s at step %d",
                         self._state.value, state.value, self._cursor)
        self._state = state
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
