"""Tests for the playback controller and its schedulers."""

from __future__ import annotations

import threading

import pytest

from trace_playback.builders.queens import NQueensInput, generate_trace
from trace_playback.core.step import Step
from trace_playback.playback.controller import (
    SPEED_DELAYS,
    PlaybackController,
    PlaybackState,
    Speed,
)
from trace_playback.playback.scheduler import ManualScheduler, ThreadingScheduler


# ── Helpers ──────────────────────────────────────────────────────────

def _trace(length: int) -> tuple[Step, ...]:
    steps = [Step("tick", {"i": i}, i, f"step {i}") for i in range(length - 1)]
    return tuple(steps) + (Step("complete", {"i": length - 1}, 0, "done"),)


def _controller(length: int = 5, speed: str = "medium") -> tuple[PlaybackController, ManualScheduler]:
    scheduler = ManualScheduler()
    controller = PlaybackController(scheduler, speed=speed)
    controller.load(_trace(length))
    return controller, scheduler


# ── ManualScheduler ──────────────────────────────────────────────────

class TestManualScheduler:
    def test_fires_in_due_order(self):
        scheduler = ManualScheduler()
        fired = []
        scheduler.schedule(300, lambda: fired.append("b"))
        scheduler.schedule(100, lambda: fired.append("a"))
        assert scheduler.advance(99) == 0
        assert scheduler.advance(250) == 2
        assert fired == ["a", "b"]
        assert scheduler.now == 349

    def test_cancelled_never_fires(self):
        scheduler = ManualScheduler()
        fired = []
        handle = scheduler.schedule(10, lambda: fired.append(1))
        handle.cancel()
        scheduler.advance(100)
        assert fired == []
        assert scheduler.pending == 0

    def test_chained_callbacks(self):
        scheduler = ManualScheduler()
        fired = []

        def tick():
            fired.append(scheduler.now)
            if len(fired) < 3:
                scheduler.schedule(50, tick)

        scheduler.schedule(50, tick)
        scheduler.run_all()
        assert fired == [50, 100, 150]


# ── Loading and stepping ─────────────────────────────────────────────

class TestLoadAndStep:
    def test_load_resets(self):
        controller, _ = _controller()
        controller.step(1)
        controller.set_result("found")
        controller.load(_trace(3))
        assert controller.cursor == 0
        assert controller.result is None
        assert controller.state is PlaybackState.IDLE

    def test_step_reaches_end(self):
        """length - 1 forward steps from a fresh load land on the last step."""
        controller, _ = _controller(7)
        for _ in range(6):
            controller.step(+1)
        assert controller.cursor == 6
        assert controller.is_at_end()
        assert controller.current_step().kind == "complete"

    def test_step_clamps(self):
        controller, _ = _controller(3)
        controller.step(-1)
        assert controller.cursor == 0
        for _ in range(10):
            controller.step(1)
        assert controller.cursor == 2

    def test_go_to_clamps(self):
        controller, _ = _controller(4)
        controller.go_to(2)
        assert controller.cursor == 2
        controller.go_to(99)
        assert controller.cursor == 3
        controller.go_to(-5)
        assert controller.cursor == 0

    def test_invalid_direction(self):
        controller, _ = _controller()
        with pytest.raises(ValueError):
            controller.step(2)

    def test_progress(self):
        controller, _ = _controller(4)
        assert controller.progress() == 0.25
        controller.go_to(3)
        assert controller.progress() == 1.0


class TestEmptyTrace:
    def test_tolerated(self):
        controller = PlaybackController(ManualScheduler())
        controller.load(())
        assert controller.cursor == 0
        assert controller.current_step() is None
        assert controller.progress() == 0.0
        assert controller.is_at_end()
        controller.step(1)
        controller.step(-1)
        controller.play()
        assert controller.cursor == 0
        assert not controller.is_playing()


# ── Timed playback ───────────────────────────────────────────────────

class TestPlay:
    def test_advance_after_speed_delay(self):
        controller, scheduler = _controller(speed="medium")
        controller.play()
        assert controller.is_playing()
        scheduler.advance(799)
        assert controller.cursor == 0
        scheduler.advance(1)
        assert controller.cursor == 1

    def test_speed_delays(self):
        assert SPEED_DELAYS == {Speed.SLOW: 1500, Speed.MEDIUM: 800, Speed.FAST: 300}

    def test_plays_to_end_and_stops(self):
        """Reaching the last step stops playback instead of looping."""
        controller, scheduler = _controller(5, speed="fast")
        controller.play()
        scheduler.run_all()
        assert controller.cursor == 4
        assert controller.state is PlaybackState.IDLE
        assert scheduler.pending == 0
        assert scheduler.now == 4 * 300

    def test_play_at_end_is_idle(self):
        controller, scheduler = _controller(3)
        controller.go_to(2)
        controller.play()
        assert controller.state is PlaybackState.IDLE
        assert scheduler.pending == 0

    def test_single_pending_advance(self):
        controller, scheduler = _controller()
        controller.play()
        controller.play()
        assert scheduler.pending == 1
        controller.pause()
        controller.play()
        assert scheduler.pending == 1

    def test_set_speed_applies_to_next_advance(self):
        """A pending advance keeps its delay; the one after uses the new speed."""
        controller, scheduler = _controller(speed="medium")
        controller.play()
        controller.set_speed("fast")
        scheduler.advance(300)
        assert controller.cursor == 0
        scheduler.advance(500)
        assert controller.cursor == 1
        scheduler.advance(300)
        assert controller.cursor == 2

    def test_manual_step_while_playing_reschedules(self):
        controller, scheduler = _controller(speed="medium")
        controller.play()
        scheduler.advance(400)
        controller.step(1)
        assert controller.cursor == 1
        assert scheduler.pending == 1
        scheduler.advance(400)
        assert controller.cursor == 1
        scheduler.advance(400)
        assert controller.cursor == 2

    def test_step_past_end_while_playing_stops(self):
        controller, scheduler = _controller(3)
        controller.play()
        controller.step(1)
        controller.step(1)
        assert controller.state is PlaybackState.IDLE
        controller.step(1)
        assert controller.cursor == 2
        assert scheduler.pending == 0

    def test_invalid_speed(self):
        controller, _ = _controller()
        with pytest.raises(ValueError):
            controller.set_speed("ludicrous")


class TestPauseAndReset:
    def test_pause_keeps_cursor(self):
        controller, scheduler = _controller()
        controller.play()
        scheduler.advance(800)
        controller.pause()
        assert controller.cursor == 1
        assert controller.state is PlaybackState.PAUSED
        assert scheduler.pending == 0
        scheduler.advance(5000)
        assert controller.cursor == 1

    def test_resume_after_pause(self):
        controller, scheduler = _controller()
        controller.play()
        controller.pause()
        controller.play()
        scheduler.advance(800)
        assert controller.cursor == 1

    def test_reset_after_anything(self):
        controller, scheduler = _controller(6)
        controller.play()
        scheduler.advance(1600)
        controller.set_result({"ok": True})
        controller.step(1)
        controller.reset()
        assert controller.cursor == 0
        assert not controller.is_playing()
        assert controller.state is PlaybackState.IDLE
        assert controller.result is None
        assert scheduler.pending == 0

    def test_load_while_playing_cancels(self):
        controller, scheduler = _controller()
        controller.play()
        controller.load(_trace(2))
        assert scheduler.pending == 0
        assert controller.state is PlaybackState.IDLE
        scheduler.advance(5000)
        assert controller.cursor == 0

    def test_close(self):
        controller, scheduler = _controller()
        controller.play()
        controller.close()
        assert scheduler.pending == 0
        assert not controller.is_playing()


class TestListeners:
    def test_notified_on_changes(self):
        controller, scheduler = _controller(3, speed="fast")
        seen = []
        unsubscribe = controller.subscribe(lambda c: seen.append(c.cursor))
        controller.play()
        scheduler.run_all()
        assert seen and seen[-1] == 2
        unsubscribe()
        count = len(seen)
        controller.reset()
        assert len(seen) == count


class TestRealTraces:
    def test_queens_trace_plays_through(self):
        trace = generate_trace(NQueensInput(n=4, max_solutions=2))
        scheduler = ManualScheduler()
        controller = PlaybackController(scheduler, speed="fast")
        controller.load(trace)
        controller.play()
        scheduler.run_all()
        assert controller.current_step().kind == "complete"
        assert scheduler.now == (len(trace) - 1) * 300


class _SignallingScheduler(ThreadingScheduler):
    """Threading scheduler that reports when a timer starts running."""

    def __init__(self) -> None:
        self.fired = threading.Event()
        self.timers: list[threading.Timer] = []

    def schedule(self, delay_ms, callback):
        def run():
            self.fired.set()
            callback()

        timer = super().schedule(delay_ms, run)
        self.timers.append(timer)
        return timer


class TestThreadingScheduler:
    def test_plays_on_timer_thread(self):
        """Wall-clock playback reaches the end and stops."""
        done = threading.Event()
        controller = PlaybackController(ThreadingScheduler(), speed="fast")
        controller.load(_trace(3))
        controller.subscribe(lambda c: done.set() if c.is_at_end() else None)
        controller.play()
        assert done.wait(timeout=5)
        controller.close()
        assert controller.cursor == 2
        assert not controller.is_playing()

    def test_late_timer_after_pause_is_ignored(self):
        """A timer that fires while another call holds the lock does nothing."""
        scheduler = _SignallingScheduler()
        controller = PlaybackController(scheduler, speed="fast")
        controller.load(_trace(5))
        with controller._lock:
            controller.play()
            assert scheduler.fired.wait(timeout=5)
            controller.pause()
        for timer in scheduler.timers:
            timer.join(timeout=5)
        assert controller.cursor == 0
        assert controller.state is PlaybackState.PAUSED
        assert not controller.has_pending_advance()


class TestConcurrentCalls:
    def test_at_most_one_pending_advance(self):
        controller, scheduler = _controller(50)
        start = threading.Barrier(4)

        def hammer(actions):
            start.wait()
            for _ in range(200):
                for action in actions:
                    action()

        workers = [
            threading.Thread(target=hammer, args=([controller.play, controller.pause],)),
            threading.Thread(target=hammer, args=([controller.play, lambda: controller.step(1)],)),
            threading.Thread(target=hammer, args=([controller.reset, controller.play],)),
            threading.Thread(target=hammer, args=([lambda: controller.step(-1), controller.pause],)),
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(timeout=10)

        assert scheduler.pending <= 1
        assert scheduler.pending == (1 if controller.is_playing() else 0)
        assert 0 <= controller.cursor < 50
