"""N-Queens trace demo.

Solves the 8-queens puzzle with a full trace, then plays it back headless
through a :class:`PlaybackController` on a virtual clock and renders the
board at the first placement, midway, and at the first solution.
"""

from __future__ import annotations

import matplotlib.pyplot as plt

from ..builders.queens import NQueensInput, generate_trace
from ..core.settings import configure_logging
from ..playback.controller import PlaybackController
from ..playback.scheduler import ManualScheduler
from ..visualization.renderer import TraceRenderer


def main() -> None:
    configure_logging("INFO")

    trace = generate_trace(NQueensInput(n=8, max_solutions=1))
    scheduler = ManualScheduler()
    controller = PlaybackController(scheduler, speed="fast")
    controller.load(trace)
    controller.play()
    scheduler.run_all()
    print(f"played {len(trace)} steps, at end: {controller.is_at_end()}")

    first_place = next(s for s in trace if s.kind == "place-queen")
    solution = next(s for s in trace if s.kind == "solution-found")

    renderer = TraceRenderer()
    fig, axes = plt.subplots(1, 3, figsize=(18, 6))
    for ax, step in zip(axes, [first_place, trace[len(trace) // 2], solution]):
        renderer.render_step(step, ax=ax)
    plt.tight_layout()
    plt.savefig("queens_demo.png", dpi=150)
    plt.show()


if __name__ == "__main__":
    main()
