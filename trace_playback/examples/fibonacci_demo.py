"""Fibonacci trace demo.

Builds one trace per mode (full, condensed, computation-only), prints a
summary of each and renders three steps of the full trace.
"""

from __future__ import annotations

import matplotlib.pyplot as plt

from ..builders.fibonacci import FibonacciInput, generate_trace, resolve_config
from ..core.settings import configure_logging
from ..core.step import kinds
from ..visualization.renderer import TraceRenderer


def main() -> None:
    configure_logging("INFO")

    for n in (20, 2_000, 200_000):
        inp = FibonacciInput(n=n, strategy="tabulated", detail_level=50)
        config = resolve_config(inp)
        trace = generate_trace(inp)
        result = trace[-1].payload["result"]
        print(f"F({n}): mode={config.mode.value} strategy={config.strategy.value} "
              f"steps={len(trace)} digits={len(result)}")

    trace = generate_trace(FibonacciInput(n=20, strategy="tabulated"))
    store_steps = [s for s in trace if s.kind == "store"]

    renderer = TraceRenderer()
    fig, axes = plt.subplots(3, 1, figsize=(14, 6))
    for ax, step in zip(axes, [store_steps[0], store_steps[8], trace[-1]]):
        renderer.render_step(step, ax=ax)
    print("kinds:", ", ".join(sorted(set(kinds(trace)))))
    plt.tight_layout()
    plt.savefig("fibonacci_demo.png", dpi=150)
    plt.show()


if __name__ == "__main__":
    main()
