"""Matplotlib rendering of trace steps.

Draws an N-Queens board or a Fibonacci table for a single step, and can
animate a whole trace at a playback speed.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation

from ..core.step import Step
from ..playback.controller import SPEED_DELAYS, Speed

# Step kind -> highlight color for the active cell.
KIND_COLORS = {
    "try-col": "#fbbf24",
    "check-safe": "#60a5fa",
    "place-queen": "#34d399",
    "backtrack": "#f87171",
    "solution-found": "#a78bfa",
    "compute": "#60a5fa",
    "store": "#34d399",
}

# Longest cell text drawn in a table before it is elided.
_MAX_CELL_CHARS = 8
# Widest table row drawn, counting not-yet-computed cells.
_MAX_TABLE_WIDTH = 64


def _elide(text: str) -> str:
    if len(text) <= _MAX_CELL_CHARS:
        return text
    return text[:3] + "…" + text[-3:]


class TraceRenderer:
    """Renders trace steps onto matplotlib axes."""

    def render_board(
        self,
        board: Sequence[int],
        *,
        title: str = "",
        highlight: tuple[int, int] | None = None,
        highlight_color: str = "#fbbf24",
        ax: Any = None,
    ) -> Any:
        """Checkerboard with a queen marker for every row whose column is >= 0."""
        if ax is None:
            _fig, ax = plt.subplots(1, 1, figsize=(6, 6))
        n = len(board)
        squares = np.add.outer(np.arange(n), np.arange(n)) % 2
        ax.imshow(squares, cmap="Greys", vmin=-1, vmax=3, origin="upper")

        if highlight is not None:
            row, col = highlight
            ax.add_patch(plt.Rectangle((col - 0.5, row - 0.5), 1, 1,
                                       color=highlight_color, alpha=0.6, zorder=2))

        rows = [r for r, c in enumerate(board) if c >= 0]
        cols = [board[r] for r in rows]
        ax.scatter(cols, rows, marker="*", s=max(40, 4000 // max(n, 1)),
                   c="#7c3aed", edgecolors="black", linewidths=0.5, zorder=3)

        ax.set_xticks(range(n))
        ax.set_yticks(range(n))
        ax.set_title(title)
        return ax

    def render_table(
        self,
        cells: Sequence[str],
        *,
        offset: int = 0,
        length: int | None = None,
        title: str = "",
        highlight: int | None = None,
        highlight_color: str = "#34d399",
        ax: Any = None,
    ) -> Any:
        """One row of table cells ``offset .. offset + len(cells) - 1``.

        Cells up to *length* that have not been computed yet are drawn empty.
        """
        if ax is None:
            _fig, ax = plt.subplots(1, 1, figsize=(12, 2))
        total = len(cells)
        if length is not None:
            total = max(total, min(length - offset, _MAX_TABLE_WIDTH))
        total = max(total, 1)
        filled = np.zeros((1, total))
        filled[0, : len(cells)] = 1
        ax.imshow(filled, cmap="Blues", vmin=0, vmax=2, aspect="auto")

        if highlight is not None and offset <= highlight < offset + total:
            x = highlight - offset
            ax.add_patch(plt.Rectangle((x - 0.5, -0.5), 1, 1,
                                       color=highlight_color, alpha=0.7))

        for x, text in enumerate(cells):
            ax.text(x, 0, _elide(text), ha="center", va="center", fontsize=7)

        ax.set_xticks(range(total))
        ax.set_xticklabels([str(offset + x) for x in range(total)], fontsize=6)
        ax.set_yticks([])
        ax.set_title(title)
        return ax

    def render_step(self, step: Step, *, ax: Any = None) -> Any:
        """Pick the drawing that fits *step*'s payload."""
        payload = step.payload
        color = KIND_COLORS.get(step.kind, "#fbbf24")
        if "board" in payload:
            highlight = None
            if "row" in payload and "col" in payload:
                highlight = (payload["row"], payload["col"])
            return self.render_board(payload["board"], title=step.description,
                                     highlight=highlight, highlight_color=color, ax=ax)
        if "table" in payload:
            return self.render_table(payload["table"],
                                     offset=payload.get("table_offset", 0),
                                     length=payload.get("table_length"),
                                     title=step.description,
                                     highlight=payload.get("i"),
                                     highlight_color=color, ax=ax)
        if "values" in payload:
            i = payload.get("i", 1)
            return self.render_table(payload["values"], offset=max(0, i - 1),
                                     title=step.description, highlight=i,
                                     highlight_color=color, ax=ax)
        if ax is None:
            _fig, ax = plt.subplots(1, 1, figsize=(8, 2))
        ax.axis("off")
        ax.text(0.5, 0.5, step.description, ha="center", va="center", wrap=True)
        return ax

    def animate(
        self,
        trace: Sequence[Step],
        *,
        speed: Speed | str = Speed.FAST,
        figsize: tuple[float, float] = (6, 6),
    ) -> FuncAnimation:
        """Animate *trace* one step per frame at the delay of *speed*."""
        fig, ax = plt.subplots(1, 1, figsize=figsize)

        def update(frame: int) -> Any:
            ax.clear()
            self.render_step(trace[frame], ax=ax)
            return (ax,)

        return FuncAnimation(fig, update, frames=len(trace),
                             interval=SPEED_DELAYS[Speed(speed)], blit=False)
