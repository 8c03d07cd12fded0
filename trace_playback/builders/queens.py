"""N-Queens trace builder.

Chooses a mode (full, sampling, fast-solve) and a solver variant from the
board size, runs :class:`~trace_playback.solvers.queens.QueensSolver`, and
keeps the search events the mode calls for.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..core.step import Step, Trace
from ..core.validation import VALID, ValidationResult, invalid, is_int
from ..solvers import queens as search
from ..solvers.queens import MAX_N, QueensSolver, SearchEvent, Variant

logger = logging.getLogger(__name__)

FULL_MODE_MAX_N = 12
SAMPLING_MODE_MAX_N = 16
MAX_SOLUTIONS = 100


class Mode(str, Enum):
    FULL = "full"
    SAMPLING = "sampling"
    FAST_SOLVE = "fast-solve"


STEP_LIMITS = {
    Mode.FULL: 100_000,
    Mode.SAMPLING: 50_000,
    Mode.FAST_SOLVE: 10_000,
}

# kind -> pseudocode line
_LINES = {
    search.TRY_ROW: 14,
    search.SOLUTION_FOUND: 16,
    search.TRY_COL: 20,
    search.CHECK_SAFE: 21,
    search.PLACE_QUEEN: 22,
    search.BACKTRACK: 24,
    search.STEP_LIMIT: 0,
}


@dataclass(frozen=True)
class NQueensInput:
    n: int
    max_solutions: int = 1
    mode: Mode | str | None = None
    use_bitmask: bool | None = None


@dataclass(frozen=True)
class QueensConfig:
    n: int
    mode: Mode
    requested_mode: Mode | None
    variant: Variant
    max_solutions: int
    step_limit: int
    sampling_interval: int
    overrides: tuple[str, ...] = field(default_factory=tuple)


def derive_mode(n: int) -> Mode:
    if n <= FULL_MODE_MAX_N:
        return Mode.FULL
    if n <= SAMPLING_MODE_MAX_N:
        return Mode.SAMPLING
    return Mode.FAST_SOLVE


def sampling_interval(n: int) -> int:
    return max(1, n // 4)


def row_sampled(row: int, n: int, mode: Mode) -> bool:
    if mode is Mode.FULL:
        return True
    if mode is Mode.SAMPLING:
        return row % sampling_interval(n) == 0 or row == 0 or row == n - 1
    return False


def column_sampled(col: int, n: int, mode: Mode) -> bool:
    if mode is Mode.FULL:
        return True
    return col % sampling_interval(n) == 0 or col == 0 or col == n - 1


def validate_input(inp: NQueensInput) -> ValidationResult:
    if not is_int(inp.n) or inp.n < 1:
        return invalid("N must be a positive integer")
    if inp.n > MAX_N:
        return invalid(f"N must be at most {MAX_N} for safety")
    if not is_int(inp.max_solutions) or not 1 <= inp.max_solutions <= MAX_SOLUTIONS:
        return invalid(f"max solutions must be an integer between 1 and {MAX_SOLUTIONS}")
    if inp.mode is not None:
        try:
            Mode(inp.mode)
        except ValueError:
            return invalid(f"unknown mode {inp.mode!r}")
    if inp.use_bitmask is not None and not isinstance(inp.use_bitmask, bool):
        return invalid("use_bitmask must be a boolean")
    return VALID


def resolve_config(inp: NQueensInput) -> QueensConfig:
    n = inp.n
    requested_mode = Mode(inp.mode) if inp.mode is not None else None
    mode = requested_mode or derive_mode(n)
    use_bitmask = inp.use_bitmask if inp.use_bitmask is not None else n > FULL_MODE_MAX_N
    overrides: list[str] = []

    if use_bitmask and mode is Mode.FULL:
        overrides.append("variant bitmask -> traditional: full mode shows every column check")
        use_bitmask = False

    config = QueensConfig(
        n=n,
        mode=mode,
        requested_mode=requested_mode,
        variant=Variant.BITMASK if use_bitmask else Variant.TRADITIONAL,
        max_solutions=inp.max_solutions,
        step_limit=STEP_LIMITS[mode],
        sampling_interval=sampling_interval(n) if mode is Mode.SAMPLING else 1,
        overrides=tuple(overrides),
    )
    for note in config.overrides:
        logger.info("%d-queens: %s", n, note)
    logger.debug("resolved %s", config)
    return config


def _keep(event: SearchEvent, config: QueensConfig) -> bool:
    if event.kind in (search.SOLUTION_FOUND, search.STEP_LIMIT):
        return True
    if not row_sampled(event.row, config.n, config.mode):
        return False
    if event.kind in (search.TRY_COL, search.CHECK_SAFE):
        return column_sampled(event.col, config.n, config.mode)
    return True


def _describe(event: SearchEvent, solutions_found: int) -> str:
    row, col = event.row, event.col
    if event.kind == search.TRY_ROW:
        return f"Trying to place queen in row {row}"
    if event.kind == search.TRY_COL:
        return f"Try column {col} for row {row}"
    if event.kind == search.CHECK_SAFE:
        if event.safe:
            return f"Position ({row}, {col}) is safe"
        return f"Position ({row}, {col}) is not safe (attacks existing queen)"
    if event.kind == search.PLACE_QUEEN:
        return f"Place queen at ({row}, {col})"
    if event.kind == search.BACKTRACK:
        return f"Backtrack: remove queen from ({row}, {col})"
    if event.kind == search.SOLUTION_FOUND:
        return f"Solution {event.solution_number} found!"
    return f"Step limit reached. Found {solutions_found} solution(s)."


def _to_step(event: SearchEvent, solutions_found: int) -> Step:
    payload: dict[str, Any] = {"n": event.n}
    if event.kind == search.STEP_LIMIT:
        payload["solutions_found"] = solutions_found
    elif event.kind == search.SOLUTION_FOUND:
        payload["board"] = event.board
        payload["solution_number"] = event.solution_number
    else:
        payload["row"] = event.row
        payload["board"] = event.board
        if event.col is not None:
            payload["col"] = event.col
        if event.safe is not None:
            payload["safe"] = event.safe
    return Step(event.kind, payload, _LINES[event.kind], _describe(event, solutions_found))


def generate_trace(inp: NQueensInput) -> Trace:
    """Record the backtracking search for *inp*.

    Assumes *inp* passed :func:`validate_input`.
    """
    config = resolve_config(inp)
    n = config.n
    plural = "s" if config.max_solutions > 1 else ""
    steps = [Step(
        "init",
        {
            "n": n,
            "board": [-1] * n,
            "mode": config.mode.value,
            "requested_mode": config.requested_mode.value if config.requested_mode else None,
            "variant": config.variant.value,
            "use_bitmask": config.variant is Variant.BITMASK,
            "max_solutions": config.max_solutions,
            "step_limit": config.step_limit,
            "sampling_interval": config.sampling_interval,
            "overrides": list(config.overrides),
        },
        0,
        f"Solving {n}-Queens problem ({config.mode.value} mode, "
        f"max {config.max_solutions} solution{plural})",
    )]

    solver = QueensSolver(n, config.max_solutions, variant=config.variant,
                          step_limit=config.step_limit)
    for event in solver.events():
        if _keep(event, config):
            steps.append(_to_step(event, len(solver.solutions)))

    solutions = [list(s) for s in solver.solutions]
    if solutions:
        summary = f"Algorithm complete - found {len(solutions)} solution(s)!"
    elif solver.limit_reached:
        summary = "Algorithm stopped at the step limit - no solution found"
    else:
        summary = "Algorithm complete - no solution exists"
    if not solutions:
        steps.append(Step("no-solution", {"n": n}, 29, f"No solution found for {n}-Queens"))
    steps.append(Step(
        "complete",
        {
            "n": n,
            "board": solutions[0] if solutions else [-1] * n,
            "solution_found": bool(solutions),
            "solutions_count": len(solutions),
            "all_solutions": solutions,
            "step_limit_reached": solver.limit_reached,
        },
        30,
        summary,
    ))
    logger.debug("%d-queens trace: %d steps, %d solution(s)", n, len(steps), len(solutions))
    return tuple(steps)
