"""Fibonacci trace builder.

Picks a visualization mode from the size of ``n`` (full, condensed or
computation-only), resolves the strategy that will actually run, and
records the computation as a trace.  Resolution happens in
:func:`resolve_config`, before any step is emitted, so the effective mode
and strategy (and the reason for any override) can be inspected on their
own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..core.step import Step, Trace
from ..core.validation import VALID, ValidationResult, invalid, is_int
from ..solvers.numeric import (
    FLOAT_EXACT_LIMIT,
    TABLE_CAP,
    Strategy,
    decimal_text,
    fast_doubling,
)

logger = logging.getLogger(__name__)

MAX_N = 1_000_000
FULL_MODE_MAX_N = 50
DEFAULT_DETAIL_LEVEL = 50
# Indices 2..ALWAYS_EMITTED are kept in every mode.
ALWAYS_EMITTED = 10
# Most table cells a single step payload carries.
TABLE_SNAPSHOT_LIMIT = 64


class Mode(str, Enum):
    FULL = "full"
    CONDENSED = "condensed"
    COMPUTATION_ONLY = "computation-only"


@dataclass(frozen=True)
class FibonacciInput:
    n: int
    strategy: Strategy | str = Strategy.TABULATED
    detail_level: int | None = None
    mode: Mode | str | None = None


@dataclass(frozen=True)
class FibonacciConfig:
    """Effective settings for one trace, after every override."""

    n: int
    mode: Mode
    strategy: Strategy
    requested_mode: Mode | None
    requested_strategy: Strategy
    detail_level: int
    sample_rate: int
    overrides: tuple[str, ...] = field(default_factory=tuple)


# ── Mode and sampling policies ───────────────────────────────────────

def derive_mode(n: int) -> Mode:
    if n <= FULL_MODE_MAX_N:
        return Mode.FULL
    if n <= TABLE_CAP:
        return Mode.CONDENSED
    return Mode.COMPUTATION_ONLY


def iterative_sample_rate(n: int, detail_level: int) -> int:
    """Stride for condensed iterative traces: ``floor(n / (100 - detail))``.

    At ``detail_level == 100`` the divisor is zero and the stride is
    unbounded; ``n + 1`` reproduces that (no interior index qualifies).
    """
    divisor = 100 - detail_level
    if divisor <= 0:
        return n + 1
    return max(1, n // divisor)


def tabulated_sample_rate(n: int, detail_level: int) -> int:
    """Stride for condensed tabulated traces: ``floor(n / ((100 - detail) * 10))``."""
    return max(1, n // max(1, (100 - detail_level) * 10))


def should_emit(i: int, n: int, mode: Mode, sample_rate: int) -> bool:
    if mode is Mode.FULL:
        return True
    return i % sample_rate == 0 or i == n or i <= ALWAYS_EMITTED


# ── Validation and resolution ────────────────────────────────────────

def validate_input(inp: FibonacciInput) -> ValidationResult:
    if not is_int(inp.n) or inp.n < 0:
        return invalid("n must be a non-negative integer")
    if inp.n > MAX_N:
        return invalid(f"n must be at most {MAX_N:,}")
    if inp.detail_level is not None and (
        not is_int(inp.detail_level) or not 0 <= inp.detail_level <= 100
    ):
        return invalid("detail level must be an integer between 0 and 100")
    try:
        Strategy(inp.strategy)
    except ValueError:
        return invalid(f"unknown strategy {inp.strategy!r}")
    if inp.mode is not None:
        try:
            Mode(inp.mode)
        except ValueError:
            return invalid(f"unknown mode {inp.mode!r}")
    return VALID


def resolve_config(inp: FibonacciInput) -> FibonacciConfig:
    n = inp.n
    detail = DEFAULT_DETAIL_LEVEL if inp.detail_level is None else inp.detail_level
    requested_mode = Mode(inp.mode) if inp.mode is not None else None
    requested_strategy = Strategy(inp.strategy)
    mode = requested_mode or derive_mode(n)
    strategy = requested_strategy
    overrides: list[str] = []

    if n > TABLE_CAP and mode is not Mode.COMPUTATION_ONLY:
        overrides.append(
            f"mode {mode.value} -> computation-only: n exceeds the table cap of {TABLE_CAP:,}"
        )
        mode = Mode.COMPUTATION_ONLY
    if strategy is Strategy.FAST_DOUBLING and mode is not Mode.COMPUTATION_ONLY:
        overrides.append(
            f"mode {mode.value} -> computation-only: fast-doubling keeps no table to show"
        )
        mode = Mode.COMPUTATION_ONLY
    if mode is Mode.COMPUTATION_ONLY and strategy is not Strategy.FAST_DOUBLING:
        overrides.append(f"strategy {strategy.value} -> fast-doubling")
        strategy = Strategy.FAST_DOUBLING

    if mode is Mode.CONDENSED and strategy is Strategy.ITERATIVE:
        sample_rate = iterative_sample_rate(n, detail)
    elif mode is Mode.CONDENSED:
        sample_rate = tabulated_sample_rate(n, detail)
    else:
        sample_rate = 1

    config = FibonacciConfig(
        n=n,
        mode=mode,
        strategy=strategy,
        requested_mode=requested_mode,
        requested_strategy=requested_strategy,
        detail_level=detail,
        sample_rate=sample_rate,
        overrides=tuple(overrides),
    )
    for note in config.overrides:
        logger.info("fibonacci(%d): %s", n, note)
    logger.debug("resolved %s", config)
    return config


# ── Trace generation ─────────────────────────────────────────────────

def _init_step(config: FibonacciConfig) -> Step:
    n = config.n
    payload: dict[str, Any] = {
        "n": n,
        "mode": config.mode.value,
        "requested_mode": config.requested_mode.value if config.requested_mode else None,
        "strategy": config.strategy.value,
        "requested_strategy": config.requested_strategy.value,
        "detail_level": config.detail_level,
        "sample_rate": config.sample_rate,
        "overrides": list(config.overrides),
        "estimated_memory": n * 8,
        "estimated_time": n * 0.001,
    }
    if n > TABLE_CAP:
        payload["warning"] = "Large input detected. Using computation-only mode."
    return Step(
        "init", payload, 0,
        f"Computing Fibonacci({n}) using {config.strategy.value} strategy "
        f"in {config.mode.value} mode",
    )


def _base_case(n: int) -> Trace:
    payload = {"n": n, "result": str(n), "table": [str(n)]}
    return (
        Step("base-case", dict(payload), 2, f"Base case: Fibonacci({n}) = {n}"),
        Step("complete", dict(payload), 15, f"Result: Fibonacci({n}) = {n}"),
    )


def _computation_only(config: FibonacciConfig) -> list[Step]:
    n = config.n
    steps = [
        _init_step(config),
        Step("compute-start", {"n": n, "strategy": Strategy.FAST_DOUBLING.value}, 0,
             f"Computing Fibonacci({n}) using fast doubling algorithm..."),
    ]
    result = decimal_text(fast_doubling(n))
    steps.append(Step(
        "complete", {"n": n, "result": result, "mode": Mode.COMPUTATION_ONLY.value}, 0,
        f"Result: Fibonacci({n}) = {result}",
    ))
    return steps


def _iterative(config: FibonacciConfig) -> list[Step]:
    n, mode, rate = config.n, config.mode, config.sample_rate
    strategy = Strategy.ITERATIVE.value
    steps = [
        _init_step(config),
        Step("init-table", {"values": ["0", "1"], "n": n, "strategy": strategy}, 6,
             "Initialize: a = 0, b = 1"),
    ]
    a, b = 0, 1
    for i in range(2, n + 1):
        emit = should_emit(i, n, mode, rate)
        if emit:
            sa, sb = decimal_text(a), decimal_text(b)
            steps.append(Step(
                "compute",
                {"i": i, "prev1": sb, "prev2": sa, "values": [sa, sb], "n": n,
                 "strategy": strategy},
                10,
                f"Computing F({i}) = F({i - 1}) + F({i - 2}) = {sb} + {sa}",
            ))
        a, b = b, a + b
        if emit:
            sa, sb = decimal_text(a), decimal_text(b)
            steps.append(Step(
                "store",
                {"i": i, "value": sb, "values": [sa, sb], "n": n, "strategy": strategy},
                11,
                f"F({i}) = {sb}",
            ))
    result = decimal_text(b)
    steps.append(Step(
        "complete",
        {"i": n, "n": n, "result": result, "values": [decimal_text(a), result]},
        14,
        f"Result: Fibonacci({n}) = {result}",
    ))
    return steps


def _table_snapshot(cells: list[str], upto: int, n: int) -> dict[str, Any]:
    """Cells F(0..upto), trimmed to the trailing :data:`TABLE_SNAPSHOT_LIMIT`."""
    start = max(0, upto + 1 - TABLE_SNAPSHOT_LIMIT)
    return {"table": cells[start:upto + 1], "table_offset": start, "table_length": n + 1}


def _tabulated(config: FibonacciConfig) -> list[Step]:
    n, mode, rate = config.n, config.mode, config.sample_rate
    strategy = Strategy.TABULATED.value
    big = n > FLOAT_EXACT_LIMIT
    table = [0, 1]
    cells = ["0", "1"]
    steps = [
        _init_step(config),
        Step(
            "init-table",
            {**_table_snapshot(cells, 1, n), "n": n, "strategy": strategy,
             "exceeds_float_range": big},
            6,
            "Initialize table: F[0] = 0, F[1] = 1"
            + (" (beyond exact float range)" if big else ""),
        ),
    ]
    for i in range(2, n + 1):
        emit = should_emit(i, n, mode, rate)
        if emit:
            steps.append(Step(
                "compute",
                {"i": i, "prev1": cells[i - 1], "prev2": cells[i - 2],
                 **_table_snapshot(cells, i - 1, n), "n": n, "strategy": strategy},
                10,
                f"Computing F[{i}] = F[{i - 1}] + F[{i - 2}] = {cells[i - 1]} + {cells[i - 2]}",
            ))
        table.append(table[i - 1] + table[i - 2])
        cells.append(decimal_text(table[i]))
        if emit:
            steps.append(Step(
                "store",
                {"i": i, "value": cells[i], **_table_snapshot(cells, i, n), "n": n,
                 "strategy": strategy},
                11,
                f"Store F[{i}] = {cells[i]}",
            ))
    steps.append(Step(
        "complete", {"n": n, "result": cells[n], **_table_snapshot(cells, n, n)}, 14,
        f"Result: Fibonacci({n}) = {cells[n]}",
    ))
    return steps


def generate_trace(inp: FibonacciInput) -> Trace:
    """Record the computation of F(n).

    Assumes *inp* passed :func:`validate_input`.
    """
    if inp.n <= 1:
        return _base_case(inp.n)
    config = resolve_config(inp)
    if config.mode is Mode.COMPUTATION_ONLY:
        steps = _computation_only(config)
    elif config.strategy is Strategy.ITERATIVE:
        steps = _iterative(config)
    else:
        steps = _tabulated(config)
    logger.debug("fibonacci(%d) trace: %d steps", inp.n, len(steps))
    return tuple(steps)
