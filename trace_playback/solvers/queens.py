"""N-Queens backtracking search.

The search is a recursive generator: every frame owns an immutable tuple of
the columns placed so far, and yields :class:`SearchEvent` records as it
explores.  Consumers (the trace builder, or :meth:`QueensSolver.solve`)
decide which events to keep.  Because frames never share a mutable board,
a snapshot taken from an event is always the board as it was at that
moment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Generator, Iterator

logger = logging.getLogger(__name__)

# Hard safety cap on the board size.  Also the offset that keeps the
# "\"-diagonal index ``row - col`` non-negative in the bitmask variant.
MAX_N = 20

TRY_ROW = "try-row"
TRY_COL = "try-col"
CHECK_SAFE = "check-safe"
PLACE_QUEEN = "place-queen"
BACKTRACK = "backtrack"
SOLUTION_FOUND = "solution-found"
STEP_LIMIT = "step-limit"


class Variant(str, Enum):
    TRADITIONAL = "traditional"
    BITMASK = "bitmask"


@dataclass(frozen=True)
class SearchEvent:
    kind: str
    n: int
    placed: tuple[int, ...] = ()
    row: int | None = None
    col: int | None = None
    safe: bool | None = None
    solution_number: int = 0

    @property
    def board(self) -> list[int]:
        """Column per row, ``-1`` for rows without a queen."""
        return list(self.placed) + [-1] * (self.n - len(self.placed))


def is_safe(placed: tuple[int, ...], row: int, col: int) -> bool:
    """Direct scan against every placed queen, O(row)."""
    for r, c in enumerate(placed[:row]):
        if c == col or abs(c - col) == row - r:
            return False
    return True


def is_safe_bitmask(row: int, col: int, cols: int, diag1: int, diag2: int) -> bool:
    """Three bit tests: column, "\\"-diagonal and "/"-diagonal."""
    return not (
        cols & (1 << col)
        or diag1 & (1 << (row - col + MAX_N))
        or diag2 & (1 << (row + col))
    )


SearchFrame = Generator[SearchEvent, None, bool]


class QueensSolver:
    """Depth-first, row-by-row search for up to *max_solutions* placements.

    Columns are tried in ascending order, so the order of solutions (and of
    events) is fixed for a given configuration.  ``step_limit`` bounds the
    number of non-terminal rows entered; when it is exceeded the search
    stops and whatever was found so far is final.
    """

    def __init__(
        self,
        n: int,
        max_solutions: int = 1,
        *,
        variant: Variant | str = Variant.TRADITIONAL,
        step_limit: int = 100_000,
    ) -> None:
        if not 1 <= n <= MAX_N:
            raise ValueError(f"n must be between 1 and {MAX_N}, got {n}")
        self.n = n
        self.max_solutions = max_solutions
        self.variant = Variant(variant)
        self.step_limit = step_limit
        self.solutions: list[tuple[int, ...]] = []
        self.steps_taken = 0
        self.limit_reached = False

    def events(self) -> Iterator[SearchEvent]:
        """Run a fresh search, yielding every event in order."""
        self.solutions = []
        self.steps_taken = 0
        self.limit_reached = False
        yield from self._search(0, (), 0, 0, 0)
        logger.debug(
            "%d-queens %s search: %d solution(s), %d steps, limit reached: %s",
            self.n, self.variant.value, len(self.solutions),
            self.steps_taken, self.limit_reached,
        )

    def solve(self) -> list[tuple[int, ...]]:
        for _ in self.events():
            pass
        return list(self.solutions)

    def _search(
        self, row: int, placed: tuple[int, ...], cols: int, diag1: int, diag2: int
    ) -> SearchFrame:
        n = self.n
        if row == n:
            self.solutions.append(placed)
            yield SearchEvent(SOLUTION_FOUND, n, placed,
                              solution_number=len(self.solutions))
            return len(self.solutions) >= self.max_solutions

        taken = self.steps_taken
        self.steps_taken += 1
        if taken > self.step_limit:
            self.limit_reached = True
            logger.info("%d-queens search hit the step limit (%d)", n, self.step_limit)
            yield SearchEvent(STEP_LIMIT, n, placed)
            return True

        bitmask = self.variant is Variant.BITMASK
        yield SearchEvent(TRY_ROW, n, placed, row=row)

        for col in range(n):
            if bitmask:
                safe = is_safe_bitmask(row, col, cols, diag1, diag2)
            else:
                yield SearchEvent(TRY_COL, n, placed, row=row, col=col)
                safe = is_safe(placed, row, col)
                yield SearchEvent(CHECK_SAFE, n, placed, row=row, col=col, safe=safe)
            if not safe:
                continue

            child = placed + (col,)
            yield SearchEvent(PLACE_QUEEN, n, child, row=row, col=col)
            done = yield from self._search(
                row + 1,
                child,
                cols | (1 << col),
                diag1 | (1 << (row - col + MAX_N)),
                diag2 | (1 << (row + col)),
            )
            if done:
                return True
            yield SearchEvent(BACKTRACK, n, placed, row=row, col=col)

        return False


def count_solutions(n: int, max_solutions: int = 1, **kwargs) -> int:
    """Number of solutions found for an *n*-board, capped at *max_solutions*."""
    return len(QueensSolver(n, max_solutions, **kwargs).solve())
