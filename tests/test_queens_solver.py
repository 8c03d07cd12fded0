"""Tests for the N-Queens backtracking search."""

from __future__ import annotations

import itertools

import pytest

from trace_playback.solvers.queens import (
    BACKTRACK,
    CHECK_SAFE,
    PLACE_QUEEN,
    SOLUTION_FOUND,
    STEP_LIMIT,
    TRY_COL,
    TRY_ROW,
    QueensSolver,
    Variant,
    count_solutions,
    is_safe,
    is_safe_bitmask,
)

# Total number of solutions per board size.
KNOWN_COUNTS = {1: 1, 2: 0, 3: 0, 4: 2, 5: 10, 6: 4, 7: 40, 8: 92}


def _masks(placed: tuple[int, ...]) -> tuple[int, int, int]:
    cols = diag1 = diag2 = 0
    for row, col in enumerate(placed):
        cols |= 1 << col
        diag1 |= 1 << (row - col + 20)
        diag2 |= 1 << (row + col)
    return cols, diag1, diag2


class TestSafetyChecks:
    def test_column_and_diagonals(self):
        placed = (1,)
        assert not is_safe(placed, 1, 1)
        assert not is_safe(placed, 1, 0)
        assert not is_safe(placed, 1, 2)
        assert is_safe(placed, 1, 3)

    def test_bitmask_agrees(self):
        """Bit tests give the same verdict as the direct scan."""
        for placed in [(0, 2), (1, 3, 0), (4, 1, 3), (2, 0)]:
            row = len(placed)
            masks = _masks(placed)
            for col in range(6):
                assert is_safe(placed, row, col) == is_safe_bitmask(row, col, *masks)


class TestSolutionCounts:
    def test_four_has_two(self):
        assert count_solutions(4, max_solutions=10) == 2

    def test_eight_stops_at_one(self):
        assert count_solutions(8, max_solutions=1) == 1

    @pytest.mark.parametrize("n", [2, 3])
    def test_no_solution_boards(self, n):
        assert count_solutions(n, max_solutions=10) == 0

    def test_single_queen(self):
        assert QueensSolver(1).solve() == [(0,)]

    @pytest.mark.parametrize("variant", list(Variant))
    @pytest.mark.parametrize("n,expected", sorted(KNOWN_COUNTS.items()))
    def test_known_counts(self, n, expected, variant):
        assert count_solutions(n, max_solutions=100, variant=variant) == expected

    def test_solution_order(self):
        """Columns ascend, so solutions come out in lexicographic order."""
        assert QueensSolver(4, 10).solve() == [(1, 3, 0, 2), (2, 0, 3, 1)]
        assert QueensSolver(8, 1).solve() == [(0, 4, 7, 5, 2, 6, 1, 3)]

    def test_variants_agree_on_order(self):
        traditional = QueensSolver(6, 10).solve()
        bitmask = QueensSolver(6, 10, variant="bitmask").solve()
        assert traditional == bitmask

    def test_solutions_are_valid(self):
        for placement in QueensSolver(7, 40).solve():
            for (r1, c1), (r2, c2) in itertools.combinations(enumerate(placement), 2):
                assert c1 != c2
                assert abs(c1 - c2) != r2 - r1

    def test_board_size_bounds(self):
        with pytest.raises(ValueError):
            QueensSolver(0)
        with pytest.raises(ValueError):
            QueensSolver(21)


class TestStepLimit:
    def test_limit_stops_search(self):
        solver = QueensSolver(8, 92, step_limit=10)
        events = list(solver.events())
        assert solver.limit_reached
        assert events[-1].kind == STEP_LIMIT
        assert len(solver.solutions) < 92
        assert solver.steps_taken == 12

    def test_generous_limit_not_reached(self):
        solver = QueensSolver(6, 100)
        solver.solve()
        assert not solver.limit_reached


class TestEvents:
    def test_opening_sequence(self):
        events = list(QueensSolver(4).events())
        assert [e.kind for e in events[:5]] == [TRY_ROW, TRY_COL, CHECK_SAFE, PLACE_QUEEN, TRY_ROW]
        assert events[2].safe is True
        assert (events[3].row, events[3].col) == (0, 0)

    def test_bitmask_skips_column_events(self):
        kinds = {e.kind for e in QueensSolver(6, 4, variant="bitmask").events()}
        assert TRY_COL not in kinds
        assert CHECK_SAFE not in kinds
        assert {TRY_ROW, PLACE_QUEEN, BACKTRACK, SOLUTION_FOUND} <= kinds

    def test_board_snapshots_not_aliased(self):
        """A board read from an early event is unaffected by later moves."""
        events = list(QueensSolver(4).events())
        first_place = next(e for e in events if e.kind == PLACE_QUEEN)
        backtrack = next(e for e in events if e.kind == BACKTRACK)
        assert first_place.board == [0, -1, -1, -1]
        assert backtrack.board[backtrack.row] == -1

    def test_solution_numbering(self):
        found = [e for e in QueensSolver(5, 3).events() if e.kind == SOLUTION_FOUND]
        assert [e.solution_number for e in found] == [1, 2, 3]

    def test_rerun_resets_state(self):
        solver = QueensSolver(4, 10)
        solver.solve()
        assert solver.solve() == [(1, 3, 0, 2), (2, 0, 3, 1)]
