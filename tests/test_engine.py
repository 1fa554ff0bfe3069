import logging

import pytest

from puzzles import DEAD_END, PUZZLE_1, PUZZLE_2, SOLUTION_1, SOLUTION_2, copy_rows
from sudokulite.engine import (
    DEFAULT_MAX_PASSES,
    SolveOutcome,
    SudokuSolver,
    candidates,
    resolve_max_passes,
    solve,
    solve_detailed,
)
from sudokulite.models import Grid


def assert_valid_solution(grid: Grid) -> None:
    digits = list(range(1, 10))
    for i in range(9):
        assert sorted(int(v) for v in grid.row(i)) == digits
        assert sorted(int(v) for v in grid.column(i)) == digits
    for r0 in range(0, 9, 3):
        for c0 in range(0, 9, 3):
            assert sorted(int(v) for v in grid.block(r0, c0).flat) == digits


def keeps_clues(puzzle: Grid, solution: Grid) -> bool:
    return all(
        puzzle.get(r, c) in (0, solution.get(r, c))
        for r in range(9)
        for c in range(9)
    )


# -----------------------------
# Candidates
# -----------------------------

def test_candidates_exclude_row_column_block():
    g = Grid(PUZZLE_1)
    # row 0 has 6,7; column 0 has 6,3,8; block 0 has 5,9,1
    assert candidates(g, 0, 0) == {2, 4}


def test_candidates_of_filled_cell_is_empty():
    assert candidates(Grid(PUZZLE_1), 0, 4) == set()


def test_candidates_of_empty_grid_is_everything():
    assert candidates(Grid.empty(), 4, 4) == set(range(1, 10))


# -----------------------------
# Solving
# -----------------------------

@pytest.mark.parametrize(
    "puzzle, expected",
    [(PUZZLE_1, SOLUTION_1), (PUZZLE_2, SOLUTION_2)],
)
def test_solves_reference_puzzles(puzzle, expected):
    solution = solve(Grid(puzzle))
    assert solution is not None
    assert solution.to_rows() == expected
    assert_valid_solution(solution)


def test_solve_does_not_mutate_input():
    puzzle = Grid(PUZZLE_1)
    before = puzzle.to_array()
    solution = solve(puzzle)
    assert solution is not None
    assert (puzzle.to_array() == before).all()
    assert solution is not puzzle


def test_solve_is_deterministic():
    first = solve(Grid.empty())
    second = solve(Grid.empty())
    assert first is not None
    assert first == second


def test_solved_input_is_returned_unchanged():
    puzzle = Grid(SOLUTION_2)
    result = solve_detailed(puzzle)
    assert result.outcome is SolveOutcome.SOLVED
    assert result.grid == puzzle
    assert result.grid is not puzzle
    assert result.stats.nodes == 1
    assert result.stats.forced == 0


def test_empty_grid_gets_a_valid_completion():
    solution = solve(Grid.empty())
    assert solution is not None
    assert solution.is_solved()
    assert_valid_solution(solution)


def test_sparse_puzzle_keeps_its_clues():
    rows = [[0] * 9 for _ in range(9)]
    rows[0][0] = 5
    rows[4][4] = 1
    rows[8][8] = 9
    puzzle = Grid(rows)
    solution = solve(puzzle)
    assert solution is not None
    assert solution.is_solved()
    assert keeps_clues(puzzle, solution)


def test_contradiction_after_propagation_returns_none():
    puzzle = Grid(DEAD_END)
    assert solve(puzzle) is None

    result = solve_detailed(puzzle)
    assert result.outcome is SolveOutcome.UNSATISFIABLE
    assert result.grid is None
    assert not result.solved
    assert result.stats.forced >= 1


def test_unsatisfiable_after_branching():
    # The 7 in block 2 leaves three cells of row 0 sharing {8, 9}: no single
    # at the root, and both guesses on (0,6) starve (0,8).
    rows = [[0] * 9 for _ in range(9)]
    rows[0][:6] = [1, 2, 3, 4, 5, 6]
    rows[1][6] = 7
    puzzle = Grid(rows)
    result = solve_detailed(puzzle)
    assert result.outcome is SolveOutcome.UNSATISFIABLE
    assert result.grid is None
    assert result.stats.nodes == 3
    assert result.stats.branches == 2
    assert result.stats.max_depth == 1


def test_budget_exhaustion_is_distinguishable():
    rows = copy_rows(SOLUTION_1)
    rows[8][8] = 0
    puzzle = Grid(rows)

    # The blank is filled in the first pass, a second pass is needed to see
    # that nothing is left.
    starved = solve_detailed(puzzle, max_passes=1)
    assert starved.outcome is SolveOutcome.BUDGET_EXCEEDED
    assert starved.grid is None
    assert solve(puzzle, max_passes=1) is None

    enough = solve_detailed(puzzle, max_passes=2)
    assert enough.outcome is SolveOutcome.SOLVED
    assert enough.grid.to_rows() == SOLUTION_1
    assert enough.stats.passes == 2


def test_stats_are_collected():
    result = solve_detailed(Grid(PUZZLE_1))
    assert result.solved
    assert result.stats.nodes >= 1
    assert result.stats.passes >= result.stats.nodes
    assert result.stats.forced > 0
    assert result.stats.max_depth <= 81
    assert result.stats.branches == result.stats.nodes - 1


def test_solver_logs_outcome(caplog):
    with caplog.at_level(logging.INFO, logger="sudokulite.engine"):
        solve(Grid(PUZZLE_2))
    assert any("solved" in rec.getMessage() for rec in caplog.records)


# -----------------------------
# Configuration
# -----------------------------

def test_max_passes_defaults(monkeypatch):
    monkeypatch.delenv("SUDOKULITE_MAX_PASSES", raising=False)
    assert resolve_max_passes() == DEFAULT_MAX_PASSES == 1000
    assert SudokuSolver().max_passes == 1000


def test_max_passes_from_environment(monkeypatch):
    monkeypatch.setenv("SUDOKULITE_MAX_PASSES", "25")
    assert SudokuSolver().max_passes == 25
    assert SudokuSolver(max_passes=7).max_passes == 7


@pytest.mark.parametrize("raw", ["abc", "0", "-3"])
def test_bad_max_passes_environment(monkeypatch, raw):
    monkeypatch.setenv("SUDOKULITE_MAX_PASSES", raw)
    with pytest.raises(ValueError):
        resolve_max_passes()


def test_non_positive_max_passes_rejected():
    with pytest.raises(ValueError):
        SudokuSolver(max_passes=0)


@pytest.mark.parametrize("puzzle", [PUZZLE_1, PUZZLE_2, DEAD_END])
def test_candidates_match_row_column_block_scan(puzzle):
    g = Grid(puzzle)
    for r in range(9):
        for c in range(9):
            if g.get(r, c):
                continue
            used = set(int(v) for v in g.row(r))
            used |= set(int(v) for v in g.column(c))
            used |= set(int(v) for v in g.block(r, c).flat)
            assert candidates(g, r, c) == set(range(1, 10)) - used


def test_forced_digit_is_seen_later_in_the_same_pass():
    # (0,7) is forced to 9 early in the first pass; (0,8) must see it at once
    result = solve_detailed(Grid(DEAD_END))
    assert result.outcome is SolveOutcome.UNSATISFIABLE
    assert result.stats.passes == 1
    assert result.stats.forced == 1


def test_branch_values_are_ascending(caplog):
    with caplog.at_level(logging.DEBUG, logger="sudokulite.engine"):
        solve(Grid.empty())
    branching = [rec.getMessage() for rec in caplog.records if rec.getMessage().startswith("Branching")]
    assert branching[0] == "Branching at (0,0) depth 0 over [1, 2, 3, 4, 5, 6, 7, 8, 9]"
