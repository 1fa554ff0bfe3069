from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from .models import BASE, DIGITS, SIZE, Grid

log = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 1000


def resolve_max_passes() -> int:
    raw = os.environ.get("SUDOKULITE_MAX_PASSES")
    if raw is None or raw.strip() == "":
        return DEFAULT_MAX_PASSES
    try:
        n = int(raw)
    except ValueError as e:
        raise ValueError(f"SUDOKULITE_MAX_PASSES must be an integer, got {raw!r}.") from e
    if n <= 0:
        raise ValueError(f"SUDOKULITE_MAX_PASSES must be positive, got {n}.")
    return n


class SolveOutcome(enum.Enum):
    SOLVED = "solved"
    UNSATISFIABLE = "unsatisfiable"
    BUDGET_EXCEEDED = "budget_exceeded"


@dataclass
class SolveStats:
    nodes: int = 0      # search invocations, root included
    passes: int = 0     # propagation passes over the whole tree
    forced: int = 0     # naked singles assigned
    branches: int = 0   # candidate values tried at branch cells
    max_depth: int = 0


@dataclass
class SolveResult:
    outcome: SolveOutcome
    grid: Optional[Grid] = None
    stats: SolveStats = field(default_factory=SolveStats)

    @property
    def solved(self) -> bool:
        return self.outcome is SolveOutcome.SOLVED


# -----------------------------
# Candidates
# -----------------------------

def candidates(grid: Grid, r: int, c: int) -> Set[int]:
    """Digits 1..9 absent from the row, column and block of (r, c)."""
    if grid.get(r, c) != 0:
        return set()
    return set(DIGITS.difference(grid.used_digits(r, c)))


# bits 1..9 set
FULL_MASK = (1 << (SIZE + 1)) - 2


def _box_index(r: int, c: int) -> int:
    return (r // BASE) * BASE + (c // BASE)


def _mask_digits(mask: int) -> List[int]:
    return [v for v in range(1, SIZE + 1) if mask & (1 << v)]


def _used_masks(rows: List[List[int]]) -> Tuple[List[int], List[int], List[int]]:
    row_used = [0] * SIZE
    col_used = [0] * SIZE
    box_used = [0] * SIZE
    for r in range(SIZE):
        for c in range(SIZE):
            v = rows[r][c]
            if v:
                bit = 1 << v
                row_used[r] |= bit
                col_used[c] |= bit
                box_used[_box_index(r, c)] |= bit
    return row_used, col_used, box_used


# -----------------------------
# Search
# -----------------------------

class SudokuSolver:
    """
    Naked-single propagation interleaved with depth-first backtracking.

    Every search node owns its own Grid copy; siblings never share state, so
    a failed branch needs no undo. The branch cell is the first empty cell
    (row-major) with the fewest candidates, and its candidates are tried in
    ascending order, which makes the search fully deterministic.
    """

    def __init__(self, max_passes: Optional[int] = None):
        if max_passes is None:
            max_passes = resolve_max_passes()
        if max_passes <= 0:
            raise ValueError(f"max_passes must be positive, got {max_passes}.")
        self.max_passes = max_passes

    def solve(self, puzzle: Grid) -> Optional[Grid]:
        return self.solve_detailed(puzzle).grid

    def solve_detailed(self, puzzle: Grid) -> SolveResult:
        stats = SolveStats()
        work = puzzle.copy()
        outcome, solution = self._search(work, 0, stats)
        result = SolveResult(outcome=outcome, grid=solution, stats=stats)
        log.info(
            "Search finished: %s (nodes=%d, passes=%d, forced=%d, branches=%d, depth=%d)",
            outcome.value, stats.nodes, stats.passes, stats.forced, stats.branches, stats.max_depth,
        )
        return result

    def _propagate(
        self, grid: Grid, stats: SolveStats
    ) -> Tuple[Optional[SolveOutcome], Optional[Tuple[int, int, List[int]]]]:
        """
        Force naked singles in place until the board is complete, a
        contradiction shows up, or only multi-candidate cells remain.
        Returns a final outcome, or (None, branch) when propagation stalled
        and the search must branch on that cell and its sorted candidates.
        """
        rows = grid.to_rows()
        row_used, col_used, box_used = _used_masks(rows)

        for _ in range(self.max_passes):
            stats.passes += 1
            best: Optional[Tuple[int, int, int]] = None
            best_count = SIZE + 1

            for r in range(SIZE):
                for c in range(SIZE):
                    if rows[r][c]:
                        continue
                    b = _box_index(r, c)
                    mask = FULL_MASK & ~(row_used[r] | col_used[c] | box_used[b])
                    count = bin(mask).count("1")
                    if count == 0:
                        log.debug("Contradiction at (%d,%d): no candidates", r, c)
                        return SolveOutcome.UNSATISFIABLE, None
                    if count == 1:
                        # later cells in this pass see the forced digit
                        v = mask.bit_length() - 1
                        rows[r][c] = v
                        grid.set(r, c, v)
                        row_used[r] |= mask
                        col_used[c] |= mask
                        box_used[b] |= mask
                        stats.forced += 1
                    if count < best_count:
                        best, best_count = (r, c, mask), count

            if best is None:
                return SolveOutcome.SOLVED, None
            if best_count > 1:
                return None, (best[0], best[1], _mask_digits(best[2]))

        log.debug("Propagation ceiling of %d passes reached", self.max_passes)
        return SolveOutcome.BUDGET_EXCEEDED, None

    def _search(
        self, grid: Grid, depth: int, stats: SolveStats
    ) -> Tuple[SolveOutcome, Optional[Grid]]:
        stats.nodes += 1
        stats.max_depth = max(stats.max_depth, depth)

        outcome, branch = self._propagate(grid, stats)
        if outcome is SolveOutcome.SOLVED:
            return outcome, grid
        if outcome is not None:
            return outcome, None

        r, c, values = branch  # type: ignore[misc]
        log.debug("Branching at (%d,%d) depth %d over %s", r, c, depth, values)

        budget_hit = False
        for v in values:
            stats.branches += 1
            child = grid.copy()
            child.set(r, c, v)
            sub_outcome, solution = self._search(child, depth + 1, stats)
            if sub_outcome is SolveOutcome.SOLVED:
                return sub_outcome, solution
            if sub_outcome is SolveOutcome.BUDGET_EXCEEDED:
                budget_hit = True

        if budget_hit:
            return SolveOutcome.BUDGET_EXCEEDED, None
        return SolveOutcome.UNSATISFIABLE, None


def solve(puzzle: Grid, max_passes: Optional[int] = None) -> Optional[Grid]:
    """
    Solve a validated puzzle. Returns a NEW solved Grid or None.
    None covers both a proven contradiction and an exhausted pass budget;
    use solve_detailed to tell them apart.
    """
    return SudokuSolver(max_passes).solve(puzzle)


def solve_detailed(puzzle: Grid, max_passes: Optional[int] = None) -> SolveResult:
    return SudokuSolver(max_passes).solve_detailed(puzzle)
