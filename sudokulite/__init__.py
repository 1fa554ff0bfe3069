from .engine import SolveOutcome, SolveResult, SolveStats, SudokuSolver, candidates, solve, solve_detailed
from .models import Grid, GridValidationError, validate_cells

__all__ = [
    "Grid",
    "GridValidationError",
    "SolveOutcome",
    "SolveResult",
    "SolveStats",
    "SudokuSolver",
    "candidates",
    "solve",
    "solve_detailed",
    "validate_cells",
]
