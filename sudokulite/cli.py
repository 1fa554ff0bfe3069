from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from .engine import SolveOutcome, SudokuSolver
from .models import GridValidationError
from .storage import load_any, resolve_grid_path, save_any

log = logging.getLogger(__name__)

EXIT_SOLVED = 0
EXIT_NO_SOLUTION = 1
EXIT_INVALID = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sudokulite",
        description="Solve 9x9 Sudoku puzzles stored as JSON or CSV.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_solve = sub.add_parser("solve", help="Solve a puzzle file")
    p_solve.add_argument("path", nargs="?", help=f"Puzzle file (default: {resolve_grid_path()})")
    p_solve.add_argument("-o", "--output", help="Write the solution here (.csv or .json)")
    p_solve.add_argument("--max-passes", type=int, default=None,
                         help="Propagation pass ceiling per search node")

    p_check = sub.add_parser("check", help="Validate a puzzle file without solving")
    p_check.add_argument("path", nargs="?", help=f"Puzzle file (default: {resolve_grid_path()})")
    return parser


def _load(path: Optional[str]):
    try:
        return load_any(path)
    except GridValidationError as e:
        print(f"Invalid puzzle: {e}", file=sys.stderr)
    except (OSError, ValueError, json.JSONDecodeError) as e:
        print(f"Could not read puzzle: {e}", file=sys.stderr)
    return None


def cmd_check(args: argparse.Namespace) -> int:
    grid = _load(args.path)
    if grid is None:
        return EXIT_INVALID
    print(grid)
    print("Board looks valid.")
    return EXIT_SOLVED


def cmd_solve(args: argparse.Namespace) -> int:
    grid = _load(args.path)
    if grid is None:
        return EXIT_INVALID

    try:
        solver = SudokuSolver(args.max_passes)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return EXIT_INVALID

    result = solver.solve_detailed(grid)
    if result.outcome is SolveOutcome.UNSATISFIABLE:
        print("No solution: the puzzle is unsolvable.")
        return EXIT_NO_SOLUTION
    if result.outcome is SolveOutcome.BUDGET_EXCEEDED:
        print(f"No solution found within {solver.max_passes} propagation passes per node.")
        return EXIT_NO_SOLUTION

    print(result.grid)
    if args.output:
        try:
            save_any(result.grid, args.output)
        except OSError as e:
            print(f"Could not write solution: {e}", file=sys.stderr)
            return EXIT_INVALID
        print(f"Solution written to {args.output}")
    return EXIT_SOLVED


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.command == "check":
        return cmd_check(args)
    return cmd_solve(args)


if __name__ == "__main__":
    sys.exit(main())
