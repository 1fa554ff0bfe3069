from __future__ import annotations

from typing import List, Optional, Sequence, Set, Tuple, Union

import numpy as np

SIZE = 9
BASE = 3
DIGITS = frozenset(range(1, SIZE + 1))

Cells = Union[Sequence[Sequence[int]], np.ndarray]


class GridValidationError(ValueError):
    """A non-zero digit appears twice in a row, column or block."""

    def __init__(self, kind: str, index: int, value: int):
        self.kind = kind      # "row" | "column" | "block"
        self.index = index    # 0..8; blocks are numbered row-major
        self.value = value
        super().__init__(f"Conflict: value {value} appears twice in {kind} {index + 1}.")


def _block_origin(r: int, c: int) -> Tuple[int, int]:
    return (r // BASE) * BASE, (c // BASE) * BASE


def _as_array(cells: Cells) -> np.ndarray:
    """
    Coerce caller data into a fresh 9x9 uint8 array.
    Shape and digit range problems are contract violations (plain ValueError).
    """
    try:
        raw = np.array(cells)
    except ValueError as e:
        raise ValueError(f"Grid must be {SIZE} x {SIZE}: {e}") from e
    if raw.shape != (SIZE, SIZE):
        raise ValueError(f"Grid must be {SIZE} x {SIZE}, got shape {raw.shape}.")
    if raw.dtype.kind not in "iu":
        raise ValueError(f"Grid values must be integers, got dtype {raw.dtype}.")
    if raw.min() < 0 or raw.max() > SIZE:
        bad = np.argwhere((raw < 0) | (raw > SIZE))[0]
        r, c = int(bad[0]), int(bad[1])
        raise ValueError(f"Invalid value at ({r+1},{c+1}): {raw[r, c]} (allowed: 0..{SIZE}).")
    return raw.astype(np.uint8)


def _first_duplicate(values: np.ndarray) -> Optional[int]:
    seen = set()
    for v in values.flat:
        v = int(v)
        if v == 0:
            continue
        if v in seen:
            return v
        seen.add(v)
    return None


def _check_unique(arr: np.ndarray) -> None:
    for r in range(SIZE):
        dup = _first_duplicate(arr[r, :])
        if dup is not None:
            raise GridValidationError("row", r, dup)

    for c in range(SIZE):
        dup = _first_duplicate(arr[:, c])
        if dup is not None:
            raise GridValidationError("column", c, dup)

    for b in range(SIZE):
        r0, c0 = (b // BASE) * BASE, (b % BASE) * BASE
        dup = _first_duplicate(arr[r0:r0 + BASE, c0:c0 + BASE])
        if dup is not None:
            raise GridValidationError("block", b, dup)


def validate_cells(cells: Cells) -> Tuple[bool, str]:
    """
    Checks:
      - cells are 9 x 9 integers in 0..9
      - no duplicate values in any row/col/block (ignoring 0)
    """
    try:
        _check_unique(_as_array(cells))
    except ValueError as e:
        return False, str(e)
    return True, "OK"


class Grid:
    """
    A 9x9 Sudoku board, 0 = empty, values 1..9.

    Construction is the only validation gate: an instance that exists never
    holds a repeated digit in a row, column or block. ``set`` trusts its
    caller to assign only candidate-consistent digits.
    """

    __slots__ = ("_cells",)

    def __init__(self, cells: Cells):
        arr = _as_array(cells)
        _check_unique(arr)
        self._cells = arr

    @classmethod
    def _trusted(cls, arr: np.ndarray) -> "Grid":
        g = cls.__new__(cls)
        g._cells = arr
        return g

    @classmethod
    def empty(cls) -> "Grid":
        return cls._trusted(np.zeros((SIZE, SIZE), dtype=np.uint8))

    # -----------------------------
    # Cell access
    # -----------------------------

    @staticmethod
    def _check_index(r: int, c: int) -> None:
        if not (0 <= r < SIZE and 0 <= c < SIZE):
            raise IndexError(f"Cell ({r},{c}) out of range (allowed 0..{SIZE - 1}).")

    def get(self, r: int, c: int) -> int:
        self._check_index(r, c)
        return int(self._cells[r, c])

    def set(self, r: int, c: int, digit: int) -> None:
        self._check_index(r, c)
        if not isinstance(digit, (int, np.integer)):
            raise ValueError(f"Digit must be an integer, got {digit!r}.")
        if not 0 <= digit <= SIZE:
            raise ValueError(f"Invalid digit {digit} (allowed: 0..{SIZE}).")
        self._cells[r, c] = digit

    def __getitem__(self, rc: Tuple[int, int]) -> int:
        return self.get(*rc)

    def __setitem__(self, rc: Tuple[int, int], digit: int) -> None:
        self.set(rc[0], rc[1], digit)

    # -----------------------------
    # Read-only views
    # -----------------------------

    @staticmethod
    def _readonly(view: np.ndarray) -> np.ndarray:
        view.flags.writeable = False
        return view

    def row(self, r: int) -> np.ndarray:
        self._check_index(r, 0)
        return self._readonly(self._cells[r, :])

    def column(self, c: int) -> np.ndarray:
        self._check_index(0, c)
        return self._readonly(self._cells[:, c])

    def block(self, r: int, c: int) -> np.ndarray:
        """The 3x3 block containing cell (r, c)."""
        self._check_index(r, c)
        r0, c0 = _block_origin(r, c)
        return self._readonly(self._cells[r0:r0 + BASE, c0:c0 + BASE])

    def used_digits(self, r: int, c: int) -> Set[int]:
        """Non-zero digits in the row, column and block of (r, c)."""
        self._check_index(r, c)
        r0, c0 = _block_origin(r, c)
        used = np.concatenate((
            self._cells[r, :],
            self._cells[:, c],
            self._cells[r0:r0 + BASE, c0:c0 + BASE].ravel(),
        ))
        return set(used.tolist()) - {0}

    # -----------------------------
    # Whole-board queries
    # -----------------------------

    def empty_cells(self) -> List[Tuple[int, int]]:
        return [(int(r), int(c)) for r, c in np.argwhere(self._cells == 0)]

    def is_complete(self) -> bool:
        return bool(np.all(self._cells != 0))

    def is_solved(self) -> bool:
        if not self.is_complete():
            return False
        groups = [self._cells[i, :] for i in range(SIZE)]
        groups += [self._cells[:, i] for i in range(SIZE)]
        groups += [
            self._cells[r0:r0 + BASE, c0:c0 + BASE]
            for r0 in range(0, SIZE, BASE)
            for c0 in range(0, SIZE, BASE)
        ]
        return all(set(int(v) for v in g.flat) == DIGITS for g in groups)

    # -----------------------------
    # Copies & conversion
    # -----------------------------

    def copy(self) -> "Grid":
        return self._trusted(self._cells.copy())

    def __copy__(self) -> "Grid":
        return self.copy()

    def __deepcopy__(self, memo: dict) -> "Grid":
        return self.copy()

    def to_array(self) -> np.ndarray:
        return self._cells.copy()

    def to_rows(self) -> List[List[int]]:
        return [[int(v) for v in row] for row in self._cells]

    def to_jsonable(self) -> dict:
        return {"rows": SIZE, "columns": SIZE, "cells": self.to_rows()}

    @staticmethod
    def from_jsonable(raw: dict) -> "Grid":
        rows = raw.get("rows", SIZE)
        cols = raw.get("columns", SIZE)
        if (rows, cols) != (SIZE, SIZE):
            raise ValueError(f"Only {SIZE} x {SIZE} grids are supported, got {rows} x {cols}.")
        return Grid(raw["cells"])

    # -----------------------------
    # Dunder
    # -----------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return bool(np.array_equal(self._cells, other._cells))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Grid({self.to_rows()!r})"

    def __str__(self) -> str:
        lines = []
        for r in range(SIZE):
            if r and r % BASE == 0:
                lines.append("------+-------+------")
            parts = []
            for c in range(SIZE):
                if c and c % BASE == 0:
                    parts.append("|")
                v = int(self._cells[r, c])
                parts.append(str(v) if v else ".")
            lines.append(" ".join(parts))
        return "\n".join(lines)
