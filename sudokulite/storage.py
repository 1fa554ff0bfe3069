from __future__ import annotations

import json
import logging
import os
from typing import Optional

import pandas as pd

from .models import SIZE, Grid

log = logging.getLogger(__name__)


def default_grid_path() -> str:
    return os.path.join(".", "data", "puzzle.json")


def resolve_grid_path() -> str:
    return os.environ.get("SUDOKULITE_PUZZLE", default_grid_path())


def ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)


def is_csv(path: str) -> bool:
    return os.path.splitext(path)[1].lower() == ".csv"


# -----------------------------
# JSON
# -----------------------------

def load_grid(path: Optional[str] = None) -> Grid:
    p = path or resolve_grid_path()
    with open(p, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict) or "cells" not in raw:
        raise ValueError(f"{p}: expected an object with a 'cells' array.")
    grid = Grid.from_jsonable(raw)
    log.info("Loaded grid from %s (%d empty cells)", p, len(grid.empty_cells()))
    return grid


def save_grid(grid: Grid, path: Optional[str] = None) -> None:
    p = path or resolve_grid_path()
    ensure_parent_dir(p)
    with open(p, "w", encoding="utf-8") as f:
        json.dump(grid.to_jsonable(), f, indent=2)
    log.info("Saved grid to %s", p)


# -----------------------------
# CSV (nine rows, no header)
# -----------------------------

def load_grid_csv(path: str) -> Grid:
    df = pd.read_csv(path, header=None)
    if df.shape != (SIZE, SIZE):
        raise ValueError(f"{path}: expected {SIZE} rows of {SIZE} values, got {df.shape[0]} x {df.shape[1]}.")
    grid = Grid(df.to_numpy())
    log.info("Loaded grid from %s (%d empty cells)", path, len(grid.empty_cells()))
    return grid


def save_grid_csv(grid: Grid, path: str) -> None:
    ensure_parent_dir(path)
    pd.DataFrame(grid.to_array()).to_csv(path, header=False, index=False)
    log.info("Saved grid to %s", path)


def load_any(path: Optional[str] = None) -> Grid:
    p = path or resolve_grid_path()
    return load_grid_csv(p) if is_csv(p) else load_grid(p)


def save_any(grid: Grid, path: Optional[str] = None) -> None:
    p = path or resolve_grid_path()
    if is_csv(p):
        save_grid_csv(grid, p)
    else:
        save_grid(grid, p)
