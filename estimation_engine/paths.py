# estimation_engine/paths.py
from __future__ import annotations

import os
from pathlib import Path

# Score sheets, audit logs and charts from the CLI. Override with
# ESTIMATION_RESULTS_DIR.
RESULTS_DIR = Path(
    os.environ.get("ESTIMATION_RESULTS_DIR", Path.cwd() / "results")
).resolve()


def ensure_results_dir() -> Path:
    """Make sure the score-sheet output folder exists before exporting into it."""
    RESULTS_DIR.mkdir(parents=True, exist_ok=True)
    return RESULTS_DIR


def resolve_results_path(path_like: str | Path) -> Path:
    """
    Where an exported score sheet, audit log or chart should be written.

    A bare file name such as ``game_scores.csv`` lands in RESULTS_DIR, which
    is created on demand. Absolute paths are used as given.
    """
    target = Path(path_like)
    if target.is_absolute():
        return target
    return ensure_results_dir() / target
