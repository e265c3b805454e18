"""Filesystem locations used by resume-craft.

Outputs (exports, logs, the usage store) live under ``output/`` at the
project root. Import locations from here rather than rebuilding them.
"""
from __future__ import annotations

from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
OUTPUT_DIR = PROJECT_ROOT / "output"
EXPORT_DIR = OUTPUT_DIR / "exports"
LOG_DIR = OUTPUT_DIR / "logs"
USAGE_STORE = OUTPUT_DIR / "usage.json"


def resolve_under_root(p: str | Path) -> Path:
    """Absolute path for ``p``; relative paths are taken from PROJECT_ROOT.

    Raises:
        ValueError: ``p`` names an existing directory (a file is expected)
    """
    path = Path(p)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    if path.is_dir():
        raise ValueError(f"Path is a directory, not a file: {path}")
    return path
