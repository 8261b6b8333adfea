"""Utility functions for Tankobon."""

from __future__ import annotations

import re
from pathlib import Path


def short_path(path: Path) -> str:
    """Return abbreviated path showing only parent folder + filename.

    Example: /very/long/path/to/folder/file.cbz -> folder/file.cbz
    """
    return f"{path.parent.name}/{path.name}"


def natural_sort_key(name: str):
    """Sort key for image names so 1, 2, 10 order correctly (not 1, 10, 2)."""
    parts = re.split(r"(\d+)", name)
    return [
        int(part) if part.isdigit() else part.lower()
        for part in parts
    ]
