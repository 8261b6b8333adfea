"""Path utilities for walking from a reading item up to its library root."""

from __future__ import annotations

from pathlib import Path
from typing import List, Union


def to_relative(absolute_path: Path, library_root: Path) -> str:
    """Convert an absolute path to a path string relative to the library root.

    Example:
        >>> to_relative(Path("/library/Manga/Berserk/v01.cbz"), Path("/library/Manga"))
        "Berserk/v01.cbz"
    """
    try:
        return str(absolute_path.relative_to(library_root))
    except ValueError:
        return str(absolute_path)


def folders_till_root(root_path: Union[str, Path], file_path: Union[str, Path]) -> List[str]:
    """Return folder names between `file_path` and `root_path`, deepest first.

    The root itself is excluded, so a file directly under the root yields [].
    A file outside the root also yields [].

    Example:
        >>> folders_till_root("/manga", "/manga/Berserk/Vol 01/c001.cbz")
        ["Vol 01", "Berserk"]
    """
    root = Path(root_path)
    path = Path(file_path)
    # Treat anything with an extension as a file and start from its folder
    folder = path.parent if path.suffix else path
    try:
        relative = folder.relative_to(root)
    except ValueError:
        return []
    return [part for part in reversed(relative.parts) if part not in ("", ".")]
