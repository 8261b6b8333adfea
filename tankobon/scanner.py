"""Library scanner for Tankobon.

Walks a library folder and resolves every candidate file through the
reading item service on a bounded thread pool. Per-file failures are logged
and counted; they never abort the scan.
"""

from __future__ import annotations

import dataclasses
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from .config import TankobonConfig
from .errors import FileReadError
from .formats import ItemFormat, classify_format
from .logging_config import get_logger
from .models import LibraryType, ParsedItem
from .path_utils import to_relative
from .reading_items import ReadingItemService
from .utils import short_path

logger = get_logger(__name__)


@dataclasses.dataclass
class ScanResult:
    items: List[ParsedItem] = dataclasses.field(default_factory=list)
    skipped: int = 0
    failed: int = 0

    @property
    def parsed(self) -> int:
        return len(self.items)


def is_reading_item(path: Path) -> bool:
    """Return True if the path has a format the reading item service understands."""
    return classify_format(path) is not ItemFormat.UNKNOWN


def _should_ignore(name: str, ignore_patterns: Iterable[str]) -> bool:
    """Check if file/folder should be ignored based on patterns or macOS temp files."""
    if name.startswith("._"):
        return True
    return name in ignore_patterns


def walk_library(
    root: Path,
    ignore_patterns: Tuple[str, ...],
) -> Iterator[Tuple[Path, List[Path]]]:
    """Yield (directory, candidate_files) under root, respecting ignore patterns."""
    root = root.resolve()
    for dirpath, dirnames, filenames in os.walk(root):
        dir_path = Path(dirpath)

        # Filter out ignored directories in-place so os.walk doesn't descend
        dirnames[:] = sorted(
            d for d in dirnames if not _should_ignore(d, ignore_patterns)
        )

        files = [
            dir_path / f
            for f in sorted(filenames)
            if not _should_ignore(f, ignore_patterns)
            and is_reading_item(Path(f))
        ]
        yield dir_path, files


def process_file(
    service: ReadingItemService,
    path: Path,
    root_path: Path,
    library_type: LibraryType,
) -> Optional[ParsedItem]:
    """Resolve one file. Returns None if it is not a reading item.

    Raises FileReadError if the file cannot be read.
    """
    item = service.parse_file(path, root_path, library_type)
    if item is None:
        logger.debug(f"- {short_path(path)} - not a reading item")
        return None
    logger.debug(f"✓ {short_path(path)} -> {item.series} v{item.volumes} c{item.chapters}")
    return item


def scan_library(
    config: TankobonConfig,
    path: Optional[Path] = None,
    workers: Optional[int] = None,
    service: Optional[ReadingItemService] = None,
) -> ScanResult:
    """Resolve every reading item under the library (or a subfolder of it).

    :param config: Loaded Tankobon configuration.
    :param path: Optional subfolder to limit the scan.
    :param workers: Thread pool size, defaults to `scanner.workers`.
    :return: ScanResult with the resolved items and skip/failure counts.
    """
    library_root = config.library_path.resolve()
    base = (path or library_root).resolve()
    if not base.exists():
        raise FileNotFoundError(f"Library path does not exist: {base}")

    service = service or ReadingItemService(config.covers_dir)
    library_type = config.library_type
    ignore_patterns = tuple(config.scanner.ignore_patterns)

    files: List[Path] = []
    for dir_path, dir_files in walk_library(base, ignore_patterns):
        folder_display = to_relative(dir_path, library_root)
        logger.info(f"[SCAN] {'root' if folder_display == '.' else folder_display} ({len(dir_files)} files)")
        files.extend(dir_files)

    result = ScanResult()
    with ThreadPoolExecutor(max_workers=workers or config.scanner.workers) as pool:
        futures = {
            pool.submit(process_file, service, file_path, library_root, library_type): file_path
            for file_path in files
        }
        for future in as_completed(futures):
            file_path = futures[future]
            try:
                item = future.result()
            except FileReadError as exc:
                logger.error(f"✗ {short_path(file_path)} - {exc.reason or 'unreadable'}")
                result.failed += 1
                continue

            if item is None:
                result.skipped += 1
            else:
                result.items.append(item)

    result.items.sort(key=lambda i: i.full_file_path)
    return result
