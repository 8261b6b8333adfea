"""Filename-driven parsing of reading items.

Builds a `ParsedItem` from the file name alone, falling back to the folders
between the file and the library root when the name does not carry a series.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from . import parser
from .formats import classify_format, is_epub, is_image, is_pdf
from .models import DEFAULT_CHAPTER, LOOSE_LEAF_VOLUME, LibraryType, ParsedItem
from .path_utils import folders_till_root


def _uses_comic_rules(library_type: LibraryType) -> bool:
    return library_type is LibraryType.COMIC


def parse_filename(
    path: Union[str, Path],
    root_path: Union[str, Path],
    library_type: LibraryType = LibraryType.MANGA,
) -> Optional[ParsedItem]:
    """Parse series, volume and chapter out of a file path.

    Returns None when nothing usable can be derived (no series), or when the
    file is a cover image outside an image library.
    """
    path = Path(path)
    file_name = path.stem
    is_comic = _uses_comic_rules(library_type)

    if library_type is not LibraryType.IMAGE and parser.is_cover_image(path.name):
        return None

    if is_epub(path):
        item = ParsedItem(
            chapters=_not_default(parser.parse_chapter(file_name), DEFAULT_CHAPTER)
            or parser.parse_comic_chapter(file_name),
            series=parser.parse_series(file_name) or parser.parse_comic_series(file_name),
            volumes=_not_default(parser.parse_volume(file_name), LOOSE_LEAF_VOLUME)
            or parser.parse_comic_volume(file_name),
        )
    elif is_comic:
        item = ParsedItem(
            chapters=parser.parse_comic_chapter(file_name),
            series=parser.parse_comic_series(file_name),
            volumes=parser.parse_comic_volume(file_name),
            title=file_name,
        )
    else:
        item = ParsedItem(
            chapters=parser.parse_chapter(file_name),
            series=parser.parse_series(file_name),
            volumes=parser.parse_volume(file_name),
            title=file_name,
        )
    item.filename = path.name
    item.full_file_path = str(path)
    item.format = classify_format(path)

    if is_image(path):
        # Image names rarely carry anything useful; folders do
        item.volumes = LOOSE_LEAF_VOLUME
        item.chapters = DEFAULT_CHAPTER
        item.series = ""

    if not item.series or is_image(path):
        parse_from_fallback_folders(path, root_path, library_type, item)

    edition = parser.parse_edition(file_name)
    if edition:
        item.series = parser.clean_title(item.series.replace(edition, ""), is_comic)
        item.edition = edition

    is_special = parser.is_comic_special(file_name) if is_comic else parser.is_manga_special(file_name)
    # "v20 c171-180 Omake" has real numbers; only a bare special is a special
    if item.has_default_chapter and item.is_loose_leaf and is_special:
        item.is_special = True
        parse_from_fallback_folders(path, root_path, library_type, item)

    if parser.has_special_marker(file_name):
        item.is_special = True
        item.chapters = DEFAULT_CHAPTER
        item.volumes = LOOSE_LEAF_VOLUME
        parse_from_fallback_folders(path, root_path, library_type, item)

    if not item.series:
        item.series = parser.clean_title(file_name, is_comic)

    if is_pdf(path) and item.series.lower().endswith(".pdf"):
        item.series = item.series[: -len(".pdf")]

    return item if item.series else None


def _not_default(value: str, sentinel: str) -> str:
    return "" if value == sentinel else value


def parse_from_fallback_folders(
    path: Union[str, Path],
    root_path: Union[str, Path],
    library_type: LibraryType,
    item: ParsedItem,
) -> None:
    """Fill volume, chapter and series from the folders above `path`, in place."""
    is_comic = _uses_comic_rules(library_type)
    folders = [
        folder
        for folder in folders_till_root(root_path, path)
        if not parser.is_manga_special(folder)
    ]

    if not folders:
        root_name = Path(root_path).name
        series = parser.parse_series(root_name)
        if not series:
            item.series = parser.clean_title(root_name, is_comic)
        elif not item.series or item.series not in root_name:
            item.series = series
        return

    for index, folder in enumerate(folders):
        if is_comic:
            volume = parser.parse_comic_volume(folder)
            chapter = parser.parse_comic_chapter(folder)
        else:
            volume = parser.parse_volume(folder)
            chapter = parser.parse_chapter(folder)

        if item.is_loose_leaf and volume != LOOSE_LEAF_VOLUME:
            item.volumes = volume
        if item.has_default_chapter and chapter != DEFAULT_CHAPTER:
            item.chapters = chapter

        # Series folders sit at the top, right under the library root
        if index == len(folders) - 1 and folder != item.series:
            series = parser.parse_series(folder)
            if not series:
                item.series = parser.clean_title(folder, is_comic)
            elif not item.series:
                item.series = series
