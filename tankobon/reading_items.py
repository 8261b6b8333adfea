"""Reading item service: the entry point the scanner calls for every file.

Resolves a file into a `ParsedItem` by combining filename heuristics (or an
EPUB's own package metadata) with embedded metadata, and routes page counts,
covers and extraction to the engine matching the file's format.

The service holds no per-call state: the library root and type are passed on
every call, so one instance can be shared by a whole worker pool.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

from typing_extensions import assert_never

from . import parser
from .archive import ArchiveEngine
from .book import BookEngine
from .comicinfo import EmbeddedMetadata
from .covers import CoverImageSize, EncodeFormat
from .default_parser import parse_filename
from .errors import FileReadError
from .formats import ItemFormat, classify_format, is_comicinfo_extension, is_epub
from .images import ImageEngine
from .logging_config import get_logger
from .models import DEFAULT_CHAPTER, LOOSE_LEAF_VOLUME, LibraryType, ParsedItem

logger = get_logger(__name__)

PathLike = Union[str, Path]


def _value(text: Optional[str]) -> Optional[str]:
    """Return the trimmed value, or None for absent and blank strings alike."""
    if text is None:
        return None
    text = text.strip()
    return text or None


class ReadingItemService:
    def __init__(
        self,
        cover_directory: PathLike,
        archive_engine: Optional[ArchiveEngine] = None,
        book_engine: Optional[BookEngine] = None,
        image_engine: Optional[ImageEngine] = None,
    ):
        self.cover_directory = Path(cover_directory)
        self.archive_engine = archive_engine or ArchiveEngine()
        self.book_engine = book_engine or BookEngine()
        self.image_engine = image_engine or ImageEngine()

    def get_comic_info(self, path: PathLike) -> Optional[EmbeddedMetadata]:
        """Return the file's embedded metadata, or None if its format carries none.

        Raises MetadataReadError if the file cannot be read.
        """
        if is_epub(path):
            return self.book_engine.get_comic_info(Path(path))
        if is_comicinfo_extension(path):
            return self.archive_engine.get_comic_info(Path(path))
        return None

    def parse_file(
        self,
        path: PathLike,
        root_path: PathLike,
        library_type: LibraryType,
    ) -> Optional[ParsedItem]:
        """Resolve a file into a ParsedItem. None if the file is not a reading item.

        EPUBs are always parsed from their own metadata, whatever the library
        type. Embedded metadata then overrides filename-derived values, but a
        blank embedded value never erases one.
        """
        info = self._parse(path, root_path, library_type)
        if info is None:
            return None

        # TODO: check whether this should test info.volumes instead of the parsed series volume
        if is_epub(path) and parser.parse_volume(info.series) != LOOSE_LEAF_VOLUME:
            has_volume_in_title = parser.parse_volume(info.title) != LOOSE_LEAF_VOLUME
            has_volume_in_series = parser.parse_volume(info.series) != LOOSE_LEAF_VOLUME
            embedded_volume = _value(info.comic_info.volume) if info.comic_info else None

            if not embedded_volume and has_volume_in_title and (has_volume_in_series or not info.series):
                # A light novel: the title is "Series Vol N" with no separate series
                info.series = parser.parse_series(info.title)
                info.volumes = parser.parse_volume(info.title)
            else:
                info.merge(parse_filename(path, root_path, LibraryType.BOOK))

        comic_info = self.get_comic_info(path)
        if comic_info is None:
            return info

        volume = _value(comic_info.volume)
        if volume:
            info.volumes = volume
        series = _value(comic_info.series)
        if series:
            info.series = series
        number = _value(comic_info.number)
        if number:
            info.chapters = number

        # TitleSort patches the series sort; SeriesSort below wins when both are set
        title_sort = _value(comic_info.title_sort)
        if title_sort:
            info.series_sort = title_sort

        if comic_info.is_special:
            info.is_special = True
            info.chapters = DEFAULT_CHAPTER
            info.volumes = LOOSE_LEAF_VOLUME

        series_sort = _value(comic_info.series_sort)
        if series_sort:
            info.series_sort = series_sort
        localized_series = _value(comic_info.localized_series)
        if localized_series:
            info.localized_series = localized_series

        info.comic_info = comic_info
        return info

    def _parse(self, path: PathLike, root_path: PathLike, library_type: LibraryType) -> Optional[ParsedItem]:
        item_format = classify_format(path)
        if item_format is ItemFormat.UNKNOWN:
            return None
        if item_format is ItemFormat.EPUB:
            return self.book_engine.parse_info(Path(path))
        return parse_filename(path, root_path, library_type)

    def get_number_of_pages(self, path: PathLike, item_format: ItemFormat) -> int:
        """Return the page count. Never raises: unreadable files count as 0."""
        path = Path(path)
        try:
            if item_format is ItemFormat.ARCHIVE:
                return self.archive_engine.get_number_of_pages(path)
            if item_format in (ItemFormat.PDF, ItemFormat.EPUB):
                return self.book_engine.get_number_of_pages(path)
        except FileReadError as exc:
            logger.warning(f"Unable to count pages: {exc}")
            return 0

        if item_format is ItemFormat.IMAGE:
            return 1
        return 0

    def get_cover_image(
        self,
        path: PathLike,
        file_name: str,
        item_format: ItemFormat,
        encode_format: EncodeFormat = EncodeFormat.PNG,
        size: CoverImageSize = CoverImageSize.DEFAULT,
    ) -> str:
        """Write a cover for the file into the cover directory and return its file name.

        Returns "" when there is nothing to do or the cover cannot be produced.
        """
        if os.fspath(path).strip() in ("", ".") or not file_name or not file_name.strip():
            return ""

        path = Path(path)
        if item_format in (ItemFormat.EPUB, ItemFormat.PDF):
            engine = self.book_engine
        elif item_format is ItemFormat.ARCHIVE:
            engine = self.archive_engine
        elif item_format is ItemFormat.IMAGE:
            engine = self.image_engine
        else:
            return ""

        try:
            return engine.get_cover_image(path, file_name, self.cover_directory, encode_format, size)
        except FileReadError as exc:
            logger.warning(f"Unable to create cover: {exc}")
            return ""

    def extract(
        self,
        path: PathLike,
        target_directory: PathLike,
        item_format: ItemFormat,
        image_count: int = 1,
    ) -> None:
        """Materialise the file's pages into `target_directory`.

        EPUBs are rendered page by page at read time, so they (and unknown
        files) are left alone. Raises ExtractionError on I/O failure.
        """
        path = Path(path)
        target_directory = Path(target_directory)
        if item_format is ItemFormat.ARCHIVE:
            self.archive_engine.extract_archive(path, target_directory)
        elif item_format is ItemFormat.IMAGE:
            self.image_engine.extract_images(path, target_directory, image_count)
        elif item_format is ItemFormat.PDF:
            self.book_engine.extract_pdf_images(path, target_directory)
        elif item_format is ItemFormat.EPUB or item_format is ItemFormat.UNKNOWN:
            pass
        else:
            assert_never(item_format)

