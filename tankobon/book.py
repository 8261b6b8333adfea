"""E-book and PDF handling for Tankobon.

EPUBs are read with ebooklib: their OPF package carries the series, series
index and sort title (calibre `<meta name=...>` tags or EPUB 3
`belongs-to-collection` / `group-position` properties). PDFs are read and
rendered with PyMuPDF.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import ebooklib
import pymupdf
from ebooklib import epub

from . import parser
from .comicinfo import EmbeddedMetadata
from .covers import CoverImageSize, EncodeFormat, save_cover
from .errors import CoverGenerationError, ExtractionError, MetadataReadError
from .formats import ItemFormat, is_epub, is_pdf
from .logging_config import get_logger
from .models import DEFAULT_CHAPTER, LOOSE_LEAF_VOLUME, ParsedItem

logger = get_logger(__name__)

PDF_ERRORS = (RuntimeError, ValueError, OSError)
PDF_RENDER_DPI = 150

_DATE_REGEX = re.compile(r"^(?P<year>\d{4})(?:-(?P<month>\d{1,2}))?(?:-(?P<day>\d{1,2}))?")


def _open_epub(path: Path) -> epub.EpubBook:
    try:
        return epub.read_epub(str(path), options={"ignore_ncx": True})
    except Exception as exc:  # ebooklib surfaces zip, lxml and its own errors
        raise MetadataReadError(path, str(exc)) from exc


def _dc_values(book: epub.EpubBook, name: str) -> List[str]:
    values = []
    for value, _attrs in book.get_metadata("DC", name):
        if value and value.strip():
            values.append(value.strip())
    return values


def _dc_first(book: epub.EpubBook, name: str) -> Optional[str]:
    values = _dc_values(book, name)
    return values[0] if values else None


def _meta_items(book: epub.EpubBook) -> Iterator[Dict[str, Optional[str]]]:
    """Yield every OPF `<meta>` as a dict of its attributes plus `content`.

    EPUB 2 metas keep their value in `content=""`, EPUB 3 metas in the text.
    """
    for tags in book.metadata.values():
        for entries in tags.values():
            for value, attrs in entries:
                attrs = attrs or {}
                if "name" not in attrs and "property" not in attrs:
                    continue
                item = dict(attrs)
                item["content"] = attrs.get("content") or value
                yield item


def _series_index(value: Optional[str]) -> Optional[str]:
    """calibre writes `2.0` for the second book; keep it as `2`."""
    if not value or not value.strip():
        return None
    value = value.strip()
    try:
        number = float(value)
    except ValueError:
        return value
    if number.is_integer():
        return str(int(number))
    return parser.format_value(value)


def _read_series_meta(book: epub.EpubBook) -> Tuple[str, str, str]:
    """Return (series, series_index, title_sort) from calibre or EPUB 3 metas."""
    series = ""
    series_index = ""
    title_sort = ""
    for meta in _meta_items(book):
        content = (meta.get("content") or "").strip()
        name = meta.get("name")
        if name == "calibre:series":
            series = content
        elif name == "calibre:series_index":
            series_index = content
        elif name == "calibre:title_sort":
            title_sort = content

        prop = meta.get("property")
        if prop == "belongs-to-collection":
            series = content
        elif prop == "group-position":
            series_index = content
    return series, series_index, title_sort


def _find_cover_item(book: epub.EpubBook):
    covers = list(book.get_items_of_type(ebooklib.ITEM_COVER))
    if covers:
        return covers[0]

    for meta in _meta_items(book):
        if meta.get("name") == "cover" and meta.get("content"):
            item = book.get_item_with_id(meta["content"])
            if item is not None:
                return item

    images = list(book.get_items_of_type(ebooklib.ITEM_IMAGE))
    named = [i for i in images if parser.is_cover_image(Path(i.get_name()).name)]
    if named:
        return named[0]
    return images[0] if images else None


class BookEngine:
    """Parsing, metadata, page counts, covers and extraction for EPUB and PDF files."""

    def parse_info(self, path: Path) -> Optional[ParsedItem]:
        """Parse an EPUB from its own package metadata.

        Books that declare a series and a series index become a volume of that
        series. Anything else is a loose item named after the book title.
        """
        path = Path(path)
        if not is_epub(path) or not path.exists():
            return None

        book_title = None
        try:
            book = _open_epub(path)
        except MetadataReadError as exc:
            logger.warning(f"Unable to read {path.name}, falling back to filename: {exc}")
            book = None

        if book is not None:
            book_title = _dc_first(book, "title")
            series, series_index, title_sort = _read_series_meta(book)
            volume = _series_index(series_index)
            if series and volume:
                return ParsedItem(
                    series=series.strip(),
                    series_sort=series.strip(),
                    volumes=volume,
                    chapters=DEFAULT_CHAPTER,
                    title=(title_sort or book_title or path.stem).strip(),
                    filename=path.name,
                    full_file_path=str(path),
                    format=ItemFormat.EPUB,
                )

        return ParsedItem(
            series=(book_title or path.stem).strip(),
            title=path.stem,
            volumes=LOOSE_LEAF_VOLUME,
            chapters=DEFAULT_CHAPTER,
            filename=path.name,
            full_file_path=str(path),
            format=ItemFormat.EPUB,
        )

    def get_comic_info(self, path: Path) -> Optional[EmbeddedMetadata]:
        """Map an EPUB's OPF metadata onto the ComicInfo fields."""
        path = Path(path)
        if not is_epub(path):
            return None
        book = _open_epub(path)

        raw: Dict[str, object] = {
            "title": _dc_first(book, "title"),
            "summary": _dc_first(book, "description"),
            "publisher": _dc_first(book, "publisher"),
            "language_iso": _dc_first(book, "language"),
            "writer": ", ".join(_dc_values(book, "creator")) or None,
            "genre": ", ".join(_dc_values(book, "subject")) or None,
        }
        date = _DATE_REGEX.match(_dc_first(book, "date") or "")
        if date:
            for key in ("year", "month", "day"):
                if date.group(key):
                    raw[key] = int(date.group(key))

        series, series_index, title_sort = _read_series_meta(book)
        if series:
            raw["series"] = series
            raw["series_sort"] = series
        if title_sort:
            raw["title_sort"] = title_sort
        raw["volume"] = _series_index(series_index)

        info = EmbeddedMetadata.model_validate(raw)

        # A light novel whose title carries its own volume ("Title Vol 3")
        title = info.title or ""
        has_volume_in_title = parser.parse_volume(title) != LOOSE_LEAF_VOLUME
        if not info.volume and has_volume_in_title and (not info.series or info.series != title):
            info.series = parser.parse_series(title) or None
            info.volume = parser.parse_volume(title)
        return info

    def get_number_of_pages(self, path: Path) -> int:
        path = Path(path)
        if is_pdf(path):
            try:
                with pymupdf.open(str(path)) as doc:
                    return doc.page_count
            except PDF_ERRORS as exc:
                raise MetadataReadError(path, str(exc)) from exc
        book = _open_epub(path)
        return len(list(book.get_items_of_type(ebooklib.ITEM_DOCUMENT)))

    def get_cover_image(
        self,
        path: Path,
        file_name: str,
        output_directory: Path,
        encode_format: EncodeFormat = EncodeFormat.PNG,
        size: CoverImageSize = CoverImageSize.DEFAULT,
    ) -> str:
        path = Path(path)
        if is_pdf(path):
            return self._get_pdf_cover(path, file_name, output_directory, encode_format, size)

        try:
            book = _open_epub(path)
        except MetadataReadError as exc:
            raise CoverGenerationError(path, exc.reason) from exc
        item = _find_cover_item(book)
        if item is None:
            logger.warning(f"No cover image found in {path.name}")
            return ""
        try:
            return save_cover(item.get_content(), output_directory, file_name, encode_format, size)
        except OSError as exc:
            raise CoverGenerationError(path, str(exc)) from exc

    def _get_pdf_cover(
        self,
        path: Path,
        file_name: str,
        output_directory: Path,
        encode_format: EncodeFormat,
        size: CoverImageSize,
    ) -> str:
        try:
            with pymupdf.open(str(path)) as doc:
                if doc.page_count == 0:
                    logger.warning(f"{path.name} has no pages")
                    return ""
                png = doc[0].get_pixmap(dpi=PDF_RENDER_DPI).tobytes("png")
            return save_cover(png, output_directory, file_name, encode_format, size)
        except PDF_ERRORS as exc:
            raise CoverGenerationError(path, str(exc)) from exc

    def extract_pdf_images(self, path: Path, target_directory: Path) -> None:
        """Render every PDF page to `Page-{n}.png` in `target_directory`."""
        path = Path(path)
        target_directory = Path(target_directory)
        try:
            target_directory.mkdir(parents=True, exist_ok=True)
            with pymupdf.open(str(path)) as doc:
                for index, page in enumerate(doc):
                    page.get_pixmap(dpi=PDF_RENDER_DPI).save(str(target_directory / f"Page-{index}.png"))
        except PDF_ERRORS as exc:
            raise ExtractionError(path, str(exc)) from exc
