"""Container format classification for reading items.

Classification is a pure function of the file name: no file is opened.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Union


class ItemFormat(str, Enum):
    ARCHIVE = "archive"
    EPUB = "epub"
    PDF = "pdf"
    IMAGE = "image"
    UNKNOWN = "unknown"


ARCHIVE_EXTENSIONS = {".cbz", ".zip", ".rar", ".cbr", ".cb7", ".7z", ".cbt", ".tar"}
# Suffixes that span more than one dot are matched against the whole name
COMPOUND_ARCHIVE_SUFFIXES = (".tar.gz",)
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".avif"}
EPUB_EXTENSIONS = {".epub"}
PDF_EXTENSIONS = {".pdf"}


def _name(path: Union[str, Path]) -> str:
    return Path(path).name.lower()


def _suffix(path: Union[str, Path]) -> str:
    return Path(path).suffix.lower()


def is_macos_sidecar(path: Union[str, Path]) -> bool:
    """Return True for AppleDouble resource forks such as `._Issue 1.cbz`."""
    return Path(path).name.startswith("._")


def is_archive(path: Union[str, Path]) -> bool:
    name = _name(path)
    return _suffix(path) in ARCHIVE_EXTENSIONS or name.endswith(COMPOUND_ARCHIVE_SUFFIXES)


def is_comicinfo_extension(path: Union[str, Path]) -> bool:
    """Return True if the file type can carry a ComicInfo.xml entry (any archive)."""
    return is_archive(path)


def is_image(path: Union[str, Path]) -> bool:
    return _suffix(path) in IMAGE_EXTENSIONS


def is_epub(path: Union[str, Path]) -> bool:
    return _suffix(path) in EPUB_EXTENSIONS


def is_pdf(path: Union[str, Path]) -> bool:
    return _suffix(path) in PDF_EXTENSIONS


def classify_format(path: Union[str, Path]) -> ItemFormat:
    """Return the container format for `path`. Never raises."""
    if not str(path) or is_macos_sidecar(path):
        return ItemFormat.UNKNOWN
    if is_archive(path):
        return ItemFormat.ARCHIVE
    if is_image(path):
        return ItemFormat.IMAGE
    if is_epub(path):
        return ItemFormat.EPUB
    if is_pdf(path):
        return ItemFormat.PDF
    return ItemFormat.UNKNOWN
