"""Pydantic models for resolved reading items."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .comicinfo import EmbeddedMetadata
from .formats import ItemFormat

# Sentinels are numeric strings so volumes and chapters always sort as numbers.
LOOSE_LEAF_VOLUME = "-100000"
DEFAULT_CHAPTER = "-100000"


class LibraryType(str, Enum):
    MANGA = "manga"
    COMIC = "comic"
    BOOK = "book"
    IMAGE = "image"


class ParsedItem(BaseModel):
    """A reading item resolved from its filename, folders and embedded metadata.

    `volumes` and `chapters` are never empty: a missing value is
    LOOSE_LEAF_VOLUME / DEFAULT_CHAPTER.
    """

    model_config = {"validate_assignment": True}

    series: str = ""
    series_sort: str = ""
    localized_series: str = ""
    volumes: str = LOOSE_LEAF_VOLUME
    chapters: str = DEFAULT_CHAPTER
    title: str = ""
    edition: str = ""
    is_special: bool = False
    filename: str = ""
    full_file_path: str = ""
    format: ItemFormat = ItemFormat.UNKNOWN
    comic_info: Optional[EmbeddedMetadata] = None

    @property
    def is_loose_leaf(self) -> bool:
        return self.volumes == LOOSE_LEAF_VOLUME

    @property
    def has_default_chapter(self) -> bool:
        return self.chapters == DEFAULT_CHAPTER

    def merge(self, other: Optional["ParsedItem"]) -> None:
        """Fill fields this item leaves unset from `other`. Set fields are kept."""
        if other is None:
            return
        if not self.chapters or self.has_default_chapter:
            self.chapters = other.chapters
        if not self.volumes or self.is_loose_leaf:
            self.volumes = other.volumes
        if not self.edition:
            self.edition = other.edition
        if not self.title:
            self.title = other.title
        if not self.series:
            self.series = other.series
        self.is_special = self.is_special or other.is_special
