"""ComicInfo.xml parsing for Tankobon.

`EmbeddedMetadata` is the format-neutral record every metadata reader returns:
archives fill it from ComicInfo.xml, EPUBs from their OPF package.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import Optional

from pydantic import BaseModel, field_validator

from .logging_config import get_logger

logger = get_logger(__name__)

# ComicInfo tag names (case-insensitive in XML)
TAG_MAP = {
    "series": "series",
    "localizedseries": "localized_series",
    "seriessort": "series_sort",
    "titlesort": "title_sort",
    "title": "title",
    "number": "number",
    "volume": "volume",
    "count": "count",
    "format": "format",
    "summary": "summary",
    "writer": "writer",
    "penciller": "penciller",
    "publisher": "publisher",
    "genre": "genre",
    "languageiso": "language_iso",
    "web": "web",
    "notes": "notes",
    "year": "year",
    "month": "month",
    "day": "day",
}

INT_FIELDS = {"year", "month", "day", "count"}

# ComicInfo <Format> values that mark an item as a special rather than an issue
SPECIAL_FORMAT_REGEX = re.compile(
    r"(?<![a-z])(?:Special|Reference|Director's\sCut|Box\sSet|Box-Set|Annual|Anthology|"
    r"Epilogue|One-Shot|One\sShot|Prologue|TPB|Trade\sPaper\sBack|Omnibus|Compendium|"
    r"Absolute|Graphic\sNovel|GN|FCBD)(?![a-z])",
    re.IGNORECASE,
)


class EmbeddedMetadata(BaseModel):
    """Metadata embedded in a reading item. Every field is optional.

    Strings are stripped and blank strings become None, so "blank" and
    "absent" read the same to callers.
    """

    model_config = {"extra": "ignore"}

    series: Optional[str] = None
    localized_series: Optional[str] = None
    series_sort: Optional[str] = None
    title: Optional[str] = None
    title_sort: Optional[str] = None
    volume: Optional[str] = None
    number: Optional[str] = None
    count: Optional[int] = None
    format: Optional[str] = None
    summary: Optional[str] = None
    writer: Optional[str] = None
    penciller: Optional[str] = None
    publisher: Optional[str] = None
    genre: Optional[str] = None
    language_iso: Optional[str] = None
    web: Optional[str] = None
    notes: Optional[str] = None
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None

    @field_validator(
        "series", "localized_series", "series_sort", "title", "title_sort",
        "volume", "number", "format", "summary", "writer", "penciller",
        "publisher", "genre", "language_iso", "web", "notes",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value

    @property
    def is_special(self) -> bool:
        return has_special_format(self.format)


def has_special_format(value: Optional[str]) -> bool:
    """Return True if a ComicInfo <Format> value marks a special issue."""
    return bool(value) and bool(SPECIAL_FORMAT_REGEX.search(value))


def _text(elem: Optional[ET.Element]) -> Optional[str]:
    if elem is None or elem.text is None:
        return None
    t = elem.text.strip()
    return t or None


def _int_or_none(s: Optional[str]) -> Optional[int]:
    if s is None:
        return None
    try:
        return int(s.strip())
    except ValueError:
        return None


def _local_name(tag: str) -> str:
    """Return tag without namespace (e.g. '{http://...}Issue' -> 'issue')."""
    return tag.split("}")[-1].lower() if "}" in tag else tag.lower()


def parse_comicinfo_xml(xml_bytes: bytes) -> Optional[EmbeddedMetadata]:
    """Parse ComicInfo.xml content. Returns None if the XML is malformed."""
    try:
        root = ET.fromstring(xml_bytes)
    except ET.ParseError as exc:
        logger.warning(f"Malformed ComicInfo.xml: {exc}")
        return None

    by_lower = {_local_name(elem.tag): elem for elem in root}

    raw: dict[str, object] = {}
    for xml_tag_lower, our_key in TAG_MAP.items():
        text = _text(by_lower.get(xml_tag_lower))
        if text is None:
            continue
        if our_key in INT_FIELDS:
            val = _int_or_none(text)
            if val is not None:
                raw[our_key] = val
        else:
            raw[our_key] = text

    return EmbeddedMetadata.model_validate(raw)
