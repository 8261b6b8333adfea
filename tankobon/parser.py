"""Filename heuristics for reading items.

Every function works on a bare name (a filename stem or a folder name) and
never touches the filesystem. Failed lookups return the sentinels from
`tankobon.models` rather than None so callers can compare directly.
"""

from __future__ import annotations

import re
from pathlib import Path

from .formats import is_image
from .models import DEFAULT_CHAPTER, LOOSE_LEAF_VOLUME

_NUMBER = r"\d+(?:\.\d+)?(?:-\d+(?:\.\d+)?)?"
# `(?<![a-z])` instead of `\b` so `Series_v01` still matches after an underscore
_VOLUME_TOKEN = r"(?<![a-z])(?:volume|vol|vo|v)[\s._]*"
_CHAPTER_TOKEN = r"(?<![a-z])(?:chapter|ch|c)[\s._]*"

_VOLUME_STRIP_REGEX = re.compile(rf"{_VOLUME_TOKEN}{_NUMBER}", re.IGNORECASE)

MANGA_VOLUME_REGEX = [
    re.compile(rf"{_VOLUME_TOKEN}(?P<Volume>{_NUMBER})", re.IGNORECASE),
    re.compile(rf"第\s*(?P<Volume>{_NUMBER})\s*(?:巻|卷|冊)"),
    re.compile(rf"(?P<Volume>{_NUMBER})\s*(?:巻|卷|권)"),
    re.compile(rf"Том\s*(?P<Volume>{_NUMBER})", re.IGNORECASE),
]

MANGA_SERIES_REGEX = [
    re.compile(rf"^(?P<Series>.+?){_VOLUME_TOKEN}\d", re.IGNORECASE),
    re.compile(rf"^(?P<Series>.+?){_CHAPTER_TOKEN}\d", re.IGNORECASE),
    re.compile(r"^(?P<Series>.+?)[\s_]+-[\s_]+\d"),
    re.compile(r"^(?P<Series>.+?)第\s*\d+\s*(?:巻|卷|冊|话|話)"),
    re.compile(r"^(?P<Series>.+?)[\s_]+#?\d+(?:\.\d+)?(?:[\s_]*[(\[]|[\s_]*$)"),
]

MANGA_CHAPTER_REGEX = [
    re.compile(rf"{_CHAPTER_TOKEN}(?P<Chapter>{_NUMBER})", re.IGNORECASE),
    re.compile(r"[\s_]-[\s_]+(?P<Chapter>\d+(?:\.\d+)?)(?![\d.])"),
    re.compile(r"第\s*(?P<Chapter>\d+(?:\.\d+)?)\s*(?:话|話|章|회)"),
]

COMIC_VOLUME_REGEX = [
    re.compile(rf"(?<![a-z])(?:volume|vol|v)[\s._]*(?P<Volume>{_NUMBER})", re.IGNORECASE),
    re.compile(rf"(?<![a-z])(?:book|tpb)[\s._]*(?P<Volume>{_NUMBER})", re.IGNORECASE),
]

COMIC_SERIES_REGEX = [
    re.compile(r"^(?P<Series>.+?)[\s_]*#\s?\d", re.IGNORECASE),
    re.compile(r"^(?P<Series>.+?)(?<![a-z])(?:volume|vol|v|book|tpb)[\s._]*\d", re.IGNORECASE),
    re.compile(r"^(?P<Series>.+?)(?<![a-z])(?:issue|chapter|ch)[\s._]*\d", re.IGNORECASE),
    re.compile(r"^(?P<Series>.+?)[\s_]+-[\s_]+\d"),
    re.compile(r"^(?P<Series>.+?)[\s_]+\d{1,4}(?:\.\d+)?(?:[\s_]*[(\[]|[\s_]*$)"),
    re.compile(r"^(?P<Series>.+?)[\s_]*\(\d{4}\)"),
]

COMIC_CHAPTER_REGEX = [
    re.compile(rf"#\s?(?P<Chapter>{_NUMBER})"),
    re.compile(rf"(?<![a-z])(?:issue|chapter|ch)[\s._]*(?P<Chapter>{_NUMBER})", re.IGNORECASE),
    re.compile(r"[\s_]-[\s_]+(?P<Chapter>\d+(?:\.\d+)?)(?![\d.])"),
]

# A trailing bare number ("Tower of God 045", "Batman 161 (2016)").
# Only tried once volume tokens have been stripped from the name.
_BARE_NUMBER_REGEX = re.compile(
    r"^.+?[\s_]+#?(?P<Chapter>\d{1,4}(?:\.\d+)?)(?:[\s_]*[(\[]|[\s_]*$)"
)

MANGA_SPECIAL_REGEX = re.compile(
    r"(?<![a-z])(?:Specials?|One[\s_-]?Shot|Omake|Extras?|Art[\s_-]?Book|"
    r"Side[\s_-]?Stor(?:y|ies)|Bonus|OVA|OAD|Anthology|Prologue|Epilogue)(?![a-z])",
    re.IGNORECASE,
)

COMIC_SPECIAL_REGEX = re.compile(
    r"(?<![a-z])(?:Specials?|One[\s_-]?Shot|Annuals?|TPB|Trade[\s_-]?Paper[\s_-]?Back|"
    r"Omnibus|Compendium|Absolute|Graphic[\s_-]?Novel|GN|FCBD|Director'?s[\s_-]?Cut|"
    r"Box[\s_-]?Set|Anthology|Prologue|Epilogue|Reference)(?![a-z])",
    re.IGNORECASE,
)

# Explicit special marker, e.g. "Series SP01"
SPECIAL_MARKER_REGEX = re.compile(r"(?<![a-z])SP\d+", re.IGNORECASE)

EDITION_REGEX = [
    re.compile(
        r"[(\[](?P<Edition>Digital|Uncensored|"
        r"(?:Omnibus|Colou?red|Full[\s_]Colou?r|Deluxe|Complete)(?:[\s_]Edition)?)[)\]]",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?<![a-z])(?P<Edition>(?:Omnibus|Colou?red|Full[\s_]Colou?r|Deluxe|Complete)"
        r"[\s_]Edition)(?![a-z])",
        re.IGNORECASE,
    ),
]

COVER_IMAGE_REGEX = re.compile(
    r"(?<![a-z\d])!?(?<!back)(?<!back[_-])(?<!back )(?:cover|folder)(?![\w\d])",
    re.IGNORECASE,
)

_RELEASE_GROUP_REGEX = re.compile(r"\[[^\]]*\]|\{[^}]*\}")
_PARENTHESES_REGEX = re.compile(r"\([^)]*\)")
_WHITESPACE_REGEX = re.compile(r"\s+")


def _strip_zeros(part: str) -> str:
    if "." in part:
        whole, fraction = part.split(".", 1)
        return f"{whole.lstrip('0') or '0'}.{fraction}"
    return part.lstrip("0") or "0"


def format_value(value: str) -> str:
    """Normalise a volume or chapter number: `01` -> `1`, `01-03` -> `1-3`."""
    parts = [p.strip() for p in value.split("-") if p.strip()]
    return "-".join(_strip_zeros(p) for p in parts)


def _first_group(regexes, name: str, group: str):
    for regex in regexes:
        match = regex.search(name)
        if match:
            return match.group(group)
    return None


def clean_title(title: str, is_comic: bool = False) -> str:
    """Strip release groups, tags, editions and separators from a series name."""
    title = _RELEASE_GROUP_REGEX.sub(" ", title)
    title = _PARENTHESES_REGEX.sub(" ", title)
    for regex in EDITION_REGEX:
        title = regex.sub(" ", title)
    special = COMIC_SPECIAL_REGEX if is_comic else MANGA_SPECIAL_REGEX
    title = special.sub(" ", title)
    title = title.replace("_", " ")
    title = _WHITESPACE_REGEX.sub(" ", title)
    return title.strip(" -,.")


def parse_volume(name: str) -> str:
    value = _first_group(MANGA_VOLUME_REGEX, name, "Volume")
    return format_value(value) if value else LOOSE_LEAF_VOLUME


def parse_comic_volume(name: str) -> str:
    value = _first_group(COMIC_VOLUME_REGEX, name, "Volume")
    return format_value(value) if value else LOOSE_LEAF_VOLUME


def _parse_series(regexes, name: str, is_comic: bool) -> str:
    for regex in regexes:
        match = regex.search(name)
        if not match:
            continue
        series = clean_title(match.group("Series"), is_comic)
        if series:
            return series
    return ""


def parse_series(name: str) -> str:
    """Return the series part of a manga/book style name, or "" if none is found."""
    return _parse_series(MANGA_SERIES_REGEX, name, is_comic=False)


def parse_comic_series(name: str) -> str:
    return _parse_series(COMIC_SERIES_REGEX, name, is_comic=True)


def _parse_chapter(regexes, name: str) -> str:
    value = _first_group(regexes, name, "Chapter")
    if value is None:
        match = _BARE_NUMBER_REGEX.search(_VOLUME_STRIP_REGEX.sub(" ", name))
        value = match.group("Chapter") if match else None
    return format_value(value) if value else DEFAULT_CHAPTER


def parse_chapter(name: str) -> str:
    return _parse_chapter(MANGA_CHAPTER_REGEX, name)


def parse_comic_chapter(name: str) -> str:
    return _parse_chapter(COMIC_CHAPTER_REGEX, name)


def parse_edition(name: str) -> str:
    value = _first_group(EDITION_REGEX, name, "Edition")
    return value.replace("_", " ") if value else ""


def is_manga_special(name: str) -> bool:
    return bool(MANGA_SPECIAL_REGEX.search(name))


def is_comic_special(name: str) -> bool:
    return bool(COMIC_SPECIAL_REGEX.search(name))


def has_special_marker(name: str) -> bool:
    return bool(SPECIAL_MARKER_REGEX.search(name))


def is_cover_image(filename: str) -> bool:
    """Return True for images such as `cover.jpg` or `folder.png` (not `back_cover.jpg`)."""
    return is_image(filename) and bool(COVER_IMAGE_REGEX.search(Path(filename).stem))
