"""Config management for Tankobon.

Reads `config.ini` from the data directory (beside main.py by default).
When running as PyInstaller onefile, PROJECT_ROOT is the directory containing the executable.
"""

from __future__ import annotations

import configparser
import dataclasses
import os
import pathlib
import sys
from typing import Optional

from .covers import CoverImageSize, EncodeFormat
from .logging_config import get_logger
from .models import LibraryType

logger = get_logger(__name__)


def _get_project_root() -> pathlib.Path:
    if getattr(sys, "frozen", False):
        return pathlib.Path(sys.executable).resolve().parent
    return pathlib.Path(__file__).resolve().parents[1]


PROJECT_ROOT = _get_project_root()

# DATA_DIR holds all persistent state (config.ini, covers/, tankobon.log).
# Set via env var for Docker; defaults to PROJECT_ROOT for standalone use.
DATA_DIR = pathlib.Path(os.environ.get("DATA_DIR", str(PROJECT_ROOT)))
DEFAULT_CONFIG_PATH = DATA_DIR / "config.ini"

DEFAULT_IGNORE_PATTERNS = (".DS_Store", "Thumbs.db", "@eaDir", "__MACOSX")


@dataclasses.dataclass
class LibraryConfig:
    path: pathlib.Path
    name: str = "My Library"
    type: LibraryType = LibraryType.MANGA


@dataclasses.dataclass
class CoverConfig:
    directory: pathlib.Path = DATA_DIR / "covers"
    format: EncodeFormat = EncodeFormat.PNG
    size: CoverImageSize = CoverImageSize.DEFAULT


@dataclasses.dataclass
class ScannerConfig:
    ignore_patterns: tuple[str, ...] = DEFAULT_IGNORE_PATTERNS
    workers: int = 4


@dataclasses.dataclass
class TankobonConfig:
    library: LibraryConfig
    covers: CoverConfig
    scanner: ScannerConfig

    @property
    def library_path(self) -> pathlib.Path:
        return self.library.path

    @property
    def library_type(self) -> LibraryType:
        return self.library.type

    @property
    def covers_dir(self) -> pathlib.Path:
        return self.covers.directory


def _parse_enum(enum_cls, value: str, default):
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        logger.warning(f"Unknown {enum_cls.__name__} '{value}', using '{default.value}'")
        return default


def load_config(config_path: Optional[pathlib.Path] = None) -> TankobonConfig:
    """Load configuration from config.ini.

    Defaults to `config.ini` in the data directory.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    parser = configparser.ConfigParser()
    parser.read(path)

    library = LibraryConfig(
        path=pathlib.Path(parser.get("library", "path", fallback="/path/to/library")).expanduser(),
        name=parser.get("library", "name", fallback="My Library"),
        type=_parse_enum(
            LibraryType, parser.get("library", "type", fallback="manga"), LibraryType.MANGA
        ),
    )

    covers = CoverConfig(
        directory=pathlib.Path(
            parser.get("covers", "directory", fallback=str(DATA_DIR / "covers"))
        ).expanduser(),
        format=_parse_enum(
            EncodeFormat, parser.get("covers", "format", fallback="png"), EncodeFormat.PNG
        ),
        size=_parse_enum(
            CoverImageSize, parser.get("covers", "size", fallback="default"), CoverImageSize.DEFAULT
        ),
    )

    scanner = ScannerConfig(
        ignore_patterns=tuple(
            p.strip()
            for p in parser.get(
                "scanner",
                "ignore_patterns",
                fallback=",".join(DEFAULT_IGNORE_PATTERNS),
            ).split(",")
            if p.strip()
        ),
        workers=max(1, parser.getint("scanner", "workers", fallback=4)),
    )

    return TankobonConfig(library=library, covers=covers, scanner=scanner)


def write_default_config(
    config_path: pathlib.Path,
    library_path: pathlib.Path,
    library_name: str,
    library_type: LibraryType = LibraryType.MANGA,
) -> pathlib.Path:
    """Write a config.ini with default settings for the given library."""
    parser = configparser.ConfigParser()
    parser["library"] = {
        "path": str(library_path.expanduser()),
        "name": library_name,
        "type": library_type.value,
    }
    parser["covers"] = {
        "directory": str(DATA_DIR / "covers"),
        "format": EncodeFormat.PNG.value,
        "size": CoverImageSize.DEFAULT.value,
    }
    parser["scanner"] = {
        "ignore_patterns": ",".join(DEFAULT_IGNORE_PATTERNS),
        "workers": "4",
    }

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w") as handle:
        parser.write(handle)
    return config_path
