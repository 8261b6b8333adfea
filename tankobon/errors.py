"""Error types raised by Tankobon engines and services."""

from __future__ import annotations

from pathlib import Path
from typing import Union


class TankobonError(Exception):
    """Base class for all Tankobon errors."""


class FileReadError(TankobonError):
    """A collaborator failed to read a file. Carries the offending path."""

    def __init__(self, path: Union[str, Path], reason: str = ""):
        self.path = Path(path)
        self.reason = reason
        message = f"{self.path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MetadataReadError(FileReadError):
    """Embedded metadata (ComicInfo.xml, OPF) could not be read."""


class ExtractionError(FileReadError):
    """Pages could not be extracted from a reading item."""


class CoverGenerationError(FileReadError):
    """A cover image could not be produced for a reading item."""
