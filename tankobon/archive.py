"""Archive handling for Tankobon.

Provides a unified interface over CBZ/ZIP, CBR/RAR, CB7/7Z and CBT/TAR archives,
plus the archive engine used by the reading item service for page counts,
covers, extraction and ComicInfo.xml lookup.
"""

from __future__ import annotations

import tarfile
import tempfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import List, Optional, Protocol

import py7zr
import rarfile

from . import parser
from .comicinfo import EmbeddedMetadata, parse_comicinfo_xml
from .covers import CoverImageSize, EncodeFormat, save_cover
from .errors import CoverGenerationError, ExtractionError, FileReadError, MetadataReadError
from .formats import is_image
from .logging_config import get_logger
from .utils import natural_sort_key

logger = get_logger(__name__)


def is_page_entry(name: str) -> bool:
    """Return True for archive entries that are real pages (no macOS junk)."""
    entry = PurePosixPath(name.replace("\\", "/"))
    if "__MACOSX" in entry.parts or entry.name.startswith("._"):
        return False
    return is_image(entry.name)


class Archive(Protocol):
    def list_images(self) -> List[str]:
        ...

    def list_names(self) -> List[str]:
        """List all file names in the archive (for finding ComicInfo.xml etc.)."""
        ...

    def read(self, filename: str) -> bytes:
        ...

    def extract_all(self, target: Path) -> None:
        ...

    def close(self) -> None:
        ...

    def __enter__(self) -> "Archive":
        ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        ...


class ZipArchiveWrapper:
    def __init__(self, path: Path):
        self.zf = zipfile.ZipFile(path, mode="r")

    def list_images(self) -> List[str]:
        return [n for n in self.zf.namelist() if is_page_entry(n)]

    def list_names(self) -> List[str]:
        return self.zf.namelist()

    def read(self, filename: str) -> bytes:
        return self.zf.read(filename)

    def extract_all(self, target: Path) -> None:
        self.zf.extractall(target)

    def close(self) -> None:
        self.zf.close()

    def __enter__(self) -> "ZipArchiveWrapper":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class RarArchiveWrapper:
    def __init__(self, path: Path):
        self.rf = rarfile.RarFile(path, mode="r")

    def list_images(self) -> List[str]:
        return [n for n in self.rf.namelist() if is_page_entry(n)]

    def list_names(self) -> List[str]:
        return self.rf.namelist()

    def read(self, filename: str) -> bytes:
        return self.rf.read(filename)

    def extract_all(self, target: Path) -> None:
        self.rf.extractall(target)

    def close(self) -> None:
        self.rf.close()

    def __enter__(self) -> "RarArchiveWrapper":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class TarArchiveWrapper:
    def __init__(self, path: Path):
        self.tf = tarfile.open(path, mode="r:*")

    def list_images(self) -> List[str]:
        return [m.name for m in self.tf.getmembers() if m.isfile() and is_page_entry(m.name)]

    def list_names(self) -> List[str]:
        return self.tf.getnames()

    def read(self, filename: str) -> bytes:
        handle = self.tf.extractfile(filename)
        if handle is None:
            raise KeyError(f"{filename} is not a regular file")
        with handle:
            return handle.read()

    def extract_all(self, target: Path) -> None:
        self.tf.extractall(target, filter="data")

    def close(self) -> None:
        self.tf.close()

    def __enter__(self) -> "TarArchiveWrapper":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class SevenZipArchiveWrapper:
    """py7zr handles are single-pass, so every read or extraction reopens the file."""

    def __init__(self, path: Path):
        self.path = path
        with py7zr.SevenZipFile(path, mode="r") as sz:
            self.names = sz.getnames()

    def list_images(self) -> List[str]:
        return [n for n in self.names if is_page_entry(n)]

    def list_names(self) -> List[str]:
        return list(self.names)

    def read(self, filename: str) -> bytes:
        with tempfile.TemporaryDirectory() as tmp:
            with py7zr.SevenZipFile(self.path, mode="r") as sz:
                sz.extract(path=tmp, targets=[filename])
            extracted = Path(tmp) / filename
            if not extracted.is_file():
                raise KeyError(f"{filename} is not a regular file")
            return extracted.read_bytes()

    def extract_all(self, target: Path) -> None:
        with py7zr.SevenZipFile(self.path, mode="r") as sz:
            sz.extractall(path=target)

    def close(self) -> None:
        pass

    def __enter__(self) -> "SevenZipArchiveWrapper":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


# zipfile raises RuntimeError for encrypted entries and NotImplementedError for
# compression methods it cannot decode; truncated streams surface as EOFError or zlib.error
ARCHIVE_ERRORS = (
    OSError,
    KeyError,
    RuntimeError,
    NotImplementedError,
    EOFError,
    zlib.error,
    zipfile.BadZipFile,
    rarfile.Error,
    tarfile.TarError,
    py7zr.Bad7zFile,
    py7zr.exceptions.ArchiveError,
    py7zr.exceptions.PasswordRequired,
)


def get_archive(path: Path) -> Archive:
    """Open an archive, detecting format by extension with fallback.

    Tries the expected format first (cbz/zip -> zip, cbr/rar -> rar,
    cb7/7z -> 7z, cbt/tar/tar.gz -> tar). If that fails, tries the other formats
    (handles misnamed files).
    """
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    name = path.name.lower()
    suffix = path.suffix.lower()
    if suffix in (".cbz", ".zip"):
        order = [ZipArchiveWrapper, RarArchiveWrapper, SevenZipArchiveWrapper, TarArchiveWrapper]
    elif suffix in (".cbr", ".rar"):
        order = [RarArchiveWrapper, ZipArchiveWrapper, SevenZipArchiveWrapper, TarArchiveWrapper]
    elif suffix in (".cb7", ".7z"):
        order = [SevenZipArchiveWrapper, ZipArchiveWrapper, RarArchiveWrapper, TarArchiveWrapper]
    elif suffix in (".cbt", ".tar") or name.endswith(".tar.gz"):
        order = [TarArchiveWrapper, ZipArchiveWrapper, RarArchiveWrapper, SevenZipArchiveWrapper]
    else:
        raise ValueError(f"Unsupported archive format: {suffix}")

    primary, *fallbacks = order
    try:
        return primary(path)
    except ARCHIVE_ERRORS as exc:
        first_error = exc

    for wrapper in fallbacks:
        try:
            archive = wrapper(path)
        except ARCHIVE_ERRORS:
            continue
        logger.debug(f"{path.name} opened as {wrapper.__name__} despite its extension")
        return archive
    raise first_error


def _pick_cover(images: List[str]) -> Optional[str]:
    if not images:
        return None
    named = [n for n in images if parser.is_cover_image(PurePosixPath(n).name)]
    if named:
        return sorted(named, key=natural_sort_key)[0]
    return sorted(images, key=natural_sort_key)[0]


class ArchiveEngine:
    """Page counts, covers, extraction and ComicInfo.xml for comic archives."""

    def get_number_of_pages(self, path: Path) -> int:
        path = Path(path)
        try:
            with get_archive(path) as archive:
                return len(archive.list_images())
        except (*ARCHIVE_ERRORS, ValueError) as exc:
            raise FileReadError(path, str(exc)) from exc

    def get_cover_image(
        self,
        path: Path,
        file_name: str,
        output_directory: Path,
        encode_format: EncodeFormat = EncodeFormat.PNG,
        size: CoverImageSize = CoverImageSize.DEFAULT,
    ) -> str:
        path = Path(path)
        try:
            with get_archive(path) as archive:
                entry = _pick_cover(archive.list_images())
                if entry is None:
                    logger.warning(f"No images found in archive {path.name}")
                    return ""
                data = archive.read(entry)
            return save_cover(data, output_directory, file_name, encode_format, size)
        except (*ARCHIVE_ERRORS, ValueError) as exc:
            raise CoverGenerationError(path, str(exc)) from exc

    def extract_archive(self, path: Path, target_directory: Path) -> None:
        """Extract every entry into `target_directory`. Already-populated targets are left as is."""
        path = Path(path)
        target_directory = Path(target_directory)
        if target_directory.exists() and any(target_directory.iterdir()):
            logger.debug(f"{target_directory} already extracted, skipping")
            return
        try:
            target_directory.mkdir(parents=True, exist_ok=True)
            with get_archive(path) as archive:
                archive.extract_all(target_directory)
        except (*ARCHIVE_ERRORS, ValueError) as exc:
            raise ExtractionError(path, str(exc)) from exc

    def get_comic_info(self, path: Path) -> Optional[EmbeddedMetadata]:
        """Read ComicInfo.xml from the archive. None if the archive has none."""
        path = Path(path)
        try:
            with get_archive(path) as archive:
                comicinfo_name = next(
                    (n for n in archive.list_names() if PurePosixPath(n).name.lower() == "comicinfo.xml"),
                    None,
                )
                if comicinfo_name is None:
                    return None
                raw = archive.read(comicinfo_name)
        except (*ARCHIVE_ERRORS, ValueError) as exc:
            raise MetadataReadError(path, str(exc)) from exc

        if not raw.strip():
            return None
        return parse_comicinfo_xml(raw)
