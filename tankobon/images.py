"""Loose image handling for Tankobon.

A loose image is always exactly one page. Extraction copies the image, or
every image in its folder when the caller asks for more than one.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from .covers import CoverImageSize, EncodeFormat, save_cover
from .errors import CoverGenerationError, ExtractionError
from .formats import is_image
from .logging_config import get_logger

logger = get_logger(__name__)


class ImageEngine:
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
            return save_cover(path.read_bytes(), output_directory, file_name, encode_format, size)
        except OSError as exc:
            raise CoverGenerationError(path, str(exc)) from exc

    def extract_images(self, path: Path, target_directory: Path, image_count: int = 1) -> None:
        """Copy the image (or, for image_count > 1, all images beside it) into `target_directory`."""
        path = Path(path)
        target_directory = Path(target_directory)
        try:
            target_directory.mkdir(parents=True, exist_ok=True)
            if image_count <= 1:
                shutil.copy2(path, target_directory / path.name)
                return

            copied = 0
            for sibling in sorted(path.parent.iterdir()):
                if sibling.is_file() and is_image(sibling) and not sibling.name.startswith("._"):
                    shutil.copy2(sibling, target_directory / sibling.name)
                    copied += 1
            logger.debug(f"Copied {copied} images from {path.parent.name}")
        except OSError as exc:
            raise ExtractionError(path, str(exc)) from exc
