"""Cover image encoding for Tankobon.

Every engine hands raw image bytes (or an opened Pillow image) to
`save_cover`, which resizes and encodes them into the cover directory as
`{file_name}.{ext}`.
"""

from __future__ import annotations

from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import Tuple, Union

from PIL import Image

from .logging_config import get_logger

logger = get_logger(__name__)


class EncodeFormat(str, Enum):
    PNG = "png"
    WEBP = "webp"
    AVIF = "avif"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @property
    def pillow_format(self) -> str:
        return self.value.upper()


class CoverImageSize(str, Enum):
    DEFAULT = "default"
    MEDIUM = "medium"
    LARGE = "large"
    XLARGE = "xlarge"

    @property
    def dimensions(self) -> Tuple[int, int]:
        return _COVER_DIMENSIONS[self]


_COVER_DIMENSIONS = {
    CoverImageSize.DEFAULT: (320, 455),
    CoverImageSize.MEDIUM: (640, 909),
    CoverImageSize.LARGE: (900, 1277),
    CoverImageSize.XLARGE: (1265, 1795),
}


def cover_file_name(file_name: str, encode_format: EncodeFormat) -> str:
    return f"{file_name}{encode_format.extension}"


def save_cover(
    image: Union[bytes, Image.Image],
    output_directory: Path,
    file_name: str,
    encode_format: EncodeFormat = EncodeFormat.PNG,
    size: CoverImageSize = CoverImageSize.DEFAULT,
) -> str:
    """Resize and encode a cover into `output_directory`.

    Returns the written file name (not the full path).
    """
    output_directory.mkdir(parents=True, exist_ok=True)
    name = cover_file_name(file_name, encode_format)
    target = output_directory / name

    im = Image.open(BytesIO(image)) if isinstance(image, bytes) else image
    with im:
        im = im.convert("RGBA" if encode_format is not EncodeFormat.AVIF else "RGB")
        im.thumbnail(size.dimensions)
        im.save(target, format=encode_format.pillow_format)

    logger.debug(f"Wrote cover {name}")
    return name
