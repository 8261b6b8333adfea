from pathlib import Path

import pytest
from PIL import Image

from tankobon.covers import CoverImageSize, EncodeFormat, cover_file_name
from tankobon.errors import CoverGenerationError
from tankobon.images import ImageEngine


def _write_png(path: Path, size=(10, 10)) -> Path:
    Image.new("RGB", size, color="red").save(path, format="PNG")
    return path


def test_cover_file_name():
    assert cover_file_name("v01", EncodeFormat.PNG) == "v01.png"
    assert cover_file_name("v01", EncodeFormat.WEBP) == "v01.webp"
    assert CoverImageSize.LARGE.dimensions == (900, 1277)


def test_image_cover(tmp_path):
    page = _write_png(tmp_path / "page01.png", size=(2000, 3000))
    name = ImageEngine().get_cover_image(page, "page01", tmp_path / "covers", EncodeFormat.WEBP, CoverImageSize.MEDIUM)

    assert name == "page01.webp"
    with Image.open(tmp_path / "covers" / name) as im:
        assert im.format == "WEBP"
        assert im.width <= 640
        assert im.height <= 909


def test_image_cover_of_unreadable_file(tmp_path):
    page = tmp_path / "page01.png"
    page.write_bytes(b"not a png")
    with pytest.raises(CoverGenerationError):
        ImageEngine().get_cover_image(page, "page01", tmp_path / "covers")


def test_extract_single_image(tmp_path):
    folder = tmp_path / "Series"
    folder.mkdir()
    page = _write_png(folder / "page01.png")
    _write_png(folder / "page02.png")

    ImageEngine().extract_images(page, tmp_path / "out")
    assert sorted(p.name for p in (tmp_path / "out").iterdir()) == ["page01.png"]


def test_extract_sibling_images(tmp_path):
    folder = tmp_path / "Series"
    folder.mkdir()
    page = _write_png(folder / "page01.png")
    _write_png(folder / "page02.png")
    (folder / "._page03.png").write_bytes(b"junk")
    (folder / "notes.txt").write_text("not an image")

    ImageEngine().extract_images(page, tmp_path / "out", image_count=3)
    assert sorted(p.name for p in (tmp_path / "out").iterdir()) == ["page01.png", "page02.png"]
