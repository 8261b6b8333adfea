import io
import zipfile
from pathlib import Path

import pymupdf
import pytest
from PIL import Image

from tankobon.book import BookEngine
from tankobon.errors import MetadataReadError
from tankobon.formats import ItemFormat
from tankobon.models import DEFAULT_CHAPTER, LOOSE_LEAF_VOLUME, LibraryType
from tankobon.reading_items import ReadingItemService

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="OEBPS/content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>"""

CHAPTER_XHTML = """<?xml version="1.0" encoding="utf-8"?>
<html xmlns="http://www.w3.org/1999/xhtml"><head><title>{0}</title></head><body><p>{0}</p></body></html>"""

OPF_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="{version}" unique-identifier="bookid">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/" xmlns:opf="http://www.idpf.org/2007/opf">
    <dc:identifier id="bookid">urn:uuid:0f9e4bd2-1c7e-4a8e-9d64-2f1f3c2b7a10</dc:identifier>
    <dc:language>en</dc:language>
    {metadata}
  </metadata>
  <manifest>
    <item id="c1" href="c1.xhtml" media-type="application/xhtml+xml"/>
    <item id="c2" href="c2.xhtml" media-type="application/xhtml+xml"/>
    {manifest}
  </manifest>
  <spine>
    <itemref idref="c1"/>
    <itemref idref="c2"/>
  </spine>
</package>"""


def _png_bytes(color: str = "red") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (10, 10), color=color).save(buf, format="PNG")
    return buf.getvalue()


def _create_epub(path: Path, metadata: str, version: str = "2.0", cover: bool = False) -> Path:
    manifest = ""
    if cover:
        manifest = '<item id="cover" href="cover.png" media-type="image/png" properties="cover-image"/>'
    opf = OPF_TEMPLATE.format(version=version, metadata=metadata, manifest=manifest)

    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("mimetype", "application/epub+zip", compress_type=zipfile.ZIP_STORED)
        zf.writestr("META-INF/container.xml", CONTAINER_XML)
        zf.writestr("OEBPS/content.opf", opf)
        zf.writestr("OEBPS/c1.xhtml", CHAPTER_XHTML.format("One"))
        zf.writestr("OEBPS/c2.xhtml", CHAPTER_XHTML.format("Two"))
        if cover:
            zf.writestr("OEBPS/cover.png", _png_bytes("blue"))
    return path


CALIBRE_METADATA = """
    <dc:title>Saga Five</dc:title>
    <dc:creator>Brian K. Vaughan</dc:creator>
    <dc:creator>Fiona Staples</dc:creator>
    <dc:publisher>Image</dc:publisher>
    <dc:subject>Space Opera</dc:subject>
    <dc:date>2015-09-01</dc:date>
    <meta name="calibre:series" content="Saga"/>
    <meta name="calibre:series_index" content="5.0"/>
    <meta name="calibre:title_sort" content="Saga 05"/>
"""

COLLECTION_METADATA = """
    <dc:title>Delicious in Dungeon 2</dc:title>
    <meta property="dcterms:modified">2024-01-01T00:00:00Z</meta>
    <meta property="belongs-to-collection" id="c01">Delicious in Dungeon</meta>
    <meta refines="#c01" property="collection-type">series</meta>
    <meta refines="#c01" property="group-position">2</meta>
"""

LIGHT_NOVEL_METADATA = """
    <dc:title>Standalone Light Novel Vol 3</dc:title>
"""


@pytest.fixture
def engine():
    return BookEngine()


@pytest.fixture
def books(tmp_path):
    root = tmp_path / "books"
    root.mkdir()
    return root


def test_calibre_series(engine, books):
    path = _create_epub(books / "saga-5.epub", CALIBRE_METADATA)

    item = engine.parse_info(path)
    assert item.series == "Saga"
    assert item.series_sort == "Saga"
    assert item.volumes == "5"
    assert item.chapters == DEFAULT_CHAPTER
    assert item.title == "Saga 05"
    assert item.filename == "saga-5.epub"
    assert item.format is ItemFormat.EPUB


def test_calibre_comic_info(engine, books):
    info = engine.get_comic_info(_create_epub(books / "saga-5.epub", CALIBRE_METADATA))

    assert info.title == "Saga Five"
    assert info.series == "Saga"
    assert info.series_sort == "Saga"
    assert info.title_sort == "Saga 05"
    assert info.volume == "5"
    assert info.writer == "Brian K. Vaughan, Fiona Staples"
    assert info.publisher == "Image"
    assert info.genre == "Space Opera"
    assert info.language_iso == "en"
    assert (info.year, info.month, info.day) == (2015, 9, 1)


def test_epub3_collection(engine, books):
    path = _create_epub(books / "dungeon-2.epub", COLLECTION_METADATA, version="3.0")

    item = engine.parse_info(path)
    assert item.series == "Delicious in Dungeon"
    assert item.volumes == "2"
    assert item.title == "Delicious in Dungeon 2"


def test_book_without_series_is_loose(engine, books):
    path = _create_epub(books / "dune.epub", "<dc:title>Dune</dc:title>")

    item = engine.parse_info(path)
    assert item.series == "Dune"
    assert item.title == "dune"
    assert item.volumes == LOOSE_LEAF_VOLUME


def test_light_novel_comic_info(engine, books):
    info = engine.get_comic_info(_create_epub(books / "light-novel.epub", LIGHT_NOVEL_METADATA))
    assert info.series == "Standalone Light Novel"
    assert info.volume == "3"


def test_non_epub_is_ignored(engine, books):
    assert engine.parse_info(books / "missing.epub") is None
    assert engine.parse_info(books / "Manual.pdf") is None
    assert engine.get_comic_info(books / "Manual.pdf") is None


def test_corrupt_epub(engine, books):
    path = books / "broken.epub"
    path.write_bytes(b"not a zip")

    item = engine.parse_info(path)
    assert item.series == "broken"
    assert item.volumes == LOOSE_LEAF_VOLUME

    with pytest.raises(MetadataReadError):
        engine.get_comic_info(path)


def test_epub_pages_and_cover(engine, books, tmp_path):
    path = _create_epub(books / "dungeon-2.epub", COLLECTION_METADATA, version="3.0", cover=True)

    assert engine.get_number_of_pages(path) == 2
    name = engine.get_cover_image(path, "dungeon-2", tmp_path / "covers")
    assert name == "dungeon-2.png"
    with Image.open(tmp_path / "covers" / name) as im:
        assert im.getpixel((0, 0))[:3] == (0, 0, 255)


def test_service_resolves_epub_end_to_end(books, tmp_path):
    service = ReadingItemService(tmp_path / "covers")

    saga = service.parse_file(_create_epub(books / "saga-5.epub", CALIBRE_METADATA), books, LibraryType.COMIC)
    assert saga.series == "Saga"
    assert saga.volumes == "5"
    assert saga.series_sort == "Saga"
    assert saga.comic_info.title_sort == "Saga 05"

    novel = service.parse_file(_create_epub(books / "light-novel.epub", LIGHT_NOVEL_METADATA), books, LibraryType.BOOK)
    assert novel.series == "Standalone Light Novel"
    assert novel.volumes == "3"
    assert novel.chapters == DEFAULT_CHAPTER


@pytest.fixture
def pdf(books):
    path = books / "Manual.pdf"
    doc = pymupdf.open()
    for text in ("First", "Second"):
        page = doc.new_page()
        page.insert_text((72, 72), text)
    doc.save(str(path))
    doc.close()
    return path


def test_pdf_pages(engine, pdf):
    assert engine.get_number_of_pages(pdf) == 2


def test_pdf_cover(engine, pdf, tmp_path):
    name = engine.get_cover_image(pdf, "manual", tmp_path / "covers")
    assert name == "manual.png"
    with Image.open(tmp_path / "covers" / name) as im:
        assert im.width <= 320
        assert im.height <= 455


def test_pdf_extract(engine, pdf, tmp_path):
    target = tmp_path / "pages"
    engine.extract_pdf_images(pdf, target)
    assert sorted(p.name for p in target.iterdir()) == ["Page-0.png", "Page-1.png"]
