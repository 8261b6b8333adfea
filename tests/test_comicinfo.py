"""Tests for ComicInfo.xml parsing."""

from tankobon.comicinfo import EmbeddedMetadata, has_special_format, parse_comicinfo_xml


def test_parse_comicinfo_one_shot():
    """Parse one-shot comic ComicInfo (no Number, has Title, Format, etc.)."""
    xml = b"""<?xml version="1.0"?>
<ComicInfo>
  <Title>Family Feud</Title>
  <Series>Carnage</Series>
  <Format>One-Shot</Format>
  <Web>https://www.comixology.com/Carnage/digital-comic/24004</Web>
  <Summary>Collects Carnage #1-5.</Summary>
  <Publisher>Marvel</Publisher>
  <Genre>Superhero</Genre>
  <PageCount>114</PageCount>
  <LanguageISO>en</LanguageISO>
  <Year>2012</Year>
  <Month>4</Month>
  <Writer>Zeb Wells</Writer>
  <Penciller>Clayton Crain</Penciller>
</ComicInfo>"""
    m = parse_comicinfo_xml(xml)
    assert m.title == "Family Feud"
    assert m.series == "Carnage"
    assert m.format == "One-Shot"
    assert m.is_special
    assert m.writer == "Zeb Wells"
    assert m.penciller == "Clayton Crain"
    assert m.year == 2012
    assert m.month == 4
    assert m.summary == "Collects Carnage #1-5."
    assert m.language_iso == "en"
    assert m.publisher == "Marvel"
    assert m.number is None
    assert m.volume is None


def test_parse_comicinfo_series_fields():
    """Series, number, volume and sort fields keep their string values, trimmed."""
    xml = b"""<?xml version="1.0"?>
<ComicInfo>
  <Series>Batman </Series>
  <LocalizedSeries> Batman (JP) </LocalizedSeries>
  <SeriesSort>Batman, The</SeriesSort>
  <TitleSort>Long Halloween</TitleSort>
  <Number>161.5</Number>
  <Volume>2016</Volume>
  <Count>12</Count>
  <writer>Jeph Loeb</writer>
</ComicInfo>"""
    m = parse_comicinfo_xml(xml)
    assert m.series == "Batman"
    assert m.localized_series == "Batman (JP)"
    assert m.series_sort == "Batman, The"
    assert m.title_sort == "Long Halloween"
    assert m.number == "161.5"
    assert m.volume == "2016"
    assert m.count == 12
    assert m.writer == "Jeph Loeb"
    assert not m.is_special


def test_parse_comicinfo_with_namespace():
    """Parse ComicInfo with xmlns attributes."""
    xml = b"""<?xml version='1.0' encoding='utf-8'?>
<ComicInfo xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" xmlns:xsd="http://www.w3.org/2001/XMLSchema">
    <Series>Unbreakable X-Men </Series>
    <Number>1</Number>
    <LanguageISO>en</LanguageISO>
    <Month>10</Month>
    <Year>2025</Year>
</ComicInfo>"""
    m = parse_comicinfo_xml(xml)
    assert m.series == "Unbreakable X-Men"
    assert m.number == "1"
    assert m.month == 10
    assert m.year == 2025


def test_parse_comicinfo_blank_tags_are_absent():
    """Blank and whitespace-only tags read as missing values."""
    xml = b"""<ComicInfo><Volume>  </Volume><Series></Series><Number>3</Number></ComicInfo>"""
    m = parse_comicinfo_xml(xml)
    assert m.volume is None
    assert m.series is None
    assert m.number == "3"


def test_parse_comicinfo_invalid_returns_none():
    """Malformed XML yields no metadata at all."""
    for xml in (b"", b"not xml at all", b"<ComicInfo><Series>"):
        assert parse_comicinfo_xml(xml) is None


def test_parse_comicinfo_unrelated_root_is_empty():
    m = parse_comicinfo_xml(b"<root></root>")
    assert m.model_dump(exclude_none=True) == {}


def test_embedded_metadata_normalizes_blank_strings():
    m = EmbeddedMetadata(volume="", series="   ", title=" Title ")
    assert m.volume is None
    assert m.series is None
    assert m.title == "Title"


def test_has_special_format():
    for value in ("Special", "one-shot", "TPB", "Annual", "Graphic Novel", "FCBD", "Director's Cut"):
        assert has_special_format(value), value
    for value in (None, "", "Series", "Digital", "Limited Series"):
        assert not has_special_format(value), value
