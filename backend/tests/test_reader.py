import io
import zipfile

import pytest

from epubflow.core.epub.reader import EPUBReader
from epubflow.core.exceptions import FormatError

from conftest import JPEG_BYTES, PNG_BYTES, SAMPLE_CHAPTERS, SAMPLE_IMAGES, make_epub


def _zip(entries: dict) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buffer.getvalue()


CONTAINER = """<?xml version="1.0"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles><rootfile full-path="content.opf" media-type="application/oebps-package+xml"/></rootfiles>
</container>"""


def test_parse_sample_book(sample_epub):
    book = EPUBReader().parse(sample_epub)

    assert [unit.id for unit in book.units] == ["c1", "c2", "c3", "c4"]
    assert [unit.title for unit in book.units] == [
        "Copyright",
        "Chapter One",
        "Chapter Two",
        "Bibliography",
    ]
    assert book.units[1].file_name == "OEBPS/Text/chapter01.xhtml"
    assert book.cover_path == "OEBPS/Images/cover.jpg"
    assert dict(book.assets) == {
        "OEBPS/Images/cover.jpg": JPEG_BYTES,
        "OEBPS/Images/fig1.png": PNG_BYTES,
    }
    assert book.metadata.title == "Test Book"
    assert book.metadata.author == "Jane Doe"
    assert book.metadata.language == "en"


def test_unit_text_is_markdown(sample_epub):
    unit = EPUBReader().parse(sample_epub).units[1]

    assert unit.text.startswith("# Chapter One")
    assert "It was a bright cold day in April." in unit.text
    assert "![Figure 1](../Images/fig1.png)" in unit.text


def test_asset_table_is_read_only(sample_epub):
    book = EPUBReader().parse(sample_epub)

    with pytest.raises(TypeError):
        book.assets["OEBPS/Images/new.png"] = b""


def test_cover_from_manifest_property():
    data = make_epub(SAMPLE_CHAPTERS, SAMPLE_IMAGES, cover_property_id="cover-img")

    assert EPUBReader().parse(data).cover_path == "OEBPS/Images/cover.jpg"


def test_no_cover():
    data = make_epub(SAMPLE_CHAPTERS, SAMPLE_IMAGES)

    assert EPUBReader().parse(data).cover_path is None


def test_images_outside_manifest_are_collected():
    data = make_epub(SAMPLE_CHAPTERS[:1])
    buffer = io.BytesIO(data)
    with zipfile.ZipFile(buffer, "a") as zf:
        zf.writestr("OEBPS/extra/diagram.svg", b"<svg/>")

    book = EPUBReader().parse(buffer.getvalue())

    assert "OEBPS/extra/diagram.svg" in book.assets


def test_title_fallbacks():
    chapters = [
        ("a", "a.xhtml", "<p>No heading here, but a document title.</p>"),
        ("b", "b.xhtml", "<p>No heading and no title either.</p>"),
    ]
    data = make_epub(chapters, doc_titles={"a": "Prologue"})

    titles = [unit.title for unit in EPUBReader().parse(data).units]

    assert titles == ["Prologue", "Chapter 2"]


def test_unknown_spine_item_is_skipped():
    data = make_epub(SAMPLE_CHAPTERS[1:3], spine=["c2", "ghost", "c3"])

    book = EPUBReader().parse(data)

    assert [unit.id for unit in book.units] == ["c2", "c3"]


def test_package_descriptor_at_archive_root():
    data = make_epub(SAMPLE_CHAPTERS[1:2], SAMPLE_IMAGES, cover_id="cover-img", opf_dir="")

    book = EPUBReader().parse(data)

    assert book.units[0].file_name == "Text/chapter01.xhtml"
    assert book.cover_path == "Images/cover.jpg"


def test_unsafe_markup_is_removed():
    chapters = [
        (
            "x",
            "x.xhtml",
            "<h1>Safe<br/>Heading</h1><script>alert('x')</script>"
            "<p onclick=\"evil()\">Body text</p><style>p { color: red }</style>",
        )
    ]

    unit = EPUBReader().parse(make_epub(chapters)).units[0]

    assert unit.title == "Safe Heading"
    assert unit.text.startswith("# Safe Heading")
    assert "alert" not in unit.text
    assert "color" not in unit.text
    assert "evil" not in unit.text


def test_not_a_zip():
    with pytest.raises(FormatError):
        EPUBReader().parse(b"definitely not an epub")


def test_missing_container():
    with pytest.raises(FormatError, match="container.xml"):
        EPUBReader().parse(_zip({"mimetype": "application/epub+zip"}))


def test_malformed_container():
    with pytest.raises(FormatError):
        EPUBReader().parse(_zip({"META-INF/container.xml": "<container><rootfiles>"}))


def test_container_without_rootfile():
    container = '<container xmlns="urn:oasis:names:tc:opendocument:xmlns:container"/>'
    with pytest.raises(FormatError, match="rootfile"):
        EPUBReader().parse(_zip({"META-INF/container.xml": container}))


def test_missing_package_descriptor():
    with pytest.raises(FormatError, match="content.opf"):
        EPUBReader().parse(_zip({"META-INF/container.xml": CONTAINER}))


def test_missing_spine():
    opf = (
        '<package xmlns="http://www.idpf.org/2007/opf" version="3.0">'
        "<metadata/><manifest/></package>"
    )
    with pytest.raises(FormatError, match="spine"):
        EPUBReader().parse(_zip({"META-INF/container.xml": CONTAINER, "content.opf": opf}))


def test_missing_manifest():
    opf = (
        '<package xmlns="http://www.idpf.org/2007/opf" version="3.0">'
        "<metadata/><spine/></package>"
    )
    with pytest.raises(FormatError, match="manifest"):
        EPUBReader().parse(_zip({"META-INF/container.xml": CONTAINER, "content.opf": opf}))
