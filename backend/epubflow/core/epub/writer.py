"""EPUB Writer - regenerate an EPUB 3 archive from transformed units.

Produces a flat, self-contained package:
- OEBPS/content.opf, OEBPS/nav.xhtml, OEBPS/toc.ncx
- OEBPS/Styles/style.css (CJK or Latin variant)
- OEBPS/Images/<basename> for every image asset
- OEBPS/Text/chapter_NNN.xhtml per unit
"""

import logging
import posixpath
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from io import BytesIO
from typing import Mapping, Optional, Protocol, Sequence

from ebooklib import epub

from . import markup
from .styles import get_stylesheet, language_code

logger = logging.getLogger(__name__)


OEBPS_DIR = "OEBPS"
TEXT_DIR = "Text"
IMAGES_DIR = "Images"
STYLE_PATH = "Styles/style.css"

IMAGE_MEDIA_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
}

# Documents with no rendered content still need a body element
EMPTY_BODY = "<p></p>"


class WritableUnit(Protocol):
    """What the writer needs from a content unit."""

    title: str

    @property
    def best_text(self) -> str: ...


@dataclass
class _FlatAsset:
    href: str  # Relative to OEBPS
    media_type: str
    data: bytes
    is_cover: bool = False


def media_type_for(path: str) -> str:
    """Media type derived from the file extension."""
    ext = posixpath.splitext(path)[1].lower()
    return IMAGE_MEDIA_TYPES.get(ext, "application/octet-stream")


class EPUBWriter:
    """Generate translated EPUB files.

    Usage:
        data = EPUBWriter().generate(units, assets, "My Book", "Japanese", cover_path)
    """

    def generate(
        self,
        units: Sequence[WritableUnit],
        assets: Mapping[str, bytes],
        title: str,
        target_language: str,
        cover_path: Optional[str] = None,
        author: Optional[str] = None,
        identifier: Optional[str] = None,
        modified: Optional[datetime] = None,
    ) -> bytes:
        """Build the archive.

        Args:
            units: Units to package, in reading order
            assets: Original archive path -> image bytes
            title: Book title
            target_language: Target language name (selects stylesheet and dc:language)
            cover_path: Original archive path of the cover image, if any
            author: Optional dc:creator
            identifier: Book identifier (a fresh urn:uuid when omitted)
            modified: Modification timestamp (now when omitted)

        Returns:
            EPUB file as bytes
        """
        lang = language_code(target_language)
        modified = (modified or datetime.now(timezone.utc)).astimezone(timezone.utc)

        book = epub.EpubBook()
        book.FOLDER_NAME = OEBPS_DIR

        # Set metadata
        book.set_identifier(identifier or f"urn:uuid:{uuid.uuid4()}")
        book.set_title(title)
        book.set_language(lang)
        if author:
            book.add_author(author)
        book.add_metadata("DC", "date", modified.strftime("%Y-%m-%dT%H:%M:%SZ"))

        # Add CSS
        css = epub.EpubItem(
            uid="style",
            file_name=STYLE_PATH,
            media_type="text/css",
            content=get_stylesheet(target_language).encode("utf-8"),
        )
        book.add_item(css)

        flat_assets = self._flatten_assets(assets, cover_path)
        has_cover = False
        for index, asset in enumerate(flat_assets, start=1):
            if asset.is_cover:
                book.set_cover(asset.href, asset.data, create_page=False)
                has_cover = True
            else:
                book.add_item(
                    epub.EpubImage(
                        uid=f"img_{index:03d}",
                        file_name=asset.href,
                        media_type=asset.media_type,
                        content=asset.data,
                    )
                )

        # Create chapters
        chapters = [
            self._create_chapter(unit, position, lang)
            for position, unit in enumerate(units, start=1)
        ]
        for chapter in chapters:
            book.add_item(chapter)

        # Set TOC and spine
        book.toc = chapters
        book.spine = chapters

        # Add navigation
        book.add_item(epub.EpubNcx())
        nav = epub.EpubNav()
        nav.add_link(href=STYLE_PATH, rel="stylesheet", type="text/css")
        book.add_item(nav)

        # Write to bytes
        output = BytesIO()
        epub.write_epub(
            output,
            book,
            {
                "mtime": modified,
                "play_order": {"enabled": True, "start_from": 1},
            },
        )

        logger.info(
            "Generated EPUB: %d documents, %d images, cover=%s, language=%s",
            len(chapters), len(flat_assets), has_cover, lang,
        )
        return output.getvalue()

    def _create_chapter(self, unit: WritableUnit, position: int, lang: str) -> epub.EpubHtml:
        """Render a unit's Markdown into an EPUB chapter."""
        chapter_title = (unit.title or "").strip() or f"Chapter {position}"
        chapter = epub.EpubHtml(
            uid=f"chapter_{position:03d}",
            title=chapter_title,
            file_name=f"{TEXT_DIR}/chapter_{position:03d}.xhtml",
            lang=lang,
        )
        chapter.add_link(href=f"../{STYLE_PATH}", rel="stylesheet", type="text/css")
        body = markup.markdown_to_xhtml(unit.best_text, asset_prefix=f"../{IMAGES_DIR}/")
        chapter.content = body or EMPTY_BODY
        return chapter

    def _flatten_assets(
        self, assets: Mapping[str, bytes], cover_path: Optional[str]
    ) -> list[_FlatAsset]:
        """Write every asset once under Images/<basename>.

        The cover is placed first so it always keeps its basename; for other
        clashes the first occurrence wins.
        """
        ordered = list(assets.items())
        if cover_path and cover_path in assets:
            ordered.sort(key=lambda entry: entry[0] != cover_path)

        flat: list[_FlatAsset] = []
        seen: set[str] = set()
        for path, data in ordered:
            name = posixpath.basename(path)
            if not name or name in seen:
                continue
            seen.add(name)
            flat.append(
                _FlatAsset(
                    href=f"{IMAGES_DIR}/{name}",
                    media_type=media_type_for(name),
                    data=data,
                    is_cover=path == cover_path,
                )
            )
        return flat
