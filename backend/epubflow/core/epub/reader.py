"""EPUB Reader - parse an EPUB archive into ordered content units.

Uses lxml for the container and package descriptors and BeautifulSoup for
the spine documents, which are converted to Markdown (see ``markup``).
"""

import io
import logging
import posixpath
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional
from urllib.parse import unquote
from zipfile import BadZipFile, ZipFile

from lxml import etree

from epubflow.core.exceptions import FormatError

from . import markup

logger = logging.getLogger(__name__)


# =============================================================================
# Standard XML Namespaces (EPUB standard - do not modify)
# =============================================================================

CONTAINER_NS = "urn:oasis:names:tc:opendocument:xmlns:container"
OPF_NS = "http://www.idpf.org/2007/opf"
DC_NS = "http://purl.org/dc/elements/1.1/"

CONTAINER_PATH = "META-INF/container.xml"

# Archive entries collected into the asset table, by extension
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".bmp")


@dataclass
class ParsedUnit:
    """One spine document converted to Markdown."""

    id: str  # Spine item id
    file_name: str  # Full archive path
    title: str
    text: str  # Markdown


@dataclass
class BookMetadata:
    """Dublin Core fields from the package descriptor."""

    title: Optional[str] = None
    author: Optional[str] = None
    language: Optional[str] = None


@dataclass
class ParsedBook:
    """Everything the reader extracts from one archive."""

    units: list[ParsedUnit]
    assets: Mapping[str, bytes]  # Archive path -> raw bytes (read-only)
    cover_path: Optional[str] = None
    metadata: BookMetadata = field(default_factory=BookMetadata)


@dataclass
class _ManifestItem:
    href: str
    full_path: str
    media_type: Optional[str]
    properties: str


class EPUBReader:
    """Parse EPUB archives.

    Usage:
        book = EPUBReader().parse(archive_bytes)
        for unit in book.units:
            print(unit.title, len(unit.text))
    """

    def parse(self, archive: bytes) -> ParsedBook:
        """Parse archive bytes into units, assets, cover and metadata.

        Raises:
            FormatError: container descriptor, package descriptor, manifest
                or spine missing or malformed
        """
        try:
            zip_file = ZipFile(io.BytesIO(archive))
        except BadZipFile as e:
            raise FormatError(f"Invalid EPUB: not a zip archive ({e})") from e

        with zip_file:
            names = set(zip_file.namelist())

            opf_path = self._find_package_path(zip_file, names)
            opf_dir = posixpath.dirname(opf_path)
            opf_tree = self._parse_xml(zip_file, opf_path, "package descriptor")

            manifest = self._parse_manifest(opf_tree, opf_dir)
            spine = self._parse_spine(opf_tree)
            metadata = self._parse_metadata(opf_tree)
            cover_path = self._resolve_cover(opf_tree, manifest)

            assets = {
                name: zip_file.read(name)
                for name in zip_file.namelist()
                if name.lower().endswith(IMAGE_EXTENSIONS)
            }

            units = []
            for position, item_id in enumerate(spine, start=1):
                item = manifest.get(item_id)
                if item is None:
                    logger.warning("Spine item %r not found in manifest, skipping", item_id)
                    continue
                if item.full_path not in names:
                    logger.warning(
                        "Spine item %r points to missing file %s, skipping",
                        item_id, item.full_path,
                    )
                    continue
                units.append(
                    self._parse_unit(zip_file.read(item.full_path), item_id, item.full_path, position)
                )

        logger.info(
            "Parsed EPUB: %d units, %d assets, cover=%s",
            len(units), len(assets), cover_path,
        )
        return ParsedBook(
            units=units,
            assets=MappingProxyType(assets),
            cover_path=cover_path,
            metadata=metadata,
        )

    def _find_package_path(self, zip_file: ZipFile, names: set[str]) -> str:
        """Get the package descriptor path from container.xml."""
        if CONTAINER_PATH not in names:
            raise FormatError(f"Invalid EPUB: Missing {CONTAINER_PATH}")

        container = self._parse_xml(zip_file, CONTAINER_PATH, "container descriptor")
        rootfile = container.find(".//{%s}rootfile" % CONTAINER_NS)
        if rootfile is None:
            # Some producers omit the namespace
            rootfile = container.find(".//rootfile")
        if rootfile is None:
            raise FormatError("Invalid EPUB: Missing rootfile in container.xml")

        opf_path = rootfile.get("full-path")
        if not opf_path:
            raise FormatError("Invalid EPUB: rootfile missing full-path")
        if opf_path not in names:
            raise FormatError(f"Invalid EPUB: package descriptor not found at {opf_path}")
        return opf_path

    def _parse_xml(self, zip_file: ZipFile, path: str, label: str) -> etree._Element:
        try:
            return etree.fromstring(zip_file.read(path))
        except etree.XMLSyntaxError as e:
            raise FormatError(f"Invalid EPUB: malformed {label} {path}: {e}") from e

    def _parse_manifest(self, opf_tree: etree._Element, opf_dir: str) -> dict[str, _ManifestItem]:
        """Build id -> item mapping with hrefs resolved against the OPF directory."""
        manifest_elem = opf_tree.find("{%s}manifest" % OPF_NS)
        if manifest_elem is None:
            raise FormatError("Invalid EPUB: package descriptor has no manifest")

        manifest = {}
        for item in manifest_elem.findall("{%s}item" % OPF_NS):
            item_id = item.get("id")
            href = item.get("href")
            if not item_id or not href:
                continue
            manifest[item_id] = _ManifestItem(
                href=href,
                full_path=self._resolve_path(opf_dir, href),
                media_type=item.get("media-type"),
                properties=item.get("properties", ""),
            )
        return manifest

    def _parse_spine(self, opf_tree: etree._Element) -> list[str]:
        """Ordered spine idrefs."""
        spine_elem = opf_tree.find("{%s}spine" % OPF_NS)
        if spine_elem is None:
            raise FormatError("Invalid EPUB: package descriptor has no spine")
        return [
            itemref.get("idref")
            for itemref in spine_elem.findall("{%s}itemref" % OPF_NS)
            if itemref.get("idref")
        ]

    def _parse_metadata(self, opf_tree: etree._Element) -> BookMetadata:
        metadata = BookMetadata()
        metadata_elem = opf_tree.find("{%s}metadata" % OPF_NS)
        if metadata_elem is None:
            return metadata

        title = metadata_elem.find(".//{%s}title" % DC_NS)
        if title is not None and title.text:
            metadata.title = title.text.strip()

        creator = metadata_elem.find(".//{%s}creator" % DC_NS)
        if creator is not None and creator.text:
            metadata.author = creator.text.strip()

        language = metadata_elem.find(".//{%s}language" % DC_NS)
        if language is not None and language.text:
            metadata.language = language.text.strip()

        return metadata

    def _resolve_cover(
        self, opf_tree: etree._Element, manifest: dict[str, _ManifestItem]
    ) -> Optional[str]:
        """Find the cover image path.

        Priority 1: <meta name="cover" content="item-id"/>
        Priority 2: <item properties="cover-image" .../>
        """
        for meta in opf_tree.iter("{%s}meta" % OPF_NS):
            if meta.get("name") == "cover":
                item = manifest.get(meta.get("content", ""))
                if item is not None:
                    return item.full_path

        for item in manifest.values():
            if "cover-image" in item.properties.split():
                return item.full_path

        return None

    def _parse_unit(self, content: bytes, item_id: str, file_name: str, position: int) -> ParsedUnit:
        """Sanitize a spine document and convert its body to Markdown."""
        soup = markup.sanitize(markup.parse_document(content))

        title = (
            markup.first_heading_text(soup)
            or markup.document_title(soup)
            or f"Chapter {position}"
        )
        text = markup.body_to_markdown(soup)

        return ParsedUnit(id=item_id, file_name=file_name, title=title, text=text)

    @staticmethod
    def _resolve_path(base_dir: str, href: str) -> str:
        """Resolve href relative to the OPF directory."""
        href = unquote(href.split("#", 1)[0])
        if base_dir:
            return posixpath.normpath(posixpath.join(base_dir, href))
        return posixpath.normpath(href)
