"""Markup conversion between EPUB XHTML and Markdown.

The reader turns each spine document into Markdown (the structured text sent
to the LLM); the writer turns the transformed Markdown back into XHTML.
"""

import posixpath
import re
from html import escape as html_escape
from typing import Optional
from urllib.parse import unquote, urlparse

import html2text
import markdown
from bs4 import BeautifulSoup, NavigableString, Tag
from lxml import etree
from lxml import html as lxml_html


# Elements removed before conversion (executable or styling content)
UNSAFE_TAGS = (
    "script", "style", "noscript", "iframe", "object", "embed",
    "link", "meta", "template",
)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

# python-markdown extensions used when rendering back to XHTML
MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]


def parse_document(content: bytes | str) -> BeautifulSoup:
    """Parse an XHTML/HTML document leniently."""
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    return BeautifulSoup(content, "lxml")


def sanitize(soup: BeautifulSoup) -> BeautifulSoup:
    """Strip executable and style elements plus inline event handlers.

    Modifies the soup in place and returns it.
    """
    for tag in soup.find_all(UNSAFE_TAGS):
        tag.decompose()

    for tag in soup.find_all(True):
        for attr in [a for a in tag.attrs if a.lower().startswith("on")]:
            del tag.attrs[attr]

    return soup


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace (including newlines) to single spaces."""
    return re.sub(r"\s+", " ", text).strip()


def flatten_headings(root: Tag) -> None:
    """Make every heading a single logical line.

    ``<h1>2<br/>The Return</h1>`` would otherwise become a broken Markdown
    heading followed by a stray paragraph.
    """
    for heading in root.find_all(HEADING_TAGS):
        for br in heading.find_all("br"):
            br.replace_with(" ")
        for string in list(heading.find_all(string=True)):
            collapsed = re.sub(r"\s+", " ", str(string))
            if collapsed != string:
                string.replace_with(NavigableString(collapsed))


def _new_converter() -> html2text.HTML2Text:
    converter = html2text.HTML2Text()
    converter.body_width = 0  # never hard-wrap; line breaks are structural
    converter.unicode_snob = True
    converter.ignore_images = False
    converter.ignore_links = False
    converter.ignore_emphasis = False
    converter.images_to_alt = False
    converter.mark_code = False
    return converter


def body_to_markdown(soup: BeautifulSoup) -> str:
    """Convert the document body to Markdown.

    Preserves heading levels, bold/italic, lists, blockquotes, links, images
    and paragraph breaks.
    """
    body = soup.find("body")
    if body is None:
        body = soup

    flatten_headings(body)

    converted = _new_converter().handle(str(body))

    # Heading lines must never carry trailing hard-break spaces
    lines = []
    for line in converted.splitlines():
        if not line.strip() or line.lstrip().startswith("#"):
            line = line.rstrip()
        lines.append(line)
    text = "\n".join(lines)

    # Collapse runs of blank lines to a single paragraph break
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def first_heading_text(soup: BeautifulSoup) -> Optional[str]:
    """Return the text of the first non-empty in-body heading."""
    body = soup.find("body") or soup
    for heading in body.find_all(HEADING_TAGS):
        text = normalize_whitespace(heading.get_text(" "))
        if text:
            return text
    return None


def document_title(soup: BeautifulSoup) -> Optional[str]:
    """Return the document-level <title>, if any."""
    title = soup.find("title")
    if title is None:
        return None
    text = normalize_whitespace(title.get_text(" "))
    return text or None


def is_external_url(src: str) -> bool:
    """True for URLs with a scheme or host (http, https, data, //cdn...)."""
    parsed = urlparse(src)
    return bool(parsed.scheme or parsed.netloc)


def asset_basename(src: str) -> str:
    """Basename of an in-archive reference, without query or fragment."""
    path = urlparse(src).path
    return posixpath.basename(unquote(path))


def rewrite_image_sources(root: etree._Element, prefix: str) -> int:
    """Point every internal <img> at the flattened asset directory.

    Args:
        root: Element tree to rewrite in place
        prefix: Relative path of the asset directory, ending in "/"

    Returns:
        Number of rewritten references
    """
    rewritten = 0
    for img in root.iter("img"):
        src = img.get("src")
        if not src or is_external_url(src):
            continue
        name = asset_basename(src)
        if name:
            img.set("src", f"{prefix}{name}")
            rewritten += 1
    return rewritten


def markdown_to_xhtml(text: str, asset_prefix: Optional[str] = None) -> str:
    """Render Markdown to an XHTML body fragment.

    Args:
        text: Markdown text (opaque LLM output is fine)
        asset_prefix: If given, internal image references are rewritten to
            ``asset_prefix + basename``

    Returns:
        Well-formed XHTML fragment (no wrapping element)
    """
    rendered = markdown.markdown(
        text or "", extensions=MARKDOWN_EXTENSIONS, output_format="xhtml"
    )
    if not rendered.strip():
        return ""

    container = lxml_html.fragment_fromstring(rendered, create_parent="div")

    if asset_prefix is not None:
        rewrite_image_sources(container, asset_prefix)

    parts = []
    if container.text:
        parts.append(html_escape(container.text, quote=False))
    for child in container:
        if not isinstance(child.tag, str):
            # Comments and processing instructions carry no content
            if child.tail:
                parts.append(html_escape(child.tail, quote=False))
            continue
        parts.append(etree.tostring(child, method="xml", encoding="unicode"))
    return "".join(parts)
