import io
import pathlib
import sys
import zipfile
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import pytest

# Ensure backend/ is on sys.path for test imports
BACKEND_PATH = pathlib.Path(__file__).resolve().parents[1]
if str(BACKEND_PATH) not in sys.path:
    sys.path.insert(0, str(BACKEND_PATH))

from epubflow.config import Settings  # noqa: E402
from epubflow.core.llm.gateway import LLMGateway  # noqa: E402


# Minimal image payloads; only the bytes round-trip matters
JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-data\xff\xd9"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png-data"


def xhtml(body: str, title: str = "") -> str:
    return f"""<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml">
<head><title>{title}</title></head>
<body>
{body}
</body>
</html>"""


def make_epub(
    chapters: Sequence[Tuple[str, str, str]],
    images: Sequence[Tuple[str, str, bytes]] = (),
    cover_id: Optional[str] = None,
    cover_property_id: Optional[str] = None,
    opf_dir: str = "OEBPS",
    title: str = "Test Book",
    author: Optional[str] = "Jane Doe",
    spine: Optional[Sequence[str]] = None,
    doc_titles: Optional[dict] = None,
) -> bytes:
    """Build an EPUB in memory.

    Args:
        chapters: (item id, href relative to the OPF, body markup)
        images: (item id, href relative to the OPF, bytes)
        cover_id: Manifest id referenced by <meta name="cover">
        cover_property_id: Manifest id given properties="cover-image"
        spine: Explicit spine idrefs (defaults to every chapter in order)
        doc_titles: item id -> document <title>
    """
    doc_titles = doc_titles or {}
    prefix = f"{opf_dir}/" if opf_dir else ""

    manifest = []
    for item_id, href, _ in chapters:
        manifest.append(
            f'<item id="{item_id}" href="{href}" media-type="application/xhtml+xml"/>'
        )
    for item_id, href, _ in images:
        media_type = "image/jpeg" if href.endswith(".jpg") else "image/png"
        props = ' properties="cover-image"' if item_id == cover_property_id else ""
        manifest.append(f'<item id="{item_id}" href="{href}" media-type="{media_type}"{props}/>')

    spine_ids = list(spine) if spine is not None else [item_id for item_id, _, _ in chapters]
    itemrefs = "".join(f'<itemref idref="{item_id}"/>' for item_id in spine_ids)
    creator = f"<dc:creator>{author}</dc:creator>" if author else ""
    cover_meta = f'<meta name="cover" content="{cover_id}"/>' if cover_id else ""

    opf = f"""<?xml version="1.0" encoding="utf-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="3.0" unique-identifier="id">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
    <dc:identifier id="id">urn:uuid:test</dc:identifier>
    <dc:title>{title}</dc:title>
    <dc:language>en</dc:language>
    {creator}
    {cover_meta}
  </metadata>
  <manifest>{"".join(manifest)}</manifest>
  <spine>{itemrefs}</spine>
</package>"""

    container = f"""<?xml version="1.0"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{prefix}content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>"""

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("mimetype", "application/epub+zip", compress_type=zipfile.ZIP_STORED)
        zf.writestr("META-INF/container.xml", container)
        zf.writestr(f"{prefix}content.opf", opf)
        for item_id, href, body in chapters:
            zf.writestr(f"{prefix}{href}", xhtml(body, doc_titles.get(item_id, "")))
        for _, href, data in images:
            zf.writestr(f"{prefix}{href}", data)
    return buffer.getvalue()


SAMPLE_CHAPTERS = [
    (
        "c1",
        "Text/copyright.xhtml",
        "<h1>Copyright</h1><p>All rights reserved. No part of this book may be reproduced.</p>",
    ),
    (
        "c2",
        "Text/chapter01.xhtml",
        "<h1>Chapter One</h1><p>It was a bright cold day in April.</p>"
        '<p><img src="../Images/fig1.png" alt="Figure 1"/></p>',
    ),
    (
        "c3",
        "Text/chapter02.xhtml",
        "<h1>Chapter Two</h1><p>The clocks were striking thirteen.</p>",
    ),
    (
        "c4",
        "Text/bibliography.xhtml",
        "<h1>Bibliography</h1><p>Orwell, G. Nineteen Eighty-Four. 1949.</p>",
    ),
]

SAMPLE_IMAGES = [
    ("cover-img", "Images/cover.jpg", JPEG_BYTES),
    ("fig1", "Images/fig1.png", PNG_BYTES),
]


@pytest.fixture
def sample_epub() -> bytes:
    """Copyright page, two chapters, a bibliography, a cover and one figure."""
    return make_epub(SAMPLE_CHAPTERS, SAMPLE_IMAGES, cover_id="cover-img")


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None)


# =============================================================================
# LLM fakes
# =============================================================================


@dataclass
class Call:
    prompt: str
    system_instruction: str
    temperature: float


def prompt_content(prompt: str) -> str:
    """The chunk embedded in a translate or proofread prompt."""
    return prompt.split("CONTENT:\n", 1)[1]


def echo_reply(prompt: str, system_instruction: str, temperature: float) -> str:
    """Return the chunk with a marker showing which pass produced it."""
    content = prompt_content(prompt)
    if prompt.startswith("Translate"):
        return f"{content}\n\n(translated)"
    return f"{content}\n\n(proofread)"


class FakeGateway(LLMGateway):
    """Gateway that records calls and answers with ``reply``.

    ``reply`` may raise to simulate provider failures.
    """

    def __init__(self, reply: Callable[[str, str, float], str] = echo_reply):
        self.reply = reply
        self.calls: List[Call] = []

    async def generate(self, prompt: str, system_instruction: str, temperature: float) -> str:
        self.calls.append(Call(prompt, system_instruction, temperature))
        return self.reply(prompt, system_instruction, temperature)


class ScriptedGateway(LLMGateway):
    """Gateway that plays back a list of outcomes (str or exception), then echoes."""

    def __init__(self, outcomes: Sequence[object]):
        self.outcomes = list(outcomes)
        self.calls: List[Call] = []

    async def generate(self, prompt: str, system_instruction: str, temperature: float) -> str:
        self.calls.append(Call(prompt, system_instruction, temperature))
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        return echo_reply(prompt, system_instruction, temperature)


class SleepRecorder:
    """Stands in for asyncio.sleep; records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def sleep(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()
