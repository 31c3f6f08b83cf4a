"""Split Markdown into request-sized chunks.

Paragraph boundaries (blank lines) are preferred, then line boundaries; a
single line longer than the limit is hard-cut.
"""

from typing import List

# Characters per request, small enough to stay clear of HTTP timeouts
CHUNK_SIZE = 6000

PARAGRAPH_SEPARATOR = "\n\n"
LINE_SEPARATOR = "\n"


def split_into_chunks(text: str, chunk_size: int = CHUNK_SIZE) -> List[str]:
    """Split text into chunks of at most ``chunk_size`` characters.

    Text that already fits (including empty text) is returned as a single
    chunk equal to the input.

    Args:
        text: Markdown text
        chunk_size: Maximum characters per chunk

    Returns:
        Non-empty list of chunks in source order
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    if not text or len(text) <= chunk_size:
        return [text]

    chunks: List[str] = []
    current = ""

    for paragraph in text.split(PARAGRAPH_SEPARATOR):
        if len(current) + len(paragraph) + len(PARAGRAPH_SEPARATOR) <= chunk_size:
            current = f"{current}{PARAGRAPH_SEPARATOR}{paragraph}" if current else paragraph
            continue

        if current:
            chunks.append(current)
            current = ""

        if len(paragraph) > chunk_size:
            chunks.extend(_split_lines(paragraph, chunk_size))
        else:
            current = paragraph

    if current:
        chunks.append(current)

    return chunks


def _split_lines(paragraph: str, chunk_size: int) -> List[str]:
    """Split an oversized paragraph on newlines, hard-cutting long lines."""
    chunks: List[str] = []
    current = ""

    for line in paragraph.split(LINE_SEPARATOR):
        if len(current) + len(line) + len(LINE_SEPARATOR) <= chunk_size:
            current = f"{current}{LINE_SEPARATOR}{line}" if current else line
            continue

        if current:
            chunks.append(current)
            current = ""

        if len(line) > chunk_size:
            chunks.extend(
                line[start:start + chunk_size] for start in range(0, len(line), chunk_size)
            )
        else:
            current = line

    if current:
        chunks.append(current)

    return chunks
