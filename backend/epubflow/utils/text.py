"""Text utilities for log output."""

# Break points considered when shortening text (ASCII and CJK punctuation)
BREAK_CHARS = frozenset(" \n\t,.!?;:-。，、")


def safe_truncate(text: str, max_chars: int, suffix: str = "...") -> str:
    """Shorten text for logs, preferring a break point near the cut.

    Provider errors sometimes embed whole request bodies; this keeps log
    lines readable.

    Args:
        text: Text to truncate
        max_chars: Maximum characters (excluding suffix)
        suffix: Suffix to append if truncated

    Returns:
        Text unchanged if short enough, otherwise truncated with suffix
    """
    if not text or len(text) <= max_chars:
        return text

    truncated = text[:max_chars]

    # Look back up to 20 characters for a cleaner break
    for back in range(1, min(20, max_chars)):
        if truncated[-back] in BREAK_CHARS:
            truncated = truncated[:-back].rstrip()
            break

    return truncated + suffix


def one_line(text: str) -> str:
    """Collapse whitespace so multi-line messages fit on one log line."""
    return " ".join(text.split())
