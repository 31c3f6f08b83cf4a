"""Content classifier for chapters.

Classifies a content unit from its title and source file name to decide
whether it is front matter to drop (copyright, TOC, title page) or back
matter to keep untranslated (bibliography, notes).
"""

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional, Sequence

from epubflow.models.enums import ChapterKind


@dataclass(frozen=True)
class ClassificationRule:
    """A vocabulary term (regex fragment) and the kind it marks."""

    term: str
    kind: ChapterKind


@dataclass(frozen=True)
class Classification:
    """Result of classifying a unit."""

    is_skippable: bool = False
    is_reference: bool = False


# Separator between words in titles or file names ("title page", "title_page",
# "titlepage", "title-page")
_SEP = r"[\s_\-]?"

# Front matter is removed from output entirely; listed first so it wins
# when a title or file name matches both vocabularies.
DEFAULT_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule("copyright", ChapterKind.SKIPPABLE),
    ClassificationRule("colophon", ChapterKind.SKIPPABLE),
    ClassificationRule("imprint", ChapterKind.SKIPPABLE),
    ClassificationRule("legal", ChapterKind.SKIPPABLE),
    ClassificationRule("cover", ChapterKind.SKIPPABLE),
    ClassificationRule(f"title{_SEP}page", ChapterKind.SKIPPABLE),
    ClassificationRule(f"table{_SEP}of{_SEP}contents", ChapterKind.SKIPPABLE),
    ClassificationRule("toc", ChapterKind.SKIPPABLE),
    ClassificationRule("dedication", ChapterKind.SKIPPABLE),
    # Back matter is kept but never sent to the LLM
    ClassificationRule("references", ChapterKind.REFERENCE),
    ClassificationRule("bibliography", ChapterKind.REFERENCE),
    ClassificationRule(f"works{_SEP}cited", ChapterKind.REFERENCE),
    ClassificationRule("sources", ChapterKind.REFERENCE),
    ClassificationRule("acknowledge?ments?", ChapterKind.REFERENCE),
    ClassificationRule("credits", ChapterKind.REFERENCE),
    ClassificationRule("endnotes", ChapterKind.REFERENCE),
    ClassificationRule("notes", ChapterKind.REFERENCE),
)


class ContentClassifier:
    """Classify content units by title prefix and file name.

    A rule matches when its term starts the title (case-insensitive) or
    appears as a separate word in the file name stem. Word boundaries in file
    names are string edges, punctuation, underscores and digits, so
    "ch01_notes.xhtml" matches "notes" but "discover.xhtml" does not match
    "cover".
    """

    def __init__(self, rules: Optional[Sequence[ClassificationRule]] = None):
        self.rules = tuple(rules) if rules is not None else DEFAULT_RULES
        self._compiled = [
            (
                re.compile(rf"^\s*(?:{rule.term})\b", re.IGNORECASE),
                re.compile(rf"(?:^|[\W_\d])(?:{rule.term})(?:$|[\W_\d])", re.IGNORECASE),
                rule.kind,
            )
            for rule in self.rules
        ]

    def classify(self, title: Optional[str], file_name: Optional[str]) -> Classification:
        """Determine the unit's flags from its title and source file name.

        Args:
            title: Display title of the unit (may be empty)
            file_name: Archive path of the unit's source document

        Returns:
            Classification with is_skippable / is_reference flags
        """
        title = (title or "").strip()
        stem = PurePosixPath(file_name or "").stem

        is_skippable = False
        is_reference = False
        for title_re, name_re, kind in self._compiled:
            if not (title_re.search(title) or name_re.search(stem)):
                continue
            if kind == ChapterKind.SKIPPABLE:
                is_skippable = True
            elif kind == ChapterKind.REFERENCE:
                is_reference = True

        return Classification(is_skippable=is_skippable, is_reference=is_reference)


# Module-level instance for convenience
classifier = ContentClassifier()


def classify(title: Optional[str], file_name: Optional[str]) -> Classification:
    """Classify with the default rule set."""
    return classifier.classify(title, file_name)
