"""Workflow state: content units, shared book data and progress accounting."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, List, Mapping, Optional

from epubflow.core.epub.reader import BookMetadata, ParsedUnit
from epubflow.core.exceptions import WorkflowStateError
from epubflow.models.enums import WorkflowStatus

# Fields that may be assigned exactly once per unit
_WRITE_ONCE_FIELDS = frozenset({"translated_text", "proofread_text"})


@dataclass
class ContentUnit:
    """One translatable document of the book.

    ``translated_text`` and ``proofread_text`` are write-once: assigning
    either a second time raises WorkflowStateError, so a resumed run can
    never redo or overwrite finished work.
    """

    id: str
    file_name: str
    title: str
    original_text: str
    translated_text: Optional[str] = None
    proofread_text: Optional[str] = None
    is_skippable: bool = False
    is_reference: bool = False

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _WRITE_ONCE_FIELDS and getattr(self, name, None) is not None:
            raise WorkflowStateError(f"{name} of unit {self.id!r} is already set")
        super().__setattr__(name, value)

    @property
    def best_text(self) -> str:
        """Proofread text, else translated text, else the original."""
        if self.proofread_text is not None:
            return self.proofread_text
        if self.translated_text is not None:
            return self.translated_text
        return self.original_text

    @classmethod
    def from_parsed(cls, parsed: ParsedUnit) -> "ContentUnit":
        return cls(
            id=parsed.id,
            file_name=parsed.file_name,
            title=parsed.title,
            original_text=parsed.text,
        )


@dataclass
class WorkflowState:
    """Everything one workflow run reads and writes.

    Survives errors so that a re-run resumes where the last one stopped.
    """

    status: WorkflowStatus = WorkflowStatus.IDLE
    units: List[ContentUnit] = field(default_factory=list)
    assets: Mapping[str, bytes] = field(default_factory=lambda: MappingProxyType({}))
    cover_path: Optional[str] = None
    metadata: BookMetadata = field(default_factory=BookMetadata)
    progress: float = 0.0
    error_message: Optional[str] = None
    output: Optional[bytes] = None

    def reset(self) -> None:
        """Discard everything (new file selected or explicit reset)."""
        self.status = WorkflowStatus.IDLE
        self.units = []
        self.assets = MappingProxyType({})
        self.cover_path = None
        self.metadata = BookMetadata()
        self.progress = 0.0
        self.error_message = None
        self.output = None

    @property
    def is_parsed(self) -> bool:
        return bool(self.units)


def compute_progress(
    units: List[ContentUnit],
    enable_proofreading: bool,
    smart_skip: bool,
) -> float:
    """Percentage of transformation steps completed.

    Each unit contributes one step (translate) or two (translate and
    proofread). Skippable units count as fully done when smart skip is on.
    """
    steps_per_unit = 2 if enable_proofreading else 1
    total = len(units) * steps_per_unit
    if total == 0:
        return 0.0

    completed = 0
    for unit in units:
        if smart_skip and unit.is_skippable:
            completed += steps_per_unit
            continue
        completed += 1 if unit.translated_text is not None else 0
        if enable_proofreading:
            completed += 1 if unit.proofread_text is not None else 0

    return completed / total * 100
