"""Centralized enum definitions.

All status and type enums should be defined here for consistency.
"""

from enum import Enum


# =============================================================================
# Workflow Enums
# =============================================================================


class WorkflowStatus(str, Enum):
    """Workflow state machine status."""

    IDLE = "idle"
    PARSING = "parsing"
    TRANSLATING = "translating"
    PROOFREADING = "proofreading"
    PACKAGING = "packaging"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def can_start(self) -> bool:
        """Whether a new run (or a resume) may be triggered from this status."""
        return self in (
            WorkflowStatus.IDLE,
            WorkflowStatus.COMPLETED,
            WorkflowStatus.ERROR,
        )


class EventKind(str, Enum):
    """Kinds of events published by the orchestrator."""

    STATUS = "status"
    PROGRESS = "progress"
    LOG = "log"


class LogLevel(str, Enum):
    """Log line level shown to the user."""

    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
    PROCESS = "process"


# =============================================================================
# Content Classification Enums
# =============================================================================


class ChapterKind(str, Enum):
    """Classification of a content unit."""

    SKIPPABLE = "skippable"  # Copyright, TOC, title page: removed from output
    REFERENCE = "reference"  # Bibliography, notes: kept untranslated
