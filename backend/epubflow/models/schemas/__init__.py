"""Shared Pydantic schemas for API requests and responses."""

from .workflow import (
    LANGUAGES,
    DEFAULT_SYSTEM_INSTRUCTION,
    DEFAULT_PROOFREAD_INSTRUCTION,
    WorkflowConfig,
    LogEntry,
    UnitSummary,
    WorkflowStatusResponse,
)

__all__ = [
    "LANGUAGES",
    "DEFAULT_SYSTEM_INSTRUCTION",
    "DEFAULT_PROOFREAD_INSTRUCTION",
    "WorkflowConfig",
    "LogEntry",
    "UnitSummary",
    "WorkflowStatusResponse",
]
