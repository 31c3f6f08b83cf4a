"""Workflow package: resumable state and the orchestrator that drives it."""

from .state import ContentUnit, WorkflowState, compute_progress
from .orchestrator import WorkflowEvent, WorkflowOrchestrator

__all__ = [
    "ContentUnit",
    "WorkflowState",
    "compute_progress",
    "WorkflowEvent",
    "WorkflowOrchestrator",
]
