"""Error types raised by the EPUB workflow."""

from typing import Optional


class EPUBFlowError(Exception):
    """Base error for this application."""


class FormatError(EPUBFlowError):
    """The input archive is missing or has a malformed structural descriptor."""


class PackagingError(EPUBFlowError):
    """The output archive could not be assembled."""


class WorkflowStateError(EPUBFlowError):
    """An operation is not allowed in the current workflow state."""


class TransformationError(EPUBFlowError):
    """A chunk failed terminally after the retry budget was spent.

    Attributes:
        operation: "translate" or "proofread"
        chunk_index: 1-based index of the failing chunk
        total_chunks: Number of chunks the text was split into
        cause: The last underlying error
    """

    def __init__(
        self,
        operation: str,
        chunk_index: int,
        total_chunks: int,
        cause: Optional[BaseException] = None,
    ):
        self.operation = operation
        self.chunk_index = chunk_index
        self.total_chunks = total_chunks
        self.cause = cause
        label = "Translation" if operation == "translate" else "Proofreading"
        detail = str(cause) if cause is not None else "Unknown error"
        super().__init__(
            f"{label} failed at part {chunk_index}/{total_chunks}: {detail}"
        )
