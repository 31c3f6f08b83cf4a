"""API dependencies: the in-memory workflow session.

The service handles one book at a time. ``WorkflowSession`` owns the loaded
file, the current configuration, the workflow state and the log lines shown
to the user; routes get it through ``get_session``.
"""

import logging
from typing import Annotated, Callable, List, Optional

from fastapi import Depends

from epubflow.config import settings
from epubflow.core.exceptions import EPUBFlowError, WorkflowStateError
from epubflow.core.llm import LiteLLMGateway, LLMGateway, LLMRuntimeConfig
from epubflow.core.translation import TransformationClient
from epubflow.core.workflow import WorkflowEvent, WorkflowOrchestrator, WorkflowState
from epubflow.models.enums import EventKind, LogLevel
from epubflow.models.schemas.workflow import LogEntry, WorkflowConfig

logger = logging.getLogger(__name__)


def default_gateway() -> LLMGateway:
    """Gateway for the configured provider."""
    return LiteLLMGateway(LLMRuntimeConfig.from_settings(settings))


class WorkflowSession:
    """Single-book workflow session kept in process memory."""

    def __init__(self, gateway_factory: Callable[[], LLMGateway] = default_gateway):
        self.gateway_factory = gateway_factory
        self.state = WorkflowState()
        self.config = WorkflowConfig()
        self.file_name: Optional[str] = None
        self.archive: Optional[bytes] = None
        self.logs: List[LogEntry] = []
        self.running = False

    def load_file(self, file_name: str, data: bytes) -> None:
        """Select a new input file; discards all previous state."""
        self._ensure_idle("load a new file")
        self.state.reset()
        self.logs = []
        self.file_name = file_name
        self.archive = data
        logger.info("Loaded %s (%d bytes)", file_name, len(data))

    def update_config(self, config: WorkflowConfig) -> None:
        self._ensure_idle("change settings")
        self.config = config

    def reset(self) -> None:
        """Forget the file and all progress."""
        self._ensure_idle("reset")
        self.state.reset()
        self.logs = []
        self.file_name = None
        self.archive = None

    def begin_run(self) -> None:
        """Claim the session for a run.

        Raises:
            WorkflowStateError: A run is in progress or no file is loaded
        """
        self._ensure_idle("start another run")
        if self.archive is None and not self.state.is_parsed:
            raise WorkflowStateError("No EPUB loaded")
        self.running = True

    async def run_workflow(self) -> None:
        """Run (or resume) the workflow; call after ``begin_run``."""
        client = TransformationClient(self.gateway_factory(), settings)
        orchestrator = WorkflowOrchestrator(client, settings=settings)
        orchestrator.subscribe(self.record)
        try:
            await orchestrator.run(self.state, self.config, self.archive, self.file_name)
        except EPUBFlowError as e:
            # Already reflected in state and logs
            logger.info("Workflow stopped: %s", e)
        finally:
            self.running = False

    def record(self, event: WorkflowEvent) -> None:
        """Keep log events for display."""
        if event.kind == EventKind.LOG and event.message:
            self.logs.append(
                LogEntry(
                    timestamp=event.timestamp,
                    message=event.message,
                    level=event.level or LogLevel.INFO,
                )
            )

    def _ensure_idle(self, action: str) -> None:
        if self.running:
            raise WorkflowStateError(f"Cannot {action} while the workflow is running")


_session = WorkflowSession()


def get_session() -> WorkflowSession:
    return _session


Session = Annotated[WorkflowSession, Depends(get_session)]
