"""Workflow Orchestrator - parse, translate, proofread and package one book.

State machine:
    idle -> parsing -> translating <-> proofreading -> packaging -> completed
    parsing / translating / proofreading / packaging -> error

A run may start from idle, completed or error. Units already translated or
proofread are never sent again, so re-running after an error resumes.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Callable, List, Optional

from epubflow.config import Settings, settings as default_settings
from epubflow.core.content_classifier import ContentClassifier
from epubflow.core.epub.reader import EPUBReader
from epubflow.core.epub.writer import EPUBWriter
from epubflow.core.exceptions import PackagingError, WorkflowStateError
from epubflow.core.translation.client import TransformationClient
from epubflow.core.translation.prompts import effective_instructions
from epubflow.models.enums import EventKind, LogLevel, WorkflowStatus
from epubflow.models.schemas.workflow import WorkflowConfig

from .state import ContentUnit, WorkflowState, compute_progress

logger = logging.getLogger(__name__)

DEFAULT_BOOK_TITLE = "Translated Book"

# Published progress stays below this until the run completes
MAX_RUNNING_PROGRESS = 99.0


@dataclass
class WorkflowEvent:
    """Status change, progress update or log line published during a run."""

    kind: EventKind
    status: WorkflowStatus
    progress: float
    message: Optional[str] = None
    level: Optional[LogLevel] = None
    timestamp: float = field(default_factory=time.time)


Listener = Callable[[WorkflowEvent], None]


class WorkflowOrchestrator:
    """Drive Reader -> Classifier -> Client -> Writer over a WorkflowState.

    Usage:
        orchestrator = WorkflowOrchestrator(client)
        orchestrator.subscribe(print)
        output = await orchestrator.run(state, config, archive_bytes, "book.epub")
    """

    def __init__(
        self,
        client: TransformationClient,
        reader: Optional[EPUBReader] = None,
        writer: Optional[EPUBWriter] = None,
        classifier: Optional[ContentClassifier] = None,
        settings: Optional[Settings] = None,
    ):
        self.client = client
        self.reader = reader or EPUBReader()
        self.writer = writer or EPUBWriter()
        self.classifier = classifier or ContentClassifier()
        self.settings = settings or default_settings
        self._listeners: List[Listener] = []
        self._published_progress = 0.0
        self._current_status = WorkflowStatus.IDLE

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def run(
        self,
        state: WorkflowState,
        config: WorkflowConfig,
        archive_bytes: Optional[bytes] = None,
        source_name: Optional[str] = None,
    ) -> bytes:
        """Run (or resume) the workflow and return the translated EPUB.

        Args:
            state: Workflow state; populated units mean "resume"
            config: Settings for this run
            archive_bytes: Input EPUB; only needed when state has no units
            source_name: Original file name, used for the book title

        Raises:
            WorkflowStateError: A run is already in progress, or there is
                nothing to parse
            FormatError: The input archive is invalid
            TransformationError: A chunk failed after its retry budget
            PackagingError: The output archive could not be built
        """
        if not state.status.can_start:
            raise WorkflowStateError(f"Cannot start workflow while {state.status.value}")
        if not state.is_parsed and archive_bytes is None:
            raise WorkflowStateError("No EPUB loaded")

        state.error_message = None
        state.output = None
        self._published_progress = 0.0
        self._current_status = state.status

        try:
            if state.is_parsed:
                self._log("Resuming workflow with existing parsed data...")
            else:
                self._parse(state, archive_bytes)

            translate_instruction, proofread_instruction = effective_instructions(config)
            self._announce(config)
            self._publish_progress(state, config)

            for unit in state.units:
                await self._process_unit(
                    state, config, unit, translate_instruction, proofread_instruction
                )

            output = self._package(state, config, source_name)
        except Exception as e:
            state.error_message = str(e)
            logger.error("Workflow failed: %s", e)
            self._set_status(state, WorkflowStatus.ERROR)
            self._log(f"Error: {e}", LogLevel.ERROR)
            raise

        state.output = output
        state.progress = 100.0
        self._set_status(state, WorkflowStatus.COMPLETED)
        self._emit(WorkflowEvent(EventKind.PROGRESS, state.status, state.progress))
        self._log("Translation complete! EPUB ready for download.", LogLevel.SUCCESS)
        return output

    def _parse(self, state: WorkflowState, archive_bytes: bytes) -> None:
        self._set_status(state, WorkflowStatus.PARSING)
        self._log("Parsing EPUB and converting XHTML to Markdown...", LogLevel.PROCESS)

        book = self.reader.parse(archive_bytes)

        units = []
        for parsed in book.units:
            unit = ContentUnit.from_parsed(parsed)
            classification = self.classifier.classify(unit.title, unit.file_name)
            unit.is_skippable = classification.is_skippable
            unit.is_reference = classification.is_reference
            units.append(unit)

        state.units = units
        state.assets = book.assets
        state.cover_path = book.cover_path
        state.metadata = book.metadata

        self._log(
            f"Found {len(units)} chapters and {len(book.assets)} images.", LogLevel.SUCCESS
        )
        if book.cover_path:
            self._log(f"Cover image detected: {book.cover_path}")

    def _announce(self, config: WorkflowConfig) -> None:
        self._log(
            f"Starting translation into {config.target_language} "
            f"using {self.settings.llm_provider}/{self.settings.llm_model}..."
        )
        if config.use_recommended_prompts:
            self._log("Using recommended prompts.")
        if config.smart_skip:
            self._log(
                "Smart Skip enabled: title pages, copyright and TOC will be removed; "
                "references will be kept untranslated."
            )

    async def _process_unit(
        self,
        state: WorkflowState,
        config: WorkflowConfig,
        unit: ContentUnit,
        translate_instruction: str,
        proofread_instruction: str,
    ) -> None:
        if len(unit.original_text.strip()) < self.settings.min_unit_length:
            self._log(f"Skipping empty/short chapter: {unit.title}")
            return

        if config.smart_skip:
            if unit.is_skippable:
                return
            if unit.is_reference and unit.translated_text is None:
                self._log(f"Keeping reference chapter untranslated: {unit.title}")
                unit.translated_text = unit.original_text
                if unit.proofread_text is None:
                    unit.proofread_text = unit.original_text
                self._publish_progress(state, config)

        if unit.translated_text is None:
            self._set_status(state, WorkflowStatus.TRANSLATING)
            self._log(f"Translating: {unit.title}", LogLevel.PROCESS)
            unit.translated_text = await self.client.translate(
                unit.original_text, config.target_language, translate_instruction
            )
            self._publish_progress(state, config)

        if config.enable_proofreading and unit.proofread_text is None:
            self._set_status(state, WorkflowStatus.PROOFREADING)
            self._log(f"Proofreading: {unit.title}", LogLevel.PROCESS)
            unit.proofread_text = await self.client.proofread(
                unit.translated_text, proofread_instruction
            )
            self._publish_progress(state, config)

    def _package(
        self, state: WorkflowState, config: WorkflowConfig, source_name: Optional[str]
    ) -> bytes:
        self._set_status(state, WorkflowStatus.PACKAGING)
        self._log("Packaging EPUB...", LogLevel.PROCESS)

        units = state.units
        if config.smart_skip:
            units = [unit for unit in units if not unit.is_skippable]

        try:
            return self.writer.generate(
                units,
                state.assets,
                title=self._book_title(state, source_name),
                target_language=config.target_language,
                cover_path=state.cover_path,
                author=state.metadata.author,
            )
        except Exception as e:
            raise PackagingError(f"Failed to package EPUB: {e}") from e

    @staticmethod
    def _book_title(state: WorkflowState, source_name: Optional[str]) -> str:
        if source_name:
            path = PurePath(source_name)
            return path.stem if path.suffix.lower() == ".epub" else path.name
        return state.metadata.title or DEFAULT_BOOK_TITLE

    def _publish_progress(self, state: WorkflowState, config: WorkflowConfig) -> None:
        progress = compute_progress(state.units, config.enable_proofreading, config.smart_skip)
        progress = min(max(progress, self._published_progress), MAX_RUNNING_PROGRESS)
        self._published_progress = progress
        state.progress = progress
        self._emit(WorkflowEvent(EventKind.PROGRESS, state.status, progress))

    def _set_status(self, state: WorkflowState, status: WorkflowStatus) -> None:
        if state.status == status:
            return
        logger.info("Workflow status: %s -> %s", state.status.value, status.value)
        state.status = status
        self._emit(WorkflowEvent(EventKind.STATUS, status, state.progress))

    def _log(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        if level != LogLevel.ERROR:
            logger.info(message)
        self._emit(
            WorkflowEvent(
                EventKind.LOG,
                self._current_status,
                self._published_progress,
                message=message,
                level=level,
            )
        )

    def _emit(self, event: WorkflowEvent) -> None:
        if event.kind == EventKind.STATUS:
            self._current_status = event.status
        for listener in list(self._listeners):
            listener(event)
