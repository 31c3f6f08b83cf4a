"""Workflow API routes: configuration, start/resume, status and download."""

import logging
import re
from urllib.parse import quote

from fastapi import APIRouter, BackgroundTasks, HTTPException
from fastapi.responses import Response

from epubflow.api.dependencies import Session
from epubflow.core.exceptions import WorkflowStateError
from epubflow.models.enums import WorkflowStatus
from epubflow.models.schemas.workflow import (
    LANGUAGES,
    UnitSummary,
    WorkflowConfig,
    WorkflowStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def content_disposition(filename: str) -> str:
    """Attachment header for a possibly non-ASCII file name.

    ``filename`` carries an ASCII fallback, ``filename*`` the UTF-8 name
    (RFC 5987).
    """
    fallback = re.sub(r"[^\x20-\x7e]|[\\\"]", "_", filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@router.get("/languages")
async def list_languages() -> list[str]:
    """Target languages offered for translation."""
    return LANGUAGES


@router.get("/workflow/config")
async def get_config(session: Session) -> WorkflowConfig:
    return session.config


@router.put("/workflow/config")
async def update_config(config: WorkflowConfig, session: Session) -> WorkflowConfig:
    """Replace the configuration used by the next run."""
    try:
        session.update_config(config)
    except WorkflowStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return session.config


@router.post("/workflow/start", status_code=202)
async def start_workflow(session: Session, background_tasks: BackgroundTasks):
    """Start the workflow, or resume it after an error.

    Runs in the background; poll the status endpoint for progress.
    """
    if session.running:
        raise HTTPException(status_code=409, detail="Workflow is already running")
    try:
        session.begin_run()
    except WorkflowStateError as e:
        raise HTTPException(status_code=400, detail=str(e))

    resuming = session.state.is_parsed
    background_tasks.add_task(session.run_workflow)
    logger.info("Workflow %s for %s", "resumed" if resuming else "started", session.file_name)

    return {"started": True, "resuming": resuming}


@router.get("/workflow/status")
async def get_status(session: Session) -> WorkflowStatusResponse:
    """Current status, progress, log lines and per-unit state."""
    state = session.state
    return WorkflowStatusResponse(
        file_name=session.file_name,
        status=state.status,
        progress=round(state.progress, 2),
        error_message=state.error_message,
        output_ready=state.output is not None,
        running=session.running,
        units=[
            UnitSummary(
                id=unit.id,
                file_name=unit.file_name,
                title=unit.title,
                is_skippable=unit.is_skippable,
                is_reference=unit.is_reference,
                translated=unit.translated_text is not None,
                proofread=unit.proofread_text is not None,
            )
            for unit in state.units
        ],
        asset_count=len(state.assets),
        cover_path=state.cover_path,
        logs=session.logs,
    )


@router.get("/workflow/download")
async def download_epub(session: Session):
    """Download the translated EPUB."""
    state = session.state
    if state.status != WorkflowStatus.COMPLETED or state.output is None:
        raise HTTPException(status_code=404, detail="No translated EPUB available")

    filename = f"translated_{session.file_name or 'book.epub'}"
    return Response(
        content=state.output,
        media_type="application/epub+zip",
        headers={"Content-Disposition": content_disposition(filename)},
    )


@router.post("/workflow/reset")
async def reset_workflow(session: Session):
    """Discard the loaded file, its parsed content and all progress."""
    try:
        session.reset()
    except WorkflowStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"reset": True}
