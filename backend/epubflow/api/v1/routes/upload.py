"""Upload API routes."""

import io
import logging
import re
import uuid
import zipfile
from pathlib import Path

from fastapi import APIRouter, File, HTTPException, UploadFile

from epubflow.api.dependencies import Session
from epubflow.config import settings
from epubflow.core.exceptions import WorkflowStateError

logger = logging.getLogger(__name__)

router = APIRouter()

# Read uploads in 1MB chunks so the size limit is enforced while reading
READ_CHUNK_SIZE = 1024 * 1024


def secure_filename(filename: str) -> str:
    """Sanitize a filename to prevent path traversal attacks.

    - Removes directory components (path separators)
    - Removes potentially dangerous characters
    - Limits length to prevent filesystem issues
    - Falls back to a UUID if filename becomes empty
    """
    # Get only the filename, not any directory components
    filename = Path(filename.replace("\\", "/")).name

    # Allow Unicode letters for international filenames
    filename = re.sub(r"[^\w\-.]", "_", filename)

    filename = filename.strip(". ")

    # Collapse multiple underscores/dots
    filename = re.sub(r"[_.]+", lambda m: m.group(0)[0], filename)

    # Limit length (preserve extension)
    max_length = 200
    if len(filename) > max_length:
        name_part = Path(filename).stem[:max_length - 10]
        ext_part = Path(filename).suffix[:10]
        filename = f"{name_part}{ext_part}"

    if not filename or filename.startswith("."):
        filename = f"upload_{uuid.uuid4().hex[:8]}.epub"

    return filename


async def _read_with_limit(file: UploadFile, max_size: int) -> bytes:
    """Read the upload, rejecting it as soon as it exceeds ``max_size``.

    Protects against clients that lie about Content-Length.
    """
    buffer = io.BytesIO()
    while True:
        chunk = await file.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        if buffer.tell() + len(chunk) > max_size:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum size is {settings.max_upload_size_mb}MB",
            )
        buffer.write(chunk)
    return buffer.getvalue()


@router.post("/workflow/upload")
async def upload_epub(session: Session, file: UploadFile = File(...)):
    """Select a new EPUB file; discards the previous book and progress."""
    if not file.filename or not file.filename.lower().endswith(".epub"):
        raise HTTPException(status_code=400, detail="Only EPUB files are allowed")

    max_size = settings.max_upload_size_mb * 1024 * 1024
    if file.size and file.size > max_size:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.max_upload_size_mb}MB",
        )

    data = await _read_with_limit(file, max_size)

    # Cheap structural check; full parsing happens when the workflow starts
    if not zipfile.is_zipfile(io.BytesIO(data)):
        raise HTTPException(status_code=400, detail="Invalid EPUB: not a zip archive")

    safe_filename = secure_filename(file.filename)
    try:
        session.load_file(safe_filename, data)
    except WorkflowStateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {"file_name": safe_filename, "size": len(data)}
