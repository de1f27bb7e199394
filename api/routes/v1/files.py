"""
api/routes/v1/files.py -- Static file upload.

Routes:
  POST /api/v1/files  -- multipart form: name (label) + file (payload)

Stored files land in STATIC_FILES_DIR/public as <uuid4><ext> and are served
at /public/<filename>. Size is capped at UPLOAD_MAX_BYTES (default 30 MB).
"""

from fastapi import APIRouter, Depends, Form, HTTPException, UploadFile

from api.models import ErrorDetail, FileUploadResponse
from auth.dependencies import get_current_user
from core.config import get_settings
from files.storage import PUBLIC_DIR, save_upload

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.post("/files", response_model=FileUploadResponse, status_code=201)
def upload_file(
    file: UploadFile,
    name: str = Form(min_length=1, max_length=255),
) -> FileUploadResponse:
    settings = get_settings()
    max_bytes = settings.upload_max_bytes

    # Sync handler: FastAPI runs it in the threadpool, so the blocking read
    # and disk write stay off the event loop. Read up to the limit + 1 byte.
    raw = file.file.read(max_bytes + 1)
    if len(raw) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=ErrorDetail(
                code="file_too_large",
                message=f"Upload must be {max_bytes} bytes or smaller.",
            ).model_dump(),
        )

    stored = save_upload(name, raw, file.content_type, settings.static_files_dir / PUBLIC_DIR)
    return FileUploadResponse(id=stored.id, filename=stored.filename, name=stored.name)
