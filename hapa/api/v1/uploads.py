#hapa/api/v1/uploads.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from hapa.core.auth_deps import require_action
from hapa.core.errors import FileValidationError, StorageError
from hapa.core.upload_metrics import upload_metrics
from hapa.db.session import get_db
from hapa.models.enums import FileType, FormType
from hapa.policies.rbac import ACTION_MANAGE_MEDIA, Principal
from hapa.services.file_validation import read_upload, validate_upload
from hapa.services.form_media_service import FormMediaService
from hapa.services.media_service import MediaService
from hapa.services.storage import LocalStorage, StorageBackend, get_storage

router = APIRouter()
logger = logging.getLogger(__name__)


async def _read_validated(file: UploadFile):
    raw = await read_upload(file)
    await file.close()
    try:
        return validate_upload(file.filename or "", file.content_type, raw)
    except FileValidationError as e:
        upload_metrics.record_error(file.filename or "", len(raw), 0.0, str(e), error_type="validation")
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/form-media/upload", status_code=201)
async def upload_form_media(
    file: UploadFile = File(...),
    fileType: FileType = Form(FileType.attachment),
    formType: Optional[FormType] = Form(None),
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
):
    """Public evidence upload. The row stays `staging` until a submission claims it."""
    checked = await _read_validated(file)
    try:
        row = FormMediaService().create_staging(
            db,
            storage,
            checked,
            file_type=fileType.value,
            form_type=formType.value if formType else None,
        )
    except StorageError as e:
        logger.error("[uploads] form media store failed: %s", e)
        raise HTTPException(status_code=502, detail="File storage unavailable.")

    return {
        "success": True,
        "id": str(row.id),
        "url": row.url,
        "filename": row.filename,
        "uploadStatus": row.upload_status,
    }


@router.post("/media/upload", status_code=201)
async def upload_media(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    principal: Principal = Depends(require_action(ACTION_MANAGE_MEDIA)),
):
    checked = await _read_validated(file)
    try:
        row = MediaService().create(db, storage, checked)
    except StorageError as e:
        logger.error("[uploads] media store failed: %s", e)
        raise HTTPException(status_code=502, detail="File storage unavailable.")

    return {"success": True, "id": str(row.id), "url": row.url, "filename": row.filename}


@router.get("/files/{key:path}")
def serve_file(key: str, storage: StorageBackend = Depends(get_storage)):
    """Serves objects from local storage. R2 objects are served by their public URL."""
    if not isinstance(storage, LocalStorage):
        raise HTTPException(status_code=404, detail="Not found")

    try:
        path = storage.path_for(key)
    except StorageError:
        raise HTTPException(status_code=404, detail="Not found")
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Not found")

    return FileResponse(path, headers={"Cache-Control": "public, max-age=31536000"})
