#hapa/api/v1/forms.py
from __future__ import annotations

import logging
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hapa.core.errors import FileValidationError, StorageError
from hapa.core.upload_metrics import upload_metrics
from hapa.db.session import get_db
from hapa.models.enums import FileType
from hapa.schemas.forms import MediaFormSubmission, SubmissionCreated
from hapa.services.file_validation import read_upload, validate_upload
from hapa.services.form_media_service import FormMediaService
from hapa.services.stats_service import invalidate_stats_cache
from hapa.services.storage import StorageBackend, get_storage
from hapa.services.submissions_service import SubmissionsService

router = APIRouter(prefix="/media-forms")
logger = logging.getLogger(__name__)

SUCCESS_MESSAGES = {
    "report": "Report submitted successfully",
    "complaint": "Complaint submitted successfully",
}


@router.post("/submit", status_code=201, response_model=SubmissionCreated)
def submit(payload: MediaFormSubmission, db: Session = Depends(get_db)):
    sub = SubmissionsService().create(db, payload)
    invalidate_stats_cache()
    return SubmissionCreated(message=SUCCESS_MESSAGES[sub.form_type], submissionId=str(sub.id))


@router.post("/submit-with-files", status_code=201, response_model=SubmissionCreated)
async def submit_with_files(
    data: str = Form(...),
    screenshotFiles: Optional[List[UploadFile]] = File(None),
    attachmentFiles: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
):
    """
    Multipart variant: `data` carries the form JSON, files arrive as
    `screenshotFiles` / `attachmentFiles`. Each file is staged, then confirmed
    and linked to the new submission. A file that fails is logged and skipped.
    """
    try:
        payload = MediaFormSubmission.model_validate_json(data)
    except ValidationError as e:
        logger.info("[forms] rejected submission: %d field errors", e.error_count())
        raise HTTPException(status_code=400, detail="Invalid form data")

    subs = SubmissionsService()
    sub = subs.create(db, payload)
    sid = str(sub.id)

    started = time.monotonic()
    media = FormMediaService()
    staged = {FileType.screenshot.value: [], FileType.attachment.value: []}
    errors: List[str] = []
    total = 0

    for file_type, files in (
        (FileType.screenshot.value, screenshotFiles or []),
        (FileType.attachment.value, attachmentFiles or []),
    ):
        for index, upload in enumerate(files):
            total += 1
            raw = await read_upload(upload)
            try:
                checked = validate_upload(upload.filename or "", upload.content_type, raw)
                row = media.create_staging(
                    db,
                    storage,
                    checked,
                    file_type=file_type,
                    form_type=sub.form_type,
                    submission_id=sid,
                    index=index,
                )
                staged[file_type].append(row)
            except FileValidationError as e:
                upload_metrics.record_error(upload.filename or "", len(raw), 0.0, str(e), error_type="validation")
                errors.append(f"{upload.filename}: {e}")
            except StorageError as e:
                errors.append(f"{upload.filename}: {e}")
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("[forms] could not record %s for %s: %s", upload.filename, sid, e)
                errors.append(f"{upload.filename}: not recorded")
            finally:
                await upload.close()

    rows = staged[FileType.screenshot.value] + staged[FileType.attachment.value]
    if rows:
        media.confirm(db, rows, submission_id=sid, form_type=sub.form_type)
        subs.attach_files(
            db,
            sub,
            screenshot_urls=[r.url for r in staged[FileType.screenshot.value]],
            attachment_urls=[r.url for r in staged[FileType.attachment.value]],
        )

    if total:
        upload_metrics.record_batch(
            total=total,
            successful=len(rows),
            failed=total - len(rows),
            total_time_ms=(time.monotonic() - started) * 1000,
            errors=errors,
        )
    if errors:
        logger.warning("[forms] %d file(s) skipped for %s", len(errors), sid, extra={"submission_id": sid})

    invalidate_stats_cache()
    return SubmissionCreated(
        message=SUCCESS_MESSAGES[sub.form_type],
        submissionId=sid,
        uploadedFiles=len(rows),
    )
