#hapa/api/v1/admin_submissions.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from hapa.core.auth_deps import require_action
from hapa.core.config import get_settings
from hapa.core.errors import NotFoundError
from hapa.db.session import get_db
from hapa.policies.rbac import (
    ACTION_DELETE_SUBMISSIONS,
    ACTION_READ_SUBMISSIONS,
    ACTION_UPDATE_SUBMISSIONS,
    Principal,
)
from hapa.schemas.submissions import BulkUpdateRequest, SubmissionUpdates, UpdateSubmissionRequest
from hapa.services.stats_service import get_submission_stats, invalidate_stats_cache
from hapa.services.storage import StorageBackend, get_storage
from hapa.services.submissions_service import (
    SubmissionsService,
    localized_labels,
    serialize_submission,
)

router = APIRouter(prefix="/admin")
logger = logging.getLogger(__name__)


@router.get("/media-submissions-stats")
def submissions_stats(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_action(ACTION_READ_SUBMISSIONS)),
):
    return get_submission_stats(db, get_settings().stats_cache_seconds)


@router.patch("/update-submission")
def update_submission(
    req: UpdateSubmissionRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_action(ACTION_UPDATE_SUBMISSIONS)),
):
    try:
        sub = SubmissionsService().update(db, req.submissionId, req.updates.changes(), principal)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Submission not found")

    invalidate_stats_cache()
    return {"success": True, "submission": serialize_submission(sub)}


@router.post("/update-submission")
def bulk_update_submissions(
    req: BulkUpdateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_action(ACTION_UPDATE_SUBMISSIONS)),
):
    result = SubmissionsService().bulk_update(db, req.submissionIds, req.updates.changes(), principal)
    invalidate_stats_cache()
    return {"success": True, **result}


@router.delete("/update-submission")
def bulk_delete_submissions(
    ids: str = Query(""),
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    principal: Principal = Depends(require_action(ACTION_DELETE_SUBMISSIONS)),
):
    submission_ids = [i.strip() for i in ids.split(",") if i.strip()]
    if not submission_ids:
        raise HTTPException(status_code=400, detail="No submission IDs provided")

    result = SubmissionsService().bulk_delete(db, submission_ids, storage)
    invalidate_stats_cache()
    return {"success": True, "deleted": result["deleted"], "failed": result["failed"]}


@router.get("/media-submissions/{submission_id}")
def get_submission(
    submission_id: str,
    locale: str = Query("fr"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_action(ACTION_READ_SUBMISSIONS)),
):
    try:
        sub = SubmissionsService().get(db, submission_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Submission not found")

    locale = locale if locale in ("fr", "ar") else "fr"
    return {
        "success": True,
        "submission": serialize_submission(sub),
        "labels": localized_labels(sub, locale),
    }


@router.patch("/media-submissions/{submission_id}")
def patch_submission(
    submission_id: str,
    updates: SubmissionUpdates,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_action(ACTION_UPDATE_SUBMISSIONS)),
):
    try:
        sub = SubmissionsService().update(db, submission_id, updates.changes(), principal)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Submission not found")

    invalidate_stats_cache()
    return {"success": True, "submission": serialize_submission(sub)}


@router.delete("/media-submissions/{submission_id}")
def delete_submission(
    submission_id: str,
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    principal: Principal = Depends(require_action(ACTION_DELETE_SUBMISSIONS)),
):
    try:
        report = SubmissionsService().delete(db, submission_id, storage)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Submission not found")

    invalidate_stats_cache()
    return {
        "success": True,
        "cleanup": {
            "storageDeleted": report.storage_deleted,
            "storageFailed": report.storage_failed,
            "recordsDeleted": report.records_deleted,
            "recordsFailed": report.records_failed,
        },
    }
