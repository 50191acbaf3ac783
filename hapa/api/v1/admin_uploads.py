#hapa/api/v1/admin_uploads.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from hapa.core.auth_deps import get_current_principal, require_action
from hapa.core.config import get_settings
from hapa.core.errors import NotFoundError
from hapa.core.upload_metrics import build_insights, upload_metrics
from hapa.db.session import get_db
from hapa.policies.rbac import ACTION_MANAGE_MEDIA, ACTION_RUN_MAINTENANCE, Principal
from hapa.services.form_media_service import FormMediaService
from hapa.services.media_service import MediaService
from hapa.services.storage import StorageBackend, get_storage

router = APIRouter(prefix="/admin")
logger = logging.getLogger(__name__)

RECENT_EVENTS = 50


@router.get("/upload-metrics")
def get_upload_metrics(principal: Principal = Depends(get_current_principal)):
    metrics = upload_metrics.get_metrics()
    exported = upload_metrics.export()

    logger.info(
        "[upload-metrics] accessed by %s",
        principal.email,
        extra={"session_id": exported["sessionId"], "total_attempts": metrics["totalAttempts"]},
    )
    return {
        "success": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "sessionId": exported["sessionId"],
        "metrics": metrics,
        "insights": build_insights(metrics),
        "recentEvents": exported["events"][-RECENT_EVENTS:],
    }


@router.delete("/upload-metrics")
def reset_upload_metrics(principal: Principal = Depends(get_current_principal)):
    if get_settings().environment != "dev":
        raise HTTPException(status_code=403, detail="Reset only allowed in development")

    upload_metrics.reset()
    logger.info("[upload-metrics] reset by %s", principal.email)
    return {"success": True, "message": "Upload metrics reset successfully"}


@router.post("/media-cleanup")
def run_media_cleanup(
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    principal: Principal = Depends(require_action(ACTION_RUN_MAINTENANCE)),
):
    stats = FormMediaService().cleanup_orphaned(db, storage)
    return {"success": True, **stats}


@router.delete("/form-media/{media_id}")
def delete_form_media(
    media_id: uuid.UUID,
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    principal: Principal = Depends(require_action(ACTION_MANAGE_MEDIA)),
):
    svc = FormMediaService()
    row = svc.get(db, media_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Form media not found")

    svc.delete(db, row, storage)
    return {"success": True, "id": str(media_id)}


# ─────────── site media library ───────────

@router.get("/media")
def list_media(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_action(ACTION_MANAGE_MEDIA)),
):
    rows = MediaService().list(db, limit=limit)
    return {
        "success": True,
        "media": [
            {
                "id": str(r.id),
                "filename": r.filename,
                "url": r.url,
                "mimeType": r.mime_type,
                "filesize": r.filesize,
                "alt": r.alt,
            }
            for r in rows
        ],
    }


@router.delete("/media/{media_id}")
def delete_media(
    media_id: uuid.UUID,
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    principal: Principal = Depends(require_action(ACTION_MANAGE_MEDIA)),
):
    try:
        MediaService().delete(db, media_id, storage)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Media not found")
    return {"success": True, "id": str(media_id)}
