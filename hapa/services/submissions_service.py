from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from hapa.core.errors import NotFoundError
from hapa.core.translations import (
    FORM_TYPES,
    PRIORITIES,
    SUBMISSION_STATUSES,
    URGENT_REASONS,
    attachment_type_label,
    label,
    media_type_label,
    reason_label,
    relationship_label,
)
from hapa.db.base import as_aware, utcnow
from hapa.models.enums import Priority, SubmissionStatus
from hapa.models.media_content_submission import MediaContentSubmission
from hapa.policies.rbac import Principal
from hapa.schemas.forms import MediaFormSubmission
from hapa.services.media_cleanup import CleanupReport, cleanup_form_media_for_submission
from hapa.services.storage import StorageBackend

logger = logging.getLogger(__name__)

CLOSED_STATUSES = {SubmissionStatus.resolved.value, SubmissionStatus.dismissed.value}

# dashboard camelCase keys -> model columns
UPDATE_FIELDS = {
    "submissionStatus": "submission_status",
    "priority": "priority",
    "internalNotes": "internal_notes",
    "moderatorNotes": "moderator_notes",
    "adminNotes": "admin_notes",
}


def build_title(
    form_type: str,
    program_name: Optional[str],
    media_type: Optional[str],
    submitted_at: Optional[datetime],
    media_type_other: Optional[str] = None,
) -> str:
    """e.g. "Signalement [Télévision] - Journal de 20h (05/03/2025)" """
    form_label = "Signalement" if form_type == "report" else "Plainte"
    program = program_name or "Sans titre"
    media = media_type_label(media_type, "fr", media_type_other) if media_type else ""
    media_part = f" [{media}]" if media else ""
    when = submitted_at or utcnow()
    return f"{form_label}{media_part} - {program} ({when.strftime('%d/%m/%Y')})"


def initial_priority(reasons: List[Dict[str, Any]]) -> str:
    keys = {r.get("reason") for r in reasons or [] if isinstance(r, dict)}
    return Priority.high.value if keys & URGENT_REASONS else Priority.medium.value


def apply_status_change(
    sub: MediaContentSubmission,
    new_status: str,
    principal: Optional[Principal],
) -> None:
    """
    Runs when staff change the status: stamps the reviewer, and fills the
    resolution block when the submission is closed.
    """
    if new_status == sub.submission_status:
        return

    now = utcnow()
    sub.submission_status = new_status
    sub.reviewed_at = now
    if principal is not None:
        try:
            sub.reviewed_by_id = uuid.UUID(principal.user_id)
        except ValueError:
            sub.reviewed_by_id = None

    if new_status in CLOSED_STATUSES:
        resolution = dict(sub.resolution or {})
        if not resolution.get("resolvedAt"):
            resolution["resolvedAt"] = now.isoformat()
        if not resolution.get("resolvedBy"):
            resolution["resolvedBy"] = principal.email if principal and principal.email else "System"
        sub.resolution = resolution


def _parse_id(submission_id: Any) -> uuid.UUID:
    if isinstance(submission_id, uuid.UUID):
        return submission_id
    try:
        return uuid.UUID(str(submission_id).strip())
    except ValueError:
        raise NotFoundError(f"Submission {submission_id} not found")


def serialize_submission(sub: MediaContentSubmission) -> Dict[str, Any]:
    return {
        "id": str(sub.id),
        "title": sub.title,
        "formType": sub.form_type,
        "submissionStatus": sub.submission_status,
        "priority": sub.priority,
        "submittedAt": as_aware(sub.submitted_at).isoformat() if sub.submitted_at else None,
        "locale": sub.locale,
        "contentInfo": sub.content_info or {},
        "complainantInfo": sub.complainant_info,
        "description": sub.description,
        "reasons": sub.reasons or [],
        "reasonOther": sub.reason_other,
        "attachmentTypes": sub.attachment_types or [],
        "attachmentOther": sub.attachment_other,
        "attachmentFiles": sub.attachment_files or [],
        "adminNotes": sub.admin_notes,
        "internalNotes": sub.internal_notes,
        "moderatorNotes": sub.moderator_notes,
        "reviewedBy": str(sub.reviewed_by_id) if sub.reviewed_by_id else None,
        "reviewedAt": as_aware(sub.reviewed_at).isoformat() if sub.reviewed_at else None,
        "resolution": sub.resolution,
    }


def localized_labels(sub: MediaContentSubmission, locale: str) -> Dict[str, Any]:
    """Display labels for the back-office detail view."""
    content = sub.content_info or {}
    complainant = sub.complainant_info or {}
    return {
        "formType": label(FORM_TYPES, sub.form_type, locale),
        "submissionStatus": label(SUBMISSION_STATUSES, sub.submission_status, locale),
        "priority": label(PRIORITIES, sub.priority, locale),
        "mediaType": media_type_label(content.get("mediaType"), locale, content.get("mediaTypeOther")),
        "reasons": [reason_label(r.get("reason"), locale) for r in sub.reasons or []],
        "attachmentTypes": [attachment_type_label(a.get("type"), locale) for a in sub.attachment_types or []],
        "relationshipToContent": relationship_label(
            complainant.get("relationshipToContent"), locale, complainant.get("relationshipOther")
        ),
    }


class SubmissionsService:
    def get(self, db: Session, submission_id: Any) -> MediaContentSubmission:
        sub = db.get(MediaContentSubmission, _parse_id(submission_id))
        if sub is None:
            raise NotFoundError(f"Submission {submission_id} not found")
        return sub

    def create(self, db: Session, payload: MediaFormSubmission) -> MediaContentSubmission:
        submitted_at = payload.submittedAt or utcnow()

        complainant = None
        if payload.formType == "complaint":
            complainant = {
                "fullName": payload.fullName,
                "gender": payload.gender or "",
                "country": payload.country or "",
                "emailAddress": str(payload.emailAddress) if payload.emailAddress else "",
                "phoneNumber": payload.phoneNumber,
                "whatsappNumber": payload.whatsappNumber or "",
                "profession": payload.profession or "",
                "relationshipToContent": payload.relationshipToContent or "",
                "relationshipOther": payload.relationshipOther or "",
            }

        content_info = {
            "mediaType": payload.mediaType,
            "mediaTypeOther": payload.mediaTypeOther or "",
            "specificChannel": payload.specificChannel or "",
            "programName": payload.programName,
            "broadcastDateTime": payload.broadcastDateTime,
            "linkScreenshot": payload.linkScreenshot or "",
            "screenshotFiles": [],
        }
        reasons = [{"reason": r} for r in payload.reasons]

        sub = MediaContentSubmission(
            title=build_title(
                payload.formType,
                payload.programName,
                payload.mediaType,
                submitted_at,
                payload.mediaTypeOther,
            ),
            form_type=payload.formType,
            submitted_at=submitted_at,
            locale=payload.locale,
            submission_status=SubmissionStatus.pending.value,
            priority=initial_priority(reasons),
            complainant_info=complainant,
            content_info=content_info,
            reasons=reasons,
            reason_other=payload.reasonOther or "",
            description=payload.description,
            attachment_types=[{"type": t} for t in payload.attachmentTypes],
            attachment_other=payload.attachmentOther or "",
            attachment_files=[],
        )
        db.add(sub)
        db.commit()
        db.refresh(sub)

        logger.info(
            "[submissions] created %s %s",
            sub.form_type,
            sub.id,
            extra={"submission_id": str(sub.id), "priority": sub.priority, "locale": sub.locale},
        )
        return sub

    def attach_files(
        self,
        db: Session,
        sub: MediaContentSubmission,
        *,
        screenshot_urls: List[str],
        attachment_urls: List[str],
    ) -> None:
        content_info = dict(sub.content_info or {})
        content_info["screenshotFiles"] = list(content_info.get("screenshotFiles") or []) + [
            {"url": u} for u in screenshot_urls
        ]
        sub.content_info = content_info
        sub.attachment_files = list(sub.attachment_files or []) + [{"url": u} for u in attachment_urls]
        db.commit()

    def update(
        self,
        db: Session,
        submission_id: Any,
        changes: Dict[str, Any],
        principal: Optional[Principal] = None,
    ) -> MediaContentSubmission:
        sub = self.get(db, submission_id)

        status = changes.get("submissionStatus")
        for key, column in UPDATE_FIELDS.items():
            if key == "submissionStatus" or key not in changes:
                continue
            setattr(sub, column, changes[key])

        if "resolution" in changes and changes["resolution"] is not None:
            merged = dict(sub.resolution or {})
            merged.update({k: v for k, v in changes["resolution"].items() if v is not None})
            sub.resolution = merged

        if status:
            apply_status_change(sub, status, principal)

        db.commit()
        db.refresh(sub)

        logger.info(
            "[submissions] updated %s",
            sub.id,
            extra={
                "submission_id": str(sub.id),
                "updated_fields": sorted(changes.keys()),
                "user_id": principal.user_id if principal else None,
            },
        )
        return sub

    def delete(self, db: Session, submission_id: Any, storage: StorageBackend) -> CleanupReport:
        """Cascade-cleans the submission's form media, then deletes the row."""
        sub = self.get(db, submission_id)
        sid = str(sub.id)

        report = cleanup_form_media_for_submission(db, sid, storage)

        sub = db.get(MediaContentSubmission, uuid.UUID(sid))
        if sub is not None:
            db.delete(sub)
            db.commit()

        logger.info("[submissions] deleted %s", sid, extra={"submission_id": sid})
        return report

    def bulk_update(
        self,
        db: Session,
        submission_ids: List[str],
        changes: Dict[str, Any],
        principal: Optional[Principal] = None,
    ) -> Dict[str, Any]:
        updated: List[Dict[str, Any]] = []
        for sid in submission_ids:
            try:
                updated.append(serialize_submission(self.update(db, sid, changes, principal)))
            except Exception as e:
                db.rollback()
                logger.warning("[submissions] bulk update failed for %s: %s", sid, e)

        failed = len(submission_ids) - len(updated)
        logger.info(
            "[submissions] bulk update %d ok, %d failed",
            len(updated),
            failed,
            extra={"updated_fields": sorted(changes.keys())},
        )
        return {"updated": len(updated), "failed": failed, "results": updated}

    def bulk_delete(self, db: Session, submission_ids: List[str], storage: StorageBackend) -> Dict[str, Any]:
        deleted: List[str] = []
        for sid in submission_ids:
            try:
                self.delete(db, sid, storage)
                deleted.append(sid)
            except Exception as e:
                db.rollback()
                logger.warning("[submissions] bulk delete failed for %s: %s", sid, e)

        failed = len(submission_ids) - len(deleted)
        logger.info("[submissions] bulk delete %d ok, %d failed", len(deleted), failed)
        return {"deleted": len(deleted), "failed": failed, "deletedIds": deleted}

    def recent(self, db: Session, limit: int = 100) -> List[MediaContentSubmission]:
        return list(
            db.execute(
                select(MediaContentSubmission)
                .order_by(MediaContentSubmission.submitted_at.desc())
                .limit(limit)
            ).scalars()
        )
