"""
Cascade cleanup of form evidence when a media-content submission is deleted.

Files can be linked to a submission two ways:
  - FormMedia.submission_id (everything uploaded through submit-with-files)
  - a `url` inside content_info.screenshotFiles / attachment_files (older data)

Both sources are merged, the objects are removed from storage in bulk and the
FormMedia rows are deleted one by one. Nothing here raises: the submission
delete must always go through.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Set

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from hapa.models.form_media import FormMedia
from hapa.models.media_content_submission import MediaContentSubmission
from hapa.services.form_media_service import FormMediaService
from hapa.services.storage import StorageBackend, filename_from_url, form_media_key

logger = logging.getLogger(__name__)

MAX_RELATED_ROWS = 1000


@dataclass
class CleanupReport:
    submission_id: str
    filenames: List[str] = field(default_factory=list)
    storage_deleted: int = 0
    storage_failed: int = 0
    storage_errors: List[str] = field(default_factory=list)
    records_deleted: int = 0
    records_failed: int = 0
    record_errors: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.storage_failed or self.records_failed)


def extract_file_urls(submission: MediaContentSubmission) -> List[str]:
    urls: List[str] = []

    content_info = submission.content_info or {}
    for item in content_info.get("screenshotFiles") or []:
        if isinstance(item, dict) and isinstance(item.get("url"), str):
            urls.append(item["url"])

    for item in submission.attachment_files or []:
        if isinstance(item, dict) and isinstance(item.get("url"), str):
            urls.append(item["url"])

    return urls


def _filenames_from_urls(urls: Iterable[str]) -> Set[str]:
    names = set()
    for url in urls:
        name = filename_from_url(url)
        if name:
            names.add(name)
    return names


def _as_uuid(value: Any) -> uuid.UUID | None:
    try:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except ValueError:
        return None


def cleanup_form_media_for_submission(
    db: Session,
    submission_id: Any,
    storage: StorageBackend,
) -> CleanupReport:
    sid = str(submission_id)
    report = CleanupReport(submission_id=sid)

    try:
        rows: List[FormMedia] = list(
            db.execute(
                select(FormMedia).where(FormMedia.submission_id == sid).limit(MAX_RELATED_ROWS)
            ).scalars()
        )

        url_filenames: Set[str] = set()
        try:
            sub_uuid = _as_uuid(submission_id)
            submission = db.get(MediaContentSubmission, sub_uuid) if sub_uuid else None
            if submission is not None:
                url_filenames = _filenames_from_urls(extract_file_urls(submission))
        except Exception as e:
            logger.warning("[media-cleanup] could not read submission %s for URLs: %s", sid, e)

        # legacy rows only reachable through a URL
        if url_filenames:
            known = {r.id for r in rows}
            legacy = db.execute(
                select(FormMedia).where(
                    FormMedia.filename.in_(url_filenames),
                    or_(FormMedia.submission_id.is_(None), FormMedia.submission_id != sid),
                )
            ).scalars()
            rows.extend(r for r in legacy if r.id not in known)

        filenames = {r.filename for r in rows if r.filename} | url_filenames
        report.filenames = sorted(filenames)

        logger.info(
            "[media-cleanup] submission %s: %d rows, %d files",
            sid,
            len(rows),
            len(filenames),
            extra={"submission_id": sid, "url_files": len(url_filenames)},
        )

        if not filenames:
            return report

        try:
            bulk = storage.delete_many(form_media_key(name) for name in report.filenames)
            report.storage_deleted = bulk.deleted
            report.storage_failed = bulk.failed
            report.storage_errors = list(bulk.errors)
        except Exception as e:
            report.storage_failed = len(filenames)
            report.storage_errors.append(str(e))
            logger.error("[media-cleanup] bulk storage delete failed for %s: %s", sid, e)

        svc = FormMediaService()
        for row in rows:
            row_id = row.id
            try:
                svc.delete(db, row, storage, skip_storage_cleanup=True)
                report.records_deleted += 1
            except Exception as e:
                db.rollback()
                report.records_failed += 1
                report.record_errors.append(f"{row_id}: {e}")
                logger.error("[media-cleanup] failed to delete FormMedia %s: %s", row_id, e)

    except Exception as e:
        logger.error("[media-cleanup] cleanup aborted for submission %s: %s", sid, e)
        return report

    log = logger.warning if report.has_errors else logger.info
    log(
        "[media-cleanup] submission %s done: storage deleted=%d failed=%d, records deleted=%d failed=%d",
        sid,
        report.storage_deleted,
        report.storage_failed,
        report.records_deleted,
        report.records_failed,
        extra={"storage_errors": report.storage_errors, "record_errors": report.record_errors},
    )
    return report
