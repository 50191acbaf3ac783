from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from hapa.core.errors import StorageError
from hapa.core.upload_metrics import upload_metrics
from hapa.db.base import utcnow
from hapa.models.enums import UploadStatus
from hapa.models.form_media import FormMedia
from hapa.services.file_validation import ValidatedFile, form_upload_filename
from hapa.services.storage import StorageBackend, form_media_key

logger = logging.getLogger(__name__)

ORPHAN_AGE_HOURS = 24
ORPHAN_BATCH_SIZE = 100
STAGING_EXPIRY_HOURS = 24


class FormMediaService:
    def get(self, db: Session, media_id: uuid.UUID) -> FormMedia | None:
        return db.get(FormMedia, media_id)

    def create_staging(
        self,
        db: Session,
        storage: StorageBackend,
        upload: ValidatedFile,
        *,
        file_type: str,
        form_type: Optional[str] = None,
        submission_id: Optional[str] = None,
        index: int = 0,
    ) -> FormMedia:
        """
        Stores the object, then records a `staging` FormMedia row that expires
        after STAGING_EXPIRY_HOURS unless confirmed.
        """
        filename = form_upload_filename(upload.filename, file_type, index)
        key = form_media_key(filename)

        with upload_metrics.track_upload(filename, upload.size):
            url = storage.put(key, upload.data, upload.mime_type)

        now = utcnow()
        row = FormMedia(
            filename=filename,
            mime_type=upload.mime_type,
            filesize=upload.size,
            prefix=key.rsplit("/", 1)[0],
            url=url,
            alt=upload.filename,
            form_type=form_type,
            file_type=file_type,
            submission_id=submission_id,
            upload_status=UploadStatus.staging.value,
            expires_at=now + timedelta(hours=STAGING_EXPIRY_HOURS),
            submission_date=now,
        )
        db.add(row)
        db.commit()
        db.refresh(row)

        logger.info(
            "[form-media] staged %s",
            filename,
            extra={"form_media_id": str(row.id), "file_size": upload.size, "file_type": file_type},
        )
        return row

    def confirm(self, db: Session, rows: List[FormMedia], *, submission_id: str, form_type: str) -> int:
        """Links staged rows to a submission and clears their expiry. Returns how many were confirmed."""
        confirmed = 0
        for row in rows:
            try:
                row.submission_id = submission_id
                row.form_type = form_type
                row.upload_status = UploadStatus.confirmed.value
                row.expires_at = None
                db.commit()
                confirmed += 1
            except Exception as e:
                db.rollback()
                logger.warning(
                    "[form-media] confirm failed for %s: %s",
                    row.id,
                    e,
                    extra={"submission_id": submission_id},
                )
        return confirmed

    def delete(
        self,
        db: Session,
        row: FormMedia,
        storage: StorageBackend,
        *,
        skip_storage_cleanup: bool = False,
    ) -> None:
        """
        Deletes one FormMedia row. Its storage object goes first unless
        `skip_storage_cleanup` is set (the caller already removed it in bulk).
        A storage failure is logged and the row is still deleted.
        """
        if not skip_storage_cleanup:
            key = form_media_key(row.filename)
            try:
                storage.delete(key)
                logger.info("[form-media] deleted object %s", key)
            except StorageError as e:
                logger.error(
                    "[form-media] storage delete failed for %s: %s",
                    key,
                    e,
                    extra={"form_media_id": str(row.id)},
                )

        db.delete(row)
        db.commit()

    def cleanup_orphaned(self, db: Session, storage: StorageBackend) -> Dict[str, Any]:
        """
        Deletes FormMedia rows that never got attached to a submission:
          - staging and created more than ORPHAN_AGE_HOURS ago
          - staging and past expires_at
          - explicitly orphaned
        A row that cannot be deleted is re-marked `orphaned` for the next run.
        """
        now = utcnow()
        cutoff = now - timedelta(hours=ORPHAN_AGE_HOURS)
        stats: Dict[str, Any] = {"processed": 0, "deleted": 0, "failed": 0, "errors": []}

        criteria = or_(
            and_(
                FormMedia.upload_status == UploadStatus.staging.value,
                FormMedia.created_at < cutoff,
            ),
            FormMedia.upload_status == UploadStatus.orphaned.value,
            and_(
                FormMedia.upload_status == UploadStatus.staging.value,
                FormMedia.expires_at.is_not(None),
                FormMedia.expires_at < now,
            ),
        )

        logger.info("[form-media] orphan cleanup started")
        batch_no = 0
        while True:
            # failed rows stay in the result set; skip past them
            batch = list(
                db.execute(
                    select(FormMedia)
                    .where(criteria)
                    .order_by(FormMedia.created_at, FormMedia.id)
                    .offset(stats["failed"])
                    .limit(ORPHAN_BATCH_SIZE)
                ).scalars()
            )
            if not batch:
                break

            batch_no += 1
            logger.info("[form-media] orphan batch %d with %d rows", batch_no, len(batch))

            for row in batch:
                stats["processed"] += 1
                row_id, filename = row.id, row.filename
                try:
                    self.delete(db, row, storage)
                    stats["deleted"] += 1
                except Exception as e:
                    db.rollback()
                    stats["failed"] += 1
                    stats["errors"].append(f"Failed to delete file {row_id}: {e}")
                    logger.error("[form-media] orphan delete failed for %s (%s): %s", row_id, filename, e)
                    self._mark_orphaned(db, row_id)

        log = logger.warning if stats["failed"] else logger.info
        log(
            "[form-media] orphan cleanup finished processed=%d deleted=%d failed=%d",
            stats["processed"],
            stats["deleted"],
            stats["failed"],
        )
        return stats

    def _mark_orphaned(self, db: Session, row_id: uuid.UUID) -> None:
        try:
            row = db.get(FormMedia, row_id)
            if row is not None:
                row.upload_status = UploadStatus.orphaned.value
                db.commit()
        except Exception as e:
            db.rollback()
            logger.error("[form-media] could not mark %s orphaned: %s", row_id, e)
