from __future__ import annotations

import logging
import time
import uuid
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from hapa.core.errors import NotFoundError, StorageError
from hapa.core.upload_metrics import upload_metrics
from hapa.models.media import Media
from hapa.services.file_validation import ValidatedFile, sanitize_filename
from hapa.services.storage import StorageBackend

logger = logging.getLogger(__name__)

MEDIA_PREFIX = "media"


class MediaService:
    """Site media library (hero images, meta images, inline uploads)."""

    def create(self, db: Session, storage: StorageBackend, upload: ValidatedFile) -> Media:
        filename = f"{int(time.time() * 1000)}_{sanitize_filename(upload.filename)}"
        key = f"{MEDIA_PREFIX}/{filename}"

        with upload_metrics.track_upload(filename, upload.size):
            url = storage.put(key, upload.data, upload.mime_type)

        row = Media(
            filename=filename,
            mime_type=upload.mime_type,
            filesize=upload.size,
            prefix=MEDIA_PREFIX,
            url=url,
            alt={"fr": upload.filename},
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info("[media] uploaded %s", filename, extra={"media_id": str(row.id), "file_size": upload.size})
        return row

    def get(self, db: Session, media_id: uuid.UUID) -> Media:
        row = db.get(Media, media_id)
        if row is None:
            raise NotFoundError(f"Media {media_id} not found")
        return row

    def list(self, db: Session, limit: int = 50) -> List[Media]:
        return list(db.execute(select(Media).order_by(Media.created_at.desc()).limit(limit)).scalars())

    def delete(self, db: Session, media_id: uuid.UUID, storage: StorageBackend) -> None:
        row = self.get(db, media_id)
        key = f"{row.prefix}/{row.filename}"
        try:
            storage.delete(key)
        except StorageError as e:
            logger.error("[media] storage delete failed for %s: %s", key, e)
        db.delete(row)
        db.commit()
