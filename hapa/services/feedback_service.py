from __future__ import annotations

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from hapa.models.enums import FeedbackStatus
from hapa.models.feedback import Feedback
from hapa.schemas.contact import FeedbackIn

logger = logging.getLogger(__name__)


class FeedbackService:
    def create(self, db: Session, payload: FeedbackIn) -> Feedback:
        row = Feedback(
            name=payload.name,
            email=str(payload.email) if payload.email else None,
            subject=payload.subject,
            message=payload.message,
            status=FeedbackStatus.new.value,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        # message body stays out of the logs
        logger.info("[feedback] received %s", row.id)
        return row

    def recent(self, db: Session, limit: int = 50) -> List[Feedback]:
        return list(
            db.execute(select(Feedback).order_by(Feedback.created_at.desc()).limit(limit)).scalars()
        )
