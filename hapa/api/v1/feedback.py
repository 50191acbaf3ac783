from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hapa.db.session import get_db
from hapa.schemas.contact import FeedbackIn
from hapa.services.feedback_service import FeedbackService

router = APIRouter(prefix="/feedback")


@router.post("", status_code=201)
def submit_feedback(payload: FeedbackIn, db: Session = Depends(get_db)):
    row = FeedbackService().create(db, payload)
    # only the id goes back; the message is not echoed
    return {"success": True, "id": str(row.id)}
