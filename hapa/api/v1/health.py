import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hapa.db.session import get_db

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health(request: Request, db: Session = Depends(get_db)):
    rid = getattr(request.state, "request_id", None)
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("[health] database unreachable", extra={"request_id": rid})
        return JSONResponse(
            status_code=503,
            content={"status": "degraded", "database": "unreachable", "request_id": rid},
        )
    return {"status": "ok", "database": "ok", "request_id": rid}
