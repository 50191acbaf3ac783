#hapa/api/v1/contact.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hapa.db.session import get_db
from hapa.schemas.contact import ContactSubmit
from hapa.services.contact_service import SUBMIT_MESSAGES, ContactService

router = APIRouter(prefix="/contact")


def get_contact_service() -> ContactService:
    return ContactService()


@router.post("/submit", status_code=201)
def submit_contact(
    payload: ContactSubmit,
    db: Session = Depends(get_db),
    svc: ContactService = Depends(get_contact_service),
):
    row = svc.create(db, payload)
    return {
        "success": True,
        "message": SUBMIT_MESSAGES.get(row.locale, SUBMIT_MESSAGES["fr"]),
        "submissionId": str(row.id),
    }
