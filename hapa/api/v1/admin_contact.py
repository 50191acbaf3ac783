#hapa/api/v1/admin_contact.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from hapa.api.v1.contact import get_contact_service
from hapa.core.auth_deps import require_action
from hapa.core.errors import EmailDeliveryError, NotFoundError
from hapa.db.base import as_aware
from hapa.db.session import get_db
from hapa.policies.rbac import ACTION_MANAGE_CONTACT, Principal
from hapa.schemas.contact import ContactReply, ContactStatusUpdate
from hapa.services.contact_service import REPLY_MESSAGES, ContactService, serialize_contact
from hapa.services.feedback_service import FeedbackService
from hapa.services.stats_service import compute_contact_stats

router = APIRouter(prefix="/admin")


@router.get("/contact-submissions-stats")
def contact_stats(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_action(ACTION_MANAGE_CONTACT)),
):
    return compute_contact_stats(db)


@router.get("/contact-submissions/{contact_id}")
def get_contact(
    contact_id: uuid.UUID,
    db: Session = Depends(get_db),
    svc: ContactService = Depends(get_contact_service),
    principal: Principal = Depends(require_action(ACTION_MANAGE_CONTACT)),
):
    try:
        row = svc.get(db, contact_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Soumission introuvable")
    return {"success": True, "submission": serialize_contact(row)}


@router.patch("/contact-submissions/{contact_id}")
def update_contact_status(
    contact_id: uuid.UUID,
    req: ContactStatusUpdate,
    db: Session = Depends(get_db),
    svc: ContactService = Depends(get_contact_service),
    principal: Principal = Depends(require_action(ACTION_MANAGE_CONTACT)),
):
    try:
        row = svc.update_status(db, contact_id, req.status, req.adminNotes)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Soumission introuvable")
    return {"success": True, "submission": serialize_contact(row)}


@router.post("/contact-submissions/{contact_id}/reply")
def reply_to_contact(
    contact_id: uuid.UUID,
    req: ContactReply,
    db: Session = Depends(get_db),
    svc: ContactService = Depends(get_contact_service),
    principal: Principal = Depends(require_action(ACTION_MANAGE_CONTACT)),
):
    try:
        row = svc.reply(db, contact_id, req.message)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Soumission introuvable")
    except EmailDeliveryError:
        raise HTTPException(status_code=502, detail="Erreur lors de l'envoi de la réponse")

    return {
        "success": True,
        "message": REPLY_MESSAGES.get(row.locale, REPLY_MESSAGES["fr"]),
        "submission": serialize_contact(row),
    }


@router.get("/feedback")
def list_feedback(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_action(ACTION_MANAGE_CONTACT)),
):
    rows = FeedbackService().recent(db, limit=limit)
    return {
        "success": True,
        "feedback": [
            {
                "id": str(r.id),
                "name": r.name,
                "email": r.email,
                "subject": r.subject,
                "message": r.message,
                "status": r.status,
                "createdAt": as_aware(r.created_at).isoformat() if r.created_at else None,
            }
            for r in rows
        ],
    }
