from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from hapa.core.config import get_settings
from hapa.core.errors import EmailDeliveryError, NotFoundError
from hapa.db.base import as_aware, utcnow
from hapa.models.contact_submission import ContactSubmission
from hapa.models.enums import ContactStatus
from hapa.schemas.contact import ContactSubmit
from hapa.services.email_service import (
    EmailService,
    notification_subject,
    render_email,
    reply_subject,
)

logger = logging.getLogger(__name__)

SUBMIT_MESSAGES = {
    "fr": "Votre message a été envoyé avec succès. Nous vous contacterons bientôt.",
    "ar": "تم إرسال رسالتك بنجاح. سنتواصل معك قريباً.",
}
REPLY_MESSAGES = {
    "fr": "Réponse envoyée avec succès",
    "ar": "تم إرسال الرد بنجاح",
}


def serialize_contact(row: ContactSubmission) -> Dict[str, Any]:
    return {
        "id": str(row.id),
        "name": row.name,
        "email": row.email,
        "phone": row.phone,
        "subject": row.subject,
        "message": row.message,
        "locale": row.locale,
        "preferredLanguage": row.preferred_language,
        "status": row.status,
        "adminNotes": row.admin_notes,
        "replyMessage": row.reply_message,
        "emailSent": row.email_sent,
        "emailSentAt": as_aware(row.email_sent_at).isoformat() if row.email_sent_at else None,
        "createdAt": as_aware(row.created_at).isoformat() if row.created_at else None,
    }


class ContactService:
    def __init__(self, email: Optional[EmailService] = None):
        self.email = email or EmailService()

    def get(self, db: Session, contact_id: uuid.UUID) -> ContactSubmission:
        row = db.get(ContactSubmission, contact_id)
        if row is None:
            raise NotFoundError(f"Contact submission {contact_id} not found")
        return row

    def create(self, db: Session, payload: ContactSubmit) -> ContactSubmission:
        now = utcnow()
        row = ContactSubmission(
            name=payload.name,
            email=str(payload.email),
            phone=payload.phone or "",
            subject=payload.subject,
            message=payload.message,
            locale=payload.locale,
            preferred_language=payload.preferredLanguage or payload.locale,
            status=ContactStatus.pending.value,
            submitted_at=now,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info("[contact] received %s", row.id, extra={"contact_id": str(row.id), "locale": row.locale})

        self.notify_admin(row)
        return row

    def notify_admin(self, row: ContactSubmission) -> bool:
        """Best effort: a delivery failure is logged and never fails the submission."""
        html = render_email(
            "contact_notification.html",
            name=row.name,
            email=row.email,
            phone=row.phone,
            subject=row.subject,
            message=row.message,
            locale=row.locale,
            submitted_at=as_aware(row.submitted_at or utcnow()).strftime("%d/%m/%Y %H:%M"),
        )
        try:
            self.email.send(
                to=get_settings().admin_notification_email,
                subject=notification_subject(row.subject, row.locale),
                html=html,
            )
        except EmailDeliveryError as e:
            logger.error("[contact] notification email failed: %s", e, extra={"contact_id": str(row.id)})
            return False
        return True

    def reply(self, db: Session, contact_id: uuid.UUID, message: str) -> ContactSubmission:
        """Emails `message` to the submitter, then records the reply. Raises EmailDeliveryError."""
        row = self.get(db, contact_id)

        html = render_email(
            "contact_reply.html",
            user_name=row.name,
            original_subject=row.subject,
            original_message=row.message or "",
            reply_message=message,
            locale=row.locale or "fr",
        )
        self.email.send(to=row.email, subject=reply_subject(row.subject, row.locale), html=html)

        row.reply_message = message
        row.email_sent = True
        row.email_sent_at = utcnow()
        db.commit()
        db.refresh(row)

        logger.info("[contact] reply sent for %s", row.id, extra={"contact_id": str(row.id)})
        return row

    def update_status(
        self,
        db: Session,
        contact_id: uuid.UUID,
        status: str,
        admin_notes: Optional[str] = None,
    ) -> ContactSubmission:
        row = self.get(db, contact_id)
        row.status = status
        if admin_notes is not None:
            row.admin_notes = admin_notes
        db.commit()
        db.refresh(row)
        return row
