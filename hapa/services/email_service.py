from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import requests
from jinja2 import Environment, FileSystemLoader, select_autoescape

from hapa.core.config import Settings, get_settings
from hapa.core.errors import EmailDeliveryError

logger = logging.getLogger(__name__)

RESEND_ENDPOINT = "https://api.resend.com/emails"
REQUEST_TIMEOUT = 10

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates" / "emails"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)

# name / address block shown in every email footer
CONTACT_INFO = {
    "fr": {
        "organization": "HAPA",
        "organizationFull": "Haute Autorité de la Presse et de l'Audiovisuel",
        "address": "Nouakchott, Mauritanie",
    },
    "ar": {
        "organization": "الهابا",
        "organizationFull": "الهيئة العليا للصحافة والإعلام السمعي البصري",
        "address": "نواكشوط، موريتانيا",
    },
}


def render_email(template: str, **context: Any) -> str:
    locale = context.get("locale") or "fr"
    context.setdefault("contact", CONTACT_INFO.get(locale, CONTACT_INFO["fr"]))
    context.setdefault("is_arabic", locale == "ar")
    return _env.get_template(template).render(**context)


def reply_subject(subject: str, locale: str) -> str:
    return f"رد من HAPA: {subject}" if locale == "ar" else f"Réponse HAPA: {subject}"


def notification_subject(subject: str, locale: str) -> str:
    return f"رسالة اتصال جديدة: {subject}" if locale == "ar" else f"Nouveau message de contact: {subject}"


class EmailService:
    """Sends transactional email through the Resend HTTP API."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()

    def send(self, *, to: str, subject: str, html: str) -> Dict[str, Any]:
        if not self.settings.resend_api_key:
            raise EmailDeliveryError("RESEND_API_KEY is not configured")

        try:
            response = self.session.post(
                RESEND_ENDPOINT,
                headers={
                    "Authorization": f"Bearer {self.settings.resend_api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "from": self.settings.email_from,
                    "to": to,
                    "subject": subject,
                    "html": html,
                },
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise EmailDeliveryError(f"Email API unreachable: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not response.ok:
            raise EmailDeliveryError(f"Email API failed: {body.get('message') or response.status_code}")

        logger.info("[email] sent %r", subject, extra={"email_id": body.get("id")})
        return body
