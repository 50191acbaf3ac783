import uuid

import pytest
import requests
from sqlalchemy import select

from hapa.api.v1.contact import get_contact_service
from hapa.core.config import get_settings
from hapa.core.errors import EmailDeliveryError
from hapa.models.contact_submission import ContactSubmission
from hapa.services.contact_service import ContactService
from hapa.services.email_service import EmailService, render_email


class FakeEmail:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, *, to, subject, html):
        if self.fail:
            raise EmailDeliveryError("Email API failed: 500")
        self.sent.append({"to": to, "subject": subject, "html": html})
        return {"id": "email-1"}


@pytest.fixture
def email(app):
    fake = FakeEmail()
    app.dependency_overrides[get_contact_service] = lambda: ContactService(email=fake)
    return fake


CONTACT = {
    "name": "Sidi Mohamed",
    "email": "sidi@gmail.com",
    "phone": "+22245000000",
    "subject": "Demande d'information",
    "message": "Bonjour, je voudrais connaître la procédure de dépôt de plainte.",
}


def test_submit_notifies_admin(client, db, email):
    r = client.post("/api/contact/submit", json=CONTACT)
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["message"].startswith("Votre message a été envoyé")

    [sent] = email.sent
    assert sent["to"] == get_settings().admin_notification_email
    assert sent["subject"] == "Nouveau message de contact: Demande d'information"
    assert "Sidi Mohamed" in sent["html"]

    row = db.execute(select(ContactSubmission)).scalar_one()
    assert row.status == "pending"
    assert row.preferred_language == "fr"


def test_submit_survives_email_failure(client, email):
    email.fail = True
    r = client.post("/api/contact/submit", json={**CONTACT, "locale": "ar"})
    assert r.status_code == 201
    assert r.json()["message"] == "تم إرسال رسالتك بنجاح. سنتواصل معك قريباً."


def test_submit_without_api_key_still_succeeds(client):
    r = client.post("/api/contact/submit", json=CONTACT)
    assert r.status_code == 201


def test_submit_validation(client):
    r = client.post("/api/contact/submit", json={**CONTACT, "message": "court"})
    assert r.status_code == 400


def test_reply_workflow(client, db, email, moderator_headers):
    sid = client.post("/api/contact/submit", json=CONTACT).json()["submissionId"]

    r = client.post(
        f"/api/admin/contact-submissions/{sid}/reply",
        json={"message": "Vous pouvez utiliser le formulaire en ligne."},
        headers=moderator_headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Réponse envoyée avec succès"
    assert body["submission"]["emailSent"] is True
    assert body["submission"]["emailSentAt"] is not None

    reply = email.sent[-1]
    assert reply["to"] == "sidi@gmail.com"
    assert reply["subject"] == "Réponse HAPA: Demande d'information"
    assert "formulaire en ligne" in reply["html"]


def test_reply_failure_is_502_and_not_recorded(client, db, email, moderator_headers):
    sid = client.post("/api/contact/submit", json=CONTACT).json()["submissionId"]
    email.fail = True

    r = client.post(
        f"/api/admin/contact-submissions/{sid}/reply",
        json={"message": "Réponse"},
        headers=moderator_headers,
    )
    assert r.status_code == 502

    db.expire_all()
    row = db.execute(select(ContactSubmission)).scalar_one()
    assert row.email_sent is False
    assert row.reply_message is None


def test_reply_unknown_submission(client, email, moderator_headers):
    r = client.post(
        f"/api/admin/contact-submissions/{uuid.uuid4()}/reply",
        json={"message": "Réponse"},
        headers=moderator_headers,
    )
    assert r.status_code == 404
    assert r.json()["detail"] == "Soumission introuvable"


def test_status_update_and_stats(client, email, moderator_headers, editor_headers):
    sid = client.post("/api/contact/submit", json=CONTACT).json()["submissionId"]

    assert client.get("/api/admin/contact-submissions-stats", headers=editor_headers).status_code == 403

    r = client.patch(
        f"/api/admin/contact-submissions/{sid}",
        json={"status": "in-progress", "adminNotes": "appel prévu"},
        headers=moderator_headers,
    )
    assert r.status_code == 200
    assert r.json()["submission"]["adminNotes"] == "appel prévu"

    stats = client.get("/api/admin/contact-submissions-stats", headers=moderator_headers).json()
    assert stats["stats"]["total"] == 1
    assert stats["stats"]["inProgress"] == 1
    assert stats["stats"]["today"] == 1
    assert stats["recent"][0]["id"] == sid


def test_feedback_submit_and_list(client, moderator_headers):
    r = client.post("/api/feedback", json={"message": "Le site est très utile.", "email": "lecteur@gmail.com"})
    assert r.status_code == 201
    assert set(r.json()) == {"success", "id"}

    listed = client.get("/api/admin/feedback", headers=moderator_headers).json()
    assert [f["message"] for f in listed["feedback"]] == ["Le site est très utile."]
    assert listed["feedback"][0]["status"] == "new"


def test_render_reply_email_is_rtl_for_arabic():
    html = render_email(
        "contact_reply.html",
        user_name="<b>Ali</b>",
        original_subject="سؤال",
        original_message="...",
        reply_message="شكرا",
        locale="ar",
    )
    assert 'dir="rtl"' in html
    assert "&lt;b&gt;Ali&lt;/b&gt;" in html


class _Response:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self.ok = status_code < 400
        self._body = body

    def json(self):
        return self._body


class _Session:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response


def test_email_service_posts_to_resend():
    settings = get_settings().model_copy(update={"resend_api_key": "re_test"})
    session = _Session(_Response(200, {"id": "abc"}))

    assert EmailService(settings, session).send(to="a@gmail.com", subject="S", html="<p>x</p>") == {"id": "abc"}
    url, kwargs = session.calls[0]
    assert url == "https://api.resend.com/emails"
    assert kwargs["headers"]["Authorization"] == "Bearer re_test"
    assert kwargs["json"]["to"] == "a@gmail.com"


def test_email_service_errors():
    settings = get_settings().model_copy(update={"resend_api_key": "re_test"})

    with pytest.raises(EmailDeliveryError):
        EmailService(get_settings().model_copy(update={"resend_api_key": None}), _Session()).send(
            to="a@gmail.com", subject="S", html=""
        )
    with pytest.raises(EmailDeliveryError):
        EmailService(settings, _Session(error=requests.ConnectionError("down"))).send(
            to="a@gmail.com", subject="S", html=""
        )
    with pytest.raises(EmailDeliveryError, match="domain not verified"):
        EmailService(settings, _Session(_Response(422, {"message": "domain not verified"}))).send(
            to="a@gmail.com", subject="S", html=""
        )
