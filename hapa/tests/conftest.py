import os

# settings are read at import time; point them at an in-memory database first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "dev"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["PREVIEW_SECRET"] = "preview-secret"
os.environ.pop("RESEND_API_KEY", None)

import uuid
from typing import Dict, Iterable, List

import pytest
from fastapi.testclient import TestClient

from hapa.models.contact_submission import ContactSubmission  # noqa: F401
from hapa.models.feedback import Feedback  # noqa: F401
from hapa.models.form_media import FormMedia  # noqa: F401
from hapa.models.media_content_submission import MediaContentSubmission  # noqa: F401
from hapa.models.post import Post  # noqa: F401
from hapa.models.user import User  # noqa: F401
from hapa.core.errors import StorageError
from hapa.core.rate_limit import RATE_LIMITERS
from hapa.core.security import create_access_token
from hapa.core.upload_metrics import upload_metrics
from hapa.db.base import Base
from hapa.db.session import SessionLocal, engine
from hapa.main import create_app
from hapa.services.stats_service import invalidate_stats_cache
from hapa.services.storage import BulkDeleteResult, StorageBackend, get_storage

Base.metadata.create_all(bind=engine)

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
PDF = b"%PDF-1.7\n" + b"0" * 64


class FakeStorage(StorageBackend):
    """In-memory object store. Set `fail` to make every operation raise."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.deleted: List[str] = []
        self.fail = False

    def put(self, key: str, data: bytes, content_type: str) -> str:
        if self.fail:
            raise StorageError(f"put failed for {key}")
        self.objects[key] = data
        return self.public_url(key)

    def delete(self, key: str) -> None:
        if self.fail:
            raise StorageError(f"delete failed for {key}")
        self.objects.pop(key, None)
        self.deleted.append(key)

    def delete_many(self, keys: Iterable[str]) -> BulkDeleteResult:
        result = BulkDeleteResult()
        for key in keys:
            try:
                self.delete(key)
                result.deleted += 1
            except StorageError as e:
                result.failed += 1
                result.errors.append(str(e))
        return result

    def public_url(self, key: str) -> str:
        return f"https://cdn.test/{key}"


@pytest.fixture(autouse=True)
def _clean_state():
    for limiter in RATE_LIMITERS.values():
        limiter.clear()
    upload_metrics.reset()
    invalidate_stats_cache()
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    invalidate_stats_cache()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def app(storage):
    application = create_app()
    application.dependency_overrides[get_storage] = lambda: storage
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def token_for(role: str, email: str | None = None) -> str:
    return create_access_token(
        subject=str(uuid.uuid4()),
        claims={"email": email or f"{role}@hapa.mr", "role": role, "name": role.title()},
    )


def auth(role: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token_for(role)}"}


@pytest.fixture
def admin_headers():
    return auth("admin")


@pytest.fixture
def moderator_headers():
    return auth("moderator")


@pytest.fixture
def editor_headers():
    return auth("editor")


@pytest.fixture
def user_headers():
    return auth("user")


def report_payload(**overrides):
    payload = {
        "formType": "report",
        "locale": "fr",
        "mediaType": "television",
        "specificChannel": "TVM",
        "programName": "Journal de 20h",
        "broadcastDateTime": "2025-03-05T20:00",
        "reasons": ["privacyViolation"],
        "description": "Le reportage diffuse des images privées sans le consentement des personnes filmées.",
        "attachmentTypes": ["screenshot"],
    }
    payload.update(overrides)
    return payload


def complaint_payload(**overrides):
    payload = report_payload(
        formType="complaint",
        fullName="Aminetou Mint Ahmed",
        emailAddress="aminetou@gmail.com",
        phoneNumber="+22236000000",
        relationshipToContent="viewer",
        acceptDeclaration=True,
        acceptConsent=True,
    )
    payload.update(overrides)
    return payload
