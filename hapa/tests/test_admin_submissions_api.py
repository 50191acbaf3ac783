import uuid

from sqlalchemy import select

from conftest import report_payload
from hapa.models.form_media import FormMedia
from hapa.models.media_content_submission import MediaContentSubmission
from hapa.schemas.forms import MediaFormSubmission
from hapa.services.submissions_service import SubmissionsService


def _create(db, n=1, **overrides):
    svc = SubmissionsService()
    return [str(svc.create(db, MediaFormSubmission(**report_payload(**overrides))).id) for _ in range(n)]


def test_staff_only(client, user_headers, editor_headers):
    assert client.get("/api/admin/media-submissions-stats").status_code == 401
    assert client.get("/api/admin/media-submissions-stats", headers=user_headers).status_code == 403
    assert client.get("/api/admin/media-submissions-stats", headers=editor_headers).status_code == 200


def test_stats_counts(client, db, moderator_headers):
    _create(db, 2)
    _create(db, 1, reasons=["hateSpeech"], mediaType="radio", locale="ar")

    r = client.get("/api/admin/media-submissions-stats", headers=moderator_headers)
    assert r.status_code == 200
    stats = r.json()["stats"]
    assert stats["totalSubmissions"] == 3
    assert stats["reportSubmissions"] == 3
    assert stats["pendingCount"] == 3
    assert stats["highCount"] == 1
    assert stats["mediumCount"] == 2
    assert stats["frenchSubmissions"] == 2
    assert stats["arabicSubmissions"] == 1
    assert stats["todaySubmissions"] == 3
    assert stats["mediaTypeStats"]["television"] == 2
    assert stats["mediaTypeStats"]["radio"] == 1
    assert stats["reportStats"]["total"] == 3
    assert len(r.json()["submissions"]) == 3


def test_stats_are_cached_until_a_mutation(client, db, moderator_headers):
    _create(db, 1)
    first = client.get("/api/admin/media-submissions-stats", headers=moderator_headers).json()
    assert first["stats"]["totalSubmissions"] == 1

    # direct insert bypasses invalidation
    _create(db, 1)
    cached = client.get("/api/admin/media-submissions-stats", headers=moderator_headers).json()
    assert cached["stats"]["totalSubmissions"] == 1

    client.post("/api/media-forms/submit", json=report_payload())
    fresh = client.get("/api/admin/media-submissions-stats", headers=moderator_headers).json()
    assert fresh["stats"]["totalSubmissions"] == 3


def test_single_update(client, db, moderator_headers):
    [sid] = _create(db)
    r = client.patch(
        "/api/admin/update-submission",
        json={"submissionId": sid, "updates": {"submissionStatus": "reviewing", "moderatorNotes": "à vérifier"}},
        headers=moderator_headers,
    )
    assert r.status_code == 200
    sub = r.json()["submission"]
    assert sub["submissionStatus"] == "reviewing"
    assert sub["moderatorNotes"] == "à vérifier"
    assert sub["reviewedAt"] is not None


def test_single_update_unknown_id(client, moderator_headers):
    r = client.patch(
        "/api/admin/update-submission",
        json={"submissionId": str(uuid.uuid4()), "updates": {"priority": "low"}},
        headers=moderator_headers,
    )
    assert r.status_code == 404


def test_update_rejects_unknown_fields(client, db, moderator_headers):
    [sid] = _create(db)
    r = client.patch(
        f"/api/admin/media-submissions/{sid}",
        json={"title": "hijack"},
        headers=moderator_headers,
    )
    assert r.status_code == 400


def test_bulk_update_reports_counts(client, db, moderator_headers):
    ids = _create(db, 2)
    r = client.post(
        "/api/admin/update-submission",
        json={"submissionIds": ids + ["not-a-uuid", str(uuid.uuid4())], "updates": {"priority": "urgent"}},
        headers=moderator_headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["updated"] == 2
    assert body["failed"] == 2

    db.expire_all()
    priorities = db.execute(select(MediaContentSubmission.priority)).scalars().all()
    assert priorities == ["urgent", "urgent"]


def test_bulk_delete_reports_counts(client, db, storage, admin_headers):
    ids = _create(db, 3)
    row = FormMedia(
        filename="evidence.png",
        mime_type="image/png",
        filesize=4,
        prefix="forms/images",
        url=storage.put("forms/images/evidence.png", b"data", "image/png"),
        submission_id=ids[0],
        upload_status="confirmed",
    )
    db.add(row)
    db.commit()

    r = client.delete(
        "/api/admin/update-submission",
        params={"ids": f"{ids[0]},{ids[1]},{uuid.uuid4()}"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json() == {"success": True, "deleted": 2, "failed": 1}

    remaining = db.execute(select(MediaContentSubmission.id)).scalars().all()
    assert [str(i) for i in remaining] == [ids[2]]
    assert db.execute(select(FormMedia)).first() is None
    assert storage.objects == {}


def test_bulk_delete_requires_ids(client, admin_headers):
    r = client.delete("/api/admin/update-submission", params={"ids": " , "}, headers=admin_headers)
    assert r.status_code == 400


def test_detail_with_arabic_labels(client, db, moderator_headers):
    [sid] = _create(db, reasons=["misinformation"])
    r = client.get(f"/api/admin/media-submissions/{sid}", params={"locale": "ar"}, headers=moderator_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["submission"]["reasons"] == [{"reason": "misinformation"}]
    assert body["labels"]["reasons"] == ["معلومات مضللة / كاذبة"]
    assert body["labels"]["priority"] == "عالي"


def test_detail_not_found(client, moderator_headers):
    assert client.get("/api/admin/media-submissions/nope", headers=moderator_headers).status_code == 404


def test_single_delete_is_admin_only(client, db, moderator_headers, admin_headers):
    [sid] = _create(db)
    assert client.delete(f"/api/admin/media-submissions/{sid}", headers=moderator_headers).status_code == 403

    r = client.delete(f"/api/admin/media-submissions/{sid}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["cleanup"] == {"storageDeleted": 0, "storageFailed": 0, "recordsDeleted": 0, "recordsFailed": 0}
    assert client.delete(f"/api/admin/media-submissions/{sid}", headers=admin_headers).status_code == 404


def test_bulk_delete_is_admin_only(client, db, moderator_headers, editor_headers):
    [sid] = _create(db)
    for headers in (moderator_headers, editor_headers):
        r = client.delete("/api/admin/update-submission", params={"ids": sid}, headers=headers)
        assert r.status_code == 403

    remaining = db.execute(select(MediaContentSubmission.id)).scalars().all()
    assert [str(i) for i in remaining] == [sid]
