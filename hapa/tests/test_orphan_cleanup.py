from datetime import timedelta

from sqlalchemy import select

from hapa.db.base import utcnow
from hapa.models.form_media import FormMedia
from hapa.services.form_media_service import FormMediaService
from hapa.services.storage import form_media_key


def _row(db, storage, filename, status, *, age_hours=0, expires_in_hours=None):
    key = form_media_key(filename)
    url = storage.put(key, b"data", "image/png")
    now = utcnow()
    row = FormMedia(
        filename=filename,
        mime_type="image/png",
        filesize=4,
        prefix=key.rsplit("/", 1)[0],
        url=url,
        upload_status=status,
        created_at=now - timedelta(hours=age_hours),
        expires_at=now + timedelta(hours=expires_in_hours) if expires_in_hours is not None else None,
    )
    db.add(row)
    db.commit()
    return row


def _filenames(db):
    return sorted(db.execute(select(FormMedia.filename)).scalars())


def test_cleanup_targets_only_abandoned_rows(db, storage):
    _row(db, storage, "old-staging.png", "staging", age_hours=30)
    _row(db, storage, "expired.png", "staging", age_hours=1, expires_in_hours=-1)
    _row(db, storage, "orphaned.png", "orphaned")
    _row(db, storage, "fresh.png", "staging", age_hours=1, expires_in_hours=23)
    _row(db, storage, "confirmed-old.png", "confirmed", age_hours=100)

    stats = FormMediaService().cleanup_orphaned(db, storage)

    assert stats == {"processed": 3, "deleted": 3, "failed": 0, "errors": []}
    assert _filenames(db) == ["confirmed-old.png", "fresh.png"]
    assert sorted(storage.deleted) == sorted(
        form_media_key(n) for n in ("old-staging.png", "expired.png", "orphaned.png")
    )


def test_failed_row_is_marked_orphaned_and_skipped(db, storage):
    _row(db, storage, "a.png", "staging", age_hours=30)
    _row(db, storage, "stuck.png", "staging", age_hours=29)
    _row(db, storage, "c.png", "staging", age_hours=28)

    svc = FormMediaService()
    real_delete = svc.delete

    def flaky_delete(db_, row, storage_, **kwargs):
        if row.filename == "stuck.png":
            raise RuntimeError("database is locked")
        return real_delete(db_, row, storage_, **kwargs)

    svc.delete = flaky_delete
    stats = svc.cleanup_orphaned(db, storage)

    assert stats["processed"] == 3
    assert stats["deleted"] == 2
    assert stats["failed"] == 1
    assert "database is locked" in stats["errors"][0]

    db.expire_all()
    stuck = db.execute(select(FormMedia).where(FormMedia.filename == "stuck.png")).scalar_one()
    assert stuck.upload_status == "orphaned"


def test_cleanup_endpoint_requires_admin(client, db, storage, moderator_headers, admin_headers):
    _row(db, storage, "old.png", "staging", age_hours=48)

    assert client.post("/api/admin/media-cleanup", headers=moderator_headers).status_code == 403

    r = client.post("/api/admin/media-cleanup", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["deleted"] == 1
