from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hapa.db.base import as_aware, utcnow
from hapa.models.contact_submission import ContactSubmission
from hapa.models.media_content_submission import MediaContentSubmission
from hapa.services.submissions_service import SubmissionsService, serialize_submission

logger = logging.getLogger(__name__)

RECENT_LIMIT = 100

_cache: Dict[str, Any] = {"data": None, "timestamp": 0.0}

STATUS_KEYS = ("pending", "reviewing", "resolved", "dismissed")
PRIORITY_KEYS = ("urgent", "high", "medium", "low")


def invalidate_stats_cache() -> None:
    _cache["data"] = None
    _cache["timestamp"] = 0.0


def media_type_bucket(media_type: str) -> str:
    mt = media_type.lower()
    if "television" in mt or "tv" in mt:
        return "television"
    if "radio" in mt:
        return "radio"
    if "online" in mt or "web" in mt or "internet" in mt:
        return "online"
    if "print" in mt or "journal" in mt or "magazine" in mt:
        return "print"
    return "other"


def _form_stats() -> Dict[str, int]:
    return {
        "total": 0,
        "pending": 0,
        "reviewing": 0,
        "resolved": 0,
        "dismissed": 0,
        "french": 0,
        "arabic": 0,
        "thisWeek": 0,
        "thisMonth": 0,
    }


def _windows(now: datetime):
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_ago = now - timedelta(days=7)
    month_start = today.replace(day=1)
    return today, week_ago, month_start


def compute_submission_stats(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utcnow()
    today, week_ago, month_start = _windows(now)

    total = db.execute(select(func.count()).select_from(MediaContentSubmission)).scalar_one()
    recent = SubmissionsService().recent(db, RECENT_LIMIT)

    stats: Dict[str, Any] = {
        "totalSubmissions": int(total or 0),
        "reportSubmissions": 0,
        "complaintSubmissions": 0,
        "pendingCount": 0,
        "reviewingCount": 0,
        "resolvedCount": 0,
        "dismissedCount": 0,
        "todaySubmissions": 0,
        "weekSubmissions": 0,
        "monthSubmissions": 0,
        "urgentCount": 0,
        "highCount": 0,
        "mediumCount": 0,
        "lowCount": 0,
        "frenchSubmissions": 0,
        "arabicSubmissions": 0,
        "mediaTypeStats": {"television": 0, "radio": 0, "online": 0, "print": 0, "other": 0},
        "reportStats": _form_stats(),
        "complaintStats": _form_stats(),
    }

    for sub in recent:
        submitted = as_aware(sub.submitted_at)
        per_form = stats.get(f"{sub.form_type}Stats")

        if per_form is not None:
            stats[f"{sub.form_type}Submissions"] += 1
            per_form["total"] += 1
            if sub.submission_status in STATUS_KEYS:
                per_form[sub.submission_status] += 1
            if sub.locale == "fr":
                per_form["french"] += 1
            elif sub.locale == "ar":
                per_form["arabic"] += 1
            if submitted >= week_ago:
                per_form["thisWeek"] += 1
            if submitted >= month_start:
                per_form["thisMonth"] += 1

        if sub.submission_status in STATUS_KEYS:
            stats[f"{sub.submission_status}Count"] += 1
        if sub.priority in PRIORITY_KEYS:
            stats[f"{sub.priority}Count"] += 1

        if sub.locale == "fr":
            stats["frenchSubmissions"] += 1
        elif sub.locale == "ar":
            stats["arabicSubmissions"] += 1

        if submitted >= today:
            stats["todaySubmissions"] += 1
        if submitted >= week_ago:
            stats["weekSubmissions"] += 1
        if submitted >= month_start:
            stats["monthSubmissions"] += 1

        media_type = (sub.content_info or {}).get("mediaType")
        if media_type:
            stats["mediaTypeStats"][media_type_bucket(media_type)] += 1

    return {
        "success": True,
        "stats": stats,
        "submissions": [serialize_submission(s) for s in recent],
    }


def get_submission_stats(db: Session, ttl_seconds: int) -> Dict[str, Any]:
    """Dashboard statistics, cached in-process for `ttl_seconds`."""
    cached = _cache["data"]
    if cached is not None and time.monotonic() - _cache["timestamp"] < ttl_seconds:
        return cached

    data = compute_submission_stats(db)
    _cache["data"] = data
    _cache["timestamp"] = time.monotonic()
    logger.debug("[stats] recomputed submission stats")
    return data


def compute_contact_stats(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utcnow()
    today, week_ago, month_start = _windows(now)

    rows = list(
        db.execute(select(ContactSubmission).order_by(ContactSubmission.created_at.desc())).scalars()
    )

    stats = {
        "total": len(rows),
        "today": 0,
        "week": 0,
        "month": 0,
        "pending": 0,
        "inProgress": 0,
        "resolved": 0,
        "emailsSent": 0,
    }
    for row in rows:
        created = as_aware(row.created_at)
        if created >= today:
            stats["today"] += 1
        if created >= week_ago:
            stats["week"] += 1
        if created >= month_start:
            stats["month"] += 1

        if row.status == "pending":
            stats["pending"] += 1
        elif row.status == "in-progress":
            stats["inProgress"] += 1
        elif row.status == "resolved":
            stats["resolved"] += 1

        if row.email_sent:
            stats["emailsSent"] += 1

    recent = [
        {
            "id": str(r.id),
            "name": r.name,
            "email": r.email,
            "subject": r.subject,
            "status": r.status,
            "emailSent": r.email_sent,
            "createdAt": as_aware(r.created_at).isoformat(),
            "locale": r.locale,
            "preferredLanguage": r.preferred_language,
        }
        for r in rows[:10]
    ]
    return {"success": True, "stats": stats, "recent": recent}
