#hapa/models/enums.py
from __future__ import annotations
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    EDITOR = "editor"
    MODERATOR = "moderator"
    USER = "user"


class Locale(str, Enum):
    fr = "fr"
    ar = "ar"


class FormType(str, Enum):
    report = "report"
    complaint = "complaint"


class SubmissionStatus(str, Enum):
    pending = "pending"
    reviewing = "reviewing"
    resolved = "resolved"
    dismissed = "dismissed"


class Priority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class FileType(str, Enum):
    screenshot = "screenshot"
    attachment = "attachment"


class UploadStatus(str, Enum):
    # staging -> confirmed once linked to a submission
    staging = "staging"
    confirmed = "confirmed"
    orphaned = "orphaned"


class PostStatus(str, Enum):
    draft = "draft"
    published = "published"


class ContactStatus(str, Enum):
    pending = "pending"
    in_progress = "in-progress"
    resolved = "resolved"


class FeedbackStatus(str, Enum):
    new = "new"
    in_progress = "in_progress"
    resolved = "resolved"
