# hapa/models/media_content_submission.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from hapa.db.base import Base, JSONType
from hapa.models.enums import Priority, SubmissionStatus


class MediaContentSubmission(Base):
    """
    A citizen report (`report`) or complaint (`complaint`) about broadcast content.

    Grouped fields are JSON objects keyed the way the public forms send them:
      complainant_info: fullName, gender, country, emailAddress, phoneNumber,
                        whatsappNumber, profession, relationshipToContent
      content_info:     mediaType, mediaTypeOther, specificChannel, programName,
                        broadcastDateTime, linkScreenshot, screenshotFiles[{url}]
      resolution:       resolvedAt, resolvedBy, resolutionNotes, actionTaken
    """

    __tablename__ = "media_content_submissions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(512), nullable=False, default="Nouvelle soumission")
    form_type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    locale: Mapped[str] = mapped_column(String(8), nullable=False, default="fr")

    submission_status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=SubmissionStatus.pending.value
    )
    priority: Mapped[str] = mapped_column(String(32), nullable=False, default=Priority.medium.value)

    complainant_info: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    content_info: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    reasons: Mapped[List[Dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    reason_other: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    attachment_types: Mapped[List[Dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    attachment_other: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    attachment_files: Mapped[List[Dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)

    moderator_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    internal_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    reviewed_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    resolution: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_mcs_status_priority", "submission_status", "priority"),
        Index("ix_mcs_submitted_at", "submitted_at"),
    )
