# hapa/models/form_media.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from hapa.db.base import Base
from hapa.models.enums import UploadStatus


class FormMedia(Base):
    """
    Metadata for a file uploaded through the public forms.
    The binary lives in object storage under `forms/<folder>/<filename>`.

    submission_id is a plain string: older rows were linked only through
    URLs stored on the submission itself.
    """

    __tablename__ = "form_media"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    filename: Mapped[str] = mapped_column(String(512), nullable=False, unique=True)
    mime_type: Mapped[str] = mapped_column(String(128), nullable=False)
    filesize: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    prefix: Mapped[str] = mapped_column(String(128), nullable=False, default="forms")
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    alt: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    form_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    file_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    submission_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    upload_status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=UploadStatus.staging.value
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    submission_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_form_media_status_created", "upload_status", "created_at"),
    )
