# hapa/models/post.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Table, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hapa.db.base import Base, JSONType
from hapa.models.category import Category
from hapa.models.enums import PostStatus
from hapa.models.media import Media

post_categories = Table(
    "post_categories",
    Base.metadata,
    Column("post_id", Uuid, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Uuid, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # localized {"fr": ..., "ar": ...}
    title: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    slug: Mapped[str] = mapped_column(String(256), nullable=False, unique=True, index=True)
    # localized rich-text trees: {"fr": {"root": {...}}, "ar": {...}}
    content: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    hero_image_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("media.id", ondelete="SET NULL"), nullable=True
    )

    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=PostStatus.draft.value
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    meta_title: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    meta_description: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    meta_image_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("media.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    categories: Mapped[List[Category]] = relationship(Category, secondary=post_categories, lazy="selectin")
    hero_image: Mapped[Optional[Media]] = relationship(Media, foreign_keys=[hero_image_id])
    meta_image: Mapped[Optional[Media]] = relationship(Media, foreign_keys=[meta_image_id])

    __table_args__ = (
        Index("ix_posts_status_published_at", "status", "published_at"),
    )
