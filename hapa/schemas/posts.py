from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

LocalizedText = Dict[str, str]


class CategoryIn(BaseModel):
    title: LocalizedText
    slug: Optional[str] = None


class CategoryPatch(BaseModel):
    title: Optional[LocalizedText] = None
    slug: Optional[str] = None


class PostIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: LocalizedText
    slug: Optional[str] = None
    content: Dict[str, Any] = Field(default_factory=dict)
    hero_image_id: Optional[uuid.UUID] = None
    category_ids: List[uuid.UUID] = Field(default_factory=list)
    status: Literal["draft", "published"] = "draft"
    published_at: Optional[datetime] = None
    meta_title: LocalizedText = Field(default_factory=dict)
    meta_description: LocalizedText = Field(default_factory=dict)
    meta_image_id: Optional[uuid.UUID] = None


class PostPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[LocalizedText] = None
    slug: Optional[str] = None
    content: Optional[Dict[str, Any]] = None
    hero_image_id: Optional[uuid.UUID] = None
    category_ids: Optional[List[uuid.UUID]] = None
    status: Optional[Literal["draft", "published"]] = None
    published_at: Optional[datetime] = None
    meta_title: Optional[LocalizedText] = None
    meta_description: Optional[LocalizedText] = None
    meta_image_id: Optional[uuid.UUID] = None
