from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class ContactSubmit(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=32)
    subject: str = Field(..., min_length=3, max_length=200)
    message: str = Field(..., min_length=10, max_length=5000)
    locale: str = "fr"
    preferredLanguage: Optional[str] = None

    @field_validator("locale", mode="before")
    @classmethod
    def _known_locale(cls, v):
        return v if v in ("fr", "ar") else "fr"


class ContactReply(BaseModel):
    message: str = Field(..., min_length=1, max_length=10000)


class ContactStatusUpdate(BaseModel):
    status: Literal["pending", "in-progress", "resolved"]
    adminNotes: Optional[str] = None


class FeedbackIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None
    subject: Optional[str] = Field(default=None, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)
