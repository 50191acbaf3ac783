from __future__ import annotations

import re
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

PHONE_RE = re.compile(r"^\+?[1-9]\d{0,15}$")

MediaTypeKey = Literal["television", "radio", "website", "youtube", "facebook", "other"]
ReasonKey = Literal[
    "hateSpeech",
    "misinformation",
    "fakeNews",
    "privacyViolation",
    "shockingContent",
    "pluralismViolation",
    "falseAdvertising",
    "other",
]
AttachmentTypeKey = Literal["screenshot", "videoLink", "writtenStatement", "audioRecording", "other"]
RelationshipKey = Literal["viewer", "directlyConcerned", "journalist", "other"]


def _filled(value: Optional[str]) -> bool:
    return bool(value and value.strip())


class MediaFormSubmission(BaseModel):
    """
    Body of a public report/complaint form.
    Field names follow the form payload (camelCase).
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    formType: Literal["report", "complaint"]
    locale: str = "fr"
    submittedAt: Optional[datetime] = None

    # content information
    mediaType: MediaTypeKey
    mediaTypeOther: Optional[str] = None
    specificChannel: Optional[str] = Field(default=None, max_length=200)
    programName: str = Field(..., min_length=2, max_length=200)
    broadcastDateTime: str = Field(..., min_length=1)
    linkScreenshot: Optional[str] = None

    # reasons
    reasons: List[ReasonKey] = Field(..., min_length=1)
    reasonOther: Optional[str] = None

    description: str = Field(..., min_length=50, max_length=2000)

    attachmentTypes: List[AttachmentTypeKey] = Field(default_factory=list)
    attachmentOther: Optional[str] = None

    # complainant (complaints only)
    fullName: Optional[str] = Field(default=None, max_length=100)
    gender: Optional[str] = None
    country: Optional[str] = None
    emailAddress: Optional[EmailStr] = None
    phoneNumber: Optional[str] = None
    whatsappNumber: Optional[str] = None
    profession: Optional[str] = Field(default=None, max_length=100)
    relationshipToContent: Optional[RelationshipKey] = None
    relationshipOther: Optional[str] = None
    acceptDeclaration: bool = False
    acceptConsent: bool = False

    @field_validator("locale", mode="before")
    @classmethod
    def _known_locale(cls, v):
        return v if v in ("fr", "ar") else "fr"

    @field_validator("linkScreenshot")
    @classmethod
    def _http_link(cls, v):
        if v and not re.match(r"^https?://", v):
            raise ValueError("linkScreenshot must be an http(s) URL")
        return v or None

    @model_validator(mode="after")
    def _conditional_fields(self):
        if self.mediaType == "other" and not _filled(self.mediaTypeOther):
            raise ValueError("mediaTypeOther is required when mediaType is 'other'")
        if "other" in self.reasons and not _filled(self.reasonOther):
            raise ValueError("reasonOther is required when 'other' is selected")
        if "other" in self.attachmentTypes and not _filled(self.attachmentOther):
            raise ValueError("attachmentOther is required when 'other' is selected")

        if self.formType == "complaint":
            if not self.fullName or len(self.fullName) < 2:
                raise ValueError("fullName is required for complaints")
            if not self.phoneNumber or not PHONE_RE.match(self.phoneNumber):
                raise ValueError("phoneNumber is invalid")
            if self.whatsappNumber and not PHONE_RE.match(self.whatsappNumber):
                raise ValueError("whatsappNumber is invalid")
            if not self.emailAddress:
                raise ValueError("emailAddress is required for complaints")
            if not (self.acceptDeclaration and self.acceptConsent):
                raise ValueError("declaration and consent must be accepted")
            if self.relationshipToContent == "other" and not _filled(self.relationshipOther):
                raise ValueError("relationshipOther is required when relationship is 'other'")
        return self


class SubmissionCreated(BaseModel):
    success: bool = True
    message: str
    submissionId: str
    uploadedFiles: int = 0
