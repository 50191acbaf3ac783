from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ResolutionIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    resolutionNotes: Optional[str] = None
    actionTaken: Optional[str] = None
    resolvedBy: Optional[str] = None


class SubmissionUpdates(BaseModel):
    """Fields staff may change from the dashboard. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    submissionStatus: Optional[Literal["pending", "reviewing", "resolved", "dismissed"]] = None
    priority: Optional[Literal["low", "medium", "high", "urgent"]] = None
    internalNotes: Optional[str] = None
    moderatorNotes: Optional[str] = None
    adminNotes: Optional[str] = None
    resolution: Optional[ResolutionIn] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class UpdateSubmissionRequest(BaseModel):
    submissionId: str = Field(..., min_length=1)
    updates: SubmissionUpdates


class BulkUpdateRequest(BaseModel):
    submissionIds: List[str] = Field(..., min_length=1)
    updates: SubmissionUpdates
