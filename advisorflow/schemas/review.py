"""Review and workflow action schemas."""

from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional

from ..models.enums import ReviewDecision
from .version import EditorDraft


class SubmitRequest(BaseModel):
    """Submit/resubmit body. ``draft`` carries unsaved editor content."""
    draft: Optional[EditorDraft] = None


class DecisionRequest(BaseModel):
    """Reviewer decision body. Notes are required for anything but approval."""
    notes: Optional[str] = None


class ScheduleRequest(BaseModel):
    scheduled_for: datetime


class ReviewResponse(BaseModel):
    """Schema for review response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    request_id: str
    reviewer_id: str
    version_id: Optional[str] = None
    decision: ReviewDecision
    notes: Optional[str] = None
    self_review: bool
    created_at: datetime
