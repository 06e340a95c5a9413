"""Content request schemas."""

from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime
from typing import Optional

from ..models.enums import ContentStatus, ContentType, normalize_status


class RequestCreate(BaseModel):
    """Schema for starting a new content item."""
    topic_text: str
    content_type: ContentType = ContentType.BLOG
    instructions: str = ""
    client_id: Optional[str] = None

    @field_validator('topic_text')
    @classmethod
    def validate_topic(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Topic cannot be empty")
        return v


class RequestUpdate(BaseModel):
    """Advisor edits to the brief. Omitted fields are left alone."""
    topic_text: Optional[str] = None
    instructions: Optional[str] = None
    client_id: Optional[str] = None

    @field_validator('topic_text')
    @classmethod
    def validate_topic(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Topic cannot be empty")
        return v


class RequestResponse(BaseModel):
    """Schema for request response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    org_id: str
    advisor_id: str
    client_id: Optional[str] = None
    topic_text: str
    content_type: ContentType
    instructions: str
    status: ContentStatus
    current_version_id: Optional[str] = None
    revision_cycle: int
    scheduled_for: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_validator('status', mode='before')
    @classmethod
    def normalize_legacy_status(cls, v):
        return normalize_status(v) if isinstance(v, str) else v


class RequestListItem(BaseModel):
    """Library row: the request plus the title of its current version."""
    id: str
    topic_text: str
    content_type: ContentType
    status: ContentStatus
    advisor_id: str
    title: Optional[str] = None
    updated_at: datetime


class StatusCounts(BaseModel):
    """Counts per library filter tab."""
    all: int = 0
    drafts: int = 0
    in_review: int = 0
    approved: int = 0
