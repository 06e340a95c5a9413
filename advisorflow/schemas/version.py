"""Version schemas."""

from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional

from ..models.enums import Generator


class VersionBase(BaseModel):
    """Base version schema."""
    title: str
    body: str
    disclaimers: Optional[str] = None


class VersionCreate(VersionBase):
    """Schema for creating a version."""
    request_id: str
    generated_by: Generator


class EditorDraft(VersionBase):
    """What the editor currently shows; saved as a human version when it differs."""
    base_version_number: Optional[int] = None  # Omit to skip the conflict check


class VersionResponse(VersionBase):
    """Schema for version response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    request_id: str
    version_number: int
    generated_by: Generator
    content_hash: str
    created_at: datetime
