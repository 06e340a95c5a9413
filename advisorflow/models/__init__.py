"""Database models."""

from .enums import ContentStatus, ContentType, Generator, ReviewDecision, UserRole, normalize_status
from .content_request import ContentRequest
from .content_version import ContentVersion
from .compliance_review import ComplianceReview

__all__ = [
    "ContentRequest", "ContentVersion", "ComplianceReview",
    "ContentStatus", "ContentType", "Generator", "ReviewDecision", "UserRole",
    "normalize_status",
]
