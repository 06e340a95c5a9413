"""Closed vocabularies shared by models, schemas and services."""

from enum import Enum


class ContentStatus(str, Enum):
    """Lifecycle status of a content request."""

    DRAFT = "draft"
    # Legacy value: never written, read back as IN_REVIEW (see normalize_status).
    SUBMITTED = "submitted"
    IN_REVIEW = "in_review"
    CHANGES_REQUESTED = "changes_requested"
    APPROVED = "approved"
    SCHEDULED = "scheduled"
    POSTED = "posted"
    REJECTED = "rejected"


class ContentType(str, Enum):
    BLOG = "blog"
    LINKEDIN = "linkedin"
    FACEBOOK = "facebook"
    AD = "ad"
    VIDEO_SCRIPT = "video_script"


class Generator(str, Enum):
    """Who produced a version."""

    AI = "ai"
    HUMAN = "human"


class ReviewDecision(str, Enum):
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    REJECTED = "rejected"


class UserRole(str, Enum):
    ADMIN = "admin"
    ADVISOR = "advisor"
    COMPLIANCE = "compliance"


def normalize_status(value: str) -> ContentStatus:
    """Map a stored status string onto the canonical state set.

    Older rows may carry ``submitted``; it is the same state as ``in_review``.
    """
    status = ContentStatus(value)
    if status == ContentStatus.SUBMITTED:
        return ContentStatus.IN_REVIEW
    return status
