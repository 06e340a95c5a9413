"""Content request model."""

from datetime import datetime, timezone

from sqlalchemy import Column, Index, String, Text, Integer, DateTime
from sqlalchemy.orm import relationship
from ..database import Base
from .enums import ContentStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentRequest(Base):
    """One piece of content moving through drafting, review and publication."""

    __tablename__ = "content_requests"
    __table_args__ = (
        Index("ix_content_requests_org_status", "org_id", "status"),
        Index("ix_content_requests_advisor_id", "advisor_id"),
        Index("ix_content_requests_updated_at", "updated_at"),
    )

    id = Column(String(36), primary_key=True)

    # Ownership (identities live in an external profile store)
    org_id = Column(String(64), nullable=False)
    advisor_id = Column(String(64), nullable=False)
    client_id = Column(String(64), nullable=True)

    # Brief
    topic_text = Column(Text, nullable=False)
    content_type = Column(String(20), nullable=False)
    instructions = Column(Text, nullable=False, default="")

    # Workflow
    status = Column(String(30), nullable=False, default=ContentStatus.DRAFT.value)
    # Not a database FK: versions reference requests, and the pointer is
    # validated by the version repository before every update.
    current_version_id = Column(String(36), nullable=True)
    revision_cycle = Column(Integer, nullable=False, default=0)
    scheduled_for = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    versions = relationship(
        "ContentVersion",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="ContentVersion.version_number",
    )
    reviews = relationship(
        "ComplianceReview",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="ComplianceReview.created_at",
    )
