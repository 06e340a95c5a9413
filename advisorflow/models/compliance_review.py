"""Compliance review model."""

from sqlalchemy import Boolean, Column, Index, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from ..database import Base
from .content_request import _utcnow


class ComplianceReview(Base):
    """One reviewer decision against a request. Never updated."""

    __tablename__ = "compliance_reviews"
    __table_args__ = (
        Index("ix_compliance_reviews_request_id", "request_id"),
    )

    id = Column(String(36), primary_key=True)
    request_id = Column(String(36), ForeignKey("content_requests.id", ondelete="CASCADE"), nullable=False)
    reviewer_id = Column(String(64), nullable=False)
    # Version the decision was made against
    version_id = Column(String(36), ForeignKey("content_versions.id"), nullable=True)

    decision = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    # Set when the reviewer also authored the request (self_review_policy=flag)
    self_review = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    request = relationship("ContentRequest", back_populates="reviews")
