"""Content version model."""

from sqlalchemy import Column, Index, String, Text, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base
from .content_request import _utcnow


class ContentVersion(Base):
    """Immutable snapshot of a request's title, body and disclaimers."""

    __tablename__ = "content_versions"
    __table_args__ = (
        # Two writers racing for the same number: the loser hits this.
        UniqueConstraint("request_id", "version_number", name="uq_content_versions_request_number"),
        Index("ix_content_versions_request_id", "request_id"),
    )

    id = Column(String(36), primary_key=True)
    request_id = Column(String(36), ForeignKey("content_requests.id", ondelete="CASCADE"), nullable=False)
    version_number = Column(Integer, nullable=False)

    generated_by = Column(String(10), nullable=False)  # 'ai' or 'human'

    # Content
    title = Column(Text, nullable=False)
    body = Column(Text, nullable=False)
    disclaimers = Column(Text, nullable=True)
    content_hash = Column(String(64), nullable=False)  # SHA256 of title+body+disclaimers

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    request = relationship("ContentRequest", back_populates="versions")
