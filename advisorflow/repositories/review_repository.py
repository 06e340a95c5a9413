"""Compliance review repository."""

from typing import List, Optional

from ..models import ComplianceReview, ReviewDecision
from ..exceptions import ReviewNotFoundError
from .base import BaseRepository


class ReviewRepository(BaseRepository[ComplianceReview]):
    """Insert-only access to review decisions."""

    model_class = ComplianceReview
    not_found_error = ReviewNotFoundError
    parent_column = "request_id"

    def insert(
        self,
        request_id: str,
        reviewer_id: str,
        decision: ReviewDecision,
        notes: Optional[str],
        version_id: Optional[str] = None,
        self_review: bool = False,
    ) -> ComplianceReview:
        return self._insert(
            request_id=request_id,
            reviewer_id=reviewer_id,
            version_id=version_id,
            decision=decision.value,
            notes=notes,
            self_review=self_review,
        )

    def get_by_request(self, request_id: str) -> List[ComplianceReview]:
        """Full decision history, oldest first."""
        return self._for_request(request_id).order_by(
            ComplianceReview.created_at.asc(), ComplianceReview.id.asc()
        ).all()
