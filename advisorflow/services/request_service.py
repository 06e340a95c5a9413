"""Request service — deep module for the content request lifecycle outside review.

Owns creating and editing briefs, the library listing with its filter tabs,
the compliance review queue, review history, and manual editor saves.
"""

import logging
from enum import Enum
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.auth import Actor
from ..exceptions import ForbiddenError
from ..models import ComplianceReview, ContentRequest, ContentVersion
from ..models.enums import ContentStatus, Generator, UserRole, normalize_status
from ..repositories import RequestRepository, ReviewRepository, VersionRepository, compute_content_hash
from ..schemas.request import RequestCreate, RequestListItem, RequestUpdate, StatusCounts
from ..schemas.version import EditorDraft
from . import permission_service, state_machine
from .content_utils import strip_highlight
from .request_locks import request_locks
from .version_service import VersionService, with_conflict_retry
from .workflow_service import check_base_version

logger = logging.getLogger(__name__)


class LibraryFilter(str, Enum):
    """Library tabs and the statuses each one shows."""
    ALL = "all"
    DRAFTS = "drafts"
    IN_REVIEW = "in_review"
    APPROVED = "approved"


LIBRARY_STATUSES = {
    LibraryFilter.ALL: None,
    LibraryFilter.DRAFTS: (ContentStatus.DRAFT, ContentStatus.CHANGES_REQUESTED),
    LibraryFilter.IN_REVIEW: (ContentStatus.IN_REVIEW, ContentStatus.SUBMITTED),
    LibraryFilter.APPROVED: (ContentStatus.APPROVED,),
}


class RequestService:
    """Request CRUD, library views and manual saves."""

    def __init__(self, db: Session):
        self.db = db
        self.request_repo = RequestRepository(db)
        self.review_repo = ReviewRepository(db)
        self.version_repo = VersionRepository(db)
        self.version_service = VersionService(db)

    def create_request(self, actor: Actor, data: RequestCreate) -> ContentRequest:
        """Start a new request in DRAFT, owned by the acting advisor."""
        permission_service.ensure_can_create(actor)
        request = self.request_repo.create(actor.org_id, actor.user_id, data)
        self.db.commit()
        logger.info(
            "Created request",
            extra={"request_id": request.id, "content_type": request.content_type},
        )
        return request

    def get_request(self, request_id: str, actor: Actor) -> ContentRequest:
        request = self.request_repo.get_by_id(request_id)
        permission_service.ensure_visible(actor, request)
        return request

    def update_request(self, request_id: str, actor: Actor, data: RequestUpdate) -> ContentRequest:
        """Edit the brief. Only while editable, only by its advisor or an admin."""
        request = self.request_repo.get_by_id(request_id)
        permission_service.ensure_can_author(actor, request)
        state_machine.ensure_editable(normalize_status(request.status), "edit")
        self.request_repo.update_fields(request, data)
        self.db.commit()
        self.db.refresh(request)
        return request

    def _advisor_scope(self, actor: Actor, advisor_id: Optional[str]) -> Optional[str]:
        # Advisors only ever see their own library.
        if actor.role == UserRole.ADVISOR:
            return actor.user_id
        return advisor_id

    def list_requests(
        self,
        actor: Actor,
        status_filter: LibraryFilter = LibraryFilter.ALL,
        search: Optional[str] = None,
        advisor_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[RequestListItem]:
        """Library listing, most recently updated first."""
        requests = self.request_repo.list(
            actor.org_id,
            advisor_id=self._advisor_scope(actor, advisor_id),
            statuses=LIBRARY_STATUSES[status_filter],
            search=search,
            skip=skip,
            limit=limit,
        )
        return [self._list_item(request) for request in requests]

    def _list_item(self, request: ContentRequest) -> RequestListItem:
        title = None
        if request.current_version_id:
            version = self.version_repo.get_by_id_optional(request.current_version_id)
            title = version.title if version is not None else None
        return RequestListItem(
            id=request.id,
            topic_text=request.topic_text,
            content_type=request.content_type,
            status=normalize_status(request.status),
            advisor_id=request.advisor_id,
            title=title,
            updated_at=request.updated_at,
        )

    def status_counts(self, actor: Actor, advisor_id: Optional[str] = None) -> StatusCounts:
        """Number of requests behind each library tab."""
        raw = self.request_repo.count_by_status(actor.org_id, self._advisor_scope(actor, advisor_id))
        counts = {}
        for library_filter, statuses in LIBRARY_STATUSES.items():
            if statuses is None:
                counts[library_filter.value] = sum(raw.values())
            else:
                counts[library_filter.value] = sum(raw.get(s.value, 0) for s in statuses)
        return StatusCounts(**counts)

    def review_queue(self, actor: Actor, skip: int = 0, limit: int = 100) -> List[RequestListItem]:
        """Requests waiting on a compliance decision."""
        if not actor.can_review:
            raise ForbiddenError("Only compliance officers and admins see the review queue")
        requests = self.request_repo.list(
            actor.org_id,
            statuses=LIBRARY_STATUSES[LibraryFilter.IN_REVIEW],
            skip=skip,
            limit=limit,
        )
        return [self._list_item(request) for request in requests]

    def list_reviews(self, request_id: str, actor: Actor) -> List[ComplianceReview]:
        """Decision history, oldest first."""
        self.get_request(request_id, actor)
        return self.review_repo.get_by_request(request_id)

    async def save_version(self, request_id: str, actor: Actor, draft: EditorDraft) -> ContentVersion:
        """Store the editor's content as a human version.

        Raises VersionConflictError when ``draft.base_version_number`` is not
        the current version number. An unchanged draft returns the current
        version without writing.
        """
        async with request_locks.hold(request_id):
            request = self.request_repo.get_by_id(request_id)
            permission_service.ensure_can_author(actor, request)
            state_machine.ensure_editable(normalize_status(request.status), "save")

            current = self.version_service.get_current_version(request_id)
            check_base_version(request_id, draft, current)

            body = strip_highlight(draft.body)
            if current is not None and compute_content_hash(draft.title, body, draft.disclaimers) == current.content_hash:
                return current

            return with_conflict_retry(
                self.db,
                lambda: self.version_service.create_version(
                    request_id, Generator.HUMAN, draft.title, body, draft.disclaimers
                ),
                request_id,
            )
