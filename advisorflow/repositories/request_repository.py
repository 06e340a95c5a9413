"""Content request repository."""

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import func, or_

from ..models import ContentRequest, ContentVersion, ContentStatus
from ..schemas.request import RequestCreate, RequestUpdate
from ..exceptions import RequestNotFoundError, ValidationError
from .base import BaseRepository


def _escape_like(term: str) -> str:
    """Make LIKE wildcards in a search term match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class RequestRepository(BaseRepository[ContentRequest]):
    """Repository for content request rows.

    ``update_current_version`` and ``update_status`` are two of the four
    storage operations the workflow engine is built on (the other two live
    in VersionRepository and ReviewRepository). Each touches a single row.
    """

    model_class = ContentRequest
    not_found_error = RequestNotFoundError

    def create(self, org_id: str, advisor_id: str, data: RequestCreate) -> ContentRequest:
        return self._insert(
            org_id=org_id,
            advisor_id=advisor_id,
            client_id=data.client_id,
            topic_text=data.topic_text,
            content_type=data.content_type.value,
            instructions=data.instructions or "",
            status=ContentStatus.DRAFT.value,
            revision_cycle=0,
        )

    def update_fields(self, request: ContentRequest, data: RequestUpdate) -> ContentRequest:
        for field_name, value in data.model_dump(exclude_unset=True).items():
            if field_name == "instructions" and value is None:
                value = ""
            setattr(request, field_name, value)
        request.updated_at = datetime.now(timezone.utc)
        self.db.flush()
        return request

    def update_current_version(self, request: ContentRequest, version: ContentVersion) -> ContentRequest:
        """Point the request at ``version`` and bump updated_at."""
        if version.request_id != request.id:
            raise ValidationError(
                f"Version {version.id} belongs to request {version.request_id}, not {request.id}",
                field="current_version_id",
            )
        request.current_version_id = version.id
        request.updated_at = datetime.now(timezone.utc)
        self.db.flush()
        return request

    def update_status(self, request: ContentRequest, status: ContentStatus, **fields) -> ContentRequest:
        """Write a new status (plus any workflow bookkeeping fields)."""
        request.status = status.value
        for name, value in fields.items():
            setattr(request, name, value)
        request.updated_at = datetime.now(timezone.utc)
        self.db.flush()
        return request

    def _filtered(
        self,
        org_id: str,
        advisor_id: Optional[str] = None,
        statuses: Optional[Iterable[ContentStatus]] = None,
        search: Optional[str] = None,
    ):
        query = self.db.query(ContentRequest).filter(ContentRequest.org_id == org_id)
        if advisor_id:
            query = query.filter(ContentRequest.advisor_id == advisor_id)
        if statuses is not None:
            query = query.filter(ContentRequest.status.in_([s.value for s in statuses]))
        if search:
            pattern = f"%{_escape_like(search.strip())}%"
            # Title lives on the current version; outer join so versionless drafts still match by topic.
            query = query.outerjoin(
                ContentVersion, ContentVersion.id == ContentRequest.current_version_id
            ).filter(or_(
                ContentRequest.topic_text.ilike(pattern, escape="\\"),
                ContentVersion.title.ilike(pattern, escape="\\"),
            ))
        return query

    def list(
        self,
        org_id: str,
        advisor_id: Optional[str] = None,
        statuses: Optional[Iterable[ContentStatus]] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[ContentRequest]:
        """List requests newest-updated first."""
        return (
            self._filtered(org_id, advisor_id, statuses, search)
            .order_by(ContentRequest.updated_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_by_status(self, org_id: str, advisor_id: Optional[str] = None) -> dict[str, int]:
        """Return {status_value: count} for the org (optionally one advisor)."""
        query = self.db.query(ContentRequest.status, func.count(ContentRequest.id)).filter(
            ContentRequest.org_id == org_id
        )
        if advisor_id:
            query = query.filter(ContentRequest.advisor_id == advisor_id)
        return {status: count for status, count in query.group_by(ContentRequest.status).all()}
