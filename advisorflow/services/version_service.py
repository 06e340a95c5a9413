"""Version service — the append-only version ledger for content requests.

Every write goes through ``create_version``: number = max + 1, insert, then
move the request's ``current_version_id`` pointer to the new row. The
(request_id, version_number) unique constraint turns a racing duplicate into
a VersionConflictError; callers retry the whole read-modify-write cycle
once through ``with_conflict_retry``.
"""

import logging
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import VersionConflictError
from ..models import ContentRequest, ContentVersion
from ..models.enums import Generator
from ..repositories import RequestRepository, VersionRepository
from ..schemas.version import VersionCreate

logger = logging.getLogger(__name__)

T = TypeVar("T")


def with_conflict_retry(db: Session, operation: Callable[[], T], request_id: str) -> T:
    """Run ``operation``; on a retryable VersionConflictError roll back and run it once more."""
    try:
        return operation()
    except VersionConflictError as e:
        if not e.retryable:
            raise
        db.rollback()
        logger.warning(
            "Version conflict, retrying once",
            extra={"request_id": request_id},
        )
        return operation()


class VersionService:
    """Deep module over VersionRepository and the request's version pointer."""

    def __init__(self, db: Session):
        self.db = db
        self.request_repo = RequestRepository(db)
        self.version_repo = VersionRepository(db)

    def create_version(
        self,
        request_id: str,
        generator: Generator,
        title: str,
        body: str,
        disclaimers: Optional[str] = None,
        commit: bool = True,
        expected_base: Optional[int] = None,
    ) -> ContentVersion:
        """Append a version and make it current.

        Raises RequestNotFoundError for an unknown request and
        VersionConflictError if another writer took the same number. When
        ``expected_base`` is given, the body was built on that version and a
        ledger that has moved past it raises a retryable VersionConflictError
        before anything is written. With ``commit=False`` the caller owns the
        transaction.
        """
        request = self.request_repo.get_by_id(request_id)
        return self._append(request, generator, title, body, disclaimers, commit, expected_base)

    def _append(
        self,
        request: ContentRequest,
        generator: Generator,
        title: str,
        body: str,
        disclaimers: Optional[str],
        commit: bool,
        expected_base: Optional[int] = None,
    ) -> ContentVersion:
        latest_number = self.version_repo.max_version_number(request.id)
        if expected_base is not None and latest_number != expected_base:
            raise VersionConflictError(
                request.id,
                f"Request {request.id} moved to version {latest_number} while editing version {expected_base}",
            )
        number = latest_number + 1
        data = VersionCreate(
            request_id=request.id,
            generated_by=generator,
            title=title,
            body=body,
            disclaimers=disclaimers,
        )
        try:
            version = self.version_repo.insert(data, number)
        except IntegrityError as e:
            self.db.rollback()
            raise VersionConflictError(
                request.id, f"Version {number} of request {request.id} already exists"
            ) from e

        self.request_repo.update_current_version(request, version)
        if commit:
            self.db.commit()

        logger.info(
            "Created version",
            extra={
                "request_id": request.id,
                "version_number": number,
                "generated_by": generator.value,
            },
        )
        return version

    def get_current_version(self, request_id: str) -> Optional[ContentVersion]:
        """The version the request points at, or None before the first one.

        Falls back to the highest-numbered version when the pointer is
        missing but versions exist.
        """
        request = self.request_repo.get_by_id(request_id)
        if request.current_version_id:
            version = self.version_repo.get_by_id_optional(request.current_version_id)
            if version is not None:
                return version
        latest = self.version_repo.get_latest(request_id)
        if latest is not None:
            logger.warning(
                "Current version pointer is stale, using latest",
                extra={"request_id": request_id, "version_number": latest.version_number},
            )
        return latest

    def get_latest_version(self, request_id: str) -> Optional[ContentVersion]:
        """Highest-numbered version, recomputed from the ledger."""
        self.request_repo.get_by_id(request_id)
        return self.version_repo.get_latest(request_id)

    def list_versions(self, request_id: str) -> List[ContentVersion]:
        """Full history, version_number ascending."""
        self.request_repo.get_by_id(request_id)
        return self.version_repo.get_by_request(request_id)

    def get_version(self, request_id: str, version_id: str) -> ContentVersion:
        """One version by id. Raises VersionNotFoundError if it belongs elsewhere."""
        version = self.version_repo.get_by_id(version_id)
        if version.request_id != request_id:
            raise self.version_repo.not_found_error(version_id)
        return version

    def pointer_is_consistent(self, request_id: str) -> bool:
        """Whether current_version_id names the highest-numbered version."""
        request = self.request_repo.get_by_id(request_id)
        latest = self.version_repo.get_latest(request_id)
        if latest is None:
            return request.current_version_id is None
        return request.current_version_id == latest.id
