"""Version repository for database operations."""

import hashlib
from typing import List, Optional

from sqlalchemy import func

from ..models import ContentVersion
from ..schemas.version import VersionCreate
from ..exceptions import VersionNotFoundError
from .base import BaseRepository


def compute_content_hash(title: str, body: str, disclaimers: Optional[str]) -> str:
    """SHA256 over the three content fields, used to skip no-op saves."""
    digest = hashlib.sha256()
    for part in (title, body, disclaimers or ""):
        digest.update(part.encode())
        digest.update(b"\x00")
    return digest.hexdigest()


class VersionRepository(BaseRepository[ContentVersion]):
    """Append-only access to content versions. Nothing here updates or deletes."""

    model_class = ContentVersion
    not_found_error = VersionNotFoundError
    parent_column = "request_id"

    def max_version_number(self, request_id: str) -> int:
        """Highest version number for a request, 0 if it has none."""
        result = self.db.query(func.max(ContentVersion.version_number)).filter(
            ContentVersion.request_id == request_id
        ).scalar()
        return result or 0

    def insert(self, version: VersionCreate, version_number: int) -> ContentVersion:
        """Insert a version row with an explicit number.

        The (request_id, version_number) unique constraint makes a racing
        duplicate fail at flush time with IntegrityError.
        """
        return self._insert(
            request_id=version.request_id,
            version_number=version_number,
            generated_by=version.generated_by.value,
            title=version.title,
            body=version.body,
            disclaimers=version.disclaimers,
            content_hash=compute_content_hash(version.title, version.body, version.disclaimers),
        )

    def get_by_request(self, request_id: str) -> List[ContentVersion]:
        """All versions for a request, oldest first."""
        return self._for_request(request_id).order_by(ContentVersion.version_number.asc()).all()

    def get_latest(self, request_id: str) -> Optional[ContentVersion]:
        """Highest-numbered version for a request."""
        return self._for_request(request_id).order_by(ContentVersion.version_number.desc()).first()
