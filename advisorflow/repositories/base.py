"""Base repository shared by the request, version and review repositories.

Repositories flush but never commit; the calling service owns the
transaction boundary. Versions and reviews are children of a content
request, so the base also knows how to scope a query to one request.
"""

import uuid
from typing import TypeVar, Generic, Optional, Type
from sqlalchemy.orm import Session, Query

from ..database import Base
from ..exceptions import AdvisorFlowError

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., ContentVersion)
        not_found_error: Exception class raised by get_by_id
        parent_column:   Column holding the owning request id, for child rows
    """

    model_class: Type[ModelT]
    not_found_error: Type[AdvisorFlowError]
    parent_column: Optional[str] = None

    def __init__(self, db: Session):
        self.db = db

    def _insert(self, **fields) -> ModelT:
        """Create a row with a fresh UUID, flush it and return it loaded."""
        entity = self.model_class(id=str(uuid.uuid4()), **fields)
        self.db.add(entity)
        self.db.flush()
        self.db.refresh(entity)
        return entity

    def _for_request(self, request_id: str) -> Query:
        """Rows belonging to one content request."""
        return self.db.query(self.model_class).filter(
            getattr(self.model_class, self.parent_column) == request_id
        )

    def get_by_id(self, entity_id: str) -> ModelT:
        """Get a row by primary key. Raises not_found_error if missing."""
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def get_by_id_optional(self, entity_id: str) -> Optional[ModelT]:
        return self.db.get(self.model_class, entity_id)
