"""Version API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from ..core.auth import Actor, get_actor
from ..database import get_db
from ..schemas.version import EditorDraft, VersionResponse
from ..services import RequestService, VersionService

router = APIRouter(prefix="/api/requests/{request_id}/versions", tags=["versions"])


def _verify_read(db: Session, actor: Actor, request_id: str) -> None:
    """Raises RequestNotFoundError / ForbiddenError before any version is read."""
    RequestService(db).get_request(request_id, actor)


@router.get("", response_model=List[VersionResponse])
def list_versions(
    request_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Full history, version number ascending."""
    _verify_read(db, actor, request_id)
    return VersionService(db).list_versions(request_id)


@router.post("", response_model=VersionResponse, status_code=201)
async def save_version(
    request_id: str,
    draft: EditorDraft,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Save the editor's content as a human version."""
    return await RequestService(db).save_version(request_id, actor, draft)


@router.get("/current", response_model=Optional[VersionResponse])
def get_current_version(
    request_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """The version the request points at (null before the first one)."""
    _verify_read(db, actor, request_id)
    return VersionService(db).get_current_version(request_id)


@router.get("/latest", response_model=Optional[VersionResponse])
def get_latest_version(
    request_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Highest-numbered version, recomputed from the history."""
    _verify_read(db, actor, request_id)
    return VersionService(db).get_latest_version(request_id)


@router.get("/{version_id}", response_model=VersionResponse)
def get_version(
    request_id: str,
    version_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    _verify_read(db, actor, request_id)
    return VersionService(db).get_version(request_id, version_id)
