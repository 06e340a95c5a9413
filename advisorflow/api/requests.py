"""Content request API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from ..core.auth import Actor, get_actor
from ..database import get_db
from ..schemas.request import RequestCreate, RequestListItem, RequestResponse, RequestUpdate, StatusCounts
from ..schemas.review import ReviewResponse
from ..services import RequestService, WorkflowService
from ..services.request_service import LibraryFilter

router = APIRouter(prefix="/api/requests", tags=["requests"])


@router.post("", response_model=RequestResponse, status_code=201)
def create_request(
    data: RequestCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Start a new content request in DRAFT."""
    return RequestService(db).create_request(actor, data)


@router.get("", response_model=List[RequestListItem])
def list_requests(
    status_filter: LibraryFilter = Query(LibraryFilter.ALL),
    search: Optional[str] = Query(None, max_length=200),
    advisor_id: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Library listing, most recently updated first."""
    return RequestService(db).list_requests(actor, status_filter, search, advisor_id, skip, limit)


@router.get("/counts", response_model=StatusCounts)
def status_counts(
    advisor_id: Optional[str] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return RequestService(db).status_counts(actor, advisor_id)


@router.get("/review-queue", response_model=List[RequestListItem])
def review_queue(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Requests awaiting a compliance decision."""
    return RequestService(db).review_queue(actor, skip, limit)


@router.get("/{request_id}", response_model=RequestResponse)
def get_request(
    request_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return RequestService(db).get_request(request_id, actor)


@router.patch("/{request_id}", response_model=RequestResponse)
def update_request(
    request_id: str,
    data: RequestUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Edit the brief while the request is a draft or has changes requested."""
    return RequestService(db).update_request(request_id, actor, data)


@router.get("/{request_id}/reviews", response_model=List[ReviewResponse])
def list_reviews(
    request_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Review decision history, oldest first."""
    return RequestService(db).list_reviews(request_id, actor)


@router.get("/{request_id}/actions", response_model=List[str])
def allowed_actions(
    request_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Workflow actions the caller may attempt from the current status."""
    return [action.value for action in WorkflowService(db).allowed_actions(request_id, actor)]
