"""Review workflow endpoints: submit, decisions, scheduling and publication."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import Actor, get_actor
from ..database import get_db
from ..schemas.request import RequestResponse
from ..schemas.review import DecisionRequest, ScheduleRequest, SubmitRequest
from ..services import WorkflowService

router = APIRouter(prefix="/api/requests/{request_id}", tags=["workflow"])


@router.post("/submit", response_model=RequestResponse)
async def submit(
    request_id: str,
    body: SubmitRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Submit (or resubmit) for compliance review, saving unsaved editor content first."""
    return await WorkflowService(db).submit(request_id, actor, body.draft)


@router.post("/approve", response_model=RequestResponse)
async def approve(
    request_id: str,
    body: DecisionRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return await WorkflowService(db).approve(request_id, actor, body.notes)


@router.post("/request-changes", response_model=RequestResponse)
async def request_changes(
    request_id: str,
    body: DecisionRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Send back to the advisor. Notes are required."""
    return await WorkflowService(db).request_changes(request_id, actor, body.notes or "")


@router.post("/reject", response_model=RequestResponse)
async def reject(
    request_id: str,
    body: DecisionRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Reject for good. Notes are required."""
    return await WorkflowService(db).reject(request_id, actor, body.notes or "")


@router.post("/schedule", response_model=RequestResponse)
async def schedule(
    request_id: str,
    body: ScheduleRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return await WorkflowService(db).schedule(request_id, actor, body.scheduled_for)


@router.post("/publish", response_model=RequestResponse)
async def publish(
    request_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return await WorkflowService(db).publish(request_id, actor)
