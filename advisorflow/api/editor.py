"""AI editor endpoints: generate, extend and selection rewrite."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from ..core.auth import Actor, get_actor
from ..database import get_db
from ..schemas.generation import EditResponse, ExtendRequest, GenerateRequest, RewriteRequest
from ..schemas.version import VersionResponse
from ..services import GenerationService, RewriteService
from ..services.generation_client import ContentGenerator
from ..services.rewrite_service import EditResult
from .generators import get_image_generator, get_text_generator

router = APIRouter(prefix="/api/requests/{request_id}", tags=["editor"])


def _edit_response(result: EditResult) -> EditResponse:
    return EditResponse(
        version=VersionResponse.model_validate(result.version),
        highlighted_body=result.highlighted_body,
        highlight_seconds=result.highlight_seconds,
    )


@router.post("/generate", response_model=VersionResponse, status_code=201)
async def generate(
    request_id: str,
    body: GenerateRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    text_generator: ContentGenerator = Depends(get_text_generator),
    image_generator: Optional[ContentGenerator] = Depends(get_image_generator),
):
    """Generate a draft (text, image or both) and store it as the next version."""
    service = GenerationService(db, text_generator, image_generator)
    return await service.generate(request_id, actor, body.mode, body.length_class)


@router.post("/extend", response_model=EditResponse, status_code=201)
async def extend(
    request_id: str,
    body: ExtendRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    text_generator: ContentGenerator = Depends(get_text_generator),
):
    """Expand the whole draft; new blocks come back highlighted."""
    result = await RewriteService(db, text_generator).extend(request_id, actor, body.length_class)
    return _edit_response(result)


@router.post("/rewrite", response_model=EditResponse, status_code=201)
async def rewrite(
    request_id: str,
    body: RewriteRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    text_generator: ContentGenerator = Depends(get_text_generator),
):
    """Rewrite one selected span; everything else in the body is kept as is."""
    service = RewriteService(db, text_generator)
    result = await service.rewrite(
        request_id, actor, body.selection, body.mode, body.compliance_note
    )
    return _edit_response(result)
