"""Generation service — composes one draft from the text and/or image generator.

A generate call runs under the request's write lock, awaits the generator(s)
while an optional observer is walked through the cosmetic progress phases,
and persists the composed draft as a single AI version. Any generator
failure aborts before anything is written; the provider's message is
surfaced unchanged and nothing is retried.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.auth import Actor
from ..exceptions import GenerationFailedError
from ..models import ContentRequest, ContentVersion
from ..models.enums import Generator, normalize_status
from ..repositories import RequestRepository
from ..schemas.generation import (
    GeneratedContent,
    GenerationMode,
    GenerationPayload,
    LengthClass,
)
from . import permission_service, state_machine
from .generation_client import ContentGenerator
from .progress import GENERATION_PHASES, ProgressObserver, run_with_progress
from .request_locks import request_locks
from .version_service import VersionService, with_conflict_retry

logger = logging.getLogger(__name__)

COMBINED_SEPARATOR = "<br/><hr/><br/>"


def payload_for(request: ContentRequest, length_class: LengthClass = LengthClass.MEDIUM, **fields) -> GenerationPayload:
    """Generator input built from the request's brief."""
    return GenerationPayload(
        topic=request.topic_text,
        content_type=request.content_type,
        instructions=request.instructions or "",
        length_class=length_class,
        **fields,
    )


def combine(image: GeneratedContent, text: GeneratedContent) -> GeneratedContent:
    """Image block first, then the article; the article's title wins."""
    return GeneratedContent(
        title=text.title or image.title,
        body=f"{image.body}{COMBINED_SEPARATOR}{text.body}",
        disclaimers=text.disclaimers or image.disclaimers,
    )


class GenerationService:
    """Orchestrates text and image generators into persisted drafts."""

    def __init__(
        self,
        db: Session,
        text_generator: ContentGenerator,
        image_generator: Optional[ContentGenerator] = None,
    ):
        self.db = db
        self.text_generator = text_generator
        self.image_generator = image_generator
        self.request_repo = RequestRepository(db)
        self.version_service = VersionService(db)

    async def compose(self, payload: GenerationPayload, mode: GenerationMode) -> GeneratedContent:
        """Run the generators ``mode`` asks for and compose their output."""
        if mode == GenerationMode.TEXT:
            return await self.text_generator.generate(payload)

        if self.image_generator is None:
            raise GenerationFailedError("Image generation is not configured")

        if mode == GenerationMode.IMAGE:
            image = await self.image_generator.generate(payload)
            return GeneratedContent(
                title=f"Visual Asset: {payload.topic}",
                body=image.body,
                disclaimers=image.disclaimers,
            )

        text_task = asyncio.ensure_future(self.text_generator.generate(payload))
        image_task = asyncio.ensure_future(self.image_generator.generate(payload))
        try:
            text, image = await asyncio.gather(text_task, image_task)
        except BaseException:
            for task in (text_task, image_task):
                task.cancel()
            raise
        return combine(image, text)

    async def generate(
        self,
        request_id: str,
        actor: Actor,
        mode: GenerationMode = GenerationMode.TEXT,
        length_class: LengthClass = LengthClass.MEDIUM,
        on_progress: Optional[ProgressObserver] = None,
    ) -> ContentVersion:
        """Generate a draft for the request and store it as the next AI version.

        The request stays in its current (editable) status.
        """
        async with request_locks.hold(request_id):
            request = self.request_repo.get_by_id(request_id)
            permission_service.ensure_can_author(actor, request)
            state_machine.ensure_editable(normalize_status(request.status), "generate")

            payload = payload_for(request, length_class)
            logger.info(
                "Generation started",
                extra={"request_id": request_id, "mode": mode.value, "length_class": length_class.value},
            )
            try:
                content = await run_with_progress(
                    self.compose(payload, mode), GENERATION_PHASES, on_progress
                )
            except GenerationFailedError as e:
                logger.warning(
                    "Generation failed",
                    extra={"request_id": request_id, "error": e.message},
                )
                raise

            version = with_conflict_retry(
                self.db,
                lambda: self.version_service.create_version(
                    request_id,
                    Generator.AI,
                    content.title or f"Deep Dive: {request.topic_text}",
                    content.body,
                    content.disclaimers,
                ),
                request_id,
            )
            logger.info(
                "Generation finished",
                extra={"request_id": request_id, "version_number": version.version_number},
            )
            return version
