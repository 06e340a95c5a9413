"""Rewrite service — AI edits of an existing draft.

``rewrite`` transforms one user-selected span and leaves every other byte of
the body untouched; ``extend`` regrows the whole article. Both store the
result as the next AI version and hand back a highlighted copy of the body
for the editor to show for a few seconds. The highlight marker is never
stored.
"""

import html
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ..core.auth import Actor
from ..core.config import settings
from ..exceptions import (
    GenerationFailedError,
    PreconditionFailedError,
    SelectionInvalidError,
    ValidationError,
    VersionConflictError,
)
from ..models import ContentRequest, ContentVersion
from ..models.enums import Generator, normalize_status
from ..repositories import RequestRepository
from ..schemas.generation import (
    GenerationAction,
    LengthClass,
    RewriteMode,
    SelectionSpec,
)
from . import permission_service, state_machine
from .content_utils import html_to_text, mark_new_blocks, wrap_highlight
from .generation_client import ContentGenerator
from .generation_service import payload_for
from .progress import EXTENSION_PHASES, ProgressObserver, run_with_progress
from .request_locks import request_locks
from .selection import relocate_span, replace_span, resolve_selection
from .version_service import VersionService, with_conflict_retry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditResult:
    """A stored version plus its presentation overlay."""

    version: ContentVersion
    highlighted_body: str
    highlight_seconds: float


class RewriteService:
    """Selection rewrites and whole-document extension."""

    def __init__(
        self,
        db: Session,
        generator: ContentGenerator,
        min_selection_chars: Optional[int] = None,
        highlight_seconds: Optional[float] = None,
        new_block_min_chars: Optional[int] = None,
    ):
        self.db = db
        self.generator = generator
        self.min_selection_chars = min_selection_chars if min_selection_chars is not None else settings.min_selection_chars
        self.highlight_seconds = highlight_seconds if highlight_seconds is not None else settings.highlight_seconds
        self.new_block_min_chars = new_block_min_chars if new_block_min_chars is not None else settings.new_block_min_chars
        self.request_repo = RequestRepository(db)
        self.version_service = VersionService(db)

    def _load_editable(self, request_id: str, actor: Actor, action: str) -> tuple[ContentRequest, ContentVersion]:
        request = self.request_repo.get_by_id(request_id)
        permission_service.ensure_can_author(actor, request)
        status = normalize_status(request.status)
        state_machine.ensure_editable(status, action)

        current = self.version_service.get_current_version(request_id)
        if current is None:
            raise PreconditionFailedError(
                status.value, action, f"Cannot {action}: the request has no content version yet"
            )
        return request, current

    def _latest(self, request_id: str) -> ContentVersion:
        return self.version_service.get_latest_version(request_id)

    async def rewrite(
        self,
        request_id: str,
        actor: Actor,
        selection: SelectionSpec,
        mode: RewriteMode = RewriteMode.REWRITE,
        compliance_note: Optional[str] = None,
    ) -> EditResult:
        """Replace the selected span with the generator's rewrite of it.

        Raises SelectionInvalidError when the selection is too short, missing,
        ambiguous or leaves markup unbalanced, and GenerationFailedError when
        the generator fails or returns nothing. Either way no version is
        written. If another writer stored a version while the model was
        running, the passage is spliced into that newer body instead; when the
        selected text is gone from it, VersionConflictError is raised.
        """
        note = compliance_note.strip() if compliance_note else None
        if mode == RewriteMode.FIX_COMPLIANCE and not note:
            raise ValidationError("A compliance note is required to fix compliance", field="compliance_note")

        async with request_locks.hold(request_id):
            request, current = self._load_editable(request_id, actor, "rewrite")
            span = resolve_selection(current.body, selection, self.min_selection_chars)

            payload = payload_for(
                request,
                action=GenerationAction.REWRITE,
                current_content=span.text,
                rewrite_mode=mode,
                compliance_note=note,
            )
            generated = await self.generator.generate(payload)
            passage = " ".join(generated.body.split())
            if not passage:
                raise GenerationFailedError("The model returned an empty rewrite")
            replacement = html.escape(passage, quote=False)

            def splice() -> tuple[ContentVersion, str]:
                base = self._latest(request_id)
                target = span
                if base.id != current.id:
                    try:
                        target = relocate_span(span, current.body, base.body, self.min_selection_chars)
                    except SelectionInvalidError as e:
                        raise VersionConflictError(
                            request_id,
                            "The selected text was changed by another edit; select it again",
                            retryable=False,
                        ) from e
                    logger.info(
                        "Rewrite rebased onto newer version",
                        extra={"request_id": request_id, "base_version": base.version_number},
                    )
                version = self.version_service.create_version(
                    request_id,
                    Generator.AI,
                    base.title,
                    replace_span(base.body, target, replacement),
                    base.disclaimers,
                    expected_base=base.version_number,
                )
                return version, replace_span(base.body, target, wrap_highlight(replacement))

            version, highlighted = with_conflict_retry(self.db, splice, request_id)
            logger.info(
                "Rewrote selection",
                extra={
                    "request_id": request_id,
                    "mode": mode.value,
                    "version_number": version.version_number,
                    "selection_length": len(span.text),
                },
            )
            return EditResult(version, highlighted, self.highlight_seconds)

    async def extend(
        self,
        request_id: str,
        actor: Actor,
        length_class: LengthClass = LengthClass.MEDIUM,
        on_progress: Optional[ProgressObserver] = None,
    ) -> EditResult:
        """Grow the whole draft and highlight the blocks that are new.

        The extension replaces the whole body, so a version stored by another
        writer during the model call raises a non-retryable
        VersionConflictError rather than being overwritten.
        """
        async with request_locks.hold(request_id):
            request, current = self._load_editable(request_id, actor, "extend")

            payload = payload_for(
                request,
                length_class,
                action=GenerationAction.EXTEND,
                current_content=html_to_text(current.body),
            )
            generated = await run_with_progress(
                self.generator.generate(payload), EXTENSION_PHASES, on_progress
            )

            def store() -> ContentVersion:
                base = self._latest(request_id)
                if base.id != current.id:
                    raise VersionConflictError(
                        request_id,
                        f"The draft moved to version {base.version_number} while it was being extended; extend it again",
                        retryable=False,
                    )
                return self.version_service.create_version(
                    request_id,
                    Generator.AI,
                    base.title,
                    generated.body,
                    base.disclaimers,
                    expected_base=base.version_number,
                )

            version = with_conflict_retry(self.db, store, request_id)
            highlighted = mark_new_blocks(current.body, generated.body, self.new_block_min_chars)
            logger.info(
                "Extended draft",
                extra={"request_id": request_id, "version_number": version.version_number},
            )
            return EditResult(version, highlighted, self.highlight_seconds)
