"""Workflow service — applies state-machine transitions to stored requests.

Each transition is one transaction: optional draft save (as a human
version), status update, optional review row. Either all of it commits or
none of it does. The rules themselves live in ``state_machine``; this
module loads state, asks for a plan and writes it.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ..core.auth import Actor
from ..core.config import SelfReviewPolicy, settings
from ..exceptions import ValidationError, VersionConflictError
from ..models import ContentRequest, ContentVersion
from ..models.enums import Generator, normalize_status
from ..repositories import RequestRepository, ReviewRepository, compute_content_hash
from ..schemas.version import EditorDraft
from . import permission_service, state_machine
from .content_utils import strip_highlight
from .request_locks import request_locks
from .state_machine import Action
from .version_service import VersionService, with_conflict_retry

logger = logging.getLogger(__name__)


def check_base_version(request_id: str, draft: EditorDraft, current: Optional[ContentVersion]) -> None:
    """Reject a draft edited on top of a version that is no longer current."""
    if draft.base_version_number is None:
        return
    current_number = current.version_number if current is not None else 0
    if draft.base_version_number != current_number:
        raise VersionConflictError(
            request_id,
            f"Draft was based on version {draft.base_version_number}, "
            f"but the current version is {current_number}",
            retryable=False,
        )


class WorkflowService:
    """Submit, review and publication transitions."""

    def __init__(self, db: Session, self_review_policy: Optional[SelfReviewPolicy] = None):
        self.db = db
        self.self_review_policy = self_review_policy or settings.self_review_policy
        self.request_repo = RequestRepository(db)
        self.review_repo = ReviewRepository(db)
        self.version_service = VersionService(db)

    def _save_draft(
        self, request: ContentRequest, current: ContentVersion, draft: EditorDraft
    ) -> ContentVersion:
        """Store the editor's content as a human version unless it is unchanged."""
        check_base_version(request.id, draft, current)
        body = strip_highlight(draft.body)
        if compute_content_hash(draft.title, body, draft.disclaimers) == current.content_hash:
            return current
        return self.version_service.create_version(
            request.id, Generator.HUMAN, draft.title, body, draft.disclaimers, commit=False
        )

    def _transition(
        self,
        request_id: str,
        actor: Actor,
        action: Optional[Action],
        notes: Optional[str] = None,
        draft: Optional[EditorDraft] = None,
        scheduled_for: Optional[datetime] = None,
    ) -> ContentRequest:
        try:
            request = self.request_repo.get_by_id(request_id)
            status = normalize_status(request.status)
            if action is None:
                action = state_machine.submit_action_for(status)

            current = self.version_service.get_current_version(request_id)
            plan = state_machine.plan_transition(
                request,
                status,
                action,
                actor,
                has_version=current is not None,
                notes=notes,
                self_review_policy=self.self_review_policy,
            )

            if plan.rule.saves_draft and draft is not None:
                current = self._save_draft(request, current, draft)

            fields: dict = {}
            if plan.rule.bumps_revision:
                fields["revision_cycle"] = (request.revision_cycle or 0) + 1
            if scheduled_for is not None:
                fields["scheduled_for"] = scheduled_for
            self.request_repo.update_status(request, plan.target, **fields)

            if plan.rule.decision is not None:
                self.review_repo.insert(
                    request_id,
                    actor.user_id,
                    plan.rule.decision,
                    plan.notes,
                    version_id=current.id if current is not None else None,
                    self_review=plan.self_review,
                )

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(request)
        if plan.self_review:
            logger.warning(
                "Self-review recorded",
                extra={"request_id": request_id, "reviewer_id": actor.user_id, "action": action.value},
            )
        logger.info(
            "Status changed",
            extra={
                "request_id": request_id,
                "action": action.value,
                "from_status": status.value,
                "to_status": plan.target.value,
            },
        )
        return request

    async def _run(self, request_id: str, actor: Actor, action: Optional[Action], **kwargs) -> ContentRequest:
        async with request_locks.hold(request_id):
            return with_conflict_retry(
                self.db,
                lambda: self._transition(request_id, actor, action, **kwargs),
                request_id,
            )

    async def submit(self, request_id: str, actor: Actor, draft: Optional[EditorDraft] = None) -> ContentRequest:
        """Send the request to review (a resubmission from CHANGES_REQUESTED).

        ``draft`` is what the editor shows; it is saved first when it differs
        from the current version. A request with no version cannot be
        submitted.
        """
        return await self._run(request_id, actor, None, draft=draft)

    async def approve(self, request_id: str, actor: Actor, notes: Optional[str] = None) -> ContentRequest:
        return await self._run(request_id, actor, Action.APPROVE, notes=notes)

    async def request_changes(self, request_id: str, actor: Actor, notes: str) -> ContentRequest:
        return await self._run(request_id, actor, Action.REQUEST_CHANGES, notes=notes)

    async def reject(self, request_id: str, actor: Actor, notes: str) -> ContentRequest:
        return await self._run(request_id, actor, Action.REJECT, notes=notes)

    async def schedule(self, request_id: str, actor: Actor, scheduled_for: datetime) -> ContentRequest:
        """Schedule an approved request. ``scheduled_for`` must be in the future."""
        when = scheduled_for if scheduled_for.tzinfo else scheduled_for.replace(tzinfo=timezone.utc)
        if when <= datetime.now(timezone.utc):
            raise ValidationError("Scheduled time must be in the future", field="scheduled_for")
        return await self._run(request_id, actor, Action.SCHEDULE, scheduled_for=when)

    async def publish(self, request_id: str, actor: Actor) -> ContentRequest:
        return await self._run(request_id, actor, Action.PUBLISH)

    def allowed_actions(self, request_id: str, actor: Actor) -> list[Action]:
        request = self.request_repo.get_by_id(request_id)
        permission_service.ensure_visible(actor, request)
        status = normalize_status(request.status)
        return state_machine.allowed_actions(request, status, actor, self.self_review_policy)
