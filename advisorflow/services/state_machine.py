"""Content lifecycle state machine — pure functions, no database access.

    DRAFT ──submit──▶ IN_REVIEW ──approve──────────▶ APPROVED ──publish──▶ POSTED
      ▲                  │  │                           │
      │                  │  └──reject──▶ REJECTED       └──schedule──▶ SCHEDULED ──publish──▶ POSTED
      │                  └──request_changes──▶ CHANGES_REQUESTED
      │                                              │
      └──────── (same editing rights) ◀──────────────┘──resubmit──▶ IN_REVIEW

REJECTED and POSTED are terminal. ``plan_transition`` validates an action
against the table, the actor and the preconditions, and returns a
``TransitionPlan`` describing what WorkflowService must write. Nothing here
mutates anything; callers apply the plan inside one transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..core.config import SelfReviewPolicy
from ..exceptions import ForbiddenError, InvalidTransitionError, PreconditionFailedError
from ..models.enums import ContentStatus, ReviewDecision
from . import permission_service

if TYPE_CHECKING:
    from ..core.auth import Actor
    from ..models import ContentRequest


class Action(str, Enum):
    SUBMIT = "submit"
    RESUBMIT = "resubmit"
    APPROVE = "approve"
    REQUEST_CHANGES = "request_changes"
    REJECT = "reject"
    SCHEDULE = "schedule"
    PUBLISH = "publish"


class Party(str, Enum):
    """Which side of the workflow owns an action."""
    AUTHOR = "author"      # request's advisor, or an admin
    REVIEWER = "reviewer"  # compliance, or an admin


@dataclass(frozen=True)
class TransitionRule:
    source: ContentStatus
    action: Action
    target: ContentStatus
    party: Party
    requires_version: bool = False
    requires_notes: bool = False
    decision: Optional[ReviewDecision] = None
    saves_draft: bool = False
    bumps_revision: bool = False


_RULES = (
    TransitionRule(ContentStatus.DRAFT, Action.SUBMIT, ContentStatus.IN_REVIEW, Party.AUTHOR,
                   requires_version=True, saves_draft=True),
    TransitionRule(ContentStatus.CHANGES_REQUESTED, Action.RESUBMIT, ContentStatus.IN_REVIEW, Party.AUTHOR,
                   requires_version=True, saves_draft=True, bumps_revision=True),
    TransitionRule(ContentStatus.IN_REVIEW, Action.APPROVE, ContentStatus.APPROVED, Party.REVIEWER,
                   decision=ReviewDecision.APPROVED),
    TransitionRule(ContentStatus.IN_REVIEW, Action.REQUEST_CHANGES, ContentStatus.CHANGES_REQUESTED, Party.REVIEWER,
                   requires_notes=True, decision=ReviewDecision.CHANGES_REQUESTED),
    TransitionRule(ContentStatus.IN_REVIEW, Action.REJECT, ContentStatus.REJECTED, Party.REVIEWER,
                   requires_notes=True, decision=ReviewDecision.REJECTED),
    TransitionRule(ContentStatus.APPROVED, Action.SCHEDULE, ContentStatus.SCHEDULED, Party.AUTHOR,
                   requires_version=True),
    TransitionRule(ContentStatus.APPROVED, Action.PUBLISH, ContentStatus.POSTED, Party.AUTHOR,
                   requires_version=True),
    TransitionRule(ContentStatus.SCHEDULED, Action.PUBLISH, ContentStatus.POSTED, Party.AUTHOR,
                   requires_version=True),
)

TRANSITIONS: dict[tuple[ContentStatus, Action], TransitionRule] = {
    (rule.source, rule.action): rule for rule in _RULES
}

# States in which the advisor may change topic, instructions or the body.
EDITABLE_STATUSES = frozenset({ContentStatus.DRAFT, ContentStatus.CHANGES_REQUESTED})
TERMINAL_STATUSES = frozenset({ContentStatus.REJECTED, ContentStatus.POSTED})


@dataclass(frozen=True)
class TransitionPlan:
    """A validated transition, ready to be applied."""
    rule: TransitionRule
    notes: Optional[str] = None
    self_review: bool = False

    @property
    def target(self) -> ContentStatus:
        return self.rule.target


def find_rule(status: ContentStatus, action: Action) -> TransitionRule:
    """Look up the rule for ``action`` from ``status`` or raise InvalidTransitionError."""
    rule = TRANSITIONS.get((status, action))
    if rule is None:
        raise InvalidTransitionError(status.value, action.value)
    return rule


def next_status(status: ContentStatus, action: Action) -> ContentStatus:
    """The status ``action`` leads to from ``status``."""
    return find_rule(status, action).target


def submit_action_for(status: ContentStatus) -> Action:
    """Submitting from CHANGES_REQUESTED is a resubmission."""
    if status == ContentStatus.CHANGES_REQUESTED:
        return Action.RESUBMIT
    return Action.SUBMIT


def is_editable(status: ContentStatus) -> bool:
    return status in EDITABLE_STATUSES


def ensure_editable(status: ContentStatus, action: str = "edit") -> None:
    if not is_editable(status):
        raise InvalidTransitionError(status.value, action)


def _authorize(
    rule: TransitionRule,
    actor: Actor,
    request: ContentRequest,
    self_review_policy: SelfReviewPolicy,
) -> bool:
    """Raise ForbiddenError if ``actor`` may not take ``rule``. Returns the self-review flag."""
    if rule.party == Party.AUTHOR:
        permission_service.ensure_can_author(actor, request)
        return False

    permission_service.ensure_visible(actor, request)
    if not permission_service.can_review(actor, request):
        raise ForbiddenError("Only compliance officers and admins can record review decisions")
    if not permission_service.is_owner(actor, request):
        return False
    if self_review_policy == SelfReviewPolicy.DENY:
        raise ForbiddenError("Reviewers cannot decide on their own submissions")
    return True


def plan_transition(
    request: ContentRequest,
    status: ContentStatus,
    action: Action,
    actor: Actor,
    *,
    has_version: bool,
    notes: Optional[str] = None,
    self_review_policy: SelfReviewPolicy = SelfReviewPolicy.DENY,
) -> TransitionPlan:
    """Validate ``action`` and return the plan. Raises, never partially succeeds.

    Check order: state table, then authorization, then preconditions, so a
    caller always learns about the most fundamental problem first.
    """
    rule = find_rule(status, action)
    self_review = _authorize(rule, actor, request, self_review_policy)

    if rule.requires_version and not has_version:
        raise PreconditionFailedError(
            status.value, action.value, f"Cannot {action.value}: the request has no content version yet"
        )

    cleaned = notes.strip() if notes else None
    if rule.requires_notes and not cleaned:
        raise PreconditionFailedError(
            status.value, action.value, f"Cannot {action.value} without reviewer notes"
        )

    return TransitionPlan(rule=rule, notes=cleaned or None, self_review=self_review)


def allowed_actions(
    request: ContentRequest,
    status: ContentStatus,
    actor: Actor,
    self_review_policy: SelfReviewPolicy = SelfReviewPolicy.DENY,
) -> list[Action]:
    """Actions the actor could attempt now (preconditions not evaluated)."""
    actions = []
    for (source, action), rule in TRANSITIONS.items():
        if source != status:
            continue
        try:
            _authorize(rule, actor, request, self_review_policy)
        except ForbiddenError:
            continue
        actions.append(action)
    return actions