"""Permission checking — pure functions over (actor, request).

This is the ONE place where ownership rules are defined:
    - Every operation requires the actor to belong to the request's organization.
    - Editing and the advisor-side transitions (submit, schedule, publish) belong
      to the request's own advisor; admins may act on any request in their org.
    - Review decisions belong to compliance officers and admins.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..exceptions import ForbiddenError
from ..models.enums import UserRole

if TYPE_CHECKING:
    from ..core.auth import Actor
    from ..models import ContentRequest


def same_org(actor: Actor, request: ContentRequest) -> bool:
    return actor.org_id == request.org_id


def is_owner(actor: Actor, request: ContentRequest) -> bool:
    return actor.user_id == request.advisor_id


def can_author(actor: Actor, request: ContentRequest) -> bool:
    """Whether the actor holds editing rights on the request."""
    if not same_org(actor, request):
        return False
    if actor.is_admin:
        return True
    return actor.role == UserRole.ADVISOR and is_owner(actor, request)


def can_review(actor: Actor, request: ContentRequest) -> bool:
    """Whether the actor may record a decision (self-review is judged separately)."""
    return same_org(actor, request) and actor.can_review


def ensure_visible(actor: Actor, request: ContentRequest) -> None:
    """Requests from other organizations are never readable."""
    if not same_org(actor, request):
        raise ForbiddenError("Request belongs to another organization")


def ensure_can_author(actor: Actor, request: ContentRequest) -> None:
    ensure_visible(actor, request)
    if not can_author(actor, request):
        raise ForbiddenError("Only the request's advisor or an admin may do this")


def ensure_can_create(actor: Actor) -> None:
    if actor.role not in (UserRole.ADVISOR, UserRole.ADMIN):
        raise ForbiddenError("Only advisors and admins can start content requests")
