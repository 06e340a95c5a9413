"""Caller identity — exposes the acting user to every endpoint.

Authentication and profile storage live outside this service; an upstream
gateway resolves the session and forwards the caller as three headers:
``X-User-Id``, ``X-User-Role`` and ``X-Org-Id``. ``get_actor`` turns them
into an ``Actor`` that services use for every authorization decision.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from .logging_config import actor_id_var
from ..exceptions import AuthenticationError, ValidationError
from ..models.enums import UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """The user performing an operation."""

    user_id: str
    role: UserRole
    org_id: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def can_review(self) -> bool:
        return self.role in (UserRole.COMPLIANCE, UserRole.ADMIN)


def get_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
    x_org_id: Optional[str] = Header(default=None),
) -> Actor:
    """FastAPI dependency: build the Actor from gateway headers."""
    if not x_user_id or not x_user_role or not x_org_id:
        raise AuthenticationError("X-User-Id, X-User-Role and X-Org-Id headers are required")
    try:
        role = UserRole(x_user_role.lower())
    except ValueError:
        raise ValidationError(f"Unknown role: {x_user_role}", field="X-User-Role")

    actor_id_var.set(x_user_id)
    return Actor(user_id=x_user_id, role=role, org_id=x_org_id)
