# backend/infplatform/services/scheduling/actor.py
"""
Caller identity passed explicitly to every operation.
"""

from dataclasses import dataclass
from enum import Enum

from .errors import PermissionDenied


class Role(str, Enum):
    ADMIN = "admin"
    COMPANY = "company"
    STUDENT = "student"


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def require_admin(actor: Actor) -> None:
    """Raise PermissionDenied unless the actor is an admin."""
    if not actor.is_admin:
        raise PermissionDenied("Only admins can perform this operation")
