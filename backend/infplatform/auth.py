# backend/infplatform/auth.py
"""
Caller identity for HTTP requests.

Authentication happens in the gateway. The backend receives a normalized
identity in trusted headers:

    X-User-Id:   numeric id (students.id / companies.id / admin user id)
    X-User-Role: admin | company | student
"""

from fastapi import Depends, Header, HTTPException, status

from .services.scheduling.actor import Actor, Role


def get_actor(
    x_user_id: int | None = Header(None),
    x_user_role: str | None = Header(None),
) -> Actor:
    if x_user_id is None or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing identity",
        )
    try:
        role = Role(x_user_role.lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role: {x_user_role}",
        ) from None
    return Actor(user_id=x_user_id, role=role)


def require_role(*roles: Role):
    """Dependency factory: actor must have one of `roles`."""

    def _dependency(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return actor

    return _dependency
