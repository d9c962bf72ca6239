"""
Caller identity for the ParkEase API.

Identity is asserted by the trusted gateway in front of the API through the
``X-User-Id`` and ``X-User-Role`` headers. No tokens are issued or verified
here.
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from parkease.domain.value_objects.actor import Actor, Role
from parkease.infrastructure.logging import get_logger

logger = get_logger(__name__)


async def get_current_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None)
) -> Actor:
    """
    FastAPI dependency returning the caller.

    Raises:
        HTTPException: 401 if the user id header is missing or malformed or
                      the role is unknown
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header"
        )

    try:
        user_id = UUID(x_user_id)
    except ValueError:
        logger.warning("Malformed X-User-Id header", extra={"x_user_id": x_user_id})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid X-User-Id header"
        )

    try:
        role = Role((x_user_role or Role.USER.value).lower())
    except ValueError:
        logger.warning("Unknown X-User-Role header", extra={"x_user_role": x_user_role})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid X-User-Role header"
        )

    return Actor(user_id=user_id, role=role)


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """FastAPI dependency that only admits administrators."""
    if not actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return actor
