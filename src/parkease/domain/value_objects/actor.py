"""Caller identity value objects."""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class Role(Enum):
    """Caller role."""
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    """The user on whose behalf an operation runs."""

    user_id: UUID
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def owns(self, owner_id: UUID) -> bool:
        """Check whether this actor is the given owner."""
        return self.user_id == owner_id
