"""
Staff roles and the actor descriptor handed to the workflow engine.

Every workflow call receives an Actor rather than a Django user so the
engine never has to know how the caller authenticated.
"""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Newsroom roles, lowest privilege first."""

    CONTRIBUTOR = "CONTRIBUTOR"
    AUTHOR = "AUTHOR"
    SENIOR_WRITER = "SENIOR_WRITER"
    EDITOR = "EDITOR"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"

    @classmethod
    def from_string(cls, value: str) -> 'Role':
        """Convert string to Role, raising ValueError for unknown roles."""
        try:
            return cls(value.upper())
        except (ValueError, AttributeError):
            raise ValueError(f"Invalid role: {value}")

    @classmethod
    def choices(cls):
        return [(role.value, role.value.replace('_', ' ').title()) for role in cls]

    @property
    def is_admin(self) -> bool:
        return self in ADMIN_ROLES

    @property
    def is_staff(self) -> bool:
        return self in STAFF_ROLES


ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})

# Roles with desk (read) access to every article
STAFF_ROLES = frozenset({Role.EDITOR, Role.ADMIN, Role.SUPER_ADMIN})

SYSTEM_ACTOR_ID = "system"


@dataclass(frozen=True)
class Actor:
    """An authenticated caller: who acts, under which role."""

    id: str
    display_name: str
    role: Role

    @property
    def is_system(self) -> bool:
        return self.id == SYSTEM_ACTOR_ID

    @classmethod
    def from_user(cls, user) -> 'Actor':
        """Build an actor from a Django user and its StaffProfile."""
        from apps.core.permissions import get_user_role

        display_name = user.get_full_name() or user.email or user.username
        return cls(id=str(user.pk), display_name=display_name, role=get_user_role(user))

    @classmethod
    def system(cls) -> 'Actor':
        """Actor used by scheduled jobs."""
        return cls(id=SYSTEM_ACTOR_ID, display_name="System", role=Role.SUPER_ADMIN)
