"""Identity models: users, family memberships, and sessions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class Role(str, Enum):
    """Role of a user inside a family."""

    parent = "parent"
    child = "child"
    professional = "professional"


@dataclass
class User:
    """Represents an authenticated user."""

    id: str
    email: str
    display_name: str = ""
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = _utcnow()


@dataclass
class FamilyMember:
    """Membership of a user in a family, with the role they hold there."""

    family_id: str
    user_id: str
    role: Role = Role.parent
    joined_at: str = ""

    def __post_init__(self) -> None:
        if not self.joined_at:
            self.joined_at = _utcnow()
        if isinstance(self.role, str):
            self.role = Role(self.role)


@dataclass
class Session:
    """Represents an active user session."""

    id: str
    user_id: str
    token: str
    created_at: str = ""
    expires_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = _utcnow()
