"""File-based JSON storage for identity data.

Provides a DB-ready interface backed by simple JSON files under
~/.tonemeter/auth/.
"""

from __future__ import annotations

import json
import secrets
import uuid
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from tonemeter.auth.models import FamilyMember, Role, Session, User


class UserStore:
    """File-based storage for users, family memberships, and sessions.

    Storage path: ``~/.tonemeter/auth/`` with:
    - ``users.json`` -- list of user dicts
    - ``members.json`` -- list of family membership dicts
    - ``sessions.json`` -- list of session dicts
    """

    def __init__(self, base_dir: str | Path | None = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".tonemeter" / "auth"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._users_path = self._base / "users.json"
        self._members_path = self._base / "members.json"
        self._sessions_path = self._base / "sessions.json"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_json(self, path: Path) -> list[dict]:
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text())
            return data if isinstance(data, list) else []
        except (json.JSONDecodeError, OSError):
            return []

    def _write_json(self, path: Path, data: list[dict]) -> None:
        path.write_text(json.dumps(data, indent=2, default=str))

    @staticmethod
    def _member_from_dict(d: dict) -> Optional[FamilyMember]:
        try:
            return FamilyMember(
                family_id=d["family_id"],
                user_id=d["user_id"],
                role=Role(d.get("role", "parent")),
                joined_at=d.get("joined_at", ""),
            )
        except (KeyError, ValueError):
            return None

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> User:
        """Persist a new user. Returns the user."""
        users = self._read_json(self._users_path)
        users.append(asdict(user))
        self._write_json(self._users_path, users)
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        for d in self._read_json(self._users_path):
            if d.get("id") == user_id:
                return User(**d)
        return None

    # ------------------------------------------------------------------
    # Family memberships
    # ------------------------------------------------------------------

    def add_member(self, family_id: str, user_id: str, role: Role) -> FamilyMember:
        """Add (or re-role) *user_id* in *family_id*."""
        member = FamilyMember(family_id=family_id, user_id=user_id, role=role)
        members = [
            d for d in self._read_json(self._members_path)
            if not (d.get("family_id") == family_id and d.get("user_id") == user_id)
        ]
        record = asdict(member)
        record["role"] = member.role.value
        members.append(record)
        self._write_json(self._members_path, members)
        return member

    def get_member(self, family_id: str, user_id: str) -> Optional[FamilyMember]:
        for d in self._read_json(self._members_path):
            if d.get("family_id") == family_id and d.get("user_id") == user_id:
                return self._member_from_dict(d)
        return None

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, user_id: str, expires_in_hours: int = 24) -> Session:
        """Create a new session for a user."""
        now = datetime.now(timezone.utc)
        session = Session(
            id=str(uuid.uuid4()),
            user_id=user_id,
            token=secrets.token_urlsafe(48),
            created_at=now.isoformat(),
            expires_at=(now + timedelta(hours=expires_in_hours)).isoformat(),
        )
        sessions = self._read_json(self._sessions_path)
        sessions.append(asdict(session))
        self._write_json(self._sessions_path, sessions)
        return session

    def validate_session(self, token: str) -> Optional[User]:
        """Validate a session token and return the associated user, or None."""
        now = datetime.now(timezone.utc).isoformat()
        for d in self._read_json(self._sessions_path):
            if d.get("token") == token:
                if d.get("expires_at") and d["expires_at"] < now:
                    # Expired -- clean it up
                    self.delete_session(token)
                    return None
                return self.get_user(d["user_id"])
        return None

    def delete_session(self, token: str) -> bool:
        sessions = self._read_json(self._sessions_path)
        original_len = len(sessions)
        sessions = [d for d in sessions if d.get("token") != token]
        if len(sessions) < original_len:
            self._write_json(self._sessions_path, sessions)
            return True
        return False
