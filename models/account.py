"""
Operator account models.

Usernames are case-insensitive keys: 'Admin' and 'admin' are the same
account. The account named 'admin' always exists.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Any


ADMIN_USERNAME = "admin"


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


@dataclass(frozen=True)
class AdminAccount:
    """An operator who may log in to the dashboard."""

    username: str
    credential_secret: str
    """Verbatim secret, or a werkzeug hash when hashing is enabled."""

    @property
    def key(self) -> str:
        return normalize_username(self.username)

    @property
    def is_admin(self) -> bool:
        return self.key == ADMIN_USERNAME

    def to_dict(self) -> Dict[str, Any]:
        return {"username": self.username, "credential_secret": self.credential_secret}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdminAccount":
        username = str(data["username"]).strip()
        if not username:
            raise ValueError("Account username cannot be empty")
        return cls(username=username, credential_secret=str(data["credential_secret"]))


@dataclass(frozen=True)
class Session:
    """The single authenticated operator session."""

    username: str
    started_at: datetime

    @classmethod
    def start(cls, username: str) -> "Session":
        return cls(username=username, started_at=datetime.now(timezone.utc))

    def is_for(self, username: str) -> bool:
        return normalize_username(self.username) == normalize_username(username)

    def to_dict(self) -> Dict[str, Any]:
        return {"username": self.username, "started_at": self.started_at.isoformat()}
