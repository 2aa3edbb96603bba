from __future__ import annotations

from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"
ROLES = (ROLE_ADMIN, ROLE_MEMBER)


@dataclass
class User:
    """An entry in the user directory; ``password`` holds the stored credential."""

    username: str
    password: str
    role: str = ROLE_MEMBER

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.username} ({self.role})"
