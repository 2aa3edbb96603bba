"""User directory and credential checks.

The directory re-reads the users file on every login attempt, so edits to the
file apply to the next login without a restart. When the file holds no users
a built-in admin account is installed so a fresh install is usable.

Stored passwords are PBKDF2 hashes (see ``hash_password``). A stored token
without the hash prefix is treated as a legacy plaintext password; such
entries still verify, in constant time, until they are re-hashed.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from functools import lru_cache
from threading import RLock
from typing import List, Optional

from library import LendingError, Outcome
from storage import UserStore
from user import User, ROLE_ADMIN, ROLES

logger = logging.getLogger(__name__)

HASH_SCHEME = "pbkdf2_sha256"
HASH_ITERATIONS = 260_000

FALLBACK_USERNAME = "seldio"
FALLBACK_PASSWORD = "1234"


def hash_password(password: str, salt: Optional[str] = None, iterations: int = HASH_ITERATIONS) -> str:
    """Return ``pbkdf2_sha256$<iterations>$<salt>$<hex digest>`` for ``password``."""
    if salt is None:
        salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"{HASH_SCHEME}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    parts = stored.split("$")
    if len(parts) == 4 and parts[0] == HASH_SCHEME:
        _, iterations, salt, _ = parts
        try:
            candidate = hash_password(password, salt=salt, iterations=int(iterations))
        except ValueError:
            return False
        return hmac.compare_digest(candidate, stored)
    # Legacy plaintext entry
    return hmac.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))


@lru_cache(maxsize=1)
def _fallback_password_hash() -> str:
    return hash_password(FALLBACK_PASSWORD)


class UserDirectory:
    """In-memory view of the users file, refreshed on each login."""

    def __init__(self, store: UserStore) -> None:
        self.store = store
        self.users: List[User] = []
        self._lock = RLock()

    def reload(self) -> None:
        users = self.store.load()
        with self._lock:
            self.users = users
            if not self.users:
                logger.info(f"No users in {self.store.path}; installing fallback admin '{FALLBACK_USERNAME}'")
                self.users.append(User(FALLBACK_USERNAME, _fallback_password_hash(), ROLE_ADMIN))

    def _match(self, username: str, password: str) -> Optional[User]:
        with self._lock:
            self.reload()
            for user in self.users:
                if user.username == username and verify_password(password, user.password):
                    return user
        return None

    def check_login(self, username: str, password: str) -> bool:
        return self._match(username, password) is not None

    def role_of(self, username: str) -> Optional[str]:
        with self._lock:
            for user in self.users:
                if user.username == username:
                    return user.role
        return None

    def login(self, username: str, password: str) -> Outcome:
        """Check credentials and report the matched user's role on success."""
        user = self._match(username, password)
        if user is None:
            logger.warning(f"Login failed for {username!r}")
            return Outcome.failure(LendingError.INVALID_CREDENTIALS)
        logger.info(f"Login successful for {username!r}, role {user.role}")
        return Outcome.success(role=user.role)

    def add_user(self, username: str, password: str, role: str) -> User:
        """Append a user with a freshly hashed password to the users file."""
        if role not in ROLES:
            raise ValueError(f"Unknown role {role!r}; expected one of: {', '.join(ROLES)}")
        with self._lock:
            users = self.store.load()
            if any(u.username == username for u in users):
                raise ValueError(f"User {username} already exists.")
            user = User(username, hash_password(password), role)
            users.append(user)
            self.store.save(users)
            self.users = users
        logger.info(f"Added user {username!r} with role {role}")
        return user
