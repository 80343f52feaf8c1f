"""
TaskFlow Assistant — Local user directory.

Accounts live in a flat list under `taskflow_users_v1`, the signed-in user
in a single session pointer record. The directory's only job beyond
sign-in is to derive the Identity that partitions per-user storage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from taskflow.data import keys
from taskflow.data.models import GUEST, Identity, User, new_id, now_ms

if TYPE_CHECKING:
    from taskflow.data.storage import StorageAccessor

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 4


@dataclass
class AuthResult:
    ok: bool
    message: str
    user: User | None = None


class UserDirectory:
    """Register, sign in and resolve the current user."""

    def __init__(self, accessor: StorageAccessor) -> None:
        self._accessor = accessor

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def users(self) -> list[User]:
        return [User.from_dict(r) for r in self._accessor.read_list(keys.USERS) if isinstance(r, dict)]

    def _find(self, username: str) -> User | None:
        wanted = username.strip().lower()
        for user in self.users():
            if user.username.lower() == wanted:
                return user
        return None

    def _start_session(self, user: User, password: str) -> None:
        self._accessor.write(
            keys.SESSION,
            {"userId": user.id, "username": user.username, "loggedInAt": now_ms()},
        )
        self._accessor.write(keys.LAST_CRED, {"username": user.username, "password": password})

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def register(self, username: str, password: str, full_name: str = "") -> AuthResult:
        name = (username or "").strip()
        password = password or ""
        if not name:
            return AuthResult(False, "Username is required.")
        if len(password) < MIN_PASSWORD_LENGTH:
            return AuthResult(False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        if self._find(name):
            return AuthResult(False, "User already exists. Please login.")

        user = User(
            id=new_id(),
            username=name,
            password=password,
            full_name=(full_name or "").strip() or name,
            created_at=now_ms(),
        )
        raw = self._accessor.read_list(keys.USERS)
        self._accessor.write(keys.USERS, [user.to_dict(), *raw])
        self._start_session(user, password)
        logger.info("Registered user %s", user.username)
        return AuthResult(True, "Registered successfully.", user)

    def login(self, username: str, password: str) -> AuthResult:
        user = self._find(username or "")
        if user is None:
            return AuthResult(False, "User not found. Please register.")
        if user.password != (password or ""):
            return AuthResult(False, "Wrong password.")
        self._start_session(user, password)
        logger.info("User %s signed in", user.username)
        return AuthResult(True, "Login success.", user)

    def logout(self) -> None:
        self._accessor.remove(keys.SESSION)
        logger.info("Signed out")

    def last_credentials(self) -> dict:
        return self._accessor.read(keys.LAST_CRED, {"username": "", "password": ""})

    def current_user(self) -> User | None:
        """Resolve the session pointer by userId, then by legacy username."""
        session = self._accessor.read(keys.SESSION, None)
        if not isinstance(session, dict):
            return None
        users = self.users()
        user_id = session.get("userId")
        if user_id:
            for user in users:
                if user.id == user_id:
                    return user
        username = str(session.get("username") or "")
        if username:
            return self._find(username)
        return None

    def identity(self) -> Identity:
        user = self.current_user()
        if user is None:
            return GUEST
        display = user.full_name.strip() or user.username.strip() or GUEST.display_name
        return Identity(key=user.username.lower(), display_name=display)
