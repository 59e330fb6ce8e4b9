"""
AdminPanel Authentication — username/password check against the users table.

The authenticated identity lives in the Reflex AdminState; every event
handler rebuilds an ExecutionContext from it with ``context_from_session``.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import bcrypt
from sqlalchemy import select
from sqlalchemy.orm import Session

from adminpanel.db.models import User
from adminpanel.engine.context import ExecutionContext
from adminpanel.engine.errors import PanelAuthorizationError, PanelSessionError, PanelValidationError

logger = logging.getLogger("adminpanel.security.auth")


class AuthService:
    """Credential check + session payload for the console."""

    def __init__(self, db_session_factory: Callable[[], Session], password_min_length: int = 8):
        self._db_session_factory = db_session_factory
        self._password_min_length = password_min_length

    def authenticate(self, username: str, password: str) -> Dict[str, Any]:
        """
        Authenticate a user.

        Returns:
            Session payload: user_id, username, user_type, roles, permissions,
            preferred_language, full_name, session_id.

        Raises:
            PanelAuthorizationError on invalid credentials.
            PanelSessionError when the account is disabled.
        """
        session = self._db_session_factory()
        try:
            user = session.execute(select(User).where(User.username == username)).scalar_one_or_none()

            if user is None or not verify_password(password, user.password_hash):
                logger.info(f"Failed login for '{username}'")
                raise PanelAuthorizationError("Invalid username or password", user_id=username)

            if not user.is_active:
                raise PanelSessionError("Account is disabled", user_id=user.id)

            user.last_login = datetime.now(timezone.utc)
            session.commit()

            logger.info(f"User '{username}' authenticated")
            return {
                "user_id": user.id,
                "username": user.username,
                "user_type": user.user_type,
                "roles": sorted(r.name for r in user.roles),
                "permissions": user.permission_names(),
                "preferred_language": user.preferred_language,
                "full_name": user.full_name,
                "session_id": f"sess_{secrets.token_hex(16)}",
            }
        finally:
            session.close()

    def validate_password(self, password: str) -> None:
        """Raise PanelValidationError when ``password`` is too short."""
        if len(password) < self._password_min_length:
            raise PanelValidationError(
                f"Password must be at least {self._password_min_length} characters",
                validation_errors=[{"field": "password", "error": "too_short"}],
            )


def context_from_session(data: Dict[str, Any]) -> Optional[ExecutionContext]:
    """Rebuild the ExecutionContext from a session payload; None when logged out."""
    if not data or not data.get("user_id"):
        return None
    permissions = data.get("permissions")
    return ExecutionContext(
        user_id=data["user_id"],
        username=data.get("username", ""),
        user_type=data.get("user_type", "basic"),
        roles=frozenset(data.get("roles", [])),
        permissions=frozenset(permissions) if permissions is not None else None,
        preferred_language=data.get("preferred_language") or "en",
        full_name=data.get("full_name", ""),
        session_id=data.get("session_id"),
    )


# ---------------------------------------------------------------------------
# Password Utilities
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=12)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False
