"""
AdminPanel Console — Reflex State for authentication and session management.

Provides:
- AdminState: login/logout, the session payload every page state rebuilds
  its ExecutionContext from, flash messages and the dashboard tiles
- panel_interaction(): execution context + DB session for one event handler
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional, Tuple

import reflex as rx
from sqlalchemy.orm import Session

from adminpanel.engine.context import ExecutionContext, execution_scope
from adminpanel.engine.errors import PanelAuthorizationError, PanelSessionError
from adminpanel.engine.i18n import trans

logger = logging.getLogger("adminpanel.admin.state")


class AdminState(rx.State):
    """
    Main console state.

    Manages:
    - Authentication (login/logout)
    - Session info (user id, roles, permission names, language)
    - Flash messages and dashboard tiles
    """

    # Auth state
    is_authenticated: bool = False
    user_id: int = 0
    username: str = ""
    full_name: str = ""
    user_type: str = ""
    roles: list[str] = []
    permissions: list[str] = []
    preferred_language: str = "en"
    session_id: str = ""

    # UI state
    login_error: str = ""
    is_loading: bool = False
    flash_messages: list[dict[str, str]] = []
    tiles: list[dict[str, str]] = []

    def session_payload(self) -> Dict[str, Any]:
        if not self.is_authenticated:
            return {}
        return {
            "user_id": self.user_id,
            "username": self.username,
            "full_name": self.full_name,
            "user_type": self.user_type,
            "roles": list(self.roles),
            "permissions": list(self.permissions),
            "preferred_language": self.preferred_language,
            "session_id": self.session_id,
        }

    def login(self, form_data: dict) -> rx.event.EventSpec | None:
        """Handle login form submission."""
        self.is_loading = True
        self.login_error = ""

        username = form_data.get("username", "").strip()
        password = form_data.get("password", "")

        if not username or not password:
            self.login_error = trans("auth.required")
            self.is_loading = False
            return None

        runtime = _get_runtime()
        if runtime is None or runtime.auth is None:
            self.login_error = "Panel not initialized. Run: adminpanel init"
            self.is_loading = False
            return None

        try:
            result = runtime.auth.authenticate(username=username, password=password)
        except (PanelAuthorizationError, PanelSessionError) as e:
            self.login_error = trans("auth.invalid_credentials") if isinstance(e, PanelAuthorizationError) else e.message
            self.is_loading = False
            return None

        self.is_authenticated = True
        self.user_id = result["user_id"]
        self.username = result["username"]
        self.full_name = result.get("full_name") or result["username"]
        self.user_type = result["user_type"]
        self.roles = list(result.get("roles", []))
        self.permissions = list(result.get("permissions", []))
        self.preferred_language = result.get("preferred_language") or "en"
        self.session_id = result["session_id"]
        self.is_loading = False

        return rx.redirect("/dashboard")

    def logout(self) -> rx.event.EventSpec:
        """Handle logout."""
        if self.session_id:
            logger.info(f"User '{self.username}' logged out")

        self.is_authenticated = False
        self.user_id = 0
        self.username = ""
        self.full_name = ""
        self.user_type = ""
        self.roles = []
        self.permissions = []
        self.session_id = ""
        self.tiles = []
        self.flash_messages = []

        return rx.redirect("/login")

    def check_auth(self) -> rx.event.EventSpec | None:
        """Redirect to login when not authenticated."""
        if not self.is_authenticated:
            return rx.redirect("/login")
        return None

    def load_dashboard(self) -> rx.event.EventSpec | None:
        """Tiles the user may open; denied tiles are not sent to the page at all."""
        if not self.is_authenticated:
            return rx.redirect("/login")

        from adminpanel.admin.dashboard import visible_tiles

        with execution_scope(self.execution_context()):
            self.tiles = [tile.to_dict() for tile in visible_tiles()]
        return None

    def execution_context(self) -> Optional[ExecutionContext]:
        from adminpanel.security.auth import context_from_session
        return context_from_session(self.session_payload())

    def add_flash(self, messages: list) -> None:
        self.flash_messages = self.flash_messages + [dict(m) for m in messages]

    def dismiss_flash(self, index: int) -> None:
        self.flash_messages = [m for i, m in enumerate(self.flash_messages) if i != index]

    def clear_flash(self) -> None:
        self.flash_messages = []


@contextmanager
def panel_interaction(ctx: ExecutionContext) -> Generator[Tuple[Session, ExecutionContext], None, None]:
    """
    One event handler's unit of work: the user's ExecutionContext is active
    and a DB session is open; the session is closed afterwards.
    """
    from adminpanel.db.session import get_session

    session = get_session()
    try:
        with execution_scope(ctx):
            yield session, ctx
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Runtime reference (set at app boot)
# ---------------------------------------------------------------------------

_runtime_instance = None


def set_runtime(runtime: Any) -> None:
    """Register the PanelRuntime instance for console use."""
    global _runtime_instance
    _runtime_instance = runtime


def _get_runtime() -> Any:
    return _runtime_instance
