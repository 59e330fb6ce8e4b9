"""
AdminPanel Execution Context — per-request user state.

One ExecutionContext is set for every interaction (Reflex event handler,
CLI command, Celery task). The Gate, the message catalog and the structured
logs read the acting user from here.

Usage:
    from adminpanel.engine.context import (
        ExecutionContext,
        set_execution_context,
        get_execution_context,
        execution_scope,
    )
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Generator, Optional

from adminpanel.engine.errors import PanelSessionError

current_execution_context: ContextVar[Optional["ExecutionContext"]] = ContextVar(
    "execution_context", default=None
)


@dataclass
class ExecutionContext:
    """
    Per-request execution context. Built on login and on every Reflex event.

    ``permissions`` is None until resolved; the Gate then loads the
    permission names from the user's roles.
    """

    user_id: int
    username: str
    user_type: str = "basic"  # "basic" | "system_admin"
    roles: FrozenSet[str] = field(default_factory=frozenset)
    permissions: Optional[FrozenSet[str]] = None
    execution_id: str = field(default_factory=lambda: f"exec_{uuid.uuid4().hex[:12]}")
    preferred_language: str = "en"
    full_name: str = ""
    session_id: Optional[str] = None

    @property
    def is_system_admin(self) -> bool:
        return self.user_type == "system_admin"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging."""
        return {
            "user_id": self.user_id,
            "username": self.username,
            "user_type": self.user_type,
            "roles": sorted(self.roles),
            "execution_id": self.execution_id,
            "preferred_language": self.preferred_language,
        }


def set_execution_context(ctx: Optional[ExecutionContext]) -> None:
    current_execution_context.set(ctx)


def get_execution_context() -> Optional[ExecutionContext]:
    return current_execution_context.get()


def require_execution_context() -> ExecutionContext:
    """The acting user; PanelSessionError when nobody is logged in."""
    ctx = current_execution_context.get()
    if ctx is None:
        raise PanelSessionError("Not logged in")
    return ctx


def clear_execution_context() -> None:
    current_execution_context.set(None)


@contextmanager
def execution_scope(ctx: ExecutionContext) -> Generator[ExecutionContext, None, None]:
    """Make ``ctx`` current for the block, then put the previous one back."""
    token = current_execution_context.set(ctx)
    try:
        yield ctx
    finally:
        current_execution_context.reset(token)


def get_preferred_language(default: str = "en") -> str:
    ctx = current_execution_context.get()
    return (ctx.preferred_language if ctx else None) or default
