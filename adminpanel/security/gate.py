"""
AdminPanel Gate — boolean capability checks keyed by ability name.

Resolution order for ``allows(ability, subject)``:
    1. No execution context → denied
    2. ``before`` hooks (system_admin passes everything)
    3. Explicit ability callback registered with ``define()``
    4. Permission names granted through the user's roles
       (context → Redis permission cache → database)

Denied UI affordances are omitted by the caller; ``authorize()`` raises
PanelAuthorizationError and writes a security log entry.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional

from adminpanel.engine.cache import PermissionCache
from adminpanel.engine.context import ExecutionContext, get_execution_context
from adminpanel.engine.errors import PanelAuthorizationError
from adminpanel.engine.logging import log, log_security_event

logger = logging.getLogger("adminpanel.security.gate")

AbilityCallback = Callable[[ExecutionContext, Any], bool]
BeforeHook = Callable[[ExecutionContext, str, Any], Optional[bool]]
PermissionLoader = Callable[[int], Iterable[str]]


def _system_admin_hook(ctx: ExecutionContext, ability: str, subject: Any) -> Optional[bool]:
    return True if ctx.is_system_admin else None


def load_permissions_from_db(user_id: int) -> List[str]:
    """Permission names granted to an active user through their roles."""
    from adminpanel.db.models import User
    from adminpanel.db.session import session_scope

    with session_scope() as session:
        user = session.get(User, user_id)
        if user is None or not user.is_active:
            return []
        return user.permission_names()


class Gate:
    """Capability checks for the current execution context."""

    def __init__(
        self,
        permission_loader: Optional[PermissionLoader] = None,
        permission_cache: Optional[PermissionCache] = None,
    ):
        self._loader = permission_loader or load_permissions_from_db
        self._cache = permission_cache
        self._abilities: Dict[str, AbilityCallback] = {}
        self._before: List[BeforeHook] = [_system_admin_hook]

    def define(self, ability: str, callback: AbilityCallback) -> None:
        """Register an explicit callback; it wins over the permission lookup."""
        self._abilities[ability] = callback

    def before(self, hook: BeforeHook) -> None:
        """Register a hook; a non-None return short-circuits the check."""
        self._before.append(hook)

    def has(self, ability: str) -> bool:
        return ability in self._abilities

    def set_permission_cache(self, cache: Optional[PermissionCache]) -> None:
        self._cache = cache

    def permissions_for(self, ctx: ExecutionContext) -> FrozenSet[str]:
        """Resolve (and memoize on the context) the user's permission names."""
        if ctx.permissions is not None:
            return ctx.permissions

        permissions = self._cache.get(ctx.user_id) if self._cache else None
        if permissions is None:
            permissions = frozenset(self._loader(ctx.user_id))
            if self._cache:
                self._cache.store(ctx.user_id, permissions)

        ctx.permissions = permissions
        return permissions

    def allows(self, ability: str, subject: Any = None, user: Optional[ExecutionContext] = None) -> bool:
        ctx = user or get_execution_context()
        if ctx is None:
            return False

        for hook in self._before:
            result = hook(ctx, ability, subject)
            if result is not None:
                return bool(result)

        callback = self._abilities.get(ability)
        if callback is not None:
            allowed = bool(callback(ctx, subject))
        else:
            allowed = ability in self.permissions_for(ctx)

        if not allowed:
            logger.debug(f"Gate denied '{ability}' for user {ctx.username}")
        return allowed

    def denies(self, ability: str, subject: Any = None, user: Optional[ExecutionContext] = None) -> bool:
        return not self.allows(ability, subject, user)

    def any(self, abilities: Iterable[str], subject: Any = None) -> bool:
        return any(self.allows(a, subject) for a in abilities)

    def check(self, abilities: Iterable[str], subject: Any = None) -> bool:
        """True only when every ability is allowed."""
        return all(self.allows(a, subject) for a in abilities)

    def authorize(self, ability: str, subject: Any = None, object_type: str = "system") -> None:
        """
        Raise PanelAuthorizationError when ``ability`` is denied.

        Raises:
            PanelAuthorizationError: HTTP 403 semantics.
        """
        if self.allows(ability, subject):
            return

        ctx = get_execution_context()
        user_id = ctx.user_id if ctx else None
        username = ctx.username if ctx else "anonymous"
        log(log_security_event(
            event="capability_denied",
            capability=ability,
            user_id=user_id,
            username=username,
            object_type=object_type,
            subject=repr(subject) if subject is not None else None,
        ))
        raise PanelAuthorizationError(
            "This action is unauthorized.",
            capability=ability,
            user_id=user_id,
            subject=repr(subject) if subject is not None else None,
        )


# Global singleton, configured at boot (permission cache)
gate = Gate()
