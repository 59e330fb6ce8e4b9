"""
AdminPanel Component — base for server-side UI components.

A component is addressed by ``component_name`` on the event bus, registers
its ``listeners()`` on construction and talks to the outside world only
through events, redirects and flash messages. The Reflex layer reads
``flash_messages`` / ``redirect_to`` and the bus history after each
interaction.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from adminpanel.engine.config import PanelConfig, get_panel_config
from adminpanel.engine.context import get_execution_context
from adminpanel.engine.errors import PanelAuthorizationError, PanelValidationError
from adminpanel.engine.events import DispatchedEvent, EventBus
from adminpanel.engine.i18n import trans
from adminpanel.engine.logging import log_exception
from adminpanel.security.gate import Gate, gate as default_gate


class PanelComponent:
    component_name: str = "component"

    def __init__(
        self,
        session: Session,
        bus: Optional[EventBus] = None,
        gate: Optional[Gate] = None,
        config: Optional[PanelConfig] = None,
    ):
        self.session = session
        self.bus = bus or EventBus()
        self.gate = gate or default_gate
        self.config = config or get_panel_config()

        self.flash_messages: List[Dict[str, str]] = []
        self.redirect_to: Optional[Dict[str, Any]] = None

    def register_listeners(self) -> None:
        for event, handler in self.listeners().items():
            self.bus.listen(event, handler, component=self.component_name)

    def listeners(self) -> Dict[str, Callable[[Any], Any]]:
        return {}

    def dispatch(self, event: str, payload: Any = None) -> DispatchedEvent:
        """Broadcast ``event`` to every listener."""
        return self.bus.dispatch(event, payload, source=self.component_name)

    def dispatch_to(self, component: str, event: str, payload: Any = None) -> DispatchedEvent:
        return self.bus.dispatch(event, payload, to=component, source=self.component_name)

    def redirect(self, path: str, navigate: bool = False) -> Dict[str, Any]:
        self.redirect_to = {"path": "/" + path.lstrip("/"), "navigate": navigate}
        return self.redirect_to

    def flash(self, kind: str, message: str) -> None:
        self.flash_messages.append({"type": kind, "message": message})

    @staticmethod
    def current_user_id() -> Optional[Any]:
        ctx = get_execution_context()
        return ctx.user_id if ctx else None


def interaction_failure(
    error: Exception,
    module_logger: logging.Logger,
    component: str,
    operation: str,
    user_id: Optional[Any] = None,
) -> Tuple[List[Dict[str, str]], Optional[str]]:
    """
    Flash messages and redirect path for an error that escaped a page
    interaction. Anything other than an authorization or validation error
    is logged with its trace and shown as the generic failure message.
    """
    if isinstance(error, PanelAuthorizationError):
        return [{"type": "error", "message": trans("auth.forbidden")}], "/dashboard"
    if isinstance(error, PanelValidationError):
        return [{"type": "error", "message": error.message}], None
    log_exception(module_logger, component, operation, error, user_id=user_id)
    return [{"type": "error", "message": trans("product.messages.common_error_message")}], None
