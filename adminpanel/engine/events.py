"""
AdminPanel Event Bus — named events between sibling UI components.

Components register listeners under their component name. An event is
either addressed to one component (``to="product.delete"``) or broadcast to
every listener of that event name. Every dispatch is recorded so the UI
layer can forward events that have no in-process listener to the browser.

Usage:
    bus = EventBus()
    bus.listen("edit", table.edit, component="product.table")
    bus.dispatch("edit", {"id": 7})                      # broadcast
    bus.dispatch("show-product-info", {"id": 7}, to="product.show")
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("adminpanel.engine.events")

Handler = Callable[[Any], Any]


@dataclass
class Listener:
    event: str
    handler: Handler
    component: Optional[str] = None


@dataclass
class DispatchedEvent:
    """One recorded dispatch."""
    name: str
    payload: Any = None
    target: Optional[str] = None
    source: Optional[str] = None
    delivered_to: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_broadcast(self) -> bool:
        return self.target is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "payload": self.payload,
            "target": self.target,
            "source": self.source,
            "delivered_to": list(self.delivered_to),
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class EventBus:
    """Synchronous in-process publish/subscribe for one interaction."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}
        self._history: List[DispatchedEvent] = []

    def listen(self, event: str, handler: Handler, component: Optional[str] = None) -> None:
        """Register ``handler`` for ``event``, optionally owned by a named component."""
        self._listeners.setdefault(event, []).append(Listener(event, handler, component))

    def forget(self, component: str) -> int:
        """Remove every listener owned by ``component``. Returns the count removed."""
        removed = 0
        for event, listeners in list(self._listeners.items()):
            kept = [l for l in listeners if l.component != component]
            removed += len(listeners) - len(kept)
            self._listeners[event] = kept
        return removed

    def listeners_for(self, event: str, to: Optional[str] = None) -> List[Listener]:
        listeners = self._listeners.get(event, [])
        if to is not None:
            listeners = [l for l in listeners if l.component == to]
        return list(listeners)

    def dispatch(
        self,
        event: str,
        payload: Any = None,
        to: Optional[str] = None,
        source: Optional[str] = None,
    ) -> DispatchedEvent:
        """
        Dispatch ``event`` with ``payload``.

        Listeners run synchronously in registration order; a listener error
        propagates to the dispatching operation.
        """
        record = DispatchedEvent(name=event, payload=payload, target=to, source=source)
        self._history.append(record)

        for listener in self.listeners_for(event, to):
            listener.handler(payload)
            record.delivered_to.append(listener.component or "")

        logger.debug(
            f"Event '{event}' from {source or '-'} to {to or '*'} "
            f"delivered to {len(record.delivered_to)} listener(s)"
        )
        return record

    @property
    def history(self) -> List[DispatchedEvent]:
        return list(self._history)

    def events_named(self, event: str) -> List[DispatchedEvent]:
        return [e for e in self._history if e.name == event]

    def undelivered(self) -> List[DispatchedEvent]:
        """Dispatches no in-process listener consumed (forwarded to the browser)."""
        return [e for e in self._history if not e.delivered_to]

    def clear_history(self) -> None:
        self._history.clear()
