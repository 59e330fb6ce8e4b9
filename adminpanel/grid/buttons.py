"""
Button descriptors for table headers and row actions.

A button carries at most one action:

    dispatch     broadcast an event to every listener
    dispatch_to  address an event to one named component
    call         invoke a method on the owning table
    route        navigate to a path
"""

from __future__ import annotations

from dataclasses import dataclass, field as datafield
from typing import Any, Dict, Optional

from adminpanel.engine.errors import PanelValidationError

ACTION_KINDS = ("dispatch", "dispatch_to", "call", "route")


@dataclass
class ButtonAction:
    kind: str
    event: Optional[str] = None
    target: Optional[str] = None
    method: Optional[str] = None
    href: Optional[str] = None
    navigate: bool = False
    params: Dict[str, Any] = datafield(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "event": self.event,
            "target": self.target,
            "method": self.method,
            "href": self.href,
            "navigate": self.navigate,
            "params": dict(self.params),
        }


@dataclass
class Button:
    """A clickable affordance; built fluently with ``Button.add(name)``."""
    name: str
    label: str = ""
    tooltip_text: str = ""
    icon_name: Optional[str] = None
    css_class: str = ""
    test_id: str = ""
    on_click: Optional[ButtonAction] = None
    requires_selection: bool = False

    @classmethod
    def add(cls, name: str) -> "Button":
        return cls(name=name)

    def slot(self, label: str) -> "Button":
        self.label = label
        return self

    def tooltip(self, text: str) -> "Button":
        self.tooltip_text = text
        return self

    def icon(self, name: str) -> "Button":
        self.icon_name = name
        return self

    def css(self, classes: str) -> "Button":
        self.css_class = classes
        return self

    def testid(self, test_id: str) -> "Button":
        self.test_id = test_id
        return self

    def when_selected(self) -> "Button":
        """Only show the button while at least one row is checked."""
        self.requires_selection = True
        return self

    def _set_action(self, action: ButtonAction) -> "Button":
        if self.on_click is not None:
            raise PanelValidationError(f"Button '{self.name}' already has an action")
        self.on_click = action
        return self

    def dispatch(self, event: str, params: Optional[Dict[str, Any]] = None) -> "Button":
        return self._set_action(ButtonAction("dispatch", event=event, params=params or {}))

    def dispatch_to(self, component: str, event: str, params: Optional[Dict[str, Any]] = None) -> "Button":
        return self._set_action(
            ButtonAction("dispatch_to", event=event, target=component, params=params or {})
        )

    def call(self, method: str) -> "Button":
        return self._set_action(ButtonAction("call", method=method))

    def route(self, href: str, navigate: bool = True) -> "Button":
        return self._set_action(ButtonAction("route", href=href, navigate=navigate))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "tooltip": self.tooltip_text,
            "icon": self.icon_name,
            "css": self.css_class,
            "test_id": self.test_id,
            "action": self.on_click.to_dict() if self.on_click else None,
            "requires_selection": self.requires_selection,
        }
