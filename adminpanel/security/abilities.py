"""
Capability names used across the console.

Every capability follows "<action>-<entity>", e.g. "view-product",
"bulkDelete-product". ``adminpanel init`` seeds one Permission row per name.
"""

from __future__ import annotations

from typing import Dict, List

ENTITIES = ["product", "role", "user", "brand"]

ACTIONS = ["view", "show", "add", "edit", "delete", "bulkDelete", "export"]


def ability(action: str, entity: str) -> str:
    """Build a capability name: ability("edit", "product") → "edit-product"."""
    return f"{action}-{entity}"


def split_ability(name: str) -> tuple:
    """Inverse of ability(): "bulkDelete-product" → ("bulkDelete", "product")."""
    action, _, entity = name.partition("-")
    return action, entity


def all_abilities() -> List[str]:
    return [ability(action, entity) for entity in ENTITIES for action in ACTIONS]


# Default roles seeded by ``adminpanel init``
DEFAULT_ROLES: Dict[str, List[str]] = {
    "admin": all_abilities(),
    "catalog_manager": [ability(a, "product") for a in ACTIONS] + [ability("view", "brand")],
    "viewer": [ability("view", "product"), ability("show", "product")],
}
