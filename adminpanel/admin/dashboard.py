"""
Dashboard tiles — one link per managed entity, shown only to users allowed
to view that entity's listing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from adminpanel.engine.i18n import trans
from adminpanel.security.abilities import ability
from adminpanel.security.gate import Gate, gate as default_gate


@dataclass(frozen=True)
class DashboardTile:
    key: str
    href: str
    capability: str
    icon: str

    @property
    def label(self) -> str:
        return trans(f"side_menu.{self.key}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "href": self.href,
            "icon": self.icon,
            "test_id": f"{self.key}_tile",
        }


TILES: List[DashboardTile] = [
    DashboardTile("role", "/role", ability("view", "role"), "shield"),
    DashboardTile("product", "/product", ability("view", "product"), "package"),
    DashboardTile("user", "/user", ability("view", "user"), "users"),
    DashboardTile("brand", "/brand", ability("view", "brand"), "tag"),
]


def visible_tiles(gate: Optional[Gate] = None) -> List[DashboardTile]:
    """Tiles the current user may open, in declaration order."""
    gate = gate or default_gate
    return [tile for tile in TILES if gate.allows(tile.capability)]
