"""Column descriptors for grid tables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Column:
    """
    One displayed column.

    ``field`` is the row key rendered in the cell; ``data_field`` is the
    projected query column used for sorting and searching (defaults to
    ``field``). A derived display field such as ``created_at_formatted`` sorts
    on ``created_at``.
    """
    title: str
    field: str
    data_field: Optional[str] = None
    is_sortable: bool = False
    is_searchable: bool = False
    is_action: bool = False
    hidden: bool = False

    @classmethod
    def make(cls, title: str, field: str, data_field: Optional[str] = None) -> "Column":
        return cls(title=title, field=field, data_field=data_field)

    @classmethod
    def action(cls, title: str) -> "Column":
        """The per-row actions column; never sortable nor searchable."""
        return cls(title=title, field="actions", is_action=True)

    def sortable(self) -> "Column":
        self.is_sortable = True
        return self

    def searchable(self) -> "Column":
        self.is_searchable = True
        return self

    def hide(self) -> "Column":
        self.hidden = True
        return self

    @property
    def query_field(self) -> str:
        return self.data_field or self.field

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "field": self.field,
            "data_field": self.query_field,
            "sortable": self.is_sortable,
            "searchable": self.is_searchable,
            "is_action": self.is_action,
            "hidden": self.hidden,
        }
