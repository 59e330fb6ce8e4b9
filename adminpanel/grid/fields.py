"""Derived row fields for grid tables."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional

FieldFn = Callable[[Mapping[str, Any]], Any]


class Fields:
    """
    Ordered set of row fields. A field with no callable copies the projected
    value through; a callable computes the value from the raw row.

        Fields().add("id").add("created_at_formatted", lambda row: ...)
    """

    def __init__(self) -> None:
        self._fields: Dict[str, Optional[FieldFn]] = {}

    def add(self, name: str, fn: Optional[FieldFn] = None) -> "Fields":
        self._fields[name] = fn
        return self

    @property
    def names(self) -> List[str]:
        return list(self._fields)

    def apply(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        out = dict(row)
        for name, fn in self._fields.items():
            if fn is not None:
                out[name] = fn(row)
            elif name not in out:
                out[name] = None
        return out
