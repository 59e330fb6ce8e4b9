"""
Filter descriptors for grid tables.

Each descriptor knows how to narrow a SELECT given the current filter value
and the projected column expression it targets:

    Filter.input_text("name", "name").operators(["contains"])
    Filter.select("status_formatted", "status").data_source(items)
        .option_label("label").option_value("key")
    Filter.datetime_picker("created_at_formatted", "created_at")

Filter values as held in the table state:
    input_text      "abc"  or  {"operator": "starts_with", "value": "abc"}
    select          "Y"
    datetime_picker {"start": "2026-01-01", "end": "2026-01-31T18:00:00"}
"""

from __future__ import annotations

from dataclasses import dataclass, field as datafield
from datetime import datetime, time
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import String, cast, func, or_

from adminpanel.engine.errors import PanelValidationError

TEXT_OPERATORS = [
    "contains",
    "contains_not",
    "is",
    "is_not",
    "starts_with",
    "ends_with",
    "is_blank",
    "is_not_blank",
]


@dataclass
class FilterDef:
    """Base filter descriptor."""
    _filter_type: str = ""

    field: str = ""
    column: str = ""

    def is_active(self, value: Any) -> bool:
        return value not in (None, "", [], {})

    def apply(self, query, expr, value: Any, case_sensitive: bool = False):
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self._filter_type, "field": self.field, "column": self.column}


@dataclass
class InputTextFilter(FilterDef):
    _filter_type: str = "input_text"

    allowed_operators: List[str] = datafield(default_factory=lambda: ["contains"])

    def operators(self, names: List[str]) -> "InputTextFilter":
        unknown = [n for n in names if n not in TEXT_OPERATORS]
        if unknown:
            raise PanelValidationError(
                f"Unknown text filter operator(s): {', '.join(unknown)}",
                validation_errors=[{"field": self.field, "error": "unknown_operator"}],
            )
        self.allowed_operators = list(names)
        return self

    def _split(self, value: Any) -> Tuple[str, str]:
        if isinstance(value, dict):
            operator = value.get("operator") or self.allowed_operators[0]
            text = value.get("value") or ""
        else:
            operator, text = self.allowed_operators[0], value or ""
        if operator not in self.allowed_operators:
            raise PanelValidationError(
                f"Operator '{operator}' is not enabled for filter '{self.field}'",
                validation_errors=[{"field": self.field, "error": "operator_not_allowed"}],
            )
        return operator, str(text)

    def is_active(self, value: Any) -> bool:
        if isinstance(value, dict):
            operator = value.get("operator")
            if operator in ("is_blank", "is_not_blank"):
                return True
            value = value.get("value")
        return value not in (None, "")

    def apply(self, query, expr, value: Any, case_sensitive: bool = False):
        operator, text = self._split(value)
        return query.where(text_condition(expr, operator, text, case_sensitive))

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["operators"] = list(self.allowed_operators)
        return data


@dataclass
class SelectFilter(FilterDef):
    _filter_type: str = "select"

    options: List[Dict[str, Any]] = datafield(default_factory=list)
    label_key: str = "label"
    value_key: str = "value"

    def data_source(self, items: List[Dict[str, Any]]) -> "SelectFilter":
        self.options = list(items)
        return self

    def option_label(self, key: str) -> "SelectFilter":
        self.label_key = key
        return self

    def option_value(self, key: str) -> "SelectFilter":
        self.value_key = key
        return self

    def choices(self) -> List[Dict[str, Any]]:
        return [
            {"label": item.get(self.label_key), "value": item.get(self.value_key)}
            for item in self.options
        ]

    def apply(self, query, expr, value: Any, case_sensitive: bool = False):
        return query.where(expr == value)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["options"] = self.choices()
        return data


@dataclass
class DatetimePickerFilter(FilterDef):
    _filter_type: str = "datetime_picker"

    def is_active(self, value: Any) -> bool:
        return isinstance(value, dict) and bool(value.get("start") or value.get("end"))

    def apply(self, query, expr, value: Any, case_sensitive: bool = False):
        start = parse_datetime(value.get("start"), self.field)
        end = parse_datetime(value.get("end"), self.field, end_of_day=True)
        if start is not None:
            query = query.where(expr >= start)
        if end is not None:
            query = query.where(expr <= end)
        return query


class Filter:
    """Factory for filter descriptors."""

    @staticmethod
    def input_text(field: str, column: Optional[str] = None) -> InputTextFilter:
        return InputTextFilter(field=field, column=column or field)

    @staticmethod
    def select(field: str, column: Optional[str] = None) -> SelectFilter:
        return SelectFilter(field=field, column=column or field)

    @staticmethod
    def datetime_picker(field: str, column: Optional[str] = None) -> DatetimePickerFilter:
        return DatetimePickerFilter(field=field, column=column or field)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def text_condition(expr, operator: str, text: str, case_sensitive: bool = False):
    """SQL condition for a text operator against ``expr``."""
    expr = cast(expr, String)

    if operator == "is_blank":
        return or_(expr.is_(None), expr == "")
    if operator == "is_not_blank":
        return expr.is_not(None) & (expr != "")

    if not case_sensitive:
        expr = func.lower(expr, type_=String)
        text = text.lower()

    if operator == "contains":
        return expr.contains(text, autoescape=True)
    if operator == "contains_not":
        return ~expr.contains(text, autoescape=True)
    if operator == "starts_with":
        return expr.startswith(text, autoescape=True)
    if operator == "ends_with":
        return expr.endswith(text, autoescape=True)
    if operator == "is":
        return expr == text
    if operator == "is_not":
        return expr != text
    raise PanelValidationError(f"Unknown text filter operator: {operator}")


def parse_datetime(value: Any, field_name: str = "", end_of_day: bool = False) -> Optional[datetime]:
    """Accept a datetime or an ISO string; a bare date expands to the day's bounds."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        raise PanelValidationError(
            f"Invalid date value '{value}'",
            validation_errors=[{"field": field_name, "error": "invalid_datetime"}],
        )
    if len(str(value)) == 10 and end_of_day:
        parsed = datetime.combine(parsed.date(), time.max)
    return parsed
