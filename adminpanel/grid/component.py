"""
AdminPanel Grid Component — base class for server-driven data tables.

A table declares:
    datasource()   SELECT projecting every column the table shows or queries
    columns()      displayed Column descriptors
    filters()      Filter descriptors
    fields()       derived row fields
    header()       header Buttons
    actions(row)   per-row Buttons (omit what the gate denies)
    listeners()    {event name: handler} registered on the event bus

The base owns the interactive state (sort, search, filter values, paging,
checkbox selection), runs the query pipeline and executes button actions.
Instances live for one interaction; the UI layer persists ``dump_state()``
between interactions and passes it back as ``state=``.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import Label

from adminpanel.engine.component import PanelComponent
from adminpanel.engine.config import PanelConfig
from adminpanel.engine.errors import (
    PanelAuthorizationError,
    PanelRecordError,
    PanelValidationError,
)
from adminpanel.engine.events import EventBus
from adminpanel.grid.buttons import Button
from adminpanel.grid.columns import Column
from adminpanel.grid.fields import Fields
from adminpanel.grid.filters import FilterDef, text_condition
from adminpanel.security.gate import Gate

logger = logging.getLogger("adminpanel.grid.component")

SORT_DIRECTIONS = ("asc", "desc")


class GridComponent(PanelComponent):
    component_name: str = "grid"
    primary_key: str = "id"
    default_sort_field: str = "id"
    default_sort_direction: str = "desc"
    show_checkbox: bool = False

    STATE_FIELDS = (
        "sort_field",
        "sort_direction",
        "search",
        "active_filters",
        "page",
        "per_page",
        "checkbox_values",
        "checkbox_all",
    )

    def __init__(
        self,
        session: Session,
        bus: Optional[EventBus] = None,
        gate: Optional[Gate] = None,
        config: Optional[PanelConfig] = None,
        state: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(session, bus=bus, gate=gate, config=config)
        self.table_name = self.component_name

        self.sort_field = self.default_sort_field
        self.sort_direction = self.default_sort_direction
        self.search = ""
        self.active_filters: Dict[str, Any] = {}
        self.page = 1
        self.per_page = self.config.ui.web_per_page
        self.checkbox_values: List[Any] = []
        self.checkbox_all = False
        self.total = 0

        self.needs_refresh = False
        self._page_rows: Optional[List[Dict[str, Any]]] = None

        self.mount()

        if state:
            self.load_state(state)

        self.register_listeners()
        self.bus.listen(f"pg:eventRefresh-{self.table_name}", self.refresh, component=self.component_name)

    # -----------------------------------------------------------------------
    # Declarations (override in subclasses)
    # -----------------------------------------------------------------------

    def mount(self) -> None:
        """Called once per instance before state is restored."""

    def datasource(self):
        raise NotImplementedError

    def columns(self) -> List[Column]:
        return []

    def filters(self) -> List[FilterDef]:
        return []

    def fields(self) -> Fields:
        return Fields()

    def header(self) -> List[Button]:
        return []

    def actions(self, row: Dict[str, Any]) -> List[Button]:
        return []

    def handle_page_change(self) -> None:
        """Hook run after the page or page size changes."""

    # -----------------------------------------------------------------------
    # State persistence
    # -----------------------------------------------------------------------

    def dump_state(self) -> Dict[str, Any]:
        return {
            "sort_field": self.sort_field,
            "sort_direction": self.sort_direction,
            "search": self.search,
            "active_filters": dict(self.active_filters),
            "page": self.page,
            "per_page": self.per_page,
            "checkbox_values": list(self.checkbox_values),
            "checkbox_all": self.checkbox_all,
        }

    def load_state(self, state: Dict[str, Any]) -> None:
        for name in self.STATE_FIELDS:
            if name in state and state[name] is not None:
                value = state[name]
                if isinstance(value, (list, dict)):
                    value = type(value)(value)
                setattr(self, name, value)
        self._page_rows = None

    # -----------------------------------------------------------------------
    # Query pipeline
    # -----------------------------------------------------------------------

    def projected_columns(self, query) -> Dict[str, Any]:
        """Map projected column keys to SQL expressions (labels unwrapped)."""
        columns = {}
        for col in query.selected_columns:
            key = getattr(col, "key", None) or getattr(col, "name", None)
            if isinstance(col, Label):
                col = col.element
            columns[key] = col
        return columns

    def build_query(self):
        """Datasource narrowed by the global search and active filters (unordered)."""
        query = self.datasource()
        columns = self.projected_columns(query)
        query = self.apply_search(query, columns)
        query = self.apply_filters(query, columns)
        return query

    def apply_search(self, query, columns: Dict[str, Any]):
        term = (self.search or "").strip()
        if not term:
            return query

        conditions = []
        for column in self.columns():
            if not column.is_searchable:
                continue
            expr = columns.get(column.query_field)
            if expr is None:
                logger.warning(f"{self.component_name}: searchable column '{column.query_field}' not projected")
                continue
            conditions.append(text_condition(expr, "contains", term, self.config.ui.case_sensitive_search))

        if not conditions:
            return query
        return query.where(or_(*conditions))

    def apply_filters(self, query, columns: Dict[str, Any]):
        for filter_def in self.filters():
            value = self.active_filters.get(filter_def.field)
            if not filter_def.is_active(value):
                continue
            expr = columns.get(filter_def.column)
            if expr is None:
                logger.warning(f"{self.component_name}: filter column '{filter_def.column}' not projected")
                continue
            query = filter_def.apply(query, expr, value, self.config.ui.case_sensitive_search)
        return query

    def resolve_sort(self) -> Tuple[str, str]:
        """
        Validated (column, direction). An unknown or unset field falls back to
        the default sort; a direction other than asc/desc becomes desc.
        """
        sortable: Dict[str, str] = {}
        for column in self.columns():
            if column.is_sortable:
                sortable[column.field] = column.query_field
                sortable[column.query_field] = column.query_field

        requested = (self.sort_field or "").split(".")[-1]
        key = sortable.get(requested)
        if key is None:
            return self.default_sort_field, self.default_sort_direction

        direction = (self.sort_direction or "").lower()
        if direction not in SORT_DIRECTIONS:
            direction = "desc"
        return key, direction

    def apply_sort(self, query, columns: Dict[str, Any]):
        key, direction = self.resolve_sort()
        expr = columns[key]
        query = query.order_by(expr.asc() if direction == "asc" else expr.desc())
        if key != self.primary_key and self.primary_key in columns:
            query = query.order_by(columns[self.primary_key].desc())
        return query

    def count(self, query) -> int:
        subquery = query.order_by(None).subquery()
        return self.session.execute(select(func.count()).select_from(subquery)).scalar_one()

    def count_total(self) -> int:
        self.total = self.count(self.build_query())
        return self.total

    @property
    def last_page(self) -> int:
        if self.per_page <= 0:
            return 1
        return max(1, math.ceil(self.total / self.per_page))

    def page_rows(self) -> List[Dict[str, Any]]:
        """Rows of the current page with derived fields applied (cached per state)."""
        if self._page_rows is not None:
            return self._page_rows

        query = self.build_query()
        self.total = self.count(query)
        if self.page > self.last_page:
            self.page = self.last_page

        query = self.apply_sort(query, self.projected_columns(query))
        if self.per_page > 0:
            query = query.offset((self.page - 1) * self.per_page).limit(self.per_page)

        fields = self.fields()
        self._page_rows = [fields.apply(r) for r in self.session.execute(query).mappings().all()]
        return self._page_rows

    def visible_ids(self) -> List[Any]:
        return [row[self.primary_key] for row in self.page_rows()]

    def find_row(self, row_id: Any) -> Optional[Dict[str, Any]]:
        for row in self.page_rows():
            if row[self.primary_key] == row_id:
                return row
        query = self.datasource()
        expr = self.projected_columns(query)[self.primary_key]
        record = self.session.execute(query.where(expr == row_id)).mappings().first()
        return self.fields().apply(record) if record is not None else None

    def _invalidate(self) -> None:
        self._page_rows = None

    # -----------------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------------

    def render(self) -> Dict[str, Any]:
        """Serializable view of the table for the UI layer."""
        rows = self.page_rows()
        page_ids = {row[self.primary_key] for row in rows}
        self.checkbox_values = [v for v in self.checkbox_values if v in page_ids]
        if not self.checkbox_values:
            self.checkbox_all = False

        rendered_rows = []
        for row in rows:
            out = dict(row)
            out["actions"] = [b.to_dict() for b in self.actions(row)]
            out["checked"] = row[self.primary_key] in self.checkbox_values
            rendered_rows.append(out)

        sort_field, sort_direction = self.resolve_sort()
        if rows:
            first_item = (self.page - 1) * self.per_page + 1 if self.per_page > 0 else 1
            last_item = first_item + len(rows) - 1
        else:
            first_item = last_item = 0

        return {
            "name": self.component_name,
            "table_name": self.table_name,
            "columns": [c.to_dict() for c in self.columns()],
            "filters": [f.to_dict() for f in self.filters()],
            "header": [b.to_dict() for b in self.visible_header()],
            "rows": rendered_rows,
            "total": self.total,
            "page": self.page,
            "per_page": self.per_page,
            "per_page_values": list(self.config.ui.web_per_page_values),
            "last_page": self.last_page,
            "first_item": first_item,
            "last_item": last_item,
            "sort_field": sort_field,
            "sort_direction": sort_direction,
            "search": self.search,
            "active_filters": dict(self.active_filters),
            "show_checkbox": self.show_checkbox,
            "checkbox_values": list(self.checkbox_values),
            "checkbox_all": self.checkbox_all,
        }

    def visible_header(self) -> List[Button]:
        return [b for b in self.header() if not b.requires_selection or self.has_selection]

    # -----------------------------------------------------------------------
    # Sorting / searching / filtering / paging
    # -----------------------------------------------------------------------

    def sort_by(self, field: str) -> None:
        """Toggle the direction on the current column, else sort ascending."""
        if self.sort_field == field:
            self.sort_direction = "desc" if self.sort_direction == "asc" else "asc"
        else:
            self.sort_field = field
            self.sort_direction = "asc"
        self._invalidate()

    def set_sort(self, field: str, direction: str) -> None:
        self.sort_field = field
        self.sort_direction = direction
        self._invalidate()

    def set_search(self, value: str) -> None:
        self.search = value or ""
        self.set_page(1)

    def set_filter(self, field: str, value: Any) -> None:
        known = {f.field for f in self.filters()}
        if field not in known:
            raise PanelValidationError(
                f"Unknown filter '{field}'",
                validation_errors=[{"field": field, "error": "unknown_filter"}],
            )
        self.active_filters[field] = value
        self.set_page(1)

    def clear_filter(self, field: str) -> None:
        self.active_filters.pop(field, None)
        self.set_page(1)

    def clear_filters(self) -> None:
        self.active_filters = {}
        self.search = ""
        self.set_page(1)

    def set_page(self, page: int) -> None:
        self.page = max(1, int(page))
        self._invalidate()
        self.handle_page_change()

    def set_per_page(self, per_page: int) -> None:
        per_page = int(per_page)
        if per_page not in self.config.ui.web_per_page_values:
            raise PanelValidationError(
                f"Unsupported page size {per_page}",
                validation_errors=[{"field": "per_page", "error": "not_allowed"}],
            )
        self.per_page = per_page
        self.set_page(1)

    def refresh(self, payload: Any = None) -> None:
        self._invalidate()
        self.needs_refresh = True

    # -----------------------------------------------------------------------
    # Selection
    # -----------------------------------------------------------------------

    @property
    def has_selection(self) -> bool:
        return bool(self.checkbox_values)

    def toggle_checkbox(self, row_id: Any) -> bool:
        """Check/uncheck a row of the current page. Returns False for other ids."""
        page_ids = self.visible_ids()
        if row_id not in page_ids:
            return False
        if row_id in self.checkbox_values:
            self.checkbox_values.remove(row_id)
        else:
            self.checkbox_values.append(row_id)
        self.checkbox_all = bool(page_ids) and all(i in self.checkbox_values for i in page_ids)
        return True

    def toggle_checkbox_all(self) -> None:
        if self.checkbox_all:
            self.clear_selection()
            return
        self.checkbox_values = self.visible_ids()
        self.checkbox_all = bool(self.checkbox_values)

    def clear_selection(self) -> None:
        self.checkbox_values = []
        self.checkbox_all = False

    # -----------------------------------------------------------------------
    # Outward actions
    # -----------------------------------------------------------------------

    def click_action(self, name: str, row_id: Any) -> Any:
        """
        Run the row button ``name`` for ``row_id``. The row's buttons are
        rebuilt, so a button the gate now denies is not found.
        """
        row = self.find_row(row_id)
        if row is None:
            raise PanelRecordError(
                f"Record {row_id} not found",
                record_type=self.component_name,
                record_ids=[row_id],
            )
        button = next((b for b in self.actions(row) if b.name == name), None)
        if button is None:
            raise PanelAuthorizationError(
                "This action is unauthorized.",
                subject=f"{self.component_name}:{name}:{row_id}",
                user_id=self.current_user_id(),
            )
        return self.run_button(button)

    def click_header(self, name: str) -> Any:
        button = next((b for b in self.header() if b.name == name), None)
        if button is None:
            raise PanelAuthorizationError(
                "This action is unauthorized.",
                subject=f"{self.component_name}:{name}",
                user_id=self.current_user_id(),
            )
        return self.run_button(button)

    def run_button(self, button: Button) -> Any:
        action = button.on_click
        if action is None:
            return None
        if action.kind == "dispatch":
            return self.dispatch(action.event, dict(action.params))
        if action.kind == "dispatch_to":
            return self.dispatch_to(action.target, action.event, dict(action.params))
        if action.kind == "call":
            return getattr(self, action.method)()
        if action.kind == "route":
            return self.redirect(action.href, navigate=action.navigate)
        raise PanelValidationError(f"Unknown button action '{action.kind}'")
