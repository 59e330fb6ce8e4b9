"""
AdminPanel Console — Product Listing Page

Route: /product

Every event handler rebuilds the page's components on one EventBus from
the persisted state, runs the interaction, then copies the rendered table,
the detail panel, the delete confirmation and the tracked exports back into
Reflex vars:

    product.table   ProductTable
    product.show    ProductShow
    product.delete  ProductDelete
    common-code     ExportProgress
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import reflex as rx

from adminpanel.admin.components.layout import admin_layout
from adminpanel.admin.state import AdminState, panel_interaction
from adminpanel.engine.component import interaction_failure
from adminpanel.engine.events import EventBus
from adminpanel.engine.i18n import trans
from adminpanel.exports.progress import ExportProgress
from adminpanel.products.delete import ProductDelete
from adminpanel.products.show import ProductShow
from adminpanel.products.table import ProductTable

logger = logging.getLogger("adminpanel.admin.pages.products")

Interaction = Callable[[Dict[str, Any]], Any]


class ProductPageState(AdminState):
    """State of the product listing page and its sibling panels."""

    # Persisted component state
    table_state: dict = {}
    delete_state: dict = {}
    export_batches: list[dict] = []

    # Rendered table
    table_name: str = ""
    columns: list[dict] = []
    rows: list[dict] = []
    total: int = 0
    page: int = 1
    last_page: int = 1
    per_page: int = 10
    per_page_values: list[str] = []
    first_item: int = 0
    last_item: int = 0
    sort_field: str = ""
    sort_direction: str = ""
    search: str = ""
    name_filter: str = ""
    status_filter: str = ""
    status_options: list[dict] = []
    checkbox_all: bool = False
    selected_count: int = 0

    # Header buttons present for this user
    can_add: bool = False
    can_export: bool = False
    can_bulk_delete: bool = False

    # Sibling panels
    show_open: bool = False
    show_product: dict = {}
    delete_open: bool = False
    delete_message: str = ""

    # -----------------------------------------------------------------------
    # Interaction plumbing
    # -----------------------------------------------------------------------

    def _interact(self, action: Optional[Interaction] = None) -> List[Any]:
        ctx = self.execution_context()
        if ctx is None:
            return [rx.redirect("/login")]

        events: List[Any] = []
        try:
            with panel_interaction(ctx) as (session, _):
                bus = EventBus()
                components = {
                    "progress": ExportProgress(session, bus=bus, tracked=self.export_batches),
                    "show": ProductShow(session, bus=bus),
                    "delete": ProductDelete(session, bus=bus, state=self.delete_state),
                    "table": ProductTable(session, bus=bus, state=self.table_state),
                }
                if action is not None:
                    action(components)
                events.extend(self._sync(components, bus))
        except Exception as e:
            flashes, redirect = interaction_failure(e, logger, "product.page", "interact", user_id=ctx.user_id)
            self.add_flash(flashes)
            if redirect:
                return [rx.redirect(redirect)]
        return events

    def _sync(self, components: Dict[str, Any], bus: EventBus) -> List[Any]:
        table: ProductTable = components["table"]
        show: ProductShow = components["show"]
        deleter: ProductDelete = components["delete"]
        progress: ExportProgress = components["progress"]

        view = table.render()
        self.table_state = table.dump_state()
        self.table_name = view["table_name"]
        self.columns = [c for c in view["columns"] if not c["hidden"]]
        self.rows = [self._row(r) for r in view["rows"]]
        self.total = view["total"]
        self.page = view["page"]
        self.last_page = view["last_page"]
        self.per_page = view["per_page"]
        self.per_page_values = [str(v) for v in view["per_page_values"]]
        self.first_item = view["first_item"]
        self.last_item = view["last_item"]
        self.sort_field = view["sort_field"]
        self.sort_direction = view["sort_direction"]
        self.search = view["search"]
        self.name_filter = _text_value(view["active_filters"].get("name"))
        self.status_filter = view["active_filters"].get("status") or ""
        self.status_options = next(
            (f["options"] for f in view["filters"] if f["type"] == "select"), []
        )
        self.checkbox_all = view["checkbox_all"]
        self.selected_count = len(view["checkbox_values"])

        header = {b["name"] for b in table.header()}
        self.can_add = "add-product" in header
        self.can_export = "export-data" in header
        self.can_bulk_delete = "bulk-delete" in header

        if show.is_open:
            self.show_open = True
            self.show_product = show.product

        self.delete_state = deleter.dump_state()
        self.delete_open = deleter.is_open
        self.delete_message = deleter.confirm_message if deleter.is_open else ""

        self.export_batches = progress.tracked

        flashes = []
        for component in components.values():
            flashes.extend(component.flash_messages)
        for alert in bus.events_named("alert"):
            flashes.append({"type": alert.payload.get("type", "error"), "message": alert.payload.get("message", "")})
        if flashes:
            self.add_flash(flashes)

        if table.redirect_to:
            return [rx.redirect(table.redirect_to["path"])]
        return []

    @staticmethod
    def _row(row: Dict[str, Any]) -> Dict[str, Any]:
        names = {a["name"] for a in row["actions"]}
        return {
            "id": row["id"],
            "name": row["name"],
            "status_label": row["status_label"],
            "created_at_formatted": row["created_at_formatted"],
            "checked": row["checked"],
            "can_view": "view" in names,
            "can_edit": "edit" in names,
            "can_delete": "delete" in names,
        }

    # -----------------------------------------------------------------------
    # Event handlers
    # -----------------------------------------------------------------------

    def on_load(self):
        if not self.is_authenticated:
            return rx.redirect("/login")
        self.load_dashboard()
        return self._interact()

    def sort_by(self, field: str):
        return self._interact(lambda c: c["table"].sort_by(field))

    def set_search(self, value: str):
        return self._interact(lambda c: c["table"].set_search(value))

    def set_name_filter(self, value: str):
        return self._interact(lambda c: c["table"].set_filter("name", value))

    def set_status_filter(self, value: str):
        return self._interact(lambda c: c["table"].set_filter("status", "" if value == "all" else value))

    def set_created_from(self, value: str):
        return self._interact(lambda c: _set_range(c["table"], "start", value))

    def set_created_to(self, value: str):
        return self._interact(lambda c: _set_range(c["table"], "end", value))

    def clear_filters(self):
        return self._interact(lambda c: c["table"].clear_filters())

    def set_page(self, page: int):
        return self._interact(lambda c: c["table"].set_page(page))

    def next_page(self):
        return self.set_page(self.page + 1)

    def prev_page(self):
        return self.set_page(max(1, self.page - 1))

    def set_per_page(self, value: str):
        return self._interact(lambda c: c["table"].set_per_page(int(value)))

    def toggle_checkbox(self, row_id: int):
        return self._interact(lambda c: c["table"].toggle_checkbox(row_id))

    def toggle_checkbox_all(self):
        return self._interact(lambda c: c["table"].toggle_checkbox_all())

    def click_action(self, name: str, row_id: int):
        return self._interact(lambda c: c["table"].click_action(name, row_id))

    def click_header(self, name: str):
        return self._interact(lambda c: c["table"].click_header(name))

    def close_show(self):
        self.show_open = False
        self.show_product = {}

    def confirm_delete(self):
        return self._interact(lambda c: c["delete"].confirm())

    def cancel_delete(self):
        return self._interact(lambda c: c["delete"].cancel())

    def poll_exports(self):
        return self._interact(lambda c: c["progress"].poll())

    def dismiss_export(self, batch_id: str):
        return self._interact(lambda c: c["progress"].dismiss(batch_id))


def _text_value(value: Any) -> str:
    if isinstance(value, dict):
        return value.get("value") or ""
    return value or ""


def _set_range(table: ProductTable, bound: str, value: str) -> None:
    current = dict(table.active_filters.get("created_at") or {})
    current[bound] = value
    table.set_filter("created_at", current)


# ---------------------------------------------------------------------------
# Page
# ---------------------------------------------------------------------------

def product_page() -> rx.Component:
    return admin_layout(
        rx.vstack(
            rx.heading(ProductPageState.table_name, size="6"),
            _toolbar(),
            _filters(),
            _table(),
            _pagination(),
            _export_panel(),
            _show_dialog(),
            _delete_dialog(),
            spacing="4",
            width="100%",
            padding="6",
        ),
    )


def _toolbar() -> rx.Component:
    return rx.hstack(
        rx.input(
            placeholder=trans("common.search"),
            value=ProductPageState.search,
            on_change=ProductPageState.set_search.debounce(300),
            width="300px",
            size="2",
        ),
        rx.spacer(),
        rx.cond(
            ProductPageState.can_add,
            rx.link(
                rx.button(rx.icon("plus", size=16), size="2", color_scheme="gray", variant="solid"),
                href="/product/create",
                title=trans("tooltip.add_product"),
                custom_attrs={"data-testid": "add_new"},
            ),
        ),
        rx.cond(
            ProductPageState.can_export,
            rx.button(
                rx.icon("download", size=16),
                size="2",
                color_scheme="green",
                title=trans("tooltip.export_product"),
                on_click=ProductPageState.click_header("export-data"),
                custom_attrs={"data-testid": "export_button"},
            ),
        ),
        rx.cond(
            ProductPageState.can_bulk_delete & (ProductPageState.selected_count > 0),
            rx.button(
                rx.icon("trash-2", size=16),
                size="2",
                color_scheme="red",
                title=trans("tooltip.bulk_delete_product"),
                on_click=ProductPageState.click_header("bulk-delete"),
                custom_attrs={"data-testid": "bulk_delete_button"},
            ),
        ),
        width="100%",
        align="center",
        spacing="2",
    )


def _filters() -> rx.Component:
    return rx.hstack(
        rx.input(
            placeholder=trans("product.listing.name"),
            value=ProductPageState.name_filter,
            on_change=ProductPageState.set_name_filter.debounce(300),
            size="2",
        ),
        rx.select.root(
            rx.select.trigger(placeholder=trans("product.listing.status")),
            rx.select.content(
                rx.select.item("—", value="all"),
                rx.foreach(
                    ProductPageState.status_options,
                    lambda option: rx.select.item(option["label"], value=option["value"]),
                ),
            ),
            value=ProductPageState.status_filter,
            on_change=ProductPageState.set_status_filter,
            size="2",
        ),
        rx.input(type="date", on_change=ProductPageState.set_created_from, size="2"),
        rx.input(type="date", on_change=ProductPageState.set_created_to, size="2"),
        rx.button(
            trans("common.clear_filters"),
            variant="ghost",
            size="2",
            on_click=ProductPageState.clear_filters,
        ),
        spacing="2",
        align="center",
    )


def _sort_header(title: str, field: str) -> rx.Component:
    return rx.table.column_header_cell(
        rx.hstack(
            rx.text(title, weight="bold"),
            rx.cond(
                ProductPageState.sort_field == field,
                rx.cond(
                    ProductPageState.sort_direction == "asc",
                    rx.icon("arrow-up", size=14),
                    rx.icon("arrow-down", size=14),
                ),
            ),
            spacing="1",
            cursor="pointer",
        ),
        on_click=ProductPageState.sort_by(field),
    )


def _table() -> rx.Component:
    return rx.table.root(
        rx.table.header(
            rx.table.row(
                rx.table.column_header_cell(
                    rx.checkbox(
                        checked=ProductPageState.checkbox_all,
                        on_change=lambda _: ProductPageState.toggle_checkbox_all(),
                    ),
                ),
                _sort_header(trans("product.listing.id"), "id"),
                _sort_header(trans("product.listing.name"), "name"),
                _sort_header(trans("product.listing.status"), "status_label"),
                rx.table.column_header_cell(rx.text(trans("created_date"), weight="bold")),
                rx.table.column_header_cell(rx.text(trans("product.listing.actions"), weight="bold")),
            ),
        ),
        rx.table.body(
            rx.cond(
                ProductPageState.rows.length() > 0,
                rx.foreach(ProductPageState.rows, _row),
                rx.table.row(
                    rx.table.cell(rx.text(trans("common.no_records"), color="gray"), col_span=6),
                ),
            ),
        ),
        width="100%",
    )


def _row(row: dict) -> rx.Component:
    return rx.table.row(
        rx.table.cell(
            rx.checkbox(
                checked=row["checked"].to(bool),
                on_change=lambda _: ProductPageState.toggle_checkbox(row["id"]),
            ),
        ),
        rx.table.cell(rx.text(row["id"])),
        rx.table.cell(rx.text(row["name"])),
        rx.table.cell(rx.text(row["status_label"])),
        rx.table.cell(rx.text(row["created_at_formatted"])),
        rx.table.cell(
            rx.hstack(
                rx.cond(
                    row["can_view"].to(bool),
                    rx.icon_button(
                        rx.icon("eye", size=14),
                        size="1",
                        variant="outline",
                        color_scheme="green",
                        title=trans("tooltip.view"),
                        on_click=ProductPageState.click_action("view", row["id"]),
                    ),
                ),
                rx.cond(
                    row["can_edit"].to(bool),
                    rx.icon_button(
                        rx.icon("pencil", size=14),
                        size="1",
                        variant="outline",
                        color_scheme="blue",
                        title=trans("tooltip.edit"),
                        on_click=ProductPageState.click_action("edit", row["id"]),
                    ),
                ),
                rx.cond(
                    row["can_delete"].to(bool),
                    rx.icon_button(
                        rx.icon("trash", size=14),
                        size="1",
                        variant="outline",
                        color_scheme="red",
                        title=trans("tooltip.click_delete"),
                        on_click=ProductPageState.click_action("delete", row["id"]),
                    ),
                ),
                spacing="2",
            ),
        ),
    )


def _pagination() -> rx.Component:
    return rx.hstack(
        rx.text(
            ProductPageState.first_item, " - ", ProductPageState.last_item, " / ", ProductPageState.total,
            size="2",
            color="gray",
        ),
        rx.spacer(),
        rx.select(
            ProductPageState.per_page_values,
            value=ProductPageState.per_page.to_string(),
            on_change=ProductPageState.set_per_page,
            size="1",
        ),
        rx.button(
            "Previous",
            variant="outline",
            size="1",
            on_click=ProductPageState.prev_page,
            disabled=ProductPageState.page <= 1,
        ),
        rx.text(ProductPageState.page, " / ", ProductPageState.last_page, size="2"),
        rx.button(
            "Next",
            variant="outline",
            size="1",
            on_click=ProductPageState.next_page,
            disabled=ProductPageState.page >= ProductPageState.last_page,
        ),
        width="100%",
        align="center",
        spacing="2",
    )


def _export_panel() -> rx.Component:
    return rx.cond(
        ProductPageState.export_batches.length() > 0,
        rx.card(
            rx.vstack(
                rx.hstack(
                    rx.text("Exports", weight="bold"),
                    rx.spacer(),
                    rx.button("Refresh", size="1", variant="ghost", on_click=ProductPageState.poll_exports),
                    width="100%",
                ),
                rx.foreach(
                    ProductPageState.export_batches,
                    lambda batch: rx.hstack(
                        rx.text(batch["file_name"], size="2"),
                        rx.progress(value=batch["progress"].to(int), width="200px"),
                        rx.badge(batch["status"]),
                        rx.icon(
                            "x",
                            size=14,
                            cursor="pointer",
                            on_click=ProductPageState.dismiss_export(batch["batch_id"]),
                        ),
                        spacing="3",
                        align="center",
                    ),
                ),
                spacing="2",
                width="100%",
            ),
            width="100%",
        ),
    )


def _show_dialog() -> rx.Component:
    return rx.dialog.root(
        rx.dialog.content(
            rx.dialog.title(trans("product.show.title")),
            rx.data_list.root(
                rx.data_list.item(
                    rx.data_list.label(trans("product.listing.id")),
                    rx.data_list.value(ProductPageState.show_product["id"]),
                ),
                rx.data_list.item(
                    rx.data_list.label(trans("product.listing.name")),
                    rx.data_list.value(ProductPageState.show_product["name"]),
                ),
                rx.data_list.item(
                    rx.data_list.label(trans("product.listing.status")),
                    rx.data_list.value(ProductPageState.show_product["status_label"]),
                ),
                rx.data_list.item(
                    rx.data_list.label(trans("created_date")),
                    rx.data_list.value(ProductPageState.show_product["created_at"]),
                ),
            ),
            rx.button(trans("common.cancel"), variant="soft", on_click=ProductPageState.close_show),
        ),
        open=ProductPageState.show_open,
    )


def _delete_dialog() -> rx.Component:
    return rx.alert_dialog.root(
        rx.alert_dialog.content(
            rx.alert_dialog.title(ProductPageState.table_name),
            rx.alert_dialog.description(ProductPageState.delete_message),
            rx.hstack(
                rx.button(trans("common.cancel"), variant="soft", on_click=ProductPageState.cancel_delete),
                rx.button(trans("common.confirm"), color_scheme="red", on_click=ProductPageState.confirm_delete),
                spacing="3",
                justify="end",
            ),
        ),
        open=ProductPageState.delete_open,
    )
