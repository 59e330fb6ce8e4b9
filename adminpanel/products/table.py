"""
Product listing table.

Every affordance is gated: the table itself needs ``view-product``, each row
button and header button needs its own capability and is omitted when the
gate denies it. The table never mutates products; deletes go through the
``product.delete`` component and exports through a Celery export batch.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from adminpanel.engine.i18n import trans
from adminpanel.engine.logging import log_exception
from adminpanel.exports.helper import ExportResult, run_export_job
from adminpanel.grid import Button
from adminpanel.products.listing import ProductListing
from adminpanel.security.abilities import ability

logger = logging.getLogger("adminpanel.products.table")

EXPORT_JOB_CLASS = "ExportProductTable"
EXPORT_HEADING_COLUMNS = "Name,Status"
EXPORT_BATCH_NAME = "Export Product Table"
EXPORT_FILE_PREFIX = "ProductReports_"

PROGRESS_COMPONENT = "common-code"
SHOW_COMPONENT = "product.show"
DELETE_COMPONENT = "product.delete"

ExportRunner = Callable[..., ExportResult]


class ProductTable(ProductListing):
    component_name = "product.table"
    show_checkbox = True

    def __init__(self, session, export_runner: Optional[ExportRunner] = None, **kwargs: Any):
        self.export_runner = export_runner or run_export_job
        super().__init__(session, **kwargs)

    def mount(self) -> None:
        self.gate.authorize(ability("view", "product"), object_type="tables")
        self.table_name = trans("product.listing.tableName")

    def listeners(self) -> Dict[str, Callable[[Any], Any]]:
        return {
            "edit": self.edit,
            "deSelectCheckBoxEvent": self.de_select_check_box,
        }

    # -----------------------------------------------------------------------
    # Buttons
    # -----------------------------------------------------------------------

    def header(self) -> List[Button]:
        buttons = []

        if self.gate.allows(ability("add", "product")):
            buttons.append(
                Button.add("add-product")
                .slot("+")
                .tooltip(trans("tooltip.add_product"))
                .icon("plus")
                .testid("add_new")
                .css("bg-black hover:bg-gray-800 text-white")
                .route("/product/create", navigate=True)
            )

        if self.gate.allows(ability("export", "product")):
            buttons.append(
                Button.add("export-data")
                .tooltip(trans("tooltip.export_product"))
                .icon("download")
                .testid("export_button")
                .css("bg-green-600 hover:bg-green-700 text-white")
                .call("export_data")
            )

        if self.gate.allows(ability("bulkDelete", "product")):
            buttons.append(
                Button.add("bulk-delete")
                .tooltip(trans("tooltip.bulk_delete_product"))
                .icon("trash-2")
                .testid("bulk_delete_button")
                .css("bg-red-600 hover:bg-red-600 text-white")
                .when_selected()
                .call("bulk_delete")
            )

        return buttons

    def actions(self, row: Dict[str, Any]) -> List[Button]:
        actions = []
        row_id = row["id"]

        if self.gate.allows(ability("show", "product"), row):
            actions.append(
                Button.add("view")
                .tooltip(trans("tooltip.view"))
                .icon("eye")
                .testid("view_button")
                .css("border-green-200 text-green-600 hover:bg-green-50")
                .dispatch_to(SHOW_COMPONENT, "show-product-info", {"id": row_id})
            )

        if self.gate.allows(ability("edit", "product"), row):
            actions.append(
                Button.add("edit")
                .tooltip(trans("tooltip.edit"))
                .icon("pencil")
                .testid("edit_button")
                .css("border-blue-200 text-blue-600 hover:bg-blue-50")
                .dispatch("edit", {"id": row_id})
            )

        if self.gate.allows(ability("delete", "product"), row):
            actions.append(
                Button.add("delete")
                .tooltip(trans("tooltip.click_delete"))
                .icon("trash")
                .testid("delete_button")
                .css("border-red-200 text-red-600 hover:bg-red-50")
                .dispatch_to(
                    DELETE_COMPONENT,
                    "delete-confirmation",
                    {"ids": [row_id], "tableName": self.table_name},
                )
            )

        return actions

    # -----------------------------------------------------------------------
    # Listeners
    # -----------------------------------------------------------------------

    def edit(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.redirect(f"product/{payload['id']}/edit", navigate=True)

    def de_select_check_box(self, payload: Any = None) -> bool:
        self.clear_selection()
        return True

    def handle_page_change(self) -> None:
        self.clear_selection()

    # -----------------------------------------------------------------------
    # Bulk operations
    # -----------------------------------------------------------------------

    def bulk_delete(self) -> None:
        """Ask ``product.delete`` to confirm deleting the selected rows."""
        try:
            if self.checkbox_values:
                self.dispatch(
                    "bulk-delete-confirmation",
                    {"ids": list(self.checkbox_values), "tableName": self.table_name},
                )
            else:
                self.flash("error", trans("bulk_delete.no_users_selected"))
        except Exception as e:
            log_exception(logger, self.component_name, "bulk_delete", e, user_id=self.current_user_id())
            self.flash("error", trans("bulk_delete.failed"))

    def export_data(self) -> bool:
        """
        Submit a CSV export of the selected rows, or of every row matching the
        current search and filters when nothing is selected.

        Returns:
            True when a batch was submitted and its progress event dispatched.
        """
        try:
            result = self.export_runner(
                total=self.count_total(),
                filters=dict(self.active_filters),
                selected_ids=list(self.checkbox_values),
                search=self.search,
                heading_columns=EXPORT_HEADING_COLUMNS,
                file_prefix=EXPORT_FILE_PREFIX,
                job_class=EXPORT_JOB_CLASS,
                batch_name=EXPORT_BATCH_NAME,
                extra={},
                session=self.session,
                user_id=self.current_user_id(),
                config=self.config,
            )
            if not result.status:
                self.dispatch("alert", {"type": "error", "message": result.message})
                return False

            self.dispatch_to(PROGRESS_COMPONENT, "showExportProgressEvent", json.dumps(result.data))
            return True
        except Exception as e:
            log_exception(logger, self.component_name, "export_data", e, user_id=self.current_user_id())
            self.flash("error", trans("product.messages.common_error_message"))
            return False
