"""
Product record source — the query, columns, filters and derived fields of
the product listing. Shared by the interactive ProductTable and the CSV
export job, which runs in a worker without a logged-in user.
"""

from __future__ import annotations

from typing import List

from sqlalchemy import select

from adminpanel.db.models import Product
from adminpanel.engine.i18n import trans
from adminpanel.grid import Column, Fields, Filter, GridComponent
from adminpanel.grid.filters import FilterDef


class ProductListing(GridComponent):
    component_name = "product.listing"
    default_sort_field = "id"
    default_sort_direction = "desc"

    def datasource(self):
        label_map = self.config.products.status.label_map()
        return select(
            Product.id,
            Product.name,
            Product.status,
            Product.status_label_expression(label_map).label("status_label"),
            Product.created_at,
        )

    def columns(self) -> List[Column]:
        return [
            Column.make(trans("product.listing.id"), "id").sortable(),
            Column.make(trans("product.listing.name"), "name").sortable().searchable(),
            Column.make(trans("product.listing.status"), "status_label").sortable().searchable(),
            Column.make(trans("created_date"), "created_at_formatted", "created_at"),
            Column.action(trans("product.listing.actions")),
        ]

    def filters(self) -> List[FilterDef]:
        label_map = self.config.products.status.label_map()
        return [
            Filter.input_text("name", "name").operators(["contains"]),
            Filter.select("status", "status")
                .data_source(Product.status_options(label_map))
                .option_label("label")
                .option_value("key"),
            Filter.datetime_picker("created_at", "created_at"),
        ]

    def fields(self) -> Fields:
        fmt = self.config.ui.default_datetime_format
        return (
            Fields()
            .add("id")
            .add("created_at_formatted", lambda row: row["created_at"].strftime(fmt) if row.get("created_at") else "")
        )
