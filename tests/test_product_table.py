"""Tests for adminpanel.products.table — ProductTable (listing, buttons, bulk ops)."""

import json
from unittest.mock import patch

import pytest

from adminpanel.engine.errors import (
    PanelAuthorizationError,
    PanelRecordError,
    PanelValidationError,
)
from adminpanel.engine.events import EventBus
from adminpanel.exports.helper import ExportResult
from adminpanel.products.delete import ProductDelete
from adminpanel.products.show import ProductShow
from adminpanel.products.table import ProductTable


def _ids(table):
    return [row["id"] for row in table.render()["rows"]]


def _names(buttons):
    return [b["name"] for b in buttons]


class TestAuthorization:

    def test_construction_requires_view_product(self, db_session, products, make_context, as_user):
        with as_user(make_context(["add-product"])):
            with pytest.raises(PanelAuthorizationError) as exc:
                ProductTable(db_session)
        assert exc.value.status_code == 403
        assert exc.value.capability == "view-product"

    def test_no_context_is_denied(self, db_session, products):
        with pytest.raises(PanelAuthorizationError):
            ProductTable(db_session)

    def test_viewer_gets_only_the_view_button(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            view = ProductTable(db_session).render()
        assert view["header"] == []
        assert all(_names(row["actions"]) == ["view"] for row in view["rows"])

    def test_manager_gets_every_row_button(self, db_session, products, manager_context, as_user):
        with as_user(manager_context):
            view = ProductTable(db_session).render()
        assert _names(view["rows"][0]["actions"]) == ["view", "edit", "delete"]

    def test_bulk_delete_button_absent_without_selection(self, db_session, products, manager_context, as_user):
        with as_user(manager_context):
            table = ProductTable(db_session)
            assert _names(table.render()["header"]) == ["add-product", "export-data"]
            table.toggle_checkbox(15)
            assert _names(table.render()["header"]) == ["add-product", "export-data", "bulk-delete"]

    def test_header_buttons_follow_capabilities(self, db_session, products, make_context, as_user):
        with as_user(make_context(["view-product", "export-product"])):
            table = ProductTable(db_session)
            table.toggle_checkbox(15)
            assert _names(table.render()["header"]) == ["export-data"]

    def test_system_admin_passes(self, db_session, products, admin_context, as_user):
        with as_user(admin_context):
            view = ProductTable(db_session).render()
        assert view["total"] == 15


class TestListing:

    def test_default_sort_is_id_desc(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            view = table.render()
        assert view["table_name"] == "Products"
        assert [r["id"] for r in view["rows"]] == list(range(15, 5, -1))
        assert view["total"] == 15
        assert view["last_page"] == 2
        assert (view["first_item"], view["last_item"]) == (1, 10)
        assert (view["sort_field"], view["sort_direction"]) == ("id", "desc")

    def test_rows_carry_formatted_fields(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_page(2)
            row = table.render()["rows"][-1]
        assert row["id"] == 1
        assert row["status_label"] == "Active"
        assert row["created_at_formatted"] == "01-01-2026 10:00:00"

    def test_sort_by_toggles_direction(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.sort_by("name")
            assert table.render()["rows"][0]["name"] == "100% Cotton Tote"
            table.sort_by("name")
            assert table.render()["rows"][0]["name"] == "Water Bottle"

    def test_sort_on_status_label_breaks_ties_by_id(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_sort("status_label", "desc")
            rows = table.render()["rows"]
        assert [r["id"] for r in rows[:5]] == [14, 11, 8, 5, 2]
        assert rows[0]["status_label"] == "Inactive"

    def test_unknown_sort_field_falls_back_to_default(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_sort("password_hash", "asc")
            view = table.render()
        assert (view["sort_field"], view["sort_direction"]) == ("id", "desc")
        assert view["rows"][0]["id"] == 15

    def test_invalid_direction_becomes_desc(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_sort("name", "sideways")
            assert table.resolve_sort() == ("name", "desc")

    def test_display_field_sorts_on_its_data_field(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_sort("created_at_formatted", "asc")
            # created date is not a sortable column
            assert table.resolve_sort() == ("id", "desc")

    def test_name_filter_matches_substring(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_filter("name", "lamp")
            assert _ids(table) == [2, 1]

    def test_name_filter_with_operator(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_filter("name", {"operator": "contains", "value": "Speaker"})
            assert _ids(table) == [11, 10]

    def test_operator_not_enabled_is_rejected(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_filter("name", {"operator": "starts_with", "value": "Desk"})
            with pytest.raises(PanelValidationError):
                table.render()

    def test_status_filter_matches_stored_key(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_filter("status", "N")
            assert _ids(table) == [14, 11, 8, 5, 2]

    def test_status_filter_options_come_from_config(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            filters = ProductTable(db_session).render()["filters"]
        status = next(f for f in filters if f["field"] == "status")
        assert status["options"] == [
            {"label": "Active", "value": "Y"},
            {"label": "Inactive", "value": "N"},
        ]

    def test_date_range_filter_includes_whole_end_day(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_filter("created_at", {"start": "2026-01-03", "end": "2026-01-05"})
            assert _ids(table) == [5, 4, 3]

    def test_unknown_filter_is_rejected(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            with pytest.raises(PanelValidationError):
                table.set_filter("password", "x")

    def test_search_is_case_insensitive(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_search("CHAIR")
            assert _ids(table) == [9, 8]

    def test_search_covers_status_label(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_search("inactive")
            assert table.render()["total"] == 5

    def test_search_escapes_like_wildcards(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_search("%")
            assert _ids(table) == [15]

    def test_clear_filters_resets_search_and_filters(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_search("lamp")
            table.set_filter("status", "Y")
            table.clear_filters()
            assert table.render()["total"] == 15

    def test_page_is_clamped_to_last_page(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_page(99)
            view = table.render()
        assert view["page"] == 2
        assert [r["id"] for r in view["rows"]] == [5, 4, 3, 2, 1]

    def test_per_page_must_be_offered(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            with pytest.raises(PanelValidationError):
                table.set_per_page(7)
            table.set_per_page(25)
            assert len(table.render()["rows"]) == 15

    def test_state_round_trip(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.set_filter("status", "Y")
            table.sort_by("name")
            restored = ProductTable(db_session, state=table.dump_state())
            assert _ids(restored) == _ids(table)
            assert restored.active_filters == {"status": "Y"}


class TestSelection:

    def test_page_change_clears_selection(self, db_session, products, manager_context, as_user):
        with as_user(manager_context):
            table = ProductTable(db_session)
            assert table.toggle_checkbox(15) is True
            assert table.checkbox_values == [15]
            table.set_page(2)
            assert table.checkbox_values == []
            assert table.render()["checkbox_values"] == []

    def test_only_visible_rows_can_be_checked(self, db_session, products, manager_context, as_user):
        with as_user(manager_context):
            table = ProductTable(db_session)
            assert table.toggle_checkbox(1) is False
            assert table.checkbox_values == []

    def test_toggle_all_selects_the_page(self, db_session, products, manager_context, as_user):
        with as_user(manager_context):
            table = ProductTable(db_session)
            table.toggle_checkbox_all()
            assert table.checkbox_values == list(range(15, 5, -1))
            assert table.checkbox_all is True
            table.toggle_checkbox_all()
            assert table.checkbox_values == []
            assert table.checkbox_all is False

    def test_selection_is_pruned_to_the_page(self, db_session, products, manager_context, as_user):
        with as_user(manager_context):
            table = ProductTable(db_session, state={"checkbox_values": [15, 1, 999]})
            view = table.render()
        assert view["checkbox_values"] == [15]
        assert [r["checked"] for r in view["rows"]][:2] == [True, False]

    def test_deselect_event_clears_selection(self, db_session, products, manager_context, as_user):
        bus = EventBus()
        with as_user(manager_context):
            table = ProductTable(db_session, bus=bus)
            table.toggle_checkbox(15)
            bus.dispatch("deSelectCheckBoxEvent")
        assert table.checkbox_values == []

    def test_refresh_event_is_table_scoped(self, db_session, products, manager_context, as_user):
        bus = EventBus()
        with as_user(manager_context):
            table = ProductTable(db_session, bus=bus)
            bus.dispatch("pg:eventRefresh-Other")
            assert table.needs_refresh is False
            bus.dispatch("pg:eventRefresh-Products")
            assert table.needs_refresh is True


class TestRowActions:

    def test_edit_redirects(self, db_session, products, manager_context, as_user):
        with as_user(manager_context):
            table = ProductTable(db_session)
            table.click_action("edit", 15)
        assert table.redirect_to == {"path": "/product/15/edit", "navigate": True}

    def test_view_opens_the_detail_panel(self, db_session, products, manager_context, as_user):
        bus = EventBus()
        with as_user(manager_context):
            show = ProductShow(db_session, bus=bus)
            table = ProductTable(db_session, bus=bus)
            table.click_action("view", 3)
        assert show.is_open is True
        assert show.product["name"] == "Coffee Mug"
        assert bus.events_named("show-product-info")[0].target == "product.show"

    def test_delete_asks_for_confirmation(self, db_session, products, manager_context, as_user):
        bus = EventBus()
        with as_user(manager_context):
            deleter = ProductDelete(db_session, bus=bus)
            table = ProductTable(db_session, bus=bus)
            table.click_action("delete", 15)
        assert deleter.pending_ids == [15]
        assert deleter.is_open is True
        assert deleter.is_bulk is False
        assert deleter.table_name == "Products"

    def test_missing_row_raises(self, db_session, products, manager_context, as_user):
        with as_user(manager_context):
            table = ProductTable(db_session)
            with pytest.raises(PanelRecordError):
                table.click_action("edit", 999)

    def test_denied_button_cannot_be_clicked(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            with pytest.raises(PanelAuthorizationError):
                table.click_action("edit", 15)

    def test_row_on_another_page_can_still_be_clicked(self, db_session, products, manager_context, as_user):
        with as_user(manager_context):
            table = ProductTable(db_session)
            table.click_action("edit", 1)
        assert table.redirect_to["path"] == "/product/1/edit"

    def test_add_product_routes_to_create(self, db_session, products, manager_context, as_user):
        with as_user(manager_context):
            table = ProductTable(db_session)
            table.click_header("add-product")
        assert table.redirect_to == {"path": "/product/create", "navigate": True}


class TestBulkDelete:

    def test_empty_selection_flashes_and_dispatches_nothing(self, db_session, products, manager_context, as_user):
        bus = EventBus()
        with as_user(manager_context):
            table = ProductTable(db_session, bus=bus)
            table.bulk_delete()
        assert table.flash_messages == [{"type": "error", "message": "Please select at least one record."}]
        assert bus.events_named("bulk-delete-confirmation") == []

    def test_selection_dispatches_one_confirmation(self, db_session, products, manager_context, as_user):
        bus = EventBus()
        with as_user(manager_context):
            table = ProductTable(db_session, bus=bus)
            table.toggle_checkbox(15)
            table.toggle_checkbox(14)
            table.click_header("bulk-delete")
        events = bus.events_named("bulk-delete-confirmation")
        assert len(events) == 1
        assert events[0].is_broadcast
        assert events[0].payload == {"ids": [15, 14], "tableName": "Products"}

    def test_header_click_without_selection_flashes(self, db_session, products, manager_context, as_user):
        bus = EventBus()
        with as_user(manager_context):
            table = ProductTable(db_session, bus=bus)
            table.click_header("bulk-delete")
            header = [b["name"] for b in table.render()["header"]]
        assert table.flash_messages == [{"type": "error", "message": "Please select at least one record."}]
        assert bus.events_named("bulk-delete-confirmation") == []
        assert "bulk-delete" not in header

    def test_header_click_without_ability_is_forbidden(self, db_session, products, viewer_context, as_user):
        with as_user(viewer_context):
            table = ProductTable(db_session)
            table.toggle_checkbox(15)
            with pytest.raises(PanelAuthorizationError):
                table.click_header("bulk-delete")

    def test_unexpected_failure_is_logged_and_flashed(self, db_session, products, manager_context, as_user):
        bus = EventBus()

        def _boom(payload):
            raise RuntimeError("listener exploded")

        bus.listen("bulk-delete-confirmation", _boom, component="product.delete")
        with as_user(manager_context):
            table = ProductTable(db_session, bus=bus)
            table.toggle_checkbox(15)
            with patch("adminpanel.products.table.log_exception") as log_exc:
                table.bulk_delete()
        assert table.flash_messages == [{"type": "error", "message": "Bulk delete failed. Please try again."}]
        log_exc.assert_called_once()
        assert log_exc.call_args.args[2] == "bulk_delete"

    def test_confirmed_bulk_delete_removes_rows(self, db_session, products, manager_context, as_user):
        bus = EventBus()
        with as_user(manager_context):
            deleter = ProductDelete(db_session, bus=bus)
            table = ProductTable(db_session, bus=bus)
            table.toggle_checkbox(15)
            table.toggle_checkbox(14)
            table.bulk_delete()
            assert deleter.is_bulk is True
            assert deleter.confirm() == 2
            assert table.checkbox_values == []
            assert table.needs_refresh is True
            assert table.render()["total"] == 13


class TestExportData:

    def test_success_dispatches_one_progress_event(self, db_session, products, manager_context, as_user, export_runner):
        bus = EventBus()
        with as_user(manager_context):
            table = ProductTable(db_session, bus=bus, export_runner=export_runner)
            assert table.click_header("export-data") is True
        events = bus.events_named("showExportProgressEvent")
        assert len(events) == 1
        assert events[0].target == "common-code"
        assert json.loads(events[0].payload) == export_runner.return_value.data
        assert bus.events_named("alert") == []

    def test_runner_receives_table_state(self, db_session, products, manager_context, as_user, export_runner):
        with as_user(manager_context):
            table = ProductTable(db_session, export_runner=export_runner)
            table.set_filter("status", "Y")
            table.set_search("o")
            table.export_data()
        kwargs = export_runner.call_args.kwargs
        assert kwargs["total"] == 6
        assert kwargs["filters"] == {"status": "Y"}
        assert kwargs["search"] == "o"
        assert kwargs["selected_ids"] == []
        assert kwargs["heading_columns"] == "Name,Status"
        assert kwargs["file_prefix"] == "ProductReports_"
        assert kwargs["job_class"] == "ExportProductTable"
        assert kwargs["batch_name"] == "Export Product Table"
        assert kwargs["user_id"] == manager_context.user_id

    def test_selection_is_passed(self, db_session, products, manager_context, as_user, export_runner):
        with as_user(manager_context):
            table = ProductTable(db_session, export_runner=export_runner)
            table.toggle_checkbox(13)
            table.export_data()
        assert export_runner.call_args.kwargs["selected_ids"] == [13]

    def test_rejection_raises_alert_without_progress(self, db_session, products, manager_context, as_user, export_runner):
        export_runner.return_value = ExportResult(False, "There is no data to export.")
        bus = EventBus()
        with as_user(manager_context):
            table = ProductTable(db_session, bus=bus, export_runner=export_runner)
            assert table.export_data() is False
        assert bus.events_named("showExportProgressEvent") == []
        alerts = bus.events_named("alert")
        assert len(alerts) == 1
        assert alerts[0].payload == {"type": "error", "message": "There is no data to export."}

    def test_runner_failure_flashes_generic_message(self, db_session, products, manager_context, as_user, export_runner):
        export_runner.side_effect = RuntimeError("broker down")
        bus = EventBus()
        with as_user(manager_context):
            table = ProductTable(db_session, bus=bus, export_runner=export_runner)
            with patch("adminpanel.products.table.log_exception") as log_exc:
                assert table.export_data() is False
        assert table.flash_messages == [
            {"type": "error", "message": "Something went wrong. Please try again later."}
        ]
        assert bus.history == []
        log_exc.assert_called_once()

    def test_export_button_absent_without_capability(self, db_session, products, viewer_context, as_user, export_runner):
        with as_user(viewer_context):
            table = ProductTable(db_session, export_runner=export_runner)
            with pytest.raises(PanelAuthorizationError):
                table.click_header("export-data")
        export_runner.assert_not_called()
