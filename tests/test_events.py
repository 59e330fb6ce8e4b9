"""Unit tests for adminpanel.engine.events and the PanelComponent base."""

import json

import pytest

from adminpanel.engine.component import PanelComponent
from adminpanel.engine.events import EventBus


class _Recorder(PanelComponent):
    component_name = "recorder"

    def __init__(self, session=None, **kwargs):
        super().__init__(session, **kwargs)
        self.received = []
        self.register_listeners()

    def listeners(self):
        return {"ping": self.received.append}


class TestEventBus:

    def test_broadcast_reaches_every_listener(self):
        bus = EventBus()
        seen = []
        bus.listen("refresh", lambda p: seen.append(("a", p)), component="a")
        bus.listen("refresh", lambda p: seen.append(("b", p)), component="b")
        record = bus.dispatch("refresh", 1)
        assert seen == [("a", 1), ("b", 1)]
        assert record.delivered_to == ["a", "b"]
        assert record.is_broadcast

    def test_addressed_dispatch_reaches_one_component(self):
        bus = EventBus()
        seen = []
        bus.listen("show", lambda p: seen.append("a"), component="a")
        bus.listen("show", lambda p: seen.append("b"), component="b")
        bus.dispatch("show", {}, to="b")
        assert seen == ["b"]

    def test_undelivered_events_are_kept(self):
        bus = EventBus()
        bus.dispatch("alert", {"type": "error", "message": "x"})
        assert [e.name for e in bus.undelivered()] == ["alert"]

    def test_listener_error_propagates(self):
        bus = EventBus()

        def _fail(payload):
            raise RuntimeError("nope")

        bus.listen("x", _fail)
        with pytest.raises(RuntimeError):
            bus.dispatch("x")
        assert len(bus.history) == 1

    def test_forget_component(self):
        bus = EventBus()
        bus.listen("a", print, component="c1")
        bus.listen("b", print, component="c1")
        bus.listen("a", print, component="c2")
        assert bus.forget("c1") == 2
        assert [l.component for l in bus.listeners_for("a")] == ["c2"]

    def test_events_named_and_clear(self):
        bus = EventBus()
        bus.dispatch("a")
        bus.dispatch("b")
        bus.dispatch("a")
        assert len(bus.events_named("a")) == 2
        bus.clear_history()
        assert bus.history == []

    def test_record_serializes(self):
        bus = EventBus()
        data = json.loads(bus.dispatch("edit", {"id": 3}, source="product.table").to_json())
        assert data["name"] == "edit"
        assert data["payload"] == {"id": 3}
        assert data["source"] == "product.table"
        assert data["target"] is None


class TestPanelComponent:

    def test_registers_listeners_under_its_name(self, panel_config):
        bus = EventBus()
        recorder = _Recorder(bus=bus)
        bus.dispatch("ping", 1, to="recorder")
        assert recorder.received == [1]

    def test_dispatch_records_source(self, panel_config):
        recorder = _Recorder()
        record = recorder.dispatch_to("other", "ping", 2)
        assert record.source == "recorder"
        assert record.target == "other"

    def test_redirect_normalizes_path(self, panel_config):
        recorder = _Recorder()
        assert recorder.redirect("product/3/edit", navigate=True) == {"path": "/product/3/edit", "navigate": True}

    def test_flash(self, panel_config):
        recorder = _Recorder()
        recorder.flash("success", "done")
        assert recorder.flash_messages == [{"type": "success", "message": "done"}]

    def test_current_user_id(self, panel_config, make_context, as_user):
        assert PanelComponent.current_user_id() is None
        with as_user(make_context(user_id=42)):
            assert PanelComponent.current_user_id() == 42
