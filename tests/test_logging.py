"""Unit tests for adminpanel.engine.logging — FileLogger, AsyncLogQueue, builders, retention."""

import gzip
import json
import logging
from datetime import date, timedelta

import pytest

from adminpanel.engine.logging import (
    AsyncLogQueue,
    FileLogger,
    LogEntry,
    LogRetentionManager,
    get_log_queue,
    init_logging,
    log,
    log_component_error,
    log_exception,
    log_export_event,
    log_security_event,
    log_system_event,
    shutdown_logging,
)


def _lines(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line]


class TestFileLogger:

    def test_creates_category_directories(self, tmp_path):
        FileLogger(str(tmp_path))
        assert (tmp_path / "tables" / "execution").is_dir()
        assert (tmp_path / "exports" / "execution").is_dir()
        assert (tmp_path / "system" / "security").is_dir()

    def test_write_appends_jsonl(self, tmp_path):
        file_logger = FileLogger(str(tmp_path))
        file_logger.write(LogEntry("exports", "execution", {"event": "a"}))
        file_logger.write(LogEntry("exports", "execution", {"event": "b"}))
        path = tmp_path / "exports" / "execution" / f"{date.today().isoformat()}.jsonl"
        assert [e["event"] for e in _lines(path)] == ["a", "b"]

    def test_query_filters_entries(self, tmp_path):
        file_logger = FileLogger(str(tmp_path))
        file_logger.write_batch([
            LogEntry("tables", "security", {"event": "capability_denied", "user_id": 1}),
            LogEntry("tables", "security", {"event": "capability_denied", "user_id": 2}),
        ])
        results = file_logger.query("tables", "security", filters={"user_id": 2})
        assert len(results) == 1
        assert results[0]["user_id"] == 2

    def test_query_unknown_directory(self, tmp_path):
        assert FileLogger(str(tmp_path)).query("nothing", "here") == []


class TestAsyncLogQueue:

    def test_stop_drains_pending_entries(self, tmp_path):
        file_logger = FileLogger(str(tmp_path))
        queue = AsyncLogQueue(file_logger, flush_interval_ms=10)
        queue.push(LogEntry("system", "execution", {"event": "one"}))
        queue.stop()
        path = tmp_path / "system" / "execution" / f"{date.today().isoformat()}.jsonl"
        assert _lines(path)[0]["event"] == "one"

    def test_full_queue_drops(self, tmp_path):
        queue = AsyncLogQueue(FileLogger(str(tmp_path)), max_queue_size=1)
        assert queue.push(LogEntry("system", "execution", {})) is True
        assert queue.push(LogEntry("system", "execution", {})) is False
        assert queue.dropped_count == 1


class TestBuilders:

    def test_component_error(self):
        try:
            raise ValueError("bad row")
        except ValueError as e:
            entry = log_component_error("product.table", "export_data", e, user_id=7, batch="b1")
        assert (entry.object_type, entry.category) == ("tables", "execution")
        assert entry.data["event"] == "component_error"
        assert entry.data["error_type"] == "ValueError"
        assert entry.data["source"] == "product.table: export_data"
        assert "Traceback" in entry.data["trace"]
        assert entry.data["context"] == {"batch": "b1"}

    def test_export_event(self):
        entry = log_export_event("failed", "b1", "Export Product Table", "ExportProductTable", error="disk full")
        assert entry.object_type == "exports"
        assert entry.data["event"] == "export_failed"
        assert entry.data["level"] == "ERROR"
        assert entry.data["error"] == "disk full"

    def test_security_event_falls_back_to_system(self):
        entry = log_security_event("capability_denied", "view-product", 7, "bob", object_type="exports")
        assert (entry.object_type, entry.category) == ("system", "security")

    def test_security_event_for_tables(self):
        entry = log_security_event("capability_denied", "view-product", 7, "bob", object_type="tables", subject="3")
        assert entry.object_type == "tables"
        assert entry.data["subject"] == "3"

    def test_system_event(self):
        entry = log_system_event("panel_started", details={"environment": "dev"})
        assert entry.data["details"] == {"environment": "dev"}


class TestGlobalQueue:

    def test_log_without_queue_is_dropped(self):
        shutdown_logging()
        assert log(log_system_event("x")) is False

    def test_init_and_shutdown(self, tmp_path):
        init_logging(log_dir=str(tmp_path), flush_interval_ms=10)
        try:
            assert get_log_queue() is not None
            assert log(log_system_event("panel_started")) is True
        finally:
            shutdown_logging()
        assert get_log_queue() is None
        path = tmp_path / "system" / "execution" / f"{date.today().isoformat()}.jsonl"
        assert _lines(path)[-1]["event"] == "panel_started"

    def test_log_exception_writes_both_sinks(self, tmp_path, caplog):
        module_logger = logging.getLogger("adminpanel.tests")
        init_logging(log_dir=str(tmp_path), flush_interval_ms=10)
        try:
            try:
                raise RuntimeError("broker down")
            except RuntimeError as e:
                with caplog.at_level(logging.ERROR, logger="adminpanel.tests"):
                    log_exception(module_logger, "product.table", "export_data", e, user_id=7)
        finally:
            shutdown_logging()
        assert "broker down" in caplog.text
        entry = _lines(tmp_path / "tables" / "execution" / f"{date.today().isoformat()}.jsonl")[-1]
        assert entry["operation"] == "export_data"
        assert entry["user_id"] == 7


class TestLogRetentionManager:

    def _touch(self, directory, day):
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{day.isoformat()}.jsonl"
        path.write_text('{"event":"x"}\n', encoding="utf-8")
        return path

    def test_deletes_and_compresses(self, tmp_path):
        today = date(2026, 6, 1)
        exec_dir = tmp_path / "tables" / "execution"
        expired = self._touch(exec_dir, today - timedelta(days=100))
        old = self._touch(exec_dir, today - timedelta(days=10))
        fresh = self._touch(exec_dir, today - timedelta(days=1))

        manager = LogRetentionManager(str(tmp_path), {"execution": 90, "security": 365}, compress_after_days=7)
        assert manager.cleanup(today=today) == {"deleted": 1, "compressed": 1}

        assert not expired.exists()
        assert not old.exists()
        with gzip.open(str(old) + ".gz", "rt", encoding="utf-8") as handle:
            assert json.loads(handle.read())["event"] == "x"
        assert fresh.exists()

    def test_security_logs_keep_longer(self, tmp_path):
        today = date(2026, 6, 1)
        kept = self._touch(tmp_path / "system" / "security", today - timedelta(days=100))
        manager = LogRetentionManager(str(tmp_path), {"execution": 90, "security": 365}, compress_after_days=365)
        manager.cleanup(today=today)
        assert kept.exists()

    def test_ignores_foreign_files(self, tmp_path):
        directory = tmp_path / "system" / "execution"
        directory.mkdir(parents=True)
        (directory / "notes.txt").write_text("keep", encoding="utf-8")
        assert LogRetentionManager(str(tmp_path)).cleanup() == {"deleted": 0, "compressed": 0}
