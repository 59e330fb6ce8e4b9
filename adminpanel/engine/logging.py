"""
AdminPanel Logging System — structured JSON-lines logs next to stdlib logging.

Module loggers (``logging.getLogger("adminpanel.<module>")``) carry human
readable messages. Events worth querying later (component failures, export
lifecycle, gate denials, boot/shutdown) are also pushed as LogEntry objects
onto a background queue that appends them to:

    {log_dir}/{object_type}/{category}/{YYYY-MM-DD}.jsonl

LogRetentionManager gzips and eventually deletes old day files.
"""

from __future__ import annotations

import gzip
import json
import logging
import shutil
import threading
import traceback
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger("adminpanel.engine.logging")

LOG_LAYOUT = {
    "tables": ("execution", "security"),
    "exports": ("execution",),
    "dashboard": ("security",),
    "system": ("execution", "security"),
}

DEFAULT_RETENTION = {"execution": 90, "security": 365}


@dataclass
class LogEntry:
    object_type: str
    category: str
    data: Dict[str, Any]

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


def _day_file(base: Path, day: date) -> Path:
    return base / f"{day.isoformat()}.jsonl"


class FileLogger:
    """Appends entries to the day file of their object type and category."""

    def __init__(self, log_dir: str = "logs"):
        self._log_dir = Path(log_dir)
        self._lock = threading.Lock()
        for object_type, categories in LOG_LAYOUT.items():
            for category in categories:
                (self._log_dir / object_type / category).mkdir(parents=True, exist_ok=True)

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def write(self, entry: LogEntry) -> None:
        self.write_batch([entry])

    def write_batch(self, entries: List[LogEntry]) -> None:
        by_file: Dict[Path, List[str]] = {}
        today = date.today()
        for entry in entries:
            base = self._log_dir / entry.object_type / entry.category
            by_file.setdefault(_day_file(base, today), []).append(entry.to_json())

        with self._lock:
            for path, lines in by_file.items():
                path.parent.mkdir(parents=True, exist_ok=True)
                with open(path, "a", encoding="utf-8") as f:
                    f.write("\n".join(lines) + "\n")

    def query(
        self,
        object_type: str,
        category: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Read back entries of one object type and category, newest day first,
        returned oldest first. ``filters`` are exact matches on top-level keys;
        compressed day files are read too. Defaults to the last 7 days.
        """
        base = self._log_dir / object_type / category
        if not base.is_dir():
            return []

        end_date = end_date or date.today()
        start_date = start_date or end_date - timedelta(days=7)

        found: List[Dict[str, Any]] = []
        day = end_date
        while day >= start_date and len(found) < limit:
            plain = _day_file(base, day)
            for path in (plain, plain.with_name(plain.name + ".gz")):
                for data in _iter_entries(path):
                    if filters and any(data.get(k) != v for k, v in filters.items()):
                        continue
                    found.append(data)
                    if len(found) >= limit:
                        break
            day -= timedelta(days=1)

        found.reverse()
        return found


def _iter_entries(path: Path) -> Iterator[Dict[str, Any]]:
    if not path.exists():
        return
    opener = gzip.open if path.suffix == ".gz" else open
    try:
        with opener(path, "rt", encoding="utf-8") as handle:
            for line in handle:
                if not line.strip():
                    continue
                try:
                    yield json.loads(line)
                except json.JSONDecodeError:
                    continue
    except OSError as e:
        logger.warning(f"Could not read log file {path}: {e}")


class AsyncLogQueue:
    """
    Bounded in-memory queue drained by a daemon thread.

    The thread waits up to ``flush_interval_ms`` for a first entry, then takes
    whatever else is already queued (up to ``flush_batch_size``) and writes it
    in one go. A full queue drops the entry and counts it.
    """

    def __init__(
        self,
        file_logger: FileLogger,
        flush_interval_ms: int = 100,
        flush_batch_size: int = 50,
        max_queue_size: int = 10000,
    ):
        self._file_logger = file_logger
        self._interval = flush_interval_ms / 1000.0
        self._batch_size = flush_batch_size
        self._queue: Queue[LogEntry] = Queue(maxsize=max_queue_size)
        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._dropped = 0

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        return self._dropped

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stopping.clear()
        self._thread = threading.Thread(target=self._run, name="adminpanel-log-flush", daemon=True)
        self._thread.start()
        logger.info("Async log queue started")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the thread, then write out anything still queued."""
        self._stopping.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        while self._flush_once(wait=False):
            pass
        logger.info(f"Async log queue stopped (dropped: {self._dropped})")

    def push(self, entry: LogEntry) -> bool:
        try:
            self._queue.put_nowait(entry)
        except Full:
            self._dropped += 1
            return False
        return True

    def _run(self) -> None:
        while not self._stopping.is_set():
            self._flush_once(wait=True)

    def _flush_once(self, wait: bool) -> int:
        batch: List[LogEntry] = []
        try:
            batch.append(self._queue.get(timeout=self._interval) if wait else self._queue.get_nowait())
        except Empty:
            return 0
        while len(batch) < self._batch_size:
            try:
                batch.append(self._queue.get_nowait())
            except Empty:
                break
        try:
            self._file_logger.write_batch(batch)
        except OSError as e:
            logger.error(f"Log flush failed, {len(batch)} entries lost: {e}")
        return len(batch)


# ---------------------------------------------------------------------------
# Entry builders
# ---------------------------------------------------------------------------

def _record(event: str, level: str, source: str, user_id: Optional[Any] = None, **fields: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
        "source": source,
    }
    if user_id is not None:
        data["user_id"] = user_id
    data.update(fields)
    return data


def _format_trace(error: BaseException) -> str:
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


def log_component_error(
    component: str,
    operation: str,
    error: BaseException,
    user_id: Optional[Any] = None,
    trace: Optional[str] = None,
    **context: Any,
) -> LogEntry:
    """Entry for an unexpected failure caught at a table operation boundary."""
    data = _record(
        "component_error",
        "ERROR",
        f"{component}: {operation}",
        user_id,
        component=component,
        operation=operation,
        error_type=type(error).__name__,
        message=str(error),
        trace=trace if trace is not None else _format_trace(error),
    )
    if context:
        data["context"] = context
    return LogEntry("tables", "execution", data)


def log_export_event(
    event: str,
    batch_id: str,
    batch_name: str,
    job_class: str,
    user_id: Optional[Any] = None,
    total_rows: Optional[int] = None,
    processed_rows: Optional[int] = None,
    error: Optional[str] = None,
) -> LogEntry:
    """Export lifecycle: submitted, chunk_done, completed, failed."""
    optional = {"total_rows": total_rows, "processed_rows": processed_rows, "error": error or None}
    data = _record(
        f"export_{event}",
        "ERROR" if error else "INFO",
        job_class,
        user_id,
        batch_id=batch_id,
        batch_name=batch_name,
        **{k: v for k, v in optional.items() if v is not None},
    )
    return LogEntry("exports", "execution", data)


def log_security_event(
    event: str,
    capability: str,
    user_id: Any,
    username: str,
    object_type: str = "system",
    subject: Optional[str] = None,
    level: str = "WARNING",
) -> LogEntry:
    """Gate denials. Object types without a security log fall back to system."""
    data = _record(event, level, "gate", user_id, username=username, capability=capability)
    if subject:
        data["subject"] = subject
    if "security" not in LOG_LAYOUT.get(object_type, ()):
        object_type = "system"
    return LogEntry(object_type, "security", data)


def log_system_event(event: str, level: str = "INFO", details: Optional[Dict[str, Any]] = None) -> LogEntry:
    data = _record(event, level, "system")
    if details:
        data["details"] = details
    return LogEntry("system", "execution", data)


# ---------------------------------------------------------------------------
# Retention
# ---------------------------------------------------------------------------

class LogRetentionManager:
    """Gzips day files past ``compress_after_days``; deletes them past their category retention."""

    def __init__(
        self,
        log_dir: str = "logs",
        retention_days: Optional[Dict[str, int]] = None,
        compress_after_days: int = 7,
    ):
        self._log_dir = Path(log_dir)
        self._retention = dict(retention_days or DEFAULT_RETENTION)
        self._compress_after = compress_after_days

    def cleanup(self, today: Optional[date] = None) -> Dict[str, int]:
        today = today or date.today()
        stats = {"deleted": 0, "compressed": 0}

        for path in sorted(self._log_dir.glob("*/*/*.jsonl*")):
            day = _file_day(path)
            if day is None or path.parent.parent.name not in LOG_LAYOUT:
                continue
            age = (today - day).days
            if age > self._retention.get(path.parent.name, 90):
                path.unlink()
                stats["deleted"] += 1
            elif age > self._compress_after and path.suffix == ".jsonl" and _gzip(path):
                stats["compressed"] += 1

        logger.info(f"Log cleanup: {stats}")
        return stats


def _file_day(path: Path) -> Optional[date]:
    try:
        return date.fromisoformat(path.name.split(".", 1)[0])
    except ValueError:
        return None


def _gzip(path: Path) -> bool:
    target = path.with_name(path.name + ".gz")
    try:
        with open(path, "rb") as src, gzip.open(target, "wb") as dst:
            shutil.copyfileobj(src, dst)
    except OSError as e:
        logger.error(f"Failed to compress {path}: {e}")
        target.unlink(missing_ok=True)
        return False
    path.unlink()
    return True


# ---------------------------------------------------------------------------
# Process-wide queue
# ---------------------------------------------------------------------------

_queue: Optional[AsyncLogQueue] = None


def init_logging(
    log_dir: str = "logs",
    flush_interval_ms: int = 100,
    flush_batch_size: int = 50,
    max_queue_size: int = 10000,
) -> AsyncLogQueue:
    """Start the process-wide log queue (replacing any running one)."""
    global _queue
    if _queue is not None:
        _queue.stop()
    _queue = AsyncLogQueue(
        FileLogger(log_dir),
        flush_interval_ms=flush_interval_ms,
        flush_batch_size=flush_batch_size,
        max_queue_size=max_queue_size,
    )
    _queue.start()
    return _queue


def get_log_queue() -> Optional[AsyncLogQueue]:
    return _queue


def log(entry: LogEntry) -> bool:
    """Queue ``entry``; False when logging was never started or the queue is full."""
    if _queue is None:
        logger.debug(f"Structured log not started, dropping {entry.data.get('event')}")
        return False
    return _queue.push(entry)


def log_exception(
    module_logger: logging.Logger,
    component: str,
    operation: str,
    error: BaseException,
    user_id: Optional[Any] = None,
    **context: Any,
) -> None:
    """Message and stack trace to ``module_logger`` and to tables/execution."""
    trace = _format_trace(error)
    module_logger.error(f"{component}: {operation}: {type(error).__name__}: {error}\n{trace}")
    log(log_component_error(component, operation, error, user_id=user_id, trace=trace, **context))


def shutdown_logging() -> None:
    global _queue
    if _queue is not None:
        _queue.stop()
        _queue = None
