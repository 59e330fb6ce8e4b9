"""
AdminPanel Export Jobs — CSV materialization of table exports.

An export batch is split into chunks of ``exports.chunk_size`` rows. Each
chunk is one Celery task; the chunks run as a chain so the CSV file is
appended in order. The first chunk writes the heading row. Progress lives
on the ExportBatch row and is read back with ``get_batch_progress``.

Celery Tasks:
- export_chunk_task: write one chunk of a batch
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Type

from celery import chain as celery_chain
from celery.signals import worker_process_init
from sqlalchemy.orm import Session

from adminpanel.db.base import utcnow
from adminpanel.db.models import ExportBatch
from adminpanel.db.session import init_db, session_scope
from adminpanel.engine.config import PanelConfig, get_panel_config
from adminpanel.engine.errors import PanelExportError
from adminpanel.engine.logging import log, log_exception, log_export_event
from adminpanel.exports.queue import CHUNK_TASK_NAME, get_celery_app
from adminpanel.products.listing import ProductListing

logger = logging.getLogger("adminpanel.exports.jobs")


class ExportJob:
    """Base export job: query to export, CSV headings and one CSV row per record."""
    name: str = ""

    def __init__(
        self,
        session: Session,
        config: Optional[PanelConfig] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        self.session = session
        self.config = config or get_panel_config()
        self.extra = extra or {}

    def build_query(self, filters: Dict[str, Any], search: str, selected_ids: Sequence[Any]):
        raise NotImplementedError

    def headings(self, heading_columns: str) -> List[str]:
        return [h.strip() for h in heading_columns.split(",") if h.strip()]

    def row(self, record) -> List[Any]:
        raise NotImplementedError

    def fetch(self, query, offset: int, limit: int):
        return self.session.execute(query.offset(offset).limit(limit)).mappings().all()


_JOBS: Dict[str, Type[ExportJob]] = {}


def register_job(cls: Type[ExportJob]) -> Type[ExportJob]:
    _JOBS[cls.name] = cls
    return cls


def get_job_class(name: str) -> Optional[Type[ExportJob]]:
    return _JOBS.get(name)


@register_job
class ExportProductTable(ExportJob):
    """
    Products as shown in the listing. A selection exports exactly the
    selected ids; otherwise the listing's search and filters apply.
    """
    name = "ExportProductTable"

    def build_query(self, filters: Dict[str, Any], search: str, selected_ids: Sequence[Any]):
        listing = ProductListing(
            self.session,
            config=self.config,
            state={"search": search or "", "active_filters": dict(filters or {})},
        )
        if selected_ids:
            query = listing.datasource()
            columns = listing.projected_columns(query)
            query = query.where(columns["id"].in_(list(selected_ids)))
        else:
            query = listing.build_query()
            columns = listing.projected_columns(query)
        return listing.apply_sort(query, columns)

    def row(self, record) -> List[Any]:
        return [record["name"], record["status_label"]]


# ---------------------------------------------------------------------------
# Chunk execution
# ---------------------------------------------------------------------------

def export_file_path(file_name: str, config: Optional[PanelConfig] = None) -> Path:
    config = config or get_panel_config()
    return Path(config.exports.directory) / file_name


def mark_batch_failed(session: Session, batch_id: str, error: str) -> None:
    batch = session.get(ExportBatch, batch_id)
    if batch is None:
        return
    batch.status = "failed"
    batch.error = error
    batch.finished_at = utcnow()
    session.commit()


def run_export_chunk(
    session: Session,
    batch_id: str,
    job_class: str,
    params: Dict[str, Any],
    offset: int,
    limit: int,
    config: Optional[PanelConfig] = None,
) -> Dict[str, Any]:
    """
    Write one chunk of a batch and update its progress.

    Returns:
        {"status": <batch status | "missing" | "skipped">, ...}
    """
    batch = session.get(ExportBatch, batch_id)
    if batch is None:
        logger.error(f"Export batch not found: {batch_id}")
        return {"status": "missing", "batch_id": batch_id}
    if batch.status == "failed":
        return {"status": "skipped", "batch_id": batch_id}

    try:
        job_cls = get_job_class(job_class)
        if job_cls is None:
            raise PanelExportError(f"Unknown export job '{job_class}'", batch_id=batch_id, job_class=job_class)

        batch.status = "running"
        job = job_cls(session, config=config, extra=params.get("extra"))
        query = job.build_query(params.get("filters") or {}, params.get("search") or "", params.get("selected_ids") or [])
        records = job.fetch(query, offset, limit)

        path = export_file_path(batch.file_name, config)
        path.parent.mkdir(parents=True, exist_ok=True)
        first_chunk = offset == 0
        with open(path, "w" if first_chunk else "a", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle)
            if first_chunk:
                writer.writerow(job.headings(params.get("heading_columns", "")))
            for record in records:
                writer.writerow(job.row(record))

        batch.processed_rows += len(records)
        batch.finished_jobs += 1
        if batch.finished_jobs >= batch.total_jobs:
            batch.status = "completed"
            batch.finished_at = utcnow()
        session.commit()

        log(log_export_event(
            "completed" if batch.status == "completed" else "chunk_done",
            batch_id=batch.id,
            batch_name=batch.name,
            job_class=job_class,
            user_id=batch.created_by,
            total_rows=batch.total_rows,
            processed_rows=batch.processed_rows,
        ))
        return {"status": batch.status, "batch_id": batch_id, "processed": batch.processed_rows}

    except Exception as e:
        session.rollback()
        log_exception(logger, "exports", "export_chunk", e, batch_id=batch_id, offset=offset)
        mark_batch_failed(session, batch_id, str(e))
        log(log_export_event(
            "failed",
            batch_id=batch_id,
            batch_name=batch.name,
            job_class=job_class,
            user_id=batch.created_by,
            error=str(e),
        ))
        return {"status": "failed", "batch_id": batch_id, "error": str(e)}


def submit_export_chain(
    batch_id: str,
    job_class: str,
    params: Dict[str, Any],
    total_rows: int,
    chunk_size: int,
) -> str:
    """Enqueue the chunk tasks of a batch as one Celery chain. Returns the chain id."""
    signatures = [
        export_chunk_task.si(batch_id, job_class, params, offset, chunk_size)
        for offset in range(0, total_rows, chunk_size)
    ]
    result = celery_chain(*signatures).apply_async()
    logger.info(f"Export batch {batch_id}: {len(signatures)} chunk task(s) queued")
    return result.id


def get_batch_progress(batch_id: str, session: Optional[Session] = None) -> Optional[Dict[str, Any]]:
    """Progress snapshot of a batch, or None when unknown."""
    if session is not None:
        batch = session.get(ExportBatch, batch_id)
        return batch.to_dict() if batch else None
    with session_scope() as scoped:
        batch = scoped.get(ExportBatch, batch_id)
        return batch.to_dict() if batch else None


# ---------------------------------------------------------------------------
# Celery tasks
# ---------------------------------------------------------------------------

celery_app = get_celery_app()


@worker_process_init.connect
def _init_worker_db(**kwargs: Any) -> None:
    """Each prefork worker process opens its own engine."""
    db = get_panel_config().database
    init_db(db.url, pool_size=db.pool_size, max_overflow=db.max_overflow, pool_pre_ping=db.pool_pre_ping)


@celery_app.task(name=CHUNK_TASK_NAME)
def export_chunk_task(
    batch_id: str,
    job_class: str,
    params: Dict[str, Any],
    offset: int,
    limit: int,
) -> Dict[str, Any]:
    """Celery task: write rows [offset, offset + limit) of an export batch."""
    with session_scope() as session:
        return run_export_chunk(session, batch_id, job_class, params, offset, limit)
