"""
AdminPanel Export Helper — validate and submit an export batch.

Usage:
    result = run_export_job(total, filters, selected_ids, search,
                            "Name,Status", "ProductReports_",
                            "ExportProductTable", "Export Product Table", {})
    if result.status:
        progress_payload = result.data
"""

from __future__ import annotations

import logging
import math
import secrets
from dataclasses import dataclass, field as datafield
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Sequence

from sqlalchemy.orm import Session

from adminpanel.db.models import ExportBatch
from adminpanel.db.session import session_scope
from adminpanel.engine.config import PanelConfig, get_panel_config
from adminpanel.engine.i18n import trans
from adminpanel.engine.logging import log, log_export_event
from adminpanel.exports.jobs import get_job_class, mark_batch_failed, submit_export_chain

logger = logging.getLogger("adminpanel.exports.helper")

Submitter = Callable[[str, str, Dict[str, Any], int, int], Any]


@dataclass
class ExportResult:
    status: bool
    message: str
    data: Dict[str, Any] = datafield(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "message": self.message, "data": dict(self.data)}


def build_file_name(prefix: str, now: Optional[datetime] = None) -> str:
    """ProductReports_20260301_142501_3fa9c1.csv"""
    now = now or datetime.now(timezone.utc)
    return f"{prefix}{now:%Y%m%d_%H%M%S}_{secrets.token_hex(3)}.csv"


def run_export_job(
    total: int,
    filters: Optional[Dict[str, Any]],
    selected_ids: Optional[Sequence[Any]],
    search: Optional[str],
    heading_columns: str,
    file_prefix: str,
    job_class: str,
    batch_name: str,
    extra: Optional[Dict[str, Any]] = None,
    session: Optional[Session] = None,
    user_id: Optional[Any] = None,
    submit: Optional[Submitter] = None,
    config: Optional[PanelConfig] = None,
) -> ExportResult:
    """
    Create an ExportBatch and queue its chunk tasks.

    The number of rows is the selection size when rows are selected,
    otherwise ``total``. Rejections (nothing to export, too many rows,
    unknown job) come back as ``status=False`` with a translated message.
    """
    config = config or get_panel_config()
    selected = list(selected_ids or [])
    rows = len(selected) if selected else int(total or 0)

    if rows <= 0:
        return ExportResult(False, trans("export.no_records"))
    if rows > config.exports.max_rows:
        return ExportResult(False, trans("export.too_many_records", max=config.exports.max_rows))
    if get_job_class(job_class) is None:
        logger.warning(f"Export requested for unknown job '{job_class}'")
        return ExportResult(False, trans("export.invalid_job"))

    chunk_size = max(1, config.exports.chunk_size)
    batch = ExportBatch(
        name=batch_name,
        job_class=job_class,
        file_name=build_file_name(file_prefix),
        status="pending",
        total_rows=rows,
        processed_rows=0,
        total_jobs=math.ceil(rows / chunk_size),
        finished_jobs=0,
        created_by=user_id,
    )
    if session is not None:
        session.add(batch)
        session.commit()
    else:
        with session_scope() as scoped:
            scoped.add(batch)

    params = {
        "filters": dict(filters or {}),
        "search": search or "",
        "selected_ids": selected,
        "heading_columns": heading_columns,
        "extra": dict(extra or {}),
    }
    try:
        (submit or submit_export_chain)(batch.id, job_class, params, rows, chunk_size)
    except Exception as e:
        logger.error(f"Export batch {batch.id} could not be queued: {e}")
        if session is not None:
            mark_batch_failed(session, batch.id, str(e))
        else:
            with session_scope() as scoped:
                mark_batch_failed(scoped, batch.id, str(e))
        log(log_export_event(
            "failed",
            batch_id=batch.id,
            batch_name=batch_name,
            job_class=job_class,
            user_id=user_id,
            total_rows=rows,
            error=str(e),
        ))
        raise

    log(log_export_event(
        "submitted",
        batch_id=batch.id,
        batch_name=batch_name,
        job_class=job_class,
        user_id=user_id,
        total_rows=rows,
    ))

    return ExportResult(
        True,
        trans("export.started"),
        {
            "batch_id": batch.id,
            "batch_name": batch_name,
            "file_name": batch.file_name,
            "total": rows,
            "total_jobs": batch.total_jobs,
        },
    )
