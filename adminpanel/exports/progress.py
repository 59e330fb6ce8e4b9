"""
Export progress component (``common-code``).

Receives ``showExportProgressEvent`` with the JSON-encoded batch payload,
tracks the batches it was told about and reports their progress until they
finish.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from adminpanel.engine.component import PanelComponent
from adminpanel.engine.i18n import trans
from adminpanel.exports.jobs import get_batch_progress

logger = logging.getLogger("adminpanel.exports.progress")

FINISHED = ("completed", "failed")


class ExportProgress(PanelComponent):
    component_name = "common-code"

    def __init__(self, session, tracked: Optional[List[Dict[str, Any]]] = None, **kwargs: Any):
        super().__init__(session, **kwargs)
        self.tracked: List[Dict[str, Any]] = [dict(b) for b in (tracked or [])]
        self.register_listeners()

    def listeners(self) -> Dict[str, Callable[[Any], Any]]:
        return {"showExportProgressEvent": self.show_export_progress}

    def show_export_progress(self, payload: Any) -> Dict[str, Any]:
        data = json.loads(payload) if isinstance(payload, str) else dict(payload)
        entry = {
            "batch_id": data["batch_id"],
            "batch_name": data.get("batch_name", ""),
            "file_name": data.get("file_name", ""),
            "total": data.get("total", 0),
            "processed": 0,
            "progress": 0,
            "status": "pending",
            "error": None,
        }
        self.tracked = [b for b in self.tracked if b["batch_id"] != entry["batch_id"]] + [entry]
        return entry

    def poll(self) -> List[Dict[str, Any]]:
        """Refresh every unfinished batch; flash once when a batch finishes."""
        for entry in self.tracked:
            if entry["status"] in FINISHED:
                continue
            snapshot = get_batch_progress(entry["batch_id"], session=self.session)
            if snapshot is None:
                logger.warning(f"Tracked export batch disappeared: {entry['batch_id']}")
                entry["status"] = "failed"
                entry["error"] = trans("export.failed")
                continue
            entry.update({k: snapshot[k] for k in ("processed", "progress", "status", "error", "total")})
            if entry["status"] == "completed":
                self.flash("success", trans("export.completed", name=entry["file_name"]))
            elif entry["status"] == "failed":
                self.flash("error", trans("export.failed"))
        return self.tracked

    @property
    def active(self) -> bool:
        return any(b["status"] not in FINISHED for b in self.tracked)

    def download_url(self, batch_id: str) -> Optional[str]:
        for entry in self.tracked:
            if entry["batch_id"] == batch_id and entry["status"] == "completed":
                return f"{self.config.exports.download_route.rstrip('/')}/{entry['file_name']}"
        return None

    def dismiss(self, batch_id: str) -> None:
        self.tracked = [b for b in self.tracked if b["batch_id"] != batch_id]
