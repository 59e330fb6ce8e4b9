"""
AdminPanel Error Hierarchy — Structured exceptions for components and jobs.

Every error carries a serializable context so it can be written to the
structured JSON logs as-is.

Hierarchy:
    PanelError
    ├── PanelAuthorizationError  — Gate denied a capability (HTTP 403)
    ├── PanelValidationError     — Input validation failed
    ├── PanelRecordError         — Record read/delete failed
    ├── PanelExportError         — Export submission or job failed
    ├── PanelConfigError         — Invalid adminpanel.yaml
    └── PanelSessionError        — Session/auth error
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class PanelError(Exception):
    """
    Base error for all AdminPanel failures.
    All context is kept serializable for logging.
    """

    status_code: int = 500

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.component: Optional[str] = context.get("component")
        self.operation: Optional[str] = context.get("operation")
        self.user_id: Optional[Any] = context.get("user_id")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "status_code": self.status_code,
            "component": self.component,
            "operation": self.operation,
            "user_id": self.user_id,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("component", "operation", "user_id")
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.component:
            parts.append(f"component={self.component}")
        if self.operation:
            parts.append(f"operation={self.operation}")
        return " | ".join(parts)


class PanelAuthorizationError(PanelError):
    """
    Access denied by the Gate.
    Includes the capability that was checked and the acting user.
    """

    status_code = 403

    def __init__(self, message: str, **context: Any):
        self.capability: Optional[str] = context.get("capability")
        self.subject: Optional[str] = context.get("subject")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["capability"] = self.capability
        d["subject"] = self.subject
        return d


class PanelValidationError(PanelError):
    """Input validation failed. Includes field-level details."""

    status_code = 422

    def __init__(self, message: str, **context: Any):
        self.validation_errors: Optional[list] = context.get("validation_errors")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["validation_errors"] = self.validation_errors
        return d


class PanelRecordError(PanelError):
    """Record operation failed (query, delete)."""

    def __init__(self, message: str, **context: Any):
        self.record_type: Optional[str] = context.get("record_type")
        self.record_ids: Optional[list] = context.get("record_ids")
        super().__init__(message, **context)


class PanelExportError(PanelError):
    """Export submission or export job failed."""

    def __init__(self, message: str, **context: Any):
        self.batch_id: Optional[str] = context.get("batch_id")
        self.job_class: Optional[str] = context.get("job_class")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["batch_id"] = self.batch_id
        d["job_class"] = self.job_class
        return d


class PanelConfigError(PanelError):
    """Configuration error — invalid adminpanel.yaml."""
    pass


class PanelSessionError(PanelError):
    """Session or authentication error."""

    status_code = 401
