"""
AdminPanel Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional
from unittest.mock import MagicMock

import pytest


# ---------------------------------------------------------------------------
# Global state: config, execution context, gate cache
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals():
    """Reset global singletons between tests."""
    from adminpanel.engine.config import set_panel_config
    from adminpanel.engine.context import clear_execution_context
    from adminpanel.security.gate import gate

    set_panel_config(None)
    clear_execution_context()
    gate.set_permission_cache(None)
    yield
    set_panel_config(None)
    clear_execution_context()
    gate.set_permission_cache(None)


@pytest.fixture
def panel_config(tmp_path):
    """A PanelConfig writing logs and exports under tmp_path, installed as the active config."""
    from adminpanel.engine.config import PanelConfig, set_panel_config

    config = PanelConfig(
        database={"url": "sqlite://"},
        logging={"directory": str(tmp_path / "logs")},
        exports={"directory": str(tmp_path / "exports"), "chunk_size": 4, "max_rows": 1000},
        celery={"task_always_eager": True},
    )
    set_panel_config(config)
    return config


@pytest.fixture
def db_session(panel_config):
    """Session on a fresh in-memory SQLite database with every table created."""
    from adminpanel.db.session import close_all_sessions, init_db

    factory = init_db("sqlite://", create_tables=True)
    session = factory()
    yield session
    session.close()
    close_all_sessions()


PRODUCT_ROWS = [
    (1, "Desk Lamp", "Y"),
    (2, "Floor Lamp", "N"),
    (3, "Coffee Mug", "Y"),
    (4, "Travel Mug", "Y"),
    (5, "Water Bottle", "N"),
    (6, "Notebook A5", "Y"),
    (7, "Notebook A4", "Y"),
    (8, "Office Chair", "N"),
    (9, "Gaming Chair", "Y"),
    (10, "Bluetooth Speaker", "Y"),
    (11, "Smart Speaker", "N"),
    (12, "Hiking Backpack", "Y"),
    (13, "Laptop Backpack", "Y"),
    (14, "Noise Cancelling Headphones", "N"),
    (15, "100% Cotton Tote", "Y"),
]


@pytest.fixture
def products(db_session):
    """15 products; product N was created on 2026-01-N at 10:00."""
    from adminpanel.db.models import Product

    rows = [
        Product(id=pid, name=name, status=status, created_at=datetime(2026, 1, pid, 10, 0))
        for pid, name, status in PRODUCT_ROWS
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


# ---------------------------------------------------------------------------
# Execution contexts
# ---------------------------------------------------------------------------

@pytest.fixture
def make_context():
    """Factory: ExecutionContext with an explicit permission set."""
    from adminpanel.engine.context import ExecutionContext

    def _make(
        permissions: Optional[Iterable[str]] = (),
        user_type: str = "basic",
        user_id: int = 7,
        username: str = "test_user",
        preferred_language: str = "en",
    ) -> ExecutionContext:
        return ExecutionContext(
            user_id=user_id,
            username=username,
            user_type=user_type,
            roles=frozenset({"tester"}),
            permissions=frozenset(permissions) if permissions is not None else None,
            preferred_language=preferred_language,
        )

    return _make


@pytest.fixture
def manager_context(make_context):
    """Every product capability (the catalog_manager role)."""
    from adminpanel.security.abilities import DEFAULT_ROLES

    return make_context(DEFAULT_ROLES["catalog_manager"], username="manager")


@pytest.fixture
def viewer_context(make_context):
    """view-product + show-product only."""
    from adminpanel.security.abilities import DEFAULT_ROLES

    return make_context(DEFAULT_ROLES["viewer"], username="viewer")


@pytest.fixture
def admin_context(make_context):
    """A system_admin context; passes every gate check."""
    return make_context((), user_type="system_admin", user_id=1, username="admin")


@pytest.fixture
def as_user():
    """Context manager factory: ``with as_user(ctx): ...``."""
    from adminpanel.engine.context import execution_scope

    return execution_scope


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_submitter():
    """Records export chain submissions instead of queueing Celery tasks."""
    calls = []

    def _submit(batch_id, job_class, params, total_rows, chunk_size):
        calls.append({
            "batch_id": batch_id,
            "job_class": job_class,
            "params": params,
            "total_rows": total_rows,
            "chunk_size": chunk_size,
        })
        return "chain-1"

    _submit.calls = calls
    return _submit


@pytest.fixture
def export_runner():
    """A MagicMock standing in for run_export_job; returns a successful result by default."""
    from adminpanel.exports.helper import ExportResult

    runner = MagicMock(return_value=ExportResult(
        True,
        "Export started. You will be notified when the file is ready.",
        {"batch_id": "b1", "batch_name": "Export Product Table", "file_name": "ProductReports_x.csv",
         "total": 15, "total_jobs": 4},
    ))
    return runner


@pytest.fixture
def mock_redis():
    """Return a mock Redis client."""
    client = MagicMock()
    client.ping.return_value = True
    client.get.return_value = None
    client.set.return_value = True
    client.setex.return_value = True
    client.delete.return_value = 1
    client.scan_iter.return_value = iter([])
    return client
