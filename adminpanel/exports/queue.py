"""
AdminPanel Export Queue — Celery application for export chunk tasks.

Export batches are processed by a chain of chunk tasks on the ``exports``
queue (``celery.export_queue`` in adminpanel.yaml). Start a worker with:

    adminpanel worker
"""

from __future__ import annotations

import logging
from typing import Optional

from celery import Celery

from adminpanel.engine.config import CeleryConfig, get_panel_config
from adminpanel.engine.errors import PanelConfigError

logger = logging.getLogger("adminpanel.exports.queue")

CHUNK_TASK_NAME = "adminpanel.exports.jobs.export_chunk_task"

_celery_app: Optional[Celery] = None


def get_celery_app() -> Celery:
    """Get or create the Celery app singleton."""
    global _celery_app
    if _celery_app is None:
        _celery_app = _create_celery_app()
    return _celery_app


def _create_celery_app() -> Celery:
    try:
        celery_config = get_panel_config().celery
    except PanelConfigError as e:
        logger.warning(f"Invalid adminpanel.yaml, Celery falls back to defaults: {e}")
        celery_config = CeleryConfig()

    app = Celery("adminpanel", broker=celery_config.broker, backend=celery_config.result_backend)

    app.conf.update(
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
        task_default_queue=celery_config.export_queue,
        task_routes={CHUNK_TASK_NAME: {"queue": celery_config.export_queue}},
        task_acks_late=True,
        worker_prefetch_multiplier=1,
        task_always_eager=celery_config.task_always_eager,
    )

    return app


def init_celery(
    broker: Optional[str] = None,
    backend: Optional[str] = None,
    always_eager: Optional[bool] = None,
) -> Celery:
    """
    Reconfigure the Celery app (called from the CLI and tests).

    Args:
        broker: Redis broker URL. Defaults to config.
        backend: Redis result backend URL. Defaults to config.
        always_eager: Run tasks inline in the calling process.
    """
    app = get_celery_app()
    if broker:
        app.conf.broker_url = broker
    if backend:
        app.conf.result_backend = backend
    if always_eager is not None:
        app.conf.task_always_eager = always_eager
    return app
