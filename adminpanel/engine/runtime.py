"""
AdminPanel Runtime — boots and tears down the panel subsystems.

Lifecycle:
    runtime = init_runtime(config)
    runtime.startup()   # DB, structured logging, permission cache, auth, Celery
    ...
    runtime.shutdown()  # flush logs, dispose the engine
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from sqlalchemy.orm import sessionmaker

from adminpanel.engine.cache import PermissionCache, create_permission_cache
from adminpanel.engine.config import PanelConfig, get_panel_config
from adminpanel.engine.logging import (
    AsyncLogQueue,
    LogRetentionManager,
    init_logging,
    log,
    log_system_event,
    shutdown_logging,
)

logger = logging.getLogger("adminpanel.engine.runtime")


class PanelRuntime:
    def __init__(self, config: Optional[PanelConfig] = None, connect_redis: bool = True):
        self.config = config or get_panel_config()
        self._connect_redis = connect_redis

        self.session_factory: Optional[sessionmaker] = None
        self.log_queue: Optional[AsyncLogQueue] = None
        self.permission_cache: Optional[PermissionCache] = None
        self.auth = None
        self.retention_manager: Optional[LogRetentionManager] = None

        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def startup(self) -> None:
        """Initialize all subsystems."""
        if self._started:
            logger.warning("Runtime already started")
            return

        from adminpanel.db.session import init_db
        from adminpanel.exports.queue import init_celery
        from adminpanel.security.auth import AuthService
        from adminpanel.security.gate import gate

        logging.getLogger("adminpanel").setLevel(self.config.logging.level.upper())
        logger.info(f"Starting {self.config.name} ({self.config.environment})...")

        # 1. Database
        db = self.config.database
        self.session_factory = init_db(
            db.url,
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout,
            pool_recycle=db.pool_recycle,
            pool_pre_ping=db.pool_pre_ping,
            echo=db.echo,
        )

        # 2. Structured logging
        queue_cfg = self.config.logging.async_queue
        self.log_queue = init_logging(
            log_dir=self.config.logging.directory,
            flush_interval_ms=queue_cfg.flush_interval_ms,
            flush_batch_size=queue_cfg.flush_batch_size,
            max_queue_size=queue_cfg.max_queue_size,
        )

        # 3. Permission cache (optional, Redis DB 2)
        if self._connect_redis:
            self.permission_cache = create_permission_cache(
                self.config.redis.url, ttl=self.config.security.permission_cache_ttl
            )
            gate.set_permission_cache(self.permission_cache)

        # 4. Auth
        self.auth = AuthService(
            db_session_factory=self.session_factory,
            password_min_length=self.config.security.password_min_length,
        )

        # 5. Export queue
        init_celery(
            broker=self.config.celery.broker,
            backend=self.config.celery.result_backend,
            always_eager=self.config.celery.task_always_eager,
        )

        # 6. Log retention
        self.retention_manager = LogRetentionManager(
            log_dir=self.config.logging.directory,
            retention_days=self.retention_days(),
            compress_after_days=self.config.logging.compress_after_days,
        )

        self._started = True
        log(log_system_event("panel_started", details={"environment": self.config.environment}))
        logger.info("AdminPanel runtime started")

    def shutdown(self) -> None:
        """Flush the log queue and release connections."""
        if not self._started:
            return

        from adminpanel.db.session import close_all_sessions

        log(log_system_event("panel_shutdown"))
        shutdown_logging()
        close_all_sessions()
        self._started = False
        logger.info("AdminPanel runtime shut down")

    def retention_days(self) -> Dict[str, int]:
        retention = self.config.logging.retention
        return {"execution": retention.execution_days, "security": retention.security_days}

    def cleanup_logs(self) -> Dict[str, int]:
        """Delete or compress log files past their retention."""
        manager = self.retention_manager or LogRetentionManager(
            log_dir=self.config.logging.directory,
            retention_days=self.retention_days(),
            compress_after_days=self.config.logging.compress_after_days,
        )
        return manager.cleanup()


_runtime: Optional[PanelRuntime] = None


def get_runtime() -> Optional[PanelRuntime]:
    return _runtime


def init_runtime(config: Optional[PanelConfig] = None, **kwargs) -> PanelRuntime:
    """Create the global runtime (not started; call ``startup()``)."""
    global _runtime
    _runtime = PanelRuntime(config, **kwargs)
    return _runtime
