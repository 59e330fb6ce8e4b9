"""
AdminPanel Database Session Management.

Single entry point for DB initialisation plus context managers for access.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, scoped_session, sessionmaker

from adminpanel.db.base import Base, build_engine

_engine: Optional[Engine] = None
_session_factory: Optional[scoped_session] = None


def init_db(
    db_url: str,
    create_tables: bool = False,
    pool_size: int = 10,
    max_overflow: int = 20,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    pool_pre_ping: bool = True,
    echo: bool = False,
) -> sessionmaker:
    """
    Initialise the panel database.

    All callers (Reflex app boot, ``adminpanel init``, Celery worker, tests)
    go through this function.

    Args:
        db_url:        SQLAlchemy URL.
        create_tables: Run Base.metadata.create_all() (``adminpanel init`` / tests).

    Returns:
        A plain ``sessionmaker`` bound to the engine. ``get_session()``
        hands out thread-scoped sessions from the same engine.
    """
    global _engine, _session_factory

    # Make sure every model is registered on Base.metadata
    import adminpanel.db.models  # noqa: F401

    if _session_factory is not None:
        _session_factory.remove()
    if _engine is not None:
        _engine.dispose()

    _engine = build_engine(
        db_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        pool_pre_ping=pool_pre_ping,
        echo=echo,
    )

    if create_tables:
        Base.metadata.create_all(_engine)

    factory = sessionmaker(bind=_engine, expire_on_commit=False)
    _session_factory = scoped_session(factory)
    return factory


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _engine


def get_session() -> Session:
    """Get a thread-scoped session for the panel database."""
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Context manager with auto-commit/rollback.

    Usage:
        with session_scope() as session:
            product = session.get(Product, 7)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def close_all_sessions() -> None:
    """Close all sessions and dispose the engine. Used during shutdown."""
    global _engine, _session_factory
    if _session_factory is not None:
        _session_factory.remove()
        _session_factory = None
    if _engine is not None:
        _engine.dispose()
        _engine = None
