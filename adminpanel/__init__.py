"""
AdminPanel — Role-gated administration console.

Reflex UI on top of SQLAlchemy, with permission-gated data tables,
cross-component events and background CSV exports (Celery).
"""

__version__ = "1.0.0"
__all__ = ["engine", "security", "db", "grid", "products", "exports", "admin"]
