"""AdminPanel database layer — SQLAlchemy base, models and sessions."""
