"""
AdminPanel Models — SQLAlchemy models for the panel database.

Tables:
1. users              — Console accounts (basic / system_admin)
2. roles              — Named roles
3. permissions        — Capability names, "<action>-<entity>"
4. user_roles         — User ↔ Role junction
5. role_permissions   — Role ↔ Permission junction
6. products           — Product catalog (read by the listing table)
7. export_batches     — Submitted CSV exports and their progress
"""

from __future__ import annotations

import uuid
from typing import Dict, List, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    UniqueConstraint,
    case,
    literal,
)
from sqlalchemy.orm import relationship

from adminpanel.db.base import Base, TimestampMixin


# ---------------------------------------------------------------------------
# Access control
# ---------------------------------------------------------------------------

class UserRole(Base):
    __tablename__ = "user_roles"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)


class RolePermission(Base):
    __tablename__ = "role_permissions"

    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
    permission_id = Column(Integer, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True)


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    full_name = Column(String(200), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    user_type = Column(String(20), default="basic", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    preferred_language = Column(String(10), default="en", nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    roles = relationship("Role", secondary="user_roles", back_populates="users", lazy="selectin")

    __table_args__ = (
        CheckConstraint("user_type IN ('basic', 'system_admin')", name="ck_users_user_type"),
    )

    def permission_names(self) -> List[str]:
        names = set()
        for role in self.roles:
            names.update(p.name for p in role.permissions)
        return sorted(names)

    def __repr__(self) -> str:
        return f"<User {self.username}>"


class Role(Base, TimestampMixin):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)

    users = relationship("User", secondary="user_roles", back_populates="roles")
    permissions = relationship(
        "Permission", secondary="role_permissions", back_populates="roles", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Role {self.name}>"


class Permission(Base, TimestampMixin):
    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), unique=True, nullable=False, index=True)
    entity = Column(String(100), nullable=False)
    action = Column(String(50), nullable=False)

    roles = relationship("Role", secondary="role_permissions", back_populates="permissions")

    __table_args__ = (UniqueConstraint("entity", "action", name="uq_permissions_entity_action"),)

    def __repr__(self) -> str:
        return f"<Permission {self.name}>"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    status = Column(String(10), nullable=False, default="Y", index=True)

    @staticmethod
    def _label_map() -> Dict[str, str]:
        from adminpanel.engine.config import get_panel_config
        return get_panel_config().products.status.label_map()

    @classmethod
    def status_options(cls, label_map: Optional[Dict[str, str]] = None) -> List[Dict[str, str]]:
        """Select-filter data source: [{"key": "Y", "label": "Active"}, ...]."""
        label_map = cls._label_map() if label_map is None else label_map
        return [{"key": key, "label": label} for key, label in label_map.items()]

    @classmethod
    def status_label_expression(cls, label_map: Optional[Dict[str, str]] = None):
        """
        SQL expression mapping the stored status key to its display label,
        built from the configured mapping. Unknown keys yield " ".
        """
        label_map = cls._label_map() if label_map is None else label_map
        if not label_map:
            return literal(" ")
        return case(
            *[(cls.status == key, literal(label)) for key, label in label_map.items()],
            else_=literal(" "),
        )

    @property
    def status_label(self) -> str:
        return self._label_map().get(self.status, " ")

    def __repr__(self) -> str:
        return f"<Product {self.id} {self.name!r}>"


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------

class ExportBatch(Base, TimestampMixin):
    __tablename__ = "export_batches"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String(200), nullable=False)
    job_class = Column(String(255), nullable=False)
    file_name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    total_rows = Column(Integer, nullable=False, default=0)
    processed_rows = Column(Integer, nullable=False, default=0)
    total_jobs = Column(Integer, nullable=False, default=0)
    finished_jobs = Column(Integer, nullable=False, default=0)
    error = Column(Text, nullable=True)
    created_by = Column(Integer, nullable=True)
    finished_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'running', 'completed', 'failed')",
            name="ck_export_batches_status",
        ),
    )

    @property
    def progress(self) -> int:
        """Completion percentage, 0-100."""
        if self.total_rows <= 0:
            return 100 if self.status == "completed" else 0
        return min(100, int(self.processed_rows * 100 / self.total_rows))

    def to_dict(self) -> Dict[str, object]:
        return {
            "batch_id": self.id,
            "batch_name": self.name,
            "file_name": self.file_name,
            "status": self.status,
            "total": self.total_rows,
            "processed": self.processed_rows,
            "total_jobs": self.total_jobs,
            "finished_jobs": self.finished_jobs,
            "progress": self.progress,
            "error": self.error,
        }
