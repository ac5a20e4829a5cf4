"""SQLAlchemy table definitions."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tasktrail.db.base import Base
from tasktrail.models.enums import AuditAction, EntityType, Role, TaskStatus


def _enum(enum_cls, name: str) -> Enum:
    # Persist enum values ("in_progress"), not member names ("IN_PROGRESS").
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )


JSONVariant = JSON().with_variant(JSONB(), "postgresql")


class UserTable(Base):
    """Users table - accounts and roles."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(_enum(Role, "userrole"), nullable=False, default=Role.USER)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class TaskTable(Base):
    """Tasks table - mutable task records."""

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[TaskStatus] = mapped_column(
        _enum(TaskStatus, "taskstatus"), nullable=False, default=TaskStatus.PENDING
    )

    # Ownership (immutable)
    created_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    assigned_to: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    creator: Mapped[UserTable] = relationship("UserTable", foreign_keys=[created_by])

    __table_args__ = (
        Index("idx_tasks_status", "status", "created_at"),
    )


class ActivityLogTable(Base):
    """Activity log table - append-only audit trail."""

    __tablename__ = "activity_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    action: Mapped[AuditAction] = mapped_column(_enum(AuditAction, "auditaction"), nullable=False)
    entity_type: Mapped[EntityType] = mapped_column(
        _enum(EntityType, "entitytype"), nullable=False
    )
    # Denormalized: no foreign key so history outlives the task row.
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary: Mapped[dict[str, Any] | None] = mapped_column(JSONVariant, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    user: Mapped[UserTable] = relationship("UserTable")

    __table_args__ = (
        Index("idx_activity_timestamp", "timestamp"),
        Index("idx_activity_entity", "entity_type", "entity_id"),
    )
