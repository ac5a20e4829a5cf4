"""TaskTrail database layer."""

from tasktrail.db.base import Base, Database
from tasktrail.db.tables import ActivityLogTable, TaskTable, UserTable
from tasktrail.db.repositories import AuditLogRepository, TaskRepository, UserRepository

__all__ = [
    "ActivityLogTable",
    "AuditLogRepository",
    "Base",
    "Database",
    "TaskRepository",
    "TaskTable",
    "UserRepository",
    "UserTable",
]
