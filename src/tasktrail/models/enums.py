"""TaskTrail enumerations."""

from enum import Enum


class TaskStatus(str, Enum):
    """Task lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Role(str, Enum):
    """Role of an authenticated user."""

    ADMIN = "admin"
    USER = "user"


class AuditAction(str, Enum):
    """Action recorded in the activity log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class EntityType(str, Enum):
    """Kind of record an activity log entry refers to."""

    TASK = "Task"
