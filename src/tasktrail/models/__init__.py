"""TaskTrail data models."""

from tasktrail.models.enums import AuditAction, EntityType, Role, TaskStatus
from tasktrail.models.task import NoChange, ProposedUpdate, Task, TaskUpdate
from tasktrail.models.audit import (
    AuditLogEntry,
    AuditPage,
    AuditSummary,
    LabeledAuditLogEntry,
)
from tasktrail.models.user import Actor, User

__all__ = [
    "Actor",
    "AuditAction",
    "AuditLogEntry",
    "AuditPage",
    "AuditSummary",
    "EntityType",
    "LabeledAuditLogEntry",
    "NoChange",
    "ProposedUpdate",
    "Role",
    "Task",
    "TaskStatus",
    "TaskUpdate",
    "User",
]
