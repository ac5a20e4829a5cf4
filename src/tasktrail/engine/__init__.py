"""TaskTrail engine - transition policy, activity history and core operations."""

from tasktrail.engine.core import TaskTrailEngine
from tasktrail.engine.errors import (
    AuditWriteFailure,
    EmailAlreadyRegistered,
    Forbidden,
    InvalidCredentials,
    TaskNotFound,
    TaskTrailError,
)
from tasktrail.engine.outcomes import Applied, AppliedAuditFailed, MutationOutcome, Unchanged
from tasktrail.engine.reconstruction import UNKNOWN_TASK_LABEL, extract_title, reconstruct_labels
from tasktrail.engine.transitions import propose_task_update

__all__ = [
    "Applied",
    "AppliedAuditFailed",
    "AuditWriteFailure",
    "EmailAlreadyRegistered",
    "Forbidden",
    "InvalidCredentials",
    "MutationOutcome",
    "TaskNotFound",
    "TaskTrailEngine",
    "TaskTrailError",
    "UNKNOWN_TASK_LABEL",
    "Unchanged",
    "extract_title",
    "propose_task_update",
    "reconstruct_labels",
]
