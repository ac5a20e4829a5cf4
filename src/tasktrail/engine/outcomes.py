"""Two-phase results of task mutations.

The primary effect (task store write) and the secondary effect (activity
log append) are reported separately so callers can tell them apart.
"""

from dataclasses import dataclass
from typing import Union

from tasktrail.engine.errors import AuditWriteFailure
from tasktrail.models import AuditLogEntry, Task


@dataclass(frozen=True)
class Applied:
    """Task change applied and recorded."""

    task: Task
    entry: AuditLogEntry

    audit_recorded = True


@dataclass(frozen=True)
class AppliedAuditFailed:
    """Task change applied; the activity log entry was not written."""

    task: Task
    audit_error: AuditWriteFailure

    audit_recorded = False


@dataclass(frozen=True)
class Unchanged:
    """Nothing to apply; no activity log entry written."""

    task: Task

    audit_recorded = False


MutationOutcome = Union[Applied, AppliedAuditFailed, Unchanged]
