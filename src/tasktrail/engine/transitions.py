"""Task transition authorization.

Decides which fields of a task an actor may change and produces the
human-readable change text written to the activity log.

Status policy:
- any actor may move a task to ``completed`` from any other status;
- only admins may make any other status change (including reopening);
- proposing the current status is a no-op, not an error.
"""

from typing import Union

from tasktrail.engine.errors import Forbidden
from tasktrail.models import (
    AuditSummary,
    NoChange,
    ProposedUpdate,
    Role,
    Task,
    TaskStatus,
    TaskUpdate,
)

STATUS_FORBIDDEN_MESSAGE = "Only admins can change status except to completed"


def _status_change(current: TaskStatus, proposed: TaskStatus, actor_role: Role) -> str | None:
    """Return the change phrase for a status move, or None if it is a no-op."""
    if proposed == current:
        return None
    if proposed == TaskStatus.COMPLETED:
        return "marked as completed"
    if actor_role == Role.ADMIN:
        return f"changed status to {proposed.value}"
    raise Forbidden(STATUS_FORBIDDEN_MESSAGE)


def propose_task_update(
    current: Task,
    actor_role: Role,
    proposed: TaskUpdate,
) -> Union[ProposedUpdate, NoChange]:
    """
    Filter a proposed partial update against the current task.

    Returns the fields to persist with their change phrases (ordered
    title, description, status regardless of input order), or NoChange
    when nothing differs. A description sent as None clears it; title and
    status have no empty value, so None there means "leave as is".

    Raises:
        Forbidden: a non-admin attempted a status change other than
            completing the task. Nothing is applied in that case.
    """
    to_apply: dict[str, object] = {}
    changes: list[str] = []

    if proposed.title is not None and proposed.title != current.title:
        to_apply["title"] = proposed.title
        changes.append(f'renamed to "{proposed.title}"')

    if "description" in proposed.model_fields_set and proposed.description != current.description:
        to_apply["description"] = proposed.description
        changes.append("updated description")

    if proposed.status is not None:
        phrase = _status_change(current.status, proposed.status, actor_role)
        if phrase:
            to_apply["status"] = proposed.status
            changes.append(phrase)

    if not to_apply:
        return NoChange()

    return ProposedUpdate(to_apply=to_apply, changes=changes)


def creation_summary(title: str) -> str:
    return f"Created task: {title}"


def deletion_summary(title: str) -> str:
    return f"Deleted task: {title}"


def structured_summary(kind: str, task: Task, changes: list[str] | None = None) -> AuditSummary:
    """Structured counterpart of the free-text details for a task entry."""
    return AuditSummary(kind=kind, title=task.title, changes=changes or [])
