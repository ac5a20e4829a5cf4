"""TaskTrail core engine - task mutations and activity history."""

import logging
import math
from typing import Any

from tasktrail.config import settings
from tasktrail.db.base import Database
from tasktrail.db.repositories import AuditLogRepository, TaskRepository, UserRepository
from tasktrail.engine.errors import AuditWriteFailure, Forbidden, TaskNotFound
from tasktrail.engine.outcomes import (
    Applied,
    AppliedAuditFailed,
    MutationOutcome,
    Unchanged,
)
from tasktrail.engine.reconstruction import reconstruct_labels
from tasktrail.engine.transitions import (
    creation_summary,
    deletion_summary,
    propose_task_update,
    structured_summary,
)
from tasktrail.models import (
    Actor,
    AuditAction,
    AuditLogEntry,
    AuditSummary,
    EntityType,
    NoChange,
    Task,
    TaskUpdate,
)
from tasktrail.models.task import TITLE_MAX_LENGTH
from tasktrail.observability.metrics import metrics

logger = logging.getLogger(__name__)


class TaskTrailEngine:
    """
    Core engine implementing task operations.

    Every mutation commits the task change first and only then appends
    the activity log entry in a separate unit of work. A failed append is
    logged and reported through the outcome; it never undoes the task
    change and never raises to the caller.
    """

    def __init__(self, database: Database):
        self.database = database

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_task(self, task_id: int) -> Task:
        async with self.database.session() as session:
            task = await TaskRepository(session).get(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    async def list_tasks(self) -> list[dict[str, Any]]:
        """List tasks with their creator."""
        async with self.database.session() as session:
            rows = await TaskRepository(session).list()
        return [self._task_to_dict(task, creator_email) for task, creator_email in rows]

    async def get_task_history(self, task_id: int) -> list[AuditLogEntry]:
        """Every activity entry recorded for one task id, oldest first."""
        async with self.database.session() as session:
            return await AuditLogRepository(session).list_for_entity(EntityType.TASK, task_id)

    async def list_activity(self, page: int = 1, limit: int | None = None) -> dict[str, Any]:
        """
        One page of the activity log, newest first, with task labels.

        Deleted tasks are labelled from what the entry itself recorded.
        """
        limit = settings.default_activity_limit if limit is None else limit
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if not 1 <= limit <= settings.max_activity_limit:
            raise ValueError(f"limit must be between 1 and {settings.max_activity_limit}, got {limit}")

        offset = (page - 1) * limit
        async with self.database.session() as session:
            audit_page = await AuditLogRepository(session).page(offset, limit)
            actors = await UserRepository(session).find_by_ids(
                {entry.user_id for entry in audit_page.entries}
            )

        with metrics.timer("activity.labels.duration_ms"):
            labeled = await reconstruct_labels(audit_page.entries, self._lookup_titles)
        actors_by_id = {user.id: user for user in actors}

        logs = []
        for entry in labeled:
            log = entry.model_dump(mode="json")
            actor = actors_by_id.get(entry.user_id)
            log["user"] = (
                {"id": actor.id, "email": actor.email, "role": actor.role.value}
                if actor
                else None
            )
            logs.append(log)

        return {
            "logs": logs,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": audit_page.total,
                "pages": math.ceil(audit_page.total / limit),
            },
        }

    async def _lookup_titles(self, task_ids: list[int]) -> dict[int, str]:
        async with self.database.session() as session:
            tasks = await TaskRepository(session).find_by_ids(task_ids)
        return {task.id: task.title for task in tasks}

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_task(
        self,
        actor: Actor,
        title: str,
        description: str | None = None,
        assigned_to: int | None = None,
    ) -> MutationOutcome:
        """Create a task (admin only)."""
        if not actor.is_admin:
            raise Forbidden("Only admins can create tasks")
        if not title or not title.strip():
            raise ValueError("Title is required")
        if len(title) > TITLE_MAX_LENGTH:
            raise ValueError(f"Title must be at most {TITLE_MAX_LENGTH} characters")

        async with self.database.session() as session:
            task = await TaskRepository(session).create(
                title=title,
                description=description,
                created_by=actor.id,
                assigned_to=assigned_to,
            )
        metrics.inc_counter("tasks.created")
        logger.info(f"Task {task.id} created by user {actor.id}")

        return await self._finish(
            task, lambda: self.record_create(actor.id, task)
        )

    async def update_task(self, actor: Actor, task_id: int, proposed: TaskUpdate) -> MutationOutcome:
        """
        Apply the parts of ``proposed`` the actor is allowed to change.

        Raises:
            TaskNotFound: no task with this id.
            Forbidden: disallowed status change; nothing is applied.
        """
        async with self.database.session() as session:
            tasks = TaskRepository(session)
            current = await tasks.get(task_id)
            if current is None:
                raise TaskNotFound(task_id)

            try:
                decision = propose_task_update(current, actor.role, proposed)
            except Forbidden as e:
                metrics.inc_counter("tasks.forbidden")
                logger.warning(f"User {actor.id} denied update on task {task_id}: {e.message}")
                raise

            if isinstance(decision, NoChange):
                metrics.inc_counter("tasks.unchanged")
                return Unchanged(task=current)

            task = await tasks.update(task_id, decision.to_apply)
            if task is None:
                # Deleted between read and write.
                raise TaskNotFound(task_id)

        metrics.inc_counter("tasks.updated")
        logger.info(f"Task {task_id} updated by user {actor.id}: {decision.summary}")

        return await self._finish(
            task, lambda: self.record_update(actor.id, task, decision.summary, decision.changes)
        )

    async def delete_task(self, actor: Actor, task_id: int) -> MutationOutcome:
        """Delete a task (admin only); the outcome carries the pre-delete snapshot."""
        if not actor.is_admin:
            raise Forbidden("Only admins can delete tasks")

        async with self.database.session() as session:
            snapshot = await TaskRepository(session).delete(task_id)
        if snapshot is None:
            raise TaskNotFound(task_id)

        metrics.inc_counter("tasks.deleted")
        logger.info(f"Task {task_id} deleted by user {actor.id}")

        return await self._finish(
            snapshot, lambda: self.record_delete(actor.id, snapshot)
        )

    async def _finish(self, task: Task, record) -> MutationOutcome:
        try:
            entry = await record()
        except AuditWriteFailure as e:
            metrics.inc_counter("audit.write.failures")
            logger.error(f"Failed to log activity: {e.message}", exc_info=e.cause)
            return AppliedAuditFailed(task=task, audit_error=e)
        return Applied(task=task, entry=entry)

    # =========================================================================
    # Activity log writers
    # =========================================================================

    async def record_create(self, actor_id: int, task: Task, summary: str | None = None) -> AuditLogEntry:
        return await self._record(
            actor_id,
            AuditAction.CREATE,
            task,
            summary or creation_summary(task.title),
            structured_summary("create", task),
        )

    async def record_update(
        self,
        actor_id: int,
        task: Task,
        summary: str,
        changes: list[str] | None = None,
    ) -> AuditLogEntry:
        return await self._record(
            actor_id,
            AuditAction.UPDATE,
            task,
            summary,
            structured_summary("update", task, changes if changes is not None else [summary]),
        )

    async def record_delete(self, actor_id: int, task: Task, summary: str | None = None) -> AuditLogEntry:
        return await self._record(
            actor_id,
            AuditAction.DELETE,
            task,
            summary or deletion_summary(task.title),
            structured_summary("delete", task),
        )

    async def _record(
        self,
        actor_id: int,
        action: AuditAction,
        task: Task,
        details: str,
        summary: AuditSummary,
    ) -> AuditLogEntry:
        """Append one entry in its own unit of work.

        Raises:
            AuditWriteFailure: wrapping whatever the store raised.
        """
        try:
            async with self.database.session() as session:
                entry = await AuditLogRepository(session).append(
                    user_id=actor_id,
                    action=action,
                    entity_type=EntityType.TASK,
                    entity_id=task.id,
                    details=details,
                    summary=summary,
                )
        except Exception as e:
            raise AuditWriteFailure(action.value, task.id, e) from e

        metrics.inc_counter("audit.write.count")
        return entry

    def _task_to_dict(self, task: Task, creator_email: str | None = None) -> dict[str, Any]:
        """Convert task to response dict."""
        result = task.model_dump(mode="json")
        result["creator"] = {"id": task.created_by, "email": creator_email}
        return result
