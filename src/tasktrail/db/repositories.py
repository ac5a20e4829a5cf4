"""Database repositories for TaskTrail entities."""

from typing import Any, Iterable

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrail.db.tables import ActivityLogTable, TaskTable, UserTable
from tasktrail.models import (
    AuditAction,
    AuditLogEntry,
    AuditPage,
    AuditSummary,
    EntityType,
    Role,
    Task,
    TaskStatus,
    User,
)
from tasktrail.utils.time import ensure_utc, utc_now


# Columns an update may touch; id, created_by and created_at are immutable.
MUTABLE_TASK_FIELDS = frozenset({"title", "description", "status", "assigned_to"})


class TaskRepository:
    """Repository for task operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        title: str,
        created_by: int,
        description: str | None = None,
        assigned_to: int | None = None,
    ) -> Task:
        """Create a new pending task."""
        now = utc_now()
        task_row = TaskTable(
            title=title,
            description=description,
            status=TaskStatus.PENDING,
            created_by=created_by,
            assigned_to=assigned_to,
            created_at=now,
            updated_at=now,
        )
        self.session.add(task_row)
        await self.session.flush()
        return self._row_to_model(task_row)

    async def get(self, task_id: int) -> Task | None:
        """Get a task by ID."""
        result = await self.session.execute(
            select(TaskTable).where(TaskTable.id == task_id)
        )
        row = result.scalar_one_or_none()
        return self._row_to_model(row) if row else None

    async def find_by_ids(self, task_ids: Iterable[int]) -> list[Task]:
        """Batched lookup; ids that no longer exist are simply absent."""
        ids = list(task_ids)
        if not ids:
            return []
        result = await self.session.execute(
            select(TaskTable).where(TaskTable.id.in_(ids))
        )
        return [self._row_to_model(r) for r in result.scalars().all()]

    async def list(self) -> list[tuple[Task, str | None]]:
        """List all tasks with their creator's email, newest first."""
        result = await self.session.execute(
            select(TaskTable, UserTable.email)
            .outerjoin(UserTable, UserTable.id == TaskTable.created_by)
            .order_by(TaskTable.created_at.desc(), TaskTable.id.desc())
        )
        return [(self._row_to_model(row), email) for row, email in result.all()]

    async def update(self, task_id: int, fields: dict[str, Any]) -> Task | None:
        """Apply a filtered field set and return the new snapshot."""
        unknown = set(fields) - MUTABLE_TASK_FIELDS
        if unknown:
            raise ValueError(f"Cannot update task fields: {sorted(unknown)}")

        values: dict[str, Any] = dict(fields)
        values["updated_at"] = utc_now()

        await self.session.execute(
            update(TaskTable)
            .where(TaskTable.id == task_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self.session.expire_all()
        return await self.get(task_id)

    async def delete(self, task_id: int) -> Task | None:
        """Delete a task and return its pre-delete snapshot."""
        snapshot = await self.get(task_id)
        if snapshot is None:
            return None
        await self.session.execute(
            delete(TaskTable)
            .where(TaskTable.id == task_id)
            .execution_options(synchronize_session=False)
        )
        return snapshot

    def _row_to_model(self, row: TaskTable) -> Task:
        """Convert database row to model."""
        return Task(
            id=row.id,
            title=row.title,
            description=row.description,
            status=row.status,
            created_by=row.created_by,
            assigned_to=row.assigned_to,
            created_at=ensure_utc(row.created_at),
            updated_at=ensure_utc(row.updated_at),
        )


class AuditLogRepository:
    """Repository for the append-only activity log."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(
        self,
        user_id: int,
        action: AuditAction,
        entity_type: EntityType,
        entity_id: int,
        details: str | None = None,
        summary: AuditSummary | None = None,
    ) -> AuditLogEntry:
        """Append an entry. Entries are never updated or deleted."""
        row = ActivityLogTable(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
            summary=summary.model_dump() if summary else None,
            timestamp=utc_now(),
        )
        self.session.add(row)
        await self.session.flush()
        return self._row_to_model(row)

    async def page(self, offset: int, limit: int) -> AuditPage:
        """Return entries newest first plus the total entry count."""
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        result = await self.session.execute(
            select(ActivityLogTable)
            .order_by(ActivityLogTable.timestamp.desc(), ActivityLogTable.id.desc())
            .offset(offset)
            .limit(limit)
        )
        rows = list(result.scalars().all())

        total = await self.session.scalar(
            select(func.count()).select_from(ActivityLogTable)
        )
        return AuditPage(entries=[self._row_to_model(r) for r in rows], total=total or 0)

    async def list_for_entity(self, entity_type: EntityType, entity_id: int) -> list[AuditLogEntry]:
        """Full history for one entity, oldest first."""
        result = await self.session.execute(
            select(ActivityLogTable)
            .where(
                ActivityLogTable.entity_type == entity_type,
                ActivityLogTable.entity_id == entity_id,
            )
            .order_by(ActivityLogTable.timestamp.asc(), ActivityLogTable.id.asc())
        )
        return [self._row_to_model(r) for r in result.scalars().all()]

    def _row_to_model(self, row: ActivityLogTable) -> AuditLogEntry:
        """Convert database row to model."""
        return AuditLogEntry(
            id=row.id,
            user_id=row.user_id,
            action=row.action,
            entity_type=row.entity_type,
            entity_id=row.entity_id,
            details=row.details,
            summary=AuditSummary(**row.summary) if row.summary else None,
            timestamp=ensure_utc(row.timestamp),
        )


class UserRepository:
    """Repository for user accounts."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, email: str, password_hash: str, role: Role = Role.USER) -> User:
        row = UserTable(
            email=email,
            password_hash=password_hash,
            role=role,
            created_at=utc_now(),
        )
        self.session.add(row)
        await self.session.flush()
        return self._row_to_model(row)

    async def get(self, user_id: int) -> User | None:
        result = await self.session.execute(select(UserTable).where(UserTable.id == user_id))
        row = result.scalar_one_or_none()
        return self._row_to_model(row) if row else None

    async def get_with_password_hash(self, email: str) -> tuple[User, str] | None:
        """Look up a user by email, returning the stored bcrypt hash too."""
        result = await self.session.execute(select(UserTable).where(UserTable.email == email))
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return self._row_to_model(row), row.password_hash

    async def find_by_ids(self, user_ids: Iterable[int]) -> list[User]:
        ids = list(user_ids)
        if not ids:
            return []
        result = await self.session.execute(select(UserTable).where(UserTable.id.in_(ids)))
        return [self._row_to_model(r) for r in result.scalars().all()]

    def _row_to_model(self, row: UserTable) -> User:
        return User(
            id=row.id,
            email=row.email,
            role=row.role,
            created_at=ensure_utc(row.created_at),
        )
