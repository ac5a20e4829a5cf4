"""
Engine tests: task mutations, best-effort activity logging and the
labelled activity page.
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError

from tasktrail.db.repositories import AuditLogRepository, TaskRepository
from tasktrail.db.tables import ActivityLogTable, UserTable
from tasktrail.engine import (
    Applied,
    AppliedAuditFailed,
    AuditWriteFailure,
    Forbidden,
    TaskNotFound,
    Unchanged,
)
from tasktrail.models import AuditAction, EntityType, TaskStatus, TaskUpdate
from tasktrail.observability.metrics import metrics


async def _activity(database):
    async with database.session() as session:
        page = await AuditLogRepository(session).page(0, 100)
    return page.entries


@pytest.mark.asyncio
async def test_create_task_records_created_entry(engine, database, admin_actor):
    outcome = await engine.create_task(admin_actor, title="Alpha", description="first")

    assert isinstance(outcome, Applied)
    assert outcome.task.status == TaskStatus.PENDING
    assert outcome.task.created_by == admin_actor.id
    assert outcome.entry.action == AuditAction.CREATE
    assert outcome.entry.entity_type == EntityType.TASK
    assert outcome.entry.entity_id == outcome.task.id
    assert outcome.entry.details == "Created task: Alpha"
    assert outcome.entry.summary.kind == "create"
    assert outcome.entry.summary.title == "Alpha"

    entries = await _activity(database)
    assert len(entries) == 1


@pytest.mark.asyncio
async def test_create_requires_admin(engine, database, user_actor):
    with pytest.raises(Forbidden):
        await engine.create_task(user_actor, title="Nope")
    assert await _activity(database) == []


@pytest.mark.asyncio
async def test_create_requires_title(engine, admin_actor):
    with pytest.raises(ValueError, match="Title is required"):
        await engine.create_task(admin_actor, title="   ")


@pytest.mark.asyncio
async def test_user_completes_task(engine, database, admin_actor, user_actor):
    task = (await engine.create_task(admin_actor, title="Y")).task

    outcome = await engine.update_task(user_actor, task.id, TaskUpdate(status=TaskStatus.COMPLETED))

    assert isinstance(outcome, Applied)
    assert outcome.task.status == TaskStatus.COMPLETED
    assert outcome.entry.details == "marked as completed"
    assert outcome.entry.user_id == user_actor.id
    assert (await engine.get_task(task.id)).status == TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_forbidden_reopen_leaves_task_and_log_untouched(engine, database, admin_actor, user_actor):
    task = (await engine.create_task(admin_actor, title="Y")).task
    await engine.update_task(user_actor, task.id, TaskUpdate(status=TaskStatus.COMPLETED))
    before = await _activity(database)

    with pytest.raises(Forbidden):
        await engine.update_task(
            user_actor, task.id, TaskUpdate(title="Sneaky", status=TaskStatus.PENDING)
        )

    persisted = await engine.get_task(task.id)
    assert persisted.status == TaskStatus.COMPLETED
    assert persisted.title == "Y"
    assert len(await _activity(database)) == len(before)
    assert metrics.counter_value("tasks.forbidden") == 1


@pytest.mark.asyncio
async def test_admin_reopens_task(engine, admin_actor):
    task = (await engine.create_task(admin_actor, title="Y")).task
    await engine.update_task(admin_actor, task.id, TaskUpdate(status=TaskStatus.COMPLETED))

    outcome = await engine.update_task(admin_actor, task.id, TaskUpdate(status=TaskStatus.PENDING))

    assert outcome.task.status == TaskStatus.PENDING
    assert outcome.entry.details == "changed status to pending"


@pytest.mark.asyncio
async def test_identical_update_writes_nothing(engine, database, admin_actor, user_actor):
    task = (await engine.create_task(admin_actor, title="Same", description="d")).task

    outcome = await engine.update_task(
        user_actor,
        task.id,
        TaskUpdate(title="Same", description="d", status=TaskStatus.PENDING),
    )

    assert isinstance(outcome, Unchanged)
    assert outcome.task.id == task.id
    assert outcome.task.title == "Same"
    assert not outcome.audit_recorded
    assert len(await _activity(database)) == 1  # only the create entry


@pytest.mark.asyncio
async def test_multi_field_update_summary(engine, admin_actor, user_actor):
    task = (await engine.create_task(admin_actor, title="Y")).task

    outcome = await engine.update_task(
        user_actor, task.id, TaskUpdate(status=TaskStatus.COMPLETED, title="X")
    )

    assert outcome.entry.details == 'renamed to "X", marked as completed'
    assert outcome.entry.summary.title == "X"
    assert outcome.entry.summary.changes == ['renamed to "X"', "marked as completed"]


@pytest.mark.asyncio
async def test_update_missing_task(engine, user_actor):
    with pytest.raises(TaskNotFound):
        await engine.update_task(user_actor, 999, TaskUpdate(title="X"))


@pytest.mark.asyncio
async def test_audit_failure_does_not_roll_back_update(engine, admin_actor, user_actor):
    """The task change stands even when the activity entry cannot be written."""
    task = (await engine.create_task(admin_actor, title="Y")).task

    with patch.object(
        AuditLogRepository, "append", new=AsyncMock(side_effect=RuntimeError("log store down"))
    ):
        outcome = await engine.update_task(
            user_actor, task.id, TaskUpdate(status=TaskStatus.COMPLETED)
        )

    assert isinstance(outcome, AppliedAuditFailed)
    assert isinstance(outcome.audit_error, AuditWriteFailure)
    assert isinstance(outcome.audit_error.cause, RuntimeError)
    assert outcome.task.status == TaskStatus.COMPLETED
    assert (await engine.get_task(task.id)).status == TaskStatus.COMPLETED
    assert metrics.counter_value("audit.write.failures") == 1


@pytest.mark.asyncio
async def test_record_update_raises_audit_write_failure(engine, admin_actor):
    task = (await engine.create_task(admin_actor, title="Y")).task

    with patch.object(AuditLogRepository, "append", new=AsyncMock(side_effect=RuntimeError("boom"))):
        with pytest.raises(AuditWriteFailure) as exc:
            await engine.record_update(admin_actor.id, task, "updated description")

    assert exc.value.code == "AUDIT_WRITE_FAILURE"
    assert exc.value.entity_id == task.id


@pytest.mark.asyncio
async def test_delete_captures_title_before_delete(engine, database, admin_actor):
    task = (await engine.create_task(admin_actor, title="Ship it")).task

    outcome = await engine.delete_task(admin_actor, task.id)

    assert isinstance(outcome, Applied)
    assert outcome.task.title == "Ship it"
    assert outcome.entry.action == AuditAction.DELETE
    assert outcome.entry.details == "Deleted task: Ship it"
    assert outcome.entry.summary.kind == "delete"
    with pytest.raises(TaskNotFound):
        await engine.get_task(task.id)


@pytest.mark.asyncio
async def test_delete_requires_admin(engine, admin_actor, user_actor):
    task = (await engine.create_task(admin_actor, title="Keep")).task
    with pytest.raises(Forbidden):
        await engine.delete_task(user_actor, task.id)
    assert (await engine.get_task(task.id)).title == "Keep"


@pytest.mark.asyncio
async def test_delete_missing_task(engine, admin_actor):
    with pytest.raises(TaskNotFound):
        await engine.delete_task(admin_actor, 12345)


@pytest.mark.asyncio
async def test_activity_labels_deleted_and_renamed_tasks(engine, admin_actor, admin):
    kept = (await engine.create_task(admin_actor, title="Old name")).task
    gone = (await engine.create_task(admin_actor, title="Ship it")).task
    await engine.update_task(admin_actor, kept.id, TaskUpdate(title="New name"))
    await engine.delete_task(admin_actor, gone.id)

    result = await engine.list_activity(page=1, limit=10)

    labels = {(log["entity_id"], log["action"]): log["task_title"] for log in result["logs"]}
    assert labels[(kept.id, "CREATE")] == "New name"
    assert labels[(kept.id, "UPDATE")] == "New name"
    assert labels[(gone.id, "CREATE")] == "Ship it"
    assert labels[(gone.id, "DELETE")] == "Ship it"
    assert all(log["user"]["email"] == admin.email for log in result["logs"])
    assert result["pagination"] == {"page": 1, "limit": 10, "total": 4, "pages": 1}


@pytest.mark.asyncio
async def test_legacy_entry_without_summary_falls_back_to_details(engine, database, admin_actor):
    async with database.session() as session:
        await AuditLogRepository(session).append(
            user_id=admin_actor.id,
            action=AuditAction.DELETE,
            entity_type=EntityType.TASK,
            entity_id=77,
            details="Deleted task: Archived thing",
        )
        await AuditLogRepository(session).append(
            user_id=admin_actor.id,
            action=AuditAction.UPDATE,
            entity_type=EntityType.TASK,
            entity_id=78,
            details="something unparseable",
        )

    result = await engine.list_activity(page=1, limit=10)

    labels = {log["entity_id"]: log["task_title"] for log in result["logs"]}
    assert labels == {77: "Archived thing", 78: "Unknown Task"}


@pytest.mark.asyncio
async def test_activity_pagination(engine, database, admin_actor):
    """Page 2 of 25 entries at limit 10 holds entries 11-20, newest first."""
    async with database.session() as session:
        log = AuditLogRepository(session)
        for n in range(1, 26):
            await log.append(
                user_id=admin_actor.id,
                action=AuditAction.UPDATE,
                entity_type=EntityType.TASK,
                entity_id=1,
                details=f"entry {n}",
            )

    result = await engine.list_activity(page=2, limit=10)

    assert [log["details"] for log in result["logs"]] == [f"entry {n}" for n in range(15, 5, -1)]
    assert result["pagination"] == {"page": 2, "limit": 10, "total": 25, "pages": 3}


@pytest.mark.asyncio
@pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (1, 101)])
async def test_activity_rejects_bad_pagination(engine, page, limit):
    with pytest.raises(ValueError):
        await engine.list_activity(page=page, limit=limit)


@pytest.mark.asyncio
async def test_task_history_survives_deletion(engine, admin_actor):
    task = (await engine.create_task(admin_actor, title="Short lived")).task
    await engine.update_task(admin_actor, task.id, TaskUpdate(description="more"))
    await engine.delete_task(admin_actor, task.id)

    history = await engine.get_task_history(task.id)

    assert [e.action for e in history] == [AuditAction.CREATE, AuditAction.UPDATE, AuditAction.DELETE]


@pytest.mark.asyncio
async def test_find_by_ids_skips_missing(database, admin_actor):
    async with database.session() as session:
        tasks = TaskRepository(session)
        a = await tasks.create(title="A", created_by=admin_actor.id)
        b = await tasks.create(title="B", created_by=admin_actor.id)
        await tasks.delete(b.id)

    async with database.session() as session:
        found = await TaskRepository(session).find_by_ids([a.id, b.id, 999])

    assert [t.title for t in found] == ["A"]


@pytest.mark.asyncio
async def test_repository_refuses_immutable_fields(database, admin_actor):
    async with database.session() as session:
        task = await TaskRepository(session).create(title="A", created_by=admin_actor.id)
        with pytest.raises(ValueError):
            await TaskRepository(session).update(task.id, {"created_by": 99})


@pytest.mark.asyncio
async def test_activity_page_records_label_timing(engine, admin_actor):
    await engine.create_task(admin_actor, title="Timed")

    await engine.list_activity(page=1, limit=10)

    timing = metrics.histogram("activity.labels.duration_ms")
    assert timing["count"] == 1
    assert timing["min"] >= 0
    assert metrics.counter_value("activity.labels.live") == 1


@pytest.mark.asyncio
async def test_create_stands_when_audit_write_fails(engine, admin_actor):
    with patch.object(AuditLogRepository, "append", new=AsyncMock(side_effect=RuntimeError("down"))):
        outcome = await engine.create_task(admin_actor, title="Unlogged")

    assert isinstance(outcome, AppliedAuditFailed)
    assert outcome.audit_error.action == "CREATE"
    assert (await engine.get_task(outcome.task.id)).title == "Unlogged"


@pytest.mark.asyncio
async def test_delete_stands_when_audit_write_fails(engine, database, admin_actor):
    task = (await engine.create_task(admin_actor, title="Gone anyway")).task

    with patch.object(AuditLogRepository, "append", new=AsyncMock(side_effect=RuntimeError("down"))):
        outcome = await engine.delete_task(admin_actor, task.id)

    assert isinstance(outcome, AppliedAuditFailed)
    assert outcome.task.title == "Gone anyway"
    with pytest.raises(TaskNotFound):
        await engine.get_task(task.id)
    assert [e.action for e in await _activity(database)] == [AuditAction.CREATE]


@pytest.mark.asyncio
async def test_update_clears_description(engine, admin_actor, user_actor):
    task = (await engine.create_task(admin_actor, title="Y", description="old")).task

    outcome = await engine.update_task(user_actor, task.id, TaskUpdate(description=None))

    assert isinstance(outcome, Applied)
    assert outcome.entry.details == "updated description"
    assert (await engine.get_task(task.id)).description is None


@pytest.mark.asyncio
async def test_create_rejects_overlong_title(engine, admin_actor):
    with pytest.raises(ValueError, match="at most 255"):
        await engine.create_task(admin_actor, title="x" * 256)


def test_activity_log_keeps_author_foreign_key_restrictive():
    (fk,) = ActivityLogTable.__table__.c.user_id.foreign_keys
    assert fk.ondelete == "RESTRICT"


@pytest.mark.asyncio
async def test_deleting_user_with_history_is_refused(engine, database, admin_actor):
    task = (await engine.create_task(admin_actor, title="Logged")).task
    await engine.delete_task(admin_actor, task.id)

    with pytest.raises(IntegrityError):
        async with database.session() as session:
            await session.execute(delete(UserTable).where(UserTable.id == admin_actor.id))

    assert len(await _activity(database)) == 2
