"""Task model - the unit of work users track."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from tasktrail.models.enums import TaskStatus

# Matches the tasks.title column width.
TITLE_MAX_LENGTH = 255


def check_title(value: Optional[str]) -> Optional[str]:
    """Reject blank titles; None passes through for partial updates."""
    if value is not None and not value.strip():
        raise ValueError("Title is required")
    return value


class Task(BaseModel):
    """Persisted task snapshot."""

    # Identity
    id: int

    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING

    # Ownership (immutable after creation)
    created_by: int
    assigned_to: Optional[int] = None

    # Timestamps
    created_at: datetime
    updated_at: datetime


class TaskUpdate(BaseModel):
    """Proposed partial update; absent fields are left untouched."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return check_title(v)


class ProposedUpdate(BaseModel):
    """Fields an actor may change, plus the audit text describing the change."""

    to_apply: dict[str, Any]
    changes: list[str]

    @property
    def summary(self) -> str:
        return ", ".join(self.changes)


class NoChange(BaseModel):
    """Marker for a proposed update that alters nothing."""
