"""Activity log models."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from tasktrail.models.enums import AuditAction, EntityType


class AuditSummary(BaseModel):
    """Structured description stored alongside the free-text details."""

    kind: Literal["create", "update", "delete"]
    title: str
    changes: list[str] = Field(default_factory=list)


class AuditLogEntry(BaseModel):
    """Append-only record of an action taken on an entity."""

    model_config = {"frozen": True}

    id: int
    user_id: int
    action: AuditAction
    entity_type: EntityType
    # Copy of the entity id at write time; may no longer resolve.
    entity_id: int
    details: Optional[str] = None
    summary: Optional[AuditSummary] = None
    timestamp: datetime


class LabeledAuditLogEntry(AuditLogEntry):
    """Activity log entry with a derived, human-readable subject label."""

    task_title: Optional[str] = None


class AuditPage(BaseModel):
    """One page of activity log entries."""

    entries: list[AuditLogEntry]
    total: int
