"""API request/response schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from tasktrail.models import TaskStatus
from tasktrail.models.task import TITLE_MAX_LENGTH, check_title


# ============================================================================
# Auth schemas
# ============================================================================


class CredentialsRequest(BaseModel):
    """Login or registration request."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class UserSchema(BaseModel):
    id: int
    email: str
    role: str


class TokenResponse(BaseModel):
    """Issued access token plus the account it belongs to."""

    token: str
    user: UserSchema


# ============================================================================
# Task schemas
# ============================================================================


class CreateTaskRequest(BaseModel):
    """Create task request."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH, description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    assigned_to: Optional[int] = Field(None, alias="assignedTo", description="Assignee user id")

    model_config = {"populate_by_name": True}

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return check_title(v)


class UpdateTaskRequest(BaseModel):
    """Partial task update; omitted fields are left as they are."""

    title: Optional[str] = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return check_title(v)


class CreatorSchema(BaseModel):
    id: int
    email: Optional[str] = None


class TaskResponse(BaseModel):
    """Task response."""

    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus
    created_by: int
    assigned_to: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    creator: Optional[CreatorSchema] = None


class DeleteTaskResponse(BaseModel):
    message: str


# ============================================================================
# Activity schemas
# ============================================================================


class PaginationSchema(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ActivityLogsResponse(BaseModel):
    """One page of labelled activity log entries."""

    logs: list[dict[str, Any]]
    pagination: PaginationSchema


class HealthResponse(BaseModel):
    status: str
    version: str
