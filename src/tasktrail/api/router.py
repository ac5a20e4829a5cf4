"""REST API router."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrail import __version__
from tasktrail.api.deps import get_current_actor, get_db_session, get_engine, require_admin
from tasktrail.api.schemas import (
    ActivityLogsResponse,
    CreateTaskRequest,
    CredentialsRequest,
    DeleteTaskResponse,
    HealthResponse,
    TaskResponse,
    TokenResponse,
    UpdateTaskRequest,
    UserSchema,
)
from tasktrail.auth import authenticate_user, create_access_token, register_user
from tasktrail.config import settings
from tasktrail.db.repositories import UserRepository
from tasktrail.engine import (
    AppliedAuditFailed,
    EmailAlreadyRegistered,
    Forbidden,
    InvalidCredentials,
    MutationOutcome,
    TaskNotFound,
    TaskTrailEngine,
)
from tasktrail.models import Actor, Task, TaskUpdate, User

router = APIRouter()


def _user_schema(user: User) -> UserSchema:
    return UserSchema(id=user.id, email=user.email, role=user.role.value)


def _task_response(task: Task) -> TaskResponse:
    return TaskResponse(**task.model_dump(), creator={"id": task.created_by})


def _flag_unrecorded(outcome: MutationOutcome, response: Response) -> None:
    if isinstance(outcome, AppliedAuditFailed):
        response.headers["X-Audit-Recorded"] = "false"


def _outcome_response(outcome: MutationOutcome, response: Response) -> TaskResponse:
    _flag_unrecorded(outcome, response)
    return _task_response(outcome.task)


# ============================================================================
# Health
# ============================================================================


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


@router.get("/")
async def root():
    return {"message": "TaskTrail API"}


# ============================================================================
# Auth
# ============================================================================


@router.post("/auth/register", response_model=TokenResponse, status_code=201)
async def register(
    request: CredentialsRequest,
    session: AsyncSession = Depends(get_db_session),
):
    """Register a regular user account."""
    try:
        user = await register_user(session, request.email, request.password)
    except EmailAlreadyRegistered as e:
        raise HTTPException(status_code=409, detail=e.message)
    return TokenResponse(token=create_access_token(user), user=_user_schema(user))


@router.post("/auth/login", response_model=TokenResponse)
async def login(
    request: CredentialsRequest,
    session: AsyncSession = Depends(get_db_session),
):
    """Exchange email and password for an access token."""
    try:
        user = await authenticate_user(session, request.email, request.password)
    except InvalidCredentials:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return TokenResponse(token=create_access_token(user), user=_user_schema(user))


@router.get("/auth/me", response_model=UserSchema)
async def me(
    actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_db_session),
):
    user = await UserRepository(session).get(actor.id)
    if user is None:
        raise HTTPException(status_code=401, detail="User no longer exists")
    return _user_schema(user)


# ============================================================================
# Tasks
# ============================================================================


@router.get("/tasks", response_model=list[TaskResponse])
async def list_tasks(
    actor: Actor = Depends(get_current_actor),
    engine: TaskTrailEngine = Depends(get_engine),
):
    """List all tasks."""
    return await engine.list_tasks()


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    actor: Actor = Depends(get_current_actor),
    engine: TaskTrailEngine = Depends(get_engine),
):
    """Get a task by ID."""
    try:
        return _task_response(await engine.get_task(task_id))
    except TaskNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/tasks", response_model=TaskResponse, status_code=201)
async def create_task(
    request: CreateTaskRequest,
    response: Response,
    actor: Actor = Depends(require_admin),
    engine: TaskTrailEngine = Depends(get_engine),
):
    """Create a new task (admin only)."""
    try:
        outcome = await engine.create_task(
            actor,
            title=request.title,
            description=request.description,
            assigned_to=request.assigned_to,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _outcome_response(outcome, response)


@router.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    request: UpdateTaskRequest,
    response: Response,
    actor: Actor = Depends(get_current_actor),
    engine: TaskTrailEngine = Depends(get_engine),
):
    """Update a task. Non-admins may edit text fields and mark tasks completed."""
    proposed = TaskUpdate(**request.model_dump(exclude_unset=True))
    try:
        outcome = await engine.update_task(actor, task_id, proposed)
    except TaskNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except Forbidden as e:
        raise HTTPException(status_code=403, detail=e.message)
    return _outcome_response(outcome, response)


@router.delete("/tasks/{task_id}", response_model=DeleteTaskResponse)
async def delete_task(
    task_id: int,
    response: Response,
    actor: Actor = Depends(require_admin),
    engine: TaskTrailEngine = Depends(get_engine),
):
    """Delete a task (admin only)."""
    try:
        outcome = await engine.delete_task(actor, task_id)
    except TaskNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    _flag_unrecorded(outcome, response)
    return DeleteTaskResponse(message="Task deleted successfully")


@router.get("/tasks/{task_id}/history")
async def task_history(
    task_id: int,
    actor: Actor = Depends(require_admin),
    engine: TaskTrailEngine = Depends(get_engine),
):
    """Activity entries recorded for one task id, including deleted tasks."""
    entries = await engine.get_task_history(task_id)
    return [entry.model_dump(mode="json") for entry in entries]


# ============================================================================
# Activity log
# ============================================================================


@router.get("/activities", response_model=ActivityLogsResponse)
async def list_activities(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_activity_limit, ge=1, le=settings.max_activity_limit),
    actor: Actor = Depends(require_admin),
    engine: TaskTrailEngine = Depends(get_engine),
):
    """Activity log, newest first, with task titles resolved (admin only)."""
    return await engine.list_activity(page=page, limit=limit)
