"""TaskTrail engine errors."""


class TaskTrailError(Exception):
    """Base error for TaskTrail operations."""

    def __init__(self, message: str, code: str = "TASKTRAIL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class TaskNotFound(TaskTrailError):
    """Task does not exist."""

    def __init__(self, task_id: int):
        super().__init__(f"Task not found: {task_id}", "TASK_NOT_FOUND")
        self.task_id = task_id


class Forbidden(TaskTrailError):
    """Actor's role does not permit the requested change."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, "FORBIDDEN")


class AuditWriteFailure(TaskTrailError):
    """Activity log entry could not be written."""

    def __init__(self, action: str, entity_id: int, cause: BaseException):
        super().__init__(
            f"Failed to record {action} for task {entity_id}: {cause}",
            "AUDIT_WRITE_FAILURE",
        )
        self.action = action
        self.entity_id = entity_id
        self.cause = cause


class InvalidCredentials(TaskTrailError):
    """Email/password pair or token did not verify."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message, "INVALID_CREDENTIALS")


class EmailAlreadyRegistered(TaskTrailError):
    """An account with this email already exists."""

    def __init__(self, email: str):
        super().__init__(f"Email already registered: {email}", "EMAIL_ALREADY_REGISTERED")
        self.email = email
