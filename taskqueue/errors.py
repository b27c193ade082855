"""Error taxonomy for TaskQueue.

Every failure the core can report is a ``TaskQueueError`` subclass carrying a
stable error code, a human-readable message and optional structured details.
The service layer turns these into tagged failure responses.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    INVALID_ARGUMENT = "ERR_1002"
    PROJECT_NOT_FOUND = "ERR_2001"
    TASK_NOT_FOUND = "ERR_2002"
    TASK_NOT_DONE = "ERR_3000"
    PROJECT_ALREADY_COMPLETED = "ERR_3001"
    INVALID_TRANSITION = "ERR_3002"
    TASKS_NOT_FINISHED = "ERR_3003"
    CANNOT_MODIFY_APPROVED_TASK = "ERR_3005"
    FILE_READ_ERROR = "ERR_4000"
    FILE_WRITE_ERROR = "ERR_4001"
    FILE_PARSE_ERROR = "ERR_4002"
    INVARIANT_VIOLATION = "ERR_9000"


class TaskQueueError(Exception):
    """Base class for all reportable TaskQueue failures."""

    code: ErrorCode = ErrorCode.INVARIANT_VIOLATION

    def __init__(
        self,
        message: str,
        *,
        code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the tagged failure payload."""
        payload: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code.value,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(TaskQueueError):
    """Malformed or incomplete input, detected before any store access."""

    code = ErrorCode.INVALID_ARGUMENT

    def __init__(self, issues: List[str]):
        self.issues = list(issues)
        super().__init__(
            "Invalid arguments: " + "; ".join(self.issues),
            details={"issues": self.issues},
        )


class NotFoundError(TaskQueueError):
    """A referenced project or task does not exist."""


class ProjectNotFoundError(NotFoundError):
    code = ErrorCode.PROJECT_NOT_FOUND

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project {project_id} not found", details={"projectId": project_id})


class TaskNotFoundError(NotFoundError):
    code = ErrorCode.TASK_NOT_FOUND

    def __init__(self, project_id: str, task_id: str):
        self.project_id = project_id
        self.task_id = task_id
        super().__init__(
            f"Task {task_id} not found in project {project_id}",
            details={"projectId": project_id, "taskId": task_id},
        )


class InvalidTransitionError(TaskQueueError):
    code = ErrorCode.INVALID_TRANSITION

    def __init__(self, current: str, requested: str, allowed: Optional[List[str]] = None):
        self.current = current
        self.requested = requested
        message = f"Invalid status transition from '{current}' to '{requested}'"
        if allowed:
            message += f". Allowed: {', '.join(repr(s) for s in allowed)}"
        super().__init__(
            message,
            details={"current": current, "requested": requested, "allowed": list(allowed or [])},
        )


class NotApprovableError(TaskQueueError):
    code = ErrorCode.TASK_NOT_DONE

    def __init__(self, task_id: str, status: str):
        self.task_id = task_id
        self.status = status
        super().__init__(
            f"Task {task_id} cannot be approved while its status is '{status}'",
            details={"taskId": task_id, "status": status},
        )


class ProjectCompletedError(TaskQueueError):
    code = ErrorCode.PROJECT_ALREADY_COMPLETED

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(
            f"Project {project_id} is already completed",
            details={"projectId": project_id},
        )


class ApprovedTaskError(TaskQueueError):
    """An approved task was edited or deleted without first being reopened."""

    code = ErrorCode.CANNOT_MODIFY_APPROVED_TASK

    def __init__(self, task_id: str, operation: str = "modify"):
        self.task_id = task_id
        self.operation = operation
        super().__init__(
            f"Cannot {operation} approved task {task_id}; move it back to 'in progress' first",
            details={"taskId": task_id},
        )


class IncompleteProjectError(TaskQueueError):
    """Finalize was attempted while some tasks are not done and approved."""

    code = ErrorCode.TASKS_NOT_FINISHED

    def __init__(self, project_id: str, blocking: List[Dict[str, Any]]):
        self.project_id = project_id
        self.blocking = blocking
        super().__init__(
            f"Project {project_id} has {len(blocking)} task(s) not yet done and approved",
            details={"projectId": project_id, "blockingTasks": blocking},
        )


class StorageError(TaskQueueError):
    """The persistence collaborator could not load or save the collection."""

    code = ErrorCode.FILE_READ_ERROR
