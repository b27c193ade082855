"""Tool-call handling for TaskQueue.

``TaskQueueService`` is the thin adapter between a transport and the pure
workflow operations: validate the call, load the collection, apply the
operation, save the result, and shape a ``{success, data | error}`` reply.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from pydantic import BaseModel

from .errors import TaskQueueError
from .responses import failure, success
from .schemas import (
    AddTasksAction,
    ApproveTaskAction,
    CreateProjectAction,
    DeleteProjectAction,
    DeleteTaskAction,
    FinalizeProjectAction,
    UpdateTaskAction,
    validate_action,
    validate_tool_call,
)
from .storage import CollectionStorage
from .taskqueue_logging import (
    log_error_with_context,
    log_operation,
    log_performance,
    log_project_created,
    log_project_deleted,
    log_project_finalized,
    log_task_approved,
    log_task_deleted,
    log_task_update,
    log_tasks_added,
)
from .workflow import apply_action, is_read_only


logger = logging.getLogger("taskqueue.service")


class TaskQueueService:
    """Run one load, operate, save cycle per tool call."""

    def __init__(self, storage: CollectionStorage):
        self.storage = storage
        # Serializes load-mutate-save cycles issued through this process.
        self._lock = threading.Lock()

    def project(self, action: Any, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._run("project", lambda: validate_action("project", action, arguments))

    def task(self, action: Any, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._run("task", lambda: validate_action("task", action, arguments))

    def handle(self, payload: Any) -> Dict[str, Any]:
        """Handle a raw ``{tool, params: {action, arguments}}`` payload."""
        tool = payload.get("tool") if isinstance(payload, dict) else None
        return self._run(str(tool), lambda: validate_tool_call(payload).params)

    def _run(self, tool: str, validate) -> Dict[str, Any]:
        try:
            action = validate()
            return success(self._execute(tool, action))
        except TaskQueueError as e:
            log_error_with_context(e, {"operation": f"{tool} tool", "code": e.code.value})
            return failure(e)

    @log_performance("tool_call")
    def _execute(self, tool: str, action: BaseModel) -> Dict[str, Any]:
        operation_name = f"{tool}.{action.action}"
        with self._lock, log_operation(operation_name):
            collection = self.storage.load()
            updated, result = apply_action(collection, action)
            if not is_read_only(action):
                self.storage.save(updated)
                self._emit_event(action, result)
            else:
                logger.debug(f"{operation_name} is read-only; collection not saved")
        return result

    def _emit_event(self, action: BaseModel, result: Dict[str, Any]) -> None:
        project_id = result.get("projectId")
        if isinstance(action, CreateProjectAction):
            log_project_created(project_id, result["totalTasks"])
        elif isinstance(action, AddTasksAction):
            log_tasks_added(project_id, [task["id"] for task in result["newTasks"]])
        elif isinstance(action, UpdateTaskAction):
            task = result["task"]
            log_task_update(project_id, task["id"], task["status"], task["approved"])
        elif isinstance(action, ApproveTaskAction):
            log_task_approved(project_id, result["task"]["id"])
        elif isinstance(action, DeleteTaskAction):
            log_task_deleted(project_id, result["taskId"])
        elif isinstance(action, FinalizeProjectAction):
            log_project_finalized(project_id)
        elif isinstance(action, DeleteProjectAction):
            log_project_deleted(project_id, deleted_tasks=result["deletedTasks"])
