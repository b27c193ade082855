"""Workflow operations for TaskQueue.

Every operation takes the current collection and already-validated arguments
and returns ``(collection, result)``. Mutating operations work on a
``ProjectStore`` copy, so a failure at any point leaves the caller's
collection exactly as it was. Read-only operations return the input
collection unchanged.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel

from .errors import (
    ApprovedTaskError,
    IncompleteProjectError,
    NotApprovableError,
    ProjectCompletedError,
    TaskQueueError,
    ValidationError,
)
from .models import STATUS_DONE, Project, Task, TaskCollection
from .responses import project_summary, project_view, task_view
from .schemas import (
    AddTasksAction,
    AddTasksArguments,
    ApproveTaskAction,
    CreateProjectAction,
    CreateProjectArguments,
    DeleteProjectAction,
    DeleteTaskAction,
    FinalizeProjectAction,
    ListProjectsAction,
    ListProjectsArguments,
    ListTasksAction,
    ListTasksArguments,
    NextTaskAction,
    ProjectRef,
    ReadProjectAction,
    ReadTaskAction,
    TaskDefinition,
    TaskRef,
    UpdateProjectAction,
    UpdateProjectArguments,
    UpdateTaskAction,
    UpdateTaskArguments,
    require_completed_details,
)
from .store import ProjectStore, lookup_project, lookup_task
from .transitions import check_transition


OperationResult = Tuple[TaskCollection, Dict[str, Any]]


def _ensure_open(project: Project) -> None:
    if project.completed:
        raise ProjectCompletedError(project.project_id)


def _new_task(store: ProjectStore, definition: TaskDefinition) -> Task:
    return Task(
        id=store.next_task_id(),
        title=definition.title,
        description=definition.description,
        tool_recommendations=definition.tool_recommendations,
        rule_recommendations=definition.rule_recommendations,
    )


def _project_matches(project: Project, state: Optional[str]) -> bool:
    if state is None or state == "all":
        return True
    if state == "open":
        return not project.completed
    if state == "completed":
        return project.completed
    # pending_approval: every task is done but the project is not finalized yet
    return not project.completed and all(task.is_done() for task in project.tasks)


def _task_matches(task: Task, state: Optional[str]) -> bool:
    if state is None or state == "all":
        return True
    if state == "open":
        return not task.approved
    if state == "completed":
        return task.is_finished()
    return task.is_done() and not task.approved


# ----------------------------------------------------------------------
# Project operations
# ----------------------------------------------------------------------


def create_project(collection: TaskCollection, args: CreateProjectArguments) -> OperationResult:
    store = ProjectStore(collection)
    project = store.add_project(
        Project(
            project_id=store.next_project_id(),
            initial_prompt=args.initial_prompt,
            project_plan=args.project_plan or args.initial_prompt,
        )
    )
    tasks = store.append_tasks(project, [_new_task(store, item) for item in args.tasks])

    return store.snapshot(), {
        "projectId": project.project_id,
        "totalTasks": len(tasks),
        "tasks": [task.summary() for task in tasks],
        "message": f"Project {project.project_id} created with {len(tasks)} tasks.",
    }


def add_tasks(collection: TaskCollection, args: AddTasksArguments) -> OperationResult:
    store = ProjectStore(collection)
    project = store.get_project(args.project_id)
    _ensure_open(project)
    tasks = store.append_tasks(project, [_new_task(store, item) for item in args.tasks])

    return store.snapshot(), {
        "projectId": project.project_id,
        "newTasks": [task.summary() for task in tasks],
        "message": f"Added {len(tasks)} tasks to project {project.project_id}",
    }


def read_project(collection: TaskCollection, args: ProjectRef) -> OperationResult:
    project = lookup_project(collection, args.project_id)
    return collection, project_view(project)


def update_project(collection: TaskCollection, args: UpdateProjectArguments) -> OperationResult:
    store = ProjectStore(collection)
    project = store.get_project(args.project_id)
    _ensure_open(project)
    project.project_plan = args.project_plan

    return store.snapshot(), {
        "projectId": project.project_id,
        "projectPlan": project.project_plan,
        "message": f"Project {project.project_id} plan updated",
    }


def finalize_project(collection: TaskCollection, args: ProjectRef) -> OperationResult:
    """Mark the project completed once every task is done and approved."""
    store = ProjectStore(collection)
    project = store.get_project(args.project_id)

    if project.completed:
        return store.snapshot(), {
            "projectId": project.project_id,
            "completed": True,
            "message": f"Project {project.project_id} is already completed.",
        }

    blocking = project.blocking_tasks()
    if blocking:
        raise IncompleteProjectError(project.project_id, blocking)

    project.completed = True
    return store.snapshot(), {
        "projectId": project.project_id,
        "completed": True,
        "message": "Project is fully completed and approved.",
    }


def delete_project(collection: TaskCollection, args: ProjectRef) -> OperationResult:
    store = ProjectStore(collection)
    project = store.remove_project(args.project_id)

    return store.snapshot(), {
        "projectId": project.project_id,
        "deletedTasks": len(project.tasks),
        "message": f"Project {project.project_id} has been deleted",
    }


def list_projects(collection: TaskCollection, args: ListProjectsArguments) -> OperationResult:
    projects = [
        project_summary(project)
        for project in collection.projects
        if _project_matches(project, args.state)
    ]
    return collection, {
        "message": "Current projects in the system:",
        "projects": projects,
    }


# ----------------------------------------------------------------------
# Task operations
# ----------------------------------------------------------------------


def read_task(collection: TaskCollection, args: TaskRef) -> OperationResult:
    project, task = lookup_task(collection, args.project_id, args.task_id)
    return collection, {"projectId": project.project_id, "task": task_view(task)}


def update_task(collection: TaskCollection, args: UpdateTaskArguments) -> OperationResult:
    """Apply a partial update; an illegal status change rejects the whole call."""
    store = ProjectStore(collection)
    project, task = store.get_task(args.project_id, args.task_id)
    _ensure_open(project)

    changes = args.changes()
    requested = changes.pop("status", None)
    previous = task.status
    status_changed = requested is not None and requested != previous

    # An approved task only accepts a reopening status change; its content is frozen.
    if task.approved and changes and not status_changed:
        raise ApprovedTaskError(task.id)

    if status_changed:
        check_transition(previous, requested)
        if requested == STATUS_DONE:
            try:
                require_completed_details(requested, changes.get("completed_details"))
            except ValueError as exc:
                raise ValidationError([str(exc)]) from exc
        if previous == STATUS_DONE:
            # Approval belongs to one completion; reopening discards it.
            task.approved = False
        task.status = requested

    for attr, value in changes.items():
        setattr(task, attr, value)

    if task.is_done() and not task.completed_details.strip():
        raise ValidationError(["completedDetails cannot be empty while status is 'done'"])

    result: Dict[str, Any] = {"projectId": project.project_id, "task": task_view(task)}
    if task.status != previous:
        result["previousStatus"] = previous
    if requested == STATUS_DONE and previous != STATUS_DONE:
        result["message"] = (
            f"Task {task.id} marked as done. It must be approved before "
            f"project {project.project_id} can be finalized."
        )
    else:
        result["message"] = f"Task {task.id} updated"
    return store.snapshot(), result


def approve_task(collection: TaskCollection, args: TaskRef) -> OperationResult:
    store = ProjectStore(collection)
    project, task = store.get_task(args.project_id, args.task_id)

    if not task.is_done():
        raise NotApprovableError(task.id, task.status)

    if not task.approved:
        _ensure_open(project)
        task.approved = True

    return store.snapshot(), {
        "projectId": project.project_id,
        "task": task_view(task),
        "message": f"Task {task.id} approved",
    }


def delete_task(collection: TaskCollection, args: TaskRef) -> OperationResult:
    store = ProjectStore(collection)
    project = store.get_project(args.project_id)
    _ensure_open(project)
    _, task = store.get_task(args.project_id, args.task_id)
    if task.approved:
        raise ApprovedTaskError(task.id, "delete")
    store.remove_task(args.project_id, args.task_id)

    return store.snapshot(), {
        "projectId": project.project_id,
        "taskId": task.id,
        "remainingTasks": len(project.tasks),
        "message": f"Task {task.id} deleted from project {project.project_id}",
    }


def list_tasks(collection: TaskCollection, args: ListTasksArguments) -> OperationResult:
    if args.project_id is not None:
        projects = [lookup_project(collection, args.project_id)]
    else:
        projects = collection.projects

    tasks: List[Dict[str, Any]] = []
    for project in projects:
        for task in project.tasks:
            if _task_matches(task, args.state):
                tasks.append({"projectId": project.project_id, **task_view(task)})

    scope = f" for project {args.project_id}" if args.project_id else ""
    return collection, {
        "message": f"Tasks in the system{scope}: {len(tasks)} tasks found.",
        "tasks": tasks,
    }


def next_task(collection: TaskCollection, args: ProjectRef) -> OperationResult:
    """Return the first task, in project order, that is not yet done and approved."""
    project = lookup_project(collection, args.project_id)

    if project.completed:
        message = f"Project {project.project_id} is already completed."
        return collection, {"projectId": project.project_id, "task": None, "message": message}

    for task in project.tasks:
        if not task.is_finished():
            return collection, {"projectId": project.project_id, "task": task_view(task)}

    return collection, {
        "projectId": project.project_id,
        "task": None,
        "message": "All tasks have been completed and approved. Awaiting project finalization.",
    }


# ----------------------------------------------------------------------
# Dispatch
# ----------------------------------------------------------------------


Operation = Callable[[TaskCollection, Any], OperationResult]

OPERATIONS: Dict[type, Operation] = {
    ListProjectsAction: list_projects,
    CreateProjectAction: create_project,
    DeleteProjectAction: delete_project,
    AddTasksAction: add_tasks,
    FinalizeProjectAction: finalize_project,
    ReadProjectAction: read_project,
    UpdateProjectAction: update_project,
    ReadTaskAction: read_task,
    UpdateTaskAction: update_task,
    DeleteTaskAction: delete_task,
    ApproveTaskAction: approve_task,
    ListTasksAction: list_tasks,
    NextTaskAction: next_task,
}

READ_ONLY_ACTIONS = frozenset(
    {ListProjectsAction, ReadProjectAction, ReadTaskAction, ListTasksAction, NextTaskAction}
)


def is_read_only(action: BaseModel) -> bool:
    return type(action) in READ_ONLY_ACTIONS


def apply_action(collection: TaskCollection, action: BaseModel) -> OperationResult:
    """Run the operation registered for a validated action variant."""
    operation = OPERATIONS.get(type(action))
    if operation is None:
        raise TaskQueueError(f"No operation registered for {type(action).__name__}")
    return operation(collection, action.arguments)
