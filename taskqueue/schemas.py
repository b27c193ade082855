"""Action schemas for the ``project`` and ``task`` tools.

Each tool call is ``{"tool": ..., "params": {"action": ..., "arguments": {...}}}``.
Actions form a closed union discriminated on ``action``; argument objects are
strict, so unknown fields are rejected instead of silently ignored.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError
from .models import STATUS_DONE


TaskState = Literal["open", "pending_approval", "completed", "all"]
TaskStatusName = Literal["not started", "in progress", "done"]
NonEmptyStr = Annotated[str, Field(min_length=1)]

COMPLETED_DETAILS_REQUIRED = "completedDetails is required when status is 'done'"

REQUIRED_MESSAGES = {
    "initialPrompt": "Initial prompt is required",
    "projectId": "Project ID is required",
    "taskId": "Task ID is required",
    "title": "Task title is required",
    "description": "Task description is required",
    "tasks": "At least one task is required",
    "projectPlan": "Project plan is required",
}
_REQUIRED_ERROR_TYPES = {"missing", "string_too_short", "too_short"}


def require_completed_details(status: Optional[str], completed_details: Optional[str]) -> None:
    """Marking a task done must carry a non-empty completion report."""
    if status == STATUS_DONE and not (completed_details and completed_details.strip()):
        raise ValueError(COMPLETED_DETAILS_REQUIRED)


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel)


class TaskDefinition(StrictModel):
    title: NonEmptyStr
    description: NonEmptyStr
    tool_recommendations: Optional[str] = None
    rule_recommendations: Optional[str] = None


# ----------------------------------------------------------------------
# Argument objects
# ----------------------------------------------------------------------


class ListProjectsArguments(StrictModel):
    state: Optional[TaskState] = None


class CreateProjectArguments(StrictModel):
    initial_prompt: NonEmptyStr
    project_plan: Optional[str] = None
    tasks: List[TaskDefinition] = Field(min_length=1)


class ProjectRef(StrictModel):
    project_id: NonEmptyStr


class AddTasksArguments(StrictModel):
    project_id: NonEmptyStr
    tasks: List[TaskDefinition] = Field(min_length=1)


class UpdateProjectArguments(StrictModel):
    project_id: NonEmptyStr
    project_plan: str


class TaskRef(StrictModel):
    project_id: NonEmptyStr
    task_id: NonEmptyStr


class UpdateTaskArguments(StrictModel):
    project_id: NonEmptyStr
    task_id: NonEmptyStr
    title: Optional[NonEmptyStr] = None
    description: Optional[NonEmptyStr] = None
    status: Optional[TaskStatusName] = None
    completed_details: Optional[str] = None
    tool_recommendations: Optional[str] = None
    rule_recommendations: Optional[str] = None

    @model_validator(mode="after")
    def completed_details_when_done(self) -> "UpdateTaskArguments":
        require_completed_details(self.status, self.completed_details)
        return self

    def changes(self) -> Dict[str, Any]:
        """Submitted task fields, keyed by attribute name."""
        return self.model_dump(exclude_none=True, exclude={"project_id", "task_id"})


class ListTasksArguments(StrictModel):
    project_id: Optional[NonEmptyStr] = None
    state: Optional[TaskState] = None


# ----------------------------------------------------------------------
# Project actions
# ----------------------------------------------------------------------


class ListProjectsAction(StrictModel):
    action: Literal["list"]
    arguments: ListProjectsArguments = Field(default_factory=ListProjectsArguments)


class CreateProjectAction(StrictModel):
    action: Literal["create"]
    arguments: CreateProjectArguments


class DeleteProjectAction(StrictModel):
    action: Literal["delete"]
    arguments: ProjectRef


class AddTasksAction(StrictModel):
    action: Literal["add_tasks"]
    arguments: AddTasksArguments


class FinalizeProjectAction(StrictModel):
    action: Literal["finalize"]
    arguments: ProjectRef


class ReadProjectAction(StrictModel):
    action: Literal["read"]
    arguments: ProjectRef


class UpdateProjectAction(StrictModel):
    action: Literal["update"]
    arguments: UpdateProjectArguments


# ----------------------------------------------------------------------
# Task actions
# ----------------------------------------------------------------------


class ReadTaskAction(StrictModel):
    action: Literal["read"]
    arguments: TaskRef


class UpdateTaskAction(StrictModel):
    action: Literal["update"]
    arguments: UpdateTaskArguments


class DeleteTaskAction(StrictModel):
    action: Literal["delete"]
    arguments: TaskRef


class ApproveTaskAction(StrictModel):
    action: Literal["approve"]
    arguments: TaskRef


class ListTasksAction(StrictModel):
    action: Literal["list"]
    arguments: ListTasksArguments = Field(default_factory=ListTasksArguments)


class NextTaskAction(StrictModel):
    action: Literal["next"]
    arguments: ProjectRef


PROJECT_ACTIONS = (
    ListProjectsAction,
    CreateProjectAction,
    DeleteProjectAction,
    AddTasksAction,
    FinalizeProjectAction,
    ReadProjectAction,
    UpdateProjectAction,
)

TASK_ACTIONS = (
    ReadTaskAction,
    UpdateTaskAction,
    DeleteTaskAction,
    ApproveTaskAction,
    ListTasksAction,
    NextTaskAction,
)

ProjectAction = Annotated[
    Union[
        ListProjectsAction,
        CreateProjectAction,
        DeleteProjectAction,
        AddTasksAction,
        FinalizeProjectAction,
        ReadProjectAction,
        UpdateProjectAction,
    ],
    Field(discriminator="action"),
]

TaskAction = Annotated[
    Union[
        ReadTaskAction,
        UpdateTaskAction,
        DeleteTaskAction,
        ApproveTaskAction,
        ListTasksAction,
        NextTaskAction,
    ],
    Field(discriminator="action"),
]


class ProjectToolCall(StrictModel):
    tool: Literal["project"]
    params: ProjectAction


class TaskToolCall(StrictModel):
    tool: Literal["task"]
    params: TaskAction


ToolCall = Annotated[Union[ProjectToolCall, TaskToolCall], Field(discriminator="tool")]

_TOOL_CALL_ADAPTER: TypeAdapter = TypeAdapter(ToolCall)


def _field_name(loc: tuple) -> str:
    for part in reversed(loc):
        if isinstance(part, str):
            return part
    return ""


def format_errors(exc: PydanticValidationError) -> List[str]:
    """Turn pydantic errors into short, caller-facing messages."""
    issues: List[str] = []
    for error in exc.errors():
        loc = tuple(error.get("loc", ()))
        kind = error.get("type", "")
        ctx = error.get("ctx") or {}
        name = _field_name(loc)

        if kind in _REQUIRED_ERROR_TYPES:
            message = REQUIRED_MESSAGES.get(name, f"{name} is required")
        elif kind == "extra_forbidden":
            message = f"Unrecognized field '{name}'"
        elif kind == "value_error" and "error" in ctx:
            message = str(ctx["error"])
        elif kind == "union_tag_invalid":
            discriminator = str(ctx.get("discriminator", "")).strip("'")
            message = (
                f"Unknown {discriminator} '{ctx.get('tag')}'. "
                f"Expected one of: {ctx.get('expected_tags')}"
            )
        elif kind == "union_tag_not_found":
            discriminator = str(ctx.get("discriminator", "")).strip("'")
            message = f"{discriminator} is required"
        else:
            path = ".".join(str(part) for part in loc)
            message = f"{path}: {error.get('msg')}" if path else str(error.get("msg"))

        if message not in issues:
            issues.append(message)
    return issues


def validate_tool_call(payload: Any) -> Union[ProjectToolCall, TaskToolCall]:
    """Validate a raw tool call, raising ``ValidationError`` with every issue."""
    try:
        return _TOOL_CALL_ADAPTER.validate_python(payload)
    except PydanticValidationError as exc:
        raise ValidationError(format_errors(exc)) from exc


def validate_action(tool: str, action: Any, arguments: Any) -> BaseModel:
    """Validate one action of ``tool`` and return the typed action variant."""
    params: Dict[str, Any] = {"action": action}
    if arguments is not None:
        params["arguments"] = arguments
    return validate_tool_call({"tool": tool, "params": params}).params
