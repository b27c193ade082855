"""Unit tests for the action schemas.

These cover variant selection, strict argument shapes, and the
completedDetails refinement on task updates.
"""

import pytest

from taskqueue.errors import ValidationError
from taskqueue.schemas import (
    COMPLETED_DETAILS_REQUIRED,
    PROJECT_ACTIONS,
    TASK_ACTIONS,
    AddTasksAction,
    ApproveTaskAction,
    CreateProjectAction,
    ListProjectsAction,
    ProjectToolCall,
    TaskToolCall,
    UpdateTaskAction,
    require_completed_details,
    validate_action,
    validate_tool_call,
)


def _create_arguments(**overrides):
    arguments = {
        "initialPrompt": "Build a todo app",
        "tasks": [{"title": "Model", "description": "Define the data model"}],
    }
    arguments.update(overrides)
    return arguments


class TestVariantSelection:
    """Test cases for discriminating tool calls and actions."""

    def test_project_create_variant(self):
        action = validate_action("project", "create", _create_arguments(projectPlan="Plan"))

        assert isinstance(action, CreateProjectAction)
        assert action.arguments.initial_prompt == "Build a todo app"
        assert action.arguments.project_plan == "Plan"
        assert action.arguments.tasks[0].title == "Model"

    def test_same_action_name_resolves_per_tool(self):
        project_update = validate_action("project", "update", {"projectId": "proj-1", "projectPlan": "p"})
        task_update = validate_action("task", "update", {"projectId": "proj-1", "taskId": "task-1"})

        assert type(project_update).__name__ == "UpdateProjectAction"
        assert isinstance(task_update, UpdateTaskAction)

    def test_list_projects_accepts_missing_arguments(self):
        action = validate_action("project", "list", None)

        assert isinstance(action, ListProjectsAction)
        assert action.arguments.state is None

    def test_validate_tool_call_returns_typed_call(self):
        call = validate_tool_call(
            {"tool": "task", "params": {"action": "approve", "arguments": {"projectId": "p", "taskId": "t"}}}
        )

        assert isinstance(call, TaskToolCall)
        assert isinstance(call.params, ApproveTaskAction)

    def test_project_tool_call(self):
        call = validate_tool_call(
            {"tool": "project", "params": {"action": "add_tasks", "arguments": {
                "projectId": "proj-1",
                "tasks": [{"title": "A", "description": "a", "toolRecommendations": "pytest"}],
            }}}
        )

        assert isinstance(call, ProjectToolCall)
        assert isinstance(call.params, AddTasksAction)
        assert call.params.arguments.tasks[0].tool_recommendations == "pytest"

    def test_unknown_action_is_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_action("project", "archive", {"projectId": "proj-1"})

        assert "archive" in excinfo.value.issues[0]

    def test_unknown_tool_is_rejected(self):
        with pytest.raises(ValidationError):
            validate_tool_call({"tool": "board", "params": {"action": "list", "arguments": {}}})

    def test_task_tool_does_not_accept_project_actions(self):
        with pytest.raises(ValidationError):
            validate_action("task", "finalize", {"projectId": "proj-1"})

    def test_action_registries_are_disjoint_per_tool(self):
        project_names = [cls.model_fields["action"].annotation.__args__[0] for cls in PROJECT_ACTIONS]
        task_names = [cls.model_fields["action"].annotation.__args__[0] for cls in TASK_ACTIONS]

        assert len(project_names) == len(set(project_names))
        assert len(task_names) == len(set(task_names))
        assert {"list", "create", "delete", "add_tasks", "finalize"} <= set(project_names)
        assert {"read", "update", "delete"} <= set(task_names)


class TestFieldRules:
    """Test cases for field-level constraints."""

    def test_initial_prompt_required(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_action("project", "create", _create_arguments(initialPrompt=""))

        assert "Initial prompt is required" in excinfo.value.issues

    def test_empty_task_list_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_action("project", "create", _create_arguments(tasks=[]))

        assert "At least one task is required" in excinfo.value.issues

    def test_task_title_and_description_required(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_action("project", "add_tasks", {"projectId": "proj-1", "tasks": [{"title": ""}]})

        assert "Task title is required" in excinfo.value.issues
        assert "Task description is required" in excinfo.value.issues

    def test_missing_project_id(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_action("project", "finalize", {})

        assert excinfo.value.issues == ["Project ID is required"]

    def test_read_task_requires_both_ids(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_action("task", "read", {"taskId": "task-1"})

        assert "Project ID is required" in excinfo.value.issues

    def test_extra_fields_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_action("project", "delete", {"projectId": "proj-1", "force": True})

        assert "Unrecognized field 'force'" in excinfo.value.issues

    def test_extra_fields_on_nested_task_rejected(self):
        arguments = _create_arguments(tasks=[{"title": "A", "description": "a", "priority": 1}])

        with pytest.raises(ValidationError) as excinfo:
            validate_action("project", "create", arguments)

        assert "Unrecognized field 'priority'" in excinfo.value.issues

    def test_snake_case_field_names_rejected(self):
        with pytest.raises(ValidationError):
            validate_action("project", "delete", {"project_id": "proj-1"})

    def test_invalid_status_value(self):
        with pytest.raises(ValidationError):
            validate_action("task", "update", {"projectId": "p", "taskId": "t", "status": "blocked"})

    def test_invalid_state_filter(self):
        with pytest.raises(ValidationError):
            validate_action("project", "list", {"state": "archived"})

    def test_validation_error_carries_code_and_issues(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_action("project", "create", {})

        payload = excinfo.value.to_dict()
        assert payload["success"] is False
        assert payload["code"] == "ERR_1002"
        assert "Initial prompt is required" in payload["details"]["issues"]
        assert "At least one task is required" in payload["details"]["issues"]


class TestCompletedDetailsRefinement:
    """Test cases for the done-requires-completedDetails rule."""

    def test_done_without_details_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_action("task", "update", {"projectId": "p", "taskId": "t", "status": "done"})

        assert excinfo.value.issues == [COMPLETED_DETAILS_REQUIRED]

    def test_done_with_blank_details_rejected(self):
        with pytest.raises(ValidationError):
            validate_action(
                "task", "update",
                {"projectId": "p", "taskId": "t", "status": "done", "completedDetails": "   "},
            )

    def test_done_with_details_accepted(self):
        action = validate_action(
            "task", "update",
            {"projectId": "p", "taskId": "t", "status": "done", "completedDetails": "Shipped"},
        )

        assert action.arguments.changes() == {"status": "done", "completed_details": "Shipped"}

    def test_other_statuses_do_not_need_details(self):
        action = validate_action("task", "update", {"projectId": "p", "taskId": "t", "status": "in progress"})

        assert action.arguments.changes() == {"status": "in progress"}

    def test_refinement_in_isolation(self):
        require_completed_details("in progress", None)
        require_completed_details("done", "Wrote the tests")
        require_completed_details(None, None)

        with pytest.raises(ValueError, match="completedDetails is required"):
            require_completed_details("done", "")
