"""MCP server exposing TaskQueue project and task tools."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from taskqueue.config import load_settings
from taskqueue.service import TaskQueueService
from taskqueue.storage import JsonFileStorage
from taskqueue.taskqueue_logging import setup_logging

mcp = FastMCP("taskqueue")


# One service per tasks file so calls against the same file share a lock.
_SERVICES: Dict[Path, TaskQueueService] = {}


def _service() -> TaskQueueService:
    tasks_file = load_settings().tasks_file.resolve()
    service = _SERVICES.get(tasks_file)
    if service is None:
        service = TaskQueueService(JsonFileStorage(tasks_file))
        _SERVICES[tasks_file] = service
    return service


@mcp.tool()
def project(action: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Manage projects. Actions:
    - list: List projects with task counts. arguments: {state?: open|pending_approval|completed|all}
    - create: Create a project with at least one task.
      arguments: {initialPrompt, projectPlan?, tasks: [{title, description, toolRecommendations?, ruleRecommendations?}]}
    - read: Show a project and all its tasks. arguments: {projectId}
    - update: Replace the project plan. arguments: {projectId, projectPlan}
    - add_tasks: Append tasks to a project. arguments: {projectId, tasks: [...]}
    - finalize: Complete a project once every task is done and approved. arguments: {projectId}
    - delete: Remove a project and all its tasks. arguments: {projectId}"""

    return _service().project(action, arguments)


@mcp.tool()
def task(action: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Manage tasks within projects. Actions:
    - read: Get a task. arguments: {projectId, taskId}
    - update: Change title, description, status or completedDetails.
      arguments: {projectId, taskId, title?, description?, status?, completedDetails?}
      Status moves: not started -> in progress -> done; done -> in progress; in progress -> not started.
      completedDetails is required when status is 'done'.
      An approved task must be moved back to 'in progress' before anything else changes.
    - delete: Remove a task that is not approved. arguments: {projectId, taskId}
    - approve: Approve a done task. arguments: {projectId, taskId}
    - list: List tasks. arguments: {projectId?, state?: open|pending_approval|completed|all}
    - next: Get the next task that is not yet done and approved. arguments: {projectId}"""

    return _service().task(action, arguments)


@mcp.resource("taskqueue://projects")
def resource_projects() -> str:
    """Resource view listing every project with its progress."""

    response = _service().project("list", {})
    if not response["success"]:
        return f"Unable to read projects: {response['error']}"

    projects = response["data"]["projects"]
    if not projects:
        return "No projects have been created yet."

    lines = ["TaskQueue Projects"]
    for item in projects:
        lines.append("")
        lines.append(f"- {item['projectId']}: {item['initialPrompt']}")
        lines.append(
            f"  Tasks: {item['totalTasks']} total, {item['completedTasks']} done, "
            f"{item['approvedTasks']} approved"
        )
        if item["completed"]:
            lines.append("  Completed")
    return "\n".join(lines)


def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_file)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
