"""Command-line review tool for TaskQueue.

Approval is a human step: an agent marks tasks done through the MCP server,
and a person reviews and approves them here before the project is finalized.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from .config import load_settings
from .service import TaskQueueService
from .storage import JsonFileStorage
from .taskqueue_logging import setup_logging


STATES = ("open", "pending_approval", "completed", "all")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskqueue",
        description="Review, approve and finalize TaskQueue projects.",
    )
    parser.add_argument("--file", help="Path to the tasks file (defaults to TASK_MANAGER_FILE_PATH)")
    parser.add_argument("--json", action="store_true", help="Print raw JSON responses")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List projects, or the tasks of one project")
    list_parser.add_argument("-p", "--project", help="Project ID whose tasks to list")
    list_parser.add_argument("-s", "--state", choices=STATES, help="Filter by state")

    approve_parser = subparsers.add_parser("approve", help="Approve a completed task")
    approve_parser.add_argument("project_id")
    approve_parser.add_argument("task_id")

    finalize_parser = subparsers.add_parser("finalize", help="Finalize a project")
    finalize_parser.add_argument("project_id")

    return parser


def _format_projects(data: Dict[str, Any]) -> List[str]:
    projects = data["projects"]
    if not projects:
        return ["No projects found."]
    lines = []
    for project in projects:
        marker = "completed" if project["completed"] else "open"
        lines.append(
            f"{project['projectId']} [{marker}] {project['initialPrompt']} "
            f"(done {project['completedTasks']}/{project['totalTasks']}, "
            f"approved {project['approvedTasks']}/{project['totalTasks']})"
        )
    return lines


def _format_tasks(data: Dict[str, Any]) -> List[str]:
    tasks = data["tasks"]
    if not tasks:
        return ["No tasks found."]
    lines = []
    for task in tasks:
        approval = "approved" if task["approved"] else "not approved"
        lines.append(f"{task['id']} [{task['status']}, {approval}] {task['title']}")
        if task.get("completedDetails"):
            lines.append(f"    {task['completedDetails']}")
    return lines


def _format_failure(response: Dict[str, Any]) -> List[str]:
    lines = [f"Error: {response['error']}"]
    for blocker in response.get("details", {}).get("blockingTasks", []):
        approval = "approved" if blocker["approved"] else "not approved"
        lines.append(f"  - {blocker['id']} [{blocker['status']}, {approval}] {blocker['title']}")
    return lines


def run(args: argparse.Namespace, service: TaskQueueService) -> Dict[str, Any]:
    if args.command == "list":
        arguments: Dict[str, Any] = {"state": args.state} if args.state else {}
        if args.project:
            arguments["projectId"] = args.project
            return service.task("list", arguments)
        return service.project("list", arguments)
    if args.command == "approve":
        return service.task("approve", {"projectId": args.project_id, "taskId": args.task_id})
    return service.project("finalize", {"projectId": args.project_id})


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings()
    setup_logging("WARNING", settings.log_file)
    service = TaskQueueService(JsonFileStorage(args.file or settings.tasks_file))

    response = run(args, service)

    if args.json:
        print(json.dumps(response, indent=2))
    elif not response["success"]:
        print("\n".join(_format_failure(response)))
    elif args.command == "list":
        data = response["data"]
        print("\n".join(_format_tasks(data) if args.project else _format_projects(data)))
    else:
        print(response["data"]["message"])

    return 0 if response["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
