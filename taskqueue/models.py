"""Data models for TaskQueue project management.

This module contains the core data structures: tasks, the projects that own
them, and the persisted collection of projects. The wire representation uses
camelCase keys; ``to_dict``/``from_dict`` convert between the two.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


STATUS_NOT_STARTED = "not started"
STATUS_IN_PROGRESS = "in progress"
STATUS_DONE = "done"

TASK_STATUSES = (STATUS_NOT_STARTED, STATUS_IN_PROGRESS, STATUS_DONE)

# Advisory fields carried by a task but not governed by any invariant.
RECOMMENDATION_FIELDS = (
    ("tool_recommendations", "toolRecommendations"),
    ("rule_recommendations", "ruleRecommendations"),
)


def _require(data: Dict[str, Any], key: str, kind: type, owner: str) -> Any:
    if key not in data:
        raise ValueError(f"{owner} is missing required field '{key}'")
    value = data[key]
    if not isinstance(value, kind):
        raise ValueError(f"{owner} field '{key}' must be of type {kind.__name__}")
    return value


@dataclass(slots=True)
class Task:
    """A single unit of work inside a project."""

    id: str
    title: str
    description: str
    status: str = STATUS_NOT_STARTED
    approved: bool = False
    completed_details: str = ""
    tool_recommendations: Optional[str] = None
    rule_recommendations: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "approved": self.approved,
            "completedDetails": self.completed_details,
        }
        for attr, key in RECOMMENDATION_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Create from dictionary representation."""
        if not isinstance(data, dict):
            raise ValueError("Task entry must be an object")
        owner = f"Task {data.get('id', '?')}"
        status = _require(data, "status", str, owner)
        if status not in TASK_STATUSES:
            raise ValueError(f"{owner} has invalid status '{status}'")
        task = cls(
            id=_require(data, "id", str, owner),
            title=_require(data, "title", str, owner),
            description=_require(data, "description", str, owner),
            status=status,
            approved=_require(data, "approved", bool, owner),
            completed_details=data.get("completedDetails", ""),
        )
        if not isinstance(task.completed_details, str):
            raise ValueError(f"{owner} field 'completedDetails' must be of type str")
        for attr, key in RECOMMENDATION_FIELDS:
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"{owner} field '{key}' must be of type str")
            setattr(task, attr, value)
        return task

    def is_done(self) -> bool:
        return self.status == STATUS_DONE

    def is_finished(self) -> bool:
        """Done and approved: the only state a finalized project accepts."""
        return self.status == STATUS_DONE and self.approved

    def summary(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "description": self.description}

    def validate(self) -> List[str]:
        """Validate task data and return any issues."""
        issues = []

        if not self.id:
            issues.append("Task ID is required")
        if not self.title:
            issues.append(f"Task {self.id} title is required")
        if not self.description:
            issues.append(f"Task {self.id} description is required")
        if self.status not in TASK_STATUSES:
            issues.append(f"Task {self.id} has invalid status: {self.status}")
        if self.approved and self.status != STATUS_DONE:
            issues.append(f"Task {self.id} is approved but its status is '{self.status}'")
        if self.status == STATUS_DONE and not self.completed_details:
            issues.append(f"Task {self.id} is done without completedDetails")

        return issues


@dataclass(slots=True)
class Project:
    """An ordered list of tasks created from one initiating prompt."""

    project_id: str
    initial_prompt: str
    project_plan: str = ""
    tasks: List[Task] = field(default_factory=list)
    completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "projectId": self.project_id,
            "initialPrompt": self.initial_prompt,
            "projectPlan": self.project_plan,
            "tasks": [task.to_dict() for task in self.tasks],
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        """Create from dictionary representation."""
        if not isinstance(data, dict):
            raise ValueError("Project entry must be an object")
        owner = f"Project {data.get('projectId', '?')}"
        project_plan = data.get("projectPlan", "")
        if not isinstance(project_plan, str):
            raise ValueError(f"{owner} field 'projectPlan' must be of type str")
        return cls(
            project_id=_require(data, "projectId", str, owner),
            initial_prompt=_require(data, "initialPrompt", str, owner),
            project_plan=project_plan,
            tasks=[Task.from_dict(item) for item in _require(data, "tasks", list, owner)],
            completed=_require(data, "completed", bool, owner),
        )

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def blocking_tasks(self) -> List[Dict[str, Any]]:
        """Tasks that keep the project from being finalized."""
        return [
            {"id": task.id, "title": task.title, "status": task.status, "approved": task.approved}
            for task in self.tasks
            if not task.is_finished()
        ]

    def counts(self) -> Dict[str, int]:
        return {
            "totalTasks": len(self.tasks),
            "completedTasks": sum(1 for task in self.tasks if task.is_done()),
            "approvedTasks": sum(1 for task in self.tasks if task.approved),
        }

    def validate(self) -> List[str]:
        """Validate the project and its tasks and return any issues."""
        issues = []

        if not self.project_id:
            issues.append("Project ID is required")
        if not self.initial_prompt:
            issues.append(f"Project {self.project_id} initial prompt is required")

        seen: set[str] = set()
        for task in self.tasks:
            if task.id in seen:
                issues.append(f"Project {self.project_id} has duplicate task ID {task.id}")
            seen.add(task.id)
            issues.extend(task.validate())

        if self.completed and not all(task.is_finished() for task in self.tasks):
            issues.append(f"Project {self.project_id} is completed but has unfinished tasks")

        return issues


@dataclass(slots=True)
class TaskCollection:
    """The persisted root: every project, in insertion order."""

    projects: List[Project] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {"projects": [project.to_dict() for project in self.projects]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskCollection":
        """Create from dictionary representation."""
        if not isinstance(data, dict):
            raise ValueError("Collection must be an object")
        projects = _require(data, "projects", list, "Collection")
        return cls(projects=[Project.from_dict(item) for item in projects])

    def find_project(self, project_id: str) -> Optional[Project]:
        for project in self.projects:
            if project.project_id == project_id:
                return project
        return None

    def validate(self) -> List[str]:
        """Validate every invariant of the collection and return any issues."""
        issues = []

        seen: set[str] = set()
        for project in self.projects:
            if project.project_id in seen:
                issues.append(f"Duplicate project ID {project.project_id}")
            seen.add(project.project_id)
            issues.extend(project.validate())

        return issues
