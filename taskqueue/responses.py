"""Response shaping for tool results."""

from __future__ import annotations

from typing import Any, Dict

from .errors import TaskQueueError
from .models import Project, Task
from .transitions import allowed_transitions


def success(data: Any) -> Dict[str, Any]:
    return {"success": True, "data": data}


def failure(error: TaskQueueError) -> Dict[str, Any]:
    return error.to_dict()


def task_view(task: Task) -> Dict[str, Any]:
    """Full task snapshot plus the statuses it may move to next."""
    view = task.to_dict()
    view["allowedTransitions"] = allowed_transitions(task.status)
    return view


def project_summary(project: Project) -> Dict[str, Any]:
    return {
        "projectId": project.project_id,
        "initialPrompt": project.initial_prompt,
        "completed": project.completed,
        **project.counts(),
    }


def project_view(project: Project) -> Dict[str, Any]:
    view = project.to_dict()
    view.update(project.counts())
    return view
