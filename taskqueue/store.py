"""In-memory project store.

``ProjectStore`` wraps a private deep copy of a ``TaskCollection`` so that a
workflow operation can mutate freely and hand back a new snapshot only when it
succeeds. The caller's collection is never touched.
"""

from __future__ import annotations

import copy
import re
from typing import Iterable, List, Tuple

from .errors import ProjectNotFoundError, TaskNotFoundError, TaskQueueError
from .models import Project, Task, TaskCollection


_PROJECT_ID_PATTERN = re.compile(r"^proj-(\d+)$")
_TASK_ID_PATTERN = re.compile(r"^task-(\d+)$")


def _max_suffix(identifiers: Iterable[str], pattern: re.Pattern) -> int:
    highest = 0
    for identifier in identifiers:
        match = pattern.match(identifier)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def lookup_project(collection: TaskCollection, project_id: str) -> Project:
    project = collection.find_project(project_id)
    if project is None:
        raise ProjectNotFoundError(project_id)
    return project


def lookup_task(collection: TaskCollection, project_id: str, task_id: str) -> Tuple[Project, Task]:
    project = lookup_project(collection, project_id)
    task = project.find_task(task_id)
    if task is None:
        raise TaskNotFoundError(project_id, task_id)
    return project, task


class ProjectStore:
    """Lookup, insert, update and delete over one working copy of the collection."""

    def __init__(self, collection: TaskCollection):
        self._collection = copy.deepcopy(collection)
        self._project_counter = _max_suffix(
            (project.project_id for project in self._collection.projects),
            _PROJECT_ID_PATTERN,
        )
        self._task_counter = _max_suffix(
            (task.id for project in self._collection.projects for task in project.tasks),
            _TASK_ID_PATTERN,
        )

    @property
    def projects(self) -> List[Project]:
        return self._collection.projects

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    def next_project_id(self) -> str:
        self._project_counter += 1
        return f"proj-{self._project_counter}"

    def next_task_id(self) -> str:
        # Task numbering is global, which keeps ids unique inside every project.
        self._task_counter += 1
        return f"task-{self._task_counter}"

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_project(self, project_id: str) -> Project:
        return lookup_project(self._collection, project_id)

    def get_task(self, project_id: str, task_id: str) -> Tuple[Project, Task]:
        return lookup_task(self._collection, project_id, task_id)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_project(self, project: Project) -> Project:
        if self._collection.find_project(project.project_id) is not None:
            raise TaskQueueError(f"Project ID {project.project_id} already exists")
        self._collection.projects.append(project)
        return project

    def remove_project(self, project_id: str) -> Project:
        project = self.get_project(project_id)
        self._collection.projects.remove(project)
        return project

    def append_tasks(self, project: Project, tasks: Iterable[Task]) -> List[Task]:
        added = []
        for task in tasks:
            if project.find_task(task.id) is not None:
                raise TaskQueueError(
                    f"Task ID {task.id} already exists in project {project.project_id}"
                )
            project.tasks.append(task)
            added.append(task)
        return added

    def remove_task(self, project_id: str, task_id: str) -> Task:
        project, task = self.get_task(project_id, task_id)
        project.tasks.remove(task)
        return task

    def snapshot(self) -> TaskCollection:
        """Return the working collection after re-checking every invariant."""
        issues = self._collection.validate()
        if issues:
            raise TaskQueueError(
                "Operation would violate collection invariants: " + "; ".join(issues),
                details={"issues": issues},
            )
        return self._collection
