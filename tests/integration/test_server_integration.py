"""
Integration tests for the MCP server tools.

These drive the ``project`` and ``task`` tool functions end to end against a
real tasks file, the way an agent would over the stdio transport.
"""

import json
from importlib.metadata import version

import pytest

import main


@pytest.fixture
def tasks_file(tmp_path, monkeypatch):
    path = tmp_path / "store" / "tasks.json"
    monkeypatch.setenv("TASK_MANAGER_FILE_PATH", str(path))
    main._SERVICES.clear()
    yield path
    main._SERVICES.clear()


class TestServerWorkflow:
    """Complete project lifecycle through the tool functions."""

    def test_full_lifecycle(self, tasks_file):
        created = main.project("create", {
            "initialPrompt": "Build a todo app",
            "projectPlan": "Model, API, UI",
            "tasks": [
                {"title": "Model", "description": "Define the model"},
                {"title": "API", "description": "Expose endpoints", "ruleRecommendations": "REST"},
            ],
        })
        assert created["success"] is True
        assert tasks_file.exists()

        for task_id in ("task-1", "task-2"):
            assert main.task("update", {"projectId": "proj-1", "taskId": task_id, "status": "in progress"})["success"]
            done = main.task("update", {"projectId": "proj-1", "taskId": task_id, "status": "done",
                                        "completedDetails": f"{task_id} finished"})
            assert done["success"] is True

        blocked = main.project("finalize", {"projectId": "proj-1"})
        assert blocked["success"] is False
        assert [t["id"] for t in blocked["details"]["blockingTasks"]] == ["task-1", "task-2"]

        for task_id in ("task-1", "task-2"):
            assert main.task("approve", {"projectId": "proj-1", "taskId": task_id})["success"]

        finalized = main.project("finalize", {"projectId": "proj-1"})
        assert finalized["success"] is True

        stored = json.loads(tasks_file.read_text(encoding="utf-8"))
        project = stored["projects"][0]
        assert project["completed"] is True
        assert project["tasks"][1]["ruleRecommendations"] == "REST"
        assert all(t["status"] == "done" and t["approved"] for t in project["tasks"])

    def test_state_survives_a_new_service(self, tasks_file):
        main.project("create", {"initialPrompt": "P", "tasks": [{"title": "A", "description": "a"}]})
        main._SERVICES.clear()

        listed = main.project("list")

        assert [p["projectId"] for p in listed["data"]["projects"]] == ["proj-1"]

    def test_invalid_action_is_reported(self, tasks_file):
        response = main.task("archive", {"projectId": "proj-1", "taskId": "task-1"})

        assert response["success"] is False
        assert response["code"] == "ERR_1002"
        assert not tasks_file.exists()

    def test_next_task_follows_progress(self, tasks_file):
        main.project("create", {"initialPrompt": "P", "tasks": [
            {"title": "A", "description": "a"},
            {"title": "B", "description": "b"},
        ]})

        first = main.task("next", {"projectId": "proj-1"})
        assert first["data"]["task"]["id"] == "task-1"

        main.task("delete", {"projectId": "proj-1", "taskId": "task-1"})
        second = main.task("next", {"projectId": "proj-1"})
        assert second["data"]["task"]["id"] == "task-2"


class TestProjectsResource:
    """Test cases for the projects resource."""

    def test_empty(self, tasks_file):
        assert main.resource_projects() == "No projects have been created yet."

    def test_lists_progress(self, tasks_file):
        main.project("create", {"initialPrompt": "Build a todo app", "tasks": [{"title": "A", "description": "a"}]})

        text = main.resource_projects()

        assert "- proj-1: Build a todo app" in text
        assert "Tasks: 1 total, 0 done, 0 approved" in text

    def test_unreadable_store(self, tasks_file):
        tasks_file.parent.mkdir(parents=True)
        tasks_file.write_text("{broken", encoding="utf-8")

        assert main.resource_projects().startswith("Unable to read projects:")


def test_installed_mcp_provides_fastmcp():
    assert int(version("mcp").split(".")[0]) == 1
    assert main.mcp.name == "taskqueue"
