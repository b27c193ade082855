"""Unit tests for collection persistence."""

import json

import pytest

from taskqueue.errors import ErrorCode, StorageError
from taskqueue.models import Project, Task, TaskCollection
from taskqueue.storage import (
    JsonFileStorage,
    MemoryStorage,
    collection_from_json,
    collection_to_json,
)


def _collection():
    return TaskCollection(
        projects=[
            Project(
                project_id="proj-2",
                initial_prompt="Café menu",
                project_plan="Plan",
                tasks=[
                    Task(id="task-5", title="Menu", description="Write it"),
                    Task(id="task-1", title="Prices", description="Set them", status="done",
                         approved=True, completed_details="Set", tool_recommendations="calc"),
                ],
            ),
            Project(project_id="proj-1", initial_prompt="Other", project_plan="Other"),
        ]
    )


class TestJsonFileStorage:
    """Test cases for the JSON file backend."""

    def test_missing_file_loads_empty_collection(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "missing" / "tasks.json")

        assert storage.load() == TaskCollection()

    def test_save_then_load_preserves_order(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "data" / "tasks.json")

        storage.save(_collection())
        loaded = storage.load()

        assert loaded == _collection()
        assert [p.project_id for p in loaded.projects] == ["proj-2", "proj-1"]
        assert [t.id for t in loaded.projects[0].tasks] == ["task-5", "task-1"]

    def test_save_of_load_is_byte_identical(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(collection_to_json(_collection()), encoding="utf-8")
        before = path.read_bytes()

        storage = JsonFileStorage(path)
        storage.save(storage.load())

        assert path.read_bytes() == before

    def test_hand_written_file_is_normalized_once(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"projects": [{
            "projectId": "proj-1",
            "initialPrompt": "Imported",
            "tasks": [{"id": "task-1", "title": "A", "description": "a", "status": "not started",
                       "approved": False, "toolRecommendations": None}],
            "completed": False,
        }]}), encoding="utf-8")
        storage = JsonFileStorage(path)

        storage.save(storage.load())
        first = path.read_bytes()
        storage.save(storage.load())

        project = json.loads(first)["projects"][0]
        assert project["projectPlan"] == ""
        assert project["tasks"][0]["completedDetails"] == ""
        assert "toolRecommendations" not in project["tasks"][0]
        assert path.read_bytes() == first

    def test_save_leaves_no_temporary_file(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "tasks.json")

        storage.save(_collection())

        assert [p.name for p in tmp_path.iterdir()] == ["tasks.json"]

    def test_saved_file_uses_wire_keys(self, tmp_path):
        path = tmp_path / "tasks.json"
        JsonFileStorage(path).save(_collection())

        data = json.loads(path.read_text(encoding="utf-8"))

        assert data["projects"][0]["projectId"] == "proj-2"
        assert data["projects"][0]["tasks"][1]["completedDetails"] == "Set"
        assert data["projects"][0]["initialPrompt"] == "Café menu"

    def test_malformed_json_is_a_parse_error(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageError) as excinfo:
            JsonFileStorage(path).load()

        assert excinfo.value.code == ErrorCode.FILE_PARSE_ERROR

    def test_wrong_shape_is_a_parse_error(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"projects": [{"projectId": "proj-1"}]}), encoding="utf-8")

        with pytest.raises(StorageError) as excinfo:
            JsonFileStorage(path).load()

        assert excinfo.value.code == ErrorCode.FILE_PARSE_ERROR

    def test_unreadable_path_is_a_read_error(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.mkdir()

        with pytest.raises(StorageError) as excinfo:
            JsonFileStorage(path).load()

        assert excinfo.value.code == ErrorCode.FILE_READ_ERROR

    def test_unwritable_path_is_a_write_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")

        with pytest.raises(StorageError) as excinfo:
            JsonFileStorage(blocker / "tasks.json").save(_collection())

        assert excinfo.value.code == ErrorCode.FILE_WRITE_ERROR


class TestCollectionFromJson:
    """Test cases for parsing a serialized collection."""

    def test_invariant_violations_are_reported(self):
        data = _collection().to_dict()
        data["projects"][1]["projectId"] = "proj-2"

        with pytest.raises(StorageError) as excinfo:
            collection_from_json(json.dumps(data))

        assert "Duplicate project ID proj-2" in excinfo.value.details["issues"]

    def test_approved_task_that_is_not_done_is_rejected(self):
        data = _collection().to_dict()
        data["projects"][0]["tasks"][0]["approved"] = True

        with pytest.raises(StorageError):
            collection_from_json(json.dumps(data))


class TestMemoryStorage:
    """Test cases for the in-process backend."""

    def test_load_returns_copies(self):
        storage = MemoryStorage(_collection())

        loaded = storage.load()
        loaded.projects.clear()

        assert len(storage.load().projects) == 2

    def test_save_counts_and_stores(self):
        storage = MemoryStorage()

        storage.save(_collection())

        assert storage.save_count == 1
        assert storage.load() == _collection()
