"""Persistence of the project collection.

The core only sees the ``load``/``save`` pair. ``JsonFileStorage`` keeps the
collection in one JSON document; ``MemoryStorage`` keeps it in process.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Optional, Protocol

from .errors import ErrorCode, StorageError
from .models import TaskCollection
from .taskqueue_logging import log_operation


logger = logging.getLogger("taskqueue.storage")


class CollectionStorage(Protocol):
    def load(self) -> TaskCollection:
        ...

    def save(self, collection: TaskCollection) -> None:
        ...


def collection_from_json(raw: str, source: str = "<memory>") -> TaskCollection:
    """Parse and shape-check a serialized collection."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StorageError(
            f"Failed to parse tasks file {source}: {exc}",
            code=ErrorCode.FILE_PARSE_ERROR,
        ) from exc

    try:
        collection = TaskCollection.from_dict(data)
    except ValueError as exc:
        raise StorageError(
            f"Tasks file {source} is malformed: {exc}",
            code=ErrorCode.FILE_PARSE_ERROR,
        ) from exc

    issues = collection.validate()
    if issues:
        raise StorageError(
            f"Tasks file {source} violates collection invariants",
            code=ErrorCode.FILE_PARSE_ERROR,
            details={"issues": issues},
        )
    return collection


def collection_to_json(collection: TaskCollection) -> str:
    return json.dumps(collection.to_dict(), indent=2, ensure_ascii=False) + "\n"


class JsonFileStorage:
    """Store the collection as a JSON file, replaced atomically on save.

    Loading normalizes a hand-written file: a missing ``projectPlan`` or
    ``completedDetails`` becomes ``""`` and a ``null`` recommendation is dropped.
    ``save(load())`` is byte-identical for any file this class has written.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> TaskCollection:
        if not self.path.exists():
            logger.debug(f"No tasks file at {self.path}; starting with an empty collection")
            return TaskCollection()

        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(
                f"Failed to read tasks file {self.path}: {exc}",
                code=ErrorCode.FILE_READ_ERROR,
            ) from exc

        return collection_from_json(raw, str(self.path))

    def save(self, collection: TaskCollection) -> None:
        payload = collection_to_json(collection)
        tmp_file = self.path.with_name(f"{self.path.name}.tmp")

        with log_operation("save_collection", path=str(self.path), projects=len(collection.projects)):
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp_file.write_text(payload, encoding="utf-8")
                tmp_file.replace(self.path)
            except OSError as exc:
                raise StorageError(
                    f"Failed to save tasks file {self.path}: {exc}",
                    code=ErrorCode.FILE_WRITE_ERROR,
                ) from exc


class MemoryStorage:
    """Keep the collection in process; load and save hand out copies."""

    def __init__(self, collection: Optional[TaskCollection] = None):
        self._collection = copy.deepcopy(collection) if collection else TaskCollection()
        self.save_count = 0

    def load(self) -> TaskCollection:
        return copy.deepcopy(self._collection)

    def save(self, collection: TaskCollection) -> None:
        self._collection = copy.deepcopy(collection)
        self.save_count += 1
