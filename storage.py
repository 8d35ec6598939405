# storage.py
import contextlib
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

import pydantic
from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, TypeAdapter

from rwlock import RWLock

logger = logging.getLogger(__name__)

TASKS_FILENAME = "tasks.json"


# --- Errors ---

class TaskStoreError(Exception):
    """Base class for everything the task store raises."""


class ValidationError(TaskStoreError):
    """The caller supplied input the store refuses (e.g. an empty title)."""


class NotFoundError(TaskStoreError):
    def __init__(self, task_id: int):
        super().__init__(f"task {task_id} not found")
        self.task_id = task_id


class PersistenceError(TaskStoreError):
    """The data directory or data file could not be read or written."""


# --- Data Model ---

class Task(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    title: str
    done: bool = False
    created_at: AwareDatetime = Field(alias="createdAt")


_task_list = TypeAdapter(List[Task])


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Store ---

class TaskStore:
    """
    In-memory, ordered collection of tasks mirrored to ``<data_dir>/tasks.json``.

    Reads take the shared side of a reader/writer lock, mutations take the
    exclusive side for their whole duration, file save included. Mutations are
    staged: the new task list is written to disk first and only then becomes
    the in-memory state, so a failed save changes nothing.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)
        self._lock = RWLock()
        self._tasks: List[Task] = []
        self._next_id = 1
        self._load()

    @property
    def data_path(self) -> Path:
        return self.data_dir / TASKS_FILENAME

    @property
    def next_id(self) -> int:
        with self._lock.read_locked():
            return self._next_id

    # --- Reads ---

    def list(self) -> List[Task]:
        with self._lock.read_locked():
            return list(self._tasks)

    def get(self, task_id: int) -> Task:
        with self._lock.read_locked():
            index = self._index_of(task_id)
            if index is None:
                raise NotFoundError(task_id)
            return self._tasks[index]

    # --- Mutations ---

    def create(self, title: str) -> Task:
        title = title.strip()
        if not title:
            raise ValidationError("title is required")

        with self._lock.write_locked():
            task = Task(id=self._next_id, title=title, done=False, created_at=utcnow())
            self._commit(self._tasks + [task])
            self._next_id += 1

        logger.debug("Created task %d", task.id)
        return task

    def toggle(self, task_id: int) -> Task:
        with self._lock.write_locked():
            index = self._index_of(task_id)
            if index is None:
                raise NotFoundError(task_id)

            current = self._tasks[index]
            updated = current.model_copy(update={"done": not current.done})
            staged = list(self._tasks)
            staged[index] = updated
            self._commit(staged)

        logger.debug("Toggled task %d (done=%s)", task_id, updated.done)
        return updated

    def delete(self, task_id: int) -> None:
        with self._lock.write_locked():
            index = self._index_of(task_id)
            if index is None:
                raise NotFoundError(task_id)
            self._commit(self._tasks[:index] + self._tasks[index + 1:])

        logger.debug("Deleted task %d", task_id)

    # --- Internals (callers hold the lock) ---

    def _index_of(self, task_id: int) -> Optional[int]:
        return next((i for i, t in enumerate(self._tasks) if t.id == task_id), None)

    def _commit(self, staged: List[Task]):
        self._save(staged)
        self._tasks = staged

    def _load(self):
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"create data dir {self.data_dir}: {e}") from e

        try:
            raw = self.data_path.read_bytes()
        except FileNotFoundError:
            logger.info("No task file at %s, starting empty", self.data_path)
            return
        except OSError as e:
            raise PersistenceError(f"open tasks file {self.data_path}: {e}") from e

        try:
            loaded = _task_list.validate_json(raw)
        except pydantic.ValidationError as e:
            raise PersistenceError(f"decode tasks file {self.data_path}: {e}") from e

        seen = set()
        for task in loaded:
            if task.id in seen:
                raise PersistenceError(f"decode tasks file {self.data_path}: duplicate task id {task.id}")
            seen.add(task.id)

        self._tasks = loaded
        self._next_id = max(max(seen, default=0) + 1, 1)
        logger.info("Loaded %d tasks from %s (next id %d)", len(loaded), self.data_path, self._next_id)

    def _save(self, tasks: List[Task]):
        tmp_path = None
        try:
            payload = _task_list.dump_json(tasks, by_alias=True, indent=2)
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=".tasks-", suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.write(b"\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.data_path)
        except (OSError, ValueError) as e:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    os.remove(tmp_path)
            raise PersistenceError(f"save tasks to {self.data_path}: {e}") from e
