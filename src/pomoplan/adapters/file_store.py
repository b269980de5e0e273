"""File-based task storage adapter."""

import json
import logging
import uuid
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from pomoplan.core.tasks import Task
from pomoplan.ports.task_repo import StoreError

logger = logging.getLogger(__name__)


def matches_filters(
    task: Task,
    status: str | None = None,
    due_before: datetime | None = None,
    course: str | None = None,
) -> bool:
    """Check a task against the store's list filters."""
    if status and task.status.value != status:
        return False
    if due_before and task.due_at > due_before:
        return False
    if course and task.course != course:
        return False
    return True


class JsonTaskStore:
    """
    JSON file task storage.

    Implements TaskRepository protocol. All tasks live in one document,
    rewritten on every change.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _load(self) -> dict[str, Task]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text() or "{}")
            records = data.get("tasks", [])
            tasks = {}
            for record in records:
                task = Task.from_dict(record)
                tasks[task.id] = task
        except (KeyError, AttributeError, TypeError, ValueError) as e:
            raise StoreError(f"Corrupt task store {self.path}: {e}") from e
        return tasks

    def _save(self, tasks: dict[str, Task]) -> None:
        payload = {"tasks": [t.to_dict() for t in tasks.values()]}
        self.path.write_text(json.dumps(payload, indent=2))

    def create(self, task: Task) -> Task:
        """Store a new task with a fresh id."""
        tasks = self._load()
        now = datetime.now()
        created = replace(task, id=uuid.uuid4().hex, created_at=now, updated_at=now)
        tasks[created.id] = created
        self._save(tasks)
        logger.debug(f"Created task {created.id}")
        return created

    def get(self, task_id: str) -> Task | None:
        return self._load().get(task_id)

    def update(self, task_id: str, **changes) -> Task | None:
        """Apply field changes to a task. Returns None if not found."""
        tasks = self._load()
        current = tasks.get(task_id)
        if current is None:
            return None
        changes.pop("id", None)
        updated = replace(current, **changes, updated_at=datetime.now())
        tasks[task_id] = updated
        self._save(tasks)
        return updated

    def delete(self, task_id: str) -> bool:
        tasks = self._load()
        if tasks.pop(task_id, None) is None:
            return False
        self._save(tasks)
        return True

    def list_tasks(
        self,
        status: str | None = None,
        due_before: datetime | None = None,
        course: str | None = None,
    ) -> list[Task]:
        """List tasks matching all given filters, earliest due first."""
        tasks = [
            t for t in self._load().values() if matches_filters(t, status, due_before, course)
        ]
        return sorted(tasks, key=lambda t: t.due_at)
