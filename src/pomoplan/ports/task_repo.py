"""Task repository interface."""

from datetime import datetime
from typing import Protocol

from pomoplan.core.tasks import Task


class StoreError(Exception):
    """Raised when a task backend fails or returns something unusable."""

    pass


class TaskRepository(Protocol):
    """Interface for storing tasks in any backend."""

    def create(self, task: Task) -> Task:
        """Store a new task. Returns it with id and timestamps filled in."""
        ...

    def get(self, task_id: str) -> Task | None:
        """Fetch one task. Returns None if not found."""
        ...

    def update(self, task_id: str, **changes) -> Task | None:
        """Apply field changes to a task. Returns None if not found."""
        ...

    def delete(self, task_id: str) -> bool:
        """Delete a task. Returns False if it did not exist."""
        ...

    def list_tasks(
        self,
        status: str | None = None,
        due_before: datetime | None = None,
        course: str | None = None,
    ) -> list[Task]:
        """List tasks matching all given filters, earliest due first."""
        ...
