"""Ports - interfaces/protocols for external dependencies."""

from .task_repo import StoreError, TaskRepository

__all__ = [
    "StoreError",
    "TaskRepository",
]
