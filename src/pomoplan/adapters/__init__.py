"""Adapters - I/O implementations of ports."""

from .file_store import JsonTaskStore
from .planner_api import PlannerApiStore

__all__ = [
    "JsonTaskStore",
    "PlannerApiStore",
]
