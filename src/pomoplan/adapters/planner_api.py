"""Planner REST API adapter - HTTP client for a remote task store."""

import logging
from dataclasses import replace
from datetime import datetime

import requests

from pomoplan.config import Config, load_config
from pomoplan.core.tasks import Task
from pomoplan.ports.task_repo import StoreError

logger = logging.getLogger(__name__)

# Fields the server owns; never sent back on create/update
_SERVER_FIELDS = ("id", "createdAt", "updatedAt")


class PlannerApiStore:
    """
    Planner REST API adapter.

    Implements TaskRepository protocol against the /tasks endpoints.
    Responses are wrapped as {"ok": true, "task": {...}}. No business
    logic - just I/O.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        config: Config | None = None,
        timeout: float = 10.0,
    ):
        config = config or load_config()
        self.base_url = (base_url or config.api_url).rstrip("/")
        if not self.base_url:
            raise StoreError("No planner API URL. Set API_URL in pomoplan.conf")
        self.timeout = timeout
        self._session = requests.Session()
        token = token if token is not None else config.api_token
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, endpoint: str, **kwargs) -> dict | None:
        """Make an API request. Returns None on 404."""
        try:
            resp = self._session.request(
                method, f"{self.base_url}{endpoint}", timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise StoreError(f"{method} {endpoint} failed: {e}") from e

        if resp.status_code == 404:
            return None
        try:
            resp.raise_for_status()
            data = resp.json()
        except (requests.HTTPError, ValueError) as e:
            raise StoreError(f"{method} {endpoint} failed: {resp.status_code} {resp.text}") from e

        if not data.get("ok", False):
            raise StoreError(f"{method} {endpoint} failed: {data.get('error', 'unknown error')}")
        return data

    @staticmethod
    def _body(task: Task) -> dict:
        return {k: v for k, v in task.to_dict().items() if k not in _SERVER_FIELDS}

    def create(self, task: Task) -> Task:
        data = self._request("POST", "/tasks", json=self._body(task))
        if data is None:
            raise StoreError("POST /tasks returned 404")
        return Task.from_dict(data["task"])

    def get(self, task_id: str) -> Task | None:
        data = self._request("GET", f"/tasks/{task_id}")
        return Task.from_dict(data["task"]) if data else None

    def update(self, task_id: str, **changes) -> Task | None:
        """Apply field changes by sending the patched record."""
        current = self.get(task_id)
        if current is None:
            return None
        changes.pop("id", None)
        patched = replace(current, **changes)
        data = self._request("PATCH", f"/tasks/{task_id}", json=self._body(patched))
        return Task.from_dict(data["task"]) if data else None

    def delete(self, task_id: str) -> bool:
        return self._request("DELETE", f"/tasks/{task_id}") is not None

    def list_tasks(
        self,
        status: str | None = None,
        due_before: datetime | None = None,
        course: str | None = None,
    ) -> list[Task]:
        """List tasks matching all given filters, earliest due first."""
        params = {}
        if status:
            params["status"] = status
        if due_before:
            params["dueBefore"] = due_before.isoformat()
        if course:
            params["course"] = course

        data = self._request("GET", "/tasks", params=params) or {}
        tasks = [Task.from_dict(t) for t in data.get("tasks", [])]
        logger.debug(f"Fetched {len(tasks)} task(s) from {self.base_url}")
        return sorted(tasks, key=lambda t: t.due_at)
