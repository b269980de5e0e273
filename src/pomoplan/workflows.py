"""Planning service - loads tasks, runs the core, persists plans.

Shared by the CLI and any other front end. The core stays pure; all
store access happens here.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from pathlib import Path

from .adapters.file_store import JsonTaskStore
from .adapters.planner_api import PlannerApiStore
from .config import DEFAULT_STORE, Config
from .core.insights import DeadlineReport, PlanStats, plan_stats, upcoming_deadlines
from .core.packer import attach_plans, pack_tasks
from .core.policy import PolicyConfig
from .core.replan import replan_pack, split_slots
from .core.slots import Slot
from .core.tasks import Task, TaskPlan, TaskStatus
from .core.weekly import WeeklyPlan, today_sessions, weekly_plan
from .ports.task_repo import TaskRepository

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 7
DEFAULT_ESTIMATE = 60
DEFAULT_PRIORITY = 3


def get_store(config: Config) -> TaskRepository:
    """Resolve the task store from config: remote API if set, else a JSON file."""
    if config.api_url:
        return PlannerApiStore(config.api_url, config.api_token, config=config)
    if config.store_path:
        return JsonTaskStore(Path(config.store_path).expanduser())
    return JsonTaskStore(DEFAULT_STORE)


@dataclass
class WeeklyResult:
    tasks: list[Task]
    plan: WeeklyPlan
    shortfalls: dict[str, int] = field(default_factory=dict)


def _last_sequence(slots: list[Slot]) -> int:
    """Highest numeric suffix among `<taskId>-<n>` slot ids."""
    last = 0
    for slot in slots:
        _, _, suffix = slot.id.rpartition("-")
        if suffix.isdigit():
            last = max(last, int(suffix))
    return last


def _renumber(task_id: str, slots: list[Slot], after: int) -> list[Slot]:
    return [replace(s, id=f"{task_id}-{after + i}") for i, s in enumerate(slots, 1)]


class PlannerService:
    """Planning operations over a task store."""

    def __init__(
        self,
        store: TaskRepository,
        policy: PolicyConfig | None = None,
        respect_unaffected: bool = False,
    ):
        self.store = store
        self.policy = policy or PolicyConfig()
        self.respect_unaffected = respect_unaffected

    @classmethod
    def from_config(cls, config: Config) -> "PlannerService":
        return cls(
            get_store(config),
            config.policy(),
            respect_unaffected=config.replan_respects_unaffected,
        )

    def add_task(
        self,
        title: str,
        due_at: datetime | None = None,
        estimated_minutes: int | None = None,
        priority: int | None = None,
        course: str = "",
        notes: str = "",
        now: datetime | None = None,
    ) -> Task:
        """Create a task, filling in the usual defaults."""
        now = now or datetime.now()
        task = Task(
            id="",
            title=title or "Untitled Task",
            due_at=due_at or now + timedelta(days=DEFAULT_DUE_DAYS),
            estimated_minutes=DEFAULT_ESTIMATE if estimated_minutes is None else estimated_minutes,
            priority=DEFAULT_PRIORITY if priority is None else priority,
            course=course,
            notes=notes,
        )
        task.validate()
        return self.store.create(task)

    def plan_single_task(self, task_id: str, now: datetime | None = None) -> Task | None:
        """Plan one task on its own and persist the plan."""
        task = self.store.get(task_id)
        if task is None:
            return None

        now = now or datetime.now()
        result = pack_tasks([task], self.policy, now)
        planned = attach_plans([task], result, self.policy, now)[0]
        if result.shortfalls:
            logger.warning(f"Task {task_id} is short {result.shortfalls[task_id]} min")
        return self.store.update(task_id, plan=planned.plan)

    def generate_weekly_plan(
        self,
        policy: PolicyConfig | None = None,
        now: datetime | None = None,
    ) -> WeeklyResult:
        """Plan every open todo task together and return the week view."""
        policy = policy or self.policy
        now = now or datetime.now()

        tasks = self.store.list_tasks(status=TaskStatus.TODO.value)
        result = pack_tasks(tasks, policy, now)
        planned = attach_plans(tasks, result, policy, now)

        for task in planned:
            self.store.update(task.id, plan=task.plan)

        logger.info(
            f"Planned {len(planned)} task(s) into {len(result.slots)} slot(s); "
            f"{len(result.shortfalls)} short"
        )
        return WeeklyResult(
            tasks=planned,
            plan=weekly_plan(planned, policy, now),
            shortfalls=result.shortfalls,
        )

    def today_sessions(self, now: datetime | None = None) -> list[tuple[Task, list[Slot]]]:
        tasks = self.store.list_tasks(status=TaskStatus.TODO.value)
        return today_sessions(tasks, now)

    def update_slot(
        self,
        task_id: str,
        slot_id: str,
        done: bool | None = None,
        skip: bool = False,
        now: datetime | None = None,
    ) -> Task | None:
        """Mark a session done (or not); skipping a session replans the task."""
        task = self.store.get(task_id)
        if task is None or task.plan is None:
            return None
        if not any(s.id == slot_id for s in task.plan.slots):
            return None

        slots = [s.with_done(done) if s.id == slot_id else s for s in task.plan.slots]
        task = self.store.update(task_id, plan=replace(task.plan, slots=slots))

        if skip:
            return self.replan_task(task_id, now, skipped={slot_id})
        return task

    def replan_task(
        self,
        task_id: str,
        now: datetime | None = None,
        skipped: set[str] | frozenset[str] = frozenset(),
    ) -> Task | None:
        """
        Re-pack a task around its past sessions.

        Past and skipped sessions count as missed, as does a running
        session already marked done; those marked done shorten the
        remaining estimate. Other tasks' upcoming sessions are left as
        they are, and are only avoided when `respect_unaffected` is set.
        """
        task = self.store.get(task_id)
        if task is None or task.plan is None:
            return None

        now = now or datetime.now()
        policy = task.plan.policy
        past, remaining = split_slots(task.plan.slots, now)
        running_done = [s for s in task.plan.slots if s.done and s.start < now < s.end]
        missed = past + running_done
        missed += [s for s in task.plan.slots if s.id in skipped and s not in missed]
        remaining = [s for s in remaining if s.id not in skipped]
        if not missed:
            return task

        occupied = []
        if self.respect_unaffected:
            for other in self.store.list_tasks(status=TaskStatus.TODO.value):
                if other.id != task_id:
                    occupied.extend(s for s in other.slots if s.start >= now)

        # New sessions start once a finished running session is over
        start_from = max([now] + [s.end for s in running_done])
        result = replan_pack(missed, remaining, [task], policy, start_from, occupied=occupied)
        # Keep finished sessions as history; new slots supersede the rest
        history = [s for s in missed if s.done]
        fresh = _renumber(task_id, result.slots_for(task_id), after=_last_sequence(history))
        plan = TaskPlan(
            slots=history + fresh,
            policy=policy,
            last_planned_at=now,
        )
        return self.store.update(task_id, plan=plan)

    def upcoming_deadlines(self, now: datetime | None = None) -> DeadlineReport:
        return upcoming_deadlines(self.store.list_tasks(status=TaskStatus.TODO.value), now)

    def stats(self) -> PlanStats:
        return plan_stats(self.store.list_tasks())
