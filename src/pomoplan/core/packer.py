"""Greedy multi-task session packing."""

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, time, timedelta
from typing import Iterable

from .policy import DEADLINE_BUFFER, PolicyConfig
from .slots import (
    Slot,
    SlotKind,
    SlotLedger,
    find_next_available_slot,
    sort_slots_by_start,
)
from .tasks import Task, TaskPlan, filter_schedulable, sort_by_urgency

logger = logging.getLogger(__name__)


@dataclass
class PackResult:
    """Slots produced by a packing pass plus the minutes that did not fit."""

    slots: list[Slot]
    shortfalls: dict[str, int] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.shortfalls

    def slots_for(self, task_id: str) -> list[Slot]:
        return [s for s in self.slots if s.task_id == task_id]


def _anchor_time(task: Task, now: datetime) -> datetime:
    """Where the search for a task's first session begins."""
    if task.due_at - now > timedelta(hours=24):
        # Defer distant work toward its due date
        tomorrow = datetime.combine(now.date() + timedelta(days=1), time(0, 0), tzinfo=now.tzinfo)
        return max(tomorrow, task.due_at - timedelta(hours=24))
    return now


def _pack_task(
    task: Task,
    policy: PolicyConfig,
    now: datetime,
    ledger: SlotLedger,
) -> tuple[list[Slot], int]:
    """Place one task's sessions. Returns (slots, undelivered minutes)."""
    session = policy.pomodoro_minutes
    sessions = math.ceil(task.estimated_minutes / session)
    schedule_deadline = task.due_at - DEADLINE_BUFFER
    current = _anchor_time(task, now)

    slots: list[Slot] = []
    for i in range(sessions):
        remaining = task.estimated_minutes - i * session
        duration = min(session, remaining)

        start = find_next_available_slot(current, duration, schedule_deadline, ledger, policy)
        if start is None:
            logger.warning(
                f"Cannot schedule task {task.title!r} ({task.id}) - "
                f"no available slot for {remaining} of {task.estimated_minutes} min"
            )
            return slots, remaining

        end = start + timedelta(minutes=duration)
        slot = Slot(
            id=f"{task.id}-{i + 1}",
            task_id=task.id,
            start=start,
            end=end,
            kind=SlotKind.REVIEW if i == sessions - 1 else SlotKind.FOCUS,
        )
        slots.append(slot)
        ledger.add(slot)
        current = end + timedelta(minutes=policy.break_minutes)

    return slots, 0


def pack_tasks(
    tasks: list[Task],
    policy: PolicyConfig,
    now: datetime | None = None,
    occupied: Iterable[Slot] = (),
) -> PackResult:
    """
    Pack sessions for every open task, most urgent first.

    Pure function - no I/O. Tasks that run out of room keep whatever
    sessions did fit; the missing minutes are reported in `shortfalls`.

    Args:
        tasks: Tasks to schedule (done tasks are skipped)
        policy: Session length, break and daily cap
        now: Reference time (defaults to datetime.now())
        occupied: Slots to treat as already taken

    Raises:
        InvalidPolicyError, InvalidTaskError: before anything is packed
    """
    now = now or datetime.now()
    policy.validate()

    open_tasks = filter_schedulable(tasks)
    for task in open_tasks:
        task.validate()

    ledger = SlotLedger(occupied)
    result = PackResult(slots=[])

    for task in sort_by_urgency(open_tasks, now):
        slots, missing = _pack_task(task, policy, now, ledger)
        result.slots.extend(slots)
        if missing:
            result.shortfalls[task.id] = missing
        logger.debug(f"Packed {len(slots)} session(s) for task {task.id}")

    result.slots = sort_slots_by_start(result.slots)
    return result


def make_slots(
    tasks: list[Task],
    policy: PolicyConfig,
    now: datetime | None = None,
) -> list[Slot]:
    """All slots for all open tasks, ordered by start."""
    return pack_tasks(tasks, policy, now).slots


def attach_plans(
    tasks: list[Task],
    result: PackResult,
    policy: PolicyConfig,
    now: datetime,
) -> list[Task]:
    """
    Attach each task's slots from a packing pass as its new plan.

    Returns copies; any previous plan is discarded. Tasks that received
    nothing (done, or no room) get an empty plan.
    """
    return [
        replace(
            task,
            plan=TaskPlan(slots=result.slots_for(task.id), policy=policy, last_planned_at=now),
        )
        for task in tasks
    ]


def plan_tasks(
    tasks: list[Task],
    policy: PolicyConfig,
    now: datetime | None = None,
) -> list[Task]:
    """Pack all tasks together and attach the resulting plans."""
    now = now or datetime.now()
    return attach_plans(tasks, pack_tasks(tasks, policy, now), policy, now)


def plan_task(task: Task, policy: PolicyConfig, now: datetime | None = None) -> Task:
    """Plan a single task in isolation."""
    return plan_tasks([task], policy, now)[0]
