"""Incremental replanning after sessions are missed or completed."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from .packer import PackResult, pack_tasks
from .policy import MIN_REMAINING_MINUTES, PolicyConfig
from .slots import Slot, sort_slots_by_start, total_minutes
from .tasks import Task

logger = logging.getLogger(__name__)


def split_slots(slots: list[Slot], now: datetime) -> tuple[list[Slot], list[Slot]]:
    """
    Split a plan into past and remaining slots.

    Returns: (past, remaining) - past slots have ended by `now` (done or
    not); remaining slots start at or after `now`. A slot in progress is
    in neither.
    """
    past = [s for s in slots if s.end <= now]
    remaining = [s for s in slots if s.start >= now]
    return past, remaining


def adjust_for_completed(task: Task, missed_slots: list[Slot]) -> Task:
    """Copy of `task` with finished session minutes taken off its estimate."""
    completed = [s for s in missed_slots if s.task_id == task.id and s.done]
    left = max(MIN_REMAINING_MINUTES, task.estimated_minutes - total_minutes(completed))
    return replace(task, estimated_minutes=left)


def replan_pack(
    missed_slots: list[Slot],
    remaining_slots: list[Slot],
    tasks: list[Task],
    policy: PolicyConfig,
    now: datetime | None = None,
    occupied: Iterable[Slot] = (),
) -> PackResult:
    """
    Re-pack every task named by a missed or remaining slot.

    Pure function - no I/O.

    Those tasks' remaining slots are superseded by the new pass; nothing
    in `missed_slots` or `remaining_slots` survives. The new pass only
    checks conflicts against its own slots, plus any `occupied` slots
    the caller holds fixed (e.g. other tasks' sessions). `occupied`
    slots are avoided but never returned.
    """
    if not missed_slots:
        return PackResult(slots=sort_slots_by_start(remaining_slots))

    affected_ids = {s.task_id for s in missed_slots} | {s.task_id for s in remaining_slots}

    affected_tasks = [t for t in tasks if t.id in affected_ids]
    unknown = affected_ids - {t.id for t in affected_tasks}
    if unknown:
        logger.warning(f"Dropping slots for unknown task(s): {', '.join(sorted(unknown))}")

    adjusted = [adjust_for_completed(t, missed_slots) for t in affected_tasks]
    result = pack_tasks(adjusted, policy, now, occupied=occupied)
    logger.info(f"Replanned {len(adjusted)} task(s): {len(result.slots)} new slot(s)")
    return result


def replan(
    missed_slots: list[Slot],
    remaining_slots: list[Slot],
    tasks: list[Task],
    policy: PolicyConfig,
    now: datetime | None = None,
    occupied: Iterable[Slot] = (),
) -> list[Slot]:
    """Freshly packed slots for every affected task, ordered by start."""
    return replan_pack(missed_slots, remaining_slots, tasks, policy, now, occupied).slots
