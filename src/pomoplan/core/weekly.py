"""Calendar views over existing plans - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from .policy import PolicyConfig
from .slots import Slot, sort_slots_by_start, total_minutes
from .tasks import Task

WEEK_DAYS = 7


@dataclass
class DayBucket:
    """Slots starting on one calendar day, across all tasks."""

    date: date
    slots: list[Slot] = field(default_factory=list)

    def minutes(self) -> int:
        return total_minutes(self.slots)

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "slots": [s.to_dict() for s in self.slots]}


@dataclass
class WeeklyPlan:
    days: list[DayBucket]

    def to_dict(self) -> dict:
        return {"days": [d.to_dict() for d in self.days]}


def weekly_plan(
    tasks: list[Task],
    policy: PolicyConfig,
    as_of: datetime | None = None,
) -> WeeklyPlan:
    """
    Bucket each task's planned slots into the 7 days starting today.

    Pure function - no I/O. Slots outside the window are left out of the
    view; nothing is removed from the tasks themselves.
    """
    as_of = as_of or datetime.now()
    start = as_of.date()
    days = [DayBucket(date=start + timedelta(days=i)) for i in range(WEEK_DAYS)]

    for task in tasks:
        for slot in task.slots:
            index = (slot.day - start).days
            if 0 <= index < WEEK_DAYS:
                days[index].slots.append(slot)

    for day in days:
        day.slots = sort_slots_by_start(day.slots)

    return WeeklyPlan(days=days)


def today_sessions(
    tasks: list[Task],
    as_of: datetime | None = None,
) -> list[tuple[Task, list[Slot]]]:
    """
    Tasks with sessions today, paired with those sessions.

    Ordered by each task's first session of the day.
    """
    today = (as_of or datetime.now()).date()
    sessions = []
    for task in tasks:
        todays = sort_slots_by_start(s for s in task.slots if s.day == today)
        if todays:
            sessions.append((task, todays))
    return sorted(sessions, key=lambda pair: pair[1][0].start)
