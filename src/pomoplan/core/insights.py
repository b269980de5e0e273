"""Deadline triage and plan statistics - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import datetime

from .slots import total_minutes
from .tasks import Task

URGENT_HOURS = 24
AT_RISK_HOURS = 72
UPCOMING_HOURS = 168


@dataclass
class DeadlineReport:
    urgent: list[Task] = field(default_factory=list)
    at_risk: list[Task] = field(default_factory=list)
    upcoming: list[Task] = field(default_factory=list)


@dataclass
class PlanStats:
    total_tasks: int
    completed_tasks: int
    planned_minutes: int
    completed_minutes: int
    on_time_ratio: float
    estimate_accuracy: float

    def to_dict(self) -> dict:
        return {
            "totalTasks": self.total_tasks,
            "completedTasks": self.completed_tasks,
            "totalPlannedMinutes": self.planned_minutes,
            "completedMinutes": self.completed_minutes,
            "onTimeRatio": self.on_time_ratio,
            "averageEstimateAccuracy": self.estimate_accuracy,
        }


def upcoming_deadlines(tasks: list[Task], now: datetime | None = None) -> DeadlineReport:
    """
    Triage open tasks by time to deadline.

    Under 24h is urgent. Under 72h with nothing scheduled from now on is
    at risk. Anything else within a week is upcoming.
    """
    now = now or datetime.now()
    report = DeadlineReport()

    for task in tasks:
        if task.is_done:
            continue
        hours = task.hours_until_due(now)
        has_future_work = any(s.start >= now for s in task.slots)

        if hours < URGENT_HOURS:
            report.urgent.append(task)
        elif hours < AT_RISK_HOURS and not has_future_work:
            report.at_risk.append(task)
        elif hours < UPCOMING_HOURS:
            report.upcoming.append(task)

    return report


def estimate_accuracy(completed: list[Task]) -> float:
    """Mean of min(estimate / actual, 2) over tasks with recorded time."""
    ratios = [
        min(t.estimated_minutes / t.minutes_spent, 2.0)
        for t in completed
        if t.minutes_spent and t.estimated_minutes > 0
    ]
    if not ratios:
        return 1.0
    return sum(ratios) / len(ratios)


def plan_stats(tasks: list[Task]) -> PlanStats:
    """Summarise planned and completed work across all tasks."""
    completed = [t for t in tasks if t.is_done]
    on_time = [t for t in completed if t.updated_at and t.updated_at <= t.due_at]

    return PlanStats(
        total_tasks=len(tasks),
        completed_tasks=len(completed),
        planned_minutes=sum(total_minutes(t.slots) for t in tasks),
        completed_minutes=sum(total_minutes(s for s in t.slots if s.done) for t in tasks),
        on_time_ratio=len(on_time) / len(completed) if completed else 0.0,
        estimate_accuracy=estimate_accuracy(completed),
    )
