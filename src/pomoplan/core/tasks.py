"""Pure task domain logic - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .policy import PolicyConfig
from .slots import Slot, parse_timestamp

W_URGENCY = 0.5
W_PRIORITY = 0.3
W_EFFORT = 0.2


class InvalidTaskError(ValueError):
    """Raised when a task cannot be scheduled as given."""

    pass


class TaskStatus(Enum):
    TODO = "todo"
    DOING = "doing"
    DONE = "done"
    BLOCKED = "blocked"


@dataclass
class TaskPlan:
    """The slots generated for one task, and the policy that produced them."""

    slots: list[Slot]
    policy: PolicyConfig
    last_planned_at: datetime

    def to_dict(self) -> dict:
        return {
            "slots": [s.to_dict() for s in self.slots],
            "policy": self.policy.to_dict(),
            "lastPlannedAt": self.last_planned_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TaskPlan":
        return cls(
            slots=[Slot.from_dict(s) for s in data.get("slots", [])],
            policy=PolicyConfig.from_dict(data.get("policy", {})),
            last_planned_at=parse_timestamp(data["lastPlannedAt"]),
        )


@dataclass
class Task:
    """A unit of work with an effort estimate and a due date."""

    id: str
    title: str
    due_at: datetime
    estimated_minutes: int
    priority: int = 3
    status: TaskStatus = TaskStatus.TODO
    course: str = ""
    type: str | None = None
    notes: str = ""
    steps: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    plan: TaskPlan | None = None
    minutes_spent: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE

    @property
    def slots(self) -> list[Slot]:
        return self.plan.slots if self.plan else []

    def hours_until_due(self, as_of: datetime) -> float:
        """Hours until due (negative if overdue)."""
        return (self.due_at - as_of).total_seconds() / 3600

    def validate(self) -> None:
        """Fail fast on input the packer cannot honour."""
        if not isinstance(self.due_at, datetime):
            raise InvalidTaskError(f"Task {self.id} has no usable due date: {self.due_at!r}")
        if self.estimated_minutes <= 0:
            raise InvalidTaskError(
                f"Task {self.id} needs a positive estimate, got {self.estimated_minutes}"
            )
        if not 1 <= self.priority <= 5:
            raise InvalidTaskError(f"Task {self.id} priority must be 1-5, got {self.priority}")

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "dueAt": self.due_at.isoformat(),
            "estMins": self.estimated_minutes,
            "priority": self.priority,
            "status": self.status.value,
        }
        if self.course:
            data["course"] = self.course
        if self.type:
            data["type"] = self.type
        if self.notes:
            data["notes"] = self.notes
        if self.steps:
            data["steps"] = list(self.steps)
        if self.tags:
            data["tags"] = list(self.tags)
        if self.plan:
            data["plan"] = self.plan.to_dict()
        if self.minutes_spent is not None:
            data["metrics"] = {"minutesSpent": self.minutes_spent}
        if self.created_at:
            data["createdAt"] = self.created_at.isoformat()
        if self.updated_at:
            data["updatedAt"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from a stored or API record."""
        try:
            due_at = parse_timestamp(data["dueAt"])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTaskError(
                f"Task {data.get('id', '?')} has an unparseable dueAt: {data.get('dueAt')!r}"
            ) from e

        metrics = data.get("metrics") or {}
        plan = data.get("plan")
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            due_at=due_at,
            estimated_minutes=int(data.get("estMins", 0)),
            priority=int(data.get("priority", 3)),
            status=TaskStatus(data.get("status", "todo")),
            course=data.get("course") or "",
            type=data.get("type"),
            notes=data.get("notes") or "",
            steps=list(data.get("steps") or []),
            tags=list(data.get("tags") or []),
            plan=TaskPlan.from_dict(plan) if plan else None,
            minutes_spent=metrics.get("minutesSpent"),
            created_at=parse_timestamp(data["createdAt"]) if data.get("createdAt") else None,
            updated_at=parse_timestamp(data["updatedAt"]) if data.get("updatedAt") else None,
        )


def urgency_score(task: Task, now: datetime) -> float:
    """
    Weighted ordering score: deadline proximity, priority, effort.

    Pure function - no I/O. Higher scores are packed first.
    """
    hours_to_deadline = max(1.0, task.hours_until_due(now))
    urgency = 1 / (hours_to_deadline / 24)
    priority = task.priority / 5
    effort = min(1.0, task.estimated_minutes / 240)
    return W_URGENCY * urgency + W_PRIORITY * priority + W_EFFORT * effort


def sort_by_urgency(tasks: list[Task], now: datetime) -> list[Task]:
    """
    Sort tasks by urgency score, descending.

    sorted() is stable, so equal scores keep their input order.
    """
    return sorted(tasks, key=lambda t: -urgency_score(t, now))


def filter_schedulable(tasks: list[Task]) -> list[Task]:
    """Drop tasks that are already done."""
    return [t for t in tasks if not t.is_done]
