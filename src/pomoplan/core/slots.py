"""Pure slot domain logic - no I/O dependencies."""

from bisect import bisect_left, bisect_right
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable, Iterator

from .policy import (
    DAY_END_HOUR,
    DAY_START_HOUR,
    HORIZON_DAYS,
    STEP_MINUTES,
    PolicyConfig,
)


class SlotKind(Enum):
    """What a scheduled session is for."""

    FOCUS = "focus"
    REVIEW = "review"  # Last session of a task
    BUFFER = "buffer"


def parse_timestamp(value: str | datetime) -> datetime:
    """
    Parse an ISO timestamp into naive local wall-clock time.

    Offsets (including a trailing Z) are converted to the local zone first.
    Raises ValueError for unparseable input.
    """
    dt = value if isinstance(value, datetime) else datetime.fromisoformat(value)
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


@dataclass(frozen=True)
class Slot:
    """A single scheduled work interval for one task."""

    id: str
    task_id: str
    start: datetime
    end: datetime
    kind: SlotKind = SlotKind.FOCUS
    done: bool | None = None

    @property
    def day(self) -> date:
        return self.start.date()

    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open overlap test against [start, end)."""
        return start < self.end and end > self.start

    def with_done(self, done: bool | None) -> "Slot":
        return replace(self, done=done)

    def format(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')} ({self.duration_minutes()} min, {self.kind.value})"

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "taskId": self.task_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "kind": self.kind.value,
        }
        if self.done is not None:
            data["done"] = self.done
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Slot":
        return cls(
            id=data["id"],
            task_id=data["taskId"],
            start=parse_timestamp(data["start"]),
            end=parse_timestamp(data["end"]),
            kind=SlotKind(data.get("kind", "focus")),
            done=data.get("done"),
        )


def sort_slots_by_start(slots: Iterable[Slot]) -> list[Slot]:
    """Sort slots by start time (stable)."""
    return sorted(slots, key=lambda s: s.start)


def total_minutes(slots: Iterable[Slot]) -> int:
    return sum(s.duration_minutes() for s in slots)


class SlotLedger:
    """
    Growable, start-ordered record of occupied slots.

    One ledger lives for one packing call. Placements are added between
    searches so later searches see earlier ones as occupied.
    """

    def __init__(self, slots: Iterable[Slot] = ()):
        self._slots: list[Slot] = []
        self._starts: list[datetime] = []
        self._minutes_by_day: dict[date, int] = {}
        self._longest = timedelta(0)
        for slot in slots:
            self.add(slot)

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[Slot]:
        return iter(self._slots)

    def add(self, slot: Slot) -> None:
        # Equal starts keep insertion order
        idx = bisect_right(self._starts, slot.start)
        self._starts.insert(idx, slot.start)
        self._slots.insert(idx, slot)
        self._minutes_by_day[slot.day] = self._minutes_by_day.get(slot.day, 0) + slot.duration_minutes()
        self._longest = max(self._longest, slot.end - slot.start)

    def minutes_on(self, day: date) -> int:
        """Minutes of slots starting on the given calendar day."""
        return self._minutes_by_day.get(day, 0)

    def has_conflict(self, start: datetime, end: datetime) -> bool:
        """Check whether [start, end) overlaps any recorded slot."""
        # Only slots starting before `end` can overlap; walk back until
        # even the longest slot could not reach `start`.
        idx = bisect_left(self._starts, end)
        for i in range(idx - 1, -1, -1):
            slot = self._slots[i]
            if slot.start + self._longest <= start:
                break
            if slot.overlaps(start, end):
                return True
        return False


def day_window(day: date, tz=None) -> tuple[datetime, datetime]:
    """Business window [08:00, 22:00) for a calendar day."""
    return (
        datetime.combine(day, time(DAY_START_HOUR, 0), tzinfo=tz),
        datetime.combine(day, time(DAY_END_HOUR, 0), tzinfo=tz),
    )


def find_next_available_slot(
    from_time: datetime,
    duration_minutes: int,
    deadline: datetime,
    ledger: SlotLedger,
    policy: PolicyConfig,
) -> datetime | None:
    """
    Find the earliest conflict-free start for a session.

    Pure function - no I/O.

    Args:
        from_time: Earliest acceptable start
        duration_minutes: Session length
        deadline: Days whose 08:00 falls after this are not searched
        ledger: Slots already placed (read only here)
        policy: Supplies the daily minute cap

    Returns:
        Start time of the first fit within the 14-day horizon, or None
    """
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=STEP_MINUTES)
    first_day = from_time.date()

    for offset in range(HORIZON_DAYS):
        day = first_day + timedelta(days=offset)
        day_start, day_end = day_window(day, from_time.tzinfo)

        if day_start > deadline:
            return None

        if ledger.minutes_on(day) + duration_minutes > policy.max_daily_minutes:
            continue

        candidate = max(day_start, from_time)
        while candidate + duration <= day_end:
            if not ledger.has_conflict(candidate, candidate + duration):
                return candidate
            candidate += step

    return None
