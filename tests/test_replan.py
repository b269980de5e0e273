"""Tests for incremental replanning."""

import logging
from datetime import datetime, timedelta

import pytest

from pomoplan.core.policy import PolicyConfig
from pomoplan.core.replan import adjust_for_completed, replan, replan_pack, split_slots
from pomoplan.core.slots import Slot
from pomoplan.core.tasks import Task


# Fixtures
@pytest.fixture
def now():
    return datetime(2025, 1, 16, 10, 0)


@pytest.fixture
def policy():
    return PolicyConfig()


@pytest.fixture
def make_slot():
    def _make(task_id: str, seq: int, start: datetime, minutes: int = 25, done: bool | None = None) -> Slot:
        return Slot(
            id=f"{task_id}-{seq}",
            task_id=task_id,
            start=start,
            end=start + timedelta(minutes=minutes),
            done=done,
        )
    return _make


@pytest.fixture
def task_a():
    return Task(id="A", title="Essay", due_at=datetime(2025, 1, 17, 8, 0), estimated_minutes=50)


@pytest.fixture
def missed_a(make_slot):
    """Both of A's morning sessions are over; the first was finished."""
    return [
        make_slot("A", 1, datetime(2025, 1, 16, 8, 0), done=True),
        make_slot("A", 2, datetime(2025, 1, 16, 8, 30)),
    ]


def minutes_for(slots: list[Slot], task_id: str) -> int:
    return sum(s.duration_minutes() for s in slots if s.task_id == task_id)


class TestSplitSlots:
    def test_past_future_and_in_progress(self, make_slot, now):
        past = make_slot("A", 1, datetime(2025, 1, 16, 9, 0))
        running = make_slot("A", 2, datetime(2025, 1, 16, 9, 50))
        future = make_slot("A", 3, datetime(2025, 1, 16, 10, 0))

        before, after = split_slots([past, running, future], now)

        assert before == [past]
        assert after == [future]

    def test_slot_ending_now_is_past(self, make_slot, now):
        just_finished = make_slot("A", 1, datetime(2025, 1, 16, 9, 35))

        before, after = split_slots([just_finished], now)

        assert before == [just_finished]
        assert after == []


class TestAdjustForCompleted:
    def test_done_minutes_reduce_estimate(self, task_a, missed_a):
        assert adjust_for_completed(task_a, missed_a).estimated_minutes == 25

    def test_floor_of_fifteen_minutes(self, task_a, make_slot):
        done = [make_slot("A", 1, datetime(2025, 1, 16, 8, 0), minutes=50, done=True)]
        assert adjust_for_completed(task_a, done).estimated_minutes == 15

    def test_other_tasks_slots_ignored(self, task_a, make_slot):
        done = [make_slot("B", 1, datetime(2025, 1, 16, 8, 0), done=True)]
        assert adjust_for_completed(task_a, done).estimated_minutes == 50

    def test_input_not_mutated(self, task_a, missed_a):
        adjust_for_completed(task_a, missed_a)
        assert task_a.estimated_minutes == 50


class TestReplanPack:
    def test_nothing_missed_returns_remaining_sorted(self, make_slot, task_a, policy, now):
        late = make_slot("A", 3, datetime(2025, 1, 16, 15, 0))
        early = make_slot("A", 2, datetime(2025, 1, 16, 11, 0))

        result = replan_pack([], [late, early], [task_a], policy, now)

        assert result.slots == [early, late]
        assert result.complete

    def test_only_outstanding_minutes_are_repacked(self, task_a, missed_a, policy, now):
        result = replan_pack(missed_a, [], [task_a], policy, now)

        assert minutes_for(result.slots, "A") == 25
        assert result.slots[0].start == now

    def test_missed_without_done_keeps_full_estimate(self, task_a, make_slot, policy, now):
        missed = [make_slot("A", 1, datetime(2025, 1, 16, 8, 0))]

        result = replan_pack(missed, [], [task_a], policy, now)

        assert minutes_for(result.slots, "A") == 50
        assert len(result.slots) == 2

    def test_floor_session_scheduled(self, make_slot, policy, now):
        task = Task(id="A", title="Short", due_at=datetime(2025, 1, 17, 8, 0), estimated_minutes=30)
        missed = [make_slot("A", 1, datetime(2025, 1, 16, 8, 0), done=True)]

        result = replan_pack(missed, [], [task], policy, now)

        assert [s.duration_minutes() for s in result.slots] == [15]

    def test_affected_tasks_remaining_slots_superseded(self, task_a, missed_a, make_slot, policy, now):
        stale = make_slot("A", 3, datetime(2025, 1, 16, 16, 0))

        result = replan_pack(missed_a, [stale], [task_a], policy, now)

        assert stale not in result.slots
        assert minutes_for(result.slots, "A") == 25

    def test_remaining_owners_are_repacked(self, task_a, missed_a, make_slot, policy, now):
        stale = make_slot("B", 1, datetime(2025, 1, 16, 17, 0))
        task_b = Task(id="B", title="Lab", due_at=datetime(2025, 1, 18, 12, 0), estimated_minutes=50)

        result = replan_pack(missed_a, [stale], [task_a, task_b], policy, now)

        assert stale not in result.slots
        assert minutes_for(result.slots, "A") == 25
        assert minutes_for(result.slots, "B") == 50
        assert [s.start for s in result.slots if s.task_id == "B"] == [
            datetime(2025, 1, 17, 12, 0),
            datetime(2025, 1, 17, 12, 30),
        ]
        assert result.slots == sorted(result.slots, key=lambda s: s.start)

    def test_tasks_without_slots_left_alone(self, task_a, missed_a, policy, now):
        idle = Task(id="C", title="Idle", due_at=datetime(2025, 1, 17, 8, 0), estimated_minutes=25)

        result = replan_pack(missed_a, [], [task_a, idle], policy, now)

        assert result.slots_for("C") == []

    def test_new_slots_may_overlap_other_sessions(self, task_a, missed_a, policy, now):
        result = replan_pack(missed_a, [], [task_a], policy, now)
        assert result.slots[0].start == now

    def test_occupied_slots_avoided_but_not_returned(self, task_a, missed_a, make_slot, policy, now):
        other = make_slot("other", 1, now)

        result = replan_pack(missed_a, [], [task_a], policy, now, occupied=[other])

        assert result.slots[0].start == datetime(2025, 1, 16, 10, 30)
        assert other not in result.slots

    def test_unknown_task_dropped_with_warning(self, make_slot, policy, now, caplog):
        ghost = [make_slot("ghost", 1, datetime(2025, 1, 16, 8, 0))]
        orphan = make_slot("B", 1, datetime(2025, 1, 16, 14, 0))

        with caplog.at_level(logging.WARNING, logger="pomoplan.core.replan"):
            result = replan_pack(ghost, [orphan], [], policy, now)

        assert result.slots == []
        assert "B, ghost" in caplog.text

    def test_shortfall_reported(self, make_slot, policy, now):
        overdue = Task(id="A", title="Late", due_at=datetime(2025, 1, 16, 9, 0), estimated_minutes=50)
        missed = [make_slot("A", 1, datetime(2025, 1, 16, 8, 0))]

        result = replan_pack(missed, [], [overdue], policy, now)

        assert result.slots == []
        assert result.shortfalls == {"A": 50}

    def test_replan_returns_slots(self, task_a, missed_a, policy, now):
        assert replan(missed_a, [], [task_a], policy, now) == replan_pack(missed_a, [], [task_a], policy, now).slots
