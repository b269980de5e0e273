"""Functional core - pure scheduling logic with no I/O."""

from .policy import PolicyConfig, InvalidPolicyError, default_policy
from .slots import Slot, SlotKind, SlotLedger, find_next_available_slot
from .tasks import Task, TaskPlan, TaskStatus, InvalidTaskError, urgency_score, sort_by_urgency
from .packer import PackResult, make_slots, pack_tasks, plan_task, plan_tasks
from .replan import replan, replan_pack, split_slots
from .weekly import DayBucket, WeeklyPlan, weekly_plan, today_sessions
from .insights import DeadlineReport, PlanStats, upcoming_deadlines, plan_stats

__all__ = [
    # Policy
    "PolicyConfig",
    "InvalidPolicyError",
    "default_policy",
    # Slots
    "Slot",
    "SlotKind",
    "SlotLedger",
    "find_next_available_slot",
    # Tasks
    "Task",
    "TaskPlan",
    "TaskStatus",
    "InvalidTaskError",
    "urgency_score",
    "sort_by_urgency",
    # Packing
    "PackResult",
    "make_slots",
    "pack_tasks",
    "plan_task",
    "plan_tasks",
    # Replanning
    "replan",
    "replan_pack",
    "split_slots",
    # Views
    "DayBucket",
    "WeeklyPlan",
    "weekly_plan",
    "today_sessions",
    "DeadlineReport",
    "PlanStats",
    "upcoming_deadlines",
    "plan_stats",
]
