"""Pomoplan CLI - study session planner."""

import json
import logging
import sys
from datetime import date, datetime, time

import click

from .config import load_config
from .core.policy import InvalidPolicyError
from .core.tasks import InvalidTaskError, Task, TaskStatus
from .ports.task_repo import StoreError
from .workflows import PlannerService

_ERRORS = (InvalidTaskError, InvalidPolicyError, StoreError)


def _service() -> PlannerService:
    return PlannerService.from_config(load_config())


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _parse_due(value: str) -> datetime:
    """Parse YYYY-MM-DD (end of day) or an ISO datetime."""
    try:
        if len(value) == 10:
            return datetime.combine(date.fromisoformat(value), time(23, 59))
        return datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"expected YYYY-MM-DD or YYYY-MM-DDTHH:MM, got {value!r}")


def _task_line(task: Task) -> str:
    marker = "!" * task.priority
    course = f" [{task.course}]" if task.course else ""
    planned = f", {len(task.slots)} session(s)" if task.plan else ""
    return (
        f"{task.id}  [{marker:5}] {task.title}{course} "
        f"(due {task.due_at.strftime('%a %b %d %H:%M')}, {task.estimated_minutes} min{planned})"
    )


def _report_shortfalls(shortfalls: dict[str, int], titles: dict[str, str]) -> None:
    for task_id, minutes in shortfalls.items():
        click.echo(
            f"Warning: {minutes} min of {titles.get(task_id, task_id)!r} did not fit before its deadline",
            err=True,
        )


@click.group()
@click.version_option(package_name="pomoplan")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Pomoplan - deadline-aware study session planner."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command()
@click.argument("title")
@click.option("--due", "due", default=None, help="Due date (YYYY-MM-DD or YYYY-MM-DDTHH:MM)")
@click.option("--est", "estimate", type=int, default=None, help="Estimated minutes")
@click.option("--priority", "-p", type=click.IntRange(1, 5), default=None, help="Priority 1-5")
@click.option("--course", default="", help="Course or project")
@click.option("--notes", default="", help="Free-form notes")
def add(title: str, due: str | None, estimate: int | None, priority: int | None, course: str, notes: str):
    """Add a task."""
    due_at = _parse_due(due) if due else None
    try:
        task = _service().add_task(
            title,
            due_at=due_at,
            estimated_minutes=estimate,
            priority=priority,
            course=course,
            notes=notes,
        )
    except _ERRORS as e:
        _fail(e)
    click.echo(f"Added {task.id}: {task.title}")


@main.command()
@click.option("--status", type=click.Choice([s.value for s in TaskStatus]), default=None)
@click.option("--course", default=None, help="Only tasks for this course")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def tasks(status: str | None, course: str | None, as_json: bool):
    """List tasks, earliest due first."""
    try:
        found = _service().store.list_tasks(status=status, course=course)
    except _ERRORS as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps([t.to_dict() for t in found], indent=2))
        return

    if not found:
        click.echo("No tasks.")
        return

    for task in found:
        click.echo(_task_line(task))


@main.command()
@click.argument("task_id")
def done(task_id: str):
    """Mark a task done."""
    try:
        task = _service().store.update(task_id, status=TaskStatus.DONE)
    except _ERRORS as e:
        _fail(e)
    if task is None:
        _fail(LookupError(f"Task {task_id} not found"))
    click.echo(f"Done: {task.title}")


@main.command()
@click.argument("task_id")
def rm(task_id: str):
    """Delete a task."""
    try:
        deleted = _service().store.delete(task_id)
    except _ERRORS as e:
        _fail(e)
    if not deleted:
        _fail(LookupError(f"Task {task_id} not found"))
    click.echo(f"Deleted {task_id}")


@main.command()
@click.argument("task_id")
def plan(task_id: str):
    """Plan sessions for a single task."""
    try:
        task = _service().plan_single_task(task_id)
    except _ERRORS as e:
        _fail(e)
    if task is None:
        _fail(LookupError(f"Task {task_id} not found"))

    planned = sum(s.duration_minutes() for s in task.slots)
    click.echo(f"{task.title}: {len(task.slots)} session(s), {planned}/{task.estimated_minutes} min")
    for slot in task.slots:
        click.echo(f"  {slot.start.strftime('%a %b %d')} {slot.format()}")


@main.command()
@click.option("--cram", is_flag=True, help="Raise the daily cap for a compressed schedule")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def week(cram: bool, as_json: bool):
    """Plan all open tasks and show the next 7 days."""
    config = load_config()
    try:
        service = PlannerService.from_config(config)
        result = service.generate_weekly_plan(config.policy(cram=cram or None))
    except _ERRORS as e:
        _fail(e)

    if as_json:
        payload = result.plan.to_dict()
        payload["shortfalls"] = result.shortfalls
        click.echo(json.dumps(payload, indent=2))
        return

    titles = {t.id: t.title for t in result.tasks}
    for day in result.plan.days:
        click.echo(f"### {day.date.strftime('%A, %B %d')} ({day.minutes()} min)")
        if not day.slots:
            click.echo("  Nothing planned")
        for slot in day.slots:
            click.echo(f"  {slot.format():32} {titles.get(slot.task_id, slot.task_id)}")
        click.echo()

    _report_shortfalls(result.shortfalls, titles)


@main.command()
def today():
    """Show today's sessions."""
    try:
        sessions = _service().today_sessions()
    except _ERRORS as e:
        _fail(e)

    if not sessions:
        click.echo("No sessions planned for today.")
        return

    for task, slots in sessions:
        click.echo(task.title)
        for slot in slots:
            state = " (done)" if slot.done else ""
            click.echo(f"  {slot.id}  {slot.format()}{state}")


@main.command()
@click.argument("task_id")
@click.argument("slot_id")
@click.option("--done/--undone", "is_done", default=True, help="Mark the session done or not done")
@click.option("--skip", is_flag=True, help="Skip the session and replan the task")
def slot(task_id: str, slot_id: str, is_done: bool, skip: bool):
    """Update one planned session."""
    try:
        task = _service().update_slot(task_id, slot_id, done=None if skip else is_done, skip=skip)
    except _ERRORS as e:
        _fail(e)
    if task is None:
        _fail(LookupError(f"Session {slot_id} of task {task_id} not found"))

    if skip:
        click.echo(f"Skipped {slot_id}; {task.title} now has {len(task.slots)} session(s)")
    else:
        click.echo(f"{slot_id} marked {'done' if is_done else 'not done'}")


@main.command()
@click.argument("task_id")
def replan(task_id: str):
    """Replan a task around missed and completed sessions."""
    try:
        task = _service().replan_task(task_id)
    except _ERRORS as e:
        _fail(e)
    if task is None:
        _fail(LookupError(f"Task {task_id} not found or not planned yet"))

    click.echo(f"{task.title}: {len(task.slots)} session(s)")
    for s in task.slots:
        click.echo(f"  {s.start.strftime('%a %b %d')} {s.format()}")


@main.command()
def deadlines():
    """Show urgent, at-risk and upcoming deadlines."""
    try:
        report = _service().upcoming_deadlines()
    except _ERRORS as e:
        _fail(e)

    sections = [
        ("Urgent (< 24h)", report.urgent),
        ("At risk (< 72h, nothing scheduled)", report.at_risk),
        ("Upcoming (this week)", report.upcoming),
    ]
    for heading, group in sections:
        click.echo(f"### {heading}")
        click.echo("\n".join(f"  {_task_line(t)}" for t in group) or "  None")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(as_json: bool):
    """Show planning statistics."""
    try:
        result = _service().stats()
    except _ERRORS as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.echo(f"Tasks: {result.completed_tasks}/{result.total_tasks} done")
    click.echo(f"Planned: {result.planned_minutes} min, completed: {result.completed_minutes} min")
    click.echo(f"On time: {result.on_time_ratio:.0%}")
    click.echo(f"Estimate accuracy: {result.estimate_accuracy:.2f}")


if __name__ == "__main__":
    main()
