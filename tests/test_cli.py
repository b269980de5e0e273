"""Tests for the command line interface."""

import json
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from pomoplan.cli import main
from pomoplan.config import Config


@pytest.fixture
def config(tmp_path):
    return Config(store_path=str(tmp_path / "tasks.json"))


@pytest.fixture
def cli(config):
    """Invoke the CLI against a throwaway store."""
    runner = CliRunner()

    def _invoke(*args: str):
        with patch("pomoplan.cli.load_config", return_value=config):
            return runner.invoke(main, list(args))
    return _invoke


@pytest.fixture
def add_task(cli):
    def _add(title: str, hours: int = 10, est: int = 50) -> str:
        due = (datetime.now() + timedelta(hours=hours)).strftime("%Y-%m-%dT%H:%M")
        result = cli("add", title, "--due", due, "--est", str(est))
        assert result.exit_code == 0, result.output
        return result.output.split()[1].rstrip(":")
    return _add


def listed(cli) -> list[dict]:
    result = cli("tasks", "--json")
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestTaskCommands:
    def test_add_and_list(self, cli, add_task):
        task_id = add_task("Essay draft", est=90)

        tasks = listed(cli)

        assert [t["id"] for t in tasks] == [task_id]
        assert tasks[0]["estMins"] == 90

    def test_add_date_only_means_end_of_day(self, cli):
        result = cli("add", "Reading", "--due", "2030-03-01")
        assert result.exit_code == 0
        assert listed(cli)[0]["dueAt"] == "2030-03-01T23:59:00"

    def test_add_rejects_bad_date(self, cli):
        result = cli("add", "Reading", "--due", "someday")
        assert result.exit_code != 0
        assert "YYYY-MM-DD" in result.output

    def test_add_rejects_bad_priority(self, cli):
        result = cli("add", "Reading", "-p", "9")
        assert result.exit_code != 0

    def test_add_rejects_bad_estimate(self, cli):
        result = cli("add", "Reading", "--est", "-5")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_add_rejects_zero_estimate(self, cli):
        result = cli("add", "Reading", "--est", "0")
        assert result.exit_code == 1
        assert "positive estimate" in result.output
        assert listed(cli) == []

    def test_empty_list(self, cli):
        result = cli("tasks")
        assert result.exit_code == 0
        assert "No tasks." in result.output

    def test_done_and_status_filter(self, cli, add_task):
        task_id = add_task("Quiz")

        assert cli("done", task_id).exit_code == 0

        assert json.loads(cli("tasks", "--status", "todo", "--json").output) == []
        assert len(json.loads(cli("tasks", "--status", "done", "--json").output)) == 1

    def test_rm(self, cli, add_task):
        task_id = add_task("Quiz")
        assert cli("rm", task_id).exit_code == 0
        assert listed(cli) == []

    def test_missing_task(self, cli):
        result = cli("done", "nope")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestPlanCommands:
    def test_plan_single(self, cli, add_task):
        task_id = add_task("Lab report", hours=48, est=50)

        result = cli("plan", task_id)

        assert result.exit_code == 0, result.output
        assert "Lab report:" in result.output
        assert len(listed(cli)[0]["plan"]["slots"]) == 2

    def test_week_json(self, cli, add_task):
        add_task("Lab report", hours=48, est=50)

        result = cli("week", "--json")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert len(payload["days"]) == 7
        assert payload["shortfalls"] == {}
        assert sum(len(d["slots"]) for d in payload["days"]) == 2

    def test_week_text_reports_shortfall(self, cli, add_task):
        add_task("Overdue", hours=-5, est=25)

        result = cli("week")

        assert result.exit_code == 0
        assert "did not fit" in result.output

    def test_slot_done_and_stats(self, cli, add_task):
        task_id = add_task("Lab report", hours=48, est=50)
        cli("plan", task_id)

        result = cli("slot", task_id, f"{task_id}-1")

        assert result.exit_code == 0, result.output
        assert "marked done" in result.output
        stats = json.loads(cli("stats", "--json").output)
        assert stats["completedMinutes"] == 25
        assert stats["totalPlannedMinutes"] == 50

    def test_slot_unknown(self, cli, add_task):
        task_id = add_task("Lab report")
        result = cli("slot", task_id, "nope-1")
        assert result.exit_code == 1

    def test_replan_unplanned(self, cli, add_task):
        task_id = add_task("Lab report")
        result = cli("replan", task_id)
        assert result.exit_code == 1
        assert "not planned" in result.output

    def test_deadlines(self, cli, add_task):
        add_task("Soon", hours=5)
        result = cli("deadlines")
        assert result.exit_code == 0
        assert "Urgent" in result.output
        assert "Soon" in result.output
