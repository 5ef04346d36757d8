"""Tests for steward.proactive.models - task records and serialization"""

import pytest

from steward.proactive.models import (
    Task,
    TaskAction,
    TaskCreate,
    TaskKind,
    TaskResult,
    TaskTrigger,
)


class TestTask:

    def test_to_dict_uses_camel_case(self):
        task = Task(
            id="task-1", kind=TaskKind.RECURRING, name="poll",
            trigger=TaskTrigger(cron="*/5 * * * *"),
            action=TaskAction(prompt="check", allowed_tools=["bash"]),
            last_run=1, next_run=2, run_count=3, max_runs=4, created_at=5,
            description="every five",
        )
        assert task.to_dict() == {
            "id": "task-1",
            "type": "recurring",
            "name": "poll",
            "trigger": {"cron": "*/5 * * * *"},
            "action": {"prompt": "check", "allowedTools": ["bash"]},
            "enabled": True,
            "runCount": 3,
            "createdAt": 5,
            "lastRun": 1,
            "nextRun": 2,
            "maxRuns": 4,
            "description": "every five",
        }

    def test_from_dict_accepts_snake_case(self):
        task = Task.from_dict({
            "id": "task-1", "kind": "scheduled", "run_count": 2,
            "next_run": 10, "max_runs": 1, "created_at": 7,
        })
        assert task.kind == TaskKind.SCHEDULED
        assert task.run_count == 2
        assert task.next_run == 10
        assert task.exhausted is True

    def test_from_dict_requires_id(self):
        with pytest.raises(ValueError):
            Task.from_dict({"type": "scheduled"})

    def test_is_due(self):
        task = Task(id="t", kind=TaskKind.SCHEDULED, next_run=100)
        assert task.is_due(100) is True
        assert task.is_due(99) is False

        task.enabled = False
        assert task.is_due(100) is False

    def test_is_due_without_next_run(self):
        assert Task(id="t", kind=TaskKind.EVENT).is_due(10**15) is False

    def test_stored_zero_max_runs_means_no_limit(self):
        task = Task.from_dict({"id": "t", "type": "scheduled", "runCount": 5, "maxRuns": 0})
        assert task.max_runs is None
        assert task.exhausted is False


class TestTaskCreate:

    def test_to_task_assigns_id_and_creation_time(self):
        task = TaskCreate(name="x", description="d").to_task(created_at_ms=42)

        assert task.id.startswith("task-42-")
        assert task.created_at == 42
        assert task.run_count == 0
        assert task.description == "d"

    def test_tasks_do_not_share_trigger_or_action(self):
        definition = TaskCreate(
            name="x",
            trigger=TaskTrigger(at="2026-01-15T12:00:00", event_data={"repo": "a"}),
            action=TaskAction(prompt="p", allowed_tools=["bash"]),
        )
        first = definition.to_task(created_at_ms=1)
        second = definition.to_task(created_at_ms=2)

        first.trigger.at = "2027-01-01T00:00:00"
        first.trigger.event_data["repo"] = "b"
        first.action.allowed_tools.append("calculator")

        assert second.trigger.at == "2026-01-15T12:00:00"
        assert second.trigger.event_data == {"repo": "a"}
        assert second.action.allowed_tools == ["bash"]
        assert definition.trigger.at == "2026-01-15T12:00:00"
        assert definition.action.allowed_tools == ["bash"]


class TestTaskResult:

    def test_round_trip(self):
        result = TaskResult(task_id="t", success=False, timestamp=9, error="boom")
        assert TaskResult.from_dict(result.to_dict()) == result
        assert result.filename == "t-9.json"
