"""Tests for steward.proactive.store - one-file-per-record JSON persistence"""

import json

import pytest

from steward.proactive.models import PendingWorkItem, Task, TaskKind, TaskResult, TaskTrigger
from steward.proactive.store import JsonDirectoryStore, PendingStore, ResultLog, TaskStore


# =========================================================================
# JsonDirectoryStore
# =========================================================================


class TestJsonDirectoryStore:

    def test_write_is_atomic_and_leaves_no_temp_files(self, tmp_path):
        store = JsonDirectoryStore(str(tmp_path / "recs"))
        store._write_json("a", {"x": 1})

        assert [p.name for p in (tmp_path / "recs").iterdir()] == ["a.json"]
        assert store._read_json("a.json") == {"x": 1}

    def test_list_names_sorted_and_skips_hidden(self, tmp_path):
        store = JsonDirectoryStore(str(tmp_path))
        (tmp_path / "b.json").write_text("{}")
        (tmp_path / "a.json").write_text("{}")
        (tmp_path / ".rec-123.tmp").write_text("{}")
        (tmp_path / ".hidden.json").write_text("{}")
        (tmp_path / "notes.txt").write_text("")

        assert store.list_names() == ["a.json", "b.json"]

    def test_list_names_missing_dir(self, tmp_path):
        assert JsonDirectoryStore(str(tmp_path / "nope")).list_names() == []

    def test_path_for_blocks_traversal(self, tmp_path):
        store = JsonDirectoryStore(str(tmp_path))
        path = store.path_for("../../etc/passwd")
        assert path.parent == tmp_path

    def test_delete_missing_returns_false(self, tmp_path):
        store = JsonDirectoryStore(str(tmp_path))
        assert store._delete("ghost.json") is False


# =========================================================================
# TaskStore
# =========================================================================


class TestTaskStore:

    async def test_round_trip(self, tmp_path):
        store = TaskStore(str(tmp_path))
        task = Task(
            id="task-1", kind=TaskKind.RECURRING, name="poll",
            trigger=TaskTrigger(cron="*/5 * * * *"), next_run=123, max_runs=3,
        )
        await store.save(task)

        loaded = await store.load_all()

        assert loaded["task-1"].to_dict() == task.to_dict()

    async def test_delete(self, tmp_path):
        store = TaskStore(str(tmp_path))
        await store.save(Task(id="task-1", kind=TaskKind.SCHEDULED))

        assert await store.delete("task-1") is True
        assert await store.delete("task-1") is False
        assert await store.load_all() == {}


# =========================================================================
# PendingStore
# =========================================================================


class TestPendingStore:

    async def test_filename_embeds_task_and_timestamp(self, tmp_path):
        store = PendingStore(str(tmp_path))
        name = await store.write(PendingWorkItem("task-9", "nine", "go", 1700000000000))

        assert name == "task-9-1700000000000.json"
        data = json.loads((tmp_path / name).read_text())
        assert data == {"taskId": "task-9", "taskName": "nine", "prompt": "go", "timestamp": 1700000000000}

    async def test_listeners_get_filename(self, tmp_path):
        store = PendingStore(str(tmp_path))
        seen = []
        store.subscribe(seen.append)
        store.subscribe(seen.append)  # no duplicates

        name = await store.write(PendingWorkItem("t", "n", "p", 1))

        assert seen == [name]
        store.unsubscribe(seen.append)
        await store.write(PendingWorkItem("t", "n", "p", 2))
        assert seen == [name]

    async def test_listener_error_does_not_fail_write(self, tmp_path):
        store = PendingStore(str(tmp_path))

        def broken(name):
            raise RuntimeError("nope")

        store.subscribe(broken)
        name = await store.write(PendingWorkItem("t", "n", "p", 1))

        assert store.exists(name)

    async def test_read_missing_raises(self, tmp_path):
        store = PendingStore(str(tmp_path))
        with pytest.raises(FileNotFoundError):
            await store.read("missing.json")

    async def test_read_accepts_snake_case(self, tmp_path):
        (tmp_path / "x.json").write_text(
            '{"task_id": "t", "task_name": "n", "prompt": "p", "timestamp": 3, "allowed_tools": ["bash"]}'
        )
        item = await PendingStore(str(tmp_path)).read("x.json")
        assert item.task_id == "t"
        assert item.allowed_tools == ["bash"]


# =========================================================================
# ResultLog
# =========================================================================


class TestResultLog:

    async def test_append_never_overwrites(self, tmp_path):
        log = ResultLog(str(tmp_path))
        first = await log.append(TaskResult("t", True, 5, output="a"))
        second = await log.append(TaskResult("t", False, 5, error="b"))

        assert first == "t-5.json"
        assert second == "t-5-1.json"
        results = await log.list()
        assert {r.output for r in results} == {"a", None}

    async def test_list_filters_and_limits(self, tmp_path):
        log = ResultLog(str(tmp_path))
        for ts in (1, 2, 3):
            await log.append(TaskResult("a", True, ts))
        await log.append(TaskResult("b", True, 4))

        results = await log.list(task_id="a", limit=2)

        assert [r.timestamp for r in results] == [3, 2]
