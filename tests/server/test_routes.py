"""Tests for steward.server - HTTP routes and the event broadcaster"""

import pytest
from fastapi.testclient import TestClient

from conftest import ScriptedLLMClient, answer
from steward.app import Steward
from steward.proactive.models import EventKind, ProactiveEvent
from steward.server.app import EventBroadcaster, api, set_app


@pytest.fixture
def llm():
    return ScriptedLLMClient([answer("Hi from the server")])


@pytest.fixture
def client(tmp_path, llm):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        f"proactive:\n  data_dir: {tmp_path / 'data'}\n  auto_start: false\n"
    )
    set_app(Steward(str(config_file), llm_client=llm))
    with TestClient(api) as c:
        yield c
    set_app(None)


def _create(client, **body):
    body.setdefault("prompt", "ping")
    return client.post("/api/tasks", json=body)


# =========================================================================
# Health + chat
# =========================================================================


class TestChat:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_chat(self, client):
        resp = client.post("/chat", json={"message": "hello"})
        assert resp.status_code == 200
        assert resp.json() == {"response": "Hi from the server"}

    def test_messages_and_clear(self, client):
        client.post("/chat", json={"message": "hello"})

        roles = [m["role"] for m in client.get("/api/messages").json()]
        assert roles == ["system", "user", "assistant"]

        assert client.post("/api/clear-session").json() == {"status": "ok"}
        assert [m["role"] for m in client.get("/api/messages").json()] == ["system"]

    def test_chat_requires_message(self, client):
        assert client.post("/chat", json={}).status_code == 422


# =========================================================================
# Task CRUD
# =========================================================================


class TestTasks:

    def test_create_delayed_task(self, client):
        resp = _create(client, name="ping", delay_seconds=60)
        assert resp.status_code == 200
        task = resp.json()
        assert task["name"] == "ping"
        assert task["type"] == "scheduled"
        assert task["enabled"] is True
        assert "nextRun" in task

        listed = client.get("/api/tasks").json()
        assert [t["id"] for t in listed] == [task["id"]]

    def test_create_recurring_task(self, client):
        resp = _create(client, cron="*/5 * * * *", max_runs=2, allowed_tools=["calculator"])
        assert resp.status_code == 200
        task = resp.json()
        assert task["type"] == "recurring"
        assert task["maxRuns"] == 2
        assert task["action"]["allowedTools"] == ["calculator"]

    def test_unsupported_cron_is_400(self, client):
        resp = _create(client, cron="0 9 * * 1")
        assert resp.status_code == 400
        assert "Unsupported" in resp.json()["detail"]

    def test_bad_timestamp_is_400(self, client):
        assert _create(client, at="not a time").status_code == 400

    def test_missing_trigger_is_400(self, client):
        assert _create(client).status_code == 400

    def test_zero_max_runs_is_400(self, client):
        resp = _create(client, delay_seconds=60, max_runs=0)
        assert resp.status_code == 400
        assert "max_runs" in resp.json()["detail"]

    def test_toggle(self, client):
        task_id = _create(client, delay_seconds=60).json()["id"]

        resp = client.patch(f"/api/tasks/{task_id}", json={"enabled": False})
        assert resp.status_code == 200
        assert resp.json()["enabled"] is False

    def test_toggle_unknown_is_404(self, client):
        assert client.patch("/api/tasks/nope", json={"enabled": True}).status_code == 404

    def test_delete(self, client):
        task_id = _create(client, delay_seconds=60).json()["id"]

        assert client.delete(f"/api/tasks/{task_id}").json() == {"status": "deleted"}
        assert client.get("/api/tasks").json() == []
        assert client.delete(f"/api/tasks/{task_id}").status_code == 404

    def test_results_empty(self, client):
        task_id = _create(client, delay_seconds=60).json()["id"]
        assert client.get(f"/api/tasks/{task_id}/results").json() == []


# =========================================================================
# Unconfigured server
# =========================================================================


class TestUnconfigured:

    @pytest.fixture
    def bare_client(self, tmp_path, monkeypatch):
        for var in ("DEEPSEEK_API_KEY", "KIMI_API_KEY", "OPENAI_API_KEY"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setattr("steward.server.app._config_path", str(tmp_path / "missing.yaml"))
        set_app(None)
        with TestClient(api) as c:
            yield c
        set_app(None)

    def test_chat_is_503(self, bare_client):
        resp = bare_client.post("/chat", json={"message": "hello"})
        assert resp.status_code == 503
        assert "Not configured" in resp.json()["detail"]

    def test_tasks_are_503(self, bare_client):
        assert bare_client.get("/api/tasks").status_code == 503

    def test_health_still_ok(self, bare_client):
        assert bare_client.get("/health").status_code == 200


# =========================================================================
# EventBroadcaster
# =========================================================================


class TestEventBroadcaster:

    async def test_publish_to_all_clients(self):
        broadcaster = EventBroadcaster()
        a = broadcaster.subscribe()
        b = broadcaster.subscribe()

        broadcaster.publish(ProactiveEvent(kind=EventKind.TASK_TRIGGERED, task_id="t1", item_name="t1-1.json"))

        for queue in (a, b):
            payload = queue.get_nowait()
            assert payload["kind"] == "task-triggered"
            assert payload["task_id"] == "t1"
            assert payload["item_name"] == "t1-1.json"

    async def test_unsubscribe(self):
        broadcaster = EventBroadcaster()
        queue = broadcaster.subscribe()
        broadcaster.unsubscribe(queue)

        broadcaster.publish(ProactiveEvent(kind=EventKind.TASK_CREATED))

        assert broadcaster.client_count == 0
        assert queue.empty()

    async def test_full_queue_drops_event(self):
        broadcaster = EventBroadcaster(max_queue=1)
        queue = broadcaster.subscribe()

        broadcaster.publish(ProactiveEvent(kind=EventKind.TASK_CREATED))
        broadcaster.publish(ProactiveEvent(kind=EventKind.TASK_DELETED))

        assert queue.qsize() == 1
        assert queue.get_nowait()["kind"] == "task-created"
