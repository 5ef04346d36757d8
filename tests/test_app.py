"""Tests for steward.app - config loading and application wiring"""

from datetime import datetime, timedelta

import pytest

from conftest import ScriptedLLMClient, answer, calls, tool_call
from steward.app import Steward, _load_config
from steward.errors import ConfigError
from steward.proactive.models import TaskAction, TaskCreate, TaskTrigger


def _write_config(tmp_path, extra: str = "") -> str:
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "proactive:\n"
        f"  data_dir: {tmp_path / 'proactive'}\n"
        "  auto_start: false\n"
        "agent:\n"
        "  max_iterations: 5\n"
        "  system_prompt: You are a test steward.\n"
        "tools:\n"
        f"  root_dir: {tmp_path}\n"
        + extra
    )
    return str(config_file)


# =========================================================================
# _load_config - env var substitution
# =========================================================================


class TestLoadConfig:

    def test_substitutes_env_vars(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TEST_DATA_DIR", "/var/lib/steward")
        config_file = tmp_path / "config.yaml"
        config_file.write_text("data_dir: ${TEST_DATA_DIR}\n")
        cfg = _load_config(str(config_file))
        assert cfg["data_dir"] == "/var/lib/steward"

    def test_multiple_substitutions(self, monkeypatch, tmp_path):
        monkeypatch.setenv("VAR_A", "aaa")
        monkeypatch.setenv("VAR_B", "bbb")
        config_file = tmp_path / "config.yaml"
        config_file.write_text("a: ${VAR_A}\nb: ${VAR_B}\n")
        cfg = _load_config(str(config_file))
        assert cfg["a"] == "aaa"
        assert cfg["b"] == "bbb"

    def test_missing_env_var_raises(self, monkeypatch, tmp_path):
        monkeypatch.delenv("NONEXISTENT_VAR_12345", raising=False)
        config_file = tmp_path / "config.yaml"
        config_file.write_text("key: ${NONEXISTENT_VAR_12345}\n")
        with pytest.raises(ValueError, match="NONEXISTENT_VAR_12345"):
            _load_config(str(config_file))

    def test_inline_substitution(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOST", "myhost")
        config_file = tmp_path / "config.yaml"
        config_file.write_text("url: https://${HOST}.example.com/v1\n")
        cfg = _load_config(str(config_file))
        assert cfg["url"] == "https://myhost.example.com/v1"

    def test_nonexistent_file_raises(self):
        with pytest.raises(FileNotFoundError):
            _load_config("/nonexistent/path/config.yaml")

    def test_empty_file_is_empty_dict(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")
        assert _load_config(str(config_file)) == {}

    def test_nested_yaml_structure(self, monkeypatch, tmp_path):
        monkeypatch.setenv("API_KEY", "sk-test")
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "llm:\n  provider: deepseek\n  api_key: ${API_KEY}\n"
        )
        cfg = _load_config(str(config_file))
        assert cfg["llm"]["api_key"] == "sk-test"


# =========================================================================
# Steward - construction and lazy initialization
# =========================================================================


class TestStewardInit:

    def test_missing_llm_fields_raise(self, tmp_path):
        path = _write_config(tmp_path, "llm:\n  provider: openai\n")
        with pytest.raises(ConfigError, match="llm.model"):
            Steward(path)

    def test_no_config_and_no_api_key_fails_at_construction(self, monkeypatch):
        for var in ("DEEPSEEK_API_KEY", "KIMI_API_KEY", "OPENAI_API_KEY"):
            monkeypatch.delenv(var, raising=False)
        with pytest.raises(ConfigError, match="No API key found"):
            Steward()

    async def test_env_fallback_when_config_has_no_llm_section(self, tmp_path, monkeypatch):
        for var in ("DEEPSEEK_API_KEY", "KIMI_API_KEY", "OPENAI_API_KEY"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setenv("KIMI_API_KEY", "sk-kimi")

        app = Steward(_write_config(tmp_path))
        await app.start()
        try:
            assert app.agent.llm_client.provider == "kimi"
            assert app.agent.llm_client.config.api_key == "sk-kimi"
        finally:
            await app.shutdown()

    def test_injected_client_skips_llm_validation(self, tmp_path):
        path = _write_config(tmp_path, "llm:\n  provider: openai\n")
        app = Steward(path, llm_client=ScriptedLLMClient())
        assert app.config["llm"]["provider"] == "openai"

    def test_agent_unavailable_before_start(self, tmp_path):
        app = Steward(_write_config(tmp_path), llm_client=ScriptedLLMClient())
        with pytest.raises(RuntimeError):
            _ = app.agent
        with pytest.raises(RuntimeError):
            _ = app.proactive

    async def test_start_registers_tools(self, tmp_path):
        app = Steward(_write_config(tmp_path), llm_client=ScriptedLLMClient())
        await app.start()
        try:
            names = {tool.name for tool in app.agent.tools}
            assert {"fs_read_file", "fs_write_file", "fs_delete_path", "fs_list_dir", "bash"} <= names
            assert "calculator" in names
            assert "schedule_reminder" in names
            assert app.agent.messages[0].content.startswith("You are a test steward.")
            assert app.agent.config.max_iterations == 5
            assert not app.proactive.scheduler.running
        finally:
            await app.shutdown()

    async def test_builds_litellm_client_from_config(self, tmp_path):
        from steward.llm.litellm_client import LiteLLMClient

        path = _write_config(
            tmp_path,
            "llm:\n  provider: deepseek\n  model: deepseek-chat\n  api_key: sk-test\n  temperature: 0.2\n",
        )
        app = Steward(path)
        await app.start()
        try:
            client = app.agent.llm_client
            assert isinstance(client, LiteLLMClient)
            assert client.provider == "deepseek"
            assert client.config.temperature == 0.2
        finally:
            await app.shutdown()


# =========================================================================
# Steward - chat, schedule, shutdown
# =========================================================================


class TestStewardUsage:

    async def test_chat_returns_answer(self, tmp_path):
        llm = ScriptedLLMClient([answer("Hello there")])
        async with Steward(_write_config(tmp_path), llm_client=llm) as app:
            assert await app.chat("hi") == "Hello there"

    async def test_chat_through_reminder_tool_creates_task(self, tmp_path):
        llm = ScriptedLLMClient([
            calls(tool_call("schedule_reminder", {"delay_minutes": 5, "reminder_text": "stretch"})),
            answer("I'll remind you."),
        ])
        async with Steward(_write_config(tmp_path), llm_client=llm) as app:
            result = await app.chat("remind me in 5 minutes to stretch")
            tasks = await app.list_tasks()

        assert result == "I'll remind you."
        assert len(tasks) == 1
        assert tasks[0].description == "stretch"
        assert tasks[0].action.prompt == "Reminder: stretch"

    async def test_schedule_persists_task(self, tmp_path):
        at = (datetime.now() + timedelta(hours=1)).isoformat()
        async with Steward(_write_config(tmp_path), llm_client=ScriptedLLMClient()) as app:
            task = await app.schedule(TaskCreate(
                name="later",
                trigger=TaskTrigger(at=at),
                action=TaskAction(prompt="do it"),
            ))

        assert task.next_run is not None
        assert list((tmp_path / "proactive" / "tasks").glob("*.json"))

    async def test_clear_session(self, tmp_path):
        llm = ScriptedLLMClient([answer("ok")])
        async with Steward(_write_config(tmp_path), llm_client=llm) as app:
            await app.chat("hi")
            app.clear_session()
            assert len(app.agent.messages) == 1

    async def test_shutdown_resets_and_is_idempotent(self, tmp_path):
        app = Steward(_write_config(tmp_path), llm_client=ScriptedLLMClient())
        await app.start()
        await app.shutdown()
        await app.shutdown()
        with pytest.raises(RuntimeError):
            _ = app.agent
