"""Tests for steward.agent.models - Message wire format"""

import json

from steward.agent.models import Message, MessageRole
from steward.tools.models import ToolCall


class TestMessageToOpenAI:

    def test_user_message(self):
        msg = Message.user("hello", source="proactive")
        assert msg.to_openai() == {"role": "user", "content": "hello"}
        assert msg.metadata == {"source": "proactive"}

    def test_assistant_with_tool_calls(self):
        msg = Message.assistant("", [ToolCall(id="c1", name="calculator", arguments={"expression": "1+1"})])
        wire = msg.to_openai()
        assert wire["role"] == "assistant"
        call = wire["tool_calls"][0]
        assert call["id"] == "c1"
        assert call["type"] == "function"
        assert call["function"]["name"] == "calculator"
        assert json.loads(call["function"]["arguments"]) == {"expression": "1+1"}

    def test_assistant_without_tool_calls(self):
        msg = Message.assistant("done", [])
        assert msg.tool_calls is None
        assert msg.to_openai() == {"role": "assistant", "content": "done"}

    def test_tool_result(self):
        msg = Message.tool_result("c1", "calculator", "2")
        assert msg.role == MessageRole.TOOL
        assert msg.to_openai() == {
            "role": "tool",
            "tool_call_id": "c1",
            "name": "calculator",
            "content": "2",
        }

    def test_system(self):
        assert Message.system("rules").to_openai() == {"role": "system", "content": "rules"}
