"""Shared fixtures: a scripted completion client and a factory for tool calls."""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Union

import pytest

from steward.llm.base import LLMResponse
from steward.tools.models import ToolCall


Step = Union[LLMResponse, Callable[[List[Dict[str, Any]]], LLMResponse], Exception]


class ScriptedLLMClient:
    """Completion client that replays a fixed list of responses.

    A step may be an LLMResponse, a callable taking the messages sent, or
    an exception to raise. Every call records the messages it received.
    When the script runs out, a plain "done" answer is returned.
    """

    def __init__(self, steps: Optional[List[Step]] = None, delay: float = 0.0):
        self.steps: List[Step] = list(steps or [])
        self.delay = delay
        self.calls: List[List[Dict[str, Any]]] = []
        self.tools_seen: List[Any] = []

    async def chat_completion(self, messages, tools=None, config=None) -> LLMResponse:
        self.calls.append(list(messages))
        self.tools_seen.append(tools)
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.steps:
            return LLMResponse(content="done")
        step = self.steps.pop(0)
        if isinstance(step, Exception):
            raise step
        if callable(step):
            return step(messages)
        return step


def tool_call(name: str, arguments: Optional[Dict[str, Any]] = None, call_id: str = "call_1") -> ToolCall:
    return ToolCall(id=call_id, name=name, arguments=arguments or {})


def answer(text: str) -> LLMResponse:
    return LLMResponse(content=text)


def calls(*tool_calls: ToolCall) -> LLMResponse:
    return LLMResponse(content="", tool_calls=list(tool_calls))


@pytest.fixture
def scripted_llm():
    """Factory: scripted_llm([answer("hi")]) -> ScriptedLLMClient."""
    def _make(steps=None, delay: float = 0.0) -> ScriptedLLMClient:
        return ScriptedLLMClient(steps, delay=delay)
    return _make
