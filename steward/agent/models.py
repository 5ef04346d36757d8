"""Agent message and state models."""

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..tools.models import ToolCall


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass
class Message:
    """One turn in a conversation.

    A ``tool`` message carries the id and name of the call it answers; an
    ``assistant`` message may carry the tool calls it requested.
    """
    role: MessageRole
    content: str = ""
    tool_calls: Optional[List[ToolCall]] = None
    tool_call_id: Optional[str] = None
    name: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str, **metadata: Any) -> "Message":
        return cls(role=MessageRole.USER, content=content, metadata=dict(metadata))

    @classmethod
    def assistant(cls, content: str, tool_calls: Optional[List[ToolCall]] = None) -> "Message":
        return cls(role=MessageRole.ASSISTANT, content=content, tool_calls=tool_calls or None)

    @classmethod
    def tool_result(cls, tool_call_id: str, name: str, content: str) -> "Message":
        return cls(role=MessageRole.TOOL, content=content, tool_call_id=tool_call_id, name=name)

    def to_openai(self) -> Dict[str, Any]:
        """Wire format for OpenAI-compatible chat completion APIs."""
        if self.role == MessageRole.TOOL:
            return {
                "role": "tool",
                "tool_call_id": self.tool_call_id,
                "name": self.name,
                "content": self.content,
            }
        if self.role == MessageRole.ASSISTANT and self.tool_calls:
            return {
                "role": "assistant",
                "content": self.content,
                "tool_calls": [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {
                            "name": tc.name,
                            "arguments": json.dumps(tc.arguments, ensure_ascii=False),
                        },
                    }
                    for tc in self.tool_calls
                ],
            }
        return {"role": self.role.value, "content": self.content}


@dataclass
class AgentConfig:
    """Agent configuration."""
    system_prompt: str = "You are a helpful AI assistant."
    max_iterations: int = 10  # bound on loop iterations per run/continue
    llm_overrides: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AgentState:
    """Read-only snapshot of an Agent's run state."""
    is_running: bool
    message_count: int
    steering_queue_length: int
