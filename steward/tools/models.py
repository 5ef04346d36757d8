"""
Steward Tool Models - Data structures for LLM tool calling
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Union

ToolHandler = Callable[[Dict[str, Any]], Union[str, Awaitable[str]]]


@dataclass
class ToolCall:
    """
    Represents a tool call from LLM response

    Attributes:
        id: Unique call ID from LLM
        name: Tool name
        arguments: Parsed arguments dict
    """
    id: str
    name: str
    arguments: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "arguments": self.arguments,
        }



@dataclass
class ToolDefinition:
    """
    An executable capability exposed to the model

    Attributes:
        name: Unique tool name
        description: What the tool does (shown to the model)
        parameters: JSON Schema for the arguments object
        executor: Callable taking the arguments dict, returning text (sync or async)
    """
    name: str
    description: str
    executor: ToolHandler
    parameters: Dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    async def execute(self, arguments: Dict[str, Any]) -> str:
        result = self.executor(arguments)
        if inspect.isawaitable(result):
            result = await result
        return result if isinstance(result, str) else str(result)

    def to_openai_schema(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass
class ToolResult:
    """
    Result of a tool execution

    Attributes:
        tool_call_id: ID of the tool call this result is for
        name: Tool name
        content: String result content
        is_error: Whether execution failed
    """
    tool_call_id: str
    name: str
    content: str
    is_error: bool = False
