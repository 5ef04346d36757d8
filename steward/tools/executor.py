"""
Steward Tool Executor - Execute a single tool call

Failures never escape: an unknown tool or an exception inside the tool
becomes an error ToolResult whose content is shown to the model.
"""

import json
import logging
from typing import Any

from .models import ToolCall, ToolResult
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

LOG_PREVIEW_CHARS = 200


class ToolExecutor:
    """
    Executes tool calls against a ToolRegistry

    Usage:
        executor = ToolExecutor(registry)
        result = await executor.execute(ToolCall(id="1", name="calculator", arguments={...}))
    """

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def execute(self, tool_call: ToolCall) -> ToolResult:
        """Execute a single tool call"""
        logger.info(f"[Tool] {tool_call.name}({json.dumps(tool_call.arguments, ensure_ascii=False, default=str)})")
        tool = self.registry.get_tool(tool_call.name)

        if not tool:
            error = f'Error: Tool "{tool_call.name}" not found'
            logger.warning(f"[Tool] {error}")
            return ToolResult(
                tool_call_id=tool_call.id,
                name=tool_call.name,
                content=error,
                is_error=True,
            )

        try:
            content = await tool.execute(tool_call.arguments)
        except Exception as e:
            error = f"Error: {_error_message(e)}"
            logger.warning(f"[Tool] {tool_call.name} failed: {error}")
            return ToolResult(
                tool_call_id=tool_call.id,
                name=tool_call.name,
                content=error,
                is_error=True,
            )

        preview = content[:LOG_PREVIEW_CHARS] + ("..." if len(content) > LOG_PREVIEW_CHARS else "")
        logger.info(f"[Tool] {tool_call.name} OK: {preview}")
        return ToolResult(tool_call_id=tool_call.id, name=tool_call.name, content=content)


def _error_message(error: Any) -> str:
    return str(error) or type(error).__name__
