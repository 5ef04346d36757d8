"""Tool definitions, registry, executor and the built-in tool set."""

from .builtin import CoreToolsOptions, calculator_tool, create_core_tools, evaluate_expression
from .executor import ToolExecutor
from .models import ToolCall, ToolDefinition, ToolResult
from .registry import ToolRegistry

__all__ = [
    "ToolCall",
    "ToolDefinition",
    "ToolResult",
    "ToolRegistry",
    "ToolExecutor",
    "CoreToolsOptions",
    "create_core_tools",
    "calculator_tool",
    "evaluate_expression",
]
