"""Tool registry owned by a single Agent."""

import logging
from typing import Dict, Iterator, List, Optional

from .models import ToolDefinition

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Name -> ToolDefinition mapping, in registration order.

    Instance-owned; every Agent gets its own registry.
    """

    def __init__(self, tools: Optional[List[ToolDefinition]] = None):
        self._tools: Dict[str, ToolDefinition] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: ToolDefinition) -> None:
        """Add or replace a tool"""
        if tool.name in self._tools:
            logger.debug(f"[Tool] Replacing tool: {tool.name}")
        self._tools[tool.name] = tool

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def list_tools(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def describe(self) -> str:
        """One `- name: description` line per tool, or `(none)`"""
        lines = [f"- {t.name}: {t.description}" for t in self._tools.values()]
        return "\n".join(lines) or "(none)"

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self.list_tools())

    def __len__(self) -> int:
        return len(self._tools)
