"""
Steward Protocols - Abstract interfaces for dependency injection

These protocols define the contracts that collaborators of the Agent and
the proactive pipeline must fulfill.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, runtime_checkable

from .llm.base import LLMResponse


@runtime_checkable
class LLMClientProtocol(Protocol):
    """
    Abstract interface for completion clients

    Implement this protocol to drive the Agent with any provider.

    Example:
        class MyLLMClient:
            async def chat_completion(self, messages, tools=None, config=None):
                return LLMResponse(content="Hello!")
    """

    async def chat_completion(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Any]] = None,
        config: Optional[Dict[str, Any]] = None
    ) -> LLMResponse:
        """
        Call the model with the full conversation

        Args:
            messages: OpenAI-format message dicts
            tools: Optional tool catalogue (ToolDefinition or schema dicts)
            config: Optional per-call overrides (temperature, model, ...)

        Returns:
            LLMResponse with content and optional tool_calls
        """
        ...


@runtime_checkable
class SteerableAgent(Protocol):
    """The narrow surface the proactive pipeline is allowed to touch"""

    def steer(self, message: Any) -> None:
        ...

    async def continue_(self) -> str:
        ...

    def is_idle(self) -> bool:
        ...

    async def wait_until_idle(self) -> None:
        ...


# Pending Work Item handler: receives the parsed item, raises on failure
PendingItemHandler = Callable[[Any], Awaitable[None]]
