"""
Steward Agent - ReAct loop with steering support

Core loop: Reasoning (LLM) -> Acting (Tools) -> Observation (Results).

External work reaches a conversation through ``steer()``, which only
appends to a FIFO queue. The loop drains that queue, one message per
iteration, before each model call. ``continue_()`` wakes an idle Agent
without new user input.
"""

import asyncio
import logging
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from ..errors import MaxIterationsError
from ..protocols import LLMClientProtocol
from ..tools.executor import ToolExecutor
from ..tools.models import ToolDefinition
from ..tools.registry import ToolRegistry
from .models import AgentConfig, AgentState, Message, MessageRole

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 50


class Agent:
    """
    One conversation driven by a completion client.

    Single-writer: the message log and the steering queue are only mutated
    through this class's methods, all on one event loop.

    Example:
        agent = Agent(llm_client, AgentConfig(system_prompt="Be brief."), tools=[calculator_tool])
        answer = await agent.run("What is 10 + 5?")

        agent.steer(Message.user("[Proactive Task: ping]\\nping"))
        if agent.is_idle():
            await agent.continue_()
    """

    def __init__(
        self,
        llm_client: LLMClientProtocol,
        config: Optional[AgentConfig] = None,
        tools: Optional[List[ToolDefinition]] = None,
    ):
        self.llm_client = llm_client
        self.config = config or AgentConfig()
        self.tools = ToolRegistry(tools)
        self._executor = ToolExecutor(self.tools)

        self._messages: List[Message] = [Message.system(self._build_system_prompt())]
        self._steering_queue: Deque[Message] = deque()
        self._is_running = False
        self._idle = asyncio.Condition()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self, user_input: str) -> str:
        """Append a user message and run the loop to a final answer.

        Waits for an in-flight loop to reach Idle first.
        """
        await self.wait_until_idle()
        self._messages.append(Message.user(user_input))
        logger.info(f"[Agent] User: {user_input[:PREVIEW_CHARS]}")
        return await self._run_loop()

    def steer(self, message: Message) -> None:
        """Queue a message for the loop's next checkpoint. Never blocks."""
        self._steering_queue.append(message)
        logger.info(f"[Agent] Message queued for steering ({len(self._steering_queue)} pending)")

    async def continue_(self) -> str:
        """Resume from the current state without new input.

        Returns "" without touching the log if the loop is already running.
        """
        if self._is_running:
            logger.info("[Agent] Already running")
            return ""
        return await self._run_loop()

    def is_idle(self) -> bool:
        return not self._is_running

    async def wait_until_idle(self) -> None:
        """Block until the loop is not running."""
        async with self._idle:
            await self._idle.wait_for(self.is_idle)

    def register_tool(self, tool: ToolDefinition) -> None:
        """Add or replace a tool and refresh the system prompt's tool listing."""
        self.tools.register(tool)
        if self._messages and self._messages[0].role == MessageRole.SYSTEM:
            self._messages[0].content = self._build_system_prompt()

    def clear(self) -> None:
        """Reset the log to the system message and drop queued steering."""
        system = self._messages[0] if self._messages else None
        self._messages = [system] if system else []
        self._steering_queue.clear()

    @property
    def messages(self) -> List[Message]:
        """Snapshot of the message log."""
        return list(self._messages)

    @property
    def state(self) -> AgentState:
        return AgentState(
            is_running=self._is_running,
            message_count=len(self._messages),
            steering_queue_length=len(self._steering_queue),
        )

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def _run_loop(self) -> str:
        if self._is_running:
            raise RuntimeError("Agent is already running")

        self._is_running = True
        try:
            return await self._iterate()
        finally:
            self._is_running = False
            await self._notify_idle()

    async def _iterate(self) -> str:
        max_iterations = self.config.max_iterations

        for iteration in range(1, max_iterations + 1):
            logger.debug(f"[Agent] iteration {iteration}/{max_iterations}")

            # Steering takes priority over the model call
            if self._steering_queue:
                steered = self._steering_queue.popleft()
                self._messages.append(steered)
                logger.info(f"[Agent] Processing steered message: {steered.content[:PREVIEW_CHARS]}...")

            last = self._messages[-1] if self._messages else None
            if last is not None and last.role == MessageRole.ASSISTANT:
                if not self._steering_queue:
                    return last.content
                continue

            response = await self.llm_client.chat_completion(
                [m.to_openai() for m in self._messages],
                tools=self.tools.list_tools() or None,
                config=self.config.llm_overrides or None,
            )

            if response.tool_calls:
                self._messages.append(Message.assistant(response.content or "", response.tool_calls))
                logger.info(f"[Agent] calling: {', '.join(tc.name for tc in response.tool_calls)}")
                for tool_call in response.tool_calls:
                    result = await self._executor.execute(tool_call)
                    self._messages.append(
                        Message.tool_result(result.tool_call_id, result.name, result.content)
                    )
                continue

            content = response.content or ""
            self._messages.append(Message.assistant(content))
            logger.info("[Agent] Done")
            return content

        logger.error(f"[Agent] Max iterations ({max_iterations}) reached")
        raise MaxIterationsError(max_iterations)

    async def _notify_idle(self) -> None:
        async with self._idle:
            self._idle.notify_all()

    def _build_system_prompt(self) -> str:
        return f"{self.config.system_prompt}\n\nAvailable tools:\n{self.tools.describe()}"

    def __repr__(self) -> str:
        state: Dict[str, Any] = vars(self.state)
        return f"Agent({state})"
