"""
Steward - a minimal agent runtime with proactive tasks

An Agent runs a reason/act loop against a completion client. A Scheduler
turns time-based Tasks into Pending Work Items on disk, and a Watcher
steers them into the conversation, waking the Agent if it is idle.

Quick Start:
    from steward import Steward

    async with Steward("config.yaml") as app:
        print(await app.chat("Remind me in 2 minutes to drink water"))

Lower level:
    from steward import Agent, ProactiveCoordinator, TaskCreate, TaskTrigger
    from steward.llm import LiteLLMClient

    agent = Agent(LiteLLMClient(model="deepseek-chat", provider_name="deepseek"))
    proactive = ProactiveCoordinator(agent, data_dir=".steward/proactive")
    await proactive.init()
    await proactive.schedule(TaskCreate(name="ping", trigger=TaskTrigger(at="2026-01-01T09:00:00")))
"""

from .agent import Agent, AgentConfig, AgentState, Message, MessageRole
from .app import Steward
from .errors import (
    ConfigError,
    LLMError,
    LLMTransportError,
    MaxIterationsError,
    StewardError,
    TaskNotFoundError,
    UnsupportedRecurrenceError,
)
from .proactive import (
    EventKind,
    PendingWorkItem,
    ProactiveCoordinator,
    ProactiveEvent,
    Scheduler,
    PendingWatcher,
    Task,
    TaskAction,
    TaskCreate,
    TaskKind,
    TaskResult,
    TaskTrigger,
)
from .protocols import LLMClientProtocol, SteerableAgent
from .tools import ToolCall, ToolDefinition, ToolRegistry, ToolResult

__version__ = "0.1.0"

__all__ = [
    "Steward",
    # Agent
    "Agent",
    "AgentConfig",
    "AgentState",
    "Message",
    "MessageRole",
    # Proactive
    "ProactiveCoordinator",
    "Scheduler",
    "PendingWatcher",
    "Task",
    "TaskCreate",
    "TaskKind",
    "TaskTrigger",
    "TaskAction",
    "TaskResult",
    "PendingWorkItem",
    "ProactiveEvent",
    "EventKind",
    # Tools
    "ToolCall",
    "ToolDefinition",
    "ToolRegistry",
    "ToolResult",
    # Protocols
    "LLMClientProtocol",
    "SteerableAgent",
    # Errors
    "StewardError",
    "ConfigError",
    "LLMError",
    "LLMTransportError",
    "MaxIterationsError",
    "TaskNotFoundError",
    "UnsupportedRecurrenceError",
]
