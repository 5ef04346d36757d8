"""Steward Agent - one conversation, one ReAct loop, one steering queue."""

from .agent import Agent
from .models import AgentConfig, AgentState, Message, MessageRole

__all__ = ["Agent", "AgentConfig", "AgentState", "Message", "MessageRole"]
