"""
Steward LLM Client - completion client via litellm

Usage:
    from steward.llm import LiteLLMClient, LLMConfig

    config = LLMConfig(model="deepseek-chat", api_key="sk-xxx")
    client = LiteLLMClient(config=config, provider_name="deepseek")
    response = await client.chat_completion(messages=[...])
"""

from .base import BaseLLMClient, LLMConfig, LLMResponse, StopReason, ToolCall, Usage
from .litellm_client import LiteLLMClient, llm_settings_from_env

__all__ = [
    "BaseLLMClient",
    "LLMConfig",
    "LLMResponse",
    "StopReason",
    "ToolCall",
    "Usage",
    "LiteLLMClient",
    "llm_settings_from_env",
]
