"""
Steward LiteLLM Client - Completion client powered by litellm

Supports every OpenAI-compatible provider the runtime is configured for:
- DeepSeek
- Kimi (Moonshot)
- OpenAI
- Anthropic, Azure OpenAI, Gemini, Ollama through litellm routing
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from ..errors import ConfigError, LLMTransportError
from .base import (
    BaseLLMClient,
    LLMConfig,
    LLMResponse,
    StopReason,
    ToolCall,
    Usage,
)

logger = logging.getLogger(__name__)

DEEPSEEK_URL = "https://api.deepseek.com/v1"
KIMI_URL = "https://api.moonshot.cn/v1"
OPENAI_URL = "https://api.openai.com/v1"

# Provider -> default environment variable for API key
_PROVIDER_ENV_VARS: Dict[str, Optional[str]] = {
    "openai": "OPENAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "kimi": "KIMI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_OPENAI_API_KEY",
    "gemini": "GOOGLE_API_KEY",
    "ollama": None,
}

# Checked in order when no config file names a provider
_ENV_PROVIDER_PRIORITY: List[Tuple[str, str, str]] = [
    ("deepseek", DEEPSEEK_URL, "deepseek-chat"),
    ("kimi", KIMI_URL, "moonshot-v1-8k"),
    ("openai", OPENAI_URL, "gpt-4o-mini"),
]


def build_litellm_model_string(provider: str, model: str) -> str:
    """Map provider + model to the litellm model string.

    litellm uses prefixed model strings to route to the correct provider.

    Args:
        provider: Provider name (openai, deepseek, kimi, anthropic, azure, gemini, ollama).
        model: Raw model name (e.g. "deepseek-chat", "gpt-4o-mini").

    Returns:
        litellm-compatible model string.
    """
    provider = provider.lower()
    if provider == "openai":
        return model
    if provider == "deepseek":
        return f"deepseek/{model}"
    if provider == "kimi":
        # Moonshot speaks the OpenAI protocol via base_url
        return f"openai/{model}"
    if provider in ("anthropic", "azure", "gemini", "ollama"):
        return f"{provider}/{model}"
    return model


def llm_settings_from_env() -> Tuple[str, LLMConfig]:
    """Resolve provider and LLMConfig from environment variables.

    Priority: DEEPSEEK_API_KEY > KIMI_API_KEY > OPENAI_API_KEY. Each provider
    honours ``<PROVIDER>_BASE_URL`` and ``<PROVIDER>_MODEL`` overrides.

    Raises:
        ConfigError: if none of the keys is set.
    """
    for provider, default_url, default_model in _ENV_PROVIDER_PRIORITY:
        prefix = provider.upper()
        api_key = os.environ.get(f"{prefix}_API_KEY")
        if api_key:
            return provider, LLMConfig(
                api_key=api_key,
                base_url=os.environ.get(f"{prefix}_BASE_URL") or default_url,
                model=os.environ.get(f"{prefix}_MODEL") or default_model,
            )

    raise ConfigError(
        "No API key found. Please set one of:\n"
        "  export DEEPSEEK_API_KEY=sk-...\n"
        "  export KIMI_API_KEY=sk-...\n"
        "  export OPENAI_API_KEY=sk-..."
    )


def parse_tool_arguments(raw: Any) -> Dict[str, Any]:
    """Decode tool-call arguments; malformed JSON degrades to an empty dict."""
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning(f"[LLM] Malformed tool arguments, using {{}}: {str(raw)[:100]}")
        return {}
    return parsed if isinstance(parsed, dict) else {}


class LiteLLMClient(BaseLLMClient):
    """
    Completion client powered by litellm.

    Example:
        from steward.llm import LiteLLMClient, LLMConfig

        config = LLMConfig(model="deepseek-chat", api_key="sk-xxx")
        client = LiteLLMClient(config=config, provider_name="deepseek")
        response = await client.chat_completion([
            {"role": "user", "content": "Hello!"}
        ])
    """

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        provider_name: str = "openai",
        **kwargs,
    ):
        """
        Initialize LiteLLMClient.

        Args:
            config: LLMConfig instance.
            provider_name: Provider name (openai, deepseek, kimi, anthropic, azure, gemini, ollama).
            **kwargs: Overrides forwarded to BaseLLMClient / LLMConfig.
        """
        if config is None:
            if "model" not in kwargs:
                raise ValueError("model is required")
            model = kwargs.pop("model")
            config = LLMConfig(model=model, **kwargs)

        super().__init__(config, **kwargs)

        self.provider = provider_name.lower()
        self._litellm_model = build_litellm_model_string(self.provider, self.config.model)

        # Resolve API key: explicit config > env var
        api_key = self.config.api_key
        if not api_key:
            env_var = _PROVIDER_ENV_VARS.get(self.provider)
            if env_var:
                api_key = os.environ.get(env_var)

        self._base_kwargs: Dict[str, Any] = {
            "timeout": self.config.timeout,
            "num_retries": self.config.max_retries,
        }
        if self.config.base_url:
            self._base_kwargs["api_base"] = self.config.base_url
        if api_key:
            self._base_kwargs["api_key"] = api_key

        logger.info(
            f"LiteLLMClient initialized: provider={self.provider}, "
            f"litellm_model={self._litellm_model}"
        )

    async def _call_api(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        **kwargs,
    ) -> LLMResponse:
        """Make a non-streaming call via litellm.acompletion."""
        import litellm

        model = kwargs.get("model") or self._litellm_model
        params: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": kwargs.get("temperature", self.config.temperature),
            "max_tokens": kwargs.get("max_tokens", self.config.max_tokens),
            **self._base_kwargs,
        }

        if tools:
            params["tools"] = tools
            params["tool_choice"] = kwargs.get("tool_choice", "auto")

        logger.debug(
            f"[LLM] model={model}, tools={len(tools) if tools else 0}, "
            f"messages={len(messages)}"
        )

        try:
            response = await litellm.acompletion(**params)
        except Exception as e:
            status_code = getattr(e, "status_code", None)
            raise LLMTransportError(f"LLM API error: {status_code or ''} {e}".strip(), status_code) from e

        if not response.choices:
            raise LLMTransportError("Invalid LLM response: no choices")

        return self._parse_response(response)

    def _parse_response(self, response: Any) -> LLMResponse:
        """Convert an OpenAI-shaped response into LLMResponse."""
        choice = response.choices[0]
        message = choice.message

        tool_calls = None
        if getattr(message, "tool_calls", None):
            tool_calls = [
                ToolCall(
                    id=tc.id,
                    name=tc.function.name,
                    arguments=parse_tool_arguments(tc.function.arguments),
                )
                for tc in message.tool_calls
            ]

        usage = None
        if getattr(response, "usage", None):
            usage = Usage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return LLMResponse(
            content=message.content or "",
            tool_calls=tool_calls,
            stop_reason=self._parse_stop_reason(choice.finish_reason),
            usage=usage,
            model=getattr(response, "model", None),
            raw_response=response,
        )

    @staticmethod
    def _parse_stop_reason(finish_reason: Optional[str]) -> StopReason:
        """Parse OpenAI finish_reason to StopReason"""
        mapping = {
            "stop": StopReason.END_TURN,
            "length": StopReason.MAX_TOKENS,
            "tool_calls": StopReason.TOOL_USE,
            "function_call": StopReason.TOOL_USE,
        }
        return mapping.get(finish_reason or "stop", StopReason.END_TURN)
