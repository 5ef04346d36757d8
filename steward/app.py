"""
Steward Application - Single entry point for an Agent with proactive tasks.

Usage:
    from steward import Steward

    app = Steward("config.yaml")        # or Steward() to configure from env
    answer = await app.chat("Remind me in 5 minutes to stretch")
    ...
    await app.shutdown()
"""

import logging
import os
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from .agent.agent import Agent
from .agent.models import AgentConfig
from .errors import ConfigError
from .llm.base import LLMConfig
from .llm.litellm_client import LiteLLMClient, llm_settings_from_env
from .proactive.coordinator import DEFAULT_DATA_DIR, ProactiveCoordinator
from .proactive.models import ProactiveEvent, Task, TaskCreate
from .protocols import LLMClientProtocol
from .tools.builtin import CoreToolsOptions, calculator_tool, create_core_tools
from .tools.schedule import create_schedule_tool

logger = logging.getLogger(__name__)


def _load_config(path: str) -> dict:
    """Read YAML config file with ${VAR} environment variable substitution."""
    try:
        import yaml
    except ImportError:
        raise ImportError(
            "pyyaml is required for config file loading. "
            "Install with: pip install pyyaml"
        )

    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()

    # Replace ${VAR} with environment variable values
    def _replace_env(match):
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ValueError(
                f"Environment variable '{var_name}' not set "
                f"(referenced in config file '{path}')"
            )
        return value

    resolved = re.sub(r"\$\{(\w+)\}", _replace_env, raw)
    return yaml.safe_load(resolved) or {}


class Steward:
    """
    Steward Application entry point.

    Sync constructor reads config; async initialization (LLM client, tools,
    proactive pipeline) is deferred to the first chat() or start() call.

    Args:
        config: Path to YAML configuration file. When omitted the LLM is
            configured from DEEPSEEK_API_KEY / KIMI_API_KEY / OPENAI_API_KEY.
        llm_client: Optional pre-built completion client; skips LLM config.
        on_event: Optional callback for proactive events.
    """

    def __init__(
        self,
        config: Optional[str] = None,
        llm_client: Optional[LLMClientProtocol] = None,
        on_event: Optional[Callable[[ProactiveEvent], None]] = None,
    ):
        self._config: Dict[str, Any] = _load_config(config) if config else {}
        self._on_event = on_event

        # Resolve the LLM settings up front so an unusable configuration fails here
        llm_cfg = self._config.get("llm")
        self._env_llm_settings: Optional[Tuple[str, LLMConfig]] = None
        if llm_client is None:
            if llm_cfg is not None:
                if not llm_cfg.get("provider") or not llm_cfg.get("model"):
                    raise ConfigError("Missing required config fields: 'llm.provider' and 'llm.model'")
            else:
                self._env_llm_settings = llm_settings_from_env()

        self._initialized = False
        self._llm_client = llm_client
        self._agent: Optional[Agent] = None
        self._proactive: Optional[ProactiveCoordinator] = None

    async def _ensure_initialized(self) -> None:
        """Lazy initialization - runs once on first chat()/start() call."""
        if self._initialized:
            return

        cfg = self._config

        # 1. LLM client
        if self._llm_client is None:
            self._llm_client = self._build_llm_client(cfg.get("llm"))

        # 2. Agent with core tools
        agent_cfg = cfg.get("agent") or {}
        tools_cfg = cfg.get("tools") or {}
        options = CoreToolsOptions(
            root_dir=tools_cfg.get("root_dir"),
            allow_absolute_paths=bool(tools_cfg.get("allow_absolute_paths", False)),
            bash_timeout_seconds=float(tools_cfg.get("bash_timeout_seconds", 30)),
            max_read_bytes=int(tools_cfg.get("max_read_bytes", 1_000_000)),
        )
        agent_config = AgentConfig(max_iterations=int(agent_cfg.get("max_iterations", 10)))
        if agent_cfg.get("system_prompt"):
            agent_config.system_prompt = agent_cfg["system_prompt"]
        self._agent = Agent(
            self._llm_client,
            agent_config,
            tools=[*create_core_tools(options), calculator_tool],
        )

        # 3. Proactive pipeline + reminder tool
        proactive_cfg = cfg.get("proactive") or {}
        self._proactive = ProactiveCoordinator(
            self._agent,
            data_dir=proactive_cfg.get("data_dir", DEFAULT_DATA_DIR),
            auto_start=bool(proactive_cfg.get("auto_start", True)),
            tick_seconds=float(proactive_cfg.get("tick_seconds", 10)),
            scan_seconds=float(proactive_cfg.get("scan_seconds", 5)),
            on_event=self._on_event,
        )
        await self._proactive.init()
        self._agent.register_tool(create_schedule_tool(self._proactive))

        self._initialized = True
        logger.info(f"Steward initialized with {len(self._agent.tools)} tools")

    def _build_llm_client(self, llm_cfg: Optional[Dict[str, Any]]) -> LLMClientProtocol:
        if llm_cfg:
            provider = llm_cfg["provider"]
            llm_config = LLMConfig(
                model=llm_cfg["model"],
                api_key=llm_cfg.get("api_key"),
                base_url=llm_cfg.get("base_url"),
            )
            if llm_cfg.get("temperature") is not None:
                llm_config.temperature = float(llm_cfg["temperature"])
        else:
            provider, llm_config = self._env_llm_settings or llm_settings_from_env()

        logger.info(f"LLM client: provider={provider}, model={llm_config.model}")
        return LiteLLMClient(config=llm_config, provider_name=provider)

    @property
    def config(self) -> dict:
        return self._config

    @property
    def agent(self) -> Agent:
        if self._agent is None:
            raise RuntimeError("Steward not initialized; call start() first")
        return self._agent

    @property
    def proactive(self) -> ProactiveCoordinator:
        if self._proactive is None:
            raise RuntimeError("Steward not initialized; call start() first")
        return self._proactive

    async def start(self) -> None:
        await self._ensure_initialized()

    async def chat(self, message: str) -> str:
        """Send one user message and return the Agent's final answer."""
        await self._ensure_initialized()
        return await self.agent.run(message)

    async def schedule(self, definition: TaskCreate) -> Task:
        await self._ensure_initialized()
        return await self.proactive.schedule(definition)

    async def list_tasks(self) -> List[Task]:
        await self._ensure_initialized()
        return self.proactive.list_tasks()

    def clear_session(self) -> None:
        if self._agent is not None:
            self._agent.clear()

    async def shutdown(self) -> None:
        """Stop the proactive pipeline and close the completion client."""
        if not self._initialized:
            return
        try:
            if self._proactive:
                await self._proactive.stop()
            close = getattr(self._llm_client, "close", None)
            if close is not None:
                await close()
        except Exception as e:
            logger.warning(f"Error during shutdown: {e}")
        finally:
            self._initialized = False
            self._agent = None
            self._proactive = None
            logger.info("Steward shut down")

    async def __aenter__(self) -> "Steward":
        await self._ensure_initialized()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.shutdown()
