"""tool_agent — chat completions with locally registered tools and per-user history.

Usage::

    from tool_agent import create_agent

    agent = create_agent(system_instruction="You are terse.")
    agent.configure_tools("./tools")
    result = await agent.converse("weather in Oslo?", tool_names=["get_weather"])
    print(result.choices[0])
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()  # reads .env into os.environ (no-op if file missing)

from tool_agent.engine.agent import Agent
from tool_agent.engine.llm import OpenAICompletionProvider
from tool_agent.engine.models import (
    AgentConfig,
    CompletionParams,
    CompletionResult,
    HistoryOptions,
    Message,
    ProviderConfig,
)
from tool_agent.errors import ValidationError
from tool_agent.history.redis_store import RedisListStore
from tool_agent.tools.registry import ToolRegistry

__all__ = [
    "Agent",
    "AgentConfig",
    "CompletionParams",
    "CompletionResult",
    "HistoryOptions",
    "Message",
    "ProviderConfig",
    "create_agent",
]


def _setting(value: str | None, env_name: str, default: str | None = None) -> str | None:
    """Keyword argument when given (even ``""``), else the environment."""
    return value if value is not None else os.environ.get(env_name, default)


def create_agent(
    *,
    openai_api_key: str | None = None,
    openai_model: str | None = None,
    base_url: str | None = None,
    system_instruction: str | None = None,
    tools_dir: str | None = None,
    redis_url: str | None = None,
    history_limit: int | None = None,
    **params,
) -> Agent:
    """Wire provider, registry and optional Redis history into an Agent.

    Extra keyword arguments become default completion parameters
    (``temperature=0.2``, ``max_tokens=256``, ...).

    Environment variables (keyword arguments win):
      OPENAI_API_KEY            — required
      OPENAI_MODEL              — default ``gpt-4o-mini``
      OPENAI_BASE_URL           — OpenAI-compatible endpoint
      AGENT_SYSTEM_INSTRUCTION  — default system instruction
      AGENT_TOOLS_DIR           — tools directory, loaded on first use
      REDIS_URL                 — enables per-user history
      AGENT_HISTORY_LIMIT       — messages of history sent per turn
    """
    api_key = _setting(openai_api_key, "OPENAI_API_KEY")
    model = _setting(openai_model, "OPENAI_MODEL", "gpt-4o-mini")
    base_url = _setting(base_url, "OPENAI_BASE_URL") or None
    system_instruction = _setting(system_instruction, "AGENT_SYSTEM_INSTRUCTION")
    tools_dir = _setting(tools_dir, "AGENT_TOOLS_DIR") or None
    redis_url = _setting(redis_url, "REDIS_URL") or None
    if history_limit is None and os.environ.get("AGENT_HISTORY_LIMIT"):
        raw_limit = os.environ["AGENT_HISTORY_LIMIT"]
        try:
            history_limit = int(raw_limit)
        except ValueError as exc:
            raise ValidationError(f"AGENT_HISTORY_LIMIT must be an integer, got {raw_limit!r}") from exc

    # -- components --
    provider = OpenAICompletionProvider(ProviderConfig(api_key=api_key, base_url=base_url))
    registry = ToolRegistry(source=tools_dir)

    config = AgentConfig(
        params=CompletionParams(model=model, **params),
        system_instruction=system_instruction,
        history=HistoryOptions(limit=history_limit) if history_limit is not None else HistoryOptions(),
    )
    agent = Agent(config, provider, registry=registry)

    if redis_url:
        agent.configure_history(RedisListStore.from_url(redis_url))
    return agent
