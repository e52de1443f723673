"""Shared fixtures for tool_agent tests."""

from __future__ import annotations

import textwrap

import pytest

from tool_agent.engine.agent import Agent
from tool_agent.engine.llm import MockCompletionProvider
from tool_agent.engine.models import AgentConfig, CompletionParams, Message
from tool_agent.history.in_memory import InMemoryListStore
from tool_agent.history.store import HistoryStore
from tool_agent.tools.registry import ToolRegistry

WEATHER_TOOL = '''
get_weather_schema = {
    "type": "function",
    "function": {
        "name": "get_weather",
        "description": "Current weather for a city.",
        "parameters": {
            "type": "object",
            "properties": {"city": {"type": "string"}},
            "required": ["city"],
        },
    },
}


async def get_weather(args):
    return {"city": args["city"], "forecast": "sunny", "celsius": 21}
'''

MATH_TOOL = '''
import json
from os.path import join

add_schema = {
    "type": "function",
    "function": {
        "name": "add",
        "parameters": {
            "type": "object",
            "properties": {"a": {"type": "number"}, "b": {"type": "number"}},
        },
        "strict": False,
    },
}


def add(args):
    return args["a"] + args["b"]


def _helper():
    return json.dumps(join("a", "b"))
'''


def write_tool(directory, filename: str, source: str):
    path = directory / filename
    path.write_text(textwrap.dedent(source))
    return path


@pytest.fixture
def tools_dir(tmp_path):
    directory = tmp_path / "tools"
    directory.mkdir()
    write_tool(directory, "weather.py", WEATHER_TOOL)
    write_tool(directory, "math_tools.py", MATH_TOOL)
    (directory / "README.md").write_text("not a tool")
    (directory / "package.py").mkdir()  # directory with a .py suffix
    return directory


@pytest.fixture
def registry(tools_dir):
    registry = ToolRegistry()
    registry.load(tools_dir)
    return registry


@pytest.fixture
def list_store():
    return InMemoryListStore()


@pytest.fixture
def history_store(list_store):
    return HistoryStore(list_store)


@pytest.fixture
def make_agent(registry):
    """Factory — ``agent, provider = make_agent([responses], system_instruction=...)``."""

    def _make(responses, *, params: dict | None = None, **config) -> tuple[Agent, MockCompletionProvider]:
        provider = MockCompletionProvider(responses)
        agent_config = AgentConfig(
            params=CompletionParams(model="gpt-4o-mini", **(params or {})),
            **config,
        )
        return Agent(agent_config, provider, registry=registry), provider

    return _make


def roles(messages: list[Message]) -> list[str]:
    return [m.role for m in messages]
